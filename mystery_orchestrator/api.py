"""
HTTP API for the mystery orchestrator.

Generation is streamed as server-sent events; projects are stored on disk and
exposed through a small CRUD surface plus a re-validation endpoint.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import ValidationError
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from .config import AppSettings, LLMConfiguration, get_all_models
from .core import MysteryOrchestrator, ReconstructionError, validation_input_for
from .models import (
    GenerationEvent,
    GenerationEventType,
    GenerationSettings,
    Project,
)
from .services import (
    ProjectConflictError,
    ProjectStore,
    ProjectStoreError,
    ProjectUpdateError,
)

logger = logging.getLogger("orchestrator.api")

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def _ok(data: Any = None) -> Dict[str, Any]:
    body = {"success": True}
    if data is not None:
        body["data"] = data
    return body


async def _read_json(request: Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Request body must be valid JSON")
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object")
    return body


def _has_required_settings(body: Dict[str, Any]) -> bool:
    murder_method = body.get("murder_method")
    return bool(
        body.get("theme")
        and body.get("player_count")
        and isinstance(murder_method, dict)
        and murder_method.get("cause")
    )


def create_app(
    orchestrator: MysteryOrchestrator,
    store: ProjectStore,
    settings: AppSettings,
    llm_config: LLMConfiguration,
) -> FastAPI:
    """Build the FastAPI application around an orchestrator and a project store."""
    limiter = Limiter(key_func=get_remote_address)

    app = FastAPI(title="Mystery Orchestrator")

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.detail},
        )

    @app.get("/health")
    async def health():
        return {"status": "ok", "service": "mystery-orchestrator"}

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    @app.get("/api/projects/generate")
    async def generation_health():
        return {
            "status": "ok",
            "message": "Generation API ready",
            "has_api_key": llm_config.has_credentials(),
        }

    @app.get("/api/models")
    async def list_models():
        return _ok({
            "provider": llm_config.provider.value,
            "enabled_providers": [p.value for p in llm_config.get_enabled_providers()],
            "models": get_all_models(),
        })

    @app.post("/api/projects/generate")
    @limiter.limit(settings.generate_rate_limit)
    async def generate(request: Request):
        """Start a generation run and stream its events."""
        body = await _read_json(request)
        if not _has_required_settings(body):
            raise HTTPException(status_code=400, detail="Missing required settings fields")
        try:
            generation_settings = GenerationSettings.model_validate(body)
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=f"Invalid settings: {e.error_count()} validation error(s)")

        async def event_generator():
            events = orchestrator.generate(generation_settings)
            try:
                async for event in events:
                    # Saved before the complete frame is sent
                    if event.type == GenerationEventType.COMPLETE and event.data:
                        try:
                            await store.save(Project.model_validate(event.data["project"]))
                        except Exception as e:
                            logger.error(f"[generate] Failed to save project: {e}")

                    yield event.to_sse()
            except Exception as e:
                logger.exception("[generate] Stream error")
                yield GenerationEvent(
                    type=GenerationEventType.ERROR,
                    message=f"Stream error: {e}",
                    progress=0,
                    error=str(e),
                ).to_sse()
            finally:
                await events.aclose()

        return StreamingResponse(
            event_generator(),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
        )

    @app.post("/api/projects/validate")
    async def validate_project(request: Request):
        """Re-run the validation checks for a stored project."""
        body = await _read_json(request)
        project_id = body.get("project_id")
        if not project_id:
            raise HTTPException(status_code=400, detail="project_id is required")

        project = await store.load(project_id)
        if project is None:
            raise HTTPException(status_code=404, detail="Project not found")

        try:
            validation_input = validation_input_for(project)
        except ReconstructionError as e:
            raise HTTPException(status_code=422, detail=str(e))

        report = await orchestrator.validate(validation_input)
        validation = report.state.model_dump(mode="json")
        try:
            await store.update(project_id, {"validation": validation})
        except ProjectStoreError as e:
            raise HTTPException(status_code=500, detail=str(e))

        return _ok({
            "validation": validation,
            "tokens_used": report.tokens_used.model_dump(),
        })

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    @app.get("/api/projects")
    async def list_projects():
        items = await store.list()
        return _ok([item.model_dump(mode="json") for item in items])

    @app.get("/api/projects/{project_id}")
    async def get_project(project_id: str):
        project = await store.load(project_id)
        if project is None:
            raise HTTPException(status_code=404, detail="Project not found")
        return _ok(project.model_dump(mode="json"))

    @app.patch("/api/projects/{project_id}")
    async def update_project(
        project_id: str,
        request: Request,
        expected_version: Optional[int] = Query(default=None, ge=1),
    ):
        patch = await _read_json(request)
        try:
            updated = await store.update(project_id, patch, expected_version=expected_version)
        except ProjectConflictError as e:
            raise HTTPException(status_code=409, detail=str(e))
        except ProjectUpdateError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except ProjectStoreError as e:
            raise HTTPException(status_code=500, detail=str(e))

        if updated is None:
            raise HTTPException(status_code=404, detail="Project not found")
        return _ok(updated.model_dump(mode="json"))

    @app.delete("/api/projects/{project_id}")
    async def delete_project(project_id: str):
        if not await store.delete(project_id):
            raise HTTPException(status_code=500, detail="Failed to delete project")
        return _ok()

    return app
