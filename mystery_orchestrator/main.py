"""
Mystery Orchestrator - Main Entry Point
Murder mystery generation and validation service.
"""

import logging

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI

from .agents import AgentInvoker
from .api import create_app
from .config import configure_logging, create_default_config_from_env, load_app_settings
from .core import MysteryOrchestrator
from .services import ProjectStore

# Load environment variables
load_dotenv()

logger = logging.getLogger("orchestrator")


def build_app() -> FastAPI:
    """Wire configuration, agents, storage and HTTP layer together."""
    settings = load_app_settings()
    configure_logging(settings.log_level)

    llm_config = create_default_config_from_env()
    if not llm_config.has_credentials():
        logger.warning(
            f"[build_app] No API key configured for provider '{llm_config.provider.value}'; "
            "generation requests will fail until one is set"
        )

    invoker = AgentInvoker(llm_config)
    orchestrator = MysteryOrchestrator(invoker)
    store = ProjectStore(settings.data_path, render_markdown=settings.render_markdown)

    logger.info(
        f"[build_app] Provider: {llm_config.provider.value}, "
        f"enabled providers: {[p.value for p in llm_config.get_enabled_providers()]}, "
        f"data path: {settings.data_path}"
    )
    return create_app(orchestrator, store, settings, llm_config)


def run() -> None:
    """Console entry point."""
    settings = load_app_settings()
    uvicorn.run(build_app(), host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
