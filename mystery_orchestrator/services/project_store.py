"""
File-backed project storage.

Each project lives in its own directory under the data path:

    <data_path>/<project_id>/project.json
    <data_path>/<project_id>/00_GAME_MASTER_BLUEPRINT.md ... 06_APPENDIX_PERSONS.md

Blocking file I/O runs in worker threads; read-modify-write cycles on the
same project are serialised with a per-id asyncio.Lock.
"""

import asyncio
import logging
import os
import re
import shutil
import weakref
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..models import Project, ProjectListItem, utc_now
from .markdown_export import render_handouts

logger = logging.getLogger("orchestrator.storage")

PROJECT_FILE = "project.json"
PROJECT_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")

# Fields a patch may not overwrite
PROTECTED_FIELDS = {"id", "created_at", "version"}


class ProjectStoreError(Exception):
    """Storage failure (bad id, unwritable directory, invalid patch)."""


class ProjectUpdateError(ProjectStoreError):
    """The patched record does not validate."""


class ProjectConflictError(ProjectStoreError):
    """Update rejected because the stored version moved on."""

    def __init__(self, project_id: str, expected: int, actual: int):
        self.project_id = project_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Project {project_id} is at version {actual}, expected {expected}"
        )


def is_valid_project_id(project_id: str) -> bool:
    return bool(project_id) and PROJECT_ID_PATTERN.match(project_id) is not None


class ProjectStore:
    """CRUD over project directories."""

    def __init__(self, data_path: Path, render_markdown: bool = True):
        self.data_path = Path(data_path)
        self.render_markdown = render_markdown
        # Entries disappear once no coroutine holds or waits on the lock
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def _project_dir(self, project_id: str) -> Path:
        return self.data_path / project_id

    def _lock_for(self, project_id: str) -> asyncio.Lock:
        lock = self._locks.get(project_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[project_id] = lock
        return lock

    # ------------------------------------------------------------------
    # Blocking helpers (run via asyncio.to_thread)
    # ------------------------------------------------------------------

    def _write_project(self, project: Project) -> None:
        project_dir = self._project_dir(project.id)
        project_dir.mkdir(parents=True, exist_ok=True)

        target = project_dir / PROJECT_FILE
        tmp = project_dir / f".{PROJECT_FILE}.tmp"
        tmp.write_text(project.model_dump_json(indent=2), encoding="utf-8")
        os.replace(tmp, target)

        if self.render_markdown:
            for filename, content in render_handouts(project).items():
                (project_dir / filename).write_text(content, encoding="utf-8")

    def _read_project(self, project_id: str) -> Optional[Project]:
        path = self._project_dir(project_id) / PROJECT_FILE
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        try:
            return Project.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"[load] Project {project_id} is unreadable: {e.error_count()} validation error(s)")
            return None

    def _list_ids(self) -> List[str]:
        if not self.data_path.is_dir():
            return []
        return [p.name for p in self.data_path.iterdir() if p.is_dir() and is_valid_project_id(p.name)]

    def _remove(self, project_id: str) -> bool:
        project_dir = self._project_dir(project_id)
        if not project_dir.is_dir():
            return False
        shutil.rmtree(project_dir)
        return True

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def save(self, project: Project) -> None:
        """Write project.json (and the markdown handouts) for `project`."""
        if not is_valid_project_id(project.id):
            raise ProjectStoreError(f"Invalid project id: {project.id!r}")
        try:
            await asyncio.to_thread(self._write_project, project)
        except OSError as e:
            raise ProjectStoreError(f"Failed to save project {project.id}: {e}") from e
        logger.info(f"[save] Saved project {project.id} (version {project.version})")

    async def load(self, project_id: str) -> Optional[Project]:
        if not is_valid_project_id(project_id):
            return None
        return await asyncio.to_thread(self._read_project, project_id)

    async def list(self) -> List[ProjectListItem]:
        """Summaries of every readable project, most recently updated first."""
        items = []
        for project_id in await asyncio.to_thread(self._list_ids):
            project = await self.load(project_id)
            if project is not None:
                items.append(ProjectListItem.from_project(project))
        items.sort(key=lambda item: item.updated_at, reverse=True)
        return items

    async def update(
        self,
        project_id: str,
        patch: Dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> Optional[Project]:
        """
        Merge `patch` into the stored project.

        Returns None when the project does not exist. Raises
        ProjectConflictError when `expected_version` is given and stale,
        ProjectUpdateError when the merged record does not validate.
        """
        if not is_valid_project_id(project_id):
            return None
        async with self._lock_for(project_id):
            project = await self.load(project_id)
            if project is None:
                return None

            if expected_version is not None and expected_version != project.version:
                raise ProjectConflictError(project_id, expected_version, project.version)

            ignored = PROTECTED_FIELDS.intersection(patch)
            if ignored:
                logger.warning(f"[update] Ignoring protected fields for {project_id}: {sorted(ignored)}")

            merged = project.model_dump(mode="json")
            merged.update({k: v for k, v in patch.items() if k not in PROTECTED_FIELDS})
            merged["updated_at"] = utc_now().isoformat()
            merged["version"] = project.version + 1

            try:
                updated = Project.model_validate(merged)
            except ValidationError as e:
                raise ProjectUpdateError(f"Invalid project update: {e.error_count()} validation error(s)") from e

            await self.save(updated)
            return updated

    async def delete(self, project_id: str) -> bool:
        """Remove the project directory. False when nothing was removed."""
        if not is_valid_project_id(project_id):
            return False
        async with self._lock_for(project_id):
            try:
                removed = await asyncio.to_thread(self._remove, project_id)
            except OSError as e:
                logger.error(f"[delete] Failed to delete project {project_id}: {e}")
                return False
        if removed:
            logger.info(f"[delete] Deleted project {project_id}")
        return removed

