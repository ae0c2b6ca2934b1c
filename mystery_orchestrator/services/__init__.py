"""
Mystery Orchestrator Services Module
Project persistence and markdown handout rendering.
"""

from .markdown_export import render_handouts
from .project_store import (
    ProjectConflictError,
    ProjectStore,
    ProjectStoreError,
    ProjectUpdateError,
    is_valid_project_id,
)

__all__ = [
    "ProjectStore",
    "ProjectStoreError",
    "ProjectConflictError",
    "ProjectUpdateError",
    "is_valid_project_id",
    "render_handouts",
]
