"""
Application settings and logging setup for the mystery orchestrator service.
"""

import logging
import os
from pathlib import Path
from typing import List

from pydantic import BaseModel, Field

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]


class AppSettings(BaseModel):
    """Service-level settings (storage, HTTP, logging)."""
    data_path: Path = Field(
        default_factory=lambda: Path.cwd() / "data" / "projects",
        description="Directory holding one sub-directory per project",
    )
    allowed_origins: List[str] = Field(default_factory=lambda: list(DEFAULT_ALLOWED_ORIGINS))
    generate_rate_limit: str = "10/minute"
    render_markdown: bool = True
    host: str = "0.0.0.0"
    port: int = 8001
    log_level: str = "INFO"


def load_app_settings() -> AppSettings:
    """Build AppSettings from environment variables."""
    settings = AppSettings()

    if os.getenv("MYSTERY_DATA_PATH"):
        settings.data_path = Path(os.getenv("MYSTERY_DATA_PATH"))

    origins = os.getenv("ALLOWED_ORIGINS")
    if origins:
        settings.allowed_origins = [o.strip() for o in origins.split(",") if o.strip()]

    settings.generate_rate_limit = os.getenv("GENERATE_RATE_LIMIT", settings.generate_rate_limit)
    settings.render_markdown = os.getenv("RENDER_MARKDOWN", "true").lower() != "false"
    settings.host = os.getenv("HOST", settings.host)
    settings.port = int(os.getenv("PORT", str(settings.port)))
    settings.log_level = os.getenv("LOG_LEVEL", settings.log_level).upper()

    return settings


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach a single stream handler to the "orchestrator" logger namespace."""
    logger = logging.getLogger("orchestrator")
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    return logger
