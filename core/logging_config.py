"""
Logging setup for applications embedding the engine.

Library modules only create loggers; handlers are installed here.
"""

import logging
from typing import List, Optional

from core.config import Settings, get_settings


def configure_logging(settings: Optional[Settings] = None) -> None:
    """
    Configure root logging from settings.

    Args:
        settings: Settings to read LOG_LEVEL, LOG_FORMAT and LOG_FILE from
                  (default: cached application settings)
    """
    settings = settings or get_settings()

    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if settings.LOG_FILE:
        handlers.append(logging.FileHandler(settings.LOG_FILE))

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper()),
        format=settings.LOG_FORMAT,
        handlers=handlers,
        force=True
    )

    logging.getLogger(__name__).debug(f"Logging configured at {settings.LOG_LEVEL}")
