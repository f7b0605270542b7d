"""Standard-library logging setup driven by the ``[Logging]`` config section."""

from __future__ import annotations

import logging

from core.config.config_service import ConfigService

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(config: ConfigService) -> None:
    """Install a stream handler on the root logger (idempotent)."""
    level = logging.getLevelName(str(config.logging.level).upper())
    if not isinstance(level, int):
        level = logging.INFO
    root = logging.getLogger()
    root.setLevel(level)
    if not any(getattr(h, "_esign_handler", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._esign_handler = True  # type: ignore[attr-defined]
        root.addHandler(handler)
