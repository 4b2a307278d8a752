"""Logging setup for the backend process."""

from __future__ import annotations

import logging

from .config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    resolved_level = (level or settings.log_level).upper()
    logging.basicConfig(level=resolved_level, format=LOG_FORMAT)
    logging.getLogger("services.sessions").setLevel(resolved_level)
