"""Core configuration and security helpers."""

from .config import Settings, settings
from .logging import configure_logging
from .security import (
    friendly_token,
    hash_password,
    needs_rehash,
    tokens_match,
    verify_password,
)

__all__ = [
    "Settings",
    "settings",
    "configure_logging",
    "friendly_token",
    "hash_password",
    "needs_rehash",
    "tokens_match",
    "verify_password",
]
