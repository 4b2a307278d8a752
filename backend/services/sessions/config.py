"""Per-scope session configuration."""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core import settings

SCOPE_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9_]{0,62}$")
ANY_REQUEST_TYPE = "*"


class TransportName(str, Enum):
    PARAMS = "params"
    COOKIES = "cookies"
    NATIVE_SESSION = "native_session"
    HTTP_AUTH = "http_auth"


# Tried in this order when restoring a persisted identity.
DEFAULT_TRANSPORT_ORDER: tuple[TransportName, ...] = (
    TransportName.PARAMS,
    TransportName.COOKIES,
    TransportName.NATIVE_SESSION,
    TransportName.HTTP_AUTH,
)


class MagicState(str, Enum):
    ACTIVE = "active"
    APPROVED = "approved"
    CONFIRMED = "confirmed"


DEFAULT_MAGIC_STATES: tuple[MagicState, ...] = (
    MagicState.ACTIVE,
    MagicState.APPROVED,
    MagicState.CONFIRMED,
)


@dataclass(frozen=True, slots=True)
class GuardRule:
    """Custom predicate run after the magic-state guards.

    The predicate receives the resolved record and returns True when the
    record may hold a session.
    """

    name: str
    predicate: Callable[[Any], bool]
    message: str


def _minutes(value: int) -> timedelta:
    return timedelta(minutes=value)


def _default_timeout() -> timedelta | None:
    if settings.session_timeout_minutes <= 0:
        return None
    return _minutes(settings.session_timeout_minutes)


def _default_cookie_secure() -> bool:
    return (
        settings.app_env.strip().lower() not in {"local", "test"}
        and not settings.allow_insecure_http_cookies
    )


class ScopeConfig(BaseModel):
    """Immutable configuration for one session scope."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    record_alias: str | None = None
    active: bool = True
    transports: tuple[TransportName, ...] = DEFAULT_TRANSPORT_ORDER

    timeout: timedelta | None = Field(default_factory=_default_timeout)
    last_request_at_threshold: timedelta = Field(
        default_factory=lambda: timedelta(seconds=settings.last_request_at_threshold_seconds)
    )

    consecutive_failed_logins_limit: int = Field(
        default_factory=lambda: settings.consecutive_failed_logins_limit, ge=0
    )
    failed_login_ban_for: timedelta = Field(
        default_factory=lambda: _minutes(settings.failed_login_ban_minutes)
    )

    magic_states: tuple[MagicState, ...] = DEFAULT_MAGIC_STATES
    disable_magic_states: bool = False
    guards: tuple[GuardRule, ...] = ()

    cookie_secure: bool = Field(default_factory=_default_cookie_secure)
    cookie_httponly: bool = True
    cookie_same_site: Literal["lax", "strict", "none"] = "lax"
    sign_cookie: bool = False
    remember_me: bool = False
    remember_me_for: timedelta = Field(
        default_factory=lambda: timedelta(days=settings.remember_me_days)
    )

    params_token: Literal["single_access", "perishable"] = "single_access"
    single_access_allowed_request_types: tuple[str, ...] = (
        "application/rss+xml",
        "application/atom+xml",
    )

    allow_http_basic_auth: bool = True
    request_http_basic_auth: bool = False
    http_basic_auth_realm: str = Field(default_factory=lambda: settings.http_auth_realm)

    perishable_token_valid_for: timedelta = Field(
        default_factory=lambda: _minutes(settings.perishable_token_valid_minutes)
    )
    rotate_perishable_token: bool = True

    # Extra equality filters applied to every record lookup for this scope.
    record_filters: Mapping[str, Any] = Field(default_factory=dict)

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not SCOPE_NAME_PATTERN.fullmatch(normalized):
            raise ValueError("Scope name must be lowercase snake_case")
        return normalized

    @field_validator("transports")
    @classmethod
    def _reject_duplicate_transports(
        cls, value: tuple[TransportName, ...]
    ) -> tuple[TransportName, ...]:
        if len(set(value)) != len(value):
            raise ValueError("Each transport may appear only once")
        return value

    @field_validator("timeout")
    @classmethod
    def _normalize_timeout(cls, value: timedelta | None) -> timedelta | None:
        if value is not None and value <= timedelta(0):
            return None
        return value

    @property
    def accessor_name(self) -> str:
        return self.record_alias or self.name

    @property
    def brute_force_enabled(self) -> bool:
        return self.consecutive_failed_logins_limit > 0

    def allows_single_access_for(self, request_types: tuple[str, ...]) -> bool:
        allowed = self.single_access_allowed_request_types
        if ANY_REQUEST_TYPE in allowed:
            return True
        return any(request_type in allowed for request_type in request_types)
