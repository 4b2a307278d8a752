"""Business logic services."""

from .sessions import (
    BruteForceCounter,
    NotActivatedError,
    PasswordCredentials,
    RequestAdapter,
    ScopeConfig,
    Session,
    SessionConfigError,
    SessionPipeline,
    SqlRecordAccessor,
    get_brute_force_counter,
    scope_registry,
    set_brute_force_counter,
)

__all__ = [
    "BruteForceCounter",
    "NotActivatedError",
    "PasswordCredentials",
    "RequestAdapter",
    "ScopeConfig",
    "Session",
    "SessionConfigError",
    "SessionPipeline",
    "SqlRecordAccessor",
    "get_brute_force_counter",
    "scope_registry",
    "set_brute_force_counter",
]
