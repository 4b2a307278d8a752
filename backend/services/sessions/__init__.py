"""Per-request authentication sessions resolved through an ordered stage pipeline."""

from .adapters import RequestAdapter
from .config import (
    DEFAULT_MAGIC_STATES,
    DEFAULT_TRANSPORT_ORDER,
    GuardRule,
    MagicState,
    ScopeConfig,
    TransportName,
)
from .counters import (
    BruteForceCounter,
    get_brute_force_counter,
    get_redis_client,
    set_brute_force_counter,
)
from .errors import (
    NotActivatedError,
    ScopeFrozenError,
    SessionConfigError,
    SessionError,
    SessionErrorKind,
    UnknownScopeError,
)
from .pipeline import SessionPipeline
from .records import RecordAccessor, SqlRecordAccessor
from .registry import FrozenScope, ScopeRegistry, scope_registry
from .session import PasswordCredentials, Session

__all__ = [
    "BruteForceCounter",
    "DEFAULT_MAGIC_STATES",
    "DEFAULT_TRANSPORT_ORDER",
    "FrozenScope",
    "GuardRule",
    "MagicState",
    "NotActivatedError",
    "PasswordCredentials",
    "RecordAccessor",
    "RequestAdapter",
    "ScopeConfig",
    "ScopeFrozenError",
    "ScopeRegistry",
    "Session",
    "SessionConfigError",
    "SessionError",
    "SessionErrorKind",
    "SessionPipeline",
    "SqlRecordAccessor",
    "TransportName",
    "UnknownScopeError",
    "get_brute_force_counter",
    "get_redis_client",
    "scope_registry",
    "set_brute_force_counter",
]
