"""Session pipeline error taxonomy."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SessionConfigError(Exception):
    """Raised for configuration problems that abort session construction."""


class NotActivatedError(SessionConfigError):
    def __init__(self, scope: str) -> None:
        super().__init__(
            f"Session scope '{scope}' is not activated; supply a request adapter "
            "before creating sessions"
        )
        self.scope = scope


class UnknownScopeError(SessionConfigError):
    def __init__(self, scope: str) -> None:
        super().__init__(f"Session scope '{scope}' is not registered")
        self.scope = scope


class ScopeFrozenError(SessionConfigError):
    def __init__(self, scope: str) -> None:
        super().__init__(
            f"Session scope '{scope}' is already in use and can no longer be reconfigured"
        )
        self.scope = scope


class SessionErrorKind(str, Enum):
    INVALID_CREDENTIALS = "invalid_credentials"
    LOCKED_OUT = "locked_out"
    TOKEN_EXPIRED = "token_expired"
    GUARD_VETOED = "guard_vetoed"
    NOT_FOUND = "not_found"


INVALID_CREDENTIALS_MESSAGE = "Login or password is invalid"
BLANK_CREDENTIALS_MESSAGE = "Login and password cannot be blank"
# Deliberately silent about how many attempts remain.
LOCKED_OUT_MESSAGE = (
    "Consecutive failed logins limit exceeded, account has been temporarily disabled"
)
TOKEN_EXPIRED_MESSAGE = "Your session has expired, please log in again"
NO_DETAILS_MESSAGE = "You did not provide any details for authentication"
NOT_FOUND_MESSAGE = "Persisted credentials did not match any record"


@dataclass(frozen=True, slots=True)
class SessionError:
    """A recoverable failure collected on the session instead of raised."""

    stage: str
    kind: SessionErrorKind
    message: str
