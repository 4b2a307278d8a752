"""The per-request session aggregate."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, ClassVar

from .config import ScopeConfig, TransportName
from .errors import SessionError, SessionErrorKind


@dataclass(frozen=True, slots=True)
class PasswordCredentials:
    login: str
    password: str
    remember_me: bool | None = None

    def __repr__(self) -> str:
        return f"PasswordCredentials(login={self.login!r}, password='[FILTERED]')"


Destroyer = Callable[["Session", bool], Awaitable[None]]


class Session:
    """State shared by every pipeline stage while one request is authenticated.

    ``record`` is the sole success signal: it is set only after a stage
    resolved or validated an identity and no guard vetoed it. ``errors``
    explains why it is empty.
    """

    record_alias: ClassVar[str] = "record"

    def __init__(
        self,
        config: ScopeConfig,
        *,
        instance_id: int,
        session_id: str | None = None,
    ) -> None:
        self.config = config
        self.scope = config.name
        self.instance_id = instance_id
        self.id = session_id
        self.active = config.active
        self.record: Any | None = None
        self.attempted_record: Any | None = None
        self.stale_record: Any | None = None
        self.priority_record: Any | None = None
        self.credentials: PasswordCredentials | None = None
        self.unauthorized_record: Any | None = None
        self.login: str | None = None
        self.errors: list[SessionError] = []
        self.last_activity_time: datetime | None = None
        self.persistence_token: str | None = None
        self.remember_me = config.remember_me
        self.remember_me_until: datetime | None = None
        self.resolved_by: TransportName | None = None
        self.single_access = False
        self.fresh_login = False
        self.vetoed = False
        self.present_transports: set[TransportName] = set()
        self._destroyer: Destroyer | None = None

    @property
    def identifier(self) -> str | None:
        if self.record is None:
            return None
        record_id = getattr(self.record, "id", None)
        return None if record_id is None else str(record_id)

    @property
    def is_authenticated(self) -> bool:
        return self.record is not None

    def key(self, suffix: str) -> str:
        """Return a transport key namespaced by scope and session id."""
        base = f"{self.scope}_{suffix}"
        if self.id:
            return f"{self.id}_{base}"
        return base

    def add_error(self, stage: str, kind: SessionErrorKind, message: str) -> None:
        self.errors.append(SessionError(stage=stage, kind=kind, message=message))

    def has_error(self, kind: SessionErrorKind) -> bool:
        return any(error.kind == kind for error in self.errors)

    def error_messages(self) -> list[str]:
        return [error.message for error in self.errors]

    def bind_destroyer(self, destroyer: Destroyer) -> None:
        self._destroyer = destroyer

    async def destroy(self, *, everywhere: bool = False) -> None:
        """Clear every enabled transport for this scope and drop the record.

        ``everywhere`` additionally rotates the record's persistence token so
        copies held by other clients stop resolving.
        """
        if self._destroyer is not None:
            await self._destroyer(self, everywhere)
        self.record = None
        self.persistence_token = None
        self.remember_me_until = None
        self.resolved_by = None

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__} scope={self.scope!r} instance={self.instance_id} "
            f"authenticated={self.is_authenticated}>"
        )


_INSTANCE_ATTRIBUTES = frozenset(
    {
        "config",
        "scope",
        "instance_id",
        "id",
        "active",
        "attempted_record",
        "stale_record",
        "priority_record",
        "credentials",
        "unauthorized_record",
        "login",
        "errors",
        "last_activity_time",
        "persistence_token",
        "remember_me",
        "remember_me_until",
        "resolved_by",
        "single_access",
        "fresh_login",
        "vetoed",
        "present_transports",
    }
)


def build_scope_session_class(config: ScopeConfig) -> type[Session]:
    """Create the Session subclass exposing the scope's record accessor.

    A scope named ``admin`` gets ``session.admin`` as a read-only alias of
    ``session.record``.
    """
    alias = config.accessor_name
    if alias != "record" and (hasattr(Session, alias) or alias in _INSTANCE_ATTRIBUTES):
        raise ValueError(f"Record alias '{alias}' collides with a Session attribute")

    def _aliased_record(self: Session) -> Any | None:
        return self.record

    class_name = "".join(part.capitalize() for part in config.name.split("_")) + "Session"
    namespace: dict[str, Any] = {"record_alias": alias, "__module__": __name__}
    if alias != "record":
        namespace[alias] = property(_aliased_record)
    return type(class_name, (Session,), namespace)
