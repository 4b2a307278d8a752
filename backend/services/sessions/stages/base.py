"""Contract shared by every session pipeline stage."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, ClassVar

from ..adapters import RequestAdapter
from ..config import ScopeConfig, TransportName
from ..counters import BruteForceCounter
from ..errors import SessionError, SessionErrorKind
from ..records import RecordAccessor
from ..session import Session


@dataclass(slots=True)
class StageContext:
    """Collaborators available to stages during one ``create`` call."""

    config: ScopeConfig
    accessor: RecordAccessor
    adapter: RequestAdapter
    counter: BruteForceCounter | None
    now: Callable[[], datetime]
    stale_before: datetime | None = None


class SessionStage:
    """A pipeline stage.

    Stages are built once per scope and must not keep per-request state on
    themselves; everything request-specific lives on the Session or the
    StageContext. Each hook is a no-op unless overridden.
    """

    name: ClassVar[str] = "stage"

    def __init__(self, config: ScopeConfig) -> None:
        self.config = config

    @property
    def stage_name(self) -> str:
        return self.name

    def error(self, kind: SessionErrorKind, message: str) -> SessionError:
        return SessionError(stage=self.stage_name, kind=kind, message=message)

    async def prepare(self, session: Session, ctx: StageContext) -> None:
        return None

    async def screen(
        self, session: Session, ctx: StageContext, record: Any
    ) -> SessionError | None:
        """Inspect a record restored from a transport before it is accepted."""
        return None

    async def check(
        self, session: Session, ctx: StageContext, record: Any
    ) -> SessionError | None:
        """Guard hook: return an error to veto the resolved record."""
        return None

    async def persist(self, session: Session, ctx: StageContext) -> None:
        return None


class TransportStage(SessionStage):
    """A medium able to carry a persisted identity between requests."""

    transport: ClassVar[TransportName]

    async def load(self, session: Session, ctx: StageContext) -> Any | None:
        raise NotImplementedError

    async def resolve(self, session: Session, ctx: StageContext, raw: Any) -> Any | None:
        raise NotImplementedError

    async def save(self, session: Session, ctx: StageContext) -> None:
        return None

    async def invalidate(self, session: Session, ctx: StageContext) -> None:
        return None

    async def persist(self, session: Session, ctx: StageContext) -> None:
        if session.record is not None:
            await self.save(session, ctx)
        elif session.vetoed or self.transport in session.present_transports:
            await self.invalidate(session, ctx)
