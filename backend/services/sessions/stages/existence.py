"""Existence checks: unauthorized-record logins and the no-record outcome."""

from __future__ import annotations

from typing import Any

from ..errors import NO_DETAILS_MESSAGE, NOT_FOUND_MESSAGE, SessionErrorKind
from ..session import Session
from .base import SessionStage, StageContext


class UnauthorizedRecordStage(SessionStage):
    """Accepts a record handed over by trusted code, without a password."""

    name = "unauthorized_record"

    async def authenticate(self, session: Session, ctx: StageContext) -> Any | None:
        record = session.unauthorized_record
        if record is None:
            return None
        session.attempted_record = record
        session.fresh_login = True
        return record


class ExistenceStage(SessionStage):
    name = "existence"

    async def ensure(self, session: Session, ctx: StageContext) -> None:
        if session.record is not None or session.errors:
            return
        if session.present_transports:
            session.add_error(self.name, SessionErrorKind.NOT_FOUND, NOT_FOUND_MESSAGE)
            return
        session.add_error(self.name, SessionErrorKind.NOT_FOUND, NO_DETAILS_MESSAGE)
