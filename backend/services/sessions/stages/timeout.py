"""Discards identities whose last activity is older than the scope timeout."""

from __future__ import annotations

import logging
from typing import Any

from ..clock import ensure_aware
from ..errors import TOKEN_EXPIRED_MESSAGE, SessionError, SessionErrorKind
from ..session import Session
from .base import SessionStage, StageContext

logger = logging.getLogger(__name__)


class TimeoutStage(SessionStage):
    name = "timeout"

    async def prepare(self, session: Session, ctx: StageContext) -> None:
        session.stale_record = None
        if self.config.timeout is None:
            ctx.stale_before = None
            return
        ctx.stale_before = ctx.now() - self.config.timeout

    async def screen(
        self, session: Session, ctx: StageContext, record: Any
    ) -> SessionError | None:
        last_request_at = getattr(record, "last_request_at", None)
        if last_request_at is None:
            return None
        last_activity = ensure_aware(last_request_at)
        session.last_activity_time = last_activity
        if ctx.stale_before is None or last_activity >= ctx.stale_before:
            return None

        session.stale_record = record
        logger.info(
            "Discarded stale session",
            extra={
                "scope": session.scope,
                "record_id": getattr(record, "id", None),
                "last_request_at": last_activity.isoformat(),
            },
        )
        return self.error(SessionErrorKind.TOKEN_EXPIRED, TOKEN_EXPIRED_MESSAGE)
