"""Short-lived, rotating tokens for one-off handoffs such as emailed links."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from core import friendly_token, tokens_match

from ..clock import ensure_aware
from ..config import TransportName
from ..records import RecordAccessor
from ..session import Session
from .base import SessionStage, StageContext

logger = logging.getLogger(__name__)


class PerishableTokenStage(SessionStage):
    """Issues, verifies and rotates the record's perishable token.

    A token verifies only while it is younger than the scope's
    ``perishable_token_valid_for``; rotating overwrites it, so the previous
    value stops resolving immediately.
    """

    name = "perishable_token"

    async def issue(
        self, accessor: RecordAccessor, record: Any, *, now: datetime
    ) -> str:
        token = friendly_token()
        await accessor.update_record(
            record,
            perishable_token=token,
            perishable_token_issued_at=now,
        )
        return token

    async def rotate(
        self, accessor: RecordAccessor, record: Any, *, now: datetime
    ) -> str:
        return await self.issue(accessor, record, now=now)

    async def verify(self, session: Session, ctx: StageContext, token: str) -> Any | None:
        record = await ctx.accessor.find_by_token(
            "perishable_token", token, filters=self.config.record_filters
        )
        if record is None or not tokens_match(token, getattr(record, "perishable_token", None)):
            return None

        issued_at = getattr(record, "perishable_token_issued_at", None)
        if issued_at is None:
            return None
        if ensure_aware(issued_at) < ctx.now() - self.config.perishable_token_valid_for:
            logger.info(
                "Rejected expired perishable token",
                extra={"scope": session.scope, "record_id": getattr(record, "id", None)},
            )
            return None
        return record

    def _resolved_by_perishable_token(self, session: Session) -> bool:
        return (
            session.resolved_by == TransportName.PARAMS
            and self.config.params_token == "perishable"
        )

    async def persist(self, session: Session, ctx: StageContext) -> None:
        if session.record is None or not self.config.rotate_perishable_token:
            return
        if session.fresh_login or self._resolved_by_perishable_token(session):
            await self.rotate(ctx.accessor, session.record, now=ctx.now())
