"""Failed-login lockout around the credential stage."""

from __future__ import annotations

import logging
from typing import Any

from ..counters import BruteForceCounter
from ..session import Session
from .base import SessionStage, StageContext

logger = logging.getLogger(__name__)


class BruteForceProtectionStage(SessionStage):
    """Consults the failure counter before a password is checked and after it fails.

    Once the failures recorded for a login reach the scope limit, every
    attempt is refused until the ban window passes, whatever the password.
    """

    name = "brute_force_protection"

    def _counter(self, ctx: StageContext) -> BruteForceCounter | None:
        if not self.config.brute_force_enabled:
            return None
        return ctx.counter

    async def is_locked(self, session: Session, ctx: StageContext, login: str) -> bool:
        counter = self._counter(ctx)
        if counter is None:
            return False
        failures = await counter.failures(session.scope, login)
        return failures >= self.config.consecutive_failed_logins_limit

    async def register_failure(
        self,
        session: Session,
        ctx: StageContext,
        login: str,
        record: Any | None,
    ) -> bool:
        """Record one failed attempt and return True when it triggers a lockout."""
        if record is not None and hasattr(record, "failed_login_count"):
            await ctx.accessor.update_record(
                record,
                failed_login_count=(record.failed_login_count or 0) + 1,
            )
        counter = self._counter(ctx)
        if counter is None:
            return False

        failures = await counter.register_failure(
            session.scope,
            login,
            window_seconds=int(self.config.failed_login_ban_for.total_seconds()),
        )
        locked = failures >= self.config.consecutive_failed_logins_limit
        if locked:
            logger.warning(
                "Failed login limit reached",
                extra={
                    "scope": session.scope,
                    "record_id": getattr(record, "id", None),
                    "failures": failures,
                },
            )
        return locked

    async def reset(self, session: Session, ctx: StageContext, login: str) -> None:
        counter = self._counter(ctx)
        if counter is not None:
            await counter.reset(session.scope, login)
