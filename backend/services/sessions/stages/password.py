"""Validates explicit login/password credentials."""

from __future__ import annotations

import logging
from typing import Any

from ..config import ScopeConfig
from ..errors import (
    BLANK_CREDENTIALS_MESSAGE,
    INVALID_CREDENTIALS_MESSAGE,
    LOCKED_OUT_MESSAGE,
    SessionErrorKind,
)
from ..session import Session
from .base import SessionStage, StageContext
from .brute_force import BruteForceProtectionStage

logger = logging.getLogger(__name__)


class PasswordStage(SessionStage):
    name = "password"

    def __init__(self, config: ScopeConfig, brute_force: BruteForceProtectionStage) -> None:
        super().__init__(config)
        self.brute_force = brute_force

    async def authenticate(self, session: Session, ctx: StageContext) -> Any | None:
        credentials = session.credentials
        if credentials is None:
            return None
        record = await self.validate(session, ctx, credentials.login, credentials.password)
        if record is not None:
            session.fresh_login = True
        return record

    async def validate(
        self,
        session: Session,
        ctx: StageContext,
        login: str,
        password: str,
    ) -> Any | None:
        """Return the record matching the credentials, or None with an error added.

        The plaintext is only handed to the accessor's verifier and never
        stored or logged.
        """
        login = login.strip()
        session.login = login or None
        if not login or not password:
            session.add_error(
                self.name, SessionErrorKind.INVALID_CREDENTIALS, BLANK_CREDENTIALS_MESSAGE
            )
            return None

        if await self.brute_force.is_locked(session, ctx, login):
            session.add_error(
                self.brute_force.name, SessionErrorKind.LOCKED_OUT, LOCKED_OUT_MESSAGE
            )
            return None

        record = await ctx.accessor.find_by_credential_key(
            login, filters=self.config.record_filters
        )
        session.attempted_record = record
        if not ctx.accessor.verify_credential(record, password):
            locked = await self.brute_force.register_failure(session, ctx, login, record)
            if locked:
                session.add_error(
                    self.brute_force.name, SessionErrorKind.LOCKED_OUT, LOCKED_OUT_MESSAGE
                )
            else:
                session.add_error(
                    self.name,
                    SessionErrorKind.INVALID_CREDENTIALS,
                    INVALID_CREDENTIALS_MESSAGE,
                )
            logger.info(
                "Rejected login attempt",
                extra={"scope": session.scope, "locked": locked},
            )
            return None

        await self.brute_force.reset(session, ctx, login)
        await ctx.accessor.refresh_credential(record, password)
        return record
