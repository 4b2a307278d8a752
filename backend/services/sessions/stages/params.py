"""Request-parameter transport: single access tokens or perishable handoff tokens."""

from __future__ import annotations

from typing import Any

from core import tokens_match

from ..config import ScopeConfig, TransportName
from ..session import Session
from .base import StageContext, TransportStage
from .perishable_token import PerishableTokenStage

PARAMS_SUFFIX = "credentials"


class ParamsTransport(TransportStage):
    """Reads ``<scope>_credentials`` from the query string or form.

    Single access logins are never written back to cookies or the native
    session. Parameters are read-only, so there is nothing to save or clear.
    """

    name = "params"
    transport = TransportName.PARAMS

    def __init__(self, config: ScopeConfig, perishable_token: PerishableTokenStage) -> None:
        super().__init__(config)
        self.perishable_token = perishable_token

    @property
    def uses_perishable_tokens(self) -> bool:
        return self.config.params_token == "perishable"

    async def load(self, session: Session, ctx: StageContext) -> str | None:
        if not self.uses_perishable_tokens and not self.config.allows_single_access_for(
            ctx.adapter.request_types
        ):
            return None
        return ctx.adapter.param(session.key(PARAMS_SUFFIX))

    async def resolve(self, session: Session, ctx: StageContext, raw: str) -> Any | None:
        if self.uses_perishable_tokens:
            return await self.perishable_token.verify(session, ctx, raw)

        record = await ctx.accessor.find_by_token(
            "single_access_token", raw, filters=self.config.record_filters
        )
        if record is None or not tokens_match(raw, getattr(record, "single_access_token", None)):
            return None
        session.single_access = True
        return record
