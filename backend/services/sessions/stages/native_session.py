"""Transport backed by the host framework's per-client session store."""

from __future__ import annotations

from typing import Any

from core import tokens_match

from ..config import TransportName
from ..session import Session
from .base import StageContext, TransportStage

TOKEN_SUFFIX = "credentials"
ID_SUFFIX = "credentials_id"


class NativeSessionTransport(TransportStage):
    """Stores the persistence token and record id in ``request.session``.

    Disabled for requests that have no session store.
    """

    name = "native_session"
    transport = TransportName.NATIVE_SESSION

    async def load(
        self, session: Session, ctx: StageContext
    ) -> tuple[str, str | None] | None:
        store = ctx.adapter.session_store
        if store is None:
            return None
        token = store.get(session.key(TOKEN_SUFFIX))
        if not isinstance(token, str) or not token:
            return None
        record_id = store.get(session.key(ID_SUFFIX))
        return token, record_id if isinstance(record_id, str) else None

    async def resolve(
        self, session: Session, ctx: StageContext, raw: tuple[str, str | None]
    ) -> Any | None:
        token, record_id = raw
        filters = self.config.record_filters
        if record_id:
            record = await ctx.accessor.find_by_id(record_id, filters=filters)
        else:
            record = await ctx.accessor.find_by_token("persistence_token", token, filters=filters)
        if record is None or not tokens_match(token, getattr(record, "persistence_token", None)):
            return None
        return record

    async def save(self, session: Session, ctx: StageContext) -> None:
        store = ctx.adapter.session_store
        if store is None or session.single_access or not session.persistence_token:
            return
        store[session.key(TOKEN_SUFFIX)] = session.persistence_token
        store[session.key(ID_SUFFIX)] = session.identifier

    async def invalidate(self, session: Session, ctx: StageContext) -> None:
        store = ctx.adapter.session_store
        if store is None:
            return
        store.pop(session.key(TOKEN_SUFFIX), None)
        store.pop(session.key(ID_SUFFIX), None)
