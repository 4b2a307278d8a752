"""Session pipeline orchestrator."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import datetime
from functools import partial
from typing import Any

from core import friendly_token

from .adapters import RequestAdapter
from .clock import utcnow
from .counters import BruteForceCounter
from .errors import NotActivatedError
from .records import RecordAccessor
from .registry import ScopeRegistry, scope_registry
from .session import PasswordCredentials, Session
from .stages import StageContext, StagePlan

logger = logging.getLogger(__name__)


class SessionPipeline:
    """Resolves, validates and persists the identity of one request.

    The order of the steps in ``create`` is part of the contract:

    1. timeout preparation,
    2. transport resolution in the scope's priority order, unless
       credentials were supplied, each restored record screened by the
       timeout stage before it is accepted,
    3. password or unauthorized-record authentication,
    4. the existence check,
    5. the guard chain, stopping at the first veto,
    6. persistence: magic columns, perishable token rotation, then every
       enabled transport saves (or clears) its own medium.

    Only configuration problems raise; authentication failures are collected
    on ``session.errors``.
    """

    def __init__(
        self,
        accessor: RecordAccessor,
        *,
        registry: ScopeRegistry | None = None,
        counter: BruteForceCounter | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.accessor = accessor
        self.registry = registry if registry is not None else scope_registry
        self.counter = counter
        self.clock = clock

    async def create(
        self,
        scope: str,
        credentials: Any = None,
        *,
        adapter: RequestAdapter | None,
        session_id: str | None = None,
        priority_record: Any | None = None,
        remember_me: bool | None = None,
    ) -> Session:
        """Build and run a session for one request.

        ``credentials`` may be None to resolve from the transports, a
        PasswordCredentials, a ``(login, password[, remember_me])`` sequence, a
        mapping with those keys, or a record to log in without a password.
        """
        config = self.registry.get(scope)
        if not config.active or adapter is None:
            raise NotActivatedError(scope)

        frozen = self.registry.freeze(scope)
        session = frozen.session_class(
            frozen.config,
            instance_id=self.registry.next_instance_id(scope),
            session_id=session_id,
        )
        ctx = StageContext(
            config=frozen.config,
            accessor=self.accessor,
            adapter=adapter,
            counter=self.counter,
            now=self.clock,
        )
        session.bind_destroyer(partial(self._destroy, plan=frozen.plan, ctx=ctx))

        session.credentials = None
        self._apply_credentials(session, credentials)
        if remember_me is not None:
            session.remember_me = remember_me
        session.priority_record = priority_record

        try:
            await self._run(session, frozen.plan, ctx)
        finally:
            session.credentials = None
        return session

    async def issue_perishable_token(self, scope: str, record: Any) -> str:
        """Issue a fresh perishable token for ``record``, invalidating the previous one."""
        frozen = self.registry.freeze(scope)
        return await frozen.plan.perishable_token.issue(
            self.accessor, record, now=self.clock()
        )

    def _apply_credentials(self, session: Session, credentials: Any) -> None:
        if credentials is None:
            return
        if isinstance(credentials, PasswordCredentials):
            parsed = credentials
        elif isinstance(credentials, Mapping):
            parsed = PasswordCredentials(
                login=str(credentials.get("login") or ""),
                password=str(credentials.get("password") or ""),
                remember_me=credentials.get("remember_me"),
            )
        elif isinstance(credentials, (tuple, list)):
            if len(credentials) not in (2, 3):
                raise ValueError("Credential sequences must be (login, password[, remember_me])")
            parsed = PasswordCredentials(
                login=str(credentials[0] or ""),
                password=str(credentials[1] or ""),
                remember_me=credentials[2] if len(credentials) == 3 else None,
            )
        elif isinstance(credentials, (str, bytes)):
            raise TypeError("Credentials must be a (login, password) pair, a mapping, or a record")
        else:
            session.unauthorized_record = credentials
            return

        session.credentials = parsed
        if parsed.remember_me is not None:
            session.remember_me = bool(parsed.remember_me)

    async def _run(self, session: Session, plan: StagePlan, ctx: StageContext) -> None:
        for stage in plan.preparers:
            await stage.prepare(session, ctx)

        if session.credentials is not None:
            session.record = await plan.password.authenticate(session, ctx)
        elif session.unauthorized_record is not None:
            session.record = await plan.unauthorized_record.authenticate(session, ctx)
        else:
            await self._resolve_from_transports(session, plan, ctx)

        await plan.existence.ensure(session, ctx)

        if session.record is not None:
            await self._run_guards(session, plan, ctx)

        if session.record is not None:
            await self._ensure_persistence_token(session, ctx)

        for stage in plan.persisters:
            await stage.persist(session, ctx)

        if session.record is not None:
            logger.debug(
                "Session authenticated",
                extra={
                    "scope": session.scope,
                    "session_instance": session.instance_id,
                    "record_id": session.identifier,
                    "resolved_by": session.resolved_by.value if session.resolved_by else None,
                    "fresh_login": session.fresh_login,
                },
            )

    async def _resolve_from_transports(
        self, session: Session, plan: StagePlan, ctx: StageContext
    ) -> None:
        for transport in plan.transports:
            raw = await transport.load(session, ctx)
            if raw is None:
                continue
            session.present_transports.add(transport.transport)

            record = await transport.resolve(session, ctx, raw)
            if record is None:
                continue
            record = plan.priority_record.prefer(session, record)

            for screener in plan.screeners:
                error = await screener.screen(session, ctx, record)
                if error is not None:
                    session.errors.append(error)
                    return

            session.record = record
            session.resolved_by = transport.transport
            return

    async def _run_guards(self, session: Session, plan: StagePlan, ctx: StageContext) -> None:
        for guard in plan.guards:
            error = await guard.check(session, ctx, session.record)
            if error is None:
                continue
            session.attempted_record = session.record
            session.record = None
            session.vetoed = True
            session.errors.append(error)
            logger.info(
                "Session vetoed by guard",
                extra={
                    "scope": session.scope,
                    "stage": error.stage,
                    "record_id": getattr(session.attempted_record, "id", None),
                },
            )
            return

    async def _ensure_persistence_token(self, session: Session, ctx: StageContext) -> None:
        record = session.record
        token = getattr(record, "persistence_token", None)
        if not token:
            token = friendly_token()
            await ctx.accessor.update_record(record, persistence_token=token)
        session.persistence_token = token

    async def _destroy(
        self,
        session: Session,
        everywhere: bool,
        *,
        plan: StagePlan,
        ctx: StageContext,
    ) -> None:
        record = session.record
        if everywhere and record is not None:
            await ctx.accessor.update_record(record, persistence_token=friendly_token())
        for transport in plan.transports:
            await transport.invalidate(session, ctx)
        logger.info(
            "Session destroyed",
            extra={
                "scope": session.scope,
                "session_instance": session.instance_id,
                "record_id": getattr(record, "id", None),
            },
        )
