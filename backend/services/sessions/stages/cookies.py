"""Cookie transport carrying the persistence token across requests."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from itsdangerous import BadSignature, Signer

from core import settings, tokens_match

from ..config import TransportName
from ..session import Session
from .base import StageContext, TransportStage

logger = logging.getLogger(__name__)

COOKIE_SUFFIX = "credentials"
COOKIE_SEPARATOR = "::"


def build_cookie_value(
    persistence_token: str,
    record_id: str,
    remember_me_until: datetime | None = None,
) -> str:
    """Return ``token::id`` with ``::<expiry epoch>`` appended for remembered sessions."""
    parts = [persistence_token, record_id]
    if remember_me_until is not None:
        parts.append(str(int(remember_me_until.timestamp())))
    return COOKIE_SEPARATOR.join(parts)


def _parse_cookie_value(raw: str) -> tuple[str, str, datetime | None] | None:
    parts = raw.split(COOKIE_SEPARATOR)
    if len(parts) not in (2, 3) or not parts[0] or not parts[1]:
        return None
    remember_me_until = None
    if len(parts) == 3:
        try:
            remember_me_until = datetime.fromtimestamp(int(parts[2]), tz=timezone.utc)
        except (ValueError, OverflowError, OSError):
            return None
    return parts[0], parts[1], remember_me_until


class CookieTransport(TransportStage):
    name = "cookies"
    transport = TransportName.COOKIES

    def _signer(self, session: Session) -> Signer:
        return Signer(settings.secret_key, salt=session.key(COOKIE_SUFFIX))

    async def load(self, session: Session, ctx: StageContext) -> str | None:
        raw = ctx.adapter.cookie(session.key(COOKIE_SUFFIX))
        if raw is None or not self.config.sign_cookie:
            return raw
        try:
            return self._signer(session).unsign(raw).decode("utf-8")
        except BadSignature:
            # Still counts as present so the tampered cookie gets cleared.
            session.present_transports.add(self.transport)
            logger.warning("Ignored cookie with a bad signature", extra={"scope": session.scope})
            return None

    async def resolve(self, session: Session, ctx: StageContext, raw: str) -> Any | None:
        parsed = _parse_cookie_value(raw)
        if parsed is None:
            return None
        persistence_token, record_id, remember_me_until = parsed
        if remember_me_until is not None and remember_me_until <= ctx.now():
            return None

        record = await ctx.accessor.find_by_id(record_id, filters=self.config.record_filters)
        if record is None or not tokens_match(
            persistence_token, getattr(record, "persistence_token", None)
        ):
            return None
        if remember_me_until is not None:
            session.remember_me = True
            session.remember_me_until = remember_me_until
        return record

    async def save(self, session: Session, ctx: StageContext) -> None:
        record_id = session.identifier
        if session.single_access or not session.persistence_token or record_id is None:
            return

        expires = None
        if session.remember_me:
            if session.remember_me_until is None:
                session.remember_me_until = ctx.now() + self.config.remember_me_for
            expires = session.remember_me_until
        value = build_cookie_value(session.persistence_token, record_id, expires)
        if self.config.sign_cookie:
            value = self._signer(session).sign(value).decode("utf-8")

        ctx.adapter.set_cookie(
            session.key(COOKIE_SUFFIX),
            value,
            expires=expires,
            secure=self.config.cookie_secure,
            httponly=self.config.cookie_httponly,
            samesite=self.config.cookie_same_site,
        )

    async def invalidate(self, session: Session, ctx: StageContext) -> None:
        ctx.adapter.delete_cookie(
            session.key(COOKIE_SUFFIX),
            secure=self.config.cookie_secure,
            samesite=self.config.cookie_same_site,
        )
