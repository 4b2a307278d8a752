"""HTTP basic authentication transport."""

from __future__ import annotations

import base64
import binascii
from typing import Any

from ..config import ScopeConfig, TransportName
from ..session import Session
from .base import StageContext, TransportStage
from .password import PasswordStage


def decode_basic_authorization(header: str | None) -> tuple[str, str] | None:
    if not header:
        return None
    scheme, _, value = header.partition(" ")
    if scheme.lower() != "basic":
        return None
    try:
        decoded = base64.b64decode(value.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    login, separator, password = decoded.partition(":")
    if not separator:
        return None
    return login, password


class HttpAuthTransport(TransportStage):
    """Decodes ``Authorization: Basic`` and validates it like a password login.

    The header is read-only; when ``request_http_basic_auth`` is enabled an
    unauthenticated response carries a ``WWW-Authenticate`` challenge.
    """

    name = "http_auth"
    transport = TransportName.HTTP_AUTH

    def __init__(self, config: ScopeConfig, password: PasswordStage) -> None:
        super().__init__(config)
        self.password = password

    async def load(self, session: Session, ctx: StageContext) -> tuple[str, str] | None:
        if not self.config.allow_http_basic_auth:
            return None
        return decode_basic_authorization(ctx.adapter.authorization)

    async def resolve(
        self, session: Session, ctx: StageContext, raw: tuple[str, str]
    ) -> Any | None:
        login, password = raw
        return await self.password.validate(session, ctx, login, password)

    async def persist(self, session: Session, ctx: StageContext) -> None:
        await super().persist(session, ctx)
        if session.record is None and self.config.request_http_basic_auth:
            ctx.adapter.challenge(self.config.http_basic_auth_realm)
