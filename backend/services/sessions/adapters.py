"""Bridges Starlette request/response objects to the session transports."""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from datetime import datetime
from typing import Any, Literal

from fastapi import Response
from starlette.requests import Request

COOKIE_PATH = "/"


def _media_types(raw_value: str | None) -> list[str]:
    if not raw_value:
        return []
    media_types: list[str] = []
    for candidate in raw_value.split(","):
        media_type = candidate.split(";", 1)[0].strip().lower()
        if media_type:
            media_types.append(media_type)
    return media_types


class RequestAdapter:
    """Read and write the transport media of one request.

    The native session store is only available when Starlette's
    ``SessionMiddleware`` is installed.
    """

    def __init__(
        self,
        request: Request,
        response: Response | None = None,
        *,
        form: Mapping[str, Any] | None = None,
    ) -> None:
        self.request = request
        self.response = response
        self.form = form or {}

    def cookie(self, name: str) -> str | None:
        value = self.request.cookies.get(name)
        return value or None

    def _discard_cookie_headers(self, name: str) -> None:
        # One Set-Cookie header per cookie name; the latest write wins.
        assert self.response is not None
        prefix = f"{name}=".encode("latin-1")
        self.response.raw_headers[:] = [
            (key, value)
            for key, value in self.response.raw_headers
            if not (key.lower() == b"set-cookie" and value.startswith(prefix))
        ]

    def set_cookie(
        self,
        name: str,
        value: str,
        *,
        expires: datetime | None,
        secure: bool,
        httponly: bool,
        samesite: Literal["lax", "strict", "none"],
    ) -> None:
        if self.response is None:
            return
        self._discard_cookie_headers(name)
        self.response.set_cookie(
            key=name,
            value=value,
            expires=expires,
            path=COOKIE_PATH,
            secure=secure,
            httponly=httponly,
            samesite=samesite,
        )

    def delete_cookie(
        self,
        name: str,
        *,
        secure: bool,
        samesite: Literal["lax", "strict", "none"],
    ) -> None:
        if self.response is None:
            return
        self._discard_cookie_headers(name)
        self.response.delete_cookie(
            key=name,
            path=COOKIE_PATH,
            secure=secure,
            samesite=samesite,
        )

    @property
    def session_store(self) -> MutableMapping[str, Any] | None:
        if "session" not in self.request.scope:
            return None
        return self.request.session

    def param(self, name: str) -> str | None:
        value = self.request.query_params.get(name)
        if value is None:
            form_value = self.form.get(name)
            value = form_value if isinstance(form_value, str) else None
        if value is None:
            return None
        normalized = value.strip()
        return normalized or None

    @property
    def authorization(self) -> str | None:
        return self.request.headers.get("authorization")

    @property
    def request_types(self) -> tuple[str, ...]:
        headers = self.request.headers
        return tuple(
            _media_types(headers.get("accept")) + _media_types(headers.get("content-type"))
        )

    @property
    def remote_ip(self) -> str | None:
        return self.request.client.host if self.request.client else None

    def challenge(self, realm: str) -> None:
        if self.response is None:
            return
        self.response.headers["WWW-Authenticate"] = f'Basic realm="{realm}"'
