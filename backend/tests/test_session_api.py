"""End-to-end tests for the session endpoints."""

from __future__ import annotations

import base64

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_db, get_pipeline
from db import AsyncSessionMaker
from services.sessions import ScopeRegistry, SessionPipeline, SqlRecordAccessor

PASSWORD = "Sup3rSecret!"


def _login_payload(login: str = "alice", password: str = PASSWORD, **extra) -> dict:
    return {"login": login, "password": password, **extra}


@pytest.mark.asyncio
async def test_health(async_client):
    response = await async_client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_login_sets_cookie_and_current_session_resolves(async_client, make_user):
    user = await make_user()

    response = await async_client.post("/api/v1/sessions", json=_login_payload())

    assert response.status_code == 201
    data = response.json()
    assert data["record_id"] == user.id
    assert data["login"] == "alice"
    assert data["fresh_login"] is True
    assert "user_credentials" in response.cookies

    current = await async_client.get("/api/v1/sessions/current")
    assert current.status_code == 200
    assert current.json()["record_id"] == user.id
    assert current.json()["resolved_by"] == "cookies"
    assert current.json()["fresh_login"] is False


@pytest.mark.asyncio
async def test_login_with_wrong_password_returns_401(async_client, make_user):
    await make_user()

    response = await async_client.post(
        "/api/v1/sessions", json=_login_payload(password="not-the-password")
    )

    assert response.status_code == 401
    body = response.json()
    assert body["detail"] == ["Login or password is invalid"]
    assert body["errors"] == [{"stage": "password", "kind": "invalid_credentials"}]


@pytest.mark.asyncio
async def test_login_validates_payload(async_client):
    response = await async_client.post("/api/v1/sessions", json={"login": "alice"})

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_inactive_account_is_refused(async_client, make_user):
    await make_user(active=False)

    response = await async_client.post("/api/v1/sessions", json=_login_payload())

    assert response.status_code == 401
    assert response.json()["errors"][0]["kind"] == "guard_vetoed"


@pytest.mark.asyncio
async def test_current_session_without_credentials_is_401(async_client):
    response = await async_client.get("/api/v1/sessions/current")

    assert response.status_code == 401
    assert response.json()["detail"] == [
        "You did not provide any details for authentication"
    ]


@pytest.mark.asyncio
async def test_current_session_accepts_http_basic_auth(async_client, make_user):
    user = await make_user()
    encoded = base64.b64encode(f"alice:{PASSWORD}".encode("utf-8")).decode("ascii")

    response = await async_client.get(
        "/api/v1/sessions/current", headers={"Authorization": f"Basic {encoded}"}
    )

    assert response.status_code == 200
    assert response.json()["record_id"] == user.id
    assert response.json()["resolved_by"] == "http_auth"


@pytest.mark.asyncio
async def test_logout_clears_the_session(async_client, make_user):
    await make_user()
    await async_client.post("/api/v1/sessions", json=_login_payload())

    response = await async_client.delete("/api/v1/sessions/current")

    assert response.status_code == 204
    credential_headers = [
        header
        for header in response.headers.get_list("set-cookie")
        if header.startswith("user_credentials=")
    ]
    assert len(credential_headers) == 1
    assert "Max-Age=0" in credential_headers[0]
    assert "user_credentials" not in async_client.cookies
    current = await async_client.get("/api/v1/sessions/current")
    assert current.status_code == 401


@pytest.mark.asyncio
async def test_logout_everywhere_revokes_copied_cookies(async_client, make_user):
    await make_user()
    login = await async_client.post("/api/v1/sessions", json=_login_payload())
    copied_cookie = login.cookies["user_credentials"]

    response = await async_client.delete(
        "/api/v1/sessions/current", params={"everywhere": "true"}
    )
    assert response.status_code == 204

    async_client.cookies.clear()
    async_client.cookies.set("user_credentials", copied_cookie)
    replay = await async_client.get("/api/v1/sessions/current")
    assert replay.status_code == 401


@pytest.mark.asyncio
async def test_handoff_token_logs_in_once(async_client, make_user):
    user = await make_user()
    await async_client.post("/api/v1/sessions", json=_login_payload())

    handoff = await async_client.post("/api/v1/sessions/handoff")
    assert handoff.status_code == 200
    data = handoff.json()
    assert data["param"] == "user_credentials"

    async_client.cookies.clear()
    first = await async_client.get(
        "/api/v1/sessions/current", params={data["param"]: data["token"]}
    )
    assert first.status_code == 200
    assert first.json()["record_id"] == user.id
    assert first.json()["resolved_by"] == "params"

    async_client.cookies.clear()
    replay = await async_client.get(
        "/api/v1/sessions/current", params={data["param"]: data["token"]}
    )
    assert replay.status_code == 401


@pytest.mark.asyncio
async def test_handoff_requires_a_session(async_client):
    response = await async_client.post("/api/v1/sessions/handoff")

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_configuration_errors_map_to_503(app, async_client, db_session: AsyncSession):
    app.dependency_overrides[get_pipeline] = lambda: SessionPipeline(
        SqlRecordAccessor(db_session), registry=ScopeRegistry()
    )

    response = await async_client.get("/api/v1/sessions/current")

    assert response.status_code == 503


@pytest.mark.asyncio
async def test_get_db_yields_a_session_from_the_shared_factory():
    sessions = [session async for session in get_db()]

    assert len(sessions) == 1
    assert isinstance(sessions[0], AsyncSession)
    assert sessions[0].bind is AsyncSessionMaker.kw["bind"]
