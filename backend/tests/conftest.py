"""Pytest fixtures for the session service backend."""

from collections.abc import AsyncIterator, Awaitable, Callable, Iterator, Mapping
from datetime import datetime, timedelta, timezone
from http.cookies import SimpleCookie
from typing import Any
from urllib.parse import urlencode

import pytest
import pytest_asyncio
from fastapi import FastAPI, Response
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from starlette.requests import Request

from api.deps import get_db
from app import create_app
from core import friendly_token, hash_password
from models import User
from services.sessions import (
    BruteForceCounter,
    RequestAdapter,
    ScopeRegistry,
    SessionPipeline,
    SqlRecordAccessor,
    set_brute_force_counter,
)

DEFAULT_PASSWORD = "Sup3rSecret!"


class FakeClock:
    """Settable clock shared by the pipeline and the counter fake."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


class InMemoryCounterClient:
    """Subset of the Redis commands used by the brute-force counter."""

    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.data: dict[str, int] = {}
        self.expires_at: dict[str, datetime] = {}

    def _purge(self, key: str) -> None:
        deadline = self.expires_at.get(key)
        if deadline is not None and self.clock() >= deadline:
            self.data.pop(key, None)
            self.expires_at.pop(key, None)

    async def incr(self, key: str) -> int:
        self._purge(key)
        value = self.data.get(key, 0) + 1
        self.data[key] = value
        return value

    async def expire(self, key: str, ttl: int) -> bool:
        if key not in self.data:
            return False
        self.expires_at[key] = self.clock() + timedelta(seconds=ttl)
        return True

    async def get(self, key: str) -> str | None:
        self._purge(key)
        value = self.data.get(key)
        return None if value is None else str(value)

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
            self.expires_at.pop(key, None)
        return removed


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 1, 5, 12, 0, tzinfo=timezone.utc))


@pytest.fixture()
def counter_client(clock: FakeClock) -> InMemoryCounterClient:
    return InMemoryCounterClient(clock)


@pytest.fixture()
def counter(counter_client: InMemoryCounterClient) -> BruteForceCounter:
    return BruteForceCounter(counter_client)


@pytest.fixture()
def registry() -> ScopeRegistry:
    """A registry private to the test, so scopes can be reconfigured freely."""
    return ScopeRegistry()


@pytest_asyncio.fixture()
async def test_engine(tmp_path) -> AsyncIterator:
    """Create a file-backed SQLite database with the model schema."""
    database_url = f"sqlite+aiosqlite:///{tmp_path / 'sessions-test.db'}"
    engine = create_async_engine(
        database_url,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as connection:
        await connection.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_maker(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_engine, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_maker) -> AsyncIterator[AsyncSession]:
    """Provide a raw database session to tests."""
    async with session_maker() as session:
        yield session


@pytest.fixture()
def pipeline(
    db_session: AsyncSession,
    registry: ScopeRegistry,
    counter: BruteForceCounter,
    clock: FakeClock,
) -> SessionPipeline:
    return SessionPipeline(
        SqlRecordAccessor(db_session),
        registry=registry,
        counter=counter,
        clock=clock,
    )


@pytest.fixture()
def make_user(db_session: AsyncSession) -> Callable[..., Awaitable[User]]:
    async def _make_user(
        login: str = "alice",
        password: str = DEFAULT_PASSWORD,
        **fields: Any,
    ) -> User:
        fields.setdefault("email", f"{login}@example.com")
        fields.setdefault("persistence_token", friendly_token())
        user = User(login=login, password_hash=hash_password(password), **fields)
        db_session.add(user)
        await db_session.commit()
        return user

    return _make_user


@pytest.fixture()
def make_adapter() -> Callable[..., RequestAdapter]:
    """Build a RequestAdapter around a synthetic request and a blank response."""

    def _make_adapter(
        *,
        cookies: Mapping[str, str] | None = None,
        query: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
        session_store: dict[str, Any] | None = None,
        form: Mapping[str, Any] | None = None,
        client_host: str = "10.0.0.12",
    ) -> RequestAdapter:
        raw_headers: list[tuple[bytes, bytes]] = []
        if cookies:
            cookie_header = "; ".join(f"{name}={value}" for name, value in cookies.items())
            raw_headers.append((b"cookie", cookie_header.encode("latin-1")))
        for name, value in (headers or {}).items():
            raw_headers.append((name.lower().encode("latin-1"), value.encode("latin-1")))
        scope: dict[str, Any] = {
            "type": "http",
            "method": "GET",
            "path": "/",
            "headers": raw_headers,
            "query_string": urlencode(query or {}).encode("ascii"),
            "client": (client_host, 1234),
            "app": None,
        }
        if session_store is not None:
            scope["session"] = session_store
        return RequestAdapter(Request(scope), Response(), form=form)

    return _make_adapter


@pytest.fixture()
def response_cookies() -> Callable[[RequestAdapter], dict[str, str]]:
    """Parse the Set-Cookie headers an adapter's response carries.

    Deleted cookies show up with an empty value.
    """

    def _response_cookies(adapter: RequestAdapter) -> dict[str, str]:
        parsed: SimpleCookie = SimpleCookie()
        assert adapter.response is not None
        for header in adapter.response.headers.getlist("set-cookie"):
            parsed.load(header)
        return {name: morsel.value for name, morsel in parsed.items()}

    return _response_cookies


@pytest.fixture()
def app(session_maker, counter: BruteForceCounter) -> Iterator[FastAPI]:
    """Create the FastAPI app with test database and counter overrides."""
    application = create_app()

    async def override_get_db() -> AsyncIterator[AsyncSession]:
        async with session_maker() as session:
            yield session

    application.dependency_overrides[get_db] = override_get_db
    set_brute_force_counter(counter)
    yield application
    application.dependency_overrides.clear()
    set_brute_force_counter(None)


@pytest_asyncio.fixture()
async def async_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Return an HTTPX async client bound to the FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
