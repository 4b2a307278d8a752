"""Tests for password hashing and token helpers."""

from __future__ import annotations

import pytest
from argon2 import PasswordHasher

from core import friendly_token, hash_password, needs_rehash, tokens_match, verify_password
from services.sessions import ScopeConfig

PASSWORD = "Sup3rSecret!"


def test_hash_password_round_trip():
    password_hash = hash_password(PASSWORD)

    assert password_hash != PASSWORD
    assert verify_password(PASSWORD, password_hash)
    assert not verify_password("wrong", password_hash)


def test_verify_password_rejects_malformed_hash():
    assert verify_password(PASSWORD, "not-an-argon2-hash") is False


def test_friendly_tokens_are_unique_and_url_safe():
    tokens = {friendly_token() for _ in range(20)}

    assert len(tokens) == 20
    assert all(token.replace("-", "").replace("_", "").isalnum() for token in tokens)


@pytest.mark.parametrize(
    ("provided", "expected", "matches"),
    [
        ("abc", "abc", True),
        ("abc", "abd", False),
        ("", "", False),
        (None, "abc", False),
        ("abc", None, False),
    ],
)
def test_tokens_match(provided, expected, matches):
    assert tokens_match(provided, expected) is matches


@pytest.mark.asyncio
async def test_login_upgrades_outdated_password_hash(
    pipeline, registry, make_user, make_adapter, db_session
):
    user = await make_user()
    weak_hash = PasswordHasher(time_cost=1, memory_cost=8, parallelism=1).hash(PASSWORD)
    user.password_hash = weak_hash
    db_session.add(user)
    await db_session.commit()
    assert needs_rehash(weak_hash)
    registry.register(ScopeConfig(name="user"))

    session = await pipeline.create("user", ("alice", PASSWORD), adapter=make_adapter())

    assert session.is_authenticated
    assert user.password_hash != weak_hash
    assert not needs_rehash(user.password_hash)
    assert verify_password(PASSWORD, user.password_hash)
