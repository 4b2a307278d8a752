"""Identity record accessor contract and its SQLModel implementation."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal, Protocol, cast, runtime_checkable

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from core import hash_password, needs_rehash, verify_password
from models import User

TokenField = Literal["persistence_token", "single_access_token", "perishable_token"]
TOKEN_FIELDS: frozenset[str] = frozenset(
    {"persistence_token", "single_access_token", "perishable_token"}
)

# Verified against when no record matches, so a missing login costs the same
# hashing work as a wrong password.
_DUMMY_PASSWORD_HASH = hash_password("not-a-real-password")


@runtime_checkable
class RecordAccessor(Protocol):
    """Narrow interface the pipeline uses to read and write identity records."""

    async def find_by_id(
        self, record_id: str, *, filters: Mapping[str, Any]
    ) -> Any | None: ...

    async def find_by_credential_key(
        self, key: str, *, filters: Mapping[str, Any]
    ) -> Any | None: ...

    async def find_by_token(
        self, field: TokenField, token: str, *, filters: Mapping[str, Any]
    ) -> Any | None: ...

    def verify_credential(self, record: Any | None, plaintext: str) -> bool: ...

    async def refresh_credential(self, record: Any, plaintext: str) -> None:
        """Re-hash the stored credential when its hashing parameters are outdated."""
        ...

    async def update_record(self, record: Any, **fields: Any) -> None: ...


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def normalize_email(value: str) -> str:
    return value.strip().lower()


class SqlRecordAccessor:
    """Record accessor backed by an async SQLAlchemy session and the User model."""

    def __init__(self, session: AsyncSession, model: type[User] = User) -> None:
        self.session = session
        self.model = model

    def _filter_clauses(self, filters: Mapping[str, Any]) -> list[ColumnElement[bool]]:
        clauses: list[ColumnElement[bool]] = []
        for field_name, value in filters.items():
            column = getattr(self.model, field_name, None)
            if column is None:
                raise ValueError(f"Unknown record filter field: {field_name}")
            clauses.append(_eq(column, value))
        return clauses

    async def find_by_id(
        self, record_id: str, *, filters: Mapping[str, Any]
    ) -> User | None:
        result = await self.session.execute(
            select(self.model)
            .where(_eq(self.model.id, record_id), *self._filter_clauses(filters))
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def find_by_credential_key(
        self, key: str, *, filters: Mapping[str, Any]
    ) -> User | None:
        identifier = key.strip()
        if not identifier:
            return None

        result = await self.session.execute(
            select(self.model)
            .where(_eq(self.model.login, identifier), *self._filter_clauses(filters))
            .limit(1)
        )
        record = result.scalar_one_or_none()
        if record is not None or "@" not in identifier:
            return record

        lowered_email_column = cast(Any, func.lower(cast(Any, self.model.email)))
        email_result = await self.session.execute(
            select(self.model)
            .where(
                _eq(lowered_email_column, normalize_email(identifier)),
                *self._filter_clauses(filters),
            )
            .order_by(cast(Any, self.model.created_at).asc(), cast(Any, self.model.id).asc())
            .limit(1)
        )
        return email_result.scalar_one_or_none()

    async def find_by_token(
        self, field: TokenField, token: str, *, filters: Mapping[str, Any]
    ) -> User | None:
        if field not in TOKEN_FIELDS:
            raise ValueError(f"Unsupported token field: {field}")
        if not token:
            return None
        result = await self.session.execute(
            select(self.model)
            .where(_eq(getattr(self.model, field), token), *self._filter_clauses(filters))
            .limit(1)
        )
        return result.scalar_one_or_none()

    def verify_credential(self, record: User | None, plaintext: str) -> bool:
        if record is None:
            verify_password(plaintext, _DUMMY_PASSWORD_HASH)
            return False
        return verify_password(plaintext, record.password_hash)

    async def refresh_credential(self, record: User, plaintext: str) -> None:
        if needs_rehash(record.password_hash):
            await self.update_record(record, password_hash=hash_password(plaintext))

    async def update_record(self, record: User, **fields: Any) -> None:
        changed = False
        for field_name, value in fields.items():
            if not hasattr(record, field_name):
                continue
            setattr(record, field_name, value)
            changed = True
        if changed:
            self.session.add(record)
            await self.session.commit()
