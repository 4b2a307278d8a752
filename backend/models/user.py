"""User identity record model."""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, Integer, String, func, text
from sqlmodel import Field, SQLModel


class User(SQLModel, table=True):
    """Identity record resolved by the session pipeline."""

    __tablename__ = "users"

    id: str = Field(default_factory=lambda: str(uuid4()), sa_column=Column(String(36), primary_key=True))
    login: str = Field(
        sa_column=Column(String(255), unique=True, nullable=False, index=True)
    )
    email: str | None = Field(
        default=None, sa_column=Column(String(255), unique=True, nullable=True)
    )
    password_hash: str = Field(
        sa_column=Column(String(255), nullable=False)
    )
    # Long-lived secret carried by cookie and native-session transports.
    persistence_token: str = Field(
        sa_column=Column(String(128), unique=True, nullable=False, index=True)
    )
    single_access_token: str | None = Field(
        default=None, sa_column=Column(String(128), unique=True, nullable=True, index=True)
    )
    perishable_token: str | None = Field(
        default=None, sa_column=Column(String(128), unique=True, nullable=True, index=True)
    )
    perishable_token_issued_at: datetime | None = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    active: bool = Field(
        default=True,
        sa_column=Column(Boolean, nullable=False, server_default=text("true")),
    )
    approved: bool = Field(
        default=True,
        sa_column=Column(Boolean, nullable=False, server_default=text("true")),
    )
    confirmed: bool = Field(
        default=True,
        sa_column=Column(Boolean, nullable=False, server_default=text("true")),
    )
    is_admin: bool = Field(
        default=False,
        sa_column=Column(Boolean, nullable=False, server_default=text("false")),
    )
    login_count: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, server_default=text("0")),
    )
    failed_login_count: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, server_default=text("0")),
    )
    last_request_at: datetime | None = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    current_login_at: datetime | None = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    last_login_at: datetime | None = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    current_login_ip: str | None = Field(
        default=None, sa_column=Column(String(45), nullable=True)
    )
    last_login_ip: str | None = Field(
        default=None, sa_column=Column(String(45), nullable=True)
    )
    created_at: datetime = Field(
        sa_column=Column(
            DateTime(timezone=True), server_default=func.now(), nullable=False
        ),
    )
    updated_at: datetime = Field(
        sa_column=Column(
            DateTime(timezone=True),
            server_default=func.now(),
            onupdate=func.now(),
            nullable=False,
        ),
    )
