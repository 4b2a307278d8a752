"""Keeps login bookkeeping columns on the record up to date."""

from __future__ import annotations

from typing import Any

from ..clock import ensure_aware
from ..session import Session
from .base import SessionStage, StageContext


class MagicColumnsStage(SessionStage):
    name = "magic_columns"

    async def persist(self, session: Session, ctx: StageContext) -> None:
        record = session.record
        if record is None:
            return

        now = ctx.now()
        updates: dict[str, Any] = {}
        if session.fresh_login:
            updates["login_count"] = (getattr(record, "login_count", 0) or 0) + 1
            updates["failed_login_count"] = 0
            updates["last_login_at"] = getattr(record, "current_login_at", None)
            updates["current_login_at"] = now
            updates["last_login_ip"] = getattr(record, "current_login_ip", None)
            updates["current_login_ip"] = ctx.adapter.remote_ip

        last_request_at = getattr(record, "last_request_at", None)
        if (
            last_request_at is None
            or now - ensure_aware(last_request_at) > self.config.last_request_at_threshold
        ):
            updates["last_request_at"] = now

        applicable = {
            field_name: value
            for field_name, value in updates.items()
            if hasattr(record, field_name)
        }
        if applicable:
            await ctx.accessor.update_record(record, **applicable)
        if "last_request_at" in applicable:
            session.last_activity_time = now
