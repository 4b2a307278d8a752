"""Prefers a caller-supplied record instance over a freshly loaded copy."""

from __future__ import annotations

from typing import Any

from ..session import Session
from .base import SessionStage


class PriorityRecordStage(SessionStage):
    name = "priority_record"

    def prefer(self, session: Session, record: Any) -> Any:
        priority = session.priority_record
        if priority is None or record is None:
            return record
        priority_id = getattr(priority, "id", None)
        if priority_id is not None and str(priority_id) == str(getattr(record, "id", None)):
            return priority
        return record
