"""Guards vetoing records that are inactive, unapproved, unconfirmed, or fail a custom rule."""

from __future__ import annotations

from typing import Any

from ..config import GuardRule, MagicState, ScopeConfig
from ..errors import SessionError, SessionErrorKind
from ..session import Session
from .base import SessionStage, StageContext

MAGIC_STATE_MESSAGES = {
    MagicState.ACTIVE: "Your account is not active",
    MagicState.APPROVED: "Your account is not approved",
    MagicState.CONFIRMED: "Your account is not confirmed",
}


class MagicStateGuard(SessionStage):
    name = "magic_states"

    def __init__(self, config: ScopeConfig, state: MagicState) -> None:
        super().__init__(config)
        self.state = state

    @property
    def stage_name(self) -> str:
        return f"{self.name}.{self.state.value}"

    async def check(
        self, session: Session, ctx: StageContext, record: Any
    ) -> SessionError | None:
        value = getattr(record, self.state.value, None)
        # Records without the column are not subject to this state.
        if value is None:
            return None
        if callable(value):
            value = value()
        if value:
            return None
        return self.error(SessionErrorKind.GUARD_VETOED, MAGIC_STATE_MESSAGES[self.state])


class CustomGuard(SessionStage):
    name = "guard"

    def __init__(self, config: ScopeConfig, rule: GuardRule) -> None:
        super().__init__(config)
        self.rule = rule

    @property
    def stage_name(self) -> str:
        return f"{self.name}.{self.rule.name}"

    async def check(
        self, session: Session, ctx: StageContext, record: Any
    ) -> SessionError | None:
        if self.rule.predicate(record):
            return None
        return self.error(SessionErrorKind.GUARD_VETOED, self.rule.message)
