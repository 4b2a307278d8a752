"""Pipeline stages and the fixed order they run in."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from ..config import ScopeConfig, TransportName
from .base import SessionStage, StageContext, TransportStage
from .brute_force import BruteForceProtectionStage
from .cookies import CookieTransport, build_cookie_value
from .existence import ExistenceStage, UnauthorizedRecordStage
from .http_auth import HttpAuthTransport, decode_basic_authorization
from .magic_columns import MagicColumnsStage
from .magic_states import CustomGuard, MagicStateGuard
from .native_session import NativeSessionTransport
from .params import ParamsTransport
from .password import PasswordStage
from .perishable_token import PerishableTokenStage
from .priority_record import PriorityRecordStage
from .timeout import TimeoutStage


@dataclass(frozen=True, slots=True)
class StagePlan:
    """The stage objects of one scope, grouped by the pipeline step that runs them."""

    timeout: TimeoutStage
    transports: tuple[TransportStage, ...]
    priority_record: PriorityRecordStage
    password: PasswordStage
    unauthorized_record: UnauthorizedRecordStage
    existence: ExistenceStage
    guards: tuple[SessionStage, ...]
    magic_columns: MagicColumnsStage
    perishable_token: PerishableTokenStage

    @property
    def preparers(self) -> tuple[SessionStage, ...]:
        return (self.timeout,)

    @property
    def screeners(self) -> tuple[SessionStage, ...]:
        return (self.timeout,)

    @property
    def persisters(self) -> tuple[SessionStage, ...]:
        return (self.magic_columns, self.perishable_token, *self.transports)


def build_stage_plan(config: ScopeConfig) -> StagePlan:
    brute_force = BruteForceProtectionStage(config)
    password = PasswordStage(config, brute_force)
    perishable_token = PerishableTokenStage(config)

    transport_factories: dict[TransportName, Callable[[], TransportStage]] = {
        TransportName.PARAMS: lambda: ParamsTransport(config, perishable_token),
        TransportName.COOKIES: lambda: CookieTransport(config),
        TransportName.NATIVE_SESSION: lambda: NativeSessionTransport(config),
        TransportName.HTTP_AUTH: lambda: HttpAuthTransport(config, password),
    }
    transports = tuple(transport_factories[name]() for name in config.transports)

    guards: list[SessionStage] = []
    if not config.disable_magic_states:
        guards.extend(MagicStateGuard(config, state) for state in config.magic_states)
    guards.extend(CustomGuard(config, rule) for rule in config.guards)

    return StagePlan(
        timeout=TimeoutStage(config),
        transports=transports,
        priority_record=PriorityRecordStage(config),
        password=password,
        unauthorized_record=UnauthorizedRecordStage(config),
        existence=ExistenceStage(config),
        guards=tuple(guards),
        magic_columns=MagicColumnsStage(config),
        perishable_token=perishable_token,
    )


__all__ = [
    "BruteForceProtectionStage",
    "CookieTransport",
    "CustomGuard",
    "ExistenceStage",
    "HttpAuthTransport",
    "MagicColumnsStage",
    "MagicStateGuard",
    "NativeSessionTransport",
    "ParamsTransport",
    "PasswordStage",
    "PerishableTokenStage",
    "PriorityRecordStage",
    "SessionStage",
    "StageContext",
    "StagePlan",
    "TimeoutStage",
    "TransportStage",
    "UnauthorizedRecordStage",
    "build_cookie_value",
    "build_stage_plan",
    "decode_basic_authorization",
]
