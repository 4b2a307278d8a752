"""Process-wide scope registry with a one-time configuration latch."""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass

from .config import ScopeConfig
from .errors import ScopeFrozenError, UnknownScopeError
from .session import Session, build_scope_session_class
from .stages import StagePlan, build_stage_plan

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FrozenScope:
    config: ScopeConfig
    session_class: type[Session]
    plan: StagePlan


class ScopeRegistry:
    """Maps scope names to configuration.

    Configuration may be replaced until the scope is frozen; freezing happens
    at most once per scope, the first time a session of that scope is built.
    """

    def __init__(self) -> None:
        self._configs: dict[str, ScopeConfig] = {}
        self._frozen: dict[str, FrozenScope] = {}
        self._instance_counters: dict[str, itertools.count[int]] = {}
        self._lock = threading.Lock()

    def register(self, config: ScopeConfig) -> ScopeConfig:
        with self._lock:
            if config.name in self._frozen:
                raise ScopeFrozenError(config.name)
            # Fail at registration rather than on first request.
            build_scope_session_class(config)
            self._configs[config.name] = config
            self._instance_counters.setdefault(config.name, itertools.count(1))
        logger.debug("Registered session scope", extra={"scope": config.name})
        return config

    def is_registered(self, name: str) -> bool:
        return name in self._configs

    def is_frozen(self, name: str) -> bool:
        return name in self._frozen

    def get(self, name: str) -> ScopeConfig:
        try:
            return self._configs[name]
        except KeyError:
            raise UnknownScopeError(name) from None

    def names(self) -> list[str]:
        return sorted(self._configs)

    def freeze(self, name: str) -> FrozenScope:
        frozen = self._frozen.get(name)
        if frozen is not None:
            return frozen

        with self._lock:
            frozen = self._frozen.get(name)
            if frozen is not None:
                return frozen
            config = self._configs.get(name)
            if config is None:
                raise UnknownScopeError(name)
            frozen = FrozenScope(
                config=config,
                session_class=build_scope_session_class(config),
                plan=build_stage_plan(config),
            )
            self._frozen[name] = frozen
        logger.info(
            "Froze session scope configuration",
            extra={
                "scope": name,
                "transports": [transport.value for transport in config.transports],
            },
        )
        return frozen

    def next_instance_id(self, name: str) -> int:
        with self._lock:
            counter = self._instance_counters.get(name)
            if counter is None:
                raise UnknownScopeError(name)
            return next(counter)


scope_registry = ScopeRegistry()
