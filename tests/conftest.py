from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Iterator, Optional, Tuple

import pytest

from cpswap.core.config import EngineConfig
from cpswap.core.interfaces import ExecutionContext
from cpswap.core.liquidity import LiquidityManager
from cpswap.core.locks import PairLocks
from cpswap.core.registry import PairRegistry
from cpswap.core.router import SwapEngine
from cpswap.integration.memory_ledger import InMemoryLedger


NOW = 1_700_000_000
WETH = "WETH"


@dataclass
class Clock:
    now: int = NOW

    def __call__(self) -> int:
        return self.now


@dataclass
class Env:
    ledger: InMemoryLedger
    registry: PairRegistry
    engine: SwapEngine
    liquidity: LiquidityManager
    config: EngineConfig
    execution: ExecutionContext
    clock: Clock = field(default_factory=Clock)

    @property
    def deadline(self) -> int:
        return self.clock.now + self.config.deadline_seconds

    def fund(self, account: str, token: str, amount: int) -> None:
        """Credit `amount` and approve the engine for it."""
        self.ledger.credit(account, token, amount)
        current = self.ledger.allowance(account, self.config.engine_address, token)
        self.ledger.approve(account, self.config.engine_address, token, current + amount)

    def seed(self, token_a: str, token_b: str, reserve_a: int, reserve_b: int) -> str:
        """Place reserves directly into a pair's custody (no liquidity credit issued)."""
        pair_id = self.registry.get_or_create(token_a, token_b)
        self.ledger.credit(pair_id, token_a, reserve_a)
        self.ledger.credit(pair_id, token_b, reserve_b)
        if self.registry.key_of(pair_id).token0 == token_a:
            self.ledger.set_reserves(pair_id, reserve_a, reserve_b)
        else:
            self.ledger.set_reserves(pair_id, reserve_b, reserve_a)
        return pair_id

    def reserves(self, token_a: str, token_b: str) -> Tuple[int, int]:
        """Reserves oriented as (token_a, token_b)."""
        pair_id = self.registry.pair_for(token_a, token_b)
        reserve0, reserve1 = self.ledger.get_reserves(pair_id)
        if self.registry.key_of(pair_id).token0 == token_a:
            return reserve0, reserve1
        return reserve1, reserve0

    def create_pair_in_background(self, token_a: str, token_b: str) -> threading.Thread:
        """Start `get_or_create` on another thread; returns once it has reached the reserve store."""
        reached = threading.Event()
        init_pair = self.ledger.init_pair

        def hooked(pair_id: str) -> None:
            reached.set()
            init_pair(pair_id)

        self.ledger.init_pair = hooked  # type: ignore[method-assign]
        thread = threading.Thread(target=self.registry.get_or_create, args=(token_a, token_b), daemon=True)
        thread.start()
        assert reached.wait(5), "pair creation never reached the store"
        return thread


class HookedExecution(ExecutionContext):
    """Atomic scope that runs one queued action right after it is entered."""

    def __init__(self, ledger: InMemoryLedger) -> None:
        self._ledger = ledger
        self.action: Optional[Callable[[], object]] = None

    @contextmanager
    def atomic(self) -> Iterator[None]:
        with self._ledger.atomic():
            action, self.action = self.action, None
            if action is not None:
                action()
            yield


def make_env(
    config: EngineConfig = EngineConfig(),
    wrap_execution: Optional[Callable[[InMemoryLedger], ExecutionContext]] = None,
) -> Env:
    ledger = InMemoryLedger(wrapped_token=WETH)
    execution = wrap_execution(ledger) if wrap_execution is not None else ledger
    registry = PairRegistry(ledger, ledger)
    clock = Clock()
    locks = PairLocks()
    common = dict(
        registry=registry,
        store=ledger,
        pairs=ledger,
        assets=ledger,
        native=ledger,
        execution=execution,
        config=config,
        clock=clock,
        locks=locks,
    )
    return Env(
        ledger=ledger,
        registry=registry,
        engine=SwapEngine(**common),
        liquidity=LiquidityManager(**common),
        config=config,
        execution=execution,
        clock=clock,
    )


@pytest.fixture
def env() -> Env:
    return make_env()


@pytest.fixture
def env_factory():
    return make_env


@pytest.fixture
def hooked_env_factory():
    def factory(config: EngineConfig = EngineConfig()) -> Env:
        return make_env(config, wrap_execution=HookedExecution)

    return factory
