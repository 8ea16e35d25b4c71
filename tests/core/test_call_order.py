# [TESTER] v1

from __future__ import annotations

from typing import Dict, List, Tuple

from cpswap.core.interfaces import AssetLedger, PairContract, PairFactory
from cpswap.core.liquidity import LiquidityManager
from cpswap.core.registry import PairRegistry
from cpswap.core.router import SwapEngine
from cpswap.state.pairs import PairId, PairKey
from cpswap.state.reserves import InMemoryReserveStore


class Recorder:
    def __init__(self) -> None:
        self.calls: List[Tuple] = []


class RecordingPair(PairContract):
    def __init__(self, recorder: Recorder, pair_id: PairId, key: PairKey, store: InMemoryReserveStore) -> None:
        self._recorder = recorder
        self._pair_id = pair_id
        self._key = key
        self._store = store

    @property
    def pair_id(self) -> PairId:
        return self._pair_id

    @property
    def token0(self) -> str:
        return self._key.token0

    @property
    def token1(self) -> str:
        return self._key.token1

    def get_reserves(self):
        return self._store.get_reserves(self._pair_id)

    def swap(self, amount0_out, amount1_out, to) -> None:
        self._recorder.calls.append(("swap", self._key.token0, self._key.token1, amount0_out, amount1_out, to))

    def mint(self, to) -> int:
        self._recorder.calls.append(("mint", self._key.token0, self._key.token1, to))
        return 1


class RecordingFactory(PairFactory):
    def __init__(self, recorder: Recorder, store: InMemoryReserveStore) -> None:
        self._recorder = recorder
        self._store = store
        self._pairs: Dict[PairId, RecordingPair] = {}

    def deploy(self, pair_id: PairId, key: PairKey) -> None:
        self._pairs[pair_id] = RecordingPair(self._recorder, pair_id, key, self._store)

    def pair(self, pair_id: PairId) -> RecordingPair:
        return self._pairs[pair_id]


class RecordingAssets(AssetLedger):
    def __init__(self, recorder: Recorder) -> None:
        self._recorder = recorder

    def transfer(self, token, sender, recipient, amount) -> None:
        self._recorder.calls.append(("transfer", token, sender, recipient, amount))

    def transfer_from(self, token, spender, owner, recipient, amount) -> None:
        self._recorder.calls.append(("transfer_from", token, owner, recipient, amount))


def _wire():
    recorder = Recorder()
    store = InMemoryReserveStore()
    factory = RecordingFactory(recorder, store)
    registry = PairRegistry(store, factory)
    common = dict(
        registry=registry,
        store=store,
        pairs=factory,
        assets=RecordingAssets(recorder),
        clock=lambda: 0,
    )
    return recorder, store, registry, common


def test_swap_pays_in_before_any_pair_releases_output() -> None:
    recorder, store, registry, common = _wire()
    ab = registry.get_or_create("A", "B")
    bc = registry.get_or_create("B", "C")
    store.set_reserves(ab, 1000, 1000)
    store.set_reserves(bc, 1000, 1000)

    SwapEngine(**common).swap_exact_tokens_for_tokens(100, 0, ["A", "B", "C"], "bob", 10, sender="alice")

    assert recorder.calls == [
        ("transfer_from", "A", "alice", ab, 100),
        ("swap", "A", "B", 0, 90, bc),
        ("swap", "B", "C", 0, 82, "bob"),
    ]


def test_swap_orients_outputs_for_reversed_hops() -> None:
    recorder, store, registry, common = _wire()
    ab = registry.get_or_create("A", "B")
    store.set_reserves(ab, 1000, 1000)

    SwapEngine(**common).swap_exact_tokens_for_tokens(100, 0, ["B", "A"], "bob", 10, sender="alice")

    assert recorder.calls[-1] == ("swap", "A", "B", 90, 0, "bob")


def test_add_liquidity_transfers_both_sides_before_mint() -> None:
    recorder, store, registry, common = _wire()

    LiquidityManager(**common).add_liquidity("B", "A", 500, 100_000, "carol", sender="lp")

    pid = registry.lookup("A", "B")
    assert recorder.calls == [
        ("transfer_from", "B", "lp", pid, 500),
        ("transfer_from", "A", "lp", pid, 100_000),
        ("mint", "A", "B", "carol"),
    ]
