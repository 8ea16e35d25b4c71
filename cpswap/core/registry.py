"""
Pair registry: unordered token pair -> canonical pair id.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional

from ..state.balances import TokenId
from ..state.pairs import PairId, PairKey
from ..state.reserves import ReserveStore
from .errors import LiquidityError, ValidationError
from .interfaces import PairFactory

logger = logging.getLogger(__name__)


def canonical_key(token_a: TokenId, token_b: TokenId) -> PairKey:
    """PairKey for an unordered token pair, raising ValidationError on bad ids."""
    try:
        return PairKey.of(token_a, token_b)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc


class PairRegistry:
    """
    Maps {token_a, token_b} to one pair id, creating the pair on first use.

    Creation is idempotent under concurrent callers: creators of the same key
    are serialized by a per-key lock, and pair ids are a pure function of the
    canonical key. The store and factory are called without the registry lock
    held, so a caller inside an atomic ledger scope can still read the
    registry while another thread creates an unrelated pair.
    """

    def __init__(self, store: ReserveStore, factory: Optional[PairFactory] = None) -> None:
        self._store = store
        self._factory = factory
        self._lock = threading.Lock()
        self._pairs: Dict[PairKey, PairId] = {}
        self._keys: Dict[PairId, PairKey] = {}
        self._creating: Dict[PairKey, threading.Lock] = {}

    def get_or_create(self, token_a: TokenId, token_b: TokenId) -> PairId:
        key = canonical_key(token_a, token_b)
        with self._lock:
            pair_id = self._pairs.get(key)
            if pair_id is not None:
                return pair_id
            creating = self._creating.setdefault(key, threading.Lock())

        with creating:
            with self._lock:
                pair_id = self._pairs.get(key)
            if pair_id is not None:
                return pair_id
            pair_id = key.pair_id
            self._store.init_pair(pair_id)
            if self._factory is not None:
                self._factory.deploy(pair_id, key)
            with self._lock:
                self._pairs[key] = pair_id
                self._keys[pair_id] = key
                self._creating.pop(key, None)
        logger.info("created pair %s for (%s, %s)", pair_id, key.token0, key.token1)
        return pair_id

    def lookup(self, token_a: TokenId, token_b: TokenId) -> Optional[PairId]:
        """Existing pair id, or None. Never creates."""
        key = canonical_key(token_a, token_b)
        with self._lock:
            return self._pairs.get(key)

    def pair_for(self, token_a: TokenId, token_b: TokenId) -> PairId:
        """Existing pair id; a missing pair has no liquidity to price against."""
        pair_id = self.lookup(token_a, token_b)
        if pair_id is None:
            raise LiquidityError(f"no pair for ({token_a}, {token_b})")
        return pair_id

    def key_of(self, pair_id: PairId) -> PairKey:
        with self._lock:
            try:
                return self._keys[pair_id]
            except KeyError:
                raise KeyError(f"unknown pair: {pair_id}") from None

    def all_pairs(self) -> List[PairKey]:
        with self._lock:
            return sorted(self._pairs, key=lambda k: (k.token0, k.token1))

    def __len__(self) -> int:
        with self._lock:
            return len(self._pairs)

    def __repr__(self) -> str:
        return f"PairRegistry({len(self)} pairs)"
