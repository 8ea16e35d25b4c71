"""
Reserve store: the single owner of every pair's reserve balances.

The engine never caches reserves across requests; it reads them through a
store that is passed in explicitly (no module-level singleton).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Iterator, Tuple

from .balances import Amount
from .pairs import PairId


Reserves = Tuple[Amount, Amount]


class ReserveStore(ABC):
    """Read/write access to (reserve0, reserve1) by pair id."""

    @abstractmethod
    def has_pair(self, pair_id: PairId) -> bool:
        """Return True if the store holds a record for `pair_id`."""

    @abstractmethod
    def init_pair(self, pair_id: PairId) -> None:
        """Create a zero-reserve record; a no-op if the record already exists."""

    @abstractmethod
    def get_reserves(self, pair_id: PairId) -> Reserves:
        """
        Return (reserve0, reserve1) in canonical token order.

        Raises:
            KeyError: If the pair is unknown
        """

    @abstractmethod
    def set_reserves(self, pair_id: PairId, reserve0: Amount, reserve1: Amount) -> None:
        """Overwrite the reserves of an existing pair."""


class InMemoryReserveStore(ReserveStore):
    """Dict-backed reserve store; one instance per isolated ledger."""

    def __init__(self) -> None:
        self._reserves: Dict[PairId, Reserves] = {}

    def has_pair(self, pair_id: PairId) -> bool:
        return pair_id in self._reserves

    def init_pair(self, pair_id: PairId) -> None:
        self._reserves.setdefault(pair_id, (0, 0))

    def get_reserves(self, pair_id: PairId) -> Reserves:
        try:
            return self._reserves[pair_id]
        except KeyError:
            raise KeyError(f"unknown pair: {pair_id}") from None

    def set_reserves(self, pair_id: PairId, reserve0: Amount, reserve1: Amount) -> None:
        if pair_id not in self._reserves:
            raise KeyError(f"unknown pair: {pair_id}")
        for name, v in (("reserve0", reserve0), ("reserve1", reserve1)):
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
            if v < 0:
                raise ValueError(f"{name} must be non-negative: {v}")
        self._reserves[pair_id] = (reserve0, reserve1)

    def items(self) -> Iterator[Tuple[PairId, Reserves]]:
        return iter(sorted(self._reserves.items()))

    def copy(self) -> "InMemoryReserveStore":
        out = InMemoryReserveStore()
        out._reserves = dict(self._reserves)
        return out

    def __len__(self) -> int:
        return len(self._reserves)

    def __repr__(self) -> str:
        return f"InMemoryReserveStore({len(self._reserves)} pairs)"
