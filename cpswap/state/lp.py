"""
Liquidity-credit ledger, kept per pair.

Credits only ever grow through `mint`. `set` exists for loading snapshots.
The per-pair total supply is tracked alongside the holders so the
proportional-mint formula reads it in O(1).
"""

from __future__ import annotations

from typing import Dict, Tuple

from .balances import Account, Amount
from .pairs import PairId


class LPTable:
    def __init__(self) -> None:
        self._credits: Dict[Tuple[Account, PairId], Amount] = {}
        self._supply: Dict[PairId, Amount] = {}

    def get(self, account: Account, pair_id: PairId) -> Amount:
        return self._credits.get((account, pair_id), 0)

    def total_supply(self, pair_id: PairId) -> Amount:
        return self._supply.get(pair_id, 0)

    def set(self, account: Account, pair_id: PairId, amount: Amount) -> None:
        if amount < 0:
            raise ValueError(f"liquidity credit cannot be negative: {amount}")
        supply = self.total_supply(pair_id) - self.get(account, pair_id) + amount
        if amount == 0:
            self._credits.pop((account, pair_id), None)
        else:
            self._credits[(account, pair_id)] = amount
        if supply == 0:
            self._supply.pop(pair_id, None)
        else:
            self._supply[pair_id] = supply

    def mint(self, account: Account, pair_id: PairId, amount: Amount) -> Amount:
        """Credit `amount` new units to `account`; returns the new total supply."""
        if amount <= 0:
            raise ValueError(f"mint amount must be positive: {amount}")
        self.set(account, pair_id, self.get(account, pair_id) + amount)
        return self.total_supply(pair_id)

    def get_all_balances(self) -> Dict[Tuple[Account, PairId], Amount]:
        return dict(self._credits)

    def copy(self) -> "LPTable":
        out = LPTable()
        out._credits = dict(self._credits)
        out._supply = dict(self._supply)
        return out

    def __repr__(self) -> str:
        return f"LPTable({len(self._credits)} credits, {len(self._supply)} pairs)"
