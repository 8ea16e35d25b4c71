"""
Multi-token balance and allowance tracking with deterministic ordering.

Implements BalanceTable[Account, TokenId] -> Amount and
AllowanceTable[(owner, spender), TokenId] -> Amount.
"""

from __future__ import annotations

from typing import Dict, Tuple


# Type aliases
Account = str  # 20-byte hex address (0x...) or any opaque caller identifier
TokenId = str  # 20-byte hex address (0x...) or any opaque token identifier
Amount = int  # Non-negative integer in the token's smallest unit

# The zero address is never a valid recipient; minted liquidity lock goes here.
ZERO_ADDRESS = "0x" + "00" * 20


class BalanceTable:
    """
    Deterministic balance table mapping (account, token) -> amount.

    Note: this class stores balances in a plain dict. Do not rely on dict
    iteration order; callers sort keys explicitly at serialization boundaries
    (see `cpswap/integration/snapshot.py`).
    """

    def __init__(self) -> None:
        self._balances: Dict[Tuple[Account, TokenId], Amount] = {}

    def get(self, account: Account, token: TokenId) -> Amount:
        """Get balance for (account, token). Returns 0 if not found."""
        return self._balances.get((account, token), 0)

    def set(self, account: Account, token: TokenId, amount: Amount) -> None:
        """
        Set balance for (account, token).

        Raises:
            ValueError: If amount is negative
        """
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        if amount == 0:
            # Remove zero balances to keep table sparse
            self._balances.pop((account, token), None)
        else:
            self._balances[(account, token)] = amount

    def add(self, account: Account, token: TokenId, delta: int) -> None:
        """
        Add delta to balance (delta may be negative).

        Raises:
            ValueError: If resulting balance would be negative
        """
        current = self.get(account, token)
        new_balance = current + delta
        if new_balance < 0:
            raise ValueError(
                f"Insufficient balance: {current} + {delta} = {new_balance} < 0"
            )
        self.set(account, token, new_balance)

    def subtract(self, account: Account, token: TokenId, delta: Amount) -> None:
        """Subtract a non-negative amount from a balance."""
        if delta < 0:
            raise ValueError(f"Delta must be non-negative: {delta}")
        self.add(account, token, -delta)

    def move(self, token: TokenId, sender: Account, recipient: Account, amount: Amount) -> None:
        """Move `amount` of `token` from sender to recipient (all-or-nothing)."""
        if amount < 0:
            raise ValueError(f"Transfer amount must be non-negative: {amount}")
        self.subtract(sender, token, amount)
        self.add(recipient, token, amount)

    def get_all_balances(self) -> Dict[Tuple[Account, TokenId], Amount]:
        """Return a copy of all balances."""
        return dict(self._balances)

    def total_supply(self, token: TokenId) -> Amount:
        """Sum of all balances of `token`."""
        return sum(amount for (_acct, t), amount in self._balances.items() if t == token)

    def copy(self) -> "BalanceTable":
        out = BalanceTable()
        out._balances = dict(self._balances)
        return out

    def __repr__(self) -> str:
        return f"BalanceTable({len(self._balances)} entries)"


class AllowanceTable:
    """
    Spending allowances: (owner, spender, token) -> amount.

    Zero allowances are omitted to keep the table sparse.
    """

    def __init__(self) -> None:
        self._allowances: Dict[Tuple[Account, Account, TokenId], Amount] = {}

    def get(self, owner: Account, spender: Account, token: TokenId) -> Amount:
        return self._allowances.get((owner, spender, token), 0)

    def set(self, owner: Account, spender: Account, token: TokenId, amount: Amount) -> None:
        if amount < 0:
            raise ValueError(f"Allowance cannot be negative: {amount}")
        if amount == 0:
            self._allowances.pop((owner, spender, token), None)
        else:
            self._allowances[(owner, spender, token)] = amount

    def spend(self, owner: Account, spender: Account, token: TokenId, amount: Amount) -> None:
        """Consume `amount` of an allowance; raises ValueError if it is too small."""
        current = self.get(owner, spender, token)
        if current < amount:
            raise ValueError(f"Insufficient allowance: {current} < {amount}")
        self.set(owner, spender, token, current - amount)

    def get_all(self) -> Dict[Tuple[Account, Account, TokenId], Amount]:
        return dict(self._allowances)

    def copy(self) -> "AllowanceTable":
        out = AllowanceTable()
        out._allowances = dict(self._allowances)
        return out

    def __repr__(self) -> str:
        return f"AllowanceTable({len(self._allowances)} entries)"
