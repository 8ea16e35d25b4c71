"""Collaborator contracts consumed by the engines.

The engines only talk to these abstractions, so a ledger, a chain client or
a recording test double can be injected without touching core code.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import ContextManager, Iterator, Tuple

from ..state.balances import Account, Amount, TokenId
from ..state.pairs import PairId, PairKey


class PairContract(ABC):
    """One deployed pair: reserve read, settlement and liquidity issuance."""

    @property
    @abstractmethod
    def pair_id(self) -> PairId:
        ...

    @property
    @abstractmethod
    def token0(self) -> TokenId:
        ...

    @property
    @abstractmethod
    def token1(self) -> TokenId:
        ...

    @abstractmethod
    def get_reserves(self) -> Tuple[Amount, Amount]:
        """Return (reserve0, reserve1)."""

    @abstractmethod
    def swap(self, amount0_out: Amount, amount1_out: Amount, to: Account) -> None:
        """Release the given outputs to `to`; the input must already be in custody."""

    @abstractmethod
    def mint(self, to: Account) -> Amount:
        """Issue liquidity credit to `to` for the amounts already in custody."""


class PairFactory(ABC):
    """Pair deployment and lookup by id."""

    @abstractmethod
    def deploy(self, pair_id: PairId, key: PairKey) -> None:
        """Called once by the registry when a pair is first created."""

    @abstractmethod
    def pair(self, pair_id: PairId) -> PairContract:
        """Return the contract handle for an existing pair."""


class AssetLedger(ABC):
    """Fungible token movements."""

    @abstractmethod
    def transfer(self, token: TokenId, sender: Account, recipient: Account, amount: Amount) -> None:
        ...

    @abstractmethod
    def transfer_from(
        self,
        token: TokenId,
        spender: Account,
        owner: Account,
        recipient: Account,
        amount: Amount,
    ) -> None:
        """Move `owner`'s tokens on behalf of `spender` (consumes an allowance)."""


class WrappedNative(ABC):
    """Native asset and its wrapped token."""

    @property
    @abstractmethod
    def token(self) -> TokenId:
        """Token id of the wrapped native asset."""

    @abstractmethod
    def deposit(self, account: Account, amount: Amount) -> None:
        """Convert `amount` native units held by `account` into wrapped tokens."""

    @abstractmethod
    def withdraw(self, account: Account, amount: Amount) -> None:
        """Convert `amount` wrapped tokens held by `account` back to native units."""

    @abstractmethod
    def transfer_native(self, sender: Account, recipient: Account, amount: Amount) -> None:
        ...


class ExecutionContext(ABC):
    """All-or-nothing commit scope provided by the embedding system."""

    @abstractmethod
    def atomic(self) -> ContextManager[None]:
        ...


class NullExecutionContext(ExecutionContext):
    """Used when the embedding system already wraps each call in a transaction."""

    @contextmanager
    def atomic(self) -> Iterator[None]:
        yield
