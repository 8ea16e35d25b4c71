"""
In-memory ledger implementing every engine collaborator.

One object plays reserve store, pair factory, token ledger, wrapped-native
contract and execution context, so the engines can be run end to end
without an external system. Pairs follow constant-product pair semantics:

- custody: a pair's tokens are held by the account named by its pair id;
- swap: inputs are inferred as custody balance minus reserve after the
  outputs leave, and the fee-adjusted product must not decrease;
- mint: the first deposit credits isqrt(a0*a1) - MINIMUM_LIQUIDITY (the lock
  goes to the zero address), later ones credit proportionally.

`atomic()` snapshots every table and restores it if the scope raises.
Atomic scopes are serialized ledger-wide and may nest.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List, Tuple

from ..core.errors import InvariantError, LiquidityError, TransferError, ValidationError
from ..core.interfaces import AssetLedger, ExecutionContext, PairContract, PairFactory, WrappedNative
from ..kernels.python import cpmm_v2, lp_math
from ..state.balances import Account, AllowanceTable, Amount, BalanceTable, TokenId, ZERO_ADDRESS
from ..state.lp import LPTable
from ..state.pairs import PairId, PairKey, PairState
from ..state.reserves import InMemoryReserveStore, Reserves, ReserveStore

logger = logging.getLogger(__name__)

DEFAULT_WRAPPED_TOKEN = "WETH"

# Key under which native balances are stored in their own BalanceTable.
NATIVE_ASSET = "native"


def _require_amount(name: str, value: Amount) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(f"{name} must be an int")
    if value < 0:
        raise ValidationError(f"{name} must be non-negative: {value}")


class LedgerPair(PairContract):
    """Pair handle bound to an `InMemoryLedger`."""

    def __init__(self, ledger: "InMemoryLedger", pair_id: PairId, key: PairKey) -> None:
        self._ledger = ledger
        self._pair_id = pair_id
        self._key = key

    @property
    def pair_id(self) -> PairId:
        return self._pair_id

    @property
    def token0(self) -> TokenId:
        return self._key.token0

    @property
    def token1(self) -> TokenId:
        return self._key.token1

    def get_reserves(self) -> Reserves:
        return self._ledger.get_reserves(self._pair_id)

    def _custody(self) -> Tuple[Amount, Amount]:
        return (
            self._ledger.balance_of(self._pair_id, self.token0),
            self._ledger.balance_of(self._pair_id, self.token1),
        )

    def swap(self, amount0_out: Amount, amount1_out: Amount, to: Account) -> None:
        _require_amount("amount0_out", amount0_out)
        _require_amount("amount1_out", amount1_out)
        if amount0_out == 0 and amount1_out == 0:
            raise LiquidityError("insufficient output amount")
        if to in (self.token0, self.token1):
            raise ValidationError(f"invalid to: {to}")

        with self._ledger.atomic():
            reserve0, reserve1 = self.get_reserves()
            if amount0_out >= reserve0 or amount1_out >= reserve1:
                raise LiquidityError(
                    f"insufficient liquidity: out ({amount0_out}, {amount1_out}) reserves ({reserve0}, {reserve1})"
                )

            if amount0_out:
                self._ledger.transfer(self.token0, self._pair_id, to, amount0_out)
            if amount1_out:
                self._ledger.transfer(self.token1, self._pair_id, to, amount1_out)

            balance0, balance1 = self._custody()
            amount0_in = max(balance0 - (reserve0 - amount0_out), 0)
            amount1_in = max(balance1 - (reserve1 - amount1_out), 0)
            if amount0_in == 0 and amount1_in == 0:
                raise LiquidityError("insufficient input amount")

            if not cpmm_v2.fee_adjusted_k_holds(
                balance0=balance0,
                balance1=balance1,
                amount0_in=amount0_in,
                amount1_in=amount1_in,
                reserve0=reserve0,
                reserve1=reserve1,
            ):
                raise InvariantError(f"K: pair {self._pair_id} product would decrease")

            self._ledger.set_reserves(self._pair_id, balance0, balance1)

        logger.debug(
            "pair %s swap in=(%d, %d) out=(%d, %d) reserves=(%d, %d)",
            self._pair_id,
            amount0_in,
            amount1_in,
            amount0_out,
            amount1_out,
            balance0,
            balance1,
        )

    def mint(self, to: Account) -> Amount:
        if not isinstance(to, str) or not to or to == ZERO_ADDRESS:
            raise ValidationError(f"invalid to: {to!r}")

        with self._ledger.atomic():
            reserve0, reserve1 = self.get_reserves()
            balance0, balance1 = self._custody()
            amount0 = balance0 - reserve0
            amount1 = balance1 - reserve1
            total_supply = self._ledger.lp_total_supply(self._pair_id)

            try:
                if total_supply == 0:
                    liquidity, _ = lp_math.mint_liquidity_initial(amount0=amount0, amount1=amount1)
                    self._ledger.lp.mint(ZERO_ADDRESS, self._pair_id, lp_math.MINIMUM_LIQUIDITY)
                else:
                    liquidity = lp_math.mint_liquidity_proportional(
                        amount0=amount0,
                        amount1=amount1,
                        reserve0=reserve0,
                        reserve1=reserve1,
                        total_supply=total_supply,
                    )
            except ValueError as exc:
                raise LiquidityError(str(exc)) from exc

            self._ledger.lp.mint(to, self._pair_id, liquidity)
            self._ledger.set_reserves(self._pair_id, balance0, balance1)

        logger.debug("pair %s mint %d to %s", self._pair_id, liquidity, to)
        return liquidity

    def __repr__(self) -> str:
        return f"LedgerPair({self._pair_id[:18]}..., {self.token0}/{self.token1})"


class InMemoryLedger(ReserveStore, PairFactory, AssetLedger, WrappedNative, ExecutionContext):
    def __init__(self, *, wrapped_token: TokenId = DEFAULT_WRAPPED_TOKEN) -> None:
        if not isinstance(wrapped_token, str) or not wrapped_token:
            raise ValueError("wrapped_token must be a non-empty string")
        self._wrapped_token = wrapped_token
        self._lock = threading.RLock()
        self.balances = BalanceTable()
        self.allowances = AllowanceTable()
        self.native = BalanceTable()
        self.lp = LPTable()
        self._reserves = InMemoryReserveStore()
        self._pairs: Dict[PairId, LedgerPair] = {}

    # -- ExecutionContext ----------------------------------------------------

    @contextmanager
    def atomic(self) -> Iterator[None]:
        with self._lock:
            saved = (
                self.balances.copy(),
                self.allowances.copy(),
                self.native.copy(),
                self.lp.copy(),
                self._reserves.copy(),
            )
            try:
                yield
            except BaseException:
                self.balances, self.allowances, self.native, self.lp, self._reserves = saved
                # Pairs deployed inside the scope stay registered.
                for pair_id in self._pairs:
                    self._reserves.init_pair(pair_id)
                logger.debug("atomic scope rolled back")
                raise

    # -- ReserveStore -------------------------------------------------------

    def has_pair(self, pair_id: PairId) -> bool:
        with self._lock:
            return self._reserves.has_pair(pair_id)

    def init_pair(self, pair_id: PairId) -> None:
        with self._lock:
            self._reserves.init_pair(pair_id)

    def get_reserves(self, pair_id: PairId) -> Reserves:
        with self._lock:
            return self._reserves.get_reserves(pair_id)

    def set_reserves(self, pair_id: PairId, reserve0: Amount, reserve1: Amount) -> None:
        with self._lock:
            self._reserves.set_reserves(pair_id, reserve0, reserve1)

    # -- PairFactory --------------------------------------------------------

    def deploy(self, pair_id: PairId, key: PairKey) -> None:
        if key.pair_id != pair_id:
            raise ValueError(f"pair id {pair_id} does not match key ({key.token0}, {key.token1})")
        with self._lock:
            if pair_id in self._pairs:
                return
            self._reserves.init_pair(pair_id)
            self._pairs[pair_id] = LedgerPair(self, pair_id, key)

    def pair(self, pair_id: PairId) -> LedgerPair:
        with self._lock:
            try:
                return self._pairs[pair_id]
            except KeyError:
                raise LiquidityError(f"no pair deployed for {pair_id}") from None

    def pair_states(self) -> List[PairState]:
        """Sorted `PairState` view of every deployed pair."""
        with self._lock:
            out = []
            for pair_id in sorted(self._pairs):
                handle = self._pairs[pair_id]
                reserve0, reserve1 = self._reserves.get_reserves(pair_id)
                out.append(PairState(pair_id, handle.token0, handle.token1, reserve0, reserve1))
            return out

    # -- AssetLedger --------------------------------------------------------

    def balance_of(self, account: Account, token: TokenId) -> Amount:
        with self._lock:
            return self.balances.get(account, token)

    def credit(self, account: Account, token: TokenId, amount: Amount) -> None:
        """Issue `amount` of `token` to `account` (faucet for fixtures and snapshots)."""
        _require_amount("amount", amount)
        with self._lock:
            self.balances.add(account, token, amount)

    def approve(self, owner: Account, spender: Account, token: TokenId, amount: Amount) -> None:
        _require_amount("amount", amount)
        with self._lock:
            self.allowances.set(owner, spender, token, amount)

    def allowance(self, owner: Account, spender: Account, token: TokenId) -> Amount:
        with self._lock:
            return self.allowances.get(owner, spender, token)

    def transfer(self, token: TokenId, sender: Account, recipient: Account, amount: Amount) -> None:
        _require_amount("amount", amount)
        with self._lock:
            try:
                self.balances.move(token, sender, recipient, amount)
            except ValueError as exc:
                raise TransferError(f"transfer of {amount} {token} from {sender} failed: {exc}") from exc

    def transfer_from(
        self,
        token: TokenId,
        spender: Account,
        owner: Account,
        recipient: Account,
        amount: Amount,
    ) -> None:
        _require_amount("amount", amount)
        with self._lock:
            if self.balances.get(owner, token) < amount:
                raise TransferError(
                    f"transfer of {amount} {token} from {owner} failed: balance {self.balances.get(owner, token)}"
                )
            try:
                self.allowances.spend(owner, spender, token, amount)
            except ValueError as exc:
                raise TransferError(f"transfer of {amount} {token} by {spender} failed: {exc}") from exc
            self.balances.move(token, owner, recipient, amount)

    # -- WrappedNative ------------------------------------------------------

    @property
    def token(self) -> TokenId:
        return self._wrapped_token

    def native_balance_of(self, account: Account) -> Amount:
        with self._lock:
            return self.native.get(account, NATIVE_ASSET)

    def credit_native(self, account: Account, amount: Amount) -> None:
        _require_amount("amount", amount)
        with self._lock:
            self.native.add(account, NATIVE_ASSET, amount)

    def transfer_native(self, sender: Account, recipient: Account, amount: Amount) -> None:
        _require_amount("amount", amount)
        with self._lock:
            try:
                self.native.move(NATIVE_ASSET, sender, recipient, amount)
            except ValueError as exc:
                raise TransferError(f"native transfer of {amount} from {sender} failed: {exc}") from exc

    def deposit(self, account: Account, amount: Amount) -> None:
        _require_amount("amount", amount)
        with self._lock:
            try:
                self.native.subtract(account, NATIVE_ASSET, amount)
            except ValueError as exc:
                raise TransferError(f"wrap of {amount} by {account} failed: {exc}") from exc
            self.balances.add(account, self._wrapped_token, amount)

    def withdraw(self, account: Account, amount: Amount) -> None:
        _require_amount("amount", amount)
        with self._lock:
            try:
                self.balances.subtract(account, self._wrapped_token, amount)
            except ValueError as exc:
                raise TransferError(f"unwrap of {amount} by {account} failed: {exc}") from exc
            self.native.add(account, NATIVE_ASSET, amount)

    # -- liquidity credits ---------------------------------------------------

    def lp_balance_of(self, account: Account, pair_id: PairId) -> Amount:
        with self._lock:
            return self.lp.get(account, pair_id)

    def lp_total_supply(self, pair_id: PairId) -> Amount:
        with self._lock:
            return self.lp.total_supply(pair_id)

    def __repr__(self) -> str:
        return f"InMemoryLedger({len(self._pairs)} pairs, wrapped={self._wrapped_token})"
