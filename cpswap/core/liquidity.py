"""
Liquidity manager: ratio-preserving deposits into a pair.

The amounts actually deposited are the largest pair (a, b) with a <= a_desired,
b <= b_desired and a/b equal to the current reserve ratio (floor rounding).
An empty pair is bootstrapped at the caller's ratio.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from ..kernels.python import lp_math
from ..state.balances import Account, Amount, TokenId
from ..state.pairs import PairId
from ..state.reserves import ReserveStore
from .config import EngineConfig
from .errors import ExpiredError, LiquidityError, SlippageError, ValidationError
from .interfaces import AssetLedger, ExecutionContext, NullExecutionContext, PairFactory, WrappedNative
from .locks import PairLocks
from .pricing import require_account
from .registry import PairRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LiquidityResult:
    amount_a: Amount
    amount_b: Amount
    liquidity: Amount
    pair_id: PairId
    native_refund: Amount = 0


def _require_int(name: str, value: Amount, *, positive: bool) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(f"{name} must be an int")
    if positive and value <= 0:
        raise ValidationError(f"{name} must be positive: {value}")
    if not positive and value < 0:
        raise ValidationError(f"{name} must be non-negative: {value}")


def compute_liquidity_amounts(
    reserve_a: Amount,
    reserve_b: Amount,
    amount_a_desired: Amount,
    amount_b_desired: Amount,
) -> Tuple[Amount, Amount]:
    """
    (amount_a, amount_b) to deposit given reserves oriented as (A, B).

    Both reserves zero: (a_desired, b_desired). Exactly one zero: LiquidityError.
    """
    _require_int("amount_a_desired", amount_a_desired, positive=True)
    _require_int("amount_b_desired", amount_b_desired, positive=True)
    _require_int("reserve_a", reserve_a, positive=False)
    _require_int("reserve_b", reserve_b, positive=False)
    try:
        res = lp_math.optimal_liquidity(
            reserve_a=reserve_a,
            reserve_b=reserve_b,
            amount_a_desired=amount_a_desired,
            amount_b_desired=amount_b_desired,
        )
    except ValueError as exc:
        raise LiquidityError(f"insufficient liquidity: {exc}") from exc
    return res.amount_a, res.amount_b


class LiquidityManager:
    def __init__(
        self,
        *,
        registry: PairRegistry,
        store: ReserveStore,
        pairs: PairFactory,
        assets: AssetLedger,
        native: Optional[WrappedNative] = None,
        execution: Optional[ExecutionContext] = None,
        config: EngineConfig = EngineConfig(),
        clock: Callable[[], int] = lambda: int(time.time()),
        locks: Optional[PairLocks] = None,
    ) -> None:
        self._registry = registry
        self._store = store
        self._pairs = pairs
        self._assets = assets
        self._native = native
        self._execution = execution if execution is not None else NullExecutionContext()
        self._config = config
        self._clock = clock
        self._locks = locks if locks is not None else PairLocks()

    @property
    def address(self) -> Account:
        return self._config.engine_address

    def _check_deadline(self, deadline: Optional[int]) -> None:
        if deadline is None:
            return
        now = self._clock()
        if deadline < now:
            raise ExpiredError(f"expired: deadline {deadline} < now {now}")

    def _oriented_reserves(self, pair_id: PairId, a_is_token0: bool) -> Tuple[Amount, Amount]:
        reserve0, reserve1 = self._store.get_reserves(pair_id)
        if a_is_token0:
            return reserve0, reserve1
        return reserve1, reserve0

    def _select_amounts(
        self,
        pair_id: PairId,
        a_is_token0: bool,
        amount_a_desired: Amount,
        amount_b_desired: Amount,
        amount_a_min: Amount,
        amount_b_min: Amount,
    ) -> Tuple[Amount, Amount]:
        reserve_a, reserve_b = self._oriented_reserves(pair_id, a_is_token0)
        amount_a, amount_b = compute_liquidity_amounts(reserve_a, reserve_b, amount_a_desired, amount_b_desired)
        if amount_a < amount_a_min:
            raise SlippageError(
                f"insufficient A amount: {amount_a} < {amount_a_min}", expected_min=amount_a_min, actual=amount_a
            )
        if amount_b < amount_b_min:
            raise SlippageError(
                f"insufficient B amount: {amount_b} < {amount_b_min}", expected_min=amount_b_min, actual=amount_b
            )
        return amount_a, amount_b

    def _validate(
        self,
        token_a: TokenId,
        token_b: TokenId,
        amount_a_desired: Amount,
        amount_b_desired: Amount,
        amount_a_min: Amount,
        amount_b_min: Amount,
        to: Account,
        sender: Account,
        deadline: Optional[int],
    ) -> None:
        self._check_deadline(deadline)
        require_account("to", to)
        require_account("sender", sender)
        _require_int("amount_a_desired", amount_a_desired, positive=True)
        _require_int("amount_b_desired", amount_b_desired, positive=True)
        _require_int("amount_a_min", amount_a_min, positive=False)
        _require_int("amount_b_min", amount_b_min, positive=False)
        if token_a == token_b:
            raise ValidationError(f"identical tokens: {token_a}")

    def add_liquidity(
        self,
        token_a: TokenId,
        token_b: TokenId,
        amount_a_desired: Amount,
        amount_b_desired: Amount,
        to: Account,
        *,
        sender: Account,
        amount_a_min: Amount = 0,
        amount_b_min: Amount = 0,
        deadline: Optional[int] = None,
    ) -> LiquidityResult:
        """
        Deposit token_a/token_b from `sender` and credit liquidity to `to`.

        The pair is created on first use. Order of effects: pull A into the
        pair, pull B into the pair, mint.
        """
        self._validate(
            token_a, token_b, amount_a_desired, amount_b_desired, amount_a_min, amount_b_min, to, sender, deadline
        )
        pair_id = self._registry.get_or_create(token_a, token_b)
        # Orientation is resolved before the atomic scope; the registry is not read inside it.
        a_is_token0 = token_a == self._registry.key_of(pair_id).token0

        with self._locks.hold([pair_id]):
            with self._execution.atomic():
                amount_a, amount_b = self._select_amounts(
                    pair_id, a_is_token0, amount_a_desired, amount_b_desired, amount_a_min, amount_b_min
                )
                self._assets.transfer_from(token_a, self.address, sender, pair_id, amount_a)
                self._assets.transfer_from(token_b, self.address, sender, pair_id, amount_b)
                liquidity = self._pairs.pair(pair_id).mint(to)

        logger.info(
            "liquidity added pair=%s a=%d b=%d liquidity=%d to=%s", pair_id, amount_a, amount_b, liquidity, to
        )
        return LiquidityResult(amount_a=amount_a, amount_b=amount_b, liquidity=liquidity, pair_id=pair_id)

    def add_liquidity_eth(
        self,
        token: TokenId,
        amount_token_desired: Amount,
        to: Account,
        *,
        sender: Account,
        native_value: Amount,
        amount_token_min: Amount = 0,
        amount_eth_min: Amount = 0,
        deadline: Optional[int] = None,
    ) -> LiquidityResult:
        """
        Deposit `token` plus native funds; the native side is wrapped first.

        `native_value` is the desired native amount. Whatever the ratio does
        not use is refunded to `sender` after the mint.
        """
        if self._native is None:
            raise ValidationError("native asset is not configured")
        wrapped = self._native.token
        if self._config.wrapped_native and self._config.wrapped_native != wrapped:
            raise ValidationError(f"configured wrapped native {self._config.wrapped_native} does not match {wrapped}")
        self._validate(
            token, wrapped, amount_token_desired, native_value, amount_token_min, amount_eth_min, to, sender, deadline
        )
        pair_id = self._registry.get_or_create(token, wrapped)
        token_is_token0 = token == self._registry.key_of(pair_id).token0

        with self._locks.hold([pair_id]):
            with self._execution.atomic():
                amount_token, amount_eth = self._select_amounts(
                    pair_id, token_is_token0, amount_token_desired, native_value, amount_token_min, amount_eth_min
                )
                self._native.transfer_native(sender, self.address, native_value)
                self._assets.transfer_from(token, self.address, sender, pair_id, amount_token)
                self._native.deposit(self.address, amount_eth)
                self._assets.transfer(wrapped, self.address, pair_id, amount_eth)
                liquidity = self._pairs.pair(pair_id).mint(to)
                refund = native_value - amount_eth
                if refund > 0:
                    self._native.transfer_native(self.address, sender, refund)

        logger.info(
            "liquidity added pair=%s token=%d native=%d liquidity=%d refund=%d to=%s",
            pair_id,
            amount_token,
            amount_eth,
            liquidity,
            refund,
            to,
        )
        return LiquidityResult(
            amount_a=amount_token,
            amount_b=amount_eth,
            liquidity=liquidity,
            pair_id=pair_id,
            native_refund=refund,
        )
