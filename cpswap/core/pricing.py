"""
Constant-product pricing (pure functions over the reserve store).

Algorithm Design:
- Type: Fixed-Point Integer Arithmetic / Floor Rounding
- Time Complexity: O(len(path)) per multi-hop quote
- Invariant: for every hop, (reserve_in + amount_in) * (reserve_out - amount_out) >= reserve_in * reserve_out

Nothing here mutates state. Multi-hop quotes read every hop's reserves once,
up front, and then compute; they never observe a partial update.
"""

from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

from ..kernels.python import cpmm_v2
from ..state.balances import Account, Amount, TokenId, ZERO_ADDRESS
from ..state.reserves import ReserveStore
from .errors import InvariantError, LiquidityError, ValidationError
from .registry import PairRegistry

logger = logging.getLogger(__name__)

BPS_DENOM = 10_000


def _require_amount(name: str, value: Amount) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(f"{name} must be an int")
    if value <= 0:
        raise ValidationError(f"{name} must be positive: {value}")


def require_account(name: str, account: Account) -> None:
    if not isinstance(account, str) or not account.strip():
        raise ValidationError(f"{name} must be a non-empty account id")
    if account == ZERO_ADDRESS:
        raise ValidationError(f"{name} must not be the zero address")


def _require_reserves(reserve_a: Amount, reserve_b: Amount) -> None:
    for name, value in (("reserve_a", reserve_a), ("reserve_b", reserve_b)):
        if not isinstance(value, int) or isinstance(value, bool):
            raise ValidationError(f"{name} must be an int")
    if reserve_a <= 0 or reserve_b <= 0:
        raise LiquidityError(f"insufficient liquidity: reserves ({reserve_a}, {reserve_b})")


def quote(amount_a: Amount, reserve_a: Amount, reserve_b: Amount) -> Amount:
    """
    Proportional counterpart of `amount_a` at the current price.

        amount_b = floor(amount_a * reserve_b / reserve_a)
    """
    _require_amount("amount_a", amount_a)
    _require_reserves(reserve_a, reserve_b)
    return cpmm_v2.quote(amount_a=amount_a, reserve_a=reserve_a, reserve_b=reserve_b)


def get_amount_out(amount_in: Amount, reserve_in: Amount, reserve_out: Amount) -> Amount:
    """
    Output of one hop with the 0.3% fee applied to the input.

    Guarantees amount_out < reserve_out and a non-decreasing product.
    """
    _require_amount("amount_in", amount_in)
    _require_reserves(reserve_in, reserve_out)
    try:
        res = cpmm_v2.swap_exact_in(reserve_in=reserve_in, reserve_out=reserve_out, amount_in=amount_in)
    except ValueError as exc:
        raise InvariantError(str(exc)) from exc
    return res.amount_out


def get_amount_in(amount_out: Amount, reserve_in: Amount, reserve_out: Amount) -> Amount:
    """Minimal input that yields at least `amount_out` from one hop."""
    _require_amount("amount_out", amount_out)
    _require_reserves(reserve_in, reserve_out)
    if amount_out >= reserve_out:
        raise LiquidityError(f"insufficient liquidity: amount_out {amount_out} >= reserve_out {reserve_out}")
    try:
        res = cpmm_v2.swap_exact_out(reserve_in=reserve_in, reserve_out=reserve_out, amount_out=amount_out)
    except ValueError as exc:
        raise InvariantError(str(exc)) from exc
    return res.amount_in


def validate_path(path: Sequence[TokenId], *, max_length: int = 0) -> Tuple[TokenId, ...]:
    """Tuple copy of `path`, or ValidationError if it cannot describe a route."""
    if isinstance(path, str) or not isinstance(path, Sequence):
        raise ValidationError("path must be a sequence of token ids")
    tokens = tuple(path)
    if len(tokens) < 2:
        raise ValidationError(f"invalid path: need at least 2 tokens, got {len(tokens)}")
    if max_length and len(tokens) > max_length:
        raise ValidationError(f"invalid path: {len(tokens)} tokens exceeds limit {max_length}")
    for i, token in enumerate(tokens):
        if not isinstance(token, str) or not token:
            raise ValidationError(f"invalid path: path[{i}] must be a non-empty string")
    for i in range(len(tokens) - 1):
        if tokens[i] == tokens[i + 1]:
            raise ValidationError(f"invalid path: identical tokens at hop {i}")
    return tokens


def read_path_reserves(
    store: ReserveStore,
    registry: PairRegistry,
    path: Sequence[TokenId],
) -> List[Tuple[Amount, Amount]]:
    """
    Snapshot (reserve_in, reserve_out) for every hop, in path orientation.

    A hop without a registered pair has no liquidity.
    """
    out: List[Tuple[Amount, Amount]] = []
    for token_in, token_out in zip(path, path[1:]):
        pair_id = registry.pair_for(token_in, token_out)
        reserve0, reserve1 = store.get_reserves(pair_id)
        key = registry.key_of(pair_id)
        if token_in == key.token0:
            out.append((reserve0, reserve1))
        else:
            out.append((reserve1, reserve0))
    return out


def get_amounts_out(
    store: ReserveStore,
    registry: PairRegistry,
    amount_in: Amount,
    path: Sequence[TokenId],
) -> List[Amount]:
    """
    Chained exact-in quote: amounts[0] = amount_in, amounts[i+1] = hop i output.
    """
    tokens = validate_path(path)
    _require_amount("amount_in", amount_in)
    hop_reserves = read_path_reserves(store, registry, tokens)
    logger.debug("get_amounts_out path=%s reserves=%s", tokens, hop_reserves)

    amounts = [amount_in]
    for reserve_in, reserve_out in hop_reserves:
        if amounts[-1] <= 0:
            # A zero intermediate output cannot feed the next hop.
            raise LiquidityError("insufficient input amount for next hop")
        amounts.append(get_amount_out(amounts[-1], reserve_in, reserve_out))
    return amounts


def get_amounts_in(
    store: ReserveStore,
    registry: PairRegistry,
    amount_out: Amount,
    path: Sequence[TokenId],
) -> List[Amount]:
    """
    Chained exact-out quote, computed from the last hop backwards.
    """
    tokens = validate_path(path)
    _require_amount("amount_out", amount_out)
    hop_reserves = read_path_reserves(store, registry, tokens)

    amounts = [0] * len(tokens)
    amounts[-1] = amount_out
    for i in range(len(tokens) - 1, 0, -1):
        reserve_in, reserve_out = hop_reserves[i - 1]
        amounts[i - 1] = get_amount_in(amounts[i], reserve_in, reserve_out)
    return amounts


def min_amount_out(amount_out: Amount, slippage_bps: int) -> Amount:
    """Caller-side minimum for a quoted output: floor(amount_out * (10000 - bps) / 10000)."""
    if not isinstance(amount_out, int) or isinstance(amount_out, bool) or amount_out < 0:
        raise ValidationError(f"amount_out must be a non-negative int: {amount_out!r}")
    if not isinstance(slippage_bps, int) or isinstance(slippage_bps, bool):
        raise ValidationError("slippage_bps must be an int")
    if not (0 <= slippage_bps <= BPS_DENOM):
        raise ValidationError(f"slippage_bps must be in [0, {BPS_DENOM}]: {slippage_bps}")
    return (amount_out * (BPS_DENOM - slippage_bps)) // BPS_DENOM


def deadline_after(now: int, seconds: int) -> int:
    """Absolute deadline `seconds` after `now` (unix seconds)."""
    if seconds <= 0:
        raise ValidationError(f"deadline window must be positive: {seconds}")
    return int(now) + int(seconds)
