"""
Constant-product swap kernel (fixed 0.3% input fee, v2 semantics).

- Fee is applied by scaling the input with 997/1000 before the x*y=k step.
- The full gross input stays in the pair, so k grows by the retained fee.
- All arithmetic is integer-only with floor rounding in the pool's favour.

This kernel is small and pure so that the pricing layer and the reference
pair implementation share exactly one copy of the formulas.
"""

from __future__ import annotations

from dataclasses import dataclass


FEE_NUMERATOR = 997
FEE_DENOMINATOR = 1000


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


@dataclass(frozen=True)
class SwapExactInResult:
    amount_in: int
    amount_out: int
    amount_in_with_fee: int
    new_reserve_in: int
    new_reserve_out: int
    k_before: int
    k_after: int


@dataclass(frozen=True)
class SwapExactOutResult:
    amount_in: int
    amount_out: int
    new_reserve_in: int
    new_reserve_out: int
    k_before: int
    k_after: int


def _post_state(reserve_in: int, reserve_out: int, amount_in: int, amount_out: int) -> tuple[int, int, int, int]:
    """(reserve_in', reserve_out', k, k') after moving the amounts; k must not shrink."""
    k_before = reserve_in * reserve_out
    after_in = reserve_in + amount_in
    after_out = reserve_out - amount_out
    k_after = after_in * after_out
    if k_after < k_before:
        raise ValueError(f"invariant violation: new_k ({k_after}) < old_k ({k_before})")
    return after_in, after_out, k_before, k_after


def quote(*, amount_a: int, reserve_a: int, reserve_b: int) -> int:
    """
    Proportional counterpart: `floor(amount_a * reserve_b / reserve_a)`.
    """
    for name, v in (("amount_a", amount_a), ("reserve_a", reserve_a), ("reserve_b", reserve_b)):
        _require_int(name, v)
    if amount_a <= 0:
        raise ValueError("amount_a must be positive")
    if reserve_a <= 0 or reserve_b <= 0:
        raise ValueError("reserves must be positive")
    return (amount_a * reserve_b) // reserve_a


def swap_exact_in(*, reserve_in: int, reserve_out: int, amount_in: int) -> SwapExactInResult:
    """
    Exact-in swap quote + post-state.

        amount_in_with_fee = amount_in * 997
        amount_out = floor(amount_in_with_fee * reserve_out / (reserve_in * 1000 + amount_in_with_fee))

    Raises ValueError on invalid inputs or if a post-state invariant fails.
    """
    for name, v in (("reserve_in", reserve_in), ("reserve_out", reserve_out), ("amount_in", amount_in)):
        _require_int(name, v)
    if amount_in <= 0:
        raise ValueError("amount_in must be positive")
    if reserve_in <= 0 or reserve_out <= 0:
        raise ValueError("cannot swap against an empty reserve")

    amount_in_with_fee = amount_in * FEE_NUMERATOR
    numerator = amount_in_with_fee * reserve_out
    denominator = reserve_in * FEE_DENOMINATOR + amount_in_with_fee
    amount_out = numerator // denominator

    # amount_in_with_fee / denominator < 1, so the pair can never be drained.
    if amount_out >= reserve_out:
        raise ValueError("invariant violation: amount_out >= reserve_out")

    new_reserve_in, new_reserve_out, k_before, k_after = _post_state(reserve_in, reserve_out, amount_in, amount_out)
    return SwapExactInResult(
        amount_in=amount_in,
        amount_out=amount_out,
        amount_in_with_fee=amount_in_with_fee,
        new_reserve_in=new_reserve_in,
        new_reserve_out=new_reserve_out,
        k_before=k_before,
        k_after=k_after,
    )


def swap_exact_out(*, reserve_in: int, reserve_out: int, amount_out: int) -> SwapExactOutResult:
    """
    Minimal input for an exact output (inverse of `swap_exact_in`).

        amount_in = floor(reserve_in * amount_out * 1000 / ((reserve_out - amount_out) * 997)) + 1
    """
    for name, v in (("reserve_in", reserve_in), ("reserve_out", reserve_out), ("amount_out", amount_out)):
        _require_int(name, v)
    if amount_out <= 0:
        raise ValueError("amount_out must be positive")
    if reserve_in <= 0 or reserve_out <= 0:
        raise ValueError("cannot swap against an empty reserve")
    if amount_out >= reserve_out:
        raise ValueError("cannot drain full reserve_out")

    numerator = reserve_in * amount_out * FEE_DENOMINATOR
    denominator = (reserve_out - amount_out) * FEE_NUMERATOR
    amount_in = numerator // denominator + 1

    new_reserve_in, new_reserve_out, k_before, k_after = _post_state(reserve_in, reserve_out, amount_in, amount_out)
    return SwapExactOutResult(
        amount_in=amount_in,
        amount_out=amount_out,
        new_reserve_in=new_reserve_in,
        new_reserve_out=new_reserve_out,
        k_before=k_before,
        k_after=k_after,
    )


def fee_adjusted_k_holds(
    *,
    balance0: int,
    balance1: int,
    amount0_in: int,
    amount1_in: int,
    reserve0: int,
    reserve1: int,
) -> bool:
    """
    Pair-side settlement check on post-transfer balances:

        (b0*1000 - in0*3) * (b1*1000 - in1*3) >= r0 * r1 * 1000^2
    """
    fee_part = FEE_DENOMINATOR - FEE_NUMERATOR
    adjusted0 = balance0 * FEE_DENOMINATOR - amount0_in * fee_part
    adjusted1 = balance1 * FEE_DENOMINATOR - amount1_in * fee_part
    return adjusted0 * adjusted1 >= reserve0 * reserve1 * FEE_DENOMINATOR * FEE_DENOMINATOR
