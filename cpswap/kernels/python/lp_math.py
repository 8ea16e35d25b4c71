"""
Liquidity math kernel.

Two independent pieces with explicit rounding rules:
- ratio selection for a deposit (`optimal_liquidity`), used by the router side;
- credit issuance for a deposit already in custody (`mint_*`), used by the pair side.
"""

from __future__ import annotations

import math
from dataclasses import dataclass


MINIMUM_LIQUIDITY = 1000


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


@dataclass(frozen=True)
class OptimalLiquidityResult:
    amount_a: int
    amount_b: int


def optimal_liquidity(
    *,
    reserve_a: int,
    reserve_b: int,
    amount_a_desired: int,
    amount_b_desired: int,
) -> OptimalLiquidityResult:
    """
    Ratio-preserving deposit amounts that respect both desired ceilings.

    Bootstrap (both reserves zero) uses the desired amounts as-is; otherwise:
        b_opt = floor(a_desired * rB / rA); if b_opt <= b_desired -> (a_desired, b_opt)
        else a_opt = floor(b_desired * rA / rB) -> (a_opt, b_desired)

    A pair with exactly one zero reserve has no defined price and is rejected.
    """
    for name, v in (
        ("reserve_a", reserve_a),
        ("reserve_b", reserve_b),
        ("amount_a_desired", amount_a_desired),
        ("amount_b_desired", amount_b_desired),
    ):
        _require_int(name, v)

    if reserve_a < 0 or reserve_b < 0:
        raise ValueError("reserves must be non-negative")
    if amount_a_desired <= 0 or amount_b_desired <= 0:
        raise ValueError("desired amounts must be positive")

    if reserve_a == 0 and reserve_b == 0:
        return OptimalLiquidityResult(amount_a=amount_a_desired, amount_b=amount_b_desired)
    if reserve_a == 0 or reserve_b == 0:
        raise ValueError("reserves must be positive")

    amount_b_optimal = (amount_a_desired * reserve_b) // reserve_a
    if amount_b_optimal <= amount_b_desired:
        amount_a, amount_b = amount_a_desired, amount_b_optimal
    else:
        amount_a_optimal = (amount_b_desired * reserve_a) // reserve_b
        # b_opt > b_desired implies a_opt <= a_desired under floor rounding.
        if amount_a_optimal > amount_a_desired:
            raise AssertionError("optimal amount_a exceeds desired amount")
        amount_a, amount_b = amount_a_optimal, amount_b_desired

    return OptimalLiquidityResult(amount_a=amount_a, amount_b=amount_b)


def mint_liquidity_initial(*, amount0: int, amount1: int, min_lock: int = MINIMUM_LIQUIDITY) -> tuple[int, int]:
    """
    First deposit into an empty pair.

    Returns (liquidity_minted_to_depositor, total_supply_including_lock).
    """
    _require_int("amount0", amount0)
    _require_int("amount1", amount1)
    _require_int("min_lock", min_lock)
    if amount0 <= 0 or amount1 <= 0:
        raise ValueError("initial amounts must be positive")
    if min_lock <= 0:
        raise ValueError("min_lock must be positive")

    sqrt_product = math.isqrt(amount0 * amount1)
    if sqrt_product <= min_lock:
        raise ValueError("insufficient liquidity minted (sqrt(amount0*amount1) <= MINIMUM_LIQUIDITY)")

    minted = sqrt_product - min_lock
    return minted, minted + min_lock


def mint_liquidity_proportional(
    *,
    amount0: int,
    amount1: int,
    reserve0: int,
    reserve1: int,
    total_supply: int,
) -> int:
    """
    Credit for a deposit into a live pair:
        min(floor(amount0 * total_supply / reserve0), floor(amount1 * total_supply / reserve1))
    """
    for name, v in (
        ("amount0", amount0),
        ("amount1", amount1),
        ("reserve0", reserve0),
        ("reserve1", reserve1),
        ("total_supply", total_supply),
    ):
        _require_int(name, v)
    if amount0 < 0 or amount1 < 0:
        raise ValueError("deposit amounts must be non-negative")
    if reserve0 <= 0 or reserve1 <= 0:
        raise ValueError("cannot mint into an empty pair when total_supply > 0")
    if total_supply <= 0:
        raise ValueError("total_supply must be positive")

    minted = min((amount0 * total_supply) // reserve0, (amount1 * total_supply) // reserve1)
    if minted <= 0:
        raise ValueError("insufficient liquidity minted (deposit too small)")
    return minted
