# [TESTER] v1

from __future__ import annotations

import pytest

from cpswap.core.errors import LiquidityError, ValidationError
from cpswap.core.pricing import (
    deadline_after,
    get_amount_in,
    get_amount_out,
    get_amounts_in,
    get_amounts_out,
    min_amount_out,
    quote,
    validate_path,
)
from cpswap.core.registry import PairRegistry
from cpswap.state.reserves import InMemoryReserveStore


def _market(*pairs):
    store = InMemoryReserveStore()
    registry = PairRegistry(store)
    for token_a, token_b, reserve_a, reserve_b in pairs:
        pid = registry.get_or_create(token_a, token_b)
        if registry.key_of(pid).token0 == token_a:
            store.set_reserves(pid, reserve_a, reserve_b)
        else:
            store.set_reserves(pid, reserve_b, reserve_a)
    return store, registry


def test_get_amount_out_concrete_case() -> None:
    assert get_amount_out(100, 1000, 1000) == 90


def test_get_amount_out_rejects_non_positive_input() -> None:
    with pytest.raises(ValidationError):
        get_amount_out(0, 1000, 1000)


@pytest.mark.parametrize("reserves", [(0, 1000), (1000, 0), (0, 0)])
def test_get_amount_out_requires_liquidity(reserves) -> None:
    with pytest.raises(LiquidityError):
        get_amount_out(100, *reserves)


def test_get_amount_in_inverts_get_amount_out() -> None:
    assert get_amount_in(90, 1000, 1000) == 100
    with pytest.raises(LiquidityError):
        get_amount_in(1000, 1000, 1000)


def test_quote_requires_both_reserves() -> None:
    assert quote(100, 1000, 2000) == 200
    with pytest.raises(LiquidityError):
        quote(100, 0, 2000)


def test_validate_path() -> None:
    assert validate_path(["A", "B"]) == ("A", "B")
    with pytest.raises(ValidationError, match="at least 2"):
        validate_path(["A"])
    with pytest.raises(ValidationError, match="identical"):
        validate_path(["A", "A"])
    with pytest.raises(ValidationError, match="exceeds"):
        validate_path(["A", "B", "C"], max_length=2)
    with pytest.raises(ValidationError):
        validate_path("AB")


def test_get_amounts_out_multi_hop() -> None:
    store, registry = _market(("A", "B", 1000, 1000), ("C", "B", 1000, 1000))
    assert get_amounts_out(store, registry, 100, ["A", "B", "C"]) == [100, 90, 82]


def test_get_amounts_out_orients_reversed_pairs() -> None:
    store, registry = _market(("A", "B", 1000, 2000))
    assert get_amounts_out(store, registry, 100, ["B", "A"]) == [100, get_amount_out(100, 2000, 1000)]
    assert get_amounts_out(store, registry, 100, ["A", "B"]) == [100, get_amount_out(100, 1000, 2000)]


def test_get_amounts_out_unknown_or_empty_pair() -> None:
    store, registry = _market(("A", "B", 1000, 1000))
    with pytest.raises(LiquidityError):
        get_amounts_out(store, registry, 100, ["A", "C"])
    registry.get_or_create("A", "D")
    with pytest.raises(LiquidityError):
        get_amounts_out(store, registry, 100, ["A", "D"])


def test_get_amounts_out_zero_intermediate_output() -> None:
    store, registry = _market(("A", "B", 1_000_000, 10), ("B", "C", 1000, 1000))
    with pytest.raises(LiquidityError, match="next hop"):
        get_amounts_out(store, registry, 1, ["A", "B", "C"])


def test_get_amounts_out_short_path() -> None:
    store, registry = _market(("A", "B", 1000, 1000))
    with pytest.raises(ValidationError):
        get_amounts_out(store, registry, 100, ["A"])


def test_get_amounts_in_multi_hop() -> None:
    store, registry = _market(("A", "B", 1000, 1000), ("B", "C", 1000, 1000))
    amounts = get_amounts_in(store, registry, 82, ["A", "B", "C"])
    assert amounts[-1] == 82
    assert get_amounts_out(store, registry, amounts[0], ["A", "B", "C"])[-1] >= 82


def test_min_amount_out_and_deadline() -> None:
    assert min_amount_out(1000, 50) == 995
    assert min_amount_out(90, 0) == 90
    assert min_amount_out(90, 10_000) == 0
    with pytest.raises(ValidationError):
        min_amount_out(90, 10_001)
    assert deadline_after(1000, 1200) == 2200
    with pytest.raises(ValidationError):
        deadline_after(1000, 0)
