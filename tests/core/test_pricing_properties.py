# [TESTER] v1

from __future__ import annotations

import importlib.util

import pytest

if importlib.util.find_spec("hypothesis") is None:  # pragma: no cover
    pytest.skip("hypothesis not installed", allow_module_level=True)

import hypothesis.strategies as st
from hypothesis import given, settings

from cpswap.core.errors import LiquidityError
from cpswap.core.pricing import get_amount_in, get_amount_out, get_amounts_out
from cpswap.core.registry import PairRegistry
from cpswap.state.reserves import InMemoryReserveStore

reserves = st.integers(min_value=1, max_value=10**30)
amounts = st.integers(min_value=1, max_value=10**30)


@given(amount_in=amounts, reserve_in=reserves, reserve_out=reserves)
@settings(max_examples=300)
def test_output_is_below_reserve_and_product_never_shrinks(amount_in, reserve_in, reserve_out) -> None:
    out = get_amount_out(amount_in, reserve_in, reserve_out)
    assert 0 <= out < reserve_out
    assert (reserve_in + amount_in) * (reserve_out - out) >= reserve_in * reserve_out


@given(amount_in=amounts, extra=amounts, reserve_in=reserves, reserve_out=reserves)
@settings(max_examples=200)
def test_output_is_monotonic_in_input(amount_in, extra, reserve_in, reserve_out) -> None:
    assert get_amount_out(amount_in + extra, reserve_in, reserve_out) >= get_amount_out(amount_in, reserve_in, reserve_out)


@given(reserve_in=reserves, reserve_out=st.integers(min_value=2, max_value=10**30), data=st.data())
@settings(max_examples=200)
def test_amount_in_buys_at_least_amount_out(reserve_in, reserve_out, data) -> None:
    amount_out = data.draw(st.integers(min_value=1, max_value=reserve_out - 1))
    amount_in = get_amount_in(amount_out, reserve_in, reserve_out)
    assert get_amount_out(amount_in, reserve_in, reserve_out) >= amount_out


@given(
    small=st.integers(min_value=1, max_value=10**12),
    extra=st.integers(min_value=0, max_value=10**12),
    r=st.lists(st.integers(min_value=10**6, max_value=10**18), min_size=4, max_size=4),
)
@settings(max_examples=100)
def test_multi_hop_quote_is_monotonic(small, extra, r) -> None:
    store = InMemoryReserveStore()
    registry = PairRegistry(store)
    store.set_reserves(registry.get_or_create("A", "B"), r[0], r[1])
    store.set_reserves(registry.get_or_create("B", "C"), r[2], r[3])

    try:
        lo = get_amounts_out(store, registry, small, ["A", "B", "C"])
    except LiquidityError:
        # A zero intermediate hop has no defined continuation.
        return
    hi = get_amounts_out(store, registry, small + extra, ["A", "B", "C"])
    assert len(lo) == 3
    assert all(h >= l for h, l in zip(hi, lo))
