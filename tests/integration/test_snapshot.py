# [TESTER] v1

from __future__ import annotations

import pytest

from cpswap.core.pricing import get_amount_out
from cpswap.integration.snapshot import (
    dump_snapshot,
    ledger_from_snapshot,
    load_snapshot,
    snapshot_from_ledger,
)


def _populated(env):
    env.fund("lp", "A", 100_000)
    env.fund("lp", "B", 500)
    env.liquidity.add_liquidity("A", "B", 100_000, 500, "lp", sender="lp")
    env.fund("alice", "A", 1000)
    env.engine.swap_exact_tokens_for_tokens(1000, 0, ["A", "B"], "alice", env.deadline, sender="alice")
    env.ledger.credit_native("alice", 7)
    return env


def test_snapshot_roundtrip_is_deterministic(env) -> None:
    _populated(env)
    snap1 = snapshot_from_ledger(env.ledger)

    ledger2, registry2 = ledger_from_snapshot(snap1)
    snap2 = snapshot_from_ledger(ledger2)

    assert snap1.canonical_bytes() == snap2.canonical_bytes()
    assert snap1.commitment_hex() == snap2.commitment_hex()
    assert registry2.lookup("B", "A") == env.registry.lookup("A", "B")
    assert ledger2.native_balance_of("alice") == 7


def test_commitment_changes_with_state(env) -> None:
    _populated(env)
    before = snapshot_from_ledger(env.ledger).commitment_hex()
    env.ledger.credit("alice", "A", 1)
    assert snapshot_from_ledger(env.ledger).commitment_hex() != before


@pytest.mark.parametrize("name", ["state.json", "state.yaml"])
def test_dump_and_load(env, tmp_path, name) -> None:
    _populated(env)
    snap = snapshot_from_ledger(env.ledger)
    path = tmp_path / name
    dump_snapshot(snap, path)

    loaded = load_snapshot(path)
    assert loaded.data == snap.data
    assert loaded.commitment_hex() == snap.commitment_hex()


def test_restored_ledger_keeps_trading(env) -> None:
    _populated(env)
    ledger2, registry2 = ledger_from_snapshot(snapshot_from_ledger(env.ledger).data)
    pid = registry2.pair_for("A", "B")
    reserve_a, reserve_b = ledger2.get_reserves(pid)
    out = get_amount_out(1000, reserve_a, reserve_b)

    ledger2.credit(pid, "A", 1000)
    ledger2.pair(pid).swap(0, out, "bob")

    assert out > 0
    assert ledger2.get_reserves(pid) == (reserve_a + 1000, reserve_b - out)


def test_tampered_pair_id_rejected(env) -> None:
    _populated(env)
    data = snapshot_from_ledger(env.ledger).data
    data["pairs"][0]["pair_id"] = "0x" + "ab" * 32
    with pytest.raises(ValueError, match="pair id mismatch"):
        ledger_from_snapshot(data)


def test_reserves_must_be_backed_by_custody(env) -> None:
    _populated(env)
    data = snapshot_from_ledger(env.ledger).data
    data["pairs"][0]["reserve0"] += 1
    with pytest.raises(ValueError, match="custody"):
        ledger_from_snapshot(data)


def test_unsupported_version_rejected() -> None:
    with pytest.raises(ValueError, match="unsupported"):
        ledger_from_snapshot({"version": 2})


def test_duplicate_entries_rejected(env) -> None:
    _populated(env)
    data = snapshot_from_ledger(env.ledger).data
    data["balances"].append(dict(data["balances"][0]))
    with pytest.raises(ValueError, match="duplicate"):
        ledger_from_snapshot(data)
