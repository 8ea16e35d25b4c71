"""
Ledger snapshot encoding.

Goals:
- Deterministic JSON serialization for hashing and for CLI state files.
- Round-trippable into an `InMemoryLedger` plus its `PairRegistry`.
- Explicit versioning.

Files ending in .yaml/.yml are written and read as YAML, everything else as
JSON. Both decode to the same mapping.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Set, Tuple, Union

import yaml

from ..core.registry import PairRegistry
from ..state.canonical import canonical_json_bytes, tagged_digest
from ..state.pairs import compute_pair_id
from .memory_ledger import InMemoryLedger


LEDGER_SNAPSHOT_VERSION = 1

_YAML_SUFFIXES = (".yaml", ".yml")


def _require_str(value: Any, *, name: str, max_len: int = 512) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a string")
    if not value:
        raise ValueError(f"{name} must be non-empty")
    if len(value) > max_len:
        raise ValueError(f"{name} too large")
    return value


def _require_int(value: Any, *, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative")
    return int(value)


def _entries(snapshot: Mapping[str, Any], name: str, *, max_entries: int) -> List[Mapping[str, Any]]:
    entries = snapshot.get(name)
    if entries is None:
        return []
    if not isinstance(entries, list):
        raise TypeError(f"snapshot.{name} must be a list")
    if len(entries) > max_entries:
        raise ValueError(f"too many {name} entries: {len(entries)} > {max_entries}")
    for entry in entries:
        if not isinstance(entry, Mapping):
            raise TypeError(f"snapshot.{name} entries must be objects")
    return entries


@dataclass(frozen=True)
class LedgerSnapshot:
    """
    Deterministic, versioned snapshot of an `InMemoryLedger`.

    The commitment is not included inside `data` to avoid self-reference.
    """

    version: int
    data: Dict[str, Any]

    def canonical_bytes(self) -> bytes:
        return canonical_json_bytes(self.data)

    def commitment_bytes(self) -> bytes:
        return tagged_digest("ledger_snapshot", self.canonical_bytes(), version=self.version)

    def commitment_hex(self) -> str:
        return "0x" + self.commitment_bytes().hex()


def snapshot_from_ledger(ledger: InMemoryLedger, *, version: int = LEDGER_SNAPSHOT_VERSION) -> LedgerSnapshot:
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("version must be a positive int")

    pairs_entries = [
        {
            "pair_id": p.pair_id,
            "token0": p.token0,
            "token1": p.token1,
            "reserve0": int(p.reserve0),
            "reserve1": int(p.reserve1),
        }
        for p in ledger.pair_states()
    ]

    balances_entries = [
        {"account": account, "token": token, "amount": int(amount)}
        for (account, token), amount in ledger.balances.get_all_balances().items()
    ]
    balances_entries.sort(key=lambda e: (e["account"], e["token"]))

    allowance_entries = [
        {"owner": owner, "spender": spender, "token": token, "amount": int(amount)}
        for (owner, spender, token), amount in ledger.allowances.get_all().items()
    ]
    allowance_entries.sort(key=lambda e: (e["owner"], e["spender"], e["token"]))

    native_entries = [
        {"account": account, "amount": int(amount)}
        for (account, _asset), amount in ledger.native.get_all_balances().items()
    ]
    native_entries.sort(key=lambda e: e["account"])

    lp_entries = [
        {"account": account, "pair_id": pair_id, "amount": int(amount)}
        for (account, pair_id), amount in ledger.lp.get_all_balances().items()
    ]
    lp_entries.sort(key=lambda e: (e["account"], e["pair_id"]))

    data: Dict[str, Any] = {
        "version": int(version),
        "wrapped_token": ledger.token,
        "pairs": pairs_entries,
        "balances": balances_entries,
        "allowances": allowance_entries,
        "native": native_entries,
        "lp_balances": lp_entries,
    }
    return LedgerSnapshot(version=version, data=data)


def ledger_from_snapshot(
    snapshot: Union[LedgerSnapshot, Mapping[str, Any]],
    *,
    max_pairs: int = 50_000,
    max_entries: int = 200_000,
) -> Tuple[InMemoryLedger, PairRegistry]:
    """
    Rebuild a ledger and its registry.

    Pair ids are recomputed from the token pair and must match the stored id;
    each pair's custody balances must cover its reserves.
    """
    if isinstance(snapshot, LedgerSnapshot):
        snapshot = snapshot.data
    if not isinstance(snapshot, Mapping):
        raise TypeError("snapshot must be a mapping")

    version = snapshot.get("version", LEDGER_SNAPSHOT_VERSION)
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("snapshot.version must be a positive int")
    if version != LEDGER_SNAPSHOT_VERSION:
        raise ValueError(f"unsupported snapshot version: {version}")

    wrapped = _require_str(snapshot.get("wrapped_token", "WETH"), name="wrapped_token")
    ledger = InMemoryLedger(wrapped_token=wrapped)
    registry = PairRegistry(ledger, ledger)

    seen_balances: Set[Tuple[str, str]] = set()
    for entry in _entries(snapshot, "balances", max_entries=max_entries):
        account = _require_str(entry.get("account"), name="balance.account")
        token = _require_str(entry.get("token"), name="balance.token")
        amount = _require_int(entry.get("amount"), name="balance.amount")
        if (account, token) in seen_balances:
            raise ValueError("duplicate balance entry (account, token)")
        seen_balances.add((account, token))
        ledger.balances.set(account, token, amount)

    reserves: Dict[str, Tuple[int, int]] = {}
    for entry in _entries(snapshot, "pairs", max_entries=max_pairs):
        pair_id = _require_str(entry.get("pair_id"), name="pair.pair_id")
        token0 = _require_str(entry.get("token0"), name="pair.token0")
        token1 = _require_str(entry.get("token1"), name="pair.token1")
        if pair_id in reserves:
            raise ValueError(f"duplicate pair entry: {pair_id}")
        if token0 >= token1:
            raise ValueError(f"pair {pair_id} tokens not in canonical order")
        if compute_pair_id(token0, token1) != pair_id:
            raise ValueError(f"pair id mismatch for ({token0}, {token1})")
        reserve0 = _require_int(entry.get("reserve0", 0), name="pair.reserve0")
        reserve1 = _require_int(entry.get("reserve1", 0), name="pair.reserve1")
        if ledger.balance_of(pair_id, token0) < reserve0 or ledger.balance_of(pair_id, token1) < reserve1:
            raise ValueError(f"pair {pair_id} custody does not cover its reserves")
        registry.get_or_create(token0, token1)
        ledger.set_reserves(pair_id, reserve0, reserve1)
        reserves[pair_id] = (reserve0, reserve1)

    seen_allowances: Set[Tuple[str, str, str]] = set()
    for entry in _entries(snapshot, "allowances", max_entries=max_entries):
        owner = _require_str(entry.get("owner"), name="allowance.owner")
        spender = _require_str(entry.get("spender"), name="allowance.spender")
        token = _require_str(entry.get("token"), name="allowance.token")
        amount = _require_int(entry.get("amount"), name="allowance.amount")
        if (owner, spender, token) in seen_allowances:
            raise ValueError("duplicate allowance entry (owner, spender, token)")
        seen_allowances.add((owner, spender, token))
        ledger.allowances.set(owner, spender, token, amount)

    seen_native: Set[str] = set()
    for entry in _entries(snapshot, "native", max_entries=max_entries):
        account = _require_str(entry.get("account"), name="native.account")
        amount = _require_int(entry.get("amount"), name="native.amount")
        if account in seen_native:
            raise ValueError("duplicate native entry (account)")
        seen_native.add(account)
        ledger.credit_native(account, amount)

    seen_lp: Set[Tuple[str, str]] = set()
    for entry in _entries(snapshot, "lp_balances", max_entries=max_entries):
        account = _require_str(entry.get("account"), name="lp.account")
        pair_id = _require_str(entry.get("pair_id"), name="lp.pair_id")
        amount = _require_int(entry.get("amount"), name="lp.amount")
        if pair_id not in reserves:
            raise ValueError(f"lp entry references unknown pair: {pair_id}")
        if (account, pair_id) in seen_lp:
            raise ValueError("duplicate lp entry (account, pair_id)")
        seen_lp.add((account, pair_id))
        ledger.lp.set(account, pair_id, amount)

    return ledger, registry


def load_snapshot(path: Union[str, Path]) -> LedgerSnapshot:
    p = Path(path)
    raw = p.read_text(encoding="utf-8")
    if p.suffix.lower() in _YAML_SUFFIXES:
        try:
            data = yaml.safe_load(raw)
        except yaml.YAMLError as exc:
            raise ValueError(f"{p}: invalid YAML: {exc}") from exc
    else:
        data = json.loads(raw)
    if not isinstance(data, dict):
        raise TypeError(f"{p}: snapshot must be a mapping")
    version = data.get("version", LEDGER_SNAPSHOT_VERSION)
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("snapshot.version must be a positive int")
    return LedgerSnapshot(version=version, data=data)


def dump_snapshot(snapshot: LedgerSnapshot, path: Union[str, Path]) -> None:
    p = Path(path)
    if p.suffix.lower() in _YAML_SUFFIXES:
        text = yaml.safe_dump(snapshot.data, sort_keys=True, default_flow_style=False)
    else:
        text = json.dumps(snapshot.data, sort_keys=True, indent=2) + "\n"
    p.write_text(text, encoding="utf-8")
