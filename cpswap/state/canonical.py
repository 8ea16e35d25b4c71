"""
Canonical bytes for hashing.

Two things are hashed: pair identities (`compute_pair_id`) and ledger
snapshots (`LedgerSnapshot.commitment_hex`). Both prefix their payload with a
domain tag so a pair id can never collide with a snapshot commitment.

Snapshot payloads only ever hold str keys, ints, strs, bools, None and lists
of those. Anything else (floats in particular) is a caller bug and raises
TypeError instead of being silently encoded.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any


DOMAIN_PREFIX = b"cpswap:"

_SCALARS = (str, int, bool, type(None))


def _check_value(value: Any, where: str) -> None:
    if isinstance(value, float):
        raise TypeError(f"floats are not allowed in canonical encoding (at {where})")
    if isinstance(value, str):
        # lone surrogates do not encode to UTF-8
        if any(0xD800 <= ord(ch) <= 0xDFFF for ch in value):
            raise TypeError(f"surrogate code point in canonical encoding (at {where})")
        return
    if isinstance(value, _SCALARS):
        return
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"dict keys must be str for canonical encoding (at {where})")
            _check_value(key, where)
            _check_value(item, f"{where}.{key}")
        return
    if isinstance(value, (list, tuple)):
        for i, item in enumerate(value):
            _check_value(item, f"{where}[{i}]")
        return
    raise TypeError(f"unsupported type {type(value).__name__} in canonical encoding (at {where})")


def canonical_json_bytes(value: Any) -> bytes:
    """Sorted-key, whitespace-free UTF-8 JSON."""
    _check_value(value, "$")
    return json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    ).encode("utf-8")


def sha256_hex(data: bytes) -> str:
    return "0x" + hashlib.sha256(data).hexdigest()


def domain_sep_bytes(label: str, version: int = 1) -> bytes:
    """
    Tag for a hashed payload: ``cpswap:<label>:v<version>`` followed by NUL.

    The label is ASCII without NUL so the tag always ends where the payload
    begins.
    """
    if not isinstance(label, str) or not label:
        raise TypeError("label must be a non-empty str")
    if "\x00" in label or not label.isascii():
        raise ValueError(f"label must be ASCII without NUL: {label!r}")
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("version must be a positive int")
    return DOMAIN_PREFIX + f"{label}:v{version}".encode("ascii") + b"\x00"


def tagged_digest(label: str, payload: bytes, *, version: int = 1) -> bytes:
    """sha256 over the domain tag and `payload`."""
    return hashlib.sha256(domain_sep_bytes(label, version=version) + payload).digest()
