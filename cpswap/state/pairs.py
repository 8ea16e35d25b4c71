"""
Pair identity and state for constant-product pairs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from .balances import Amount, TokenId, ZERO_ADDRESS
from .canonical import domain_sep_bytes, sha256_hex


# Type alias
PairId = str  # 32-byte hex string (0x...)


def sort_tokens(token_a: TokenId, token_b: TokenId) -> Tuple[TokenId, TokenId]:
    """
    Return (token0, token1) in canonical order.

    Raises:
        ValueError: On identical or empty identifiers
    """
    if token_a == token_b:
        raise ValueError(f"identical tokens: {token_a!r}")
    for name, token in (("token_a", token_a), ("token_b", token_b)):
        if not isinstance(token, str) or not token:
            raise ValueError(f"{name} must be a non-empty string")
        if token == ZERO_ADDRESS:
            raise ValueError(f"{name} must not be the zero address")
    return (token_a, token_b) if token_a < token_b else (token_b, token_a)


def compute_pair_id(token0: TokenId, token1: TokenId) -> PairId:
    """
    Deterministically compute a pair_id for an ordered token pair.

        pair_id = H(domain_sep("pair") || token0 || NUL || token1)
    """
    if token0 >= token1:
        raise ValueError(f"Tokens must be in canonical order: {token0} < {token1}")
    data = (
        domain_sep_bytes("pair", version=1)
        + token0.encode("utf-8")
        + b"\x00"
        + token1.encode("utf-8")
    )
    return sha256_hex(data)


@dataclass(frozen=True)
class PairKey:
    """Canonical (token0, token1) key of a pair."""

    token0: TokenId
    token1: TokenId

    def __post_init__(self) -> None:
        if self.token0 >= self.token1:
            raise ValueError(
                f"Tokens must be in canonical order: {self.token0} < {self.token1}"
            )

    @classmethod
    def of(cls, token_a: TokenId, token_b: TokenId) -> "PairKey":
        token0, token1 = sort_tokens(token_a, token_b)
        return cls(token0, token1)

    @property
    def pair_id(self) -> PairId:
        return compute_pair_id(self.token0, self.token1)


@dataclass
class PairState:
    """
    Reserve state of one pair.

    Attributes:
        pair_id: 32-byte pair identifier (hex string)
        token0: First token (token0 < token1)
        token1: Second token
        reserve0: Reserve of token0
        reserve1: Reserve of token1
    """
    pair_id: PairId
    token0: TokenId
    token1: TokenId
    reserve0: Amount = 0
    reserve1: Amount = 0

    def __post_init__(self) -> None:
        if self.token0 >= self.token1:
            raise ValueError(
                f"Tokens must be in canonical order: {self.token0} < {self.token1}"
            )
        if self.reserve0 < 0 or self.reserve1 < 0:
            raise ValueError(
                f"Reserves must be non-negative: ({self.reserve0}, {self.reserve1})"
            )

    @property
    def key(self) -> PairKey:
        return PairKey(self.token0, self.token1)

    def __repr__(self) -> str:
        return (
            f"PairState(pair_id={self.pair_id[:16]}..., "
            f"tokens=({self.token0[:10]}..., {self.token1[:10]}...), "
            f"reserves=({self.reserve0}, {self.reserve1}))"
        )
