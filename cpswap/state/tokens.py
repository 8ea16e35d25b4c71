"""
Token metadata and exact decimal <-> smallest-unit conversion.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Mapping, Optional

from .balances import Amount, TokenId


MAX_DECIMALS = 77  # 10**77 still fits a uint256

_UNITS_RE = re.compile(r"^(?P<whole>[0-9]*)(?:\.(?P<frac>[0-9]*))?$")


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


@dataclass(frozen=True)
class Token:
    token_id: TokenId
    symbol: str
    decimals: int

    def __post_init__(self) -> None:
        if not isinstance(self.token_id, str) or not self.token_id:
            raise ValueError("token_id must be a non-empty string")
        if not isinstance(self.symbol, str) or not self.symbol.strip():
            raise ValueError("symbol must be a non-empty string")
        _require_int("decimals", self.decimals)
        if not (0 <= self.decimals <= MAX_DECIMALS):
            raise ValueError(f"decimals must be in [0, {MAX_DECIMALS}]: {self.decimals}")

    def parse(self, text: str) -> Amount:
        return parse_units(text, self.decimals)

    def format(self, amount: Amount) -> str:
        return format_units(amount, self.decimals)


def parse_units(text: str, decimals: int) -> Amount:
    """
    Convert a decimal string ("1.5") into an integer amount of smallest units.

    Exact: more fractional digits than `decimals` is an error, never rounded.
    """
    if not isinstance(text, str):
        raise TypeError("text must be a string")
    _require_int("decimals", decimals)
    if not (0 <= decimals <= MAX_DECIMALS):
        raise ValueError(f"decimals must be in [0, {MAX_DECIMALS}]: {decimals}")

    s = text.strip().replace("_", "")
    m = _UNITS_RE.fullmatch(s)
    if m is None:
        raise ValueError(f"invalid amount: {text!r}")
    whole = m.group("whole") or ""
    frac = m.group("frac") or ""
    if not whole and not frac:
        raise ValueError(f"invalid amount: {text!r}")
    frac = frac.rstrip("0")
    if len(frac) > decimals:
        raise ValueError(f"too many decimal places for {decimals}-decimal token: {text!r}")

    return int(whole or "0") * 10**decimals + int(frac.ljust(decimals, "0") or "0")


def format_units(amount: Amount, decimals: int) -> str:
    """Render an integer amount of smallest units as a trimmed decimal string."""
    _require_int("amount", amount)
    _require_int("decimals", decimals)
    if not (0 <= decimals <= MAX_DECIMALS):
        raise ValueError(f"decimals must be in [0, {MAX_DECIMALS}]: {decimals}")

    sign = "-" if amount < 0 else ""
    whole, frac = divmod(abs(amount), 10**decimals)
    if decimals == 0 or frac == 0:
        return f"{sign}{whole}"
    frac_s = str(frac).rjust(decimals, "0").rstrip("0")
    return f"{sign}{whole}.{frac_s}"


class TokenList:
    """Ordered token metadata, indexed by id and by (case-insensitive) symbol."""

    def __init__(self, tokens: Iterable[Token] = ()) -> None:
        self._by_id: Dict[TokenId, Token] = {}
        self._order: List[TokenId] = []
        for token in tokens:
            self.add(token)

    def add(self, token: Token) -> None:
        if token.token_id in self._by_id:
            raise ValueError(f"duplicate token id: {token.token_id}")
        if self.by_symbol(token.symbol) is not None:
            raise ValueError(f"duplicate token symbol: {token.symbol}")
        self._by_id[token.token_id] = token
        self._order.append(token.token_id)

    def get(self, token_id: TokenId) -> Token:
        try:
            return self._by_id[token_id]
        except KeyError:
            raise KeyError(f"unknown token: {token_id}") from None

    def by_symbol(self, symbol: str) -> Optional[Token]:
        wanted = symbol.strip().upper()
        for token in self._by_id.values():
            if token.symbol.upper() == wanted:
                return token
        return None

    def resolve(self, ref: str) -> TokenId:
        """Map a token id or symbol to a token id; unknown refs pass through unchanged."""
        if ref in self._by_id:
            return ref
        token = self.by_symbol(ref)
        return token.token_id if token is not None else ref

    @classmethod
    def from_entries(cls, entries: Iterable[Mapping[str, object]]) -> "TokenList":
        tokens = []
        for i, entry in enumerate(entries):
            if not isinstance(entry, Mapping):
                raise ValueError(f"tokens[{i}] must be a mapping")
            token_id = entry.get("id")
            symbol = entry.get("symbol")
            decimals = entry.get("decimals", 18)
            if not isinstance(token_id, str) or not isinstance(symbol, str):
                raise ValueError(f"tokens[{i}] needs string 'id' and 'symbol'")
            if not isinstance(decimals, int) or isinstance(decimals, bool):
                raise ValueError(f"tokens[{i}].decimals must be an int")
            tokens.append(Token(token_id=token_id, symbol=symbol, decimals=decimals))
        return cls(tokens)

    def __iter__(self) -> Iterator[Token]:
        return (self._by_id[tid] for tid in self._order)

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, token_id: object) -> bool:
        return token_id in self._by_id
