# [TESTER] v1

from __future__ import annotations

import pytest

from cpswap.state.tokens import Token, TokenList, format_units, parse_units


@pytest.mark.parametrize(
    "text,decimals,expected",
    [
        ("1", 18, 10**18),
        ("1.5", 6, 1_500_000),
        (".25", 2, 25),
        ("0.000001", 6, 1),
        ("1.500", 1, 15),
        ("1_000", 0, 1000),
    ],
)
def test_parse_units(text: str, decimals: int, expected: int) -> None:
    assert parse_units(text, decimals) == expected


@pytest.mark.parametrize("text", ["", ".", "1.2.3", "-1", "1e6", "abc"])
def test_parse_units_rejects_malformed(text: str) -> None:
    with pytest.raises(ValueError):
        parse_units(text, 6)


def test_parse_units_never_rounds() -> None:
    with pytest.raises(ValueError, match="too many decimal places"):
        parse_units("0.0000001", 6)


def test_format_units() -> None:
    assert format_units(1_500_000, 6) == "1.5"
    assert format_units(1, 6) == "0.000001"
    assert format_units(10**18, 18) == "1"
    assert format_units(7, 0) == "7"


def test_token_list_resolves_symbols() -> None:
    tokens = TokenList.from_entries(
        [
            {"id": "0xusdc", "symbol": "USDC", "decimals": 6},
            {"id": "0xweth", "symbol": "WETH"},
        ]
    )
    assert len(tokens) == 2
    assert tokens.resolve("usdc") == "0xusdc"
    assert tokens.resolve("0xweth") == "0xweth"
    assert tokens.resolve("0xother") == "0xother"
    assert tokens.get("0xweth").decimals == 18
    assert [t.symbol for t in tokens] == ["USDC", "WETH"]
    assert Token("0xusdc", "USDC", 6).parse("2.5") == 2_500_000


def test_token_list_rejects_duplicates() -> None:
    with pytest.raises(ValueError, match="duplicate token symbol"):
        TokenList([Token("a", "X", 1), Token("b", "x", 1)])
    with pytest.raises(ValueError, match="decimals"):
        Token("a", "X", 78)
