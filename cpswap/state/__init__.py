"""
State management for cpswap pairs and ledgers
"""

from .balances import AllowanceTable, BalanceTable, ZERO_ADDRESS
from .lp import LPTable
from .pairs import PairKey, PairState, compute_pair_id, sort_tokens
from .reserves import InMemoryReserveStore, ReserveStore
from .tokens import Token, TokenList, format_units, parse_units

__all__ = [
    "AllowanceTable",
    "BalanceTable",
    "ZERO_ADDRESS",
    "LPTable",
    "PairKey",
    "PairState",
    "compute_pair_id",
    "sort_tokens",
    "InMemoryReserveStore",
    "ReserveStore",
    "Token",
    "TokenList",
    "format_units",
    "parse_units",
]
