"""Exception types for the swap and liquidity engines.

Every error is terminal for the current operation; retry policy belongs to
the caller. The swap engine attaches the failed ``SwapRun`` as ``err.run``.
"""

from __future__ import annotations

from typing import Any, Optional


class AmmError(Exception):
    """Base class for all engine errors."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.run: Optional[Any] = None


class ValidationError(AmmError):
    """Malformed request: identical tokens, bad address, short path, bad amounts."""


class ExpiredError(AmmError):
    """The request deadline passed before validation."""


class SlippageError(AmmError):
    """Quoted amount is below the caller's minimum."""

    def __init__(self, message: str, *, expected_min: int = 0, actual: int = 0) -> None:
        super().__init__(message)
        self.expected_min = expected_min
        self.actual = actual


class LiquidityError(AmmError):
    """Zero or insufficient reserves where a ratio or an output is required."""


class TransferError(AmmError):
    """An underlying asset movement failed (balance, allowance, native funds)."""


class InvariantError(AmmError):
    """A settlement would decrease the constant product."""
