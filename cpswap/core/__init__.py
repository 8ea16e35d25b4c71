"""
Core swap and liquidity engines
"""

from .config import EngineConfig
from .errors import (
    AmmError,
    ExpiredError,
    InvariantError,
    LiquidityError,
    SlippageError,
    TransferError,
    ValidationError,
)
from .interfaces import AssetLedger, ExecutionContext, NullExecutionContext, PairContract, PairFactory, WrappedNative
from .liquidity import LiquidityManager, LiquidityResult, compute_liquidity_amounts
from .locks import PairLocks
from .pricing import (
    deadline_after,
    get_amount_in,
    get_amount_out,
    get_amounts_in,
    get_amounts_out,
    min_amount_out,
    quote,
)
from .registry import PairRegistry
from .router import HopPlan, SwapEngine, SwapKind, SwapPhase, SwapRequest, SwapRun

__all__ = [
    "EngineConfig",
    "AmmError",
    "ExpiredError",
    "InvariantError",
    "LiquidityError",
    "SlippageError",
    "TransferError",
    "ValidationError",
    "AssetLedger",
    "ExecutionContext",
    "NullExecutionContext",
    "PairContract",
    "PairFactory",
    "WrappedNative",
    "LiquidityManager",
    "LiquidityResult",
    "compute_liquidity_amounts",
    "PairLocks",
    "deadline_after",
    "get_amount_in",
    "get_amount_out",
    "get_amounts_in",
    "get_amounts_out",
    "min_amount_out",
    "quote",
    "PairRegistry",
    "HopPlan",
    "SwapEngine",
    "SwapKind",
    "SwapPhase",
    "SwapRequest",
    "SwapRun",
]
