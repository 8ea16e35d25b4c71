"""
Runtime configuration for the swap and liquidity engines.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional


DEFAULT_ENGINE_ADDRESS = "cpswap-router"
DEFAULT_SLIPPAGE_BPS = 50
DEFAULT_DEADLINE_SECONDS = 1200
DEFAULT_MAX_PATH_LENGTH = 8


def _env_int(env: Mapping[str, str], name: str, default: int, *, lo: int, hi: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return int(default)
    try:
        v = int(raw.strip())
    except ValueError:
        return int(default)
    if v < lo:
        return int(lo)
    if v > hi:
        return int(hi)
    return int(v)


def _env_str(env: Mapping[str, str], name: str, default: str) -> str:
    raw = env.get(name)
    if raw is None:
        return default
    v = raw.strip()
    return v if v else default


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class EngineConfig:
    # Token id of the wrapped native asset. Empty means "take it from the
    # injected WrappedNative collaborator"; native variants fail without one.
    wrapped_native: str = ""

    # Account the engine acts as when it pulls tokens (allowance spender)
    # and when it wraps/unwraps native funds in flight.
    engine_address: str = DEFAULT_ENGINE_ADDRESS

    # Caller-side defaults (used by the CLI and `min_amount_out` helpers).
    default_slippage_bps: int = DEFAULT_SLIPPAGE_BPS
    deadline_seconds: int = DEFAULT_DEADLINE_SECONDS

    # If True, re-read reserves after acquiring the path's pairs and re-check
    # the minimum output before any transfer. Off by default: the quote taken
    # at Quote time is the one that is executed.
    requote_on_settle: bool = False

    # DoS limit on hops per swap.
    max_path_length: int = DEFAULT_MAX_PATH_LENGTH

    def __post_init__(self) -> None:
        if not isinstance(self.engine_address, str) or not self.engine_address:
            raise ValueError("engine_address must be a non-empty string")
        if not (0 <= self.default_slippage_bps <= 10_000):
            raise ValueError(f"default_slippage_bps must be in [0, 10000]: {self.default_slippage_bps}")
        if self.deadline_seconds <= 0:
            raise ValueError(f"deadline_seconds must be positive: {self.deadline_seconds}")
        if self.max_path_length < 2:
            raise ValueError(f"max_path_length must be >= 2: {self.max_path_length}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        """
        Build a config from CPSWAP_* environment variables.

        Out-of-range integers are clamped, unparsable ones fall back to defaults.
        """
        env = os.environ if environ is None else environ
        return cls(
            wrapped_native=_env_str(env, "CPSWAP_WRAPPED_NATIVE", ""),
            engine_address=_env_str(env, "CPSWAP_ENGINE_ADDRESS", DEFAULT_ENGINE_ADDRESS),
            default_slippage_bps=_env_int(env, "CPSWAP_SLIPPAGE_BPS", DEFAULT_SLIPPAGE_BPS, lo=0, hi=10_000),
            deadline_seconds=_env_int(env, "CPSWAP_DEADLINE_SECONDS", DEFAULT_DEADLINE_SECONDS, lo=1, hi=86_400),
            requote_on_settle=_env_bool(env, "CPSWAP_REQUOTE_ON_SETTLE", False),
            max_path_length=_env_int(env, "CPSWAP_MAX_PATH_LENGTH", DEFAULT_MAX_PATH_LENGTH, lo=2, hi=64),
        )
