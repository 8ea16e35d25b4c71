"""
Configuration files and logging setup.

A config file is YAML:

    engine:
      wrapped_native: "0xc02a...cc2"
      engine_address: "router"
      default_slippage_bps: 50
      deadline_seconds: 1200
      requote_on_settle: false
      max_path_length: 8
    tokens:
      - {id: "0xc02a...cc2", symbol: WETH, decimals: 18}
      - {id: "0xa0b8...eb48", symbol: USDC, decimals: 6}

Both sections are optional. Environment variables are not consulted here;
use `EngineConfig.from_env` for that.
"""

from __future__ import annotations

import logging
import os
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml

from ..core.config import EngineConfig
from ..state.tokens import TokenList


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class ConfigError(ValueError):
    pass


def _require_mapping(obj: Any, *, name: str) -> Dict[str, Any]:
    if not isinstance(obj, dict):
        raise ConfigError(f"{name} must be a mapping")
    return obj


def engine_config_from_mapping(data: Dict[str, Any]) -> EngineConfig:
    known = {f.name for f in fields(EngineConfig)}
    unknown = sorted(set(data) - set(known))
    if unknown:
        raise ConfigError(f"unknown engine keys: {', '.join(unknown)}")
    kwargs: Dict[str, Any] = {}
    for key, value in data.items():
        default = getattr(EngineConfig, key)
        if isinstance(default, bool):
            if not isinstance(value, bool):
                raise ConfigError(f"engine.{key} must be a bool")
        elif isinstance(default, int):
            if not isinstance(value, int) or isinstance(value, bool):
                raise ConfigError(f"engine.{key} must be an int")
        elif not isinstance(value, str):
            raise ConfigError(f"engine.{key} must be a string")
        kwargs[key] = value
    try:
        return EngineConfig(**kwargs)
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc


def load_config(path: Union[str, Path]) -> Tuple[EngineConfig, TokenList]:
    raw = Path(path).read_text(encoding="utf-8")
    try:
        root = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise ConfigError(f"{path}: invalid YAML: {exc}") from exc
    if root is None:
        root = {}
    root = _require_mapping(root, name="config")

    engine = _require_mapping(root.get("engine") or {}, name="engine")
    config = engine_config_from_mapping(engine)

    entries = root.get("tokens") or []
    if not isinstance(entries, list):
        raise ConfigError("tokens must be a list")
    try:
        tokens = TokenList.from_entries(entries)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"tokens: {exc}") from exc

    if config.wrapped_native and len(tokens) and config.wrapped_native not in tokens:
        raise ConfigError(f"wrapped_native {config.wrapped_native} is not in the token list")
    return config, tokens


def configure_logging(level: Optional[Union[str, int]] = None) -> None:
    """Basic stderr logging; level defaults to CPSWAP_LOG_LEVEL, then WARNING."""
    if level is None:
        level = os.environ.get("CPSWAP_LOG_LEVEL", "").strip() or "WARNING"
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ConfigError(f"unknown log level: {level}")
        level = resolved
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("cpswap").setLevel(level)
