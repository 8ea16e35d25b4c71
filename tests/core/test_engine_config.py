# [TESTER] v1

from __future__ import annotations

import pytest

from cpswap.core.config import DEFAULT_DEADLINE_SECONDS, DEFAULT_SLIPPAGE_BPS, EngineConfig


def test_defaults_match_router_ui() -> None:
    cfg = EngineConfig()
    assert cfg.default_slippage_bps == DEFAULT_SLIPPAGE_BPS == 50
    assert cfg.deadline_seconds == DEFAULT_DEADLINE_SECONDS == 1200
    assert cfg.requote_on_settle is False


def test_from_env_reads_and_clamps() -> None:
    cfg = EngineConfig.from_env(
        {
            "CPSWAP_WRAPPED_NATIVE": " 0xweth ",
            "CPSWAP_ENGINE_ADDRESS": "router-1",
            "CPSWAP_SLIPPAGE_BPS": "20000",
            "CPSWAP_DEADLINE_SECONDS": "oops",
            "CPSWAP_REQUOTE_ON_SETTLE": "yes",
            "CPSWAP_MAX_PATH_LENGTH": "1",
        }
    )
    assert cfg.wrapped_native == "0xweth"
    assert cfg.engine_address == "router-1"
    assert cfg.default_slippage_bps == 10_000
    assert cfg.deadline_seconds == DEFAULT_DEADLINE_SECONDS
    assert cfg.requote_on_settle is True
    assert cfg.max_path_length == 2


def test_from_env_empty_is_default() -> None:
    assert EngineConfig.from_env({}) == EngineConfig()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"engine_address": ""},
        {"default_slippage_bps": -1},
        {"deadline_seconds": 0},
        {"max_path_length": 1},
    ],
)
def test_invalid_config_rejected(kwargs) -> None:
    with pytest.raises(ValueError):
        EngineConfig(**kwargs)
