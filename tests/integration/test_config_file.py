# [TESTER] v1

from __future__ import annotations

import logging

import pytest

from cpswap.core.config import EngineConfig
from cpswap.integration.config import ConfigError, configure_logging, load_config


def test_load_config_reads_engine_and_tokens(tmp_path) -> None:
    path = tmp_path / "cpswap.yaml"
    path.write_text(
        """
engine:
  wrapped_native: "0xweth"
  default_slippage_bps: 30
  requote_on_settle: true
tokens:
  - {id: "0xweth", symbol: WETH, decimals: 18}
  - {id: "0xusdc", symbol: USDC, decimals: 6}
""",
        encoding="utf-8",
    )
    config, tokens = load_config(path)
    assert config == EngineConfig(wrapped_native="0xweth", default_slippage_bps=30, requote_on_settle=True)
    assert tokens.resolve("USDC") == "0xusdc"
    assert tokens.get("0xusdc").parse("1.25") == 1_250_000


def test_empty_config_is_default(tmp_path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    config, tokens = load_config(path)
    assert config == EngineConfig()
    assert len(tokens) == 0


@pytest.mark.parametrize(
    "text",
    [
        "engine: {slippage: 10}\n",
        "engine: {deadline_seconds: '60'}\n",
        "engine: {requote_on_settle: 1}\n",
        "engine: {deadline_seconds: 0}\n",
        "tokens: {a: 1}\n",
        "tokens: [{id: x, symbol: X, decimals: 99}]\n",
        "engine: {wrapped_native: w}\ntokens: [{id: x, symbol: X}]\n",
        "- just\n- a list\n",
        "engine: [unclosed\n",
    ],
)
def test_bad_config_rejected(tmp_path, text) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(path)


def test_configure_logging_uses_env_level(monkeypatch) -> None:
    monkeypatch.setenv("CPSWAP_LOG_LEVEL", "debug")
    configure_logging()
    assert logging.getLogger("cpswap").level == logging.DEBUG
    configure_logging("WARNING")
    assert logging.getLogger("cpswap").level == logging.WARNING
    with pytest.raises(ConfigError):
        configure_logging("LOUD")
