"""Tests for environment-backed settings."""

from __future__ import annotations

import pytest

from sui_kit.settings import DEFAULT_GAS_BUDGET, NETWORK_PRESETS, SuiKitSettings


def test_defaults_point_at_devnet() -> None:
    settings = SuiKitSettings()
    assert settings.network == "devnet"
    assert settings.effective_fullnode_url == NETWORK_PRESETS["devnet"][0]
    assert settings.effective_faucet_url == NETWORK_PRESETS["devnet"][1]
    assert settings.gas_budget == DEFAULT_GAS_BUDGET
    assert settings.sui_bin == "sui"
    assert settings.mnemonics is None and settings.secret_key is None


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SUI_KIT_NETWORK", " Testnet ")
    monkeypatch.setenv("SUI_KIT_FULLNODE_URL", "http://node.local:9000")
    monkeypatch.setenv("SUI_KIT_SUI_BIN", "cargo run --bin sui")
    monkeypatch.setenv("SUI_KIT_GAS_BUDGET", "50_000_000")
    monkeypatch.setenv("SUI_KIT_REQUEST_TIMEOUT", "2.5")

    settings = SuiKitSettings()

    assert settings.network == "testnet"
    assert settings.effective_fullnode_url == "http://node.local:9000"
    assert settings.effective_faucet_url == NETWORK_PRESETS["testnet"][1]
    assert settings.sui_bin == "cargo run --bin sui"
    assert settings.gas_budget == 50_000_000
    assert settings.request_timeout == 2.5


def test_mainnet_has_no_faucet() -> None:
    assert SuiKitSettings(network="mainnet").effective_faucet_url is None


@pytest.mark.parametrize("raw", ["not-a-number", "0", "-10", ""])
def test_malformed_gas_budget_falls_back(monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
    monkeypatch.setenv("SUI_KIT_GAS_BUDGET", raw)
    assert SuiKitSettings().gas_budget == DEFAULT_GAS_BUDGET


def test_unknown_network_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SUI_KIT_NETWORK", "moonnet")
    with pytest.raises(ValueError):
        SuiKitSettings()
