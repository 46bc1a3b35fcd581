"""Tests for settings configuration loading."""

from __future__ import annotations

from textwrap import dedent

import pytest
from pydantic import ValidationError as PydanticValidationError

from bridge_metrics.settings import BridgeSettings, OutputFormat, ResilienceMode


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep local or user config files and stray env vars out of the tests."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("BRIDGE_METRICS_CONFIG", raising=False)
    for name in ("BASE_URL", "API_KEY", "TIMEOUT_MS", "RESILIENCE_MODE"):
        monkeypatch.delenv(f"BRIDGE_METRICS_{name}", raising=False)


def test_defaults():
    settings = BridgeSettings()

    assert settings.base_url is None
    assert settings.timeout_ms == 10_000
    assert settings.timeout_seconds == 10.0
    assert settings.requests_per_second == 10
    assert settings.max_retries == 3
    assert settings.slippage_thresholds_bps == [50, 100]
    assert settings.resilience_mode is ResilienceMode.RESILIENT
    assert settings.is_strict is False
    assert settings.output_format is OutputFormat.TABLE


def test_loads_toml_table(tmp_path, monkeypatch):
    config_path = tmp_path / "config.toml"
    config_path.write_text(
        dedent(
            """
            [bridge_metrics]
            base_url = "https://bridge.example/api/"
            timeout_ms = 2500
            max_retries = 5
            slippage_thresholds_bps = [25, 75]
            resilience_mode = "strict"
            """
        ).strip()
    )
    monkeypatch.setenv("BRIDGE_METRICS_CONFIG", str(config_path))

    settings = BridgeSettings()

    assert settings.base_url == "https://bridge.example/api"
    assert settings.timeout_seconds == 2.5
    assert settings.max_retries == 5
    assert settings.slippage_thresholds_bps == [25, 75]
    assert settings.is_strict is True


def test_precedence_cli_over_env_over_file(tmp_path, monkeypatch):
    config_path = tmp_path / "config.toml"
    config_path.write_text('timeout_ms = 2000\nmax_retries = 1\nbase_url = "https://file"')
    monkeypatch.setenv("BRIDGE_METRICS_CONFIG", str(config_path))
    monkeypatch.setenv("BRIDGE_METRICS_TIMEOUT_MS", "3000")
    monkeypatch.setenv("BRIDGE_METRICS_BASE_URL", "https://env")

    settings = BridgeSettings(base_url="https://cli")

    assert settings.base_url == "https://cli"
    assert settings.timeout_ms == 3000
    assert settings.max_retries == 1


def test_api_key_in_toml_is_rejected(tmp_path, monkeypatch):
    config_path = tmp_path / "config.toml"
    config_path.write_text('api_key = "secret"')
    monkeypatch.setenv("BRIDGE_METRICS_CONFIG", str(config_path))

    with pytest.raises(ValueError, match="api_key"):
        BridgeSettings()


def test_api_key_from_env_is_redacted(monkeypatch):
    monkeypatch.setenv("BRIDGE_METRICS_API_KEY", "s3cret")

    settings = BridgeSettings()

    assert settings.api_key is not None
    assert settings.api_key.get_secret_value() == "s3cret"
    assert settings.as_safe_dict()["api_key"] == "***redacted***"


def test_empty_api_key_is_unset(monkeypatch):
    monkeypatch.setenv("BRIDGE_METRICS_API_KEY", "")

    assert BridgeSettings().api_key is None


@pytest.mark.parametrize(
    "kwargs",
    [
        {"timeout_ms": 999},
        {"timeout_ms": 60_001},
        {"requests_per_second": 0},
        {"requests_per_second": 101},
        {"max_retries": -1},
        {"max_retries": 11},
        {"slippage_thresholds_bps": []},
        {"slippage_thresholds_bps": [0, 50]},
        {"liquidity_min_amount": 10, "liquidity_max_amount": 10},
    ],
)
def test_rejects_out_of_range_values(kwargs):
    with pytest.raises(PydanticValidationError):
        BridgeSettings(**kwargs)


def test_base_url_required():
    with pytest.raises(ValueError, match="base_url"):
        _ = BridgeSettings().base_url_required
