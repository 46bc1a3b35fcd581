"""Settings module with unified configuration precedence: CLI > ENV > CONFIG FILE."""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Any

import tomllib

from dotenv import load_dotenv
from pydantic import (
    Field,
    SecretStr,
    field_validator,
    model_validator,
)
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from .constants import (
    ASSETS_PATH,
    DEFAULT_SLIPPAGE_THRESHOLDS_BPS,
    HEALTH_PATH,
    LIQUIDITY_MAX_AMOUNT,
    LIQUIDITY_MIN_AMOUNT,
    LIQUIDITY_SEARCH_ITERATIONS,
    QUOTE_PATH,
    VOLUME_PATH,
)

load_dotenv()


class ResilienceMode(str, Enum):
    RESILIENT = "resilient"
    STRICT = "strict"


class OutputFormat(str, Enum):
    TABLE = "table"
    JSON = "json"


class BridgeSettings(BaseSettings):
    """Single source of truth for configuration. Values may come from:
    - CLI (init kwargs)
    - ENV / .env (prefixed with BRIDGE_METRICS_)
    - Config file (TOML), lowest precedence

    Do not read os.environ or files elsewhere in the codebase.
    """

    # --- upstream ---
    base_url: str | None = None
    api_key: SecretStr | None = None
    timeout_ms: int = Field(default=10_000, ge=1_000, le=60_000)
    requests_per_second: float = Field(default=10, ge=1, le=100)

    # --- retries ---
    max_retries: int = Field(default=3, ge=0, le=10)
    retry_initial_delay_ms: int = Field(default=1_000, gt=0)
    retry_multiplier: float = Field(default=2.0, ge=1.0)
    retry_max_delay_ms: int = Field(default=10_000, gt=0)

    # --- capability paths ---
    volume_path: str = VOLUME_PATH
    quote_path: str = QUOTE_PATH
    assets_path: str = ASSETS_PATH
    health_path: str = HEALTH_PATH

    # --- liquidity probing ---
    liquidity_min_amount: int = Field(default=LIQUIDITY_MIN_AMOUNT, gt=0)
    liquidity_max_amount: int = Field(default=LIQUIDITY_MAX_AMOUNT, gt=0)
    liquidity_iterations: int = Field(default=LIQUIDITY_SEARCH_ITERATIONS, ge=1)
    slippage_thresholds_bps: list[int] = Field(
        default_factory=lambda: list(DEFAULT_SLIPPAGE_THRESHOLDS_BPS)
    )

    # --- snapshot policy ---
    resilience_mode: ResilienceMode = ResilienceMode.RESILIENT
    snapshot_deadline_seconds: float | None = 120.0

    # --- output / logging ---
    output_format: OutputFormat = OutputFormat.TABLE
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="BRIDGE_METRICS_",
        env_file=".env",
        extra="ignore",  # ignore unknown keys in env/config file
    )

    @field_validator("api_key", mode="before")
    @classmethod
    def wrap_secrets(cls, v: Any) -> SecretStr | None:
        """Wrap string secrets in SecretStr; treat empty strings as unset."""
        if v is None or isinstance(v, SecretStr):
            return v
        if v == "":
            return None
        return SecretStr(v)

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str | None) -> str | None:
        return v.rstrip("/") if v else v

    @field_validator("slippage_thresholds_bps")
    @classmethod
    def validate_thresholds(cls, v: list[int]) -> list[int]:
        if not v:
            raise ValueError("slippage_thresholds_bps must not be empty")
        if any(bps <= 0 for bps in v):
            raise ValueError(f"slippage_thresholds_bps must be positive, got {v}")
        return v

    @model_validator(mode="after")
    def validate_liquidity_bounds(self) -> "BridgeSettings":
        """Validate that the probe floor is below its ceiling."""
        if self.liquidity_min_amount >= self.liquidity_max_amount:
            raise ValueError(
                f"liquidity_min_amount ({self.liquidity_min_amount}) "
                f"must be less than liquidity_max_amount ({self.liquidity_max_amount})"
            )
        return self

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Custom config-file source with explicit precedence: CLI > ENV > FILE."""
        env_cfg = os.environ.get("BRIDGE_METRICS_CONFIG")
        cfg_path = Path(env_cfg) if env_cfg else None

        class TomlConfigSource(PydanticBaseSettingsSource):
            def __init__(self, settings_cls: type[BaseSettings], path: Path | None):
                super().__init__(settings_cls)
                self._path = path

            def get_field_value(
                self, field: Any, field_name: str
            ) -> tuple[Any, str, bool]:
                return None, "", False

            def __call__(self) -> dict[str, Any]:
                if not self._path:
                    # Try default locations
                    local_config = Path("bridge-metrics.toml")
                    user_config = (
                        Path.home() / ".config" / "bridge-metrics" / "config.toml"
                    )
                    if local_config.exists():
                        self._path = local_config
                    elif user_config.exists():
                        self._path = user_config
                    else:
                        return {}

                if not self._path.exists():
                    return {}

                with self._path.open("rb") as f:
                    data = tomllib.load(f)  # supports top-level or [bridge_metrics]
                body = data.get("bridge_metrics", data)
                if not isinstance(body, dict):
                    return {}

                if "api_key" in body:
                    raise ValueError(
                        "Security violation: 'api_key' found in TOML config file. "
                        "Secrets must only be provided via environment variables or CLI flags."
                    )

                return body

        return (
            init_settings,  # CLI (highest)
            env_settings,  # ENV
            dotenv_settings,  # .env
            TomlConfigSource(settings_cls, cfg_path),  # CONFIG (lowest)
            file_secret_settings,  # optional secrets dir
        )

    def as_safe_dict(self) -> dict[str, Any]:
        """Return the config as a dict with secrets redacted."""
        data = self.model_dump(mode="json")
        if self.api_key:
            data["api_key"] = "***redacted***"
        return data

    @property
    def base_url_required(self) -> str:
        """Get base_url, raising ValueError if not set."""
        if not self.base_url:
            raise ValueError("base_url must be configured")
        return self.base_url

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000

    @property
    def is_strict(self) -> bool:
        return self.resilience_mode == ResilienceMode.STRICT
