"""Typed configuration models using pydantic-settings."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict, TomlConfigSettingsSource


class AlphaVantageSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="AV_", populate_by_name=True)

    api_key: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=AliasChoices("ALPHA_VANTAGE_API_KEY", "AV_API_KEY"),
        description="Alpha Vantage API key",
    )
    api_key_file: Path = Field(
        default=Path("api_key.txt"),
        description="Fallback file holding the API key when no env var is set",
    )
    base_url: str = Field(default="https://www.alphavantage.co/query")
    function: str = Field(default="GLOBAL_QUOTE")
    connect_timeout: float = Field(default=10.0, gt=0)
    read_timeout: float = Field(default=10.0, gt=0)
    calls_per_minute: int = Field(default=5, ge=1, description="Upstream request ceiling")
    user_agent: str = Field(default="tickwatch/0.1")

    # Response field names are defined by the upstream service.
    rate_limit_fields: list[str] = Field(default=["Note", "Information"])
    error_field: str = Field(default="Error Message")
    quote_field: str = Field(default="Global Quote")
    price_field: str = Field(default="05. price")


class PollerSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="POLL_")

    symbol: str = Field(default="AAPL", min_length=1)
    interval_seconds: float = Field(default=12.0, ge=1, description="Seconds between ticks")
    max_samples: int = Field(default=100, ge=1, description="Samples kept in memory")
    stop_timeout: float = Field(default=5.0, gt=0, description="Seconds to wait for the poll thread on stop")


class AppSettings(BaseSettings):
    """Top-level settings composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        toml_file="config.toml",
        extra="ignore",
    )

    alpha_vantage: AlphaVantageSettings = Field(
        default_factory=AlphaVantageSettings,
    )
    poller: PollerSettings = Field(default_factory=PollerSettings)
    log_level: str = Field(default="INFO")
    log_format: Literal["console", "json"] = Field(default="console")

    @classmethod
    def settings_customise_sources(cls, settings_cls, **kwargs):  # type: ignore[override]
        return (
            kwargs["env_settings"],
            kwargs["dotenv_settings"],
            TomlConfigSettingsSource(settings_cls),
            kwargs["init_settings"],
        )
