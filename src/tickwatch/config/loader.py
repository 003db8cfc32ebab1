"""Config loading with layered resolution: env > .env > config.toml > defaults."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from pydantic import ValidationError

from tickwatch.config.settings import AlphaVantageSettings, AppSettings, PollerSettings
from tickwatch.utils.logging import get_logger

logger = get_logger(__name__)


class ConfigurationError(Exception):
    """Raised when the poller cannot be configured; fatal, before any tick."""


@dataclass(frozen=True)
class PollerConfig:
    """Validated runtime configuration for one poller."""

    symbol: str
    poll_interval_seconds: float
    max_samples: int
    api_key: str
    stop_timeout: float = 5.0


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Load and cache application settings."""
    try:
        return AppSettings()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid settings: {e}") from e


def resolve_api_key(settings: AlphaVantageSettings) -> str:
    """Return the API key from the environment, falling back to the key file.

    Raises ConfigurationError if neither source yields a non-empty key.
    """
    key = settings.api_key.get_secret_value().strip()
    if key:
        return key

    path = settings.api_key_file
    if path.is_file():
        key = path.read_text(encoding="utf-8").strip()
        if key:
            logger.debug("api_key_from_file", path=str(path))
            return key

    raise ConfigurationError(
        "Alpha Vantage API key not found. Set ALPHA_VANTAGE_API_KEY "
        f"or place the key in {path}"
    )


def load_poller_config(
    settings: AppSettings,
    symbol: str | None = None,
    interval: float | None = None,
    max_samples: int | None = None,
) -> PollerConfig:
    """Build a PollerConfig from settings, applying any explicit overrides."""
    overrides = {
        k: v
        for k, v in {
            "symbol": symbol,
            "interval_seconds": interval,
            "max_samples": max_samples,
        }.items()
        if v is not None
    }
    try:
        poller = PollerSettings.model_validate(
            {**settings.poller.model_dump(), **overrides}
        )
    except ValidationError as e:
        raise ConfigurationError(f"Invalid poller settings: {e}") from e
    if not poller.symbol.strip():
        raise ConfigurationError("Symbol must not be blank")

    api_key = resolve_api_key(settings.alpha_vantage)

    ceiling = 60.0 / settings.alpha_vantage.calls_per_minute
    if poller.interval_seconds < ceiling:
        logger.warning(
            "interval_below_rate_ceiling",
            interval=poller.interval_seconds,
            min_interval=ceiling,
            calls_per_minute=settings.alpha_vantage.calls_per_minute,
        )

    return PollerConfig(
        symbol=poller.symbol.strip().upper(),
        poll_interval_seconds=poller.interval_seconds,
        max_samples=poller.max_samples,
        api_key=api_key,
        stop_timeout=poller.stop_timeout,
    )
