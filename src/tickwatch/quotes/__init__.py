"""Quote sources."""

from tickwatch.quotes.alpha_vantage import AlphaVantageClient
from tickwatch.quotes.base import (
    FetchError,
    FetchErrorKind,
    MalformedResponse,
    NetworkFailure,
    ParseFailure,
    QuoteSource,
    RateLimited,
    Sample,
    UpstreamError,
)

__all__ = [
    "AlphaVantageClient",
    "FetchError",
    "FetchErrorKind",
    "MalformedResponse",
    "NetworkFailure",
    "ParseFailure",
    "QuoteSource",
    "RateLimited",
    "Sample",
    "UpstreamError",
]
