"""Quote source Protocol and supporting types."""

from __future__ import annotations

import datetime
import math
from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class Sample:
    """One successfully parsed price observation."""

    price: float
    observed_at: datetime.datetime

    def __post_init__(self) -> None:
        if not math.isfinite(self.price) or self.price <= 0:
            raise ValueError(f"Sample price must be finite and positive, got {self.price!r}")


class FetchErrorKind(str, Enum):
    RATE_LIMITED = "rate_limited"
    UPSTREAM_ERROR = "upstream_error"
    MALFORMED_RESPONSE = "malformed_response"
    NETWORK_FAILURE = "network_failure"
    PARSE_FAILURE = "parse_failure"


class FetchError(Exception):
    """Base exception for a classified, non-fatal failure of a single fetch.

    ``raw_body`` holds the upstream response text when one was received.
    """

    kind: FetchErrorKind

    def __init__(self, detail: str, raw_body: str | None = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.raw_body = raw_body

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.detail!r})"


class RateLimited(FetchError):
    """The service returned a rate-limit notice instead of a quote."""

    kind = FetchErrorKind.RATE_LIMITED


class UpstreamError(FetchError):
    """The service reported an explicit error (bad symbol, bad key, 5xx)."""

    kind = FetchErrorKind.UPSTREAM_ERROR


class MalformedResponse(FetchError):
    """The body did not have the expected quote structure."""

    kind = FetchErrorKind.MALFORMED_RESPONSE


class NetworkFailure(FetchError):
    """Timeout, refused connection, TLS or protocol failure."""

    kind = FetchErrorKind.NETWORK_FAILURE


class ParseFailure(FetchError):
    """The quote was present but its price was missing or not a valid number."""

    kind = FetchErrorKind.PARSE_FAILURE


@runtime_checkable
class QuoteSource(Protocol):
    """Protocol for anything the poller can fetch quotes from.

    Implementations perform exactly one request per call and do not retry.
    """

    @property
    def source_name(self) -> str:
        """Short identifier for this source, e.g. 'alpha_vantage'."""
        ...

    def fetch(self, symbol: str) -> Sample:
        """Fetch the latest price for ``symbol``.

        Raises a FetchError subclass on any failure.
        """
        ...
