"""Alpha Vantage GLOBAL_QUOTE client."""

from __future__ import annotations

import datetime
import math
import re
from typing import Any, Callable

import httpx

from tickwatch.config.settings import AlphaVantageSettings
from tickwatch.quotes.base import (
    MalformedResponse,
    NetworkFailure,
    ParseFailure,
    RateLimited,
    Sample,
    UpstreamError,
)
from tickwatch.utils.logging import get_logger

logger = get_logger(__name__)

_DECIMAL_RE = re.compile(r"\d+(?:\.\d+)?")


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def parse_price(raw: Any) -> float:
    """Parse an upstream price string such as ``"1,234.56"``.

    Raises ValueError if the value is empty, is not a plain decimal once
    grouping commas are removed, or is not positive.
    """
    if raw is None:
        raise ValueError("price is missing")
    text = str(raw).strip().replace(",", "")
    if not text:
        raise ValueError("price is empty")
    if not _DECIMAL_RE.fullmatch(text):
        raise ValueError(f"price {text!r} is not a plain decimal number")
    price = float(text)
    if not math.isfinite(price) or price <= 0:
        raise ValueError(f"price {text!r} is not a positive finite number")
    return price


class AlphaVantageClient:
    """Fetches the latest quote for a symbol from Alpha Vantage.

    The service answers most failures with HTTP 200 and a JSON body of a
    different shape, so the body is classified field by field: rate-limit
    notice, explicit error, missing quote object, then the price itself.
    """

    source_name = "alpha_vantage"

    def __init__(
        self,
        settings: AlphaVantageSettings,
        api_key: str,
        clock: Callable[[], datetime.datetime] = _utcnow,
    ) -> None:
        self._settings = settings
        self._api_key = api_key
        self._base_url = settings.base_url
        self._clock = clock
        self._client = httpx.Client(
            timeout=httpx.Timeout(
                settings.read_timeout,
                connect=settings.connect_timeout,
            ),
            headers={"User-Agent": settings.user_agent},
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> AlphaVantageClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def fetch(self, symbol: str) -> Sample:
        """Fetch the latest price for ``symbol``; raises a FetchError subclass on failure."""
        if not symbol or not symbol.strip():
            raise ValueError("symbol must be a non-empty string")

        logger.debug("fetching_quote", source=self.source_name, symbol=symbol)

        params = {
            "function": self._settings.function,
            "symbol": symbol,
            "apikey": self._api_key,
        }

        try:
            response = self._client.get(self._base_url, params=params)
        except httpx.HTTPError as e:
            raise NetworkFailure(f"Request for {symbol} failed: {e}") from e

        body = response.text
        logger.debug("raw_response", symbol=symbol, status=response.status_code, body=body)

        if response.status_code == 429:
            raise RateLimited(f"HTTP 429 for {symbol}", raw_body=body)

        try:
            data = response.json()
        except ValueError:
            data = None

        if not isinstance(data, dict):
            if response.is_error:
                raise UpstreamError(
                    f"HTTP {response.status_code} for {symbol}", raw_body=body
                )
            logger.warning("malformed_response", symbol=symbol, body=body)
            raise MalformedResponse(
                f"Response for {symbol} is not a JSON object", raw_body=body
            )

        return self._classify(symbol, data, body, response.status_code)

    def _classify(
        self, symbol: str, data: dict[str, Any], body: str, status: int
    ) -> Sample:
        s = self._settings

        for field in s.rate_limit_fields:
            if field in data:
                raise RateLimited(f"AV rate limit notice: {data[field]}", raw_body=body)

        if s.error_field in data:
            raise UpstreamError(f"AV API error: {data[s.error_field]}", raw_body=body)

        if status >= 400:
            raise UpstreamError(f"HTTP {status} for {symbol}", raw_body=body)

        quote = data.get(s.quote_field)
        if not isinstance(quote, dict):
            # Unknown shape; the body is the only clue if field names changed.
            logger.warning("malformed_response", symbol=symbol, body=body)
            raise MalformedResponse(
                f"Response for {symbol} has no '{s.quote_field}' object", raw_body=body
            )

        raw_price = quote.get(s.price_field)
        try:
            price = parse_price(raw_price)
        except ValueError as e:
            raise ParseFailure(
                f"Bad '{s.price_field}' for {symbol}: {e}", raw_body=body
            ) from e

        sample = Sample(price=price, observed_at=self._clock())
        logger.debug("quote_fetched", symbol=symbol, price=price)
        return sample
