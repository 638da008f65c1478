from __future__ import annotations

"""Concrete rate sources backed by exchangerate-api.

Historical: GET {base_url}/{api_key}/history/USD/{Y}/{M}/{D}
    -> {"result": "success", "conversion_rates": {"EGP": 47.9, "SAR": 3.75, ...}}
Latest:     GET {latest_url}/USD
    -> {"rates": {"EGP": 48.3, "SAR": 3.75, ...}}

Anything short of a complete, positive EGP/SAR pair is RateSourceUnavailable.
"""
import logging
from datetime import date
from typing import Optional

import httpx

from zakah.core.errors import RateSourceUnavailable
from zakah.models.rates import RateSet
from zakah.services.http_client import HttpError, get_json
from .base import HistoricalRateSource, LatestRateSource

logger = logging.getLogger("zakah.rates.sources")


class ExchangeRateApiHistoricalSource(HistoricalRateSource):
    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    def url_for(self, on: date) -> str:
        return (
            f"{self._base_url}/{self._api_key}/history/{self.base_currency}"
            f"/{on.year}/{on.month}/{on.day}"
        )

    async def fetch(self, on: date) -> RateSet:
        if not self._api_key:
            raise RateSourceUnavailable("historical rate source has no API key configured")
        try:
            data = await get_json(self.url_for(on), timeout=self._timeout, transport=self._transport)
        except HttpError as e:
            # the key is part of the path; keep it out of logs
            raise RateSourceUnavailable(str(e).replace(self._api_key, "***")) from e
        rates = data.get("conversion_rates")
        if data.get("result") != "success" or not isinstance(rates, dict) or not rates:
            raise RateSourceUnavailable(
                f"no historical rates for {on.isoformat()} "
                f"(result={data.get('result')!r}, error={data.get('error-type')!r})"
            )
        try:
            return RateSet.from_mapping(rates)
        except ValueError as e:
            raise RateSourceUnavailable(f"invalid historical rates for {on.isoformat()}: {e}") from e


class ExchangeRateApiLatestSource(LatestRateSource):
    def __init__(
        self,
        url: str,
        *,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._url = url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def fetch(self) -> RateSet:
        url = f"{self._url}/{self.base_currency}"
        try:
            data = await get_json(url, timeout=self._timeout, transport=self._transport)
        except HttpError as e:
            raise RateSourceUnavailable(str(e)) from e
        rates = data.get("rates")
        if not isinstance(rates, dict):
            raise RateSourceUnavailable(f"no rates in latest response from {url}")
        try:
            return RateSet.from_mapping(rates)
        except ValueError as e:
            raise RateSourceUnavailable(f"invalid latest rates: {e}") from e


class StaticRateSource(HistoricalRateSource, LatestRateSource):
    """Offline source that always answers with the fallback constants."""

    async def fetch(self, on: date | None = None) -> RateSet:  # type: ignore[override]
        return RateSet.fallback()
