from __future__ import annotations

"""Exchange rate provider with an ordered fallback chain.

    cache -> historical source (exact date) -> latest source -> fixed constants

Each stage runs only when the previous one failed, and none is retried.
The provider never raises: the constant RateSet is the last resort.
Whatever a date resolves to is cached under that date.
"""
import logging
from datetime import date
from functools import lru_cache
from typing import Optional

from zakah.core.config import Settings, get_settings
from zakah.core.errors import RateSourceUnavailable
from zakah.models.rates import RateSet
from .base import HistoricalRateSource, LatestRateSource
from .cache_service import RateCache, get_rate_cache
from .sources import (
    ExchangeRateApiHistoricalSource,
    ExchangeRateApiLatestSource,
    StaticRateSource,
)

logger = logging.getLogger("zakah.rates")


class ExchangeRateProvider:
    def __init__(
        self,
        historical: HistoricalRateSource,
        latest: LatestRateSource,
        cache: Optional[RateCache] = None,
        fallback: Optional[RateSet] = None,
    ):
        self._historical = historical
        self._latest = latest
        self._cache = cache if cache is not None else RateCache()
        self._fallback = fallback or RateSet.fallback()

    @property
    def cache(self) -> RateCache:
        return self._cache

    async def get_historical_rates(self, on: date) -> RateSet:
        cached = self._cache.get(on)
        if cached is not None:
            logger.debug("rate cache hit for %s", on.isoformat())
            return cached
        logger.debug("rate cache miss for %s", on.isoformat())
        try:
            rates = await self._historical.fetch(on)
        except RateSourceUnavailable as e:
            logger.warning(
                "historical rates unavailable for %s, using current rates: %s",
                on.isoformat(),
                e,
            )
            rates = await self.get_current_rates()
        self._cache.put(on, rates)
        return rates

    async def get_current_rates(self) -> RateSet:
        try:
            return await self._latest.fetch()
        except RateSourceUnavailable as e:
            logger.warning("current rates unavailable, using fallback constants: %s", e)
            return self._fallback


def _external_http(settings: Settings) -> tuple[HistoricalRateSource, LatestRateSource]:
    historical = ExchangeRateApiHistoricalSource(
        settings.historical_rates_base_url,
        settings.exchange_api_key,
        timeout=settings.http_timeout_seconds,
    )
    latest = ExchangeRateApiLatestSource(
        settings.latest_rates_url, timeout=settings.http_timeout_seconds
    )
    return historical, latest


def _static(settings: Settings) -> tuple[HistoricalRateSource, LatestRateSource]:
    source = StaticRateSource()
    return source, source


_PROVIDER_REGISTRY = {
    "external-http": _external_http,
    "static": _static,
}


def make_rate_provider(
    settings: Settings, cache: Optional[RateCache] = None
) -> ExchangeRateProvider:
    build = _PROVIDER_REGISTRY.get(settings.rate_provider)
    if not build:
        raise ValueError(f"Unknown rate provider kind '{settings.rate_provider}'")
    historical, latest = build(settings)
    return ExchangeRateProvider(historical, latest, cache=cache)


# Singleton dependency helper used by FastAPI DI
@lru_cache
def get_rate_provider() -> ExchangeRateProvider:
    return make_rate_provider(get_settings(), cache=get_rate_cache())
