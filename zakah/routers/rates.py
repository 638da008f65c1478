from datetime import date
from typing import Dict, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from zakah.models.rates import RateSet
from zakah.services.rates.cache_service import RateCache, get_rate_cache
from zakah.services.rates.providers import ExchangeRateProvider, get_rate_provider

"""Rates router exposing the provider and its per-date cache.

Endpoints:
    - GET /rates/current            -> latest rates (or fallback constants)
    - GET /rates/historical/{date}  -> rates used for a Gregorian date (cached)
    - GET /rates/cache              -> dates resolved so far in this process

Lookups never fail: the provider falls back to current rates and finally to
fixed constants.
"""

router = APIRouter(prefix="/rates", tags=["rates"])


class RateSetOut(BaseModel):
    base_currency: str = "USD"
    rates: Dict[str, float]

    @classmethod
    def from_domain(cls, rates: RateSet) -> "RateSetOut":
        return cls(rates={code: float(v) for code, v in rates.as_dict().items()})


class HistoricalRatesOut(RateSetOut):
    date: date
    cached: bool


class CacheOut(BaseModel):
    size: int
    dates: List[str]


@router.get("/current", response_model=RateSetOut, summary="Latest USD-based rates")
async def current_rates(provider: ExchangeRateProvider = Depends(get_rate_provider)):
    return RateSetOut.from_domain(await provider.get_current_rates())


@router.get(
    "/historical/{on}",
    response_model=HistoricalRatesOut,
    summary="USD-based rates for a Gregorian date",
)
async def historical_rates(on: date, provider: ExchangeRateProvider = Depends(get_rate_provider)):
    was_cached = on in provider.cache
    rates = await provider.get_historical_rates(on)
    out = RateSetOut.from_domain(rates)
    return HistoricalRatesOut(date=on, cached=was_cached, rates=out.rates)


@router.get("/cache", response_model=CacheOut, summary="Dates with cached rates")
async def cached_dates(cache: RateCache = Depends(get_rate_cache)):
    return CacheOut(size=len(cache), dates=cache.keys())
