from __future__ import annotations

"""Rate source abstractions.

A source answers with a complete RateSet or raises RateSourceUnavailable.
Missing data for a date is an expected outcome and is reported the same way.
"""
from abc import ABC, abstractmethod
from datetime import date
from typing import Protocol

from zakah.models.constants import RATE_BASE_CURRENCY
from zakah.models.rates import RateSet


class HistoricalRateSource(ABC):
    base_currency: str = RATE_BASE_CURRENCY

    @abstractmethod
    async def fetch(self, on: date) -> RateSet:
        """Return the rates published for ``on``."""
        raise NotImplementedError


class LatestRateSource(ABC):
    base_currency: str = RATE_BASE_CURRENCY

    @abstractmethod
    async def fetch(self) -> RateSet:
        """Return the most recent rates."""
        raise NotImplementedError


class SupportsRateLookup(Protocol):
    async def get_historical_rates(self, on: date) -> RateSet: ...

    async def get_current_rates(self) -> RateSet: ...
