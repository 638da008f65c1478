from __future__ import annotations

from datetime import date
from functools import lru_cache
from typing import Dict, List, Optional, Union

from zakah.models.rates import RateSet

"""In-memory per-date rate cache.

Purpose:
    Remember the RateSet resolved for each Gregorian date so repeated
    calculations for the same value date do not query the rate sources again.

Design:
    - Keyed by ISO date string ("2024-07-08"); ``date`` keys are normalised.
    - Grows for the life of the process; no TTL and no eviction. Rates for a
      past date do not change and the key space is small.
    - Last write for a key wins. Two concurrent lookups of the same uncached
      date may both reach the sources; they store equivalent values.
    - No locking: all access happens on one event loop.
"""

DateKey = Union[date, str]


def _normalize_key(key: DateKey) -> str:
    if isinstance(key, date):
        return key.isoformat()
    try:
        return date.fromisoformat(key.strip()).isoformat()
    except ValueError as e:
        raise ValueError(f"rate cache key must be an ISO date, got {key!r}") from e


class RateCache:
    def __init__(self):
        self._entries: Dict[str, RateSet] = {}

    def get(self, key: DateKey) -> Optional[RateSet]:
        return self._entries.get(_normalize_key(key))

    def put(self, key: DateKey, rates: RateSet) -> None:
        self._entries[_normalize_key(key)] = rates

    def keys(self) -> List[str]:
        return sorted(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, (date, str)):
            return False
        try:
            return _normalize_key(key) in self._entries
        except ValueError:
            return False

    def __len__(self) -> int:
        return len(self._entries)


# Process-wide cache used by FastAPI DI
@lru_cache
def get_rate_cache() -> RateCache:
    return RateCache()
