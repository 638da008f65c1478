"""Search link for the 24k gold gram price on a given day.

Gold prices are entered by hand, so callers get a ready-made web search for
the value date in the user's market.
"""

from __future__ import annotations

from datetime import date
from typing import Optional
from urllib.parse import urlencode

SEARCH_URL = "https://www.google.com/search"

_MARKET_QUERIES = {
    "EGP": "سعر الذهب عيار 24 مصر {day} بالجرام",
    "SAR": "سعر الذهب عيار 24 السعودية {day} بالجرام",
}
_GENERIC_QUERY = "gold price 24k {day} per gram"


def gold_price_search_url(target_currency: Optional[str], on: date) -> str:
    template = _MARKET_QUERIES.get((target_currency or "").upper(), _GENERIC_QUERY)
    return f"{SEARCH_URL}?{urlencode({'q': template.format(day=on.isoformat())})}"
