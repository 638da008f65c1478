"""Domain constants for currencies, gold purity grades and the levy rate."""

from decimal import Decimal
from typing import Dict, Tuple

# RateSet currencies, quoted as units per 1 USD
CURRENCIES: Tuple[str, ...] = ("EGP", "SAR", "USD")
RATE_BASE_CURRENCY = "USD"
# Currencies a result can be expressed in (the user's country)
TARGET_CURRENCIES: Tuple[str, ...] = ("EGP", "SAR")

# Karat grades accepted as gold input
PURITY_GRADES: Tuple[int, ...] = (18, 21, 24)
PURE_KARAT = 24

ZAKAH_RATE = Decimal("0.025")

# Last-resort rates when neither the historical nor the latest source answers
FALLBACK_RATES: Dict[str, Decimal] = {
    "EGP": Decimal("48.0"),
    "SAR": Decimal("3.75"),
    "USD": Decimal("1"),
}
