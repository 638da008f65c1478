"""Domain value types for the Zakah calculator."""

from .constants import (
    CURRENCIES,
    TARGET_CURRENCIES,
    PURITY_GRADES,
    ZAKAH_RATE,
    FALLBACK_RATES,
)  # re-export
from .hijri import HijriDate
from .rates import RateSet
from .wealth import WealthInput, CashConversion, ZakahResult

__all__ = [
    "CURRENCIES",
    "TARGET_CURRENCIES",
    "PURITY_GRADES",
    "ZAKAH_RATE",
    "FALLBACK_RATES",
    "HijriDate",
    "RateSet",
    "WealthInput",
    "CashConversion",
    "ZakahResult",
]
