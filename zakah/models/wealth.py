from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, Mapping, Optional

from .hijri import HijriDate
from .rates import RateSet


@dataclass(frozen=True)
class WealthInput:
    """One calculation request.

    ``target_currency`` and ``value_date`` may still be unset while the caller
    is filling in the form; the calculator's gate rejects such input.
    """

    gold_by_purity: Mapping[int, Decimal] = field(default_factory=dict)
    cash_by_currency: Mapping[str, Decimal] = field(default_factory=dict)
    gold_price_per_gram_24k: Decimal = Decimal("0")
    target_currency: Optional[str] = None
    value_date: Optional[HijriDate] = None


@dataclass(frozen=True)
class CashConversion:
    target_currency: str
    gregorian_date: date
    rates: Optional[RateSet]  # None when no amount needed converting
    breakdown: Dict[str, Decimal]
    total: Decimal


@dataclass(frozen=True)
class ZakahResult:
    total_gold_grams_24k: Decimal
    gold_value: Decimal
    total_cash: Decimal
    total_wealth: Decimal
    zakah_due: Decimal
    target_currency: str
    value_date: HijriDate
    gregorian_date: date
    rates: RateSet
    gold_breakdown: Dict[int, Decimal] = field(default_factory=dict)
    cash_breakdown: Dict[str, Decimal] = field(default_factory=dict)
