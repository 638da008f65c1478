"""Wealth aggregation and the Zakah levy.

Gold of mixed purity is normalised to 24k-equivalent grams and valued at the
caller's 24k gram price. Cash in EGP, SAR and USD is converted to the target
currency using the rates of the value date (a Hijri date converted to
Gregorian). Zakah is 2.5% of the sum, with no Nisab threshold check.

Input is checked before any rate lookup; an incomplete or invalid request
raises InvalidInputError and never produces a result.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from typing import Any, Callable, Dict, List, Mapping, Optional

from zakah.core.errors import InvalidDateError, InvalidInputError
from zakah.models.constants import (
    CURRENCIES,
    PURE_KARAT,
    PURITY_GRADES,
    TARGET_CURRENCIES,
    ZAKAH_RATE,
)
from zakah.models.hijri import HijriDate
from zakah.models.wealth import CashConversion, WealthInput, ZakahResult
from zakah.models.rates import RateSet
from zakah.services.hijri_calendar import DEFAULT_CALENDAR, HijriCalendar
from zakah.services.rates.base import SupportsRateLookup
from zakah.services.rates.conversion import convert_cash_breakdown
from zakah.services.rates.providers import get_rate_provider

logger = logging.getLogger("zakah.calculator")

ZERO = Decimal("0")


def _as_decimal(value: Any, field: str) -> Decimal:
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool) or value is None:
        raise InvalidInputError(field, "not_a_number", f"{field} must be a number, got {value!r}")
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError) as e:
            raise InvalidInputError(
                field, "not_a_number", f"{field} must be a number, got {value!r}"
            ) from e
    if not result.is_finite():
        raise InvalidInputError(field, "not_a_number", f"{field} must be finite, got {value!r}")
    return result


def _purity_key(key: Any) -> Optional[int]:
    if isinstance(key, bool):
        return None
    try:
        karat = int(str(key).lower().rstrip("k"))
    except ValueError:
        return None
    return karat if karat in PURITY_GRADES else None


def _scan_quantities(
    field: str,
    entries: Mapping[Any, Any],
    is_known: Callable[[Any], bool],
    problems: List[InvalidInputError],
) -> bool:
    """Record invalid entries in ``problems``; True if any quantity is positive."""
    positive = False
    for key, raw in entries.items():
        if not is_known(key):
            problems.append(
                InvalidInputError(field, "unknown_key", f"unsupported {field} entry {key!r}")
            )
            continue
        try:
            amount = _as_decimal(raw, f"{field}[{key}]")
        except InvalidInputError as e:
            problems.append(e)
            continue
        if amount < 0:
            problems.append(InvalidInputError(field, "negative", f"{field}[{key}] cannot be negative"))
        elif amount > 0:
            positive = True
    return positive


class ZakahCalculator:
    def __init__(
        self,
        provider: SupportsRateLookup,
        calendar: Optional[HijriCalendar] = None,
    ):
        self._provider = provider
        self._calendar = calendar or DEFAULT_CALENDAR

    @property
    def calendar(self) -> HijriCalendar:
        return self._calendar

    # Gold ------------------------------------------------------
    @staticmethod
    def gold_breakdown(gold_by_purity: Mapping[int, Any]) -> Dict[int, Decimal]:
        """24k-equivalent grams per purity grade."""
        out: Dict[int, Decimal] = {}
        for key, grams in gold_by_purity.items():
            karat = _purity_key(key)
            if karat is None:
                raise InvalidInputError(
                    "gold_by_purity", "unknown_key", f"unsupported gold purity {key!r}"
                )
            amount = _as_decimal(grams, f"gold_by_purity[{karat}]")
            out[karat] = out.get(karat, ZERO) + amount * Decimal(karat) / Decimal(PURE_KARAT)
        return out

    @classmethod
    def convert_gold_to_24k(cls, gold_by_purity: Mapping[int, Any]) -> Decimal:
        return sum(cls.gold_breakdown(gold_by_purity).values(), ZERO)

    # Cash ------------------------------------------------------
    @staticmethod
    def cash_breakdown(
        cash_by_currency: Mapping[str, Any], target_currency: str, rates: RateSet
    ) -> Dict[str, Decimal]:
        target = (target_currency or "").upper()
        if target not in TARGET_CURRENCIES:
            raise InvalidInputError(
                "target_currency",
                "unsupported_currency",
                f"target currency must be one of {', '.join(TARGET_CURRENCIES)}, got {target_currency!r}",
            )
        amounts: Dict[str, Decimal] = {}
        for currency, amount in cash_by_currency.items():
            code = str(currency).upper()
            if code not in CURRENCIES:
                raise InvalidInputError(
                    "cash_by_currency", "unknown_key", f"unsupported cash currency {currency!r}"
                )
            amounts[code] = amounts.get(code, ZERO) + _as_decimal(
                amount, f"cash_by_currency[{code}]"
            )
        return convert_cash_breakdown(amounts, target, rates)

    @classmethod
    def convert_cash_to_target(
        cls, cash_by_currency: Mapping[str, Any], target_currency: str, rates: RateSet
    ) -> Decimal:
        return sum(cls.cash_breakdown(cash_by_currency, target_currency, rates).values(), ZERO)

    # Validation ------------------------------------------------
    def check_can_calculate(self, wealth: WealthInput) -> List[InvalidInputError]:
        """Every reason the input cannot be calculated yet, most basic first."""
        problems: List[InvalidInputError] = []
        if not wealth.target_currency:
            problems.append(
                InvalidInputError("target_currency", "missing", "choose a target currency first")
            )
        elif wealth.target_currency.upper() not in TARGET_CURRENCIES:
            problems.append(
                InvalidInputError(
                    "target_currency",
                    "unsupported_currency",
                    f"target currency must be one of {', '.join(TARGET_CURRENCIES)}",
                )
            )
        if wealth.value_date is None:
            problems.append(InvalidInputError("value_date", "missing", "choose a Hijri date first"))
        elif not isinstance(wealth.value_date, HijriDate):
            problems.append(
                InvalidInputError("value_date", "invalid", "value date must be a Hijri date")
            )
        else:
            try:
                self._calendar.to_gregorian(wealth.value_date)
            except InvalidDateError as e:
                problem = InvalidInputError("value_date", "out_of_range", str(e))
                problem.__cause__ = e
                problems.append(problem)

        try:
            price = _as_decimal(wealth.gold_price_per_gram_24k, "gold_price_per_gram_24k")
        except InvalidInputError as e:
            problems.append(e)
        else:
            if price <= 0:
                problems.append(
                    InvalidInputError(
                        "gold_price_per_gram_24k",
                        "not_positive",
                        "enter a 24k gold price per gram greater than zero",
                    )
                )

        has_gold = _scan_quantities(
            "gold_by_purity", wealth.gold_by_purity, lambda k: _purity_key(k) is not None, problems
        )
        has_cash = _scan_quantities(
            "cash_by_currency",
            wealth.cash_by_currency,
            lambda k: str(k).upper() in CURRENCIES,
            problems,
        )
        if not (has_gold or has_cash):
            problems.append(
                InvalidInputError(
                    "assets", "empty", "enter a gold quantity or a cash amount greater than zero"
                )
            )
        return problems

    def can_calculate(self, wealth: WealthInput) -> bool:
        return not self.check_can_calculate(wealth)

    def validate(self, wealth: WealthInput) -> None:
        problems = self.check_can_calculate(wealth)
        if problems:
            first = problems[0]
            # an unconvertible date surfaces as the date error itself
            if isinstance(first.__cause__, InvalidDateError):
                raise first.__cause__
            raise first

    # Calculation -----------------------------------------------
    async def calculate(self, wealth: WealthInput) -> ZakahResult:
        self.validate(wealth)
        target = wealth.target_currency.upper()
        gregorian = self._calendar.to_gregorian(wealth.value_date)
        rates = await self._provider.get_historical_rates(gregorian)

        gold_breakdown = self.gold_breakdown(wealth.gold_by_purity)
        total_gold = sum(gold_breakdown.values(), ZERO)
        gold_value = total_gold * _as_decimal(
            wealth.gold_price_per_gram_24k, "gold_price_per_gram_24k"
        )
        cash_breakdown = self.cash_breakdown(wealth.cash_by_currency, target, rates)
        total_cash = sum(cash_breakdown.values(), ZERO)
        total_wealth = gold_value + total_cash
        zakah_due = total_wealth * ZAKAH_RATE

        logger.info(
            "zakah calculated for %s (%s): wealth=%s %s due=%s",
            wealth.value_date.isoformat(),
            gregorian.isoformat(),
            total_wealth,
            target,
            zakah_due,
        )
        return ZakahResult(
            total_gold_grams_24k=total_gold,
            gold_value=gold_value,
            total_cash=total_cash,
            total_wealth=total_wealth,
            zakah_due=zakah_due,
            target_currency=target,
            value_date=wealth.value_date,
            gregorian_date=gregorian,
            rates=rates,
            gold_breakdown=gold_breakdown,
            cash_breakdown=cash_breakdown,
        )

    async def preview_cash(
        self,
        cash_by_currency: Mapping[str, Any],
        target_currency: Optional[str],
        value_date: Optional[HijriDate],
    ) -> CashConversion:
        """Convert cash amounts alone, as shown next to the inputs while typing.

        Rates are only looked up when at least one amount is positive.
        """
        if not target_currency:
            raise InvalidInputError("target_currency", "missing", "choose a target currency first")
        target = target_currency.upper()
        if target not in TARGET_CURRENCIES:
            raise InvalidInputError(
                "target_currency",
                "unsupported_currency",
                f"target currency must be one of {', '.join(TARGET_CURRENCIES)}",
            )
        if value_date is None:
            raise InvalidInputError("value_date", "missing", "choose a Hijri date first")
        problems: List[InvalidInputError] = []
        has_cash = _scan_quantities(
            "cash_by_currency", cash_by_currency, lambda k: str(k).upper() in CURRENCIES, problems
        )
        if problems:
            raise problems[0]
        gregorian = self._calendar.to_gregorian(value_date)
        if not has_cash:
            return CashConversion(
                target_currency=target,
                gregorian_date=gregorian,
                rates=None,
                breakdown={c: ZERO for c in CURRENCIES},
                total=ZERO,
            )
        rates = await self._provider.get_historical_rates(gregorian)
        breakdown = self.cash_breakdown(cash_by_currency, target, rates)
        return CashConversion(
            target_currency=target,
            gregorian_date=gregorian,
            rates=rates,
            breakdown=breakdown,
            total=sum(breakdown.values(), ZERO),
        )


# Singleton dependency helper used by FastAPI DI
@lru_cache
def get_calculator() -> ZakahCalculator:
    return ZakahCalculator(get_rate_provider())
