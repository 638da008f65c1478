"""Tests for wealth aggregation and the Zakah levy."""

import asyncio
from datetime import date
from decimal import Decimal

import pytest

from zakah.core.errors import CalculationFailure, InvalidDateError, InvalidInputError
from zakah.models.hijri import HijriDate
from zakah.models.rates import RateSet
from zakah.models.wealth import WealthInput
from zakah.services.rates.conversion import convert_amount
from zakah.services.rates.providers import ExchangeRateProvider
from zakah.services.zakah_calculator import ZakahCalculator

from tests.fakes import FakeHistoricalSource, FakeLatestSource

VALUE_DATE = HijriDate(1446, 1, 1)
RATES = RateSet(EGP=Decimal("48"), SAR=Decimal("3.75"))


def _wealth(**overrides) -> WealthInput:
    values = dict(
        gold_by_purity={},
        cash_by_currency={"EGP": Decimal("1000"), "SAR": Decimal("100"), "USD": Decimal("0")},
        gold_price_per_gram_24k=Decimal("3500"),
        target_currency="EGP",
        value_date=VALUE_DATE,
    )
    values.update(overrides)
    return WealthInput(**values)


def _codes(problems):
    return [(p.field, p.code) for p in problems]


class TestGold:
    def test_mixed_purity_to_24k(self):
        grams = ZakahCalculator.convert_gold_to_24k({18: 10, 21: 0, 24: 5})
        assert grams == Decimal("12.5")

    def test_breakdown_per_grade(self):
        breakdown = ZakahCalculator.gold_breakdown({"18k": 8, "21": 8})
        assert breakdown == {18: Decimal("6"), 21: Decimal("7")}

    def test_unknown_purity_rejected(self):
        with pytest.raises(InvalidInputError) as exc:
            ZakahCalculator.gold_breakdown({22: 5})
        assert exc.value.code == "unknown_key"


class TestCash:
    def test_to_egp(self):
        total = ZakahCalculator.convert_cash_to_target(
            {"EGP": 1000, "SAR": 100, "USD": 0}, "EGP", RATES
        )
        assert total == Decimal("2280")

    def test_to_sar(self):
        breakdown = ZakahCalculator.cash_breakdown(
            {"EGP": 480, "SAR": 5, "USD": 10}, "SAR", RATES
        )
        assert breakdown["EGP"] == Decimal("37.5")
        assert breakdown["SAR"] == Decimal("5")
        assert breakdown["USD"] == Decimal("37.5")
        assert sum(breakdown.values()) == Decimal("80")

    def test_usd_target_not_offered(self):
        with pytest.raises(InvalidInputError) as exc:
            ZakahCalculator.cash_breakdown({"EGP": 1}, "USD", RATES)
        assert exc.value.code == "unsupported_currency"

    def test_zero_rate_is_calculation_failure(self):
        with pytest.raises(CalculationFailure):
            convert_amount(Decimal("100"), "SAR", "EGP", {"EGP": Decimal("48"), "SAR": Decimal("0")})

    def test_same_currency_unchanged(self):
        assert convert_amount(Decimal("12.345"), "egp", "EGP", RATES) == Decimal("12.345")


class TestCheckCanCalculate:
    def test_complete_input_passes(self, calculator):
        assert calculator.check_can_calculate(_wealth()) == []
        assert calculator.can_calculate(_wealth())

    def test_problems_ordered_most_basic_first(self, calculator):
        problems = calculator.check_can_calculate(
            WealthInput(target_currency=None, value_date=None)
        )
        assert _codes(problems) == [
            ("target_currency", "missing"),
            ("value_date", "missing"),
            ("gold_price_per_gram_24k", "not_positive"),
            ("assets", "empty"),
        ]

    def test_negative_amounts_reported(self, calculator):
        problems = calculator.check_can_calculate(
            _wealth(cash_by_currency={"EGP": -5}, gold_by_purity={24: 1})
        )
        assert _codes(problems) == [("cash_by_currency", "negative")]

    def test_all_zero_assets_empty(self, calculator):
        problems = calculator.check_can_calculate(
            _wealth(cash_by_currency={"EGP": 0}, gold_by_purity={18: 0})
        )
        assert _codes(problems) == [("assets", "empty")]

    def test_unknown_currency_reported(self, calculator):
        problems = calculator.check_can_calculate(_wealth(cash_by_currency={"EUR": 10}))
        assert ("cash_by_currency", "unknown_key") in _codes(problems)

    def test_unconvertible_date_reported(self, calculator):
        for value_date in (HijriDate(1440, 1, 1), HijriDate(10000, 1, 1)):
            problems = calculator.check_can_calculate(_wealth(value_date=value_date))
            assert _codes(problems) == [("value_date", "out_of_range")]
            assert not calculator.can_calculate(_wealth(value_date=value_date))


class TestCalculate:
    def test_egp_end_to_end(self, calculator):
        result = asyncio.run(calculator.calculate(_wealth()))
        assert result.total_cash == Decimal("2280")
        assert result.gold_value == 0
        assert result.total_wealth == Decimal("2280")
        assert result.zakah_due == Decimal("57.000")
        assert result.gregorian_date == date(2024, 7, 8)
        assert result.rates == RATES

    def test_gold_and_cash_in_sar(self, calculator):
        result = asyncio.run(
            calculator.calculate(
                _wealth(
                    gold_by_purity={21: 8},
                    cash_by_currency={"EGP": 480, "SAR": 5, "USD": 10},
                    gold_price_per_gram_24k=Decimal("300"),
                    target_currency="sar",
                )
            )
        )
        assert result.total_gold_grams_24k == Decimal("7")
        assert result.gold_value == Decimal("2100")
        assert result.total_cash == Decimal("80")
        assert result.total_wealth == Decimal("2180")
        assert result.zakah_due == Decimal("54.5")
        assert result.target_currency == "SAR"

    def test_zero_gold_price_rejected_before_lookup(self, calculator, historical_source, latest_source):
        with pytest.raises(InvalidInputError) as exc:
            asyncio.run(calculator.calculate(_wealth(gold_price_per_gram_24k=Decimal("0"))))
        assert exc.value.field == "gold_price_per_gram_24k"
        assert historical_source.calls == []
        assert latest_source.calls == 0

    def test_missing_target_rejected(self, calculator):
        with pytest.raises(InvalidInputError) as exc:
            asyncio.run(calculator.calculate(_wealth(target_currency=None)))
        assert exc.value.code == "missing"

    def test_pre_epoch_date_rejected(self, calculator, historical_source):
        with pytest.raises(InvalidDateError):
            asyncio.run(calculator.calculate(_wealth(value_date=HijriDate(1440, 1, 1))))
        assert historical_source.calls == []

    def test_completes_on_fixed_rates_when_sources_fail(self):
        provider = ExchangeRateProvider(
            FakeHistoricalSource(error="down"), FakeLatestSource(error="down")
        )
        result = asyncio.run(ZakahCalculator(provider).calculate(_wealth()))
        assert result.rates.as_dict() == {
            "EGP": Decimal("48.0"),
            "SAR": Decimal("3.75"),
            "USD": Decimal("1"),
        }
        assert result.total_cash == Decimal("2280")

    def test_same_value_date_looked_up_once(self, calculator, historical_source):
        asyncio.run(calculator.calculate(_wealth()))
        asyncio.run(calculator.calculate(_wealth(cash_by_currency={"USD": 3})))
        assert historical_source.calls == [date(2024, 7, 8)]


class TestPreviewCash:
    def test_zero_amounts_skip_lookup(self, calculator, historical_source):
        conversion = asyncio.run(calculator.preview_cash({"EGP": 0}, "EGP", VALUE_DATE))
        assert conversion.rates is None
        assert conversion.total == 0
        assert set(conversion.breakdown) == {"EGP", "SAR", "USD"}
        assert historical_source.calls == []

    def test_converts_with_value_date_rates(self, calculator):
        conversion = asyncio.run(calculator.preview_cash({"SAR": 100}, "EGP", VALUE_DATE))
        assert conversion.total == Decimal("1280")
        assert conversion.rates == RATES

    def test_target_checked_first(self, calculator):
        with pytest.raises(InvalidInputError) as exc:
            asyncio.run(calculator.preview_cash({"EGP": -1}, None, None))
        assert exc.value.field == "target_currency"

    def test_missing_date(self, calculator):
        with pytest.raises(InvalidInputError) as exc:
            asyncio.run(calculator.preview_cash({"EGP": 1}, "SAR", None))
        assert exc.value.field == "value_date"
