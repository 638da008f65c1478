"""Tests for the arithmetic Hijri calendar."""

from datetime import date, timedelta

import pytest

from zakah.core.errors import InvalidDateError
from zakah.models.hijri import HijriDate
from zakah.services.hijri_calendar import HijriCalendar, LEAP_YEAR_POSITIONS

calendar = HijriCalendar()


class TestCalendarRules:
    @pytest.mark.parametrize("month", range(1, 13))
    def test_month_length_30_iff_odd(self, month):
        expected = 30 if month % 2 == 1 else 29
        assert calendar.month_length(1446, month) == expected
        assert calendar.month_length(1, month) == expected

    def test_month_out_of_range_rejected(self):
        with pytest.raises(InvalidDateError):
            calendar.month_length(1446, 13)

    def test_year_length_follows_30_year_cycle(self):
        for year in range(1, 2000):
            length = calendar.year_length(year)
            assert length in (354, 355)
            assert (length == 355) == (year % 30 in LEAP_YEAR_POSITIONS)

    def test_eleven_leap_years_per_cycle(self):
        assert sum(calendar.is_leap_year(y) for y in range(1441, 1471)) == 11

    def test_known_years(self):
        assert calendar.is_leap_year(1447)  # 1447 % 30 == 7
        assert not calendar.is_leap_year(1446)
        assert calendar.year_length(1447) == 355

    def test_days_in_month(self):
        assert calendar.days_in_month(1446, 1) == list(range(1, 31))
        assert calendar.days_in_month(1446, 2) == list(range(1, 30))


class TestToGregorian:
    def test_reference_date(self):
        assert calendar.to_gregorian(HijriDate(1446, 1, 1)) == date(2024, 7, 8)

    def test_deterministic(self):
        d = HijriDate(1446, 9, 14)
        assert calendar.to_gregorian(d) == calendar.to_gregorian(d)

    def test_days_within_reference_month(self):
        assert calendar.to_gregorian(HijriDate(1446, 1, 30)) == date(2024, 8, 6)

    def test_counts_month_lengths(self):
        # Muharram has 30 days
        assert calendar.to_gregorian(HijriDate(1446, 2, 1)) == date(2024, 8, 7)
        # 6 * 30 + 5 * 29 = 325 days before Dhu al-Hijjah
        assert calendar.to_gregorian(HijriDate(1446, 12, 29)) == date(2025, 6, 26)

    def test_counts_year_lengths(self):
        # 1446 is a common year (354 days)
        assert calendar.to_gregorian(HijriDate(1447, 1, 1)) == date(2025, 6, 27)
        # 1447 is a leap year (355 days)
        assert calendar.to_gregorian(HijriDate(1448, 1, 1)) == date(2026, 6, 17)

    def test_before_reference_year_rejected(self):
        with pytest.raises(InvalidDateError):
            calendar.to_gregorian(HijriDate(1445, 12, 29))

    def test_custom_reference(self):
        shifted = HijriCalendar(HijriDate(1446, 1, 1), date(2024, 7, 7))
        assert shifted.to_gregorian(HijriDate(1446, 1, 1)) == date(2024, 7, 7)

    def test_whole_cycles_match_year_by_year_sum(self):
        ref = calendar.reference_hijri
        for target_year in (1475, 1476, 1477, 1520, 2000, 3333):
            expected = sum(calendar.year_length(y) for y in range(ref.year, target_year))
            assert calendar.days_from_reference(HijriDate(target_year, 1, 1)) == expected

    def test_one_cycle_is_10631_days(self):
        assert calendar.to_gregorian(HijriDate(1476, 1, 1)) - calendar.to_gregorian(
            HijriDate(1446, 1, 1)
        ) == timedelta(days=10631)

    def test_late_supported_year(self):
        assert calendar.to_gregorian(HijriDate(9600, 1, 1)).year == 9935

    @pytest.mark.parametrize("year", [10000, 3_000_000, 10**15])
    def test_past_last_gregorian_date_rejected(self, year):
        with pytest.raises(InvalidDateError, match="beyond"):
            calendar.to_gregorian(HijriDate(year, 1, 1))


class TestApproximateSeed:
    def test_year_offset_and_same_month_day(self):
        assert calendar.from_gregorian_approx(date(2025, 3, 15)) == HijriDate(1447, 3, 15)

    def test_day_clamped_to_month_length(self):
        assert calendar.from_gregorian_approx(date(2024, 4, 30)) == HijriDate(1446, 4, 29)
        assert calendar.from_gregorian_approx(date(2024, 12, 31)) == HijriDate(1446, 12, 29)
        assert calendar.from_gregorian_approx(date(2024, 1, 31)) == HijriDate(1446, 1, 30)

    def test_not_an_inverse_of_exact_conversion(self):
        seeded = calendar.from_gregorian_approx(date(2024, 7, 8))
        assert seeded == HijriDate(1446, 7, 8)
        assert calendar.to_gregorian(seeded) != date(2024, 7, 8)

    def test_year_options_stop_at_reference_year(self):
        assert calendar.year_options(date(2026, 10, 19)) == [1446, 1447, 1448]

    def test_year_options_span(self):
        assert calendar.year_options(date(2035, 1, 1)) == list(range(1451, 1458))

    def test_default_date(self):
        assert calendar.default_date(date(2025, 2, 10)) == HijriDate(1447, 2, 10)


class TestHijriDate:
    @pytest.mark.parametrize(
        "parts",
        [(1446, 2, 30), (1446, 13, 1), (1446, 0, 1), (1446, 1, 0), (0, 1, 1)],
    )
    def test_out_of_range_parts_rejected(self, parts):
        with pytest.raises(InvalidDateError):
            HijriDate(*parts)

    def test_non_integer_rejected(self):
        with pytest.raises(InvalidDateError):
            HijriDate(1446, "1", 1)

    def test_parse_and_format(self):
        d = HijriDate.parse("1446-09-01")
        assert d == HijriDate(1446, 9, 1)
        assert d.isoformat() == "1446-09-01"

    @pytest.mark.parametrize("raw", ["1446-09", "year-1-1", ""])
    def test_parse_rejects_malformed(self, raw):
        with pytest.raises(InvalidDateError):
            HijriDate.parse(raw)
