"""Arithmetic Hijri calendar.

Month lengths follow a fixed odd/even rule and leap years follow the standard
30-year cycle, so results are deterministic and need no lunar observation
data. Conversion to Gregorian counts days from a fixed reference pair:

    Hijri 1446-01-01 == Gregorian 2024-07-08

Dates before the reference year are not supported, nor dates whose
Gregorian equivalent lies past ``datetime.date.max`` (around Hijri 9666).

The reverse direction (``from_gregorian_approx``) is NOT an inverse of
``to_gregorian``: it maps the Gregorian year onto a Hijri year by a fixed
offset and reuses month and day as-is. It only exists to seed a default
selection for date pickers and must never be used for rate lookups.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import List

from zakah.core.errors import InvalidDateError
from zakah.models.hijri import HijriDate, MAX_MONTH_DAYS, MONTHS_PER_YEAR, month_length

LEAP_YEAR_POSITIONS = frozenset({2, 5, 7, 10, 13, 16, 18, 21, 24, 26, 29})
CYCLE_YEARS = 30
CYCLE_DAYS = CYCLE_YEARS * 354 + len(LEAP_YEAR_POSITIONS)  # 10631

REFERENCE_HIJRI = HijriDate(1446, 1, 1)
REFERENCE_GREGORIAN = date(2024, 7, 8)

# Anchor for the approximate Gregorian -> Hijri seed
APPROX_GREGORIAN_YEAR = 2024
APPROX_HIJRI_YEAR = 1446

DEFAULT_YEAR_SPAN = 6


class HijriCalendar:
    def __init__(
        self,
        reference_hijri: HijriDate = REFERENCE_HIJRI,
        reference_gregorian: date = REFERENCE_GREGORIAN,
    ):
        self.reference_hijri = reference_hijri
        self.reference_gregorian = reference_gregorian

    # Calendar rules ------------------------------------------
    def month_length(self, year: int, month: int) -> int:
        return month_length(month)

    def is_leap_year(self, year: int) -> bool:
        return year % CYCLE_YEARS in LEAP_YEAR_POSITIONS

    def year_length(self, year: int) -> int:
        return 355 if self.is_leap_year(year) else 354

    def days_in_month(self, year: int, month: int) -> List[int]:
        """Valid day numbers for a month, for populating day pickers."""
        if year < 1:
            raise InvalidDateError(f"Hijri year must be >= 1, got {year}")
        return list(range(1, self.month_length(year, month) + 1))

    # Conversion ----------------------------------------------
    def days_from_reference(self, target: HijriDate) -> int:
        ref = self.reference_hijri
        if target.year < ref.year:
            raise InvalidDateError(
                f"Hijri year {target.year} is before the supported epoch {ref.year}"
            )
        if target < ref:
            raise InvalidDateError(
                f"Hijri date {target} is before the supported epoch {ref}"
            )
        # any 30 consecutive years hold exactly one full leap cycle
        cycles, remainder = divmod(target.year - ref.year, CYCLE_YEARS)
        total = cycles * CYCLE_DAYS
        first = ref.year + cycles * CYCLE_YEARS
        for year in range(first, first + remainder):
            total += self.year_length(year)
        for month in range(1, target.month):
            total += self.month_length(target.year, month)
        total += target.day - ref.day
        return total

    def to_gregorian(self, target: HijriDate) -> date:
        days = self.days_from_reference(target)
        try:
            return self.reference_gregorian + timedelta(days=days)
        except OverflowError as e:
            raise InvalidDateError(
                f"Hijri date {target} is beyond the last representable Gregorian date"
            ) from e

    def from_gregorian_approx(self, day: date) -> HijriDate:
        """Approximate Hijri date for seeding pickers. Not an exact conversion.

        Shifts the year by a fixed offset from 2024 == 1446 and keeps the
        Gregorian month and day, clamped into a valid Hijri month and day.
        """
        year = max(1, APPROX_HIJRI_YEAR + (day.year - APPROX_GREGORIAN_YEAR))
        month = max(1, min(MONTHS_PER_YEAR, day.month))
        # 1..30 first, then to the month's real length so the result is valid
        dom = max(1, min(MAX_MONTH_DAYS, day.day))
        dom = min(dom, self.month_length(year, month))
        return HijriDate(year, month, dom)

    # Picker helpers ------------------------------------------
    def default_date(self, today: date | None = None) -> HijriDate:
        return self.from_gregorian_approx(today or date.today())

    def year_options(self, today: date | None = None, span: int = DEFAULT_YEAR_SPAN) -> List[int]:
        """Current (approximate) Hijri year and up to ``span`` years before it.

        Years before the reference epoch are left out since they cannot be
        converted.
        """
        current = self.default_date(today).year
        first = max(current - span, self.reference_hijri.year)
        return list(range(first, current + 1))


DEFAULT_CALENDAR = HijriCalendar()
