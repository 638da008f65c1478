from __future__ import annotations

from dataclasses import dataclass

from zakah.core.errors import InvalidDateError

MONTHS_PER_YEAR = 12
MAX_MONTH_DAYS = 30


def month_length(month: int) -> int:
    """Days in a Hijri month: odd months have 30, even months 29.

    Fixed arithmetic rule, identical for every year.
    """
    if not 1 <= month <= MONTHS_PER_YEAR:
        raise InvalidDateError(f"Hijri month must be 1..12, got {month}")
    return 30 if month % 2 == 1 else 29


@dataclass(frozen=True, order=True)
class HijriDate:
    year: int
    month: int
    day: int

    def __post_init__(self):
        for part in ("year", "month", "day"):
            value = getattr(self, part)
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidDateError(f"Hijri {part} must be an integer, got {value!r}")
        if self.year < 1:
            raise InvalidDateError(f"Hijri year must be >= 1, got {self.year}")
        length = month_length(self.month)
        if not 1 <= self.day <= length:
            raise InvalidDateError(
                f"Hijri day must be 1..{length} for month {self.month}, got {self.day}"
            )

    @classmethod
    def parse(cls, value: str) -> "HijriDate":
        """Parse the ``YYYY-MM-DD`` form produced by ``isoformat``."""
        parts = value.strip().split("-")
        if len(parts) != 3:
            raise InvalidDateError(f"Hijri date must look like YYYY-MM-DD, got {value!r}")
        try:
            year, month, day = (int(p) for p in parts)
        except ValueError as e:
            raise InvalidDateError(f"Hijri date has non-numeric parts: {value!r}") from e
        return cls(year, month, day)

    def isoformat(self) -> str:
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"

    def __str__(self) -> str:
        return self.isoformat()
