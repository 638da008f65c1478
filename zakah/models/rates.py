from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Mapping

from .constants import CURRENCIES, FALLBACK_RATES


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"rate must be numeric, got {value!r}")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"rate must be numeric, got {value!r}") from e


@dataclass(frozen=True)
class RateSet:
    """Exchange rates for one date, as units of each currency per 1 USD."""

    EGP: Decimal
    SAR: Decimal
    USD: Decimal = Decimal("1")

    def __post_init__(self):
        for code in CURRENCIES:
            value = getattr(self, code)
            if not isinstance(value, Decimal):
                object.__setattr__(self, code, _to_decimal(value))
        for code in CURRENCIES:
            value = getattr(self, code)
            if not value.is_finite() or value <= 0:
                raise ValueError(f"{code} rate must be positive, got {value}")
        if self.USD != 1:
            raise ValueError(f"USD rate must be exactly 1, got {self.USD}")

    @classmethod
    def from_mapping(cls, rates: Mapping[str, Any]) -> "RateSet":
        """Build from a raw payload such as an API ``conversion_rates`` object.

        Only EGP and SAR are read; USD is the base and always 1.
        """
        missing = [c for c in ("EGP", "SAR") if rates.get(c) is None]
        if missing:
            raise ValueError(f"missing rates for {', '.join(missing)}")
        return cls(EGP=_to_decimal(rates["EGP"]), SAR=_to_decimal(rates["SAR"]))

    @classmethod
    def fallback(cls) -> "RateSet":
        return cls(**FALLBACK_RATES)

    def __getitem__(self, code: str) -> Decimal:
        code = code.upper()
        if code not in CURRENCIES:
            raise KeyError(code)
        return getattr(self, code)

    def as_dict(self) -> Dict[str, Decimal]:
        return {code: getattr(self, code) for code in CURRENCIES}
