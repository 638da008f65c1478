"""Money / rounding helpers.

Calculations keep full Decimal precision; values are rounded here only when
they are rendered for a client.
"""

from __future__ import annotations
from decimal import Decimal, ROUND_HALF_UP
from typing import Mapping, Dict, Any


def round2(value: Decimal | float) -> float:
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def round2_map(values: Mapping[Any, Decimal]) -> Dict[str, float]:
    return {str(k): round2(v) for k, v in values.items()}
