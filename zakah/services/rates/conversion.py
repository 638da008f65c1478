"""Cross-currency conversion over a USD-based RateSet.

A RateSet quotes every currency per 1 USD, so converting ``amount`` from
``source`` to ``target`` is ``amount * rates[target] / rates[source]``:

    target EGP: EGP + SAR * (EGP/SAR) + USD * EGP
    target SAR: EGP * (SAR/EGP) + SAR + USD * SAR

No rounding happens here; callers round only for display.
"""

from __future__ import annotations

from decimal import Decimal, DivisionByZero, InvalidOperation
from typing import Dict, Mapping

from zakah.core.errors import CalculationFailure
from zakah.models.rates import RateSet


def convert_amount(amount: Decimal, source: str, target: str, rates: RateSet) -> Decimal:
    source = source.upper()
    target = target.upper()
    if source == target:
        return amount
    try:
        source_rate = rates[source]
        target_rate = rates[target]
    except KeyError as e:
        raise CalculationFailure(f"no rate for {e.args[0]}") from e
    if source_rate <= 0 or target_rate <= 0:
        raise CalculationFailure(
            f"non-positive rate reached conversion: {source}={source_rate}, {target}={target_rate}"
        )
    try:
        return amount * (target_rate / source_rate)
    except (DivisionByZero, InvalidOperation) as e:
        raise CalculationFailure(f"cannot convert {source} to {target}: {e}") from e


def convert_cash_breakdown(
    cash_by_currency: Mapping[str, Decimal], target: str, rates: RateSet
) -> Dict[str, Decimal]:
    return {
        currency.upper(): convert_amount(amount, currency, target, rates)
        for currency, amount in cash_by_currency.items()
    }
