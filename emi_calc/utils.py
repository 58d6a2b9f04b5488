"""Utility functions for the EMI calculator.

This module provides helpers for turning user input into ``Decimal`` values
and the two rounding primitives every calculation is built on: deriving the
periodic rate from an annual percentage and rounding an amount to currency
scale. Both take a :class:`~emi_calc.data_models.PrecisionPolicy` so the
precision in force is always explicit; the thread's global decimal context is
never modified.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, localcontext
from typing import Any, Optional

from .data_models import DEFAULT_POLICY, PrecisionPolicy
from .errors import InvalidArgument


def decimal_from_str(value: str) -> Decimal:
    """Convert a numeric string into a ``Decimal``.

    The function strips surrounding whitespace and any thousands separators.
    It raises ``ValueError`` if conversion fails or the value is not finite.
    """
    try:
        cleaned = value.strip().replace(",", "").replace("_", "")
        result = Decimal(cleaned)
    except (InvalidOperation, AttributeError) as exc:
        raise ValueError(f"Invalid numeric value: {value}") from exc
    if not result.is_finite():
        raise ValueError(f"Invalid numeric value: {value}")
    return result


def parse_amount(value: str) -> Decimal:
    """Parse a monetary amount with optional ``k``/``m`` suffixes.

    Accepts plain numbers ("500000"), thousands separators ("1,200,000") and
    shorthand such as "500k" (500 000) or "1.2m" (1 200 000).
    """
    text = value.strip().lower()
    factor = Decimal(1)
    if text.endswith("k"):
        factor = Decimal(1_000)
        text = text[:-1]
    elif text.endswith("m"):
        factor = Decimal(1_000_000)
        text = text[:-1]
    return decimal_from_str(text) * factor


def parse_percent(value: str) -> Decimal:
    """Parse an annual rate given in percent, with or without a ``%`` sign."""
    text = value.strip()
    if text.endswith("%"):
        text = text[:-1]
    return decimal_from_str(text)


def to_decimal(value: Any, field: str) -> Decimal:
    """Coerce ``value`` to ``Decimal`` or raise :class:`InvalidArgument`.

    ``int`` and numeric strings convert exactly; floats are converted through
    their shortest ``repr`` so ``8.5`` becomes ``Decimal("8.5")`` rather than
    the binary approximation.
    """
    if value is None:
        raise InvalidArgument(field, "must not be None")
    if isinstance(value, bool):
        raise InvalidArgument(field, "is not a valid number")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    elif isinstance(value, str):
        try:
            result = decimal_from_str(value)
        except ValueError as exc:
            raise InvalidArgument(field, "is not a valid number") from exc
    else:
        raise InvalidArgument(field, "is not a valid number")
    if not result.is_finite():
        raise InvalidArgument(field, "is not a valid number")
    return result


def require_int(value: Any, field: str) -> int:
    """Return ``value`` as an ``int`` or raise :class:`InvalidArgument`."""
    if value is None:
        raise InvalidArgument(field, "must not be None")
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgument(field, "must be an integer")
    return value


def periodic_rate(annual_rate_percent: Decimal, policy: PrecisionPolicy = DEFAULT_POLICY) -> Decimal:
    """Return the per-period rate for an annual rate given in percent.

    The rate is ``annual_rate_percent / 100 / periods_per_year`` kept at
    ``policy.rate_scale`` fractional digits. For example 12 % per year gives
    ``0.01`` per month.
    """
    with localcontext(policy.working_context()):
        rate = annual_rate_percent / Decimal(100 * policy.periods_per_year)
        return rate.quantize(policy.rate_quantum, rounding=policy.rounding)


def round_currency(value: Decimal, policy: Optional[PrecisionPolicy] = None) -> Decimal:
    """Round ``value`` to currency scale (two places, half-up by default)."""
    policy = policy or DEFAULT_POLICY
    with localcontext(policy.working_context()):
        return value.quantize(policy.currency_quantum, rounding=policy.rounding)
