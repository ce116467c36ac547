from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any


# Maximum price: $9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_PRICE_CENTS = 999_999_999

BPS_PER_UNIT = 10_000
CENT = Decimal("0.01")


class ValidationError(ValueError):
    """400-level input problem."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate SKU)."""


class NotFoundError(LookupError):
    """404-level missing entity."""


def parse_int(value: Any, field: str) -> int:
    """
    Strict integer parsing - rejects floats, bools and scientific notation.
    """
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if "e" in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if "." in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    raise ValidationError(f"{field} must be an integer")


def parse_positive_int(value: Any, field: str) -> int:
    result = parse_int(value, field)
    if result < 1:
        raise ValidationError(f"{field} must be >= 1")
    return result


def _to_decimal(value: Any, field: str) -> Decimal:
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            # str() first so 19.99 becomes Decimal("19.99"), not its binary expansion
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ValidationError(f"{field} must be a number")
    if not result.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    return result


def parse_money_to_cents(value: Any, field: str = "price") -> int:
    """
    Convert a currency amount ("19.99", 19.99, Decimal) to integer cents.

    Amounts with more than two decimal places are rejected rather than rounded.
    """
    amount = _to_decimal(value, field)
    if amount < 0:
        raise ValidationError(f"{field} must be >= 0")
    if amount != amount.quantize(CENT):
        raise ValidationError(f"{field} cannot have more than 2 decimal places")
    cents = int(amount * 100)
    if cents > MAX_PRICE_CENTS:
        raise ValidationError(f"{field} cannot exceed {MAX_PRICE_CENTS / 100:,.2f}")
    return cents


def parse_rate(value: Any, field: str = "commission_rate") -> Decimal:
    """Parse a fraction in [0, 1] (e.g. 0.15 for 15%)."""
    rate = _to_decimal(value, field)
    if rate < 0 or rate > 1:
        raise ValidationError(f"{field} must be between 0 and 1")
    return rate


def rate_to_bps(rate: Decimal) -> int:
    return int((rate * BPS_PER_UNIT).to_integral_value())


def bps_to_rate(bps: int | None) -> Decimal | None:
    if bps is None:
        return None
    return Decimal(bps) / BPS_PER_UNIT


def cents_to_str(cents: int | None) -> str | None:
    """Render cents as a fixed two-decimal amount string."""
    if cents is None:
        return None
    return str((Decimal(cents) / 100).quantize(CENT))
