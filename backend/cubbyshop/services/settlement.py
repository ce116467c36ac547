"""
Sale settlement: the monetary breakdown of a checkout.

Every cart line is split into the gross amount the customer pays, the
commission the shop keeps and the net amount owed to the seller. All amounts
are integer cents; commission is rounded half-up to the nearest cent.

settle() is pure. It assigns no identifiers and performs no writes; the
checkout service persists the result.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable

from ..validation import (
    MAX_PRICE_CENTS,
    ValidationError,
    cents_to_str,
    parse_money_to_cents,
    parse_positive_int,
    parse_rate,
)


DEFAULT_COMMISSION_RATE = Decimal("0.15")

PAYMENT_CASH = "cash"
PAYMENT_CARD = "card"
PAYMENT_OTHER = "other"
VALID_PAYMENT_METHODS = (PAYMENT_CASH, PAYMENT_CARD, PAYMENT_OTHER)


@dataclass(frozen=True)
class CartLine:
    item_id: Any
    unit_price_cents: int
    quantity: int
    cart_quantity: int
    seller_id: Any = None
    commission_rate: Decimal | None = None

    @property
    def effective_commission_rate(self) -> Decimal:
        if self.commission_rate is None:
            return DEFAULT_COMMISSION_RATE
        return self.commission_rate

    @classmethod
    def from_payload(cls, payload: dict) -> "CartLine":
        """
        Build a line from the POS cart shape:
        {id | itemId, cartQuantity, price, quantity, seller_id?, commission_rate?}

        price is in currency units (e.g. 19.99).
        """
        if not isinstance(payload, dict):
            raise ValidationError("Cart line must be an object")

        item_id = payload.get("id", payload.get("itemId"))
        if item_id is None or str(item_id).strip() == "":
            raise ValidationError("Cart line is missing an item id")

        for key in ("price", "quantity", "cartQuantity"):
            if payload.get(key) is None:
                raise ValidationError(f"Cart line {item_id} is missing {key}")

        rate = payload.get("commission_rate")
        seller_id = payload.get("seller_id")
        return cls(
            item_id=item_id,
            unit_price_cents=parse_money_to_cents(payload["price"], "price"),
            quantity=parse_positive_int(payload["quantity"], "quantity"),
            cart_quantity=parse_positive_int(payload["cartQuantity"], "cartQuantity"),
            seller_id=seller_id if seller_id not in ("", None) else None,
            # 0 and missing both mean "use the default", as the POS always has
            commission_rate=parse_rate(rate) if rate not in (None, "", 0) else None,
        )


@dataclass(frozen=True)
class SettledLine:
    item_id: Any
    seller_id: Any
    unit_price_cents: int
    cart_quantity: int
    commission_rate: Decimal
    gross_cents: int
    commission_cents: int
    net_cents: int
    resulting_quantity: int

    def to_dict(self) -> dict:
        return {
            "item_id": self.item_id,
            "seller_id": self.seller_id,
            "unit_price_cents": self.unit_price_cents,
            "quantity": self.cart_quantity,
            "commission_rate": str(self.commission_rate),
            "gross_cents": self.gross_cents,
            "commission_cents": self.commission_cents,
            "net_cents": self.net_cents,
            "gross_amount": cents_to_str(self.gross_cents),
            "commission_amount": cents_to_str(self.commission_cents),
            "net_amount": cents_to_str(self.net_cents),
            "resulting_quantity": self.resulting_quantity,
        }


@dataclass(frozen=True)
class SaleSettlement:
    lines: tuple[SettledLine, ...]
    total_cents: int
    payment_method: str
    sale_id: Any = field(default=None, compare=False)

    def earnings_lines(self) -> list[SettledLine]:
        return [line for line in self.lines if line.seller_id is not None]

    @property
    def total_commission_cents(self) -> int:
        return sum(line.commission_cents for line in self.lines)

    def to_dict(self) -> dict:
        return {
            "sale_id": self.sale_id,
            "payment_method": self.payment_method,
            "total_cents": self.total_cents,
            "total_amount": cents_to_str(self.total_cents),
            "total_commission_cents": self.total_commission_cents,
            "lines": [line.to_dict() for line in self.lines],
        }


def normalize_payment_method(payment_method: Any) -> str:
    if not isinstance(payment_method, str) or payment_method.strip().lower() not in VALID_PAYMENT_METHODS:
        raise ValidationError(
            f"payment_method must be one of: {', '.join(VALID_PAYMENT_METHODS)}",
            details={"payment_method": payment_method},
        )
    return payment_method.strip().lower()


def commission_for(gross_cents: int, rate: Decimal) -> int:
    """Commission in cents, rounded half-up to the nearest cent."""
    return int((Decimal(gross_cents) * rate).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def _validate_line(index: int, line: CartLine) -> None:
    where = f"Cart line {index + 1} (item {line.item_id})"
    if not isinstance(line.unit_price_cents, int) or isinstance(line.unit_price_cents, bool):
        raise ValidationError(f"{where}: price must be integer cents")
    if line.unit_price_cents < 0:
        raise ValidationError(f"{where}: price must be >= 0")
    if line.unit_price_cents > MAX_PRICE_CENTS:
        raise ValidationError(f"{where}: price exceeds maximum")
    if line.cart_quantity < 1:
        raise ValidationError(f"{where}: cart quantity must be >= 1")
    if line.quantity < 1:
        raise ValidationError(f"{where}: no stock available")
    if line.cart_quantity > line.quantity:
        raise ValidationError(
            f"{where}: cart quantity exceeds available quantity",
            details={
                "item_id": line.item_id,
                "cart_quantity": line.cart_quantity,
                "quantity": line.quantity,
            },
        )
    rate = line.effective_commission_rate
    if rate < 0 or rate > 1:
        raise ValidationError(f"{where}: commission rate must be between 0 and 1")


def _validate_item_totals(lines: list[CartLine]) -> None:
    """An item split across several cart lines must still fit its stock."""
    requested: dict[Any, int] = {}
    for index, line in enumerate(lines):
        requested[line.item_id] = requested.get(line.item_id, 0) + line.cart_quantity
        if requested[line.item_id] > line.quantity:
            raise ValidationError(
                f"Cart line {index + 1} (item {line.item_id}): combined cart quantity exceeds available quantity",
                details={
                    "item_id": line.item_id,
                    "cart_quantity": requested[line.item_id],
                    "quantity": line.quantity,
                },
            )


def settle(cart_lines: Iterable[CartLine], payment_method: str) -> SaleSettlement:
    """
    Compute the settlement for a cart.

    The whole cart is validated before any line is computed, so a bad line
    never yields a partial settlement.
    """
    lines = list(cart_lines)
    if not lines:
        raise ValidationError("Cart is empty")

    method = normalize_payment_method(payment_method)
    for index, line in enumerate(lines):
        _validate_line(index, line)
    _validate_item_totals(lines)

    settled = []
    taken: dict[Any, int] = {}
    for line in lines:
        taken[line.item_id] = taken.get(line.item_id, 0) + line.cart_quantity
        rate = line.effective_commission_rate
        gross = line.unit_price_cents * line.cart_quantity
        commission = commission_for(gross, rate)
        settled.append(
            SettledLine(
                item_id=line.item_id,
                seller_id=line.seller_id,
                unit_price_cents=line.unit_price_cents,
                cart_quantity=line.cart_quantity,
                commission_rate=rate,
                gross_cents=gross,
                commission_cents=commission,
                net_cents=gross - commission,
                resulting_quantity=line.quantity - taken[line.item_id],
            )
        )

    return SaleSettlement(
        lines=tuple(settled),
        total_cents=sum(line.gross_cents for line in settled),
        payment_method=method,
    )
