"""
Checkout: persist a settled sale.

Steps run in order: sale header, sale items, stock decrements, seller
earnings. The header and items must succeed or the checkout fails. Stock
and earnings writes are best effort: each runs in its own savepoint, and a
failure is logged and reported in CheckoutResult.failures without undoing
the steps already written.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Sale, SaleItem, SellerEarning
from ..time_utils import utcnow
from ..validation import ValidationError, parse_int
from .concurrency import run_with_retry
from .item_service import decrement_quantity
from .settlement import CartLine, SaleSettlement, settle


logger = logging.getLogger(__name__)


STEP_SALE = "insert_sale"
STEP_SALE_ITEMS = "insert_sale_items"
STEP_STOCK = "update_item_quantity"
STEP_EARNINGS = "insert_seller_earning"


class CheckoutError(Exception):
    """Raised when the sale header or its items cannot be written."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


@dataclass
class CheckoutResult:
    sale: Sale
    settlement: SaleSettlement
    failures: list[dict] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failures

    def to_dict(self) -> dict:
        return {
            "success": True,
            "complete": self.complete,
            "sale_id": self.sale.id,
            "sale": self.sale.to_dict(),
            "settlement": self.settlement.to_dict(),
            "failures": self.failures,
        }


def parse_cart(cart_payload: Any) -> list[CartLine]:
    """Parse the POS cart; item and seller ids must be integer keys."""
    if not isinstance(cart_payload, list):
        raise ValidationError("cartItems must be a list")
    lines = []
    for entry in cart_payload:
        line = CartLine.from_payload(entry)
        seller_id = line.seller_id
        lines.append(replace(
            line,
            item_id=parse_int(line.item_id, "item id"),
            seller_id=parse_int(seller_id, "seller_id") if seller_id is not None else None,
        ))
    return lines


def _record_failure(failures: list[dict], step: str, item_id: Any, error: str) -> None:
    failures.append({"step": step, "item_id": item_id, "error": error})


def _insert_sale(settlement: SaleSettlement, user_id: int | None, notes: str | None) -> Sale:
    def _op():
        sale = Sale(
            sale_date=utcnow(),
            total_cents=settlement.total_cents,
            payment_method=settlement.payment_method,
            created_by=user_id,
            notes=notes,
        )
        db.session.add(sale)
        db.session.commit()
        return sale

    try:
        return run_with_retry(_op)
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Failed to create sale record")
        raise CheckoutError("Failed to create sale record", details={"step": STEP_SALE}) from exc


def _insert_sale_items(sale: Sale, settlement: SaleSettlement) -> list[SaleItem]:
    items = [
        SaleItem(
            sale_id=sale.id,
            inventory_item_id=line.item_id,
            quantity=line.cart_quantity,
            price_sold_cents=line.unit_price_cents,
        )
        for line in settlement.lines
    ]
    try:
        db.session.add_all(items)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Failed to create sale items for sale %s", sale.id)
        raise CheckoutError(
            "Failed to create sale items",
            details={"step": STEP_SALE_ITEMS, "sale_id": sale.id},
        ) from exc
    return items


def _apply_stock_changes(settlement: SaleSettlement, failures: list[dict]) -> None:
    for line in settlement.lines:
        try:
            with db.session.begin_nested():
                ok = decrement_quantity(line.item_id, line.cart_quantity)
            if not ok:
                logger.warning(
                    "Item %s missing or stock below %s at checkout; quantity left unchanged",
                    line.item_id, line.cart_quantity,
                )
                _record_failure(failures, STEP_STOCK, line.item_id, "item missing or insufficient stock")
        except SQLAlchemyError as exc:
            logger.error("Failed to update quantity for item %s: %s", line.item_id, exc)
            _record_failure(failures, STEP_STOCK, line.item_id, str(exc))
    db.session.commit()


def _insert_earnings(
    settlement: SaleSettlement,
    sale_items: list[SaleItem],
    failures: list[dict],
) -> list[SellerEarning]:
    earnings = []
    for line, sale_item in zip(settlement.lines, sale_items):
        if line.seller_id is None:
            continue
        try:
            with db.session.begin_nested():
                earning = SellerEarning(
                    seller_id=line.seller_id,
                    sale_item_id=sale_item.id,
                    gross_cents=line.gross_cents,
                    commission_cents=line.commission_cents,
                    net_cents=line.net_cents,
                    created_at=utcnow(),
                )
                db.session.add(earning)
            earnings.append(earning)
        except SQLAlchemyError as exc:
            # Continue with the other sellers even if one insert fails
            logger.error("Error creating seller earnings for item %s: %s", line.item_id, exc)
            _record_failure(failures, STEP_EARNINGS, line.item_id, str(exc))
    db.session.commit()
    return earnings


def process_sale(
    cart_payload: Any,
    payment_method: Any,
    *,
    user_id: int | None = None,
    notes: str | None = None,
) -> CheckoutResult:
    """
    Settle a POS cart and write it.

    Raises ValidationError before any write for a malformed cart, and
    CheckoutError when the sale header or items cannot be stored.
    """
    settlement = settle(parse_cart(cart_payload), payment_method)

    sale = _insert_sale(settlement, user_id, notes)
    sale_items = _insert_sale_items(sale, settlement)

    failures: list[dict] = []
    _apply_stock_changes(settlement, failures)
    _insert_earnings(settlement, sale_items, failures)

    if failures:
        logger.warning("Sale %s completed with %s failed step(s)", sale.id, len(failures))
    else:
        logger.info("Sale %s completed: %s line(s), total %s cents", sale.id, len(sale_items), sale.total_cents)

    return CheckoutResult(
        sale=sale,
        settlement=SaleSettlement(
            lines=settlement.lines,
            total_cents=settlement.total_cents,
            payment_method=settlement.payment_method,
            sale_id=sale.id,
        ),
        failures=failures,
    )
