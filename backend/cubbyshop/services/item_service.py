# Overview: Service-layer operations for inventory items; encapsulates business logic and database work.

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import CubbyRental, InventoryItem, User
from ..models.cubbies import RENTAL_ACTIVE
from ..time_utils import utcnow
from ..validation import (
    ConflictError,
    NotFoundError,
    ValidationError,
    parse_int,
    parse_money_to_cents,
    parse_rate,
    rate_to_bps,
)
from .concurrency import guarded_decrement


logger = logging.getLogger(__name__)


# Fields staff and sellers may edit after listing
UPDATE_FIELDS = ("name", "price", "category", "description", "quantity", "condition", "barcode", "is_active")


def _parse_quantity(value) -> int:
    qty = parse_int(value, "quantity")
    if qty < 0:
        raise ValidationError("quantity must be >= 0")
    return qty


def _active_rental_for(seller_id: int) -> CubbyRental | None:
    return (
        db.session.query(CubbyRental)
        .filter_by(seller_id=seller_id, status=RENTAL_ACTIVE)
        .order_by(CubbyRental.end_date.desc())
        .first()
    )


def create_item(
    *,
    sku: str,
    name: str,
    price,
    quantity=1,
    category: str = "general",
    seller_id: int | None = None,
    cubby_id: int | None = None,
    commission_rate=None,
    description: str | None = None,
    condition: str | None = None,
    barcode: str | None = None,
) -> InventoryItem:
    """
    Create an inventory item.

    Consigned items inherit the commission rate (and cubby) of the seller's
    active rental unless one is given explicitly.
    """
    sku = (sku or "").strip()
    name = (name or "").strip()
    if not sku:
        raise ValidationError("sku is required")
    if not name:
        raise ValidationError("name is required")

    price_cents = parse_money_to_cents(price, "price")
    qty = _parse_quantity(quantity)

    rate_bps = None
    if commission_rate is not None:
        rate_bps = rate_to_bps(parse_rate(commission_rate))

    if seller_id is not None:
        if db.session.get(User, seller_id) is None:
            raise NotFoundError("Seller not found")
        rental = _active_rental_for(seller_id)
        if rental is not None:
            if rate_bps is None:
                rate_bps = rental.commission_rate_bps
            if cubby_id is None:
                cubby_id = rental.cubby_id

    item = InventoryItem(
        sku=sku,
        name=name,
        description=description,
        category=category or "general",
        condition=condition,
        barcode=barcode,
        price_cents=price_cents,
        quantity=qty,
        seller_id=seller_id,
        cubby_id=cubby_id,
        commission_rate_bps=rate_bps,
    )
    db.session.add(item)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(f"SKU already exists: {sku}")
    return item


def get_item(item_id: int) -> InventoryItem:
    item = db.session.get(InventoryItem, item_id)
    if item is None:
        raise NotFoundError("Item not found")
    return item


def list_items(*, seller_id: int | None = None, cubby_id: int | None = None, active_only: bool = True) -> list[InventoryItem]:
    query = db.session.query(InventoryItem)
    if seller_id is not None:
        query = query.filter_by(seller_id=seller_id)
    if cubby_id is not None:
        query = query.filter_by(cubby_id=cubby_id)
    if active_only:
        query = query.filter(InventoryItem.is_active.is_(True))
    return query.order_by(InventoryItem.id.asc()).all()


def update_item(item_id: int, **fields) -> InventoryItem:
    """
    Edit a listed item.

    Only UPDATE_FIELDS may change. Price and quantity are parsed the same way
    as on creation; last_updated is stamped on every edit.
    """
    unknown = sorted(set(fields) - set(UPDATE_FIELDS))
    if unknown:
        raise ValidationError(f"Field not allowed: {', '.join(unknown)}", details={"fields": unknown})
    if not fields:
        raise ValidationError("No fields to update")

    item = get_item(item_id)

    changes = {}
    for key, value in fields.items():
        if key == "name":
            value = (value or "").strip()
            if not value:
                raise ValidationError("name is required")
            changes["name"] = value
        elif key == "price":
            changes["price_cents"] = parse_money_to_cents(value, "price")
        elif key == "quantity":
            changes["quantity"] = _parse_quantity(value)
        elif key == "category":
            changes["category"] = value or "general"
        elif key == "is_active":
            if not isinstance(value, bool):
                raise ValidationError("is_active must be true or false")
            changes["is_active"] = value
        else:
            changes[key] = value

    for key, value in changes.items():
        setattr(item, key, value)
    item.last_updated = utcnow()
    db.session.commit()
    logger.info("Updated item %s: %s", item_id, ", ".join(sorted(fields)))
    return item


def decrement_quantity(item_id: int, amount: int) -> bool:
    """
    Take amount units out of stock if at least that many remain.

    Does not commit. Returns False when the item is missing or the stock
    has already dropped below amount.
    """
    return guarded_decrement(InventoryItem, item_id, "quantity", amount)
