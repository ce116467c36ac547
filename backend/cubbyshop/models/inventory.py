from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from ..validation import bps_to_rate, cents_to_str


class InventoryItem(db.Model):
    """
    A consigned (seller_id set) or shop-owned item on sale.

    quantity is the current stock level; checkout decrements it with a
    conditional update so it never goes negative.
    """
    __tablename__ = "inventory_items"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_inventory_items_quantity_nonneg"),
        db.Index("ix_inventory_items_seller_active", "seller_id", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sku = db.Column(db.String(64), nullable=False, unique=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    category = db.Column(db.String(64), nullable=False, default="general")
    condition = db.Column(db.String(32), nullable=True)
    barcode = db.Column(db.String(64), nullable=True, index=True)

    price_cents = db.Column(db.Integer, nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)

    seller_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    cubby_id = db.Column(db.Integer, db.ForeignKey("cubbies.id"), nullable=True, index=True)
    commission_rate_bps = db.Column(db.Integer, nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    date_added = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_updated = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    seller = db.relationship("User")
    cubby = db.relationship("Cubby")

    @property
    def commission_rate(self):
        return bps_to_rate(self.commission_rate_bps)

    def to_cart_payload(self, cart_quantity: int) -> dict:
        """Shape the POS sends to checkout for this item."""
        rate = self.commission_rate
        return {
            "id": self.id,
            "price": cents_to_str(self.price_cents),
            "quantity": self.quantity,
            "cartQuantity": cart_quantity,
            "seller_id": self.seller_id,
            "commission_rate": str(rate) if rate is not None else None,
        }

    def to_dict(self) -> dict:
        rate = self.commission_rate
        return {
            "id": self.id,
            "sku": self.sku,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "condition": self.condition,
            "barcode": self.barcode,
            "price_cents": self.price_cents,
            "quantity": self.quantity,
            "seller_id": self.seller_id,
            "cubby_id": self.cubby_id,
            "commission_rate": str(rate) if rate is not None else None,
            "is_active": self.is_active,
            "date_added": to_utc_z(self.date_added),
            "last_updated": to_utc_z(self.last_updated),
        }
