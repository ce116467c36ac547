from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from ..validation import cents_to_str


class Sale(db.Model):
    """
    Completed POS sale header.

    Immutable once written: corrections are made with a new sale, never by
    editing this row.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_sale_date", "sale_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    # Customer-facing total (sum of line gross amounts), in cents
    total_cents = db.Column(db.Integer, nullable=False)
    # cash, card, other
    payment_method = db.Column(db.String(16), nullable=False)

    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_date": to_utc_z(self.sale_date),
            "total_cents": self.total_cents,
            "total_amount": cents_to_str(self.total_cents),
            "payment_method": self.payment_method,
            "created_by": self.created_by,
            "notes": self.notes,
        }


class SaleItem(db.Model):
    """Individual line on a sale."""
    __tablename__ = "sale_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    inventory_item_id = db.Column(db.Integer, db.ForeignKey("inventory_items.id"), nullable=True, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    price_sold_cents = db.Column(db.Integer, nullable=False)

    sale = db.relationship("Sale", backref=db.backref("items", lazy=True, order_by="SaleItem.id"))
    inventory_item = db.relationship("InventoryItem")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "inventory_item_id": self.inventory_item_id,
            "quantity": self.quantity,
            "price_sold_cents": self.price_sold_cents,
            "line_total_cents": self.price_sold_cents * self.quantity,
        }
