from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


PAYOUT_PENDING = "pending"
PAYOUT_APPROVED = "approved"
PAYOUT_COMPLETED = "completed"
PAYOUT_REJECTED = "rejected"


class SellerEarning(db.Model):
    """
    Seller's share of one sale line.

    gross = commission + net, all in cents. payout_id is set once the amount
    is bundled into a payout request.
    """
    __tablename__ = "seller_earnings"
    __table_args__ = (
        db.CheckConstraint("gross_cents = commission_cents + net_cents", name="ck_seller_earnings_split"),
        db.Index("ix_seller_earnings_seller_payout", "seller_id", "payout_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    seller_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    sale_item_id = db.Column(db.Integer, db.ForeignKey("sale_items.id"), nullable=False, unique=True)

    gross_cents = db.Column(db.Integer, nullable=False)
    commission_cents = db.Column(db.Integer, nullable=False)
    net_cents = db.Column(db.Integer, nullable=False)

    payout_id = db.Column(db.Integer, db.ForeignKey("seller_payouts.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    sale_item = db.relationship("SaleItem", backref=db.backref("earning", uselist=False))
    payout = db.relationship("SellerPayout", backref=db.backref("earnings", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "seller_id": self.seller_id,
            "sale_item_id": self.sale_item_id,
            "gross_cents": self.gross_cents,
            "commission_cents": self.commission_cents,
            "net_cents": self.net_cents,
            "payout_id": self.payout_id,
            "created_at": to_utc_z(self.created_at),
        }


class SellerPayout(db.Model):
    """Request to pay a seller the net of their unpaid earnings."""
    __tablename__ = "seller_payouts"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    seller_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    amount_cents = db.Column(db.Integer, nullable=False)

    # pending -> approved -> completed, or rejected
    status = db.Column(db.String(16), nullable=False, default=PAYOUT_PENDING, index=True)
    notes = db.Column(db.Text, nullable=True)
    payout_date = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "seller_id": self.seller_id,
            "amount_cents": self.amount_cents,
            "status": self.status,
            "notes": self.notes,
            "payout_date": to_utc_z(self.payout_date) if self.payout_date else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
