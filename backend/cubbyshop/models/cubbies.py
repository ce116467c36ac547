from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, to_iso_date
from ..validation import bps_to_rate


CUBBY_AVAILABLE = "available"
CUBBY_OCCUPIED = "occupied"
CUBBY_MAINTENANCE = "maintenance"

RENTAL_ACTIVE = "active"
RENTAL_ENDED = "ended"

PAYMENT_PENDING = "pending"
PAYMENT_PAID = "paid"


class Cubby(db.Model):
    """Physical display slot that sellers rent."""
    __tablename__ = "cubbies"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    cubby_number = db.Column(db.String(32), nullable=False, unique=True)
    location = db.Column(db.String(128), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    # available, occupied, maintenance
    status = db.Column(db.String(16), nullable=False, default=CUBBY_AVAILABLE, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "cubby_number": self.cubby_number,
            "location": self.location,
            "notes": self.notes,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class CubbyRental(db.Model):
    """
    A seller's rental of one cubby.

    start_date/end_date are calendar dates; end_date is derived from the
    number of shop-open days purchased, so it moves when the shop closes.
    """
    __tablename__ = "cubby_rentals"
    __table_args__ = (
        db.Index("ix_cubby_rentals_cubby_status", "cubby_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    cubby_id = db.Column(db.Integer, db.ForeignKey("cubbies.id"), nullable=False, index=True)
    seller_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    open_days = db.Column(db.Integer, nullable=False)

    # self or staff
    listing_type = db.Column(db.String(16), nullable=False, default="self")
    commission_rate_bps = db.Column(db.Integer, nullable=False)
    rental_fee_cents = db.Column(db.Integer, nullable=False)

    status = db.Column(db.String(16), nullable=False, default=RENTAL_ACTIVE, index=True)
    payment_status = db.Column(db.String(16), nullable=False, default=PAYMENT_PENDING)
    payment_date = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    cubby = db.relationship("Cubby", backref=db.backref("rentals", lazy=True))
    seller = db.relationship("User")

    @property
    def commission_rate(self):
        return bps_to_rate(self.commission_rate_bps)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "cubby_id": self.cubby_id,
            "seller_id": self.seller_id,
            "start_date": to_iso_date(self.start_date),
            "end_date": to_iso_date(self.end_date),
            "open_days": self.open_days,
            "listing_type": self.listing_type,
            "commission_rate": str(self.commission_rate),
            "rental_fee_cents": self.rental_fee_cents,
            "status": self.status,
            "payment_status": self.payment_status,
            "payment_date": to_utc_z(self.payment_date) if self.payment_date else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
