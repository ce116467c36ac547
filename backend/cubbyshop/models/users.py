from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from ..validation import bps_to_rate


ROLE_ADMIN = "admin"
ROLE_STAFF = "staff"
ROLE_SELLER = "seller"
VALID_ROLES = (ROLE_ADMIN, ROLE_STAFF, ROLE_SELLER)


class User(db.Model):
    """
    Shop user (admin, staff or seller).

    Credentials live with the hosted auth provider; this row only carries the
    profile fields the shop needs.
    """
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, unique=True)
    full_name = db.Column(db.String(255), nullable=True)
    role = db.Column(db.String(16), nullable=False, default=ROLE_SELLER, index=True)

    # Seller preferences chosen when renting a cubby
    listing_preference = db.Column(db.String(16), nullable=True)
    commission_rate_bps = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        rate = bps_to_rate(self.commission_rate_bps)
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role,
            "listing_preference": self.listing_preference,
            "commission_rate": str(rate) if rate is not None else None,
            "created_at": to_utc_z(self.created_at),
        }
