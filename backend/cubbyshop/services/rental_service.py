"""
Cubby rentals.

A rental plan (weekly, monthly, quarterly) buys a number of shop-open days;
the calendar end date comes from the open-days calculator and the shop's
weekly schedule, so closed days never eat into a seller's rental.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta

from ..extensions import db
from ..models import Cubby, CubbyRental, User
from ..models.cubbies import (
    CUBBY_AVAILABLE,
    CUBBY_OCCUPIED,
    PAYMENT_PAID,
    PAYMENT_PENDING,
    RENTAL_ACTIVE,
    RENTAL_ENDED,
)
from ..time_utils import to_utc_z, today, utcnow
from ..validation import NotFoundError, rate_to_bps
from . import settings_service
from .concurrency import lock_for_update, run_with_retry
from .open_days import RentalPeriod, compute_rental_period
from .settlement import DEFAULT_COMMISSION_RATE


logger = logging.getLogger(__name__)


LISTING_SELF = "self"
LISTING_STAFF = "staff"

# listing type -> key in the commission_rates setting
LISTING_RATE_KEYS = {
    LISTING_SELF: "default",
    LISTING_STAFF: "staff",
}


class RentalError(Exception):
    """Raised for rental operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


@dataclass(frozen=True)
class RentalQuote:
    plan: str | None
    period: RentalPeriod
    fee_cents: int | None

    def to_dict(self) -> dict:
        data = self.period.to_dict()
        data["plan"] = self.plan
        data["rental_fee_cents"] = self.fee_cents
        return data


def _plan_open_days(plan: str) -> int:
    periods = settings_service.get_rental_period_days()
    if plan not in periods:
        raise RentalError(f"Unknown rental plan: {plan}", details={"plans": sorted(periods)})
    return periods[plan]


def _plan_fee(plan: str) -> int:
    fees = settings_service.get_rental_fees()
    if plan not in fees:
        raise RentalError(f"No rental fee configured for plan: {plan}", details={"plans": sorted(fees)})
    return fees[plan]


def preview_rental(*, plan: str | None = None, open_days: int | None = None, start_date: date | None = None) -> RentalQuote:
    """
    End date (and fee, for a named plan) of a rental starting on start_date.

    Exactly one of plan or open_days must be given.
    """
    if (plan is None) == (open_days is None):
        raise RentalError("Provide either plan or open_days")

    start = start_date or today()
    fee = None
    if plan is not None:
        open_days = _plan_open_days(plan)
        fee = _plan_fee(plan)

    period = compute_rental_period(start, open_days, settings_service.get_weekly_open_days_config())
    return RentalQuote(plan=plan, period=period, fee_cents=fee)


def get_rental(rental_id: int) -> CubbyRental:
    rental = db.session.get(CubbyRental, rental_id)
    if rental is None:
        raise NotFoundError("Rental not found")
    return rental


def list_rentals(*, seller_id: int | None = None, status: str | None = None) -> list[CubbyRental]:
    query = db.session.query(CubbyRental)
    if seller_id is not None:
        query = query.filter_by(seller_id=seller_id)
    if status:
        query = query.filter_by(status=status)
    return query.order_by(CubbyRental.end_date.asc()).all()


def rent_cubby(
    seller_id: int,
    plan: str,
    listing_type: str = LISTING_SELF,
    *,
    start_date: date | None = None,
    cubby_id: int | None = None,
) -> CubbyRental:
    """
    Rent a cubby to a seller.

    Uses cubby_id when given, otherwise the first available cubby. The
    seller's listing preference and commission rate are updated to match.
    """
    if listing_type not in LISTING_RATE_KEYS:
        raise RentalError(f"Unknown listing type: {listing_type}", details={"listing_types": sorted(LISTING_RATE_KEYS)})

    seller = db.session.get(User, seller_id)
    if seller is None:
        raise NotFoundError("Seller not found")

    quote = preview_rental(plan=plan, start_date=start_date)
    rates = settings_service.get_commission_rates()
    rate = rates.get(LISTING_RATE_KEYS[listing_type], rates.get("default", DEFAULT_COMMISSION_RATE))

    def _op():
        query = db.session.query(Cubby)
        if cubby_id is not None:
            query = query.filter_by(id=cubby_id)
        else:
            query = query.filter_by(status=CUBBY_AVAILABLE).order_by(Cubby.cubby_number.asc())
        cubby = lock_for_update(query).first()

        if cubby is None:
            if cubby_id is not None:
                raise NotFoundError("Cubby not found")
            raise RentalError("No available cubbies found")
        if cubby.status != CUBBY_AVAILABLE:
            raise RentalError(f"Cubby {cubby.cubby_number} is not available", details={"status": cubby.status})

        rental = CubbyRental(
            cubby_id=cubby.id,
            seller_id=seller.id,
            start_date=quote.period.start_date,
            end_date=quote.period.computed_end_date,
            open_days=quote.period.requested_open_days,
            listing_type=listing_type,
            commission_rate_bps=rate_to_bps(rate),
            rental_fee_cents=quote.fee_cents,
            status=RENTAL_ACTIVE,
            payment_status=PAYMENT_PENDING,
        )
        db.session.add(rental)
        cubby.status = CUBBY_OCCUPIED

        seller.listing_preference = listing_type
        seller.commission_rate_bps = rate_to_bps(rate)

        db.session.commit()
        return rental

    rental = run_with_retry(_op)
    logger.info(
        "Seller %s rented cubby %s until %s (%s open days)",
        seller_id, rental.cubby_id, rental.end_date, rental.open_days,
    )
    return rental


def extend_rental(rental_id: int, plan: str) -> CubbyRental:
    """
    Add another plan's worth of open days after the current end date.

    The fee accumulates and the rental goes back to pending payment.
    """
    def _op():
        rental = lock_for_update(db.session.query(CubbyRental).filter_by(id=rental_id)).first()
        if rental is None:
            raise NotFoundError("Rental not found")
        if rental.status != RENTAL_ACTIVE:
            raise RentalError("Only active rentals can be extended")

        quote = preview_rental(plan=plan, start_date=rental.end_date + timedelta(days=1))
        rental.end_date = quote.period.computed_end_date
        rental.open_days += quote.period.requested_open_days
        rental.rental_fee_cents += quote.fee_cents
        rental.payment_status = PAYMENT_PENDING
        db.session.commit()
        return rental

    return run_with_retry(_op)


def mark_rental_paid(rental_id: int) -> CubbyRental:
    rental = get_rental(rental_id)
    if rental.status != RENTAL_ACTIVE:
        raise RentalError("Rental is not active")
    if rental.payment_status == PAYMENT_PAID:
        raise RentalError("Rental is already paid", details={"payment_date": to_utc_z(rental.payment_date)})

    rental.payment_status = PAYMENT_PAID
    rental.payment_date = utcnow()
    db.session.commit()
    return rental


def end_rental(rental_id: int) -> CubbyRental:
    """Close a rental and free its cubby."""
    rental = get_rental(rental_id)
    if rental.status != RENTAL_ACTIVE:
        raise RentalError("Rental is not active")

    rental.status = RENTAL_ENDED
    cubby = db.session.get(Cubby, rental.cubby_id)
    if cubby is not None and cubby.status == CUBBY_OCCUPIED:
        cubby.status = CUBBY_AVAILABLE
    db.session.commit()
    return rental
