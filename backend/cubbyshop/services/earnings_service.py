# Overview: Service-layer operations for seller earnings and payouts.

from __future__ import annotations

import logging

import sqlalchemy as sa

from ..extensions import db
from ..models import SellerEarning, SellerPayout, User
from ..models.earnings import PAYOUT_APPROVED, PAYOUT_COMPLETED, PAYOUT_PENDING, PAYOUT_REJECTED
from ..time_utils import utcnow
from ..validation import NotFoundError, ValidationError
from .concurrency import run_with_retry


logger = logging.getLogger(__name__)


# current status -> statuses it may move to
PAYOUT_TRANSITIONS = {
    PAYOUT_PENDING: {PAYOUT_APPROVED, PAYOUT_REJECTED},
    PAYOUT_APPROVED: {PAYOUT_COMPLETED, PAYOUT_REJECTED},
    PAYOUT_COMPLETED: set(),
    PAYOUT_REJECTED: set(),
}


class PayoutError(Exception):
    """Raised for payout operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def _require_seller(seller_id: int) -> User:
    seller = db.session.get(User, seller_id)
    if seller is None:
        raise NotFoundError("Seller not found")
    return seller


def get_seller_earnings(seller_id: int, *, unpaid_only: bool = False) -> list[SellerEarning]:
    _require_seller(seller_id)
    query = db.session.query(SellerEarning).filter_by(seller_id=seller_id)
    if unpaid_only:
        query = query.filter(SellerEarning.payout_id.is_(None))
    return query.order_by(SellerEarning.created_at.desc(), SellerEarning.id.desc()).all()


def get_earnings_summary(seller_id: int) -> dict:
    """Totals across all of a seller's earnings, plus the net not yet requested."""
    _require_seller(seller_id)
    totals = (
        db.session.query(
            sa.func.count(SellerEarning.id),
            sa.func.coalesce(sa.func.sum(SellerEarning.gross_cents), 0),
            sa.func.coalesce(sa.func.sum(SellerEarning.commission_cents), 0),
            sa.func.coalesce(sa.func.sum(SellerEarning.net_cents), 0),
        )
        .filter(SellerEarning.seller_id == seller_id)
        .one()
    )
    unpaid = (
        db.session.query(sa.func.coalesce(sa.func.sum(SellerEarning.net_cents), 0))
        .filter(SellerEarning.seller_id == seller_id, SellerEarning.payout_id.is_(None))
        .scalar()
    )
    paid = (
        db.session.query(sa.func.coalesce(sa.func.sum(SellerPayout.amount_cents), 0))
        .filter(SellerPayout.seller_id == seller_id, SellerPayout.status == PAYOUT_COMPLETED)
        .scalar()
    )
    return {
        "seller_id": seller_id,
        "sales_count": int(totals[0]),
        "gross_cents": int(totals[1]),
        "commission_cents": int(totals[2]),
        "net_cents": int(totals[3]),
        "unpaid_net_cents": int(unpaid),
        "paid_out_cents": int(paid),
    }


def request_payout(seller_id: int, notes: str | None = None) -> SellerPayout:
    """Bundle all unassigned earnings of a seller into one pending payout."""
    _require_seller(seller_id)

    def _op():
        earnings = (
            db.session.query(SellerEarning)
            .filter(SellerEarning.seller_id == seller_id, SellerEarning.payout_id.is_(None))
            .with_for_update()
            .all()
        )
        if not earnings:
            raise PayoutError("No unpaid earnings to pay out")

        payout = SellerPayout(
            seller_id=seller_id,
            amount_cents=sum(e.net_cents for e in earnings),
            status=PAYOUT_PENDING,
            notes=notes,
        )
        db.session.add(payout)
        db.session.flush()
        for earning in earnings:
            earning.payout_id = payout.id
        db.session.commit()
        return payout

    payout = run_with_retry(_op)
    logger.info("Payout %s requested for seller %s: %s cents", payout.id, seller_id, payout.amount_cents)
    return payout


def get_payout(payout_id: int) -> SellerPayout:
    payout = db.session.get(SellerPayout, payout_id)
    if payout is None:
        raise NotFoundError("Payout not found")
    return payout


def update_payout_status(payout_id: int, status: str, notes: str | None = None) -> SellerPayout:
    """
    Move a payout along pending -> approved -> completed.

    Rejecting a payout releases its earnings so they can be requested again.
    """
    if status not in PAYOUT_TRANSITIONS:
        raise ValidationError(f"Unknown payout status: {status}")

    payout = get_payout(payout_id)
    if status not in PAYOUT_TRANSITIONS[payout.status]:
        raise PayoutError(
            f"Cannot change payout from {payout.status} to {status}",
            details={"current_status": payout.status},
        )

    payout.status = status
    if notes is not None:
        payout.notes = notes
    if status == PAYOUT_COMPLETED:
        payout.payout_date = utcnow()
    if status == PAYOUT_REJECTED:
        for earning in list(payout.earnings):
            earning.payout_id = None

    db.session.commit()
    logger.info("Payout %s marked %s", payout_id, status)
    return payout
