# Overview: Service-layer operations for cubbies; encapsulates business logic and database work.

from __future__ import annotations

import logging

from ..extensions import db
from ..models import Cubby, CubbyRental
from ..models.cubbies import CUBBY_AVAILABLE, CUBBY_MAINTENANCE, CUBBY_OCCUPIED, RENTAL_ACTIVE
from ..validation import ConflictError, NotFoundError, ValidationError


logger = logging.getLogger(__name__)


class CubbyError(Exception):
    """Raised for cubby state rule violations."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def get_cubby(cubby_id: int) -> Cubby:
    cubby = db.session.get(Cubby, cubby_id)
    if cubby is None:
        raise NotFoundError("Cubby not found")
    return cubby


def list_cubbies(status: str | None = None) -> list[Cubby]:
    query = db.session.query(Cubby)
    if status:
        query = query.filter_by(status=status)
    return query.order_by(Cubby.cubby_number.asc()).all()


def add_cubby(cubby_number: str, location: str | None = None, notes: str | None = None) -> Cubby:
    number = (cubby_number or "").strip()
    if not number:
        raise ValidationError("cubby_number is required")

    if db.session.query(Cubby.id).filter_by(cubby_number=number).first():
        raise ConflictError("A cubby with this number already exists")

    cubby = Cubby(cubby_number=number, location=location, notes=notes, status=CUBBY_AVAILABLE)
    db.session.add(cubby)
    db.session.commit()
    logger.info("Added cubby %s", number)
    return cubby


def toggle_cubby_status(cubby_id: int) -> Cubby:
    """Flip a cubby between available and maintenance."""
    cubby = get_cubby(cubby_id)
    if cubby.status == CUBBY_OCCUPIED:
        raise CubbyError("Cannot change status of an occupied cubby", details={"cubby_id": cubby_id})

    cubby.status = CUBBY_MAINTENANCE if cubby.status == CUBBY_AVAILABLE else CUBBY_AVAILABLE
    db.session.commit()
    return cubby


def has_active_rental(cubby_id: int) -> bool:
    return (
        db.session.query(CubbyRental.id)
        .filter_by(cubby_id=cubby_id, status=RENTAL_ACTIVE)
        .first()
        is not None
    )


def delete_cubby(cubby_id: int) -> None:
    cubby = get_cubby(cubby_id)
    if has_active_rental(cubby_id):
        raise CubbyError("Cannot delete a rented cubby", details={"cubby_id": cubby_id})
    db.session.delete(cubby)
    db.session.commit()
    logger.info("Deleted cubby %s", cubby.cubby_number)
