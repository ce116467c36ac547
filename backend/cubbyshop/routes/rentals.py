# Overview: Flask API routes for cubby rentals and the open-days calculator.

"""Rental API routes"""

from flask import Blueprint, request, jsonify
from flask import current_app

from ..services import rental_service, settings_service
from ..services.open_days import InvalidConfiguration, count_open_days
from ..services.rental_service import RentalError
from ..time_utils import parse_iso_date, today
from ..validation import NotFoundError, ValidationError, parse_int


rentals_bp = Blueprint("rentals", __name__, url_prefix="/api/rentals")


def _date_arg(value, field):
    try:
        return parse_iso_date(value)
    except ValueError:
        raise ValidationError(f"{field} must be an ISO-8601 date")


def _error_response(e):
    if isinstance(e, InvalidConfiguration) and not isinstance(e, ValidationError):
        return jsonify({"error": str(e)}), 422
    if isinstance(e, ValidationError):
        return jsonify({"error": str(e), "details": e.details}), 400
    if isinstance(e, NotFoundError):
        return jsonify({"error": str(e)}), 404
    if isinstance(e, RentalError):
        return jsonify({"error": str(e), "details": e.details}), 400
    raise e


@rentals_bp.get("/end-date")
def end_date_route():
    """
    Rental end date for a start date and a plan or a number of open days.

    Query: start_date (default today), plan | open_days
    """
    try:
        start = _date_arg(request.args.get("start_date"), "start_date")
        open_days = request.args.get("open_days")
        quote = rental_service.preview_rental(
            plan=request.args.get("plan"),
            open_days=parse_int(open_days, "open_days") if open_days is not None else None,
            start_date=start,
        )
        return jsonify(quote.to_dict()), 200
    except (ValidationError, InvalidConfiguration, RentalError) as e:
        return _error_response(e)


@rentals_bp.get("/open-days")
def open_days_route():
    """Number of open days between start_date and end_date, inclusive."""
    try:
        start = _date_arg(request.args.get("start_date"), "start_date")
        end = _date_arg(request.args.get("end_date"), "end_date")
        if start is None or end is None:
            raise ValidationError("start_date and end_date required")
        count = count_open_days(start, end, settings_service.get_weekly_open_days_config())
        return jsonify({
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "open_days": count,
        }), 200
    except (ValidationError, InvalidConfiguration) as e:
        return _error_response(e)


@rentals_bp.get("/")
def list_rentals_route():
    try:
        seller_id = request.args.get("seller_id")
        rentals = rental_service.list_rentals(
            seller_id=parse_int(seller_id, "seller_id") if seller_id else None,
            status=request.args.get("status"),
        )
        return jsonify({"rentals": [rental.to_dict() for rental in rentals]}), 200
    except ValidationError as e:
        return _error_response(e)


@rentals_bp.post("/")
def rent_cubby_route():
    """
    Rent a cubby.

    Body: {seller_id, plan, listing_type? ("self"|"staff"), start_date?, cubby_id?}
    """
    try:
        data = request.get_json(silent=True) or {}
        if not data.get("seller_id") or not data.get("plan"):
            return jsonify({"error": "seller_id and plan required"}), 400

        cubby_id = data.get("cubby_id")
        rental = rental_service.rent_cubby(
            parse_int(data["seller_id"], "seller_id"),
            data["plan"],
            data.get("listing_type") or rental_service.LISTING_SELF,
            start_date=_date_arg(data.get("start_date"), "start_date") or today(),
            cubby_id=parse_int(cubby_id, "cubby_id") if cubby_id is not None else None,
        )
        return jsonify({"rental": rental.to_dict()}), 201

    except (ValidationError, InvalidConfiguration, NotFoundError, RentalError) as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to rent cubby")
        return jsonify({"error": "Internal server error"}), 500


@rentals_bp.post("/<int:rental_id>/extend")
def extend_rental_route(rental_id: int):
    try:
        data = request.get_json(silent=True) or {}
        if not data.get("plan"):
            return jsonify({"error": "plan required"}), 400
        rental = rental_service.extend_rental(rental_id, data["plan"])
        return jsonify({"rental": rental.to_dict()}), 200

    except (ValidationError, InvalidConfiguration, NotFoundError, RentalError) as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to extend rental")
        return jsonify({"error": "Internal server error"}), 500


@rentals_bp.post("/<int:rental_id>/pay")
def pay_rental_route(rental_id: int):
    try:
        rental = rental_service.mark_rental_paid(rental_id)
        return jsonify({"rental": rental.to_dict()}), 200
    except (NotFoundError, RentalError) as e:
        return _error_response(e)


@rentals_bp.post("/<int:rental_id>/end")
def end_rental_route(rental_id: int):
    try:
        rental = rental_service.end_rental(rental_id)
        return jsonify({"rental": rental.to_dict()}), 200
    except (NotFoundError, RentalError) as e:
        return _error_response(e)
