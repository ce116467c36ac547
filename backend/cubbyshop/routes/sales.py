# Overview: Flask API routes for POS checkout and sales history; parses input and returns JSON responses.

# backend/cubbyshop/routes/sales.py
"""Sales API routes"""

from flask import Blueprint, request, jsonify
from flask import current_app

from ..services import checkout_service, sales_service
from ..services.checkout_service import CheckoutError
from ..services.settlement import settle
from ..validation import NotFoundError, ValidationError, parse_int


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def _optional_int(value, field):
    if value in (None, ""):
        return None
    return parse_int(value, field)


@sales_bp.post("/checkout")
def checkout_route():
    """
    Process a POS sale.

    Body: {cartItems: [...], paymentMethod: "cash"|"card"|"other", notes?, user_id?}

    Returns 201 even when stock or earnings steps failed; those are listed
    under "failures" for staff follow-up.
    """
    try:
        data = request.get_json(silent=True) or {}
        result = checkout_service.process_sale(
            data.get("cartItems"),
            data.get("paymentMethod"),
            user_id=_optional_int(data.get("user_id"), "user_id"),
            notes=data.get("notes"),
        )
        return jsonify(result.to_dict()), 201

    except ValidationError as e:
        return jsonify({"success": False, "error": str(e), "details": e.details}), 400
    except CheckoutError as e:
        return jsonify({"success": False, "error": str(e), "details": e.details}), 500
    except Exception:
        current_app.logger.exception("Failed to process sale")
        return jsonify({"success": False, "error": "Internal server error"}), 500


@sales_bp.post("/settle")
def settle_route():
    """Preview the settlement of a cart without writing anything."""
    try:
        data = request.get_json(silent=True) or {}
        settlement = settle(checkout_service.parse_cart(data.get("cartItems")), data.get("paymentMethod"))
        return jsonify({"settlement": settlement.to_dict()}), 200

    except ValidationError as e:
        return jsonify({"error": str(e), "details": e.details}), 400


@sales_bp.get("/")
def list_sales_route():
    try:
        limit = parse_int(request.args.get("limit", "50"), "limit")
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    limit = max(1, min(limit, 500))
    sales = sales_service.list_sales(limit=limit)
    return jsonify({"sales": [sale.to_dict() for sale in sales]}), 200


@sales_bp.get("/<int:sale_id>")
def get_sale_route(sale_id: int):
    """Sale with items and seller earnings (receipt)."""
    try:
        return jsonify(sales_service.get_sale_detail(sale_id)), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
