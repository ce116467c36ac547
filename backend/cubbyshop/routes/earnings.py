# Overview: Flask API routes for seller earnings and payouts.

from flask import Blueprint, request, jsonify
from flask import current_app

from ..services import earnings_service
from ..services.earnings_service import PayoutError
from ..validation import NotFoundError, ValidationError


earnings_bp = Blueprint("earnings", __name__, url_prefix="/api")


@earnings_bp.get("/sellers/<int:seller_id>/earnings")
def seller_earnings_route(seller_id: int):
    try:
        unpaid_only = request.args.get("unpaid_only", "false").lower() == "true"
        earnings = earnings_service.get_seller_earnings(seller_id, unpaid_only=unpaid_only)
        return jsonify({
            "summary": earnings_service.get_earnings_summary(seller_id),
            "earnings": [earning.to_dict() for earning in earnings],
        }), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@earnings_bp.post("/sellers/<int:seller_id>/payouts")
def request_payout_route(seller_id: int):
    data = request.get_json(silent=True) or {}
    try:
        payout = earnings_service.request_payout(seller_id, notes=data.get("notes"))
        return jsonify({"payout": payout.to_dict()}), 201
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except PayoutError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Failed to request payout")
        return jsonify({"error": "Internal server error"}), 500


@earnings_bp.post("/payouts/<int:payout_id>/status")
def update_payout_status_route(payout_id: int):
    """
    Body: {status: "approved"|"completed"|"rejected", notes?}
    """
    data = request.get_json(silent=True) or {}
    if not data.get("status"):
        return jsonify({"error": "Missing required fields"}), 400
    try:
        payout = earnings_service.update_payout_status(payout_id, data["status"], notes=data.get("notes"))
        return jsonify({"payout": payout.to_dict()}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except PayoutError as e:
        return jsonify({"error": str(e), "details": e.details}), 409
