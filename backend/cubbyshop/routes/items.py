# Overview: Flask API routes for inventory items.

from flask import Blueprint, request, jsonify

from ..services import item_service
from ..validation import ConflictError, NotFoundError, ValidationError, parse_int


items_bp = Blueprint("items", __name__, url_prefix="/api/items")

CREATE_FIELDS = (
    "sku", "name", "price", "quantity", "category", "seller_id", "cubby_id",
    "commission_rate", "description", "condition", "barcode",
)


@items_bp.get("/")
def list_items_route():
    try:
        seller_id = request.args.get("seller_id")
        cubby_id = request.args.get("cubby_id")
        items = item_service.list_items(
            seller_id=parse_int(seller_id, "seller_id") if seller_id else None,
            cubby_id=parse_int(cubby_id, "cubby_id") if cubby_id else None,
            active_only=request.args.get("include_inactive", "false").lower() != "true",
        )
        return jsonify({"items": [item.to_dict() for item in items]}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400


@items_bp.post("/")
def create_item_route():
    data = request.get_json(silent=True) or {}
    unknown = sorted(set(data) - set(CREATE_FIELDS))
    if unknown:
        return jsonify({"error": f"Field not allowed: {', '.join(unknown)}"}), 400
    if data.get("price") is None:
        return jsonify({"error": "price required"}), 400

    try:
        for key in ("seller_id", "cubby_id"):
            if data.get(key) is not None:
                data[key] = parse_int(data[key], key)
        item = item_service.create_item(**data)
        return jsonify({"item": item.to_dict()}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409


@items_bp.patch("/<int:item_id>")
def update_item_route(item_id: int):
    """
    Body: any of {name, price, category, description, quantity, condition, barcode, is_active}
    """
    data = request.get_json(silent=True) or {}
    try:
        item = item_service.update_item(item_id, **data)
        return jsonify({"item": item.to_dict()}), 200
    except ValidationError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@items_bp.get("/<int:item_id>")
def get_item_route(item_id: int):
    try:
        return jsonify({"item": item_service.get_item(item_id).to_dict()}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
