# Overview: Flask API routes for cubby administration.

from flask import Blueprint, request, jsonify

from ..services import cubby_service
from ..services.cubby_service import CubbyError
from ..validation import ConflictError, NotFoundError, ValidationError


cubbies_bp = Blueprint("cubbies", __name__, url_prefix="/api/cubbies")


@cubbies_bp.get("/")
def list_cubbies_route():
    cubbies = cubby_service.list_cubbies(status=request.args.get("status"))
    return jsonify({"cubbies": [cubby.to_dict() for cubby in cubbies]}), 200


@cubbies_bp.post("/")
def add_cubby_route():
    data = request.get_json(silent=True) or {}
    try:
        cubby = cubby_service.add_cubby(
            data.get("cubby_number"),
            location=data.get("location"),
            notes=data.get("notes"),
        )
        return jsonify({"cubby": cubby.to_dict()}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409


@cubbies_bp.post("/<int:cubby_id>/toggle")
def toggle_cubby_route(cubby_id: int):
    try:
        cubby = cubby_service.toggle_cubby_status(cubby_id)
        return jsonify({"cubby": cubby.to_dict()}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except CubbyError as e:
        return jsonify({"error": str(e), "details": e.details}), 409


@cubbies_bp.delete("/<int:cubby_id>")
def delete_cubby_route(cubby_id: int):
    try:
        cubby_service.delete_cubby(cubby_id)
        return jsonify({"success": True}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except CubbyError as e:
        return jsonify({"error": str(e), "details": e.details}), 409
