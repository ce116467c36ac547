# Overview: Flask API routes for shop settings (open days, commission rates, rental fees).

from flask import Blueprint, request, jsonify

from ..services import settings_service
from ..services.settings_service import SettingsValidationError
from ..validation import ValidationError, parse_int


settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.get("/")
def list_settings_route():
    return jsonify({"settings": [s.to_dict() for s in settings_service.list_settings()]}), 200


@settings_bp.get("/<string:key>")
def get_setting_route(key: str):
    setting = settings_service.get_setting(key)
    if setting is None:
        return jsonify({"error": "Setting not found"}), 404
    return jsonify({"setting": setting.to_dict()}), 200


@settings_bp.put("/<string:key>")
def put_setting_route(key: str):
    """
    Body: {value: <json>, description?, user_id?}
    """
    data = request.get_json(silent=True) or {}
    if "value" not in data:
        return jsonify({"error": "value required"}), 400
    try:
        user_id = data.get("user_id")
        setting = settings_service.set_setting(
            key,
            data["value"],
            user_id=parse_int(user_id, "user_id") if user_id is not None else None,
            description=data.get("description"),
        )
        return jsonify({"setting": setting.to_dict()}), 200
    except (SettingsValidationError, ValidationError) as e:
        return jsonify({"error": str(e)}), 400
