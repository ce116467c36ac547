from __future__ import annotations

import logging
from copy import deepcopy
from decimal import Decimal
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import SystemSetting
from ..validation import ValidationError, parse_money_to_cents, parse_positive_int, parse_rate
from .open_days import MAX_OPEN_DAYS, WEEKDAY_NAMES


logger = logging.getLogger(__name__)


SHOP_OPEN_DAYS = "shop_open_days"
COMMISSION_RATES = "commission_rates"
CUBBY_RENTAL_FEES = "cubby_rental_fees"
RENTAL_PERIOD_OPEN_DAYS = "rental_period_open_days"

DEFAULT_SETTINGS: dict[str, dict[str, Any]] = {
    SHOP_OPEN_DAYS: {
        "value": {name: True for name in WEEKDAY_NAMES},
        "description": "Weekdays the shop is open; rentals count only open days",
    },
    COMMISSION_RATES: {
        "value": {"default": 0.15, "staff": 0.25},
        "description": "Commission fraction kept by the shop per listing type",
    },
    CUBBY_RENTAL_FEES: {
        "value": {"weekly": 10, "monthly": 35, "quarterly": 90},
        "description": "Cubby rental fee per plan",
    },
    RENTAL_PERIOD_OPEN_DAYS: {
        "value": {"weekly": 7, "monthly": 30, "quarterly": 90},
        "description": "Number of open days included in each rental plan",
    },
}


class SettingsError(ValueError):
    pass


class SettingsValidationError(SettingsError, ValidationError):
    pass


# =============================================================================
# VALIDATION
# =============================================================================

def _validate_open_days(value: Any) -> dict:
    if not isinstance(value, dict):
        raise SettingsValidationError(f"{SHOP_OPEN_DAYS} must be an object of weekday -> bool")
    cleaned = {}
    for key, flag in value.items():
        name = str(key).lower()
        if name not in WEEKDAY_NAMES:
            raise SettingsValidationError(f"Unknown weekday: {key}")
        if not isinstance(flag, bool):
            raise SettingsValidationError(f"{key} must be true or false")
        cleaned[name] = flag
    missing = [name for name in WEEKDAY_NAMES if name not in cleaned]
    if missing:
        raise SettingsValidationError(f"Missing weekdays: {', '.join(missing)}")
    if not any(cleaned.values()):
        raise SettingsValidationError("At least one weekday must be open")
    return cleaned


def _validate_rates(value: Any) -> dict:
    if not isinstance(value, dict) or "default" not in value:
        raise SettingsValidationError(f"{COMMISSION_RATES} must be an object with a 'default' rate")
    cleaned = {}
    for key, rate in value.items():
        try:
            cleaned[key] = float(parse_rate(rate, f"{COMMISSION_RATES}.{key}"))
        except ValidationError as exc:
            raise SettingsValidationError(str(exc))
    return cleaned


def _validate_fees(value: Any) -> dict:
    if not isinstance(value, dict) or not value:
        raise SettingsValidationError(f"{CUBBY_RENTAL_FEES} must be a non-empty object of plan -> fee")
    for key, fee in value.items():
        try:
            parse_money_to_cents(fee, f"{CUBBY_RENTAL_FEES}.{key}")
        except ValidationError as exc:
            raise SettingsValidationError(str(exc))
    return dict(value)


def _validate_period_days(value: Any) -> dict:
    if not isinstance(value, dict) or not value:
        raise SettingsValidationError(f"{RENTAL_PERIOD_OPEN_DAYS} must be a non-empty object of plan -> days")
    cleaned = {}
    for key, days in value.items():
        try:
            cleaned[key] = parse_positive_int(days, f"{RENTAL_PERIOD_OPEN_DAYS}.{key}")
        except ValidationError as exc:
            raise SettingsValidationError(str(exc))
        if cleaned[key] > MAX_OPEN_DAYS:
            raise SettingsValidationError(f"{RENTAL_PERIOD_OPEN_DAYS}.{key} cannot exceed {MAX_OPEN_DAYS}")
    return cleaned


VALIDATORS = {
    SHOP_OPEN_DAYS: _validate_open_days,
    COMMISSION_RATES: _validate_rates,
    CUBBY_RENTAL_FEES: _validate_fees,
    RENTAL_PERIOD_OPEN_DAYS: _validate_period_days,
}


# =============================================================================
# READ / WRITE
# =============================================================================

def get_setting(key: str) -> SystemSetting | None:
    return db.session.query(SystemSetting).filter_by(setting_key=key).first()


def list_settings() -> list[SystemSetting]:
    return db.session.query(SystemSetting).order_by(SystemSetting.setting_key.asc()).all()


def get_setting_value(key: str, default: Any = None) -> Any:
    """
    Stored value for key, or default when absent.

    Lookup failures are logged and answered with the default so a settings
    outage degrades to defaults instead of breaking checkout or rentals.
    """
    try:
        setting = get_setting(key)
    except SQLAlchemyError:
        logger.exception("Failed to load setting %s", key)
        db.session.rollback()
        return deepcopy(default)
    if setting is None or setting.setting_value is None:
        return deepcopy(default)
    return setting.setting_value


def set_setting(key: str, value: Any, *, user_id: int | None = None, description: str | None = None) -> SystemSetting:
    validator = VALIDATORS.get(key)
    if validator is not None:
        value = validator(value)

    setting = get_setting(key)
    if setting is None:
        setting = SystemSetting(setting_key=key)
        db.session.add(setting)
        if description is None and key in DEFAULT_SETTINGS:
            description = DEFAULT_SETTINGS[key]["description"]

    setting.setting_value = value
    if description is not None:
        setting.description = description
    setting.updated_by = user_id
    db.session.commit()
    logger.info("Setting %s updated by user %s", key, user_id)
    return setting


def seed_default_settings() -> list[str]:
    """Insert any missing default settings. Returns the keys created."""
    created = []
    for key, default in DEFAULT_SETTINGS.items():
        if get_setting(key) is None:
            db.session.add(SystemSetting(
                setting_key=key,
                setting_value=deepcopy(default["value"]),
                description=default["description"],
            ))
            created.append(key)
    db.session.commit()
    return created


# =============================================================================
# TYPED ACCESSORS
# =============================================================================

def get_weekly_open_days_config() -> dict:
    """
    Weekly open-days map, or {} when unset or unreadable.

    {} is interpreted by the open-days calculator as "every day open".
    """
    value = get_setting_value(SHOP_OPEN_DAYS, {})
    if not isinstance(value, dict):
        logger.error("Ignoring malformed %s setting: %r", SHOP_OPEN_DAYS, value)
        return {}
    return value


def get_commission_rates() -> dict[str, Decimal]:
    value = get_setting_value(COMMISSION_RATES, DEFAULT_SETTINGS[COMMISSION_RATES]["value"])
    try:
        return {key: parse_rate(rate, key) for key, rate in value.items()}
    except (AttributeError, ValidationError):
        logger.error("Ignoring malformed %s setting: %r", COMMISSION_RATES, value)
        defaults = DEFAULT_SETTINGS[COMMISSION_RATES]["value"]
        return {key: parse_rate(rate, key) for key, rate in defaults.items()}


def get_rental_fees() -> dict[str, int]:
    """Rental fee per plan, in cents."""
    value = get_setting_value(CUBBY_RENTAL_FEES, DEFAULT_SETTINGS[CUBBY_RENTAL_FEES]["value"])
    try:
        return {plan: parse_money_to_cents(fee, plan) for plan, fee in value.items()}
    except (AttributeError, ValidationError):
        logger.error("Ignoring malformed %s setting: %r", CUBBY_RENTAL_FEES, value)
        defaults = DEFAULT_SETTINGS[CUBBY_RENTAL_FEES]["value"]
        return {plan: parse_money_to_cents(fee, plan) for plan, fee in defaults.items()}


def get_rental_period_days() -> dict[str, int]:
    value = get_setting_value(RENTAL_PERIOD_OPEN_DAYS, DEFAULT_SETTINGS[RENTAL_PERIOD_OPEN_DAYS]["value"])
    try:
        return {plan: parse_positive_int(days, plan) for plan, days in value.items()}
    except (AttributeError, ValidationError):
        logger.error("Ignoring malformed %s setting: %r", RENTAL_PERIOD_OPEN_DAYS, value)
        return dict(DEFAULT_SETTINGS[RENTAL_PERIOD_OPEN_DAYS]["value"])
