"""
Open-days rental period calculator.

Rentals are sold as a number of days the shop is *open*, not calendar days.
A weekly schedule maps each weekday name to True (open) or False (closed);
closed days inside a rental stretch its calendar end date.

Pure computation: callers load the schedule (settings_service) and persist
the resulting dates.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Mapping

from ..validation import ValidationError


WEEKDAY_NAMES = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

ALL_OPEN = {name: True for name in WEEKDAY_NAMES}

# Ten years of open days; longer rentals are data-entry mistakes
MAX_OPEN_DAYS = 3650


class InvalidConfiguration(ValueError):
    """The weekly open-days schedule cannot produce an end date."""


class InvalidDayCount(InvalidConfiguration, ValidationError):
    """Requested number of open days is below 1."""


@dataclass(frozen=True)
class RentalPeriod:
    start_date: date
    requested_open_days: int
    computed_end_date: date
    calendar_day_span: int

    def to_dict(self) -> dict:
        return {
            "start_date": self.start_date.isoformat(),
            "requested_open_days": self.requested_open_days,
            "end_date": self.computed_end_date.isoformat(),
            "calendar_day_span": self.calendar_day_span,
        }


def weekday_name(day: date) -> str:
    return WEEKDAY_NAMES[day.weekday()]


def normalize_config(weekly_config: Mapping[str, object] | None) -> dict[str, bool]:
    """
    Resolve a stored schedule into a full seven-day map.

    An empty or missing schedule means every day is open. Otherwise a day is
    open only when its value is exactly True; weekdays left out are closed.
    """
    if not weekly_config:
        return dict(ALL_OPEN)

    unknown = [key for key in weekly_config if str(key).lower() not in ALL_OPEN]
    if unknown:
        raise InvalidConfiguration(f"Unknown weekday(s) in open days config: {', '.join(sorted(map(str, unknown)))}")

    lowered = {str(key).lower(): value for key, value in weekly_config.items()}
    return {name: lowered.get(name) is True for name in WEEKDAY_NAMES}


def _as_date(value: date | datetime, field: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raise ValidationError(f"{field} must be a date")


def compute_end_date(
    start_date: date | datetime,
    open_days_requested: int,
    weekly_config: Mapping[str, object] | None,
) -> date:
    """
    Date of the Nth open day, counting start_date itself when it is open.
    """
    start = _as_date(start_date, "start_date")
    if isinstance(open_days_requested, bool) or not isinstance(open_days_requested, int):
        raise ValidationError("open_days_requested must be an integer")
    if open_days_requested < 1:
        raise InvalidDayCount("open_days_requested must be >= 1")
    if open_days_requested > MAX_OPEN_DAYS:
        raise ValidationError(
            f"open_days_requested cannot exceed {MAX_OPEN_DAYS}",
            details={"max_open_days": MAX_OPEN_DAYS},
        )

    schedule = normalize_config(weekly_config)
    if not any(schedule.values()):
        raise InvalidConfiguration("Open days config has every weekday closed")

    remaining = open_days_requested
    current = start
    try:
        while True:
            if schedule[weekday_name(current)]:
                remaining -= 1
                if remaining == 0:
                    return current
            current += timedelta(days=1)
    except OverflowError:
        raise ValidationError("Rental period runs past the last supported date")


def count_open_days(
    start_date: date | datetime,
    end_date: date | datetime,
    weekly_config: Mapping[str, object] | None,
) -> int:
    """Open days in [start_date, end_date], both inclusive. Empty ranges count 0."""
    start = _as_date(start_date, "start_date")
    end = _as_date(end_date, "end_date")
    if end < start:
        return 0

    schedule = normalize_config(weekly_config)
    span = (end - start).days + 1

    # Whole weeks contribute the same count regardless of where they start
    full_weeks, leftover = divmod(span, 7)
    count = full_weeks * sum(schedule.values())
    for offset in range(leftover):
        if schedule[weekday_name(start + timedelta(days=offset))]:
            count += 1
    return count


def compute_rental_period(
    start_date: date | datetime,
    open_days: int,
    weekly_config: Mapping[str, object] | None,
) -> RentalPeriod:
    start = _as_date(start_date, "start_date")
    end = compute_end_date(start, open_days, weekly_config)
    return RentalPeriod(
        start_date=start,
        requested_open_days=open_days,
        computed_end_date=end,
        calendar_day_span=(end - start).days + 1,
    )
