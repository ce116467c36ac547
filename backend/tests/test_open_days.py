from datetime import date, datetime, timedelta

import pytest

from cubbyshop.services.open_days import (
    MAX_OPEN_DAYS,
    WEEKDAY_NAMES,
    InvalidConfiguration,
    InvalidDayCount,
    compute_end_date,
    compute_rental_period,
    count_open_days,
    normalize_config,
)
from cubbyshop.validation import ValidationError

from conftest import WEEKDAYS_ONLY


MONDAY = date(2024, 1, 1)
FRIDAY = date(2024, 1, 5)

SCHEDULES = [
    {},
    dict(WEEKDAYS_ONLY),
    {name: name != "sunday" for name in WEEKDAY_NAMES},
    {name: name == "wednesday" for name in WEEKDAY_NAMES},
    {name: name in ("saturday", "sunday") for name in WEEKDAY_NAMES},
]


class TestComputeEndDate:

    def test_weekdays_from_monday(self):
        assert compute_end_date(MONDAY, 5, WEEKDAYS_ONLY) == date(2024, 1, 5)

    def test_skips_weekend(self):
        assert compute_end_date(FRIDAY, 2, WEEKDAYS_ONLY) == date(2024, 1, 8)

    def test_empty_config_means_every_day_open(self):
        assert compute_end_date(MONDAY, 5, {}) == MONDAY + timedelta(days=4)

    def test_none_config_means_every_day_open(self):
        assert compute_end_date(MONDAY, 1, None) == MONDAY

    def test_closed_start_day_is_not_counted(self):
        saturday = date(2024, 1, 6)
        assert compute_end_date(saturday, 1, WEEKDAYS_ONLY) == date(2024, 1, 8)

    def test_missing_weekdays_are_closed(self):
        config = {"monday": True, "tuesday": True}
        assert compute_end_date(MONDAY, 3, config) == date(2024, 1, 8)

    def test_only_exact_true_counts_as_open(self):
        config = dict(WEEKDAYS_ONLY, monday="yes")
        assert compute_end_date(MONDAY, 1, config) == date(2024, 1, 2)

    def test_accepts_datetime(self):
        assert compute_end_date(datetime(2024, 1, 5, 15, 30), 2, WEEKDAYS_ONLY) == date(2024, 1, 8)

    def test_all_closed_raises(self):
        config = {name: False for name in WEEKDAY_NAMES}
        with pytest.raises(InvalidConfiguration):
            compute_end_date(MONDAY, 3, config)

    @pytest.mark.parametrize("days", [0, -1])
    def test_requested_days_below_one(self, days):
        with pytest.raises(InvalidDayCount) as exc_info:
            compute_end_date(MONDAY, days, WEEKDAYS_ONLY)
        assert isinstance(exc_info.value, InvalidConfiguration)
        assert isinstance(exc_info.value, ValidationError)

    @pytest.mark.parametrize("days", [1.5, "3", True])
    def test_requested_days_must_be_int(self, days):
        with pytest.raises(ValidationError):
            compute_end_date(MONDAY, days, WEEKDAYS_ONLY)

    def test_longest_allowed_request(self):
        end = compute_end_date(MONDAY, MAX_OPEN_DAYS, {})
        assert end == MONDAY + timedelta(days=MAX_OPEN_DAYS - 1)

    def test_request_above_maximum_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            compute_end_date(MONDAY, 3_000_000, WEEKDAYS_ONLY)
        assert not isinstance(exc_info.value, InvalidConfiguration)
        assert exc_info.value.details["max_open_days"] == MAX_OPEN_DAYS

    def test_period_running_past_last_date_rejected(self):
        with pytest.raises(ValidationError):
            compute_end_date(date.max - timedelta(days=3), 10, {})

    def test_last_supported_date_can_be_the_end(self):
        assert compute_end_date(date.max - timedelta(days=1), 2, {}) == date.max

    def test_unknown_weekday_rejected(self):
        with pytest.raises(InvalidConfiguration):
            compute_end_date(MONDAY, 1, {"funday": True})

    @pytest.mark.parametrize("config", SCHEDULES)
    def test_non_decreasing_in_days(self, config):
        ends = [compute_end_date(MONDAY, n, config) for n in range(1, 40)]
        assert ends == sorted(ends)

    @pytest.mark.parametrize("config", SCHEDULES)
    def test_round_trip_with_count(self, config):
        for offset in range(7):
            start = MONDAY + timedelta(days=offset)
            for n in (1, 2, 5, 7, 13, 30):
                end = compute_end_date(start, n, config)
                assert count_open_days(start, end, config) == n

    @pytest.mark.parametrize("config", SCHEDULES)
    def test_end_date_is_open_day(self, config):
        schedule = normalize_config(config)
        end = compute_end_date(date(2024, 2, 27), 11, config)
        assert schedule[WEEKDAY_NAMES[end.weekday()]] is True


class TestCountOpenDays:

    def test_weekdays_in_first_week(self):
        assert count_open_days(MONDAY, date(2024, 1, 5), WEEKDAYS_ONLY) == 5

    def test_full_two_weeks(self):
        assert count_open_days(MONDAY, date(2024, 1, 14), WEEKDAYS_ONLY) == 10

    def test_single_closed_day(self):
        sunday = date(2024, 1, 7)
        assert count_open_days(sunday, sunday, WEEKDAYS_ONLY) == 0

    def test_reversed_range_is_zero(self):
        assert count_open_days(date(2024, 1, 5), MONDAY, WEEKDAYS_ONLY) == 0

    def test_empty_config_counts_every_day(self):
        assert count_open_days(MONDAY, date(2024, 1, 31), {}) == 31

    def test_all_closed_counts_zero(self):
        config = {name: False for name in WEEKDAY_NAMES}
        assert count_open_days(MONDAY, date(2024, 3, 1), config) == 0

    def test_matches_day_by_day_scan(self):
        config = {name: name in ("tuesday", "friday", "saturday") for name in WEEKDAY_NAMES}
        start = date(2024, 2, 20)
        for span in range(0, 45):
            end = start + timedelta(days=span)
            expected = sum(
                1 for i in range(span + 1)
                if config[WEEKDAY_NAMES[(start + timedelta(days=i)).weekday()]]
            )
            assert count_open_days(start, end, config) == expected


class TestRentalPeriod:

    def test_span_includes_closed_days(self):
        period = compute_rental_period(FRIDAY, 2, WEEKDAYS_ONLY)
        assert period.computed_end_date == date(2024, 1, 8)
        assert period.calendar_day_span == 4
        assert period.requested_open_days == 2

    def test_span_equals_days_when_nothing_closed(self):
        period = compute_rental_period(MONDAY, 5, WEEKDAYS_ONLY)
        assert period.calendar_day_span == 5

    @pytest.mark.parametrize("config", SCHEDULES)
    def test_span_never_below_requested(self, config):
        for n in (1, 4, 9, 21):
            period = compute_rental_period(MONDAY, n, config)
            assert period.calendar_day_span >= n

    def test_to_dict(self):
        data = compute_rental_period(FRIDAY, 2, WEEKDAYS_ONLY).to_dict()
        assert data == {
            "start_date": "2024-01-05",
            "requested_open_days": 2,
            "end_date": "2024-01-08",
            "calendar_day_span": 4,
        }
