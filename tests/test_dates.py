from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from touchbase.dates import (
    InvalidDateKind,
    as_date,
    days_between,
    days_in_month,
    format_month_day,
    local_today,
    next_occurrence,
    validate_month_day,
)


def test_days_between_ignores_time_of_day():
    a = datetime(2024, 3, 1, 23, 59)
    b = datetime(2024, 3, 2, 0, 1)
    assert days_between(a, b) == 1
    assert days_between(date(2024, 3, 2), date(2024, 3, 2)) == 0


def test_days_between_is_negative_when_b_is_earlier():
    assert days_between(date(2024, 3, 10), date(2024, 3, 1)) == -9


def test_days_between_accepts_iso_strings_and_aware_datetimes():
    assert days_between("2024-01-01", datetime(2024, 1, 31, 12, tzinfo=timezone.utc)) == 30


def test_as_date_truncates_in_the_given_timezone():
    evening_utc = datetime(2024, 5, 19, 20, tzinfo=timezone.utc)
    assert as_date(evening_utc) == date(2024, 5, 19)
    assert as_date(evening_utc, "Asia/Tokyo") == date(2024, 5, 20)
    assert as_date(evening_utc, "America/Los_Angeles") == date(2024, 5, 19)


def test_as_date_reads_naive_datetimes_as_utc_when_zoned():
    assert as_date(datetime(2024, 5, 19, 20), "Asia/Tokyo") == date(2024, 5, 20)
    assert as_date(datetime(2024, 5, 20, 3), "America/Los_Angeles") == date(2024, 5, 19)


def test_as_date_leaves_plain_dates_alone():
    assert as_date(date(2024, 5, 19), "Asia/Tokyo") == date(2024, 5, 19)


def test_days_between_across_local_midnight():
    created = datetime(2024, 5, 19, 20, tzinfo=timezone.utc)
    assert days_between(created, date(2024, 5, 20)) == 1
    assert days_between(created, date(2024, 5, 20), "Asia/Tokyo") == 0


def test_as_date_parses_full_iso_datetime_strings():
    assert as_date("2024-05-19T20:00:00+00:00") == date(2024, 5, 19)
    assert as_date("2024-05-19T20:00:00+00:00", "Asia/Tokyo") == date(2024, 5, 20)


@pytest.mark.parametrize("value", ["2024-5-3T10:00", "yesterday"])
def test_as_date_rejects_malformed_strings(value):
    with pytest.raises(ValueError):
        as_date(value)


@pytest.mark.parametrize("tz", ["Asia/Tokyo", "America/Los_Angeles", "UTC"])
def test_local_today_follows_the_zone(tz):
    before = datetime.now(ZoneInfo(tz)).date()
    today = local_today(tz)
    after = datetime.now(ZoneInfo(tz)).date()
    assert today in (before, after)


def test_days_in_month_without_year_allows_leap_day():
    assert days_in_month(2) == 29
    assert days_in_month(2, 2023) == 28
    assert days_in_month(4) == 30


@pytest.mark.parametrize("month, day", [(0, 1), (13, 1), (2, 30), (4, 31), (6, 0), (None, 5), (3, None)])
def test_validate_month_day_rejects_impossible_pairs(month, day):
    with pytest.raises(InvalidDateKind):
        validate_month_day(month, day)


def test_next_occurrence_later_this_year():
    occ = next_occurrence(6, 15, date(2024, 6, 10))
    assert occ.date == date(2024, 6, 15)
    assert occ.days_until == 5


def test_next_occurrence_today_is_zero_days():
    occ = next_occurrence(6, 15, date(2024, 6, 15))
    assert occ.date == date(2024, 6, 15)
    assert occ.days_until == 0


def test_next_occurrence_already_passed_rolls_to_next_year():
    occ = next_occurrence(1, 2, date(2024, 12, 30))
    assert occ.date == date(2025, 1, 2)
    assert occ.days_until == 3


def test_leap_day_clamps_to_feb_28_in_non_leap_year():
    occ = next_occurrence(2, 29, date(2023, 2, 1))
    assert occ.date == date(2023, 2, 28)
    assert occ.days_until == 27


def test_leap_day_kept_in_leap_year():
    assert next_occurrence(2, 29, date(2024, 2, 1)).date == date(2024, 2, 29)


def test_leap_day_after_passing_projects_into_next_year():
    occ = next_occurrence(2, 29, date(2023, 3, 1))
    assert occ.date == date(2024, 2, 29)


def test_next_occurrence_invalid_input_raises():
    with pytest.raises(InvalidDateKind):
        next_occurrence(2, 30, date(2024, 1, 1))


def test_format_month_day_has_no_year():
    assert format_month_day(3, 4) == "March 4"
