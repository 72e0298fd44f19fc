from datetime import date, datetime, timedelta

import pytest

from spendlog.services import calendar_keys as ck


def test_day_and_month_keys():
    assert ck.day_key(date(2026, 1, 5)) == "2026-01-05"
    assert ck.day_key(datetime(2026, 12, 31, 23, 59)) == "2026-12-31"
    assert ck.month_key(date(2026, 3, 9)) == "2026-03"


def test_sunday_belongs_to_week_started_previous_monday():
    sunday = date(2026, 1, 18)
    assert ck.week_start(sunday, 1) == date(2026, 1, 12)
    assert ck.week_end(sunday, 1) == sunday
    assert ck.week_key(sunday, 1) == "2026-W03"


def test_sunday_start_opens_a_new_week():
    sunday = date(2026, 1, 18)
    assert ck.week_start(sunday, 0) == sunday
    assert ck.week_end(sunday, 0) == date(2026, 1, 24)


@pytest.mark.parametrize("week_start_day", range(7))
def test_week_contains_date_and_spans_seven_days(week_start_day):
    d = date(2025, 12, 20)
    for _ in range(30):
        start = ck.week_start(d, week_start_day)
        end = ck.week_end(d, week_start_day)
        assert start <= d <= end
        assert (end - start).days == 6
        assert (start.weekday() + 1) % 7 == week_start_day
        assert ck.days_in_week(d, week_start_day)[0] == start
        assert len(ck.days_in_week(d, week_start_day)) == 7
        d += timedelta(days=1)


def test_monday_start_matches_iso_weeks():
    d = date(2015, 12, 20)
    while d <= date(2027, 1, 10):
        iso = d.isocalendar()
        assert ck.week_key(d, 1) == f"{iso[0]:04d}-W{iso[1]:02d}"
        d += timedelta(days=1)


def test_week_year_follows_majority_of_days():
    # Sunday-start week Dec 28 2025 .. Jan 3 2026 has four days in 2025
    assert ck.week_key(date(2026, 1, 2), 0) == "2025-W53"
    assert ck.week_key(date(2026, 1, 4), 0) == "2026-W01"


def test_keys_are_deterministic():
    d = datetime(2026, 7, 4, 8, 30)
    assert ck.bucket_keys(d, 3) == ck.bucket_keys(d, 3)
    assert ck.bucket_keys(d, 1) == ("2026-07-04", "2026-W27", "2026-07")


def test_invalid_week_start_day():
    with pytest.raises(ValueError):
        ck.week_key(date(2026, 1, 1), 7)


def test_days_in_range():
    days = ck.days_in_range(date(2026, 1, 30), date(2026, 2, 2))
    assert [ck.day_key(d) for d in days] == [
        "2026-01-30",
        "2026-01-31",
        "2026-02-01",
        "2026-02-02",
    ]
    assert ck.days_in_range(date(2026, 2, 2), date(2026, 1, 30)) == []
    assert ck.days_in_range(date(2026, 2, 2), date(2026, 2, 2)) == [date(2026, 2, 2)]


def test_month_bounds_and_weeks():
    assert ck.month_start(date(2024, 2, 10)) == date(2024, 2, 1)
    assert ck.month_end(date(2024, 2, 10)) == date(2024, 2, 29)
    assert len(ck.days_in_month(date(2026, 2, 1))) == 28
    assert ck.week_keys_in_month(date(2026, 1, 20), 1) == [
        "2026-W01",
        "2026-W02",
        "2026-W03",
        "2026-W04",
        "2026-W05",
    ]


def test_month_navigation_clamps_day():
    assert ck.next_month(date(2026, 1, 31)) == date(2026, 2, 28)
    assert ck.next_month(date(2024, 1, 31)) == date(2024, 2, 29)
    assert ck.previous_month(date(2026, 3, 31)) == date(2026, 2, 28)
    assert ck.next_month(date(2026, 12, 15)) == date(2027, 1, 15)
    assert ck.previous_month(date(2026, 1, 15)) == date(2025, 12, 15)
    assert ck.add_months(date(2026, 1, 31), 13) == date(2027, 2, 28)
    assert ck.add_months(date(2026, 3, 31), -25) == date(2024, 2, 29)


def test_navigation_preserves_type():
    moment = datetime(2026, 1, 31, 10, 15)
    assert ck.next_month(moment) == datetime(2026, 2, 28, 10, 15)
    assert ck.next_day(moment) == datetime(2026, 2, 1, 10, 15)
    assert ck.previous_week(date(2026, 1, 14)) == date(2026, 1, 7)
    assert ck.next_week(date(2026, 1, 14)) == date(2026, 1, 21)
    assert ck.previous_day(date(2026, 3, 1)) == date(2026, 2, 28)


def test_display_labels():
    assert ck.format_week_range(date(2026, 1, 14), 1) == "Jan 12 - Jan 18, 2026"
    assert ck.format_week_range(date(2025, 12, 31), 1) == "Dec 29 - Jan 4, 2026"
    assert ck.format_month(date(2026, 1, 5)) == "January 2026"
    assert ck.day_name(date(2026, 1, 14)) == "Wed"


def test_parse_keys():
    assert ck.parse_week_key("2026-W03") == (2026, 3)
    assert ck.parse_month_key("2026-11") == (2026, 11)
    for bad in ("2026-3", "2026-W54", "W03", ""):
        with pytest.raises(ValueError):
            ck.parse_week_key(bad)
    with pytest.raises(ValueError):
        ck.parse_month_key("2026-13")
