"""
Unit tests for the session grid and opening-hours checks.
"""

from datetime import date, datetime, time, timedelta

import pytest

from booking_api.services.grid import (
    HoursViolation,
    SchedulingRules,
    business_hours_violation,
    day_grid,
    expand_session_starts,
    fits_business_hours,
    is_on_grid,
    violation_message,
)

DAY = date(2030, 6, 12)


def local(rules: SchedulingRules, hh: int, mm: int, ss: int = 0) -> datetime:
    return datetime(DAY.year, DAY.month, DAY.day, hh, mm, ss, tzinfo=rules.tz)


def test_default_rules():
    rules = SchedulingRules()
    assert rules.step_minutes == 20
    assert rules.session == timedelta(minutes=15)
    assert rules.day_start == time(8, 0)
    assert rules.day_end == time(15, 0)
    assert rules.tz.key == "Europe/Oslo"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"session_minutes": 0},
        {"buffer_minutes": -5},
        {"day_start": time(15, 0), "day_end": time(8, 0)},
        {"max_sessions": 0},
        {"timezone": "Nowhere/Special"},
    ],
)
def test_invalid_rules_rejected(kwargs):
    with pytest.raises(ValueError):
        SchedulingRules(**kwargs)


@pytest.mark.parametrize("hh, mm", [(8, 0), (8, 20), (8, 40), (12, 0), (14, 40)])
def test_grid_points_are_on_grid(rules, hh, mm):
    assert is_on_grid(local(rules, hh, mm), rules)


@pytest.mark.parametrize("hh, mm", [(7, 40), (8, 10), (8, 15), (9, 5), (14, 45)])
def test_off_grid_points(rules, hh, mm):
    assert not is_on_grid(local(rules, hh, mm), rules)


def test_seconds_break_alignment(rules):
    assert not is_on_grid(local(rules, 8, 20, 30), rules)


def test_on_grid_matches_elapsed_minutes_property(rules):
    for minute_of_day in range(0, 24 * 60, 5):
        dt = local(rules, minute_of_day // 60, minute_of_day % 60)
        elapsed = minute_of_day - (rules.day_start.hour * 60 + rules.day_start.minute)
        expected = elapsed >= 0 and elapsed % rules.step_minutes == 0
        assert is_on_grid(dt, rules) is expected, dt


def test_alternate_grid():
    half_hour = SchedulingRules(session_minutes=30, buffer_minutes=0, day_start=time(9, 0))
    assert is_on_grid(local(half_hour, 9, 30), half_hour)
    assert not is_on_grid(local(half_hour, 9, 20), half_hour)


@pytest.mark.parametrize(
    "hh, mm, sessions, expected",
    [
        (8, 0, 1, None),
        (14, 40, 1, None),
        (14, 45, 1, None),  # ends exactly at closing
        (14, 50, 1, HoursViolation.AFTER_CLOSING),
        (7, 40, 1, HoursViolation.BEFORE_OPENING),
        (14, 20, 2, None),  # 14:20, 14:40 -> ends 14:55
        (14, 40, 2, HoursViolation.AFTER_CLOSING),
        (8, 0, 21, None),  # the whole day
        (8, 0, 22, HoursViolation.AFTER_CLOSING),
    ],
)
def test_business_hours_boundaries(rules, hh, mm, sessions, expected):
    assert business_hours_violation(local(rules, hh, mm), sessions, rules) is expected


def test_fits_business_hours_formula_property(rules):
    closing = datetime.combine(DAY, rules.day_end)
    opening = datetime.combine(DAY, rules.day_start)
    for minute_of_day in range(6 * 60, 16 * 60, 5):
        start = local(rules, minute_of_day // 60, minute_of_day % 60)
        wall = start.replace(tzinfo=None)
        for sessions in range(1, 6):
            last_end = wall + (sessions - 1) * rules.step + rules.session
            expected = wall >= opening and last_end <= closing
            assert fits_business_hours(start, sessions, rules) is expected, (start, sessions)


def test_session_count_must_be_positive(rules):
    with pytest.raises(ValueError):
        business_hours_violation(local(rules, 9, 0), 0, rules)


def test_violation_messages_name_the_bound(rules):
    assert "08:00" in violation_message(HoursViolation.BEFORE_OPENING, rules)
    assert "15:00" in violation_message(HoursViolation.AFTER_CLOSING, rules)


def test_expand_session_starts_steps_by_session_plus_buffer(rules):
    starts = expand_session_starts(local(rules, 11, 0), 3, rules)
    # CEST: local 11:00 is 09:00 UTC
    assert starts == [
        datetime(2030, 6, 12, 9, 0),
        datetime(2030, 6, 12, 9, 20),
        datetime(2030, 6, 12, 9, 40),
    ]


def test_expand_single_session(rules):
    assert expand_session_starts(local(rules, 8, 0), 1, rules) == [datetime(2030, 6, 12, 6, 0)]


def test_day_grid_covers_opening_to_closing(rules):
    grid = day_grid(DAY, rules)
    assert len(grid) == 21
    assert grid[0].time() == time(8, 0)
    assert grid[-1].time() == time(14, 40)
    assert all(b - a == rules.step for a, b in zip(grid, grid[1:]))
    assert all(g.tzinfo is rules.tz for g in grid)
