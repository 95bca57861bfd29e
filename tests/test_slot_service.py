"""
Availability resolver tests against a real (SQLite) database.
"""

from datetime import date

import pytest

from booking_api.core.exceptions import ServiceUnavailable, UnsupportedService
from booking_api.models import BookingStatus, Service
from booking_api.services.slot_service import compute_available_starts

from tests.conftest import BOOKING_DAY, add_booking, add_window, hhmm

MORNING = ["09:00", "09:20", "09:40", "10:00", "10:20", "10:40", "11:00", "11:20", "11:40"]


async def test_window_nine_to_twelve(session, service, rules):
    await add_window(session, service, BOOKING_DAY, "09:00", "12:00", rules)

    times = await compute_available_starts(session, service.id, BOOKING_DAY, rules)

    assert hhmm(times) == MORNING


async def test_accepts_wire_date_string(session, service, rules):
    await add_window(session, service, BOOKING_DAY, "09:00", "12:00", rules)

    times = await compute_available_starts(session, service.id, "2030-06-12", rules)

    assert hhmm(times) == MORNING


async def test_no_windows_means_no_times(session, service, rules):
    assert await compute_available_starts(session, service.id, BOOKING_DAY, rules) == []


async def test_window_on_another_day_is_ignored(session, service, rules):
    await add_window(session, service, date(2030, 6, 13), "09:00", "12:00", rules)

    assert await compute_available_starts(session, service.id, BOOKING_DAY, rules) == []


async def test_non_contiguous_windows(session, service, rules):
    await add_window(session, service, BOOKING_DAY, "08:00", "08:40", rules)
    await add_window(session, service, BOOKING_DAY, "13:00", "13:35", rules)

    times = await compute_available_starts(session, service.id, BOOKING_DAY, rules)

    # 13:20 session ends 13:35, exactly at the window end
    assert hhmm(times) == ["08:00", "08:20", "13:00", "13:20"]


async def test_window_too_short_for_any_session(session, service, rules):
    await add_window(session, service, BOOKING_DAY, "09:05", "09:30", rules)

    assert await compute_available_starts(session, service.id, BOOKING_DAY, rules) == []


async def test_window_past_closing_is_clipped_to_grid(session, service, rules):
    await add_window(session, service, BOOKING_DAY, "14:00", "18:00", rules)

    times = await compute_available_starts(session, service.id, BOOKING_DAY, rules)

    assert hhmm(times) == ["14:00", "14:20", "14:40"]


async def test_booked_start_is_excluded(session, service, user, rules):
    await add_window(session, service, BOOKING_DAY, "09:00", "12:00", rules)
    await add_booking(session, service, user, BOOKING_DAY, "10:00", rules)

    times = await compute_available_starts(session, service.id, BOOKING_DAY, rules)

    assert "10:00" not in hhmm(times)
    assert len(times) == len(MORNING) - 1


async def test_cancelled_booking_frees_slot(session, service, user, rules):
    await add_window(session, service, BOOKING_DAY, "09:00", "12:00", rules)
    await add_booking(session, service, user, BOOKING_DAY, "10:00", rules, status=BookingStatus.CANCELLED)

    times = await compute_available_starts(session, service.id, BOOKING_DAY, rules)

    assert hhmm(times) == MORNING


async def test_pending_booking_blocks_slot(session, service, user, rules):
    await add_window(session, service, BOOKING_DAY, "09:00", "12:00", rules)
    await add_booking(session, service, user, BOOKING_DAY, "09:00", rules, status=BookingStatus.PENDING)

    times = await compute_available_starts(session, service.id, BOOKING_DAY, rules)

    assert hhmm(times)[0] == "09:20"


async def test_other_service_bookings_do_not_interfere(session, service, user, rules):
    other = Service(name="Piano", duration_minutes=15)
    session.add(other)
    await session.commit()
    await add_window(session, service, BOOKING_DAY, "09:00", "12:00", rules)
    await add_booking(session, other, user, BOOKING_DAY, "09:00", rules)

    times = await compute_available_starts(session, service.id, BOOKING_DAY, rules)

    assert hhmm(times) == MORNING


async def test_repeated_calls_are_identical(session, service, user, rules):
    await add_window(session, service, BOOKING_DAY, "09:00", "12:00", rules)
    await add_window(session, service, BOOKING_DAY, "13:00", "14:00", rules)
    await add_booking(session, service, user, BOOKING_DAY, "11:00", rules)

    first = await compute_available_starts(session, service.id, BOOKING_DAY, rules)
    second = await compute_available_starts(session, service.id, BOOKING_DAY, rules)

    assert first == second
    assert first == sorted(first)


async def test_missing_service(session, rules):
    with pytest.raises(ServiceUnavailable):
        await compute_available_starts(session, 9999, BOOKING_DAY, rules)


async def test_inactive_service(session, service, rules):
    service.is_active = False
    session.add(service)
    await session.commit()

    with pytest.raises(ServiceUnavailable) as exc_info:
        await compute_available_starts(session, service.id, BOOKING_DAY, rules)
    assert not isinstance(exc_info.value, UnsupportedService)


async def test_wrong_duration_is_unsupported(session, rules):
    long_service = Service(name="Long lesson", duration_minutes=30)
    session.add(long_service)
    await session.commit()

    with pytest.raises(UnsupportedService):
        await compute_available_starts(session, long_service.id, BOOKING_DAY, rules)


async def test_wrong_buffer_is_unsupported(session, rules):
    tight = Service(name="No-break lesson", duration_minutes=15, buffer_minutes=0)
    session.add(tight)
    await session.commit()

    with pytest.raises(UnsupportedService) as exc_info:
        await compute_available_starts(session, tight.id, BOOKING_DAY, rules)
    assert exc_info.value.buffer_minutes == 5
