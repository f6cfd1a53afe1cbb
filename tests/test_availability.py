import os
import sys
from datetime import date
from decimal import Decimal

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app.services.availability import booked_dates, compute_calendar, is_available
from app.services.dates import DateRange

JANUARY = DateRange(date(2025, 1, 1), date(2025, 2, 1))


def _stay(service_id: str, start: str, end: str, appointment_id: str = "APT") -> dict:
    return {
        "id": appointment_id,
        "serviceId": service_id,
        "startDateTime": {"dateTime": f"{start}T00:00:00.0000000", "timeZone": "UTC"},
        "endDateTime": {"dateTime": f"{end}T00:00:00.0000000", "timeZone": "UTC"},
    }


def test_deluxe_calendar_marks_nights_and_frees_checkout_day() -> None:
    appointments = [_stay("deluxe", "2025-01-10", "2025-01-12")]

    days = compute_calendar("deluxe", appointments, Decimal("150"), date(2025, 1, 1), 30)

    assert len(days) == 31
    assert days[0].date == date(2025, 1, 1)
    assert days[-1].date == date(2025, 1, 31)
    unavailable = [day.date for day in days if not day.is_available]
    assert unavailable == [date(2025, 1, 10), date(2025, 1, 11)]
    assert all(day.price == Decimal("150") for day in days)


def test_calendar_ignores_other_services() -> None:
    appointments = [_stay("standard", "2025-01-10", "2025-01-12")]

    days = compute_calendar("deluxe", appointments, Decimal("150"), date(2025, 1, 1), 30)

    assert all(day.is_available for day in days)


def test_duplicate_appointments_book_a_day_once() -> None:
    appointments = [
        _stay("deluxe", "2025-01-10", "2025-01-12", "A"),
        _stay("deluxe", "2025-01-10", "2025-01-12", "B"),
        _stay("deluxe", "2025-01-11", "2025-01-13", "C"),
    ]

    assert booked_dates("deluxe", appointments, JANUARY) == {
        date(2025, 1, 10),
        date(2025, 1, 11),
        date(2025, 1, 12),
    }


def test_calendar_is_idempotent() -> None:
    appointments = [_stay("deluxe", "2025-01-10", "2025-01-12")]

    first = compute_calendar("deluxe", appointments, Decimal("150"), date(2025, 1, 1), 30)
    second = compute_calendar("deluxe", appointments, Decimal("150"), date(2025, 1, 1), 30)

    assert first == second


def test_unreadable_appointment_is_skipped_for_calendar() -> None:
    broken = {"id": "BAD", "serviceId": "deluxe", "startDateTime": {"dateTime": "soon"}}
    appointments = [broken, _stay("deluxe", "2025-01-05", "2025-01-06")]

    days = compute_calendar("deluxe", appointments, Decimal("150"), date(2025, 1, 1), 9)

    assert [day.date for day in days if not day.is_available] == [date(2025, 1, 5)]


def test_calendar_uses_utc_dates_for_offset_timestamps() -> None:
    appointment = {
        "serviceId": "deluxe",
        "startDateTime": {"dateTime": "2025-01-09T22:00:00-05:00"},
        "endDateTime": {"dateTime": "2025-01-11T22:00:00-05:00"},
    }

    assert booked_dates("deluxe", [appointment], JANUARY) == {date(2025, 1, 10), date(2025, 1, 11)}


def test_back_to_back_stays_do_not_conflict() -> None:
    existing = [_stay("deluxe", "2025-01-10", "2025-01-13")]

    assert is_available("deluxe", date(2025, 1, 13), 2, existing) is True
    assert is_available("deluxe", date(2025, 1, 8), 2, existing) is True


def test_overlapping_stay_conflicts() -> None:
    existing = [_stay("deluxe", "2025-01-10", "2025-01-13")]

    assert is_available("deluxe", date(2025, 1, 12), 2, existing) is False
    assert is_available("deluxe", date(2025, 1, 9), 7, existing) is False


def test_conflict_check_is_scoped_to_service() -> None:
    existing = [_stay("standard", "2025-01-10", "2025-01-13")]

    assert is_available("deluxe", date(2025, 1, 11), 1, existing) is True
    assert is_available("deluxe", date(2025, 1, 11), 1, []) is True


def test_unreadable_existing_appointment_does_not_block() -> None:
    existing = [{"id": "BAD", "serviceId": "deluxe", "startDateTime": None, "endDateTime": None}]

    assert is_available("deluxe", date(2025, 1, 11), 1, existing) is True


def _timed_stay(service_id: str, start: str, end: str, appointment_id: str = "APT") -> dict:
    return {
        "id": appointment_id,
        "serviceId": service_id,
        "startDateTime": {"dateTime": start},
        "endDateTime": {"dateTime": end},
    }


def test_same_day_appointment_books_no_calendar_night() -> None:
    appointments = [_timed_stay("deluxe", "2025-01-10T10:00:00Z", "2025-01-10T11:00:00Z")]

    days = compute_calendar("deluxe", appointments, Decimal("150"), date(2025, 1, 1), 30)

    assert all(day.is_available for day in days)


def test_inverted_appointment_books_no_calendar_night() -> None:
    appointments = [_stay("deluxe", "2025-01-12", "2025-01-10")]

    assert booked_dates("deluxe", appointments, JANUARY) == set()


def test_same_day_appointment_still_blocks_that_night_in_conflict_check() -> None:
    appointments = [_timed_stay("deluxe", "2025-01-10T10:00:00Z", "2025-01-10T11:00:00Z")]

    assert is_available("deluxe", date(2025, 1, 10), 1, appointments) is False
    assert is_available("deluxe", date(2025, 1, 11), 1, appointments) is True


def test_overflowing_timestamps_are_skipped() -> None:
    appointments = [
        {
            "id": "FAR",
            "serviceId": "deluxe",
            "startDateTime": {"dateTime": "9999-12-31T23:00:00", "timeZone": "America/New_York"},
            "endDateTime": {"dateTime": "9999-12-31T23:30:00-05:00"},
        },
        _stay("deluxe", "2025-01-10", "2025-01-12"),
    ]

    days = compute_calendar("deluxe", appointments, Decimal("150"), date(2025, 1, 1), 30)

    assert [day.date for day in days if not day.is_available] == [date(2025, 1, 10), date(2025, 1, 11)]
    assert is_available("deluxe", date(2025, 2, 1), 3, appointments) is True


def test_long_stay_is_clipped_to_the_calendar_window() -> None:
    appointments = [_stay("deluxe", "1990-01-01", "2060-01-01")]

    days = compute_calendar("deluxe", appointments, Decimal("150"), date(2025, 1, 1), 9)

    assert len(days) == 10
    assert not any(day.is_available for day in days)
    assert booked_dates("deluxe", appointments, JANUARY) == set(JANUARY.days())
