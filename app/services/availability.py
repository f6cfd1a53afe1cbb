from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Set

from app.schemas.booking import CalendarDay
from app.services.dates import DateRange, appointment_dates, appointment_range

logger = logging.getLogger(__name__)


def _for_service(service_id: str, appointments: Iterable[Any]) -> Iterable[Mapping[str, Any]]:
    for appointment in appointments or ():
        if isinstance(appointment, Mapping) and appointment.get("serviceId") == service_id:
            yield appointment


def booked_dates(service_id: str, appointments: Iterable[Any], window: DateRange) -> Set[date]:
    """Collect the nights inside ``window`` occupied by appointments of ``service_id``.

    Each stay covers ``[start, checkout)`` as given; a stay that checks out on
    or before its start day books nothing.
    """

    booked: Set[date] = set()
    for appointment in _for_service(service_id, appointments):
        dates = appointment_dates(appointment)
        if dates is None:
            logger.warning(
                "Skipping appointment %r with unreadable dates", appointment.get("id")
            )
            continue
        start, end = dates
        if end <= start:
            continue
        visible = DateRange(start, end).clip(window)
        if visible is not None:
            booked.update(visible.days())
    return booked


def compute_calendar(
    service_id: str,
    appointments: Iterable[Any],
    nightly_price: Decimal,
    window_start: date,
    window_days: int,
) -> List[CalendarDay]:
    """Day-by-day availability from ``window_start`` to ``window_start + window_days`` inclusive."""

    window = DateRange.from_nights(window_start, max(0, window_days) + 1)
    booked = booked_dates(service_id, appointments, window)
    return [
        CalendarDay(date=day, is_available=day not in booked, price=nightly_price)
        for day in window.days()
    ]


def is_available(
    service_id: str,
    check_in: date,
    duration_nights: int,
    appointments: Iterable[Any],
) -> bool:
    """Return False only when a readable appointment of ``service_id`` overlaps the requested stay.

    Appointments whose dates cannot be parsed are ignored, so they never
    block a new booking. That leniency can let a double booking through and
    is logged every time it happens.
    """

    candidate = DateRange.from_nights(check_in, duration_nights)
    for appointment in _for_service(service_id, appointments):
        stay = appointment_range(appointment)
        if stay is None:
            logger.warning(
                "Ignoring appointment %r with unreadable dates during conflict check",
                appointment.get("id"),
            )
            continue
        if stay.overlaps(candidate):
            logger.info(
                "Requested stay %s..%s overlaps appointment %r",
                candidate.start,
                candidate.end,
                appointment.get("id"),
            )
            return False
    return True
