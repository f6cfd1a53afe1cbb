"""Translation between Graph appointment records and :class:`Booking`.

``to_booking`` is used on every record the provider returns, so it degrades
each missing or malformed field to a default instead of raising. One bad
record must never hide the rest of a listing.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional

from app.schemas.booking import DEFAULT_STATUS, Booking, CreateBookingRequest, CustomerInfo
from app.schemas.graph import AppointmentPayload, BookingCustomer, DateTimeTimeZone
from app.services.dates import parse_timestamp, utc_midnight

logger = logging.getLogger(__name__)

_STATUS_KEYS = ("status", "bookingStatus")


def _text(record: Mapping[str, Any], key: str) -> str:
    value = record.get(key)
    if value is None:
        return ""
    return str(value)


def _first_customer(appointment: Mapping[str, Any]) -> Mapping[str, Any]:
    customers = appointment.get("customers")
    if not isinstance(customers, list):
        return {}
    for customer in customers:
        if isinstance(customer, Mapping):
            return customer
    return {}


def split_name(name: Any) -> tuple[str, str]:
    parts = str(name).split() if name else []
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


def join_name(first_name: str, last_name: str) -> str:
    return " ".join(part for part in (first_name.strip(), last_name.strip()) if part)


def _notes(customer: Mapping[str, Any]) -> str:
    if customer.get("notes") is not None:
        return str(customer["notes"])
    extra = customer.get("additionalData")
    if isinstance(extra, Mapping) and extra.get("notes") is not None:
        return str(extra["notes"])
    return ""


def to_price(value: Any) -> Decimal:
    """Coerce a provider price into a non-negative ``Decimal``; unreadable values become 0."""

    if value is None or isinstance(value, bool):
        return Decimal("0")
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal("0")
    if not price.is_finite() or price < 0:
        return Decimal("0")
    return price


def _status(appointment: Mapping[str, Any]) -> str:
    for key in _STATUS_KEYS:
        value = appointment.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return DEFAULT_STATUS


def _stay(appointment: Mapping[str, Any]) -> tuple[datetime, int]:
    start = parse_timestamp(appointment.get("startDateTime"))
    if start is None:
        start = datetime.now(timezone.utc)
    end = parse_timestamp(appointment.get("endDateTime"))
    if end is None:
        end = start + timedelta(days=1)
    total_days = (end - start).total_seconds() / 86400
    return start, max(1, round(total_days))


def to_booking(appointment: Any) -> Booking:
    """Map a Graph appointment record to a :class:`Booking`.

    Defaults: check-in now, one night, empty guest fields, price 0, status
    "Confirmed", created-at equal to check-in.
    """

    record: Mapping[str, Any] = appointment if isinstance(appointment, Mapping) else {}

    try:
        check_in, nights = _stay(record)
    except Exception:
        logger.warning("Could not read stay dates for appointment %r", record.get("id"), exc_info=True)
        check_in, nights = datetime.now(timezone.utc), 1

    customer = _first_customer(record)
    first_name, last_name = split_name(customer.get("name"))

    created_at: Optional[datetime] = None
    try:
        created_at = parse_timestamp(record.get("createdDateTime"))
    except Exception:
        logger.warning("Could not read creation time for appointment %r", record.get("id"), exc_info=True)

    service_id = _text(record, "serviceId")
    return Booking(
        booking_id=_text(record, "id"),
        room_type=service_id,
        room_name=_text(record, "serviceName") or service_id,
        check_in_date=check_in.date(),
        duration_nights=nights,
        customer_info=CustomerInfo(
            first_name=first_name,
            last_name=last_name,
            email=_text(customer, "emailAddress"),
            phone=_text(customer, "phone"),
            notes=_notes(customer),
        ),
        total_price=to_price(record.get("price")),
        status=_status(record),
        created_at=created_at or check_in,
    )


def to_appointment_payload(
    booking: Booking | CreateBookingRequest,
    *,
    staff_id: str | None = None,
    price: Decimal | None = None,
) -> dict[str, Any]:
    """Build the Graph appointment body used for create and update calls."""

    check_in = utc_midnight(booking.check_in_date)
    check_out = check_in + timedelta(days=max(1, booking.duration_nights))
    info = booking.customer_info

    payload = AppointmentPayload(
        service_id=booking.room_type,
        start_date_time=DateTimeTimeZone(date_time=check_in.isoformat(), time_zone="UTC"),
        end_date_time=DateTimeTimeZone(date_time=check_out.isoformat(), time_zone="UTC"),
        is_location_online=False,
        customers=[
            BookingCustomer(
                name=join_name(info.first_name, info.last_name),
                email_address=info.email,
                phone=info.phone,
                notes=info.notes or "",
            )
        ],
        staff_member_ids=[staff_id] if staff_id else None,
        price=float(price) if price is not None else None,
    )
    return payload.to_graph()
