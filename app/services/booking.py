from __future__ import annotations

import logging
import secrets
import string
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, List, Optional

from pydantic import ValidationError

from app.clients.graph import GraphBookingsClient
from app.config import Settings
from app.schemas.booking import (
    DEFAULT_STATUS,
    Booking,
    CalendarAvailabilityResponse,
    CheckAvailabilityRequest,
    CheckAvailabilityResponse,
    CreateBookingRequest,
    RoomType,
    UpdateBookingRequest,
)
from app.schemas.graph import ServiceRecord
from app.services.availability import compute_calendar, is_available
from app.services.dates import add_months
from app.services.exceptions import (
    BookingConflictError,
    BookingValidationError,
    ConfigurationError,
    DownstreamServiceError,
)
from app.services.mapper import to_appointment_payload, to_booking, to_price

logger = logging.getLogger(__name__)

BOOKING_ID_PREFIX = "BK"
_ID_ALPHABET = string.ascii_uppercase + string.digits


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_booking_id(now: datetime) -> str:
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(8))
    return f"{BOOKING_ID_PREFIX}-{now:%Y%m%d%H%M%S}-{suffix}"


class BookingService:
    """Room, calendar and booking operations backed by a Bookings business.

    All state lives in the provider; each call fetches what it needs and
    returns a fresh projection.
    """

    def __init__(
        self,
        client: GraphBookingsClient,
        settings: Settings,
        *,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._client = client
        self._settings = settings
        self._clock = clock

    async def _lookup_service(self, service_id: str) -> Optional[ServiceRecord]:
        try:
            data = await self._client.get_service(service_id)
        except DownstreamServiceError:
            logger.warning("Could not load service %s, searching the catalog", service_id)
            data = None
        if not data:
            data = await self._catalog_entry(service_id)
        if not data:
            return None
        try:
            return ServiceRecord.model_validate(data)
        except ValidationError:
            logger.warning("Service %s returned an unreadable record", service_id)
            return None

    async def _catalog_entry(self, service_id: str) -> Optional[dict]:
        try:
            services = await self._client.list_services()
        except DownstreamServiceError:
            logger.warning("Could not load catalog for %s, using default price", service_id)
            return None
        for raw in services or ():
            if isinstance(raw, dict) and raw.get("id") == service_id:
                return raw
        return None

    def _price_of(self, service: Optional[ServiceRecord]) -> Decimal:
        if service is None or service.default_price is None:
            return self._settings.default_nightly_price
        return to_price(service.default_price)

    async def list_room_types(self) -> List[RoomType]:
        if not self._client.is_configured:
            logger.warning("Booking Business ID not configured")
            return []

        try:
            services = await self._client.list_services()
        except (DownstreamServiceError, ConfigurationError):
            logger.error("Error fetching rooms from Bookings", exc_info=True)
            return []

        room_types: List[RoomType] = []
        for raw in services:
            try:
                service = ServiceRecord.model_validate(raw)
            except ValidationError:
                logger.warning("Skipping unreadable service record %r", raw)
                continue
            room_types.append(
                RoomType(
                    id=service.id or str(uuid.uuid4()),
                    name=service.display_name or "Room",
                    description=service.description or "",
                    price=self._price_of(service),
                )
            )
        return room_types

    async def get_calendar(
        self, service_id: str, months: int | None = None
    ) -> CalendarAvailabilityResponse:
        default_months = self._settings.calendar_default_months
        if months is None or months < 1 or months > 12:
            months = default_months

        if not self._client.is_configured:
            logger.warning("Booking Business ID not configured")
            return CalendarAvailabilityResponse(
                room_type=service_id, message="Booking service is not configured"
            )

        try:
            appointments = await self._client.list_appointments(service_id)
        except (DownstreamServiceError, ConfigurationError):
            logger.error("Error fetching calendar for %s", service_id, exc_info=True)
            return CalendarAvailabilityResponse(
                room_type=service_id, message="Calendar data is currently unavailable"
            )

        price = self._price_of(await self._lookup_service(service_id))
        today = self._clock().date()
        window_days = (add_months(today, months) - today).days
        days = compute_calendar(service_id, appointments, price, today, window_days)
        return CalendarAvailabilityResponse(room_type=service_id, days=days)

    def _unconfigured_availability(
        self, request: CheckAvailabilityRequest
    ) -> CheckAvailabilityResponse:
        return CheckAvailabilityResponse(
            available=False,
            message="Booking service is not configured",
            room_type=request.room_type,
            check_in_date=request.check_in_date,
            price=self._settings.availability_fallback_price,
        )

    async def check_availability(
        self, request: CheckAvailabilityRequest
    ) -> CheckAvailabilityResponse:
        if not self._client.is_configured:
            logger.warning("Booking Business ID not configured")
            return self._unconfigured_availability(request)

        try:
            appointments = await self._client.list_appointments(request.room_type)
        except ConfigurationError:
            logger.warning("Booking credentials not configured", exc_info=True)
            return self._unconfigured_availability(request)
        except DownstreamServiceError:
            if not self._settings.fail_open_on_availability_error:
                raise
            logger.warning(
                "Availability for %s on %s could not be verified, reporting available",
                request.room_type,
                request.check_in_date,
            )
            return CheckAvailabilityResponse(
                available=True,
                message="Room is available",
                room_type=request.room_type,
                check_in_date=request.check_in_date,
                price=self._settings.availability_fallback_price,
            )

        price = self._price_of(await self._lookup_service(request.room_type))
        available = is_available(
            request.room_type, request.check_in_date, request.duration_nights, appointments
        )
        return CheckAvailabilityResponse(
            available=available,
            message="Room is available" if available else "Room is not available for the selected dates",
            room_type=request.room_type,
            check_in_date=request.check_in_date,
            price=price,
        )

    @staticmethod
    def _validate_guest(request: CreateBookingRequest) -> None:
        if not request.room_type.strip():
            raise BookingValidationError("Room type and customer information required")
        info = request.customer_info
        if not (info.first_name.strip() and info.last_name.strip() and info.email.strip()):
            raise BookingValidationError("First name, last name, and email are required")

    async def _ensure_free(self, request: CreateBookingRequest) -> None:
        try:
            appointments = await self._client.list_appointments(request.room_type)
        except DownstreamServiceError:
            logger.warning(
                "Could not re-check availability for %s, continuing with booking",
                request.room_type,
            )
            return
        if not is_available(
            request.room_type, request.check_in_date, request.duration_nights, appointments
        ):
            raise BookingConflictError("Room is not available for the selected dates")

    async def create_booking(self, request: CreateBookingRequest) -> Booking:
        self._validate_guest(request)
        if not self._client.is_configured:
            raise ConfigurationError("Booking Business ID not configured")

        if self._settings.revalidate_on_create:
            await self._ensure_free(request)

        service = await self._lookup_service(request.room_type)
        total_price = self._price_of(service) * request.duration_nights
        payload = to_appointment_payload(
            request, staff_id=self._settings.bookings_staff_id, price=total_price
        )

        now = self._clock()
        try:
            created = await self._client.create_appointment(payload)
            booking_id = created.get("id") or generate_booking_id(now)
        except DownstreamServiceError:
            if not self._settings.fallback_on_create_error:
                raise
            booking_id = generate_booking_id(now)
            # The record below exists only in this response, not in Bookings.
            logger.error(
                "Bookings rejected appointment for %s on %s; returning unsaved booking %s",
                request.room_type,
                request.check_in_date,
                booking_id,
            )

        return Booking(
            booking_id=booking_id,
            room_type=request.room_type,
            room_name=(service.display_name if service else None) or request.room_type,
            check_in_date=request.check_in_date,
            duration_nights=request.duration_nights,
            customer_info=request.customer_info,
            total_price=total_price,
            status=DEFAULT_STATUS,
            created_at=now,
        )

    async def list_bookings(self) -> List[Booking]:
        if not self._client.is_configured:
            logger.warning("Booking Business ID not configured")
            return []

        try:
            appointments = await self._client.list_appointments()
        except (DownstreamServiceError, ConfigurationError):
            logger.error("Error retrieving bookings", exc_info=True)
            return []

        bookings: List[Booking] = []
        for appointment in appointments:
            try:
                bookings.append(to_booking(appointment))
            except ValidationError:
                logger.warning("Skipping appointment that could not be mapped", exc_info=True)
        bookings.sort(key=lambda booking: booking.check_in_date, reverse=True)
        return bookings

    async def get_booking(self, booking_id: str) -> Optional[Booking]:
        if not booking_id or not self._client.is_configured:
            return None
        try:
            appointment = await self._client.get_appointment(booking_id)
        except (DownstreamServiceError, ConfigurationError):
            logger.error("Error retrieving booking %s", booking_id, exc_info=True)
            return None
        return to_booking(appointment) if appointment else None

    async def update_booking(self, request: UpdateBookingRequest) -> Optional[Booking]:
        if not request.booking_id.strip():
            raise BookingValidationError("BookingId is required")
        if not self._client.is_configured:
            raise ConfigurationError("Booking Business ID not configured")

        payload = to_appointment_payload(request)
        await self._client.patch_appointment(request.booking_id, payload)
        updated = await self._client.get_appointment(request.booking_id)
        return to_booking(updated) if updated else None

    async def delete_booking(self, booking_id: str) -> bool:
        if not booking_id:
            return False
        if not self._client.is_configured:
            logger.error("Cannot delete booking %s: Booking Business ID not configured", booking_id)
            return False
        try:
            await self._client.delete_appointment(booking_id)
        except (DownstreamServiceError, ConfigurationError):
            logger.error("Error deleting booking %s", booking_id)
            return False
        return True
