import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from app.dependencies.services import get_booking_service
from app.schemas.booking import (
    Booking,
    CalendarAvailabilityResponse,
    CheckAvailabilityRequest,
    CheckAvailabilityResponse,
    CreateBookingRequest,
    RoomTypeListResponse,
    UpdateBookingRequest,
)
from app.services import BookingService
from app.services.exceptions import (
    AuthorizationError,
    BookingConflictError,
    BookingValidationError,
    ServiceError,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _unauthorized() -> HTTPException:
    return HTTPException(status_code=401, detail="Not authorized")


@router.get("/room-types", response_model=RoomTypeListResponse)
async def list_room_types(service: BookingService = Depends(get_booking_service)):
    try:
        return RoomTypeListResponse(room_types=await service.list_room_types())
    except AuthorizationError as exc:
        raise _unauthorized() from exc
    except ServiceError:
        logger.exception("Error fetching rooms")
        return RoomTypeListResponse(room_types=[], error="Could not load rooms")


@router.get("/calendar/{room_type}", response_model=CalendarAvailabilityResponse)
async def get_calendar(
    room_type: str,
    months: int = Query(3),
    service: BookingService = Depends(get_booking_service),
):
    if not room_type.strip():
        raise HTTPException(status_code=400, detail="Room type is required")
    try:
        return await service.get_calendar(room_type, months)
    except AuthorizationError as exc:
        raise _unauthorized() from exc
    except ServiceError as exc:
        logger.exception("Error fetching calendar")
        raise HTTPException(status_code=500, detail="Could not load calendar data.") from exc


@router.post("/availability", response_model=CheckAvailabilityResponse)
async def check_availability(
    req: CheckAvailabilityRequest,
    service: BookingService = Depends(get_booking_service),
):
    try:
        return await service.check_availability(req)
    except AuthorizationError as exc:
        raise _unauthorized() from exc
    except ServiceError as exc:
        logger.exception("Error checking availability")
        raise HTTPException(status_code=500, detail="Could not check availability.") from exc


@router.post("/create", response_model=Booking)
async def create_booking(
    req: CreateBookingRequest,
    service: BookingService = Depends(get_booking_service),
):
    try:
        return await service.create_booking(req)
    except BookingValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except BookingConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except AuthorizationError as exc:
        raise _unauthorized() from exc
    except ServiceError as exc:
        logger.exception("Booking creation error")
        raise HTTPException(
            status_code=500, detail="Could not create booking. Please try again."
        ) from exc


@router.get("", response_model=List[Booking])
async def list_bookings(service: BookingService = Depends(get_booking_service)):
    try:
        return await service.list_bookings()
    except AuthorizationError as exc:
        raise _unauthorized() from exc
    except ServiceError as exc:
        logger.exception("Error retrieving bookings")
        raise HTTPException(status_code=500, detail="Could not load bookings.") from exc


@router.get("/{booking_id}", response_model=Booking)
async def get_booking(
    booking_id: str,
    service: BookingService = Depends(get_booking_service),
):
    try:
        booking = await service.get_booking(booking_id)
    except AuthorizationError as exc:
        raise _unauthorized() from exc
    except ServiceError as exc:
        logger.exception("Error retrieving booking %s", booking_id)
        raise HTTPException(status_code=500, detail="Could not load booking.") from exc
    if booking is None:
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking


@router.put("/{booking_id}", response_model=Booking)
async def update_booking(
    booking_id: str,
    req: UpdateBookingRequest,
    service: BookingService = Depends(get_booking_service),
):
    req.booking_id = booking_id
    try:
        updated = await service.update_booking(req)
    except BookingValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except AuthorizationError as exc:
        raise _unauthorized() from exc
    except ServiceError as exc:
        logger.exception("Error updating booking %s", booking_id)
        raise HTTPException(status_code=500, detail="Could not update booking.") from exc
    if updated is None:
        raise HTTPException(status_code=404, detail="Booking not found")
    return updated


@router.delete("/{booking_id}", status_code=204)
async def delete_booking(
    booking_id: str,
    service: BookingService = Depends(get_booking_service),
):
    try:
        deleted = await service.delete_booking(booking_id)
    except AuthorizationError as exc:
        raise _unauthorized() from exc
    if not deleted:
        raise HTTPException(status_code=500, detail="Unable to delete booking.")
    return Response(status_code=204)
