from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

DEFAULT_AMENITIES = ["WiFi", "TV", "AC"]
DEFAULT_STATUS = "Confirmed"


class CustomerInfo(BaseModel):
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    notes: str = ""


class RoomType(BaseModel):
    """A bookable room category taken from the Bookings service catalog."""

    id: str
    name: str
    description: str = ""
    price: Decimal
    capacity: int = 2
    amenities: List[str] = Field(default_factory=lambda: list(DEFAULT_AMENITIES))


class RoomTypeListResponse(BaseModel):
    room_types: List[RoomType]
    error: Optional[str] = None


class Booking(BaseModel):
    """Normalized view of a Bookings appointment."""

    booking_id: str
    room_type: str
    room_name: str = ""
    check_in_date: date
    duration_nights: int = Field(1, ge=1)
    customer_info: CustomerInfo = Field(default_factory=CustomerInfo)
    total_price: Decimal = Field(Decimal("0"), ge=0)
    status: str = DEFAULT_STATUS
    created_at: datetime


class CreateBookingRequest(BaseModel):
    room_type: str = ""
    check_in_date: date
    duration_nights: int = Field(1, ge=1)
    customer_info: CustomerInfo = Field(default_factory=CustomerInfo)


class UpdateBookingRequest(CreateBookingRequest):
    booking_id: str = ""


class CheckAvailabilityRequest(BaseModel):
    room_type: str = Field(..., min_length=1)
    check_in_date: date
    duration_nights: int = Field(1, ge=1)


class CheckAvailabilityResponse(BaseModel):
    available: bool
    message: str = ""
    room_type: str
    check_in_date: date
    price: Decimal


class CalendarDay(BaseModel):
    date: date
    is_available: bool
    price: Decimal


class CalendarAvailabilityResponse(BaseModel):
    room_type: str
    days: List[CalendarDay] = Field(default_factory=list)
    message: str = "Calendar data retrieved successfully"
