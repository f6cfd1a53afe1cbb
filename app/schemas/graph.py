"""Shapes exchanged with the Microsoft Graph Bookings API.

Graph records are loosely typed: every field is optional and unknown keys
are kept so nothing the provider sends is lost on the way through.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class GraphModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")


class DateTimeTimeZone(GraphModel):
    date_time: Optional[str] = Field(None, alias="dateTime")
    time_zone: Optional[str] = Field("UTC", alias="timeZone")


class BookingCustomer(GraphModel):
    odata_type: str = Field("#microsoft.graph.bookingCustomerInformation", alias="@odata.type")
    name: Optional[str] = None
    email_address: Optional[str] = Field(None, alias="emailAddress")
    phone: Optional[str] = None
    notes: Optional[str] = None


class AppointmentPayload(GraphModel):
    service_id: Optional[str] = Field(None, alias="serviceId")
    start_date_time: Optional[DateTimeTimeZone] = Field(None, alias="startDateTime")
    end_date_time: Optional[DateTimeTimeZone] = Field(None, alias="endDateTime")
    is_location_online: Optional[bool] = Field(None, alias="isLocationOnline")
    customers: Optional[List[BookingCustomer]] = None
    staff_member_ids: Optional[List[str]] = Field(None, alias="staffMemberIds")
    price: Optional[float] = None

    def to_graph(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ServiceRecord(GraphModel):
    """Entry of the Bookings service catalog; each service is a room type."""

    id: Optional[str] = None
    display_name: Optional[str] = Field(None, alias="displayName")
    description: Optional[str] = None
    default_price: Optional[float] = Field(None, alias="defaultPrice")
