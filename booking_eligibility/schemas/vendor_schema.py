"""Vendor and vendor-offering data models."""

import datetime as dt
from enum import Enum
from typing import Any, Optional

from dateutil.parser import isoparse
from pydantic import Field, field_validator

from booking_eligibility.schemas.base_schema import CamelModel
from booking_eligibility.schemas.catalog_schema import Address


class OfferingStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    SUSPENDED = "suspended"


class DaySchedule(CamelModel):
    """Working window for one weekday, e.g. ``09:00 AM`` to ``09:00 PM``."""
    start: Optional[str] = None
    end: Optional[str] = None
    is_available: bool = True


class Holiday(CamelModel):
    """A calendar day on which the offering is closed."""
    date: dt.date
    reason: str = ""

    @field_validator("date", mode="before")
    @classmethod
    def _strip_time(cls, value: Any) -> Any:
        if isinstance(value, dt.datetime):
            return value.date()
        if isinstance(value, str) and len(value) > 10:
            # Stored as full ISO timestamps, e.g. 2025-03-14T00:00:00.000Z
            return isoparse(value).date()
        return value


class Availability(CamelModel):
    """Per-offering availability: master switch, weekly hours and holidays."""
    is_available: bool = True
    working_hours: dict[str, DaySchedule] = Field(default_factory=dict)
    holidays: list[Holiday] = Field(default_factory=list)


class BookingStats(CamelModel):
    total_bookings: int = 0
    completed_bookings: int = 0
    cancelled_bookings: int = 0
    average_response_time: Optional[float] = None


class Vendor(CamelModel):
    """A service provider account."""
    id: str
    first_name: str = ""
    last_name: str = ""
    is_available: bool = True
    is_blocked: bool = False
    service_radius: Optional[float] = None
    address: Optional[Address] = None
    fcm_token: Optional[str] = None

    @property
    def coordinates(self) -> Optional[tuple[float, float]]:
        """``(latitude, longitude)`` of the registered address, if known."""
        if self.address is None or self.address.location is None:
            return None
        coords = self.address.location.coordinates
        if len(coords) != 2:
            return None
        return coords[1], coords[0]


class VendorOffering(CamelModel):
    """A vendor's registration to perform services in a child category.

    ``vendor`` is the joined vendor record; the directory leaves it as
    None when the vendor does not pass the join predicate.
    """
    id: str
    vendor_id: str
    title: str = ""
    category_id: Optional[str] = None
    child_category_id: str
    status: OfferingStatus = OfferingStatus.PENDING
    is_active: bool = True
    is_deleted: bool = False
    availability: Availability = Field(default_factory=Availability)
    rating: float = 0.0
    booking_stats: BookingStats = Field(default_factory=BookingStats)
    vendor: Optional[Vendor] = None
