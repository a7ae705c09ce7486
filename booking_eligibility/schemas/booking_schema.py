"""Booking request, validation result and booking ledger data models."""

import datetime as dt
from enum import Enum
from typing import Any, Optional

from pydantic import Field

from booking_eligibility.schemas.base_schema import CamelModel
from booking_eligibility.schemas.catalog_schema import Address, ServiceTemplate
from booking_eligibility.schemas.customer_schema import User


class ErrorCode(str, Enum):
    """Kinds of validation outcome reported back to the caller."""
    REQUIRED = "required"
    INVALID_FORMAT = "invalid_format"
    INVALID_RANGE = "invalid_range"
    INVALID_COORDINATES = "invalid_coordinates"
    PAST_DATE = "past_date"
    TOO_FAR_AHEAD = "too_far_ahead"
    NOT_FOUND = "not_found"
    VERIFICATION_REQUIRED = "verification_required"
    NO_VENDORS_AVAILABLE = "no_vendors_available"
    LEAD_TIME_VIOLATION = "lead_time_violation"
    OUT_OF_SERVICE_AREA = "out_of_service_area"
    SYSTEM_ERROR = "system_error"


class FieldError(CamelModel):
    """A single field-level validation failure."""
    field: str
    message: str
    code: ErrorCode


SYSTEM_ERROR_MESSAGE = "Validation failed due to system error"


def system_error() -> FieldError:
    return FieldError(field="general", message=SYSTEM_ERROR_MESSAGE, code=ErrorCode.SYSTEM_ERROR)


class ServiceRequest(CamelModel):
    """Raw booking request as received from the caller."""
    service_id: Any = None
    date: Any = None
    time_slot: Any = None
    address: Any = None
    user_id: Any = None


class TimeSlotRange(CamelModel):
    """A validated slot, kept as the caller's original strings."""
    start: str
    end: str

    def __str__(self) -> str:
        return f"{self.start} - {self.end}"


class EligibleVendor(CamelModel):
    """A vendor that passed availability and service-radius checks."""
    vendor_id: str
    offering_id: Optional[str] = None
    distance: float
    service_radius: float
    fcm_token: Optional[str] = None
    rating: float = 0.0
    total_bookings: int = 0
    response_time: Optional[float] = None
    priority_score: Optional[int] = None


class BookingData(CamelModel):
    """Validated inputs plus the eligible vendors, handed to booking creation."""
    service_template: ServiceTemplate
    normalized_date: dt.datetime
    address: Address
    user: User
    eligible_vendor: list[EligibleVendor] = Field(default_factory=list)


class ValidationResult(CamelModel):
    """Outcome of validate_booking_request."""
    is_valid: bool
    errors: list[FieldError] = Field(default_factory=list)
    data: Optional[BookingData] = None

    @classmethod
    def failure(cls, errors: list[FieldError]) -> "ValidationResult":
        return cls(is_valid=False, errors=errors, data=None)

    def to_response(self) -> dict[str, Any]:
        """JSON-ready dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


class BookingStatus(str, Enum):
    PENDING = "pending"
    SEARCHING = "searching"
    VENDOR_ASSIGNED = "vendor_assigned"
    ACCEPTED = "accepted"
    CONFIRMED = "confirmed"
    ON_ROUTE = "on_route"
    ARRIVED = "arrived"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Statuses that keep a vendor busy for the booked slot
ACTIVE_BOOKING_STATUSES = frozenset({
    BookingStatus.VENDOR_ASSIGNED,
    BookingStatus.ACCEPTED,
    BookingStatus.CONFIRMED,
    BookingStatus.ON_ROUTE,
    BookingStatus.ARRIVED,
    BookingStatus.IN_PROGRESS,
})


class BookingRecord(CamelModel):
    """An existing booking, as seen by the booking ledger."""
    id: str
    vendor_id: str
    date: dt.date
    time_slot: str
    status: BookingStatus = BookingStatus.PENDING
