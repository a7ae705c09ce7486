"""
Booking request validation.

Each of the five request facets (service, date, time slot, address,
user) is validated independently and every facet is always evaluated, so
the caller gets the complete error report in one round trip. Only when
all facets pass are the business rules (availability, lead time, service
area) consulted.

Usage:
    validator = BookingRequestValidator.from_stores(stores)
    result = await validator.validate_booking_request(
        service_id, "2025-03-14", "10:00 AM - 12:00 PM", address_id, user_id
    )
    if result.is_valid:
        vendors = result.data.eligible_vendor
"""

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Awaitable, Callable, Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta
from pydantic import ValidationError

from booking_eligibility.clock import Clock, SystemClock
from booking_eligibility.config import BookingWindowConfig, settings
from booking_eligibility.eligibility.availability import AvailabilityResolver
from booking_eligibility.eligibility.rules import BusinessRuleAggregator
from booking_eligibility.eligibility.time_windows import (
    TIME_SLOT_PATTERN,
    parse_time_to_minutes,
    split_time_slot,
)
from booking_eligibility.logging_context import request_scope
from booking_eligibility.schemas.booking_schema import (
    BookingData,
    ErrorCode,
    FieldError,
    ServiceRequest,
    TimeSlotRange,
    ValidationResult,
    system_error,
)
from booking_eligibility.schemas.catalog_schema import Address
from booking_eligibility.stores.fixtures import MarketplaceStores
from booking_eligibility.stores.interfaces import CatalogStore, UserStore
from booking_eligibility.utils import is_number, is_valid_object_id, start_of_day

logger = logging.getLogger(__name__)

TIME_SLOT_FORMAT_MESSAGE = (
    'Invalid time slot format. Use "hh:mm AM/PM - hh:mm AM/PM" (e.g., "10:00 AM - 12:00 PM")'
)
REQUIRED_ADDRESS_FIELDS = ("location", "formattedAddress")


@dataclass
class FacetResult:
    """Outcome of validating one request facet."""
    errors: list[FieldError] = field(default_factory=list)
    data: Any = None

    @property
    def is_valid(self) -> bool:
        return not self.errors


def _fail(field_name: str, message: str, code: ErrorCode) -> FacetResult:
    return FacetResult(errors=[FieldError(field=field_name, message=message, code=code)])


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _coordinates_error(location: Any) -> Optional[str]:
    """Describe what is wrong with a ``[lng, lat]`` location, or None if it is valid."""
    coordinates = location.get("coordinates") if isinstance(location, Mapping) else None
    if not isinstance(coordinates, (list, tuple)) or len(coordinates) != 2:
        return "Valid location coordinates [longitude, latitude] required"
    lng, lat = coordinates
    if not (is_number(lng) and is_number(lat)) or not (-90 <= lat <= 90 and -180 <= lng <= 180):
        return "Invalid coordinates. Latitude: -90 to 90, Longitude: -180 to 180"
    return None


def _merge_errors(facets: list[FacetResult]) -> list[FieldError]:
    """Concatenate facet errors, reporting at most one generic system error."""
    errors: list[FieldError] = []
    seen_system_error = False
    for facet in facets:
        for error in facet.errors:
            if error.code == ErrorCode.SYSTEM_ERROR and error.field == "general":
                if seen_system_error:
                    continue
                seen_system_error = True
            errors.append(error)
    return errors


class BookingRequestValidator:
    """Validates booking requests against the catalog, users and vendor supply."""

    def __init__(
        self,
        catalog: CatalogStore,
        users: UserStore,
        aggregator: BusinessRuleAggregator,
        clock: Optional[Clock] = None,
        config: Optional[BookingWindowConfig] = None,
    ) -> None:
        self.catalog = catalog
        self.users = users
        self.aggregator = aggregator
        self.clock = clock or SystemClock()
        self.config = config or settings.booking

    @classmethod
    def from_stores(
        cls, stores: MarketplaceStores, clock: Optional[Clock] = None
    ) -> "BookingRequestValidator":
        """Wire the full pipeline on top of a set of stores."""
        clock = clock or SystemClock()
        resolver = AvailabilityResolver(stores.directory, ledger=stores.ledger)
        aggregator = BusinessRuleAggregator(resolver, clock=clock)
        return cls(stores.catalog, stores.users, aggregator, clock=clock)

    # ------------------------------------------------------------------ #
    # Entry points
    # ------------------------------------------------------------------ #

    async def validate(self, request: ServiceRequest) -> ValidationResult:
        return await self.validate_booking_request(
            request.service_id, request.date, request.time_slot, request.address, request.user_id
        )

    async def validate_booking_request(
        self,
        service_id: Any,
        date: Any,
        time_slot: Any,
        address: Any,
        user_id: Any,
    ) -> ValidationResult:
        """Validate every facet, then the business rules. Never raises.

        Runs under the caller's request ID when one is active, a fresh one
        otherwise.
        """
        with request_scope() as request_id:
            logger.debug("Validating booking request %s for service %r", request_id, service_id)
            return await self._validate_all(service_id, date, time_slot, address, user_id)

    async def _validate_all(
        self, service_id: Any, date: Any, time_slot: Any, address: Any, user_id: Any
    ) -> ValidationResult:
        try:
            service, addr, user = await asyncio.gather(
                self._guard("service", self.validate_service(service_id)),
                self._guard("address", self.validate_address(address)),
                self._guard("user", self.validate_user(user_id)),
            )
            normalized = self._guard_sync("date", self.validate_date, date)
            slot = self._guard_sync("timeSlot", self.validate_time_slot, time_slot)

            errors = _merge_errors([service, normalized, slot, addr, user])
            if errors:
                logger.info("Booking request rejected with %d facet error(s)", len(errors))
                return ValidationResult.failure(errors)

            verdict = await self.aggregator.evaluate(service.data, normalized.data, time_slot, addr.data)
            if not verdict.is_valid:
                logger.info("Booking request failed business rules: %s", [e.code.value for e in verdict.errors])
                return ValidationResult.failure(verdict.errors)

            return ValidationResult(
                is_valid=True,
                data=BookingData(
                    service_template=service.data,
                    normalized_date=normalized.data,
                    address=addr.data,
                    user=user.data,
                    eligible_vendor=verdict.eligible_vendor,
                ),
            )
        except Exception as e:
            logger.error("Booking validation error: %s", e, exc_info=True)
            return ValidationResult.failure([system_error()])

    async def _guard(self, facet: str, pending: Awaitable[FacetResult]) -> FacetResult:
        try:
            return await pending
        except Exception as e:
            logger.error("%s validation error: %s", facet, e, exc_info=True)
            return FacetResult(errors=[system_error()])

    def _guard_sync(self, facet: str, check: Callable[[Any], FacetResult], value: Any) -> FacetResult:
        try:
            return check(value)
        except Exception as e:
            logger.error("%s validation error: %s", facet, e, exc_info=True)
            return FacetResult(errors=[system_error()])

    # ------------------------------------------------------------------ #
    # Facets
    # ------------------------------------------------------------------ #

    async def validate_service(self, service_id: Any) -> FacetResult:
        if _is_blank(service_id):
            return _fail("serviceId", "Service ID is required", ErrorCode.REQUIRED)
        if not is_valid_object_id(service_id):
            return _fail("serviceId", "Invalid service ID format", ErrorCode.INVALID_FORMAT)

        template = await self.catalog.get_service_template(str(service_id))
        if template is None:
            return _fail("serviceId", "Service not found", ErrorCode.NOT_FOUND)
        if not template.is_active:
            return _fail("serviceId", "Service is currently not available", ErrorCode.NOT_FOUND)
        if template.is_deleted:
            return _fail("serviceId", "Service has been removed", ErrorCode.NOT_FOUND)
        return FacetResult(data=template)

    def validate_date(self, value: Any) -> FacetResult:
        """Accept a date, datetime or date string; return midnight of that day."""
        if _is_blank(value):
            return _fail("date", "Date is required", ErrorCode.REQUIRED)

        today = self.clock.now().date()
        if isinstance(value, datetime):
            day = value.date()
        elif isinstance(value, date):
            day = value
        elif isinstance(value, str):
            try:
                day = date_parser.parse(value.strip(), default=start_of_day(today)).date()
            except (ValueError, OverflowError):
                return _fail("date", "Invalid date provided", ErrorCode.INVALID_FORMAT)
        else:
            return _fail("date", "Invalid date format", ErrorCode.INVALID_FORMAT)

        if day < today:
            return _fail("date", "Cannot book services for past dates", ErrorCode.PAST_DATE)

        months = self.config.max_advance_months
        if day > today + relativedelta(months=months):
            unit = "month" if months == 1 else "months"
            return _fail(
                "date", f"Cannot book more than {months} {unit} in advance", ErrorCode.TOO_FAR_AHEAD
            )

        return FacetResult(data=start_of_day(day))

    def validate_time_slot(self, value: Any) -> FacetResult:
        if _is_blank(value):
            return _fail("timeSlot", "Time slot is required", ErrorCode.REQUIRED)
        if not isinstance(value, str) or not TIME_SLOT_PATTERN.match(value):
            return _fail("timeSlot", TIME_SLOT_FORMAT_MESSAGE, ErrorCode.INVALID_FORMAT)

        start, end = split_time_slot(value)
        if parse_time_to_minutes(start) >= parse_time_to_minutes(end):
            return _fail(
                "timeSlot", "Start time must be earlier than end time", ErrorCode.INVALID_RANGE
            )
        return FacetResult(data=TimeSlotRange(start=start, end=end))

    async def validate_address(self, value: Any) -> FacetResult:
        """Resolve a saved-address id or check an inline address object."""
        if _is_blank(value):
            return _fail("address", "Address is required", ErrorCode.REQUIRED)

        if isinstance(value, str):
            stored = await self.catalog.get_address(value)
            if stored is None:
                return _fail("address", "Address not found", ErrorCode.NOT_FOUND)
            problem = _coordinates_error(
                stored.location.model_dump() if stored.location is not None else None
            )
            if problem:
                return _fail("address.location", problem, ErrorCode.INVALID_COORDINATES)
            return FacetResult(data=stored)

        if isinstance(value, Address):
            value = value.model_dump(by_alias=True)

        if not isinstance(value, Mapping):
            return _fail("address", "Invalid address format", ErrorCode.INVALID_FORMAT)

        missing = [name for name in REQUIRED_ADDRESS_FIELDS if not self._address_field(value, name)]
        if missing:
            return FacetResult(errors=[
                FieldError(
                    field=f"address.{name}",
                    message=f"{name} is required in address",
                    code=ErrorCode.REQUIRED,
                )
                for name in missing
            ])

        problem = _coordinates_error(value["location"])
        if problem:
            return _fail("address.location", problem, ErrorCode.INVALID_COORDINATES)

        try:
            return FacetResult(data=Address.model_validate(dict(value)))
        except ValidationError as e:
            logger.debug("Inline address rejected: %s", e)
            return _fail("address", "Invalid address format", ErrorCode.INVALID_FORMAT)

    @staticmethod
    def _address_field(value: Mapping, name: str) -> Any:
        if name == "formattedAddress":
            return value.get("formattedAddress") or value.get("formatted_address")
        return value.get(name)

    async def validate_user(self, user_id: Any) -> FacetResult:
        if _is_blank(user_id):
            return _fail("userId", "User ID is required", ErrorCode.REQUIRED)

        user = await self.users.get_user(str(user_id))
        if user is None:
            return _fail("userId", "User not found", ErrorCode.NOT_FOUND)

        unmet: list[tuple[str, str]] = []
        if self.config.require_active_user and not user.is_active:
            unmet.append(("userId", "User account is inactive"))
        if self.config.require_unblocked_user and user.is_blocked:
            unmet.append(("userId", "User account is blocked"))
        if self.config.require_email_verified and not user.is_email_verified:
            unmet.append(("user.email", "Email verification required before booking"))
        if not user.is_mobile_verified:
            unmet.append(("user.mobile", "Mobile verification required before booking"))

        if unmet:
            return FacetResult(errors=[
                FieldError(field=name, message=message, code=ErrorCode.VERIFICATION_REQUIRED)
                for name, message in unmet
            ])
        return FacetResult(data=user)
