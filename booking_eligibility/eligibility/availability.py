"""
Availability resolution for a requested service, day and time slot.

Starts from the approved, active offerings in the template's child
category whose vendor is available and unblocked, then applies each
offering's own schedule in order:

1. the offering's availability master switch
2. the weekday entry of its working hours (switch, then time window)
3. its holiday list
4. existing bookings for the same slot, when a booking ledger is wired in
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from booking_eligibility.config import settings
from booking_eligibility.eligibility.time_windows import is_time_within_window
from booking_eligibility.schemas.catalog_schema import ServiceTemplate
from booking_eligibility.schemas.vendor_schema import VendorOffering
from booking_eligibility.stores.interfaces import BookingLedger, OfferingQuery, VendorDirectory
from booking_eligibility.utils import weekday_name

logger = logging.getLogger(__name__)


@dataclass
class AvailabilityResult:
    """Outcome of the availability stage."""
    success: bool
    available_vendor_services: list[VendorOffering] = field(default_factory=list)


class AvailabilityResolver:
    """Filters vendor offerings down to those that can take the requested slot."""

    def __init__(
        self,
        directory: VendorDirectory,
        ledger: Optional[BookingLedger] = None,
        exclude_booked_vendors: Optional[bool] = None,
    ) -> None:
        self.directory = directory
        self.ledger = ledger
        self.exclude_booked_vendors = (
            settings.availability.exclude_booked_vendors
            if exclude_booked_vendors is None
            else exclude_booked_vendors
        )

    async def resolve(
        self, template: ServiceTemplate, normalized_date: datetime, time_slot: str
    ) -> AvailabilityResult:
        """Return the offerings available on ``normalized_date`` for ``time_slot``.

        Directory failures are logged and reported as no availability.
        """
        try:
            day = weekday_name(normalized_date)
            offerings = await self.directory.find_offerings(
                OfferingQuery(child_category_id=template.sub_category_id)
            )

            available = [
                o for o in offerings
                if o.vendor is not None and self.is_offering_available(o, normalized_date, day, time_slot)
            ]

            if available and self.ledger is not None and self.exclude_booked_vendors:
                available = await self._drop_booked(self.ledger, available, normalized_date, time_slot)

            logger.debug(
                "Availability for template %s on %s (%s) %s: %d of %d offering(s)",
                template.id, normalized_date.date(), day, time_slot, len(available), len(offerings),
            )
            return AvailabilityResult(success=len(available) > 0, available_vendor_services=available)
        except Exception as e:
            logger.error(
                "Error checking vendor availability for template %s: %s", template.id, e,
                exc_info=True,
            )
            return AvailabilityResult(success=False)

    def is_offering_available(
        self, offering: VendorOffering, normalized_date: datetime, day: str, time_slot: str
    ) -> bool:
        """Apply the offering's own schedule, stopping at the first failing check."""
        availability = offering.availability
        if not availability.is_available:
            return False

        schedule = availability.working_hours.get(day)
        if schedule is not None:
            if not schedule.is_available:
                return False
            if schedule.start and schedule.end:
                if not is_time_within_window(time_slot, schedule.start, schedule.end):
                    return False

        requested_day = normalized_date.date()
        if any(holiday.date == requested_day for holiday in availability.holidays):
            return False

        return True

    async def _drop_booked(
        self,
        ledger: BookingLedger,
        offerings: list[VendorOffering],
        normalized_date: datetime,
        time_slot: str,
    ) -> list[VendorOffering]:
        booked = await ledger.find_booked_vendor_ids(
            {o.vendor_id for o in offerings}, normalized_date.date(), time_slot
        )
        if not booked:
            return offerings
        logger.info("Excluding %d already-booked vendor(s) for %s", len(booked), time_slot)
        return [o for o in offerings if o.vendor_id not in booked]
