"""
In-memory booking ledger.

Read-only view over existing bookings, used to skip vendors that already
hold an active booking for the requested day and slot. In production this
is a distinct-vendor query on the Booking collection.
"""

import logging
from datetime import date
from typing import Iterable

from booking_eligibility.schemas.booking_schema import ACTIVE_BOOKING_STATUSES, BookingRecord

logger = logging.getLogger(__name__)


class InMemoryBookingLedger:
    def __init__(self, bookings: Iterable[BookingRecord] = ()) -> None:
        self._bookings: dict[str, BookingRecord] = {b.id: b for b in bookings}

    def add_booking(self, booking: BookingRecord) -> None:
        self._bookings[booking.id] = booking

    async def find_booked_vendor_ids(
        self, vendor_ids: Iterable[str], day: date, time_slot: str
    ) -> set[str]:
        wanted = set(vendor_ids)
        booked = {
            b.vendor_id
            for b in self._bookings.values()
            if b.vendor_id in wanted
            and b.date == day
            and b.time_slot == time_slot
            and b.status in ACTIVE_BOOKING_STATUSES
        }
        if booked:
            logger.debug("Vendors already booked on %s %s: %s", day, time_slot, sorted(booked))
        return booked
