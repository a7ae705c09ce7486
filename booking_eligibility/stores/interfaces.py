"""
Read-only collaborators consumed by the eligibility core.

In production these are backed by the marketplace's document database;
the in-memory implementations in this package serve tests, the CLI and
local development.
"""

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional, Protocol

from booking_eligibility.schemas.catalog_schema import Address, ServiceTemplate
from booking_eligibility.schemas.customer_schema import User
from booking_eligibility.schemas.vendor_schema import OfferingStatus, VendorOffering


@dataclass(frozen=True)
class OfferingQuery:
    """Filter for vendor offerings, plus the predicate their vendor must pass."""
    child_category_id: str
    is_active: bool = True
    is_deleted: bool = False
    status: OfferingStatus = OfferingStatus.APPROVED
    vendor_is_available: bool = True
    vendor_is_blocked: bool = False


class CatalogStore(Protocol):
    async def get_service_template(self, template_id: str) -> Optional[ServiceTemplate]: ...

    async def get_address(self, address_id: str) -> Optional[Address]: ...


class VendorDirectory(Protocol):
    async def find_offerings(self, query: OfferingQuery) -> list[VendorOffering]:
        """Offerings matching ``query`` with ``vendor`` joined.

        ``vendor`` is None on offerings whose vendor fails the join predicate.
        """
        ...


class UserStore(Protocol):
    async def get_user(self, user_id: str) -> Optional[User]: ...


class BookingLedger(Protocol):
    async def find_booked_vendor_ids(
        self, vendor_ids: Iterable[str], day: date, time_slot: str
    ) -> set[str]: ...
