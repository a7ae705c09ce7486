"""
In-memory vendor directory.

Mirrors the document-store query the marketplace runs: offerings are
filtered on their own flags, then joined with their vendor. A vendor that
fails the join predicate leaves ``offering.vendor`` as None rather than
dropping the offering, exactly like a populate-with-match.
"""

import logging
from typing import Iterable

from booking_eligibility.schemas.vendor_schema import Vendor, VendorOffering
from booking_eligibility.stores.interfaces import OfferingQuery

logger = logging.getLogger(__name__)


class InMemoryVendorDirectory:
    """Vendors and their offerings, joined on ``offering.vendor_id``."""

    def __init__(
        self,
        vendors: Iterable[Vendor] = (),
        offerings: Iterable[VendorOffering] = (),
    ) -> None:
        self._vendors: dict[str, Vendor] = {}
        self._offerings: dict[str, VendorOffering] = {}
        self.query_count = 0
        for vendor in vendors:
            self.add_vendor(vendor)
        for offering in offerings:
            self.add_offering(offering)

    def add_vendor(self, vendor: Vendor) -> None:
        self._vendors[vendor.id] = vendor

    def add_offering(self, offering: VendorOffering) -> None:
        self._offerings[offering.id] = offering

    def _offering_matches(self, offering: VendorOffering, query: OfferingQuery) -> bool:
        return (
            offering.child_category_id == query.child_category_id
            and offering.is_active == query.is_active
            and offering.is_deleted == query.is_deleted
            and offering.status == query.status
        )

    def _vendor_matches(self, vendor: Vendor, query: OfferingQuery) -> bool:
        return (
            vendor.is_available == query.vendor_is_available
            and vendor.is_blocked == query.vendor_is_blocked
        )

    async def find_offerings(self, query: OfferingQuery) -> list[VendorOffering]:
        self.query_count += 1
        results = []
        for offering in self._offerings.values():
            if not self._offering_matches(offering, query):
                continue
            vendor = self._vendors.get(offering.vendor_id)
            joined = vendor if vendor is not None and self._vendor_matches(vendor, query) else None
            results.append(offering.model_copy(update={"vendor": joined}))
        logger.debug(
            "Directory returned %d offering(s) for child category %s",
            len(results),
            query.child_category_id,
        )
        return results
