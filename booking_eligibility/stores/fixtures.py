"""Seed the in-memory stores from a JSON marketplace snapshot."""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from booking_eligibility.schemas.booking_schema import BookingRecord
from booking_eligibility.schemas.catalog_schema import Address, ServiceTemplate
from booking_eligibility.schemas.customer_schema import User
from booking_eligibility.schemas.vendor_schema import Vendor, VendorOffering
from booking_eligibility.stores.bookings import InMemoryBookingLedger
from booking_eligibility.stores.catalog import InMemoryCatalogStore
from booking_eligibility.stores.users import InMemoryUserStore
from booking_eligibility.stores.vendors import InMemoryVendorDirectory

logger = logging.getLogger(__name__)


@dataclass
class MarketplaceStores:
    """The full set of collaborators the validator needs."""
    catalog: InMemoryCatalogStore = field(default_factory=InMemoryCatalogStore)
    directory: InMemoryVendorDirectory = field(default_factory=InMemoryVendorDirectory)
    users: InMemoryUserStore = field(default_factory=InMemoryUserStore)
    ledger: InMemoryBookingLedger = field(default_factory=InMemoryBookingLedger)


def build_stores(data: dict[str, Any]) -> MarketplaceStores:
    """Build stores from a dict with camelCase collection keys.

    Recognised keys: ``serviceTemplates``, ``addresses``, ``users``,
    ``vendors``, ``offerings``, ``bookings``. Missing keys mean empty
    collections.
    """
    stores = MarketplaceStores(
        catalog=InMemoryCatalogStore(
            templates=[ServiceTemplate.model_validate(t) for t in data.get("serviceTemplates", [])],
            addresses=[Address.model_validate(a) for a in data.get("addresses", [])],
        ),
        directory=InMemoryVendorDirectory(
            vendors=[Vendor.model_validate(v) for v in data.get("vendors", [])],
            offerings=[VendorOffering.model_validate(o) for o in data.get("offerings", [])],
        ),
        users=InMemoryUserStore(users=[User.model_validate(u) for u in data.get("users", [])]),
        ledger=InMemoryBookingLedger(
            bookings=[BookingRecord.model_validate(b) for b in data.get("bookings", [])]
        ),
    )
    return stores


def load_marketplace(path: Path) -> MarketplaceStores:
    """Load a marketplace snapshot from a JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    stores = build_stores(data)
    logger.info(
        "Loaded marketplace snapshot %s (%d template(s), %d vendor(s), %d offering(s))",
        path.name,
        len(data.get("serviceTemplates", [])),
        len(data.get("vendors", [])),
        len(data.get("offerings", [])),
    )
    return stores
