"""
In-memory catalog store: service templates and saved addresses.

In production this reads the ServiceTemplate and Address collections of
the marketplace database.
"""

import logging
from typing import Iterable, Optional

from booking_eligibility.schemas.catalog_schema import Address, ServiceTemplate

logger = logging.getLogger(__name__)


class InMemoryCatalogStore:
    """Catalog lookups keyed by document id."""

    def __init__(
        self,
        templates: Iterable[ServiceTemplate] = (),
        addresses: Iterable[Address] = (),
    ) -> None:
        self._templates: dict[str, ServiceTemplate] = {}
        self._addresses: dict[str, Address] = {}
        for template in templates:
            self.add_service_template(template)
        for address in addresses:
            self.add_address(address)

    def add_service_template(self, template: ServiceTemplate) -> None:
        self._templates[template.id] = template

    def add_address(self, address: Address) -> None:
        if not address.id:
            raise ValueError("Stored addresses need an id")
        self._addresses[address.id] = address

    async def get_service_template(self, template_id: str) -> Optional[ServiceTemplate]:
        """Return the template regardless of lifecycle flags; callers check them."""
        return self._templates.get(template_id)

    async def get_address(self, address_id: str) -> Optional[Address]:
        address = self._addresses.get(address_id)
        if address is None:
            logger.debug("Address %s not found", address_id)
        return address
