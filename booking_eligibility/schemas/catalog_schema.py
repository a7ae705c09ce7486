"""Catalog data models: service templates and addresses."""

from typing import Optional

from pydantic import Field

from booking_eligibility.schemas.base_schema import CamelModel


class Location(CamelModel):
    """GeoJSON point. Coordinates are stored as ``[longitude, latitude]``."""
    type: str = "Point"
    coordinates: list[float] = Field(default_factory=list)

    @property
    def longitude(self) -> float:
        return self.coordinates[0]

    @property
    def latitude(self) -> float:
        return self.coordinates[1]


class Address(CamelModel):
    """Stored or customer-supplied address."""
    id: Optional[str] = None
    formatted_address: str = ""
    location: Optional[Location] = None


class ServiceTemplate(CamelModel):
    """Catalog entry a booking references."""
    id: str
    title: str = ""
    category_id: Optional[str] = None
    sub_category_id: str
    min_advance_booking: Optional[float] = None
    is_active: bool = True
    is_deleted: bool = False
