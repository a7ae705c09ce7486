"""
Great-circle distance and service-radius filtering.

A vendor is geo-eligible when the haversine distance between the
customer and the vendor's registered address is within the vendor's
service radius (inclusive). Vendors without a radius or coordinates are
skipped, never treated as errors.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Optional

from booking_eligibility.config import settings
from booking_eligibility.schemas.booking_schema import EligibleVendor
from booking_eligibility.schemas.vendor_schema import VendorOffering

logger = logging.getLogger(__name__)


def haversine_km(
    lat1: float, lon1: float, lat2: float, lon2: float, radius_km: Optional[float] = None
) -> float:
    """Great-circle distance in km between two WGS84 points on a spherical earth."""
    r = radius_km if radius_km is not None else settings.geo.earth_radius_km
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return r * c


@dataclass
class GeoEligibility:
    """Outcome of the service-radius stage."""
    is_eligible: bool
    eligibility_result: list[EligibleVendor] = field(default_factory=list)


class GeoEligibilityFilter:
    """Keeps the vendors whose service radius covers the customer."""

    def __init__(self, fail_open: Optional[bool] = None) -> None:
        self.fail_open = settings.geo.fail_open if fail_open is None else fail_open

    def filter(
        self, offerings: list[VendorOffering], customer_lat: float, customer_lon: float
    ) -> GeoEligibility:
        """Compute distance to each candidate vendor and keep those in range.

        A vendor with several offerings appears once, at its nearest offering.
        If the computation itself fails, the stage answers ``fail_open`` with an
        empty vendor list.
        """
        try:
            by_vendor: dict[str, EligibleVendor] = {}
            for offering in offerings:
                entry = self._evaluate(offering, customer_lat, customer_lon)
                if entry is None:
                    continue
                current = by_vendor.get(entry.vendor_id)
                if current is None or entry.distance < current.distance:
                    by_vendor[entry.vendor_id] = entry

            eligibility_result = list(by_vendor.values())
            return GeoEligibility(
                is_eligible=len(eligibility_result) > 0,
                eligibility_result=eligibility_result,
            )
        except Exception as e:
            logger.error("Service area coverage check error: %s", e, exc_info=True)
            return GeoEligibility(is_eligible=self.fail_open)

    def _evaluate(
        self, offering: VendorOffering, customer_lat: float, customer_lon: float
    ) -> Optional[EligibleVendor]:
        vendor = offering.vendor
        if vendor is None or not vendor.service_radius:
            return None

        coordinates = vendor.coordinates
        if coordinates is None:
            logger.warning("Vendor %s missing location coordinates", vendor.id)
            return None

        vendor_lat, vendor_lon = coordinates
        distance = haversine_km(customer_lat, customer_lon, vendor_lat, vendor_lon)
        if distance > vendor.service_radius:
            logger.debug(
                "Vendor %s outside service radius (%.3f km > %.3f km)",
                vendor.id, distance, vendor.service_radius,
            )
            return None

        return EligibleVendor(
            vendor_id=vendor.id,
            offering_id=offering.id,
            distance=distance,
            service_radius=vendor.service_radius,
            fcm_token=vendor.fcm_token,
            rating=offering.rating,
            total_bookings=offering.booking_stats.total_bookings,
            response_time=offering.booking_stats.average_response_time,
        )
