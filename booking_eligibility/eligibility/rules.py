"""
Business-rule aggregation for an already-validated booking request.

Runs availability, then the lead-time rule, then the service-radius check
(only when availability produced candidates), and folds their outcomes
into one verdict with the ranked list of eligible vendors.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from booking_eligibility.clock import Clock, SystemClock
from booking_eligibility.config import RankingConfig
from booking_eligibility.eligibility.availability import AvailabilityResolver
from booking_eligibility.eligibility.geo import GeoEligibilityFilter
from booking_eligibility.eligibility.ranking import rank_vendors
from booking_eligibility.eligibility.time_windows import parse_time_to_minutes, slot_start
from booking_eligibility.schemas.booking_schema import EligibleVendor, ErrorCode, FieldError
from booking_eligibility.schemas.catalog_schema import Address, ServiceTemplate

logger = logging.getLogger(__name__)

NO_VENDORS_MESSAGE = "No vendors are available for this service at the selected time"
OUT_OF_AREA_MESSAGE = "Service is not available in your area"
RULES_FAILED_MESSAGE = "Business rules validation failed"


@dataclass
class RuleVerdict:
    """Combined outcome of availability, lead time and service area."""
    is_valid: bool
    errors: list[FieldError] = field(default_factory=list)
    eligible_vendor: list[EligibleVendor] = field(default_factory=list)


def requested_start(normalized_date: datetime, time_slot: str) -> datetime:
    """Date plus the slot's start time, e.g. 2025-03-14 + "10:00 AM" -> 10:00."""
    minutes = parse_time_to_minutes(slot_start(time_slot))
    return normalized_date + timedelta(minutes=minutes)


class BusinessRuleAggregator:
    def __init__(
        self,
        resolver: AvailabilityResolver,
        geo_filter: Optional[GeoEligibilityFilter] = None,
        clock: Optional[Clock] = None,
        ranking: Optional[RankingConfig] = None,
    ) -> None:
        self.resolver = resolver
        self.geo_filter = geo_filter or GeoEligibilityFilter()
        self.clock = clock or SystemClock()
        self.ranking = ranking

    async def evaluate(
        self,
        template: ServiceTemplate,
        normalized_date: datetime,
        time_slot: str,
        address: Address,
    ) -> RuleVerdict:
        errors: list[FieldError] = []
        try:
            availability = await self.resolver.resolve(template, normalized_date, time_slot)
            if not availability.success:
                errors.append(FieldError(
                    field="timeSlot",
                    message=NO_VENDORS_MESSAGE,
                    code=ErrorCode.NO_VENDORS_AVAILABLE,
                ))

            lead_time_error = self._check_lead_time(template, normalized_date, time_slot)
            if lead_time_error is not None:
                errors.append(lead_time_error)

            eligible: list[EligibleVendor] = []
            if availability.available_vendor_services:
                location = address.location
                geo = self.geo_filter.filter(
                    availability.available_vendor_services,
                    location.latitude,
                    location.longitude,
                )
                if not geo.is_eligible:
                    errors.append(FieldError(
                        field="address",
                        message=OUT_OF_AREA_MESSAGE,
                        code=ErrorCode.OUT_OF_SERVICE_AREA,
                    ))
                eligible = rank_vendors(geo.eligibility_result, self.ranking)

            logger.info(
                "Business rules for template %s: %d error(s), %d eligible vendor(s)",
                template.id, len(errors), len(eligible),
            )
            return RuleVerdict(is_valid=not errors, errors=errors, eligible_vendor=eligible)
        except Exception as e:
            logger.error("Business rules validation error: %s", e, exc_info=True)
            return RuleVerdict(
                is_valid=False,
                errors=[FieldError(
                    field="general", message=RULES_FAILED_MESSAGE, code=ErrorCode.SYSTEM_ERROR
                )],
            )

    def _check_lead_time(
        self, template: ServiceTemplate, normalized_date: datetime, time_slot: str
    ) -> Optional[FieldError]:
        if not template.min_advance_booking:
            return None
        earliest = self.clock.now() + timedelta(hours=template.min_advance_booking)
        if requested_start(normalized_date, time_slot) < earliest:
            hours = template.min_advance_booking
            return FieldError(
                field="timeSlot",
                message=f"This service requires at least {hours:g} hours advance booking",
                code=ErrorCode.LEAD_TIME_VIOLATION,
            )
        return None
