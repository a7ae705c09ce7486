from booking_eligibility.eligibility.availability import AvailabilityResolver, AvailabilityResult
from booking_eligibility.eligibility.geo import GeoEligibility, GeoEligibilityFilter, haversine_km
from booking_eligibility.eligibility.ranking import rank_vendors
from booking_eligibility.eligibility.rules import BusinessRuleAggregator, RuleVerdict
from booking_eligibility.eligibility.time_windows import (
    InvalidTimeError,
    is_time_within_window,
    parse_time_to_minutes,
)
from booking_eligibility.eligibility.validator import BookingRequestValidator, FacetResult

__all__ = [
    "BookingRequestValidator",
    "FacetResult",
    "BusinessRuleAggregator",
    "RuleVerdict",
    "AvailabilityResolver",
    "AvailabilityResult",
    "GeoEligibilityFilter",
    "GeoEligibility",
    "haversine_km",
    "rank_vendors",
    "InvalidTimeError",
    "is_time_within_window",
    "parse_time_to_minutes",
]
