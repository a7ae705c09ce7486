"""Ordering of eligible vendors before they are offered the booking."""

import logging
from typing import Optional

from booking_eligibility.config import RankingConfig, settings
from booking_eligibility.schemas.booking_schema import EligibleVendor

logger = logging.getLogger(__name__)

# Score weights; rating is on a 0-5 scale
DISTANCE_WEIGHT = 30
RATING_WEIGHT = 20
MAX_EXPERIENCE_SCORE = 30
BOOKINGS_MULTIPLIER = 2
RESPONSE_WEIGHT = 20


def calculate_priority_score(vendor: EligibleVendor, config: Optional[RankingConfig] = None) -> int:
    """Blend proximity, rating, experience and responsiveness into one score."""
    config = config or settings.ranking
    max_distance = config.max_distance_km
    default_response = config.default_response_sec

    distance_score = max(0.0, (max_distance - vendor.distance) / max_distance) * DISTANCE_WEIGHT
    rating_score = vendor.rating * RATING_WEIGHT
    experience_score = min(vendor.total_bookings * BOOKINGS_MULTIPLIER, MAX_EXPERIENCE_SCORE)
    response_time = vendor.response_time or default_response
    response_score = max(0.0, (default_response - response_time) / default_response) * RESPONSE_WEIGHT

    return round(distance_score + rating_score + experience_score + response_score)


def rank_vendors(
    vendors: list[EligibleVendor], config: Optional[RankingConfig] = None
) -> list[EligibleVendor]:
    """Return a new list ordered by the configured ranking mode.

    ``distance``: nearest first. ``priority``: highest score first, nearest
    first among equal scores; every entry gets its ``priority_score`` set.
    """
    config = config or settings.ranking
    if config.mode == "priority":
        scored = [
            v.model_copy(update={"priority_score": calculate_priority_score(v, config)})
            for v in vendors
        ]
        return sorted(scored, key=lambda v: (-(v.priority_score or 0), v.distance, v.vendor_id))
    return sorted(vendors, key=lambda v: (v.distance, v.vendor_id))
