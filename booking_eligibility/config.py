"""
Centralized configuration with environment variable overrides.

Booking windows, verification rules, geo and ranking settings, and the
fail-open switches of the eligibility pipeline all live here. Nothing is
hardcoded in validator or resolver logic.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from booking_eligibility.logging_context import install_request_id_filter

load_dotenv()

logger = logging.getLogger(__name__)

RANKING_MODES = ("distance", "priority")

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


def _safe_bool(env_var: str, default: str) -> bool:
    """Parse a boolean flag such as ``true``/``0``/``yes`` from an env var."""
    raw = os.getenv(env_var, default).strip().lower()
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean for {env_var}: {raw!r}")


@dataclass(frozen=True)
class BookingWindowConfig:
    """How far ahead bookings may be made and who may make them."""

    max_advance_months: int = _safe_int("MAX_ADVANCE_MONTHS", "1")
    require_email_verified: bool = _safe_bool("REQUIRE_EMAIL_VERIFIED", "false")
    require_active_user: bool = _safe_bool("REQUIRE_ACTIVE_USER", "false")
    require_unblocked_user: bool = _safe_bool("REQUIRE_UNBLOCKED_USER", "false")


@dataclass(frozen=True)
class GeoConfig:
    """Distance model and the geo stage's failure policy."""

    earth_radius_km: float = _safe_float("EARTH_RADIUS_KM", "6371.0")
    fail_open: bool = _safe_bool("GEO_FAIL_OPEN", "true")


@dataclass(frozen=True)
class AvailabilityConfig:
    """Schedule-matching behaviour of the availability stage."""

    working_hours_fail_open: bool = _safe_bool("WORKING_HOURS_FAIL_OPEN", "true")
    exclude_booked_vendors: bool = _safe_bool("EXCLUDE_BOOKED_VENDORS", "true")


@dataclass(frozen=True)
class RankingConfig:
    """Ordering applied to the eligible vendor list."""

    mode: str = os.getenv("RANKING_MODE", "distance")
    max_distance_km: float = _safe_float("PRIORITY_MAX_DISTANCE_KM", "15.0")
    default_response_sec: float = _safe_float("PRIORITY_DEFAULT_RESPONSE_SEC", "300")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    booking: BookingWindowConfig = field(default_factory=BookingWindowConfig)
    geo: GeoConfig = field(default_factory=GeoConfig)
    availability: AvailabilityConfig = field(default_factory=AvailabilityConfig)
    ranking: RankingConfig = field(default_factory=RankingConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    service_name: str = os.getenv("SERVICE_NAME", "booking-eligibility")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if config.booking.max_advance_months < 0:
        raise ValueError(
            f"MAX_ADVANCE_MONTHS must be >= 0, got {config.booking.max_advance_months}"
        )
    if config.geo.earth_radius_km <= 0:
        raise ValueError(
            f"EARTH_RADIUS_KM must be > 0, got {config.geo.earth_radius_km}"
        )
    if config.ranking.mode not in RANKING_MODES:
        raise ValueError(
            f"RANKING_MODE must be one of {', '.join(RANKING_MODES)}, "
            f"got {config.ranking.mode!r}"
        )
    if config.ranking.max_distance_km <= 0:
        raise ValueError(
            "PRIORITY_MAX_DISTANCE_KM must be > 0, "
            f"got {config.ranking.max_distance_km}"
        )
    if config.ranking.default_response_sec <= 0:
        raise ValueError(
            "PRIORITY_DEFAULT_RESPONSE_SEC must be > 0, "
            f"got {config.ranking.default_response_sec}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s [%(request_id)s]: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    install_request_id_filter()
    logger.info("Configuration loaded for '%s'", config.service_name)
    return config


# Singleton instance
settings = load_config()
