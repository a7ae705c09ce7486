"""
Time-of-day parsing and working-hours containment.

Booking slots arrive as ``"hh:mm AM/PM - hh:mm AM/PM"`` while vendor
schedules may use either 12-hour (``"09:00 AM"``) or 24-hour (``"09:00"``)
strings. Everything is reduced to minutes since midnight.
"""

import logging
import re
from typing import Optional

from booking_eligibility.config import settings

logger = logging.getLogger(__name__)

TIME_SLOT_PATTERN = re.compile(
    r"^(0?[1-9]|1[0-2]):[0-5][0-9]\s?(AM|PM)\s-\s(0?[1-9]|1[0-2]):[0-5][0-9]\s?(AM|PM)\Z",
    re.IGNORECASE,
)

_TWELVE_HOUR = re.compile(r"^(\d{1,2}):(\d{2})\s*(AM|PM)$", re.IGNORECASE)
_TWENTY_FOUR_HOUR = re.compile(r"^(\d{1,2}):(\d{2})$")

_SLOT_SEPARATOR = re.compile(r"\s-\s")


class InvalidTimeError(ValueError):
    """Raised when a time-of-day string cannot be parsed."""


def parse_time_to_minutes(value: str) -> int:
    """Convert ``"10:30 AM"``, ``"12:00 pm"`` or ``"18:45"`` to minutes since midnight.

    Raises:
        InvalidTimeError: if the string is not a valid 12- or 24-hour time.
    """
    if not isinstance(value, str):
        raise InvalidTimeError(f"Expected a time string, got {type(value).__name__}")
    text = value.strip()

    match = _TWELVE_HOUR.match(text)
    if match:
        hours, minutes, modifier = int(match.group(1)), int(match.group(2)), match.group(3).lower()
        if not 1 <= hours <= 12 or minutes > 59:
            raise InvalidTimeError(f"Invalid 12-hour time: {value!r}")
        if modifier == "pm" and hours != 12:
            hours += 12
        if modifier == "am" and hours == 12:
            hours = 0
        return hours * 60 + minutes

    match = _TWENTY_FOUR_HOUR.match(text)
    if match:
        hours, minutes = int(match.group(1)), int(match.group(2))
        if hours > 23 or minutes > 59:
            raise InvalidTimeError(f"Invalid 24-hour time: {value!r}")
        return hours * 60 + minutes

    raise InvalidTimeError(f"Unrecognised time format: {value!r}")


def split_time_slot(time_slot: str) -> tuple[str, str]:
    """Split ``"10:00 AM - 12:00 PM"`` into its start and end strings.

    Raises:
        InvalidTimeError: if the slot does not match TIME_SLOT_PATTERN.
    """
    if not isinstance(time_slot, str) or not TIME_SLOT_PATTERN.match(time_slot):
        raise InvalidTimeError(f"Invalid time slot: {time_slot!r}")
    start, end = _SLOT_SEPARATOR.split(time_slot, maxsplit=1)
    return start, end


def slot_start(time_slot: str) -> str:
    """The representative time of a slot: its start for a range, itself otherwise."""
    return _SLOT_SEPARATOR.split(time_slot, maxsplit=1)[0].strip()


def is_time_within_window(
    time_slot: str,
    start: str,
    end: str,
    fail_open: Optional[bool] = None,
) -> bool:
    """Check that the slot's start lies in ``[start, end]``, both ends inclusive.

    Only the slot start is compared against the window. Unparseable input
    returns ``fail_open`` (default from config) and logs a warning.
    """
    if fail_open is None:
        fail_open = settings.availability.working_hours_fail_open
    try:
        slot_minutes = parse_time_to_minutes(slot_start(time_slot))
        start_minutes = parse_time_to_minutes(start)
        end_minutes = parse_time_to_minutes(end)
    except InvalidTimeError as e:
        logger.warning(
            "Error checking working hours (slot=%r, start=%r, end=%r): %s",
            time_slot, start, end, e,
        )
        return fail_open
    return start_minutes <= slot_minutes <= end_minutes
