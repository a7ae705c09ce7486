"""Shared utilities used across the booking eligibility core."""

from datetime import date, datetime
from typing import Any

from bson import ObjectId

WEEKDAY_NAMES = (
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday",
)


def is_valid_object_id(value: Any) -> bool:
    """Check whether a value can be used as a document-store id.

    Examples:
        >>> is_valid_object_id("65f1c0ffee0000000000abcd")
        True
        >>> is_valid_object_id("not-an-id")
        False
    """
    return isinstance(value, (str, ObjectId)) and ObjectId.is_valid(value)


def start_of_day(value: date) -> datetime:
    """Return midnight of the given calendar day as a naive datetime."""
    return datetime(value.year, value.month, value.day)


def weekday_name(value: date) -> str:
    """Lower-case English weekday name, e.g. ``"friday"``."""
    return WEEKDAY_NAMES[value.weekday()]


def is_number(value: Any) -> bool:
    """True for ints and floats, False for bools and everything else."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)
