"""Customer account data models."""

from booking_eligibility.schemas.base_schema import CamelModel


class User(CamelModel):
    """Minimal user projection needed to decide whether a customer may book."""
    id: str
    first_name: str = ""
    last_name: str = ""
    is_active: bool = True
    is_blocked: bool = False
    is_email_verified: bool = False
    is_mobile_verified: bool = False
