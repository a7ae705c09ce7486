"""Shared test fixtures."""

import pytest

from booking_eligibility.clock import FixedClock
from booking_eligibility.eligibility.validator import BookingRequestValidator
from factories import NOW, make_stores


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def stores():
    return make_stores()


@pytest.fixture
def validator(stores, clock):
    return BookingRequestValidator.from_stores(stores, clock=clock)
