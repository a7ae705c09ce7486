"""Tests for the booking request validator, facet by facet and end to end."""

from datetime import date, datetime

import pytest
from bson import ObjectId

from booking_eligibility.clock import FixedClock
from booking_eligibility.config import BookingWindowConfig
from booking_eligibility.eligibility.validator import BookingRequestValidator
from booking_eligibility.schemas.booking_schema import (
    SYSTEM_ERROR_MESSAGE,
    ErrorCode,
    ServiceRequest,
    TimeSlotRange,
)
from booking_eligibility.schemas.catalog_schema import Location
from booking_eligibility.stores.catalog import InMemoryCatalogStore
from factories import (
    ADDRESS_ID,
    BOOKING_DAY,
    NOW,
    SERVICE_ID,
    SLOT,
    USER_ID,
    inline_address,
    make_address,
    make_availability,
    make_offering,
    make_stores,
    make_template,
    make_user,
    make_vendor,
)

UNKNOWN_SERVICE_ID = "65f1c0ffee0000000000ffff"


def _codes(facet):
    return [e.code for e in facet.errors]


def _validator_for(stores, clock_at=NOW, **config_overrides):
    config = BookingWindowConfig(**{
        "max_advance_months": 1,
        "require_email_verified": False,
        "require_active_user": False,
        "require_unblocked_user": False,
        **config_overrides,
    })
    validator = BookingRequestValidator.from_stores(stores, clock=FixedClock(clock_at))
    validator.config = config
    return validator


# ---------------------------------------------------------------------- #
# Service facet
# ---------------------------------------------------------------------- #


class TestServiceFacet:
    @pytest.mark.asyncio
    async def test_existing_active_template(self, validator):
        facet = await validator.validate_service(SERVICE_ID)
        assert facet.is_valid
        assert facet.data.id == SERVICE_ID

    @pytest.mark.asyncio
    async def test_object_id_instance_accepted(self, validator):
        facet = await validator.validate_service(ObjectId(SERVICE_ID))
        assert facet.is_valid

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", [None, "", "   "])
    async def test_missing(self, validator, value):
        facet = await validator.validate_service(value)
        assert _codes(facet) == [ErrorCode.REQUIRED]
        assert facet.errors[0].field == "serviceId"
        assert facet.errors[0].message == "Service ID is required"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", ["abc", "65f1c0ffee0000000000000", "zzzzzzzzzzzzzzzzzzzzzzzz", 12345])
    async def test_malformed_id(self, validator, value):
        facet = await validator.validate_service(value)
        assert _codes(facet) == [ErrorCode.INVALID_FORMAT]
        assert facet.errors[0].message == "Invalid service ID format"

    @pytest.mark.asyncio
    async def test_unknown_template(self, validator):
        facet = await validator.validate_service(UNKNOWN_SERVICE_ID)
        assert _codes(facet) == [ErrorCode.NOT_FOUND]
        assert facet.errors[0].message == "Service not found"

    @pytest.mark.asyncio
    async def test_inactive_template(self):
        validator = _validator_for(make_stores(templates=[make_template(is_active=False)]))
        facet = await validator.validate_service(SERVICE_ID)
        assert _codes(facet) == [ErrorCode.NOT_FOUND]
        assert facet.errors[0].message == "Service is currently not available"

    @pytest.mark.asyncio
    async def test_deleted_template(self):
        validator = _validator_for(make_stores(templates=[make_template(is_deleted=True)]))
        facet = await validator.validate_service(SERVICE_ID)
        assert facet.errors[0].message == "Service has been removed"


# ---------------------------------------------------------------------- #
# Date facet
# ---------------------------------------------------------------------- #


class TestDateFacet:
    def test_today_is_bookable(self, validator):
        facet = validator.validate_date("2025-03-12")
        assert facet.is_valid
        assert facet.data == datetime(2025, 3, 12)

    def test_normalized_to_midnight(self, validator):
        facet = validator.validate_date("2025-03-14T15:30:00")
        assert facet.data == datetime(2025, 3, 14)

    def test_timezone_suffix_accepted(self, validator):
        facet = validator.validate_date("2025-03-14T10:00:00Z")
        assert facet.data == datetime(2025, 3, 14)

    def test_human_readable_date(self, validator):
        facet = validator.validate_date("March 14, 2025")
        assert facet.data == datetime(2025, 3, 14)

    def test_date_and_datetime_objects(self, validator):
        assert validator.validate_date(date(2025, 3, 14)).data == datetime(2025, 3, 14)
        assert validator.validate_date(datetime(2025, 3, 14, 18, 45)).data == datetime(2025, 3, 14)

    def test_yesterday_rejected(self, validator):
        facet = validator.validate_date("2025-03-11")
        assert _codes(facet) == [ErrorCode.PAST_DATE]
        assert facet.errors[0].message == "Cannot book services for past dates"

    def test_last_bookable_day(self):
        assert _validator_for(make_stores()).validate_date("2025-04-12").is_valid

    def test_day_after_window_rejected(self):
        facet = _validator_for(make_stores()).validate_date("2025-04-13")
        assert _codes(facet) == [ErrorCode.TOO_FAR_AHEAD]
        assert facet.errors[0].message == "Cannot book more than 1 month in advance"

    def test_month_end_is_clamped(self):
        validator = _validator_for(make_stores(), clock_at=datetime(2025, 1, 31, 9, 0))
        assert validator.validate_date("2025-02-28").is_valid
        assert _codes(validator.validate_date("2025-03-01")) == [ErrorCode.TOO_FAR_AHEAD]

    def test_longer_window_message(self):
        validator = _validator_for(make_stores(), max_advance_months=3)
        assert validator.validate_date("2025-06-12").is_valid
        facet = validator.validate_date("2025-06-13")
        assert facet.errors[0].message == "Cannot book more than 3 months in advance"

    @pytest.mark.parametrize("value", [None, "", "  "])
    def test_missing(self, validator, value):
        facet = validator.validate_date(value)
        assert _codes(facet) == [ErrorCode.REQUIRED]
        assert facet.errors[0].field == "date"

    def test_unparseable_string(self, validator):
        facet = validator.validate_date("not a date")
        assert _codes(facet) == [ErrorCode.INVALID_FORMAT]
        assert facet.errors[0].message == "Invalid date provided"

    def test_impossible_calendar_day(self, validator):
        assert _codes(validator.validate_date("2025-02-30")) == [ErrorCode.INVALID_FORMAT]

    def test_wrong_type(self, validator):
        facet = validator.validate_date(20250314)
        assert _codes(facet) == [ErrorCode.INVALID_FORMAT]
        assert facet.errors[0].message == "Invalid date format"


# ---------------------------------------------------------------------- #
# Time slot facet
# ---------------------------------------------------------------------- #


class TestTimeSlotFacet:
    def test_valid_slot(self, validator):
        facet = validator.validate_time_slot(SLOT)
        assert facet.is_valid
        assert facet.data == TimeSlotRange(start="10:00 AM", end="12:00 PM")
        assert str(facet.data) == SLOT

    @pytest.mark.parametrize("slot", ["9:00 am - 11:30 am", "12:00 AM - 12:30 AM", "11:30 AM - 12:15 PM"])
    def test_accepted_variants(self, validator, slot):
        assert validator.validate_time_slot(slot).is_valid

    @pytest.mark.parametrize("slot", ["12:00 PM - 10:00 AM", "10:00 AM - 10:00 AM", "12:30 AM - 12:00 AM"])
    def test_start_not_before_end(self, validator, slot):
        facet = validator.validate_time_slot(slot)
        assert _codes(facet) == [ErrorCode.INVALID_RANGE]
        assert facet.errors[0].message == "Start time must be earlier than end time"

    @pytest.mark.parametrize(
        "slot",
        ["10-12", "10:00 - 12:00", "25:00 AM - 26:00 AM", "10:00 AM to 12:00 PM", "10:00 AM - 12:00 PM\n", 1000],
    )
    def test_malformed(self, validator, slot):
        facet = validator.validate_time_slot(slot)
        assert _codes(facet) == [ErrorCode.INVALID_FORMAT]
        assert facet.errors[0].field == "timeSlot"

    def test_missing(self, validator):
        assert _codes(validator.validate_time_slot(None)) == [ErrorCode.REQUIRED]


# ---------------------------------------------------------------------- #
# Address facet
# ---------------------------------------------------------------------- #


class TestAddressFacet:
    @pytest.mark.asyncio
    async def test_saved_address(self, validator):
        facet = await validator.validate_address(ADDRESS_ID)
        assert facet.is_valid
        assert facet.data.id == ADDRESS_ID

    @pytest.mark.asyncio
    async def test_unknown_saved_address(self, validator):
        facet = await validator.validate_address("addr-missing")
        assert _codes(facet) == [ErrorCode.NOT_FOUND]
        assert facet.errors[0].message == "Address not found"

    @pytest.mark.asyncio
    async def test_saved_address_with_bad_coordinates(self, stores, clock):
        stores.catalog = InMemoryCatalogStore(
            addresses=[make_address(location=Location(coordinates=[200.0, 12.0]))]
        )
        validator = BookingRequestValidator.from_stores(stores, clock=clock)
        facet = await validator.validate_address(ADDRESS_ID)
        assert _codes(facet) == [ErrorCode.INVALID_COORDINATES]
        assert facet.errors[0].field == "address.location"

    @pytest.mark.asyncio
    async def test_inline_address(self, validator):
        facet = await validator.validate_address(inline_address())
        assert facet.is_valid
        assert facet.data.formatted_address == "12 MG Road, Bengaluru"
        assert facet.data.location.latitude == pytest.approx(12.9716)

    @pytest.mark.asyncio
    async def test_inline_address_snake_case_keys(self, validator):
        data = inline_address()
        data["formatted_address"] = data.pop("formattedAddress")
        assert (await validator.validate_address(data)).is_valid

    @pytest.mark.asyncio
    async def test_address_model_instance(self, validator):
        facet = await validator.validate_address(make_address(address_id=None))
        assert facet.is_valid

    @pytest.mark.asyncio
    async def test_inline_address_missing_fields(self, validator):
        facet = await validator.validate_address({"label": "home"})
        assert [(e.field, e.code) for e in facet.errors] == [
            ("address.location", ErrorCode.REQUIRED),
            ("address.formattedAddress", ErrorCode.REQUIRED),
        ]
        assert facet.errors[0].message == "location is required in address"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "coordinates",
        [[77.59], [77.59, 12.97, 0.0], [77.59, 95.0], [181.0, 12.97], ["77.59", "12.97"], [True, 12.97], None],
    )
    async def test_bad_inline_coordinates(self, validator, coordinates):
        address = inline_address(location={"type": "Point", "coordinates": coordinates})
        facet = await validator.validate_address(address)
        assert _codes(facet) == [ErrorCode.INVALID_COORDINATES]

    @pytest.mark.asyncio
    async def test_coordinate_bounds_inclusive(self, validator):
        address = inline_address(location={"type": "Point", "coordinates": [-180, 90]})
        assert (await validator.validate_address(address)).is_valid

    @pytest.mark.asyncio
    async def test_missing(self, validator):
        assert _codes(await validator.validate_address(None)) == [ErrorCode.REQUIRED]

    @pytest.mark.asyncio
    async def test_wrong_type(self, validator):
        facet = await validator.validate_address(42)
        assert _codes(facet) == [ErrorCode.INVALID_FORMAT]


# ---------------------------------------------------------------------- #
# User facet
# ---------------------------------------------------------------------- #


class TestUserFacet:
    @pytest.mark.asyncio
    async def test_verified_user(self, validator):
        facet = await validator.validate_user(USER_ID)
        assert facet.is_valid
        assert facet.data.id == USER_ID

    @pytest.mark.asyncio
    async def test_unknown_user(self, validator):
        facet = await validator.validate_user("ghost")
        assert _codes(facet) == [ErrorCode.NOT_FOUND]
        assert facet.errors[0].message == "User not found"

    @pytest.mark.asyncio
    async def test_missing(self, validator):
        assert _codes(await validator.validate_user("")) == [ErrorCode.REQUIRED]

    @pytest.mark.asyncio
    async def test_mobile_not_verified(self):
        validator = _validator_for(make_stores(users=[make_user(is_mobile_verified=False)]))
        facet = await validator.validate_user(USER_ID)
        assert [(e.field, e.code) for e in facet.errors] == [
            ("user.mobile", ErrorCode.VERIFICATION_REQUIRED)
        ]
        assert facet.errors[0].message == "Mobile verification required before booking"

    @pytest.mark.asyncio
    async def test_account_flags_ignored_by_default(self):
        user = make_user(is_active=False, is_blocked=True, is_email_verified=False)
        validator = _validator_for(make_stores(users=[user]))
        assert (await validator.validate_user(USER_ID)).is_valid

    @pytest.mark.asyncio
    async def test_all_account_checks_enabled(self):
        user = make_user(is_active=False, is_blocked=True, is_email_verified=False, is_mobile_verified=False)
        validator = _validator_for(
            make_stores(users=[user]),
            require_email_verified=True,
            require_active_user=True,
            require_unblocked_user=True,
        )
        facet = await validator.validate_user(USER_ID)
        assert [e.field for e in facet.errors] == ["userId", "userId", "user.email", "user.mobile"]
        assert set(_codes(facet)) == {ErrorCode.VERIFICATION_REQUIRED}


# ---------------------------------------------------------------------- #
# Full pipeline
# ---------------------------------------------------------------------- #


class TestValidateBookingRequest:
    @pytest.mark.asyncio
    async def test_happy_path(self, validator):
        result = await validator.validate_booking_request(
            SERVICE_ID, "2025-03-14", SLOT, ADDRESS_ID, USER_ID
        )
        assert result.is_valid
        assert result.errors == []
        assert result.data.normalized_date == BOOKING_DAY
        assert result.data.service_template.id == SERVICE_ID
        assert result.data.user.id == USER_ID
        assert [v.vendor_id for v in result.data.eligible_vendor] == ["vendor-1"]

    @pytest.mark.asyncio
    async def test_response_uses_camel_case(self, validator):
        result = await validator.validate_booking_request(
            SERVICE_ID, "2025-03-14", SLOT, ADDRESS_ID, USER_ID
        )
        response = result.to_response()
        assert response["isValid"] is True
        assert response["data"]["normalizedDate"] == "2025-03-14T00:00:00"
        assert response["data"]["eligibleVendor"][0]["vendorId"] == "vendor-1"

    @pytest.mark.asyncio
    async def test_request_model_entry_point(self, validator):
        request = ServiceRequest.model_validate({
            "serviceId": SERVICE_ID,
            "date": "2025-03-14",
            "timeSlot": SLOT,
            "address": inline_address(),
            "userId": USER_ID,
        })
        result = await validator.validate(request)
        assert result.is_valid
        assert result.data.address.id is None

    @pytest.mark.asyncio
    async def test_vendor_on_holiday(self):
        offering = make_offering(availability=make_availability(holidays=[BOOKING_DAY]))
        validator = _validator_for(make_stores(offerings=[offering]))
        result = await validator.validate_booking_request(
            SERVICE_ID, "2025-03-14", SLOT, ADDRESS_ID, USER_ID
        )
        assert not result.is_valid
        assert result.data is None
        assert [(e.field, e.code) for e in result.errors] == [
            ("timeSlot", ErrorCode.NO_VENDORS_AVAILABLE)
        ]

    @pytest.mark.asyncio
    async def test_vendor_out_of_radius(self):
        stores = make_stores(vendors=[make_vendor(distance_km=8.0, service_radius=5.0)])
        result = await _validator_for(stores).validate_booking_request(
            SERVICE_ID, "2025-03-14", SLOT, ADDRESS_ID, USER_ID
        )
        assert not result.is_valid
        assert [(e.field, e.code) for e in result.errors] == [
            ("address", ErrorCode.OUT_OF_SERVICE_AREA)
        ]

    @pytest.mark.asyncio
    async def test_malformed_slot_skips_vendor_lookup(self, validator, stores):
        result = await validator.validate_booking_request(
            SERVICE_ID, "2025-03-14", "10-12", ADDRESS_ID, USER_ID
        )
        assert not result.is_valid
        assert [(e.field, e.code) for e in result.errors] == [("timeSlot", ErrorCode.INVALID_FORMAT)]
        assert stores.directory.query_count == 0

    @pytest.mark.asyncio
    async def test_every_facet_reported(self, validator, stores):
        result = await validator.validate_booking_request(
            "bad-id", "2025-03-01", "nope", None, "ghost"
        )
        assert not result.is_valid
        assert [e.field for e in result.errors] == ["serviceId", "date", "timeSlot", "address", "userId"]
        assert [e.code for e in result.errors] == [
            ErrorCode.INVALID_FORMAT,
            ErrorCode.PAST_DATE,
            ErrorCode.INVALID_FORMAT,
            ErrorCode.REQUIRED,
            ErrorCode.NOT_FOUND,
        ]
        assert stores.directory.query_count == 0

    @pytest.mark.asyncio
    async def test_lead_time_enforced_end_to_end(self):
        stores = make_stores(templates=[make_template(min_advance_booking=2)])
        result = await _validator_for(stores).validate_booking_request(
            SERVICE_ID, "2025-03-12", "09:00 AM - 10:00 AM", ADDRESS_ID, USER_ID
        )
        assert [e.code for e in result.errors] == [ErrorCode.LEAD_TIME_VIOLATION]

    @pytest.mark.asyncio
    async def test_repeated_calls_agree(self, validator):
        args = (SERVICE_ID, "2025-03-14", SLOT, ADDRESS_ID, USER_ID)
        first = await validator.validate_booking_request(*args)
        second = await validator.validate_booking_request(*args)
        assert first.to_response() == second.to_response()

    @pytest.mark.asyncio
    async def test_store_failures_collapse_to_one_system_error(self, stores, clock):
        class BrokenCatalog(InMemoryCatalogStore):
            async def get_service_template(self, template_id):
                raise ConnectionError("catalog down")

            async def get_address(self, address_id):
                raise ConnectionError("catalog down")

        stores.catalog = BrokenCatalog()
        validator = BookingRequestValidator.from_stores(stores, clock=clock)
        result = await validator.validate_booking_request(
            SERVICE_ID, "2025-03-14", SLOT, ADDRESS_ID, USER_ID
        )
        assert not result.is_valid
        assert len(result.errors) == 1
        assert result.errors[0].field == "general"
        assert result.errors[0].message == SYSTEM_ERROR_MESSAGE
        assert result.errors[0].code == ErrorCode.SYSTEM_ERROR

    @pytest.mark.asyncio
    async def test_system_error_alongside_facet_errors(self, stores, clock):
        class BrokenUsers:
            async def get_user(self, user_id):
                raise TimeoutError("users down")

        stores.users = BrokenUsers()
        validator = BookingRequestValidator.from_stores(stores, clock=clock)
        result = await validator.validate_booking_request(
            SERVICE_ID, "2025-03-01", SLOT, ADDRESS_ID, USER_ID
        )
        assert [(e.field, e.code) for e in result.errors] == [
            ("date", ErrorCode.PAST_DATE),
            ("general", ErrorCode.SYSTEM_ERROR),
        ]

    @pytest.mark.asyncio
    async def test_unexpected_pipeline_error(self, validator):
        class BrokenAggregator:
            async def evaluate(self, *args):
                raise RuntimeError("boom")

        validator.aggregator = BrokenAggregator()
        result = await validator.validate_booking_request(
            SERVICE_ID, "2025-03-14", SLOT, ADDRESS_ID, USER_ID
        )
        assert not result.is_valid
        assert result.data is None
        assert [e.message for e in result.errors] == [SYSTEM_ERROR_MESSAGE]
