"""
Unit tests for request schemas: presence checks and listing form validation.
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from app.schemas.listing import ListingForm, ListingOptionsResponse
from app.schemas.property import (
    PropertyMirrorCreate,
    PropertyMirrorUpdate,
    ShortlistRequest,
    is_missing,
)
from app.utils.exceptions import MissingFieldsError
from tests.conftest import ListingFactory


class TestPresenceCheck:

    @pytest.mark.parametrize("value", [None, "", "   ", "\t\n"])
    def test_missing_values(self, value):
        assert is_missing(value)

    @pytest.mark.parametrize("value", [0, "0", "x", False, []])
    def test_present_values(self, value):
        assert not is_missing(value)


class TestPropertyMirrorCreate:

    def test_complete_body(self):
        body = ListingFactory.create_mirror_data("p1", "u1", floor=0)

        values = PropertyMirrorCreate.model_validate(body).require_all()

        assert values["id"] == "p1"
        assert values["user_id"] == "u1"
        assert values["floor"] == 0
        assert values["property_type"] == "apartment"
        assert values["area_sqft"] == 950

    def test_missing_fields_are_named(self):
        body = ListingFactory.create_mirror_data("p1", "u1", title="  ", price=None)
        del body["city"]

        with pytest.raises(MissingFieldsError) as exc_info:
            PropertyMirrorCreate.model_validate(body).require_all()

        assert exc_info.value.fields == ["title", "city", "price"]
        assert exc_info.value.error_code == "MISSING_FIELDS"
        assert exc_info.value.status_code == 400

    def test_numeric_strings_are_converted(self):
        body = ListingFactory.create_mirror_data("p1", "u1", floor="12", price="750000")

        values = PropertyMirrorCreate.model_validate(body).require_all()

        assert values["floor"] == 12
        assert values["price"] == 750000

    def test_fractional_numbers_are_rejected(self):
        body = ListingFactory.create_mirror_data("p1", "u1", price=12.5)

        with pytest.raises(PydanticValidationError):
            PropertyMirrorCreate.model_validate(body)

    def test_enum_values_are_not_enforced(self):
        body = ListingFactory.create_mirror_data("p1", "u1", propertyType="castle")

        assert PropertyMirrorCreate.model_validate(body).require_all()["property_type"] == "castle"


class TestPropertyMirrorUpdate:

    def test_only_sent_fields_change(self):
        changes = PropertyMirrorUpdate.model_validate({"status": "underConstruction"}).changes()

        assert changes == {"status": "underConstruction"}

    def test_null_fields_are_ignored(self):
        changes = PropertyMirrorUpdate.model_validate({"title": None, "floor": 0}).changes()

        assert changes == {"floor": 0}

    def test_unknown_keys_are_ignored(self):
        changes = PropertyMirrorUpdate.model_validate({"userId": "other", "price": 1}).changes()

        assert changes == {"price": 1}

    def test_empty_body_is_rejected(self):
        with pytest.raises(MissingFieldsError):
            PropertyMirrorUpdate.model_validate({}).changes()


class TestShortlistRequest:

    def test_both_ids_required(self):
        with pytest.raises(MissingFieldsError) as exc_info:
            ShortlistRequest.model_validate({"userId": "u1", "propertyId": " "}).require_all()

        assert exc_info.value.fields == ["propertyId"]

    def test_complete(self):
        request = ShortlistRequest.model_validate({"userId": "u1", "propertyId": "p1"}).require_all()

        assert (request.user_id, request.property_id) == ("u1", "p1")


class TestListingForm:

    def test_to_document_uses_wire_names(self):
        form = ListingForm.model_validate(ListingFactory.create_listing_data(images=["http://test/media/a.jpg"]))

        document = form.to_document("owner-1")

        assert document["propertyType"] == "apartment"
        assert document["areaSqft"] == 950
        assert document["images"] == ["http://test/media/a.jpg"]
        assert document["userId"] == "owner-1"
        assert "property_type" not in document

    def test_defaults(self):
        data = ListingFactory.create_listing_data()
        for key in ("floor", "propertyType", "transactionType", "option", "price",
                    "areaSqft", "facingDirection", "status", "images"):
            del data[key]

        document = ListingForm.model_validate(data).to_document("owner-1")

        assert document["floor"] == 0
        assert document["propertyType"] == "house"
        assert document["transactionType"] == "leaseHold"
        assert document["option"] == "sell"
        assert document["facingDirection"] == "north"
        assert document["status"] == "readyToMove"
        assert document["images"] == []

    @pytest.mark.parametrize("field,value", [
        ("propertyType", "castle"),
        ("option", "lease"),
        ("price", -1),
        ("title", "   "),
        ("floor", 1.5),
    ])
    def test_invalid_values(self, field, value):
        with pytest.raises(PydanticValidationError):
            ListingForm.model_validate(ListingFactory.create_listing_data(**{field: value}))

    def test_options_response_lists_every_choice(self):
        options = ListingOptionsResponse()

        assert options.property_types == ["house", "apartment", "plot", "builderFloor", "cooperativeSociety"]
        assert options.options == ["sell", "rent", "pg"]
        assert options.statuses == ["readyToMove", "underConstruction"]
