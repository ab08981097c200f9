"""
Unit tests for the listing filter used by browse and search.
"""

import pytest

from app.documents import Document, FieldFilter
from app.utils.exceptions import ValidationError
from app.utils.filters import ListingFilter, apply_filters


def _listing(doc_id: str, **data) -> Document:
    body = {
        "city": "Pune",
        "locality": "Karve Nagar",
        "propertyType": "apartment",
        "option": "sell",
        "price": 500000,
    }
    body.update(data)
    return Document(id=doc_id, data=body)


@pytest.fixture
def listings():
    return [
        _listing("a", price=0),
        _listing("b", price=250000, city="Mumbai"),
        _listing("c", price=500000),
        _listing("d", price=900000, propertyType="house", option="rent"),
    ]


class TestFromQuery:
    """Building a filter from raw query values."""

    def test_blank_values_are_unset(self):
        listing_filter = ListingFilter.from_query(
            city="", locality="   ", property_type=None, min_price="", max_price=" "
        )

        assert listing_filter == ListingFilter()
        assert listing_filter.is_empty

    def test_values_are_stripped(self):
        listing_filter = ListingFilter.from_query(city=" Pune ", min_price=" 100 ")

        assert listing_filter.city == "Pune"
        assert listing_filter.min_price == 100

    def test_zero_is_a_bound(self):
        listing_filter = ListingFilter.from_query(min_price="0", max_price="0")

        assert listing_filter.min_price == 0
        assert listing_filter.max_price == 0
        assert not listing_filter.is_empty

    def test_non_integer_price_is_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            ListingFilter.from_query(min_price="12.5")

        assert exc_info.value.status_code == 400
        assert exc_info.value.field_errors[0]["field"] == "minPrice"


class TestApplyFilters:
    """In-memory filtering."""

    def test_empty_filter_returns_everything(self, listings):
        assert apply_filters(listings, ListingFilter()) == listings

    def test_min_price_zero_returns_everything(self, listings):
        result = apply_filters(listings, ListingFilter(min_price=0))

        assert [d.id for d in result] == ["a", "b", "c", "d"]

    def test_max_price_zero_is_a_real_bound(self, listings):
        result = apply_filters(listings, ListingFilter(max_price=0))

        assert [d.id for d in result] == ["a"]

    def test_price_range_is_inclusive(self, listings):
        result = apply_filters(listings, ListingFilter(min_price=250000, max_price=500000))

        assert [d.id for d in result] == ["b", "c"]

    def test_equality_fields(self, listings):
        assert [d.id for d in apply_filters(listings, ListingFilter(city="Mumbai"))] == ["b"]
        assert [d.id for d in apply_filters(listings, ListingFilter(property_type="house"))] == ["d"]
        assert [d.id for d in apply_filters(listings, ListingFilter(option="rent"))] == ["d"]

    def test_city_and_price_combined(self, listings):
        result = apply_filters(listings, ListingFilter(city="Pune", min_price=1))

        assert [d.id for d in result] == ["c", "d"]

    def test_case_sensitive_equality(self, listings):
        assert apply_filters(listings, ListingFilter(city="pune")) == []


class TestConditions:
    """Pushdown conditions."""

    def test_to_conditions(self):
        conditions = ListingFilter(city="Pune", option="rent", min_price=0, max_price=10).to_conditions()

        assert conditions == [
            FieldFilter("city", "==", "Pune"),
            FieldFilter("option", "==", "rent"),
            FieldFilter("price", ">=", 0),
            FieldFilter("price", "<=", 10),
        ]

    def test_empty_filter_has_no_conditions(self):
        assert ListingFilter().to_conditions() == []

    async def test_pushdown_agrees_with_in_memory(self, document_store, listings):
        for document in listings:
            await document_store.set("properties", document.id, document.data)

        listing_filter = ListingFilter(city="Pune", min_price=0, max_price=600000)
        pushed = await document_store.query("properties", listing_filter.to_conditions())

        assert [d.id for d in pushed] == [d.id for d in apply_filters(listings, listing_filter)]
