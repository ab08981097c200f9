"""
Listing filter shared by the browse screen and the filtered search.
The same predicate is either evaluated in memory against fetched documents or
pushed down to the document store as query conditions.
"""

from dataclasses import dataclass, fields
from typing import Any, Dict, Iterable, List, Optional

from app.documents import Document, FieldFilter
from app.utils.exceptions import ValidationError

# Filter attribute -> document field
_EQUALITY_FIELDS = {
    "city": "city",
    "locality": "locality",
    "property_type": "propertyType",
    "option": "option",
}


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value.strip()


def _parse_price(name: str, value: Optional[str]) -> Optional[int]:
    value = _blank_to_none(value)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        raise ValidationError(
            f"{name} must be a whole number",
            field_errors=[{"field": name, "message": "Expected an integer", "input": value}]
        )


@dataclass(frozen=True)
class ListingFilter:
    """
    Listing predicate.

    ``None`` means "no constraint" for every field. A price bound of 0 is a
    real bound.
    """

    city: Optional[str] = None
    locality: Optional[str] = None
    property_type: Optional[str] = None
    option: Optional[str] = None
    min_price: Optional[int] = None
    max_price: Optional[int] = None

    @classmethod
    def from_query(
        cls,
        city: Optional[str] = None,
        locality: Optional[str] = None,
        property_type: Optional[str] = None,
        option: Optional[str] = None,
        min_price: Optional[str] = None,
        max_price: Optional[str] = None,
    ) -> "ListingFilter":
        """
        Build a filter from raw query-string values; blank values are unset.

        Raises:
            ValidationError: If a price bound is not a whole number
        """
        return cls(
            city=_blank_to_none(city),
            locality=_blank_to_none(locality),
            property_type=_blank_to_none(property_type),
            option=_blank_to_none(option),
            min_price=_parse_price("minPrice", min_price),
            max_price=_parse_price("maxPrice", max_price),
        )

    @property
    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def matches(self, data: Dict[str, Any]) -> bool:
        """Evaluate the predicate against a listing document body."""
        return all(condition.matches(data) for condition in self.to_conditions())

    def to_conditions(self) -> List[FieldFilter]:
        """Document store query conditions equivalent to this filter."""
        conditions = [
            FieldFilter(doc_field, "==", getattr(self, attr))
            for attr, doc_field in _EQUALITY_FIELDS.items()
            if getattr(self, attr) is not None
        ]
        if self.min_price is not None:
            conditions.append(FieldFilter("price", ">=", self.min_price))
        if self.max_price is not None:
            conditions.append(FieldFilter("price", "<=", self.max_price))
        return conditions


def apply_filters(documents: Iterable[Document], listing_filter: ListingFilter) -> List[Document]:
    """
    Keep the listing documents matching the filter, preserving order.

    Args:
        documents: Fetched listing documents
        listing_filter: Predicate to apply

    Returns:
        Matching documents
    """
    if listing_filter.is_empty:
        return list(documents)
    return [document for document in documents if listing_filter.matches(document.data)]
