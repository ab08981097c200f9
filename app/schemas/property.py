"""
Pydantic schemas for the relational mirror routes.
Request bodies only check types; required-field presence is checked explicitly
so that missing values are reported as a single 400 listing every missing field.
"""

from pydantic import Field
from typing import Any, Dict, List, Optional
from datetime import datetime
from app.schemas.base import CamelModel
from app.utils.exceptions import MissingFieldsError


def is_missing(value: Any) -> bool:
    """A value is missing when it is None or a blank string; 0 is present."""
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


class PropertyFields(CamelModel):
    """Property fields as sent by clients. Unknown keys are ignored."""

    title: Optional[str] = None
    content: Optional[str] = None
    city: Optional[str] = None
    area: Optional[str] = None
    locality: Optional[str] = None
    floor: Optional[int] = Field(None, description="Floor number, 0 for ground floor")
    property_type: Optional[str] = None
    transaction_type: Optional[str] = None
    option: Optional[str] = None
    price: Optional[int] = Field(None, description="Price in whole currency units")
    area_sqft: Optional[int] = None
    owner_name: Optional[str] = None
    contact_number: Optional[str] = None
    facing_direction: Optional[str] = None
    status: Optional[str] = None

    def missing_fields(self, names: List[str]) -> List[str]:
        """
        Report which of the given fields are missing.

        Args:
            names: Python field names to check

        Returns:
            Wire names of the missing fields, in the order given
        """
        return [
            type(self).model_fields[name].alias or name
            for name in names
            if is_missing(getattr(self, name))
        ]


PROPERTY_FIELD_NAMES: List[str] = list(PropertyFields.model_fields)


class PropertyMirrorCreate(PropertyFields):
    """Body of ``POST /api/properties/create``."""

    id: Optional[str] = Field(None, description="Document id assigned by the primary store")
    user_id: Optional[str] = None

    def require_all(self) -> Dict[str, Any]:
        """
        Check that every field is present.

        Returns:
            Column values for the new mirror row

        Raises:
            MissingFieldsError: If any field is missing
        """
        missing = self.missing_fields(["id", *PROPERTY_FIELD_NAMES, "user_id"])
        if missing:
            raise MissingFieldsError(missing)
        return self.model_dump(include={"id", "user_id", *PROPERTY_FIELD_NAMES})

    model_config = {
        "json_schema_extra": {
            "example": {
                "id": "3f9c1a7be04d2c5e8a61",
                "title": "2BHK near metro",
                "content": "Sunny flat, covered parking",
                "city": "Pune",
                "area": "Kothrud",
                "locality": "Karve Nagar",
                "floor": 3,
                "propertyType": "apartment",
                "transactionType": "freeHold",
                "option": "sell",
                "price": 500000,
                "areaSqft": 950,
                "ownerName": "Asha Kulkarni",
                "contactNumber": "9876543210",
                "facingDirection": "east",
                "status": "readyToMove",
                "userId": "a1b2c3d4e5f6a7b8c9d0",
            }
        }
    }


class PropertyMirrorUpdate(PropertyFields):
    """Body of ``PUT /api/properties/update/{id}``."""

    def changes(self) -> Dict[str, Any]:
        """
        Column values to apply; fields not sent or sent as null are left alone.

        Raises:
            MissingFieldsError: If the body carries no property field at all
        """
        data = {
            name: value
            for name, value in self.model_dump(exclude_unset=True).items()
            if value is not None
        }
        if not data:
            raise MissingFieldsError(
                [PropertyFields.model_fields[name].alias for name in PROPERTY_FIELD_NAMES]
            )
        return data


class PropertyRecord(CamelModel):
    """A mirror row as returned by the API."""

    id: str
    title: str
    content: str
    city: str
    area: str
    locality: str
    floor: int
    property_type: str
    transaction_type: str
    option: str
    price: int
    area_sqft: int
    owner_name: str
    contact_number: str
    facing_direction: str
    status: str
    user_id: str
    created_at: datetime
    updated_at: datetime


class PropertyUpdatedResponse(CamelModel):
    message: str = "Property updated successfully"
    updated_property: PropertyRecord


class PropertyDeletedResponse(CamelModel):
    message: str = "Property deleted successfully"
    deleted_property: PropertyRecord


class ShortlistRequest(CamelModel):
    """Body of ``POST /api/properties/shortlist``."""

    user_id: Optional[str] = None
    property_id: Optional[str] = None

    def require_all(self) -> "ShortlistRequest":
        """Raise MissingFieldsError unless both ids are present."""
        missing = [
            type(self).model_fields[name].alias
            for name in ("user_id", "property_id")
            if is_missing(getattr(self, name))
        ]
        if missing:
            raise MissingFieldsError(missing)
        return self


class ShortlistRecord(CamelModel):
    """A shortlist row as returned by the API."""

    id: str
    user_id: str
    property_id: str
    is_shortlisted: bool
    created_at: datetime
    updated_at: datetime


class ShortlistWithProperty(ShortlistRecord):
    """Shortlist row with its mirrored property joined in."""

    property: PropertyRecord


class ShortlistCreatedResponse(CamelModel):
    message: str = "Property shortlisted successfully"
    shortlist: ShortlistRecord


class ShortlistedPropertiesResponse(CamelModel):
    shortlisted_properties: List[ShortlistWithProperty]
