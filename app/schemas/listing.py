"""
Pydantic schemas for the listing screens.
The listing form validates enum fields against the same option lists the
submission form offers; responses are built from primary store documents.
"""

from pydantic import Field, field_validator
from typing import Any, Dict, List
from app.models.property import (
    PropertyType,
    TransactionType,
    ListingOption,
    FacingDirection,
    ConstructionStatus,
)
from app.schemas.base import CamelModel


class ListingForm(CamelModel):
    """Full listing payload for create and replace."""

    title: str = Field(..., max_length=255, description="Listing title")
    content: str = Field(..., description="Free-text description")
    images: List[str] = Field(default_factory=list, description="Uploaded image URLs, in order")
    city: str = Field(..., max_length=120)
    area: str = Field(..., max_length=120)
    locality: str = Field(..., max_length=120)
    floor: int = 0
    property_type: PropertyType = PropertyType.HOUSE
    transaction_type: TransactionType = TransactionType.LEASE_HOLD
    option: ListingOption = ListingOption.SELL
    price: int = Field(0, ge=0, description="Price in whole currency units")
    area_sqft: int = Field(0, ge=0)
    owner_name: str = Field(..., max_length=255)
    contact_number: str = Field(..., max_length=50)
    facing_direction: FacingDirection = FacingDirection.NORTH
    status: ConstructionStatus = ConstructionStatus.READY_TO_MOVE

    @field_validator("title", "content", "city", "area", "locality", "owner_name", "contact_number")
    @classmethod
    def validate_not_blank(cls, v):
        """Strip text fields and reject empty ones."""
        if not v or not v.strip():
            raise ValueError("Field cannot be empty")
        return v.strip()

    def to_document(self, user_id: str) -> Dict[str, Any]:
        """Primary store body for this listing, owned by ``user_id``."""
        data = self.model_dump(by_alias=True, mode="json")
        data["userId"] = user_id
        return data

    model_config = {
        "json_schema_extra": {
            "example": {
                "title": "2BHK near metro",
                "content": "Sunny flat, covered parking",
                "images": ["http://localhost:8000/media/properties/uid/front.jpg"],
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
            }
        }
    }


class ListingDetail(CamelModel):
    """A listing as shown to any signed-in visitor; the contact number is withheld."""

    id: str
    title: str
    content: str
    images: List[str] = Field(default_factory=list)
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
    facing_direction: str
    status: str
    user_id: str


class ListingResponse(ListingDetail):
    """A listing with every field, returned to its owner."""

    contact_number: str


class ContactResponse(CamelModel):
    """Owner contact revealed on request."""

    owner_name: str
    contact_number: str


class ListingOptionsResponse(CamelModel):
    """Allowed values for the listing form's select fields."""

    property_types: List[str] = Field(default_factory=lambda: [e.value for e in PropertyType])
    transaction_types: List[str] = Field(default_factory=lambda: [e.value for e in TransactionType])
    options: List[str] = Field(default_factory=lambda: [e.value for e in ListingOption])
    facing_directions: List[str] = Field(default_factory=lambda: [e.value for e in FacingDirection])
    statuses: List[str] = Field(default_factory=lambda: [e.value for e in ConstructionStatus])


class ImageUploadResponse(CamelModel):
    """Public URLs of the uploaded images, in upload order."""

    urls: List[str]
    count: int

