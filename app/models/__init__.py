"""
Relational mirror models.
Includes the Property mirror, Shortlist join rows, and listing enumerations.
"""

from app.models.property import (
    Property,
    PropertyType,
    TransactionType,
    ListingOption,
    FacingDirection,
    ConstructionStatus,
    MIRRORED_FIELDS,
)
from app.models.shortlist import Shortlist

# Export all models for easy importing
__all__ = [
    "Property",
    "PropertyType",
    "TransactionType",
    "ListingOption",
    "FacingDirection",
    "ConstructionStatus",
    "MIRRORED_FIELDS",
    "Shortlist",
]
