"""
Property model for the relational mirror of listings.
Each row reuses the primary store's document id as its primary key.
"""

from sqlalchemy import String, Text, Integer, BigInteger, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.database import Base
import enum
from typing import Any, Dict, List, TYPE_CHECKING

if TYPE_CHECKING:
    from app.models.shortlist import Shortlist


class PropertyType(str, enum.Enum):
    """Kinds of property a listing can describe."""
    HOUSE = "house"
    APARTMENT = "apartment"
    PLOT = "plot"
    BUILDER_FLOOR = "builderFloor"
    COOPERATIVE_SOCIETY = "cooperativeSociety"


class TransactionType(str, enum.Enum):
    """Ownership transfer type."""
    LEASE_HOLD = "leaseHold"
    FREE_HOLD = "freeHold"


class ListingOption(str, enum.Enum):
    """What the owner offers: sale, rent, or paying guest."""
    SELL = "sell"
    RENT = "rent"
    PG = "pg"


class FacingDirection(str, enum.Enum):
    NORTH = "north"
    SOUTH = "south"
    EAST = "east"
    WEST = "west"


class ConstructionStatus(str, enum.Enum):
    READY_TO_MOVE = "readyToMove"
    UNDER_CONSTRUCTION = "underConstruction"


# Mirror column name -> wire (camelCase) name, in payload order
MIRRORED_FIELDS: Dict[str, str] = {
    "title": "title",
    "content": "content",
    "city": "city",
    "area": "area",
    "locality": "locality",
    "floor": "floor",
    "property_type": "propertyType",
    "transaction_type": "transactionType",
    "option": "option",
    "price": "price",
    "area_sqft": "areaSqft",
    "owner_name": "ownerName",
    "contact_number": "contactNumber",
    "facing_direction": "facingDirection",
    "status": "status",
    "user_id": "userId",
}


class Property(Base):
    """
    Mirrored property listing.

    Enum-like columns are plain strings: the mirror stores whatever value the
    primary store holds.
    """

    __tablename__ = "properties"

    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Listing title"
    )

    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Free-text listing description"
    )

    # Location hierarchy
    city: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    area: Mapped[str] = mapped_column(String(120), nullable=False)
    locality: Mapped[str] = mapped_column(String(120), nullable=False, index=True)

    floor: Mapped[int] = mapped_column(Integer, nullable=False)

    property_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
        comment="house, apartment, plot, builderFloor or cooperativeSociety"
    )

    transaction_type: Mapped[str] = mapped_column(String(50), nullable=False)

    option: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="sell, rent or pg"
    )

    price: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        index=True,
        comment="Price in whole currency units"
    )

    area_sqft: Mapped[int] = mapped_column(Integer, nullable=False)

    owner_name: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_number: Mapped[str] = mapped_column(String(50), nullable=False)

    facing_direction: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False)

    user_id: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        index=True,
        comment="Id of the owning user"
    )

    shortlists: Mapped[List["Shortlist"]] = relationship(
        "Shortlist",
        back_populates="property",
        cascade="all, delete-orphan",
        lazy="selectin"
    )

    def __repr__(self) -> str:
        """String representation of the property."""
        return f"<Property(id={self.id}, title={self.title[:30]}, price={self.price})>"

    def mirrored_values(self) -> Dict[str, Any]:
        """Mirrored fields keyed by their wire names."""
        return {wire: getattr(self, column) for column, wire in MIRRORED_FIELDS.items()}


# Composite index for the browse filter (city, type, price range)
city_type_price_index = Index(
    'idx_properties_city_type_price',
    Property.city,
    Property.property_type,
    Property.price
)
