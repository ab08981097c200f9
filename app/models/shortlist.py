"""
Shortlist model: a user's saved reference to a mirrored property.
"""

from sqlalchemy import String, Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.database import Base
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.models.property import Property


class Shortlist(Base):
    """
    Join row between a user and a property.
    A user can shortlist a given property at most once.
    """

    __tablename__ = "shortlists"
    __table_args__ = (
        UniqueConstraint("user_id", "property_id", name="uq_shortlists_user_property"),
    )

    user_id: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        index=True,
        comment="Id of the user who shortlisted the property"
    )

    property_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    is_shortlisted: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True
    )

    property: Mapped["Property"] = relationship(
        "Property",
        back_populates="shortlists",
        lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<Shortlist(user_id={self.user_id}, property_id={self.property_id})>"
