"""
Garment model representing clothing items in a user's wardrobe.

Reference: https://docs.sqlalchemy.org/en/20/orm/basic_relationships.html
"""

from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from smartwardrobe.core.database import Base, utc_now

# Import related models only for type checking to avoid circular imports
# Reference: https://docs.python.org/3/library/typing.html#typing.TYPE_CHECKING
if TYPE_CHECKING:
    from smartwardrobe.models.collection import CollectionGarment
    from smartwardrobe.models.tag import Tag


class GarmentStatus(str, Enum):
    """Garment laundry status enumeration."""

    CLEAN = "CLEAN"
    DIRTY = "DIRTY"
    WORN_2X = "WORN_2X"  # Worn twice since last wash
    NEEDS_WASHING = "NEEDS_WASHING"


# Note: status is stored as VARCHAR, not as a database enum
# Pydantic schemas handle enum validation at the API boundary


# Plain many-to-many join between garments and tags
# Reference: https://docs.sqlalchemy.org/en/20/orm/basic_relationships.html#many-to-many
garment_tags = Table(
    "garment_tags",
    Base.metadata,
    Column(
        "garment_id",
        Integer,
        ForeignKey("garments.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "tag_id",
        Integer,
        ForeignKey("tags.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Garment(Base):
    """
    Garment model representing a clothing item owned by one user.

    The scalar attributes below are the fields smart collection rules may query;
    tag names are queried through the `tags` relationship.

    Attributes:
        id: Primary key
        user_id: Identity provider subject of the owner
        name: Garment name (e.g., "Blue Oxford Shirt")
        category: Garment category (e.g., "Shirts", "Pants")
        material, color, size, brand: Optional descriptive attributes
        purchase_date: Date the garment was bought
        cost: Purchase price
        care_instructions: Free-text washing/care notes
        status: Laundry status (CLEAN, DIRTY, WORN_2X, NEEDS_WASHING)
        notes: Free-text notes
        image_url: URL of the garment photo (uploaded elsewhere)
        usage_count: Number of times the garment has been worn
        last_worn_at: Timestamp of the last wear
        tags: Tags attached to this garment
    """

    __tablename__ = "garments"

    # Reference: https://docs.sqlalchemy.org/en/20/core/constraints.html#indexes
    __table_args__ = (
        Index("ix_garments_user_id", "user_id"),
        Index("ix_garments_user_category", "user_id", "category"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False)

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    material: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    color: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    size: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    brand: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    purchase_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    cost: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    care_instructions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=GarmentStatus.CLEAN.value,
        comment="Laundry status (CLEAN, DIRTY, WORN_2X, NEEDS_WASHING)",
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # Usage tracking
    usage_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_worn_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    tags: Mapped[list["Tag"]] = relationship(
        "Tag",
        secondary=garment_tags,
        back_populates="garments",
        order_by="Tag.name",
        passive_deletes=True,
    )
    memberships: Mapped[list["CollectionGarment"]] = relationship(
        "CollectionGarment",
        back_populates="garment",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        onupdate=utc_now,
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation of garment"""
        return f"<Garment(id={self.id}, user_id={self.user_id}, name='{self.name}', category='{self.category}')>"
