"""
Collection models: collections, smart collection rules and memberships.

Reference: https://docs.sqlalchemy.org/en/20/orm/basic_relationships.html#association-object
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from smartwardrobe.core.database import Base, utc_now

if TYPE_CHECKING:
    from smartwardrobe.models.garment import Garment


class RuleOperator(str, Enum):
    """Comparison operators available to smart collection rules."""

    EQUALS = "EQUALS"
    CONTAINS = "CONTAINS"
    STARTS_WITH = "STARTS_WITH"
    ENDS_WITH = "ENDS_WITH"
    IN = "IN"  # Value is a comma-separated list of candidates
    NOT_EQUALS = "NOT_EQUALS"
    NOT_CONTAINS = "NOT_CONTAINS"


class RuleField(str, Enum):
    """Garment fields a smart collection rule may query."""

    NAME = "name"
    CATEGORY = "category"
    MATERIAL = "material"
    COLOR = "color"
    SIZE = "size"
    BRAND = "brand"
    STATUS = "status"
    NOTES = "notes"
    CARE_INSTRUCTIONS = "care_instructions"
    PURCHASE_DATE = "purchase_date"
    COST = "cost"
    TAGS = "tags"  # Matches against the names of the garment's tags


# Note: rule field and operator are stored as VARCHAR
# Stored rows are converted to typed rules by the rule engine before evaluation


class Collection(Base):
    """
    Collection of garments owned by one user.

    Ordinary collections are curated by hand through their memberships.
    Smart collections (is_smart_collection=True) derive their memberships
    from their rules; the membership rows are rewritten on refresh.

    Attributes:
        id: Primary key
        user_id: Identity provider subject of the owner
        name: Collection name
        description, color, image: Optional display metadata
        is_smart_collection: Whether membership is rule-derived
        rules: Rules of a smart collection (empty for ordinary collections)
        memberships: Collection/garment association rows
    """

    __tablename__ = "collections"

    __table_args__ = (
        Index("ix_collections_user_smart", "user_id", "is_smart_collection"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    color: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    image: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    is_smart_collection: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )

    rules: Mapped[list["CollectionRule"]] = relationship(
        "CollectionRule",
        back_populates="collection",
        cascade="all, delete-orphan",
        order_by="CollectionRule.id",
        passive_deletes=True,
    )
    memberships: Mapped[list["CollectionGarment"]] = relationship(
        "CollectionGarment",
        back_populates="collection",
        cascade="all, delete-orphan",
        order_by="CollectionGarment.added_at.desc()",
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

    @property
    def garments(self) -> list["Garment"]:
        """Member garments, most recently added first (memberships must be loaded)"""
        return [membership.garment for membership in self.memberships]

    @property
    def garment_count(self) -> int:
        return len(self.memberships)

    def __repr__(self) -> str:
        """String representation of collection"""
        return (
            f"<Collection(id={self.id}, user_id={self.user_id}, name='{self.name}', "
            f"smart={self.is_smart_collection})>"
        )


class CollectionRule(Base):
    """
    A single field/operator/value predicate of a smart collection.

    Attributes:
        id: Primary key (also the stable evaluation order)
        collection_id: Owning collection
        field: Garment field name (see RuleField)
        operator: Comparison operator (see RuleOperator)
        value: Comparison value; comma-separated candidates for IN
    """

    __tablename__ = "collection_rules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    collection_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("collections.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    collection: Mapped["Collection"] = relationship("Collection", back_populates="rules")

    field: Mapped[str] = mapped_column(String(50), nullable=False)
    operator: Mapped[str] = mapped_column(String(20), nullable=False)
    value: Mapped[str] = mapped_column(String(500), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation of rule"""
        return f"<CollectionRule(id={self.id}, {self.field} {self.operator} '{self.value}')>"


class CollectionGarment(Base):
    """
    Membership of a garment in a collection.

    For ordinary collections these rows are the source of truth; for smart
    collections they are derived and maintained by the synchronizer.
    """

    __tablename__ = "collection_garments"

    collection_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("collections.id", ondelete="CASCADE"),
        primary_key=True,
    )
    garment_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("garments.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
    )

    collection: Mapped["Collection"] = relationship(
        "Collection", back_populates="memberships"
    )
    garment: Mapped["Garment"] = relationship("Garment", back_populates="memberships")

    def __repr__(self) -> str:
        return f"<CollectionGarment(collection_id={self.collection_id}, garment_id={self.garment_id})>"
