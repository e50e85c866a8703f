"""
Tag model for labelling garments
"""
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from smartwardrobe.core.database import Base, utc_now
from smartwardrobe.models.garment import garment_tags

if TYPE_CHECKING:
    from smartwardrobe.models.garment import Garment


class Tag(Base):
    """
    Tag owned by one user

    Attributes:
        id: Primary key
        user_id: Identity provider subject of the owner
        name: Tag name, unique per user regardless of case
        color: Display color (e.g., "#F59E0B")
        garments: Garments carrying this tag
        created_at: Timestamp when the tag was created
    """
    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    color: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    garments: Mapped[list["Garment"]] = relationship(
        "Garment",
        secondary=garment_tags,
        back_populates="tags",
        passive_deletes=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation of tag"""
        return f"<Tag(id={self.id}, user_id={self.user_id}, name='{self.name}')>"


# Case-insensitive uniqueness per user via an expression index
# Reference: https://docs.sqlalchemy.org/en/20/core/constraints.html#functional-indexes
Index("uq_tags_user_lower_name", Tag.user_id, func.lower(Tag.name), unique=True)
