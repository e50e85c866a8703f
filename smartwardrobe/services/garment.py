"""
Garment service for managing wardrobe garments
Reference: https://docs.sqlalchemy.org/en/20/orm/queryguide/
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from smartwardrobe.api.v1.schemas.garment import GarmentCreate, GarmentUpdate
from smartwardrobe.core.exceptions import ResourceNotFoundException, ValidationException
from smartwardrobe.models.garment import Garment, GarmentStatus
from smartwardrobe.models.tag import Tag
from smartwardrobe.services.tag import TagService

logger = logging.getLogger(__name__)


class GarmentService:
    """Service for managing garments"""

    def __init__(self, tag_service: Optional[TagService] = None):
        self.tag_service = tag_service or TagService()

    async def get_garment(
        self, db: AsyncSession, garment_id: int, user_id: str
    ) -> Optional[Garment]:
        """
        Get a garment by ID for a specific user, with its tags loaded.

        Args:
            db: Database session
            garment_id: Garment ID
            user_id: User ID (users can only access their own garments)

        Returns:
            Garment if found and owned by the user, None otherwise
        """
        result = await db.execute(
            select(Garment)
            .where(Garment.id == garment_id, Garment.user_id == user_id)
            .options(selectinload(Garment.tags))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_garments(
        self,
        db: AsyncSession,
        user_id: str,
        category: Optional[str] = None,
        status: Optional[GarmentStatus] = None,
        tag: Optional[str] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Garment]:
        """
        Get garments for a user with optional filtering.

        Args:
            db: Database session
            user_id: User ID (users can only access their own garments)
            category: Case-insensitive category filter
            status: Status filter
            tag: Only garments carrying a tag with this name (case-insensitive)
            search: Substring match over name, category, color, brand and material
            skip: Number of garments to skip (for pagination)
            limit: Maximum number of garments to return

        Returns:
            List of garments, newest first
        """
        query = select(Garment).where(Garment.user_id == user_id)

        if category:
            query = query.where(Garment.category.ilike(category))

        if status:
            query = query.where(Garment.status == status.value)

        if tag:
            query = query.where(Garment.tags.any(Tag.name.ilike(tag)))

        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(
                    Garment.name.ilike(pattern),
                    Garment.category.ilike(pattern),
                    Garment.color.ilike(pattern),
                    Garment.brand.ilike(pattern),
                    Garment.material.ilike(pattern),
                )
            )

        query = (
            query.options(selectinload(Garment.tags))
            .order_by(Garment.created_at.desc(), Garment.id.desc())
            .offset(skip)
            .limit(limit)
        )

        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_all_for_user(self, db: AsyncSession, user_id: str) -> List[Garment]:
        """
        Every garment of a user with tags loaded, in ID order.
        This is the candidate set for smart collection evaluation.
        """
        result = await db.execute(
            select(Garment)
            .where(Garment.user_id == user_id)
            .options(selectinload(Garment.tags))
            .order_by(Garment.id)
        )
        return list(result.scalars().all())

    async def create_garment(
        self, db: AsyncSession, user_id: str, garment_data: GarmentCreate
    ) -> Garment:
        """
        Create a new garment for a user.

        Raises:
            ResourceNotFoundException: If a tag ID is unknown or not owned by the user
            ValidationException: If the row violates a database constraint
        """
        item_data = garment_data.model_dump(exclude_unset=True, exclude={"tag_ids"})

        if item_data.get("status") is None:
            item_data["status"] = GarmentStatus.CLEAN.value
        elif isinstance(item_data["status"], GarmentStatus):
            item_data["status"] = item_data["status"].value

        tags = await self.tag_service.get_tags_by_ids(db, garment_data.tag_ids, user_id)

        garment = Garment(user_id=user_id, tags=tags, **item_data)
        db.add(garment)

        try:
            await db.flush()
        except IntegrityError as e:
            await db.rollback()
            logger.error("Failed to create garment due to database error", exc_info=True)
            raise ValidationException(
                "Failed to create garment due to database constraints"
            ) from e

        logger.info(f"Created garment '{garment.name}' for user: {user_id}")
        return garment

    async def update_garment(
        self,
        db: AsyncSession,
        garment_id: int,
        user_id: str,
        garment_data: GarmentUpdate,
    ) -> Garment:
        """
        Update a garment. Only provided fields are updated; tag_ids replaces the tags.

        Smart collections are not re-evaluated here; they pick up the change on
        their next refresh.

        Raises:
            ResourceNotFoundException: If the garment or a tag is not found for the user
        """
        garment = await self.get_garment(db, garment_id, user_id)
        if not garment:
            raise ResourceNotFoundException("Garment", garment_id)

        update_data = garment_data.model_dump(exclude_unset=True)
        tag_ids = update_data.pop("tag_ids", None)

        for field in ("name", "category", "status"):
            if field in update_data and update_data[field] is None:
                update_data.pop(field)

        for field, value in update_data.items():
            if field == "status" and isinstance(value, GarmentStatus):
                value = value.value
            setattr(garment, field, value)

        if tag_ids is not None:
            garment.tags = await self.tag_service.get_tags_by_ids(db, tag_ids, user_id)

        try:
            await db.flush()
        except IntegrityError as e:
            await db.rollback()
            logger.error("Failed to update garment due to database error", exc_info=True)
            raise ValidationException(
                "Failed to update garment due to database constraints"
            ) from e

        logger.info(f"Updated garment {garment_id} for user: {user_id}")
        return garment

    async def delete_garment(self, db: AsyncSession, garment_id: int, user_id: str) -> None:
        """
        Delete a garment along with its tag links and collection memberships.

        Raises:
            ResourceNotFoundException: If the garment does not exist for the user
        """
        garment = await self.get_garment(db, garment_id, user_id)
        if not garment:
            raise ResourceNotFoundException("Garment", garment_id)

        await db.delete(garment)
        await db.flush()
        logger.info(f"Deleted garment {garment_id} for user: {user_id}")

    async def mark_garment_worn(
        self, db: AsyncSession, garment_id: int, user_id: str
    ) -> Garment:
        """
        Record a wear: increment usage_count and update last_worn_at.

        Uses a single atomic UPDATE so concurrent wears are never lost.

        Raises:
            ResourceNotFoundException: If the garment does not exist for the user
        """
        now = datetime.now(timezone.utc)
        stmt = (
            update(Garment)
            .where(Garment.id == garment_id, Garment.user_id == user_id)
            .values(
                usage_count=Garment.usage_count + 1,  # Atomic increment
                last_worn_at=now,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        if result.rowcount == 0:
            raise ResourceNotFoundException("Garment", garment_id)

        logger.info(f"Marked garment {garment_id} as worn for user: {user_id}")
        return await self.get_garment(db, garment_id, user_id)
