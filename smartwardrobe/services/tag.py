"""
Tag service for managing garment tags
Reference: https://docs.sqlalchemy.org/en/20/orm/queryguide/
"""

import logging
from typing import List, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from smartwardrobe.api.v1.schemas.tag import TagCreate, TagUpdate
from smartwardrobe.core.exceptions import ConflictException, ResourceNotFoundException
from smartwardrobe.models.garment import garment_tags
from smartwardrobe.models.tag import Tag

logger = logging.getLogger(__name__)


class TagService:
    """Service for managing tags"""

    async def get_tag(self, db: AsyncSession, tag_id: int, user_id: str) -> Optional[Tag]:
        """
        Get a tag by ID for a specific user.

        Returns:
            Tag if found and owned by the user, None otherwise
        """
        result = await db.execute(
            select(Tag).where(Tag.id == tag_id, Tag.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_tags(self, db: AsyncSession, user_id: str) -> List[tuple[Tag, int]]:
        """
        Get all tags of a user, alphabetically, with the number of garments carrying each.

        Returns:
            List of (tag, garment_count) pairs
        """
        garment_count = func.count(garment_tags.c.garment_id)
        result = await db.execute(
            select(Tag, garment_count)
            .outerjoin(garment_tags, garment_tags.c.tag_id == Tag.id)
            .where(Tag.user_id == user_id)
            .group_by(Tag.id)
            .order_by(func.lower(Tag.name))
        )
        return [(tag, count) for tag, count in result.all()]

    async def get_tags_by_ids(
        self, db: AsyncSession, tag_ids: Sequence[int], user_id: str
    ) -> List[Tag]:
        """
        Load tags by ID, all of which must belong to the user.

        Raises:
            ResourceNotFoundException: If any ID is unknown or owned by someone else
        """
        if not tag_ids:
            return []
        result = await db.execute(
            select(Tag).where(Tag.id.in_(tag_ids), Tag.user_id == user_id)
        )
        tags = {tag.id: tag for tag in result.scalars().all()}
        missing = [tag_id for tag_id in tag_ids if tag_id not in tags]
        if missing:
            raise ResourceNotFoundException("Tag", ", ".join(str(m) for m in missing))
        return [tags[tag_id] for tag_id in tag_ids]

    async def _ensure_name_available(
        self, db: AsyncSession, user_id: str, name: str, exclude_id: Optional[int] = None
    ) -> None:
        query = select(Tag.id).where(
            Tag.user_id == user_id, func.lower(Tag.name) == name.lower()
        )
        if exclude_id is not None:
            query = query.where(Tag.id != exclude_id)
        existing = (await db.execute(query)).scalar_one_or_none()
        if existing is not None:
            raise ConflictException(f"Tag '{name}' already exists")

    async def create_tag(self, db: AsyncSession, user_id: str, tag_data: TagCreate) -> Tag:
        """
        Create a tag for a user.

        Raises:
            ConflictException: If the user already has a tag with that name (any case)
        """
        await self._ensure_name_available(db, user_id, tag_data.name)

        tag = Tag(user_id=user_id, name=tag_data.name, color=tag_data.color)
        db.add(tag)
        try:
            await db.flush()
        except IntegrityError as e:
            # Lost a race against a concurrent create with the same name
            await db.rollback()
            raise ConflictException(f"Tag '{tag_data.name}' already exists") from e

        logger.info(f"Created tag '{tag.name}' for user: {user_id}")
        return tag

    async def update_tag(
        self, db: AsyncSession, tag_id: int, user_id: str, tag_data: TagUpdate
    ) -> Tag:
        """
        Rename or recolor a tag (partial update).

        Raises:
            ResourceNotFoundException: If the tag does not exist for the user
            ConflictException: If the new name is taken by another tag
        """
        tag = await self.get_tag(db, tag_id, user_id)
        if not tag:
            raise ResourceNotFoundException("Tag", tag_id)

        update_data = tag_data.model_dump(exclude_unset=True)
        if update_data.get("name") is None:
            update_data.pop("name", None)
        if "name" in update_data:
            await self._ensure_name_available(db, user_id, update_data["name"], exclude_id=tag_id)

        for field, value in update_data.items():
            setattr(tag, field, value)

        try:
            await db.flush()
        except IntegrityError as e:
            await db.rollback()
            raise ConflictException(f"Tag '{tag.name}' already exists") from e

        logger.info(f"Updated tag {tag_id} for user: {user_id}")
        return tag

    async def delete_tag(self, db: AsyncSession, tag_id: int, user_id: str) -> None:
        """
        Delete a tag; garments keep existing without it.

        Raises:
            ResourceNotFoundException: If the tag does not exist for the user
        """
        tag = await self.get_tag(db, tag_id, user_id)
        if not tag:
            raise ResourceNotFoundException("Tag", tag_id)

        await db.delete(tag)
        await db.flush()
        logger.info(f"Deleted tag {tag_id} for user: {user_id}")
