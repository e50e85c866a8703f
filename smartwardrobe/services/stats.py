"""
Wardrobe statistics service
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from smartwardrobe.api.v1.schemas.stats import CategoryCount, MostWornItem, StatsResponse
from smartwardrobe.models.garment import Garment

logger = logging.getLogger(__name__)

MOST_WORN_LIMIT = 3


class StatsService:
    """Aggregates over a user's garments"""

    @staticmethod
    async def get_stats(db: AsyncSession, user_id: str) -> StatsResponse:
        """
        Compute usage statistics for a user.

        Args:
            db: Database session
            user_id: User ID (statistics only cover the user's own garments)

        Returns:
            StatsResponse with totals, per-category counts and the most worn garments
        """
        totals = (
            await db.execute(
                select(func.count(Garment.id), func.coalesce(func.sum(Garment.cost), 0)).where(
                    Garment.user_id == user_id
                )
            )
        ).one()

        categories = await db.execute(
            select(Garment.category, func.count(Garment.id))
            .where(Garment.user_id == user_id)
            .group_by(Garment.category)
            .order_by(func.count(Garment.id).desc(), Garment.category)
        )

        most_worn = await db.execute(
            select(Garment.id, Garment.name, Garment.category, Garment.usage_count)
            .where(Garment.user_id == user_id)
            .order_by(Garment.usage_count.desc(), Garment.id)
            .limit(MOST_WORN_LIMIT)
        )

        return StatsResponse(
            total_items=totals[0],
            total_value=float(totals[1] or 0),
            category_breakdown=[
                CategoryCount(category=category, count=count)
                for category, count in categories.all()
            ],
            most_worn_items=[
                MostWornItem(id=garment_id, name=name, category=category, usage_count=usage_count)
                for garment_id, name, category, usage_count in most_worn.all()
            ],
        )
