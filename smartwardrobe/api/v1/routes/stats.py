"""
Wardrobe statistics routes
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from smartwardrobe.api.v1.schemas.auth import CurrentUser
from smartwardrobe.api.v1.schemas.stats import StatsResponse
from smartwardrobe.core.database import get_db
from smartwardrobe.core.dependencies import get_current_user
from smartwardrobe.services.stats import StatsService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/stats",
    tags=["stats"],
)


@router.get(
    "",
    response_model=StatsResponse,
    summary="Get wardrobe statistics",
    description="Totals, per-category counts and the most worn garments of the authenticated user.",
    status_code=status.HTTP_200_OK,
    responses={
        200: {"description": "Statistics retrieved successfully"},
        401: {"description": "Unauthorized - authentication required"},
        500: {"description": "Internal server error"},
    },
)
async def get_stats(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> StatsResponse:
    try:
        return await StatsService.get_stats(db, current_user.id)
    except Exception as e:
        logger.error(
            f"Unexpected error getting stats for user {current_user.id}: {type(e).__name__}: {e}",
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while retrieving statistics",
        ) from e
