"""
Garment routes
Handles CRUD operations for garments
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from smartwardrobe.api.v1.schemas.auth import CurrentUser
from smartwardrobe.api.v1.schemas.garment import GarmentCreate, GarmentResponse, GarmentUpdate
from smartwardrobe.core.database import get_db
from smartwardrobe.core.dependencies import get_current_user
from smartwardrobe.core.exceptions import ResourceNotFoundException, ValidationException
from smartwardrobe.models.garment import GarmentStatus
from smartwardrobe.services.garment import GarmentService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/garments",
    tags=["garments"],
)


@router.get(
    "",
    response_model=list[GarmentResponse],
    summary="Get garments",
    description="Get all garments for the authenticated user with optional filtering.",
    status_code=status.HTTP_200_OK,
    responses={
        200: {"description": "Garments retrieved successfully"},
        401: {"description": "Unauthorized - authentication required"},
        500: {"description": "Internal server error"},
    },
)
async def get_garments(
    category: Optional[str] = Query(None, description="Filter by category (case-insensitive)"),
    status_filter: Optional[GarmentStatus] = Query(
        None, alias="status", description="Filter by laundry status"
    ),
    tag: Optional[str] = Query(None, description="Filter by tag name (case-insensitive)"),
    search: Optional[str] = Query(
        None, min_length=1, description="Search name, category, color, brand and material"
    ),
    skip: int = Query(0, ge=0, description="Number of garments to skip (for pagination)"),
    limit: int = Query(100, ge=1, le=1000, description="Maximum number of garments to return"),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[GarmentResponse]:
    """
    Get garments for the authenticated user.

    **Authorization:**
    - Users can only access their own garments
    """
    garment_service = GarmentService()
    try:
        garments = await garment_service.get_garments(
            db,
            current_user.id,
            category=category,
            status=status_filter,
            tag=tag,
            search=search,
            skip=skip,
            limit=limit,
        )
        logger.info(f"Retrieved {len(garments)} garments for user: {current_user.id}")
        return garments
    except Exception as e:
        logger.error(
            f"Unexpected error getting garments for user {current_user.id}: {type(e).__name__}: {e}",
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while retrieving garments",
        ) from e


@router.get(
    "/{garment_id}",
    response_model=GarmentResponse,
    summary="Get garment",
    description="Get a specific garment by ID for the authenticated user.",
    status_code=status.HTTP_200_OK,
    responses={
        200: {"description": "Garment retrieved successfully"},
        401: {"description": "Unauthorized - authentication required"},
        404: {"description": "Garment not found"},
        500: {"description": "Internal server error"},
    },
)
async def get_garment(
    garment_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> GarmentResponse:
    """
    Get a specific garment by ID.

    Raises:
        HTTPException: 404 if garment not found or doesn't belong to user
    """
    garment_service = GarmentService()
    try:
        garment = await garment_service.get_garment(db, garment_id, current_user.id)
        if not garment:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Garment not found"
            )
        return garment
    except HTTPException:
        raise
    except Exception as e:
        logger.error(
            f"Unexpected error getting garment {garment_id} for user {current_user.id}: {type(e).__name__}: {e}",
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while retrieving the garment",
        ) from e


@router.post(
    "",
    response_model=GarmentResponse,
    summary="Create garment",
    description="Create a new garment for the authenticated user.",
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {"description": "Garment created successfully"},
        400: {"description": "Invalid request data or validation error"},
        401: {"description": "Unauthorized - authentication required"},
        404: {"description": "Tag not found"},
        500: {"description": "Internal server error"},
    },
)
async def create_garment(
    garment_data: GarmentCreate,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> GarmentResponse:
    """
    Create a new garment.

    **Defaults:**
    - status defaults to "CLEAN" if not provided
    - usage_count starts at 0
    """
    garment_service = GarmentService()
    try:
        return await garment_service.create_garment(db, current_user.id, garment_data)
    except ResourceNotFoundException as e:
        logger.warning(f"Garment creation failed: {e.message}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message) from e
    except ValidationException as e:
        logger.warning(f"Garment creation failed: {e.message}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e
    except Exception as e:
        logger.error(
            f"Unexpected error creating garment for user {current_user.id}: {type(e).__name__}: {e}",
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while creating the garment",
        ) from e


@router.patch(
    "/{garment_id}",
    response_model=GarmentResponse,
    summary="Update garment",
    description="Update a garment. All fields are optional for partial updates.",
    status_code=status.HTTP_200_OK,
    responses={
        200: {"description": "Garment updated successfully"},
        400: {"description": "Invalid request data or validation error"},
        401: {"description": "Unauthorized - authentication required"},
        404: {"description": "Garment or tag not found"},
        500: {"description": "Internal server error"},
    },
)
async def update_garment(
    garment_id: int,
    garment_data: GarmentUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> GarmentResponse:
    """
    Update a garment.

    Smart collections pick up the change on their next refresh.
    """
    garment_service = GarmentService()
    try:
        return await garment_service.update_garment(
            db, garment_id, current_user.id, garment_data
        )
    except ResourceNotFoundException as e:
        logger.warning(f"Garment update failed: {e.message}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message) from e
    except ValidationException as e:
        logger.warning(f"Garment update failed: {e.message}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e
    except Exception as e:
        logger.error(
            f"Unexpected error updating garment {garment_id} for user {current_user.id}: {type(e).__name__}: {e}",
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while updating the garment",
        ) from e


@router.delete(
    "/{garment_id}",
    summary="Delete garment",
    description="Delete a garment and remove it from every collection.",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        204: {"description": "Garment deleted successfully"},
        401: {"description": "Unauthorized - authentication required"},
        404: {"description": "Garment not found"},
        500: {"description": "Internal server error"},
    },
)
async def delete_garment(
    garment_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> None:
    garment_service = GarmentService()
    try:
        await garment_service.delete_garment(db, garment_id, current_user.id)
        return None
    except ResourceNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message) from e
    except Exception as e:
        logger.error(
            f"Unexpected error deleting garment {garment_id} for user {current_user.id}: {type(e).__name__}: {e}",
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while deleting the garment",
        ) from e


@router.post(
    "/{garment_id}/mark-worn",
    response_model=GarmentResponse,
    summary="Mark garment as worn",
    description="Increment usage_count and update last_worn_at.",
    status_code=status.HTTP_200_OK,
    responses={
        200: {"description": "Garment marked as worn successfully"},
        401: {"description": "Unauthorized - authentication required"},
        404: {"description": "Garment not found"},
        500: {"description": "Internal server error"},
    },
)
async def mark_garment_worn(
    garment_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> GarmentResponse:
    garment_service = GarmentService()
    try:
        return await garment_service.mark_garment_worn(db, garment_id, current_user.id)
    except ResourceNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message) from e
    except Exception as e:
        logger.error(
            f"Unexpected error marking garment {garment_id} as worn for user {current_user.id}: {type(e).__name__}: {e}",
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while marking the garment as worn",
        ) from e
