"""
Tag routes
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from smartwardrobe.api.v1.schemas.auth import CurrentUser
from smartwardrobe.api.v1.schemas.tag import TagCreate, TagResponse, TagUpdate
from smartwardrobe.core.database import get_db
from smartwardrobe.core.dependencies import get_current_user
from smartwardrobe.core.exceptions import ConflictException, ResourceNotFoundException
from smartwardrobe.services.tag import TagService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/tags",
    tags=["tags"],
)


@router.get(
    "",
    response_model=list[TagResponse],
    summary="Get tags",
    description="Get all tags of the authenticated user with garment counts.",
    status_code=status.HTTP_200_OK,
)
async def get_tags(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[TagResponse]:
    tag_service = TagService()
    try:
        tags = await tag_service.get_tags(db, current_user.id)
        return [
            TagResponse.model_validate(tag).model_copy(update={"garment_count": count})
            for tag, count in tags
        ]
    except Exception as e:
        logger.error(
            f"Unexpected error getting tags for user {current_user.id}: {type(e).__name__}: {e}",
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while retrieving tags",
        ) from e


@router.post(
    "",
    response_model=TagResponse,
    summary="Create tag",
    description="Create a tag. Names are unique per user regardless of case.",
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {"description": "Tag created successfully"},
        401: {"description": "Unauthorized - authentication required"},
        409: {"description": "Tag with this name already exists"},
        500: {"description": "Internal server error"},
    },
)
async def create_tag(
    tag_data: TagCreate,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> TagResponse:
    tag_service = TagService()
    try:
        tag = await tag_service.create_tag(db, current_user.id, tag_data)
        return TagResponse.model_validate(tag)
    except ConflictException as e:
        logger.warning(f"Tag creation failed: {e.message}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message) from e
    except Exception as e:
        logger.error(
            f"Unexpected error creating tag for user {current_user.id}: {type(e).__name__}: {e}",
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while creating the tag",
        ) from e


@router.patch(
    "/{tag_id}",
    response_model=TagResponse,
    summary="Update tag",
    description="Rename or recolor a tag.",
    status_code=status.HTTP_200_OK,
    responses={
        200: {"description": "Tag updated successfully"},
        401: {"description": "Unauthorized - authentication required"},
        404: {"description": "Tag not found"},
        409: {"description": "Tag with this name already exists"},
        500: {"description": "Internal server error"},
    },
)
async def update_tag(
    tag_id: int,
    tag_data: TagUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> TagResponse:
    tag_service = TagService()
    try:
        tag = await tag_service.update_tag(db, tag_id, current_user.id, tag_data)
        return TagResponse.model_validate(tag)
    except ResourceNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message) from e
    except ConflictException as e:
        logger.warning(f"Tag update failed: {e.message}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message) from e
    except Exception as e:
        logger.error(
            f"Unexpected error updating tag {tag_id} for user {current_user.id}: {type(e).__name__}: {e}",
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while updating the tag",
        ) from e


@router.delete(
    "/{tag_id}",
    summary="Delete tag",
    description="Delete a tag and detach it from every garment.",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        204: {"description": "Tag deleted successfully"},
        401: {"description": "Unauthorized - authentication required"},
        404: {"description": "Tag not found"},
        500: {"description": "Internal server error"},
    },
)
async def delete_tag(
    tag_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> None:
    tag_service = TagService()
    try:
        await tag_service.delete_tag(db, tag_id, current_user.id)
        return None
    except ResourceNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message) from e
    except Exception as e:
        logger.error(
            f"Unexpected error deleting tag {tag_id} for user {current_user.id}: {type(e).__name__}: {e}",
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while deleting the tag",
        ) from e
