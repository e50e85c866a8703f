"""
Collection routes
Handles ordinary and smart collections, membership and rule-driven refresh
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from smartwardrobe.api.v1.schemas.auth import CurrentUser
from smartwardrobe.api.v1.schemas.collection import (
    CollectionCreate,
    CollectionGarmentsRequest,
    CollectionRefreshOutcome,
    CollectionResponse,
    CollectionRulesUpdate,
    CollectionUpdate,
    RefreshAllResponse,
)
from smartwardrobe.core.database import get_db
from smartwardrobe.core.dependencies import get_current_user
from smartwardrobe.core.exceptions import ResourceNotFoundException, ValidationException
from smartwardrobe.services.collection import CollectionService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/collections",
    tags=["collections"],
)


@router.get(
    "",
    response_model=list[CollectionResponse],
    summary="Get collections",
    description="Get all collections of the authenticated user, newest first.",
    status_code=status.HTTP_200_OK,
    responses={
        200: {"description": "Collections retrieved successfully"},
        401: {"description": "Unauthorized - authentication required"},
        500: {"description": "Internal server error"},
    },
)
async def get_collections(
    smart_only: bool = Query(False, description="Only return smart collections"),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[CollectionResponse]:
    collection_service = CollectionService()
    try:
        collections = await collection_service.get_collections(
            db, current_user.id, smart_only=smart_only
        )
        logger.info(f"Retrieved {len(collections)} collections for user: {current_user.id}")
        return collections
    except Exception as e:
        logger.error(
            f"Unexpected error getting collections for user {current_user.id}: {type(e).__name__}: {e}",
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while retrieving collections",
        ) from e


@router.post(
    "",
    response_model=CollectionResponse,
    summary="Create collection",
    description=(
        "Create an ordinary collection (optionally seeded with garment_ids) or a smart "
        "collection whose membership is computed from its rules."
    ),
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {"description": "Collection created successfully"},
        400: {"description": "Invalid request data or invalid rule"},
        401: {"description": "Unauthorized - authentication required"},
        404: {"description": "Garment not found"},
        500: {"description": "Internal server error"},
    },
)
async def create_collection(
    collection_data: CollectionCreate,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CollectionResponse:
    collection_service = CollectionService()
    try:
        return await collection_service.create_collection(db, current_user.id, collection_data)
    except ResourceNotFoundException as e:
        logger.warning(f"Collection creation failed: {e.message}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message) from e
    except ValidationException as e:
        logger.warning(f"Collection creation failed: {e.message}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e
    except Exception as e:
        logger.error(
            f"Unexpected error creating collection for user {current_user.id}: {type(e).__name__}: {e}",
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while creating the collection",
        ) from e


# Declared before "/{collection_id}" routes so "smart" is not parsed as an ID
@router.post(
    "/smart/refresh",
    response_model=RefreshAllResponse,
    summary="Refresh all smart collections",
    description=(
        "Recompute the membership of every smart collection of the authenticated user. "
        "A collection that fails is reported in the results and left unchanged."
    ),
    status_code=status.HTTP_200_OK,
    responses={
        200: {"description": "Smart collections refreshed"},
        401: {"description": "Unauthorized - authentication required"},
        500: {"description": "Internal server error"},
    },
)
async def refresh_smart_collections(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> RefreshAllResponse:
    collection_service = CollectionService()
    try:
        result = await collection_service.refresh_all(db, current_user.id)
        collections = await collection_service.get_collections(
            db, current_user.id, smart_only=True
        )
        return RefreshAllResponse(
            message=f"Refreshed {result.refreshed_count} smart collections",
            refreshed_count=result.refreshed_count,
            failed_count=result.failed_count,
            results=[
                CollectionRefreshOutcome(
                    collection_id=outcome.collection_id,
                    name=outcome.name,
                    success=outcome.success,
                    added=outcome.added,
                    removed=outcome.removed,
                    error=outcome.error,
                )
                for outcome in result.outcomes
            ],
            collections=[CollectionResponse.model_validate(c) for c in collections],
        )
    except Exception as e:
        logger.error(
            f"Unexpected error refreshing smart collections for user {current_user.id}: {type(e).__name__}: {e}",
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while refreshing smart collections",
        ) from e


@router.get(
    "/{collection_id}",
    response_model=CollectionResponse,
    summary="Get collection",
    description="Get a collection with its rules and member garments.",
    status_code=status.HTTP_200_OK,
    responses={
        200: {"description": "Collection retrieved successfully"},
        401: {"description": "Unauthorized - authentication required"},
        404: {"description": "Collection not found"},
        500: {"description": "Internal server error"},
    },
)
async def get_collection(
    collection_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CollectionResponse:
    collection_service = CollectionService()
    try:
        collection = await collection_service.get_collection(db, collection_id, current_user.id)
        if not collection:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Collection not found"
            )
        return collection
    except HTTPException:
        raise
    except Exception as e:
        logger.error(
            f"Unexpected error getting collection {collection_id} for user {current_user.id}: {type(e).__name__}: {e}",
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while retrieving the collection",
        ) from e


@router.patch(
    "/{collection_id}",
    response_model=CollectionResponse,
    summary="Update collection",
    description="Update collection metadata. Membership and rules have their own endpoints.",
    status_code=status.HTTP_200_OK,
    responses={
        200: {"description": "Collection updated successfully"},
        401: {"description": "Unauthorized - authentication required"},
        404: {"description": "Collection not found"},
        500: {"description": "Internal server error"},
    },
)
async def update_collection(
    collection_id: int,
    collection_data: CollectionUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CollectionResponse:
    collection_service = CollectionService()
    try:
        return await collection_service.update_collection(
            db, collection_id, current_user.id, collection_data
        )
    except ResourceNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message) from e
    except Exception as e:
        logger.error(
            f"Unexpected error updating collection {collection_id} for user {current_user.id}: {type(e).__name__}: {e}",
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while updating the collection",
        ) from e


@router.delete(
    "/{collection_id}",
    summary="Delete collection",
    description="Delete a collection. Its garments are not deleted.",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        204: {"description": "Collection deleted successfully"},
        401: {"description": "Unauthorized - authentication required"},
        404: {"description": "Collection not found"},
        500: {"description": "Internal server error"},
    },
)
async def delete_collection(
    collection_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> None:
    collection_service = CollectionService()
    try:
        await collection_service.delete_collection(db, collection_id, current_user.id)
        return None
    except ResourceNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message) from e
    except Exception as e:
        logger.error(
            f"Unexpected error deleting collection {collection_id} for user {current_user.id}: {type(e).__name__}: {e}",
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while deleting the collection",
        ) from e


@router.post(
    "/{collection_id}/garments",
    response_model=CollectionResponse,
    summary="Add garments to collection",
    description="Add garments to an ordinary collection. Existing members are skipped.",
    status_code=status.HTTP_200_OK,
    responses={
        200: {"description": "Garments added successfully"},
        400: {"description": "Collection is a smart collection"},
        401: {"description": "Unauthorized - authentication required"},
        404: {"description": "Collection or garment not found"},
        500: {"description": "Internal server error"},
    },
)
async def add_garments(
    collection_id: int,
    request: CollectionGarmentsRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CollectionResponse:
    collection_service = CollectionService()
    try:
        return await collection_service.add_garments(
            db, collection_id, request.garment_ids, current_user.id
        )
    except ResourceNotFoundException as e:
        logger.warning(f"Adding garments to collection {collection_id} failed: {e.message}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message) from e
    except ValidationException as e:
        logger.warning(f"Adding garments to collection {collection_id} failed: {e.message}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e
    except Exception as e:
        logger.error(
            f"Unexpected error adding garments to collection {collection_id} for user {current_user.id}: {type(e).__name__}: {e}",
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while adding garments to the collection",
        ) from e


@router.delete(
    "/{collection_id}/garments",
    response_model=CollectionResponse,
    summary="Remove garments from collection",
    description="Remove garments from an ordinary collection. IDs that are not members are ignored.",
    status_code=status.HTTP_200_OK,
    responses={
        200: {"description": "Garments removed successfully"},
        400: {"description": "Collection is a smart collection"},
        401: {"description": "Unauthorized - authentication required"},
        404: {"description": "Collection not found"},
        500: {"description": "Internal server error"},
    },
)
async def remove_garments(
    collection_id: int,
    request: CollectionGarmentsRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CollectionResponse:
    collection_service = CollectionService()
    try:
        return await collection_service.remove_garments(
            db, collection_id, request.garment_ids, current_user.id
        )
    except ResourceNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message) from e
    except ValidationException as e:
        logger.warning(f"Removing garments from collection {collection_id} failed: {e.message}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e
    except Exception as e:
        logger.error(
            f"Unexpected error removing garments from collection {collection_id} for user {current_user.id}: {type(e).__name__}: {e}",
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while removing garments from the collection",
        ) from e


@router.put(
    "/{collection_id}/rules",
    response_model=CollectionResponse,
    summary="Replace smart collection rules",
    description="Replace all rules of a smart collection and recompute its membership.",
    status_code=status.HTTP_200_OK,
    responses={
        200: {"description": "Rules replaced and membership refreshed"},
        400: {"description": "Invalid rule or collection is not a smart collection"},
        401: {"description": "Unauthorized - authentication required"},
        404: {"description": "Collection not found"},
        500: {"description": "Internal server error"},
    },
)
async def replace_rules(
    collection_id: int,
    request: CollectionRulesUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CollectionResponse:
    collection_service = CollectionService()
    try:
        return await collection_service.replace_rules(
            db, collection_id, request.rules, current_user.id
        )
    except ResourceNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message) from e
    except ValidationException as e:
        logger.warning(f"Replacing rules of collection {collection_id} failed: {e.message}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e
    except Exception as e:
        logger.error(
            f"Unexpected error replacing rules of collection {collection_id} for user {current_user.id}: {type(e).__name__}: {e}",
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while replacing collection rules",
        ) from e


@router.post(
    "/{collection_id}/refresh",
    response_model=CollectionResponse,
    summary="Refresh smart collection",
    description="Recompute the membership of one smart collection from its rules.",
    status_code=status.HTTP_200_OK,
    responses={
        200: {"description": "Collection refreshed"},
        400: {"description": "Collection is not a smart collection or has an invalid rule"},
        401: {"description": "Unauthorized - authentication required"},
        404: {"description": "Collection not found"},
        500: {"description": "Internal server error"},
    },
)
async def refresh_collection(
    collection_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CollectionResponse:
    collection_service = CollectionService()
    try:
        await collection_service.refresh(db, collection_id, current_user.id)
        return await collection_service.get_collection(db, collection_id, current_user.id)
    except ResourceNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message) from e
    except ValidationException as e:
        logger.warning(f"Refreshing collection {collection_id} failed: {e.message}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e
    except Exception as e:
        logger.error(
            f"Unexpected error refreshing collection {collection_id} for user {current_user.id}: {type(e).__name__}: {e}",
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while refreshing the collection",
        ) from e
