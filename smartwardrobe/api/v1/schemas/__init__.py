"""
Pydantic schemas for API request/response models
"""

from smartwardrobe.api.v1.schemas.collection import (
    CollectionCreate,
    CollectionResponse,
    CollectionRuleCreate,
    CollectionUpdate,
)
from smartwardrobe.api.v1.schemas.garment import GarmentCreate, GarmentResponse, GarmentUpdate
from smartwardrobe.api.v1.schemas.tag import TagCreate, TagResponse, TagUpdate

__all__ = [
    "CollectionCreate",
    "CollectionResponse",
    "CollectionRuleCreate",
    "CollectionUpdate",
    "GarmentCreate",
    "GarmentResponse",
    "GarmentUpdate",
    "TagCreate",
    "TagResponse",
    "TagUpdate",
]
