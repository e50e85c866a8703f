"""
Database models
All SQLAlchemy models should be defined here or imported here
"""

from smartwardrobe.core.database import Base
from smartwardrobe.models.collection import (
    Collection,
    CollectionGarment,
    CollectionRule,
    RuleField,
    RuleOperator,
)
from smartwardrobe.models.garment import Garment, GarmentStatus, garment_tags
from smartwardrobe.models.tag import Tag

__all__ = [
    "Base",
    "Collection",
    "CollectionGarment",
    "CollectionRule",
    "Garment",
    "GarmentStatus",
    "RuleField",
    "RuleOperator",
    "Tag",
    "garment_tags",
]
