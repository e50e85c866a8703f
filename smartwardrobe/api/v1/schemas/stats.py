"""
Wardrobe statistics schemas
"""
from pydantic import BaseModel, Field


class CategoryCount(BaseModel):
    category: str
    count: int


class MostWornItem(BaseModel):
    id: int
    name: str
    category: str
    usage_count: int


class StatsResponse(BaseModel):
    """
    Usage statistics for the authenticated user's wardrobe

    Attributes:
        total_items: Number of garments
        total_value: Sum of garment costs (0 when none are priced)
        category_breakdown: Garment count per category
        most_worn_items: Up to three garments with the highest usage count
    """
    total_items: int = Field(..., ge=0)
    total_value: float = Field(..., ge=0)
    category_breakdown: list[CategoryCount]
    most_worn_items: list[MostWornItem]
