"""
Garment schemas for request/response validation
Reference: https://fastapi.tiangolo.com/tutorial/body/
"""
from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from smartwardrobe.api.v1.schemas.tag import TagSummary
from smartwardrobe.models.garment import GarmentStatus


class GarmentBase(BaseModel):
    """Base schema with common Garment fields"""
    name: str = Field(..., min_length=1, max_length=200, description="Garment name")
    category: str = Field(..., min_length=1, max_length=50, description="Garment category (e.g., 'Shirts', 'Pants')")
    material: Optional[str] = Field(None, max_length=100, description="Material (e.g., 'cotton')")
    color: Optional[str] = Field(None, max_length=50, description="Main color")
    size: Optional[str] = Field(None, max_length=20, description="Size label (e.g., 'M', '32x34')")
    brand: Optional[str] = Field(None, max_length=100, description="Brand")
    purchase_date: Optional[date] = Field(None, description="Date of purchase")
    cost: Optional[float] = Field(None, ge=0, description="Purchase price")
    care_instructions: Optional[str] = Field(None, max_length=2000, description="Care instructions")
    status: Optional[GarmentStatus] = Field(None, description="Laundry status")
    notes: Optional[str] = Field(None, max_length=2000, description="Free-text notes")
    image_url: Optional[str] = Field(None, max_length=500, description="URL to garment photo")


class GarmentCreate(GarmentBase):
    """
    Schema for creating a new garment.

    Users can only create garments for themselves (user_id is set from authenticated user).

    Attributes:
        tag_ids: Optional list of tag IDs (must belong to the user)
        status: Defaults to CLEAN if not provided
    """
    tag_ids: list[int] = Field(default_factory=list, description="IDs of tags to attach")

    @field_validator('tag_ids')
    @classmethod
    def dedupe_tag_ids(cls, v: list[int]) -> list[int]:
        """Drop repeated tag IDs, keeping first occurrence order"""
        return list(dict.fromkeys(v))


class GarmentUpdate(BaseModel):
    """
    Schema for updating a garment.

    All fields are optional for partial updates. Passing tag_ids replaces the
    garment's tags.
    """
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    category: Optional[str] = Field(None, min_length=1, max_length=50)
    material: Optional[str] = Field(None, max_length=100)
    color: Optional[str] = Field(None, max_length=50)
    size: Optional[str] = Field(None, max_length=20)
    brand: Optional[str] = Field(None, max_length=100)
    purchase_date: Optional[date] = None
    cost: Optional[float] = Field(None, ge=0)
    care_instructions: Optional[str] = Field(None, max_length=2000)
    status: Optional[GarmentStatus] = None
    notes: Optional[str] = Field(None, max_length=2000)
    image_url: Optional[str] = Field(None, max_length=500)
    tag_ids: Optional[list[int]] = Field(None, description="Replaces the garment's tags when provided")

    @field_validator('name', 'category')
    @classmethod
    def reject_null(cls, v: Optional[str]) -> Optional[str]:
        """Required columns cannot be cleared"""
        if v is not None and not v.strip():
            raise ValueError("Value cannot be blank")
        return v

    @field_validator('tag_ids')
    @classmethod
    def dedupe_tag_ids(cls, v: Optional[list[int]]) -> Optional[list[int]]:
        if v is None:
            return v
        return list(dict.fromkeys(v))


class GarmentResponse(GarmentBase):
    """
    Schema for garment response.

    Includes all fields from GarmentBase plus database-generated fields.
    """
    id: int = Field(..., description="Garment ID")
    user_id: str = Field(..., description="User ID who owns this garment")
    status: GarmentStatus = Field(..., description="Laundry status")
    usage_count: int = Field(..., ge=0, description="Number of times the garment has been worn")
    last_worn_at: Optional[datetime] = Field(None, description="Timestamp when garment was last worn")
    tags: list[TagSummary] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
