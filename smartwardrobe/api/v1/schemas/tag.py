"""
Tag schemas for request/response validation
Reference: https://fastapi.tiangolo.com/tutorial/body/
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


HEX_COLOR_PATTERN = r"^#(?:[0-9a-fA-F]{3}){1,2}$"


class TagBase(BaseModel):
    """Base schema with common Tag fields"""
    name: str = Field(..., min_length=1, max_length=50, description="Tag name (unique per user, case-insensitive)")
    color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN, description="Display color (e.g., '#F59E0B')")

    @field_validator('name')
    @classmethod
    def strip_name(cls, v: str) -> str:
        """Reject names that are only whitespace"""
        v = v.strip()
        if not v:
            raise ValueError("Tag name cannot be blank")
        return v


class TagCreate(TagBase):
    """Schema for creating a tag"""
    pass


class TagUpdate(BaseModel):
    """
    Schema for updating a tag.
    All fields are optional for partial updates.
    """
    name: Optional[str] = Field(None, min_length=1, max_length=50, description="Tag name")
    color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN, description="Display color")

    @field_validator('name')
    @classmethod
    def strip_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Tag name cannot be blank")
        return v


class TagSummary(BaseModel):
    """Tag as embedded in garment responses"""
    id: int
    name: str
    color: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class TagResponse(TagSummary):
    """
    Schema for tag response.

    Attributes:
        id: Tag ID
        user_id: Owner
        name: Tag name
        color: Display color
        garment_count: Number of garments carrying the tag
        created_at: Timestamp when the tag was created
    """
    user_id: str
    garment_count: int = Field(0, ge=0, description="Number of garments carrying the tag")
    created_at: datetime
