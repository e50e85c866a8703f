"""
Collection schemas for request/response validation
Reference: https://fastapi.tiangolo.com/tutorial/body/
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from smartwardrobe.api.v1.schemas.garment import GarmentResponse
from smartwardrobe.api.v1.schemas.tag import HEX_COLOR_PATTERN
from smartwardrobe.core.exceptions import InvalidRuleException
from smartwardrobe.models.collection import RuleField, RuleOperator
from smartwardrobe.services.rule_engine import validate_rule


class CollectionRuleCreate(BaseModel):
    """
    A smart collection rule as submitted by the client.

    Attributes:
        field: Garment field to test (e.g., "category", "tags", "cost")
        operator: Comparison operator
        value: Comparison value; comma-separated candidates for IN
    """
    field: RuleField = Field(..., description="Garment field to test")
    operator: RuleOperator = Field(..., description="Comparison operator")
    value: str = Field(..., min_length=1, max_length=500, description="Comparison value")

    @model_validator(mode='after')
    def validate_rule_semantics(self) -> 'CollectionRuleCreate':
        """Reject rules the engine could not evaluate (blank values, non-numeric cost equality)"""
        try:
            validate_rule(self.field, self.operator, self.value)
        except InvalidRuleException as e:
            raise ValueError(e.message) from e
        return self


class CollectionRuleResponse(BaseModel):
    """Stored smart collection rule"""
    id: int
    field: str
    operator: str
    value: str

    model_config = ConfigDict(from_attributes=True)


class CollectionBase(BaseModel):
    """Base schema with common Collection fields"""
    name: str = Field(..., min_length=1, max_length=100, description="Collection name")
    description: Optional[str] = Field(None, max_length=1000, description="Collection description")
    color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN, description="Display color")
    image: Optional[str] = Field(None, max_length=500, description="Cover image URL")

    @field_validator('name')
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v


class CollectionCreate(CollectionBase):
    """
    Schema for creating a collection.

    Ordinary collections may be seeded with garment_ids.
    Smart collections take rules instead; their membership is computed.
    """
    is_smart_collection: bool = Field(False, description="Whether membership is rule-derived")
    rules: list[CollectionRuleCreate] = Field(default_factory=list)
    garment_ids: list[int] = Field(default_factory=list)

    @model_validator(mode='after')
    def check_membership_source(self) -> 'CollectionCreate':
        """A collection is either rule-derived or curated, never both"""
        if self.is_smart_collection and self.garment_ids:
            raise ValueError("Smart collections cannot be created with garment_ids")
        if not self.is_smart_collection and self.rules:
            raise ValueError("Rules are only allowed on smart collections")
        return self


class CollectionUpdate(BaseModel):
    """
    Schema for updating collection metadata.
    All fields are optional for partial updates.
    """
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)
    image: Optional[str] = Field(None, max_length=500)

    @field_validator('name')
    @classmethod
    def strip_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be blank")
        return v


class CollectionRulesUpdate(BaseModel):
    """Replacement rule set for a smart collection"""
    rules: list[CollectionRuleCreate] = Field(default_factory=list)


class CollectionGarmentsRequest(BaseModel):
    """Garments to add to or remove from an ordinary collection"""
    garment_ids: list[int] = Field(..., min_length=1, description="Garment IDs")

    @field_validator('garment_ids')
    @classmethod
    def dedupe(cls, v: list[int]) -> list[int]:
        return list(dict.fromkeys(v))


class CollectionResponse(CollectionBase):
    """
    Schema for collection response.

    Attributes:
        id: Collection ID
        user_id: Owner
        is_smart_collection: Whether membership is rule-derived
        rules: Rules (smart collections only)
        garments: Member garments, most recently added first
        garment_count: Number of members
    """
    id: int
    user_id: str
    is_smart_collection: bool
    rules: list[CollectionRuleResponse] = Field(default_factory=list)
    garments: list[GarmentResponse] = Field(default_factory=list)
    garment_count: int = Field(0, ge=0)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CollectionRefreshOutcome(BaseModel):
    """Result of refreshing one smart collection"""
    collection_id: int
    name: Optional[str] = None
    success: bool
    added: int = Field(0, ge=0, description="Garments added to the membership")
    removed: int = Field(0, ge=0, description="Garments removed from the membership")
    error: Optional[str] = None


class RefreshAllResponse(BaseModel):
    """Result of refreshing every smart collection of the user"""
    message: str
    refreshed_count: int
    failed_count: int
    results: list[CollectionRefreshOutcome]
    collections: list[CollectionResponse]
