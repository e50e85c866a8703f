from typing import Optional
from pydantic import BaseModel, Field


class CurrentUser(BaseModel):
    """
    Authenticated caller, taken from a verified access token.

    Attributes:
        id: Subject (sub claim) of the token; scopes every wardrobe query
        session_id: Session ID (sid claim)
    """
    id: str = Field(..., min_length=1, description="User ID (token subject)")
    session_id: Optional[str] = Field(None, description="Session ID")
