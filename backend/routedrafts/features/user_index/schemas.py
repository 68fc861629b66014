"""User route index schemas."""

from typing import List, Optional

from pydantic import Field

from routedrafts.features.geometry.schemas import CamelModel


class UserIndexEntry(CamelModel):
    """Summary of one saved route inside the owner's index document."""

    route_id: str
    name: Optional[str] = None
    thumbnail_ref: Optional[dict] = None
    statistics: Optional[dict] = None
    tags: List[str] = Field(default_factory=list)
    is_public: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class UserIndexResponse(CamelModel):
    """All saved routes of a user."""

    user_id: str
    routes: List[UserIndexEntry] = Field(default_factory=list)
