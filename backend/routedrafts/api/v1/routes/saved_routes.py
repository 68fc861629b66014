"""
Saved Route Routes

Update and delete promoted routes.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from routedrafts.api.v1.deps import (
    OperationResponse,
    get_current_user_id,
    get_promotion_coordinator,
    to_response,
)
from routedrafts.features.promotion import PromotionCoordinator

router = APIRouter()


# === Schemas ===

class UpdateSavedRouteRequest(BaseModel):
    """
    Update of a saved route.

    With segment_id the updates apply to that segment; otherwise to
    route-level fields (name, isPublic, tags, description).
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    segment_id: Optional[str] = None
    updates: Dict[str, Any] = Field(default_factory=dict)


# === Endpoints ===

@router.patch("/{route_id}", response_model=OperationResponse)
async def update_saved_route(
    route_id: str,
    request: UpdateSavedRouteRequest,
    user_id: str = Depends(get_current_user_id),
    coordinator: PromotionCoordinator = Depends(get_promotion_coordinator),
):
    result = await coordinator.update_saved_route(
        route_id, request.updates, user_id, segment_id=request.segment_id
    )
    return to_response(result)


@router.delete("/{route_id}", response_model=OperationResponse)
async def delete_saved_route(
    route_id: str,
    user_id: str = Depends(get_current_user_id),
    coordinator: PromotionCoordinator = Depends(get_promotion_coordinator),
):
    """Delete a saved route; an already missing route only leaves the index."""
    return to_response(await coordinator.delete_saved_route(route_id, user_id))
