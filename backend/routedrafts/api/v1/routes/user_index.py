"""
User Index Routes

The acting user's saved routes.
"""

from fastapi import APIRouter, Depends

from routedrafts.api.v1.deps import (
    get_current_user_id,
    get_promotion_coordinator,
    raise_for_error,
)
from routedrafts.features.promotion import PromotionCoordinator
from routedrafts.features.user_index import UserIndexResponse

router = APIRouter()


@router.get("/me/routes", response_model=UserIndexResponse)
async def list_my_routes(
    user_id: str = Depends(get_current_user_id),
    coordinator: PromotionCoordinator = Depends(get_promotion_coordinator),
):
    """Saved routes of the current user, most recently updated first."""
    result = await coordinator.list_saved_routes(user_id)
    raise_for_error(result)
    return result.value
