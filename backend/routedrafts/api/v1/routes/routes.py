"""
Route Routes

Read a draft or saved route and write its fragment buckets.
Drafts merge incoming POIs/lines/photos; saved routes replace them.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from routedrafts.api.v1.deps import (
    OperationResponse,
    get_current_user_id,
    get_draft_service,
    get_promotion_coordinator,
    to_response,
)
from routedrafts.features.drafts import DraftService
from routedrafts.features.fragments import LineFragment, PhotoRef, POIBuckets
from routedrafts.features.promotion import PromotionCoordinator
from routedrafts.shared.constants import RouteKind

router = APIRouter()


def _target_ids(kind: RouteKind, route_id: str) -> dict:
    if kind == RouteKind.SAVED:
        return {"permanent_id": route_id}
    return {"draft_id": route_id}


@router.get("/{kind}/{route_id}", response_model=OperationResponse)
async def load_route(
    kind: RouteKind,
    route_id: str,
    user_id: str = Depends(get_current_user_id),
    service: DraftService = Depends(get_draft_service),
    coordinator: PromotionCoordinator = Depends(get_promotion_coordinator),
):
    """Full route with decoded geometry."""
    if kind == RouteKind.SAVED:
        return to_response(await coordinator.load_saved_route(route_id, user_id))
    return to_response(await service.load_route(route_id, user_id, kind))


@router.put("/{kind}/{route_id}/pois", response_model=OperationResponse)
async def save_pois(
    kind: RouteKind,
    route_id: str,
    pois: POIBuckets,
    user_id: str = Depends(get_current_user_id),
    service: DraftService = Depends(get_draft_service),
):
    result = await service.merge_pois(pois.to_doc(), user_id, **_target_ids(kind, route_id))
    return to_response(result)


@router.put("/{kind}/{route_id}/lines", response_model=OperationResponse)
async def save_lines(
    kind: RouteKind,
    route_id: str,
    lines: List[LineFragment],
    user_id: str = Depends(get_current_user_id),
    service: DraftService = Depends(get_draft_service),
):
    result = await service.merge_lines(
        [line.to_doc() for line in lines], user_id, **_target_ids(kind, route_id)
    )
    return to_response(result)


@router.put("/{kind}/{route_id}/photos", response_model=OperationResponse)
async def save_photos(
    kind: RouteKind,
    route_id: str,
    photos: List[PhotoRef],
    user_id: str = Depends(get_current_user_id),
    service: DraftService = Depends(get_draft_service),
):
    result = await service.merge_photos(
        [photo.to_doc() for photo in photos], user_id, **_target_ids(kind, route_id)
    )
    return to_response(result)


@router.put("/{kind}/{route_id}/header-settings", response_model=OperationResponse)
async def update_header_settings(
    kind: RouteKind,
    route_id: str,
    header_settings: Dict[str, Any],
    user_id: str = Depends(get_current_user_id),
    service: DraftService = Depends(get_draft_service),
):
    """Store header settings; a raw logo is uploaded first."""
    result = await service.update_header_settings(
        header_settings, user_id, **_target_ids(kind, route_id)
    )
    return to_response(result)
