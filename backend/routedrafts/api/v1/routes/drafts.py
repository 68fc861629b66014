"""
Draft Routes

Endpoints for building a route incrementally and promoting it.
Every save returns the id it landed in; clients send it back as
draftId (or sessionDraftId) on the next save.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from routedrafts.api.v1.deps import (
    OperationResponse,
    get_current_user_id,
    get_draft_service,
    get_promotion_coordinator,
    to_response,
)
from routedrafts.config import settings
from routedrafts.features.drafts import DraftService, RouteFragment
from routedrafts.features.fragments import PhotoRef
from routedrafts.features.promotion import PromotionCoordinator

router = APIRouter()


# === Schemas ===

class CamelRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TargetHints(CamelRequest):
    """Ids the client holds for the route being edited."""
    draft_id: Optional[str] = None
    permanent_id: Optional[str] = None
    session_draft_id: Optional[str] = None


class SaveFragmentRequest(TargetHints):
    """A route fragment plus where it should go."""
    fragment: RouteFragment


class DescriptionRequest(CamelRequest):
    description: Optional[str] = None
    photos: List[PhotoRef] = Field(default_factory=list)


class MasterRouteRequest(CamelRequest):
    description: Optional[str] = None
    statistics: Optional[Dict[str, Any]] = None


class PromoteRequest(CamelRequest):
    name: Optional[str] = None
    is_public: bool = False
    tags: List[str] = Field(default_factory=list)


# === Endpoints ===

@router.post("", response_model=OperationResponse)
async def resolve_or_create_draft(
    hints: TargetHints,
    user_id: str = Depends(get_current_user_id),
    service: DraftService = Depends(get_draft_service),
):
    """Resolve the route being edited, creating an empty draft if none."""
    result = await service.resolve_or_create(
        user_id,
        draft_id=hints.draft_id,
        permanent_id=hints.permanent_id,
        session_draft_id=hints.session_draft_id,
    )
    return to_response(result)


@router.post("/fragments", response_model=OperationResponse)
async def save_route_fragment(
    request: SaveFragmentRequest,
    user_id: str = Depends(get_current_user_id),
    service: DraftService = Depends(get_draft_service),
):
    """Save segments, route fields and fragment buckets in one write."""
    result = await service.save_route_fragment(
        request.fragment,
        user_id,
        draft_id=request.draft_id,
        permanent_id=request.permanent_id,
        session_draft_id=request.session_draft_id,
    )
    return to_response(result)


@router.post("/gpx", response_model=OperationResponse)
async def import_gpx(
    file: UploadFile = File(...),
    draft_id: Optional[str] = Form(None, alias="draftId"),
    session_draft_id: Optional[str] = Form(None, alias="sessionDraftId"),
    user_id: str = Depends(get_current_user_id),
    service: DraftService = Depends(get_draft_service),
):
    """
    Upload a GPX file as a new segment.

    Creates a draft when no draft id resolves.
    """
    if not file.filename or not file.filename.lower().endswith(".gpx"):
        raise HTTPException(status_code=400, detail="Only .gpx files are allowed")

    content = await file.read()

    if len(content) == 0:
        raise HTTPException(status_code=400, detail="File is empty")

    if len(content) > settings.max_gpx_size_mb * 1024 * 1024:
        raise HTTPException(
            status_code=400,
            detail=f"File too large (max {settings.max_gpx_size_mb}MB)"
        )

    result = await service.import_gpx(
        content,
        file.filename,
        user_id,
        draft_id=draft_id,
        session_draft_id=session_draft_id,
    )
    return to_response(result)


@router.get("/latest", response_model=OperationResponse)
async def get_latest_draft(
    user_id: str = Depends(get_current_user_id),
    service: DraftService = Depends(get_draft_service),
):
    """Id of the user's most recently edited draft (null if none)."""
    return to_response(await service.find_latest_draft(user_id))


@router.put("/{draft_id}/description", response_model=OperationResponse)
async def save_description(
    draft_id: str,
    request: DescriptionRequest,
    user_id: str = Depends(get_current_user_id),
    service: DraftService = Depends(get_draft_service),
):
    result = await service.save_description(
        request.description,
        [photo.to_doc() for photo in request.photos],
        user_id,
        draft_id=draft_id,
    )
    return to_response(result)


@router.put("/{draft_id}/master-route", response_model=OperationResponse)
async def update_master_route(
    draft_id: str,
    request: MasterRouteRequest,
    user_id: str = Depends(get_current_user_id),
    service: DraftService = Depends(get_draft_service),
):
    """Edit the combined route of a Bikepacking draft."""
    result = await service.update_master_route(
        draft_id,
        user_id,
        description=request.description,
        statistics=request.statistics,
    )
    return to_response(result)


@router.patch("/{draft_id}/segments/{segment_id}", response_model=OperationResponse)
async def update_segment_properties(
    draft_id: str,
    segment_id: str,
    updates: Dict[str, Any],
    user_id: str = Depends(get_current_user_id),
    service: DraftService = Depends(get_draft_service),
):
    """Edit segment name/color/metadata; routeType applies to the draft."""
    result = await service.update_segment_properties(draft_id, segment_id, updates, user_id)
    return to_response(result)


@router.delete("/{draft_id}/segments/{segment_id}", response_model=OperationResponse)
async def delete_segment(
    draft_id: str,
    segment_id: str,
    user_id: str = Depends(get_current_user_id),
    service: DraftService = Depends(get_draft_service),
):
    """Remove a segment; removing the last one deletes the draft."""
    return to_response(await service.delete_segment(draft_id, segment_id, user_id))


@router.post("/{draft_id}/promote", response_model=OperationResponse)
async def promote_draft(
    draft_id: str,
    request: PromoteRequest,
    user_id: str = Depends(get_current_user_id),
    coordinator: PromotionCoordinator = Depends(get_promotion_coordinator),
):
    """
    Promote a draft to a saved route.

    data holds the new saved route id. A degraded response means the
    route is saved but e.g. the thumbnail is missing.
    """
    result = await coordinator.promote_draft(
        draft_id,
        request.name,
        user_id,
        is_public=request.is_public,
        tags=request.tags,
    )
    return to_response(result)
