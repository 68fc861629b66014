"""
API dependencies.

The acting user arrives in the X-User-Id header, set by the
authentication layer in front of this service.
"""

from typing import Any, List, Optional

from fastapi import Depends, Header, HTTPException
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from routedrafts.config import settings
from routedrafts.db.session import get_async_db
from routedrafts.features.drafts import DraftService
from routedrafts.features.media import MediaServiceClient
from routedrafts.features.promotion import PromotionCoordinator
from routedrafts.shared.errors import ErrorKind
from routedrafts.shared.result import Result
from routedrafts.store import SQLDocumentStore

ERROR_STATUS = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.PERMISSION_DENIED: 403,
    ErrorKind.ENCODING_ERROR: 422,
    ErrorKind.INVALID_STATE: 409,
    ErrorKind.UPLOAD_FAILURE: 502,
    ErrorKind.NOT_INITIALIZED: 503,
    ErrorKind.STORE_ERROR: 500,
}


class OperationResponse(BaseModel):
    """Envelope for engine results; warnings mark a degraded success."""
    data: Any = None
    degraded: bool = False
    warnings: List[str] = Field(default_factory=list)


def raise_for_error(result: Result) -> None:
    """Raise the matching HTTPException for a failed Result."""
    if not result.ok:
        raise HTTPException(
            status_code=ERROR_STATUS.get(result.error, 500),
            detail={"error": result.error.value, "message": result.message},
        )


def to_response(result: Result) -> OperationResponse:
    raise_for_error(result)
    return OperationResponse(
        data=jsonable_encoder(result.value),
        degraded=result.degraded,
        warnings=result.warnings,
    )


async def get_current_user_id(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
) -> str:
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return x_user_id.strip()


def get_media_client() -> Optional[MediaServiceClient]:
    """Media client, or None when uploads are not configured."""
    if not settings.media_configured:
        return None
    return MediaServiceClient()


async def get_document_store(db: AsyncSession = Depends(get_async_db)) -> SQLDocumentStore:
    return SQLDocumentStore(db)


async def get_draft_service(
    store: SQLDocumentStore = Depends(get_document_store),
    media: Optional[MediaServiceClient] = Depends(get_media_client),
) -> DraftService:
    return DraftService(store, media)


async def get_promotion_coordinator(
    store: SQLDocumentStore = Depends(get_document_store),
    media: Optional[MediaServiceClient] = Depends(get_media_client),
) -> PromotionCoordinator:
    return PromotionCoordinator(store, media)

