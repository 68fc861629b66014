"""
Draft service.

Caller-facing draft operations. Every method returns a Result and
never raises store or media errors; ids are threaded explicitly:
callers pass the draft or saved-route id they hold and get back the
id the write landed in.

Usage:
    service = DraftService(SQLDocumentStore(db), MediaServiceClient())
    result = await service.save_route_fragment(fragment, user_id, draft_id=hint)
    if result.ok:
        hint = result.value.route_id
"""

import logging
from typing import List, Optional

from routedrafts.features.media.client import MediaServiceClient
from routedrafts.features.media.materializer import MediaMaterializer
from routedrafts.shared.constants import RouteKind
from routedrafts.shared.errors import NotInitialized, PermissionDenied
from routedrafts.shared.result import Result, as_result
from routedrafts.store import DocumentStore
from .repository import DraftStoreAdapter
from .schemas import LoadedRoute, RouteFragment, RouteTarget, SaveOutcome, SegmentDeletion

logger = logging.getLogger(__name__)

PHOTOS_PENDING = "photos_pending"
LOGO_PENDING = "logo_pending"


class DraftService:
    """Draft editing operations."""

    def __init__(
        self,
        store: Optional[DocumentStore],
        media_client: Optional[MediaServiceClient] = None,
    ):
        self._adapter = (
            DraftStoreAdapter(store, MediaMaterializer(media_client))
            if store is not None
            else None
        )

    @property
    def adapter(self) -> DraftStoreAdapter:
        if self._adapter is None:
            raise NotInitialized("Document store is not configured")
        return self._adapter

    async def _target(
        self,
        owner_id: str,
        permanent_id: Optional[str],
        draft_id: Optional[str],
        session_draft_id: Optional[str],
    ) -> RouteTarget:
        target = await self.adapter.resolve_target(
            owner_id,
            permanent_id=permanent_id,
            draft_id=draft_id,
            session_draft_id=session_draft_id,
        )
        return target or self.adapter.new_draft_target()

    # =========================================================================
    # Fragment saves
    # =========================================================================

    @as_result("save_route_fragment")
    async def save_route_fragment(
        self,
        fragment: RouteFragment,
        owner_id: str,
        draft_id: Optional[str] = None,
        permanent_id: Optional[str] = None,
        session_draft_id: Optional[str] = None,
    ) -> Result[SaveOutcome]:
        """Save segments and/or route fields, creating a draft if nothing resolves."""
        target = await self._target(owner_id, permanent_id, draft_id, session_draft_id)
        await self.adapter.commit_fragment(target, fragment, owner_id)
        return await self._outcome(target, fragment.photos, fragment.lines)

    @as_result("resolve_or_create")
    async def resolve_or_create(
        self,
        owner_id: str,
        draft_id: Optional[str] = None,
        permanent_id: Optional[str] = None,
        session_draft_id: Optional[str] = None,
    ) -> SaveOutcome:
        target = await self.adapter.resolve_or_create(
            owner_id,
            permanent_id=permanent_id,
            draft_id=draft_id,
            session_draft_id=session_draft_id,
        )
        return SaveOutcome.from_target(target)

    @as_result("import_gpx")
    async def import_gpx(
        self,
        content: bytes,
        filename: str,
        owner_id: str,
        draft_id: Optional[str] = None,
        session_draft_id: Optional[str] = None,
    ) -> SaveOutcome:
        """Parse a GPX file and add it as a new segment of the draft."""
        from routedrafts.features.gpx.parser import GPXImportService

        segment = GPXImportService.parse(content, filename)
        target = await self._target(owner_id, None, draft_id, session_draft_id)

        fragment = RouteFragment(
            segments=[segment],
            source_file_name=filename,
            name=segment.name if target.created else None,
        )

        await self.adapter.commit_fragment(target, fragment, owner_id)
        return SaveOutcome.from_target(target)

    @as_result("merge_pois")
    async def merge_pois(
        self,
        pois: dict,
        owner_id: str,
        draft_id: Optional[str] = None,
        permanent_id: Optional[str] = None,
        session_draft_id: Optional[str] = None,
    ) -> SaveOutcome:
        target = await self._target(owner_id, permanent_id, draft_id, session_draft_id)
        await self.adapter.save_pois(target, pois, owner_id)
        return SaveOutcome.from_target(target)

    @as_result("merge_lines")
    async def merge_lines(
        self,
        lines: List[dict],
        owner_id: str,
        draft_id: Optional[str] = None,
        permanent_id: Optional[str] = None,
        session_draft_id: Optional[str] = None,
    ) -> Result[SaveOutcome]:
        target = await self._target(owner_id, permanent_id, draft_id, session_draft_id)
        await self.adapter.save_lines(target, lines, owner_id)
        return await self._outcome(target, None, lines)

    @as_result("merge_photos")
    async def merge_photos(
        self,
        photos: List[dict],
        owner_id: str,
        draft_id: Optional[str] = None,
        permanent_id: Optional[str] = None,
        session_draft_id: Optional[str] = None,
    ) -> Result[SaveOutcome]:
        target = await self._target(owner_id, permanent_id, draft_id, session_draft_id)
        await self.adapter.save_photos(target, photos, owner_id)
        return await self._outcome(target, photos, None)

    @as_result("save_description")
    async def save_description(
        self,
        description: Optional[str],
        photos: Optional[List[dict]],
        owner_id: str,
        draft_id: Optional[str] = None,
        permanent_id: Optional[str] = None,
        session_draft_id: Optional[str] = None,
    ) -> SaveOutcome:
        target = await self._target(owner_id, permanent_id, draft_id, session_draft_id)
        await self.adapter.save_description(target, description, photos, owner_id)
        return SaveOutcome.from_target(target)

    @as_result("update_header_settings")
    async def update_header_settings(
        self,
        header_settings: dict,
        owner_id: str,
        draft_id: Optional[str] = None,
        permanent_id: Optional[str] = None,
        session_draft_id: Optional[str] = None,
    ) -> Result[SaveOutcome]:
        target = await self._target(owner_id, permanent_id, draft_id, session_draft_id)
        await self.adapter.update_header_settings(target, header_settings, owner_id)

        warnings = []
        record = await self.adapter.get_record(target.kind, target.route_id)
        stored = (record.header_settings or {}) if record else {}
        sent_logo = any(
            header_settings.get(k) for k in ("logoBlob", "logoFile", "logoData")
        )
        if sent_logo and not stored.get("logoPublicRef"):
            warnings.append(LOGO_PENDING)
        return Result.success(SaveOutcome.from_target(target), warnings)

    # =========================================================================
    # Draft edits
    # =========================================================================

    @as_result("update_segment_properties")
    async def update_segment_properties(
        self,
        route_id: str,
        segment_id: Optional[str],
        updates: dict,
        owner_id: str,
        kind: RouteKind = RouteKind.DRAFT,
    ) -> Optional[dict]:
        return await self.adapter.update_segment_properties(
            RouteTarget(kind, route_id), segment_id, updates, owner_id
        )

    @as_result("update_master_route")
    async def update_master_route(
        self,
        draft_id: str,
        owner_id: str,
        description: Optional[str] = None,
        statistics: Optional[dict] = None,
    ) -> dict:
        return await self.adapter.update_master_route(
            draft_id, description, statistics, owner_id
        )

    @as_result("delete_segment")
    async def delete_segment(
        self, draft_id: str, segment_id: str, owner_id: str
    ) -> SegmentDeletion:
        return await self.adapter.delete_segment(draft_id, segment_id, owner_id)

    # =========================================================================
    # Reads
    # =========================================================================

    @as_result("load_route")
    async def load_route(
        self,
        route_id: str,
        owner_id: str,
        kind: RouteKind = RouteKind.DRAFT,
    ) -> LoadedRoute:
        """
        Load a draft (owner only) or a saved route (owner, or anyone if public).
        """
        route = await self.adapter.load_route(route_id, kind)
        if route.record.owner_id == owner_id:
            return route
        if kind == RouteKind.SAVED and route.record.is_public:
            return route
        raise PermissionDenied(f"{kind.value} route {route_id} is not accessible to {owner_id}")

    @as_result("find_latest_draft")
    async def find_latest_draft(self, owner_id: str) -> Optional[str]:
        return await self.adapter.find_latest_draft(owner_id)

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _outcome(
        self,
        target: RouteTarget,
        photos: Optional[List[dict]],
        lines: Optional[List[dict]],
    ) -> Result[SaveOutcome]:
        """Flag saves whose photos could not all be uploaded."""
        warnings = []
        if photos or lines:
            pending = await self.adapter.count_pending_photos(target)
            if pending:
                logger.info(f"{pending} photos pending upload on {target.route_id}")
                warnings.append(PHOTOS_PENDING)
        return Result.success(SaveOutcome.from_target(target), warnings)
