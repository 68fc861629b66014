"""
Promotion coordinator.

Turns a draft into a saved route:

1. Load the full draft (NotFound / PermissionDenied fail the promotion)
2. Request a thumbnail from the media service (best-effort)
3. Write the saved route, its sub-documents and summary in one batch
4. Add the route to the owner's index (best-effort)
5. Delete the draft (best-effort; an orphaned draft is tolerated)

Steps 1-3 failing returns a failed Result with no value. Later
failures only add warnings: the route is already durably saved.

Also owns the operations that apply to saved routes afterwards
(read, update, delete).
"""

import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from routedrafts.features.drafts.repository import DraftStoreAdapter
from routedrafts.features.drafts.schemas import LoadedRoute, RouteTarget
from routedrafts.features.media.client import MediaServiceClient
from routedrafts.features.media.materializer import MediaMaterializer
from routedrafts.features.media.static_map import build_static_map_url
from routedrafts.features.summary.calculator import calculate_route_summary
from routedrafts.features.user_index.repository import UserIndexRepository
from routedrafts.features.user_index.schemas import UserIndexResponse
from routedrafts.shared.constants import SCHEMA_VERSION, RouteKind
from routedrafts.shared.errors import NotInitialized, PermissionDenied, RouteStoreError
from routedrafts.shared.result import Result, as_result
from routedrafts.shared.timeutils import utcnow
from routedrafts.store import DocumentStore

logger = logging.getLogger(__name__)

THUMBNAIL_MISSING = "thumbnail_missing"
INDEX_NOT_UPDATED = "index_not_updated"
DRAFT_CLEANUP_FAILED = "draft_cleanup_failed"

# Route-level fields editable on a saved route
SAVED_ROUTE_FIELDS = ("name", "isPublic", "tags", "description")

# Of those, the ones mirrored in the user index
INDEXED_FIELDS = ("name", "isPublic", "tags")


class PromotionCoordinator:
    """
    Promotes drafts and manages saved routes.

    Usage:
        coordinator = PromotionCoordinator(store, MediaServiceClient())
        result = await coordinator.promote_draft(draft_id, "Alps loop", user_id)
        if result.ok:
            saved_id = result.value
    """

    def __init__(
        self,
        store: Optional[DocumentStore],
        media_client: Optional[MediaServiceClient] = None,
    ):
        self.store = store
        self.media_client = media_client
        if store is not None:
            self.index = UserIndexRepository(store)
            self._adapter = DraftStoreAdapter(store, MediaMaterializer(media_client), self.index)
        else:
            self.index = None
            self._adapter = None

    @property
    def adapter(self) -> DraftStoreAdapter:
        if self._adapter is None:
            raise NotInitialized("Document store is not configured")
        return self._adapter

    # =========================================================================
    # Promotion
    # =========================================================================

    async def _request_thumbnail(self, route: LoadedRoute) -> Optional[dict]:
        """Upload a static map of the route; None when that is not possible."""
        if self.media_client is None:
            logger.warning(f"No media client, promoting {route.id} without thumbnail")
            return None

        url = build_static_map_url([segment.to_doc() for segment in route.segments])
        try:
            ref = await self.media_client.upload_remote(url)
        except RouteStoreError as e:
            logger.warning(f"Thumbnail for draft {route.id} failed: {e.message}")
            return None
        return ref.to_doc()

    @as_result("promote_draft")
    async def promote_draft(
        self,
        draft_id: str,
        display_name: Optional[str],
        owner_id: str,
        is_public: bool = False,
        tags: Optional[List[str]] = None,
    ) -> Result[str]:
        """
        Promote a draft to a saved route.

        Returns:
            Result holding the new saved route id; degraded when the
            thumbnail, index update or draft cleanup did not happen
        """
        route = await self.adapter.load_route(draft_id, RouteKind.DRAFT)
        if route.record.owner_id != owner_id:
            raise PermissionDenied(f"Draft {draft_id} is not owned by {owner_id}")

        warnings = []

        thumbnail_ref = await self._request_thumbnail(route)
        if thumbnail_ref is None:
            warnings.append(THUMBNAIL_MISSING)

        summary = calculate_route_summary([segment.to_doc() for segment in route.segments])
        statistics = summary.to_doc() if summary is not None else None

        saved_id = self.store.new_id()
        target = RouteTarget(RouteKind.SAVED, saved_id, created=True)
        now = utcnow().isoformat()
        name = display_name or route.record.name

        record = {
            "schemaVersion": SCHEMA_VERSION,
            "ownerId": owner_id,
            "routeType": route.record.route_type,
            "name": name,
            "sourceFileName": route.record.source_file_name,
            "headerSettings": route.record.header_settings,
            "isPublic": is_public,
            "tags": list(tags or []),
            "thumbnailRef": thumbnail_ref,
            "description": (route.description or {}).get("description"),
            "statistics": statistics,
            "promotedFrom": draft_id,
            "createdAt": now,
            "updatedAt": now,
        }

        batch = self.store.batch()
        batch.set(
            self.adapter.main_path(RouteKind.SAVED, saved_id),
            {k: v for k, v in record.items() if v is not None},
        )
        self.adapter.queue_route_copy(batch, target, route)
        await batch.commit()

        logger.info(
            f"Promoted draft {draft_id} to saved route {saved_id} "
            f"({len(route.segments)} segments)"
        )

        try:
            await self.index.upsert(owner_id, {
                "routeId": saved_id,
                "name": name,
                "thumbnailRef": thumbnail_ref,
                "statistics": statistics,
                "tags": record["tags"],
                "isPublic": is_public,
                "createdAt": now,
            })
        except (RouteStoreError, SQLAlchemyError) as e:
            logger.warning(f"Index update for {saved_id} failed: {e}")
            warnings.append(INDEX_NOT_UPDATED)

        if not await self.adapter.delete_route(RouteKind.DRAFT, draft_id):
            logger.warning(f"Draft {draft_id} left behind after promotion to {saved_id}")
            warnings.append(DRAFT_CLEANUP_FAILED)

        return Result.success(saved_id, warnings)

    # =========================================================================
    # Saved routes
    # =========================================================================

    @as_result("list_saved_routes")
    async def list_saved_routes(self, user_id: str) -> UserIndexResponse:
        """The user's index entries, most recently updated first."""
        if self.index is None:
            raise NotInitialized("Document store is not configured")
        entries = await self.index.list_entries(user_id)
        return UserIndexResponse(user_id=user_id, routes=entries)

    @as_result("load_saved_route")
    async def load_saved_route(self, route_id: str, user_id: str) -> LoadedRoute:
        """Owner, or anyone when the route is public."""
        route = await self.adapter.load_route(route_id, RouteKind.SAVED)
        if route.record.owner_id != user_id and not route.record.is_public:
            raise PermissionDenied(f"Saved route {route_id} is private")
        return route

    @as_result("delete_saved_route")
    async def delete_saved_route(self, route_id: str, owner_id: str) -> bool:
        """
        Delete a saved route and its index entry.

        A route that no longer exists is still removed from the index.
        """
        record = await self.adapter.get_record(RouteKind.SAVED, route_id)
        if record is None:
            logger.info(f"Saved route {route_id} already gone, cleaning index")
            await self.index.remove(owner_id, route_id)
            return True

        if record.owner_id != owner_id:
            raise PermissionDenied(f"Saved route {route_id} is not owned by {owner_id}")

        removed = await self.store.delete_tree(self.adapter.main_path(RouteKind.SAVED, route_id))
        await self.index.remove(owner_id, route_id)

        logger.info(f"Deleted saved route {route_id} ({removed} documents)")
        return True

    @as_result("update_saved_route")
    async def update_saved_route(
        self,
        route_id: str,
        updates: dict,
        owner_id: str,
        segment_id: Optional[str] = None,
    ) -> bool:
        """
        Update a saved route.

        With segment_id, updates go to that segment (see
        DraftStoreAdapter.update_segment_properties). Route-level
        fields (name, isPublic, tags, description) go to the main
        record and, except description, to the index entry.
        """
        target = RouteTarget(RouteKind.SAVED, route_id)
        updates = dict(updates or {})

        if segment_id:
            route_fields = {k: updates.pop(k) for k in ("isPublic", "tags") if k in updates}
            await self.adapter.update_segment_properties(target, segment_id, updates, owner_id)
        else:
            route_fields = {k: v for k, v in updates.items() if k in SAVED_ROUTE_FIELDS}
            await self.adapter.require_record(RouteKind.SAVED, route_id, owner_id)

        if not route_fields:
            return True

        now = utcnow().isoformat()
        batch = self.store.batch()
        batch.set(
            self.adapter.main_path(RouteKind.SAVED, route_id),
            {**route_fields, "updatedAt": now},
            merge=True,
        )
        indexed = {k: v for k, v in route_fields.items() if k in INDEXED_FIELDS}
        await self.index.refresh(owner_id, route_id, {**indexed, "updatedAt": now}, batch=batch)
        await batch.commit()

        logger.info(f"Updated saved route {route_id}: {sorted(route_fields)}")
        return True
