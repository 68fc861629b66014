"""
Draft store adapter.

Decides which record a partial edit belongs to and writes it as one
atomic batch. Layout per route (namespace is route_drafts or
saved_routes):

    {ns}/{id}                                  main record
    {ns}/{id}/data/segments                    segment list (metadata)
    {ns}/{id}/data/{pois,lines,photos,...}     fragment buckets
    {ns}/{id}/segments/{segId}/data/coords     encoded geometry
    {ns}/{id}/segments/{segId}/data/elevation
    {ns}/{id}/segments/{segId}/data/unpaved

Drafts merge incoming fragments into stored ones; saved routes take
the incoming content as-is (replace semantics).
"""

import logging
from typing import Any, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from routedrafts.features.fragments.merger import merge_by_id, merge_pois
from routedrafts.features.fragments.sanitizer import (
    sanitize_line_photo,
    sanitize_lines,
    sanitize_photos,
    sanitize_pois,
)
from routedrafts.features.geometry.codec import (
    decode_coordinates,
    decode_unpaved_sections,
    encode_coordinates,
    encode_unpaved_sections,
)
from routedrafts.features.media.materializer import MediaMaterializer
from routedrafts.features.user_index.repository import UserIndexRepository
from routedrafts.shared.constants import (
    DEFAULT_MASTER_ROUTE_DESCRIPTION,
    DEFAULT_SEGMENT_COLOR,
    DOC_COORDS,
    DOC_DESCRIPTION,
    DOC_ELEVATION,
    DOC_LINES,
    DOC_MASTER_ROUTE,
    DOC_PHOTOS,
    DOC_POIS,
    DOC_SEGMENTS,
    DOC_UNPAVED,
    DRAFTS_COLLECTION,
    NAMESPACE_FOR_KIND,
    SCHEMA_VERSION,
    DraftStatus,
    RouteKind,
    RouteType,
)
from routedrafts.shared.errors import EncodingError, InvalidState, NotFound, PermissionDenied
from routedrafts.shared.timeutils import utcnow
from routedrafts.store import DocumentStore, WriteBatch, doc_path
from .schemas import (
    SEGMENT_PROPERTY_FIELDS,
    LoadedRoute,
    RouteFragment,
    RouteRecord,
    RouteTarget,
    Segment,
    SegmentDeletion,
    validate_document,
)

logger = logging.getLogger(__name__)


def _data_doc(data: Any) -> dict:
    return {"schemaVersion": SCHEMA_VERSION, "data": data}


def _parse_route_type(value: Any) -> RouteType:
    try:
        return RouteType(value)
    except ValueError as e:
        raise EncodingError(f"Unknown route type: {value!r}") from e


class DraftStoreAdapter:
    """
    Reads and writes drafts and saved routes.

    Usage:
        adapter = DraftStoreAdapter(store, MediaMaterializer(client))
        target = await adapter.resolve_or_create(user_id, draft_id=hint)
        await adapter.commit_fragment(target, fragment, user_id)
        route = await adapter.load_route(target.route_id, target.kind)
    """

    def __init__(
        self,
        store: DocumentStore,
        materializer: Optional[MediaMaterializer] = None,
        index: Optional[UserIndexRepository] = None,
    ):
        self.store = store
        self.materializer = materializer or MediaMaterializer()
        self.index = index or UserIndexRepository(store)

    # =========================================================================
    # Paths
    # =========================================================================

    @staticmethod
    def main_path(kind: RouteKind, route_id: str) -> str:
        return doc_path(NAMESPACE_FOR_KIND[kind], route_id)

    @staticmethod
    def data_path(kind: RouteKind, route_id: str, name: str) -> str:
        return doc_path(NAMESPACE_FOR_KIND[kind], route_id, "data", name)

    @staticmethod
    def segment_path(kind: RouteKind, route_id: str, segment_id: str) -> str:
        return doc_path(NAMESPACE_FOR_KIND[kind], route_id, "segments", segment_id)

    @staticmethod
    def segment_data_path(
        kind: RouteKind, route_id: str, segment_id: str, name: str
    ) -> str:
        return doc_path(
            NAMESPACE_FOR_KIND[kind], route_id, "segments", segment_id, "data", name
        )

    # =========================================================================
    # Reads
    # =========================================================================

    async def _read_data(self, path: str, default: Any) -> Any:
        doc = await self.store.get(path)
        if doc is None:
            return default
        version = doc.get("schemaVersion", SCHEMA_VERSION)
        if version != SCHEMA_VERSION:
            raise EncodingError(f"{path}: unsupported schemaVersion {version}")
        data = doc.get("data")
        return default if data is None else data

    async def get_record(self, kind: RouteKind, route_id: str) -> Optional[RouteRecord]:
        path = self.main_path(kind, route_id)
        doc = await self.store.get(path)
        if doc is None:
            return None
        return validate_document(RouteRecord, doc, path)

    async def require_record(
        self, kind: RouteKind, route_id: str, owner_id: str
    ) -> RouteRecord:
        """Main record of a route owned by owner_id."""
        record = await self.get_record(kind, route_id)
        if record is None:
            raise NotFound(f"{kind.value} route {route_id} not found")
        if record.owner_id != owner_id:
            raise PermissionDenied(f"{kind.value} route {route_id} is not owned by {owner_id}")
        return record

    async def load_route(self, route_id: str, kind: RouteKind = RouteKind.DRAFT) -> LoadedRoute:
        """
        Reconstruct a full route with decoded geometry.

        Raises:
            NotFound: no main record
            EncodingError: a stored document fails validation
        """
        record = await self.get_record(kind, route_id)
        if record is None:
            raise NotFound(f"{kind.value} route {route_id} not found")

        metas = await self._read_data(self.data_path(kind, route_id, DOC_SEGMENTS), [])
        segments = []
        for meta in metas:
            segment_id = meta.get("segmentId") if isinstance(meta, dict) else None
            if not segment_id:
                raise EncodingError(f"Segment without segmentId in route {route_id}")

            coords = await self._read_data(
                self.segment_data_path(kind, route_id, segment_id, DOC_COORDS), []
            )
            elevation = await self._read_data(
                self.segment_data_path(kind, route_id, segment_id, DOC_ELEVATION), []
            )
            unpaved = await self._read_data(
                self.segment_data_path(kind, route_id, segment_id, DOC_UNPAVED), []
            )

            segments.append(validate_document(
                Segment,
                {
                    **meta,
                    "coordinates": decode_coordinates(coords),
                    "elevationSamples": elevation,
                    "unpavedSections": decode_unpaved_sections(unpaved),
                },
                self.segment_path(kind, route_id, segment_id),
            ))

        pois = await self._read_data(self.data_path(kind, route_id, DOC_POIS), {})

        return LoadedRoute(
            id=route_id,
            kind=kind,
            record=record,
            segments=segments,
            pois={
                "draggable": pois.get("draggable") or [],
                "places": pois.get("places") or [],
            },
            lines=await self._read_data(self.data_path(kind, route_id, DOC_LINES), []),
            photos=await self._read_data(self.data_path(kind, route_id, DOC_PHOTOS), []),
            description=await self._read_data(
                self.data_path(kind, route_id, DOC_DESCRIPTION), None
            ),
            master_route=await self._read_data(
                self.data_path(kind, route_id, DOC_MASTER_ROUTE), None
            ),
        )

    async def find_latest_draft(self, owner_id: str) -> Optional[str]:
        """Most recently updated pending draft of owner_id."""
        docs = await self.store.list_collection(
            DRAFTS_COLLECTION, owner_id=owner_id, newest_first=True
        )
        for doc in docs:
            if doc.data.get("status", DraftStatus.PENDING_ACTION.value) == DraftStatus.PENDING_ACTION.value:
                return doc.id
        return None

    async def count_pending_photos(self, target: RouteTarget) -> int:
        """Route and line photos still waiting for upload."""
        photos = await self._read_data(self.data_path(target.kind, target.route_id, DOC_PHOTOS), [])
        lines = await self._read_data(self.data_path(target.kind, target.route_id, DOC_LINES), [])
        line_photos = [p for line in lines for p in line.get("photos") or []]
        return sum(1 for p in [*photos, *line_photos] if p.get("pendingUpload"))

    # =========================================================================
    # Target resolution
    # =========================================================================

    async def _is_owned_draft(self, draft_id: str, owner_id: str) -> bool:
        record = await self.get_record(RouteKind.DRAFT, draft_id)
        if record is None or record.owner_id != owner_id:
            return False
        return record.status in (None, DraftStatus.PENDING_ACTION)

    async def resolve_target(
        self,
        owner_id: str,
        *,
        permanent_id: Optional[str] = None,
        draft_id: Optional[str] = None,
        session_draft_id: Optional[str] = None,
    ) -> Optional[RouteTarget]:
        """
        Pick the record an edit belongs to.

        Order: permanent id (always wins, ownership checked on commit),
        then the explicit draft id, then the id carried by the caller's
        session. Draft ids must exist and belong to owner_id, otherwise
        they are treated as absent.

        Returns:
            RouteTarget, or None when the caller must create a draft
        """
        if permanent_id:
            return RouteTarget(RouteKind.SAVED, permanent_id)

        for candidate in (draft_id, session_draft_id):
            if candidate and await self._is_owned_draft(candidate, owner_id):
                return RouteTarget(RouteKind.DRAFT, candidate)
            if candidate:
                logger.debug(f"Ignoring draft hint {candidate} for {owner_id}")

        return None

    def new_draft_target(self) -> RouteTarget:
        """Target for a draft that is created by the next commit."""
        return RouteTarget(RouteKind.DRAFT, self.store.new_id(), created=True)

    def _new_record(self, owner_id: str, now: str) -> dict:
        return {
            "schemaVersion": SCHEMA_VERSION,
            "ownerId": owner_id,
            "status": DraftStatus.PENDING_ACTION.value,
            "routeType": RouteType.SINGLE.value,
            "createdAt": now,
            "updatedAt": now,
        }

    async def resolve_or_create(
        self,
        owner_id: str,
        *,
        permanent_id: Optional[str] = None,
        draft_id: Optional[str] = None,
        session_draft_id: Optional[str] = None,
    ) -> RouteTarget:
        """
        Resolve a target or create an empty draft.

        The returned id is what the caller threads through later saves.
        """
        target = await self.resolve_target(
            owner_id,
            permanent_id=permanent_id,
            draft_id=draft_id,
            session_draft_id=session_draft_id,
        )
        if target is not None:
            return target

        target = self.new_draft_target()
        await self.store.set(
            self.main_path(target.kind, target.route_id),
            self._new_record(owner_id, utcnow().isoformat()),
        )
        logger.info(f"Created draft {target.route_id} for {owner_id}")
        return target

    # =========================================================================
    # Commit
    # =========================================================================

    def _base_main(self, target: RouteTarget, owner_id: str, now: str) -> dict:
        if target.created:
            return self._new_record(owner_id, now)
        return {"schemaVersion": SCHEMA_VERSION, "ownerId": owner_id, "updatedAt": now}

    async def _check_target(self, target: RouteTarget, owner_id: str) -> Optional[RouteRecord]:
        if target.created:
            return None
        return await self.require_record(target.kind, target.route_id, owner_id)

    async def commit_fragment(
        self, target: RouteTarget, fragment: RouteFragment, owner_id: str
    ) -> RouteTarget:
        """
        Write a fragment to target in one atomic batch.

        Encoding, merging and media uploads all happen before the batch
        is committed; an error in any of them leaves the store untouched.
        """
        await self._check_target(target, owner_id)

        now = utcnow().isoformat()
        replace = target.is_saved
        batch = self.store.batch()

        main = self._base_main(target, owner_id, now)
        main.update(fragment.model_dump(
            by_alias=True,
            exclude_none=True,
            mode="json",
            include={"name", "source_file_name", "statistics"},
        ))
        if fragment.header_settings is not None:
            main["headerSettings"] = await self.materializer.materialize_logo(
                fragment.header_settings
            )
        if fragment.route_type is not None:
            main["routeType"] = fragment.route_type.value
            await self._queue_master_route(batch, target, fragment.route_type)

        if fragment.segments:
            await self._queue_segments(batch, target, fragment.segments, now)
        if fragment.pois is not None:
            await self._queue_pois(batch, target, fragment.pois, replace)
        if fragment.lines is not None:
            await self._queue_lines(batch, target, fragment.lines, replace)
        if fragment.photos is not None:
            await self._queue_photos(batch, target, fragment.photos, replace)

        batch.set(self.main_path(target.kind, target.route_id), main, merge=True)

        if target.is_saved:
            fields = {"updatedAt": now}
            if fragment.name is not None:
                fields["name"] = fragment.name
            if fragment.statistics is not None:
                fields["statistics"] = fragment.statistics
            await self.index.refresh(owner_id, target.route_id, fields, batch=batch)

        await batch.commit()
        logger.info(
            f"Committed {len(batch)} writes to {target.kind.value} {target.route_id}"
            f"{' (new)' if target.created else ''}"
        )
        return target

    async def _queue_master_route(
        self, batch: WriteBatch, target: RouteTarget, route_type: RouteType
    ) -> None:
        path = self.data_path(target.kind, target.route_id, DOC_MASTER_ROUTE)
        if route_type == RouteType.BIKEPACKING:
            if await self.store.get(path) is None:
                batch.set(path, _data_doc({
                    "description": DEFAULT_MASTER_ROUTE_DESCRIPTION,
                    "statistics": {},
                }))
        else:
            batch.delete(path)

    def _queue_segment_geometry(
        self, batch: WriteBatch, target: RouteTarget, segment_id: str, segment: Segment
    ) -> None:
        coords = encode_coordinates(segment.coordinates, segment.elevation_samples)
        unpaved = encode_unpaved_sections(
            [section.to_doc() for section in segment.unpaved_sections],
            segment.coordinates,
        )
        kind, route_id = target.kind, target.route_id
        batch.set(self.segment_data_path(kind, route_id, segment_id, DOC_COORDS), _data_doc(coords))
        batch.set(
            self.segment_data_path(kind, route_id, segment_id, DOC_ELEVATION),
            _data_doc(list(segment.elevation_samples)),
        )
        batch.set(self.segment_data_path(kind, route_id, segment_id, DOC_UNPAVED), _data_doc(unpaved))

    async def _queue_segments(
        self, batch: WriteBatch, target: RouteTarget, segments: List[Segment], now: str
    ) -> None:
        path = self.data_path(target.kind, target.route_id, DOC_SEGMENTS)
        existing = [] if target.created else await self._read_data(path, [])
        previous = {m.get("segmentId"): m for m in existing}

        metas = []
        for segment in segments:
            segment_id = segment.segment_id or self.store.new_id()
            meta = segment.meta_doc()
            meta["segmentId"] = segment_id
            meta["addedAt"] = (
                (previous.get(segment_id) or {}).get("addedAt") or segment.added_at or now
            )
            meta.setdefault("color", DEFAULT_SEGMENT_COLOR)
            metas.append(meta)
            self._queue_segment_geometry(batch, target, segment_id, segment)

        batch.set(path, _data_doc(merge_by_id(existing, metas, key="segmentId")))

    async def _queue_pois(
        self, batch: WriteBatch, target: RouteTarget, pois: dict, replace: bool
    ) -> None:
        path = self.data_path(target.kind, target.route_id, DOC_POIS)
        existing = {} if replace or target.created else await self._read_data(path, {})
        batch.set(path, _data_doc(merge_pois(existing, sanitize_pois(pois), replace=replace)))

    async def _queue_lines(
        self, batch: WriteBatch, target: RouteTarget, lines: List[dict], replace: bool
    ) -> None:
        path = self.data_path(target.kind, target.route_id, DOC_LINES)
        clean = sanitize_lines(await self.materializer.materialize_lines(lines))
        existing = [] if replace or target.created else await self._read_data(path, [])
        batch.set(path, _data_doc(merge_by_id(existing, clean, replace=replace)))

    async def _queue_photos(
        self, batch: WriteBatch, target: RouteTarget, photos: List[dict], replace: bool
    ) -> None:
        path = self.data_path(target.kind, target.route_id, DOC_PHOTOS)
        clean = sanitize_photos(await self.materializer.materialize_photos(photos))
        existing = [] if replace or target.created else await self._read_data(path, [])
        batch.set(path, _data_doc(merge_by_id(existing, clean, replace=replace)))

    # =========================================================================
    # Bucket saves
    # =========================================================================

    async def save_pois(self, target: RouteTarget, pois: dict, owner_id: str) -> RouteTarget:
        return await self.commit_fragment(target, RouteFragment(pois=pois), owner_id)

    async def save_lines(self, target: RouteTarget, lines: List[dict], owner_id: str) -> RouteTarget:
        return await self.commit_fragment(target, RouteFragment(lines=lines), owner_id)

    async def save_photos(self, target: RouteTarget, photos: List[dict], owner_id: str) -> RouteTarget:
        return await self.commit_fragment(target, RouteFragment(photos=photos), owner_id)

    async def update_header_settings(
        self, target: RouteTarget, header_settings: dict, owner_id: str
    ) -> RouteTarget:
        """Store header settings after uploading a pending logo."""
        return await self.commit_fragment(
            target, RouteFragment(header_settings=header_settings), owner_id
        )

    async def save_description(
        self,
        target: RouteTarget,
        description: Optional[str],
        photos: Optional[List[dict]],
        owner_id: str,
    ) -> RouteTarget:
        """Write the route description and its photos."""
        await self._check_target(target, owner_id)

        now = utcnow().isoformat()
        materialized = await self.materializer.materialize_photos(photos or [])
        data = {
            "description": description or "",
            "photos": [sanitize_line_photo(p) for p in materialized],
        }

        main = self._base_main(target, owner_id, now)
        if target.is_saved:
            main["description"] = data["description"]

        batch = self.store.batch()
        batch.set(self.data_path(target.kind, target.route_id, DOC_DESCRIPTION), _data_doc(data))
        batch.set(self.main_path(target.kind, target.route_id), main, merge=True)
        await batch.commit()
        return target

    async def update_master_route(
        self,
        draft_id: str,
        description: Optional[str],
        statistics: Optional[dict],
        owner_id: str,
    ) -> dict:
        """
        Update the combined route of a Bikepacking draft.

        Raises:
            InvalidState: the draft is not a Bikepacking route
        """
        record = await self.require_record(RouteKind.DRAFT, draft_id, owner_id)
        if record.route_type != RouteType.BIKEPACKING.value:
            raise InvalidState(f"Draft {draft_id} is not a {RouteType.BIKEPACKING.value} route")

        path = self.data_path(RouteKind.DRAFT, draft_id, DOC_MASTER_ROUTE)
        data = {
            "description": DEFAULT_MASTER_ROUTE_DESCRIPTION,
            "statistics": {},
            **await self._read_data(path, {}),
        }
        if description is not None:
            data["description"] = description
        if statistics is not None:
            data["statistics"] = statistics

        batch = self.store.batch()
        batch.set(path, _data_doc(data))
        batch.set(
            self.main_path(RouteKind.DRAFT, draft_id),
            {"updatedAt": utcnow().isoformat()},
            merge=True,
        )
        await batch.commit()
        return data

    # =========================================================================
    # Segment edits
    # =========================================================================

    async def update_segment_properties(
        self,
        target: RouteTarget,
        segment_id: Optional[str],
        updates: dict,
        owner_id: str,
    ) -> Optional[dict]:
        """
        Merge property updates into one segment's metadata.

        routeType is applied to the main record instead (creating or
        removing the master route). For saved routes the index name is
        kept in sync when the route has one segment, or when the first
        segment carried the route's name.

        Returns:
            The updated segment metadata, or None if only routeType changed
        """
        record = await self.require_record(target.kind, target.route_id, owner_id)
        updates = dict(updates or {})
        route_type = updates.pop("routeType", None)
        props = {k: v for k, v in updates.items() if k in SEGMENT_PROPERTY_FIELDS}
        ignored = set(updates) - set(props)
        if ignored:
            logger.debug(f"Ignoring non-editable segment fields: {sorted(ignored)}")

        now = utcnow().isoformat()
        batch = self.store.batch()
        main = {"updatedAt": now}

        if route_type is not None:
            route_type = _parse_route_type(route_type)
            main["routeType"] = route_type.value
            await self._queue_master_route(batch, target, route_type)

        updated = None
        if props or (segment_id and route_type is None):
            if not segment_id:
                raise NotFound("Segment id required for segment property updates")

            path = self.data_path(target.kind, target.route_id, DOC_SEGMENTS)
            metas = await self._read_data(path, [])
            index = next(
                (i for i, m in enumerate(metas) if m.get("segmentId") == segment_id), None
            )
            if index is None:
                raise NotFound(f"Segment {segment_id} not found in route {target.route_id}")

            old = metas[index]
            updated = {**old, **props, "segmentId": old["segmentId"]}
            if isinstance(props.get("metadata"), dict):
                updated["metadata"] = {**(old.get("metadata") or {}), **props["metadata"]}
            metas = [*metas[:index], updated, *metas[index + 1:]]
            batch.set(path, _data_doc(metas))

            renames_route = "name" in props and (
                len(metas) == 1 or (index == 0 and old.get("name") == record.name)
            )
            if target.is_saved and renames_route:
                main["name"] = props["name"]

        batch.set(self.main_path(target.kind, target.route_id), main, merge=True)

        if target.is_saved:
            fields = {"updatedAt": now}
            if "name" in main:
                fields["name"] = main["name"]
            await self.index.refresh(owner_id, target.route_id, fields, batch=batch)

        await batch.commit()
        return updated

    async def delete_segment(
        self, draft_id: str, segment_id: str, owner_id: str
    ) -> SegmentDeletion:
        """
        Remove a segment from a draft.

        Removing the last segment deletes the whole draft.
        """
        await self.require_record(RouteKind.DRAFT, draft_id, owner_id)

        path = self.data_path(RouteKind.DRAFT, draft_id, DOC_SEGMENTS)
        metas = await self._read_data(path, [])
        remaining = [m for m in metas if m.get("segmentId") != segment_id]
        if len(remaining) == len(metas):
            raise NotFound(f"Segment {segment_id} not found in draft {draft_id}")

        batch = self.store.batch()
        if remaining:
            batch.set(path, _data_doc(remaining))
            batch.delete_tree(self.segment_path(RouteKind.DRAFT, draft_id, segment_id))
            batch.set(
                self.main_path(RouteKind.DRAFT, draft_id),
                {"updatedAt": utcnow().isoformat()},
                merge=True,
            )
        else:
            batch.delete_tree(self.main_path(RouteKind.DRAFT, draft_id))

        await batch.commit()

        if not remaining:
            logger.info(f"Last segment removed, deleted draft {draft_id}")

        return SegmentDeletion(
            draft_id=draft_id,
            remaining_segments=len(remaining),
            draft_deleted=not remaining,
        )

    # =========================================================================
    # Copy / delete
    # =========================================================================

    def queue_route_copy(self, batch: WriteBatch, target: RouteTarget, route: LoadedRoute) -> None:
        """Queue every sub-document of route under target (replace semantics)."""
        kind, route_id = target.kind, target.route_id

        batch.set(
            self.data_path(kind, route_id, DOC_SEGMENTS),
            _data_doc([segment.meta_doc() for segment in route.segments]),
        )
        for segment in route.segments:
            self._queue_segment_geometry(batch, target, segment.segment_id, segment)

        batch.set(
            self.data_path(kind, route_id, DOC_POIS),
            _data_doc(merge_pois({}, route.pois, replace=True)),
        )
        batch.set(
            self.data_path(kind, route_id, DOC_LINES),
            _data_doc(merge_by_id([], route.lines, replace=True)),
        )
        batch.set(
            self.data_path(kind, route_id, DOC_PHOTOS),
            _data_doc(merge_by_id([], route.photos, replace=True)),
        )
        if route.description is not None:
            batch.set(self.data_path(kind, route_id, DOC_DESCRIPTION), _data_doc(route.description))
        if route.master_route is not None:
            batch.set(self.data_path(kind, route_id, DOC_MASTER_ROUTE), _data_doc(route.master_route))

    async def delete_route(self, kind: RouteKind, route_id: str) -> bool:
        """
        Delete a route and all its sub-documents.

        Best-effort: store errors are logged and reported as False.
        """
        path = self.main_path(kind, route_id)
        try:
            removed = await self.store.delete_tree(path)
        except SQLAlchemyError as e:
            logger.warning(f"Failed to delete {path}: {e}")
            return False

        logger.info(f"Deleted {path} ({removed} documents)")
        return True
