"""
User index repository.

Each user has one index document holding a summary entry per saved
route:

    user_route_index/{userId} = {userId, routes: [UserIndexEntry], ...}

The whole array is rewritten on every change. There is no locking:
two concurrent promotions for one user can race and the later write
wins.
"""

import logging
from typing import List, Optional, Tuple

from routedrafts.shared.constants import SCHEMA_VERSION, USER_INDEX_COLLECTION
from routedrafts.shared.errors import EncodingError
from routedrafts.shared.timeutils import utcnow
from routedrafts.store import DocumentStore, WriteBatch, doc_path
from .schemas import UserIndexEntry

logger = logging.getLogger(__name__)


def _without_updated_at(entry: dict) -> dict:
    return {k: v for k, v in entry.items() if k != "updatedAt"}


class UserIndexRepository:
    """
    Maintains per-user route index documents.

    Usage:
        index = UserIndexRepository(store)
        await index.upsert(user_id, {"routeId": rid, "name": "Alps"})
        await index.remove(user_id, rid)
    """

    def __init__(self, store: DocumentStore):
        self.store = store

    @staticmethod
    def path(user_id: str) -> str:
        return doc_path(USER_INDEX_COLLECTION, user_id)

    async def _read(self, user_id: str) -> Tuple[Optional[dict], List[dict]]:
        doc = await self.store.get(self.path(user_id))
        if doc is None:
            return None, []
        routes = doc.get("routes") or []
        if not isinstance(routes, list):
            raise EncodingError(f"Index document of {user_id} has no route list")
        return doc, routes

    def _document(self, user_id: str, doc: Optional[dict], routes: List[dict]) -> dict:
        now = utcnow().isoformat()
        return {
            "schemaVersion": SCHEMA_VERSION,
            "userId": user_id,
            "routes": routes,
            "createdAt": (doc or {}).get("createdAt") or now,
            "updatedAt": now,
        }

    # =========================================================================
    # Upsert / remove
    # =========================================================================

    def _apply_upsert(self, routes: List[dict], entry: dict) -> Tuple[List[dict], bool]:
        """Return the new array and whether anything changed."""
        route_id = entry["routeId"]
        now = utcnow().isoformat()

        for index, old in enumerate(routes):
            if old.get("routeId") != route_id:
                continue
            candidate = {**old, **entry, "routeId": route_id}
            candidate["createdAt"] = old.get("createdAt") or entry.get("createdAt") or now
            if _without_updated_at(candidate) == _without_updated_at(old):
                return routes, False
            candidate["updatedAt"] = now
            return [*routes[:index], candidate, *routes[index + 1:]], True

        new_entry = {
            **entry,
            "routeId": route_id,
            "createdAt": entry.get("createdAt") or now,
            "updatedAt": now,
        }
        return [*routes, new_entry], True

    async def upsert(self, user_id: str, entry: dict) -> dict:
        """
        Insert or update the entry for entry["routeId"].

        An existing entry keeps its createdAt. Re-sending identical data
        is a no-op.

        Returns:
            The stored entry
        """
        if not entry.get("routeId"):
            raise EncodingError("Index entry needs a routeId")

        doc, routes = await self._read(user_id)
        routes, changed = self._apply_upsert(routes, entry)
        if changed:
            await self.store.set(self.path(user_id), self._document(user_id, doc, routes))
            logger.info(f"Index of {user_id}: upserted route {entry['routeId']}")

        return next(r for r in routes if r.get("routeId") == entry["routeId"])

    async def remove(self, user_id: str, route_id: str) -> bool:
        """
        Drop the entry for route_id.

        Removing an id that is not indexed succeeds without writing.

        Returns:
            True if an entry was removed
        """
        doc, routes = await self._read(user_id)
        remaining = [r for r in routes if r.get("routeId") != route_id]
        if len(remaining) == len(routes):
            logger.debug(f"Index of {user_id}: route {route_id} not indexed")
            return False

        await self.store.set(self.path(user_id), self._document(user_id, doc, remaining))
        logger.info(f"Index of {user_id}: removed route {route_id}")
        return True

    async def refresh(
        self,
        user_id: str,
        route_id: str,
        fields: dict,
        batch: Optional[WriteBatch] = None,
    ) -> bool:
        """
        Update fields of an existing entry only; missing entries are left alone.

        With a batch, the write is queued instead of applied.
        """
        doc, routes = await self._read(user_id)
        if not any(r.get("routeId") == route_id for r in routes):
            return False

        routes, changed = self._apply_upsert(routes, {**fields, "routeId": route_id})
        if not changed:
            return False

        new_doc = self._document(user_id, doc, routes)
        if batch is not None:
            batch.set(self.path(user_id), new_doc)
        else:
            await self.store.set(self.path(user_id), new_doc)
        return True

    # =========================================================================
    # Read
    # =========================================================================

    async def get_entry(self, user_id: str, route_id: str) -> Optional[dict]:
        _, routes = await self._read(user_id)
        return next((r for r in routes if r.get("routeId") == route_id), None)

    async def list_entries(self, user_id: str) -> List[UserIndexEntry]:
        """All index entries of a user, most recently updated first."""
        _, routes = await self._read(user_id)
        entries = [UserIndexEntry.model_validate(r) for r in routes]
        return sorted(entries, key=lambda e: e.updated_at or "", reverse=True)
