"""
Document store interface.

The engine treats its database as a key-path addressable document
store: documents live at slash-separated paths such as
``route_drafts/{id}/data/pois`` and hold JSON objects. Besides
single-document get/set/update/delete, the store supports atomic
batched writes.

Usage:
    batch = store.batch()
    batch.set(doc_path("route_drafts", draft_id), main, merge=True)
    batch.set(doc_path("route_drafts", draft_id, "data", "pois"), {"data": pois})
    await batch.commit()
"""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

from routedrafts.shared.errors import EncodingError


def doc_path(*parts: str) -> str:
    """Join path segments, rejecting empty or slash-containing parts."""
    for part in parts:
        if not part or "/" in str(part):
            raise EncodingError(f"Invalid document path segment: {part!r}")
    return "/".join(str(p) for p in parts)


def parent_collection(path: str) -> str:
    """Collection path of a document path (everything before the last segment)."""
    return path.rsplit("/", 1)[0] if "/" in path else ""


@dataclass
class WriteOp:
    """One queued write in a batch."""
    kind: str  # "set" | "update" | "delete" | "delete_tree"
    path: str
    data: Optional[dict] = None
    merge: bool = False


@dataclass
class StoredDocument:
    """Document returned by collection listings."""
    id: str
    path: str
    data: dict = field(default_factory=dict)


class WriteBatch:
    """
    Collects writes and applies them atomically on commit().

    Nothing touches the store until commit(); a batch that is never
    committed leaves no trace.
    """

    def __init__(self, store: "DocumentStore"):
        self._store = store
        self.ops: list[WriteOp] = []
        self._committed = False

    def set(self, path: str, data: dict, merge: bool = False) -> "WriteBatch":
        self.ops.append(WriteOp("set", path, data, merge))
        return self

    def update(self, path: str, data: dict) -> "WriteBatch":
        self.ops.append(WriteOp("update", path, data))
        return self

    def delete(self, path: str) -> "WriteBatch":
        self.ops.append(WriteOp("delete", path))
        return self

    def delete_tree(self, path: str) -> "WriteBatch":
        """Delete a document and everything nested under it."""
        self.ops.append(WriteOp("delete_tree", path))
        return self

    def __len__(self) -> int:
        return len(self.ops)

    async def commit(self) -> None:
        if self._committed:
            raise RuntimeError("Batch already committed")
        self._committed = True
        if self.ops:
            await self._store.apply_batch(self.ops)


class DocumentStore(ABC):
    """Abstract path-addressable document store."""

    def new_id(self) -> str:
        """Generate an id for a new document."""
        return uuid.uuid4().hex

    def batch(self) -> WriteBatch:
        return WriteBatch(self)

    @abstractmethod
    async def get(self, path: str) -> Optional[dict]:
        """Return the document's data, or None when absent."""

    @abstractmethod
    async def set(self, path: str, data: dict, merge: bool = False) -> None:
        """Create or overwrite a document; merge=True overwrites only given fields."""

    @abstractmethod
    async def update(self, path: str, data: dict) -> None:
        """Overwrite given fields of an existing document (NotFound if absent)."""

    @abstractmethod
    async def delete(self, path: str) -> None:
        """Delete a document; deleting a missing document is a no-op."""

    @abstractmethod
    async def delete_tree(self, path: str) -> int:
        """Delete a document and all documents nested under its path."""

    @abstractmethod
    async def list_collection(
        self,
        collection: str,
        owner_id: Optional[str] = None,
        newest_first: bool = False,
        limit: Optional[int] = None,
    ) -> list[StoredDocument]:
        """List documents directly inside a collection."""

    @abstractmethod
    async def apply_batch(self, ops: list[WriteOp]) -> None:
        """Apply all ops atomically (all or nothing)."""
