"""
SQLAlchemy-backed document store.

Stores every document as a row in the ``documents`` table. A batch is
applied inside one transaction: either every op lands or none does.
"""

import copy
import logging
from typing import Optional

from pydantic_core import to_jsonable_python
from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from routedrafts.shared.errors import NotFound
from routedrafts.shared.timeutils import utcnow
from .base import DocumentStore, StoredDocument, WriteOp, parent_collection
from .models import Document

logger = logging.getLogger(__name__)


class SQLDocumentStore(DocumentStore):
    """
    Document store on top of an AsyncSession.

    Usage:
        async with AsyncSessionLocal() as session:
            store = SQLDocumentStore(session)
            await store.set("route_drafts/abc", {"ownerId": "u1"})
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, path: str) -> Optional[dict]:
        result = await self.db.execute(
            select(Document.data).where(Document.path == path)
        )
        data = result.scalar_one_or_none()
        return copy.deepcopy(data) if data is not None else None

    async def set(self, path: str, data: dict, merge: bool = False) -> None:
        await self.apply_batch([WriteOp("set", path, data, merge)])

    async def update(self, path: str, data: dict) -> None:
        await self.apply_batch([WriteOp("update", path, data)])

    async def delete(self, path: str) -> None:
        await self.apply_batch([WriteOp("delete", path)])

    async def delete_tree(self, path: str) -> int:
        count = await self._count_tree(path)
        await self.apply_batch([WriteOp("delete_tree", path)])
        return count

    async def list_collection(
        self,
        collection: str,
        owner_id: Optional[str] = None,
        newest_first: bool = False,
        limit: Optional[int] = None,
    ) -> list[StoredDocument]:
        query = select(Document).where(Document.collection == collection)
        if owner_id is not None:
            query = query.where(Document.owner_id == owner_id)
        if newest_first:
            query = query.order_by(Document.updated_at.desc())
        if limit is not None:
            query = query.limit(limit)

        result = await self.db.execute(query)
        return [
            StoredDocument(
                id=doc.path.rsplit("/", 1)[-1],
                path=doc.path,
                data=copy.deepcopy(doc.data),
            )
            for doc in result.scalars().all()
        ]

    async def apply_batch(self, ops: list[WriteOp]) -> None:
        try:
            for op in ops:
                await self._apply_op(op)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        logger.debug(f"Applied batch of {len(ops)} document writes")

    # =========================================================================
    # Internals
    # =========================================================================

    async def _apply_op(self, op: WriteOp) -> None:
        if op.kind == "set":
            await self._write(op.path, op.data or {}, merge=op.merge)
        elif op.kind == "update":
            existing = await self.db.get(Document, op.path)
            if existing is None:
                raise NotFound(f"Document not found: {op.path}")
            await self._write(op.path, op.data or {}, merge=True)
        elif op.kind == "delete":
            await self.db.execute(
                delete(Document).where(Document.path == op.path)
            )
        elif op.kind == "delete_tree":
            await self.db.execute(
                delete(Document).where(self._tree_clause(op.path))
            )
        else:
            raise ValueError(f"Unknown write op: {op.kind}")

    async def _write(self, path: str, data: dict, merge: bool) -> None:
        payload = to_jsonable_python(data)
        entity = await self.db.get(Document, path)

        if entity is None:
            entity = Document(
                path=path,
                collection=parent_collection(path),
                owner_id=payload.get("ownerId"),
                data=payload,
                created_at=utcnow(),
                updated_at=utcnow(),
            )
            self.db.add(entity)
        else:
            entity.data = {**entity.data, **payload} if merge else payload
            entity.owner_id = entity.data.get("ownerId")
            entity.updated_at = utcnow()

        await self.db.flush()

    @staticmethod
    def _tree_clause(path: str):
        return or_(
            Document.path == path,
            Document.path.startswith(path + "/", autoescape=True),
        )

    async def _count_tree(self, path: str) -> int:
        result = await self.db.execute(
            select(Document.path).where(self._tree_clause(path))
        )
        return len(result.scalars().all())
