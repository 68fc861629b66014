"""
Document store.

Usage:
    from routedrafts.store import SQLDocumentStore, doc_path

Components:
- DocumentStore: abstract path-addressable store with atomic batches
- WriteBatch: queued writes applied all-or-nothing
- SQLDocumentStore: SQLAlchemy (async) implementation
- Document: ORM model for the single documents table
"""

from .base import (
    DocumentStore,
    WriteBatch,
    WriteOp,
    StoredDocument,
    doc_path,
    parent_collection,
)
from .models import Document
from .sql import SQLDocumentStore

__all__ = [
    "DocumentStore",
    "WriteBatch",
    "WriteOp",
    "StoredDocument",
    "doc_path",
    "parent_collection",
    "Document",
    "SQLDocumentStore",
]
