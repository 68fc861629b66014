"""
Document model.

A single table holds every document of the store, keyed by its
full path. owner_id and updated_at are denormalized from the JSON
payload so collection listings can filter and sort in SQL.
"""

from sqlalchemy import Column, String, DateTime, JSON, Index

from routedrafts.models.base import Base
from routedrafts.shared.timeutils import utcnow


class Document(Base):
    """Path-addressed JSON document."""

    __tablename__ = "documents"

    path = Column(String(512), primary_key=True)
    collection = Column(String(512), nullable=False, index=True)

    # Denormalized from data["ownerId"] when present
    owner_id = Column(String(128), nullable=True, index=True)

    data = Column(JSON, nullable=False, default=dict)

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("ix_documents_collection_owner", "collection", "owner_id"),
    )

    def __repr__(self):
        return f"<Document {self.path}>"
