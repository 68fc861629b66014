"""
Database Models

The engine persists everything as path-addressed JSON documents;
see routedrafts.store.models for the single table.
"""

from routedrafts.models.base import Base

__all__ = ["Base"]
