"""
Route drafts.

Usage:
    from routedrafts.features.drafts import DraftService, DraftStoreAdapter, RouteFragment

Components:
- DraftStoreAdapter: target resolution, atomic fragment commits, route reads
- DraftService: caller-facing operations returning Result
- RouteFragment, Segment, LoadedRoute: schemas
"""

from .repository import DraftStoreAdapter
from .schemas import (
    LoadedRoute,
    RouteFragment,
    RouteRecord,
    RouteTarget,
    SaveOutcome,
    Segment,
    SegmentDeletion,
)
from .service import DraftService, PHOTOS_PENDING, LOGO_PENDING

__all__ = [
    # Adapter
    "DraftStoreAdapter",
    # Service
    "DraftService",
    "PHOTOS_PENDING",
    "LOGO_PENDING",
    # Schemas
    "LoadedRoute",
    "RouteFragment",
    "RouteRecord",
    "RouteTarget",
    "SaveOutcome",
    "Segment",
    "SegmentDeletion",
]
