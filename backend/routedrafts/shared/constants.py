"""
Shared constants for route records and document layout.

Single source of truth for collection names and enum values
persisted in documents.
"""

from enum import Enum

# Bumped whenever a persisted document shape changes
SCHEMA_VERSION = 1


class RouteKind(str, Enum):
    """Which namespace a route record lives in."""
    DRAFT = "draft"
    SAVED = "saved"


class DraftStatus(str, Enum):
    """Lifecycle status of a draft (saved routes carry no status)."""
    PENDING_ACTION = "pending_action"
    PROMOTED = "promoted"
    DELETED = "deleted"


class RouteType(str, Enum):
    """Route layout chosen by the user."""
    SINGLE = "Single"
    BIKEPACKING = "Bikepacking"
    EVENT = "Event"


# Top-level collections
DRAFTS_COLLECTION = "route_drafts"
SAVED_ROUTES_COLLECTION = "saved_routes"
USER_INDEX_COLLECTION = "user_route_index"

NAMESPACE_FOR_KIND: dict[RouteKind, str] = {
    RouteKind.DRAFT: DRAFTS_COLLECTION,
    RouteKind.SAVED: SAVED_ROUTES_COLLECTION,
}

# Route-level sub-documents under {namespace}/{id}/data/
DOC_SEGMENTS = "segments"
DOC_POIS = "pois"
DOC_LINES = "lines"
DOC_PHOTOS = "photos"
DOC_DESCRIPTION = "description"
DOC_MASTER_ROUTE = "masterRoute"

# Segment-level sub-documents under {namespace}/{id}/segments/{segmentId}/data/
DOC_COORDS = "coords"
DOC_ELEVATION = "elevation"
DOC_UNPAVED = "unpaved"

DEFAULT_SURFACE_TYPE = "unpaved"
DEFAULT_SEGMENT_COLOR = "#ee5253"
DEFAULT_MASTER_ROUTE_DESCRIPTION = "Combined route of all segments"
