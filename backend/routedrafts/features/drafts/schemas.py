"""
Draft and saved route schemas.

Main records are validated strictly on read: a stored document with a
different schemaVersion or a wrong shape raises EncodingError instead
of being interpreted field by field.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import Field, ValidationError

from routedrafts.features.geometry.schemas import CamelModel, UnpavedSection
from routedrafts.shared.constants import (
    NAMESPACE_FOR_KIND,
    SCHEMA_VERSION,
    DraftStatus,
    RouteKind,
    RouteType,
)
from routedrafts.shared.errors import EncodingError

# Segment fields that may be edited after upload
SEGMENT_PROPERTY_FIELDS = ("name", "color", "sourceFileName", "statistics", "metadata")


@dataclass
class RouteTarget:
    """Where a write goes: a draft or a saved route, by id."""
    kind: RouteKind
    route_id: str
    created: bool = False

    @property
    def namespace(self) -> str:
        return NAMESPACE_FOR_KIND[self.kind]

    @property
    def is_saved(self) -> bool:
        return self.kind == RouteKind.SAVED


# =============================================================================
# Stored documents
# =============================================================================

class RouteRecord(CamelModel):
    """Main record of a draft or saved route."""

    schema_version: int = SCHEMA_VERSION
    owner_id: str
    status: Optional[DraftStatus] = None
    route_type: str = RouteType.SINGLE.value
    name: Optional[str] = None
    source_file_name: Optional[str] = None
    header_settings: Optional[Dict[str, Any]] = None
    statistics: Optional[Dict[str, Any]] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    # Saved routes only
    is_public: Optional[bool] = None
    tags: Optional[List[str]] = None
    thumbnail_ref: Optional[Dict[str, Any]] = None
    description: Optional[str] = None
    promoted_from: Optional[str] = None


class Segment(CamelModel):
    """
    One uploaded track of a route.

    Metadata lives in the route's segment list; geometry lives in
    per-segment documents and is always replaced wholesale.
    """

    segment_id: Optional[str] = None
    name: Optional[str] = None
    source_file_name: Optional[str] = None
    color: Optional[str] = None
    statistics: Dict[str, Any] = Field(default_factory=dict)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    added_at: Optional[str] = None

    coordinates: List[List[float]] = Field(default_factory=list)
    elevation_samples: List[Optional[float]] = Field(default_factory=list)
    unpaved_sections: List[UnpavedSection] = Field(default_factory=list)

    def meta_doc(self) -> dict:
        """Segment list entry (no geometry)."""
        return self.model_dump(
            by_alias=True,
            exclude_none=True,
            mode="json",
            exclude={"coordinates", "elevation_samples", "unpaved_sections"},
        )


def validate_document(model: type, data: dict, path: str):
    """Validate a stored document, rejecting other schema versions."""
    version = data.get("schemaVersion", SCHEMA_VERSION)
    if version != SCHEMA_VERSION:
        raise EncodingError(f"{path}: unsupported schemaVersion {version}")
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise EncodingError(f"{path}: invalid document: {e.error_count()} errors") from e


# =============================================================================
# Requests / results
# =============================================================================

class RouteFragment(CamelModel):
    """
    Partial route edit.

    Only fields that are set are written. Segments replace stored
    segments with the same segmentId; new ones are appended.
    """

    name: Optional[str] = None
    route_type: Optional[RouteType] = None
    source_file_name: Optional[str] = None
    header_settings: Optional[Dict[str, Any]] = None
    statistics: Optional[Dict[str, Any]] = None
    segments: List[Segment] = Field(default_factory=list)
    pois: Optional[Dict[str, List[Dict[str, Any]]]] = None
    lines: Optional[List[Dict[str, Any]]] = None
    photos: Optional[List[Dict[str, Any]]] = None


class LoadedRoute(CamelModel):
    """Full in-memory route as consumed by promotion and editing surfaces."""

    id: str
    kind: RouteKind
    record: RouteRecord
    segments: List[Segment] = Field(default_factory=list)
    pois: Dict[str, List[Dict[str, Any]]] = Field(
        default_factory=lambda: {"draggable": [], "places": []}
    )
    lines: List[Dict[str, Any]] = Field(default_factory=list)
    photos: List[Dict[str, Any]] = Field(default_factory=list)
    description: Optional[Dict[str, Any]] = None
    master_route: Optional[Dict[str, Any]] = None


class SaveOutcome(CamelModel):
    """Target a save landed in; callers thread route_id into later saves."""

    route_id: str
    kind: RouteKind
    created: bool = False

    @classmethod
    def from_target(cls, target: RouteTarget) -> "SaveOutcome":
        return cls(route_id=target.route_id, kind=target.kind, created=target.created)


class SegmentDeletion(CamelModel):
    """Result of removing a segment from a draft."""

    draft_id: str
    remaining_segments: int
    draft_deleted: bool
