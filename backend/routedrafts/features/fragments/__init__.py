"""
POI, line and photo fragments.

Usage:
    from routedrafts.features.fragments import merge_by_id, merge_pois

Components:
- merge_by_id / merge_pois: id-based dedup, incoming wins
- sanitize_*: strip raw assets and third-party payloads before persisting
- POIFragment, LineFragment, PhotoRef: request schemas
"""

from .merger import merge_by_id, merge_pois, POI_BUCKETS
from .sanitizer import (
    sanitize_poi,
    sanitize_pois,
    sanitize_line,
    sanitize_lines,
    sanitize_line_photo,
    sanitize_photo,
    sanitize_photos,
    is_blob_url,
)
from .schemas import PhotoRef, POIFragment, POIBuckets, LineFragment, ExternalPlaceRef

__all__ = [
    # Merge
    "merge_by_id",
    "merge_pois",
    "POI_BUCKETS",
    # Sanitation
    "sanitize_poi",
    "sanitize_pois",
    "sanitize_line",
    "sanitize_lines",
    "sanitize_line_photo",
    "sanitize_photo",
    "sanitize_photos",
    "is_blob_url",
    # Schemas
    "PhotoRef",
    "POIFragment",
    "POIBuckets",
    "LineFragment",
    "ExternalPlaceRef",
]
