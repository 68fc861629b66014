"""
Shared utilities (NOT business logic).

Usage:
    from routedrafts.shared import Result, ErrorKind, as_result
    from routedrafts.shared.geo import equirectangular_distance_m
"""
from .geo import (
    haversine,
    equirectangular_distance_m,
    calculate_total_distance,
    EARTH_RADIUS_KM,
    METERS_PER_DEGREE,
)
from .elevation import calculate_elevation_changes
from .errors import (
    ErrorKind,
    RouteStoreError,
    NotInitialized,
    NotFound,
    PermissionDenied,
    EncodingError,
    UploadFailure,
    InvalidState,
)
from .result import Result, as_result
from .constants import (
    SCHEMA_VERSION,
    RouteKind,
    RouteType,
    DraftStatus,
)
from .timeutils import utcnow

__all__ = [
    # geo
    "haversine",
    "equirectangular_distance_m",
    "calculate_total_distance",
    "EARTH_RADIUS_KM",
    "METERS_PER_DEGREE",
    # elevation
    "calculate_elevation_changes",
    # errors
    "ErrorKind",
    "RouteStoreError",
    "NotInitialized",
    "NotFound",
    "PermissionDenied",
    "EncodingError",
    "UploadFailure",
    "InvalidState",
    # result
    "Result",
    "as_result",
    # constants
    "SCHEMA_VERSION",
    "RouteKind",
    "RouteType",
    "DraftStatus",
    # time
    "utcnow",
]
