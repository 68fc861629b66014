"""
Geometry codec.

Translates GeoJSON-style coordinate lists to and from the storage
form. The document store rejects arrays of arrays, so each point is
stored as a record:

    [lng, lat]            <->  {"lng": lng, "lat": lat}
    [lng, lat, elevation] <->  {"lng": lng, "lat": lat, "elevation": elevation}

decode(encode(x)) == x for well-formed input.
"""

import logging
import math
from numbers import Real
from typing import Any, List, Optional, Sequence

from routedrafts.shared.constants import DEFAULT_SURFACE_TYPE
from routedrafts.shared.errors import EncodingError

logger = logging.getLogger(__name__)


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _is_finite(value: Any) -> bool:
    return _is_number(value) and math.isfinite(value)


def _valid_point(coord: Any) -> bool:
    if not _is_sequence(coord) or len(coord) not in (2, 3):
        return False
    lng, lat = coord[0], coord[1]
    if not (_is_finite(lng) and _is_finite(lat)):
        return False
    if not (-180 <= lng <= 180 and -90 <= lat <= 90):
        return False
    return len(coord) == 2 or coord[2] is None or _is_finite(coord[2])


def encode_coordinates(
    coords: Optional[Sequence[Sequence[float]]],
    elevation: Optional[Sequence[Optional[float]]] = None,
) -> List[dict]:
    """
    Encode [lng, lat(, elevation)] points as keyed records.

    Entries that are not 2- or 3-element finite numeric sequences, or
    whose lng/lat fall outside the valid ranges, are dropped.
    When a point carries no elevation and the parallel elevation array
    has a value at the same index, that value is folded in.

    Args:
        coords: Point list in GeoJSON order
        elevation: Optional samples parallel to coords

    Returns:
        List of {lng, lat, elevation?} records

    Raises:
        EncodingError: coords is not a sequence at all
    """
    if coords is None:
        return []
    if not _is_sequence(coords):
        raise EncodingError(
            f"Coordinates must be a list, got {type(coords).__name__}"
        )
    if elevation is not None and not _is_sequence(elevation):
        raise EncodingError("Elevation samples must be a list")

    records = []
    dropped = 0

    for index, coord in enumerate(coords):
        if not _valid_point(coord):
            dropped += 1
            continue

        record = {"lng": coord[0], "lat": coord[1]}

        if len(coord) == 3 and coord[2] is not None:
            record["elevation"] = coord[2]
        elif elevation is not None and index < len(elevation):
            sample = elevation[index]
            if _is_finite(sample):
                record["elevation"] = sample

        records.append(record)

    if dropped:
        logger.debug(f"Dropped {dropped} malformed coordinates while encoding")

    return records


def decode_coordinates(records: Optional[Sequence[dict]]) -> List[List[float]]:
    """
    Decode stored point records back into [lng, lat(, elevation)] lists.

    Raises:
        EncodingError: a record is not a {lng, lat} mapping
    """
    if records is None:
        return []
    if not _is_sequence(records):
        raise EncodingError("Stored coordinates must be a list")

    coords = []
    for record in records:
        if not isinstance(record, dict):
            raise EncodingError(f"Stored coordinate is not a record: {record!r}")
        lng, lat = record.get("lng"), record.get("lat")
        if not (_is_number(lng) and _is_number(lat)):
            raise EncodingError(f"Stored coordinate lacks lng/lat: {record!r}")

        ele = record.get("elevation")
        coords.append([lng, lat] if ele is None else [lng, lat, ele])

    return coords


def encode_unpaved_section(
    section: dict,
    parent_coordinates: Optional[Sequence[Sequence[float]]] = None,
) -> dict:
    """
    Encode one unpaved section.

    When the section carries no coordinates of its own they are taken
    from parent_coordinates[startIndex:endIndex + 1], clamped to the
    parent's bounds.

    Args:
        section: {startIndex, endIndex, surfaceType?, coordinates?}
        parent_coordinates: Coordinates of the owning segment

    Returns:
        {startIndex, endIndex, surfaceType, coordinates: [records]}
    """
    if not isinstance(section, dict):
        raise EncodingError("Unpaved section must be a mapping")

    start = section.get("startIndex")
    end = section.get("endIndex")
    if not (isinstance(start, int) and isinstance(end, int)):
        raise EncodingError(
            f"Unpaved section needs integer startIndex/endIndex, got {start!r}/{end!r}"
        )

    own = section.get("coordinates")
    if own is not None:
        points = own
    elif parent_coordinates:
        lo = max(0, start)
        hi = min(len(parent_coordinates), end + 1)
        points = list(parent_coordinates[lo:hi])
    else:
        points = []

    return {
        "startIndex": start,
        "endIndex": end,
        "surfaceType": section.get("surfaceType") or DEFAULT_SURFACE_TYPE,
        "coordinates": encode_coordinates(points),
    }


def decode_unpaved_section(record: dict) -> dict:
    """Decode a stored unpaved section into its in-memory form."""
    if not isinstance(record, dict):
        raise EncodingError("Stored unpaved section must be a mapping")

    return {
        "startIndex": record.get("startIndex"),
        "endIndex": record.get("endIndex"),
        "surfaceType": record.get("surfaceType") or DEFAULT_SURFACE_TYPE,
        "coordinates": decode_coordinates(record.get("coordinates") or []),
    }


def encode_unpaved_sections(
    sections: Optional[Sequence[dict]],
    parent_coordinates: Optional[Sequence[Sequence[float]]] = None,
) -> List[dict]:
    if not sections:
        return []
    return [encode_unpaved_section(s, parent_coordinates) for s in sections]


def decode_unpaved_sections(records: Optional[Sequence[dict]]) -> List[dict]:
    if not records:
        return []
    return [decode_unpaved_section(r) for r in records]
