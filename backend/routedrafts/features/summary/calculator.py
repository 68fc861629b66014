"""
Route summary calculator.

Aggregates per-segment statistics into the RouteSummary stored on a
saved route and in the user's route index.

Notes:
- Unpaved share is a coarse heuristic: a segment with any unpaved
  section contributes a flat fraction of its distance (10% by
  default). There is no per-section length at summary time.
- Loop detection uses an equirectangular approximation; adequate
  for a yes/no flag, not for measuring.
"""

import logging
from typing import Iterable, List, Optional, Sequence

from routedrafts.config import settings
from routedrafts.shared.geo import equirectangular_distance_m
from .schemas import RouteSummary

logger = logging.getLogger(__name__)


def _stat(segment: dict, key: str) -> float:
    value = (segment.get("statistics") or {}).get(key)
    return float(value) if isinstance(value, (int, float)) else 0.0


def _endpoints(segment: dict):
    coords = segment.get("coordinates") or []
    if not coords:
        return None, None
    return coords[0], coords[-1]


def is_segment_loop(segment: dict, threshold_m: float) -> bool:
    """A segment is a loop when its start and end are within threshold_m."""
    start, end = _endpoints(segment)
    if start is None:
        return False
    return equirectangular_distance_m(start, end) < threshold_m


def detect_loop(segments: Sequence[dict], threshold_m: float) -> bool:
    """
    Loop flag for a whole route.

    Every segment being a loop makes the route a loop. Otherwise the
    route still counts as one when the first segment's start is within
    threshold_m of the last segment's end (chained segments).
    """
    if not segments:
        return False
    if len(segments) == 1:
        return is_segment_loop(segments[0], threshold_m)

    if all(is_segment_loop(s, threshold_m) for s in segments):
        return True

    start, _ = _endpoints(segments[0])
    _, end = _endpoints(segments[-1])
    if start is None or end is None:
        return False
    return equirectangular_distance_m(start, end) < threshold_m


def _collect(values: Iterable) -> List[str]:
    """Ordered union; accepts scalars or lists, ignores blanks."""
    seen: List[str] = []
    for value in values:
        items = value if isinstance(value, (list, tuple, set)) else [value]
        for item in items:
            if item and item not in seen:
                seen.append(item)
    return seen


def calculate_route_summary(
    segments: Sequence[dict],
    loop_threshold_m: Optional[float] = None,
    unpaved_segment_percent: Optional[float] = None,
) -> Optional[RouteSummary]:
    """
    Compute the summary of a route from its loaded segments.

    Args:
        segments: Segments with statistics, metadata and decoded coordinates
        loop_threshold_m: Start/end distance for the loop test
        unpaved_segment_percent: Share assumed for segments with unpaved sections

    Returns:
        RouteSummary, or None for a route without segments
    """
    if not segments:
        return None

    threshold = loop_threshold_m if loop_threshold_m is not None else settings.loop_threshold_m
    unpaved_share = (
        unpaved_segment_percent
        if unpaved_segment_percent is not None
        else settings.unpaved_segment_percent
    ) / 100

    total_m = 0.0
    total_gain = 0.0
    unpaved_m = 0.0

    for segment in segments:
        distance = _stat(segment, "totalDistance")
        total_m += distance
        total_gain += _stat(segment, "elevationGain")
        if segment.get("unpavedSections"):
            unpaved_m += distance * unpaved_share

    metadata = [segment.get("metadata") or {} for segment in segments]

    summary = RouteSummary(
        total_distance_km=round(total_m / 1000, 1),
        total_ascent_m=round(total_gain),
        unpaved_percentage=round(100 * unpaved_m / total_m) if total_m > 0 else 0,
        is_loop=detect_loop(segments, threshold),
        countries=_collect(m.get("country") for m in metadata),
        states=_collect(m.get("state") for m in metadata),
        regions=_collect(m.get("region") for m in metadata),
    )

    logger.debug(
        f"Summary: {summary.total_distance_km}km, +{summary.total_ascent_m}m, "
        f"{summary.unpaved_percentage}% unpaved, loop={summary.is_loop}"
    )
    return summary
