"""
Static map thumbnail URL builder.

Draws the first segment's path on a static map image with automatic
framing. The media service then fetches the URL and stores the image
as the route thumbnail.
"""

from typing import List, Optional, Sequence

from routedrafts.config import settings
from routedrafts.shared.constants import DEFAULT_SEGMENT_COLOR


def sample_points(coords: Sequence[Sequence[float]], max_points: int) -> List[Sequence[float]]:
    """
    Evenly sample coords down to at most max_points.

    The first and last points are always kept.
    """
    if len(coords) <= max_points:
        return list(coords)
    if max_points < 2:
        return [coords[0]]

    step = (len(coords) - 1) / (max_points - 1)
    sampled = [coords[round(i * step)] for i in range(max_points - 1)]
    sampled.append(coords[-1])
    return sampled


def build_static_map_url(
    segments: Sequence[dict],
    width: Optional[int] = None,
    height: Optional[int] = None,
    style: Optional[str] = None,
    max_points: Optional[int] = None,
    token: Optional[str] = None,
) -> str:
    """
    Build a static-map image URL for a route.

    Args:
        segments: Loaded segments ({coordinates, color, ...})
        width, height: Image size in px (rendered @2x)
        style: Map style id
        max_points: Path sampling limit

    Returns:
        Image URL; a world placeholder when there is no geometry
    """
    width = width or settings.thumbnail_width
    height = height or settings.thumbnail_height
    style = style or settings.static_map_style
    max_points = max_points or settings.thumbnail_max_points
    token = token if token is not None else (settings.static_map_token or "")

    base = f"{settings.static_map_base_url}/{style}/static"

    first = segments[0] if segments else None
    coords = (first or {}).get("coordinates") or []
    if not coords:
        return f"{base}/0,0,1,0/{width}x{height}@2x?access_token={token}"

    color = (first.get("color") or DEFAULT_SEGMENT_COLOR).lstrip("#")
    path = ",".join(
        f"{point[0]:.5f},{point[1]:.5f}" for point in sample_points(coords, max_points)
    )

    return (
        f"{base}/path-3+{color}-0.9({path})/auto/"
        f"{width}x{height}@2x?access_token={token}"
    )
