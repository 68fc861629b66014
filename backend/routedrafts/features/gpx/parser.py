"""
GPX Import Service

Parses an uploaded GPX file into a route segment: GeoJSON-ordered
coordinates, a parallel elevation array and segment statistics.
"""

import logging
from typing import List, Optional, Tuple

import gpxpy
import gpxpy.gpx

from routedrafts.features.drafts.schemas import Segment
from routedrafts.shared.elevation import calculate_elevation_changes
from routedrafts.shared.errors import EncodingError
from routedrafts.shared.geo import calculate_total_distance

logger = logging.getLogger(__name__)


class GPXImportService:
    """Service for turning GPX files into route segments."""

    @staticmethod
    def extract_points(gpx: gpxpy.gpx.GPX) -> List[Tuple[float, float, Optional[float]]]:
        """
        Collect (lng, lat, elevation) from tracks, or routes if there are no tracks.
        """
        points: List[Tuple[float, float, Optional[float]]] = []

        for track in gpx.tracks:
            for segment in track.segments:
                for point in segment.points:
                    points.append((point.longitude, point.latitude, point.elevation))

        if not points:
            for route in gpx.routes:
                for point in route.points:
                    points.append((point.longitude, point.latitude, point.elevation))

        return points

    @staticmethod
    def parse(content: bytes, filename: str = "uploaded.gpx") -> Segment:
        """
        Parse GPX content into a segment.

        Args:
            content: GPX file content as bytes
            filename: Original file name (kept as sourceFileName)

        Returns:
            Segment with geometry and statistics, no segmentId yet

        Raises:
            EncodingError: If GPX is invalid or has no points
        """
        try:
            gpx = gpxpy.parse(content.decode("utf-8"))
        except (UnicodeDecodeError, gpxpy.gpx.GPXException) as e:
            logger.error(f"Failed to parse GPX {filename}: {e}")
            raise EncodingError(f"Invalid GPX file: {e}") from e

        points = GPXImportService.extract_points(gpx)
        if not points:
            raise EncodingError("GPX file contains no track or route points")

        elevations = [p[2] for p in points]
        known = [e for e in elevations if e is not None]

        distance_km = calculate_total_distance(points)
        gain, loss = calculate_elevation_changes(elevations)

        name = gpx.name or (gpx.tracks[0].name if gpx.tracks else None)
        if not name:
            name = filename.rsplit(".", 1)[0]

        logger.info(
            f"Parsed GPX {filename}: {len(points)} points, {distance_km:.2f} km"
        )

        return Segment(
            name=name,
            source_file_name=filename,
            statistics={
                "totalDistance": round(distance_km * 1000, 1),
                "elevationGain": round(gain, 1),
                "elevationLoss": round(loss, 1),
                "maxElevation": max(known) if known else None,
                "minElevation": min(known) if known else None,
                "pointCount": len(points),
            },
            coordinates=[
                [lng, lat] if ele is None else [lng, lat, ele]
                for lng, lat, ele in points
            ],
            elevation_samples=elevations,
        )
