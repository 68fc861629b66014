"""
Segment geometry encoding.

Usage:
    from routedrafts.features.geometry import encode_coordinates, decode_coordinates

Components:
- encode/decode_coordinates: GeoJSON points <-> {lng, lat, elevation?} records
- encode/decode_unpaved_section: unpaved stretches, optionally derived from indices
- UnpavedSection: in-memory schema
"""

from .codec import (
    encode_coordinates,
    decode_coordinates,
    encode_unpaved_section,
    decode_unpaved_section,
    encode_unpaved_sections,
    decode_unpaved_sections,
)
from .schemas import CamelModel, UnpavedSection

__all__ = [
    # Codec
    "encode_coordinates",
    "decode_coordinates",
    "encode_unpaved_section",
    "decode_unpaved_section",
    "encode_unpaved_sections",
    "decode_unpaved_sections",
    # Schemas
    "CamelModel",
    "UnpavedSection",
]
