"""
Geometry schemas.

In memory a segment's geometry is GeoJSON-shaped: coordinates are
[lng, lat] or [lng, lat, elevation] lists. In storage every point is
a keyed record, because the document store does not accept nested
arrays.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from routedrafts.shared.constants import DEFAULT_SURFACE_TYPE


class CamelModel(BaseModel):
    """Base for models persisted with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_doc(self) -> dict:
        """Dump with camelCase keys, omitting unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class UnpavedSection(CamelModel):
    """
    Unpaved stretch of a segment.

    coordinates may be omitted in memory; the codec then derives them
    from the parent segment over [start_index, end_index].
    """
    start_index: int
    end_index: int
    surface_type: str = DEFAULT_SURFACE_TYPE
    coordinates: Optional[List[List[float]]] = None

