"""
Fragment schemas.

Editing surfaces attach display properties the engine does not
interpret (icons, styles, widths), so fragment models accept extra
fields and pass them through.
"""

from typing import Any, List, Optional

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from routedrafts.features.geometry.schemas import CamelModel


class FragmentModel(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_doc(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class ExternalPlaceRef(CamelModel):
    """Reference to a third-party place; the full payload is never kept."""
    place_id: Optional[str] = None
    url: Optional[str] = None


class PhotoRef(FragmentModel):
    """
    Photo reference.

    One of three states: materialized (public_ref + url), pending
    upload, or local-only (is_local, url None).
    """
    id: str
    caption: Optional[str] = None
    name: Optional[str] = None
    date_added: Optional[str] = None
    public_ref: Optional[str] = None
    url: Optional[str] = None
    pending_upload: Optional[bool] = None
    is_local: Optional[bool] = None


class POIFragment(FragmentModel):
    """Point of interest."""
    id: str
    category: Optional[str] = None
    icon: Optional[str] = None
    style: Optional[Any] = None
    external_place_ref: Optional[ExternalPlaceRef] = None
    coordinates: Optional[List[float]] = None


class POIBuckets(CamelModel):
    """User-placed and externally sourced POIs."""
    draggable: List[POIFragment] = Field(default_factory=list)
    places: List[POIFragment] = Field(default_factory=list)

    def to_doc(self) -> dict:
        return {
            "draggable": [p.to_doc() for p in self.draggable],
            "places": [p.to_doc() for p in self.places],
        }


class LineFragment(FragmentModel):
    """Freehand line drawn on the map."""
    id: str
    coordinates: Optional[List[List[float]]] = None
    photos: List[PhotoRef] = Field(default_factory=list)
