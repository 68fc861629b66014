"""Route summary schema."""

from typing import List

from pydantic import Field

from routedrafts.features.geometry.schemas import CamelModel


class RouteSummary(CamelModel):
    """Aggregate statistics of a saved route."""

    total_distance_km: float = 0.0
    total_ascent_m: int = 0
    unpaved_percentage: int = 0
    is_loop: bool = False

    # Geographic tags (set-valued, first-seen order)
    countries: List[str] = Field(default_factory=list)
    states: List[str] = Field(default_factory=list)
    regions: List[str] = Field(default_factory=list)
