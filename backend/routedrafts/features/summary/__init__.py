"""
Route summary statistics.

Usage:
    from routedrafts.features.summary import calculate_route_summary
"""

from .calculator import calculate_route_summary, detect_loop, is_segment_loop
from .schemas import RouteSummary

__all__ = [
    "calculate_route_summary",
    "detect_loop",
    "is_segment_loop",
    "RouteSummary",
]
