"""
Elevation processing utilities.

This is the SINGLE SOURCE OF TRUTH for elevation calculations.
"""
from typing import List, Optional, Tuple


def calculate_elevation_changes(
    elevations: List[Optional[float]]
) -> Tuple[float, float]:
    """
    Calculate total elevation gain and loss.

    Missing samples (None) are skipped; the next known sample is
    compared against the last known one.

    Args:
        elevations: List of elevation values

    Returns:
        Tuple of (gain_m, loss_m)
    """
    gain = 0.0
    loss = 0.0
    previous = None

    for ele in elevations:
        if ele is None:
            continue
        if previous is not None:
            diff = ele - previous
            if diff > 0:
                gain += diff
            else:
                loss += abs(diff)
        previous = ele

    return gain, loss
