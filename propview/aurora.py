"""Idealized auroral oval geometry and geomagnetic activity labels."""

import math

from .geo_utils import destination_point
from .models import AuroralOval, Coordinate

# Geomagnetic poles (fixed approximation)
NORTH_GEOMAGNETIC_POLE = Coordinate(86.5, -164.04)
SOUTH_GEOMAGNETIC_POLE = Coordinate(-64.07, 136.02)

BASE_RADIUS_DEG = 15.0
RADIUS_PER_K_DEG = 2.0
AZIMUTH_STEP_DEG = 10

# Points must stay poleward of this latitude in their own hemisphere
HEMISPHERE_LIMIT_DEG = 45.0
# Rendering clamp near the geographic poles
MAX_ABS_LATITUDE = 85.0

# (max K, label, color). Shared by activity_label and intensity_color.
ACTIVITY_LEVELS = (
    (2, "Quiet", "rgba(0, 255, 0, 0.3)"),
    (4, "Unsettled", "rgba(255, 255, 0, 0.4)"),
    (6, "Active", "rgba(255, 165, 0, 0.5)"),
    (8, "Storm", "rgba(255, 0, 0, 0.6)"),
    (9, "Severe Storm", "rgba(128, 0, 128, 0.7)"),
)


def clamp_k_index(k_index: float) -> float:
    """Clamp a K/Kp index into [0, 9].

    Raises:
        ValueError: if k_index is NaN or not a number
    """
    k = float(k_index)
    if math.isnan(k):
        raise ValueError("K-index is NaN")
    return min(max(k, 0.0), 9.0)


def oval_radius_deg(k_index: float) -> float:
    """Angular radius of the oval: 15 deg plus 2 deg per K-index step."""
    return BASE_RADIUS_DEG + RADIUS_PER_K_DEG * clamp_k_index(k_index)


def _ring(pole: Coordinate, radius: float, northern: bool) -> tuple[Coordinate, ...]:
    points = []
    for azimuth in range(0, 360, AZIMUTH_STEP_DEG):
        p = destination_point(pole, azimuth, radius)
        if northern:
            if p.latitude < HEMISPHERE_LIMIT_DEG:
                continue
            lat = min(p.latitude, MAX_ABS_LATITUDE)
        else:
            if p.latitude > -HEMISPHERE_LIMIT_DEG:
                continue
            lat = max(p.latitude, -MAX_ABS_LATITUDE)
        points.append(Coordinate(lat, p.longitude))
    return tuple(points)


def oval_boundary(k_index: float) -> AuroralOval:
    """Northern and southern oval boundaries for a K-index.

    Args:
        k_index: Geomagnetic K-index, 0-9 (fractional Kp accepted, clamped)

    Returns:
        AuroralOval with north/south point rings, every 10 deg of azimuth
        around each geomagnetic pole, minus points that fall out of the
        pole's hemisphere band
    """
    k = clamp_k_index(k_index)
    radius = oval_radius_deg(k)
    return AuroralOval(
        north=_ring(NORTH_GEOMAGNETIC_POLE, radius, northern=True),
        south=_ring(SOUTH_GEOMAGNETIC_POLE, radius, northern=False),
        k_index=k,
        radius_deg=radius,
    )


def _activity_level(k_index: float) -> tuple[int, str, str]:
    k = clamp_k_index(k_index)
    for level in ACTIVITY_LEVELS:
        if k <= level[0]:
            return level
    return ACTIVITY_LEVELS[-1]


def activity_label(k_index: float) -> str:
    """Qualitative geomagnetic activity: Quiet/Unsettled/Active/Storm/Severe Storm."""
    return _activity_level(k_index)[1]


def intensity_color(k_index: float) -> str:
    """Overlay color for the oval at this K-index."""
    return _activity_level(k_index)[2]
