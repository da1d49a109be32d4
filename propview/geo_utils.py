"""Geographic utilities for great-circle distance, bearing and path geometry."""

import math

from .logging_utils import log_debug
from .models import Coordinate

EARTH_RADIUS_KM = 6371.0

# Great-circle polylines: one point per this many km, clamped to the limits below
KM_PER_POINT = 200.0
MIN_SEGMENT_POINTS = 10
MAX_SEGMENT_POINTS = 50

# sin(angular distance) below this is treated as coincident or antipodal
_DEGENERATE_EPS = 1e-9


class DegenerateGeometry(ArithmeticError):
    """Interpolation coefficients are undefined (coincident or antipodal points)."""


def normalize_longitude(lon: float) -> float:
    """Wrap a longitude into (-180, 180]."""
    lon = math.fmod(lon, 360.0)
    if lon <= -180.0:
        lon += 360.0
    elif lon > 180.0:
        lon -= 360.0
    return lon


def calc_bearing(a: Coordinate, b: Coordinate) -> float:
    """Calculate initial great-circle bearing from a to b.

    Args:
        a: Starting point
        b: Ending point

    Returns:
        Bearing in degrees [0, 360)
    """
    lat1, lon1, lat2, lon2 = map(math.radians, [a.latitude, a.longitude, b.latitude, b.longitude])
    dlon = lon2 - lon1
    x = math.sin(dlon) * math.cos(lat2)
    y = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(dlon)
    bearing = math.atan2(x, y)
    return (math.degrees(bearing) + 360) % 360


def calc_distance_km(a: Coordinate, b: Coordinate) -> float:
    """Calculate great-circle (Haversine) distance between two points in kilometers.

    Coincident points give 0, including (0,0)-(0,0). A zero result is not
    evidence of a real contact; callers decide whether a location is known.

    Args:
        a: Starting point
        b: Ending point

    Returns:
        Distance in kilometers
    """
    lat1, lon1, lat2, lon2 = map(math.radians, [a.latitude, a.longitude, b.latitude, b.longitude])
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    h = math.sin(dlat/2)**2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon/2)**2
    h = min(max(h, 0.0), 1.0)
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1-h))
    return EARTH_RADIUS_KM * c


def bearing_to_direction(bearing: float) -> str:
    """Convert bearing to compass direction.

    Args:
        bearing: Bearing in degrees (0-360)

    Returns:
        Compass direction (N, NNE, NE, etc.)
    """
    dirs = ["N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
            "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW"]
    idx = round(bearing / 22.5) % 16
    return dirs[idx]


def destination_point(origin: Coordinate, bearing_deg: float, angular_distance_deg: float) -> Coordinate:
    """Point reached travelling a given angular distance from origin along a bearing."""
    lat1 = math.radians(origin.latitude)
    lon1 = math.radians(origin.longitude)
    brg = math.radians(bearing_deg)
    d = math.radians(angular_distance_deg)

    sin_lat2 = math.sin(lat1) * math.cos(d) + math.cos(lat1) * math.sin(d) * math.cos(brg)
    lat2 = math.asin(min(max(sin_lat2, -1.0), 1.0))
    lon2 = lon1 + math.atan2(
        math.sin(brg) * math.sin(d) * math.cos(lat1),
        math.cos(d) - math.sin(lat1) * sin_lat2,
    )
    return Coordinate(math.degrees(lat2), normalize_longitude(math.degrees(lon2)))


def segment_point_count(distance_km: float) -> int:
    """Number of polyline points for a path of the given length."""
    count = int(distance_km / KM_PER_POINT) + 1
    return min(MAX_SEGMENT_POINTS, max(MIN_SEGMENT_POINTS, count))


def _to_vector(c: Coordinate) -> tuple[float, float, float]:
    lat = math.radians(c.latitude)
    lon = math.radians(c.longitude)
    return (math.cos(lat) * math.cos(lon), math.cos(lat) * math.sin(lon), math.sin(lat))


def _slerp(a: Coordinate, b: Coordinate, fractions: list[float]) -> list[Coordinate]:
    """Spherical interpolation between a and b at each fraction in [0, 1].

    Raises:
        DegenerateGeometry: if a and b are coincident or antipodal
    """
    va = _to_vector(a)
    vb = _to_vector(b)
    dot = min(max(sum(p * q for p, q in zip(va, vb)), -1.0), 1.0)
    omega = math.acos(dot)
    sin_omega = math.sin(omega)
    if abs(sin_omega) < _DEGENERATE_EPS:
        raise DegenerateGeometry(f"cannot interpolate {a} -> {b}")

    points = []
    for f in fractions:
        ka = math.sin((1 - f) * omega) / sin_omega
        kb = math.sin(f * omega) / sin_omega
        x, y, z = (ka * p + kb * q for p, q in zip(va, vb))
        lat = math.degrees(math.atan2(z, math.hypot(x, y)))
        lon = math.degrees(math.atan2(y, x))
        points.append(Coordinate(lat, normalize_longitude(lon)))
    return points


def _lerp(a: Coordinate, b: Coordinate, fractions: list[float]) -> list[Coordinate]:
    return [
        Coordinate(
            a.latitude + (b.latitude - a.latitude) * f,
            a.longitude + (b.longitude - a.longitude) * f,
        )
        for f in fractions
    ]


def great_circle_segment(a: Coordinate, b: Coordinate) -> list[Coordinate]:
    """Interpolated great-circle polyline from a to b.

    Longer paths get more points (MIN_SEGMENT_POINTS..MAX_SEGMENT_POINTS).
    Endpoints are returned exactly as given. Coincident or antipodal inputs
    fall back to straight interpolation between the endpoints.
    """
    count = segment_point_count(calc_distance_km(a, b))
    fractions = [i / (count - 1) for i in range(count)]

    try:
        points = _slerp(a, b, fractions)
    except DegenerateGeometry as e:
        log_debug("great_circle_degenerate", reason=str(e))
        points = _lerp(a, b, fractions)

    points[0] = a
    points[-1] = b
    return points


def _latitude_at_longitude(a: Coordinate, b: Coordinate, lon_deg: float) -> float:
    """Latitude where the great circle through a and b crosses a meridian."""
    lat1, lon1 = math.radians(a.latitude), math.radians(a.longitude)
    lat2, lon2 = math.radians(b.latitude), math.radians(b.longitude)
    lon = math.radians(lon_deg)

    denom = math.cos(lat1) * math.cos(lat2) * math.sin(lon1 - lon2)
    if abs(denom) < _DEGENERATE_EPS:
        # Meridian path (or a pole endpoint): the crossing is at the mean latitude
        return (a.latitude + b.latitude) / 2
    num = (math.sin(lat1) * math.cos(lat2) * math.sin(lon - lon2)
           - math.sin(lat2) * math.cos(lat1) * math.sin(lon - lon1))
    return math.degrees(math.atan(num / denom))


def split_at_antimeridian(a: Coordinate, b: Coordinate) -> list[list[Coordinate]]:
    """Great-circle polyline from a to b, split where it crosses +/-180.

    Returns:
        One segment when the path stays on one side of the antimeridian,
        otherwise two: a -> (lat, +/-180) and (lat, -/+180) -> b
    """
    a = Coordinate(a.latitude, normalize_longitude(a.longitude))
    b = Coordinate(b.latitude, normalize_longitude(b.longitude))

    if abs(b.longitude - a.longitude) <= 180.0:
        return [great_circle_segment(a, b)]

    crossing_lat = _latitude_at_longitude(a, b, 180.0)
    # a is east of the line when it has the larger longitude
    a_side = 180.0 if a.longitude > b.longitude else -180.0
    first = great_circle_segment(a, Coordinate(crossing_lat, a_side))
    second = great_circle_segment(Coordinate(crossing_lat, -a_side), b)
    return [first, second]
