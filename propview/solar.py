"""Solar position and day/night terminator geometry.

Uses the standard low-precision solar position algorithm (mean longitude,
mean anomaly, ecliptic longitude, obliquity). Accuracy is about 0.01 deg,
which is plenty for shading a map and not meant for astronomical use.
"""

import math
from datetime import datetime, timezone

from .geo_utils import normalize_longitude
from .logging_utils import log_debug
from .models import Coordinate, SolarPosition, TerminatorCurve

# Julian day of the Unix epoch and of J2000.0
JD_UNIX_EPOCH = 2440587.5
JD_J2000 = 2451545.0

DEFAULT_TERMINATOR_STEP = 2.0


def _utc(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def julian_day(instant: datetime) -> float:
    """Julian day number (with fraction) for a UTC instant."""
    return JD_UNIX_EPOCH + _utc(instant).timestamp() / 86400.0


def solar_position(instant: datetime) -> SolarPosition:
    """Compute declination, equation of time and the subsolar point.

    Args:
        instant: Time of interest (naive datetimes are taken as UTC)

    Returns:
        SolarPosition with julian_day, declination_deg,
        equation_of_time_min and subsolar Coordinate
    """
    instant = _utc(instant)
    jd = julian_day(instant)
    n = jd - JD_J2000

    mean_lon = (280.460 + 0.9856474 * n) % 360
    mean_anomaly = math.radians((357.528 + 0.9856003 * n) % 360)
    ecliptic_lon = math.radians(
        mean_lon + 1.915 * math.sin(mean_anomaly) + 0.020 * math.sin(2 * mean_anomaly)
    )
    obliquity = math.radians(23.439 - 0.0000004 * n)

    declination = math.asin(math.sin(obliquity) * math.sin(ecliptic_lon))
    right_ascension = math.degrees(math.atan2(
        math.cos(obliquity) * math.sin(ecliptic_lon), math.cos(ecliptic_lon)
    ))

    # Equation of time: mean minus apparent solar longitude, 4 minutes per degree
    eot_deg = (mean_lon - right_ascension + 180) % 360 - 180
    eot_min = 4 * eot_deg

    utc_hours = (instant.hour + instant.minute / 60 + instant.second / 3600
                 + instant.microsecond / 3.6e9)
    subsolar_lon = normalize_longitude(-15 * (utc_hours - 12 + eot_min / 60))

    return SolarPosition(
        julian_day=jd,
        declination_deg=math.degrees(declination),
        equation_of_time_min=eot_min,
        subsolar=Coordinate(math.degrees(declination), subsolar_lon),
    )


def solar_subpoint(instant: datetime) -> Coordinate:
    """Point on Earth directly below the sun at the given instant."""
    return solar_position(instant).subsolar


def solar_elevation_deg(coord: Coordinate, instant: datetime) -> float:
    """Geometric solar elevation (no refraction) seen from coord."""
    sub = solar_subpoint(instant)
    lat = math.radians(coord.latitude)
    dec = math.radians(sub.latitude)
    hour_angle = math.radians(coord.longitude - sub.longitude)
    sin_elev = math.sin(lat) * math.sin(dec) + math.cos(lat) * math.cos(dec) * math.cos(hour_angle)
    return math.degrees(math.asin(min(max(sin_elev, -1.0), 1.0)))


def is_night(coord: Coordinate, instant: datetime) -> bool:
    """True when the sun is below the horizon at coord."""
    return solar_elevation_deg(coord, instant) < 0


def _terminator_latitude(declination: float, hour_angle: float) -> float | None:
    """Latitude (deg) where solar elevation is zero, or None if undefined."""
    sin_dec = math.sin(declination)
    if sin_dec == 0:
        return None
    tan_lat = -math.cos(declination) * math.cos(hour_angle) / sin_dec
    if not math.isfinite(tan_lat):
        return None
    lat = math.degrees(math.atan(tan_lat))
    if not -90 <= lat <= 90:
        return None
    return lat


def _join_at_antimeridian(samples: list[tuple[float, float]]) -> list[tuple[float, float]]:
    """Insert +/-180 boundary points where consecutive samples wrap around.

    The result is rotated to start at the -180 boundary so it reads west to east.
    """
    if not samples:
        return []

    points = [samples[0]]
    start = 0
    for prev, cur in zip(samples, samples[1:]):
        if abs(cur[0] - prev[0]) > 180:
            if prev[0] > cur[0]:
                # eastward across the line
                span = cur[0] + 360 - prev[0]
                t = (180 - prev[0]) / span if span else 0.0
                lat = prev[1] + t * (cur[1] - prev[1])
                if prev[0] != 180:
                    points.append((180.0, lat))
                start = len(points)
                points.append((-180.0, lat))
            else:
                span = prev[0] + 360 - cur[0]
                t = (prev[0] + 180) / span if span else 0.0
                lat = prev[1] + t * (cur[1] - prev[1])
                points.append((-180.0, lat))
                start = len(points) - 1
                points.append((180.0, lat))
        points.append(cur)

    return points[start:] + points[:start]


def terminator_curve(instant: datetime, step_deg: float = DEFAULT_TERMINATOR_STEP) -> TerminatorCurve:
    """Day/night boundary for the given instant.

    Longitudes are sampled every step_deg around the globe starting from the
    anti-solar meridian. Samples where the latitude is undefined (declination
    exactly zero) are skipped rather than emitted as NaN/inf.

    Args:
        instant: Time of interest (naive datetimes are taken as UTC)
        step_deg: Longitude sampling step in degrees

    Returns:
        TerminatorCurve with (lon, lat) points ordered west to east, the
        subsolar point and which side of the curve ('north'/'south') is dark
    """
    if step_deg <= 0:
        raise ValueError("step_deg must be positive")

    pos = solar_position(instant)
    declination = math.radians(pos.declination_deg)
    sub_lon = pos.subsolar.longitude

    samples = []
    skipped = 0
    count = int(round(360 / step_deg))
    for i in range(count):
        offset = -180 + i * step_deg
        lat = _terminator_latitude(declination, math.radians(offset))
        if lat is None:
            skipped += 1
            continue
        samples.append((normalize_longitude(sub_lon + offset), lat))

    if skipped:
        log_debug("terminator_samples_skipped", skipped=skipped, declination=pos.declination_deg)

    # The sunlit pole is on the subsolar side; the opposite side is dark
    night_side = "south" if pos.subsolar.latitude >= 0 else "north"

    return TerminatorCurve(
        points=tuple(_join_at_antimeridian(samples)),
        subsolar=pos.subsolar,
        declination_deg=pos.declination_deg,
        night_side=night_side,
    )
