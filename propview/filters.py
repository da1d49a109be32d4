"""Caller-side spot filtering, applied before handing spots to the aggregator."""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from .aggregator import iter_valid_spots, spot_distance_km
from .geo_utils import calc_bearing, calc_distance_km
from .models import Coordinate, PropagationSpot

# Minimum SNR (dB) for each quality threshold; same cut points as band conditions
QUALITY_MIN_SNR = {
    "excellent": -5.0,
    "good": -10.0,
    "fair": -15.0,
}
QUALITY_THRESHOLDS = ("any", *QUALITY_MIN_SNR)


@dataclass(frozen=True)
class FilterSettings:
    """What the user asked to see. Empty collections / None mean "no constraint"."""

    bands: frozenset[str] = frozenset()
    modes: frozenset[str] = frozenset()
    sources: frozenset[str] = frozenset()
    start: datetime | None = None
    end: datetime | None = None

    callsign_search: str = ""
    transmitter_only: bool = False
    receiver_only: bool = False
    exact_match: bool = False

    min_snr: float | None = None
    max_snr: float | None = None
    quality_threshold: str = "any"

    from_location: Coordinate | None = None
    min_distance_km: float | None = None
    max_distance_km: float | None = None
    bearing_min: float | None = None
    bearing_max: float | None = None
    grid_squares: tuple[str, ...] = ()

    unique_only: bool = False
    bidirectional_only: bool = False

    def __post_init__(self):
        if self.quality_threshold not in QUALITY_THRESHOLDS:
            raise ValueError(f"quality_threshold must be one of {QUALITY_THRESHOLDS}")


def _callsign_match(settings: FilterSettings, callsign: str) -> bool:
    term = settings.callsign_search.strip().upper()
    if settings.exact_match:
        return callsign.upper() == term
    return term in callsign.upper()


def _bearing_in_window(bearing: float, low: float, high: float) -> bool:
    low %= 360
    high %= 360
    if low <= high:
        return low <= bearing <= high
    # Window wraps through north, e.g. 300..60
    return bearing >= low or bearing <= high


def _distance(settings: FilterSettings, spot: PropagationSpot) -> float | None:
    if settings.from_location is None:
        return spot_distance_km(spot)
    # Nearest endpoint from the reference location
    distances = [
        calc_distance_km(settings.from_location, station.location)
        for station in (spot.transmitter, spot.receiver)
        if station.location is not None
    ]
    return min(distances) if distances else None


def _in_grid_squares(settings: FilterSettings, spot: PropagationSpot) -> bool:
    prefixes = [g.strip().upper() for g in settings.grid_squares if g.strip()]
    for station in (spot.transmitter, spot.receiver):
        locator = (station.locator or "").upper()
        if locator and any(locator.startswith(p) for p in prefixes):
            return True
    return False


def spot_matches(spot: PropagationSpot, settings: FilterSettings) -> bool:
    """True when a single spot passes every per-spot constraint."""
    if settings.bands and spot.band not in settings.bands:
        return False
    if settings.modes and spot.mode not in settings.modes:
        return False
    if settings.sources and spot.source not in settings.sources:
        return False
    if settings.start is not None and spot.timestamp < settings.start:
        return False
    if settings.end is not None and spot.timestamp > settings.end:
        return False

    if settings.callsign_search.strip():
        tx = _callsign_match(settings, spot.transmitter.callsign)
        rx = _callsign_match(settings, spot.receiver.callsign)
        if settings.transmitter_only:
            if not tx:
                return False
        elif settings.receiver_only:
            if not rx:
                return False
        elif not (tx or rx):
            return False

    if spot.snr_db is None:
        # Unreported SNR cannot meet a quality threshold
        if settings.quality_threshold != "any":
            return False
    else:
        if settings.min_snr is not None and spot.snr_db < settings.min_snr:
            return False
        if settings.max_snr is not None and spot.snr_db > settings.max_snr:
            return False
        if settings.quality_threshold != "any" and spot.snr_db < QUALITY_MIN_SNR[settings.quality_threshold]:
            return False

    if settings.min_distance_km is not None or settings.max_distance_km is not None:
        distance = _distance(settings, spot)
        if distance is None:
            return False
        if settings.min_distance_km is not None and distance < settings.min_distance_km:
            return False
        if settings.max_distance_km is not None and distance > settings.max_distance_km:
            return False

    if settings.bearing_min is not None and settings.bearing_max is not None:
        tx, rx = spot.transmitter.location, spot.receiver.location
        if tx is None or rx is None:
            return False
        if not _bearing_in_window(calc_bearing(tx, rx), settings.bearing_min, settings.bearing_max):
            return False

    if settings.grid_squares and not _in_grid_squares(settings, spot):
        return False

    return True


def apply_filters(spots: Iterable, settings: FilterSettings) -> list[PropagationSpot]:
    """Filter a spot snapshot.

    Args:
        spots: PropagationSpot records or plain mappings; unusable entries
            are dropped with a warning
        settings: Filter settings

    Returns:
        Matching spots in input order
    """
    matched = [spot for spot in iter_valid_spots(spots) if spot_matches(spot, settings)]

    if settings.bidirectional_only:
        pairs = {(s.transmitter.callsign, s.receiver.callsign) for s in matched}
        matched = [s for s in matched if (s.receiver.callsign, s.transmitter.callsign) in pairs]

    if settings.unique_only:
        seen = set()
        unique = []
        for spot in matched:
            key = (spot.transmitter.callsign, spot.receiver.callsign)
            if key in seen:
                continue
            seen.add(key)
            unique.append(spot)
        matched = unique

    return matched
