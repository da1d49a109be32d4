"""Spot aggregation: band conditions, clustered map markers, paths and statistics.

Every function here takes a full snapshot of spots and returns a fresh
result. Inputs may be PropagationSpot records or plain mappings from the
data-fetch layer; entries that cannot be used are skipped one at a time
with a warning, so one bad record never blanks out a band.
"""

import dataclasses
import math
from collections.abc import Iterable, Iterator
from datetime import datetime, timezone

from .band_utils import band_index, is_valid_band
from .geo_utils import calc_bearing, calc_distance_km, split_at_antimeridian
from .logging_utils import log_warning
from .models import (
    AggregateResult,
    BandCondition,
    BestDx,
    Condition,
    InvalidSpot,
    MapMarker,
    PropagationPath,
    PropagationSpot,
    SpotStatistics,
    Trend,
)

# Spots needed for full confidence in a band assessment
FULL_CONFIDENCE_SPOTS = 50

# (minimum average SNR dB, condition), checked in order
SNR_THRESHOLDS = (
    (-5.0, Condition.EXCELLENT),
    (-10.0, Condition.GOOD),
    (-15.0, Condition.FAIR),
)

# (minimum spot count, condition) when no spot reports SNR
SPOT_COUNT_THRESHOLDS = (
    (20, Condition.EXCELLENT),
    (10, Condition.GOOD),
    (5, Condition.FAIR),
)

# Receiver coordinates are clustered at this many decimal places
MARKER_PRECISION = 6

DISTANCE_RANGES = (
    ("Local (0-500km)", 0, 500),
    ("Regional (500-1500km)", 500, 1500),
    ("Continental (1500-5000km)", 1500, 5000),
    ("DX (5000km+)", 5000, None),
)

SNR_RANGES = (
    ("Excellent (-5dB+)", -5.0, None),
    ("Good (-10 to -5dB)", -10.0, -5.0),
    ("Fair (-15 to -10dB)", -15.0, -10.0),
    ("Poor (<-15dB)", None, -15.0),
)


def classify_snr(average_snr_db: float) -> Condition:
    """Condition for an average SNR using the -5/-10/-15 dB thresholds."""
    for threshold, condition in SNR_THRESHOLDS:
        if average_snr_db >= threshold:
            return condition
    return Condition.POOR


def classify_spot_count(spot_count: int) -> Condition:
    """Condition from spot volume alone, for bands without SNR reports."""
    for threshold, condition in SPOT_COUNT_THRESHOLDS:
        if spot_count >= threshold:
            return condition
    return Condition.POOR


def validate_spot(spot: PropagationSpot) -> None:
    """Check a spot is usable for aggregation.

    Raises:
        InvalidSpot: describing the first problem found
    """
    if not is_valid_band(spot.band):
        raise InvalidSpot(f"unknown band {spot.band!r}")
    if not isinstance(spot.mode, str) or not spot.mode.strip():
        raise InvalidSpot("missing mode")
    if not isinstance(spot.timestamp, datetime):
        raise InvalidSpot(f"bad timestamp {spot.timestamp!r}")
    if spot.snr_db is not None and not (
            isinstance(spot.snr_db, (int, float)) and math.isfinite(spot.snr_db)):
        raise InvalidSpot(f"bad snr {spot.snr_db!r}")
    for role, station in (("transmitter", spot.transmitter), ("receiver", spot.receiver)):
        if not station.callsign:
            raise InvalidSpot(f"missing {role} callsign")
        if station.location is not None and not station.location.is_valid():
            raise InvalidSpot(f"{role} location out of range: {station.location}")


def iter_valid_spots(spots: Iterable) -> Iterator[PropagationSpot]:
    """Yield usable spots, coercing mappings and skipping bad entries with a warning."""
    for index, item in enumerate(spots):
        try:
            spot = item if isinstance(item, PropagationSpot) else PropagationSpot.from_dict(item)
            validate_spot(spot)
        except InvalidSpot as e:
            log_warning(
                "spot_skipped",
                index=index,
                spot_id=getattr(item, "id", None) if not isinstance(item, dict) else item.get("id"),
                reason=str(e),
            )
            continue
        if spot.timestamp.tzinfo is None:
            # Naive times are UTC, as in PropagationSpot.from_dict
            spot = dataclasses.replace(spot, timestamp=spot.timestamp.replace(tzinfo=timezone.utc))
        yield spot


def spot_distance_km(spot: PropagationSpot) -> float | None:
    """Transmitter-receiver distance, or None when either location is unknown."""
    tx, rx = spot.transmitter.location, spot.receiver.location
    if tx is None or rx is None:
        return None
    return calc_distance_km(tx, rx)


def _mean(values: list[float]) -> float | None:
    return sum(values) / len(values) if values else None


def analyze_band_conditions(spots: Iterable) -> list[BandCondition]:
    """Summarize propagation per band.

    Args:
        spots: Spot snapshot (PropagationSpot records or mappings)

    Returns:
        One BandCondition per band present, in band order (160m ... 2m)
    """
    by_band: dict[str, list[PropagationSpot]] = {}
    for spot in iter_valid_spots(spots):
        by_band.setdefault(spot.band, []).append(spot)

    conditions = []
    for band in sorted(by_band, key=band_index):
        band_spots = by_band[band]
        spot_count = len(band_spots)
        average_snr = _mean([s.snr_db for s in band_spots if s.snr_db is not None])

        # argmax over distance, first occurrence wins ties
        best_dx = None
        for spot in band_spots:
            distance = spot_distance_km(spot)
            if distance is None:
                continue
            if best_dx is None or distance > best_dx.distance_km:
                best_dx = BestDx(
                    distance_km=distance,
                    callsign=spot.transmitter.callsign,
                    location=spot.transmitter.location,
                )

        if average_snr is not None:
            condition = classify_snr(average_snr)
        else:
            condition = classify_spot_count(spot_count)

        conditions.append(BandCondition(
            band=band,
            condition=condition,
            confidence_score=min(100.0, spot_count / FULL_CONFIDENCE_SPOTS * 100),
            spot_count=spot_count,
            average_snr_db=average_snr,
            best_dx=best_dx,
            trend=Trend.STABLE,
        ))

    return conditions


def cluster_markers(spots: Iterable) -> list[MapMarker]:
    """Build one map marker per receiver site.

    Receiver coordinates are rounded to MARKER_PRECISION decimals; all spots
    that land on the same key share a marker. Receivers with unknown
    location are left off the map.

    Returns:
        Markers in order of first appearance
    """
    sites: dict[tuple[float, float], dict] = {}

    for spot in iter_valid_spots(spots):
        position = spot.receiver.location
        if position is None:
            continue
        key = (round(position.latitude, MARKER_PRECISION), round(position.longitude, MARKER_PRECISION))
        site = sites.get(key)
        if site is None:
            site = sites[key] = {
                "position": position,
                "callsigns": {},
                "spot_count": 0,
                "last_activity": spot.timestamp,
                "best_snr": None,
                "bands": set(),
                "modes": set(),
                "locators": set(),
            }
        site["callsigns"].setdefault(spot.receiver.callsign, None)
        site["spot_count"] += 1
        if spot.timestamp > site["last_activity"]:
            site["last_activity"] = spot.timestamp
        if spot.snr_db is not None and (site["best_snr"] is None or spot.snr_db > site["best_snr"]):
            site["best_snr"] = spot.snr_db
        site["bands"].add(spot.band)
        site["modes"].add(spot.mode)
        if spot.receiver.locator:
            site["locators"].add(spot.receiver.locator)

    markers = []
    for index, site in enumerate(sites.values()):
        callsigns = tuple(site["callsigns"])
        primary = callsigns[0]
        if len(callsigns) > 1:
            label = f"{primary} +{len(callsigns) - 1}"
            title = f"Multiple Stations ({len(callsigns)})"
        else:
            label = primary
            title = f"{primary} (Monitor)"

        markers.append(MapMarker(
            id=f"receiver-{index}",
            position=site["position"],
            callsign_label=label,
            spot_count=site["spot_count"],
            last_activity=site["last_activity"],
            bands_heard=frozenset(site["bands"]),
            modes_heard=frozenset(site["modes"]),
            callsigns=callsigns,
            best_snr_db=site["best_snr"],
            locators=frozenset(site["locators"]),
            popup_title=title,
        ))

    return markers


def build_paths(spots: Iterable) -> list[PropagationPath]:
    """Group spots into directed transmitter -> receiver paths.

    A->B and B->A are separate paths. Endpoints, distance and bearing come
    from the first spot of each pair that has both locations. Pairs with no
    located spot are skipped with a warning.

    Returns:
        Paths sorted longest first
    """
    pairs: dict[tuple[str, str], list[PropagationSpot]] = {}
    for spot in iter_valid_spots(spots):
        pairs.setdefault((spot.transmitter.callsign, spot.receiver.callsign), []).append(spot)

    paths = []
    for (tx_call, rx_call), pair_spots in pairs.items():
        anchor = next(
            (s for s in pair_spots if s.transmitter.location is not None and s.receiver.location is not None),
            None,
        )
        if anchor is None:
            log_warning("path_skipped", transmitter=tx_call, receiver=rx_call,
                        reason="no spot with both locations")
            continue

        start = anchor.transmitter.location
        end = anchor.receiver.location
        average_snr = _mean([s.snr_db for s in pair_spots if s.snr_db is not None])
        if average_snr is not None:
            quality = classify_snr(average_snr)
        else:
            quality = classify_spot_count(len(pair_spots))

        paths.append(PropagationPath(
            id=f"path-{len(paths)}",
            transmitter=tx_call,
            receiver=rx_call,
            from_=start,
            to=end,
            spots=tuple(pair_spots),
            quality=quality,
            distance_km=calc_distance_km(start, end),
            bearing_deg=calc_bearing(start, end),
            average_snr_db=average_snr,
            segments=tuple(tuple(seg) for seg in split_at_antimeridian(start, end)),
        ))

    # sorted() is stable, so equal distances keep first-appearance order
    return sorted(paths, key=lambda p: p.distance_km, reverse=True)


def _bucket(value: float, ranges) -> str | None:
    for label, low, high in ranges:
        if (low is None or value >= low) and (high is None or value < high):
            return label
    return None


def compute_statistics(spots: Iterable) -> SpotStatistics:
    """Corpus-wide statistics in a single pass.

    Returns:
        SpotStatistics; average_snr_db and time_range are None when the
        input has no SNR reports / no spots
    """
    transmitters = set()
    receivers = set()
    bands: dict[str, int] = {}
    modes: dict[str, int] = {}
    distance_ranges = {label: 0 for label, _, _ in DISTANCE_RANGES}
    snr_ranges = {label: 0 for label, _, _ in SNR_RANGES}
    snr_sum = 0.0
    snr_count = 0
    max_distance = 0.0
    start = end = None
    total = 0

    for spot in iter_valid_spots(spots):
        total += 1
        transmitters.add(spot.transmitter.callsign)
        receivers.add(spot.receiver.callsign)
        bands[spot.band] = bands.get(spot.band, 0) + 1
        modes[spot.mode] = modes.get(spot.mode, 0) + 1

        if spot.snr_db is not None:
            snr_sum += spot.snr_db
            snr_count += 1
            snr_ranges[_bucket(spot.snr_db, SNR_RANGES)] += 1

        distance = spot_distance_km(spot)
        if distance is not None:
            max_distance = max(max_distance, distance)
            distance_ranges[_bucket(distance, DISTANCE_RANGES)] += 1

        if start is None or spot.timestamp < start:
            start = spot.timestamp
        if end is None or spot.timestamp > end:
            end = spot.timestamp

    return SpotStatistics(
        total_spots=total,
        unique_transmitters=len(transmitters),
        unique_receivers=len(receivers),
        band_distribution={b: bands[b] for b in sorted(bands, key=band_index)},
        mode_distribution=dict(sorted(modes.items())),
        average_snr_db=snr_sum / snr_count if snr_count else None,
        max_distance_km=max_distance,
        time_range=(start, end) if start is not None else None,
        distance_ranges=distance_ranges,
        snr_ranges=snr_ranges,
    )


def recent_spots(spots: Iterable, search: str = "", limit: int = 100) -> list[PropagationSpot]:
    """Recent-spot feed: newest first, optionally filtered by a search term.

    The search is case-insensitive and matches either callsign, the band or
    the mode.
    """
    term = search.strip().lower()
    matched = []
    for spot in iter_valid_spots(spots):
        if term and not any(
            term in field.lower()
            for field in (spot.transmitter.callsign, spot.receiver.callsign, spot.band, spot.mode)
        ):
            continue
        matched.append(spot)

    matched.sort(key=lambda s: s.timestamp, reverse=True)
    return matched[:limit]


def process_all(spots: Iterable) -> AggregateResult:
    """Run every aggregation over one snapshot."""
    snapshot = list(iter_valid_spots(spots))
    return AggregateResult(
        band_conditions=analyze_band_conditions(snapshot),
        map_markers=cluster_markers(snapshot),
        propagation_paths=build_paths(snapshot),
        statistics=compute_statistics(snapshot),
    )
