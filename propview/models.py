"""Data records shared by the aggregation, geometry and worker layers.

Every record is a frozen dataclass. Spots come in from the data-fetch layer
(either already built or as plain mappings through PropagationSpot.from_dict)
and every result goes back out through to_plain(), which is also the wire
format used across the worker boundary. PropagationSpot.from_plain is the
exact inverse of to_plain for spots.
"""

import dataclasses
import enum
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone


class InvalidSpot(ValueError):
    """A spot record is structurally unusable (bad band, callsign, coordinate...)."""


class Condition(str, enum.Enum):
    POOR = "POOR"
    FAIR = "FAIR"
    GOOD = "GOOD"
    EXCELLENT = "EXCELLENT"


class Trend(str, enum.Enum):
    IMPROVING = "IMPROVING"
    STABLE = "STABLE"
    DECLINING = "DECLINING"


@dataclass(frozen=True)
class Coordinate:
    """Geographic point in decimal degrees."""

    latitude: float
    longitude: float

    def is_valid(self) -> bool:
        return (
            math.isfinite(self.latitude)
            and math.isfinite(self.longitude)
            and -90.0 <= self.latitude <= 90.0
            and -180.0 <= self.longitude <= 180.0
        )


@dataclass(frozen=True)
class Station:
    """One end of a spot. location is None when the station position is unknown."""

    callsign: str
    location: Coordinate | None = None
    locator: str | None = None


@dataclass(frozen=True)
class PropagationSpot:
    """A single observation: receiver heard transmitter on a band/mode."""

    id: str
    timestamp: datetime
    frequency_hz: float
    band: str
    mode: str
    transmitter: Station
    receiver: Station
    snr_db: float | None = None
    source: str = "PSK_REPORTER"

    @classmethod
    def from_dict(cls, data: dict) -> "PropagationSpot":
        """Build a spot from a plain mapping delivered by the data-fetch layer.

        Accepts the feed's camelCase keys (frequency, snr, signalReport) as well
        as the snake_case field names. Distance and bearing keys, if present,
        are ignored: they are always recomputed from the station locations.

        Raises:
            InvalidSpot: when a required field is missing or unparseable
        """
        if not isinstance(data, dict):
            raise InvalidSpot(f"spot must be a mapping, got {type(data).__name__}")

        try:
            transmitter = _station_from_dict(data["transmitter"])
            receiver = _station_from_dict(data["receiver"])
            timestamp = _parse_timestamp(data["timestamp"])
        except KeyError as e:
            raise InvalidSpot(f"missing field {e.args[0]!r}") from e

        frequency = data.get("frequency_hz", data.get("frequencyHz", data.get("frequency", 0)))
        try:
            frequency = float(frequency or 0)
        except (TypeError, ValueError) as e:
            raise InvalidSpot(f"bad frequency {frequency!r}") from e

        snr = data.get("snr_db", data.get("snrDb", data.get("snr")))
        if snr is None and data.get("signalReport") not in (None, ""):
            snr = data["signalReport"]
        if snr is not None:
            try:
                snr = float(snr)
            except (TypeError, ValueError) as e:
                raise InvalidSpot(f"bad snr {snr!r}") from e
            if not math.isfinite(snr):
                snr = None

        spot_id = data.get("id") or f"{transmitter.callsign}-{receiver.callsign}-{timestamp.timestamp():.0f}"

        return cls(
            id=str(spot_id),
            timestamp=timestamp,
            frequency_hz=frequency,
            band=data.get("band", ""),
            mode=data.get("mode", ""),
            transmitter=transmitter,
            receiver=receiver,
            snr_db=snr,
            source=data.get("source", "PSK_REPORTER"),
        )

    @classmethod
    def from_plain(cls, data: dict) -> "PropagationSpot":
        """Rebuild a spot from its to_plain() form, exactly.

        Unlike from_dict, no feed conventions are applied: a (0, 0) location
        stays (0, 0) and a station without a location is not filled in
        from its locator.

        Raises:
            InvalidSpot: when data is not the plain form of a spot
        """
        try:
            return cls(
                id=data["id"],
                timestamp=datetime.fromisoformat(data["timestamp"]),
                frequency_hz=data["frequency_hz"],
                band=data["band"],
                mode=data["mode"],
                transmitter=_station_from_plain(data["transmitter"]),
                receiver=_station_from_plain(data["receiver"]),
                snr_db=data["snr_db"],
                source=data["source"],
            )
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidSpot(f"not a plain spot: {e}") from e


@dataclass(frozen=True)
class BestDx:
    distance_km: float
    callsign: str
    location: Coordinate


@dataclass(frozen=True)
class BandCondition:
    band: str
    condition: Condition
    confidence_score: float
    spot_count: int
    average_snr_db: float | None = None
    best_dx: BestDx | None = None
    trend: Trend = Trend.STABLE


@dataclass(frozen=True)
class MapMarker:
    id: str
    position: Coordinate
    callsign_label: str
    spot_count: int
    last_activity: datetime
    bands_heard: frozenset[str]
    modes_heard: frozenset[str]
    callsigns: tuple[str, ...] = ()
    best_snr_db: float | None = None
    locators: frozenset[str] = frozenset()
    popup_title: str = ""


@dataclass(frozen=True)
class PropagationPath:
    id: str
    transmitter: str
    receiver: str
    from_: Coordinate
    to: Coordinate
    spots: tuple[PropagationSpot, ...]
    quality: Condition
    distance_km: float
    bearing_deg: float
    average_snr_db: float | None = None
    segments: tuple[tuple[Coordinate, ...], ...] = ()


@dataclass(frozen=True)
class SpotStatistics:
    total_spots: int
    unique_transmitters: int
    unique_receivers: int
    band_distribution: dict[str, int]
    mode_distribution: dict[str, int]
    average_snr_db: float | None
    max_distance_km: float
    time_range: tuple[datetime, datetime] | None
    distance_ranges: dict[str, int] = field(default_factory=dict)
    snr_ranges: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class AggregateResult:
    band_conditions: list[BandCondition]
    map_markers: list[MapMarker]
    propagation_paths: list[PropagationPath]
    statistics: SpotStatistics


@dataclass(frozen=True)
class SolarPosition:
    julian_day: float
    declination_deg: float
    equation_of_time_min: float
    subsolar: Coordinate


@dataclass(frozen=True)
class TerminatorCurve:
    """Day/night boundary as (longitude, latitude) samples, west to east."""

    points: tuple[tuple[float, float], ...]
    subsolar: Coordinate
    declination_deg: float
    night_side: str


@dataclass(frozen=True)
class AuroralOval:
    north: tuple[Coordinate, ...]
    south: tuple[Coordinate, ...]
    k_index: float
    radius_deg: float


@dataclass(frozen=True)
class GridBounds:
    west: float
    south: float
    east: float
    north: float


@dataclass(frozen=True)
class GridSquare:
    locator: str
    bounds: GridBounds
    level: str


def to_plain(obj):
    """Convert records into JSON-safe builtins.

    Sets become sorted lists, datetimes ISO-8601 UTC strings and enums their
    value, so two equal results always serialise identically.
    """
    if isinstance(obj, enum.Enum):
        return obj.value
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {
            f.name.rstrip("_"): to_plain(getattr(obj, f.name))
            for f in dataclasses.fields(obj)
        }
    if isinstance(obj, datetime):
        return obj.astimezone(timezone.utc).isoformat()
    if isinstance(obj, dict):
        return {str(k): to_plain(v) for k, v in obj.items()}
    if isinstance(obj, (set, frozenset)):
        return sorted(to_plain(v) for v in obj)
    if isinstance(obj, (list, tuple)):
        return [to_plain(v) for v in obj]
    return obj


def _station_from_dict(data: dict) -> Station:
    from .locator import InvalidLocator, decode

    if not isinstance(data, dict):
        raise InvalidSpot("station must be a mapping")

    callsign = str(data.get("callsign") or "").strip().upper()
    locator = data.get("locator") or data.get("maidenhead") or data.get("gridSquare")
    location = None

    loc = data.get("location")
    if isinstance(loc, dict):
        locator = locator or loc.get("maidenhead") or loc.get("gridSquare") or loc.get("locator")
        if loc.get("latitude") is not None and loc.get("longitude") is not None:
            try:
                location = Coordinate(float(loc["latitude"]), float(loc["longitude"]))
            except (TypeError, ValueError) as e:
                raise InvalidSpot(f"bad location for {callsign or '?'}") from e
            # Legacy feeds use (0, 0) for "no location"
            if location.latitude == 0 and location.longitude == 0:
                location = None

    if location is None and locator:
        try:
            location = decode(locator)
        except InvalidLocator:
            location = None

    return Station(callsign=callsign, location=location, locator=locator or None)


def _station_from_plain(data: dict) -> Station:
    loc = data["location"]
    location = Coordinate(loc["latitude"], loc["longitude"]) if loc is not None else None
    return Station(callsign=data["callsign"], location=location, locator=data["locator"])


def _parse_timestamp(value) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if not math.isfinite(value):
            raise InvalidSpot(f"bad timestamp {value!r}")
        # Epoch milliseconds from browser-side feeds, seconds otherwise
        seconds = value / 1000 if value > 1e11 else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as e:
            raise InvalidSpot(f"timestamp out of range {value!r}") from e
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as e:
            raise InvalidSpot(f"bad timestamp {value!r}") from e
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    raise InvalidSpot(f"bad timestamp {value!r}")
