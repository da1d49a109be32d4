"""Maidenhead grid locator encoding and decoding.

A locator is read in pairs:
    field     : 2 letters A-R  -> 20 deg lon x 10 deg lat
    square    : 2 digits  0-9  ->  2 deg lon x  1 deg lat
    subsquare : 2 letters A-X  ->  5' lon    x  2.5' lat

Decoding is case-insensitive. Encoding writes the conventional form: field
upper-case, subsquare lower-case (e.g. FN31pr). Round trips are therefore
case-normalized: encode(decode("AA00AA"), "subsquare") gives "AA00aa".
"""

import math

from .models import Coordinate, GridBounds

PRECISIONS = {"field": 2, "square": 4, "subsquare": 6}

# Cell sizes (lon, lat) in degrees at each precision
_CELL = {
    2: (20.0, 10.0),
    4: (2.0, 1.0),
    6: (2.0 / 24, 1.0 / 24),
}

# Whole subsquares across the globe: 18 fields x 10 squares x 24 subsquares
_SUBSQUARES = 18 * 10 * 24


class InvalidLocator(ValueError):
    """Malformed Maidenhead locator string."""


def _cell_origin(locator: str) -> tuple[float, float, int]:
    """South-west corner (lon, lat) of the cell a locator names, plus its length."""
    if not isinstance(locator, str):
        raise InvalidLocator(f"Locator must be a string, got {type(locator).__name__}")

    grid = locator.strip().upper()
    if len(grid) not in PRECISIONS.values():
        raise InvalidLocator(f"Locator {locator!r} must be 2, 4 or 6 characters")

    if not ("A" <= grid[0] <= "R" and "A" <= grid[1] <= "R"):
        raise InvalidLocator(f"Locator {locator!r} has an invalid field (A-R)")
    lon = (ord(grid[0]) - ord("A")) * 20 - 180
    lat = (ord(grid[1]) - ord("A")) * 10 - 90

    if len(grid) >= 4:
        if not (grid[2].isdigit() and grid[3].isdigit() and grid[2:4].isascii()):
            raise InvalidLocator(f"Locator {locator!r} has an invalid square (0-9)")
        lon += int(grid[2]) * 2
        lat += int(grid[3]) * 1

    if len(grid) == 6:
        if not ("A" <= grid[4] <= "X" and "A" <= grid[5] <= "X"):
            raise InvalidLocator(f"Locator {locator!r} has an invalid subsquare (A-X)")
        lon += (ord(grid[4]) - ord("A")) * (2 / 24)
        lat += (ord(grid[5]) - ord("A")) * (1 / 24)

    return lon, lat, len(grid)


def decode(locator: str) -> Coordinate:
    """Convert a Maidenhead locator to the center of its smallest cell.

    Args:
        locator: Maidenhead locator (2, 4 or 6 characters)

    Returns:
        Coordinate of the cell center

    Raises:
        InvalidLocator: if the string is malformed
    """
    lon, lat, length = _cell_origin(locator)
    width, height = _CELL[length]
    lon += width / 2
    lat += height / 2

    if not (-90 <= lat <= 90 and -180 <= lon <= 180):
        raise InvalidLocator(f"Locator {locator!r} decodes outside the globe")
    return Coordinate(latitude=lat, longitude=lon)


def locator_bounds(locator: str) -> GridBounds:
    """Bounding box of the cell a locator names.

    Raises:
        InvalidLocator: if the string is malformed
    """
    lon, lat, length = _cell_origin(locator)
    width, height = _CELL[length]
    return GridBounds(west=lon, south=lat, east=lon + width, north=lat + height)


def is_valid_locator(locator: object) -> bool:
    """Check a locator without raising."""
    try:
        _cell_origin(locator)
    except InvalidLocator:
        return False
    return True


def encode(coord: Coordinate, precision: str = "subsquare") -> str:
    """Convert a coordinate to a Maidenhead locator.

    Args:
        coord: Coordinate to encode (longitude may be any finite value)
        precision: "field", "square" or "subsquare"

    Returns:
        Locator string of 2, 4 or 6 characters
    """
    if precision not in PRECISIONS:
        raise ValueError(f"Unknown precision {precision!r}")

    lon = (coord.longitude + 180.0) % 360.0
    lat = min(max(coord.latitude, -90.0), 90.0) + 90.0

    # Work in whole subsquares so cell boundaries are exact
    lon_units = min(max(int(math.floor(lon * 12)), 0), _SUBSQUARES - 1)
    lat_units = min(max(int(math.floor(lat * 24)), 0), _SUBSQUARES - 1)

    grid = chr(ord("A") + lon_units // 240) + chr(ord("A") + lat_units // 240)
    if precision == "field":
        return grid

    grid += str((lon_units % 240) // 24) + str((lat_units % 240) // 24)
    if precision == "square":
        return grid

    return grid + chr(ord("a") + lon_units % 24) + chr(ord("a") + lat_units % 24)
