"""Maidenhead grid overlay: which cells are visible in a map viewport."""

import math

from .models import GridBounds, GridSquare

# Zoom levels at or below this draw fields, above it squares
FIELD_ZOOM_MAX = 3

_LEVELS = {
    # level: (cell width, cell height, columns per field, rows per field)
    "field": (20.0, 10.0, 1, 1),
    "square": (2.0, 1.0, 10, 10),
}


def grid_level(zoom_level: float, field_zoom_max: float = FIELD_ZOOM_MAX) -> str:
    """Grid precision to draw at a zoom level."""
    return "field" if zoom_level <= field_zoom_max else "square"


def _locator(level: str, col: int, row: int) -> str:
    _, _, per_col, per_row = _LEVELS[level]
    field = chr(ord("A") + col // per_col) + chr(ord("A") + row // per_row)
    if level == "field":
        return field
    return field + str(col % per_col) + str(row % per_row)


def visible_squares(
    viewport_west_lng: float,
    viewport_east_lng: float,
    zoom_level: float,
    viewport_south_lat: float = -90.0,
    viewport_north_lat: float = 90.0,
    field_zoom_max: float = FIELD_ZOOM_MAX,
) -> list[GridSquare]:
    """Enumerate grid cells covering a viewport.

    The longitude span is taken as unwrapped map longitudes, so a viewport
    of -200..160 yields cells on both world copies. A viewport whose east
    edge is numerically west of its west edge is read as crossing the
    antimeridian. Cells keep the unwrapped bounds of the copy they are drawn
    on; their locator names the real cell.

    Returns:
        GridSquare list sorted by (west, south), identical for identical input
    """
    west, east = float(viewport_west_lng), float(viewport_east_lng)
    if east < west:
        east += 360.0
    south = max(-90.0, min(viewport_south_lat, viewport_north_lat))
    north = min(90.0, max(viewport_south_lat, viewport_north_lat))

    level = grid_level(zoom_level, field_zoom_max)
    width, height, per_col, per_row = _LEVELS[level]
    columns = int(round(360 / width))
    rows = int(round(180 / height))

    first_col = math.floor((west + 180.0) / width)
    last_col = math.ceil((east + 180.0) / width) - 1
    first_row = max(0, math.floor((south + 90.0) / height))
    last_row = min(rows - 1, math.ceil((north + 90.0) / height) - 1)

    squares = set()
    for col in range(first_col, max(first_col, last_col) + 1):
        real_col = col % columns
        cell_west = -180.0 + col * width
        for row in range(first_row, max(first_row, last_row) + 1):
            cell_south = -90.0 + row * height
            squares.add(GridSquare(
                locator=_locator(level, real_col, row),
                bounds=GridBounds(
                    west=cell_west,
                    south=cell_south,
                    east=cell_west + width,
                    north=cell_south + height,
                ),
                level=level,
            ))

    return sorted(squares, key=lambda s: (s.bounds.west, s.bounds.south))
