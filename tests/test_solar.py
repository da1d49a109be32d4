#!/usr/bin/env -S uv run
# /// script
# requires-python = ">=3.10"
# dependencies = [
#   "pytest",
# ]
# ///
"""Test solar position and terminator geometry."""

import math
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add repo root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from propview import solar
from propview.models import Coordinate, SolarPosition
from propview.solar import (
    _terminator_latitude,
    is_night,
    julian_day,
    solar_elevation_deg,
    solar_position,
    terminator_curve,
)


EQUINOX = datetime(2024, 3, 20, 12, 0, tzinfo=timezone.utc)
JUNE_SOLSTICE = datetime(2024, 6, 21, 12, 0, tzinfo=timezone.utc)
DECEMBER_SOLSTICE = datetime(2024, 12, 21, 12, 0, tzinfo=timezone.utc)


def test_julian_day_j2000():
    assert julian_day(datetime(2000, 1, 1, 12, 0, tzinfo=timezone.utc)) == pytest.approx(2451545.0)


def test_declination_through_the_year():
    """Test declination at equinox and both solstices."""

    for instant, expected in [(EQUINOX, 0.0), (JUNE_SOLSTICE, 23.44), (DECEMBER_SOLSTICE, -23.44)]:
        pos = solar_position(instant)
        print(f"{instant.date()}: declination {pos.declination_deg:.2f}° (expected: ~{expected}°)")
        assert pos.declination_deg == pytest.approx(expected, abs=0.5)

    print("\n✅ Declination correct!\n")


def test_equation_of_time_early_november():
    # Sun runs about 16 minutes fast in early November
    pos = solar_position(datetime(2024, 11, 3, 12, 0, tzinfo=timezone.utc))
    assert pos.equation_of_time_min == pytest.approx(16.4, abs=0.5)
    # so at 12:00 UTC it has already passed Greenwich and sits ~4° west
    assert pos.subsolar.longitude == pytest.approx(-4.1, abs=0.3)


def test_subsolar_longitude_follows_utc():
    noon = solar_position(EQUINOX).subsolar
    six_hours_later = solar_position(datetime(2024, 3, 20, 18, 0, tzinfo=timezone.utc)).subsolar
    assert abs(noon.longitude) < 3
    assert six_hours_later.longitude == pytest.approx(noon.longitude - 90, abs=0.1)


def test_naive_datetime_is_utc():
    naive = datetime(2024, 6, 21, 12, 0)
    assert solar_position(naive) == solar_position(JUNE_SOLSTICE)


def test_day_and_night():
    london = Coordinate(51.5, -0.1)
    sydney = Coordinate(-33.9, 151.2)
    assert not is_night(london, JUNE_SOLSTICE)
    assert is_night(sydney, JUNE_SOLSTICE)
    assert solar_elevation_deg(solar_position(JUNE_SOLSTICE).subsolar, JUNE_SOLSTICE) == pytest.approx(90, abs=1e-6)


class TestTerminator:
    """Day/night boundary curve"""

    def test_ordered_west_to_east(self):
        curve = terminator_curve(JUNE_SOLSTICE)
        lons = [lon for lon, _ in curve.points]
        assert lons[0] == -180
        assert lons[-1] == 180
        assert lons == sorted(lons)

    def test_samples_are_on_the_terminator(self):
        curve = terminator_curve(DECEMBER_SOLSTICE)
        for lon, lat in curve.points:
            assert math.isfinite(lat)
            assert -90 <= lat <= 90
            if abs(lon) == 180:
                continue
            assert solar_elevation_deg(Coordinate(lat, lon), DECEMBER_SOLSTICE) == pytest.approx(0, abs=0.01)

    def test_sample_count(self):
        curve = terminator_curve(JUNE_SOLSTICE, step_deg=2)
        # 180 samples plus the two antimeridian boundary points
        assert 181 <= len(curve.points) <= 182

        coarse = terminator_curve(JUNE_SOLSTICE, step_deg=10)
        assert 37 <= len(coarse.points) <= 38

    def test_night_side(self):
        assert terminator_curve(JUNE_SOLSTICE).night_side == "south"
        assert terminator_curve(DECEMBER_SOLSTICE).night_side == "north"

    def test_bad_step(self):
        with pytest.raises(ValueError):
            terminator_curve(JUNE_SOLSTICE, step_deg=0)

    def test_zero_declination_latitude_undefined(self):
        assert _terminator_latitude(0.0, 0.0) is None
        assert _terminator_latitude(0.0, math.pi / 2) is None

    def test_zero_declination_skips_samples(self, monkeypatch):
        """An exact equinox gives no defined terminator latitude and must not raise."""
        def equinox_position(instant):
            return SolarPosition(
                julian_day=2460390.0,
                declination_deg=0.0,
                equation_of_time_min=0.0,
                subsolar=Coordinate(0.0, 10.0),
            )

        monkeypatch.setattr(solar, "solar_position", equinox_position)
        curve = terminator_curve(EQUINOX)
        assert curve.points == ()
        assert curve.declination_deg == 0.0


if __name__ == "__main__":
    test_declination_through_the_year()
    print("=" * 60)
    print("All solar tests passed! ✅")
    print("=" * 60)
