#!/usr/bin/env -S uv run
# /// script
# requires-python = ">=3.10"
# dependencies = [
#   "pytest",
# ]
# ///
"""Test Maidenhead locator encoding and decoding."""

import itertools
import sys
from pathlib import Path

import pytest

# Add repo root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from propview.locator import InvalidLocator, decode, encode, is_valid_locator, locator_bounds
from propview.models import Coordinate


def test_decode_known_values():
    """Test locator decoding with known grid squares."""

    # CM98 (Folsom, CA): square center
    c = decode("CM98")
    print(f"CM98: {c.latitude:.2f}, {c.longitude:.2f} (expected: 38.5, -121.0)")
    assert c.latitude == pytest.approx(38.5)
    assert c.longitude == pytest.approx(-121.0)

    # FN31pr (Newington, CT)
    c = decode("FN31pr")
    print(f"FN31pr: {c.latitude:.4f}, {c.longitude:.4f} (expected: ~41.73, ~-72.71)")
    assert c.latitude == pytest.approx(41.7292, abs=1e-3)
    assert c.longitude == pytest.approx(-72.7083, abs=1e-3)

    # JJ: field containing (0, 0)
    c = decode("JJ")
    assert c.latitude == pytest.approx(5.0)
    assert c.longitude == pytest.approx(10.0)

    print("\n✅ Locator decoding correct!\n")


def test_decode_is_case_insensitive():
    assert decode("fn31PR") == decode("FN31pr")
    assert decode(" io91wm ") == decode("IO91WM")


def test_decode_boundaries():
    """AA00AA sits at the south-west corner of the globe, RR99XX at the north-east."""
    sw = decode("AA00AA")
    ne = decode("RR99XX")
    print(f"AA00AA: {sw}")
    print(f"RR99XX: {ne}")
    assert sw.latitude == pytest.approx(-90, abs=0.05)
    assert sw.longitude == pytest.approx(-180, abs=0.05)
    assert ne.latitude == pytest.approx(90, abs=0.05)
    assert ne.longitude == pytest.approx(180, abs=0.05)


@pytest.mark.parametrize("locator", [
    "", "A", "FN3", "FN31p", "FN31pr1", "SN31", "FZ31", "FNA1", "FN31py", "FN31zz",
    "FN٣1",  # non-ASCII digit
])
def test_decode_rejects_malformed(locator):
    with pytest.raises(InvalidLocator):
        decode(locator)
    assert not is_valid_locator(locator)


def test_decode_rejects_non_string():
    with pytest.raises(InvalidLocator):
        decode(None)
    assert not is_valid_locator(42)


def test_invalid_locator_is_value_error():
    with pytest.raises(ValueError):
        decode("ZZ99")


class TestEncode:
    """Coordinate to locator"""

    def test_known_values(self):
        assert encode(Coordinate(41.714775, -72.727260)) == "FN31pr"
        assert encode(Coordinate(51.5, -0.1), "square") == "IO91"
        assert encode(Coordinate(38.6, -121.2), "field") == "CM"

    def test_case_convention(self):
        locator = encode(Coordinate(35.7, 139.7))
        assert locator[:2].isupper()
        assert locator[4:].islower()

    def test_origin(self):
        assert encode(Coordinate(0, 0)) == "JJ00aa"

    def test_poles_and_antimeridian(self):
        assert encode(Coordinate(90, 180)) == "AR09ax"
        assert encode(Coordinate(-90, -180)) == "AA00aa"
        assert encode(Coordinate(90, 179.99)) == "RR99xx"

    def test_wraps_longitude(self):
        assert encode(Coordinate(10, 190)) == encode(Coordinate(10, -170))

    def test_unknown_precision(self):
        with pytest.raises(ValueError):
            encode(Coordinate(0, 0), "extended")


def _sample_locators():
    fields = "AJR"
    digits = "059"
    subs = "AKX"
    for f1, f2, d1, d2, s1, s2 in itertools.product(fields, fields, digits, digits, subs, subs):
        yield f"{f1}{f2}{d1}{d2}{s1}{s2}"


def test_round_trip_subsquare():
    """encode(decode(L)) gives back L (in conventional case) for every sampled locator."""
    count = 0
    for locator in _sample_locators():
        expected = locator[:4].upper() + locator[4:].lower()
        assert encode(decode(locator), "subsquare") == expected
        assert encode(decode(locator.lower()), "subsquare") == expected
        count += 1
    print(f"  ✓ {count} locators round-trip")


@pytest.mark.parametrize("locator", ["FN", "FN31", "FN31pr"])
def test_round_trip_each_precision(locator):
    precision = {2: "field", 4: "square", 6: "subsquare"}[len(locator)]
    assert encode(decode(locator), precision) == locator


def test_round_trip_normalizes_case():
    assert encode(decode("AA00AA"), "subsquare") == "AA00aa"
    assert encode(decode("fn31PR"), "subsquare") == "FN31pr"


def test_bounds_contain_center():
    for locator in ["CM98", "FN31pr", "RR", "AA00AA"]:
        b = locator_bounds(locator)
        c = decode(locator)
        assert b.west < c.longitude < b.east
        assert b.south < c.latitude < b.north


def test_bounds_sizes():
    b = locator_bounds("FN31")
    assert (b.west, b.south, b.east, b.north) == (-74, 41, -72, 42)
    b = locator_bounds("FN")
    assert b.east - b.west == 20
    assert b.north - b.south == 10


if __name__ == "__main__":
    test_decode_known_values()
    test_decode_boundaries()
    test_round_trip_subsquare()
    print("=" * 60)
    print("All locator tests passed! ✅")
    print("=" * 60)
