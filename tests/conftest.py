"""Shared spot builders for the aggregation tests."""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add repo root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from propview.models import Coordinate, PropagationSpot, Station

BASE_TIME = datetime(2024, 6, 21, 12, 0, tzinfo=timezone.utc)


def build_spot(tx, rx, band="20m", snr=None, mode="FT8", tx_at=None, rx_at=None,
               minutes=0, tx_grid=None, rx_grid=None, source="PSK_REPORTER", spot_id=None):
    """Spot from callsigns and (lat, lon) tuples."""
    timestamp = BASE_TIME + timedelta(minutes=minutes)
    return PropagationSpot(
        id=spot_id or f"{tx}-{rx}-{minutes}",
        timestamp=timestamp,
        frequency_hz=14_074_000.0,
        band=band,
        mode=mode,
        transmitter=Station(tx, Coordinate(*tx_at) if tx_at else None, tx_grid),
        receiver=Station(rx, Coordinate(*rx_at) if rx_at else None, rx_grid),
        snr_db=float(snr) if snr is not None else None,
        source=source,
    )


@pytest.fixture
def make_spot():
    return build_spot


@pytest.fixture
def scenario_spots():
    """Three spots: two 20m from W1AW (Japan, England) and one 10m without SNR."""
    return [
        build_spot("W1AW", "JA1XYZ", band="20m", snr=-3, tx_at=(41.7, -72.7), rx_at=(35.7, 139.7)),
        build_spot("W1AW", "G4ABC", band="20m", snr=-12, tx_at=(41.7, -72.7), rx_at=(51.5, -0.1), minutes=1),
        build_spot("K2XYZ", "VK2ABC", band="10m", snr=None, tx_at=(40.0, -75.0), rx_at=(-33.9, 151.2), minutes=2),
    ]
