"""Band and frequency utilities for amateur radio."""

# Band edges for categorization (MHz), in band order
BANDS = {
    "160m": (1.8, 2.0),
    "80m": (3.5, 4.0),
    "60m": (5.3, 5.4),
    "40m": (7.0, 7.3),
    "30m": (10.1, 10.15),
    "20m": (14.0, 14.35),
    "17m": (18.068, 18.168),
    "15m": (21.0, 21.45),
    "12m": (24.89, 24.99),
    "10m": (28.0, 29.7),
    "6m": (50.0, 54.0),
    "4m": (70.0, 70.5),
    "2m": (144.0, 148.0),
}

BAND_ORDER = tuple(BANDS)

# Mode labels reported by the spot feeds. Other non-empty labels are accepted.
MODES = (
    "FT8", "FT4", "PSK31", "PSK63", "RTTY", "CW",
    "SSB", "FM", "WSPR", "JT65", "JT9", "MSK144",
)

_BAND_INDEX = {band: i for i, band in enumerate(BAND_ORDER)}


def freq_to_band(freq_hz: float) -> str | None:
    """Convert frequency to band name.

    Args:
        freq_hz: Frequency in Hz

    Returns:
        Band name (e.g., "20m") or None if not in a known band
    """
    freq_mhz = freq_hz / 1_000_000
    for band, (low, high) in BANDS.items():
        if low <= freq_mhz <= high:
            return band
    return None


def is_valid_band(band: object) -> bool:
    """Check if band is one of the fixed band labels."""
    return isinstance(band, str) and band in _BAND_INDEX


def band_index(band: str) -> int:
    """Position of a band in BAND_ORDER (160m first, 2m last).

    Unknown bands sort after every known band.
    """
    return _BAND_INDEX.get(band, len(BAND_ORDER))
