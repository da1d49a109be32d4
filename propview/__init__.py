"""propview - HF propagation map geometry and spot aggregation."""

from .band_utils import BANDS, BAND_ORDER, MODES, freq_to_band, band_index, is_valid_band
from .geo_utils import (
    DegenerateGeometry,
    calc_bearing,
    calc_distance_km,
    bearing_to_direction,
    great_circle_segment,
    split_at_antimeridian,
)
from .locator import InvalidLocator, decode, encode, is_valid_locator, locator_bounds
from .solar import solar_position, solar_subpoint, terminator_curve, is_night
from .aurora import oval_boundary, activity_label, intensity_color
from .grid_overlay import visible_squares
from .models import (
    Coordinate,
    Station,
    PropagationSpot,
    BandCondition,
    MapMarker,
    PropagationPath,
    SpotStatistics,
    Condition,
    InvalidSpot,
    to_plain,
)
from .aggregator import (
    analyze_band_conditions,
    cluster_markers,
    build_paths,
    compute_statistics,
    recent_spots,
    process_all,
)
from .filters import FilterSettings, apply_filters
from .worker import AggregationWorker, ComputationTimeout, WorkerRequest, WorkerResponse, handle_request
from .config import load_config, save_config
from .pskreporter import parse_reception_reports

__version__ = "0.1.0"

__all__ = [
    # Band utilities
    'BANDS',
    'BAND_ORDER',
    'MODES',
    'freq_to_band',
    'band_index',
    'is_valid_band',
    # Geo utilities
    'DegenerateGeometry',
    'calc_bearing',
    'calc_distance_km',
    'bearing_to_direction',
    'great_circle_segment',
    'split_at_antimeridian',
    # Locator
    'InvalidLocator',
    'decode',
    'encode',
    'is_valid_locator',
    'locator_bounds',
    # Solar
    'solar_position',
    'solar_subpoint',
    'terminator_curve',
    'is_night',
    # Aurora
    'oval_boundary',
    'activity_label',
    'intensity_color',
    # Grid overlay
    'visible_squares',
    # Records
    'Coordinate',
    'Station',
    'PropagationSpot',
    'BandCondition',
    'MapMarker',
    'PropagationPath',
    'SpotStatistics',
    'Condition',
    'InvalidSpot',
    'to_plain',
    # Aggregation
    'analyze_band_conditions',
    'cluster_markers',
    'build_paths',
    'compute_statistics',
    'recent_spots',
    'process_all',
    'FilterSettings',
    'apply_filters',
    # Worker
    'AggregationWorker',
    'ComputationTimeout',
    'WorkerRequest',
    'WorkerResponse',
    'handle_request',
    # Config
    'load_config',
    'save_config',
    # PSKReporter
    'parse_reception_reports',
]
