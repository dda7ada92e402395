"""Tunable constants for the simulator."""

from dataclasses import dataclass

# Running time used when the timetable has no entry for a station pair
DEFAULT_SEGMENT_SECONDS = 120

# Trains older than this are swept even if they could not be resolved
MAX_JOURNEY_SECONDS = 120 * 60

# Arrivals further out than this are considered unreliable
ARRIVAL_HORIZON_SECONDS = 45 * 60

INITIAL_CONFIDENCE = 0.9
CONFIDENCE_DECAY = 0.95

# Used by the scheduled-departure projection
MINUTES_PER_STATION = 2

# Standard gauge, the only gauge passenger services on the line use
LINE_GAUGE = "1435"


@dataclass
class SimulationConfig:
    """Settings shared by the mapper, simulator and predictors."""
    default_segment_seconds: int = DEFAULT_SEGMENT_SECONDS
    max_journey_seconds: int = MAX_JOURNEY_SECONDS
    arrival_horizon_seconds: int = ARRIVAL_HORIZON_SECONDS
    initial_confidence: float = INITIAL_CONFIDENCE
    confidence_decay: float = CONFIDENCE_DECAY
    minutes_per_station: int = MINUTES_PER_STATION

    # Geometry matching
    max_match_distance_m: float = 2000.0  # sum of both endpoint distances
    service_area_margin_deg: float = 0.05
    line_gauge: str = LINE_GAUGE

    # Position resolution: "distance" spreads elapsed time evenly over the
    # route length, "schedule" keeps each leg to its published running time
    timing_mode: str = "distance"
    bearing_lookahead: float = 0.01

    # Presentation-only spreading of trains that share a segment decile
    overlap_offset_deg: float = 0.0004

    # Timer driver
    tick_interval_s: float = 1.0
    gc_interval_s: int = 300

    arrival_cache_ttl_s: int = 15
    arrival_cache_size: int = 64

    @property
    def min_match_score(self) -> float:
        return 1.0 / (1.0 + self.max_match_distance_m)
