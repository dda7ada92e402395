"""Data models for the Rayda line simulator."""

from dataclasses import dataclass, field
from datetime import datetime, time
from typing import Dict, List, Optional, Tuple

Coordinate = Tuple[float, float]  # (longitude, latitude)

FORWARD = "forward"
BACKWARD = "backward"


@dataclass(frozen=True)
class Station:
    """Represents a station on the line."""
    id: str
    name: str
    coordinate: Coordinate
    distance_from_origin: float  # km from the first station of the line

    @property
    def longitude(self) -> float:
        return self.coordinate[0]

    @property
    def latitude(self) -> float:
        return self.coordinate[1]


@dataclass(frozen=True)
class Route:
    """A service pattern running between two termini."""
    id: str
    name: str
    termini: Tuple[str, str]
    frequency_minutes: int
    station_ids: Tuple[str, ...]  # forward traversal order
    service_start: time
    service_end: time  # earlier than service_start when the window spans midnight
    color: str = "#0066CC"
    train_prefix: str = "T"
    display_name: str = "Unknown"

    def index_of(self, station_id: str) -> int:
        """Position of a station in the forward order, -1 if not served."""
        try:
            return self.station_ids.index(station_id)
        except ValueError:
            return -1

    def serves(self, station_id: str) -> bool:
        return station_id in self.station_ids

    def destination_for(self, direction: str) -> str:
        return self.termini[1] if direction == FORWARD else self.termini[0]

    def origin_for(self, direction: str) -> str:
        return self.termini[0] if direction == FORWARD else self.termini[1]


@dataclass(frozen=True)
class InterStationTime:
    """Published running time between two adjacent stations."""
    from_station_id: str
    to_station_id: str
    seconds: int


@dataclass(frozen=True)
class TrackAttributes:
    """Tags carried by a track polyline."""
    railway: str = "rail"
    electrified: Optional[str] = None
    usage: Optional[str] = None
    service: Optional[str] = None  # yard, siding, spur, crossover
    gauge: Optional[str] = None
    tunnel: bool = False
    bridge: bool = False
    name: Optional[str] = None


@dataclass(frozen=True)
class TrackPolyline:
    """A piece of physical track."""
    id: str
    coordinates: Tuple[Coordinate, ...]
    attributes: TrackAttributes = field(default_factory=TrackAttributes)


@dataclass(frozen=True)
class RouteSegment:
    """Mapped geometry between two consecutive stations."""
    from_station_id: str
    to_station_id: str
    path: Tuple[Coordinate, ...]
    distance_m: float
    travel_time_s: int
    track_id: Optional[str] = None  # None for a straight-line fallback
    degraded: bool = False
    reverse_travel_time_s: Optional[int] = None  # running time from to_station back to from_station


@dataclass(frozen=True)
class RouteGeometry:
    """Ordered segments of a route in its forward direction."""
    route_id: str
    segments: Tuple[RouteSegment, ...]

    @property
    def total_distance_m(self) -> float:
        return sum(s.distance_m for s in self.segments)

    @property
    def total_travel_time_s(self) -> int:
        return sum(s.travel_time_s for s in self.segments)


@dataclass(frozen=True)
class TrainInstance:
    """A scheduled departure that may currently be on the line."""
    id: str
    route_id: str
    direction: str
    departure_time: datetime
    index: int = 0


@dataclass(frozen=True)
class SegmentRef:
    from_station_id: str
    to_station_id: str


@dataclass(frozen=True)
class TrainPosition:
    """Where a train is at the moment of a snapshot."""
    train_id: str
    route_id: str
    direction: str
    coordinate: Coordinate
    bearing_degrees: float
    progress_fraction: float  # 0-1 over the whole route
    segment_progress: float  # 0-1 within the current segment
    current_segment: SegmentRef
    segment_index: int
    departure_time: datetime
    display_name: str = ""
    display_coordinate: Optional[Coordinate] = None  # presentation-only offset


@dataclass(frozen=True)
class ArrivalPrediction:
    """Predicted arrival of a train at a station."""
    train_id: str
    station_id: str
    display_name: str
    arrival_time: datetime
    minutes_away: int
    direction: str
    route_id: str
    route_name: str
    final_destination_id: str
    final_destination_name: str
    color: str
    confidence: float  # 0-1
    segments_away: int = 0


@dataclass(frozen=True)
class NextDeparture:
    """The train a journey would catch."""
    source: str  # "live" or "scheduled"
    train_id: str
    display_name: str
    departure_time: datetime
    arrival_time: datetime
    wait_minutes: int
    total_journey_minutes: int


@dataclass(frozen=True)
class JourneyPlan:
    """A single-route trip between two stations."""
    from_station: Station
    to_station: Station
    route: Route
    direction: str
    total_time_s: int
    total_distance_km: float
    stations: Tuple[Station, ...]
    next_departure: Optional[NextDeparture] = None

    @property
    def station_count(self) -> int:
        """Stops travelled, origin excluded."""
        return len(self.stations) - 1


@dataclass(frozen=True)
class ServiceSchedule:
    """Operating window of a route relative to a moment in time."""
    route_id: str
    service_start: datetime
    service_end: datetime
    frequency_minutes: int
    is_active: bool
    next_service_start: Optional[datetime] = None


@dataclass(frozen=True)
class Snapshot:
    """Positions published by one tick."""
    generated_at: Optional[datetime] = None
    positions: Tuple[TrainPosition, ...] = ()

    def for_route(self, route_id: str) -> List[TrainPosition]:
        return [p for p in self.positions if p.route_id == route_id]


@dataclass(frozen=True)
class SimulationState:
    """Everything a tick needs from the previous tick."""
    instances: Tuple[TrainInstance, ...] = ()
    snapshot: Snapshot = field(default_factory=Snapshot)
    last_sweep: Optional[datetime] = None

    def instances_by_id(self) -> Dict[str, TrainInstance]:
        return {i.id: i for i in self.instances}


@dataclass
class StationBoard:
    """Complete data for a station with upcoming arrivals."""
    station: Station
    arrivals: List[ArrivalPrediction]
    last_updated: datetime
