"""Rayda - simulated live train positions for a single commuter rail line."""

__version__ = "0.1.0"

from .models import (
    Station,
    Route,
    TrainInstance,
    TrainPosition,
    ArrivalPrediction,
    JourneyPlan,
    Snapshot,
    SimulationState,
)
from .config import SimulationConfig
from .schedule_loader import ScheduleLoader
from .track_loader import TrackLoader
from .geometry_mapper import GeometryMapper, reverse_route_geometry
from .simulation import Simulator, SimulationRunner
from .tracker import LineTracker

__all__ = [
    "LineTracker",
    "ScheduleLoader",
    "TrackLoader",
    "GeometryMapper",
    "reverse_route_geometry",
    "Simulator",
    "SimulationRunner",
    "SimulationConfig",
    "Station",
    "Route",
    "TrainInstance",
    "TrainPosition",
    "ArrivalPrediction",
    "JourneyPlan",
    "Snapshot",
    "SimulationState",
]
