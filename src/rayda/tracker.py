"""Main line tracker class."""

import logging
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from . import naming
from .arrivals import ArrivalPredictor
from .config import SimulationConfig
from .geometry_mapper import GeometryMapper
from .journey import DEFAULT_MAX_WAIT_MINUTES, JourneyPlanner
from .models import ArrivalPrediction, JourneyPlan, Snapshot, Station, StationBoard, TrainPosition
from .schedule_loader import ScheduleLoader
from .service import service_status
from .simulation import SimulationRunner, Simulator
from .track_loader import TrackLoader

logger = logging.getLogger(__name__)


class LineTracker:
    """
    Simulated live view of every train on the line.

    This class provides methods to:
    - Find stations by name or ID
    - Advance the simulation and read train positions
    - Predict arrivals at a station
    - Plan a journey between two stations
    - Repair bad track matches by excluding track features
    """

    def __init__(
        self,
        track_path: Optional[str] = None,
        track_url: Optional[str] = None,
        config: Optional[SimulationConfig] = None,
        load_schedule: bool = True,
        excluded_features: Optional[Iterable[str]] = None,
        excluded_ids: Optional[Iterable[str]] = None,
    ):
        """
        Initialize the tracker.

        Args:
            track_path: Optional GeoJSON file with track geometry.
            track_url: Optional URL of the same file, used when no path is given.
            config: Simulation settings.
            load_schedule: If True, load the bundled schedule tables. If False,
                      populate ``schedule`` manually and call ``rebuild()``.
            excluded_features: Track feature names to ignore from the start.
            excluded_ids: Track feature ids to ignore from the start.
        """
        self.config = config or SimulationConfig()
        self.schedule = ScheduleLoader(self.config.default_segment_seconds)
        if load_schedule:
            self.schedule.load_defaults()

        polylines = []
        if track_path or track_url:
            loader = TrackLoader()
            try:
                polylines = loader.load_from_file(track_path) if track_path else loader.load_from_url(track_url)
            except Exception as e:
                logger.warning(f"Track geometry unavailable, using straight lines between stations: {e}")

        self.mapper = GeometryMapper(
            self.schedule,
            polylines,
            self.config,
            excluded_ids=excluded_ids,
            excluded_names=excluded_features,
        )
        self.predictor = ArrivalPredictor(self.schedule, self.config)
        self.planner = JourneyPlanner(self.schedule, self.predictor, self.config)
        self.runner = SimulationRunner(Simulator(self.schedule, self.mapper, self.config))
        self.mapper.initialize()

    def rebuild(self) -> None:
        """Remap every route after the schedule tables changed."""
        self.mapper.reinitialize()
        self.mapper.initialize()
        self.predictor.clear_cache()

    def get_station(self, station_input: str) -> Station:
        """
        Get a station by ID or name.

        Args:
            station_input: Either a station ID (e.g., "65") or name (e.g., "Sirkeci").

        Returns:
            Station object.

        Raises:
            ValueError: If station not found.
        """
        try:
            return self.schedule.get_station(station_input)
        except ValueError:
            pass

        stations = self.schedule.find_stations_by_name(station_input)
        if not stations:
            raise ValueError(f"No station found matching '{station_input}'")

        return stations[0]

    def find_stations_by_name(self, name: str) -> List[Station]:
        return self.schedule.find_stations_by_name(name)

    def stations_in_route_order(self) -> List[Station]:
        return self.schedule.stations_in_route_order()

    def stations_by_section(self) -> List[Tuple[str, List[Station]]]:
        return self.schedule.stations_by_section()

    def station_section(self, station_id: str) -> str:
        return self.schedule.station_section(station_id)

    def is_station_before(self, station_a_id: str, station_b_id: str) -> bool:
        return self.schedule.is_station_before(station_a_id, station_b_id)

    def update(self, now: Optional[datetime] = None) -> Snapshot:
        """Advance the simulation to ``now`` and return the new snapshot."""
        return self.runner.step(now)

    @property
    def snapshot(self) -> Snapshot:
        return self.runner.snapshot

    def trains_for_route(self, route_id: str) -> List[TrainPosition]:
        return self.snapshot.for_route(route_id)

    def train_name(self, position: TrainPosition) -> str:
        """Destination and timetable number of a train, e.g. ``Gebze M0610``."""
        route = self.schedule.get_route(position.route_id)
        destination = self.schedule.find_station(route.destination_for(position.direction)) if route else None
        return naming.train_name(route, position.departure_time, destination)

    def describe_train(self, position: TrainPosition) -> str:
        """One-line description of a train for popups and listings."""
        route = self.schedule.get_route(position.route_id)
        if route is None:
            return naming.train_description(position.train_id, None, position.departure_time, None, None)
        return naming.train_description(
            position.train_id,
            route,
            position.departure_time,
            self.schedule.find_station(route.origin_for(position.direction)),
            self.schedule.find_station(route.destination_for(position.direction)),
        )

    def get_arrivals(self, station: Station, max_results: int = 4) -> List[ArrivalPrediction]:
        """
        Upcoming arrivals at a station based on the latest snapshot.

        Args:
            station: Station object (from get_station()).
            max_results: Maximum number of arrivals.

        Returns:
            List of ArrivalPrediction objects, soonest first.
        """
        return self.predictor.get_arrivals(station.id, self.snapshot, max_results)

    def get_station_data(self, station_input: str, max_results: int = 4) -> StationBoard:
        """
        Get complete data for a station.

        Args:
            station_input: Station ID or name.

        Returns:
            StationBoard with station info and arrivals.
        """
        station = self.get_station(station_input)
        return StationBoard(
            station=station,
            arrivals=self.get_arrivals(station, max_results),
            last_updated=self.snapshot.generated_at or datetime.now(),
        )

    def plan_journey(
        self,
        from_station_id: str,
        to_station_id: str,
        departure_time: Optional[datetime] = None,
        max_wait_minutes: int = DEFAULT_MAX_WAIT_MINUTES,
    ) -> Optional[JourneyPlan]:
        """Best journey between two stations using the latest snapshot."""
        return self.planner.plan_journey(
            from_station_id,
            to_station_id,
            self.snapshot.positions,
            departure_time or self.snapshot.generated_at,
            max_wait_minutes,
        )

    def service_status(self, now: Optional[datetime] = None) -> str:
        return service_status(self.schedule.routes.values(), now or datetime.now())

    def exclude_features(self, feature_names: Iterable[str]) -> None:
        """Drop track features by name and remap routes before the next tick."""
        self.mapper.exclude_features(feature_names)
        self.predictor.clear_cache()

    def exclude_ids(self, feature_ids: Iterable[str]) -> None:
        """Drop track features by id and remap routes before the next tick."""
        self.mapper.exclude_ids(feature_ids)
        self.predictor.clear_cache()

    def get_excluded_features(self) -> List[str]:
        return self.mapper.get_excluded_features()

    def run(self, max_ticks: Optional[int] = None) -> None:
        """Drive the simulation with the configured tick interval."""
        self.runner.run(max_ticks)

    def stop(self) -> None:
        self.runner.stop()

    def cleanup(self) -> None:
        """Stop the simulation and release caches."""
        self.runner.stop()
        self.predictor.clear_cache()
        logger.info("Cleaned up tracker resources")
