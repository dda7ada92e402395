"""Single-route journey planning between two stations."""

import logging
import math
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Tuple

from .arrivals import ArrivalPredictor
from .config import SimulationConfig
from .models import BACKWARD, FORWARD, JourneyPlan, NextDeparture, Route, Station, TrainPosition
from .schedule_loader import ScheduleLoader
from .service import scheduled_departure

logger = logging.getLogger(__name__)

DEFAULT_MAX_WAIT_MINUTES = 30


class JourneyPlanner:
    """
    Plans trips along a single route.

    The bundled network is one line, so transfers are not modelled: the
    first route serving both stations is used.
    """

    def __init__(
        self,
        schedule: ScheduleLoader,
        predictor: Optional[ArrivalPredictor] = None,
        config: Optional[SimulationConfig] = None,
    ):
        self.schedule = schedule
        self.config = config or SimulationConfig()
        self.predictor = predictor or ArrivalPredictor(schedule, self.config)

    def plan_journey(
        self,
        from_station_id: str,
        to_station_id: str,
        live_trains: Iterable[TrainPosition],
        departure_time: Optional[datetime] = None,
        max_wait_minutes: int = DEFAULT_MAX_WAIT_MINUTES,
    ) -> Optional[JourneyPlan]:
        """
        Best journey between two stations.

        Returns:
            JourneyPlan, or None when either station is unknown, both are the
            same station, or no route serves both.
        """
        from_station = self.schedule.find_station(from_station_id)
        to_station = self.schedule.find_station(to_station_id)
        if from_station is None or to_station is None or from_station.id == to_station.id:
            return None

        connection = self.find_connecting_route(from_station_id, to_station_id)
        if connection is None:
            logger.info(f"No route connects {from_station_id} and {to_station_id}")
            return None
        route, direction, from_index, to_index = connection

        stations = self._journey_stations(route, from_index, to_index)
        total_time = self.journey_time(stations)
        total_distance = abs(stations[-1].distance_from_origin - stations[0].distance_from_origin)

        next_departure = self.find_next_departure(
            route,
            direction,
            from_station_id,
            list(live_trains),
            departure_time or datetime.now(),
            max_wait_minutes,
            total_time,
        )

        return JourneyPlan(
            from_station=from_station,
            to_station=to_station,
            route=route,
            direction=direction,
            total_time_s=total_time,
            total_distance_km=total_distance,
            stations=tuple(stations),
            next_departure=next_departure,
        )

    def plan_all_journeys(
        self,
        from_station_id: str,
        to_station_id: str,
        live_trains: Iterable[TrainPosition],
        departure_time: Optional[datetime] = None,
        max_wait_minutes: int = DEFAULT_MAX_WAIT_MINUTES,
    ) -> List[JourneyPlan]:
        """All candidate journeys; only the direct one on a single-line network."""
        journey = self.plan_journey(from_station_id, to_station_id, live_trains, departure_time, max_wait_minutes)
        return [journey] if journey else []

    def find_connecting_route(self, from_station_id: str, to_station_id: str) -> Optional[Tuple[Route, str, int, int]]:
        """(route, direction, from_index, to_index) of the first route serving both."""
        for route in self.schedule.routes.values():
            from_index = route.index_of(from_station_id)
            to_index = route.index_of(to_station_id)
            if from_index != -1 and to_index != -1:
                direction = FORWARD if from_index < to_index else BACKWARD
                return route, direction, from_index, to_index
        return None

    def _journey_stations(self, route: Route, from_index: int, to_index: int) -> List[Station]:
        if from_index <= to_index:
            ids = route.station_ids[from_index:to_index + 1]
        else:
            ids = tuple(reversed(route.station_ids[to_index:from_index + 1]))
        return [self.schedule.stations[s] for s in ids if s in self.schedule.stations]

    def journey_time(self, stations: List[Station]) -> int:
        """Sum of running times between consecutive stations, in seconds."""
        return sum(self.schedule.travel_time(a.id, b.id) for a, b in zip(stations, stations[1:]))

    def find_next_departure(
        self,
        route: Route,
        direction: str,
        from_station_id: str,
        live_trains: List[TrainPosition],
        now: datetime,
        max_wait_minutes: int,
        journey_seconds: int,
    ) -> Optional[NextDeparture]:
        """
        Next train for the journey.

        A live train approaching the origin in the right direction is
        preferred; otherwise the departure is projected from the timetable.
        """
        arrivals = self.predictor.predict_arrivals(
            from_station_id, live_trains, max_results=1, now=now, route_id=route.id, direction=direction
        )
        suitable = [a for a in arrivals if a.minutes_away <= max_wait_minutes]

        if suitable:
            train = suitable[0]
            return NextDeparture(
                source="live",
                train_id=train.train_id,
                display_name=train.display_name,
                departure_time=train.arrival_time,
                arrival_time=train.arrival_time + timedelta(seconds=journey_seconds),
                wait_minutes=train.minutes_away,
                total_journey_minutes=math.ceil((journey_seconds + train.minutes_away * 60) / 60),
            )

        logger.debug(f"No live train for {route.id} {direction} at {from_station_id}, projecting from schedule")
        return scheduled_departure(
            route,
            from_station_id,
            direction,
            journey_seconds,
            now,
            self.config.minutes_per_station,
        )


def format_journey_time(seconds: int) -> str:
    minutes = math.ceil(seconds / 60)
    if minutes < 60:
        return f"{minutes} min"
    return f"{minutes // 60}h {minutes % 60}min"


def intermediate_stops(journey: JourneyPlan) -> List[Station]:
    """Stations between origin and destination."""
    return list(journey.stations[1:-1])


def journey_summary(journey: JourneyPlan) -> str:
    """One-line description of a journey for list views."""
    minutes = math.ceil(journey.total_time_s / 60)
    stops = "stop" if journey.station_count == 1 else "stops"
    departure = journey.next_departure

    if departure is None:
        return f"{minutes} min journey • {journey.station_count} {stops} • No service available"

    total = departure.total_journey_minutes
    if departure.wait_minutes == 0:
        return f"{total} min total (train departing now) • {journey.station_count} {stops}"

    scheduled = departure.source == "scheduled"
    wait_label = "service starts" if scheduled else "wait"
    note = " (scheduled)" if scheduled else ""
    if departure.wait_minutes >= 60:
        hours, rest = divmod(departure.wait_minutes, 60)
        wait = f"{hours}h {rest}min" if rest else f"{hours}h"
    else:
        wait = f"{departure.wait_minutes} min"
    return f"{total} min total ({wait} {wait_label} + {minutes} min journey) • {journey.station_count} {stops}{note}"
