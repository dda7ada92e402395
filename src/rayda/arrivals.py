"""Arrival predictions derived from simulated train positions."""

import logging
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from .config import SimulationConfig
from .models import FORWARD, ArrivalPrediction, Route, Snapshot, TrainPosition
from .schedule_loader import ScheduleLoader

logger = logging.getLogger(__name__)


def confidence_level(confidence: float) -> str:
    if confidence >= 0.8:
        return "high"
    if confidence >= 0.6:
        return "medium"
    return "low"


def format_minutes_away(minutes_away: int) -> str:
    if minutes_away == 0:
        return "Now"
    if minutes_away == 1:
        return "1 min"
    return f"{minutes_away} min"


class ArrivalPredictor:
    """Predicts when live trains reach a station."""

    def __init__(self, schedule: ScheduleLoader, config: Optional[SimulationConfig] = None):
        self.schedule = schedule
        self.config = config or SimulationConfig()
        self._cache: Dict[Tuple[str, int], Tuple[List[ArrivalPrediction], datetime]] = {}

    def predict_arrivals(
        self,
        station_id: str,
        live_trains: Iterable[TrainPosition],
        max_results: int = 4,
        now: Optional[datetime] = None,
        route_id: Optional[str] = None,
        direction: Optional[str] = None,
    ) -> List[ArrivalPrediction]:
        """
        Upcoming arrivals at a station, soonest first.

        Args:
            station_id: Station to predict for.
            live_trains: Positions from the latest snapshot.
            max_results: Maximum number of predictions returned.
            now: Reference time (defaults to the current time).
            route_id: Only consider trains on this route.
            direction: Only consider trains running this way.

        Returns:
            List of ArrivalPrediction objects; empty for unknown stations.
        """
        station = self.schedule.find_station(station_id)
        if station is None:
            logger.debug(f"No arrivals for unknown station {station_id}")
            return []

        now = now or datetime.now()
        predictions = []
        for position in live_trains:
            if route_id is not None and position.route_id != route_id:
                continue
            if direction is not None and position.direction != direction:
                continue
            route = self.schedule.get_route(position.route_id)
            if route is None:
                continue
            prediction = self._predict_train(station_id, position, route, now)
            if prediction is not None:
                predictions.append(prediction)

        predictions.sort(key=lambda p: p.arrival_time)
        return predictions[:max_results]

    def _predict_train(
        self,
        station_id: str,
        position: TrainPosition,
        route: Route,
        now: datetime,
    ) -> Optional[ArrivalPrediction]:
        target_index = route.index_of(station_id)
        if target_index == -1:
            return None

        from_index = route.index_of(position.current_segment.from_station_id)
        to_index = route.index_of(position.current_segment.to_station_id)
        if from_index == -1 or to_index == -1:
            return None

        result = self._time_to_station(position, route, from_index, to_index, target_index)
        if result is None:
            return None
        seconds, confidence, segments_away = result

        if seconds > self.config.arrival_horizon_seconds:
            return None

        destination_id = route.destination_for(position.direction)
        destination = self.schedule.find_station(destination_id)
        return ArrivalPrediction(
            train_id=position.train_id,
            station_id=station_id,
            display_name=position.display_name,
            arrival_time=now + timedelta(seconds=seconds),
            minutes_away=max(0, int(seconds / 60 + 0.5)),
            direction=position.direction,
            route_id=route.id,
            route_name=route.display_name,
            final_destination_id=destination_id,
            final_destination_name=destination.name if destination else "Unknown",
            color=route.color,
            confidence=confidence,
            segments_away=segments_away,
        )

    def _time_to_station(
        self,
        position: TrainPosition,
        route: Route,
        from_index: int,
        to_index: int,
        target_index: int,
    ) -> Optional[Tuple[float, float, int]]:
        """(seconds, confidence, whole segments) or None if moving away."""
        stations = route.station_ids
        current_segment_time = self.schedule.travel_time(stations[from_index], stations[to_index])
        # Progress measured along the route's forward station order
        if position.direction == FORWARD:
            forward_progress = position.segment_progress
        else:
            forward_progress = 1.0 - position.segment_progress

        confidence = self.config.initial_confidence
        segments_away = 0

        if position.direction == FORWARD:
            if from_index >= target_index:
                return None
            seconds = (1.0 - forward_progress) * current_segment_time
            for i in range(to_index, target_index):
                seconds += self.schedule.travel_time(stations[i], stations[i + 1])
                confidence *= self.config.confidence_decay
                segments_away += 1
        else:
            if from_index <= target_index:
                return None
            seconds = forward_progress * current_segment_time
            for i in range(to_index - 1, target_index - 1, -1):
                seconds += self.schedule.travel_time(stations[i + 1], stations[i])
                confidence *= self.config.confidence_decay
                segments_away += 1

        return seconds, confidence, segments_away

    def get_arrivals(self, station_id: str, snapshot: Snapshot, max_results: int = 4) -> List[ArrivalPrediction]:
        """
        Arrivals for a snapshot, reusing a recent result for the same query.

        Cached entries live for ``arrival_cache_ttl_s`` of snapshot time.
        """
        now = snapshot.generated_at or datetime.now()
        key = (station_id, max_results)

        if key in self._cache:
            data, computed_at = self._cache[key]
            if timedelta(0) <= now - computed_at < timedelta(seconds=self.config.arrival_cache_ttl_s):
                logger.debug(f"Using cached arrivals for {station_id}")
                return data

        self._evict_expired_cache(now)
        if len(self._cache) >= self.config.arrival_cache_size:
            oldest_key = min(self._cache.keys(), key=lambda k: self._cache[k][1])
            del self._cache[oldest_key]

        data = self.predict_arrivals(station_id, snapshot.positions, max_results, now)
        self._cache[key] = (data, now)
        return data

    def _evict_expired_cache(self, now: datetime) -> None:
        ttl = timedelta(seconds=self.config.arrival_cache_ttl_s)
        expired_keys = [k for k, (_, computed_at) in self._cache.items() if not timedelta(0) <= now - computed_at < ttl]
        for key in expired_keys:
            del self._cache[key]

        if expired_keys:
            logger.debug(f"Evicted {len(expired_keys)} expired arrival entries")

    def clear_cache(self) -> None:
        self._cache.clear()

    def routes_for_station(self, station_id: str) -> List[Route]:
        return self.schedule.routes_for_station(station_id)

    def is_station_served_by_route(self, station_id: str, route_id: str) -> bool:
        route = self.schedule.get_route(route_id)
        return route.serves(station_id) if route else False
