"""Synthesizes train instances from route frequencies and service windows."""

import logging
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Tuple

from .config import MAX_JOURNEY_SECONDS
from .models import BACKWARD, FORWARD, Route, TrainInstance

logger = logging.getLogger(__name__)


def service_window(route: Route, now: datetime) -> Tuple[datetime, datetime]:
    """
    The service window of a route that is relevant to ``now``.

    Windows ending earlier in the day than they start run past midnight.
    For those, yesterday's window is returned while it is still open.
    """
    start = datetime.combine(now.date(), route.service_start)
    end = datetime.combine(now.date(), route.service_end)
    if end <= start:
        end += timedelta(days=1)
        previous_start = start - timedelta(days=1)
        previous_end = end - timedelta(days=1)
        if previous_start <= now <= previous_end:
            return previous_start, previous_end
    return start, end


def is_in_service(route: Route, now: datetime) -> bool:
    start, end = service_window(route, now)
    return start <= now <= end


def next_service_start(route: Route, now: datetime) -> Optional[datetime]:
    """Start of the next window, or None while the route is running."""
    start, end = service_window(route, now)
    if now < start:
        return start
    if now > end:
        return start + timedelta(days=1)
    return None


def train_id(route_id: str, direction: str, index: int) -> str:
    return f"{route_id}-{direction}-{index}"


def backward_offset(route: Route) -> timedelta:
    """
    Phase shift of backward departures.

    Backward trains leave half a headway after forward ones so the two
    directions interleave on the map; this is a presentation policy, not a
    published timetable fact.
    """
    return timedelta(minutes=route.frequency_minutes // 2)


def generate_fleet(
    route: Route,
    now: datetime,
    max_journey_seconds: int = MAX_JOURNEY_SECONDS,
) -> List[TrainInstance]:
    """
    Every train of a route that has departed by ``now`` in today's window.

    Departure ``i`` leaves at ``start + i * frequency`` (plus the backward
    offset). The result depends only on ``(route, now)``, so calling this on
    every tick yields the same ids and never duplicates a train.
    """
    start, end = service_window(route, now)
    if not start <= now <= end:
        return []

    headway = timedelta(minutes=route.frequency_minutes)
    max_age = timedelta(seconds=max_journey_seconds)
    # Departures at or before now: ceil(elapsed / headway), plus the train
    # leaving exactly on a slot boundary
    count = int((now - start) // headway) + 1

    instances: List[TrainInstance] = []
    for index in range(count):
        forward_departure = start + index * headway
        if now - forward_departure <= max_age:
            instances.append(TrainInstance(train_id(route.id, FORWARD, index), route.id, FORWARD, forward_departure, index))

        backward_departure = forward_departure + backward_offset(route)
        if backward_departure <= now and now - backward_departure <= max_age:
            instances.append(TrainInstance(train_id(route.id, BACKWARD, index), route.id, BACKWARD, backward_departure, index))

    logger.debug(f"Route {route.id}: {len(instances)} trains dispatched since {start:%H:%M}")
    return instances


def collect_garbage(
    instances: Iterable[TrainInstance],
    now: datetime,
    max_journey_seconds: int = MAX_JOURNEY_SECONDS,
) -> List[TrainInstance]:
    """Drop instances that departed longer ago than the journey ceiling."""
    kept = [i for i in instances if (now - i.departure_time).total_seconds() < max_journey_seconds]
    return kept
