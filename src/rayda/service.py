"""Service windows and frequency-based departure projection."""

import logging
import math
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Tuple

from .config import MINUTES_PER_STATION
from .fleet import is_in_service, next_service_start, service_window
from .models import FORWARD, NextDeparture, Route, ServiceSchedule
from .naming import train_number

logger = logging.getLogger(__name__)


def route_schedule(route: Route, now: datetime) -> ServiceSchedule:
    """Operating window of a route as seen from ``now``."""
    start, end = service_window(route, now)
    return ServiceSchedule(
        route_id=route.id,
        service_start=start,
        service_end=end,
        frequency_minutes=route.frequency_minutes,
        is_active=is_in_service(route, now),
        next_service_start=next_service_start(route, now),
    )


def service_schedules(routes: Iterable[Route], now: datetime) -> List[ServiceSchedule]:
    return [route_schedule(route, now) for route in routes]


def is_any_service_active(routes: Iterable[Route], now: datetime) -> bool:
    return any(s.is_active for s in service_schedules(routes, now))


def earliest_service_start(routes: Iterable[Route], now: datetime) -> Optional[datetime]:
    """Earliest upcoming window start among routes that are not running."""
    starts = [s.next_service_start for s in service_schedules(routes, now) if s.next_service_start]
    return min(starts) if starts else None


def time_until_next_service(routes: Iterable[Route], now: datetime) -> Optional[Tuple[datetime, int, int]]:
    """(next_start, hours, minutes) until service resumes."""
    next_start = earliest_service_start(routes, now)
    if next_start is None:
        return None
    total_minutes = math.ceil((next_start - now).total_seconds() / 60)
    return next_start, total_minutes // 60, total_minutes % 60


def format_waiting_time(minutes: int) -> str:
    if minutes < 60:
        return f"{minutes} min"
    hours, remaining = divmod(minutes, 60)
    if remaining == 0:
        return f"{hours}h"
    return f"{hours}h {remaining}min"


def service_status(routes: Iterable[Route], now: datetime) -> str:
    routes = list(routes)
    if is_any_service_active(routes, now):
        return "Service is currently running"

    upcoming = time_until_next_service(routes, now)
    if upcoming is None:
        return "Service information unavailable"

    _, hours, minutes = upcoming
    if hours == 0:
        return f"Service starts in {minutes} minutes"
    return f"Service starts in {format_waiting_time(hours * 60 + minutes)}"


def station_offset_minutes(route: Route, station_id: str, direction: str, minutes_per_station: int = MINUTES_PER_STATION) -> int:
    """Estimated minutes from the route's starting terminus to a station."""
    index = route.index_of(station_id)
    if index == -1:
        return 0
    stations_from_start = index if direction == FORWARD else len(route.station_ids) - 1 - index
    return stations_from_start * minutes_per_station


def scheduled_departure(
    route: Route,
    from_station_id: str,
    direction: str,
    journey_seconds: int,
    now: datetime,
    minutes_per_station: int = MINUTES_PER_STATION,
) -> NextDeparture:
    """
    Next departure from a station projected from the route frequency.

    While the route runs, the next frequency slot after ``now`` is shifted by
    the station's estimated offset from the terminus. Outside service hours
    the first train of the next window is used instead.
    """
    offset = timedelta(minutes=station_offset_minutes(route, from_station_id, direction, minutes_per_station))
    headway = timedelta(minutes=route.frequency_minutes)
    start, _ = service_window(route, now)

    if is_in_service(route, now):
        minutes_since_start = int((now - start).total_seconds() // 60)
        next_slot = math.ceil(minutes_since_start / route.frequency_minutes) * route.frequency_minutes
        departure = start + timedelta(minutes=next_slot) + offset
        if departure <= now:
            departure += headway
    else:
        departure = next_service_start(route, now) + offset

    arrival = departure + timedelta(seconds=journey_seconds)
    wait_minutes = max(0, math.ceil((departure - now).total_seconds() / 60))
    number = train_number(route, departure)
    logger.debug(f"Scheduled departure {number} from {from_station_id} at {departure:%H:%M}")

    return NextDeparture(
        source="scheduled",
        train_id=f"scheduled-{number}",
        display_name=number,
        departure_time=departure,
        arrival_time=arrival,
        wait_minutes=wait_minutes,
        total_journey_minutes=math.ceil((arrival - now).total_seconds() / 60),
    )
