"""Small synthetic line shared by the tests."""

import sys
from datetime import datetime, time
from pathlib import Path

# Add src to path so we can import rayda
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from rayda.models import (
    InterStationTime,
    Route,
    SegmentRef,
    Station,
    TrackAttributes,
    TrackPolyline,
    TrainPosition,
)
from rayda.schedule_loader import ScheduleLoader

STATION_IDS = ["S0", "S1", "S2", "S3", "S4", "S5", "S6"]
SEGMENT_SECONDS = 120


def make_station(index: int) -> Station:
    # Stations 0.01 degrees of longitude apart on the equator (~1.11 km)
    return Station(
        id=f"S{index}",
        name=f"Station {index}",
        coordinate=(0.01 * index, 0.0),
        distance_from_origin=round(1.11 * index, 2),
    )


def make_route(route_id: str = "line", frequency: int = 10, start: time = time(6, 0), end: time = time(22, 0)) -> Route:
    return Route(
        id=route_id,
        name="Test Line",
        termini=("S0", "S6"),
        frequency_minutes=frequency,
        station_ids=tuple(STATION_IDS),
        service_start=start,
        service_end=end,
        color="#123456",
        train_prefix="L",
        display_name="Test Service",
    )


def make_schedule(route: Route = None, backward_seconds: int = SEGMENT_SECONDS) -> ScheduleLoader:
    schedule = ScheduleLoader()
    schedule.add_stations(make_station(i) for i in range(len(STATION_IDS)))
    schedule.add_routes([route or make_route()])
    times = []
    for a, b in zip(STATION_IDS, STATION_IDS[1:]):
        times.append(InterStationTime(a, b, SEGMENT_SECONDS))
        times.append(InterStationTime(b, a, backward_seconds))
    schedule.add_times(times)
    return schedule


def make_position(
    train_id: str,
    from_id: str,
    to_id: str,
    segment_progress: float,
    direction: str = "forward",
    route_id: str = "line",
) -> TrainPosition:
    return TrainPosition(
        train_id=train_id,
        route_id=route_id,
        direction=direction,
        coordinate=(0.0, 0.0),
        bearing_degrees=90.0,
        progress_fraction=0.5,
        segment_progress=segment_progress,
        current_segment=SegmentRef(from_id, to_id),
        segment_index=0,
        departure_time=datetime(2024, 5, 1, 6, 0),
        display_name=train_id.upper(),
        display_coordinate=(0.0, 0.0),
    )


def track(track_id: str, coordinates, **attributes) -> TrackPolyline:
    return TrackPolyline(id=track_id, coordinates=tuple(coordinates), attributes=TrackAttributes(**attributes))
