"""Converts elapsed time since departure into a position on the track."""

import logging
import math
from collections import defaultdict
from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from .geo import bearing_along_path, interpolate_along_path
from .geometry_mapper import reverse_route_geometry
from .models import BACKWARD, RouteGeometry, RouteSegment, SegmentRef, TrainInstance, TrainPosition

logger = logging.getLogger(__name__)

TIMING_MODES = ("distance", "schedule")


def _locate_by_distance(segments: Sequence[RouteSegment], progress: float) -> Tuple[int, float]:
    total_distance = sum(s.distance_m for s in segments)
    target = total_distance * progress
    covered = 0.0
    for index, segment in enumerate(segments):
        if covered + segment.distance_m >= target:
            fraction = (target - covered) / segment.distance_m if segment.distance_m > 0 else 0.0
            return index, fraction
        covered += segment.distance_m
    return len(segments) - 1, 1.0


def _locate_by_schedule(segments: Sequence[RouteSegment], elapsed: float) -> Tuple[int, float]:
    covered = 0.0
    for index, segment in enumerate(segments):
        if elapsed < covered + segment.travel_time_s:
            fraction = (elapsed - covered) / segment.travel_time_s if segment.travel_time_s > 0 else 0.0
            return index, fraction
        covered += segment.travel_time_s
    return len(segments) - 1, 1.0


def resolve_position(
    instance: TrainInstance,
    geometry: RouteGeometry,
    now: datetime,
    timing_mode: str = "distance",
    bearing_lookahead: float = 0.01,
    display_name: str = "",
) -> Optional[TrainPosition]:
    """
    Position of a train at ``now``.

    Returns None before departure and once the journey is complete; a
    finished train leaves the live set rather than turning around.

    In ``"distance"`` mode the fraction of journey time elapsed is mapped to
    the same fraction of route length. In ``"schedule"`` mode each leg takes
    exactly its published running time.
    """
    if timing_mode not in TIMING_MODES:
        raise ValueError(f"Unknown timing mode: {timing_mode}")
    if not geometry.segments:
        return None

    if instance.direction == BACKWARD:
        geometry = reverse_route_geometry(geometry)
    segments = geometry.segments

    elapsed = (now - instance.departure_time).total_seconds()
    total_time = geometry.total_travel_time_s
    if elapsed < 0 or elapsed >= total_time:
        return None

    progress = elapsed / total_time
    if timing_mode == "distance" and geometry.total_distance_m > 0:
        index, fraction = _locate_by_distance(segments, progress)
    else:
        index, fraction = _locate_by_schedule(segments, elapsed)

    segment = segments[index]
    fraction = max(0.0, min(1.0, fraction))
    coordinate = interpolate_along_path(segment.path, fraction)

    return TrainPosition(
        train_id=instance.id,
        route_id=instance.route_id,
        direction=instance.direction,
        coordinate=coordinate,
        bearing_degrees=bearing_along_path(segment.path, fraction, bearing_lookahead),
        progress_fraction=progress,
        segment_progress=fraction,
        current_segment=SegmentRef(segment.from_station_id, segment.to_station_id),
        segment_index=index,
        departure_time=instance.departure_time,
        display_name=display_name,
        display_coordinate=coordinate,
    )


def spread_overlapping(positions: Sequence[TrainPosition], offset_deg: float) -> Tuple[TrainPosition, ...]:
    """
    Fan out trains drawn on top of each other.

    Trains in the same segment decile get display coordinates on a small
    circle around their true position. Only ``display_coordinate`` changes.
    """
    buckets: Dict[Tuple[str, str, int], List[int]] = defaultdict(list)
    for i, position in enumerate(positions):
        decile = min(9, int(position.segment_progress * 10))
        buckets[(position.current_segment.from_station_id, position.current_segment.to_station_id, decile)].append(i)

    spread = list(positions)
    for members in buckets.values():
        if len(members) < 2:
            continue
        for k, i in enumerate(members):
            angle = 2 * math.pi * k / len(members)
            lon, lat = positions[i].coordinate
            spread[i] = replace(
                positions[i],
                display_coordinate=(lon + offset_deg * math.cos(angle), lat + offset_deg * math.sin(angle)),
            )
    return tuple(spread)
