"""Maps schedule-level station pairs onto physical track polylines."""

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from .config import SimulationConfig
from .geo import bounding_box, haversine_distance, path_length
from .models import Coordinate, Route, RouteGeometry, RouteSegment, Station, TrackPolyline
from .schedule_loader import ScheduleLoader
from .track_loader import TrackFilter

logger = logging.getLogger(__name__)


def reverse_route_geometry(geometry: RouteGeometry) -> RouteGeometry:
    """
    Geometry of a route as travelled backward.

    Both the segment order and the point order inside every segment are
    reversed, and each segment's stations are swapped, so interpolation
    moves the train along the track in its real direction of travel.
    Each segment takes its running time from the opposite direction.
    """
    segments = tuple(
        RouteSegment(
            from_station_id=segment.to_station_id,
            to_station_id=segment.from_station_id,
            path=tuple(reversed(segment.path)),
            distance_m=segment.distance_m,
            travel_time_s=(
                segment.reverse_travel_time_s if segment.reverse_travel_time_s is not None else segment.travel_time_s
            ),
            track_id=segment.track_id,
            degraded=segment.degraded,
            reverse_travel_time_s=segment.travel_time_s,
        )
        for segment in reversed(geometry.segments)
    )
    return RouteGeometry(route_id=geometry.route_id, segments=segments)


class GeometryMapper:
    """
    Builds and caches per-route geometry.

    Each segment between consecutive stations is drawn from the polyline
    whose endpoints lie closest to the two stations; when nothing is close
    enough a straight line is used instead so the route is always usable.
    """

    def __init__(
        self,
        schedule: ScheduleLoader,
        polylines: Optional[Iterable[TrackPolyline]] = None,
        config: Optional[SimulationConfig] = None,
        excluded_ids: Optional[Iterable[str]] = None,
        excluded_names: Optional[Iterable[str]] = None,
    ):
        self.schedule = schedule
        self.config = config or SimulationConfig()
        self._all_polylines: List[TrackPolyline] = list(polylines or [])
        self.track_filter = TrackFilter(
            excluded_ids=excluded_ids,
            excluded_names=excluded_names,
            service_area=self._service_area(),
            gauge=self.config.line_gauge,
        )
        self._polylines: List[TrackPolyline] = self.track_filter.apply(self._all_polylines)
        self._cache: Dict[str, RouteGeometry] = {}

    def _service_area(self) -> Optional[Tuple[float, float, float, float]]:
        coords = [s.coordinate for s in self.schedule.stations.values()]
        if not coords:
            return None
        return bounding_box(coords, margin=self.config.service_area_margin_deg)

    @property
    def polylines(self) -> List[TrackPolyline]:
        """Polylines that survived filtering."""
        return list(self._polylines)

    def set_polylines(self, polylines: Iterable[TrackPolyline]) -> None:
        """Replace the track dataset and rebuild cached routes."""
        self._all_polylines = list(polylines)
        self.reinitialize()

    def initialize(self, routes: Optional[Iterable[Route]] = None) -> None:
        """Map every route up front so the first tick finds warm geometry."""
        for route in routes if routes is not None else self.schedule.routes.values():
            self.map_route(route)

    def map_route(self, route: Route) -> Optional[RouteGeometry]:
        """
        Build the geometry for a route.

        Returns:
            RouteGeometry with one segment per consecutive station pair, or
            None if the route references a station the schedule lacks.
        """
        cached = self._cache.get(route.id)
        if cached is not None:
            return cached

        stations: List[Station] = []
        for station_id in route.station_ids:
            station = self.schedule.find_station(station_id)
            if station is None:
                logger.error(f"Cannot map route {route.id}: unknown station {station_id}")
                return None
            stations.append(station)

        segments = []
        for from_station, to_station in zip(stations, stations[1:]):
            path, track_id = self._find_track_path(from_station, to_station)
            segments.append(
                RouteSegment(
                    from_station_id=from_station.id,
                    to_station_id=to_station.id,
                    path=path,
                    distance_m=path_length(path),
                    travel_time_s=self.schedule.travel_time(from_station.id, to_station.id),
                    track_id=track_id,
                    degraded=track_id is None,
                    reverse_travel_time_s=self.schedule.travel_time(to_station.id, from_station.id),
                )
            )

        geometry = RouteGeometry(route_id=route.id, segments=tuple(segments))
        self._cache[route.id] = geometry
        degraded = sum(1 for s in segments if s.degraded)
        logger.info(
            f"Route {route.id}: {len(segments)} segments, "
            f"{geometry.total_distance_m / 1000:.1f}km, {round(geometry.total_travel_time_s / 60)}min"
            + (f", {degraded} straight-line" if degraded else "")
        )
        return geometry

    def get_geometry(self, route_id: str) -> Optional[RouteGeometry]:
        """Cached geometry, building it on first use. None for unknown routes."""
        cached = self._cache.get(route_id)
        if cached is not None:
            return cached
        route = self.schedule.get_route(route_id)
        if route is None:
            return None
        return self.map_route(route)

    def _find_track_path(self, from_station: Station, to_station: Station) -> Tuple[Tuple[Coordinate, ...], Optional[str]]:
        start = from_station.coordinate
        end = to_station.coordinate

        best_path: Tuple[Coordinate, ...] = ()
        best_id: Optional[str] = None
        best_score = -1.0

        for polyline in self._polylines:
            first = polyline.coordinates[0]
            last = polyline.coordinates[-1]

            score = 1.0 / (1.0 + haversine_distance(start, first) + haversine_distance(end, last))
            if score > best_score:
                best_score = score
                best_path = polyline.coordinates
                best_id = polyline.id

            # The polyline may be digitised in the opposite direction
            score_reversed = 1.0 / (1.0 + haversine_distance(start, last) + haversine_distance(end, first))
            if score_reversed > best_score:
                best_score = score_reversed
                best_path = tuple(reversed(polyline.coordinates))
                best_id = polyline.id

        if not best_path:
            # No track data at all; straight lines are the expected mode
            logger.debug(f"Using straight line for {from_station.name} -> {to_station.name}")
            return (start, end), None
        if best_score < self.config.min_match_score:
            logger.warning(f"Using straight line for {from_station.name} -> {to_station.name}")
            return (start, end), None

        logger.debug(f"Matched {from_station.name} -> {to_station.name} to track {best_id} (score {best_score:.5f})")
        return best_path, best_id

    def exclude_features(self, feature_names: Iterable[str]) -> None:
        """Exclude polylines by name and rebuild geometry."""
        names = list(feature_names)
        self.track_filter.excluded_names.update(names)
        logger.info(f"Excluded {len(names)} railway features: {', '.join(names)}")
        self.reinitialize()

    def exclude_ids(self, feature_ids: Iterable[str]) -> None:
        """Exclude polylines by id and rebuild geometry."""
        ids = [str(i) for i in feature_ids]
        self.track_filter.excluded_ids.update(ids)
        logger.info(f"Excluded {len(ids)} railway feature ids: {', '.join(ids)}")
        self.reinitialize()

    def get_excluded_features(self) -> List[str]:
        return sorted(self.track_filter.excluded_names)

    def get_excluded_ids(self) -> List[str]:
        return sorted(self.track_filter.excluded_ids)

    def reinitialize(self) -> None:
        """Refilter the track data and rebuild every cached route."""
        mapped_routes = list(self._cache)
        self._cache.clear()
        self.track_filter.service_area = self._service_area()
        self._polylines = self.track_filter.apply(self._all_polylines)

        for route_id in mapped_routes:
            route = self.schedule.get_route(route_id)
            if route is not None:
                self.map_route(route)

        logger.info(
            f"Reinitialized with {len(self._polylines)} track polylines "
            f"({len(self.track_filter.excluded_names) + len(self.track_filter.excluded_ids)} features excluded)"
        )

    def degraded_segments(self) -> List[Tuple[str, str, str]]:
        """(route_id, from_station_id, to_station_id) for straight-line segments."""
        return [
            (geometry.route_id, s.from_station_id, s.to_station_id)
            for geometry in self._cache.values()
            for s in geometry.segments
            if s.degraded
        ]

    def network_stats(self) -> dict:
        return {
            "track_polylines": len(self._polylines),
            "rejected_polylines": dict(self.track_filter.last_rejections),
            "track_length_km": sum(path_length(p.coordinates) for p in self._polylines) / 1000,
            "mapped_routes": len(self._cache),
            "degraded_segments": len(self.degraded_segments()),
            "stations": len(self.schedule.stations),
        }
