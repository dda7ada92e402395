"""Static schedule data loader: stations, routes and running times."""

import logging
from datetime import datetime, time
from typing import Dict, List, Optional, Tuple

import pandas as pd

from .config import DEFAULT_SEGMENT_SECONDS
from .data import default_inter_station_times, default_routes, default_sections, default_stations
from .models import InterStationTime, Route, Station

logger = logging.getLogger(__name__)

UNKNOWN_SECTION = "Unknown"

STATION_COLUMNS = {"station_id", "name", "longitude", "latitude", "distance_km"}
ROUTE_COLUMNS = {
    "route_id", "name", "terminus_a", "terminus_b", "frequency_minutes",
    "station_ids", "service_start", "service_end",
}
TIME_COLUMNS = {"from_station_id", "to_station_id", "seconds"}


def _parse_clock(value: str) -> time:
    return datetime.strptime(str(value).strip(), "%H:%M").time()


def _require_columns(df: pd.DataFrame, required: set, table: str) -> None:
    missing = required - set(df.columns)
    if missing:
        raise ValueError(f"{table} table is missing columns: {', '.join(sorted(missing))}")


class ScheduleLoader:
    """Loads and indexes the static schedule tables."""

    def __init__(self, default_segment_seconds: int = DEFAULT_SEGMENT_SECONDS):
        self.stations: Dict[str, Station] = {}
        self.stations_by_name: Dict[str, List[str]] = {}  # name -> [station_ids]
        self.routes: Dict[str, Route] = {}
        self.routes_by_station: Dict[str, List[str]] = {}  # station_id -> [route_ids]
        self.times: Dict[Tuple[str, str], int] = {}
        self.sections: List[Tuple[str, str]] = []  # (name, last station id) in line order
        self.default_segment_seconds = default_segment_seconds

    def load_defaults(self) -> None:
        """Load the bundled Marmaray tables."""
        self.add_stations(default_stations())
        self.add_routes(default_routes())
        self.add_times(default_inter_station_times())
        self.sections = default_sections()
        logger.info(f"Loaded {len(self.stations)} stations and {len(self.routes)} routes")

    def load_from_files(self, stations_path: str, routes_path: str, times_path: str) -> None:
        """Load schedule tables from local CSV files."""
        logger.info("Loading schedule data from local files")
        self._load_stations(pd.read_csv(stations_path, dtype={"station_id": str}))
        self._load_routes(pd.read_csv(routes_path, dtype=str))
        self._load_times(pd.read_csv(times_path, dtype={"from_station_id": str, "to_station_id": str}))
        logger.info(f"Loaded {len(self.stations)} stations and {len(self.routes)} routes")

    def _load_stations(self, df: pd.DataFrame) -> None:
        _require_columns(df, STATION_COLUMNS, "stations")
        self.add_stations(
            Station(
                id=str(row.station_id),
                name=row.name,
                coordinate=(float(row.longitude), float(row.latitude)),
                distance_from_origin=float(row.distance_km),
            )
            for row in df.itertuples(index=False)
        )

    def _load_routes(self, df: pd.DataFrame) -> None:
        _require_columns(df, ROUTE_COLUMNS, "routes")
        df = df.fillna("")
        routes = []
        for row in df.to_dict("records"):
            routes.append(
                Route(
                    id=row["route_id"],
                    name=row["name"],
                    termini=(row["terminus_a"], row["terminus_b"]),
                    frequency_minutes=int(row["frequency_minutes"]),
                    station_ids=tuple(row["station_ids"].split()),
                    service_start=_parse_clock(row["service_start"]),
                    service_end=_parse_clock(row["service_end"]),
                    color=row.get("color") or "#0066CC",
                    train_prefix=row.get("train_prefix") or "T",
                    display_name=row.get("display_name") or row["name"],
                )
            )
        self.add_routes(routes)

    def _load_times(self, df: pd.DataFrame) -> None:
        _require_columns(df, TIME_COLUMNS, "inter-station times")
        self.add_times(
            InterStationTime(str(row.from_station_id), str(row.to_station_id), int(row.seconds))
            for row in df.itertuples(index=False)
        )

    def add_stations(self, stations) -> None:
        for station in stations:
            self.stations[station.id] = station
            self.stations_by_name.setdefault(station.name, []).append(station.id)

    def add_routes(self, routes) -> None:
        for route in routes:
            if route.frequency_minutes <= 0:
                raise ValueError(f"Route {route.id} has a non-positive frequency")
            for station_id in route.station_ids:
                if station_id not in self.stations:
                    logger.warning(f"Route {route.id} references unknown station {station_id}")
                self.routes_by_station.setdefault(station_id, []).append(route.id)
            self.routes[route.id] = route
        self.validate_routes()

    def add_times(self, times) -> None:
        for entry in times:
            self.times[(entry.from_station_id, entry.to_station_id)] = entry.seconds

    def validate_routes(self) -> List[Tuple[str, str]]:
        """
        Check that routes sharing stations visit them in a consistent order.

        A route may run the reverse of another (the evening service runs
        Pendik -> Zeytinburnu over the full line's track), so both the shared
        order and its reverse are accepted.

        Returns:
            List of (route_id, other_route_id) pairs that disagree.
        """
        conflicts = []
        route_list = list(self.routes.values())
        for i, route in enumerate(route_list):
            for other in route_list[i + 1:]:
                shared = [s for s in route.station_ids if s in other.station_ids]
                if len(shared) < 2:
                    continue
                other_order = [s for s in other.station_ids if s in shared]
                if shared != other_order and shared != list(reversed(other_order)):
                    logger.warning(f"Routes {route.id} and {other.id} order shared stations differently")
                    conflicts.append((route.id, other.id))
        return conflicts

    def travel_time(self, from_station_id: str, to_station_id: str) -> int:
        """Running time between adjacent stations, with the flat fallback."""
        seconds = self.times.get((from_station_id, to_station_id))
        if seconds is None:
            logger.debug(
                f"No running time for {from_station_id} -> {to_station_id}, "
                f"using {self.default_segment_seconds}s"
            )
            return self.default_segment_seconds
        return seconds

    def get_station(self, station_id: str) -> Station:
        """Get station by id."""
        if station_id not in self.stations:
            raise ValueError(f"Station {station_id} not found")
        return self.stations[station_id]

    def find_station(self, station_id: str) -> Optional[Station]:
        return self.stations.get(station_id)

    def find_stations_by_name(self, name: str) -> List[Station]:
        """Find stations by name (partial, case-insensitive match)."""
        results = []
        name_lower = name.lower()

        for station_name, station_ids in self.stations_by_name.items():
            if name_lower in station_name.lower():
                for station_id in station_ids:
                    results.append(self.stations[station_id])

        return results

    def get_route(self, route_id: str) -> Optional[Route]:
        return self.routes.get(route_id)

    def routes_for_station(self, station_id: str) -> List[Route]:
        return [self.routes[r] for r in self.routes_by_station.get(station_id, [])]

    def stations_in_route_order(self) -> List[Station]:
        """
        All stations in line order.

        The route with the most stations is taken as the canonical ordering;
        stations it does not cover are appended at the end.
        """
        if not self.routes:
            return sorted(self.stations.values(), key=lambda s: s.name)

        ordered = [self.stations[s] for s in self._line_order() if s in self.stations]
        included = {s.id for s in ordered}
        ordered.extend(s for s in self.stations.values() if s.id not in included)
        return ordered

    def _line_order(self) -> Tuple[str, ...]:
        if not self.routes:
            return ()
        return max(self.routes.values(), key=lambda r: len(r.station_ids)).station_ids

    def station_position(self, station_id: str) -> int:
        """0-based index of a station along the line, or -1."""
        line = self._line_order()
        return line.index(station_id) if station_id in line else -1

    def is_station_before(self, station_a_id: str, station_b_id: str) -> bool:
        """True if station A comes before station B in line order."""
        position_a = self.station_position(station_a_id)
        position_b = self.station_position(station_b_id)
        if position_a == -1 or position_b == -1:
            return False
        return position_a < position_b

    def station_section(self, station_id: str) -> str:
        """Name of the section a station lies in, e.g. ``Tunnel Section``."""
        position = self.station_position(station_id)
        if position == -1:
            return UNKNOWN_SECTION
        for name, last_station_id in self.sections:
            end = self.station_position(last_station_id)
            if end != -1 and position <= end:
                return name
        return UNKNOWN_SECTION

    def stations_by_section(self) -> List[Tuple[str, List[Station]]]:
        """Stations grouped by section in line order; empty sections are left out."""
        groups: Dict[str, List[Station]] = {name: [] for name, _ in self.sections}
        for station in self.stations_in_route_order():
            section = self.station_section(station.id)
            if section in groups:
                groups[section].append(station)
        return [(name, stations) for name, stations in groups.items() if stations]

    def clear(self) -> None:
        """Clear all loaded data."""
        self.stations.clear()
        self.stations_by_name.clear()
        self.routes.clear()
        self.routes_by_station.clear()
        self.times.clear()
        self.sections.clear()
        logger.info("Cleared schedule data from memory")
