"""Track geometry loader and polyline filtering."""

import json
import logging
from collections import Counter
from typing import Callable, Dict, Iterable, List, NamedTuple, Optional, Set, Tuple

import requests

from .config import LINE_GAUGE
from .geo import in_box
from .models import TrackAttributes, TrackPolyline

logger = logging.getLogger(__name__)

NON_PASSENGER_USAGE = {"freight", "industrial", "military", "test", "tourism"}
SERVICE_TRACKS = {"yard", "siding", "spur", "crossover"}

_TRUTHY_TAGS = {"yes", "true", "1", "viaduct", "building_passage"}


def _flag(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).lower() in _TRUTHY_TAGS if value is not None else False


class TrackLoader:
    """Reads GeoJSON track geometry into TrackPolyline objects."""

    def __init__(self, timeout: float = 30.0):
        self.timeout = timeout

    def load_from_file(self, path: str) -> List[TrackPolyline]:
        """Load a GeoJSON FeatureCollection from disk."""
        logger.info(f"Loading track geometry from {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load track geometry from {path}: {e}")
            raise
        return self.parse(data)

    def load_from_url(self, url: str) -> List[TrackPolyline]:
        """Download a GeoJSON FeatureCollection."""
        logger.info(f"Downloading track geometry from {url}")
        try:
            response = requests.get(url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Failed to download track geometry from {url}: {e}")
            raise
        return self.parse(data)

    def parse(self, data: dict) -> List[TrackPolyline]:
        """Convert LineString/MultiLineString features to polylines."""
        if data.get("type") != "FeatureCollection":
            raise ValueError("Track geometry must be a GeoJSON FeatureCollection")

        polylines: List[TrackPolyline] = []
        for position, feature in enumerate(data.get("features", [])):
            geometry = feature.get("geometry") or {}
            properties = feature.get("properties") or {}
            feature_id = str(properties.get("id", feature.get("id", f"feature-{position}")))
            attributes = self._parse_attributes(properties)

            if geometry.get("type") == "LineString":
                parts = [geometry.get("coordinates", [])]
            elif geometry.get("type") == "MultiLineString":
                parts = geometry.get("coordinates", [])
            else:
                continue

            for part_number, coords in enumerate(parts):
                polyline_id = feature_id if len(parts) == 1 else f"{feature_id}:{part_number}"
                polylines.append(
                    TrackPolyline(
                        id=polyline_id,
                        coordinates=tuple((float(c[0]), float(c[1])) for c in coords),
                        attributes=attributes,
                    )
                )

        logger.info(f"Parsed {len(polylines)} track polylines")
        return polylines

    @staticmethod
    def _parse_attributes(properties: dict) -> TrackAttributes:
        return TrackAttributes(
            railway=properties.get("railway") or "rail",
            electrified=properties.get("electrified"),
            usage=properties.get("usage"),
            service=properties.get("service"),
            gauge=str(properties["gauge"]) if properties.get("gauge") else None,
            tunnel=_flag(properties.get("tunnel")),
            bridge=_flag(properties.get("bridge")),
            name=properties.get("name"),
        )


class FilterRule(NamedTuple):
    """A named reason to discard a polyline; predicate returns True to reject."""
    name: str
    predicate: Callable[[TrackPolyline], bool]


class TrackFilter:
    """
    Ordered exclusion policy applied to polylines before matching.

    Rules are evaluated in order and the first one that rejects a polyline
    is the one counted for it, so the statistics show why track was dropped.
    """

    def __init__(
        self,
        excluded_ids: Optional[Iterable[str]] = None,
        excluded_names: Optional[Iterable[str]] = None,
        service_area: Optional[Tuple[float, float, float, float]] = None,
        gauge: str = LINE_GAUGE,
    ):
        self.excluded_ids: Set[str] = set(excluded_ids or [])
        self.excluded_names: Set[str] = set(excluded_names or [])
        self.service_area = service_area
        self.gauge = gauge
        self.last_rejections: Dict[str, int] = {}

    @property
    def rules(self) -> List[FilterRule]:
        return [
            FilterRule("too_few_points", lambda p: len(p.coordinates) < 2),
            FilterRule("excluded_id", lambda p: p.id in self.excluded_ids or p.id.split(":")[0] in self.excluded_ids),
            FilterRule("excluded_name", lambda p: p.attributes.name is not None and p.attributes.name in self.excluded_names),
            FilterRule("non_passenger_usage", lambda p: (p.attributes.usage or "").lower() in NON_PASSENGER_USAGE),
            FilterRule("service_track", lambda p: (p.attributes.service or "").lower() in SERVICE_TRACKS),
            FilterRule("gauge", lambda p: p.attributes.gauge is not None and p.attributes.gauge != self.gauge),
            FilterRule("outside_service_area", self._outside_service_area),
        ]

    def _outside_service_area(self, polyline: TrackPolyline) -> bool:
        if self.service_area is None:
            return False
        return not any(in_box(c, self.service_area) for c in polyline.coordinates)

    def rejection_reason(self, polyline: TrackPolyline) -> Optional[str]:
        for rule in self.rules:
            if rule.predicate(polyline):
                return rule.name
        return None

    def apply(self, polylines: Iterable[TrackPolyline]) -> List[TrackPolyline]:
        """Return the polylines that pass every rule."""
        kept = []
        rejections: Counter = Counter()
        for polyline in polylines:
            reason = self.rejection_reason(polyline)
            if reason is None:
                kept.append(polyline)
            else:
                rejections[reason] += 1
                logger.debug(f"Skipping track {polyline.id} ({polyline.attributes.name}): {reason}")

        self.last_rejections = dict(rejections)
        if rejections:
            summary = ", ".join(f"{name}={count}" for name, count in sorted(rejections.items()))
            logger.info(f"Kept {len(kept)} track polylines, rejected {sum(rejections.values())} ({summary})")
        return kept
