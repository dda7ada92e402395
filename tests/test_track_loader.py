"""Tests for track geometry loading and filtering."""

import json
import os
import tempfile
import unittest
from unittest.mock import MagicMock, patch
import sys
from pathlib import Path

import requests

# Add src to path so we can import rayda
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from rayda.track_loader import TrackFilter, TrackLoader

from line_fixtures import track

FEATURES = {
    "type": "FeatureCollection",
    "features": [
        {
            "type": "Feature",
            "properties": {"id": "w1", "name": "Main Line", "usage": "main", "gauge": 1435, "tunnel": "yes"},
            "geometry": {"type": "LineString", "coordinates": [[0.0, 0.0], [0.01, 0.0]]},
        },
        {
            "type": "Feature",
            "properties": {"id": "w2", "bridge": "viaduct"},
            "geometry": {
                "type": "MultiLineString",
                "coordinates": [[[0.01, 0.0], [0.02, 0.0]], [[0.02, 0.0], [0.03, 0.0]]],
            },
        },
        {
            "type": "Feature",
            "properties": {"id": "n1", "name": "Signal"},
            "geometry": {"type": "Point", "coordinates": [0.0, 0.0]},
        },
    ],
}


class TestTrackLoader(unittest.TestCase):
    """Test GeoJSON parsing."""

    def test_parse_line_strings(self):
        polylines = TrackLoader().parse(FEATURES)

        self.assertEqual([p.id for p in polylines], ["w1", "w2:0", "w2:1"])
        main = polylines[0]
        self.assertEqual(main.coordinates, ((0.0, 0.0), (0.01, 0.0)))
        self.assertEqual(main.attributes.name, "Main Line")
        self.assertEqual(main.attributes.gauge, "1435")
        self.assertTrue(main.attributes.tunnel)
        self.assertFalse(main.attributes.bridge)
        self.assertTrue(polylines[1].attributes.bridge)

    def test_parse_rejects_other_documents(self):
        with self.assertRaises(ValueError):
            TrackLoader().parse({"type": "Feature"})

    def test_load_from_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "track.json")
            with open(path, "w", encoding="utf-8") as f:
                json.dump(FEATURES, f)
            polylines = TrackLoader().load_from_file(path)

        self.assertEqual(len(polylines), 3)

    def test_load_missing_file_raises(self):
        with self.assertRaises(OSError):
            TrackLoader().load_from_file("/nonexistent/track.json")

    @patch("rayda.track_loader.requests.get")
    def test_load_from_url(self, mock_get):
        """Test that a downloaded document is parsed."""
        mock_response = MagicMock()
        mock_response.json.return_value = FEATURES
        mock_get.return_value = mock_response

        polylines = TrackLoader(timeout=5).load_from_url("https://example.com/track.json")

        self.assertEqual(len(polylines), 3)
        mock_get.assert_called_once_with("https://example.com/track.json", timeout=5)

    @patch("rayda.track_loader.requests.get")
    def test_load_from_url_http_error(self, mock_get):
        """Test that HTTP errors propagate after being logged."""
        mock_response = MagicMock()
        mock_response.raise_for_status.side_effect = requests.HTTPError("404 Not Found")
        mock_get.return_value = mock_response

        with self.assertLogs("rayda.track_loader", level="ERROR"):
            with self.assertRaises(requests.HTTPError):
                TrackLoader().load_from_url("https://example.com/missing.json")


class TestTrackFilter(unittest.TestCase):
    """Test the ordered exclusion rules."""

    def setUp(self):
        self.filter = TrackFilter(
            excluded_ids=["bad"],
            excluded_names=["Old Siding"],
            service_area=(-1.0, -1.0, 1.0, 1.0),
        )

    def test_keeps_passenger_track(self):
        polyline = track("ok", [(0.0, 0.0), (0.5, 0.0)], usage="main", gauge="1435", electrified="contact_line")
        self.assertIsNone(self.filter.rejection_reason(polyline))

    def test_rejection_reasons(self):
        cases = {
            "too_few_points": track("p", [(0.0, 0.0)]),
            "excluded_id": track("bad", [(0.0, 0.0), (0.5, 0.0)]),
            "excluded_name": track("n", [(0.0, 0.0), (0.5, 0.0)], name="Old Siding"),
            "non_passenger_usage": track("f", [(0.0, 0.0), (0.5, 0.0)], usage="freight"),
            "service_track": track("y", [(0.0, 0.0), (0.5, 0.0)], service="yard"),
            "gauge": track("g", [(0.0, 0.0), (0.5, 0.0)], gauge="1000"),
            "outside_service_area": track("far", [(10.0, 10.0), (10.5, 10.0)]),
        }
        for expected, polyline in cases.items():
            with self.subTest(rule=expected):
                self.assertEqual(self.filter.rejection_reason(polyline), expected)

    def test_first_matching_rule_wins(self):
        polyline = track("bad", [(10.0, 10.0), (10.5, 10.0)], usage="freight")
        self.assertEqual(self.filter.rejection_reason(polyline), "excluded_id")

    def test_excluded_id_covers_multiline_parts(self):
        self.assertEqual(self.filter.rejection_reason(track("bad:1", [(0.0, 0.0), (0.5, 0.0)])), "excluded_id")

    def test_apply_records_rejections(self):
        polylines = [
            track("ok", [(0.0, 0.0), (0.5, 0.0)]),
            track("f1", [(0.0, 0.0), (0.5, 0.0)], usage="freight"),
            track("f2", [(0.0, 0.0), (0.5, 0.0)], usage="industrial"),
            track("far", [(10.0, 10.0), (10.5, 10.0)]),
        ]
        kept = self.filter.apply(polylines)

        self.assertEqual([p.id for p in kept], ["ok"])
        self.assertEqual(self.filter.last_rejections, {"non_passenger_usage": 2, "outside_service_area": 1})

    def test_partially_inside_service_area_is_kept(self):
        polyline = track("edge", [(0.5, 0.0), (5.0, 0.0)])
        self.assertIsNone(self.filter.rejection_reason(polyline))


if __name__ == "__main__":
    unittest.main()
