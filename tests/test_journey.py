"""Tests for journey planning."""

import unittest
import sys
from datetime import datetime, timedelta
from pathlib import Path

# Add src to path so we can import rayda
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from rayda.journey import JourneyPlanner, format_journey_time, intermediate_stops, journey_summary
from rayda.models import BACKWARD, FORWARD

from line_fixtures import make_position, make_route, make_schedule

DAY = datetime(2024, 5, 1)


def at(hour, minute, day=DAY):
    return day.replace(hour=hour, minute=minute)


class TestJourneyPlanner(unittest.TestCase):
    """Test single-route journeys."""

    def setUp(self):
        self.planner = JourneyPlanner(make_schedule())

    def test_forward_journey(self):
        plan = self.planner.plan_journey("S1", "S4", [], departure_time=at(10, 3))

        self.assertEqual(plan.route.id, "line")
        self.assertEqual(plan.direction, FORWARD)
        self.assertEqual([s.id for s in plan.stations], ["S1", "S2", "S3", "S4"])
        self.assertEqual(plan.station_count, 3)
        self.assertEqual(plan.total_time_s, 360)
        self.assertAlmostEqual(plan.total_distance_km, 3.33)
        self.assertEqual([s.id for s in intermediate_stops(plan)], ["S2", "S3"])

    def test_reverse_journey_is_symmetric(self):
        there = self.planner.plan_journey("S1", "S4", [], departure_time=at(10, 3))
        back = self.planner.plan_journey("S4", "S1", [], departure_time=at(10, 3))

        self.assertEqual(back.direction, BACKWARD)
        self.assertEqual([s.id for s in back.stations], ["S4", "S3", "S2", "S1"])
        self.assertEqual(back.total_time_s, there.total_time_s)
        self.assertAlmostEqual(back.total_distance_km, there.total_distance_km)

    def test_no_plan_for_same_or_unknown_station(self):
        self.assertIsNone(self.planner.plan_journey("S1", "S1", [], departure_time=at(10, 3)))
        self.assertIsNone(self.planner.plan_journey("S1", "S99", [], departure_time=at(10, 3)))
        self.assertIsNone(self.planner.plan_journey("S99", "S1", [], departure_time=at(10, 3)))
        self.assertEqual(self.planner.plan_all_journeys("S1", "S1", [], departure_time=at(10, 3)), [])

    def test_live_train_is_preferred(self):
        """A train halfway to S1 in the right direction is caught in a minute."""
        now = at(10, 3)
        trains = [make_position("line-forward-24", "S0", "S1", 0.5)]
        departure = self.planner.plan_journey("S1", "S4", trains, departure_time=now).next_departure

        self.assertEqual(departure.source, "live")
        self.assertEqual(departure.train_id, "line-forward-24")
        self.assertEqual(departure.wait_minutes, 1)
        self.assertEqual(departure.departure_time, now + timedelta(seconds=60))
        self.assertEqual(departure.arrival_time, now + timedelta(seconds=420))
        self.assertEqual(departure.total_journey_minutes, 7)

    def test_live_train_found_behind_nearer_trains_on_other_routes(self):
        schedule = make_schedule()
        schedule.add_routes([make_route("other")])
        planner = JourneyPlanner(schedule)
        trains = [make_position(f"other-forward-{i}", "S0", "S1", 0.9, route_id="other") for i in range(12)]
        trains.append(make_position("line-forward-24", "S0", "S1", 0.0))

        departure = planner.plan_journey("S1", "S4", trains, departure_time=at(10, 3)).next_departure

        self.assertEqual(departure.source, "live")
        self.assertEqual(departure.train_id, "line-forward-24")
        self.assertEqual(departure.wait_minutes, 2)

    def test_live_train_in_wrong_direction_is_ignored(self):
        trains = [make_position("line-backward-3", "S3", "S2", 0.5, direction=BACKWARD)]
        departure = self.planner.plan_journey("S1", "S4", trains, departure_time=at(10, 3)).next_departure

        self.assertEqual(departure.source, "scheduled")
        # Next ten-minute slot after 10:03 is 10:10, plus two minutes to reach S1
        self.assertEqual(departure.departure_time, at(10, 12))
        self.assertEqual(departure.wait_minutes, 9)

    def test_live_train_beyond_max_wait_is_ignored(self):
        trains = [make_position("line-forward-24", "S0", "S1", 0.5)]
        departure = self.planner.plan_journey(
            "S1", "S4", trains, departure_time=at(10, 3), max_wait_minutes=0
        ).next_departure
        self.assertEqual(departure.source, "scheduled")

    def test_scheduled_departure_after_hours(self):
        """After the last train the first departure of tomorrow is offered."""
        now = at(23, 0)
        departure = self.planner.plan_journey("S1", "S4", [], departure_time=now).next_departure

        self.assertEqual(departure.source, "scheduled")
        self.assertEqual(departure.departure_time, at(6, 2, day=DAY + timedelta(days=1)))
        self.assertEqual(departure.arrival_time, departure.departure_time + timedelta(seconds=360))
        self.assertEqual(departure.wait_minutes, 7 * 60 + 2)
        self.assertEqual(departure.display_name, "L0600")

    def test_scheduled_departure_before_service(self):
        departure = self.planner.plan_journey("S4", "S1", [], departure_time=at(5, 0)).next_departure

        # Backward trains start at S6, two stations before S4
        self.assertEqual(departure.departure_time, at(6, 4))
        self.assertEqual(departure.wait_minutes, 64)


class TestJourneyFormatting(unittest.TestCase):

    def setUp(self):
        self.planner = JourneyPlanner(make_schedule())

    def test_format_journey_time(self):
        self.assertEqual(format_journey_time(360), "6 min")
        self.assertEqual(format_journey_time(3700), "1h 2min")

    def test_summary_for_scheduled_departure(self):
        plan = self.planner.plan_journey("S1", "S4", [], departure_time=at(10, 3))
        summary = journey_summary(plan)

        self.assertIn("9 min service starts", summary)
        self.assertIn("3 stops", summary)
        self.assertTrue(summary.endswith("(scheduled)"))

    def test_summary_for_live_departure(self):
        trains = [make_position("line-forward-24", "S0", "S1", 0.5)]
        plan = self.planner.plan_journey("S1", "S4", trains, departure_time=at(10, 3))

        self.assertEqual(journey_summary(plan), "7 min total (1 min wait + 6 min journey) • 3 stops")


if __name__ == "__main__":
    unittest.main()
