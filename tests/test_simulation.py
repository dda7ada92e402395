"""Tests for the tick-driven simulator."""

import unittest
from unittest.mock import MagicMock, patch
import sys
from datetime import datetime
from pathlib import Path

# Add src to path so we can import rayda
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from rayda.config import SimulationConfig
from rayda.geometry_mapper import GeometryMapper
from rayda.models import FORWARD, SimulationState, Snapshot, TrainInstance
from rayda.simulation import SimulationRunner, Simulator

from line_fixtures import make_schedule

DAY = datetime(2024, 5, 1)


def at(hour, minute, second=0):
    return DAY.replace(hour=hour, minute=minute, second=second)


class TestSimulator(unittest.TestCase):
    """Test state transitions of a single tick."""

    def setUp(self):
        schedule = make_schedule()
        self.simulator = Simulator(schedule, GeometryMapper(schedule))

    def test_first_trains_of_the_day(self):
        state, snapshot = self.simulator.tick(SimulationState(), at(6, 5))

        self.assertEqual(snapshot.generated_at, at(6, 5))
        self.assertEqual(sorted(p.train_id for p in snapshot.positions), ["line-backward-0", "line-forward-0"])
        positions = {p.train_id: p for p in snapshot.positions}

        forward = positions["line-forward-0"]
        self.assertEqual(forward.display_name, "L00")
        self.assertEqual(forward.current_segment.from_station_id, "S2")
        self.assertAlmostEqual(forward.coordinate[0], 0.025, places=4)
        self.assertAlmostEqual(forward.bearing_degrees, 90.0, places=3)

        # The backward train is just leaving the far terminus
        backward = positions["line-backward-0"]
        self.assertEqual(backward.current_segment.from_station_id, "S6")
        self.assertAlmostEqual(backward.coordinate[0], 0.06, places=6)
        self.assertAlmostEqual(backward.bearing_degrees, 270.0, places=3)

    def test_nothing_before_service(self):
        state, snapshot = self.simulator.tick(SimulationState(), at(5, 0))
        self.assertEqual(snapshot.positions, ())
        self.assertEqual(state.instances, ())

    def test_repeated_tick_is_stable(self):
        state, first = self.simulator.tick(SimulationState(), at(9, 0))
        state, second = self.simulator.tick(state, at(9, 0))

        self.assertEqual(first, second)
        ids = [i.id for i in state.instances]
        self.assertEqual(len(ids), len(set(ids)))

    def test_completed_trains_leave_the_line(self):
        state, _ = self.simulator.tick(SimulationState(), at(6, 5))
        state, snapshot = self.simulator.tick(state, at(6, 13))

        ids = [p.train_id for p in snapshot.positions]
        self.assertNotIn("line-forward-0", ids)
        self.assertIn("line-forward-1", ids)
        self.assertNotIn("line-forward-0", [i.id for i in state.instances])

    def test_positions_advance(self):
        state, before = self.simulator.tick(SimulationState(), at(6, 1))
        state, after = self.simulator.tick(state, at(6, 2))

        self.assertGreater(after.positions[0].progress_fraction, before.positions[0].progress_fraction)

    def test_garbage_collection(self):
        """Instances that cannot be resolved are swept past the journey ceiling."""
        stale = TrainInstance("ghost-forward-0", "ghost", FORWARD, at(6, 0))
        fresh = TrainInstance("ghost-forward-9", "ghost", FORWARD, at(9, 50))
        state = SimulationState(instances=(stale, fresh))

        state, _ = self.simulator.tick(state, at(10, 0))

        ids = [i.id for i in state.instances]
        self.assertNotIn("ghost-forward-0", ids)
        self.assertIn("ghost-forward-9", ids)
        self.assertEqual(state.last_sweep, at(10, 0))

    def test_sweep_runs_on_its_interval(self):
        stale = TrainInstance("ghost-forward-0", "ghost", FORWARD, at(6, 0))
        state = SimulationState(instances=(stale,), last_sweep=at(9, 59))

        state, _ = self.simulator.tick(state, at(10, 0))
        self.assertIn("ghost-forward-0", [i.id for i in state.instances])

        state, _ = self.simulator.tick(state, at(10, 4))
        self.assertNotIn("ghost-forward-0", [i.id for i in state.instances])

    def test_failed_tick_keeps_previous_snapshot(self):
        state, snapshot = self.simulator.tick(SimulationState(), at(8, 0))

        with patch.object(self.simulator.mapper, "get_geometry", side_effect=RuntimeError("boom")):
            with self.assertLogs("rayda.simulation", level="ERROR"):
                new_state, new_snapshot = self.simulator.tick(state, at(8, 1))

        self.assertIs(new_state, state)
        self.assertIs(new_snapshot, snapshot)

    def test_schedule_timing_mode(self):
        schedule = make_schedule()
        simulator = Simulator(schedule, GeometryMapper(schedule), SimulationConfig(timing_mode="schedule"))
        _, snapshot = simulator.tick(SimulationState(), at(6, 3))

        forward = [p for p in snapshot.positions if p.train_id == "line-forward-0"][0]
        self.assertEqual(forward.current_segment.from_station_id, "S1")
        self.assertAlmostEqual(forward.segment_progress, 0.5)


class TestSimulationRunner(unittest.TestCase):
    """Test the timer driver."""

    def setUp(self):
        schedule = make_schedule()
        self.simulator = Simulator(schedule, GeometryMapper(schedule))
        self.times = iter(at(8, 0, s) for s in range(60))
        self.sleep = MagicMock()

    def test_run_publishes_each_tick(self):
        published = []
        runner = SimulationRunner(
            self.simulator,
            interval=1.0,
            on_snapshot=published.append,
            clock=lambda: next(self.times),
            sleep=self.sleep,
        )
        runner.run(max_ticks=3)

        self.assertEqual(len(published), 3)
        self.assertEqual([s.generated_at for s in published], [at(8, 0, 0), at(8, 0, 1), at(8, 0, 2)])
        self.assertEqual(self.sleep.call_count, 2)
        self.sleep.assert_called_with(1.0)
        self.assertFalse(runner.is_running)
        self.assertIs(runner.snapshot, published[-1])

    def test_stop_from_callback(self):
        runner = SimulationRunner(self.simulator, clock=lambda: next(self.times), sleep=self.sleep)
        runner.on_snapshot = lambda snapshot: runner.stop()
        runner.run()

        self.assertEqual(self.sleep.call_count, 1)
        self.assertEqual(runner.snapshot, Snapshot())

    def test_stop_during_tick_discards_its_snapshot(self):
        published = []
        runner = SimulationRunner(self.simulator, on_snapshot=published.append, sleep=self.sleep)
        tick = self.simulator.tick

        def stop_then_tick(state, now):
            runner.stop()
            return tick(state, now)

        with patch.object(self.simulator, "tick", side_effect=stop_then_tick):
            snapshot = runner.step(at(8, 0))

        self.assertEqual(snapshot, Snapshot())
        self.assertEqual(runner.snapshot, Snapshot())
        self.assertEqual(runner.state, SimulationState())
        self.assertEqual(published, [])

        # A later tick publishes normally
        self.assertTrue(runner.step(at(8, 1)).positions)
        self.assertEqual(len(published), 1)

    def test_callback_errors_do_not_stop_the_loop(self):
        callback = MagicMock(side_effect=ValueError("bad consumer"))
        runner = SimulationRunner(
            self.simulator, on_snapshot=callback, clock=lambda: next(self.times), sleep=self.sleep
        )
        with self.assertLogs("rayda.simulation", level="ERROR"):
            runner.run(max_ticks=2)
        self.assertEqual(callback.call_count, 2)

    def test_interval_defaults_to_config(self):
        runner = SimulationRunner(self.simulator)
        self.assertEqual(runner.interval, self.simulator.config.tick_interval_s)

    def test_step_with_explicit_time(self):
        runner = SimulationRunner(self.simulator, sleep=self.sleep)
        snapshot = runner.step(at(12, 0))
        self.assertEqual(snapshot.generated_at, at(12, 0))
        self.assertTrue(snapshot.positions)


if __name__ == "__main__":
    unittest.main()
