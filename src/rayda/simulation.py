"""Tick-driven simulation of every train on the line."""

import logging
import threading
import time
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from .config import SimulationConfig
from .fleet import collect_garbage, generate_fleet
from .geometry_mapper import GeometryMapper
from .models import SimulationState, Snapshot, TrainInstance, TrainPosition
from .naming import train_display_name
from .positions import resolve_position, spread_overlapping
from .schedule_loader import ScheduleLoader

logger = logging.getLogger(__name__)


class Simulator:
    """
    Advances a SimulationState to a given instant.

    The simulator holds only read-only inputs (schedule, geometry, config);
    all per-tick data lives in the state passed in and returned, so tests can
    step it with any sequence of timestamps.
    """

    def __init__(self, schedule: ScheduleLoader, mapper: GeometryMapper, config: Optional[SimulationConfig] = None):
        self.schedule = schedule
        self.mapper = mapper
        self.config = config or SimulationConfig()

    def tick(self, state: SimulationState, now: datetime) -> Tuple[SimulationState, Snapshot]:
        """
        Produce the next state and the snapshot to publish.

        An unexpected error is logged and the previous state and snapshot are
        returned unchanged, so a bad tick never publishes partial data.
        """
        try:
            return self._advance(state, now)
        except Exception:
            logger.exception(f"Simulation tick at {now:%H:%M:%S} failed, keeping previous snapshot")
            return state, state.snapshot

    def _advance(self, state: SimulationState, now: datetime) -> Tuple[SimulationState, Snapshot]:
        instances: Dict[str, TrainInstance] = state.instances_by_id()
        for route in self.schedule.routes.values():
            for instance in generate_fleet(route, now, self.config.max_journey_seconds):
                instances[instance.id] = instance

        positions: List[TrainPosition] = []
        alive: List[TrainInstance] = []
        for instance in instances.values():
            geometry = self.mapper.get_geometry(instance.route_id)
            if geometry is None:
                # Kept until the sweep; the route cannot be drawn
                alive.append(instance)
                continue

            position = resolve_position(
                instance,
                geometry,
                now,
                timing_mode=self.config.timing_mode,
                bearing_lookahead=self.config.bearing_lookahead,
                display_name=train_display_name(instance.id, self.schedule.get_route(instance.route_id)),
            )
            if position is not None:
                positions.append(position)
                alive.append(instance)
            elif now < instance.departure_time:
                alive.append(instance)

        last_sweep = state.last_sweep
        if last_sweep is None or (now - last_sweep).total_seconds() >= self.config.gc_interval_s:
            before = len(alive)
            alive = collect_garbage(alive, now, self.config.max_journey_seconds)
            if before != len(alive):
                logger.info(f"Swept {before - len(alive)} trains past the journey ceiling")
            last_sweep = now

        snapshot = Snapshot(generated_at=now, positions=spread_overlapping(positions, self.config.overlap_offset_deg))
        logger.debug(f"Tick {now:%H:%M:%S}: {len(snapshot.positions)} trains on the line")
        return SimulationState(instances=tuple(alive), snapshot=snapshot, last_sweep=last_sweep), snapshot


class SimulationRunner:
    """
    Repeating timer that drives a Simulator.

    Runs in the calling thread; ``stop`` may be called from the snapshot
    callback or another thread to end the loop after the current tick.
    """

    def __init__(
        self,
        simulator: Simulator,
        interval: Optional[float] = None,
        on_snapshot: Optional[Callable[[Snapshot], None]] = None,
        clock: Callable[[], datetime] = datetime.now,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.simulator = simulator
        self.interval = interval if interval is not None else simulator.config.tick_interval_s
        self.on_snapshot = on_snapshot
        self.clock = clock
        self.sleep = sleep
        self.state = SimulationState()
        self._running = False
        self._lock = threading.Lock()
        self._generation = 0

    @property
    def snapshot(self) -> Snapshot:
        return self.state.snapshot

    @property
    def is_running(self) -> bool:
        return self._running

    def step(self, now: Optional[datetime] = None) -> Snapshot:
        """
        Run a single tick and publish its snapshot.

        A tick interrupted by ``stop`` is discarded: nothing is published and
        the cleared snapshot is returned.
        """
        with self._lock:
            generation = self._generation
            state = self.state
        next_state, snapshot = self.simulator.tick(state, now or self.clock())
        with self._lock:
            if generation != self._generation:
                logger.debug("Simulation stopped during tick, discarding its snapshot")
                return self.state.snapshot
            self.state = next_state
        if self.on_snapshot is not None:
            try:
                self.on_snapshot(snapshot)
            except Exception as e:
                logger.error(f"Snapshot callback failed: {e}", exc_info=True)
        return snapshot

    def run(self, max_ticks: Optional[int] = None) -> None:
        """Tick until stopped or ``max_ticks`` ticks have run."""
        self._running = True
        ticks = 0
        logger.info(f"Simulation started (every {self.interval}s)")
        try:
            while self._running:
                self.step()
                ticks += 1
                if max_ticks is not None and ticks >= max_ticks:
                    break
                self.sleep(self.interval)
        finally:
            self._running = False
            logger.info(f"Simulation stopped after {ticks} ticks")

    def stop(self) -> None:
        """Stop the loop and discard the published snapshot."""
        with self._lock:
            self._running = False
            self._generation += 1
            self.state = SimulationState()
