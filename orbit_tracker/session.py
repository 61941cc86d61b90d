"""
Tracking Session

Explicit per-session state (clock, propagator, instance buffer, selection
policy, curve registry) and the synchronous tick that drives it.

Tick ordering:
    1. drain queued UI events (select, deselect, interest changes)
    2. advance the simulation clock
    3. batch-update every satellite position
    4. sample trajectories requested by this tick's events or invalidated by a scrub
    5. hand the buffer to the render target and present the frame

Events that arrive during a tick are queued and applied atomically at the
start of the next one.
"""

import logging
from collections import deque
from datetime import datetime
from typing import Iterable, List, NamedTuple, Optional, Sequence

from orbit_tracker.batch import BatchPositionUpdater
from orbit_tracker.clock import SimulationClock
from orbit_tracker.config import TrackerConfig
from orbit_tracker.elements import ElementRecord
from orbit_tracker.errors import ClockError, NoDataError, ParseError
from orbit_tracker.propagator import Propagator
from orbit_tracker.render import RenderTarget
from orbit_tracker.selection import (
    SELECTION_KEY,
    CurveRegistry,
    SelectionPolicy,
    interest_key,
)
from orbit_tracker.trajectory import sample_orbit

logger = logging.getLogger(__name__)

_NO_CHANGE = object()


class TickReport(NamedTuple):
    instant: datetime
    updated: int
    failed: List[int]
    active_curves: int


class TrackingSession:
    """
    One visualisation session over an immutable batch of element records.

    Args:
        records: Records handed over by the element source
        render_target: Rendering collaborator
        clock: Simulation clock (defaults to now at the configured rate)
        config: TrackerConfig (defaults read from the environment)
        primary_names: Initial primary-interest names
        secondary_names: Initial secondary-interest names

    Raises:
        NoDataError: if no record survives validation
    """

    def __init__(
        self,
        records: Sequence[ElementRecord],
        render_target: RenderTarget,
        clock: Optional[SimulationClock] = None,
        config: Optional[TrackerConfig] = None,
        primary_names: Iterable[str] = (),
        secondary_names: Iterable[str] = (),
    ):
        self.config = config or TrackerConfig()
        self.propagator = Propagator()
        self.rejected: List[ElementRecord] = []

        valid = []
        for record in records:
            try:
                self.propagator.state(record)
            except ParseError as e:
                logger.warning(f"Excluding record: {e}")
                self.rejected.append(record)
                continue
            valid.append(record)

        if not valid:
            raise NoDataError("No valid element records available")

        if len(valid) > self.config.MAX_SATELLITES:
            logger.info(f"Tracking first {self.config.MAX_SATELLITES} of {len(valid)} satellites")
            valid = valid[: self.config.MAX_SATELLITES]

        self.records = tuple(valid)
        self.clock = clock or SimulationClock(rate=self.config.DEFAULT_RATE)
        self.updater = BatchPositionUpdater(self.propagator, self.records)
        self.policy = SelectionPolicy(self.records, primary_names, secondary_names)
        self.render_target = render_target
        self.curves = CurveRegistry(render_target)

        self._events = deque()
        self._interest_dirty = True
        self._scrub_seen = self.clock.scrub_count
        self.ticks = 0

        render_target.set_pick_callback(self.request_select)
        logger.info(f"Session started with {len(self.records)} satellites at {self.clock.current.isoformat()}")

    @property
    def buffer(self):
        return self.updater.buffer

    # UI-facing requests

    def request_select(self, index: int) -> None:
        self._events.append(("select", index))

    def request_deselect(self) -> None:
        self._events.append(("deselect", None))

    def request_interest(self, primary_names: Iterable[str], secondary_names: Iterable[str]) -> None:
        self._events.append(("interest", (frozenset(primary_names), frozenset(secondary_names))))

    def set_rate(self, rate: float) -> None:
        self.clock.set_rate(rate)

    def scrub(self, instant: datetime) -> None:
        self.clock.scrub(instant)

    # Tick loop

    def tick(self, real_seconds: float) -> TickReport:
        """Run one frame; see the module docstring for the ordering."""
        events = list(self._events)
        self._events.clear()

        try:
            instant = self.clock.advance(real_seconds)
        except ClockError:
            self._events.extendleft(reversed(events))
            raise
        report = self.updater.update_all(instant)

        selection = self._apply_events(events)
        scrubbed = self.clock.scrub_count != self._scrub_seen
        self._scrub_seen = self.clock.scrub_count

        if selection is not _NO_CHANGE:
            self._show_selection(selection, instant)
        elif scrubbed and self.policy.selected is not None:
            self._show_selection(self.policy.selected, instant)

        if self._interest_dirty or scrubbed:
            self._sync_interest_curves(instant, rebuild=scrubbed)
            self._interest_dirty = False

        self.render_target.update_instances(self.updater.buffer, self.policy.tiers())
        self.render_target.present()

        self.ticks += 1
        return TickReport(instant, report.updated, report.failed, len(self.curves))

    def close(self) -> None:
        """Release every trajectory curve held by the session."""
        self.curves.release_all()
        self.render_target.set_pick_callback(None)

    def _apply_events(self, events):
        selection = _NO_CHANGE
        for kind, payload in events:
            if kind == "select":
                try:
                    record = self.policy.on_select(payload)
                except IndexError as e:
                    logger.warning(f"Ignoring selection: {e}")
                    continue
                self.policy.selected = payload
                logger.info(f"Selected {record.name} (index {payload})")
                selection = payload
            elif kind == "deselect":
                self.policy.clear_selection()
                selection = None
            elif kind == "interest":
                primary, secondary = payload
                self.policy.set_interest(primary, secondary)
                self._interest_dirty = True
        return selection

    def _show_selection(self, index: Optional[int], instant: datetime) -> None:
        if index is None:
            self.curves.release(SELECTION_KEY)
            return
        record = self.records[index]
        curve = sample_orbit(
            self.propagator, record, instant, self.config.SAMPLE_STEP_SECONDS
        ).to_curve(index)
        self.curves.replace(SELECTION_KEY, curve, self.policy.tier(index))

    def _sync_interest_curves(self, instant: datetime, rebuild: bool = False) -> None:
        wanted = self.policy.curve_indices()

        for key in self.curves.keys():
            if key[0] == "interest" and key[1] not in wanted:
                self.curves.release(key)

        for index in sorted(wanted):
            key = interest_key(index)
            existing = self.curves.get(key)
            if existing is not None and not rebuild and existing.tier == self.policy.tier(index):
                continue
            curve = sample_orbit(
                self.propagator, self.records[index], instant, self.config.SAMPLE_STEP_SECONDS
            ).to_curve(index)
            self.curves.replace(key, curve, self.policy.tier(index))
