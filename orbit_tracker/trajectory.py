"""
Trajectory Sampler

Samples one orbital period of scene-space positions for a satellite at a fixed
cadence. The result is a lazy, finite and restartable iterable: every
iteration re-propagates from the same start instant, so repeated iteration
yields identical points and nothing is tied to the live clock.
"""

import logging
from datetime import datetime, timedelta
from typing import Iterator, List, Optional

import numpy as np

from orbit_tracker.config import SAMPLE_STEP_SECONDS
from orbit_tracker.elements import ElementRecord
from orbit_tracker.errors import PropagationError, TransformError
from orbit_tracker.frames import SimVector3, to_scene_space
from orbit_tracker.propagator import PropagationState, Propagator, to_utc

logger = logging.getLogger(__name__)


def orbital_period(state: PropagationState) -> timedelta:
    """One revolution, 2*pi / n with n the Kozai-free mean motion in rad/min."""
    return state.period


class TrajectoryCurve:
    """
    One period of sampled scene positions for one satellite.

    The curve belongs to whoever requested it. Once submitted to a render
    target it carries the target's ``handle``; ``disposed`` becomes True when
    its render resources have been released.
    """

    def __init__(self, satellite_index: int, points: np.ndarray, anchor: datetime):
        self.satellite_index = satellite_index
        self.points = points
        self.anchor = anchor
        self.tier = None
        self.handle = None
        self.disposed = False

    def __len__(self):
        return len(self.points)

    def __repr__(self):
        return (
            f"TrajectoryCurve(index={self.satellite_index}, points={len(self.points)}, "
            f"anchor={self.anchor.isoformat()}, disposed={self.disposed})"
        )


class OrbitSamples:
    """Iterable of SimVector3 along one orbit starting at ``start``."""

    def __init__(
        self,
        propagator: Propagator,
        record: ElementRecord,
        start: datetime,
        step_seconds: float = SAMPLE_STEP_SECONDS,
    ):
        if step_seconds <= 0:
            raise ValueError(f"step_seconds must be positive, got {step_seconds}")
        self.propagator = propagator
        self.record = record
        self.start = to_utc(start)
        self.step_seconds = float(step_seconds)
        self.period = orbital_period(propagator.state(record))

    def offsets(self) -> List[float]:
        """Sample offsets in seconds from start, closing the loop at one period."""
        period_s = self.period.total_seconds()
        count = int(period_s // self.step_seconds)
        offsets = [k * self.step_seconds for k in range(count + 1)]
        if offsets[-1] < period_s:
            offsets.append(period_s)
        return offsets

    def __iter__(self) -> Iterator[SimVector3]:
        skipped = 0
        for offset in self.offsets():
            instant = self.start + timedelta(seconds=offset)
            try:
                state = self.propagator.propagate(self.record, instant)
                point = to_scene_space(state.position)
            except (PropagationError, TransformError) as e:
                skipped += 1
                logger.debug(f"Skipping sample at +{offset:.0f}s for {self.record.name}: {e}")
                continue
            yield point
        if skipped:
            logger.debug(f"{self.record.name}: skipped {skipped} trajectory samples")

    def to_array(self) -> np.ndarray:
        points = [p.as_array() for p in self]
        if not points:
            return np.empty((0, 3))
        return np.vstack(points)

    def to_curve(self, satellite_index: int) -> Optional[TrajectoryCurve]:
        """Materialise into a TrajectoryCurve, or None when no sample survived."""
        points = self.to_array()
        if len(points) == 0:
            logger.info(f"No trajectory available for {self.record.name} at {self.start.isoformat()}")
            return None
        return TrajectoryCurve(satellite_index, points, self.start)


def sample_orbit(
    propagator: Propagator,
    record: ElementRecord,
    start: datetime,
    step_seconds: float = SAMPLE_STEP_SECONDS,
) -> OrbitSamples:
    """
    Sample one orbital period of ``record`` from ``start``.

    Args:
        propagator: Shared propagator (reuses the record's cached constants)
        record: Satellite elements
        start: Anchor instant, normally the simulation clock's current time
        step_seconds: Sample cadence

    Returns:
        OrbitSamples; iterate it as often as needed
    """
    return OrbitSamples(propagator, record, start, step_seconds)
