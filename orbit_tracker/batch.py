"""
Batch Position Updater

Once per tick, propagates every tracked satellite and writes scene positions
into a flat instance buffer that the rendering collaborator reads between
ticks. Index assignment is fixed when the updater is built and never changes
during a session. A satellite whose propagation fails keeps its last good
position.
"""

import logging
from datetime import datetime
from typing import List, NamedTuple, Optional, Sequence

import numpy as np

from orbit_tracker.elements import ElementRecord
from orbit_tracker.frames import scale_to_scene
from orbit_tracker.propagator import Propagator, describe_error

logger = logging.getLogger(__name__)


class PositionBuffer:
    """
    Fixed-size (N, 3) array of scene positions keyed by stable index.

    ``has_position[i]`` is False until slot ``i`` receives its first good
    position; renderers should hide such instances.
    """

    def __init__(self, size: int):
        self.positions = np.zeros((size, 3), dtype=float)
        self.has_position = np.zeros(size, dtype=bool)
        self.last_update: Optional[datetime] = None

    def __len__(self):
        return len(self.positions)

    def write(self, mask: np.ndarray, values: np.ndarray, instant: datetime) -> None:
        self.positions[mask] = values[mask]
        self.has_position |= mask
        self.last_update = instant


class UpdateReport(NamedTuple):
    updated: int
    failed: List[int]


class BatchPositionUpdater:
    """
    Propagates ``records`` into a PositionBuffer; ``records[i]`` always owns slot ``i``.

    Usage:
        updater = BatchPositionUpdater(propagator, records)
        updater.update_all(clock.current)
        renderer.update_instances(updater.buffer, tiers)
    """

    def __init__(self, propagator: Propagator, records: Sequence[ElementRecord]):
        self.propagator = propagator
        self.records = tuple(records)
        self.buffer = PositionBuffer(len(self.records))
        self._failing = np.zeros(len(self.records), dtype=bool)

    def update_all(self, instant: datetime) -> UpdateReport:
        """
        Propagate all records to ``instant`` and write successes into the buffer.

        Returns:
            UpdateReport with the number of slots written and the failed indices
        """
        if not self.records:
            return UpdateReport(0, [])

        positions_km, codes, ok = self.propagator.propagate_many(self.records, instant)
        scene, finite = scale_to_scene(positions_km)
        ok = ok & finite

        self.buffer.write(ok, scene, instant)
        self._log_transitions(ok, codes)

        failed = np.flatnonzero(~ok).tolist()
        return UpdateReport(int(ok.sum()), failed)

    def _log_transitions(self, ok: np.ndarray, codes: np.ndarray) -> None:
        started = np.flatnonzero(~ok & ~self._failing)
        recovered = np.flatnonzero(ok & self._failing)

        for i in started:
            record = self.records[i]
            code = int(codes[i])
            reason = describe_error(code) if code else "non-finite state"
            logger.warning(f"{record.name} stopped propagating ({reason}); holding last position")
        for i in recovered:
            logger.info(f"{self.records[i].name} propagating again")

        self._failing = ~ok
