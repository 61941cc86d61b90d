"""
Simulation Clock

Logical time for a visualisation session, decoupled from the wall clock.
The tick loop advances it by ``rate * real_seconds`` once per frame; the UI
may change the rate or scrub to any instant.
"""

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Optional

from orbit_tracker.config import DEFAULT_RATE
from orbit_tracker.errors import ClockError, InvalidRateError
from orbit_tracker.propagator import to_utc

logger = logging.getLogger(__name__)


def _check_rate(rate: float) -> float:
    try:
        value = float(rate)
    except (TypeError, ValueError):
        raise InvalidRateError(f"Playback rate must be a number, got {rate!r}") from None
    if not math.isfinite(value) or value <= 0.0:
        raise InvalidRateError(f"Playback rate must be finite and > 0, got {rate!r}")
    return value


class SimulationClock:
    """
    Session-scoped simulation time.

    Elapsed simulated time is accumulated as float seconds on top of an anchor
    instant, so rates whose per-tick step is below one microsecond still add
    up exactly. ``current`` is rebuilt from the two on every read.

    Attributes:
        current: Current simulated instant (aware UTC datetime)
        rate: Simulated seconds per real second (> 0)
        scrub_count: Incremented on every scrub so dependants can detect jumps
    """

    # Whole seconds are folded into the anchor past this offset
    REBASE_SECONDS = 86400.0

    def __init__(self, start: Optional[datetime] = None, rate: float = DEFAULT_RATE):
        self._anchor = to_utc(start) if start is not None else datetime.now(timezone.utc)
        self._offset = 0.0
        self.rate = _check_rate(rate)
        self.scrub_count = 0

    @property
    def current(self) -> datetime:
        return self._anchor + timedelta(seconds=self._offset)

    def advance(self, real_seconds_elapsed: float) -> datetime:
        """
        Advance by ``rate * real_seconds_elapsed`` and return the new instant.

        Raises:
            ClockError: for negative or non-finite elapsed time, or when the
                result falls outside the representable datetime range; the
                clock is unchanged
        """
        elapsed = float(real_seconds_elapsed)
        if not math.isfinite(elapsed) or elapsed < 0.0:
            raise ClockError(f"Elapsed real time must be finite and >= 0, got {real_seconds_elapsed!r}")

        offset = self._offset + self.rate * elapsed
        anchor = self._anchor
        try:
            if abs(offset) >= self.REBASE_SECONDS:
                whole = math.floor(offset)
                anchor = anchor + timedelta(seconds=whole)
                offset -= whole
            current = anchor + timedelta(seconds=offset)
        except OverflowError:
            raise ClockError(
                f"Advancing {self.rate * elapsed:g} s from {self.current.isoformat()} "
                f"leaves the supported date range"
            ) from None

        self._anchor, self._offset = anchor, offset
        return current

    def set_rate(self, rate: float) -> None:
        """
        Change the playback rate.

        Raises:
            InvalidRateError: for rate <= 0 or non-finite; the clock is unchanged
        """
        self.rate = _check_rate(rate)
        logger.info(f"Playback rate set to {self.rate:g}x")

    def scrub(self, instant: datetime) -> None:
        """Jump to ``instant``, which may be earlier than the current time."""
        self._anchor = to_utc(instant)
        self._offset = 0.0
        self.scrub_count += 1
        logger.info(f"Simulation clock scrubbed to {self._anchor.isoformat()}")

    def __repr__(self):
        return f"SimulationClock(current={self.current.isoformat()}, rate={self.rate:g})"
