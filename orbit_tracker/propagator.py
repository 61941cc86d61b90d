"""
SGP4 Propagator

Derives TEME inertial-frame position and velocity for a TLE record at an
arbitrary instant using the proven sgp4 library.

Per-record constants (the initialised Satrec and the decoded mean elements)
are computed once and cached for the lifetime of the record. Propagation
failures are raised as DegenerateOrbitError with the SGP4 error code and a
physical interpretation; callers never receive a nonsensical position.

References:
    Vallado, D. A., Crawford, P., Hujsak, R., & Kelso, T. S. (2006).
    Revisiting Spacetrack Report #3. AIAA 2006-6753.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, NamedTuple, Sequence, Tuple

import numpy as np
from sgp4.api import Satrec, SatrecArray, jday

from orbit_tracker.elements import ElementRecord
from orbit_tracker.errors import DegenerateOrbitError, ParseError

logger = logging.getLogger(__name__)


# SGP4 error code meanings
SGP4_ERROR_CODES = {
    0: "No error",
    1: "Mean eccentricity < 0.0 or > 1.0",
    2: "Mean motion < 0.0",
    3: "Perturbed eccentricity < 0.0 or > 1.0",
    4: "Semi-latus rectum < 0.0",
    5: "Satellite has decayed",
    6: "Satellite has decayed (low altitude)",
}

PHYSICAL_MEANING = {
    1: "TLE data may be corrupted or the orbit is no longer bound",
    2: "corrupted TLE data or an invalid orbital state",
    3: "propagated too far from epoch or decaying orbit with very high drag",
    4: "propagated too far from epoch or decaying orbit with very high drag",
    5: "satellite has re-entered the atmosphere",
    6: "satellite has re-entered the atmosphere",
}


class EciState(NamedTuple):
    """TEME position (km) and velocity (km/s)."""

    position: np.ndarray
    velocity: np.ndarray


@dataclass(frozen=True)
class PropagationState:
    """Constants derived once from a record's two lines."""

    satrec: Satrec
    epoch: datetime
    mean_motion: float  # rad/min
    mean_motion_rev_per_day: float
    eccentricity: float
    inclination_deg: float
    raan_deg: float
    arg_perigee_deg: float
    mean_anomaly_deg: float
    bstar: float

    @property
    def period(self) -> timedelta:
        """One orbital period derived from the mean motion."""
        return timedelta(minutes=2.0 * math.pi / self.mean_motion)


def to_utc(instant: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are taken as UTC."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def datetime_to_jd_fr(instant: datetime) -> Tuple[float, float]:
    """
    Convert datetime to Julian date and fraction.

    Args:
        instant: Datetime (naive values are taken as UTC)

    Returns:
        Tuple of (julian_day, fraction)
    """
    dt = to_utc(instant)
    return jday(
        dt.year, dt.month, dt.day, dt.hour, dt.minute,
        dt.second + dt.microsecond / 1e6,
    )


def describe_error(error_code: int) -> str:
    message = SGP4_ERROR_CODES.get(error_code, f"Unknown error code {error_code}")
    meaning = PHYSICAL_MEANING.get(error_code)
    return f"{message} ({meaning})" if meaning else message


class Propagator:
    """
    Stateless-per-call SGP4 propagation with a per-record constant cache.

    Usage:
        propagator = Propagator()
        state = propagator.propagate(record, datetime.now(timezone.utc))
        state.position  # km, TEME
    """

    def __init__(self):
        self._states: Dict[ElementRecord, PropagationState] = {}
        self._arrays: Dict[Tuple[ElementRecord, ...], SatrecArray] = {}

    def state(self, record: ElementRecord) -> PropagationState:
        """
        Return the cached PropagationState for a record, deriving it on first use.

        Raises:
            ParseError: if SGP4 cannot initialise from the elements
        """
        cached = self._states.get(record)
        if cached is not None:
            return cached

        try:
            satrec = Satrec.twoline2rv(record.line1, record.line2)
        except ValueError as e:
            raise ParseError(f"SGP4 rejected TLE for {record.name}: {e}", record.name) from e

        if satrec.error != 0:
            raise ParseError(
                f"SGP4 initialisation failed for {record.name}: {describe_error(satrec.error)}",
                record.name,
            )

        epoch_year = satrec.epochyr
        year = 1900 + epoch_year if epoch_year >= 57 else 2000 + epoch_year
        epoch = datetime(year, 1, 1, tzinfo=timezone.utc) + timedelta(days=satrec.epochdays - 1.0)

        state = PropagationState(
            satrec=satrec,
            epoch=epoch,
            mean_motion=satrec.no_kozai,
            mean_motion_rev_per_day=satrec.no_kozai * 1440.0 / (2.0 * math.pi),
            eccentricity=satrec.ecco,
            inclination_deg=math.degrees(satrec.inclo),
            raan_deg=math.degrees(satrec.nodeo),
            arg_perigee_deg=math.degrees(satrec.argpo),
            mean_anomaly_deg=math.degrees(satrec.mo),
            bstar=satrec.bstar,
        )
        self._states[record] = state
        logger.debug(f"Derived propagation state for {record.name} (epoch {epoch.isoformat()})")
        return state

    def propagate(self, record: ElementRecord, instant: datetime) -> EciState:
        """
        Propagate a record to an absolute instant.

        Args:
            record: Validated element record
            instant: Target time, before or after epoch

        Returns:
            EciState with TEME position (km) and velocity (km/s)

        Raises:
            DegenerateOrbitError: if SGP4 reports an error or non-finite values
        """
        satrec = self.state(record).satrec
        jd, fr = datetime_to_jd_fr(instant)
        error, r, v = satrec.sgp4(jd, fr)

        if error != 0:
            raise DegenerateOrbitError(
                f"SGP4 error {error} for {record.name}: {describe_error(error)}", error
            )

        position = np.array(r, dtype=float)
        velocity = np.array(v, dtype=float)
        if not (np.all(np.isfinite(position)) and np.all(np.isfinite(velocity))):
            raise DegenerateOrbitError(f"SGP4 returned non-finite state for {record.name}")

        return EciState(position, velocity)

    def propagate_many(
        self, records: Sequence[ElementRecord], instant: datetime
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Propagate many records to one instant in a single vectorised call.

        Args:
            records: Records in buffer order
            instant: Target time

        Returns:
            Tuple of (positions (N, 3) km, error codes (N,), ok mask (N,)).
            Rows where ``ok`` is False must not be used as positions.
        """
        key = tuple(records)
        array = self._arrays.get(key)
        if array is None:
            array = SatrecArray([self.state(record).satrec for record in records])
            self._arrays[key] = array

        jd, fr = datetime_to_jd_fr(instant)
        errors, r, _ = array.sgp4(np.array([jd]), np.array([fr]))
        positions = np.asarray(r, dtype=float)[:, 0, :]
        codes = np.asarray(errors)[:, 0]
        ok = (codes == 0) & np.all(np.isfinite(positions), axis=1)
        return positions, codes, ok
