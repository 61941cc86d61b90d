"""
Error Taxonomy

Exceptions raised by the orbit tracker. Failures local to one satellite or one
sample are raised as the narrow subclasses below so the tick loop can absorb
them; only NoDataError is meant to reach the user.
"""


class TrackerError(Exception):
    """Base class for all orbit tracker errors."""


class ParseError(TrackerError, ValueError):
    """Malformed TLE record. The record is excluded from tracking."""

    def __init__(self, message, name=None):
        super().__init__(message)
        self.name = name


class PropagationError(TrackerError, RuntimeError):
    """SGP4 could not produce a state for the requested instant."""


class DegenerateOrbitError(PropagationError):
    """
    SGP4 reported a non-physical result (error codes 1-6) or returned
    non-finite values.
    """

    def __init__(self, message, error_code=None):
        super().__init__(message)
        self.error_code = error_code


class TransformError(TrackerError, ValueError):
    """Coordinates could not be mapped into scene space."""


class NonFiniteError(TransformError):
    """Input position contains NaN or infinite components."""


class ClockError(TrackerError, ValueError):
    """Invalid request to the simulation clock."""


class InvalidRateError(ClockError):
    """Playback rate must be a finite number greater than zero."""


class NoDataError(TrackerError):
    """No valid element records are available for a tracking session."""


class ElementSourceError(TrackerError):
    """Element data could not be fetched and no cached copy exists."""
