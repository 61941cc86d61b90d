"""
Selection and Highlight Policy

Classifies satellites into interest tiers by exact name match, resolves picks
to records by stable buffer index, and owns the trajectory curves shown for
each reason (a single selection curve, one interest curve per satellite).
"""

import logging
from enum import Enum
from typing import AbstractSet, Dict, Hashable, Iterable, Optional, Sequence

import numpy as np

from orbit_tracker.elements import ElementRecord
from orbit_tracker.trajectory import TrajectoryCurve

logger = logging.getLogger(__name__)

SELECTION_KEY = ("selection",)


class InterestTier(Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"
    OTHER = "other"


def interest_key(index: int) -> tuple:
    return ("interest", index)


def classify(
    record: ElementRecord, primary_names: AbstractSet[str], secondary_names: AbstractSet[str]
) -> InterestTier:
    """Exact name match; a name listed in both sets is primary."""
    if record.name in primary_names:
        return InterestTier.PRIMARY
    if record.name in secondary_names:
        return InterestTier.SECONDARY
    return InterestTier.OTHER


class SelectionPolicy:
    """
    Interest tiers and pick resolution for a fixed, index-ordered record list.

    Args:
        records: Records in buffer order
        primary_names: Names of primary-interest satellites
        secondary_names: Names of secondary-interest satellites
        curve_tiers: Tiers that get a persistent trajectory curve
    """

    def __init__(
        self,
        records: Sequence[ElementRecord],
        primary_names: Iterable[str] = (),
        secondary_names: Iterable[str] = (),
        curve_tiers: AbstractSet[InterestTier] = frozenset(
            {InterestTier.PRIMARY, InterestTier.SECONDARY}
        ),
    ):
        self.records = tuple(records)
        self.curve_tiers = frozenset(curve_tiers)
        self.selected: Optional[int] = None
        self.set_interest(primary_names, secondary_names)

    def set_interest(self, primary_names: Iterable[str], secondary_names: Iterable[str]) -> None:
        self.primary_names = frozenset(primary_names)
        self.secondary_names = frozenset(secondary_names)
        self._tiers = [
            classify(record, self.primary_names, self.secondary_names) for record in self.records
        ]
        logger.debug(
            f"Interest updated: {len(self.primary_names)} primary, "
            f"{len(self.secondary_names)} secondary names"
        )

    def tier(self, index: int) -> InterestTier:
        return self._tiers[index]

    def tiers(self) -> np.ndarray:
        """Tier per buffer index, as an object array for renderers."""
        return np.array(self._tiers, dtype=object)

    def wants_curve(self, index: int) -> bool:
        return self._tiers[index] in self.curve_tiers

    def curve_indices(self) -> set:
        return {i for i, tier in enumerate(self._tiers) if tier in self.curve_tiers}

    def on_select(self, index: int) -> ElementRecord:
        """
        Resolve a picked buffer index to its record. Pure lookup; the caller
        records the selection in ``selected``.

        Raises:
            IndexError: if ``index`` is not a tracked slot
        """
        if not 0 <= index < len(self.records):
            raise IndexError(f"No tracked satellite at index {index}")
        return self.records[index]

    def clear_selection(self) -> None:
        self.selected = None


class CurveRegistry:
    """
    At most one active TrajectoryCurve per reason key.

    Replacing or releasing a curve disposes its render resources through the
    render target straight after the substitution.
    """

    def __init__(self, render_target):
        self.render_target = render_target
        self._curves: Dict[Hashable, TrajectoryCurve] = {}

    def __len__(self):
        return len(self._curves)

    def __contains__(self, key):
        return key in self._curves

    def get(self, key: Hashable) -> Optional[TrajectoryCurve]:
        return self._curves.get(key)

    def keys(self):
        return list(self._curves)

    def active(self):
        return list(self._curves.values())

    def replace(self, key: Hashable, curve: Optional[TrajectoryCurve], tier=None) -> None:
        """
        Install ``curve`` under ``key``; a None curve just releases the old one.

        Empty curves are never submitted to the render target.
        """
        previous = self._curves.pop(key, None)
        try:
            if curve is not None and len(curve) > 0:
                curve.tier = tier
                curve.handle = self.render_target.add_trajectory(curve, tier)
                self._curves[key] = curve
        finally:
            if previous is not None:
                self._dispose(previous)

    def release(self, key: Hashable) -> None:
        previous = self._curves.pop(key, None)
        if previous is not None:
            self._dispose(previous)

    def release_all(self) -> None:
        for key in list(self._curves):
            self.release(key)

    def _dispose(self, curve: TrajectoryCurve) -> None:
        self.render_target.dispose_trajectory(curve.handle)
        curve.disposed = True
        curve.handle = None
