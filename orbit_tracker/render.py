"""
Rendering Collaborator Interface

The tick loop hands the instance buffer and trajectory curves to a
RenderTarget. Implementations own every render resource; the core only keeps
the opaque handles returned by ``add_trajectory``.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

import numpy as np


class RenderTarget(ABC):
    """Narrow interface between the propagation core and a renderer."""

    @abstractmethod
    def update_instances(self, buffer, tiers: np.ndarray) -> None:
        """Read positions from ``buffer`` (a PositionBuffer) and tier per index."""

    @abstractmethod
    def add_trajectory(self, curve, tier=None) -> Any:
        """Build line geometry for a TrajectoryCurve and return a handle."""

    @abstractmethod
    def dispose_trajectory(self, handle: Any) -> None:
        """Free the render resources behind ``handle``."""

    @abstractmethod
    def present(self) -> None:
        """Show the frame."""

    def set_pick_callback(self, callback: Optional[Callable[[int], None]]) -> None:
        """Register a callback receiving the buffer index of a picked instance."""
        self.pick_callback = callback


class NullRenderTarget(RenderTarget):
    """Headless target that counts submitted geometry; used for batch runs."""

    def __init__(self):
        self.frames = 0
        self.live_handles = set()
        self._next_handle = 0
        self.pick_callback = None

    def update_instances(self, buffer, tiers):
        pass

    def add_trajectory(self, curve, tier=None):
        self._next_handle += 1
        self.live_handles.add(self._next_handle)
        return self._next_handle

    def dispose_trajectory(self, handle):
        self.live_handles.discard(handle)

    def present(self):
        self.frames += 1
