"""
Matplotlib Rendering Collaborator

Reference RenderTarget on a matplotlib 3D axes: a globe of radius 10 scene
units, one scatter collection for every tracked satellite (coloured by
interest tier) and one line per trajectory curve. Pick events on the scatter
are mapped back to stable buffer indices.
"""

import logging
import time

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.animation import FuncAnimation

from orbit_tracker.frames import EARTH_RENDER_RADIUS
from orbit_tracker.render import RenderTarget
from orbit_tracker.selection import InterestTier

logger = logging.getLogger(__name__)

TIER_COLORS = {
    InterestTier.PRIMARY: "gold",
    InterestTier.SECONDARY: "cyan",
    InterestTier.OTHER: "red",
}
SELECTION_COLOR = "lime"


class MatplotlibRenderTarget(RenderTarget):
    """
    Draws the instance buffer and trajectories into a matplotlib figure.

    Args:
        figure: Existing figure (a new one is created if omitted)
        extent: Half-width of the plotted cube in scene units
    """

    def __init__(self, figure=None, extent: float = EARTH_RENDER_RADIUS * 4):
        self.figure = figure if figure is not None else plt.figure(figsize=(10, 8))
        self.ax = self.figure.add_subplot(111, projection="3d")
        self.scatter = None
        self.pick_callback = None
        self._lines = {}
        self._next_handle = 0
        self._visible_index = np.empty(0, dtype=int)

        self._draw_earth()
        self.ax.set_xlim([-extent, extent])
        self.ax.set_ylim([-extent, extent])
        self.ax.set_zlim([-extent, extent])
        self.ax.set_box_aspect((1, 1, 1))
        self.ax.set_xlabel("X")
        self.ax.set_ylabel("Y")
        self.ax.set_zlabel("Z")
        self.title = self.ax.set_title("")

        self.figure.canvas.mpl_connect("pick_event", self._on_pick)

    def _draw_earth(self):
        u, v = np.mgrid[0 : 2 * np.pi : 50j, 0 : np.pi : 25j]
        r = EARTH_RENDER_RADIUS
        x = r * np.cos(u) * np.sin(v)
        y = r * np.sin(u) * np.sin(v)
        z = r * np.cos(v)
        self.ax.plot_surface(x, y, z, color="lightblue", alpha=0.5, edgecolor="gray", linewidth=0.2)

    @property
    def line_count(self) -> int:
        return len(self._lines)

    def update_instances(self, buffer, tiers):
        index = np.flatnonzero(buffer.has_position)

        # Path3DCollection keeps the colours it was created with
        if self.scatter is not None:
            self.scatter.remove()
            self.scatter = None
        self._visible_index = index
        if len(index) == 0:
            return

        points = buffer.positions[index]
        colors = [TIER_COLORS[tier] for tier in tiers[index]]
        self.scatter = self.ax.scatter(
            points[:, 0], points[:, 1], points[:, 2],
            c=colors, s=12, depthshade=False, picker=True,
        )

        if buffer.last_update is not None:
            self.title.set_text(buffer.last_update.strftime("%Y-%m-%d %H:%M:%S UTC"))

    def add_trajectory(self, curve, tier=None):
        points = curve.points
        if tier in (InterestTier.PRIMARY, InterestTier.SECONDARY):
            color = TIER_COLORS[tier]
        else:
            color = SELECTION_COLOR
        (line,) = self.ax.plot(
            points[:, 0], points[:, 1], points[:, 2], color=color, alpha=0.5, linewidth=1.0
        )
        self._next_handle += 1
        self._lines[self._next_handle] = line
        return self._next_handle

    def dispose_trajectory(self, handle):
        line = self._lines.pop(handle, None)
        if line is not None:
            line.remove()

    def present(self):
        self.figure.canvas.draw_idle()

    def _on_pick(self, event):
        if event.artist is not self.scatter or self.pick_callback is None or not len(event.ind):
            return
        index = int(self._visible_index[event.ind[0]])
        logger.debug(f"Picked buffer index {index}")
        self.pick_callback(index)


def animate(session, render_target: MatplotlibRenderTarget, interval_ms: int = 50) -> FuncAnimation:
    """
    Drive ``session.tick`` from a matplotlib timer using measured real time.

    Keep a reference to the returned animation for as long as the window is open.
    """
    last = [time.monotonic()]

    def update(_frame):
        now = time.monotonic()
        session.tick(now - last[0])
        last[0] = now
        return ()

    return FuncAnimation(
        render_target.figure, update, interval=interval_ms, cache_frame_data=False
    )
