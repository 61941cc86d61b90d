"""
Frame Transform

Maps TEME inertial coordinates (km) linearly into the renderer's normalised
scene frame, where the Earth has a radius of 10 units. There is no geodetic
latitude/longitude/altitude detour: the scale is applied component-wise.
"""

from typing import NamedTuple, Sequence, Tuple

import numpy as np

from orbit_tracker.config import EARTH_REAL_RADIUS_KM, EARTH_RENDER_RADIUS, SCENE_SCALE
from orbit_tracker.errors import NonFiniteError, TransformError

__all__ = [
    "EARTH_REAL_RADIUS_KM",
    "EARTH_RENDER_RADIUS",
    "SCENE_SCALE",
    "SimVector3",
    "to_scene_space",
    "scale_to_scene",
]


class SimVector3(NamedTuple):
    """Position in scene units."""

    x: float
    y: float
    z: float

    def __mul__(self, k):
        return SimVector3(self.x * k, self.y * k, self.z * k)

    __rmul__ = __mul__

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=float)


def to_scene_space(position_km: Sequence[float]) -> SimVector3:
    """
    Convert one inertial position into scene space.

    Args:
        position_km: [x, y, z] in km

    Returns:
        SimVector3 scaled by EARTH_RENDER_RADIUS / EARTH_REAL_RADIUS_KM

    Raises:
        NonFiniteError: if any component is NaN or infinite
        TransformError: if the input is not a 3-vector
    """
    p = np.asarray(position_km, dtype=float)
    if p.shape != (3,):
        raise TransformError(f"Expected a 3-vector, got shape {p.shape}")
    if not np.all(np.isfinite(p)):
        raise NonFiniteError(f"Non-finite position component: {p.tolist()}")
    x, y, z = p * SCENE_SCALE
    return SimVector3(float(x), float(y), float(z))


def scale_to_scene(positions_km: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Vectorised transform for an (N, 3) array.

    Returns:
        Tuple of (scene positions (N, 3), finite mask (N,)). Rows where the
        mask is False hold undefined values and must be discarded.
    """
    positions = np.asarray(positions_km, dtype=float)
    finite = np.all(np.isfinite(positions), axis=1)
    return positions * SCENE_SCALE, finite
