"""
Orbit Tracker Configuration and Constants

This module contains scene scaling, playback defaults and
fallback TLE data used throughout the project.

Constants:
    The scene scale uses the mean Earth radius (6371 km) so the rendered globe
    has a radius of exactly 10 units.

Environment overrides (read by TrackerConfig):
    ORBIT_TRACKER_RATE            default playback rate (simulated s per real s)
    ORBIT_TRACKER_MAX_SATELLITES  maximum number of tracked satellites
    ORBIT_TRACKER_SAMPLE_STEP     trajectory sample cadence in seconds
    CELESTRAK_API_BASE            base URL of the element source
    REDIS_URL                     redis instance used for the TLE cache
    CACHE_TTL                     cache lifetime in seconds

Fallback TLE Data:
    Hardcoded records for offline demonstrations and testing when live data is
    unavailable. Two of them form a co-planar pair phased half an orbit apart.
"""

import os
from typing import Dict, List

# Scene scaling
EARTH_RENDER_RADIUS: float = 10.0  # Earth radius in scene units
EARTH_REAL_RADIUS_KM: float = 6371.0  # Mean Earth radius (km)
SCENE_SCALE: float = EARTH_RENDER_RADIUS / EARTH_REAL_RADIUS_KM

# Playback and sampling
DEFAULT_RATE: float = 1.0  # Real time
SAMPLE_STEP_SECONDS: float = 60.0
MAX_SATELLITES: int = 100

# Element source
CELESTRAK_BASE: str = "https://celestrak.org"
CELESTRAK_GROUPS: Dict[str, str] = {
    "active": "active",
    "stations": "stations",
    "starlink": "starlink",
    "gps": "gps-ops",
    "weather": "weather",
    "science": "science",
}
REDIS_URL: str = "redis://localhost:6379"
CACHE_TTL_SECONDS: int = 3600  # 1 hour
REQUEST_TIMEOUT_SECONDS: float = 30.0

# Fallback TLE records for offline use
# ISS data as of September 2023; refresh before relying on positions.
FALLBACK_TLES: List[Dict[str, str]] = [
    {
        "name": "ISS (ZARYA)",
        "line1": "1 25544U 98067A   23259.57580000  .00012022  00000-0  21844-3 0  9995",
        "line2": "2 25544  51.6416 220.9944 0004263 122.0101 312.2755 15.49541986415598",
    },
    {
        "name": "VANGUARD 1",
        "line1": "1 00005U 58002B   00179.78495062  .00000023  00000-0  28098-4 0  4753",
        "line2": "2 00005  34.2682 348.7242 1859667 331.7664  19.3264 10.82419157413667",
    },
    {
        "name": "PAIR-A",
        "line1": "1 90001U 24001A   24001.50000000  .00000000  00000-0  00000-0 0  9999",
        "line2": "2 90001  53.0000 120.0000 0001000   0.0000   0.0000 15.20000000    13",
    },
    {
        "name": "PAIR-B",
        "line1": "1 90002U 24001B   24001.50000000  .00000000  00000-0  00000-0 0  9990",
        "line2": "2 90002  53.0000 120.0000 0001000   0.0000 180.0000 15.20000000    13",
    },
]


class TrackerConfig:
    """Runtime configuration with environment overrides."""

    def __init__(self, **overrides):
        self.DEFAULT_RATE = float(os.getenv("ORBIT_TRACKER_RATE", str(DEFAULT_RATE)))
        self.MAX_SATELLITES = int(os.getenv("ORBIT_TRACKER_MAX_SATELLITES", str(MAX_SATELLITES)))
        self.SAMPLE_STEP_SECONDS = float(
            os.getenv("ORBIT_TRACKER_SAMPLE_STEP", str(SAMPLE_STEP_SECONDS))
        )
        self.CELESTRAK_BASE = os.getenv("CELESTRAK_API_BASE", CELESTRAK_BASE)
        self.REDIS_URL = os.getenv("REDIS_URL", REDIS_URL)
        self.CACHE_TTL = int(os.getenv("CACHE_TTL", str(CACHE_TTL_SECONDS)))

        for key, value in overrides.items():
            attr = key.upper()
            if not hasattr(self, attr):
                raise AttributeError(f"Unknown configuration option: {key}")
            setattr(self, attr, value)
