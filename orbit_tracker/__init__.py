"""
Orbit Tracker Package

This package propagates satellite Two-Line Element (TLE) sets with SGP4 and maps
the results into a normalised 3D scene for interactive visualisation.

Modules:
    elements: TLE record validation and catalog parsing
    propagator: Cached SGP4 propagation with explicit failure results
    frames: Inertial-to-scene coordinate transform
    clock: Simulation clock with variable playback rate
    trajectory: One-orbit trajectory sampling
    batch: Per-tick batch position updates into the instance buffer
    selection: Interest tiers and trajectory curve ownership
    session: Tick loop tying the pieces together
    sources: CelesTrak element source with redis caching
    viewer: Matplotlib rendering collaborator

References:
    Vallado, D. A., Crawford, P., Hujsak, R., & Kelso, T. S. (2006).
    Revisiting Spacetrack Report #3. AIAA 2006-6753.
"""

__version__ = "1.0.0"
