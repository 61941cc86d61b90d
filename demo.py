"""
Orbit Tracker Demonstration

This script runs the satellite visualisation end to end:
- Fetch (or load cached / built-in) TLE records
- Build a tracking session with a simulation clock
- Propagate every satellite once per frame into the instance buffer
- Draw trajectories for picked and interest-tier satellites

Usage:
    python demo.py [--group active] [--limit 100] [--rate 60] [--offline]
                   [--primary NAME ...] [--secondary NAME ...]
                   [--headless --ticks N] [--verbose]

Arguments:
    --group: CelesTrak group to fetch (active, stations, starlink, ...)
    --limit: Maximum number of satellites to track
    --rate: Simulated seconds per real second
    --offline: Use the built-in fallback records instead of fetching
    --primary / --secondary: Satellite names for the interest tiers
    --headless: Run N ticks without a window and log a summary
    --verbose: Enable debug logging
"""

import argparse
import logging
import sys

from orbit_tracker.config import TrackerConfig
from orbit_tracker.errors import ElementSourceError, NoDataError
from orbit_tracker.logging_config import configure_logging, get_logger
from orbit_tracker.render import NullRenderTarget
from orbit_tracker.session import TrackingSession
from orbit_tracker.sources import CelestrakSource, TLECache, load_fallback_records

logger = get_logger(__name__)


def load_records(args, config: TrackerConfig):
    """Fetch records, falling back to the built-in set when the source is unavailable."""
    if args.offline:
        logger.info("Using built-in fallback records")
        return load_fallback_records()

    cache = TLECache(config.REDIS_URL, config.CACHE_TTL)
    source = CelestrakSource(args.group, base_url=config.CELESTRAK_BASE, cache=cache)
    try:
        return source.load_records(limit=args.limit)
    except ElementSourceError as e:
        logger.warning(f"{e}; using built-in fallback records")
        return load_fallback_records()


def run_headless(session: TrackingSession, ticks: int, frame_seconds: float) -> None:
    """Tick the session without a window and report the outcome."""
    if session.records:
        session.request_select(0)
    for _ in range(ticks):
        report = session.tick(frame_seconds)
        logger.debug(
            f"{report.instant.isoformat()}: {report.updated} updated, "
            f"{len(report.failed)} failed, {report.active_curves} curves"
        )
    logger.info(f"Finished {session.ticks} ticks at {session.clock.current.isoformat()}")
    logger.info(f"Positions held: {int(session.buffer.has_position.sum())}/{len(session.buffer)}")
    session.close()


def run_viewer(session: TrackingSession, render_target, interval_ms: int) -> None:
    """Open the matplotlib window and drive the session from its timer."""
    import matplotlib.pyplot as plt

    from orbit_tracker.viewer import animate

    animation = animate(session, render_target, interval_ms)  # noqa: F841
    logger.info("Click a satellite to show its orbit; close the window to exit")
    plt.show()
    session.close()


def main():
    """Main demonstration function."""
    parser = argparse.ArgumentParser(description="Satellite orbit visualisation")
    parser.add_argument("--group", default="active", help="CelesTrak group to fetch")
    parser.add_argument("--limit", type=int, default=None, help="Maximum satellites to track")
    parser.add_argument("--rate", type=float, default=None, help="Playback rate")
    parser.add_argument("--offline", action="store_true", help="Use built-in records")
    parser.add_argument("--primary", nargs="*", default=[], help="Primary interest names")
    parser.add_argument("--secondary", nargs="*", default=[], help="Secondary interest names")
    parser.add_argument("--headless", action="store_true", help="Run without a window")
    parser.add_argument("--ticks", type=int, default=100, help="Ticks to run when headless")
    parser.add_argument("--interval", type=int, default=50, help="Frame interval in ms")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    configure_logging(logging.DEBUG if args.verbose else None)

    overrides = {}
    if args.limit is not None:
        overrides["max_satellites"] = args.limit
    if args.rate is not None:
        overrides["default_rate"] = args.rate
    config = TrackerConfig(**overrides)
    if args.limit is None:
        args.limit = config.MAX_SATELLITES

    records = load_records(args, config)

    if args.headless:
        render_target = NullRenderTarget()
    else:
        from orbit_tracker.viewer import MatplotlibRenderTarget

        render_target = MatplotlibRenderTarget()

    try:
        session = TrackingSession(
            records,
            render_target,
            config=config,
            primary_names=args.primary,
            secondary_names=args.secondary,
        )
    except NoDataError as e:
        logger.error(f"{e}")
        return 1

    if args.headless:
        run_headless(session, args.ticks, args.interval / 1000.0)
    else:
        run_viewer(session, render_target, args.interval)
    return 0


if __name__ == "__main__":
    sys.exit(main())
