"""
Unit Tests for the Frame Transform and Simulation Clock

Run with:
    python -m pytest tests/test_frames_clock.py -v
"""

import math
import unittest
from datetime import datetime, timedelta, timezone

import numpy as np

from orbit_tracker.clock import SimulationClock
from orbit_tracker.errors import ClockError, InvalidRateError, NonFiniteError, TransformError
from orbit_tracker.frames import SCENE_SCALE, SimVector3, scale_to_scene, to_scene_space


class TestFrameTransform(unittest.TestCase):
    """Linear inertial-to-scene mapping."""

    def test_earth_radius_maps_to_ten_units(self):
        self.assertAlmostEqual(SCENE_SCALE, 10.0 / 6371.0)
        v = to_scene_space([6371.0, 0.0, 0.0])
        self.assertAlmostEqual(v.x, 10.0)
        self.assertEqual((v.y, v.z), (0.0, 0.0))

    def test_linearity(self):
        p = np.array([-2634.4, 4021.7, 5891.1])
        for k in (2.5, -3.0, 0.0, 1e-3):
            with self.subTest(k=k):
                np.testing.assert_allclose(
                    to_scene_space(k * p).as_array(), (k * to_scene_space(p)).as_array(), atol=1e-12
                )

    def test_non_finite_rejected(self):
        for bad in ([math.nan, 0.0, 0.0], [0.0, math.inf, 0.0], [0.0, 0.0, -math.inf]):
            with self.subTest(position=bad):
                with self.assertRaises(NonFiniteError):
                    to_scene_space(bad)

    def test_wrong_shape_rejected(self):
        with self.assertRaises(TransformError):
            to_scene_space([1.0, 2.0])

    def test_simvector_is_value_type(self):
        self.assertEqual(SimVector3(1.0, 2.0, 3.0), SimVector3(1.0, 2.0, 3.0))
        self.assertEqual(2 * SimVector3(1.0, 2.0, 3.0), SimVector3(2.0, 4.0, 6.0))

    def test_vectorised_mask(self):
        positions = np.array([[6371.0, 0.0, 0.0], [math.nan, 1.0, 1.0], [0.0, 0.0, 6371.0]])
        scene, finite = scale_to_scene(positions)

        np.testing.assert_array_equal(finite, [True, False, True])
        np.testing.assert_allclose(scene[0], [10.0, 0.0, 0.0])
        np.testing.assert_allclose(scene[2], [0.0, 0.0, 10.0])


class TestSimulationClock(unittest.TestCase):
    """Variable-rate logical time."""

    def setUp(self):
        self.start = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        self.clock = SimulationClock(self.start)

    def test_default_rate_is_real_time(self):
        self.assertEqual(self.clock.rate, 1.0)
        self.clock.advance(1.5)
        self.assertEqual(self.clock.current, self.start + timedelta(seconds=1.5))

    def test_rate_two_over_ten_seconds(self):
        self.clock.set_rate(2)
        self.clock.advance(10.0)
        self.assertEqual(self.clock.current - self.start, timedelta(seconds=20))

    def test_accumulates_over_ticks(self):
        self.clock.set_rate(60)
        for _ in range(60):
            self.clock.advance(0.5)
        self.assertEqual(self.clock.current - self.start, timedelta(minutes=30))

    def test_invalid_rates_rejected(self):
        self.clock.set_rate(3.0)
        for rate in (0, -5, math.nan, math.inf, "fast"):
            with self.subTest(rate=rate):
                with self.assertRaises(InvalidRateError):
                    self.clock.set_rate(rate)
                self.assertEqual(self.clock.rate, 3.0)
                self.assertEqual(self.clock.current, self.start)

    def test_invalid_initial_rate(self):
        with self.assertRaises(InvalidRateError):
            SimulationClock(self.start, rate=0)

    def test_advance_rejects_negative_elapsed(self):
        with self.assertRaises(ClockError):
            self.clock.advance(-1.0)
        self.assertEqual(self.clock.current, self.start)

    def test_monotonic_under_playback(self):
        previous = self.clock.current
        for elapsed in (0.0, 0.016, 0.1, 0.0):
            current = self.clock.advance(elapsed)
            self.assertGreaterEqual(current, previous)
            previous = current

    def test_slow_rate_accumulates_below_a_microsecond(self):
        """Per-tick steps of 50 ns and 500 ns still add up exactly."""
        for rate, expected_us in ((1e-6, 50), (1e-5, 500)):
            with self.subTest(rate=rate):
                clock = SimulationClock(self.start, rate=rate)
                for _ in range(1000):
                    clock.advance(0.05)
                self.assertEqual(clock.current - self.start, timedelta(microseconds=expected_us))

    def test_long_run_keeps_sub_second_precision(self):
        self.clock.set_rate(86400.0)
        for _ in range(1000):
            self.clock.advance(0.25)
        self.assertEqual(self.clock.current - self.start, timedelta(days=250))
        self.clock.set_rate(1e-3)
        self.clock.advance(0.5)
        self.assertEqual(self.clock.current - self.start, timedelta(days=250, microseconds=500))

    def test_advance_past_date_range_rejected(self):
        self.clock.set_rate(1e14)
        with self.assertRaises(ClockError):
            self.clock.advance(0.05)
        self.assertEqual(self.clock.current, self.start)

        self.clock.set_rate(1.0)
        self.assertEqual(self.clock.advance(2.0), self.start + timedelta(seconds=2))

    def test_scrub_backwards(self):
        earlier = self.start - timedelta(days=3)
        self.clock.scrub(earlier)

        self.assertEqual(self.clock.current, earlier)
        self.assertEqual(self.clock.scrub_count, 1)

        self.clock.advance(1.0)
        self.assertEqual(self.clock.current, earlier + timedelta(seconds=1))

    def test_scrub_naive_is_utc(self):
        self.clock.scrub(datetime(2024, 2, 1))
        self.assertEqual(self.clock.current, datetime(2024, 2, 1, tzinfo=timezone.utc))

    def test_default_start_is_now(self):
        before = datetime.now(timezone.utc)
        clock = SimulationClock()
        self.assertGreaterEqual(clock.current, before)


if __name__ == "__main__":
    unittest.main()
