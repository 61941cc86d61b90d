"""
Unit Tests for Configuration and Logging Setup

Run with:
    python -m pytest tests/test_config_logging.py -v
"""

import logging
import os
import unittest
from unittest import mock

from orbit_tracker.config import MAX_SATELLITES, TrackerConfig
from orbit_tracker.logging_config import configure_logging, resolve_level


class TestTrackerConfig(unittest.TestCase):

    @mock.patch.dict(os.environ, {}, clear=True)
    def test_defaults(self):
        config = TrackerConfig()
        self.assertEqual(config.DEFAULT_RATE, 1.0)
        self.assertEqual(config.MAX_SATELLITES, MAX_SATELLITES)
        self.assertEqual(config.SAMPLE_STEP_SECONDS, 60.0)
        self.assertEqual(config.CACHE_TTL, 3600)

    @mock.patch.dict(
        os.environ,
        {"ORBIT_TRACKER_RATE": "120", "ORBIT_TRACKER_MAX_SATELLITES": "10", "CACHE_TTL": "60"},
    )
    def test_environment_overrides(self):
        config = TrackerConfig()
        self.assertEqual(config.DEFAULT_RATE, 120.0)
        self.assertEqual(config.MAX_SATELLITES, 10)
        self.assertEqual(config.CACHE_TTL, 60)

    def test_keyword_overrides(self):
        config = TrackerConfig(max_satellites=3, sample_step_seconds=30.0)
        self.assertEqual(config.MAX_SATELLITES, 3)
        self.assertEqual(config.SAMPLE_STEP_SECONDS, 30.0)

    def test_unknown_option(self):
        with self.assertRaises(AttributeError):
            TrackerConfig(frames_per_second=60)


class TestLoggingSetup(unittest.TestCase):

    def setUp(self):
        self._urllib3_level = logging.getLogger("urllib3").level

    def tearDown(self):
        logging.getLogger("urllib3").setLevel(self._urllib3_level)

    def test_resolve_level(self):
        self.assertEqual(resolve_level("debug"), logging.DEBUG)
        self.assertEqual(resolve_level(logging.WARNING), logging.WARNING)
        with self.assertRaises(ValueError):
            resolve_level("chatty")

    @mock.patch.dict(os.environ, {"ORBIT_TRACKER_LOG_LEVEL": "warning"})
    def test_level_from_environment(self):
        self.assertEqual(resolve_level(None), logging.WARNING)

    @mock.patch("orbit_tracker.logging_config.logging.basicConfig")
    def test_configure_quiets_third_party(self, basic_config):
        configure_logging("DEBUG")

        self.assertEqual(basic_config.call_args.kwargs["level"], logging.DEBUG)
        self.assertTrue(basic_config.call_args.kwargs["force"])
        self.assertEqual(logging.getLogger("urllib3").level, logging.WARNING)


if __name__ == "__main__":
    unittest.main()
