"""
Unit Tests for Element Sources and the TLE Cache

Run with:
    python -m pytest tests/test_sources.py -v
"""

import time
import unittest
from unittest import mock

import redis
import requests

from orbit_tracker.config import FALLBACK_TLES
from orbit_tracker.errors import ElementSourceError
from orbit_tracker.sources import (
    CachedCatalog,
    CelestrakSource,
    TLECache,
    load_fallback_records,
)

CATALOG_TEXT = "\n".join(
    line for tle in FALLBACK_TLES for line in (tle["name"], tle["line1"], tle["line2"])
)


class FakeRedis:
    """In-memory stand-in for the handful of redis calls the cache makes."""

    def __init__(self):
        self.store = {}
        self.ttl = {}

    def ping(self):
        return True

    def get(self, key):
        return self.store.get(key)

    def set(self, key, value):
        self.store[key] = value

    def setex(self, key, ttl, value):
        self.store[key] = value
        self.ttl[key] = ttl

    def delete(self, key):
        self.store.pop(key, None)


def ok_response(text):
    response = mock.Mock()
    response.text = text
    response.raise_for_status.return_value = None
    return response


class TestTLECache(unittest.TestCase):

    def setUp(self):
        self.client = FakeRedis()
        self.cache = TLECache(client=self.client, ttl_seconds=60)

    def test_put_writes_fresh_and_stale_copies(self):
        self.cache.put("stations", CATALOG_TEXT)

        self.assertEqual(self.client.ttl["tle_data:stations"], 60)
        self.assertIn("tle_data:stations:stale", self.client.store)
        cached = self.cache.get("stations")
        self.assertIsInstance(cached, CachedCatalog)
        self.assertEqual(cached.text, CATALOG_TEXT)
        self.assertLessEqual(cached.fetched_at, time.time())

    def test_corrupt_payload_ignored(self):
        self.client.set("tle_data:stations", "{not json")
        with self.assertLogs("orbit_tracker.sources", level="WARNING"):
            self.assertIsNone(self.cache.get("stations"))

    def test_payload_missing_fields_ignored(self):
        self.client.set("tle_data:stations", '{"group": "stations"}')
        with self.assertLogs("orbit_tracker.sources", level="WARNING"):
            self.assertIsNone(self.cache.get("stations"))

    def test_unreachable_redis_disables_cache(self):
        client = mock.Mock()
        client.ping.side_effect = redis.exceptions.ConnectionError("refused")

        with mock.patch("orbit_tracker.sources.redis.from_url", return_value=client):
            with self.assertLogs("orbit_tracker.sources", level="WARNING"):
                cache = TLECache("redis://localhost:6379/0")

        self.assertFalse(cache.enabled)
        self.assertIsNone(cache.get("stations"))
        cache.put("stations", CATALOG_TEXT)


class TestCelestrakSource(unittest.TestCase):

    def setUp(self):
        self.client = FakeRedis()
        self.cache = TLECache(client=self.client)
        self.source = CelestrakSource("stations", base_url="https://example.test/", cache=self.cache)

    def test_url(self):
        self.assertEqual(
            self.source.url, "https://example.test/NORAD/elements/gp.php?GROUP=stations&FORMAT=tle"
        )
        gps = CelestrakSource("gps", base_url="https://example.test")
        self.assertIn("GROUP=gps-ops", gps.url)

    @mock.patch("orbit_tracker.sources.requests.get")
    def test_fetch_caches_response(self, get):
        get.return_value = ok_response(CATALOG_TEXT)

        records = self.source.load_records()

        self.assertEqual([r.name for r in records], [t["name"] for t in FALLBACK_TLES])
        get.assert_called_once_with(self.source.url, timeout=self.source.timeout)
        self.assertEqual(self.cache.get("stations").text, CATALOG_TEXT)

    @mock.patch("orbit_tracker.sources.requests.get")
    def test_fresh_cache_skips_network(self, get):
        self.cache.put("stations", CATALOG_TEXT)

        self.assertEqual(self.source.fetch_text(), CATALOG_TEXT)
        get.assert_not_called()

    @mock.patch("orbit_tracker.sources.requests.get")
    def test_failed_fetch_uses_stale_copy(self, get):
        self.cache.put("stations", CATALOG_TEXT)
        self.client.delete("tle_data:stations")
        get.side_effect = requests.ConnectionError("offline")

        with self.assertLogs("orbit_tracker.sources", level="WARNING") as logs:
            text = self.source.fetch_text()

        self.assertEqual(text, CATALOG_TEXT)
        self.assertTrue(any("stale" in line for line in logs.output))

    @mock.patch("orbit_tracker.sources.requests.get")
    def test_http_error_without_cache(self, get):
        response = mock.Mock()
        response.raise_for_status.side_effect = requests.HTTPError("503 Server Error")
        get.return_value = response
        source = CelestrakSource("stations", cache=None)

        with self.assertRaises(ElementSourceError):
            source.fetch_text()

    @mock.patch("orbit_tracker.sources.requests.get")
    def test_limit(self, get):
        get.return_value = ok_response(CATALOG_TEXT)
        self.assertEqual(len(self.source.load_records(limit=2)), 2)


class TestFallbackRecords(unittest.TestCase):

    def test_fallback_records_parse(self):
        records = load_fallback_records()
        self.assertEqual(len(records), 4)
        self.assertEqual(records[0].catalog_number, "25544")


if __name__ == "__main__":
    unittest.main()
