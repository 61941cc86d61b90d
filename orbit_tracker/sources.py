"""
Element Sources

Fetches TLE catalogs from CelesTrak outside the tick loop and hands a complete,
immutable batch of records to a tracking session.

Caching:
    Fresh catalog text is stored in redis with a TTL; a second, non-expiring
    copy is kept so a failed fetch can fall back to stale data. If redis is not
    reachable caching is disabled and fetches go straight to the network.
"""

import logging
import time
from typing import List, Optional

import redis
import requests
from pydantic import BaseModel, ValidationError

from orbit_tracker.config import (
    CACHE_TTL_SECONDS,
    CELESTRAK_BASE,
    CELESTRAK_GROUPS,
    FALLBACK_TLES,
    REDIS_URL,
    REQUEST_TIMEOUT_SECONDS,
)
from orbit_tracker.elements import ElementRecord, parse_catalog
from orbit_tracker.errors import ElementSourceError

logger = logging.getLogger(__name__)


class CachedCatalog(BaseModel):
    """Catalog payload stored in redis."""

    group: str
    fetched_at: float
    text: str


class TLECache:
    """
    Redis-backed cache for catalog text.

    Args:
        redis_url: Redis connection URL
        ttl_seconds: Lifetime of the fresh copy
        client: Pre-built redis client (skips connecting)
    """

    def __init__(self, redis_url: str = REDIS_URL, ttl_seconds: int = CACHE_TTL_SECONDS, client=None):
        self.ttl_seconds = ttl_seconds
        if client is not None:
            self.client = client
            return
        try:
            self.client = redis.from_url(redis_url, decode_responses=True)
            self.client.ping()
            logger.info("Redis connection successful.")
        except redis.exceptions.RedisError as e:
            logger.warning(f"Redis connection failed or not configured: {e}. Caching will be disabled.")
            self.client = None

    @property
    def enabled(self) -> bool:
        return self.client is not None

    @staticmethod
    def _key(group: str, stale: bool = False) -> str:
        return f"tle_data:{group}:stale" if stale else f"tle_data:{group}"

    def get(self, group: str, allow_stale: bool = False) -> Optional[CachedCatalog]:
        if not self.enabled:
            return None
        try:
            raw = self.client.get(self._key(group, stale=allow_stale))
        except redis.exceptions.RedisError as e:
            logger.warning(f"Redis read failed: {e}. Caching will be disabled.")
            self.client = None
            return None
        if raw is None:
            return None
        try:
            return CachedCatalog.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Failed to parse cached data for {group}: {e}")
            return None

    def put(self, group: str, text: str) -> None:
        if not self.enabled:
            return
        payload = CachedCatalog(group=group, fetched_at=time.time(), text=text).model_dump_json()
        try:
            self.client.setex(self._key(group), self.ttl_seconds, payload)
            self.client.set(self._key(group, stale=True), payload)
        except redis.exceptions.RedisError as e:
            logger.warning(f"Redis write failed: {e}")


class CelestrakSource:
    """
    CelesTrak GP catalog in TLE format.

    Usage:
        source = CelestrakSource("stations", cache=TLECache())
        records = source.load_records(limit=100)
    """

    def __init__(
        self,
        group: str = "active",
        base_url: str = CELESTRAK_BASE,
        cache: Optional[TLECache] = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ):
        self.group = group
        self.base_url = base_url.rstrip("/")
        self.cache = cache
        self.timeout = timeout

    @property
    def url(self) -> str:
        group = CELESTRAK_GROUPS.get(self.group, self.group)
        return f"{self.base_url}/NORAD/elements/gp.php?GROUP={group}&FORMAT=tle"

    def fetch_text(self) -> str:
        """
        Return catalog text from the fresh cache, the network, or the stale cache.

        Raises:
            ElementSourceError: if the fetch fails and nothing is cached
        """
        if self.cache is not None:
            cached = self.cache.get(self.group)
            if cached is not None:
                logger.info(f"Using cached TLE data for {self.group}")
                return cached.text

        try:
            response = requests.get(self.url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Failed to fetch TLE data for {self.group}: {e}")
            stale = self.cache.get(self.group, allow_stale=True) if self.cache is not None else None
            if stale is not None:
                age_min = (time.time() - stale.fetched_at) / 60.0
                logger.warning(f"Using stale cached TLE data for {self.group} ({age_min:.0f} min old)")
                return stale.text
            raise ElementSourceError(f"TLE data for {self.group} unavailable: {e}") from e

        text = response.text
        if self.cache is not None:
            self.cache.put(self.group, text)
            logger.info(f"TLE data for {self.group} cached")
        return text

    def load_records(self, limit: Optional[int] = None) -> List[ElementRecord]:
        result = parse_catalog(self.fetch_text(), limit=limit)
        logger.info(
            f"Loaded {len(result.records)} records from {self.group} "
            f"({len(result.rejected)} rejected)"
        )
        return result.records


def load_fallback_records() -> List[ElementRecord]:
    """Built-in records for offline demonstrations."""
    return [ElementRecord.from_lines(t["name"], t["line1"], t["line2"]) for t in FALLBACK_TLES]
