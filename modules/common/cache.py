# modules/common/cache.py
"""
Rendered-page cache for the public portfolio.

The public page is served from here until an admin mutation calls
`revalidate_path("/")`. Redis when REDIS_URL is set (shared between
workers), otherwise a per-process dict. Cache trouble never breaks a page:
a Redis error reads as a miss.
"""

import logging
import threading
import time
from typing import Optional

from redis import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class MemoryPageCache:
    def __init__(self, ttl: int = 3600):
        self.ttl = ttl
        self._items = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            item = self._items.get(key)
            if item is None:
                return None
            expires, value = item
            if expires < time.monotonic():
                del self._items[key]
                return None
            return value

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._items[key] = (time.monotonic() + self.ttl, value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._items.pop(key, None)


class RedisPageCache:
    def __init__(self, conn: Redis, ttl: int = 3600, prefix: str = "portfolio:page:"):
        self.conn = conn
        self.ttl = ttl
        self.prefix = prefix

    def get(self, key: str) -> Optional[str]:
        try:
            raw = self.conn.get(self.prefix + key)
        except RedisError:
            logger.exception("Page cache read failed for %s", key)
            return None
        return raw.decode("utf-8") if raw is not None else None

    def set(self, key: str, value: str) -> None:
        try:
            self.conn.set(self.prefix + key, value, ex=self.ttl)
        except RedisError:
            logger.exception("Page cache write failed for %s", key)

    def delete(self, key: str) -> None:
        try:
            self.conn.delete(self.prefix + key)
        except RedisError:
            logger.exception("Page cache delete failed for %s", key)


def build_page_cache(redis_url: Optional[str], ttl: int = 3600):
    if redis_url:
        return RedisPageCache(Redis.from_url(redis_url), ttl=ttl)
    return MemoryPageCache(ttl=ttl)


def revalidate_path(cache, path: str = "/") -> None:
    """Drop the cached render of `path` so the next request re-reads data."""
    cache.delete(path)
    logger.info("Revalidated %s", path)
