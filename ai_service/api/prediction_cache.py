"""
Prediction caching with per-entry TTL.

In-memory storage by default; a Redis backend is used when a Redis URL is
configured and reachable. Cache failures never propagate to callers: a failed
read is a miss and a failed write is a no-op.
"""

import hashlib
import json
import random
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import redis

from ..core.config import CacheConfig
from ..core.logging import get_logger

logger = get_logger(__name__)


def _stringify_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k): _stringify_keys(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_stringify_keys(v) for v in value]
    return value


def feature_digest(data: Dict[str, Any]) -> str:
    """Order-independent md5 digest of a feature mapping."""
    try:
        payload = json.dumps(data, sort_keys=True, default=str)
    except TypeError:
        # Mixed-type keys cannot be sorted directly
        payload = json.dumps(_stringify_keys(data), sort_keys=True, default=str)
    return hashlib.md5(payload.encode()).hexdigest()


@dataclass
class CacheEntry:
    """Cached value with its creation time, TTL and hit counter."""

    data: Any
    timestamp: float  # seconds since epoch
    ttl: int  # seconds
    hits: int = 0

    def is_expired(self, now: float) -> bool:
        return now - self.timestamp > self.ttl


class PredictionCache:
    """Prediction caching system."""

    def __init__(
        self,
        config: Optional[CacheConfig] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config or CacheConfig()
        self.clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._random = random.Random()
        self.lock = threading.Lock()
        self.redis_client = None
        self.backend = "memory"

        if self.config.redis_url:
            self._initialize_redis()

        logger.info(f"Prediction cache initialized with {self.backend} backend")

    def _initialize_redis(self):
        """Connect to Redis, falling back to memory when allowed."""
        try:
            client = redis.from_url(self.config.redis_url)
            client.ping()
            self.redis_client = client
            self.backend = "redis"
        except redis.RedisError as e:
            if not self.config.use_memory_fallback:
                raise
            logger.warning(f"Redis unavailable ({e}), falling back to in-memory cache")

    def get(self, key: str) -> Optional[Any]:
        """Get cached value, or None when missing or expired."""
        if not self.config.enabled:
            return None

        try:
            if self.backend == "redis":
                cached_data = self.redis_client.get(key)
                if cached_data is not None:
                    return json.loads(cached_data)
                return None

            with self.lock:
                entry = self._entries.get(key)
                if entry is None:
                    return None

                if entry.is_expired(self.clock()):
                    del self._entries[key]
                    return None

                entry.hits += 1
                return entry.data
        except Exception as e:
            logger.warning(f"Cache get error: {e}")
            return None

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Store a value, replacing any existing entry for the key."""
        if not self.config.enabled:
            return

        cache_ttl = ttl if ttl is not None else self.config.default_ttl

        try:
            if self.backend == "redis":
                self.redis_client.setex(key, cache_ttl, json.dumps(value, default=str))
                return

            with self.lock:
                self._entries[key] = CacheEntry(
                    data=value, timestamp=self.clock(), ttl=cache_ttl
                )

            self._cleanup_expired()
        except Exception as e:
            logger.warning(f"Cache set error: {e}")

    def delete(self, key: str) -> None:
        try:
            if self.backend == "redis":
                self.redis_client.delete(key)
                return

            with self.lock:
                self._entries.pop(key, None)
        except Exception as e:
            logger.warning(f"Cache delete error: {e}")

    def clear(self) -> None:
        """Clear all cached values."""
        try:
            if self.backend == "redis":
                self.redis_client.flushdb()
            else:
                with self.lock:
                    self._entries.clear()
            logger.info("Prediction cache cleared")
        except Exception as e:
            logger.error(f"Cache clear error: {e}")

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics.

        ``size`` counts stored entries, including expired ones that have not
        been read or swept yet.
        """
        try:
            if self.backend == "redis":
                info = self.redis_client.info()
                return {
                    "size": self.redis_client.dbsize(),
                    "hits": info.get("keyspace_hits", 0),
                    "backend": "redis",
                }

            with self.lock:
                return {
                    "size": len(self._entries),
                    "hits": sum(entry.hits for entry in self._entries.values()),
                    "backend": "memory",
                }
        except Exception as e:
            logger.error(f"Cache stats error: {e}")
            return {"size": 0, "hits": 0, "backend": self.backend, "error": str(e)}

    def generate_key(self, model_id: str, input_data: Dict[str, Any]) -> Optional[str]:
        """Generate cache key from model ID and input data.

        Returns None when the input cannot be hashed; callers treat that as a
        miss and skip the write.
        """
        try:
            input_hash = feature_digest(input_data)
        except (TypeError, ValueError) as e:
            logger.warning(f"Cache key error for {model_id}: {e}")
            return None
        return f"pred:{model_id}:{input_hash}"

    def _cleanup_expired(self) -> None:
        """Probabilistically purge expired in-memory entries."""
        if self._random.random() >= self.config.cleanup_probability:
            return

        with self.lock:
            now = self.clock()
            expired = [k for k, e in self._entries.items() if e.is_expired(now)]
            for key in expired:
                del self._entries[key]

        if expired:
            logger.debug(f"Swept {len(expired)} expired cache entries")
