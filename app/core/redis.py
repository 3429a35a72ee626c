import os
import json
import time
import threading
from abc import ABC, abstractmethod
import redis
from redis.exceptions import RedisError
from dotenv import load_dotenv

from app.core.logging_config import get_logger

load_dotenv()

logger = get_logger()


class KeyValueStore(ABC):
    """Transient keyed store with per-key TTL (seconds). Values must be JSON-serialisable."""

    @abstractmethod
    def get(self, key: str):
        ...

    @abstractmethod
    def set(self, key: str, value, ttl: int = 60):
        ...

    @abstractmethod
    def delete(self, key: str):
        ...

    @abstractmethod
    def delete_prefix(self, prefix: str):
        ...


class InMemoryStore(KeyValueStore):
    """Single-process store. Expired keys are dropped lazily on read."""

    def __init__(self, clock=time.monotonic):
        self._data = {}
        self._lock = threading.Lock()
        self._clock = clock

    def get(self, key: str):
        with self._lock:
            item = self._data.get(key)
            if item is None:
                return None
            expires_at, payload = item
            if expires_at <= self._clock():
                del self._data[key]
                return None
            return json.loads(payload)

    def set(self, key: str, value, ttl: int = 60):
        with self._lock:
            self._data[key] = (self._clock() + ttl, json.dumps(value))

    def delete(self, key: str):
        with self._lock:
            self._data.pop(key, None)

    def delete_prefix(self, prefix: str):
        with self._lock:
            for key in [k for k in self._data if k.startswith(prefix)]:
                del self._data[key]


class RedisStore(KeyValueStore):
    """Shared store for multi-instance deployments. Redis outages degrade to cache misses."""

    def __init__(self, client):
        self.client = client

    def get(self, key: str):
        try:
            data = self.client.get(key)
            return json.loads(data) if data else None
        except RedisError:
            return None

    def set(self, key: str, value, ttl: int = 60):
        try:
            self.client.setex(key, ttl, json.dumps(value))
        except RedisError:
            pass

    def delete(self, key: str):
        try:
            self.client.delete(key)
        except RedisError:
            pass

    def delete_prefix(self, prefix: str):
        try:
            for key in self.client.scan_iter(match=f"{prefix}*"):
                self.client.delete(key)
        except RedisError:
            pass


def create_store(redis_url: str | None = None) -> KeyValueStore:
    redis_url = redis_url if redis_url is not None else os.getenv("REDIS_URL")

    if not redis_url:
        logger.info("REDIS_URL not set, using in-memory store")
        return InMemoryStore()

    try:
        client = redis.Redis.from_url(
            redis_url,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        client.ping()
        logger.info("Redis connected")
        return RedisStore(client)
    except RedisError as e:
        logger.warning(f"Redis unavailable, using in-memory store: {e}")
        return InMemoryStore()
