from __future__ import annotations

from threading import Lock
from typing import Any, Protocol

from redis.exceptions import RedisError

from support_portal.core.errors import BackendUnavailable
from support_portal.infrastructure.persistence_clients import RedisClientManager


class KeyValueStorage(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class InMemoryKeyValueStorage:
    def __init__(self) -> None:
        self._values: dict[str, str] = {}
        self._lock = Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._values[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._values.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._values)


class RedisKeyValueStorage:
    """Redis-backed storage; keeps values in process memory while Redis is not connected."""

    def __init__(self, *, redis_manager: RedisClientManager, ttl_seconds: int | None = None) -> None:
        self.redis_manager = redis_manager
        self.ttl_seconds = ttl_seconds
        self._fallback = InMemoryKeyValueStorage()

    def get(self, key: str) -> str | None:
        client = self._redis_client()
        if client is None:
            return self._fallback.get(key)
        try:
            payload = client.get(key)
        except RedisError as exc:
            raise BackendUnavailable(f"Storage read failed: {exc}") from exc
        if payload is None:
            return None
        if isinstance(payload, bytes):
            payload = payload.decode("utf-8")
        return str(payload)

    def set(self, key: str, value: str) -> None:
        client = self._redis_client()
        if client is None:
            self._fallback.set(key, value)
            return
        try:
            client.set(key, value, ex=self.ttl_seconds)
        except RedisError as exc:
            raise BackendUnavailable(f"Storage write failed: {exc}") from exc

    def delete(self, key: str) -> None:
        client = self._redis_client()
        if client is None:
            self._fallback.delete(key)
            return
        try:
            client.delete(key)
        except RedisError as exc:
            raise BackendUnavailable(f"Storage delete failed: {exc}") from exc

    def _redis_client(self) -> Any | None:
        return self.redis_manager.client


class ScopedStorage:
    """Prefixes every key with a namespace such as `tab:<id>` or `device:<id>`."""

    def __init__(self, storage: KeyValueStorage, namespace: str) -> None:
        self.storage = storage
        self.namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    def get(self, key: str) -> str | None:
        return self.storage.get(self._key(key))

    def set(self, key: str, value: str) -> None:
        self.storage.set(self._key(key), value)

    def delete(self, key: str) -> None:
        self.storage.delete(self._key(key))
