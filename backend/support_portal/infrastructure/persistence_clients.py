from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import redis
from pymongo import MongoClient
from pymongo.errors import PyMongoError
from redis.exceptions import RedisError

from support_portal.infrastructure.logging import get_logger

logger = get_logger(__name__)

DEFAULT_DATABASE = "scooter_support"


@dataclass
class _ClientManager:
    """Owns one lazily connected backend client and remembers why it is missing."""

    enabled: bool
    _client: Any = None
    _last_error: str | None = None

    service = "backend"

    def connect(self) -> None:
        if not self.enabled:
            return
        address = self._address()
        if "localhost" in address or "127.0.0.1" in address:
            logger.warning(f"{self.service}.localhost_address", address=address)
        try:
            self._client = self._open()
            self._last_error = None
        except self._connect_errors() as exc:
            self._client = None
            self._last_error = str(exc)
            logger.warning(f"{self.service}.connect_failed", address=address, error=str(exc))

    def disconnect(self) -> None:
        if self._client is not None:
            self._client.close()
        self._client = None

    @property
    def status(self) -> str:
        if not self.enabled:
            return "disabled"
        if self._client is None:
            return "unavailable"
        return "connected"

    @property
    def error(self) -> str | None:
        return self._last_error

    @property
    def client(self) -> Any:
        return self._client

    def _address(self) -> str:
        raise NotImplementedError

    def _open(self) -> Any:
        raise NotImplementedError

    def _connect_errors(self) -> tuple[type[Exception], ...]:
        raise NotImplementedError


@dataclass
class MongoClientManager(_ClientManager):
    uri: str = ""

    service = "mongo"

    def database(self) -> Any | None:
        if self._client is None:
            return None
        return self._client.get_default_database(default=DEFAULT_DATABASE)

    def _address(self) -> str:
        return self.uri

    def _open(self) -> Any:
        client: MongoClient = MongoClient(self.uri, serverSelectionTimeoutMS=2000)
        try:
            client.admin.command("ping")
        except PyMongoError:
            client.close()
            raise
        return client

    def _connect_errors(self) -> tuple[type[Exception], ...]:
        return (PyMongoError,)


@dataclass
class RedisClientManager(_ClientManager):
    url: str = ""

    service = "redis"

    def _address(self) -> str:
        return self.url

    def _open(self) -> Any:
        client = redis.from_url(self.url, socket_timeout=2)
        client.ping()
        return client

    def _connect_errors(self) -> tuple[type[Exception], ...]:
        # from_url raises ValueError for malformed URLs.
        return (RedisError, ValueError)
