from __future__ import annotations

from typing import Any

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from support_portal.core.config import Settings
from support_portal.core.errors import BackendUnavailable
from support_portal.core.security import InvalidTokenError, create_session_token, decode_session_token
from support_portal.infrastructure.key_value_storage import InMemoryKeyValueStorage, RedisKeyValueStorage, ScopedStorage
from support_portal.infrastructure.persistence_clients import RedisClientManager
from support_portal.repositories.session_repository import SessionRepository
from support_portal.services.auth_backend import AUTH_SESSION_KEY, AnonymousAuthBackend


def _backend(device: InMemoryKeyValueStorage | None = None) -> AnonymousAuthBackend:
    return AnonymousAuthBackend(
        settings=Settings(token_secret="test-secret"),
        session_repository=SessionRepository(storage=InMemoryKeyValueStorage()),
        device_storage=device or InMemoryKeyValueStorage(),
    )


def test_anonymous_session_is_recoverable_from_device_token() -> None:
    backend = _backend()
    session = backend.create_anonymous_session()

    current = backend.current_session()

    assert current is not None
    assert current.user_id == session.user_id
    assert current.session_id == session.session_id
    assert session.user_id.startswith("user_")


def test_tampered_token_is_discarded() -> None:
    device = InMemoryKeyValueStorage()
    backend = _backend(device)
    backend.create_anonymous_session()
    device.set(AUTH_SESSION_KEY, str(device.get(AUTH_SESSION_KEY)) + "x")

    assert backend.current_session() is None
    assert device.get(AUTH_SESSION_KEY) is None


def test_sign_out_revokes_the_session_record() -> None:
    backend = _backend()
    session = backend.create_anonymous_session()

    backend.sign_out()

    assert backend.current_session() is None
    assert backend.session_repository.get(session.session_id) is None


def test_session_token_rejects_wrong_secret_and_expiry() -> None:
    token = create_session_token(session_id="session_1", user_id="user_1", ttl_seconds=60, secret="a")
    assert decode_session_token(token, "a")["sub"] == "user_1"

    with pytest.raises(InvalidTokenError):
        decode_session_token(token, "b")

    expired = create_session_token(session_id="session_1", user_id="user_1", ttl_seconds=-5, secret="a")
    with pytest.raises(InvalidTokenError):
        decode_session_token(expired, "a")

    with pytest.raises(InvalidTokenError):
        decode_session_token("not-a-token", "a")


class _FlakyRedis:
    def get(self, key: str) -> Any:
        raise RedisConnectionError("connection reset")

    def set(self, key: str, value: str, ex: int | None = None) -> None:
        raise RedisConnectionError("connection reset")

    def delete(self, key: str) -> None:
        raise RedisConnectionError("connection reset")


def test_redis_storage_uses_memory_until_redis_is_connected() -> None:
    manager = RedisClientManager(url="redis://localhost:6379/0", enabled=False)
    storage = RedisKeyValueStorage(redis_manager=manager, ttl_seconds=30)

    storage.set("k", "v")
    assert storage.get("k") == "v"
    storage.delete("k")
    assert storage.get("k") is None


def test_redis_storage_decodes_bytes_and_applies_ttl(fake_backends: Any) -> None:
    manager = RedisClientManager(url="redis://localhost:6379/0", enabled=True)
    manager._client = fake_backends.redis
    storage = RedisKeyValueStorage(redis_manager=manager, ttl_seconds=30)

    storage.set("tab:1:actualUserId", "user_1")

    assert storage.get("tab:1:actualUserId") == "user_1"
    assert fake_backends.redis.expiries["tab:1:actualUserId"] == 30


def test_redis_errors_become_backend_unavailable() -> None:
    manager = RedisClientManager(url="redis://localhost:6379/0", enabled=True)
    manager._client = _FlakyRedis()
    storage = RedisKeyValueStorage(redis_manager=manager)

    with pytest.raises(BackendUnavailable):
        storage.get("k")
    with pytest.raises(BackendUnavailable):
        storage.set("k", "v")


def test_scoped_storage_isolates_namespaces() -> None:
    backing = InMemoryKeyValueStorage()
    tab_a = ScopedStorage(backing, "tab:a")
    tab_b = ScopedStorage(backing, "tab:b")

    tab_a.set("actualUserId", "user_a")

    assert tab_b.get("actualUserId") is None
    assert backing.keys() == ["tab:a:actualUserId"]
