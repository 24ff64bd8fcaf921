from __future__ import annotations

import json

from support_portal.infrastructure.key_value_storage import KeyValueStorage
from support_portal.infrastructure.logging import get_logger

logger = get_logger(__name__)

SESSION_CACHE_KEY = "actualUserId"
PHONE_MAPPING_KEY = "phoneToUserId"


class SessionCache:
    """Tab-scoped slot holding the last identity resolved in that tab."""

    def __init__(self, storage: KeyValueStorage) -> None:
        self.storage = storage

    def get(self) -> str | None:
        value = self.storage.get(SESSION_CACHE_KEY)
        return value or None

    def set(self, identity_id: str) -> None:
        self.storage.set(SESSION_CACHE_KEY, identity_id)

    def clear(self) -> None:
        self.storage.delete(SESSION_CACHE_KEY)


class PersistentMapping:
    """Device-scoped `{phone: identityId}` object holding exactly one pair.

    Every write replaces the whole object, so the last phone resolved on the
    device wins.
    """

    def __init__(self, storage: KeyValueStorage) -> None:
        self.storage = storage

    def get(self) -> tuple[str, str] | None:
        raw = self.storage.get(PHONE_MAPPING_KEY)
        if not raw:
            return None
        try:
            mapping = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("identity.mapping_unreadable")
            return None
        if not isinstance(mapping, dict) or len(mapping) != 1:
            logger.warning("identity.mapping_malformed", entries=len(mapping) if isinstance(mapping, dict) else None)
            return None
        phone, identity_id = next(iter(mapping.items()))
        if not isinstance(identity_id, str) or not identity_id:
            return None
        return str(phone), identity_id

    def identity_id(self) -> str | None:
        entry = self.get()
        return entry[1] if entry else None

    def set(self, phone: str, identity_id: str) -> None:
        self.storage.set(PHONE_MAPPING_KEY, json.dumps({phone: identity_id}))

    def clear(self) -> None:
        self.storage.delete(PHONE_MAPPING_KEY)
