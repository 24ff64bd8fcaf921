from __future__ import annotations

import json
from copy import deepcopy
from typing import Any

from support_portal.infrastructure.key_value_storage import KeyValueStorage


class SessionRepository:
    """Anonymous auth sessions, stored as JSON under `session:<id>`."""

    def __init__(self, *, storage: KeyValueStorage) -> None:
        self.storage = storage

    def _key(self, session_id: str) -> str:
        return f"session:{session_id}"

    def create(self, session: dict[str, Any]) -> dict[str, Any]:
        self.storage.set(self._key(session["id"]), json.dumps(session))
        return deepcopy(session)

    def get(self, session_id: str) -> dict[str, Any] | None:
        payload = self.storage.get(self._key(session_id))
        if not payload:
            return None
        try:
            decoded = json.loads(payload)
        except json.JSONDecodeError:
            return None
        return decoded if isinstance(decoded, dict) else None

    def delete(self, session_id: str) -> None:
        self.storage.delete(self._key(session_id))
