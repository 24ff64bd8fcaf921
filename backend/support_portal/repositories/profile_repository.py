from __future__ import annotations

from copy import deepcopy
from typing import Any

from pymongo.errors import DuplicateKeyError, PyMongoError

from support_portal.core.errors import BackendUnavailable, DuplicatePhone
from support_portal.core.utils import generate_id, iso_now
from support_portal.infrastructure.persistence_clients import MongoClientManager


class ProfileRepository:
    def __init__(self, *, mongo_manager: MongoClientManager) -> None:
        self.mongo_manager = mongo_manager

    def find_by_phone(self, phone: str) -> dict[str, Any] | None:
        return self._find_one({"mobileNumber": phone})

    def find_by_user_id(self, user_id: str) -> dict[str, Any] | None:
        return self._find_one({"userId": user_id})

    def insert(self, profile: dict[str, Any]) -> dict[str, Any]:
        now = iso_now()
        document = {
            "id": generate_id("profile"),
            "role": "customer",
            "isActive": True,
            "displayName": None,
            "mobileNumber": None,
            "createdAt": now,
            "updatedAt": now,
            **deepcopy(profile),
        }
        collection = self._collection()
        try:
            collection.insert_one(deepcopy(document))
        except DuplicateKeyError as exc:
            raise DuplicatePhone() from exc
        except PyMongoError as exc:
            raise BackendUnavailable(f"Profile insert failed: {exc}") from exc
        return document

    def upsert_by_user_id(self, user_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        now = iso_now()
        collection = self._collection()
        try:
            collection.update_one(
                {"userId": user_id},
                {
                    "$set": {**deepcopy(fields), "updatedAt": now},
                    "$setOnInsert": {
                        "id": generate_id("profile"),
                        "userId": user_id,
                        "role": "customer",
                        "isActive": True,
                        "createdAt": now,
                    },
                },
                upsert=True,
            )
        except DuplicateKeyError as exc:
            raise DuplicatePhone() from exc
        except PyMongoError as exc:
            raise BackendUnavailable(f"Profile update failed: {exc}") from exc
        stored = self.find_by_user_id(user_id)
        if stored is None:
            raise BackendUnavailable("Profile update was not persisted.")
        return stored

    def count_by_phone(self, phone: str) -> int:
        collection = self._collection()
        try:
            return int(collection.count_documents({"mobileNumber": phone}))
        except PyMongoError as exc:
            raise BackendUnavailable(f"Profile count failed: {exc}") from exc

    def _find_one(self, query: dict[str, Any]) -> dict[str, Any] | None:
        collection = self._collection()
        try:
            payload = collection.find_one(query)
        except PyMongoError as exc:
            raise BackendUnavailable(f"Profile lookup failed: {exc}") from exc
        if not payload:
            return None
        payload.pop("_id", None)
        return payload if isinstance(payload, dict) else None

    def _collection(self) -> Any:
        database = self.mongo_manager.database()
        if database is None:
            raise BackendUnavailable("Profile store is not connected.")
        return database["profiles"]
