from __future__ import annotations

from copy import deepcopy
from typing import Any

from pymongo import ASCENDING
from pymongo.errors import PyMongoError

from support_portal.core.errors import BackendUnavailable
from support_portal.infrastructure.persistence_clients import MongoClientManager


class QuestionRepository:
    def __init__(self, *, mongo_manager: MongoClientManager) -> None:
        self.mongo_manager = mongo_manager

    def list_all(self) -> list[dict[str, Any]]:
        collection = self._mongo_collection()
        try:
            rows = list(collection.find({}).sort([("categoryId", ASCENDING), ("createdAt", ASCENDING)]))
        except PyMongoError as exc:
            raise BackendUnavailable(f"Question listing failed: {exc}") from exc
        return [self._clean(row) for row in rows if isinstance(row, dict)]

    def get(self, question_id: str) -> dict[str, Any] | None:
        collection = self._mongo_collection()
        try:
            payload = collection.find_one({"questionId": question_id})
        except PyMongoError as exc:
            raise BackendUnavailable(f"Question lookup failed: {exc}") from exc
        if not payload:
            return None
        return self._clean(payload)

    def save(self, question: dict[str, Any]) -> dict[str, Any]:
        collection = self._mongo_collection()
        try:
            collection.update_one(
                {"questionId": question["id"]},
                {"$set": {"questionId": question["id"], **deepcopy(question)}},
                upsert=True,
            )
        except PyMongoError as exc:
            raise BackendUnavailable(f"Question save failed: {exc}") from exc
        return deepcopy(question)

    def delete(self, question_id: str) -> None:
        collection = self._mongo_collection()
        try:
            collection.delete_one({"questionId": question_id})
        except PyMongoError as exc:
            raise BackendUnavailable(f"Question delete failed: {exc}") from exc

    @staticmethod
    def _clean(row: dict[str, Any]) -> dict[str, Any]:
        row.pop("_id", None)
        row.pop("questionId", None)
        return row

    def _mongo_collection(self) -> Any:
        database = self.mongo_manager.database()
        if database is None:
            raise BackendUnavailable("Question store is not connected.")
        return database["questions"]
