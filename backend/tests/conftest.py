from __future__ import annotations

import itertools
from copy import deepcopy
from dataclasses import dataclass
from typing import Any, Iterator

import pytest
from gridfs.errors import GridFSError
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from support_portal.container import container, mongo_manager, redis_manager, workflow_registry
from support_portal.infrastructure.mongo_indexes import ensure_mongo_indexes
from support_portal.repositories.blob_repository import BlobRepository

_object_ids = itertools.count(1)


def _matches(row: dict[str, Any], filt: dict[str, Any]) -> bool:
    return all(row.get(key) == value for key, value in filt.items())


class FakeCursor(list[dict[str, Any]]):
    def sort(self, key_or_list: Any, direction: int | None = None) -> "FakeCursor":
        keys = [(key_or_list, direction or 1)] if isinstance(key_or_list, str) else list(key_or_list)
        rows = list(self)
        for field, field_direction in reversed(keys):
            rows.sort(key=lambda row: str(row.get(field, "")), reverse=field_direction < 0)
        return FakeCursor(rows)


class FakeCollection:
    def __init__(self) -> None:
        self.rows: list[dict[str, Any]] = []
        self.indexes: dict[str, dict[str, Any]] = {}

    def create_index(self, keys: list[tuple[str, int]], **options: Any) -> str:
        name = str(options.get("name") or "_".join(field for field, _ in keys))
        self.indexes[name] = {
            "fields": [field for field, _ in keys],
            "unique": bool(options.get("unique")),
            "partial": options.get("partialFilterExpression"),
        }
        return name

    def insert_one(self, document: dict[str, Any]) -> None:
        row = deepcopy(document)
        row.setdefault("_id", next(_object_ids))
        self._check_unique(row)
        self.rows.append(row)

    def update_one(self, filt: dict[str, Any], update: dict[str, Any], upsert: bool = False) -> None:
        target = self._find_raw(filt)
        if target is None:
            if not upsert:
                return
            row = {**deepcopy(filt), **deepcopy(update.get("$setOnInsert", {})), **deepcopy(update.get("$set", {}))}
            row.setdefault("_id", next(_object_ids))
            self._check_unique(row)
            self.rows.append(row)
            return
        candidate = {**target, **deepcopy(update.get("$set", {}))}
        self._check_unique(candidate, ignore=target)
        target.update(deepcopy(update.get("$set", {})))

    def find_one_and_update(
        self,
        filt: dict[str, Any],
        update: dict[str, Any],
        upsert: bool = False,
        return_document: Any = ReturnDocument.BEFORE,
    ) -> dict[str, Any] | None:
        target = self._find_raw(filt)
        before = deepcopy(target)
        if target is None:
            if not upsert:
                return None
            target = deepcopy(filt)
            self.rows.append(target)
        for field, amount in update.get("$inc", {}).items():
            target[field] = target.get(field, 0) + amount
        target.update(deepcopy(update.get("$set", {})))
        return deepcopy(target) if return_document == ReturnDocument.AFTER else before

    def find_one(self, filt: dict[str, Any]) -> dict[str, Any] | None:
        return deepcopy(self._find_raw(filt))

    def find(self, filt: dict[str, Any] | None = None) -> FakeCursor:
        return FakeCursor(deepcopy(row) for row in self.rows if _matches(row, filt or {}))

    def delete_one(self, filt: dict[str, Any]) -> None:
        target = self._find_raw(filt)
        if target is not None:
            self.rows.remove(target)

    def count_documents(self, filt: dict[str, Any]) -> int:
        return len([row for row in self.rows if _matches(row, filt)])

    def _find_raw(self, filt: dict[str, Any]) -> dict[str, Any] | None:
        for row in self.rows:
            if _matches(row, filt):
                return row
        return None

    def _check_unique(self, candidate: dict[str, Any], ignore: dict[str, Any] | None = None) -> None:
        for name, index in self.indexes.items():
            if not index["unique"]:
                continue
            values = tuple(candidate.get(field) for field in index["fields"])
            if index["partial"] and not all(isinstance(value, str) for value in values):
                continue
            for row in self.rows:
                if row is ignore:
                    continue
                if tuple(row.get(field) for field in index["fields"]) == values:
                    raise DuplicateKeyError(f"E11000 duplicate key error index: {name}", 11000)


class FakeMongoDatabase:
    def __init__(self) -> None:
        self.collections: dict[str, FakeCollection] = {}

    def __getitem__(self, name: str) -> FakeCollection:
        if name not in self.collections:
            self.collections[name] = FakeCollection()
        return self.collections[name]


class FakeMongoClient:
    def __init__(self) -> None:
        self.db = FakeMongoDatabase()

    def get_default_database(self, default: str | None = None) -> FakeMongoDatabase:
        return self.db

    def __getitem__(self, _name: str) -> FakeMongoDatabase:
        return self.db

    def close(self) -> None:
        return None


class FakeRedisClient:
    def __init__(self) -> None:
        self.store: dict[str, Any] = {}
        self.expiries: dict[str, int | None] = {}

    def set(self, key: str, value: str, ex: int | None = None) -> None:
        self.store[key] = value.encode("utf-8")
        self.expiries[key] = ex

    def get(self, key: str) -> Any:
        return self.store.get(key)

    def delete(self, key: str) -> None:
        self.store.pop(key, None)
        self.expiries.pop(key, None)


class FakeGridFSBucket:
    def __init__(self, database: FakeMongoDatabase, bucket_name: str) -> None:
        self.database = database
        self.bucket_name = bucket_name
        self.blobs: dict[str, bytes] = {}
        self.fail = False

    def upload_from_stream(self, filename: str, source: bytes, metadata: dict[str, Any] | None = None) -> int:
        if self.fail:
            raise GridFSError("chunk write failed")
        file_id = next(_object_ids)
        self.blobs[filename] = bytes(source)
        self.database[f"{self.bucket_name}.files"].insert_one(
            {"_id": file_id, "filename": filename, "metadata": metadata or {}}
        )
        return file_id


@dataclass
class FakeBackends:
    mongo: FakeMongoClient
    redis: FakeRedisClient
    bucket: FakeGridFSBucket

    def collection(self, name: str) -> FakeCollection:
        return self.mongo.db[name]


@pytest.fixture(autouse=True)
def fake_backends(monkeypatch: pytest.MonkeyPatch) -> Iterator[FakeBackends]:
    # The app container is module-global, so every test gets fresh backing stores.
    mongo = FakeMongoClient()
    redis_client = FakeRedisClient()
    bucket = FakeGridFSBucket(mongo.db, container.settings.attachment_bucket)
    monkeypatch.setattr(mongo_manager, "_client", mongo)
    monkeypatch.setattr(redis_manager, "_client", redis_client)
    monkeypatch.setattr(BlobRepository, "_bucket", lambda self: bucket)
    ensure_mongo_indexes(client=mongo)
    workflow_registry.clear()
    yield FakeBackends(mongo=mongo, redis=redis_client, bucket=bucket)
    workflow_registry.clear()
