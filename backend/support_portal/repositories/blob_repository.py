from __future__ import annotations

from typing import Any

from gridfs import GridFSBucket
from gridfs.errors import GridFSError
from pymongo.errors import PyMongoError

from support_portal.core.errors import BackendUnavailable
from support_portal.infrastructure.persistence_clients import MongoClientManager


class BlobRepository:
    """Path-addressed attachment storage in a GridFS bucket."""

    def __init__(self, *, mongo_manager: MongoClientManager, bucket_name: str) -> None:
        self.mongo_manager = mongo_manager
        self.bucket_name = bucket_name

    def upload(self, path: str, data: bytes, content_type: str | None = None) -> str:
        bucket = self._bucket()
        try:
            bucket.upload_from_stream(
                path,
                data,
                metadata={"contentType": content_type or "application/octet-stream", "size": len(data)},
            )
        except (GridFSError, PyMongoError) as exc:
            raise BackendUnavailable(f"Blob upload failed: {exc}") from exc
        return path

    def exists(self, path: str) -> bool:
        database = self._database()
        try:
            return database[f"{self.bucket_name}.files"].find_one({"filename": path}) is not None
        except PyMongoError as exc:
            raise BackendUnavailable(f"Blob lookup failed: {exc}") from exc

    def _bucket(self) -> Any:
        return GridFSBucket(self._database(), bucket_name=self.bucket_name)

    def _database(self) -> Any:
        database = self.mongo_manager.database()
        if database is None:
            raise BackendUnavailable("Attachment storage is not connected.")
        return database
