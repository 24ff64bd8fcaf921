from __future__ import annotations

import re
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Protocol

from support_portal.core.errors import FileTooLarge, PortalError, UploadError
from support_portal.core.utils import epoch_millis
from support_portal.infrastructure.logging import get_logger

logger = get_logger(__name__)

MAX_ATTACHMENT_BYTES = 10 * 1024 * 1024
_EXTENSION_UNSAFE = re.compile(r"[^A-Za-z0-9]")


class BlobStore(Protocol):
    def upload(self, path: str, data: bytes, content_type: str | None = None) -> str: ...


@dataclass(frozen=True)
class Attachment:
    filename: str
    content: bytes
    content_type: str | None = None

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def extension(self) -> str:
        if "." not in self.filename:
            return "bin"
        cleaned = _EXTENSION_UNSAFE.sub("", self.filename.rsplit(".", 1)[1])[:16]
        return cleaned.lower() or "bin"


class AttachmentUploader:
    def __init__(
        self,
        *,
        blob_store: BlobStore,
        max_bytes: int = MAX_ATTACHMENT_BYTES,
        clock: Callable[[], int] = epoch_millis,
    ) -> None:
        self.blob_store = blob_store
        self.max_bytes = max_bytes
        self.clock = clock
        self._last_stamp: dict[str, int] = {}
        self._lock = Lock()

    def check_size(self, attachment: Attachment) -> None:
        if attachment.size > self.max_bytes:
            raise FileTooLarge(
                details=[{"field": "attachment", "message": "Please select a file smaller than 10MB"}]
            )

    def upload(self, identity_id: str, attachment: Attachment) -> str:
        self.check_size(attachment)
        path = self._next_path(identity_id, attachment.extension)
        try:
            stored = self.blob_store.upload(path, attachment.content, attachment.content_type)
        except PortalError as exc:
            logger.warning("attachment.upload_failed", path=path, error=exc.message)
            raise UploadError() from exc
        logger.info("attachment.uploaded", path=stored, size=attachment.size)
        return stored

    def _next_path(self, identity_id: str, extension: str) -> str:
        # Stamps only move forward per identity so two uploads never share a path.
        with self._lock:
            stamp = max(self.clock(), self._last_stamp.get(identity_id, 0) + 1)
            self._last_stamp[identity_id] = stamp
        return f"{identity_id}/{stamp}.{extension}"
