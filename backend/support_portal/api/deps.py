from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass

from fastapi import Header

from support_portal.container import container
from support_portal.core.errors import ValidationError
from support_portal.models.schemas import AttachmentPayload
from support_portal.services.attachment_uploader import Attachment
from support_portal.services.identity_resolver import IdentityResolver

_CLIENT_ID = re.compile(r"^[A-Za-z0-9_-]{8,64}$")


@dataclass(frozen=True)
class ClientScope:
    tab_id: str
    device_id: str
    resolver: IdentityResolver


def _checked(value: str | None, header: str) -> str:
    if not value or not _CLIENT_ID.match(value):
        raise ValidationError.for_field(header, f"`{header}` header must be 8-64 URL-safe characters.")
    return value


def get_client_scope(
    x_tab_id: str | None = Header(default=None, alias="X-Tab-Id"),
    x_device_id: str | None = Header(default=None, alias="X-Device-Id"),
) -> ClientScope:
    tab_id = _checked(x_tab_id, "X-Tab-Id")
    device_id = _checked(x_device_id, "X-Device-Id")
    return ClientScope(
        tab_id=tab_id,
        device_id=device_id,
        resolver=container.identity_resolver(tab_id=tab_id, device_id=device_id),
    )


def decode_attachment(payload: AttachmentPayload | None) -> Attachment | None:
    if payload is None:
        return None
    try:
        content = base64.b64decode(payload.contentBase64, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError.for_field("attachment", "Attachment content is not valid base64.") from exc
    return Attachment(filename=payload.filename, content=content, content_type=payload.contentType)
