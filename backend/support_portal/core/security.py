from __future__ import annotations

import base64
import hashlib
import hmac
import json
import secrets
import time
from typing import Any

SESSION_TOKEN_TYPE = "anonymous_session"


class InvalidTokenError(ValueError):
    """Raised when a session token is malformed, forged or expired."""


def _b64_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64_decode(raw: str) -> bytes:
    padding = "=" * (-len(raw) % 4)
    return base64.urlsafe_b64decode((raw + padding).encode("ascii"))


def _sign(signing_input: bytes, secret: str) -> str:
    signature = hmac.new(secret.encode("utf-8"), signing_input, hashlib.sha256).digest()
    return _b64_encode(signature)


def create_session_token(*, session_id: str, user_id: str, ttl_seconds: int, secret: str) -> str:
    header = {"alg": "HS256", "typ": "JWT"}
    issued_at = int(time.time())
    payload: dict[str, Any] = {
        "sub": user_id,
        "sid": session_id,
        "type": SESSION_TOKEN_TYPE,
        "jti": secrets.token_hex(16),
        "iat": issued_at,
        "exp": issued_at + ttl_seconds,
    }
    encoded_header = _b64_encode(json.dumps(header, separators=(",", ":")).encode("utf-8"))
    encoded_payload = _b64_encode(json.dumps(payload, separators=(",", ":")).encode("utf-8"))
    signing_input = f"{encoded_header}.{encoded_payload}".encode("ascii")
    return f"{encoded_header}.{encoded_payload}.{_sign(signing_input, secret)}"


def decode_session_token(token: str, secret: str) -> dict[str, Any]:
    try:
        encoded_header, encoded_payload, encoded_signature = token.split(".")
    except ValueError as exc:
        raise InvalidTokenError("Malformed token") from exc

    signing_input = f"{encoded_header}.{encoded_payload}".encode("ascii")
    if not hmac.compare_digest(_sign(signing_input, secret), encoded_signature):
        raise InvalidTokenError("Invalid token signature")

    try:
        payload = json.loads(_b64_decode(encoded_payload).decode("utf-8"))
    except (ValueError, UnicodeDecodeError) as exc:
        raise InvalidTokenError("Malformed token payload") from exc
    if not isinstance(payload, dict):
        raise InvalidTokenError("Malformed token payload")
    if int(payload.get("exp", 0)) < int(time.time()):
        raise InvalidTokenError("Token expired")
    if payload.get("type") != SESSION_TOKEN_TYPE or not payload.get("sid") or not payload.get("sub"):
        raise InvalidTokenError("Unexpected token type")
    return payload
