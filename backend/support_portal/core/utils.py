from __future__ import annotations
import uuid
from datetime import datetime, timezone

def utc_now() -> datetime:
    return datetime.now(timezone.utc)

def iso_now() -> str:
    return utc_now().isoformat()

def epoch_millis() -> int:
    return int(utc_now().timestamp() * 1000)

def generate_id(prefix: str) -> str:
    """Generates a unique ID with the given prefix."""
    # Use 12 characters of UUID to be reasonably short but very unlikely to collide
    return f"{prefix}_{uuid.uuid4().hex[:12]}"

def is_phone_number(value: str, min_digits: int = 10) -> bool:
    return value.isascii() and value.isdigit() and len(value) >= min_digits
