from .request_hardening import enforce_request_hardening

__all__ = [
    "enforce_request_hardening",
]
