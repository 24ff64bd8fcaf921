from __future__ import annotations
from fastapi import Request
from fastapi.responses import JSONResponse
from support_portal.container import settings
from support_portal.infrastructure.logging import bind_request_context, get_logger

logger = get_logger(__name__)

STRICT_JSON_METHODS = {"POST", "PUT", "PATCH"}
CRITICAL_DUPLICATE_HEADERS = {
    "x-tab-id",
    "x-device-id",
    "content-length",
    "content-type",
}

def _rejection(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": "VALIDATION_ERROR", "message": message, "details": []}},
    )

def _header_occurrence_count(request: Request, header_name: str) -> int:
    target = header_name.strip().lower().encode("latin-1")
    return sum(1 for key, _ in request.scope.get("headers", []) if key.lower() == target)

def _request_has_body(request: Request) -> bool:
    content_length = request.headers.get("content-length")
    if content_length is not None:
        try:
            return int(content_length) > 0
        except ValueError:
            return True
    return bool(str(request.headers.get("transfer-encoding", "")).strip())

def _is_mutating_api_request(request: Request) -> bool:
    if request.method.upper() not in STRICT_JSON_METHODS:
        return False
    return request.url.path.startswith(f"{settings.api_prefix}/")

async def enforce_request_hardening(request: Request, call_next):  # type: ignore[no-untyped-def]
    if request.url.path == "/health":
        return await call_next(request)

    # Sync dependencies run on copied contexts, so the log context is bound here for the handlers.
    bind_request_context(
        method=request.method,
        path=request.url.path,
        tab_id=request.headers.get("x-tab-id"),
        device_id=request.headers.get("x-device-id"),
    )

    for header in CRITICAL_DUPLICATE_HEADERS:
        if _header_occurrence_count(request, header) > 1:
            logger.warning("request.duplicate_header", header=header)
            return _rejection(400, f"Duplicate `{header}` header is not allowed.")

    content_length = request.headers.get("content-length")
    if content_length is not None:
        try:
            parsed_length = int(content_length)
        except ValueError:
            return _rejection(400, "Invalid Content-Length header.")
        if parsed_length > max(0, int(settings.request_max_body_bytes)):
            logger.warning("request.too_large", content_length=parsed_length)
            return _rejection(413, "Request body is too large.")

    if _is_mutating_api_request(request) and _request_has_body(request):
        content_type = str(request.headers.get("content-type", "")).split(";", 1)[0].strip().lower()
        if content_type != "application/json":
            return _rejection(415, "Unsupported Content-Type. Use application/json.")

    return await call_next(request)
