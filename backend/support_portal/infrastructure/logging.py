import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor

_SHARED_PROCESSORS: list[Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.processors.add_log_level,
    structlog.processors.format_exc_info,
    structlog.processors.TimeStamper(fmt="iso"),
]


def _level_number(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(level: int | str = logging.INFO, *, json_logs: bool | None = None) -> None:
    """Routes structlog through stdlib logging.

    Output is JSON unless stderr is a terminal; pass `json_logs` to force
    either renderer.
    """
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=_level_number(level))

    if json_logs is None:
        json_logs = not sys.stderr.isatty()
    renderers: list[Processor] = (
        [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
        if json_logs
        else [structlog.dev.ConsoleRenderer()]
    )

    structlog.configure(
        processors=[*_SHARED_PROCESSORS, *renderers],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> Any:
    return structlog.get_logger(name)


def bind_request_context(**values: Any) -> None:
    """Replaces the per-request context so every event carries the caller's tab and device."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**{key: value for key, value in values.items() if value})
