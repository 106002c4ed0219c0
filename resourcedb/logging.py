"""Loguru configuration for resourcedb.

Every service call runs with three context variables set: ``request_id``,
``operation`` and ``topic``. They are copied into each JSON log line together
with the ``status_code`` of a failed operation, so one request can be
followed from the facade down to the store writes it caused.

Example:
    >>> from resourcedb.logging import logger, set_request_context
    >>> set_request_context(request_id="abc123", operation="add_pin", topic="python")
    >>> logger.info("Pinned resource")
    >>> # JSON line: {"message": "Pinned resource", "operation": "add_pin", "topic": "python", ...}
"""

import json
import sys
import traceback
from contextvars import ContextVar
from pathlib import Path
from typing import Any

from loguru import logger as loguru_logger

from resourcedb.config import settings

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
operation_var: ContextVar[str | None] = ContextVar("operation", default=None)
topic_var: ContextVar[str | None] = ContextVar("topic", default=None)

_CONTEXT_VARS = {
    "request_id": request_id_var,
    "operation": operation_var,
    "topic": topic_var,
}

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)


def serialize(record: dict[str, Any]) -> str:
    """Render a record as one JSON line.

    Request context is included when set. Bound extras (``status_code``)
    are merged in, and an attached exception is reduced to type, value and
    traceback.
    """
    line: dict[str, Any] = {
        "time": record["time"].isoformat(),
        "level": record["level"].name,
        "message": record["message"],
        "module": record["module"],
        "line": record["line"],
    }
    line.update({key: var.get() for key, var in _CONTEXT_VARS.items() if var.get()})
    line.update(record["extra"])

    if exc := record["exception"]:
        line["exception"] = {
            "type": exc.type.__name__ if exc.type else None,
            "value": str(exc.value),
            "traceback": traceback.format_exception(exc.type, exc.value, exc.traceback),
        }

    return json.dumps(line, default=str)


def patching(record: dict[str, Any]) -> None:
    record["serialized"] = serialize(record)


def json_format(record: dict[str, Any]) -> str:
    # A callable format keeps Loguru from appending its own traceback.
    return "{serialized}\n"


def setup_logging(
    level: str = "INFO",
    json_logs: bool = False,
    log_file: Path | None = None,
    colorize: bool = True,
) -> Any:
    """Replace all Loguru handlers with the resourcedb ones.

    Args:
        level: Minimum log level
        json_logs: Emit the serialized JSON line instead of the console format
        log_file: Optional file that also receives every record (rotated at 10 MB)
        colorize: Colour the console format

    Returns:
        Logger patched to carry the serialized line on every record
    """
    loguru_logger.remove()
    patched_logger = loguru_logger.patch(patching)
    line_format = json_format if json_logs else CONSOLE_FORMAT

    patched_logger.add(
        sys.stderr,
        level=level,
        format=line_format,
        colorize=colorize and not json_logs,
    )

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        patched_logger.add(
            log_file,
            level=level,
            format=json_format if json_logs else "{time} | {level} | {message}",
            rotation="10 MB",
            retention="30 days",
            compression="zip",
            enqueue=True,
        )

    return patched_logger


logger = setup_logging(
    level=settings.log_level,
    json_logs=settings.log_json,
    log_file=settings.log_file,
    colorize=not settings.log_json,
)


def set_request_context(
    request_id: str | None = None,
    operation: str | None = None,
    topic: str | None = None,
) -> None:
    """Set the context copied into log lines; ``None`` leaves a value as is.

    Args:
        request_id: Identifier of the service call
        operation: Service method name (e.g. "add_pin", "move_resource")
        topic: Topic the call works on, as the caller typed it
    """
    values = {"request_id": request_id, "operation": operation, "topic": topic}
    for key, value in values.items():
        if value is not None:
            _CONTEXT_VARS[key].set(value)


def clear_request_context() -> None:
    for var in _CONTEXT_VARS.values():
        var.set(None)


__all__ = [
    "logger",
    "request_id_var",
    "operation_var",
    "topic_var",
    "serialize",
    "set_request_context",
    "clear_request_context",
    "setup_logging",
]
