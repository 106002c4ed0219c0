"""Utility functions for resourcedb.

This module provides common helpers for timestamps and for coercing loosely
typed request values.
"""

from datetime import UTC, datetime
from typing import Any


def utc_now() -> datetime:
    """Get current UTC timestamp as timezone-aware datetime."""
    return datetime.now(UTC)


def utc_now_iso() -> str:
    """Get current UTC timestamp as ISO8601 string with 'Z' suffix.

    Example:
        >>> utc_now_iso().endswith("Z")
        True
    """
    return utc_now().isoformat().replace("+00:00", "Z")


def utc_now_millis() -> int:
    """Get current UTC time in epoch milliseconds (the ``createdAt`` unit)."""
    return int(utc_now().timestamp() * 1000)


def split_keywords(value: str) -> list[str]:
    """Split a comma-separated keyword string, dropping empty tokens.

    Example:
        >>> split_keywords("python, web,, api ")
        ['python', 'web', 'api']
    """
    return [token.strip() for token in value.split(",") if token.strip()]


def ensure_list(value: Any) -> list[Any]:
    """Ensure value is a list, wrapping if necessary.

    Strings are split on commas rather than wrapped, so ``"a,b"`` and
    ``["a", "b"]`` mean the same thing.

    Example:
        >>> ensure_list(["a", "b"])
        ['a', 'b']
        >>> ensure_list("a, b")
        ['a', 'b']
        >>> ensure_list(None)
        []
    """
    if value is None:
        return []
    if isinstance(value, str):
        return split_keywords(value)
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]
