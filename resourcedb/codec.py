"""Reversible escaping of store-reserved characters.

The document store reserves ``.`` and ``$`` in collection names and document
keys. User text is stored with those characters swapped for private-use code
points so it can double as a collection name or sit next to update operators.

Example:
    >>> encode("node.js $tips")
    'node\\ue001js \\ue002tips'
    >>> decode(encode("node.js $tips"))
    'node.js $tips'
"""

import re
from collections.abc import Iterable

RESERVED_SENTINEL = "$"

ESCAPE = "\ue000"
DOT = "\ue001"
DOLLAR = "\ue002"

_ENCODE_PATTERN = re.compile("[.$\ue000-\ue002]")
_DECODE_PATTERN = re.compile("\ue000(.)|[\ue001\ue002]", re.DOTALL)


def _encode_char(match: re.Match[str]) -> str:
    char = match.group(0)
    if char == ".":
        return DOT
    if char == "$":
        return DOLLAR
    # Literal private-use characters must survive the round trip.
    return ESCAPE + char


def _decode_char(match: re.Match[str]) -> str:
    if match.group(1) is not None:
        return match.group(1)
    return "." if match.group(0) == DOT else "$"


def encode(text: str) -> str:
    """Hide ``.`` and ``$`` behind private-use substitutes.

    Args:
        text: Plain user text

    Returns:
        Text safe to use as a collection name or stored field value
    """
    return _ENCODE_PATTERN.sub(_encode_char, text)


def decode(text: str) -> str:
    """Exact inverse of :func:`encode`."""
    return _DECODE_PATTERN.sub(_decode_char, text)


def encode_all(values: Iterable[str]) -> list[str]:
    """Encode every element of a sequence, keeping order."""
    return [encode(value) for value in values]


def decode_all(values: Iterable[str]) -> list[str]:
    """Decode every element of a sequence, keeping order."""
    return [decode(value) for value in values]


def is_reserved(raw: str) -> bool:
    """True when a raw parameter starts with the operator sentinel."""
    return raw.startswith(RESERVED_SENTINEL)


__all__ = [
    "RESERVED_SENTINEL",
    "encode",
    "decode",
    "encode_all",
    "decode_all",
    "is_reserved",
]
