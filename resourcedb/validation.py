"""Sanitizing and validation of user-supplied values.

Everything a caller sends goes through here before it reaches the store:
text is stripped of markup, topic names and ids are screened for the
operator sentinel, and values that will be stored as keys or next to
operators are escaped with :mod:`resourcedb.codec`.

The default sanitizer parses text with BeautifulSoup and keeps only the
text nodes, re-parsing until the output stops changing so that tags joined
by an earlier pass (``<<b>b>``) are removed too. Character references are
not decoded: ``&lt;script&gt;`` stays as that text and a link keeps its
``&copy=`` query parameter.
"""

import math
import warnings
from collections.abc import Sequence
from dataclasses import dataclass
from numbers import Real
from typing import Any

from bs4 import BeautifulSoup, MarkupResemblesLocatorWarning
from pydantic import AnyHttpUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from resourcedb.codec import encode, encode_all, is_reserved
from resourcedb.config import settings
from resourcedb.errors import ValidationError
from resourcedb.interfaces import Sanitizer
from resourcedb.utils import ensure_list

_URL_ADAPTER = TypeAdapter(AnyHttpUrl)
_DROPPED_TAGS = ["script", "style", "iframe", "object", "embed", "noscript", "template"]

# Links and bare words look like file names or URLs to bs4; they are still text.
warnings.filterwarnings("ignore", category=MarkupResemblesLocatorWarning)


def _strip_once(text: str) -> str:
    # Entities are left as written: only tags are removed.
    soup = BeautifulSoup(text.replace("&", "&amp;"), "html.parser")
    for tag in soup(_DROPPED_TAGS):
        tag.decompose()
    return soup.get_text()


def sanitize(text: str, max_passes: int | None = None) -> str:
    """Remove all markup from ``text`` and trim surrounding whitespace.

    Character references are not decoded, so ``&copy=3`` in a link and
    ``&lt;b&gt;`` in a description come back exactly as sent. Removing a tag
    can join the characters around it into a new tag (``<<b>b>``), so parsing
    repeats until the text stops changing.

    Args:
        text: Untrusted text
        max_passes: Re-parse limit (defaults to settings.sanitize_max_passes)

    Returns:
        Plain text with no residual markup

    Raises:
        ValidationError: If markup is still left after ``max_passes`` parses

    Example:
        >>> sanitize("<b>Fast</b> API <script>alert(1)</script>")
        'Fast API'
    """
    passes = max_passes or settings.sanitize_max_passes
    current = text
    for _ in range(passes):
        stripped = _strip_once(current)
        if stripped == current:
            return current.strip()
        current = stripped
    if _strip_once(current) != current:
        raise ValidationError("Text contains too deeply nested markup.")
    return current.strip()


@dataclass(frozen=True)
class ResourceFields:
    """Validated, store-ready values of the three mutable resource fields.

    ``description`` and ``keywords`` are escaped, ``link`` is only sanitized.
    """

    description: str
    keywords: list[str]
    link: str

    def as_document(self) -> dict[str, Any]:
        return {"description": self.description, "keywords": self.keywords, "link": self.link}


def reject_reserved(value: str, message: str) -> None:
    """Raise before any store access if a raw parameter starts with ``$``."""
    if not isinstance(value, str) or is_reserved(value):
        raise ValidationError(message)


def clean_topic(name: Any, clean: Sanitizer = sanitize) -> str:
    """Turn a user-chosen topic name into its escaped store name.

    Raises:
        ValidationError: If the name starts with ``$`` before or after
            sanitizing, or is empty after sanitizing
    """
    reject_reserved(name, "No topic with that name.")
    cleaned = clean(name)
    if not cleaned:
        raise ValidationError("Not a valid topic name.")
    reject_reserved(cleaned, "Not a valid topic name.")
    return encode(cleaned)


def clean_id(doc_id: Any) -> str:
    """Screen and escape a resource id taken from a request."""
    reject_reserved(doc_id, "No resource with that id.")
    if not doc_id:
        raise ValidationError("No resource with that id.")
    return encode(doc_id)


def clean_description(description: Any, clean: Sanitizer = sanitize) -> str:
    if not isinstance(description, str):
        raise ValidationError("A description is required.")
    cleaned = clean(description)
    if not cleaned:
        raise ValidationError("A description is required.")
    return encode(cleaned)


def clean_keywords(keywords: Any, clean: Sanitizer = sanitize) -> list[str]:
    """Sanitize and escape keywords, keeping order and dropping empty ones.

    Accepts a sequence of strings or one comma-separated string.

    Raises:
        ValidationError: If no keyword survives sanitizing
    """
    if not isinstance(keywords, (str, Sequence)):
        raise ValidationError("At least one keyword is required.")
    tokens = ensure_list(keywords)
    if not all(isinstance(token, str) for token in tokens):
        raise ValidationError("Keywords must be text.")
    cleaned = [clean(token) for token in tokens]
    cleaned = [token for token in cleaned if token]
    if not cleaned:
        raise ValidationError("At least one keyword is required.")
    return encode_all(cleaned)


def clean_link(link: Any, clean: Sanitizer = sanitize) -> str:
    """Sanitize a link and check it is a well-formed http(s) URL.

    The link is returned as sanitized text, not escaped and not normalized.
    """
    if not isinstance(link, str):
        raise ValidationError("A link is required.")
    cleaned = clean(link)
    try:
        _URL_ADAPTER.validate_python(cleaned)
    except PydanticValidationError as exc:
        raise ValidationError("The link must be a valid URL.") from exc
    return cleaned


def check_created_at(created_at: Any) -> int | float:
    """Accept ints and floats (but not bools) as creation timestamps."""
    if isinstance(created_at, bool) or not isinstance(created_at, Real):
        raise ValidationError("createdAt must be a number.")
    if not math.isfinite(created_at):
        raise ValidationError("createdAt must be a finite number.")
    return created_at  # type: ignore[return-value]


def clean_fields(
    description: Any,
    keywords: Any,
    link: Any,
    clean: Sanitizer = sanitize,
) -> ResourceFields:
    """Validate the three mutable fields shared by create, update and move."""
    return ResourceFields(
        description=clean_description(description, clean),
        keywords=clean_keywords(keywords, clean),
        link=clean_link(link, clean),
    )


__all__ = [
    "ResourceFields",
    "sanitize",
    "reject_reserved",
    "clean_topic",
    "clean_id",
    "clean_description",
    "clean_keywords",
    "clean_link",
    "check_created_at",
    "clean_fields",
]
