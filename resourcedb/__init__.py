"""resourcedb - escaped dynamic-topic resource store with a derived pin index.

This package stores bookmarked links ("resources") in user-named topics,
keeping arbitrary user text safe to use as collection names and field values,
and maintains a per-topic index of pinned resource ids.

Example:
    >>> from resourcedb import open_service
    >>>
    >>> with open_service() as service:
    ...     service.create_collection({"collection": "node.js"})
    ...     page = service.get_resources("node.js")
    ...     print(page.namespaces)
    ['node.js']
"""

from resourcedb.codec import decode, encode
from resourcedb.config import settings
from resourcedb.database import DocumentStore
from resourcedb.errors import (
    ConflictError,
    NotFoundError,
    ResourceDBError,
    StoreError,
    TopicNotFoundError,
    Unauthorized,
    ValidationError,
)
from resourcedb.models import Resource
from resourcedb.mover import CrossTopicMover
from resourcedb.pins import PinIndex
from resourcedb.repository import ResourceRepository
from resourcedb.service import ResourceService, open_service
from resourcedb.topics import TopicRegistry
from resourcedb.validation import sanitize

__version__ = "0.1.0"

__all__ = [
    # Main components
    "ResourceService",
    "open_service",
    "DocumentStore",
    "TopicRegistry",
    "ResourceRepository",
    "PinIndex",
    "CrossTopicMover",
    # Codec and sanitizing
    "encode",
    "decode",
    "sanitize",
    # Configuration
    "settings",
    # Models
    "Resource",
    # Errors
    "ResourceDBError",
    "ValidationError",
    "NotFoundError",
    "TopicNotFoundError",
    "Unauthorized",
    "ConflictError",
    "StoreError",
]
