"""Data models for resourcedb.

This module defines both SQLModel ORM models (for the document store) and
Pydantic models (for resources handed back to callers and for the shapes
of request bodies and responses).

Models are organized into three sections:
1. SQLModel tables backing the namespaced document store
2. The decoded Resource returned by every core operation
3. Request bodies and response shapes of the service facade
"""

import json
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict
from sqlmodel import Field, SQLModel

from resourcedb.codec import decode, decode_all

# =============================================================================
# Section 1: SQLModel Tables
# =============================================================================


class CollectionRow(SQLModel, table=True):
    """One row per topic (collection).

    Attributes:
        name: Escaped collection name (primary key)
        createdAt: ISO8601 UTC timestamp of creation
    """

    name: str = Field(primary_key=True)
    createdAt: str


class DocumentRow(SQLModel, table=True):
    """Persisted resource document.

    Attributes:
        id: Store-assigned identifier (primary key)
        collection: Escaped collection name (indexed)
        description: Escaped description
        keywords_json: JSON array of escaped keywords
        link: Sanitized link, never escaped
        createdAt: Caller-supplied numeric timestamp (indexed)
        isPinned: True while pinned, NULL otherwise
    """

    id: str = Field(primary_key=True)
    collection: str = Field(index=True)
    description: str
    keywords_json: str = "[]"
    link: str
    createdAt: float = Field(index=True)
    isPinned: Optional[bool] = None

    @property
    def keywords(self) -> list[str]:
        """Parse keywords from JSON."""
        return json.loads(self.keywords_json)

    def to_document(self) -> dict[str, Any]:
        """Render the row as a document, omitting absent fields."""
        created_at = self.createdAt
        if isinstance(created_at, float) and created_at.is_integer():
            created_at = int(created_at)
        doc: dict[str, Any] = {
            "id": self.id,
            "description": self.description,
            "keywords": self.keywords,
            "link": self.link,
            "createdAt": created_at,
        }
        if self.isPinned:
            doc["isPinned"] = True
        return doc


class MetaRow(SQLModel, table=True):
    """The per-collection Meta Document holding pinned ids.

    Attributes:
        collection: Escaped collection name (primary key)
        pins_json: JSON array of escaped resource ids
    """

    collection: str = Field(primary_key=True)
    pins_json: str = "[]"

    @property
    def pins(self) -> list[str]:
        """Parse pins from JSON."""
        return json.loads(self.pins_json)

    def to_document(self) -> dict[str, Any]:
        """Render as a marker document; ``meta`` is never user content."""
        return {"meta": True, "pins": self.pins}


# =============================================================================
# Section 2: Decoded Resource
# =============================================================================


class Resource(BaseModel):
    """One bookmarked link within a topic, with all text decoded.

    Attributes:
        id: Opaque identifier assigned by the store
        description: Sanitized description
        keywords: Sanitized keywords, at least one
        link: Sanitized URL
        createdAt: Caller-supplied numeric timestamp
        isPinned: True while pinned; absent (None) otherwise
    """

    model_config = ConfigDict(extra="ignore")

    id: str
    description: str
    keywords: list[str]
    link: str
    createdAt: int | float
    isPinned: Optional[bool] = None

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "Resource":
        """Build a Resource from a stored document, decoding escaped text."""
        return cls(
            id=document["id"],
            description=decode(document["description"]),
            keywords=decode_all(document["keywords"]),
            link=document["link"],
            createdAt=document["createdAt"],
            isPinned=True if document.get("isPinned") else None,
        )

    def to_dict(self) -> dict[str, Any]:
        """Dump to a plain dict without the ``isPinned`` key when unpinned."""
        return self.model_dump(exclude_none=True)


# =============================================================================
# Section 3: Request Bodies and Response Shapes
# =============================================================================


class ResourceBody(BaseModel):
    """Body of create/update/move requests.

    Values are kept loosely typed here; the repository owns the real
    validation and raises :class:`resourcedb.errors.ValidationError`.
    """

    model_config = ConfigDict(extra="ignore")

    description: Any = None
    keywords: Any = None
    link: Any = None
    createdAt: Any = None


class CollectionBody(BaseModel):
    """Body of a create-topic request."""

    model_config = ConfigDict(extra="ignore")

    collection: str


class TopicList(BaseModel):
    """``{namespaces}`` response."""

    namespaces: list[str]


class ResourcePage(BaseModel):
    """``{docs, namespaces}`` response."""

    docs: list[dict[str, Any]]
    namespaces: list[str]


class TopicCreated(BaseModel):
    """``{newNamespace, namespaces}`` response."""

    newNamespace: str
    namespaces: list[str]


class TopicRenamed(BaseModel):
    """``{updatedCollection, namespaces}`` response."""

    updatedCollection: str
    namespaces: list[str]


class TopicDropped(BaseModel):
    """``{dropped}`` response."""

    dropped: bool = True


__all__ = [
    "CollectionRow",
    "DocumentRow",
    "MetaRow",
    "Resource",
    "ResourceBody",
    "CollectionBody",
    "TopicList",
    "ResourcePage",
    "TopicCreated",
    "TopicRenamed",
    "TopicDropped",
]
