"""Protocol interfaces for dependency injection.

The document store and the sanitizer are external collaborators. The core
only depends on the contracts below, so tests and alternative backends can
plug in any object with the right shape.

Example:
    >>> from resourcedb.interfaces import IDocumentStore
    >>> from resourcedb.database import DocumentStore
    >>> isinstance(DocumentStore(), IDocumentStore)
    True
"""

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

Sanitizer = Callable[[str], str]
"""Pure function removing all markup from a piece of text."""


@runtime_checkable
class IDocumentStore(Protocol):
    """Namespaced document store interface.

    Collection names and document values handed to the store are already
    escaped; the store never decodes anything. Every method is a single
    atomic write or read. Documents are plain dicts with an ``id`` key.
    """

    # -------------------------------------------------------------------------
    # Collection operations
    # -------------------------------------------------------------------------

    def list_collections(self) -> list[str]:
        """Return collection names in store-defined order."""
        ...

    def has_collection(self, name: str) -> bool:
        """Check whether a collection exists."""
        ...

    def create_collection(self, name: str) -> str:
        """Create an empty collection.

        Raises:
            ConflictError: If it already exists
            StoreError: If the name is not acceptable to the store
        """
        ...

    def rename_collection(self, name: str, new_name: str) -> str:
        """Rename a collection, keeping its documents and Meta Document.

        Raises:
            NotFoundError: If ``name`` does not exist
            ConflictError: If ``new_name`` already exists
        """
        ...

    def drop_collection(self, name: str) -> bool:
        """Drop a collection and everything in it; False when absent."""
        ...

    # -------------------------------------------------------------------------
    # Document operations
    # -------------------------------------------------------------------------

    def find(self, name: str, newest_first: bool = True) -> list[dict[str, Any]]:
        """Return every resource document, sorted by ``createdAt``."""
        ...

    def find_one(self, name: str, doc_id: str) -> dict[str, Any] | None:
        """Return one document or None."""
        ...

    def insert_one(self, name: str, document: dict[str, Any]) -> dict[str, Any]:
        """Insert a document and return it with its assigned ``id``."""
        ...

    def find_one_and_update(
        self,
        name: str,
        doc_id: str,
        set_fields: dict[str, Any] | None = None,
        unset_fields: list[str] | None = None,
    ) -> dict[str, Any] | None:
        """Update one document; return it after the update, or None."""
        ...

    def find_one_and_delete(self, name: str, doc_id: str) -> dict[str, Any] | None:
        """Delete one document; return it as it was, or None."""
        ...

    # -------------------------------------------------------------------------
    # Meta Document operations
    # -------------------------------------------------------------------------

    def find_meta(self, name: str) -> dict[str, Any] | None:
        """Return ``{"meta": True, "pins": [...]}`` or None."""
        ...

    def add_to_meta_set(self, name: str, value: str) -> None:
        """Upsert the Meta Document and add ``value`` to ``pins`` once."""
        ...

    def pull_from_meta(self, name: str, value: str) -> None:
        """Remove ``value`` from ``pins``; no-op when absent."""
        ...

    def replace_meta_pins(self, name: str, values: list[str]) -> None:
        """Upsert the Meta Document with exactly ``values``."""
        ...


__all__ = ["IDocumentStore", "Sanitizer"]
