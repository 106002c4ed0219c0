"""Resource repository: CRUD of resources within one topic.

Every value crossing the store boundary goes through :mod:`resourcedb.validation`
on the way in and :meth:`Resource.from_document` on the way out, so callers
deal in plain text while the store only ever sees escaped values.

Example:
    >>> from resourcedb.repository import ResourceRepository
    >>>
    >>> repo = ResourceRepository(store)
    >>> resource = repo.create("python", "Docs", ["reference"], "https://docs.python.org", 1700000000000)
    >>> repo.update("python", resource.id, "Python docs", ["reference"], "https://docs.python.org/3/")
    >>> [r.description for r in repo.list("python")]
    ['Python docs']
    >>> repo.delete("python", resource.id)
"""

from typing import Any

from resourcedb.errors import NotFoundError
from resourcedb.interfaces import IDocumentStore, Sanitizer
from resourcedb.logging import logger
from resourcedb.models import Resource
from resourcedb.pins import PinIndex, drift_guard
from resourcedb.validation import (
    check_created_at,
    clean_fields,
    clean_id,
    clean_topic,
    sanitize,
)


class ResourceRepository:
    """CRUD operations for resources of any topic.

    Args:
        store: Document store handed in by the caller
        pins: Pin index maintainer (created over ``store`` if omitted)
        clean: Markup-stripping function applied to every text field
    """

    def __init__(
        self,
        store: IDocumentStore,
        pins: PinIndex | None = None,
        clean: Sanitizer = sanitize,
    ):
        self.store = store
        self.clean = clean
        self.pins = pins or PinIndex(store, clean)

    def _collection(self, topic: str) -> str:
        return clean_topic(topic, self.clean)

    def _require_topic(self, collection: str) -> None:
        if not self.store.has_collection(collection):
            raise NotFoundError("No topic with that name.")

    def list(self, topic: str) -> list[Resource]:
        """List a topic's resources, newest ``createdAt`` first.

        A topic that does not exist lists as empty.
        """
        return [Resource.from_document(doc) for doc in self.store.find(self._collection(topic))]

    def get(self, topic: str, doc_id: str) -> Resource:
        """Fetch one resource.

        Raises:
            NotFoundError: If the resource does not exist in ``topic``
        """
        document = self.store.find_one(self._collection(topic), clean_id(doc_id))
        if document is None:
            raise NotFoundError()
        return Resource.from_document(document)

    def create(
        self,
        topic: str,
        description: Any,
        keywords: Any,
        link: Any,
        created_at: Any,
    ) -> Resource:
        """Validate and insert a new, unpinned resource.

        Raises:
            ValidationError: If any field is missing or malformed
            NotFoundError: If the topic does not exist
        """
        collection = self._collection(topic)
        created_at = check_created_at(created_at)
        fields = clean_fields(description, keywords, link, self.clean)
        self._require_topic(collection)

        document = self.store.insert_one(
            collection, {**fields.as_document(), "createdAt": created_at}
        )
        logger.debug(f"Created resource {document['id']}")
        return Resource.from_document(document)

    def update(
        self,
        topic: str,
        doc_id: str,
        description: Any,
        keywords: Any,
        link: Any,
    ) -> Resource:
        """Replace description, keywords and link of one resource.

        ``id``, ``createdAt`` and ``isPinned`` are left untouched.

        Raises:
            ValidationError: If any field is missing or malformed
            NotFoundError: If the resource does not exist in ``topic``
        """
        collection = self._collection(topic)
        lookup_id = clean_id(doc_id)
        fields = clean_fields(description, keywords, link, self.clean)

        document = self.store.find_one_and_update(
            collection, lookup_id, set_fields=fields.as_document()
        )
        if document is None:
            raise NotFoundError()
        logger.debug(f"Updated resource {document['id']}")
        return Resource.from_document(document)

    def delete(self, topic: str, doc_id: str) -> Resource:
        """Delete one resource and drop its id from the topic's pins.

        Returns:
            The resource as it was before deletion

        Raises:
            NotFoundError: If the resource does not exist in ``topic``
        """
        collection = self._collection(topic)
        lookup_id = clean_id(doc_id)

        document = self.store.find_one_and_delete(collection, lookup_id)
        if document is None:
            raise NotFoundError()
        with drift_guard("delete", collection, document["id"]):
            self.pins.pull(collection, document["id"])
        logger.debug(f"Deleted resource {document['id']}")
        return Resource.from_document(document)


__all__ = ["ResourceRepository"]
