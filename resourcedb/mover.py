"""Cross-topic move of a single resource.

The store has no multi-collection move, so a move is a delete from the
source followed by an insert into the destination, with the pin index of
both topics patched along the way. The resource comes out with a new id;
``createdAt`` and the pinned flag carry over, the other fields are replaced
by the values supplied with the move.
"""

from typing import Any

from resourcedb.errors import NotFoundError
from resourcedb.interfaces import IDocumentStore, Sanitizer
from resourcedb.logging import logger
from resourcedb.models import Resource
from resourcedb.pins import PinIndex, drift_guard
from resourcedb.repository import ResourceRepository
from resourcedb.validation import clean_fields, clean_id, clean_topic, sanitize


class CrossTopicMover:
    """Relocate resources between topics, preserving pin state.

    Args:
        store: Document store handed in by the caller
        repository: Used for same-topic moves (plain updates)
        pins: Pin index maintainer shared with the repository
        clean: Markup-stripping function applied to every text field
    """

    def __init__(
        self,
        store: IDocumentStore,
        repository: ResourceRepository | None = None,
        pins: PinIndex | None = None,
        clean: Sanitizer = sanitize,
    ):
        self.store = store
        self.clean = clean
        self.pins = pins or PinIndex(store, clean)
        self.repository = repository or ResourceRepository(store, self.pins, clean)

    def move(
        self,
        from_topic: str,
        to_topic: str,
        doc_id: str,
        description: Any,
        keywords: Any,
        link: Any,
    ) -> Resource:
        """Move a resource to another topic with new field values.

        Returns:
            The resource in its new topic (new id when the topic changed)

        Raises:
            ValidationError: If a topic name, the id or a field is invalid
            NotFoundError: If the resource or the destination topic is absent
        """
        source = clean_topic(from_topic, self.clean)
        target = clean_topic(to_topic, self.clean)
        lookup_id = clean_id(doc_id)
        fields = clean_fields(description, keywords, link, self.clean)

        if source == target:
            return self.repository.update(from_topic, doc_id, description, keywords, link)

        if not self.store.has_collection(target):
            raise NotFoundError("No topic with that name.")

        removed = self.store.find_one_and_delete(source, lookup_id)
        if removed is None:
            raise NotFoundError()
        pinned = bool(removed.get("isPinned"))

        with drift_guard("move", source, removed["id"]):
            if pinned:
                self.pins.pull(source, removed["id"])

            document: dict[str, Any] = {
                **fields.as_document(),
                "createdAt": removed["createdAt"],
            }
            if pinned:
                document["isPinned"] = True
            inserted = self.store.insert_one(target, document)

            if pinned:
                self.pins.push(target, inserted["id"])

        logger.info(f"Moved resource {removed['id']} -> {inserted['id']}")
        return Resource.from_document(inserted)


__all__ = ["CrossTopicMover"]
