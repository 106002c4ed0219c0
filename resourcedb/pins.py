"""Pin index maintenance.

Each topic carries one Meta Document whose ``pins`` list mirrors the ids of
the resources flagged ``isPinned``. Pinning is a two-step protocol:

1. flip the flag on the resource document
2. add or remove the id in the Meta Document

The steps are separate single-document writes. If the second one fails the
first is kept and the index drifts until :meth:`PinIndex.reconcile` runs.
"""

from collections.abc import Iterator
from contextlib import contextmanager

from resourcedb.codec import decode, decode_all, encode, encode_all
from resourcedb.errors import NotFoundError, ResourceDBError
from resourcedb.interfaces import IDocumentStore, Sanitizer
from resourcedb.logging import logger
from resourcedb.models import Resource
from resourcedb.validation import clean_id, clean_topic, sanitize


@contextmanager
def drift_guard(step: str, collection: str, doc_id: str) -> Iterator[None]:
    """Log second-step failures of a two-step sequence, then re-raise."""
    try:
        yield
    except ResourceDBError:
        logger.opt(exception=True).error(
            f"{step} failed for resource {doc_id} in topic {decode(collection)!r}; "
            "pin index may have drifted"
        )
        raise


class PinIndex:
    """Keep each topic's pinned-id set in step with the resources' flags.

    Args:
        store: Document store handed in by the caller
        clean: Markup-stripping function applied to topic names
    """

    def __init__(self, store: IDocumentStore, clean: Sanitizer = sanitize):
        self.store = store
        self.clean = clean

    def _flag(self, topic: str, doc_id: str, pinned: bool) -> tuple[str, dict]:
        collection = clean_topic(topic, self.clean)
        lookup_id = clean_id(doc_id)
        if pinned:
            document = self.store.find_one_and_update(collection, lookup_id, set_fields={"isPinned": True})
        else:
            document = self.store.find_one_and_update(collection, lookup_id, unset_fields=["isPinned"])
        if document is None:
            raise NotFoundError()
        return collection, document

    def pin(self, topic: str, doc_id: str) -> Resource:
        """Flag a resource as pinned and add its id to the topic's pins.

        Raises:
            NotFoundError: If the resource does not exist in ``topic``
        """
        collection, document = self._flag(topic, doc_id, pinned=True)
        with drift_guard("pin", collection, document["id"]):
            self.push(collection, document["id"])
        logger.info(f"Pinned resource {document['id']}")
        return Resource.from_document(document)

    def unpin(self, topic: str, doc_id: str) -> Resource:
        """Clear a resource's pinned flag and remove its id from the pins.

        Unpinning a resource that is not pinned succeeds and changes nothing.

        Raises:
            NotFoundError: If the resource does not exist in ``topic``
        """
        collection, document = self._flag(topic, doc_id, pinned=False)
        with drift_guard("unpin", collection, document["id"]):
            self.pull(collection, document["id"])
        logger.info(f"Unpinned resource {document['id']}")
        return Resource.from_document(document)

    # -------------------------------------------------------------------------
    # Primitives on escaped collection names and store ids
    # -------------------------------------------------------------------------

    def push(self, collection: str, doc_id: str) -> None:
        """Add ``doc_id`` to the pins of ``collection`` (upsert, no duplicates)."""
        self.store.add_to_meta_set(collection, encode(doc_id))
        logger.debug(f"Pushed {doc_id} to pins of {decode(collection)!r}")

    def pull(self, collection: str, doc_id: str) -> None:
        """Remove ``doc_id`` from the pins of ``collection``; idempotent."""
        self.store.pull_from_meta(collection, encode(doc_id))
        logger.debug(f"Pulled {doc_id} from pins of {decode(collection)!r}")

    def pinned_ids(self, collection: str) -> list[str]:
        meta = self.store.find_meta(collection)
        return decode_all(meta["pins"]) if meta else []

    def reconcile(self, collection: str) -> tuple[list[str], list[str]]:
        """Rebuild the pins of ``collection`` from the resources' flags.

        This is the operator remedy for drift left behind by a failed second
        step; regular operations never call it.

        Args:
            collection: Escaped collection name

        Returns:
            Tuple of (ids added to the index, ids removed from it)
        """
        flagged = [doc["id"] for doc in self.store.find(collection) if doc.get("isPinned")]
        indexed = self.pinned_ids(collection)

        added = [doc_id for doc_id in flagged if doc_id not in indexed]
        removed = [doc_id for doc_id in indexed if doc_id not in flagged]
        duplicated = len(indexed) != len(set(indexed))
        if added or removed or duplicated:
            self.store.replace_meta_pins(collection, encode_all(flagged))
            logger.warning(
                f"Reconciled pins of {decode(collection)!r}: "
                f"{len(added)} added, {len(removed)} removed"
            )
        return added, removed


__all__ = ["PinIndex", "drift_guard"]
