"""Service facade over the resource store.

``ResourceService`` wires the registry, repository, pin index and mover to a
single document store and exposes one method per request the bookmarking
front end makes. Methods take raw path parameters and request bodies and
return the response shapes from :mod:`resourcedb.models`, so a web layer only
has to route requests and turn :class:`resourcedb.errors.ResourceDBError`
into ``status_code`` + ``{"message": ...}``.

Example:
    >>> from resourcedb.service import open_service
    >>>
    >>> with open_service() as service:
    ...     service.create_collection({"collection": "python"})
    ...     doc = service.create_resource("python", {
    ...         "description": "Docs",
    ...         "keywords": ["reference"],
    ...         "link": "https://docs.python.org",
    ...         "createdAt": 1700000000000,
    ...     })
    ...     service.add_pin("python", doc["id"])
"""

import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from functools import wraps
from pathlib import Path
from typing import Any, ParamSpec, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from resourcedb.codec import decode
from resourcedb.database import DocumentStore
from resourcedb.errors import ResourceDBError, TopicNotFoundError, ValidationError
from resourcedb.interfaces import IDocumentStore, Sanitizer
from resourcedb.logging import clear_request_context, logger, set_request_context
from resourcedb.models import (
    CollectionBody,
    ResourceBody,
    ResourcePage,
    TopicCreated,
    TopicDropped,
    TopicList,
    TopicRenamed,
)
from resourcedb.mover import CrossTopicMover
from resourcedb.pins import PinIndex
from resourcedb.repository import ResourceRepository
from resourcedb.topics import TopicRegistry
from resourcedb.validation import clean_topic, sanitize

P = ParamSpec("P")
R = TypeVar("R")
B = TypeVar("B", bound=BaseModel)


def operation(func: Callable[P, R]) -> Callable[P, R]:
    """Run a service method inside a logging context.

    Sets ``request_id`` and ``operation`` for the duration of the call, logs
    every failure with its cause, and clears the context afterwards.
    """

    @wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        set_request_context(request_id=uuid.uuid4().hex[:12], operation=func.__name__)
        try:
            return func(*args, **kwargs)
        except ResourceDBError as exc:
            logger.bind(status_code=exc.status_code).warning(
                f"{func.__name__} failed: {type(exc).__name__}: {exc.message}"
            )
            raise
        finally:
            clear_request_context()

    return wrapper


def parse_body(model: type[B], body: Any) -> B:
    """Validate a request body, turning pydantic errors into ValidationError."""
    if isinstance(body, model):
        return body
    try:
        return model.model_validate(body or {})
    except PydanticValidationError as exc:
        raise ValidationError() from exc


class ResourceService:
    """All store operations behind one object.

    Args:
        store: Initialized document store
        clean: Markup-stripping function shared by every component
    """

    def __init__(self, store: IDocumentStore, clean: Sanitizer = sanitize):
        self.store = store
        self.pins = PinIndex(store, clean)
        self.topics = TopicRegistry(store, clean)
        self.resources = ResourceRepository(store, self.pins, clean)
        self.mover = CrossTopicMover(store, self.resources, self.pins, clean)
        self.clean = clean

    # =========================================================================
    # Topics
    # =========================================================================

    @operation
    def get_collections(self) -> TopicList:
        return TopicList(namespaces=self.topics.list_topics())

    @operation
    def create_collection(self, body: CollectionBody | dict[str, Any]) -> TopicCreated:
        payload = parse_body(CollectionBody, body)
        created, namespaces = self.topics.create_topic(payload.collection)
        return TopicCreated(newNamespace=created, namespaces=namespaces)

    @operation
    def rename_collection(self, from_topic: str, to_topic: str) -> TopicRenamed:
        renamed, namespaces = self.topics.rename_topic(from_topic, to_topic)
        return TopicRenamed(updatedCollection=renamed, namespaces=namespaces)

    @operation
    def drop_collection(self, topic: str) -> TopicDropped:
        """Drop a topic.

        Raises:
            TopicNotFoundError: If it did not exist (the 404 case)
        """
        if not self.topics.drop_topic(topic):
            raise TopicNotFoundError()
        return TopicDropped(dropped=True)

    # =========================================================================
    # Resources
    # =========================================================================

    @operation
    def get_resources(self, topic: str) -> ResourcePage:
        set_request_context(topic=topic)
        docs = [resource.to_dict() for resource in self.resources.list(topic)]
        return ResourcePage(docs=docs, namespaces=self.topics.list_topics())

    @operation
    def create_resource(self, topic: str, body: ResourceBody | dict[str, Any]) -> dict[str, Any]:
        set_request_context(topic=topic)
        payload = parse_body(ResourceBody, body)
        resource = self.resources.create(
            topic, payload.description, payload.keywords, payload.link, payload.createdAt
        )
        return resource.to_dict()

    @operation
    def update_resource(
        self, topic: str, doc_id: str, body: ResourceBody | dict[str, Any]
    ) -> dict[str, Any]:
        set_request_context(topic=topic)
        payload = parse_body(ResourceBody, body)
        resource = self.resources.update(
            topic, doc_id, payload.description, payload.keywords, payload.link
        )
        return resource.to_dict()

    @operation
    def add_pin(self, topic: str, doc_id: str) -> dict[str, Any]:
        set_request_context(topic=topic)
        return self.pins.pin(topic, doc_id).to_dict()

    @operation
    def remove_pin(self, topic: str, doc_id: str) -> dict[str, Any]:
        set_request_context(topic=topic)
        return self.pins.unpin(topic, doc_id).to_dict()

    @operation
    def move_resource(
        self,
        from_topic: str,
        to_topic: str,
        doc_id: str,
        body: ResourceBody | dict[str, Any],
    ) -> dict[str, Any]:
        set_request_context(topic=from_topic)
        payload = parse_body(ResourceBody, body)
        resource = self.mover.move(
            from_topic, to_topic, doc_id, payload.description, payload.keywords, payload.link
        )
        return resource.to_dict()

    @operation
    def delete_resource(self, topic: str, doc_id: str) -> dict[str, Any]:
        set_request_context(topic=topic)
        return self.resources.delete(topic, doc_id).to_dict()

    # =========================================================================
    # Operator tooling
    # =========================================================================

    @operation
    def pinned_ids(self, topic: str) -> list[str]:
        """Ids currently recorded in a topic's pin index."""
        return self.pins.pinned_ids(clean_topic(topic, self.clean))

    @operation
    def reconcile(self, topic: str | None = None) -> dict[str, tuple[list[str], list[str]]]:
        """Rebuild pin indexes from the resources' flags.

        Args:
            topic: Topic to repair; every topic when omitted

        Returns:
            Mapping of topic name to (ids added, ids removed)
        """
        if topic is None:
            collections = self.store.list_collections()
        else:
            collection = clean_topic(topic, self.clean)
            if not self.store.has_collection(collection):
                raise TopicNotFoundError("No topic with that name.")
            collections = [collection]
        return {decode(collection): self.pins.reconcile(collection) for collection in collections}


@contextmanager
def open_service(
    database_path: Path | None = None,
    clean: Sanitizer = sanitize,
) -> Iterator[ResourceService]:
    """Open a document store and yield a service bound to it.

    The store is closed when the block exits.
    """
    store = DocumentStore(database_path=database_path)
    store.initialize()
    try:
        yield ResourceService(store, clean)
    finally:
        store.close()


__all__ = ["ResourceService", "open_service", "operation", "parse_body"]
