"""Topic registry: create, list, rename and drop resource groupings.

A topic is a collection in the document store whose name is the escaped,
sanitized form of what the user typed. Names are decoded on the way out so
callers only ever see their own text.
"""

from resourcedb.codec import decode
from resourcedb.errors import NotFoundError
from resourcedb.interfaces import IDocumentStore, Sanitizer
from resourcedb.logging import logger
from resourcedb.validation import clean_topic, sanitize


class TopicRegistry:
    """Manage topics on top of a document store.

    Args:
        store: Document store handed in by the caller
        clean: Markup-stripping function applied to every name

    Example:
        >>> registry = TopicRegistry(store)
        >>> registry.create_topic("node.js")
        ('node.js', ['node.js'])
        >>> registry.rename_topic("node.js", "deno")
        ('deno', ['deno'])
        >>> registry.drop_topic("deno")
        True
    """

    def __init__(self, store: IDocumentStore, clean: Sanitizer = sanitize):
        self.store = store
        self.clean = clean

    def canonical(self, name: str) -> str:
        """Return the escaped store name for a user-supplied topic name."""
        return clean_topic(name, self.clean)

    def list_topics(self) -> list[str]:
        """List all topics, decoded, in store order."""
        return [decode(name) for name in self.store.list_collections()]

    def exists(self, name: str) -> bool:
        return self.store.has_collection(self.canonical(name))

    def create_topic(self, name: str) -> tuple[str, list[str]]:
        """Create an empty topic.

        Returns:
            Tuple of (canonical decoded name, all topics)

        Raises:
            ValidationError: If the name is empty or starts with ``$``
            ConflictError: If the topic already exists
        """
        created = decode(self.store.create_collection(self.canonical(name)))
        logger.info(f"Created topic {created!r}")
        return created, self.list_topics()

    def rename_topic(self, name: str, new_name: str) -> tuple[str, list[str]]:
        """Rename a topic, keeping its resources and pin index.

        Returns:
            Tuple of (canonical decoded new name, all topics)

        Raises:
            ValidationError: If either name is empty or starts with ``$``
            NotFoundError: If ``name`` does not exist
            ConflictError: If ``new_name`` is taken
        """
        source = self.canonical(name)
        target = self.canonical(new_name)
        if not self.store.has_collection(source):
            raise NotFoundError("No topic with that name.")
        renamed = decode(self.store.rename_collection(source, target))
        logger.info(f"Renamed topic {decode(source)!r} to {renamed!r}")
        return renamed, self.list_topics()

    def drop_topic(self, name: str) -> bool:
        """Drop a topic with all its resources and its pin index.

        Returns:
            True if dropped, False if no such topic existed
        """
        dropped = self.store.drop_collection(self.canonical(name))
        if dropped:
            logger.info(f"Dropped topic {self.clean(name)!r}")
        else:
            logger.debug(f"Topic {name!r} not found, nothing dropped")
        return dropped


__all__ = ["TopicRegistry"]
