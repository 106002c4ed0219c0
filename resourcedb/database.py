"""SQLite-backed namespaced document store for resourcedb.

This module provides the concrete document store the core runs against:
- Connection management with WAL mode for file databases
- Collection create/list/rename/drop with document-store naming rules
- Per-document find/insert/update/delete, one commit per write
- Meta Document upsert/push/pull primitives for the pin index

Collections are a discriminator column rather than real tables, so a rename
or drop touches every row of one collection inside a single commit.

Example:
    >>> from resourcedb.database import DocumentStore
    >>>
    >>> store = DocumentStore()
    >>> store.initialize()
    >>> store.create_collection("python")
    'python'
    >>> doc = store.insert_one("python", {"description": "docs", ...})
    >>> store.add_to_meta_set("python", doc["id"])
    >>> store.close()
"""

import json
import uuid
from pathlib import Path
from typing import Any

from sqlalchemy import delete, literal_column, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, create_engine, select

from resourcedb.config import MEMORY_DATABASE, settings
from resourcedb.errors import ConflictError, NotFoundError, StoreError
from resourcedb.logging import logger
from resourcedb.models import CollectionRow, DocumentRow, MetaRow
from resourcedb.utils import utc_now_iso

# Fields a resource document may carry; anything else is rejected.
DOCUMENT_FIELDS = frozenset({"description", "keywords", "link", "createdAt", "isPinned"})
FORBIDDEN_NAME_CHARS = (".", "$", "\x00")


def check_collection_name(name: str) -> None:
    """Apply the naming rules of a collection-per-topic document store.

    Raises:
        StoreError: If the name is empty or contains ``.``, ``$`` or NUL.
            The ``.`` rule also keeps names out of the reserved ``system.``
            namespace.
    """
    if not name:
        raise StoreError("Invalid collection name: empty")
    if any(char in name for char in FORBIDDEN_NAME_CHARS):
        raise StoreError(f"Invalid collection name: {name!r}")


class DocumentStore:
    """Namespaced document store on top of SQLModel/SQLite.

    Features:
    - One SQLModel ``Session`` per store, opened by ``initialize()``
    - Every public write commits on its own (single-document atomicity)
    - SQLAlchemy failures are rolled back and surfaced as ``StoreError``

    Args:
        database_path: Path to SQLite database file (defaults to settings.database_path)

    Example:
        >>> store = DocumentStore(database_path=Path(":memory:"))
        >>> store.initialize()
        >>> store.list_collections()
        []
    """

    def __init__(self, database_path: Path | None = None):
        self.database_path = database_path or settings.database_path
        self.engine = None
        self.session: Session | None = None

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @property
    def is_memory(self) -> bool:
        return self.database_path == MEMORY_DATABASE

    def initialize(self) -> None:
        """Initialize database engine, create tables and open the session."""
        if not self.is_memory:
            self.database_path.parent.mkdir(parents=True, exist_ok=True)

        self.engine = create_engine(
            f"sqlite:///{self.database_path}",
            echo=False,
            connect_args={"check_same_thread": False},
        )

        SQLModel.metadata.create_all(
            self.engine,
            tables=[
                CollectionRow.__table__,  # type: ignore[attr-defined]
                DocumentRow.__table__,  # type: ignore[attr-defined]
                MetaRow.__table__,  # type: ignore[attr-defined]
            ],
        )

        if not self.is_memory:
            with self.engine.connect() as conn:
                conn.exec_driver_sql("PRAGMA journal_mode = WAL;")
                conn.exec_driver_sql("PRAGMA synchronous = NORMAL;")
                conn.commit()

        self.session = Session(self.engine)
        logger.info(f"✅ Document store initialized at {self.database_path}")

    def close(self) -> None:
        """Close database connection and cleanup resources."""
        if self.session is not None:
            self.session.close()
            self.session = None
        if self.engine is not None:
            self.engine.dispose()
            self.engine = None

    def __enter__(self) -> "DocumentStore":
        if self.session is None:
            self.initialize()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _session(self) -> Session:
        if self.session is None:
            raise RuntimeError("Document store not initialized")
        return self.session

    def _commit(self, action: str) -> None:
        session = self._session()
        try:
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error(f"Store write failed during {action}: {exc}")
            raise StoreError(f"Store write failed during {action}") from exc

    def _require_collection(self, name: str) -> None:
        if self._session().get(CollectionRow, name) is None:
            raise NotFoundError("No topic with that name.")

    # =========================================================================
    # Collection Operations
    # =========================================================================

    def list_collections(self) -> list[str]:
        """Return collection names in creation order."""
        stmt = select(CollectionRow.name).order_by(literal_column("rowid"))
        return list(self._session().exec(stmt).all())

    def has_collection(self, name: str) -> bool:
        return self._session().get(CollectionRow, name) is not None

    def create_collection(self, name: str) -> str:
        """Create an empty collection.

        Raises:
            ConflictError: If a collection with that name already exists
            StoreError: If the name breaks the store naming rules
        """
        check_collection_name(name)
        session = self._session()
        if session.get(CollectionRow, name) is not None:
            raise ConflictError()

        session.add(CollectionRow(name=name, createdAt=utc_now_iso()))
        self._commit("create_collection")
        logger.debug(f"Created collection {name!r}")
        return name

    def rename_collection(self, name: str, new_name: str) -> str:
        """Rename a collection together with its documents and Meta Document.

        Raises:
            NotFoundError: If ``name`` does not exist
            ConflictError: If ``new_name`` already exists
        """
        check_collection_name(new_name)
        session = self._session()
        if session.get(CollectionRow, name) is None:
            raise NotFoundError("No topic with that name.")
        if name == new_name or session.get(CollectionRow, new_name) is not None:
            raise ConflictError()

        for model, column in (
            (CollectionRow, CollectionRow.name),
            (DocumentRow, DocumentRow.collection),
            (MetaRow, MetaRow.collection),
        ):
            stmt = (
                update(model)
                .where(column == name)
                .values({column.key: new_name})  # type: ignore[union-attr]
                .execution_options(synchronize_session=False)
            )
            session.exec(stmt)  # type: ignore[call-overload]
        self._commit("rename_collection")
        session.expunge_all()
        logger.debug(f"Renamed collection {name!r} -> {new_name!r}")
        return new_name

    def drop_collection(self, name: str) -> bool:
        """Drop a collection, its documents and its Meta Document.

        Returns:
            True if dropped, False if it did not exist
        """
        session = self._session()
        if session.get(CollectionRow, name) is None:
            return False

        for model, column in (
            (DocumentRow, DocumentRow.collection),
            (MetaRow, MetaRow.collection),
            (CollectionRow, CollectionRow.name),
        ):
            stmt = delete(model).where(column == name).execution_options(synchronize_session=False)
            session.exec(stmt)  # type: ignore[call-overload]
        self._commit("drop_collection")
        session.expunge_all()
        logger.debug(f"Dropped collection {name!r}")
        return True

    # =========================================================================
    # Document Operations
    # =========================================================================

    def _get_row(self, name: str, doc_id: str) -> DocumentRow | None:
        row = self._session().get(DocumentRow, doc_id)
        if row is None or row.collection != name:
            return None
        return row

    def find(self, name: str, newest_first: bool = True) -> list[dict[str, Any]]:
        """Return all resource documents of a collection.

        Ties on ``createdAt`` keep insertion order.
        """
        order = DocumentRow.createdAt.desc() if newest_first else DocumentRow.createdAt.asc()  # type: ignore[attr-defined]
        stmt = (
            select(DocumentRow)
            .where(DocumentRow.collection == name)
            .order_by(order, literal_column("documentrow.rowid"))
        )
        return [row.to_document() for row in self._session().exec(stmt).all()]

    def find_one(self, name: str, doc_id: str) -> dict[str, Any] | None:
        row = self._get_row(name, doc_id)
        return row.to_document() if row else None

    def insert_one(self, name: str, document: dict[str, Any]) -> dict[str, Any]:
        """Insert a resource document and assign it a fresh id.

        Raises:
            NotFoundError: If the collection does not exist
        """
        unknown = set(document) - DOCUMENT_FIELDS
        if unknown:
            raise StoreError(f"Unknown document fields: {sorted(unknown)}")
        self._require_collection(name)

        row = DocumentRow(
            id=uuid.uuid4().hex,
            collection=name,
            description=document["description"],
            keywords_json=json.dumps(document["keywords"]),
            link=document["link"],
            createdAt=document["createdAt"],
            isPinned=True if document.get("isPinned") else None,
        )
        self._session().add(row)
        self._commit("insert_one")
        logger.debug(f"Inserted document {row.id} into {name!r}")
        return row.to_document()

    def find_one_and_update(
        self,
        name: str,
        doc_id: str,
        set_fields: dict[str, Any] | None = None,
        unset_fields: list[str] | None = None,
    ) -> dict[str, Any] | None:
        """Apply ``$set``/``$unset``-style changes to one document.

        Returns:
            The document after the update, or None if not found
        """
        set_fields = set_fields or {}
        unset_fields = unset_fields or []
        unknown = (set(set_fields) | set(unset_fields)) - DOCUMENT_FIELDS
        if unknown:
            raise StoreError(f"Unknown document fields: {sorted(unknown)}")

        row = self._get_row(name, doc_id)
        if row is None:
            return None

        for key, value in set_fields.items():
            if key == "keywords":
                row.keywords_json = json.dumps(value)
            else:
                setattr(row, key, value)
        for key in unset_fields:
            if key == "isPinned":
                row.isPinned = None
            else:
                raise StoreError(f"Field {key!r} cannot be unset")

        self._session().add(row)
        self._commit("find_one_and_update")
        return row.to_document()

    def find_one_and_delete(self, name: str, doc_id: str) -> dict[str, Any] | None:
        """Delete one document.

        Returns:
            The document as it was before deletion, or None if not found
        """
        row = self._get_row(name, doc_id)
        if row is None:
            return None

        document = row.to_document()
        self._session().delete(row)
        self._commit("find_one_and_delete")
        logger.debug(f"Deleted document {doc_id} from {name!r}")
        return document

    # =========================================================================
    # Meta Document Operations
    # =========================================================================

    def find_meta(self, name: str) -> dict[str, Any] | None:
        meta = self._session().get(MetaRow, name)
        return meta.to_document() if meta else None

    def _upsert_meta(self, name: str) -> MetaRow:
        self._require_collection(name)
        session = self._session()
        meta = session.get(MetaRow, name)
        if meta is None:
            meta = MetaRow(collection=name)
            session.add(meta)
        return meta

    def add_to_meta_set(self, name: str, value: str) -> None:
        """Upsert the Meta Document and add ``value`` to its pins once."""
        meta = self._upsert_meta(name)
        pins = meta.pins
        if value not in pins:
            pins.append(value)
            meta.pins_json = json.dumps(pins)
        self._commit("add_to_meta_set")

    def pull_from_meta(self, name: str, value: str) -> None:
        """Remove every occurrence of ``value`` from the pins."""
        meta = self._session().get(MetaRow, name)
        if meta is None:
            return
        pins = meta.pins
        if value not in pins:
            return
        meta.pins_json = json.dumps([pin for pin in pins if pin != value])
        self._commit("pull_from_meta")

    def replace_meta_pins(self, name: str, values: list[str]) -> None:
        meta = self._upsert_meta(name)
        meta.pins_json = json.dumps(list(dict.fromkeys(values)))
        self._commit("replace_meta_pins")


__all__ = ["DocumentStore", "check_collection_name"]
