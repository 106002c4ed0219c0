"""Tests for the SQLite-backed document store."""

from pathlib import Path

import pytest

from resourcedb.database import DocumentStore, check_collection_name
from resourcedb.errors import ConflictError, NotFoundError, StoreError
from resourcedb.interfaces import IDocumentStore


def make_document(**overrides):
    document = {
        "description": "docs",
        "keywords": ["py"],
        "link": "https://docs.python.org",
        "createdAt": 1,
    }
    document.update(overrides)
    return document


class TestLifecycle:
    """Tests for store setup and teardown."""

    def test_satisfies_protocol(self, store):
        assert isinstance(store, IDocumentStore)

    def test_uninitialized_store_raises(self):
        db = DocumentStore(database_path=Path(":memory:"))
        with pytest.raises(RuntimeError):
            db.list_collections()

    def test_context_manager(self):
        with DocumentStore(database_path=Path(":memory:")) as db:
            assert db.list_collections() == []
        assert db.session is None

    def test_file_store_persists(self, tmp_path):
        path = tmp_path / "nested" / "resources.db"
        with DocumentStore(database_path=path) as db:
            db.create_collection("python")
        assert path.exists()
        with DocumentStore(database_path=path) as db:
            assert db.list_collections() == ["python"]


class TestCollections:
    """Tests for collection management."""

    @pytest.mark.parametrize("name", ["", "a.b", "$x", "nul\x00"])
    def test_naming_rules(self, name):
        with pytest.raises(StoreError):
            check_collection_name(name)

    def test_reserved_system_namespace_rejected(self, store):
        with pytest.raises(StoreError):
            check_collection_name("system.users")
        with pytest.raises(StoreError):
            store.create_collection("system.indexes")
        assert store.list_collections() == []

    def test_system_prefix_without_dot_allowed(self, store):
        store.create_collection("systems")
        assert store.list_collections() == ["systems"]

    def test_create_and_list_in_order(self, store):
        store.create_collection("b")
        store.create_collection("a")
        assert store.list_collections() == ["b", "a"]
        assert store.has_collection("a")

    def test_create_duplicate(self, store):
        store.create_collection("a")
        with pytest.raises(ConflictError):
            store.create_collection("a")

    def test_create_rejects_reserved_characters(self, store):
        with pytest.raises(StoreError):
            store.create_collection("node.js")

    def test_rename_moves_documents_and_meta(self, store):
        store.create_collection("old")
        doc = store.insert_one("old", make_document())
        store.add_to_meta_set("old", doc["id"])

        assert store.rename_collection("old", "new") == "new"

        assert store.list_collections() == ["new"]
        assert store.find_one("new", doc["id"]) is not None
        assert store.find("old") == []
        assert store.find_meta("new")["pins"] == [doc["id"]]
        assert store.find_meta("old") is None

    def test_rename_missing(self, store):
        with pytest.raises(NotFoundError):
            store.rename_collection("missing", "new")

    def test_rename_onto_existing(self, store):
        store.create_collection("a")
        store.create_collection("b")
        with pytest.raises(ConflictError):
            store.rename_collection("a", "b")
        with pytest.raises(ConflictError):
            store.rename_collection("a", "a")

    def test_drop(self, store):
        store.create_collection("a")
        doc = store.insert_one("a", make_document())
        store.add_to_meta_set("a", doc["id"])

        assert store.drop_collection("a") is True
        assert store.list_collections() == []
        assert store.find_one("a", doc["id"]) is None
        assert store.find_meta("a") is None

    def test_drop_missing(self, store):
        assert store.drop_collection("missing") is False


class TestDocuments:
    """Tests for per-document operations."""

    def test_insert_assigns_id(self, store):
        store.create_collection("a")
        doc = store.insert_one("a", make_document())
        assert doc["id"]
        assert doc["createdAt"] == 1
        assert "isPinned" not in doc

    def test_insert_into_missing_collection(self, store):
        with pytest.raises(NotFoundError):
            store.insert_one("missing", make_document())

    def test_insert_unknown_field(self, store):
        store.create_collection("a")
        with pytest.raises(StoreError):
            store.insert_one("a", make_document(meta=True))

    def test_find_orders_newest_first_with_stable_ties(self, store):
        store.create_collection("a")
        first = store.insert_one("a", make_document(createdAt=5))
        second = store.insert_one("a", make_document(createdAt=5))
        newest = store.insert_one("a", make_document(createdAt=9))

        ids = [doc["id"] for doc in store.find("a")]
        assert ids == [newest["id"], first["id"], second["id"]]

        ids = [doc["id"] for doc in store.find("a", newest_first=False)]
        assert ids == [first["id"], second["id"], newest["id"]]

    def test_float_created_at_preserved(self, store):
        store.create_collection("a")
        doc = store.insert_one("a", make_document(createdAt=1.25))
        assert store.find_one("a", doc["id"])["createdAt"] == 1.25

    def test_find_one_wrong_collection(self, store):
        store.create_collection("a")
        store.create_collection("b")
        doc = store.insert_one("a", make_document())
        assert store.find_one("b", doc["id"]) is None

    def test_update_set_and_unset(self, store):
        store.create_collection("a")
        doc = store.insert_one("a", make_document())

        updated = store.find_one_and_update(
            "a", doc["id"], set_fields={"isPinned": True, "keywords": ["x", "y"]}
        )
        assert updated["isPinned"] is True
        assert updated["keywords"] == ["x", "y"]

        updated = store.find_one_and_update("a", doc["id"], unset_fields=["isPinned"])
        assert "isPinned" not in updated

    def test_update_missing(self, store):
        store.create_collection("a")
        assert store.find_one_and_update("a", "nope", set_fields={"link": "x"}) is None

    def test_unset_other_field_rejected(self, store):
        store.create_collection("a")
        doc = store.insert_one("a", make_document())
        with pytest.raises(StoreError):
            store.find_one_and_update("a", doc["id"], unset_fields=["description"])

    def test_delete_returns_prior_document(self, store):
        store.create_collection("a")
        doc = store.insert_one("a", make_document(isPinned=True))
        removed = store.find_one_and_delete("a", doc["id"])
        assert removed == doc
        assert store.find_one_and_delete("a", doc["id"]) is None


class TestMetaDocument:
    """Tests for the pin-set primitives."""

    def test_add_is_set_like(self, store):
        store.create_collection("a")
        store.add_to_meta_set("a", "x")
        store.add_to_meta_set("a", "x")
        store.add_to_meta_set("a", "y")
        assert store.find_meta("a") == {"meta": True, "pins": ["x", "y"]}

    def test_add_requires_collection(self, store):
        with pytest.raises(NotFoundError):
            store.add_to_meta_set("missing", "x")

    def test_pull_idempotent(self, store):
        store.create_collection("a")
        store.pull_from_meta("a", "x")
        assert store.find_meta("a") is None
        store.add_to_meta_set("a", "x")
        store.pull_from_meta("a", "x")
        store.pull_from_meta("a", "x")
        assert store.find_meta("a")["pins"] == []

    def test_meta_not_listed_as_resource(self, store):
        store.create_collection("a")
        store.add_to_meta_set("a", "x")
        assert store.find("a") == []

    def test_replace_dedupes(self, store):
        store.create_collection("a")
        store.replace_meta_pins("a", ["x", "y", "x"])
        assert store.find_meta("a")["pins"] == ["x", "y"]
