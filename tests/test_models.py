"""Unit tests for data models."""

from resourcedb.codec import encode, encode_all
from resourcedb.models import DocumentRow, MetaRow, Resource, ResourceBody


class TestDocumentRow:
    """Tests for the persisted document row."""

    def test_to_document_omits_unpinned_flag(self):
        row = DocumentRow(
            id="abc",
            collection="python",
            description="d",
            keywords_json='["a", "b"]',
            link="https://x.org",
            createdAt=5.0,
        )
        document = row.to_document()

        assert document == {
            "id": "abc",
            "description": "d",
            "keywords": ["a", "b"],
            "link": "https://x.org",
            "createdAt": 5,
        }
        assert isinstance(document["createdAt"], int)

    def test_to_document_pinned(self):
        row = DocumentRow(
            id="abc",
            collection="python",
            description="d",
            link="https://x.org",
            createdAt=1.5,
            isPinned=True,
        )
        document = row.to_document()
        assert document["isPinned"] is True
        assert document["createdAt"] == 1.5
        assert document["keywords"] == []


class TestMetaRow:
    def test_meta_document_shape(self):
        meta = MetaRow(collection="python", pins_json='["x"]')
        assert meta.to_document() == {"meta": True, "pins": ["x"]}


class TestResource:
    """Tests for the decoded Resource model."""

    def test_from_document_decodes_text(self):
        resource = Resource.from_document(
            {
                "id": "abc",
                "description": encode("v3.12 costs $0"),
                "keywords": encode_all(["node.js"]),
                "link": "https://x.org/a.b",
                "createdAt": 1,
            }
        )
        assert resource.description == "v3.12 costs $0"
        assert resource.keywords == ["node.js"]
        assert resource.link == "https://x.org/a.b"

    def test_to_dict_without_pin(self):
        resource = Resource(
            id="abc", description="d", keywords=["k"], link="https://x.org", createdAt=1
        )
        assert "isPinned" not in resource.to_dict()

    def test_to_dict_with_pin(self):
        resource = Resource(
            id="abc",
            description="d",
            keywords=["k"],
            link="https://x.org",
            createdAt=1,
            isPinned=True,
        )
        assert resource.to_dict()["isPinned"] is True


class TestResourceBody:
    def test_unknown_fields_ignored(self):
        body = ResourceBody.model_validate({"description": "d", "$set": {"x": 1}})
        assert body.description == "d"
        assert body.keywords is None
