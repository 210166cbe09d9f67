"""
Contract tests for the canonical Component tree.

Every dialect parser produces these nodes and every converter consumes them,
so the invariants here hold regardless of dialect.
"""

import pytest

from pagebridge.model import (
    CANONICAL_ATTRIBUTES,
    Component,
    ContentShape,
    Metadata,
    as_list,
    category_for,
    content_shape,
    iter_forest,
    join_title_body,
    split_title_body,
)


class TestComponentCreation:
    def test_category_derived_from_type(self):
        assert Component(type="heading").category == "content"
        assert Component(type="column").category == "layout"
        assert Component(type="accordion-item").category == "interactive"

    def test_unknown_type_is_general(self):
        c = Component(type="mystery-widget")
        assert c.category == "general"

    def test_empty_type_becomes_unknown(self):
        c = Component(type="")
        assert c.type == "unknown"
        assert c.category == "general"

    def test_explicit_category_kept(self):
        assert Component(type="text", category="custom").category == "custom"

    def test_ids_are_unique(self):
        ids = {Component(type="text").id for _ in range(50)}
        assert len(ids) == 50

    def test_id_format(self):
        assert Component(type="text").id.startswith("pb_")

    def test_id_is_immutable(self):
        c = Component(type="text")
        with pytest.raises(AttributeError):
            c.id = "other"


class TestTraversal:
    def _tree(self):
        root = Component(type="container")
        row = root.add_child(Component(type="row"))
        left = row.add_child(Component(type="column", content="L"))
        right = row.add_child(Component(type="column", content="R"))
        left.add_child(Component(type="heading", content="Title"))
        return root, row, left, right

    def test_add_child_returns_child(self):
        parent = Component(type="row")
        child = Component(type="column")
        assert parent.add_child(child) is child
        assert parent.children == [child]
        assert parent.has_children

    def test_depth_first_order(self):
        root, row, left, right = self._tree()
        types = [c.type for c in root.depth_first()]
        assert types == ["container", "row", "column", "heading", "column"]

    def test_breadth_first_order(self):
        root, row, left, right = self._tree()
        types = [c.type for c in root.breadth_first()]
        assert types == ["container", "row", "column", "column", "heading"]

    def test_count_nodes(self):
        root, *_ = self._tree()
        assert root.count_nodes() == 5

    def test_iter_forest(self):
        a = Component(type="text")
        b = Component(type="row", children=[Component(type="column")])
        assert [c.type for c in iter_forest([a, b])] == ["text", "row", "column"]

    def test_as_list(self):
        c = Component(type="text")
        assert as_list(c) == [c]
        assert as_list((c,)) == [c]


class TestValidity:
    def test_valid_tree(self):
        root = Component(type="row", children=[Component(type="column")])
        assert root.is_valid()

    def test_unknown_descendant_invalidates(self):
        root = Component(type="row", children=[Component(type="column", children=[Component(type="unknown")])])
        assert not root.is_valid()


class TestProvenance:
    def test_is_from_dialect(self):
        c = Component(type="text", metadata=Metadata(source_dialect="divi"))
        assert c.is_from_dialect("divi")
        assert c.is_from_dialect("DIVI")
        assert not c.is_from_dialect("avada")
        assert c.source_dialect == "divi"

    def test_extra_attributes_are_pass_through_keys(self):
        c = Component(type="button", attributes={"url": "/x", "data_track": "1"})
        assert "url" in CANONICAL_ATTRIBUTES
        assert c.extra_attributes() == {"data_track": "1"}


class TestSerialization:
    def test_to_dict_shape(self):
        c = Component(type="text", content="hi", attributes={"css_class": "a"})
        data = c.to_dict()
        assert data["type"] == "text"
        assert data["category"] == "content"
        assert data["content"] == "hi"
        assert data["children"] == []
        assert data["metadata"]["source_dialect"] is None

    def test_json_restores_tree_with_fresh_ids(self):
        root = Component(
            type="row",
            children=[Component(type="column", attributes={"width": "50%"}, content="A")],
            metadata=Metadata(source_dialect="wpbakery", native_tag="vc_row"),
        )
        restored = Component.from_json(root.to_json())
        assert restored is not None
        assert restored.type == "row"
        assert restored.children[0].attributes == {"width": "50%"}
        assert restored.metadata.native_tag == "vc_row"
        assert restored.id != root.id
        assert restored.metadata.extra["restored_id"] == root.id

    def test_from_json_malformed_returns_none(self):
        assert Component.from_json("{not json") is None
        assert Component.from_json("[1, 2]") is None

    def test_duplicate_is_deep_with_fresh_ids(self):
        root = Component(type="row", attributes={"gap": "10"}, children=[Component(type="column")])
        copy = root.duplicate()
        copy.attributes["gap"] = "20"
        copy.children[0].content = "changed"
        assert root.attributes["gap"] == "10"
        assert root.children[0].content == ""
        assert copy.id != root.id
        assert copy.children[0].id != root.children[0].id


class TestContentShape:
    def test_declared_shapes(self):
        assert content_shape("card") is ContentShape.TITLE_BODY
        assert content_shape("cta") is ContentShape.TITLE_BODY
        assert content_shape("column") is ContentShape.NONE
        assert content_shape("text") is ContentShape.SINGLE

    def test_split_on_first_blank_line(self):
        assert split_title_body("Title\n\nBody\n\nMore") == ("Title", "Body\n\nMore")

    def test_split_without_separator_is_all_title(self):
        assert split_title_body("Only") == ("Only", "")

    def test_join_drops_separator_for_empty_half(self):
        assert join_title_body("T", "B") == "T\n\nB"
        assert join_title_body("T", "") == "T"
        assert join_title_body("", "B") == "B"

    def test_category_for_static_table(self):
        assert category_for("pricing-table") == "data"
        assert category_for("navbar") == "navigation"
        assert category_for("unknown") == "general"
