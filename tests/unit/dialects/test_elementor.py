"""
Unit tests for the Elementor dialect.
"""

import json
import re

import pytest

from pagebridge.dialects.elementor import ElementorConverter, ElementorParser
from pagebridge.model import Component


@pytest.fixture
def document():
    return [{
        "id": "s1", "elType": "section", "settings": {"gap": "default"}, "isInner": False,
        "elements": [
            {"id": "c1", "elType": "column", "settings": {"_column_size": 50}, "elements": [
                {"id": "w1", "elType": "widget", "widgetType": "heading",
                 "settings": {"title": "Hello", "header_size": "h2"}, "elements": []},
            ]},
            {"id": "c2", "elType": "column", "settings": {"_column_size": 50}, "elements": [
                {"id": "w2", "elType": "widget", "widgetType": "button",
                 "settings": {"text": "Go", "link": {"url": "/go", "is_external": "on", "nofollow": ""}},
                 "elements": []},
            ]},
        ],
    }]


def parse(content):
    return ElementorParser().parse(content)


def widgets(tree):
    found = []
    for element in tree:
        if element["elType"] == "widget":
            found.append(element)
        found.extend(widgets(element.get("elements", [])))
    return found


class TestParse:
    def test_section_holds_one_row_of_columns(self, document):
        [container] = parse(document)
        assert container.type == "container"
        [row] = container.children
        assert row.type == "row"
        assert row.metadata.extra["synthetic"] is True
        assert [c.attributes["width"] for c in row.children] == ["50%", "50%"]

    def test_widgets(self, document):
        [container] = parse(json.dumps(document))
        left, right = container.children[0].children
        heading = left.children[0]
        assert heading.type == "heading"
        assert heading.content == "Hello"
        assert heading.attributes == {"level": 2}
        button = right.children[0]
        assert button.type == "button"
        assert button.content == "Go"
        assert button.attributes == {"url": "/go", "target": "_blank"}
        assert button.metadata.extra["element_id"] == "w2"

    def test_inner_section_is_row(self):
        doc = [{"id": "s", "elType": "section", "settings": {}, "elements": [
            {"id": "c", "elType": "column", "settings": {"_column_size": 100}, "elements": [
                {"id": "i", "elType": "section", "isInner": True, "settings": {}, "elements": []},
            ]},
        ]}]
        [container] = parse(doc)
        inner = container.children[0].children[0].children[0]
        assert inner.type == "row"
        assert inner.metadata.extra["retyped"] == "row"

    def test_tabs_repeater_becomes_children(self):
        doc = [{"id": "t", "elType": "widget", "widgetType": "tabs", "settings": {"tabs": [
            {"_id": "a", "tab_title": "One", "tab_content": "A"},
            {"_id": "b", "tab_title": "Two", "tab_content": "B"},
        ]}, "elements": []}]
        [tabs] = parse(doc)
        assert tabs.type == "tabs"
        assert [(t.type, t.attributes["title"], t.content) for t in tabs.children] == [
            ("tab", "One", "A"), ("tab", "Two", "B"),
        ]
        assert "tabs" not in tabs.attributes

    def test_export_wrapper_accepted(self, document):
        assert len(parse({"content": document})) == 1

    def test_invalid(self):
        assert parse("not json") == []
        assert parse([{"id": "x", "name": "section"}]) == []


class TestConvert:
    def test_same_dialect_preserves_settings(self, document):
        tree = ElementorConverter().build_tree(parse(document))
        [section] = tree
        assert section["elType"] == "section"
        assert section["settings"] == {"gap": "default"}
        assert [c["settings"] for c in section["elements"]] == [{"_column_size": 50}, {"_column_size": 50}]
        heading, button = widgets(tree)
        assert heading["settings"] == {"title": "Hello", "header_size": "h2"}
        assert button["settings"] == document[0]["elements"][1]["elements"][0]["settings"]

    def test_ids_are_fresh_hex(self, document):
        tree = ElementorConverter().build_tree(parse(document))
        ids = [tree[0]["id"], *(c["id"] for c in tree[0]["elements"]), *(w["id"] for w in widgets(tree))]
        assert all(re.fullmatch(r"[0-9a-f]{7}", i) for i in ids)
        assert len(set(ids)) == len(ids)

    def test_foreign_widget_wrapped_in_section_and_column(self):
        tree = ElementorConverter().build_tree(Component(type="heading", attributes={"level": 3}, content="T"))
        [section] = tree
        [column] = section["elements"]
        assert column["settings"] == {"_column_size": 100}
        [widget] = column["elements"]
        assert widget["widgetType"] == "heading"
        assert widget["settings"] == {"header_size": "h3", "title": "T"}

    def test_flex_container_kept(self):
        doc = [{"id": "k", "elType": "container", "settings": {"flex_direction": "row"}, "elements": [
            {"id": "w", "elType": "widget", "widgetType": "text-editor", "settings": {"editor": "<p>x</p>"}, "elements": []},
        ]}]
        [container] = ElementorConverter().build_tree(parse(doc))
        assert container["elType"] == "container"
        assert container["settings"] == {"flex_direction": "row"}
        assert container["elements"][0]["settings"] == {"editor": "<p>x</p>"}

    def test_tabs_items_rebuilt(self):
        items = [{"_id": "a", "tab_title": "One", "tab_content": "A"}]
        doc = [{"id": "t", "elType": "widget", "widgetType": "tabs", "settings": {"tabs": items}, "elements": []}]
        [widget] = widgets(ElementorConverter().build_tree(parse(doc)))
        assert widget["settings"]["tabs"] == items
        assert widget["elements"] == []

    def test_loose_column_content_becomes_text_editor(self):
        row = Component(type="row", children=[Component(type="column", attributes={"width": "50%"}, content="Loose")])
        [section] = ElementorConverter().build_tree(row)
        [column] = section["elements"]
        assert column["settings"]["_column_size"] == 50
        assert column["elements"][0]["widgetType"] == "text-editor"
        assert column["elements"][0]["settings"] == {"editor": "Loose"}

    def test_unmapped_layout_styles_become_private_settings(self):
        column = Component(type="column", styles={"min-height": "10px", "margin": "5px"})
        [section] = ElementorConverter().build_tree(column)
        settings = section["elements"][0]["settings"]
        assert settings["_min_height"] == "10px"
        assert settings["_margin"]["top"] == "5"

    def test_fallback(self):
        [section] = ElementorConverter().build_tree(Component(type="mystery", content="keep"))
        [widget] = section["elements"][0]["elements"]
        assert widget["widgetType"] == "text-editor"
        assert widget["settings"] == {"editor": "keep", "_css_classes": "pagebridge-fallback pagebridge-fallback-mystery"}

    def test_convert_is_json_text(self, document):
        text = ElementorConverter().convert(parse(document))
        assert json.loads(text)[0]["elType"] == "section"
