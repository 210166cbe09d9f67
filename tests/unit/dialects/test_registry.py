"""
Unit tests for the dialect registry and the structural re-nesting helpers.
"""

import pytest

from pagebridge.core import registry
from pagebridge.dialects.base import (
    FALLBACK_CLASS,
    Dialect,
    DialectRegistry,
    ensure_columns,
    ensure_containers,
    ensure_rows,
    fallback_classes,
    with_loose_text,
)
from pagebridge.dialects.bootstrap import BootstrapConverter, BootstrapParser
from pagebridge.dialects.divi import DiviConverter, DiviParser
from pagebridge.errors import PageBridgeError, UnknownDialectError
from pagebridge.model import Component


class TestRegistry:
    def test_all_dialects_registered_in_priority_order(self):
        assert registry.names == ["elementor", "bricks", "divi", "avada", "wpbakery", "bootstrap"]

    def test_lookup_by_alias_and_case(self):
        assert registry.get("bs").name == "bootstrap"
        assert registry.get("HTML").name == "bootstrap"
        assert registry.get("  Divi ").name == "divi"
        assert "wpbakery" in registry
        assert "gutenberg" not in registry

    def test_unknown_name(self):
        with pytest.raises(UnknownDialectError) as excinfo:
            registry.get("gutenberg")
        assert excinfo.value.name == "gutenberg"
        assert excinfo.value.known == sorted(registry.names)
        assert isinstance(excinfo.value, ValueError)
        assert isinstance(excinfo.value, PageBridgeError)
        assert "gutenberg" in str(excinfo.value)

    def test_detect(self):
        assert registry.detect('[et_pb_section][/et_pb_section]').name == "divi"
        assert registry.detect('[fusion_builder_container][/fusion_builder_container]').name == "avada"
        assert registry.detect('[vc_row][vc_column][/vc_column][/vc_row]').name == "wpbakery"
        assert registry.detect('[row][column]x[/column][/row]').name == "wpbakery"
        assert registry.detect('<div class="container"></div>').name == "bootstrap"
        assert registry.detect([{"id": "a", "elType": "section", "elements": []}]).name == "elementor"
        assert registry.detect([{"id": "a", "name": "section", "children": []}]).name == "bricks"
        assert registry.detect("plain text") is None

    def test_priority_not_registration_order(self):
        local = DialectRegistry()
        local.register(Dialect("bootstrap", BootstrapParser, BootstrapConverter, "html", priority=60))
        local.register(Dialect("divi", DiviParser, DiviConverter, "bracket", priority=30))
        assert local.names == ["divi", "bootstrap"]

    def test_reregister_replaces(self):
        local = DialectRegistry()
        local.register(Dialect("divi", DiviParser, DiviConverter, "bracket"))
        local.register(Dialect("divi", DiviParser, DiviConverter, "bracket", aliases=("et",)))
        assert local.names == ["divi"]
        assert local.get("et").name == "divi"

    def test_fresh_instances(self):
        dialect = registry.get("elementor")
        assert dialect.converter() is not dialect.converter()
        assert dialect.parser() is not dialect.parser()


class TestReNesting:
    def test_ensure_rows_groups_runs(self):
        text = Component(type="text")
        row = Component(type="row")
        image = Component(type="image")
        result = ensure_rows([text, row, image])
        assert [c.type for c in result] == ["row", "row", "row"]
        assert result[0].children == [text]
        assert result[1] is row
        assert result[2].children == [image]
        assert result[0].metadata.extra["synthetic"] is True

    def test_ensure_columns_full_width(self):
        column = Component(type="column", attributes={"width": "50%"})
        heading = Component(type="heading")
        result = ensure_columns([column, heading])
        assert result[0] is column
        assert result[1].type == "column"
        assert result[1].attributes == {"width": "100%"}
        assert result[1].children == [heading]

    def test_ensure_containers_custom_keep(self):
        section = Component(type="section")
        result = ensure_containers([section], keep=("container", "section"))
        assert result == [section]

    def test_empty(self):
        assert ensure_rows([]) == []


class TestFallbackHelpers:
    def test_fallback_classes_name_the_type(self):
        assert fallback_classes(Component(type="pricing-table")) == f"{FALLBACK_CLASS} {FALLBACK_CLASS}-pricing-table"

    def test_fallback_classes_slug(self):
        assert fallback_classes(Component(type="Acme Widget!")) == f"{FALLBACK_CLASS} {FALLBACK_CLASS}-acme-widget"

    def test_with_loose_text_leads(self):
        child = Component(type="column")
        row = Component(type="row", content="Intro", children=[child])
        text, rest = with_loose_text(row)
        assert (text.type, text.content) == ("text", "Intro")
        assert text.metadata.extra == {"synthetic": True}
        assert rest is child

    def test_with_loose_text_without_content(self):
        child = Component(type="column")
        assert with_loose_text(Component(type="row", children=[child])) == [child]
