"""
UAT: Translation Properties

End-to-end acceptance checks over the public dispatch API.

Acceptance criteria:
- parse -> convert on one dialect reproduces the input structure
- every converter emits something for every known type, never raises
- Bootstrap navbars, tables and other generic components survive a same-dialect pass
- snapping width tokens survive token -> percentage -> token unchanged
- same-name nested tags nest instead of pairing the first close
- foreign element names become `unknown` and keep their content on the way out
- a node re-converted into its own dialect scores at least as high as a foreign one
- the two-column WPBakery page lands in Elementor as two 50% columns
"""

import json

from pagebridge.core import convert, parse, registry, translate, translate_detailed
from pagebridge.model import CATEGORIES, Component, Metadata
from pagebridge.tokenizer import scan
from pagebridge.units import native_tokens, percentage_to_dialect_token, width_to_percentage

TWO_COLUMNS = '[row][column width="1/2"]Hello[/column][column width="1/2"]World[/column][/row]'

PAGES = {
    "divi": (
        "[et_pb_section][et_pb_row]"
        '[et_pb_column type="1_2"][et_pb_text]<h2>Title</h2>[/et_pb_text][/et_pb_column]'
        '[et_pb_column type="1_2"][et_pb_button button_url="/go" button_text="Go" url_new_window="on"][/et_pb_column]'
        "[/et_pb_row][/et_pb_section]"
    ),
    "avada": (
        "[fusion_builder_container][fusion_builder_row]"
        '[fusion_builder_column type="1_3"][fusion_title size="3"]Title[/fusion_title][/fusion_builder_column]'
        '[fusion_builder_column type="2_3"][fusion_text]<p>Body</p>[/fusion_text][/fusion_builder_column]'
        "[/fusion_builder_row][/fusion_builder_container]"
    ),
    "wpbakery": (
        '[vc_row full_width="stretch_row"]'
        '[vc_column width="1/3"][vc_custom_heading text="Title" font_container="tag:h2"][/vc_column]'
        '[vc_column width="2/3"][vc_btn title="Shop" link="url:%2Fshop|target:_blank"][/vc_column]'
        "[/vc_row]"
    ),
    "elementor": json.dumps([{
        "id": "s1", "elType": "section", "settings": {}, "elements": [
            {"id": "c1", "elType": "column", "settings": {"_column_size": 100}, "elements": [
                {"id": "w1", "elType": "widget", "widgetType": "heading",
                 "settings": {"title": "Title", "header_size": "h1"}, "elements": []},
                {"id": "w2", "elType": "widget", "widgetType": "tabs", "settings": {"tabs": [
                    {"_id": "t1", "tab_title": "One", "tab_content": "First"},
                ]}, "elements": []},
            ]},
        ],
    }]),
    "bricks": json.dumps([
        {"id": "s1", "name": "section", "parent": 0, "children": ["b1"], "settings": {}},
        {"id": "b1", "name": "block", "parent": "s1", "children": ["h1", "x1"], "settings": {"_width": "100%"}},
        {"id": "h1", "name": "heading", "parent": "b1", "children": [], "settings": {"text": "Title", "tag": "h3"}},
        {"id": "x1", "name": "button", "parent": "b1", "children": [], "settings": {
            "text": "Go", "link": {"type": "external", "url": "/go", "newTab": True},
        }},
    ]),
    "bootstrap": (
        '<div class="container"><div class="row">'
        '<div class="col-md-4"><h2>Title</h2></div>'
        '<div class="col-md-8"><a class="btn btn-success" href="/go">Go</a></div>'
        "</div></div>"
    ),
}

SNAPPING = ["divi", "avada", "wpbakery", "bootstrap"]


def shape(component):
    """Structural signature: type, attributes, text and children, ids ignored."""
    return (
        component.type,
        sorted(component.attributes.items(), key=lambda item: item[0]),
        component.content.strip(),
        [shape(child) for child in component.children],
    )


def test_same_dialect_round_trip():
    """convert(d, parse(d, X)) reads back to the same structure as X."""
    for dialect, page in PAGES.items():
        original = parse(dialect, page)
        assert original, f"{dialect}: sample did not parse"
        output = convert(dialect, original)
        again = parse(dialect, output)
        assert [shape(c) for c in again] == [shape(c) for c in original], dialect


def test_bracket_round_trip_is_textual():
    """Bracket dialects and Bootstrap reproduce their input text exactly."""
    for dialect in ("divi", "avada", "wpbakery", "bootstrap"):
        assert convert(dialect, parse(dialect, PAGES[dialect])) == PAGES[dialect], dialect


def test_total_coverage():
    """Every converter handles every known type, with and without children."""
    types = sorted({t for group in CATEGORIES.values() for t in group} | {"unknown", "product"})
    for dialect in registry.names:
        for type_ in types:
            leaf = Component(type=type_, content="payload")
            parent = Component(type=type_, content="payload", children=[Component(type="text", content="child")])
            for component in (leaf, parent):
                output = convert(dialect, component)
                assert output, f"{dialect}/{type_}: empty output"


def test_bootstrap_generic_components_round_trip():
    """Navbars, tables, progress bars and breadcrumbs come back as the same markup."""
    page = (
        '<div class="container">'
        '<nav class="navbar navbar-expand-lg"><a class="navbar-brand" href="/">Site</a></nav>'
        '<table class="table table-striped"><tr><th>Plan</th></tr><tr><td>Pro</td></tr></table>'
        '<div class="progress"><div class="progress-bar" role="progressbar">40%</div></div>'
        '<ol class="breadcrumb"><li class="breadcrumb-item"><a href="/">Home</a></li></ol>'
        '<ul class="pagination"><li class="page-item"><a class="page-link" href="?p=2">2</a></li></ul>'
        "</div>"
    )
    result = translate_detailed("bootstrap", "bootstrap", page)
    assert result.output == page
    assert result.warnings == []
    assert "pagebridge-fallback" not in result.output


def test_fallback_keeps_children():
    """A type with no native equivalent still carries its subtree."""
    for dialect in registry.names:
        mystery = Component(type="mystery", content="payload", children=[Component(type="text", content="child")])
        output = convert(dialect, mystery)
        assert "payload" in output, dialect
        assert "child" in output, dialect


def test_width_token_idempotence():
    """Native token -> percentage -> native token is the identity."""
    for dialect in SNAPPING:
        tokens = native_tokens(dialect)
        assert tokens
        for token in tokens:
            assert percentage_to_dialect_token(width_to_percentage(token, dialect), dialect) == token


def test_nested_same_name_tags():
    """[a][a]inner[/a][/a] nests; the first close pairs with the inner open."""
    result = scan("[a][a]inner[/a][/a]")
    [outer] = result.nodes
    [inner] = outer.children
    assert (outer.name, inner.name) == ("a", "a")
    assert inner.text == "inner"
    assert outer.text == ""
    assert result.warnings == []


def test_unknown_element_fallback():
    """Foreign element names parse to `unknown` and their content survives every target."""
    foreign = {
        "wpbakery": "[vc_row][vc_column][vc_acme_widget]keep me[/vc_acme_widget][/vc_column][/vc_row]",
        "divi": "[et_pb_section][et_pb_acme_widget]keep me[/et_pb_acme_widget][/et_pb_section]",
        "avada": "[fusion_builder_container][fusion_acme_widget]keep me[/fusion_acme_widget][/fusion_builder_container]",
    }
    for source, content in foreign.items():
        components = parse(source, content)
        unknown = [c for root in components for c in root.depth_first() if c.type == "unknown"]
        assert len(unknown) == 1, source
        assert unknown[0].content == "keep me"
        for target in registry.names:
            assert "keep me" in translate(source, target, content), f"{source} -> {target}"


def test_confidence_monotonicity():
    """Same-dialect provenance never scores below foreign provenance."""
    for dialect in registry.names:
        converter = registry.get(dialect).converter()
        for type_ in ("text", "heading", "column", "tabs", "unknown"):
            own = Component(type=type_, metadata=Metadata(source_dialect=dialect))
            other = Component(type=type_, metadata=Metadata(source_dialect="somewhere-else"))
            assert converter.confidence(own) >= converter.confidence(other), f"{dialect}/{type_}"


def test_two_column_page_to_elementor():
    """WPBakery two-column page -> Elementor: leaves Hello/World, columns at 50."""
    tree = json.loads(translate("wpbakery", "elementor", TWO_COLUMNS))
    [section] = tree
    columns = section["elements"]
    assert [c["elType"] for c in columns] == ["column", "column"]
    assert [c["settings"]["_column_size"] for c in columns] == [50, 50]

    leaves = []

    def walk(elements):
        for element in elements:
            if element["elements"]:
                walk(element["elements"])
            else:
                leaves.append(element)

    walk(tree)
    assert [leaf["settings"]["editor"] for leaf in leaves] == ["Hello", "World"]

    components = parse("elementor", json.dumps(tree))
    texts = [c.content for root in components for c in root.depth_first() if not c.children]
    assert texts == ["Hello", "World"]
