"""
Elementor dialect.

JSON element trees: `{id, elType, settings, elements, widgetType?, isInner?}`.
Classic documents nest section > column > widget, with inner sections for
nesting inside a column; flexbox documents use `container` elements that hold
widgets directly. Column widths are integer `_column_size` percentages.
"""

from __future__ import annotations

from typing import Any

from .. import css, jsontree
from ..attributes import AttributeMap, ElementorLinkCodec, ImageCodec, KeyedStyleCodec
from ..ids import HexIdSequence
from ..model import Component, Metadata, as_list
from .base import (
    ContentField,
    Dialect,
    JsonTreeConverter,
    JsonTreeParser,
    Repeater,
    ensure_columns,
    ensure_containers,
    ensure_rows,
    fallback_classes,
    fallback_content,
    invert_types,
    registry,
    synthetic,
    with_loose_text,
)

TYPE_MAP = {
    "section": "container",
    "container": "container",
    "column": "column",
    "heading": "heading",
    "text-editor": "text",
    "image": "image",
    "button": "button",
    "video": "video",
    "audio": "audio",
    "divider": "divider",
    "spacer": "spacer",
    "icon": "icon",
    "icon-box": "card",
    "image-box": "card",
    "call-to-action": "cta",
    "testimonial": "testimonial",
    "testimonial-carousel": "testimonial-group",
    "tabs": "tabs",
    "accordion": "accordion",
    "toggle": "accordion",
    "alert": "alert",
    "html": "html",
    "code-highlight": "code",
    "google_maps": "map",
    "image-gallery": "gallery",
    "image-carousel": "slider",
    "slides": "slider",
    "counter": "counter",
    "progress": "progress",
    "star-rating": "rating",
    "social-icons": "social-icons",
    "share-buttons": "share-buttons",
    "icon-list": "list",
    "blockquote": "blockquote",
    "form": "form",
    "search-form": "search",
    "posts": "blog",
    "portfolio": "portfolio",
    "price-table": "pricing-table",
    "countdown": "countdown",
    "nav-menu": "menu",
    "table-of-contents": "toc",
    "menu-anchor": "anchor",
}

NATIVE_TYPES = invert_types(TYPE_MAP)
LAYOUT_ELTYPES = frozenset({"section", "container", "column"})

REPEATERS = {
    "tabs": Repeater("tabs", "tab", "tab_title", "tab_content"),
    "accordion": Repeater("tabs", "accordion-item", "tab_title", "tab_content"),
    "toggle": Repeater("tabs", "accordion-item", "tab_title", "tab_content"),
}

CONTENT_FIELDS = {
    "heading": ContentField("title"),
    "text-editor": ContentField("editor"),
    "button": ContentField("text"),
    "icon-box": ContentField("description_text", title="title_text"),
    "image-box": ContentField("description_text", title="title_text"),
    "call-to-action": ContentField("description", title="title"),
    "testimonial": ContentField("testimonial_content"),
    "blockquote": ContentField("blockquote_content"),
    "alert": ContentField("alert_description"),
    "html": ContentField("html"),
    "code-highlight": ContentField("code"),
}

ATTRIBUTES = AttributeMap(
    "elementor",
    {
        "align": "alignment",
        "text_align": "alignment",
        "header_size": "level",
        "size": "size",
        "button_type": "variant",
        "alert_type": "variant",
        "alert_title": "title",
        "title_color": "text_color",
        "button_text_color": "text_color",
        "text_color": "text_color",
        "background_color": "background_color",
        "border_color": "border_color",
        "selected_icon": "icon",
        "icon": "icon",
        "image_size": "image_size",
        "youtube_url": "video_url",
        "gap": "gap",
        "height": "full_height",
        "layout": "layout",
        "content_width": "content_width",
        "_css_classes": "css_class",
        "_element_id": "element_id",
        "css_classes": "css_class",
        "_animation": "animation",
        "testimonial_name": "author",
        "testimonial_job": "job",
        "ending_number": "value",
        "percent": "value",
    },
    width_key="_column_size",
    true_tokens=("yes",),
    render_true="yes",
    render_false="",
    skip_private=True,
    link_keys=("link",),
    link_codec=ElementorLinkCodec(),
    image_keys=("image",),
    image_codec=ImageCodec(),
    dimension_objects=True,
    style_codec=KeyedStyleCodec({
        "_margin": ("margin", "elementor_box"),
        "_padding": ("padding", "elementor_box"),
        "_background_color": ("background-color", "plain"),
        "_border_radius": ("border-radius", "elementor_box"),
        "_z_index": ("z-index", "plain"),
        "typography_font_size": ("font-size", "size"),
        "typography_font_weight": ("font-weight", "plain"),
        "typography_font_family": ("font-family", "plain"),
    }),
)


class ElementorParser(JsonTreeParser):
    type_map = TYPE_MAP
    attribute_map = ATTRIBUTES
    content_fields = CONTENT_FIELDS
    repeaters = REPEATERS
    children_key = "elements"

    @property
    def name(self) -> str:
        return "elementor"

    def is_valid_content(self, content: Any) -> bool:
        return jsontree.is_valid_elementor(jsontree.load(content))

    def elements(self, content: Any) -> list[dict]:
        return jsontree.elementor_elements(jsontree.load(content)) or []

    def native_name(self, element: dict) -> str:
        if element.get("elType") == "widget":
            return element.get("widgetType") or "widget"
        return element.get("elType") or "unknown"

    def finish(self, component: Component, element: dict) -> None:
        if element.get("isInner"):
            component.metadata.extra["is_inner"] = True
        if element.get("elType") == "section":
            if element.get("isInner"):
                component.type = "row"
                component.category = "layout"
                component.metadata.extra["retyped"] = "row"
            else:
                # A classic section is one container holding one row of columns
                row = Component(
                    type="row",
                    children=component.children,
                    metadata=Metadata(source_dialect=self.name, extra={"synthetic": True}),
                )
                component.children = [row]
        elif component.type == "heading":
            level = str(component.attributes.get("level", ""))
            if level[:1] == "h" and level[1:].isdigit():
                component.attributes["level"] = int(level[1:])


class ElementorConverter(JsonTreeConverter):
    type_map = TYPE_MAP
    native_types = NATIVE_TYPES
    attribute_map = ATTRIBUTES
    content_fields = CONTENT_FIELDS
    repeaters = REPEATERS

    def __init__(self, config=None):
        super().__init__(config)
        self._column_depth = 0

    @property
    def name(self) -> str:
        return "elementor"

    def new_id_sequence(self) -> HexIdSequence:
        return HexIdSequence()

    def build_tree(self, components: Component | list[Component]) -> list[dict]:
        elements: list[dict] = []
        for component in ensure_containers(as_list(components)):
            elements.extend(self.convert_component(component))
        return elements

    def convert_children(self, children: list[Component]) -> list[dict]:
        elements: list[dict] = []
        for child in children:
            elements.extend(self.convert_component(child))
        return elements

    def element(self, el_type: str, settings: dict, children: list[dict], **extra: Any) -> dict:
        element = {"id": self.next_id(), "elType": el_type, "settings": settings, "elements": children}
        element.update(extra)
        return element

    def layout_settings(self, component: Component, native: str) -> dict[str, Any]:
        settings = self.native_attributes(component, native)
        # Properties without a dedicated key are written as private snake_case settings
        for prop, value in ATTRIBUTES.style_codec.unmapped(component.styles).items():
            if value:
                settings.setdefault("_" + css.convert_property_case(prop, "snake"), value)
        return settings

    def build_container(self, component: Component) -> list[dict]:
        if self.reuses_native(component) and component.metadata.native_tag == "container":
            settings = self.layout_settings(component, "container")
            children = self.convert_children(component.children)
            if component.content:
                children.insert(0, self.text_editor(component.content))
            return [self.element("container", settings, children, isInner=self._column_depth > 0)]
        sections = []
        # An empty container still emits one empty section
        for row in ensure_rows(with_loose_text(component)) or [synthetic("row", [])]:
            settings = self.layout_settings(component, "section")
            if not row.metadata.extra.get("synthetic"):
                settings.update(self.layout_settings(row, "section"))
            sections.append(self.build_section(row, settings, inner=self._column_depth > 0))
        return sections

    def build_row(self, component: Component) -> list[dict]:
        settings = self.layout_settings(component, "section")
        return [self.build_section(component, settings, inner=self._column_depth > 0)]

    def build_section(self, row: Component, settings: dict, inner: bool) -> dict:
        columns = self.convert_children(ensure_columns(with_loose_text(row)))
        return self.element("section", settings, columns, isInner=inner)

    def text_editor(self, content: str) -> dict:
        return self.element("widget", {"editor": content}, [], widgetType="text-editor")

    def build_column(self, component: Component) -> list[dict]:
        settings = self.layout_settings(component, "column")
        settings["_column_size"] = int(settings.get("_column_size") or 100)
        self._column_depth += 1
        try:
            children = self.convert_children(component.children)
        finally:
            self._column_depth -= 1
        if component.content:
            children.insert(0, self.text_editor(component.content))
        return [self.element("column", settings, children, isInner=self._column_depth > 0)]

    def build_widget(self, component: Component) -> list[dict]:
        native = self.native_name(component)
        settings = self.build_settings(component, native)
        level = settings.get("header_size")
        if isinstance(level, int):
            settings["header_size"] = f"h{level}"
        widget = self.element("widget", settings, [], widgetType=native)
        return [widget, *self.convert_children(self.element_children(component, native))]

    def get_fallback(self, component: Component) -> list[dict]:
        settings = {"editor": fallback_content(component), "_css_classes": fallback_classes(component)}
        widget = self.element("widget", settings, [], widgetType="text-editor")
        return [widget, *self.convert_children(component.children)]

    builders = {
        **dict.fromkeys((t for t in NATIVE_TYPES if t not in ("container", "column")), build_widget),
        "container": build_container,
        "section": build_container,
        "row": build_row,
        "column": build_column,
    }


registry.register(Dialect(
    name="elementor",
    priority=10,
    parser_class=ElementorParser,
    converter_class=ElementorConverter,
    kind="json",
    description="Elementor element JSON (elType/widgetType/settings/elements)",
))
