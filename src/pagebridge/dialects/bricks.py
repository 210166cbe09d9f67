"""
Bricks Builder dialect.

A flat JSON list of elements linked by id: `{id, name, parent, children,
settings}` where `children` lists child ids. Exports wrap the list as
`{"content": [...]}`; nested documents (children as element dicts) are
accepted on input. Layout is section > container > block, and widths are
`_width` percentage strings.
"""

from __future__ import annotations

from typing import Any

from .. import jsontree
from ..attributes import AttributeMap, BricksLinkCodec, ImageCodec, KeyedStyleCodec
from ..ids import PrefixedIdSequence
from ..model import Component, as_list
from .base import (
    ContentField,
    Dialect,
    JsonTreeConverter,
    JsonTreeParser,
    Repeater,
    fallback_classes,
    fallback_content,
    invert_types,
    registry,
)

TYPE_MAP = {
    "section": "container",
    "container": "row",
    "block": "column",
    "div": "column",
    "heading": "heading",
    "text": "text",
    "text-basic": "text",
    "image": "image",
    "button": "button",
    "video": "video",
    "audio": "audio",
    "divider": "divider",
    "icon": "icon",
    "icon-box": "card",
    "tabs": "tabs",
    "accordion": "accordion",
    "alert": "alert",
    "code": "code",
    "map": "map",
    "image-gallery": "gallery",
    "carousel": "slider",
    "slider": "slider",
    "counter": "counter",
    "progress-bar": "progress",
    "rating": "rating",
    "social-icons": "social-icons",
    "list": "list",
    "testimonials": "testimonial-group",
    "team-members": "team-member",
    "form": "form",
    "search": "search",
    "posts": "blog",
    "pricing-tables": "pricing-table",
    "countdown": "countdown",
    "nav-menu": "menu",
    "pagination": "pagination",
    "breadcrumbs": "breadcrumb",
}

NATIVE_TYPES = invert_types(TYPE_MAP)
LAYOUT_NAMES = frozenset({"section", "container", "block", "div"})

REPEATERS = {
    "tabs": Repeater("tabs", "tab", "title", "content"),
    "accordion": Repeater("accordions", "accordion-item", "title", "content"),
}

CONTENT_FIELDS = {
    "heading": ContentField("text"),
    "text": ContentField("text"),
    "text-basic": ContentField("text"),
    "button": ContentField("text"),
    "icon-box": ContentField("content"),
    "alert": ContentField("content"),
    "code": ContentField("code"),
}

ATTRIBUTES = AttributeMap(
    "bricks",
    {
        "tag": "level",
        "style": "variant",
        "size": "size",
        "icon": "icon",
        "type": "variant",
        "circle": "circle",
        "_cssClasses": "css_class",
        "_cssId": "element_id",
    },
    width_key="_width",
    skip_private=True,
    link_keys=("link",),
    link_codec=BricksLinkCodec(),
    image_keys=("image",),
    image_codec=ImageCodec(),
    style_codec=KeyedStyleCodec({
        "_margin": ("margin", "bricks_box"),
        "_padding": ("padding", "bricks_box"),
        "_background.color.hex": ("background-color", "plain"),
        "_typography.color.hex": ("color", "plain"),
        "_typography.font-size": ("font-size", "plain"),
        "_typography.font-weight": ("font-weight", "plain"),
        "_typography.text-align": ("text-align", "plain"),
    }),
)


class BricksParser(JsonTreeParser):
    type_map = TYPE_MAP
    attribute_map = ATTRIBUTES
    content_fields = CONTENT_FIELDS
    repeaters = REPEATERS
    children_key = "children"

    @property
    def name(self) -> str:
        return "bricks"

    def is_valid_content(self, content: Any) -> bool:
        return jsontree.is_valid_bricks(jsontree.load(content))

    def elements(self, content: Any) -> list[dict]:
        elements = jsontree.bricks_elements(jsontree.load(content)) or []
        if jsontree.is_flat_bricks(elements):
            return jsontree.nest_flat(elements)
        return elements

    def native_name(self, element: dict) -> str:
        return element.get("name") or "unknown"

    def finish(self, component: Component, element: dict) -> None:
        if element.get("label"):
            component.metadata.extra["label"] = element["label"]
        if component.type == "heading":
            level = str(component.attributes.get("level", ""))
            if level[:1] == "h" and level[1:].isdigit():
                component.attributes["level"] = int(level[1:])


class BricksConverter(JsonTreeConverter):
    type_map = TYPE_MAP
    native_types = NATIVE_TYPES
    attribute_map = ATTRIBUTES
    content_fields = CONTENT_FIELDS
    repeaters = REPEATERS

    @property
    def name(self) -> str:
        return "bricks"

    def new_id_sequence(self) -> PrefixedIdSequence:
        return PrefixedIdSequence()

    def build_tree(self, components: Component | list[Component]) -> list[dict]:
        roots: list[dict] = []
        for component in as_list(components):
            roots.extend(self.convert_component(component))
        return jsontree.flatten_tree(roots)

    def convert_children(self, children: list[Component]) -> list[dict]:
        elements: list[dict] = []
        for child in children:
            elements.extend(self.convert_component(child))
        return elements

    def element(self, name: str, settings: dict, children: list[dict]) -> dict:
        return {"id": self.next_id(), "name": name, "parent": 0, "children": children, "settings": settings}

    def build_settings(self, component: Component, native: str) -> dict[str, Any]:
        settings = super().build_settings(component, native)
        level = settings.get("tag")
        if isinstance(level, int):
            settings["tag"] = f"h{level}"
        return settings

    def build_layout(self, component: Component) -> list[dict]:
        native = self.native_name(component)
        settings = self.build_settings(component, native)
        if component.type == "row" and not self.reuses_native(component):
            settings.setdefault("_direction", "row")
        children = self.convert_children(component.children)
        if component.content:
            text = self.element("text", {"text": component.content}, [])
            children.insert(0, text)
        return [self.element(native, settings, children)]

    def build_widget(self, component: Component) -> list[dict]:
        native = self.native_name(component)
        widget = self.element(native, self.build_settings(component, native), [])
        return [widget, *self.convert_children(self.element_children(component, native))]

    def get_fallback(self, component: Component) -> list[dict]:
        settings = {"text": fallback_content(component), "_cssClasses": fallback_classes(component)}
        return [self.element("text", settings, []), *self.convert_children(component.children)]

    builders = {
        **dict.fromkeys(NATIVE_TYPES, build_widget),
        "container": build_layout,
        "row": build_layout,
        "column": build_layout,
    }


registry.register(Dialect(
    name="bricks",
    priority=20,
    parser_class=BricksParser,
    converter_class=BricksConverter,
    kind="json",
    description="Bricks Builder element JSON (flat id-linked list)",
))
