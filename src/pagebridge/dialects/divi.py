"""
Divi Builder dialect.

Bracket-tag markup with the `et_pb_` prefix, strictly nested
section > row > column > module. Column widths are `type="1_2"` tokens.
"""

from __future__ import annotations

import html
import re

from ..attributes import AttributeMap, KeyedStyleCodec
from ..model import Component
from ..tokenizer import TagNode, build_tag
from .base import (
    BracketTagConverter,
    BracketTagParser,
    ContentField,
    Dialect,
    ensure_containers,
    ensure_rows,
    fallback_content,
    invert_types,
    registry,
)

TYPE_MAP = {
    "et_pb_section": "container",
    "et_pb_row": "row",
    "et_pb_row_inner": "row",
    "et_pb_column": "column",
    "et_pb_column_inner": "column",
    "et_pb_text": "text",
    "et_pb_image": "image",
    "et_pb_button": "button",
    "et_pb_blurb": "card",
    "et_pb_cta": "cta",
    "et_pb_accordion": "accordion",
    "et_pb_accordion_item": "accordion-item",
    "et_pb_toggle": "toggle",
    "et_pb_tabs": "tabs",
    "et_pb_tab": "tab",
    "et_pb_slider": "slider",
    "et_pb_slide": "slide",
    "et_pb_video": "video",
    "et_pb_audio": "audio",
    "et_pb_gallery": "gallery",
    "et_pb_map": "map",
    "et_pb_divider": "divider",
    "et_pb_contact_form": "form",
    "et_pb_contact_field": "input",
    "et_pb_search": "search",
    "et_pb_testimonial": "testimonial",
    "et_pb_team_member": "team-member",
    "et_pb_pricing_tables": "pricing-table",
    "et_pb_number_counter": "counter",
    "et_pb_circle_counter": "counter",
    "et_pb_counters": "counter-group",
    "et_pb_counter": "progress",
    "et_pb_countdown_timer": "countdown",
    "et_pb_post_slider": "slider",
    "et_pb_portfolio": "portfolio",
    "et_pb_blog": "blog",
    "et_pb_social_media_follow": "social-icons",
    "et_pb_code": "code",
    "et_pb_icon": "icon",
}

NATIVE_TYPES = invert_types(TYPE_MAP)

SELF_CLOSING = frozenset({"et_pb_image", "et_pb_button", "et_pb_divider", "et_pb_video", "et_pb_icon"})

ATTRIBUTES = AttributeMap(
    "divi",
    {
        "url": "url",
        "src": "image_url",
        "alt": "alt_text",
        "title": "title",
        "background_color": "background_color",
        "text_color": "text_color",
        "text_orientation": "alignment",
        "font_icon": "icon",
        "fullwidth": "full_width",
        "disabled_on": "hide_on",
        "admin_label": "admin_label",
        "module_class": "css_class",
        "module_id": "element_id",
        "custom_css": "custom_css",
        "animation_style": "animation",
    },
    width_key="type",
    true_tokens=("on",),
    false_tokens=("off",),
    render_true="on",
    render_false="off",
    new_window_key="url_new_window",
    style_codec=KeyedStyleCodec({
        "custom_margin": ("margin", "pipe"),
        "custom_padding": ("padding", "pipe"),
    }),
)

OVERRIDES = {
    "et_pb_button": {"button_url": "url", "button_bg_color": "background_color", "button_alignment": "alignment"},
    "et_pb_cta": {"button_url": "url", "button_text": "label"},
    "et_pb_blurb": {"image": "image_url"},
    "et_pb_video": {"src": "video_url", "image_src": "thumbnail_url"},
    "et_pb_team_member": {"name": "title", "image_url": "image_url"},
    "et_pb_number_counter": {"number": "value"},
    "et_pb_counter": {"percent": "value"},
}

CONTENT_FIELDS = {
    "et_pb_button": ContentField("button_text"),
    "et_pb_blurb": ContentField(title="title"),
    "et_pb_cta": ContentField(title="title"),
}

HEADING_PATTERN = re.compile(r"^\s*<h([1-6])[^>]*>(.*?)</h\1>\s*$", re.DOTALL | re.IGNORECASE)


class DiviParser(BracketTagParser):
    type_map = TYPE_MAP
    attribute_map = ATTRIBUTES
    content_fields = CONTENT_FIELDS
    attribute_overrides = OVERRIDES
    prefix = "et_pb_"
    self_closing = SELF_CLOSING

    @property
    def name(self) -> str:
        return "divi"

    def finish(self, component: Component, node: TagNode) -> None:
        if node.name == "et_pb_text":
            # A text module holding one heading element is a heading
            match = HEADING_PATTERN.match(component.content)
            if match and "<h" not in match.group(2).lower():
                component.type = "heading"
                component.category = "content"
                component.attributes.setdefault("level", int(match.group(1)))
                component.content = match.group(2).strip()
                component.metadata.extra["retyped"] = "heading"


class DiviConverter(BracketTagConverter):
    type_map = TYPE_MAP
    native_types = NATIVE_TYPES
    attribute_map = ATTRIBUTES
    content_fields = CONTENT_FIELDS
    attribute_overrides = OVERRIDES
    self_closing = SELF_CLOSING
    text_tag = "et_pb_text"

    def __init__(self, config=None):
        super().__init__(config)
        self._column_depth = 0

    @property
    def name(self) -> str:
        return "divi"

    def prepare_roots(self, roots: list[Component]) -> list[Component]:
        return ensure_containers(roots)

    def build_section(self, component: Component) -> str:
        inner = self.loose_content(component) + self.convert_children(ensure_rows(component.children))
        return self.build_element(component, "et_pb_section", inner)

    def build_row(self, component: Component) -> str:
        native = "et_pb_row_inner" if self._column_depth else "et_pb_row"
        inner = self.row_inner(component)
        return self.build_element(component, native, inner)

    def build_column(self, component: Component) -> str:
        native = "et_pb_column_inner" if self._column_depth else "et_pb_column"
        self._column_depth += 1
        try:
            inner = self.loose_content(component) + self.convert_children(component.children)
        finally:
            self._column_depth -= 1
        attributes = self.native_attributes(component, native)
        attributes.setdefault("type", "4_4")
        return build_tag(native, attributes, inner)

    def build_heading(self, component: Component) -> str:
        level = component.attributes.get("level") or 2
        text = component.content
        if not component.is_from_dialect(self.name):
            text = html.escape(text, quote=False)
        inner = f"<h{level}>{text}</h{level}>"
        attributes = self.native_attributes(component, "et_pb_text")
        attributes.pop("level", None)
        return build_tag("et_pb_text", attributes, inner)

    def build_module(self, component: Component) -> str:
        return self.build_element(component)

    def get_fallback(self, component: Component) -> str:
        block = build_tag(
            "et_pb_text",
            {"admin_label": f"Untranslated: {component.type}"},
            fallback_content(component),
        )
        return block + self.convert_children(component.children)

    builders = {
        **dict.fromkeys(NATIVE_TYPES, build_module),
        "container": build_section,
        "section": build_section,
        "row": build_row,
        "column": build_column,
        "heading": build_heading,
    }


registry.register(Dialect(
    name="divi",
    priority=30,
    parser_class=DiviParser,
    converter_class=DiviConverter,
    kind="bracket",
    aliases=("et", "elegant-themes"),
    description="Divi Builder shortcodes (et_pb_*)",
))
