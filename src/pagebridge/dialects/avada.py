"""
Avada (Fusion Builder) dialect.

Bracket-tag markup with the `fusion_` prefix, nested
fusion_builder_container > fusion_builder_row > fusion_builder_column.
Column widths are `type="1_2"` tokens.
"""

from __future__ import annotations

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
    fallback_classes,
    fallback_content,
    invert_types,
    registry,
)

TYPE_MAP = {
    "fusion_builder_container": "container",
    "fusion_builder_row": "row",
    "fusion_builder_row_inner": "row",
    "fusion_builder_column": "column",
    "fusion_builder_column_inner": "column",
    "fusion_text": "text",
    "fusion_title": "heading",
    "fusion_content_boxes": "card-group",
    "fusion_content_box": "card",
    "fusion_flip_boxes": "card-group",
    "fusion_flip_box": "card",
    "fusion_separator": "divider",
    "fusion_section_separator": "divider",
    "fusion_alert": "alert",
    "fusion_fontawesome": "icon",
    "fusion_highlight": "highlight",
    "fusion_dropcap": "dropcap",
    "fusion_popover": "popover",
    "fusion_tooltip": "tooltip",
    "fusion_imageframe": "image",
    "fusion_gallery": "gallery",
    "fusion_images": "image-group",
    "fusion_slider": "slider",
    "fusion_slide": "slide",
    "fusion_carousel": "slider",
    "fusion_video": "video",
    "fusion_youtube": "video",
    "fusion_vimeo": "video",
    "fusion_audio": "audio",
    "fusion_soundcloud": "audio",
    "fusion_button": "button",
    "fusion_modal": "modal",
    "fusion_modal_text_link": "link",
    "fusion_tabs": "tabs",
    "fusion_tab": "tab",
    "fusion_accordion": "accordion",
    "fusion_toggle": "accordion-item",
    "fusion_faq": "accordion",
    "fusion_counters_box": "counter-group",
    "fusion_counter_box": "counter",
    "fusion_counters_circle": "counter-group",
    "fusion_counter_circle": "counter",
    "fusion_progress": "progress",
    "fusion_checklist": "list",
    "fusion_menu_anchor": "anchor",
    "fusion_table": "table",
    "fusion_pricing_table": "pricing-table",
    "fusion_person": "team-member",
    "fusion_testimonials": "testimonial-group",
    "fusion_testimonial": "testimonial",
    "fusion_tagline_box": "cta",
    "fusion_social_links": "social-icons",
    "fusion_sharing": "share-buttons",
    "fusion_recent_posts": "blog",
    "fusion_blog": "blog",
    "fusion_portfolio": "portfolio",
    "fusion_post_cards": "post-grid",
    "fusion_form": "form",
    "fusion_map": "map",
    "fusion_code": "code",
    "fusion_chart": "chart",
}

NATIVE_TYPES = invert_types(TYPE_MAP)

SELF_CLOSING = frozenset({
    "fusion_separator", "fusion_section_separator", "fusion_fontawesome", "fusion_menu_anchor",
})

ATTRIBUTES = AttributeMap(
    "avada",
    {
        "link": "url",
        "target": "target",
        "title": "title",
        "color": "variant",
        "size": "size",
        "stretch": "full_width",
        "icon": "icon",
        "icon_position": "icon_position",
        "alt": "alt_text",
        "image": "image_url",
        "image_id": "image_id",
        "alignment": "alignment",
        "align": "alignment",
        "content_align": "alignment",
        "background_color": "background_color",
        "text_color": "text_color",
        "border_color": "border_color",
        "border_size": "border_width",
        "border_radius": "border_radius",
        "class": "css_class",
        "id": "element_id",
        "hide_on_mobile": "hide_on",
        "animation_type": "animation",
        "hundred_percent": "full_width",
        "hundred_percent_height": "full_height",
        "equal_height_columns": "equal_height",
    },
    width_key="type",
    true_tokens=("yes",),
    false_tokens=("no",),
    render_true="yes",
    render_false="no",
    style_codec=KeyedStyleCodec({
        "padding_top": ("padding-top", "plain"),
        "padding_right": ("padding-right", "plain"),
        "padding_bottom": ("padding-bottom", "plain"),
        "padding_left": ("padding-left", "plain"),
        "margin_top": ("margin-top", "plain"),
        "margin_bottom": ("margin-bottom", "plain"),
    }),
)

OVERRIDES = {
    "fusion_title": {"size": "level"},
    "fusion_imageframe": {"linktarget": "target"},
    "fusion_alert": {"type": "variant"},
    "fusion_tagline_box": {"button": "label"},
    "fusion_youtube": {"id": "video_id"},
    "fusion_vimeo": {"id": "video_id"},
    "fusion_progress": {"percentage": "value"},
    "fusion_counter_box": {"value": "value"},
}

CONTENT_FIELDS = {
    "fusion_content_box": ContentField(title="title"),
    "fusion_tagline_box": ContentField("description", title="title"),
}


class AvadaParser(BracketTagParser):
    type_map = TYPE_MAP
    attribute_map = ATTRIBUTES
    content_fields = CONTENT_FIELDS
    attribute_overrides = OVERRIDES
    prefix = "fusion_"
    self_closing = SELF_CLOSING

    @property
    def name(self) -> str:
        return "avada"

    def finish(self, component: Component, node: TagNode) -> None:
        if node.name == "fusion_imageframe":
            # The frame's body is the image URL
            if component.content:
                component.attributes["image_url"] = component.content
            component.content = ""
        elif node.name == "fusion_title":
            level = str(component.attributes.get("level", ""))
            if level.isdigit():
                component.attributes["level"] = int(level)


class AvadaConverter(BracketTagConverter):
    type_map = TYPE_MAP
    native_types = NATIVE_TYPES
    attribute_map = ATTRIBUTES
    content_fields = CONTENT_FIELDS
    attribute_overrides = OVERRIDES
    self_closing = SELF_CLOSING
    text_tag = "fusion_text"

    def __init__(self, config=None):
        super().__init__(config)
        self._column_depth = 0

    @property
    def name(self) -> str:
        return "avada"

    def prepare_roots(self, roots: list[Component]) -> list[Component]:
        return ensure_containers(roots)

    def build_container(self, component: Component) -> str:
        inner = self.loose_content(component) + self.convert_children(ensure_rows(component.children))
        return self.build_element(component, "fusion_builder_container", inner)

    def build_row(self, component: Component) -> str:
        native = "fusion_builder_row_inner" if self._column_depth else "fusion_builder_row"
        inner = self.row_inner(component)
        return self.build_element(component, native, inner)

    def build_column(self, component: Component) -> str:
        native = "fusion_builder_column_inner" if self._column_depth else "fusion_builder_column"
        self._column_depth += 1
        try:
            inner = self.loose_content(component) + self.convert_children(component.children)
        finally:
            self._column_depth -= 1
        attributes = self.native_attributes(component, native)
        attributes.setdefault("type", "1_1")
        return build_tag(native, attributes, inner)

    def build_image(self, component: Component) -> str:
        native = self.native_name(component)
        attributes = self.native_attributes(component, native)
        if native != "fusion_imageframe":
            return self.build_element(component, native)
        url = attributes.pop("image", None) or component.attributes.get("image_url", "")
        attributes.pop("image_url", None)
        return build_tag(native, attributes, url)

    def build_module(self, component: Component) -> str:
        return self.build_element(component)

    def get_fallback(self, component: Component) -> str:
        block = build_tag("fusion_text", {"class": fallback_classes(component)}, fallback_content(component))
        return block + self.convert_children(component.children)

    builders = {
        **dict.fromkeys(NATIVE_TYPES, build_module),
        "container": build_container,
        "section": build_container,
        "row": build_row,
        "column": build_column,
        "image": build_image,
    }


registry.register(Dialect(
    name="avada",
    priority=40,
    parser_class=AvadaParser,
    converter_class=AvadaConverter,
    kind="bracket",
    aliases=("fusion",),
    description="Avada Fusion Builder shortcodes (fusion_*)",
))
