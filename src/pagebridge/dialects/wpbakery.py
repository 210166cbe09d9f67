"""
WPBakery Page Builder dialect.

Bracket-tag markup. Elements carry the `vc_` prefix, but the prefix is
optional on lookup (`[row][column]` reads as `vc_row`/`vc_column`), and the
WooCommerce shortcodes WPBakery pages embed carry none. Layout is
vc_row > vc_column > element, with vc_row_inner/vc_column_inner for nesting
and an optional vc_section around rows. Widths are fractions (`width="1/2"`).
"""

from __future__ import annotations

import re
from typing import Any

from ..attributes import AttributeMap, RuleBlockStyleCodec, VcLinkCodec
from ..ids import TimestampIdSequence
from ..model import Component, category_for
from ..tokenizer import TagNode, build_tag
from .base import (
    BracketTagConverter,
    BracketTagParser,
    ContentField,
    Dialect,
    ensure_rows,
    fallback_classes,
    fallback_content,
    invert_types,
    registry,
)

# vc_tta_* precede the legacy vc_accordion/vc_tabs so they win canonical -> native
TYPE_MAP = {
    "vc_section": "container",
    "vc_row": "row",
    "vc_row_inner": "row",
    "vc_column": "column",
    "vc_column_inner": "column",
    "vc_column_text": "text",
    "vc_custom_heading": "heading",
    "vc_separator": "divider",
    "vc_text_separator": "divider",
    "vc_zigzag": "divider",
    "vc_message": "alert",
    "vc_cta": "cta",
    "vc_btn": "button",
    "vc_button": "button",
    "vc_cta_button": "button",
    "vc_empty_space": "spacer",
    "vc_single_image": "image",
    "vc_gallery": "gallery",
    "vc_media_grid": "gallery",
    "vc_masonry_grid": "gallery",
    "vc_masonry_media_grid": "gallery",
    "vc_flickr": "gallery",
    "vc_images_carousel": "slider",
    "vc_posts_slider": "slider",
    "vc_carousel": "slider",
    "vc_video": "video",
    "vc_gmaps": "map",
    "vc_tta_accordion": "accordion",
    "vc_tta_tabs": "tabs",
    "vc_tta_tour": "tabs",
    "vc_tta_section": "tab",
    "vc_accordion": "accordion",
    "vc_accordion_tab": "accordion-item",
    "vc_tabs": "tabs",
    "vc_tour": "tabs",
    "vc_tab": "tab",
    "vc_toggle": "toggle",
    "vc_basic_grid": "grid",
    "vc_posts_grid": "post-grid",
    "vc_pie": "chart",
    "vc_line_chart": "chart",
    "vc_round_chart": "chart",
    "vc_progress_bar": "progress",
    "vc_icon": "icon",
    "vc_raw_html": "html",
    "vc_raw_js": "code",
    "vc_wp_search": "search",
    "vc_wp_text": "text",
    "vc_wp_posts": "blog",
    "vc_wp_categories": "list",
    "vc_facebook": "share-buttons",
    "vc_tweetmeme": "share-buttons",
    "vc_pinterest": "share-buttons",
    # WooCommerce
    "product": "product",
    "products": "product-grid",
    "product_page": "product",
    "product_category": "product-grid",
    "product_categories": "product-grid",
    "add_to_cart": "button",
}

NATIVE_TYPES = {**invert_types(TYPE_MAP), "accordion-item": "vc_tta_section"}

SELF_CLOSING = frozenset({
    "vc_separator", "vc_empty_space", "vc_icon", "vc_single_image", "vc_btn",
    "vc_custom_heading", "vc_gmaps", "vc_video", "vc_text_separator",
    "vc_progress_bar", "vc_pie",
    # WooCommerce shortcodes never wrap content
    "product", "products", "product_page", "product_category", "product_categories", "add_to_cart",
})

ATTRIBUTES = AttributeMap(
    "wpbakery",
    {
        "title": "title",
        "target": "target",
        "size": "size",
        "color": "variant",
        "style": "style",
        "icon_right": "icon_right",
        "button_block": "full_width",
        "img_size": "image_size",
        "image": "image_id",
        "custom_src": "image_url",
        "alt": "alt_text",
        "alignment": "alignment",
        "align": "alignment",
        "onclick": "on_click",
        "img_link": "link_url",
        "img_link_target": "link_target",
        "el_class": "css_class",
        "el_id": "element_id",
        "css_animation": "animation",
        "full_width": "full_width",
        "full_height": "full_height",
        "equal_height": "equal_height",
        "content_placement": "content_placement",
        "gap": "gap",
        "offset": "offset",
        "tab_id": "tab_id",
        "active_section": "active",
        "closable": "dismissible",
    },
    width_key="width",
    true_tokens=("yes", "true"),
    false_tokens=("no", "false"),
    render_true="yes",
    render_false="no",
    link_keys=("link",),
    link_codec=VcLinkCodec(),
    style_codec=RuleBlockStyleCodec("css"),
)

OVERRIDES = {
    "vc_video": {"link": "video_url"},
    "vc_gmaps": {"link": "map_embed"},
    "vc_progress_bar": {"values": "value"},
    "vc_cta": {"add_button": "button_position", "btn_title": "label"},
}

CONTENT_FIELDS = {
    "vc_custom_heading": ContentField("text"),
    "vc_btn": ContentField("title"),
    "vc_button": ContentField("title"),
    "vc_cta_button": ContentField("title"),
    "vc_cta": ContentField(title="h2"),
}

FONT_CONTAINER_PATTERN = re.compile(r"(?:^|\|)tag:h([1-6])")
LAYOUT_TAGS = re.compile(r"\[(?:vc_)?(?:row|column|section)\b")


def lookup(native: str) -> str | None:
    """Type for a tag name, with the vc_ prefix optional."""
    if native in TYPE_MAP:
        return TYPE_MAP[native]
    if not native.startswith("vc_"):
        return TYPE_MAP.get(f"vc_{native}")
    return None


def parse_font_container(value: str) -> dict[str, str]:
    """"tag:h2|text_align:center" -> {"tag": "h2", "text_align": "center"}"""
    parts: dict[str, str] = {}
    for part in (value or "").split("|"):
        if ":" in part:
            key, raw = part.split(":", 1)
            parts[key] = raw
    return parts


def build_font_container(parts: dict[str, str]) -> str:
    return "|".join(f"{key}:{value}" for key, value in parts.items() if value)


class WPBakeryParser(BracketTagParser):
    type_map = TYPE_MAP
    attribute_map = ATTRIBUTES
    content_fields = CONTENT_FIELDS
    attribute_overrides = OVERRIDES
    prefix = "vc_"
    self_closing = SELF_CLOSING

    @property
    def name(self) -> str:
        return "wpbakery"

    def accept_tag(self, name: str) -> bool:
        return name.startswith("vc_") or lookup(name) is not None

    def is_valid_content(self, content: Any) -> bool:
        if not isinstance(content, str):
            return False
        return "[vc_" in content or LAYOUT_TAGS.search(content) is not None

    def map_type(self, native: str) -> str:
        return lookup(native) or "unknown"

    def finish(self, component: Component, node: TagNode) -> None:
        if component.type == "heading":
            fonts = parse_font_container(component.attributes.pop("font_container", ""))
            level = fonts.get("tag", "")
            if level[:1] == "h" and level[1:].isdigit():
                component.attributes["level"] = int(level[1:])
            if fonts.get("text_align"):
                component.attributes.setdefault("alignment", fonts["text_align"])
        elif component.type == "accordion":
            # vc_tta_section is a pane under tabs and an item under accordions
            for child in component.children:
                if child.type == "tab":
                    child.type = "accordion-item"
                    child.category = category_for("accordion-item")
                    child.metadata.extra["retyped"] = "accordion-item"


class WPBakeryConverter(BracketTagConverter):
    type_map = TYPE_MAP
    native_types = NATIVE_TYPES
    attribute_map = ATTRIBUTES
    content_fields = CONTENT_FIELDS
    attribute_overrides = OVERRIDES
    self_closing = SELF_CLOSING
    text_tag = "vc_column_text"

    def __init__(self, config=None):
        super().__init__(config)
        self._column_depth = 0

    @property
    def name(self) -> str:
        return "wpbakery"

    def new_id_sequence(self) -> TimestampIdSequence:
        return TimestampIdSequence()

    def lookup_type(self, native: str) -> str | None:
        return lookup(native)

    def prepare_roots(self, roots: list[Component]) -> list[Component]:
        # vc_section is optional; rows may sit at the top level
        return ensure_rows(roots, keep=("row", "container"))

    def build_section(self, component: Component) -> str:
        inner = self.loose_content(component) + self.convert_children(ensure_rows(component.children))
        return self.build_element(component, self.native_name(component) or "vc_section", inner)

    def build_row(self, component: Component) -> str:
        default = "vc_row_inner" if self._column_depth else "vc_row"
        native = self.native_name(component) if self.reuses_native(component) else default
        inner = self.row_inner(component)
        return self.build_element(component, native, inner)

    def build_column(self, component: Component) -> str:
        default = "vc_column_inner" if self._column_depth else "vc_column"
        native = self.native_name(component) if self.reuses_native(component) else default
        self._column_depth += 1
        try:
            inner = self.loose_content(component) + self.convert_children(component.children)
        finally:
            self._column_depth -= 1
        return self.build_element(component, native, inner)

    def build_heading(self, component: Component) -> str:
        native = self.native_name(component)
        attributes = self.native_attributes(component, native)
        fonts = parse_font_container(attributes.get("font_container", ""))
        level = attributes.pop("level", None) or component.attributes.get("level")
        if level:
            fonts["tag"] = f"h{level}"
        alignment = component.attributes.get("alignment")
        if alignment:
            fonts["text_align"] = alignment
            attributes.pop("alignment", None)
        if fonts:
            attributes["font_container"] = build_font_container(fonts)
        attributes["text"] = component.content
        return build_tag(native, attributes, self_closing=True)

    def build_panel(self, component: Component) -> str:
        native = self.native_name(component)
        attributes = self.native_attributes(component, native)
        if native == "vc_tta_section" and not attributes.get("tab_id"):
            attributes["tab_id"] = self.ids.next()
        return build_tag(native, attributes, self.loose_content(component) + self.convert_children(component.children))

    def build_image(self, component: Component) -> str:
        attributes = self.native_attributes(component)
        if "custom_src" in attributes and not self.reuses_native(component):
            attributes.setdefault("source", "external_link")
        return build_tag(self.native_name(component), attributes, self_closing=True)

    def build_module(self, component: Component) -> str:
        return self.build_element(component)

    def get_fallback(self, component: Component) -> str:
        block = build_tag("vc_column_text", {"el_class": fallback_classes(component)}, fallback_content(component))
        return block + self.convert_children(component.children)

    builders = {
        **dict.fromkeys(NATIVE_TYPES, build_module),
        "container": build_section,
        "section": build_section,
        "row": build_row,
        "column": build_column,
        "heading": build_heading,
        "tab": build_panel,
        "accordion-item": build_panel,
        "image": build_image,
    }


registry.register(Dialect(
    name="wpbakery",
    priority=50,
    parser_class=WPBakeryParser,
    converter_class=WPBakeryConverter,
    kind="bracket",
    aliases=("vc", "visual-composer"),
    description="WPBakery Page Builder shortcodes (vc_*)",
))
