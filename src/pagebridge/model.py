"""
Component Model - canonical intermediate tree for Pagebridge

Every dialect parser produces a forest of Components and every converter
consumes one. A Component owns its children exclusively; the tree is acyclic
by construction (children are only ever appended, never back-referenced).

Key invariants:
- `type` and `category` are never empty on a valid node.
- A node parsed from dialect X carries `metadata.source_dialect == X`.
- `id` is assigned once at construction and can not be reassigned.
"""

from __future__ import annotations

import copy
import itertools
import json
import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

_id_counter = itertools.count(1)


def _next_id() -> str:
    return f"pb_{next(_id_counter)}"


LAYOUT_TYPES = frozenset({"container", "section", "row", "column"})

CATEGORIES: dict[str, frozenset[str]] = {
    "layout": frozenset({"container", "section", "row", "column", "spacer"}),
    "content": frozenset({
        "text", "heading", "image", "card", "card-group", "blockquote", "alert",
        "cta", "divider", "html", "code", "list", "highlight", "dropcap", "icon",
        "link", "blog", "post-grid", "portfolio",
    }),
    "media": frozenset({"video", "audio", "gallery", "slider", "slide", "map", "image-group"}),
    "interactive": frozenset({
        "button", "accordion", "accordion-item", "tabs", "tab", "toggle",
        "modal", "popover", "tooltip", "countdown",
    }),
    "form": frozenset({"form", "input", "search"}),
    "data": frozenset({
        "counter", "counter-group", "progress", "chart", "table",
        "pricing-table", "rating", "grid",
    }),
    "social": frozenset({
        "social-icons", "share-buttons", "testimonial", "testimonial-group",
        "team-member",
    }),
    "navigation": frozenset({"nav", "navbar", "breadcrumb", "pagination", "toc", "anchor", "menu"}),
}

_CATEGORY_BY_TYPE = {t: cat for cat, types in CATEGORIES.items() for t in types}

# Advisory score for a node that a converter can only emit as a fallback block
FALLBACK_CONFIDENCE: dict[str, float] = {
    "layout": 0.6,
    "content": 0.5,
    "media": 0.4,
    "interactive": 0.35,
    "form": 0.3,
    "data": 0.3,
    "social": 0.3,
    "navigation": 0.3,
    "general": 0.2,
}

# Known attribute vocabulary; anything else is carried as a pass-through key
CANONICAL_ATTRIBUTES = frozenset({
    # links
    "url", "target", "rel", "link_title", "link_url", "link_target",
    # images
    "image_url", "image_id", "image_size", "alt_text",
    # text
    "heading", "label", "description", "level", "title",
    # presentation
    "variant", "size", "icon", "icon_right", "alignment", "color",
    "background_color", "text_color", "border_color", "border_width",
    "border_radius", "style", "animation",
    # layout
    "width", "offset", "gap", "padding", "margin", "spacing", "full_width",
    "full_height", "equal_height", "content_placement",
    # identity and styling hooks
    "css_class", "element_id", "custom_css", "admin_label", "hide_on",
    # interactive
    "active", "tab_id", "on_click", "dismissible",
    # media
    "video_url", "aspect_ratio", "thumbnail_url",
})


class ContentShape(Enum):
    """How a type carries its text payload in `content`."""
    NONE = "none"
    SINGLE = "single"
    TITLE_BODY = "title_body"


CONTENT_SHAPES: dict[str, ContentShape] = {
    "card": ContentShape.TITLE_BODY,
    "cta": ContentShape.TITLE_BODY,
    **{t: ContentShape.NONE for t in (
        "container", "section", "row", "column", "image", "divider", "spacer",
        "video", "audio", "map", "gallery",
    )},
}

TITLE_BODY_SEPARATOR = "\n\n"


def category_for(type_: str) -> str:
    """Static type -> category lookup."""
    return _CATEGORY_BY_TYPE.get(type_, "general")


def content_shape(type_: str) -> ContentShape:
    return CONTENT_SHAPES.get(type_, ContentShape.SINGLE)


def split_title_body(content: str) -> tuple[str, str]:
    """Split a title/body pair on the first blank line."""
    if TITLE_BODY_SEPARATOR in content:
        title, body = content.split(TITLE_BODY_SEPARATOR, 1)
        return title.strip(), body.strip()
    return content.strip(), ""


def join_title_body(title: str, body: str) -> str:
    """Inverse of split_title_body; empty halves drop the separator."""
    title = title or ""
    body = body or ""
    if title and body:
        return f"{title}{TITLE_BODY_SEPARATOR}{body}"
    return title or body


@dataclass
class Metadata:
    """Provenance of a node: where it came from and what it looked like there."""
    source_dialect: str | None = None
    native_tag: str | None = None
    native_attributes: dict[str, Any] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_dialect": self.source_dialect,
            "native_tag": self.native_tag,
            "native_attributes": copy.deepcopy(self.native_attributes),
            "extra": copy.deepcopy(self.extra),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Metadata:
        data = data or {}
        return cls(
            source_dialect=data.get("source_dialect"),
            native_tag=data.get("native_tag"),
            native_attributes=dict(data.get("native_attributes") or {}),
            extra=dict(data.get("extra") or {}),
        )


@dataclass
class Component:
    """A node in the canonical component tree."""
    type: str = "unknown"
    category: str = ""
    attributes: dict[str, Any] = field(default_factory=dict)
    styles: dict[str, str] = field(default_factory=dict)
    content: str = ""
    children: list[Component] = field(default_factory=list)
    metadata: Metadata = field(default_factory=Metadata)
    id: str = field(default_factory=_next_id)

    def __post_init__(self):
        if not self.type:
            self.type = "unknown"
        if not self.category:
            self.category = category_for(self.type)

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "id" and "id" in self.__dict__:
            raise AttributeError("Component id is immutable once assigned")
        super().__setattr__(name, value)

    @property
    def source_dialect(self) -> str | None:
        return self.metadata.source_dialect

    @property
    def has_children(self) -> bool:
        return bool(self.children)

    def is_from_dialect(self, dialect: str) -> bool:
        return self.metadata.source_dialect == dialect.lower()

    def add_child(self, child: Component) -> Component:
        """Add a child component and return it for chaining."""
        self.children.append(child)
        return child

    def depth_first(self) -> Iterator[Component]:
        """Traverse tree depth-first, yielding self then children."""
        yield self
        for child in self.children:
            yield from child.depth_first()

    def breadth_first(self) -> Iterator[Component]:
        """Traverse tree breadth-first."""
        queue: list[Component] = [self]
        while queue:
            node = queue.pop(0)
            yield node
            queue.extend(node.children)

    def count_nodes(self) -> int:
        return sum(1 for _ in self.depth_first())

    def extra_attributes(self) -> dict[str, Any]:
        """Pass-through attributes outside the canonical vocabulary."""
        return {k: v for k, v in self.attributes.items() if k not in CANONICAL_ATTRIBUTES}

    def is_valid(self) -> bool:
        """A node is valid when it and every descendant has a known type and a category."""
        if not self.type or self.type == "unknown":
            return False
        if not self.category:
            return False
        return all(child.is_valid() for child in self.children)

    def duplicate(self) -> Component:
        """Deep copy with fresh ids throughout the subtree."""
        return Component(
            type=self.type,
            category=self.category,
            attributes=copy.deepcopy(self.attributes),
            styles=dict(self.styles),
            content=self.content,
            children=[child.duplicate() for child in self.children],
            metadata=Metadata.from_dict(self.metadata.to_dict()),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "category": self.category,
            "attributes": copy.deepcopy(self.attributes),
            "styles": dict(self.styles),
            "content": self.content,
            "children": [child.to_dict() for child in self.children],
            "metadata": self.metadata.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Component:
        """
        Rebuild a tree from its serialized form.

        Ids are process-unique and never reused, so a restored tree gets fresh
        ids; the stored id is kept under metadata.extra["restored_id"].
        """
        metadata = Metadata.from_dict(data.get("metadata"))
        if data.get("id"):
            metadata.extra.setdefault("restored_id", data["id"])
        return cls(
            type=data.get("type") or "unknown",
            category=data.get("category") or "",
            attributes=dict(data.get("attributes") or {}),
            styles=dict(data.get("styles") or {}),
            content=data.get("content") or "",
            children=[cls.from_dict(child) for child in data.get("children") or []],
            metadata=metadata,
        )

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_json(cls, text: str) -> Component | None:
        try:
            data = json.loads(text)
        except (TypeError, ValueError):
            logger.debug("Component.from_json: malformed JSON input")
            return None
        if not isinstance(data, dict):
            return None
        return cls.from_dict(data)


def iter_forest(components: list[Component]) -> Iterator[Component]:
    """Depth-first over a list of root components."""
    for component in components:
        yield from component.depth_first()


def as_list(components: Component | list[Component] | tuple[Component, ...]) -> list[Component]:
    """Accept a single component or a sequence of them."""
    if isinstance(components, Component):
        return [components]
    return list(components)
