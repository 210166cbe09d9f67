"""
Base dialect interface and registry.

Each dialect module implements a parser (native markup -> Component forest)
and a converter (Component forest -> native markup) and registers both on the
shared registry. Converters are constructed fresh per conversion so that the
identifier sequence they own is never shared between calls or threads.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, ClassVar

from .. import jsontree
from ..attributes import AttributeMap
from ..config import Config, get_config
from ..errors import UnknownDialectError
from ..model import (
    FALLBACK_CONFIDENCE,
    Component,
    ContentShape,
    Metadata,
    as_list,
    content_shape,
    join_title_body,
    split_title_body,
)
from ..tokenizer import TagNode, build_tag, scan

logger = logging.getLogger(__name__)

FALLBACK_CLASS = "pagebridge-fallback"


@dataclass(frozen=True)
class ContentField:
    """
    Where a native element keeps its text payload.

    `body` is the native key holding the text, or None for the element's
    inner markup. `title` is set only for title/body element kinds; the two
    halves are joined with a blank line in Component.content.
    """
    body: str | None = None
    title: str | None = None

    @property
    def keys(self) -> set[str]:
        return {key for key in (self.body, self.title) if key}


INNER = ContentField()


@dataclass(frozen=True)
class Repeater:
    """A settings list that expands to child components (tab panes, accordion items)."""
    items_key: str
    child_type: str
    title_key: str = "title"
    body_key: str = "content"


def invert_types(type_map: dict[str, str]) -> dict[str, str]:
    """canonical -> native; the first native name listed for a type wins."""
    native_types: dict[str, str] = {}
    for native, canonical in type_map.items():
        native_types.setdefault(canonical, native)
    return native_types


def fallback_content(component: Component) -> str:
    return component.content or f"Unsupported component type: {component.type}"


def fallback_classes(component: Component) -> str:
    """Marker classes for a fallback block: the generic class plus one naming the type."""
    slug = re.sub(r"[^a-z0-9_-]+", "-", component.type.lower()).strip("-") or "unknown"
    return f"{FALLBACK_CLASS} {FALLBACK_CLASS}-{slug}"


def with_loose_text(component: Component) -> list[Component]:
    """Children, led by the node's own loose text as a text component when it has any."""
    if not component.content:
        return list(component.children)
    text = Component(type="text", content=component.content, metadata=Metadata(extra={"synthetic": True}))
    return [text, *component.children]


def synthetic(type_: str, children: list[Component], **attributes: Any) -> Component:
    """A structural wrapper created during re-nesting, not parsed from input."""
    return Component(
        type=type_,
        attributes=attributes,
        children=children,
        metadata=Metadata(extra={"synthetic": True}),
    )


def _group(children: Iterable[Component], keep: Callable[[Component], bool], wrap: Callable[[list[Component]], Component]) -> list[Component]:
    result: list[Component] = []
    pending: list[Component] = []
    for child in children:
        if keep(child):
            if pending:
                result.append(wrap(pending))
                pending = []
            result.append(child)
        else:
            pending.append(child)
    if pending:
        result.append(wrap(pending))
    return result


def ensure_containers(children: Iterable[Component], keep: tuple[str, ...] = ("container",)) -> list[Component]:
    """Group runs of non-container nodes under synthetic containers."""
    return _group(children, lambda c: c.type in keep, lambda run: synthetic("container", run))


def ensure_rows(children: Iterable[Component], keep: tuple[str, ...] = ("row",)) -> list[Component]:
    """Group runs of non-row nodes (loose columns or widgets) under synthetic rows."""
    return _group(children, lambda c: c.type in keep, lambda run: synthetic("row", run))


def ensure_columns(children: Iterable[Component], keep: tuple[str, ...] = ("column",)) -> list[Component]:
    """Wrap runs of non-column nodes in a synthetic full-width column."""
    return _group(children, lambda c: c.type in keep, lambda run: synthetic("column", run, width="100%"))


# --- parsers -----------------------------------------------------------------

class DialectParser(ABC):
    """Base class for dialect parsers."""

    type_map: ClassVar[dict[str, str]] = {}
    attribute_map: ClassVar[AttributeMap]
    content_fields: ClassVar[dict[str, ContentField]] = {}
    attribute_overrides: ClassVar[dict[str, dict[str, str]]] = {}

    def __init__(self):
        self.warnings: list[str] = []

    @property
    @abstractmethod
    def name(self) -> str:
        """Registry name of the dialect."""
        ...

    @abstractmethod
    def is_valid_content(self, content: Any) -> bool:
        """Cheap structural probe: does this look like the dialect?"""
        ...

    @abstractmethod
    def parse_valid(self, content: Any) -> list[Component]:
        """Parse content already accepted by is_valid_content."""
        ...

    @abstractmethod
    def parse_element(self, element: Any) -> Component:
        """Parse one native element (and its subtree) into a Component."""
        ...

    def parse(self, content: Any) -> list[Component]:
        """Parse native content; invalid input yields an empty list."""
        if not self.is_valid_content(content):
            logger.debug("%s parser: input rejected by shape check", self.name)
            return []
        return self.parse_valid(content)

    def supported_types(self) -> list[str]:
        """Native element names this parser maps to a canonical type."""
        return sorted(self.type_map)

    def map_type(self, native: str) -> str:
        return self.type_map.get(native, "unknown")

    def make_component(
        self,
        native: str,
        native_attributes: dict[str, Any],
        inner: str = "",
        children: list[Component] | None = None,
        type_: str | None = None,
    ) -> Component:
        """Normalize one native element into a Component with provenance."""
        type_ = type_ or self.map_type(native)
        overrides = self.attribute_overrides.get(native)
        fields = self.content_fields.get(native, INNER)
        amap = self.attribute_map

        attributes = amap.normalize(native_attributes, overrides, exclude=fields.keys)
        styles = amap.extract_styles(native_attributes)

        body = _text(jsontree.get_path(native_attributes, fields.body)) if fields.body else inner
        if fields.title:
            content = join_title_body(_text(jsontree.get_path(native_attributes, fields.title)), body)
        else:
            content = body

        return Component(
            type=type_,
            attributes=attributes,
            styles=styles,
            content=content,
            children=children or [],
            metadata=Metadata(
                source_dialect=self.name,
                native_tag=native,
                native_attributes=dict(native_attributes),
            ),
        )


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


class BracketTagParser(DialectParser):
    """Tokenizer-driven parser for bracket-tag dialects."""

    prefix: ClassVar[str] = ""
    self_closing: ClassVar[frozenset[str]] = frozenset()

    def accept_tag(self, name: str) -> bool:
        return name.startswith(self.prefix)

    def is_valid_content(self, content: Any) -> bool:
        return isinstance(content, str) and f"[{self.prefix}" in content

    def parse_valid(self, content: Any) -> list[Component]:
        result = scan(content, self_closing=self.self_closing, accept=self.accept_tag)
        self.warnings.extend(result.warnings)
        return [self.parse_element(node) for node in result.nodes]

    def parse_element(self, element: TagNode) -> Component:
        children = [self.parse_element(child) for child in element.children]
        component = self.make_component(element.name, element.attributes, element.text, children)
        if not element.closed:
            component.metadata.extra["auto_closed"] = True
        self.finish(component, element)
        return component

    def finish(self, component: Component, node: TagNode) -> None:
        """Dialect-specific touch-ups after the generic mapping."""


class JsonTreeParser(DialectParser):
    """JSON-driven parser for element-tree dialects."""

    children_key: ClassVar[str] = "children"
    repeaters: ClassVar[dict[str, Repeater]] = {}

    @abstractmethod
    def elements(self, content: Any) -> list[dict]:
        """Root element dicts in nested form."""
        ...

    @abstractmethod
    def native_name(self, element: dict) -> str:
        ...

    def settings(self, element: dict) -> dict[str, Any]:
        settings = element.get("settings")
        return dict(settings) if isinstance(settings, dict) else {}

    def parse_valid(self, content: Any) -> list[Component]:
        return [self.parse_element(element) for element in self.elements(content)]

    def parse_element(self, element: dict) -> Component:
        native = self.native_name(element)
        settings = self.settings(element)
        repeater = self.repeaters.get(native)
        if repeater is not None:
            # Items become child components, not attributes
            items = settings.pop(repeater.items_key, None)
        children = [self.parse_element(child) for child in element.get(self.children_key) or [] if isinstance(child, dict)]

        component = self.make_component(native, settings, children=children)
        if repeater is not None:
            if items is not None:
                component.metadata.native_attributes[repeater.items_key] = items
            component.children.extend(self.expand_repeater(repeater, items))
        if "id" in element:
            component.metadata.extra["element_id"] = element["id"]
        self.finish(component, element)
        return component

    def expand_repeater(self, repeater: Repeater, items: Any) -> list[Component]:
        children = []
        for item in items if isinstance(items, list) else []:
            if not isinstance(item, dict):
                continue
            child = Component(
                type=repeater.child_type,
                attributes={"title": _text(item.get(repeater.title_key))},
                content=_text(item.get(repeater.body_key)),
                metadata=Metadata(
                    source_dialect=self.name,
                    native_attributes=dict(item),
                    extra={"repeater_item": True},
                ),
            )
            children.append(child)
        return children

    def finish(self, component: Component, element: dict) -> None:
        """Dialect-specific touch-ups after the generic mapping."""


# --- converters --------------------------------------------------------------

class DialectConverter(ABC):
    """
    Base class for dialect converters.

    Subclasses declare `builders`, a static mapping from canonical type to the
    function that emits it. Types without a builder go through get_fallback().
    """

    type_map: ClassVar[dict[str, str]] = {}  # native -> canonical, shared with the parser
    native_types: ClassVar[dict[str, str]] = {}  # canonical -> native
    attribute_map: ClassVar[AttributeMap]
    content_fields: ClassVar[dict[str, ContentField]] = {}
    attribute_overrides: ClassVar[dict[str, dict[str, str]]] = {}
    builders: ClassVar[dict[str, Callable[..., Any]]] = {}

    def __init__(self, config: Config | None = None):
        self.config = config or get_config()
        self.ids = self.new_id_sequence()
        self.fallbacks: list[str] = []

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    def new_id_sequence(self) -> Any:
        """Per-instance native id generator, if the dialect needs one."""
        return None

    @abstractmethod
    def convert(self, components: Component | list[Component]) -> Any:
        """Emit native content for one component or a forest."""
        ...

    @abstractmethod
    def get_fallback(self, component: Component) -> Any:
        """Minimal always-valid block preserving content and marking the type."""
        ...

    def convert_component(self, component: Component) -> Any:
        builder = self.builders.get(component.type)
        if builder is None:
            self.fallbacks.append(component.type)
            logger.debug("%s converter: no builder for %r, emitting fallback", self.name, component.type)
            return self.get_fallback(component)
        return builder(self, component)

    def supports_type(self, type_: str) -> bool:
        return type_ in self.builders

    def supported_types(self) -> list[str]:
        return sorted(self.builders)

    def confidence(self, component: Component) -> float:
        """Advisory fidelity estimate for converting one node into this dialect."""
        cfg = self.config.confidence
        if not self.supports_type(component.type):
            score = FALLBACK_CONFIDENCE.get(component.category, FALLBACK_CONFIDENCE["general"])
        elif component.is_from_dialect(self.name):
            score = cfg.same_dialect
        else:
            score = cfg.base
        if len(component.children) > cfg.child_threshold:
            score -= cfg.nesting_penalty
        return max(0.0, min(1.0, score))

    # same-dialect reuse -----------------------------------------------------

    def reuses_native(self, component: Component) -> bool:
        """True when the node came from this dialect and its native tag still fits its type."""
        tag = component.metadata.native_tag
        if tag is None or not component.is_from_dialect(self.name):
            return False
        # Parsers that re-type a node (et_pb_text holding only <h2>) record it
        expected = component.metadata.extra.get("retyped", self.lookup_type(tag))
        return expected == component.type

    def lookup_type(self, native: str) -> str | None:
        return self.type_map.get(native)

    def native_name(self, component: Component, default: str | None = None) -> str | None:
        if self.reuses_native(component):
            return component.metadata.native_tag
        return self.native_types.get(component.type, default)

    def native_attributes(self, component: Component, native: str | None = None) -> dict[str, Any]:
        """Canonical attributes and styles back to native keys for element `native`."""
        native = native or self.native_name(component)
        overrides = self.attribute_overrides.get(native or "")
        exclude = self.content_fields.get(native or "", INNER).keys
        amap = self.attribute_map
        if self.reuses_native(component) and component.metadata.native_tag == native:
            return amap.reconcile(
                component.metadata.native_attributes,
                component.attributes,
                styles=component.styles,
                overrides=overrides,
                exclude=exclude,
            )
        attributes = amap.denormalize(component.attributes, overrides)
        attributes.update(amap.apply_styles(component.styles))
        return attributes

    def content_parts(self, component: Component, native: str | None = None) -> tuple[str, str]:
        """(title, body) for the native element's content fields."""
        fields = self.content_fields.get(native or "", INNER)
        if fields.title and content_shape(component.type) is ContentShape.TITLE_BODY:
            return split_title_body(component.content)
        return "", component.content


class BracketTagConverter(DialectConverter):
    """Shared emission for bracket-tag dialects."""

    self_closing: ClassVar[frozenset[str]] = frozenset()
    text_tag: ClassVar[str] = ""  # module used to carry loose text

    def convert(self, components: Component | list[Component]) -> str:
        roots = self.prepare_roots(as_list(components))
        return "\n".join(self.convert_component(component) for component in roots)

    def prepare_roots(self, roots: list[Component]) -> list[Component]:
        return roots

    def convert_children(self, children: Iterable[Component]) -> str:
        return "".join(self.convert_component(child) for child in children)

    def build_element(self, component: Component, native: str | None = None, inner: str | None = None) -> str:
        """Generic emission: mapped tag, native attributes, content fields, children."""
        native = native or self.native_name(component) or self.text_tag
        attributes = self.native_attributes(component, native)
        fields = self.content_fields.get(native, INNER)
        title, body = self.content_parts(component, native)
        if fields.title:
            attributes[fields.title] = title
        if fields.body:
            attributes[fields.body] = body
            body = ""
        if inner is None:
            inner = body + self.convert_children(component.children)
        self_closing = native in self.self_closing and not inner
        return build_tag(native, attributes, inner, self_closing=self_closing)

    def loose_content(self, component: Component) -> str:
        """Loose text on a layout node: raw for this dialect, else wrapped in a text module."""
        if not component.content:
            return ""
        if component.is_from_dialect(self.name):
            return component.content
        return build_tag(self.text_tag, {}, component.content)

    def row_inner(self, component: Component) -> str:
        """Row body: loose text kept raw for this dialect, else moved into its own column."""
        if component.is_from_dialect(self.name):
            return component.content + self.convert_children(ensure_columns(component.children))
        return self.convert_children(ensure_columns(with_loose_text(component)))


class JsonTreeConverter(DialectConverter):
    """Shared emission for JSON element-tree dialects."""

    repeaters: ClassVar[dict[str, Repeater]] = {}

    def convert(self, components: Component | list[Component]) -> str:
        return jsontree.dump(self.build_tree(components), indent=self.config.output.json_indent)

    @abstractmethod
    def build_tree(self, components: Component | list[Component]) -> Any:
        """Emit the native document as Python objects."""
        ...

    def build_settings(self, component: Component, native: str) -> dict[str, Any]:
        """Native settings including content fields and repeater items."""
        settings = self.native_attributes(component, native)
        fields = self.content_fields.get(native, INNER)
        title, body = self.content_parts(component, native)
        if fields.title:
            settings[fields.title] = title
        if fields.body:
            jsontree.set_path(settings, fields.body, body)
        repeater = self.repeaters.get(native)
        if repeater is not None:
            settings[repeater.items_key] = self.build_repeater_items(component, repeater)
        return settings

    def build_repeater_items(self, component: Component, repeater: Repeater) -> list[dict[str, Any]]:
        items = []
        for child in component.children:
            item: dict[str, Any] = {}
            if child.is_from_dialect(self.name):
                item.update(child.metadata.native_attributes)
            item[repeater.title_key] = child.attributes.get("title") or ""
            item[repeater.body_key] = child.content
            item.setdefault("_id", self.next_id())
            items.append(item)
        return items

    def next_id(self) -> str:
        return self.ids.next()

    def element_children(self, component: Component, native: str) -> list[Component]:
        """Children emitted as elements (repeater items are folded into settings)."""
        if native in self.repeaters:
            return []
        return component.children


# --- registry ----------------------------------------------------------------

@dataclass
class Dialect:
    """A registered dialect: parser and converter classes plus lookup names."""
    name: str
    parser_class: type[DialectParser]
    converter_class: type[DialectConverter]
    kind: str  # "bracket", "json" or "html"
    priority: int = 100  # detection order, lowest first
    aliases: tuple[str, ...] = ()
    description: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    def parser(self) -> DialectParser:
        return self.parser_class()

    def converter(self, config: Config | None = None) -> DialectConverter:
        return self.converter_class(config)


class DialectRegistry:
    """
    Registry of dialects with lookup and detection.

    Dialects are kept sorted by priority, so detection order does not depend
    on which dialect module happened to be imported first. Equal priorities
    keep registration order.
    """

    def __init__(self):
        self._dialects: list[Dialect] = []
        self._by_name: dict[str, Dialect] = {}

    def register(self, dialect: Dialect) -> None:
        """Register a dialect under its name and aliases; a repeated name replaces the old entry."""
        self._dialects = [d for d in self._dialects if d.name != dialect.name]
        self._dialects.append(dialect)
        self._dialects.sort(key=lambda d: d.priority)
        for key in (dialect.name, *dialect.aliases):
            self._by_name[key.lower()] = dialect

    def get(self, name: str) -> Dialect:
        """Look up by name or alias; unknown names raise UnknownDialectError."""
        dialect = self._by_name.get((name or "").strip().lower())
        if dialect is None:
            raise UnknownDialectError(name, self.names)
        return dialect

    def __contains__(self, name: str) -> bool:
        return (name or "").strip().lower() in self._by_name

    def detect(self, content: Any) -> Dialect | None:
        """First dialect, by priority, whose shape check accepts the content."""
        for dialect in self._dialects:
            if dialect.parser().is_valid_content(content):
                return dialect
        return None

    @property
    def names(self) -> list[str]:
        return [dialect.name for dialect in self._dialects]

    @property
    def dialects(self) -> list[Dialect]:
        return list(self._dialects)


# Global registry instance
registry = DialectRegistry()
