"""
Bootstrap 5 HTML dialect.

Plain HTML where component kinds are carried by Bootstrap classes
(`container`, `row`, `col-md-6`, `btn btn-primary`, `card`, ...). Parsed with
BeautifulSoup; output is built with `soup.new_tag` so attribute quoting and
escaping follow the HTML serializer.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from bs4 import BeautifulSoup, NavigableString, Tag

from ..attributes import AttributeMap, InlineStyleCodec
from ..ids import PrefixedIdSequence
from ..model import Component, Metadata, as_list, category_for, join_title_body, split_title_body
from ..units import percentage_to_dialect_token, width_to_percentage
from .base import (
    FALLBACK_CLASS,
    DialectConverter,
    DialectParser,
    Dialect,
    ensure_columns,
    ensure_containers,
    fallback_content,
    registry,
    with_loose_text,
)

logger = logging.getLogger(__name__)

# Exact class -> type, checked before prefixes and tag names
CLASS_TYPES = {
    "container": "container",
    "container-fluid": "container",
    "row": "row",
    "col": "column",
    "card-group": "card-group",
    "card": "card",
    "btn": "button",
    "alert": "alert",
    "accordion-item": "accordion-item",
    "accordion": "accordion",
    "tab-pane": "tab",
    "breadcrumb": "breadcrumb",
    "carousel": "slider",
    "list-group": "list",
    "modal": "modal",
    "navbar": "navbar",
    "nav": "nav",
    "pagination": "pagination",
    "progress": "progress",
    "blockquote": "blockquote",
    "table": "table",
    "img-fluid": "image",
    FALLBACK_CLASS: "unknown",
}

CLASS_PREFIXES = (("col-", "column"), ("container-", "container"))

TAG_TYPES = {
    "h1": "heading", "h2": "heading", "h3": "heading",
    "h4": "heading", "h5": "heading", "h6": "heading",
    "p": "text",
    "a": "link",
    "img": "image",
    "button": "button",
    "form": "form",
    "input": "input",
    "table": "table",
    "hr": "divider",
    "blockquote": "blockquote",
    "ul": "list",
    "ol": "list",
    "pre": "code",
    "video": "video",
    "audio": "audio",
    "iframe": "html",
    "section": "container",
}

# Types whose element children are parsed as child components
CONTAINER_TYPES = frozenset({"container", "row", "column", "card-group", "accordion", "tabs"})

VARIANTS = ("primary", "secondary", "success", "danger", "warning", "info", "light", "dark", "link")
BREAKPOINTS = ("md", "lg", "sm", "xl", "xxl", "xs")

GRID_CLASS = re.compile(r"^col(?:-(sm|md|lg|xl|xxl))?(?:-(\d+|auto))?$")
OFFSET_CLASS = re.compile(r"^offset(?:-(sm|md|lg|xl|xxl))?-(\d+)$")
VARIANT_CLASS = re.compile(r"^(?:btn|alert)-(?:outline-)?(" + "|".join(VARIANTS) + r")$")
SIZE_CLASS = re.compile(r"^btn-(sm|lg)$")
ALIGN_CLASS = re.compile(r"^text-(start|center|end|justify)$")
INDICATORS = re.compile(
    r"""class\s*=\s*["'][^"']*\b(?:container(?:-fluid)?|row|col(?:-[a-z]+)?(?:-\d+|-auto)?|btn|card|alert|navbar|nav|modal|accordion|carousel)(?=[\s"'])"""
)

# Default tag and classes for types emitted through build_generic
GENERIC_TAGS = {
    "navbar": ("nav", ["navbar"]),
    "nav": ("ul", ["nav"]),
    "breadcrumb": ("ol", ["breadcrumb"]),
    "pagination": ("ul", ["pagination"]),
    "progress": ("div", ["progress"]),
    "modal": ("div", ["modal"]),
    "slider": ("div", ["carousel", "slide"]),
    "table": ("table", ["table"]),
    "form": ("form", []),
}

# Component attributes derived from the class list rather than HTML attributes
CLASS_ATTRIBUTES = ("width", "offset", "variant", "size", "alignment", "css_class", "level", "full_width")

ATTRIBUTES = AttributeMap(
    "bootstrap",
    {
        "href": "url",
        "target": "target",
        "rel": "rel",
        "src": "image_url",
        "alt": "alt_text",
        "title": "title",
        "id": "element_id",
        "role": "role",
        "aria-label": "aria_label",
        "data-bs-toggle": "toggle",
        "data-bs-target": "toggle_target",
    },
    style_codec=InlineStyleCodec(),
)

# HTML attributes a converter may emit; anything else canonical stays internal
HTML_ATTRIBUTES = frozenset(ATTRIBUTES.forward) | {"style", "type", "name", "placeholder", "value", "loading"}

# Attributes only meaningful on some tags
TAG_SCOPED = {
    "href": {"a"},
    "target": {"a", "form"},
    "rel": {"a"},
    "src": {"img", "video", "audio", "iframe"},
    "alt": {"img"},
}


def detect_type(tag: Tag) -> str:
    """Bootstrap component type from classes, then from the tag name."""
    classes = tag.get("class") or []
    for cls in classes:
        if cls in CLASS_TYPES:
            return CLASS_TYPES[cls]
    for cls in classes:
        for prefix, type_ in CLASS_PREFIXES:
            if cls.startswith(prefix):
                return type_
    if tag.find(class_="tab-content", recursive=False) is not None:
        return "tabs"
    return TAG_TYPES.get(tag.name, "unknown")


def grid_attributes(classes: list[str]) -> dict[str, str]:
    """Width and offset percentages from col-*/offset-* classes."""
    sizes: dict[str, str] = {}
    offsets: dict[str, str] = {}
    for cls in classes:
        match = GRID_CLASS.match(cls)
        if match and match.group(2) and match.group(2) != "auto":
            sizes[match.group(1) or "xs"] = match.group(2)
        match = OFFSET_CLASS.match(cls)
        if match:
            offsets[match.group(1) or "xs"] = match.group(2)
    result = {}
    for breakpoint in BREAKPOINTS:
        if breakpoint in sizes:
            result["width"] = width_to_percentage(sizes[breakpoint], "bootstrap")
            break
    for breakpoint in BREAKPOINTS:
        if breakpoint in offsets:
            result["offset"] = width_to_percentage(offsets[breakpoint], "bootstrap")
            break
    return result


def is_bootstrap_class(cls: str) -> bool:
    if cls in CLASS_TYPES or cls.startswith(("col-", "offset-", "container-", "card-", "accordion-")):
        return True
    return bool(VARIANT_CLASS.match(cls) or SIZE_CLASS.match(cls) or ALIGN_CLASS.match(cls))


def class_attributes(tag: Tag) -> dict[str, Any]:
    classes = list(tag.get("class") or [])
    attributes: dict[str, Any] = grid_attributes(classes)
    if "container-fluid" in classes:
        attributes["full_width"] = True
    for cls in classes:
        match = VARIANT_CLASS.match(cls)
        if match:
            attributes["variant"] = match.group(1)
        match = SIZE_CLASS.match(cls)
        if match:
            attributes["size"] = match.group(1)
        match = ALIGN_CLASS.match(cls)
        if match:
            attributes["alignment"] = match.group(1)
    extra = [cls for cls in classes if not is_bootstrap_class(cls)]
    if extra:
        attributes["css_class"] = " ".join(extra)
    return attributes


def inner_html(tag: Tag) -> str:
    return tag.decode_contents().strip()


class BootstrapParser(DialectParser):
    attribute_map = ATTRIBUTES

    @property
    def name(self) -> str:
        return "bootstrap"

    def is_valid_content(self, content: Any) -> bool:
        return isinstance(content, str) and INDICATORS.search(content) is not None

    def parse_valid(self, content: Any) -> list[Component]:
        soup = BeautifulSoup(content, "html.parser")
        return [self.parse_element(tag, root=True) for tag in soup.find_all(True, recursive=False)]

    def supported_types(self) -> list[str]:
        return sorted((set(CLASS_TYPES.values()) | set(TAG_TYPES.values())) - {"unknown"})

    def parse_element(self, element: Tag, root: bool = False) -> Component:
        type_ = detect_type(element)
        fallback = FALLBACK_CLASS in (element.get("class") or [])
        if type_ == "unknown" and not fallback and element.name in ("div", "article", "main", "header", "footer"):
            # Plain wrappers are layout at the top level and opaque markup below it
            type_ = "container" if root else "html"

        native = {k: " ".join(v) if isinstance(v, list) else v for k, v in element.attrs.items()}
        html_attributes = {k: v for k, v in native.items() if k != "class"}
        attributes = ATTRIBUTES.normalize(html_attributes)
        derived = class_attributes(element)
        attributes.update(derived)
        if type_ == "heading" and element.name[1:].isdigit():
            attributes["level"] = int(element.name[1:])

        component = Component(
            type=type_,
            attributes=attributes,
            styles=ATTRIBUTES.extract_styles(html_attributes),
            metadata=Metadata(
                source_dialect=self.name,
                native_tag=element.name,
                native_attributes=html_attributes,
                extra={
                    "retyped": type_,
                    "classes": list(element.get("class") or []),
                    "class_attributes": {k: attributes.get(k) for k in CLASS_ATTRIBUTES},
                },
            ),
        )

        if fallback:
            self.parse_fallback(component, element)
        elif type_ == "card":
            self.parse_card(component, element)
        elif type_ == "accordion-item":
            self.parse_accordion_item(component, element)
        elif type_ == "tabs":
            self.parse_tabs(component, element)
        elif type_ == "image":
            img = element if element.name == "img" else element.find("img")
            if img is not None and img is not element:
                component.attributes.update(ATTRIBUTES.normalize({k: v for k, v in img.attrs.items() if k in ("src", "alt")}))
        elif type_ in CONTAINER_TYPES:
            component.children = [self.parse_element(child) for child in element.find_all(True, recursive=False)]
            loose = "".join(str(node) for node in element.children if isinstance(node, NavigableString)).strip()
            if loose:
                component.content = loose
        else:
            component.content = inner_html(element)
        return component

    def parse_fallback(self, component: Component, element: Tag) -> None:
        original = element.get("data-original-type")
        if original:
            component.type = original
            component.category = category_for(original)
            component.metadata.extra["retyped"] = original
        component.attributes.pop("css_class", None)
        component.attributes.pop("data-original-type", None)
        component.metadata.extra["fallback"] = True
        component.content = inner_html(element)

    def parse_card(self, component: Component, element: Tag) -> None:
        image = element.find("img", class_="card-img-top")
        if image is not None:
            if image.get("src"):
                component.attributes["image_url"] = image["src"]
            if image.get("alt"):
                component.attributes["alt_text"] = image["alt"]
        title = element.find(class_="card-title")
        texts = element.find_all(class_="card-text")
        body = "\n".join(inner_html(text) for text in texts)
        component.content = join_title_body(inner_html(title) if title else "", body)
        button = element.find(class_="btn")
        if button is not None:
            if button.get("href"):
                component.attributes["url"] = button["href"]
            component.attributes["label"] = button.get_text(strip=True)

    def parse_accordion_item(self, component: Component, element: Tag) -> None:
        header = element.find(class_="accordion-button") or element.find(class_="accordion-header")
        body = element.find(class_="accordion-body")
        component.attributes["title"] = header.get_text(strip=True) if header else ""
        component.content = inner_html(body) if body else ""

    def parse_tabs(self, component: Component, element: Tag) -> None:
        titles = [link.get_text(strip=True) for link in element.select(".nav-link")]
        panes = element.select(".tab-content > .tab-pane")
        for index, pane in enumerate(panes):
            tab = Component(
                type="tab",
                attributes={"title": titles[index] if index < len(titles) else ""},
                content=inner_html(pane),
                metadata=Metadata(source_dialect=self.name, native_tag=pane.name, extra={"retyped": "tab"}),
            )
            if pane.get("id"):
                tab.attributes["tab_id"] = pane["id"]
            component.children.append(tab)


class BootstrapConverter(DialectConverter):
    attribute_map = ATTRIBUTES

    def __init__(self, config=None):
        super().__init__(config)
        self.soup = BeautifulSoup("", "html.parser")

    @property
    def name(self) -> str:
        return "bootstrap"

    def new_id_sequence(self) -> PrefixedIdSequence:
        return PrefixedIdSequence(prefix="pb-", width=1)

    def convert(self, components: Component | list[Component]) -> str:
        roots = as_list(components)
        if not all(root.is_from_dialect(self.name) for root in roots):
            # Foreign top-level widgets go inside a container so the output reads back as Bootstrap
            roots = ensure_containers(roots, keep=("container", "section"))
        blocks = [self.convert_component(component) for component in roots]
        return self.config.output.block_separator.join(str(block) for block in blocks)

    def convert_component(self, component: Component) -> Any:
        if (
            component.type not in self.builders
            and self.reuses_native(component)
            and not component.metadata.extra.get("fallback")
        ):
            # Parsed here but without a dedicated builder: re-emit the original tag and classes
            return self.build_generic(component)
        return super().convert_component(component)

    def fragment(self, markup: str) -> list:
        return list(BeautifulSoup(markup or "", "html.parser").contents)

    def append_html(self, tag: Tag, markup: str) -> Tag:
        for node in self.fragment(markup):
            tag.append(node)
        return tag

    def new_tag(self, name: str, classes: list[str] | None = None, **attrs: Any) -> Tag:
        tag = self.soup.new_tag(name)
        if classes:
            tag["class"] = " ".join(cls for cls in dict.fromkeys(classes) if cls)
        for key, value in attrs.items():
            if value not in (None, ""):
                tag[key.replace("_", "-")] = str(value)
        return tag

    def html_attributes(self, component: Component, tag_name: str) -> dict[str, Any]:
        attributes = self.native_attributes(component, component.metadata.native_tag)
        original = component.metadata.native_attributes if self.reuses_native(component) else {}
        result = {}
        for key, value in attributes.items():
            if key in original:
                result[key] = value
            elif key in HTML_ATTRIBUTES or key.startswith(("data-", "aria-")):
                if tag_name in TAG_SCOPED.get(key, {tag_name}):
                    result[key] = value
        return result

    def classes(self, component: Component, generated: list[str]) -> list[str]:
        """Original classes when nothing class-derived changed, else a rebuilt list."""
        extra = component.metadata.extra
        if self.reuses_native(component):
            current = {k: component.attributes.get(k) for k in CLASS_ATTRIBUTES}
            if current == extra.get("class_attributes"):
                return list(extra.get("classes") or [])
        css_class = component.attributes.get("css_class")
        alignment = component.attributes.get("alignment")
        if alignment:
            generated.append(f"text-{alignment}")
        if css_class:
            generated.extend(str(css_class).split())
        return generated

    def element(self, component: Component, name: str, generated: list[str]) -> Tag:
        if self.reuses_native(component) and component.metadata.native_tag:
            name = component.metadata.native_tag
        tag = self.new_tag(name, self.classes(component, generated))
        for key, value in self.html_attributes(component, name).items():
            if value in (None, "") or isinstance(value, (dict, list)):
                continue
            if isinstance(value, bool):
                value = "true" if value else "false"
            tag[key] = str(value)
        return tag

    def append_children(self, tag: Tag, children: list[Component]) -> Tag:
        for child in children:
            block = self.convert_component(child)
            tag.append(block)
        return tag

    def loose_content(self, tag: Tag, component: Component) -> None:
        if not component.content:
            return
        if component.is_from_dialect(self.name) or component.content.lstrip().startswith("<"):
            self.append_html(tag, component.content)
        else:
            paragraph = self.new_tag("p")
            self.append_html(paragraph, component.content)
            tag.append(paragraph)

    # builders ----------------------------------------------------------------

    def build_container(self, component: Component) -> Tag:
        full = component.attributes.get("full_width") is True
        tag = self.element(component, "div", ["container-fluid" if full else "container"])
        self.loose_content(tag, component)
        return self.append_children(tag, component.children)

    def build_row(self, component: Component) -> Tag:
        tag = self.element(component, "div", ["row"])
        if component.is_from_dialect(self.name):
            self.loose_content(tag, component)
            return self.append_children(tag, ensure_columns(component.children))
        return self.append_children(tag, ensure_columns(with_loose_text(component)))

    def build_column(self, component: Component) -> Tag:
        generated = ["col"]
        width = component.attributes.get("width")
        if width:
            generated = [f"col-md-{percentage_to_dialect_token(width, 'bootstrap')}"]
        offset = component.attributes.get("offset")
        if offset:
            generated.append(f"offset-md-{percentage_to_dialect_token(offset, 'bootstrap')}")
        tag = self.element(component, "div", generated)
        self.loose_content(tag, component)
        return self.append_children(tag, component.children)

    def build_heading(self, component: Component) -> Tag:
        level = component.attributes.get("level") or 2
        tag = self.element(component, f"h{level}", [])
        tag.name = f"h{level}"
        return self.append_html(tag, component.content)

    def build_text(self, component: Component) -> Tag:
        block = component.content.lstrip().startswith("<")
        tag = self.element(component, "div" if block else "p", [])
        return self.append_html(tag, component.content)

    def build_image(self, component: Component) -> Tag:
        tag = self.element(component, "img", ["img-fluid"])
        if tag.name != "img":
            # Wrapper element (figure, picture): the image goes inside it
            image = self.new_tag("img", ["img-fluid"])
            tag.append(image)
        else:
            image = tag
        image["src"] = component.attributes.get("image_url", "")
        image["alt"] = component.attributes.get("alt_text", "")
        return tag

    def build_button(self, component: Component) -> Tag:
        variant = component.attributes.get("variant") or "primary"
        generated = ["btn", f"btn-{variant}"]
        if component.attributes.get("size") in ("sm", "lg"):
            generated.append(f"btn-{component.attributes['size']}")
        url = component.attributes.get("url")
        tag = self.element(component, "a" if url else "button", generated)
        if tag.name == "a":
            tag["href"] = url or "#"
        elif not tag.get("type"):
            tag["type"] = "button"
        return self.append_html(tag, component.content or component.attributes.get("label", ""))

    def build_link(self, component: Component) -> Tag:
        tag = self.element(component, "a", [])
        return self.append_html(tag, component.content)

    def build_card(self, component: Component) -> Tag:
        card = self.element(component, "div", ["card"])
        title, body = split_title_body(component.content)
        if component.attributes.get("image_url"):
            card.append(self.new_tag("img", ["card-img-top"], src=component.attributes["image_url"], alt=component.attributes.get("alt_text")))
        card_body = self.new_tag("div", ["card-body"])
        if title:
            card_body.append(self.append_html(self.new_tag("h5", ["card-title"]), title))
        if body:
            card_body.append(self.append_html(self.new_tag("p", ["card-text"]), body))
        label = component.attributes.get("label")
        if label:
            button = self.new_tag("a", ["btn", "btn-primary"], href=component.attributes.get("url") or "#")
            button.append(label)
            card_body.append(button)
        card.append(card_body)
        return card

    def build_card_group(self, component: Component) -> Tag:
        return self.append_children(self.element(component, "div", ["card-group"]), component.children)

    def build_alert(self, component: Component) -> Tag:
        variant = component.attributes.get("variant") or "info"
        tag = self.element(component, "div", ["alert", f"alert-{variant}"])
        if not tag.get("role"):
            tag["role"] = "alert"
        return self.append_html(tag, component.content)

    def build_divider(self, component: Component) -> Tag:
        return self.element(component, "hr", [])

    def build_blockquote(self, component: Component) -> Tag:
        return self.append_html(self.element(component, "blockquote", ["blockquote"]), component.content)

    def build_code(self, component: Component) -> Tag:
        tag = self.element(component, "pre", [])
        if self.reuses_native(component):
            return self.append_html(tag, component.content)
        code = self.new_tag("code")
        code.append(component.content)
        tag.append(code)
        return tag

    def build_html(self, component: Component) -> Tag:
        return self.append_html(self.element(component, "div", []), component.content)

    def build_list(self, component: Component) -> Tag:
        tag = self.element(component, "ul", [])
        content = component.content
        if content and not content.lstrip().startswith("<li"):
            content = "".join(f"<li>{line}</li>" for line in content.splitlines() if line.strip())
        return self.append_html(tag, content)

    def build_accordion(self, component: Component) -> Tag:
        accordion_id = f"accordion-{self.ids.next()}"
        tag = self.element(component, "div", ["accordion"])
        if not tag.get("id"):
            tag["id"] = accordion_id
        for child in component.children:
            item = self.build_accordion_item(child, parent=tag["id"])
            tag.append(item)
        return tag

    def build_accordion_item(self, component: Component, parent: str | None = None) -> Tag:
        collapse_id = f"collapse-{self.ids.next()}"
        item = self.new_tag("div", ["accordion-item"])
        header = self.new_tag("h2", ["accordion-header"])
        button = self.new_tag(
            "button", ["accordion-button", "collapsed"],
            type="button", data_bs_toggle="collapse", data_bs_target=f"#{collapse_id}",
        )
        button.append(str(component.attributes.get("title") or ""))
        header.append(button)
        collapse = self.new_tag("div", ["accordion-collapse", "collapse"], id=collapse_id, data_bs_parent=f"#{parent}" if parent else None)
        body = self.append_html(self.new_tag("div", ["accordion-body"]), component.content)
        collapse.append(body)
        item.append(header)
        item.append(collapse)
        return item

    def build_tabs(self, component: Component) -> Tag:
        wrapper = self.element(component, "div", [])
        nav = self.new_tag("ul", ["nav", "nav-tabs"], role="tablist")
        panes = self.new_tag("div", ["tab-content"])
        for index, child in enumerate(component.children):
            pane_id = child.attributes.get("tab_id") or f"tab-{self.ids.next()}"
            active = index == 0
            item = self.new_tag("li", ["nav-item"], role="presentation")
            link = self.new_tag(
                "button", ["nav-link", "active" if active else ""],
                type="button", data_bs_toggle="tab", data_bs_target=f"#{pane_id}", role="tab",
            )
            link.append(str(child.attributes.get("title") or ""))
            item.append(link)
            nav.append(item)
            pane = self.new_tag("div", ["tab-pane", "fade"] + (["show", "active"] if active else []), id=pane_id, role="tabpanel")
            self.append_html(pane, child.content)
            panes.append(pane)
        wrapper.append(nav)
        wrapper.append(panes)
        return wrapper

    def build_tab(self, component: Component) -> Tag:
        pane = self.new_tag("div", ["tab-pane"], id=component.attributes.get("tab_id"))
        return self.append_html(pane, component.content)

    def build_generic(self, component: Component) -> Tag:
        name, generated = GENERIC_TAGS.get(component.type, ("div", []))
        tag = self.element(component, name, list(generated))
        self.append_html(tag, component.content)
        return self.append_children(tag, component.children)

    def get_fallback(self, component: Component) -> Tag:
        tag = self.new_tag("div", [FALLBACK_CLASS], data_original_type=component.type)
        self.append_html(tag, fallback_content(component))
        return self.append_children(tag, component.children)

    builders = {
        "container": build_container,
        "section": build_container,
        "row": build_row,
        "column": build_column,
        "heading": build_heading,
        "text": build_text,
        "image": build_image,
        "button": build_button,
        "link": build_link,
        "card": build_card,
        "card-group": build_card_group,
        "alert": build_alert,
        "divider": build_divider,
        "blockquote": build_blockquote,
        "code": build_code,
        "html": build_html,
        "list": build_list,
        "accordion": build_accordion,
        "accordion-item": build_accordion_item,
        "tabs": build_tabs,
        "tab": build_tab,
        **dict.fromkeys(GENERIC_TAGS, build_generic),
    }


registry.register(Dialect(
    name="bootstrap",
    priority=60,
    parser_class=BootstrapParser,
    converter_class=BootstrapConverter,
    kind="html",
    aliases=("bs", "html"),
    description="Bootstrap 5 HTML markup",
))
