"""
Hierarchical tag tokenizer for bracket-tag markup.

Scans `[name attr="value"]...[/name]` text left to right with a stack of open
frames, producing a forest of TagNodes. Matching is stack-based, so nested
tags of the same name pair up correctly:

    [a][a]inner[/a][/a]  ->  a( a("inner") )

Recovery rules (never raises on content):
- A closer that does not match the innermost open tag is kept as literal text.
- A closer for an allow-listed self-closing tag is dropped.
- Frames still open at end of input are auto-closed, with a warning each.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

# Opening or closing tag. Name must start with a letter, so "[1]" or "[ x ]" stay text.
TAG_PATTERN = re.compile(
    r"\[(?P<close>/)?(?P<name>[A-Za-z][\w-]*)(?P<attrs>(?:[^\[\]\"']|\"[^\"]*\"|'[^']*')*?)(?P<slash>/)?\]"
)

# key="v" | key='v' | key=bare | "positional" | 'positional' | bare
ATTR_PATTERN = re.compile(
    r"""
    (?P<key>[\w-]+)\s*=\s*(?:"(?P<dq>[^"]*)"|'(?P<sq>[^']*)'|(?P<bare>[^\s"']+))
    | "(?P<pdq>[^"]*)"
    | '(?P<psq>[^']*)'
    | (?P<pbare>[^\s"'=]+)
    """,
    re.VERBOSE,
)


@dataclass
class TagNode:
    """A tag and everything nested inside it."""
    name: str
    attributes: dict[str, str] = field(default_factory=dict)
    raw_content: str = ""  # literal text directly inside this tag, in order
    children: list[TagNode] = field(default_factory=list)
    source: str = ""  # verbatim inner source between open and close tag
    self_closing: bool = False
    closed: bool = True  # False when auto-closed at end of input

    def walk(self) -> Iterator[TagNode]:
        yield self
        for child in self.children:
            yield from child.walk()

    def find_all(self, name: str) -> list[TagNode]:
        return [node for node in self.walk() if node.name == name]

    @property
    def text(self) -> str:
        return self.raw_content.strip()


@dataclass
class TagScan:
    """Result of a full scan: the forest plus recovery diagnostics."""
    nodes: list[TagNode] = field(default_factory=list)
    text: str = ""  # loose text outside any tag
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.warnings


@dataclass
class _Frame:
    node: TagNode
    inner_start: int


def parse_attributes(text: str) -> dict[str, str]:
    """
    Parse an attribute string into an ordered dict.

    Keys are lower-cased. Positional tokens are stored under their position
    ("0", "1", ...). `&quot;` inside values is unescaped.
    """
    attrs: dict[str, str] = {}
    position = 0
    for match in ATTR_PATTERN.finditer(text):
        key = match.group("key")
        if key is not None:
            value = match.group("dq")
            if value is None:
                value = match.group("sq")
            if value is None:
                value = match.group("bare")
            attrs[key.lower()] = _unescape(value)
            continue
        value = match.group("pdq")
        if value is None:
            value = match.group("psq")
        if value is None:
            value = match.group("pbare")
        if value is None or value == "/":
            continue
        attrs[str(position)] = _unescape(value)
        position += 1
    return attrs


def _unescape(value: str) -> str:
    return value.replace("&quot;", '"').replace("&#039;", "'")


def scan(
    text: str,
    self_closing: Iterable[str] = (),
    accept: Callable[[str], bool] | None = None,
) -> TagScan:
    """
    Tokenize bracket-tag text into a forest of TagNodes.

    Args:
        text: markup to scan
        self_closing: tag names that never open a frame
        accept: predicate over tag names; rejected tags are kept as literal text
    """
    result = TagScan()
    if not text:
        return result

    void = {name.lower() for name in self_closing}
    stack: list[_Frame] = []
    loose: list[str] = []
    pos = 0

    def add_text(chunk: str) -> None:
        if not chunk:
            return
        if stack:
            stack[-1].node.raw_content += chunk
        else:
            loose.append(chunk)

    def attach(node: TagNode) -> None:
        if stack:
            stack[-1].node.children.append(node)
        else:
            result.nodes.append(node)

    for match in TAG_PATTERN.finditer(text):
        name = match.group("name").lower()
        if accept is not None and not accept(name):
            continue

        add_text(text[pos:match.start()])
        pos = match.end()

        if match.group("close"):
            if stack and stack[-1].node.name == name:
                frame = stack.pop()
                frame.node.source = text[frame.inner_start:match.start()]
            elif name in void:
                pass
            else:
                warning = f"stray closing tag [/{name}] at offset {match.start()}"
                result.warnings.append(warning)
                logger.warning("tokenizer: %s", warning)
                add_text(match.group(0))
            continue

        node = TagNode(name=name, attributes=parse_attributes(match.group("attrs")))
        if match.group("slash") or name in void:
            node.self_closing = True
            attach(node)
            continue

        attach(node)
        stack.append(_Frame(node=node, inner_start=match.end()))

    add_text(text[pos:])

    # Auto-close anything left open
    while stack:
        frame = stack.pop()
        frame.node.closed = False
        frame.node.source = text[frame.inner_start:]
        warning = f"unterminated tag [{frame.node.name}] auto-closed at end of input"
        result.warnings.append(warning)
        logger.warning("tokenizer: %s", warning)

    result.text = "".join(loose)
    return result


def tokenize(
    text: str,
    self_closing: Iterable[str] = (),
    accept: Callable[[str], bool] | None = None,
) -> list[TagNode]:
    """Tokenize and return only the forest."""
    return scan(text, self_closing=self_closing, accept=accept).nodes


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


def format_attributes(attributes: Mapping[str, Any]) -> str:
    """Serialize attributes with quoting; None values are omitted."""
    parts = []
    for key, value in attributes.items():
        if value is None:
            continue
        text = _format_value(value)
        # Positional tokens parse back under "0", "1", ... and are written bare of a key
        prefix = "" if str(key).isdigit() else f"{key}="
        if '"' not in text:
            parts.append(f'{prefix}"{text}"')
        elif "'" not in text:
            parts.append(f"{prefix}'{text}'")
        else:
            parts.append(f'{prefix}"{text.replace(chr(34), "&quot;")}"')
    return " ".join(parts)


def build_tag(
    name: str,
    attributes: Mapping[str, Any] | None = None,
    content: str = "",
    self_closing: bool = False,
) -> str:
    """Inverse of tokenizing one node: build `[name ...]content[/name]`."""
    attrs = format_attributes(attributes or {})
    opening = f"[{name} {attrs}]" if attrs else f"[{name}]"
    if self_closing:
        return opening
    return f"{opening}{content}[/{name}]"
