"""
JSON tree helpers for the JSON-based dialects.

Decoding, dotted-path access, and shape validation. Validation is recursive
and structural only: a document passes if every element carries the keys the
dialect requires, so parsers can probe "does this look like dialect X"
before trusting a document.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from typing import Any

logger = logging.getLogger(__name__)

_MISSING = object()


def load(content: Any) -> Any | None:
    """
    Decode JSON text, or pass through an already-decoded list/dict.

    Returns None for malformed JSON or any other input type.
    """
    if isinstance(content, (list, dict)):
        return content
    if isinstance(content, (bytes, bytearray)):
        content = content.decode("utf-8", errors="replace")
    if not isinstance(content, str) or not content.strip():
        return None
    try:
        return json.loads(content)
    except ValueError as e:
        logger.debug("jsontree.load: malformed JSON (%s)", e)
        return None


def dump(data: Any, indent: int | None = 2) -> str:
    """Encode with unescaped slashes and unicode."""
    return json.dumps(data, indent=indent, ensure_ascii=False)


def get_path(data: Any, path: str, default: Any = None) -> Any:
    """Read a dotted path ("settings.link.url"); list indices are allowed."""
    current = data
    for key in path.split("."):
        if isinstance(current, dict) and key in current:
            current = current[key]
        elif isinstance(current, list) and key.isdigit() and int(key) < len(current):
            current = current[int(key)]
        else:
            return default
    return current


def has_path(data: Any, path: str) -> bool:
    return get_path(data, path, _MISSING) is not _MISSING


def set_path(data: dict, path: str, value: Any) -> None:
    """Write a dotted path, creating intermediate dicts."""
    keys = path.split(".")
    current = data
    for key in keys[:-1]:
        if not isinstance(current.get(key), dict):
            current[key] = {}
        current = current[key]
    current[keys[-1]] = value


def flatten(data: dict, prefix: str = "") -> dict[str, Any]:
    """Flatten nested dicts into dotted keys. Empty dicts are kept as leaves."""
    flat: dict[str, Any] = {}
    for key, value in data.items():
        dotted = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, dict) and value:
            flat.update(flatten(value, dotted))
        else:
            flat[dotted] = value
    return flat


def iter_elements(elements: list, children_key: str) -> Iterator[dict]:
    """Depth-first over nested element dicts."""
    for element in elements:
        if not isinstance(element, dict):
            continue
        yield element
        children = element.get(children_key)
        if isinstance(children, list):
            yield from iter_elements(children, children_key)


def _as_element_list(data: Any, marker: str) -> list | None:
    if isinstance(data, dict):
        if marker in data:
            return [data]
        # Exported templates wrap the element list ({"content": [...]})
        inner = data.get("content")
        return inner if isinstance(inner, list) else None
    if isinstance(data, list):
        return data
    return None


def elementor_elements(data: Any) -> list | None:
    """Extract the element list from an Elementor document or export."""
    return _as_element_list(data, "elType")


def bricks_elements(data: Any) -> list | None:
    """Extract the element list from a Bricks document or export."""
    return _as_element_list(data, "name")


def _valid_elementor_element(element: Any) -> bool:
    if not isinstance(element, dict):
        return False
    if "id" not in element or "elType" not in element:
        return False
    if element["elType"] == "widget" and "widgetType" not in element:
        return False
    children = element.get("elements", [])
    if not isinstance(children, list):
        return False
    return all(_valid_elementor_element(child) for child in children)


def is_valid_elementor(data: Any) -> bool:
    """Every element has id and elType, widgets have widgetType, recursively."""
    elements = elementor_elements(data)
    if not elements:
        return False
    return all(_valid_elementor_element(element) for element in elements)


def is_flat_bricks(elements: list) -> bool:
    """Flat Bricks documents link children by id strings."""
    for element in elements:
        if isinstance(element, dict):
            children = element.get("children")
            if isinstance(children, list) and children:
                return not isinstance(children[0], dict)
    return True


def _valid_bricks_element(element: Any, nested: bool) -> bool:
    if not isinstance(element, dict):
        return False
    if "id" not in element or "name" not in element:
        return False
    if nested:
        children = element.get("children", [])
        if not isinstance(children, list):
            return False
        return all(_valid_bricks_element(child, nested=True) for child in children)
    return True


def is_valid_bricks(data: Any) -> bool:
    """
    Every element has id and name.

    Flat form additionally requires every child id to resolve and every
    element to be reachable from a root.
    """
    elements = bricks_elements(data)
    if not elements:
        return False
    nested = not is_flat_bricks(elements)
    if not all(_valid_bricks_element(element, nested) for element in elements):
        return False
    if nested:
        return True

    index = index_by_id(elements)
    for element in elements:
        for child_id in element.get("children") or []:
            if str(child_id) not in index:
                return False
    reachable = {str(e["id"]) for e in iter_elements(nest_flat(elements), "children")}
    return reachable == set(index)


def index_by_id(elements: list[dict]) -> dict[str, dict]:
    return {str(element["id"]): element for element in elements if isinstance(element, dict) and "id" in element}


def _is_root(element: dict, index: dict[str, dict]) -> bool:
    parent = element.get("parent")
    return parent in (None, 0, "0", "") or str(parent) not in index


def nest_flat(elements: list[dict]) -> list[dict]:
    """
    Rebuild a nested tree from a flat id-linked list.

    Returns copies of the element dicts with `children` replaced by the child
    element dicts, in the order the parent lists them.
    """
    index = index_by_id(elements)
    seen: set[str] = set()

    def build(element: dict) -> dict:
        element_id = str(element["id"])
        seen.add(element_id)
        node = {k: v for k, v in element.items() if k != "children"}
        kids = []
        for child_id in element.get("children") or []:
            child = index.get(str(child_id))
            if child is not None and str(child_id) not in seen:
                kids.append(build(child))
        node["children"] = kids
        return node

    return [build(element) for element in elements if isinstance(element, dict) and "id" in element and _is_root(element, index)]


def flatten_tree(roots: list[dict], parent: str | int = 0) -> list[dict]:
    """Inverse of nest_flat: depth-first flat list with parent/children ids."""
    flat: list[dict] = []
    for node in roots:
        kids = node.get("children") or []
        child_ids = [child["id"] for child in kids]
        entry: dict[str, Any] = {}
        for key, value in node.items():
            if key == "children":
                entry[key] = child_ids
            elif key == "parent":
                entry[key] = parent
            else:
                entry[key] = value
        entry.setdefault("parent", parent)
        entry.setdefault("children", child_ids)
        flat.append(entry)
        flat.extend(flatten_tree(kids, parent=node["id"]))
    return flat
