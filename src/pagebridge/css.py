"""
CSS helpers shared by the style codecs.

Canonical styles are kebab-case property names mapped to CSS value strings.
"""

from __future__ import annotations

import re

SIDES = ("top", "right", "bottom", "left")
BOX_PROPERTIES = ("margin", "padding")

NAMED_COLORS = {
    "black": "#000000",
    "white": "#ffffff",
    "red": "#ff0000",
    "green": "#008000",
    "blue": "#0000ff",
    "yellow": "#ffff00",
    "gray": "#808080",
    "transparent": "rgba(0,0,0,0)",
}

# px per unit
UNIT_SCALE = {
    "px": 1.0,
    "pt": 1.3333,
    "cm": 37.795,
    "mm": 3.7795,
    "in": 96.0,
}
BASE_FONT_SIZE = 16

RGB_PATTERN = re.compile(r"rgba?\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)")
LENGTH_PATTERN = re.compile(r"^\s*(-?\d*\.?\d+)\s*([a-z%]*)\s*$")


def parse_inline(css: str) -> dict[str, str]:
    """Parse "color: red; margin: 0" into an ordered mapping."""
    styles: dict[str, str] = {}
    for rule in (css or "").split(";"):
        rule = rule.strip()
        if not rule or ":" not in rule:
            continue
        prop, value = rule.split(":", 1)
        styles[prop.strip().lower()] = value.strip()
    return styles


def to_inline(styles: dict[str, str]) -> str:
    """Inverse of parse_inline; empty values are skipped."""
    return "; ".join(f"{prop}: {value}" for prop, value in styles.items() if value not in (None, ""))


def convert_property_case(prop: str, fmt: str) -> str:
    """
    Convert a property name between naming styles.

    kebab: background-color, camel: backgroundColor, snake: background_color,
    bricks: _backgroundColor.
    """
    kebab = re.sub(r"([a-z0-9])([A-Z])", r"\1-\2", prop.lstrip("_")).replace("_", "-").lower()
    if fmt in ("kebab", "css"):
        return kebab
    if fmt == "snake":
        return kebab.replace("-", "_")
    if fmt in ("camel", "js"):
        head, *rest = kebab.split("-")
        return head + "".join(part.capitalize() for part in rest)
    if fmt == "bricks":
        return "_" + convert_property_case(kebab, "camel")
    return prop


def normalize_color(color: str, fmt: str = "hex") -> str:
    """Named colors and rgb() triples to lowercase hex."""
    color = color.strip().lower()
    color = NAMED_COLORS.get(color, color)
    if fmt == "hex" and not color.startswith("#"):
        match = RGB_PATTERN.match(color)
        if match and not color.startswith("rgba(0,0,0,0"):
            r, g, b = (min(255, int(part)) for part in match.groups())
            return f"#{r:02x}{g:02x}{b:02x}"
    return color


def _format_number(value: float) -> str:
    rounded = round(value, 2)
    return str(int(rounded)) if rounded == int(rounded) else f"{rounded:g}"


def convert_unit(value: str, from_unit: str, to_unit: str, base_font_size: int = BASE_FONT_SIZE) -> str:
    """Convert a length between px/em/rem/pt/cm/mm/in, rounded to 2 places."""
    match = LENGTH_PATTERN.match(str(value))
    numeric = float(match.group(1)) if match else 0.0
    if numeric == 0:
        return "0"
    if from_unit in ("em", "rem"):
        px = numeric * base_font_size
    else:
        px = numeric * UNIT_SCALE.get(from_unit, 1.0)
    if to_unit in ("em", "rem"):
        result = px / base_font_size
    else:
        result = px / UNIT_SCALE.get(to_unit, 1.0)
    return f"{_format_number(result)}{to_unit}"


def split_length(value: str) -> tuple[str, str]:
    """"10px" -> ("10", "px"); unitless numbers get "px"."""
    match = LENGTH_PATTERN.match(str(value))
    if not match:
        return str(value), ""
    return match.group(1), match.group(2) or "px"


def extract_spacing(styles: dict[str, str], prop: str) -> dict[str, str]:
    """Resolve margin/padding shorthand plus per-side overrides into four sides."""
    spacing = dict.fromkeys(SIDES, "")
    shorthand = styles.get(prop)
    if shorthand:
        values = shorthand.split()
        if len(values) == 1:
            spacing = dict.fromkeys(SIDES, values[0])
        elif len(values) == 2:
            spacing.update(top=values[0], bottom=values[0], right=values[1], left=values[1])
        elif len(values) == 3:
            spacing.update(top=values[0], right=values[1], left=values[1], bottom=values[2])
        else:
            spacing.update(zip(SIDES, values[:4]))
    for side in SIDES:
        value = styles.get(f"{prop}-{side}")
        if value:
            spacing[side] = value
    return spacing


def spacing_shorthand(sides: dict[str, str]) -> str:
    """Four sides -> shortest equivalent shorthand; missing sides are 0."""
    top, right, bottom, left = (sides.get(side) or "0" for side in SIDES)
    if top == right == bottom == left:
        return top
    if top == bottom and right == left:
        return f"{top} {right}"
    if right == left:
        return f"{top} {right} {bottom}"
    return f"{top} {right} {bottom} {left}"


def expand_box(styles: dict[str, str]) -> dict[str, str]:
    """Replace margin/padding shorthands with their per-side properties."""
    expanded: dict[str, str] = {}
    for prop, value in styles.items():
        if prop in BOX_PROPERTIES:
            for side, side_value in extract_spacing({prop: value}, prop).items():
                expanded[f"{prop}-{side}"] = side_value
        else:
            expanded[prop] = value
    return expanded


def strip_important(value: str) -> str:
    return re.sub(r"\s*!important\s*$", "", value.strip())


def parse_rule_block(css: str) -> dict[str, str]:
    """Declarations of the first `selector{...}` block (or bare declarations)."""
    match = re.search(r"\{([^}]*)\}", css or "")
    body = match.group(1) if match else (css or "")
    return {prop: strip_important(value) for prop, value in parse_inline(body).items()}


def merge(*style_maps: dict[str, str]) -> dict[str, str]:
    """Later maps win."""
    merged: dict[str, str] = {}
    for styles in style_maps:
        merged.update(styles)
    return merged
