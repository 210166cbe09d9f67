"""
Attribute normalization between dialect-native keys and the canonical vocabulary.

An AttributeMap is the bidirectional table for one dialect:

    normalize(native)     -> canonical attributes
    denormalize(canonical) -> native attributes
    reconcile(native, canonical) -> native updated with canonical changes only

Compound values (links, images, dimension objects) are decomposed into flat
canonical keys by codecs and rebuilt on the way out. Width tokens go through
the grid tables in `units`. Style-bearing keys are claimed by a style codec
and surface as Component.styles instead of attributes.
"""

from __future__ import annotations

import zlib
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from typing import Any
from urllib.parse import quote, unquote

from . import css, jsontree
from .units import percentage_to_dialect_token, width_to_percentage

LINK_KEYS = ("url", "target", "rel", "link_title")
IMAGE_KEYS = ("image_url", "image_id", "alt_text")

_MISSING = object()


# --- compound codecs ---------------------------------------------------------

class LinkCodec(ABC):
    """Native link value <-> url/target/rel/link_title."""

    @abstractmethod
    def decode(self, value: Any) -> dict[str, Any]:
        ...

    @abstractmethod
    def encode(self, canonical: Mapping[str, Any]) -> Any:
        ...


class VcLinkCodec(LinkCodec):
    """WPBakery `url:...|title:...|target:...|rel:...` strings, URL-encoded."""

    FIELDS = {"url": "url", "title": "link_title", "target": "target", "rel": "rel"}

    def decode(self, value: Any) -> dict[str, Any]:
        if not isinstance(value, str):
            return {}
        if not value.startswith(tuple(f"{k}:" for k in self.FIELDS)):
            # Plain URL in a link field
            return {"url": value} if value else {}
        decoded: dict[str, Any] = {}
        for part in value.split("|"):
            if ":" not in part:
                continue
            key, raw = part.split(":", 1)
            canonical = self.FIELDS.get(key.strip())
            if canonical and raw:
                decoded[canonical] = unquote(raw).strip()
        return decoded

    def encode(self, canonical: Mapping[str, Any]) -> Any:
        parts = []
        for native, key in self.FIELDS.items():
            value = canonical.get(key)
            if value:
                parts.append(f"{native}:{quote(str(value), safe='')}")
        return "|".join(parts)


class ElementorLinkCodec(LinkCodec):
    """Elementor `{url, is_external, nofollow}` objects."""

    def decode(self, value: Any) -> dict[str, Any]:
        if isinstance(value, str):
            return {"url": value} if value else {}
        if not isinstance(value, dict):
            return {}
        decoded: dict[str, Any] = {}
        if value.get("url"):
            decoded["url"] = value["url"]
        if value.get("is_external") in ("on", True, "yes"):
            decoded["target"] = "_blank"
        if value.get("nofollow") in ("on", True, "yes"):
            decoded["rel"] = "nofollow"
        return decoded

    def encode(self, canonical: Mapping[str, Any]) -> Any:
        return {
            "url": canonical.get("url") or "",
            "is_external": "on" if canonical.get("target") == "_blank" else "",
            "nofollow": "on" if "nofollow" in str(canonical.get("rel") or "") else "",
        }


class BricksLinkCodec(LinkCodec):
    """Bricks `{type, url, newTab, rel}` objects."""

    def decode(self, value: Any) -> dict[str, Any]:
        if isinstance(value, str):
            return {"url": value} if value else {}
        if not isinstance(value, dict):
            return {}
        decoded: dict[str, Any] = {}
        if value.get("url"):
            decoded["url"] = value["url"]
        if value.get("newTab"):
            decoded["target"] = "_blank"
        if value.get("rel"):
            decoded["rel"] = value["rel"]
        return decoded

    def encode(self, canonical: Mapping[str, Any]) -> Any:
        link: dict[str, Any] = {"type": "external", "url": canonical.get("url") or ""}
        if canonical.get("target") == "_blank":
            link["newTab"] = True
        if canonical.get("rel"):
            link["rel"] = canonical["rel"]
        return link


class ImageCodec:
    """`{url, id, alt}` image objects (Elementor and Bricks)."""

    def decode(self, value: Any) -> dict[str, Any]:
        if isinstance(value, str):
            return {"image_url": value} if value else {}
        if not isinstance(value, dict):
            return {}
        decoded: dict[str, Any] = {}
        if value.get("url"):
            decoded["image_url"] = value["url"]
        if value.get("id") not in (None, ""):
            decoded["image_id"] = value["id"]
        if value.get("alt"):
            decoded["alt_text"] = value["alt"]
        return decoded

    def encode(self, canonical: Mapping[str, Any]) -> Any:
        image: dict[str, Any] = {"url": canonical.get("image_url") or ""}
        if canonical.get("image_id") not in (None, ""):
            image["id"] = canonical["image_id"]
        if canonical.get("alt_text"):
            image["alt"] = canonical["alt_text"]
        return image


def decode_dimension(value: Any) -> Any:
    """Elementor `{size, unit}` -> "10px"; other values unchanged."""
    if isinstance(value, dict) and set(value) <= {"size", "unit", "sizes"} and "size" in value:
        size = value.get("size")
        if size in (None, ""):
            return ""
        return f"{size}{value.get('unit') or 'px'}"
    return value


def encode_dimension(value: str) -> dict[str, Any]:
    number, unit = css.split_length(value)
    try:
        size: Any = float(number)
        if size == int(size):
            size = int(size)
    except ValueError:
        size = number
    return {"unit": unit or "px", "size": size, "sizes": []}


# --- style codecs ------------------------------------------------------------

class StyleCodec:
    """Claims style-bearing native keys and maps them to CSS properties."""

    def claims(self, key: str) -> bool:
        return False

    def extract(self, native: Mapping[str, Any]) -> dict[str, str]:
        return {}

    def apply(self, styles: Mapping[str, str]) -> dict[str, Any]:
        return {}


class KeyedStyleCodec(StyleCodec):
    """
    Style properties stored under individual native keys.

    `mapping` is native key -> (css property, encoding). Native keys may be
    dotted paths into nested settings ("_background.color.hex"). Encodings:
    "plain" string values, "pipe" Divi `top|right|bottom|left` boxes,
    "elementor_box" `{top, right, bottom, left, unit}`, "bricks_box"
    `{top, right, bottom, left}` with units inline, "size" `{size, unit}`.
    """

    def __init__(self, mapping: Mapping[str, tuple[str, str]]):
        self.mapping = dict(mapping)
        self.by_property = {prop: (key, encoding) for key, (prop, encoding) in self.mapping.items()}
        self.roots = {key.split(".", 1)[0] for key in self.mapping}

    def claims(self, key: str) -> bool:
        return key in self.roots

    def extract(self, native: Mapping[str, Any]) -> dict[str, str]:
        styles: dict[str, str] = {}
        for key, (prop, encoding) in self.mapping.items():
            value = jsontree.get_path(native, key)
            if value in (None, "", {}):
                continue
            decoded = self._decode(value, encoding)
            if decoded:
                styles[prop] = decoded
        return styles

    def _prepare(self, styles: Mapping[str, str]) -> dict[str, str]:
        """Reshape margin/padding to the granularity this codec stores."""
        pending = dict(styles)
        for prop in css.BOX_PROPERTIES:
            side_props = [f"{prop}-{side}" for side in css.SIDES]
            if prop in self.by_property:
                if any(side in pending for side in side_props):
                    pending[prop] = css.spacing_shorthand(css.extract_spacing(pending, prop))
                    for side in side_props:
                        pending.pop(side, None)
            elif prop in pending:
                for side, value in css.extract_spacing(pending, prop).items():
                    pending[f"{prop}-{side}"] = value
                del pending[prop]
        return pending

    def unmapped(self, styles: Mapping[str, str]) -> dict[str, str]:
        """Properties apply() has no native key for."""
        return {prop: value for prop, value in self._prepare(styles).items() if prop not in self.by_property}

    def apply(self, styles: Mapping[str, str]) -> dict[str, Any]:
        native: dict[str, Any] = {}
        for prop, value in self._prepare(styles).items():
            target = self.by_property.get(prop)
            if target is None or value in (None, ""):
                continue
            key, encoding = target
            jsontree.set_path(native, key, self._encode(str(value), encoding))
        return native

    @staticmethod
    def _decode(value: Any, encoding: str) -> str:
        if encoding == "pipe" and isinstance(value, str):
            parts = value.split("|")[:4]
            sides = {side: part for side, part in zip(css.SIDES, parts) if part and part not in ("true", "false")}
            return css.spacing_shorthand(sides) if sides else ""
        if encoding == "elementor_box" and isinstance(value, dict):
            unit = value.get("unit") or "px"
            sides = {side: f"{value[side]}{unit}" for side in css.SIDES if value.get(side) not in (None, "")}
            return css.spacing_shorthand(sides) if sides else ""
        if encoding == "bricks_box" and isinstance(value, dict):
            sides = {side: str(value[side]) for side in css.SIDES if value.get(side) not in (None, "")}
            return css.spacing_shorthand(sides) if sides else ""
        if encoding == "size":
            decoded = decode_dimension(value)
            return decoded if isinstance(decoded, str) else ""
        if isinstance(value, (dict, list)):
            return ""
        return str(value)

    @staticmethod
    def _encode(value: str, encoding: str) -> Any:
        if encoding == "pipe":
            sides = css.extract_spacing({"box": value}, "box")
            return "|".join(sides[side] for side in css.SIDES)
        if encoding == "elementor_box":
            sides = css.extract_spacing({"box": value}, "box")
            unit = css.split_length(sides["top"])[1] or "px"
            box: dict[str, Any] = {"unit": unit}
            for side in css.SIDES:
                box[side] = css.split_length(sides[side])[0]
            box["isLinked"] = len(set(sides.values())) == 1
            return box
        if encoding == "bricks_box":
            return dict(css.extract_spacing({"box": value}, "box"))
        if encoding == "size":
            return encode_dimension(value)
        return value


class RuleBlockStyleCodec(StyleCodec):
    """A single attribute holding a `.class{...}` rule (WPBakery `css`)."""

    def __init__(self, key: str = "css", class_prefix: str = "vc_custom_"):
        self.key = key
        self.class_prefix = class_prefix

    def claims(self, key: str) -> bool:
        return key == self.key

    def extract(self, native: Mapping[str, Any]) -> dict[str, str]:
        value = native.get(self.key)
        return css.parse_rule_block(value) if isinstance(value, str) else {}

    def apply(self, styles: Mapping[str, str]) -> dict[str, Any]:
        declarations = ";".join(f"{prop}: {value} !important" for prop, value in styles.items() if value)
        if not declarations:
            return {}
        # Stable class name so repeated conversions produce identical output
        suffix = zlib.crc32(declarations.encode("utf-8"))
        return {self.key: f".{self.class_prefix}{suffix}{{{declarations};}}"}


class InlineStyleCodec(StyleCodec):
    """An HTML `style` attribute."""

    def __init__(self, key: str = "style"):
        self.key = key

    def claims(self, key: str) -> bool:
        return key == self.key

    def extract(self, native: Mapping[str, Any]) -> dict[str, str]:
        value = native.get(self.key)
        return css.parse_inline(value) if isinstance(value, str) else {}

    def apply(self, styles: Mapping[str, str]) -> dict[str, Any]:
        inline = css.to_inline(dict(styles))
        return {self.key: inline} if inline else {}


# --- the map -----------------------------------------------------------------

class AttributeMap:
    """Bidirectional attribute table for one dialect."""

    def __init__(
        self,
        dialect: str,
        forward: Mapping[str, str],
        reverse: Mapping[str, str] | None = None,
        *,
        width_key: str | None = None,
        true_tokens: Iterable[Any] = (),
        false_tokens: Iterable[Any] = (),
        render_true: Any = True,
        render_false: Any = False,
        skip_private: bool = False,
        link_keys: Iterable[str] = (),
        link_codec: LinkCodec | None = None,
        image_keys: Iterable[str] = (),
        image_codec: ImageCodec | None = None,
        new_window_key: str | None = None,
        style_codec: StyleCodec | None = None,
        dimension_objects: bool = False,
    ):
        self.dialect = dialect
        self.forward = dict(forward)
        # Explicit reverse entries win; otherwise first forward key for a canonical name
        self.reverse: dict[str, str] = {}
        for native, canonical in self.forward.items():
            self.reverse.setdefault(canonical, native)
        self.reverse.update(reverse or {})
        self.width_key = width_key
        self.true_tokens = set(true_tokens)
        self.false_tokens = set(false_tokens)
        self.render_true = render_true
        self.render_false = render_false
        self.skip_private = skip_private
        self.link_keys = tuple(link_keys)
        self.link_codec = link_codec
        self.image_keys = tuple(image_keys)
        self.image_codec = image_codec
        self.new_window_key = new_window_key
        self.style_codec = style_codec or StyleCodec()
        self.dimension_objects = dimension_objects

    # normalize -------------------------------------------------------------

    def coerce(self, value: Any) -> Any:
        """Dialect boolean tokens -> bool (whole-string matches only)."""
        if isinstance(value, str):
            if value in self.true_tokens:
                return True
            if value in self.false_tokens:
                return False
        if self.dimension_objects:
            return decode_dimension(value)
        return value

    def normalize(
        self,
        native: Mapping[str, Any],
        overrides: Mapping[str, str] | None = None,
        exclude: Iterable[str] = (),
    ) -> dict[str, Any]:
        """Native attributes -> canonical attributes. Unknown keys pass through."""
        excluded = set(exclude)
        result: dict[str, Any] = {}
        for key, value in native.items():
            if key in excluded:
                continue
            if key == self.width_key:
                result["width"] = width_to_percentage(value, self.dialect)
                continue
            if overrides and key in overrides:
                result[overrides[key]] = self.coerce(value)
                continue
            if key in self.link_keys and self.link_codec is not None:
                result.update(self.link_codec.decode(value))
                continue
            if key in self.image_keys and self.image_codec is not None:
                result.update(self.image_codec.decode(value))
                continue
            if key == self.new_window_key:
                opens_new = self.coerce(value)
                result["target"] = "_blank" if opens_new is True else "_self"
                continue
            if key not in self.forward:
                if self.style_codec.claims(key):
                    continue
                if self.skip_private and key.startswith("_"):
                    continue
            result[self.forward.get(key, key)] = self.coerce(value)
        return result

    def extract_styles(self, native: Mapping[str, Any]) -> dict[str, str]:
        return self.style_codec.extract(native)

    # denormalize -----------------------------------------------------------

    def render(self, value: Any) -> Any:
        if isinstance(value, bool):
            return self.render_true if value else self.render_false
        return value

    def native_key(self, key: str, overrides: Mapping[str, str] | None = None) -> str:
        if overrides:
            for native, canonical in overrides.items():
                if canonical == key:
                    return native
        return self.reverse.get(key, key)

    def denormalize(
        self,
        canonical: Mapping[str, Any],
        overrides: Mapping[str, str] | None = None,
    ) -> dict[str, Any]:
        """Canonical attributes -> native attributes. Unknown keys pass through."""
        native: dict[str, Any] = {}
        consumed: set[str] = set()

        if self.link_codec is not None and self.link_keys and canonical.get("url"):
            native[self.link_keys[0]] = self.link_codec.encode(canonical)
            consumed.update(LINK_KEYS)
        elif self.new_window_key and "target" in canonical:
            native[self.new_window_key] = self.render(canonical["target"] == "_blank")
            consumed.add("target")

        if self.image_codec is not None and self.image_keys and canonical.get("image_url"):
            native[self.image_keys[0]] = self.image_codec.encode(canonical)
            consumed.update(IMAGE_KEYS)

        for key, value in canonical.items():
            if key in consumed:
                continue
            if key == "width" and self.width_key:
                native[self.width_key] = percentage_to_dialect_token(value, self.dialect)
                continue
            if value is None:
                continue
            native[self.native_key(key, overrides)] = self.render(value)
        return native

    def apply_styles(self, styles: Mapping[str, str]) -> dict[str, Any]:
        return self.style_codec.apply(styles)

    # same-dialect ----------------------------------------------------------

    def reconcile(
        self,
        native: Mapping[str, Any],
        canonical: Mapping[str, Any],
        styles: Mapping[str, str] | None = None,
        overrides: Mapping[str, str] | None = None,
        exclude: Iterable[str] = (),
    ) -> dict[str, Any]:
        """
        Start from the original native attributes and write back only what changed.

        Keys whose canonical value equals what normalizing `native` yields keep
        their original native spelling, so parse -> convert on one dialect
        reproduces the input attributes.
        """
        baseline = self.normalize(native, overrides, exclude)
        changed = {k: v for k, v in canonical.items() if baseline.get(k, _MISSING) != v}
        # Compound groups are rebuilt whole
        if any(key in changed for key in LINK_KEYS):
            changed.update({k: canonical[k] for k in LINK_KEYS if k in canonical})
        if any(key in changed for key in IMAGE_KEYS):
            changed.update({k: canonical[k] for k in IMAGE_KEYS if k in canonical})

        result = dict(native)
        if changed:
            result.update(self.denormalize(changed, overrides))
        if styles is not None and dict(styles) != self.extract_styles(native):
            result.update(self.apply_styles(styles))
        return result