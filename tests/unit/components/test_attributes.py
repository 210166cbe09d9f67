"""
Unit tests for attribute normalization, compound codecs and style codecs.
"""

import pytest

from pagebridge.attributes import (
    AttributeMap,
    BricksLinkCodec,
    ElementorLinkCodec,
    ImageCodec,
    InlineStyleCodec,
    KeyedStyleCodec,
    LinkCodec,
    RuleBlockStyleCodec,
    VcLinkCodec,
    decode_dimension,
    encode_dimension,
)
from pagebridge.dialects.avada import ATTRIBUTES as AVADA
from pagebridge.dialects.elementor import ATTRIBUTES as ELEMENTOR
from pagebridge.dialects.wpbakery import ATTRIBUTES as WPBAKERY


def divi_like_map():
    return AttributeMap(
        "divi",
        {"module_class": "css_class", "admin_label": "admin_label"},
        width_key="type",
        true_tokens=("on",),
        false_tokens=("off",),
        render_true="on",
        render_false="off",
        new_window_key="url_new_window",
    )


class TestLinkCodecs:
    def test_base_codec_is_abstract(self):
        with pytest.raises(TypeError):
            LinkCodec()

    def test_vc_link_decode(self):
        decoded = VcLinkCodec().decode("url:http%3A%2F%2Fx.com|title:Go|target:_blank")
        assert decoded == {"url": "http://x.com", "link_title": "Go", "target": "_blank"}

    def test_vc_link_encode(self):
        encoded = VcLinkCodec().encode({"url": "http://x.com", "target": "_blank"})
        assert encoded == "url:http%3A%2F%2Fx.com|target:_blank"

    def test_vc_link_plain_url(self):
        assert VcLinkCodec().decode("http://x.com") == {"url": "http://x.com"}
        assert VcLinkCodec().decode("") == {}

    def test_elementor_link(self):
        codec = ElementorLinkCodec()
        native = {"url": "/u", "is_external": "on", "nofollow": "on"}
        canonical = codec.decode(native)
        assert canonical == {"url": "/u", "target": "_blank", "rel": "nofollow"}
        assert codec.encode(canonical) == native

    def test_bricks_link(self):
        codec = BricksLinkCodec()
        assert codec.encode({"url": "/u", "target": "_blank"}) == {"type": "external", "url": "/u", "newTab": True}
        assert codec.decode({"type": "external", "url": "/u", "rel": "nofollow"}) == {"url": "/u", "rel": "nofollow"}

    def test_image_codec(self):
        codec = ImageCodec()
        canonical = codec.decode({"url": "a.png", "id": 5, "alt": "A"})
        assert canonical == {"image_url": "a.png", "image_id": 5, "alt_text": "A"}
        assert codec.encode(canonical) == {"url": "a.png", "id": 5, "alt": "A"}


class TestDimensions:
    def test_decode(self):
        assert decode_dimension({"size": 10, "unit": "px"}) == "10px"
        assert decode_dimension({"size": "", "unit": "px"}) == ""
        assert decode_dimension("plain") == "plain"

    def test_encode(self):
        assert encode_dimension("1.5em") == {"unit": "em", "size": 1.5, "sizes": []}
        assert encode_dimension("10px")["size"] == 10


class TestKeyedStyleCodec:
    def test_pipe_box(self):
        codec = KeyedStyleCodec({"custom_margin": ("margin", "pipe")})
        assert codec.extract({"custom_margin": "10px|0|10px|0"}) == {"margin": "10px 0"}
        assert codec.apply({"margin": "10px 0"}) == {"custom_margin": "10px|0|10px|0"}

    def test_side_properties_compacted_into_shorthand_key(self):
        codec = KeyedStyleCodec({"custom_margin": ("margin", "pipe")})
        assert codec.apply({"margin-top": "5px"}) == {"custom_margin": "5px|0|0|0"}

    def test_shorthand_expanded_into_side_keys(self):
        native = AVADA.apply_styles({"padding": "10px 20px"})
        assert native == {
            "padding_top": "10px",
            "padding_right": "20px",
            "padding_bottom": "10px",
            "padding_left": "20px",
        }

    def test_elementor_box(self):
        native = ELEMENTOR.apply_styles({"margin": "10px 20px"})
        assert native["_margin"] == {
            "unit": "px", "top": "10", "right": "20", "bottom": "10", "left": "20", "isLinked": False,
        }
        assert ELEMENTOR.extract_styles(native) == {"margin": "10px 20px"}

    def test_unmapped(self):
        assert ELEMENTOR.style_codec.unmapped({"color": "red", "margin": "1px"}) == {"color": "red"}


class TestRuleBlockAndInline:
    def test_rule_block_extract(self):
        codec = RuleBlockStyleCodec("css")
        styles = codec.extract({"css": ".vc_custom_123{margin-top: 10px !important;}"})
        assert styles == {"margin-top": "10px"}

    def test_rule_block_apply_is_stable(self):
        codec = RuleBlockStyleCodec("css")
        first = codec.apply({"margin-top": "10px"})
        second = codec.apply({"margin-top": "10px"})
        assert first == second
        assert first["css"].startswith(".vc_custom_")
        assert codec.extract(first) == {"margin-top": "10px"}

    def test_inline(self):
        codec = InlineStyleCodec()
        assert codec.extract({"style": "color: red; margin: 0"}) == {"color": "red", "margin": "0"}
        assert codec.apply({"color": "red"}) == {"style": "color: red"}
        assert codec.apply({}) == {}


class TestAttributeMap:
    def test_normalize(self):
        amap = divi_like_map()
        canonical = amap.normalize({
            "type": "1_2",
            "module_class": "x",
            "url_new_window": "on",
            "show": "off",
            "custom": "v",
        })
        assert canonical == {"width": "50%", "css_class": "x", "target": "_blank", "show": False, "custom": "v"}

    def test_only_whole_tokens_coerced(self):
        assert divi_like_map().normalize({"label": "online"}) == {"label": "online"}

    def test_denormalize(self):
        native = divi_like_map().denormalize({"width": "50%", "css_class": "x", "target": "_blank", "show": False})
        assert native == {"url_new_window": "on", "type": "1_2", "module_class": "x", "show": "off"}

    def test_overrides_and_exclude(self):
        amap = divi_like_map()
        overrides = {"button_url": "url"}
        assert amap.normalize({"button_url": "/x", "button_text": "Go"}, overrides, exclude={"button_text"}) == {"url": "/x"}
        assert amap.native_key("url", overrides) == "button_url"

    def test_link_group(self):
        canonical = WPBAKERY.normalize({"link": "url:%2Fshop|target:_blank", "el_class": "hero"})
        assert canonical == {"url": "/shop", "target": "_blank", "css_class": "hero"}
        assert WPBAKERY.denormalize(canonical) == {"link": "url:%2Fshop|target:_blank", "el_class": "hero"}

    def test_private_keys_skipped_and_styles_claimed(self):
        native = {
            "_column_size": 50,
            "_private": "x",
            "_css_classes": "c",
            "_margin": {"unit": "px", "top": "5", "right": "5", "bottom": "5", "left": "5"},
        }
        assert ELEMENTOR.normalize(native) == {"width": "50%", "css_class": "c"}
        assert ELEMENTOR.extract_styles(native) == {"margin": "5px"}

    def test_dimension_objects_flattened(self):
        assert ELEMENTOR.normalize({"space": {"size": 20, "unit": "px"}}) == {"space": "20px"}

    def test_render_false_token(self):
        assert ELEMENTOR.denormalize({"flag": False}) == {"flag": ""}


class TestReconcile:
    def test_unchanged_keeps_native_spelling(self):
        native = {"width": "1/2", "el_class": "x", "extra": "keep"}
        canonical = WPBAKERY.normalize(native)
        assert WPBAKERY.reconcile(native, canonical) == native

    def test_changed_value_written_back(self):
        native = {"width": "1/2", "el_class": "x"}
        canonical = {**WPBAKERY.normalize(native), "width": "33.33%"}
        assert WPBAKERY.reconcile(native, canonical) == {"width": "1/3", "el_class": "x"}

    def test_link_group_rebuilt_whole(self):
        native = {"link": "url:%2Fa|title:A"}
        canonical = {"url": "/b", "link_title": "A"}
        assert WPBAKERY.reconcile(native, canonical) == {"link": "url:%2Fb|title:A"}

    def test_changed_styles_reapplied(self):
        native = {"css": ".vc_custom_1{margin-top: 10px !important;}"}
        result = WPBAKERY.reconcile(native, {}, styles={"margin-top": "20px"})
        assert WPBAKERY.extract_styles(result) == {"margin-top": "20px"}

    def test_unchanged_styles_keep_original_rule(self):
        native = {"css": ".vc_custom_1{margin-top: 10px !important;}"}
        assert WPBAKERY.reconcile(native, {}, styles={"margin-top": "10px"}) == native
