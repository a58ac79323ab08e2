"""Tests for stylesheet module."""

import numpy as np

from css_sprite import SpriteElement, Rectangle, build_css, build_css_rule


def make_element(name, x, y, width, height, border_width=0):
    image = np.zeros((height, width, 4), dtype=np.uint8)
    rect = Rectangle(x, y, width + 2 * border_width, height + 2 * border_width)
    return SpriteElement(name, image, border_width, rect)


class TestBuildCssRule:
    def test_exact_rule(self):
        element = make_element("icon-a", 0, 0, 16, 16, border_width=1)

        css = build_css_rule(element, "abc123", "/img/sprite.png")

        assert css == (
            ".icon-a {background-image: url('/img/sprite.png?abc123');"
            "background-position: -1px -1px;width: 16px;height: 16px;}"
        )

    def test_position_includes_offset(self):
        element = make_element("b", 20, 15, 10, 5)

        css = build_css_rule(element, "f", "/s.png")

        assert "background-position: -20px -15px;" in css
        assert "width: 10px;height: 5px;" in css


class TestBuildCss:
    def test_single_element_is_exact(self):
        element = make_element("icon-a", 0, 0, 16, 16, border_width=1)

        assert build_css([element], "abc123", "/img/sprite.png") == build_css_rule(element, "abc123", "/img/sprite.png")

    def test_one_rule_per_element_in_order(self):
        elements = [make_element("z", 0, 0, 4, 4), make_element("a", 4, 0, 4, 4)]

        lines = build_css(elements, "fp", "/s.png").split("\n")

        assert len(lines) == 2
        assert lines[0].startswith(".z {")
        assert lines[1].startswith(".a {")

    def test_empty(self):
        assert build_css([], "fp", "/s.png") == ""
