"""CSS rules mapping each sprite element to its slice of the sprite image."""

from typing import Iterable

from .images import SpriteElement


CSS_RULE_TEMPLATE = (
    ".{name} {{background-image: url('{url}?{fingerprint}');"
    "background-position: -{x}px -{y}px;"
    "width: {width}px;height: {height}px;}}"
)


def build_css_rule(element: SpriteElement, fingerprint: str, sprite_image_url: str) -> str:
    """Rule for one positioned element; sizes are the image's own, border excluded."""
    return CSS_RULE_TEMPLATE.format(
        name=element.name,
        url=sprite_image_url,
        fingerprint=fingerprint,
        x=element.rectangle.x + element.border_width,
        y=element.rectangle.y + element.border_width,
        width=element.image_width,
        height=element.image_height,
    )


def build_css(elements: Iterable[SpriteElement], fingerprint: str, sprite_image_url: str) -> str:
    """
    Stylesheet for a sprite, one rule per line in positioned order.

    Args:
        elements: Positioned elements
        fingerprint: Content hash of the written sprite image
        sprite_image_url: Url the sprite image is served from

    Returns:
        The stylesheet text
    """
    return "\n".join(build_css_rule(e, fingerprint, sprite_image_url) for e in elements)
