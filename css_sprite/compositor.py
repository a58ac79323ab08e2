"""Drawing positioned elements onto the sprite canvas."""

import cv2
import numpy as np
from typing import Sequence

from .images import SpriteElement, to_bgra
from .layout import compute_canvas_size


def create_canvas(height: int, width: int) -> np.ndarray:
    """Create a fully transparent BGRA canvas."""
    return np.zeros((height, width, 4), dtype=np.uint8)


def render_sprite_image(elements: Sequence[SpriteElement]) -> np.ndarray:
    """
    Compose positioned elements into one BGRA image.

    The canvas is exactly the layout extent. Each image keeps its intrinsic
    size and is drawn inside its rectangle, offset by the border width, so a
    bordered element at the right or bottom edge is never clipped.

    Args:
        elements: Elements with rectangles assigned by the layout

    Returns:
        BGRA image of shape (height, width, 4)
    """
    height, width = compute_canvas_size(elements)
    canvas = create_canvas(height, width)

    for element in elements:
        image = to_bgra(element.image)
        h, w = image.shape[:2]
        x = element.rectangle.x + element.border_width
        y = element.rectangle.y + element.border_width
        canvas[y:y + h, x:x + w] = image

    return canvas


def encode_png(image: np.ndarray, compression_level: int = 9) -> bytes:
    """Losslessly encode an image to PNG bytes."""
    ok, buffer = cv2.imencode(".png", image, [cv2.IMWRITE_PNG_COMPRESSION, compression_level])
    if not ok:
        raise ValueError(f"PNG encoding failed for image of shape {image.shape}")
    return buffer.tobytes()
