"""Sprite elements: decoding component images and expanding image directories."""

from __future__ import annotations
import fnmatch
import os
import re
import cv2
import numpy as np
from dataclasses import dataclass
from typing import List, Optional

from .config import ImageDirectory, ImageFile
from .logging_config import get_logger


logger = get_logger("images")

_INVALID_CLASS_CHARS = re.compile(r'[^A-Za-z0-9_-]+')


class ImageDecodeError(ValueError):
    """Bytes that could not be decoded into an image."""
    pass


@dataclass
class Rectangle:
    """Placement of an element inside the sprite, border included."""
    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def intersects(self, other: Rectangle) -> bool:
        return (self.x < other.right and other.x < self.right and
                self.y < other.bottom and other.y < self.bottom)


@dataclass
class SpriteElement:
    """
    One component image of a sprite.

    The rectangle covers the image plus ``border_width`` on every side; the
    image itself is drawn at ``(x + border_width, y + border_width)``.
    """
    name: str
    image: np.ndarray
    border_width: int = 0
    rectangle: Optional[Rectangle] = None

    def __post_init__(self):
        if self.rectangle is None:
            self.rectangle = Rectangle(
                width=self.image_width + 2 * self.border_width,
                height=self.image_height + 2 * self.border_width,
            )

    @property
    def image_width(self) -> int:
        return self.image.shape[1]

    @property
    def image_height(self) -> int:
        return self.image.shape[0]


def to_bgra(image: np.ndarray) -> np.ndarray:
    """Convert a decoded image of any channel layout to 8-bit BGRA."""
    if image.dtype == np.uint16:
        image = (image // 257).astype(np.uint8)
    elif image.dtype != np.uint8:
        image = np.clip(image, 0, 255).astype(np.uint8)

    if image.ndim == 2 or image.shape[2] == 1:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGRA)
    if image.shape[2] == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2BGRA)
    return image


def decode_image(data: bytes, name: str = "") -> np.ndarray:
    """
    Decode encoded image bytes (png, gif, jpeg, bmp...) to BGRA.

    Raises:
        ImageDecodeError: If the bytes are empty or not a supported image.
    """
    buffer = np.frombuffer(data, dtype=np.uint8)
    if buffer.size == 0:
        raise ImageDecodeError(f"Image '{name}' is empty")

    try:
        image = cv2.imdecode(buffer, cv2.IMREAD_UNCHANGED)
    except cv2.error as e:
        raise ImageDecodeError(f"Image '{name}' could not be decoded: {e}") from e

    if image is None:
        raise ImageDecodeError(f"Image '{name}' could not be decoded")
    return to_bgra(image)


def load_sprite_element(name: str, data: bytes, border_width: int = 0) -> SpriteElement:
    """Decode ``data`` into an element with a zeroed position."""
    return SpriteElement(name=name, image=decode_image(data, name), border_width=border_width)


def css_class_name(raw: str) -> str:
    """Turn a file stem or relative path into a usable css class name."""
    name = _INVALID_CLASS_CHARS.sub("-", raw.replace("\\", "/").replace("/", "-")).strip("-")
    if not name:
        return "sprite"
    if name[0].isdigit():
        name = "_" + name
    return name


def _split_filter(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [p.strip() for p in re.split(r'[;,]', value) if p.strip()]


def matches_filters(filename: str, include_filter: Optional[str], exclude_filter: Optional[str]) -> bool:
    """True if ``filename`` matches any include glob and no exclude glob."""
    name = filename.lower()
    includes = _split_filter(include_filter) or ["*"]
    if not any(fnmatch.fnmatch(name, p.lower()) for p in includes):
        return False
    return not any(fnmatch.fnmatch(name, p.lower()) for p in _split_filter(exclude_filter))


def expand_image_directory(directory: ImageDirectory, directory_path: str) -> List[ImageFile]:
    """
    List the component images of a directory rule.

    Args:
        directory: The directory rule (filters, recursion)
        directory_path: Absolute filesystem path of ``directory``

    Returns:
        ImageFiles with absolute paths, sorted by relative path. Names are the
        relative path without extension, made css safe.
    """
    if not os.path.isdir(directory_path):
        logger.warning(f"Image directory not found: {directory_path}")
        return []

    relative_paths = []
    if directory.include_subdirectories:
        for current, dirnames, filenames in os.walk(directory_path):
            dirnames.sort()
            rel_dir = os.path.relpath(current, directory_path)
            for filename in filenames:
                relative_paths.append(filename if rel_dir == "." else os.path.join(rel_dir, filename))
    else:
        for filename in os.listdir(directory_path):
            if os.path.isfile(os.path.join(directory_path, filename)):
                relative_paths.append(filename)

    files = []
    for relative in sorted(relative_paths):
        if not matches_filters(os.path.basename(relative), directory.include_filter, directory.exclude_filter):
            continue
        files.append(ImageFile(
            name=css_class_name(os.path.splitext(relative)[0]),
            file_path=os.path.join(directory_path, relative),
        ))

    logger.debug(f"Expanded {directory_path}: {len(files)} image(s)")
    return files


def directory_watch_paths(directory: ImageDirectory, directory_path: str) -> List[str]:
    """Directories whose listing changes when images are added or removed."""
    if not directory.include_subdirectories or not os.path.isdir(directory_path):
        return [directory_path]
    return sorted(current for current, _, _ in os.walk(directory_path))
