"""Sprite layout: squareness ordering and single-column row filling."""

from __future__ import annotations
from typing import List, Sequence, Tuple

from .images import SpriteElement
from .logging_config import get_logger


logger = get_logger("layout")


class EmptySpriteError(ValueError):
    """A sprite needs at least one element."""
    pass


def squareness(width: int, height: int) -> float:
    """1.0 for a square, approaching 0 for long thin shapes."""
    if width <= 0 or height <= 0:
        return 0.0
    return min(width, height) / max(width, height)


def squareness_key(element: SpriteElement) -> Tuple[float, int, str]:
    """Sort key: squarest first, then larger area, then name."""
    rect = element.rectangle
    return (-squareness(rect.width, rect.height), -(rect.width * rect.height), element.name)


def sort_by_squareness(elements: Sequence[SpriteElement]) -> List[SpriteElement]:
    return sorted(elements, key=squareness_key)


def position_by_fill_one_column(elements: Sequence[SpriteElement], bin_width: int) -> List[SpriteElement]:
    """
    Fill rows left to right inside a single column ``bin_width`` wide.

    Each step places the first pending element that still fits on the
    current row. When none fits, a new row starts and the first pending
    element is placed regardless of its width, so an element wider than
    ``bin_width`` still gets a row of its own.

    Args:
        elements: Elements in placement preference order
        bin_width: Width of the column

    Returns:
        The same elements in placement order, rectangles updated in place.
    """
    not_positioned = list(elements)
    positioned: List[SpriteElement] = []

    x = 0
    y = 0
    row_height = 0
    while not_positioned:
        next_index = -1
        for i, element in enumerate(not_positioned):
            if x + element.rectangle.width <= bin_width:
                next_index = i
                break

        if next_index < 0:
            y += row_height
            x = 0
            row_height = 0
            next_index = 0

        element = not_positioned.pop(next_index)
        rect = element.rectangle
        rect.x = x
        rect.y = y

        x += rect.width
        row_height = max(row_height, rect.height)
        positioned.append(element)

    return positioned


def calculate_positions(elements: Sequence[SpriteElement]) -> List[SpriteElement]:
    """
    Order elements by squareness and pack them into one column.

    The column is as wide as the widest element.

    Raises:
        EmptySpriteError: If ``elements`` is empty.
    """
    if not elements:
        raise EmptySpriteError("Cannot lay out a sprite without images")

    ordered = sort_by_squareness(elements)
    bin_width = max(e.rectangle.width for e in ordered)
    positioned = position_by_fill_one_column(ordered, bin_width)

    height, width = compute_canvas_size(positioned)
    logger.debug(f"Laid out {len(positioned)} element(s) in {width}x{height} (column width {bin_width})")
    return positioned


def compute_canvas_size(elements: Sequence[SpriteElement]) -> Tuple[int, int]:
    """
    Extent of positioned elements.

    Returns:
        (height, width)

    Raises:
        EmptySpriteError: If ``elements`` is empty.
    """
    if not elements:
        raise EmptySpriteError("Cannot size a sprite without images")
    height = max(e.rectangle.bottom for e in elements)
    width = max(e.rectangle.right for e in elements)
    return height, width
