"""
CSS Sprite Package

Combines many small images into one sprite image plus a stylesheet with a
class per image, and regenerates both whenever a component image changes.

Example usage with config file:
    from css_sprite import SpriteManager

    # Generate every group and watch the component images
    manager = SpriteManager.from_config_file("sprites.yaml")
    manager.start()

    # On application shutdown
    manager.stop()

Example usage without the watch:
    from css_sprite import calculate_positions, render_sprite_image, build_css

    elements = calculate_positions(elements)
    image = render_sprite_image(elements)
    css = build_css(elements, fingerprint, "/img/sprite.png")

Features:
    - Squareness-ordered row filling inside a single column
    - Lossless PNG output fingerprinted for cache busting
    - Explicit images and filtered image directories per group
    - Polling watch that rebuilds on change and survives cache evictions
"""

from .manager import SpriteManager
from .creator import SpriteCreator, GenerationRecord, WatchOutcome, outcome_for_reason
from .cache import FileDependencyCache, DependencyWatcher, RemovedReason
from .images import (
    Rectangle,
    SpriteElement,
    ImageDecodeError,
    decode_image,
    load_sprite_element,
    css_class_name,
    expand_image_directory,
)
from .layout import (
    EmptySpriteError,
    squareness,
    sort_by_squareness,
    position_by_fill_one_column,
    calculate_positions,
    compute_canvas_size,
)
from .compositor import render_sprite_image, encode_png
from .stylesheet import build_css, build_css_rule
from .files import (
    PathResolver,
    RetryableFileOpener,
    RetryableFileWriter,
    TransientIOError,
    compute_fingerprint,
)
from .config import (
    SpriteConfig,
    SpriteGroupConfig,
    ImageFile,
    ImageDirectory,
    ConfigError,
    load_config,
)
from .logging_config import setup_logging, get_logger

__version__ = "1.0.0"
__all__ = [
    # Lifecycle
    "SpriteManager",
    # Generation and watch
    "SpriteCreator",
    "GenerationRecord",
    "WatchOutcome",
    "outcome_for_reason",
    "FileDependencyCache",
    "DependencyWatcher",
    "RemovedReason",
    # Images
    "Rectangle",
    "SpriteElement",
    "ImageDecodeError",
    "decode_image",
    "load_sprite_element",
    "css_class_name",
    "expand_image_directory",
    # Layout
    "EmptySpriteError",
    "squareness",
    "sort_by_squareness",
    "position_by_fill_one_column",
    "calculate_positions",
    "compute_canvas_size",
    # Output
    "render_sprite_image",
    "encode_png",
    "build_css",
    "build_css_rule",
    # Files
    "PathResolver",
    "RetryableFileOpener",
    "RetryableFileWriter",
    "TransientIOError",
    "compute_fingerprint",
    # Config
    "SpriteConfig",
    "SpriteGroupConfig",
    "ImageFile",
    "ImageDirectory",
    "ConfigError",
    "load_config",
    # Logging
    "setup_logging",
    "get_logger",
]
