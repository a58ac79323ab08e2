#!/usr/bin/env python3
"""
Minimal example: generate sprites for a synthetic site and watch it.

Creates colored test icons under examples/site, generates the sprites
listed in example_config.yaml, then repaints one icon every few seconds so
the watch regenerates the toolbar sprite.

Usage:
    python example.py
    python example.py --once   # Generate and exit
    python example.py --debug  # Enable debug logging
"""

import argparse
import logging
import os
import random
import time

import cv2
import numpy as np

from css_sprite import SpriteManager, load_config, setup_logging

# Get the directory where this script is located
SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
SITE_DIR = os.path.join(SCRIPT_DIR, "site")

ICONS = {
    "icons/save.png": (32, 32),
    "icons/open.png": (32, 32),
    "icons/arrows/left.png": (16, 16),
    "icons/arrows/right.png": (16, 16),
    "icons/arrows/right@2x.png": (32, 32),
    "banners/wide.png": (300, 60),
    "banners/promo/tall.png": (120, 240),
}


def create_test_image(width: int, height: int, color: tuple, label: str) -> np.ndarray:
    """Create a colored BGR test image with a short label."""
    img = np.full((height, width, 3), color, dtype=np.uint8)
    cv2.putText(img, label[:3], (2, height - 4), cv2.FONT_HERSHEY_PLAIN, 0.8, (255, 255, 255), 1, cv2.LINE_AA)
    return img


def write_site():
    for relative, (w, h) in ICONS.items():
        path = os.path.join(SITE_DIR, relative)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        color = tuple(random.randint(40, 200) for _ in range(3))
        cv2.imwrite(path, create_test_image(w, h, color, os.path.basename(relative)))


def main():
    parser = argparse.ArgumentParser(description="css_sprite example")
    parser.add_argument("--once", action="store_true", help="Generate the sprites and exit")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    setup_logging(level=logging.DEBUG if args.debug else logging.INFO)
    write_site()

    config = load_config(os.path.join(SCRIPT_DIR, "example_config.yaml"))
    manager = SpriteManager(config)
    manager.start(watch=not args.once)

    css_path = os.path.join(SITE_DIR, "sprites", "toolbar.css")
    with open(css_path) as f:
        print(f.read())

    if args.once:
        manager.stop()
        return

    print("\nRepainting save.png every 3 seconds... Press Ctrl+C to quit\n")
    try:
        while True:
            time.sleep(3)
            color = tuple(random.randint(40, 200) for _ in range(3))
            cv2.imwrite(os.path.join(SITE_DIR, "icons", "save.png"), create_test_image(32, 32, color, "save"))
    except KeyboardInterrupt:
        pass
    finally:
        manager.stop()


if __name__ == "__main__":
    main()
