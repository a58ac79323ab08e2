"""Command line entry point: python -m css_sprite sprites.yaml"""

import argparse
import logging
import sys
import threading

from .config import ConfigError, load_config
from .logging_config import setup_logging
from .manager import SpriteManager


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Generate css sprites and regenerate them when images change")
    parser.add_argument("config", help="YAML file listing the sprite groups")
    parser.add_argument("--once", action="store_true", help="Generate every group and exit")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logger = setup_logging(level=logging.DEBUG if args.debug else logging.INFO)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        logger.error(str(e))
        return 2

    manager = SpriteManager(config)
    try:
        manager.start(watch=not args.once)
        if not args.once:
            print("Watching sprite images... Press Ctrl+C to stop")
            threading.Event().wait()
    except KeyboardInterrupt:
        pass
    finally:
        manager.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
