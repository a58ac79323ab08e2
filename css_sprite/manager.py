"""Process-wide owner of every configured sprite group."""

from __future__ import annotations
import atexit
import threading
from typing import Optional, Tuple

from .cache import FileDependencyCache
from .config import SpriteConfig, SpriteGroupConfig, load_config
from .creator import SpriteCreator
from .files import PathResolver, RetryableFileOpener, RetryableFileWriter
from .logging_config import get_logger


logger = get_logger("manager")


class SpriteManager:
    """
    Generates all configured sprites and keeps them up to date.

    Create one per process and tie it to the host's lifecycle: ``start()``
    when the application starts, ``stop()`` when it shuts down. ``start()``
    also registers ``stop()`` with ``atexit`` so the watch is torn down even
    if the host never calls it. ``stop()`` runs its teardown exactly once no
    matter how many times, or from how many threads, it is called.

    Example:
        manager = SpriteManager.from_config_file("sprites.yaml")
        manager.start()
        ...
        manager.stop()
    """

    def __init__(self, config: SpriteConfig, creator: Optional[SpriteCreator] = None):
        self.config = config

        if creator is None:
            file_opener = RetryableFileOpener()
            creator = SpriteCreator(
                cache=FileDependencyCache(poll_interval=config.effective_poll_interval),
                file_opener=file_opener,
                path_resolver=PathResolver(config.root_dir),
                file_writer=RetryableFileWriter(file_opener),
            )
        self.creator = creator
        self.path_resolver = creator.path_resolver

        self._state_lock = threading.Lock()
        self._started = False
        self._stopped = False

    @classmethod
    def from_config_file(cls, config_path: str) -> SpriteManager:
        return cls(load_config(config_path))

    @property
    def is_running(self) -> bool:
        return self._started and not self._stopped

    def group_paths(self, group: SpriteGroupConfig) -> Tuple[str, str, str]:
        """(image output path, image url, css output path) of a group."""
        image_output_path = self.path_resolver.map_path(group.image_output_path)
        image_url = group.image_url or self.path_resolver.to_url(group.image_output_path)
        css_output_path = self.path_resolver.map_path(group.css_output_path)
        return image_output_path, image_url, css_output_path

    def start(self, watch: bool = True) -> None:
        """
        Generate every sprite group.

        Args:
            watch: Also poll the files of every group and regenerate on change

        Raises:
            RuntimeError: If the manager was already stopped.
        """
        with self._state_lock:
            if self._stopped:
                raise RuntimeError("SpriteManager cannot be restarted after stop()")
            if self._started:
                return
            self._started = True

        atexit.register(self.stop)

        for group in self.config.groups:
            image_output_path, image_url, css_output_path = self.group_paths(group)
            self.creator.add_files(
                image_output_path,
                image_url,
                css_output_path,
                group.files,
                group.directories,
                group.border_width,
            )

        if watch:
            self.creator.cache.start()
        logger.info(f"Started {len(self.config.groups)} sprite group(s)")

    def stop(self) -> None:
        """Stop watching every group. Safe to call repeatedly and concurrently."""
        with self._state_lock:
            if self._stopped:
                return
            self._stopped = True

        for group in self.config.groups:
            self.creator.remove_files(*self.group_paths(group))

        self.creator.cache.stop()
        atexit.unregister(self.stop)
        logger.info("Stopped sprite monitoring")

    def __enter__(self) -> SpriteManager:
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()
