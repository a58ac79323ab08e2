"""Sprite generation and the dependency watch that keeps it up to date."""

from __future__ import annotations
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .cache import FileDependencyCache, FileMarker, RemovedReason, file_marker
from .compositor import encode_png, render_sprite_image
from .config import ImageDirectory, ImageFile
from .files import PathResolver, RetryableFileOpener, RetryableFileWriter
from .images import SpriteElement, directory_watch_paths, expand_image_directory, load_sprite_element
from .layout import calculate_positions
from .logging_config import get_logger
from .stylesheet import build_css


logger = get_logger("creator")

CACHE_KEY_PREFIX = "css_sprite.SpriteCreator"
READ_RETRIES = 5


@dataclass(frozen=True)
class GenerationRecord:
    """Everything needed to regenerate one sprite."""
    image_output_path: str  # absolute
    sprite_image_url: str
    css_output_path: str  # absolute
    files: Tuple[ImageFile, ...]
    directories: Tuple[ImageDirectory, ...] = ()
    border_width: int = 0

    @property
    def key(self) -> str:
        return SpriteCreator.get_key(self.image_output_path, self.sprite_image_url, self.css_output_path)


class WatchOutcome(Enum):
    """What the watch does after its cache entry was evicted."""
    REBUILD = "rebuild"  # sources changed: regenerate and watch again
    REARM = "rearm"  # evicted for housekeeping: watch the same files again
    STOP = "stop"  # removed on purpose: stop watching


def outcome_for_reason(reason: RemovedReason) -> WatchOutcome:
    if reason is RemovedReason.DEPENDENCY_CHANGED:
        return WatchOutcome.REBUILD
    if reason in (RemovedReason.UNDERUSED, RemovedReason.EXPIRED):
        return WatchOutcome.REARM
    return WatchOutcome.STOP


class SpriteCreator:
    """
    Builds sprite images and stylesheets and watches their inputs.

    Every sprite is identified by the key of its image output, url and css
    output. A key is either unregistered or monitoring: ``add_files`` starts
    monitoring, evictions caused by changed files rebuild the sprite,
    housekeeping evictions re-arm the watch without touching any file, and
    ``remove_files`` stops monitoring. An entry replaced by a newer
    generation of the same key is reported as removed but leaves the key
    monitoring.
    """

    def __init__(
        self,
        cache: FileDependencyCache,
        file_opener: RetryableFileOpener,
        path_resolver: PathResolver,
        file_writer: RetryableFileWriter,
    ):
        self.cache = cache
        self.file_opener = file_opener
        self.path_resolver = path_resolver
        self.file_writer = file_writer

        self._monitoring: Set[str] = set()
        self._key_locks: Dict[str, threading.RLock] = {}
        self._key_locks_guard = threading.Lock()

    @staticmethod
    def get_key(image_output_path: str, sprite_image_url: str, css_output_path: str) -> str:
        return f"{CACHE_KEY_PREFIX}|{image_output_path}|{sprite_image_url}|{css_output_path}"

    def _lock_for(self, key: str) -> threading.RLock:
        with self._key_locks_guard:
            return self._key_locks.setdefault(key, threading.RLock())

    def is_monitoring(self, key: str) -> bool:
        return key in self._monitoring

    def add_files(
        self,
        image_output_path: str,
        sprite_image_url: str,
        css_output_path: str,
        files: Iterable[ImageFile],
        directories: Iterable[ImageDirectory] = (),
        border_width: int = 0,
    ) -> GenerationRecord:
        """
        Generate a sprite and keep it up to date.

        Args:
            image_output_path: Absolute path the sprite image is written to
            sprite_image_url: Url the sprite image is served from
            css_output_path: Absolute path the stylesheet is written to
            files: Component images (application paths)
            directories: Directories whose matching images are also components
            border_width: Transparent border around every component

        Returns:
            The record the watch regenerates from.
        """
        record = GenerationRecord(
            image_output_path=image_output_path,
            sprite_image_url=sprite_image_url,
            css_output_path=css_output_path,
            files=tuple(files),
            directories=tuple(directories),
            border_width=border_width,
        )
        self.generate(record)
        return record

    def generate(self, record: GenerationRecord) -> str:
        """
        Write the sprite image, then its stylesheet, then watch the inputs.

        Returns:
            Fingerprint of the sprite image.
        """
        key = record.key
        with self._lock_for(key):
            # Sources are observed before reading them, so an edit made while
            # generating still counts as a change
            markers = {path: file_marker(path) for path in self.source_dependencies(record)}

            image_files = self.collect_image_files(record)
            elements = self.process_files(image_files, record.border_width)
            elements = self.calculate_positions(elements)
            fingerprint = self.save_sprite_image(elements, record.image_output_path)
            css = self.get_css(elements, fingerprint, record.sprite_image_url)
            self.file_writer.save_contents_to_file(css, record.css_output_path)

            for path in (record.image_output_path, record.css_output_path):
                markers[path] = file_marker(path)

            self._monitoring.add(key)
            self.add_files_to_cache(record, markers)

        logger.info(f"Generated {record.image_output_path} with {len(elements)} image(s) ({fingerprint})")
        return fingerprint

    def collect_image_files(self, record: GenerationRecord) -> List[ImageFile]:
        """Explicit files first, then directory images; later duplicate names are skipped."""
        image_files: List[ImageFile] = []
        names = set()

        candidates = list(record.files)
        for directory in record.directories:
            candidates.extend(expand_image_directory(directory, self.path_resolver.map_path(directory.directory_path)))

        for image_file in candidates:
            if image_file.name in names:
                logger.warning(f"Skipping {image_file.file_path}: image name '{image_file.name}' already used")
                continue
            names.add(image_file.name)
            image_files.append(image_file)
        return image_files

    def process_files(self, files: Iterable[ImageFile], border_width: int = 0) -> List[SpriteElement]:
        """Read and decode every component image."""
        elements = []
        for image_file in files:
            path = self.path_resolver.map_path(image_file.file_path)
            data = self.file_opener.read_bytes(path, READ_RETRIES)
            elements.append(load_sprite_element(image_file.name, data, border_width))
        return elements

    def calculate_positions(self, elements: Sequence[SpriteElement]) -> List[SpriteElement]:
        return calculate_positions(elements)

    def save_sprite_image(self, elements: Sequence[SpriteElement], image_output_path: str) -> str:
        """Render, encode and write the sprite image; returns its fingerprint."""
        data = encode_png(render_sprite_image(elements))
        return self.file_writer.save_contents_to_file(data, image_output_path)

    def get_css(self, elements: Sequence[SpriteElement], fingerprint: str, sprite_image_url: str) -> str:
        return build_css(elements, fingerprint, sprite_image_url)

    def source_dependencies(self, record: GenerationRecord) -> List[str]:
        """Component images and watched directories of a record."""
        paths = [self.path_resolver.map_path(f.file_path) for f in record.files]
        for directory in record.directories:
            directory_path = self.path_resolver.map_path(directory.directory_path)
            paths.extend(directory_watch_paths(directory, directory_path))
            paths.extend(f.file_path for f in expand_image_directory(directory, directory_path))
        return list(dict.fromkeys(paths))

    def dependencies(self, record: GenerationRecord) -> List[str]:
        """Outputs, component images and watched directories of a record."""
        paths = [record.image_output_path, record.css_output_path]
        paths.extend(self.source_dependencies(record))
        return list(dict.fromkeys(paths))

    def add_files_to_cache(self, record: GenerationRecord, markers: Optional[Dict[str, FileMarker]] = None) -> None:
        """
        Watch the record's files; ``file_removed`` runs when the entry is evicted.

        Args:
            record: The sprite to watch
            markers: File markers observed while generating; files without one
                are observed now
        """
        self.cache.insert(
            record.key,
            record,
            dependencies=self.dependencies(record),
            on_removed=self.file_removed,
            markers=markers,
        )

    def _rearm(self, record: GenerationRecord) -> None:
        """Watch ``record`` again unchanged; a sprite that cannot be watched is dropped."""
        try:
            self.add_files_to_cache(record)
        except Exception:
            self._monitoring.discard(record.key)
            logger.exception(f"Lost the watch on {record.image_output_path}, it will not be regenerated")

    def file_removed(self, key: str, value: GenerationRecord, reason: RemovedReason) -> WatchOutcome:
        """
        Eviction callback of the cache entry for ``key``.

        A sprite that fails to rebuild is watched again unchanged, so the next
        change to its files retries the generation.
        """
        with self._lock_for(key):
            if key not in self._monitoring:
                return WatchOutcome.STOP

            outcome = outcome_for_reason(reason)
            if outcome is WatchOutcome.REBUILD:
                logger.info(f"Files of {value.image_output_path} changed, regenerating")
                try:
                    self.generate(value)
                except Exception:
                    logger.exception(f"Regenerating {value.image_output_path} failed")
                    self._rearm(value)
            elif outcome is WatchOutcome.REARM:
                logger.debug(f"{key} evicted ({reason.value}), watching again")
                self._rearm(value)
            return outcome

    def remove_files(self, image_output_path: str, sprite_image_url: str, css_output_path: str) -> None:
        """Stop watching a sprite. Does nothing if it is not watched."""
        key = self.get_key(image_output_path, sprite_image_url, css_output_path)
        with self._lock_for(key):
            self._monitoring.discard(key)
            self.cache.remove(key)
        logger.debug(f"Stopped watching {image_output_path}")
