"""In-process cache whose entries are evicted when watched files change."""

from __future__ import annotations
import os
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from .logging_config import get_logger


logger = get_logger("cache")


class RemovedReason(Enum):
    """Why an entry left the cache."""
    REMOVED = "removed"  # explicit remove() or replaced by insert()
    EXPIRED = "expired"
    UNDERUSED = "underused"  # trimmed to stay within max_entries
    DEPENDENCY_CHANGED = "dependency_changed"


RemovedCallback = Callable[[str, Any, RemovedReason], Any]

# (st_mtime_ns, st_size), None while the file does not exist
FileMarker = Optional[Tuple[int, int]]


def file_marker(path: str) -> FileMarker:
    try:
        stat = os.stat(path)
    except FileNotFoundError:
        return None
    return (stat.st_mtime_ns, stat.st_size)


@dataclass
class DependencyWatcher:
    """The files an entry depends on and how they looked when it was inserted."""
    key: str
    dependencies: Tuple[str, ...]
    on_removed: Optional[RemovedCallback] = None
    markers: Dict[str, FileMarker] = field(default_factory=dict)

    def __post_init__(self):
        # Files without a known marker are observed now
        known = self.markers
        self.markers = {
            path: known[path] if path in known else file_marker(path)
            for path in self.dependencies
        }

    def snapshot(self) -> Dict[str, FileMarker]:
        return {path: file_marker(path) for path in self.dependencies}

    def changed_files(self) -> List[str]:
        return [path for path in self.dependencies if file_marker(path) != self.markers.get(path)]


@dataclass
class CacheEntry:
    key: str
    value: Any
    watcher: DependencyWatcher
    last_access: float
    expires_at: Optional[float] = None
    sliding_expiration: Optional[float] = None

    def is_expired(self, now: float) -> bool:
        if self.expires_at is not None and now >= self.expires_at:
            return True
        return self.sliding_expiration is not None and now - self.last_access >= self.sliding_expiration


class FileDependencyCache:
    """
    Key/value cache with file dependencies and removal callbacks.

    Nothing is evicted between calls to ``check()``; ``start()`` runs it on a
    background thread every ``poll_interval`` seconds. An entry is always
    removed from the cache before its ``on_removed(key, value, reason)``
    callback runs, so the callback may insert the key again.
    """

    def __init__(
        self,
        poll_interval: float = 1.0,
        max_entries: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.poll_interval = poll_interval
        self.max_entries = max_entries
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.RLock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._entries)

    def insert(
        self,
        key: str,
        value: Any,
        dependencies: Iterable[str] = (),
        on_removed: Optional[RemovedCallback] = None,
        absolute_expiration: Optional[float] = None,
        sliding_expiration: Optional[float] = None,
        markers: Optional[Dict[str, FileMarker]] = None,
    ) -> None:
        """
        Add or replace an entry.

        Args:
            key: Cache key
            value: Cached value, handed back to ``on_removed``
            dependencies: Files whose modification evicts the entry
            on_removed: Callback run after the entry leaves the cache
            absolute_expiration: Seconds from now until the entry expires
            sliding_expiration: Seconds without get() until the entry expires
            markers: File markers observed when the value was built; a
                dependency that differs from its marker at the next check()
                evicts the entry. Dependencies missing here are observed now.
        """
        now = self._clock()
        entry = CacheEntry(
            key=key,
            value=value,
            watcher=DependencyWatcher(key, tuple(dependencies), on_removed, dict(markers or {})),
            last_access=now,
            expires_at=None if absolute_expiration is None else now + absolute_expiration,
            sliding_expiration=sliding_expiration,
        )
        with self._lock:
            replaced = self._entries.pop(key, None)
            self._entries[key] = entry

        logger.debug(f"Inserted {key} watching {len(entry.watcher.dependencies)} file(s)")
        if replaced is not None:
            self._notify(replaced, RemovedReason.REMOVED)

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            entry.last_access = self._clock()
            return entry.value

    def remove(self, key: str) -> Any:
        """Remove an entry; returns its value, or None if there was none."""
        with self._lock:
            entry = self._entries.pop(key, None)
        if entry is None:
            return None
        self._notify(entry, RemovedReason.REMOVED)
        return entry.value

    def check(self) -> List[Tuple[str, RemovedReason]]:
        """
        Evict every entry with a changed dependency, expired or over capacity.

        Returns:
            (key, reason) for each eviction, in callback order.
        """
        now = self._clock()
        evicted: List[Tuple[CacheEntry, RemovedReason]] = []

        with self._lock:
            for key, entry in list(self._entries.items()):
                changed = entry.watcher.changed_files()
                if changed:
                    logger.debug(f"{key}: dependency changed ({', '.join(changed)})")
                    evicted.append((self._entries.pop(key), RemovedReason.DEPENDENCY_CHANGED))
                elif entry.is_expired(now):
                    evicted.append((self._entries.pop(key), RemovedReason.EXPIRED))

            if self.max_entries is not None and len(self._entries) > self.max_entries:
                by_age = sorted(self._entries.values(), key=lambda e: e.last_access)
                for entry in by_age[:len(self._entries) - self.max_entries]:
                    evicted.append((self._entries.pop(entry.key), RemovedReason.UNDERUSED))

        for entry, reason in evicted:
            self._notify(entry, reason)
        return [(entry.key, reason) for entry, reason in evicted]

    def _notify(self, entry: CacheEntry, reason: RemovedReason) -> None:
        callback = entry.watcher.on_removed
        if callback is None:
            return
        try:
            callback(entry.key, entry.value, reason)
        except Exception:
            logger.exception(f"Removal callback for {entry.key} ({reason.value}) failed")

    def start(self) -> None:
        """Start polling dependencies on a daemon thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="css-sprite-watch", daemon=True)
        self._thread.start()
        logger.debug(f"Dependency polling started every {self.poll_interval}s")

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None

    def _run(self) -> None:
        while not self._stop_event.wait(self.poll_interval):
            try:
                self.check()
            except Exception:
                logger.exception("Dependency check failed")
