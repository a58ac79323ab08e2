"""Path mapping and retrying file access for sprite inputs and outputs."""

from __future__ import annotations
import hashlib
import os
import time
from typing import BinaryIO, Callable, Optional, Union

from .logging_config import get_logger


logger = get_logger("files")

DEFAULT_RETRIES = 5
DEFAULT_RETRY_DELAY = 0.05  # seconds

# Raised while another process holds the file (e.g. a web server reading it)
_TRANSIENT_ERRORS = (PermissionError, BlockingIOError, InterruptedError)


class TransientIOError(OSError):
    """A file stayed locked for the whole retry budget."""
    pass


def compute_fingerprint(data: bytes) -> str:
    """Content hash used to bust client caches of a written file."""
    return hashlib.md5(data).hexdigest()


class PathResolver:
    """
    Maps application paths to filesystem paths and urls.

    Application paths are either ``~/``-prefixed (relative to the
    application root), plain relative paths (also relative to the root) or
    absolute filesystem paths.
    """

    def __init__(self, root_dir: Optional[str] = None):
        self.root_dir = os.path.abspath(root_dir or os.getcwd())

    def _relative(self, virtual_path: str) -> Optional[str]:
        if virtual_path == "~":
            return ""
        if virtual_path.startswith("~/"):
            return virtual_path[2:]
        if not os.path.isabs(virtual_path):
            return virtual_path
        return None

    def map_path(self, virtual_path: str) -> str:
        """Absolute filesystem path for an application path."""
        relative = self._relative(virtual_path)
        if relative is None:
            return os.path.normpath(virtual_path)
        return os.path.normpath(os.path.join(self.root_dir, relative))

    def to_url(self, virtual_path: str) -> str:
        """Root-relative url (``/img/a.png``) for an application path."""
        relative = self._relative(virtual_path)
        if relative is None:
            relative = os.path.relpath(os.path.normpath(virtual_path), self.root_dir)
        relative = os.path.normpath(relative)
        if relative == os.pardir or relative.startswith(os.pardir + os.sep):
            raise ValueError(f"{virtual_path} is outside the application root {self.root_dir}")
        if relative == ".":
            return "/"
        return "/" + relative.replace(os.sep, "/").lstrip("/")


class RetryableFileOpener:
    """Opens files, retrying while they are locked by another reader or writer."""

    def __init__(
        self,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.retry_delay = retry_delay
        self._sleep = sleep

    def open_file_stream(self, path: str, retries: int = DEFAULT_RETRIES, mode: str = "rb") -> BinaryIO:
        """
        Open ``path``, retrying transient sharing errors.

        Args:
            path: File to open
            retries: Total number of attempts
            mode: Mode passed to open()

        Returns:
            The open file object. The caller owns it.

        Raises:
            TransientIOError: If every attempt hit a transient error.
            OSError: Any non-transient error (missing file, bad path) at once.
        """
        last_error = None
        for attempt in range(1, retries + 1):
            try:
                return open(path, mode)
            except _TRANSIENT_ERRORS as e:
                last_error = e
                logger.debug(f"Attempt {attempt}/{retries} to open {path} failed: {e}")
                if attempt < retries:
                    self._sleep(self.retry_delay)

        raise TransientIOError(f"Could not open {path} after {retries} attempt(s): {last_error}") from last_error

    def read_bytes(self, path: str, retries: int = DEFAULT_RETRIES) -> bytes:
        with self.open_file_stream(path, retries, mode="rb") as f:
            return f.read()


class RetryableFileWriter:
    """Writes whole files through a RetryableFileOpener and fingerprints them."""

    def __init__(self, file_opener: RetryableFileOpener, retries: int = DEFAULT_RETRIES):
        self.file_opener = file_opener
        self.retries = retries

    def save_contents_to_file(self, contents: Union[bytes, str], path: str) -> str:
        """
        Replace the contents of ``path``.

        Returns:
            Fingerprint of the bytes written.
        """
        data = contents.encode("utf-8") if isinstance(contents, str) else bytes(contents)

        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        with self.file_opener.open_file_stream(path, self.retries, mode="wb") as f:
            f.write(data)

        fingerprint = compute_fingerprint(data)
        logger.debug(f"Wrote {len(data)} bytes to {path} ({fingerprint})")
        return fingerprint
