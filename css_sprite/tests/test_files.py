"""Tests for files module."""

import hashlib
import os

import pytest

from css_sprite import (
    PathResolver,
    RetryableFileOpener,
    RetryableFileWriter,
    TransientIOError,
    compute_fingerprint,
)
from css_sprite import files as files_module


class TestPathResolver:
    def test_maps_app_relative_path(self, tmp_path):
        resolver = PathResolver(str(tmp_path))

        assert resolver.map_path("~/img/a.png") == os.path.join(str(tmp_path), "img", "a.png")

    def test_maps_relative_path_against_root(self, tmp_path):
        resolver = PathResolver(str(tmp_path))

        assert resolver.map_path("img/a.png") == os.path.join(str(tmp_path), "img", "a.png")

    def test_keeps_absolute_path(self, tmp_path):
        resolver = PathResolver(str(tmp_path))
        path = os.path.join(str(tmp_path), "x", "..", "a.png")

        assert resolver.map_path(path) == os.path.join(str(tmp_path), "a.png")

    def test_url_of_app_relative_path(self, tmp_path):
        resolver = PathResolver(str(tmp_path))

        assert resolver.to_url("~/img/sprite.png") == "/img/sprite.png"
        assert resolver.to_url("img/sprite.png") == "/img/sprite.png"

    def test_url_of_absolute_path_under_root(self, tmp_path):
        resolver = PathResolver(str(tmp_path))

        assert resolver.to_url(os.path.join(str(tmp_path), "img", "s.png")) == "/img/s.png"

    def test_url_outside_root_raises(self, tmp_path):
        resolver = PathResolver(str(tmp_path / "site"))

        with pytest.raises(ValueError, match="outside the application root"):
            resolver.to_url(str(tmp_path / "elsewhere.png"))


class TestRetryableFileOpener:
    def test_reads_file(self, tmp_path):
        path = tmp_path / "a.bin"
        path.write_bytes(b"data")

        assert RetryableFileOpener().read_bytes(str(path)) == b"data"

    def test_retries_transient_errors(self, tmp_path, monkeypatch):
        path = tmp_path / "a.bin"
        path.write_bytes(b"data")
        attempts = []
        real_open = open

        def flaky_open(file, mode="r"):
            attempts.append(file)
            if len(attempts) < 3:
                raise PermissionError("file in use")
            return real_open(file, mode)

        monkeypatch.setattr(files_module, "open", flaky_open, raising=False)
        sleeps = []
        opener = RetryableFileOpener(retry_delay=0.5, sleep=sleeps.append)

        assert opener.read_bytes(str(path), retries=5) == b"data"
        assert len(attempts) == 3
        assert sleeps == [0.5, 0.5]

    def test_gives_up_after_budget(self, tmp_path, monkeypatch):
        attempts = []

        def locked_open(file, mode="r"):
            attempts.append(file)
            raise PermissionError("file in use")

        monkeypatch.setattr(files_module, "open", locked_open, raising=False)
        opener = RetryableFileOpener(sleep=lambda _: None)

        with pytest.raises(TransientIOError, match="after 4 attempt"):
            opener.open_file_stream(str(tmp_path / "a.bin"), retries=4)
        assert len(attempts) == 4

    def test_missing_file_is_not_retried(self, tmp_path):
        sleeps = []
        opener = RetryableFileOpener(sleep=sleeps.append)

        with pytest.raises(FileNotFoundError):
            opener.read_bytes(str(tmp_path / "missing.png"))
        assert sleeps == []


class TestRetryableFileWriter:
    def test_returns_fingerprint_of_bytes(self, tmp_path):
        writer = RetryableFileWriter(RetryableFileOpener())
        path = tmp_path / "out" / "sprite.png"

        fingerprint = writer.save_contents_to_file(b"\x00\x01", str(path))

        assert path.read_bytes() == b"\x00\x01"
        assert fingerprint == hashlib.md5(b"\x00\x01").hexdigest()

    def test_encodes_text_as_utf8(self, tmp_path):
        writer = RetryableFileWriter(RetryableFileOpener())
        path = tmp_path / "sprite.css"

        fingerprint = writer.save_contents_to_file(".a {}", str(path))

        assert path.read_text(encoding="utf-8") == ".a {}"
        assert fingerprint == compute_fingerprint(b".a {}")

    def test_overwrites(self, tmp_path):
        writer = RetryableFileWriter(RetryableFileOpener())
        path = tmp_path / "sprite.css"
        writer.save_contents_to_file("first, longer", str(path))

        writer.save_contents_to_file("second", str(path))

        assert path.read_text() == "second"
