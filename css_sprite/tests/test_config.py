"""Tests for config module validation."""

import os

import pytest

from css_sprite import ConfigError, ImageDirectory, ImageFile, load_config
from css_sprite.config import DEFAULT_INCLUDE_FILTER


VALID = """
poll_interval: 2
groups:
  - name: icons
    image_output: ~/sprites/icons.png
    css_output: ~/sprites/icons.css
    files:
      - name: home
        path: ~/icons/home.png
    directories:
      - path: ~/icons/social
        exclude: "*@2x.png"
        recursive: true
        poll_time: 0.5
"""


def write_config(tmp_path, text, name="sprites.yaml"):
    config_file = tmp_path / name
    config_file.write_text(text)
    return str(config_file)


class TestLoadConfig:
    def test_parses_groups(self, tmp_path):
        config = load_config(write_config(tmp_path, VALID))

        assert len(config.groups) == 1
        group = config.groups[0]
        assert group.name == "icons"
        assert group.image_output_path == "~/sprites/icons.png"
        assert group.image_url is None
        assert group.border_width == 0
        assert group.files == [ImageFile("home", "~/icons/home.png")]
        assert group.directories == [
            ImageDirectory("~/icons/social", DEFAULT_INCLUDE_FILTER, "*@2x.png", True, 0.5)
        ]

    def test_root_defaults_to_config_directory(self, tmp_path):
        config = load_config(write_config(tmp_path, VALID))

        assert config.root_dir == str(tmp_path)

    def test_relative_root(self, tmp_path):
        config = load_config(write_config(tmp_path, "root_dir: www\n" + VALID))

        assert config.root_dir == os.path.join(str(tmp_path), "www")

    def test_effective_poll_interval(self, tmp_path):
        config = load_config(write_config(tmp_path, VALID))

        assert config.poll_interval == 2
        assert config.effective_poll_interval == 0.5


class TestLoadConfigValidation:
    def test_file_not_found(self):
        with pytest.raises(ConfigError, match="Configuration file not found"):
            load_config("/nonexistent/path/sprites.yaml")

    def test_empty_file(self, tmp_path):
        with pytest.raises(ConfigError, match="Configuration file is empty"):
            load_config(write_config(tmp_path, ""))

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(write_config(tmp_path, "invalid: yaml: content: ["))

    def test_not_a_mapping(self, tmp_path):
        with pytest.raises(ConfigError, match="must be a YAML mapping"):
            load_config(write_config(tmp_path, "- item1\n- item2"))

    def test_missing_groups(self, tmp_path):
        with pytest.raises(ConfigError, match="at least one sprite group"):
            load_config(write_config(tmp_path, "poll_interval: 1"))

    def test_bad_poll_interval(self, tmp_path):
        with pytest.raises(ConfigError, match="poll_interval: must be a positive number"):
            load_config(write_config(tmp_path, "poll_interval: 0\n" + VALID.replace("poll_interval: 2\n", "")))

    def test_missing_output(self, tmp_path):
        text = VALID.replace("    css_output: ~/sprites/icons.css\n", "")

        with pytest.raises(ConfigError, match=r"groups\[0\]: sprite group must have 'css_output'"):
            load_config(write_config(tmp_path, text))

    def test_group_without_images(self, tmp_path):
        text = """
groups:
  - name: empty
    image_output: a.png
    css_output: a.css
"""
        with pytest.raises(ConfigError, match="at least one file or directory"):
            load_config(write_config(tmp_path, text))

    def test_file_without_path(self, tmp_path):
        text = VALID.replace("        path: ~/icons/home.png\n", "")

        with pytest.raises(ConfigError, match=r"groups\[0\].files\[0\]: image file must have 'path'"):
            load_config(write_config(tmp_path, text))

    def test_directory_bad_poll_time(self, tmp_path):
        text = VALID.replace("poll_time: 0.5", "poll_time: -1")

        with pytest.raises(ConfigError, match=r"directories\[0\].poll_time"):
            load_config(write_config(tmp_path, text))

    def test_directory_recursive_must_be_bool(self, tmp_path):
        text = VALID.replace("recursive: true", 'recursive: "no"')

        with pytest.raises(ConfigError, match=r"directories\[0\].recursive"):
            load_config(write_config(tmp_path, text))

    def test_negative_border(self, tmp_path):
        text = VALID.replace("    files:", "    border_width: -1\n    files:")

        with pytest.raises(ConfigError, match="border_width: must be a non-negative integer"):
            load_config(write_config(tmp_path, text))

    def test_duplicate_group_names(self, tmp_path):
        group = VALID.split("groups:\n", 1)[1]
        text = "groups:\n" + group + group

        with pytest.raises(ConfigError, match="duplicate group name 'icons'"):
            load_config(write_config(tmp_path, text))
