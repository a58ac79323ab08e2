"""Configuration dataclasses and YAML loader for sprite groups."""

from __future__ import annotations
import os
import yaml
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .logging_config import get_logger


logger = get_logger("config")

DEFAULT_INCLUDE_FILTER = "*.png;*.gif;*.jpg;*.jpeg;*.bmp"
DEFAULT_POLL_INTERVAL = 1.0


class ConfigError(Exception):
    """Exception raised for configuration errors."""
    pass


@dataclass(frozen=True)
class ImageFile:
    """A single component image of a sprite."""
    name: str  # css class name
    file_path: str  # application path (~/...), relative or absolute

    @classmethod
    def from_dict(cls, data: Dict) -> ImageFile:
        return cls(name=data["name"], file_path=data["path"])


@dataclass(frozen=True)
class ImageDirectory:
    """A directory whose matching images all become sprite components."""
    directory_path: str
    include_filter: str = DEFAULT_INCLUDE_FILTER  # ';' or ',' separated globs
    exclude_filter: Optional[str] = None
    include_subdirectories: bool = False
    poll_time: Optional[float] = None  # seconds

    @classmethod
    def from_dict(cls, data: Dict) -> ImageDirectory:
        return cls(
            directory_path=data["path"],
            include_filter=data.get("include") or DEFAULT_INCLUDE_FILTER,
            exclude_filter=data.get("exclude"),
            include_subdirectories=data.get("recursive", False),
            poll_time=data.get("poll_time"),
        )


@dataclass
class SpriteGroupConfig:
    """One sprite image plus its stylesheet."""
    name: str
    image_output_path: str
    css_output_path: str
    image_url: Optional[str] = None  # defaults to the url of image_output_path
    border_width: int = 0
    files: List[ImageFile] = field(default_factory=list)
    directories: List[ImageDirectory] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict) -> SpriteGroupConfig:
        return cls(
            name=data["name"],
            image_output_path=data["image_output"],
            css_output_path=data["css_output"],
            image_url=data.get("image_url"),
            border_width=data.get("border_width", 0),
            files=[ImageFile.from_dict(f) for f in data.get("files") or []],
            directories=[ImageDirectory.from_dict(d) for d in data.get("directories") or []],
        )


@dataclass
class SpriteConfig:
    """Main configuration: every sprite group served by the application."""
    groups: List[SpriteGroupConfig] = field(default_factory=list)
    root_dir: Optional[str] = None  # application root, None means cwd
    poll_interval: float = DEFAULT_POLL_INTERVAL

    @classmethod
    def from_dict(cls, data: Dict, base_dir: Optional[str] = None) -> SpriteConfig:
        root_dir = data.get("root_dir")
        if base_dir is not None:
            root_dir = os.path.normpath(os.path.join(base_dir, root_dir or "."))

        return cls(
            groups=[SpriteGroupConfig.from_dict(g) for g in data.get("groups") or []],
            root_dir=root_dir,
            poll_interval=data.get("poll_interval", DEFAULT_POLL_INTERVAL),
        )

    @property
    def effective_poll_interval(self) -> float:
        """Shortest of the global interval and every directory poll_time."""
        intervals = [self.poll_interval]
        for group in self.groups:
            for directory in group.directories:
                if directory.poll_time:
                    intervals.append(directory.poll_time)
        return min(intervals)


def load_config(config_path: str) -> SpriteConfig:
    """
    Load configuration from a YAML file.

    Relative ``root_dir`` values are taken relative to the directory holding
    the config file; a missing ``root_dir`` means that directory itself.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        SpriteConfig object with parsed configuration.

    Raises:
        ConfigError: If file doesn't exist, YAML is invalid, or required fields are missing.
    """
    if not os.path.exists(config_path):
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, 'r') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}")

    if data is None:
        raise ConfigError(f"Configuration file is empty: {config_path}")
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration must be a YAML mapping, got {type(data).__name__}")

    if "poll_interval" in data:
        _validate_positive(data["poll_interval"], "poll_interval")

    groups = data.get("groups")
    if not groups or not isinstance(groups, list):
        raise ConfigError("Configuration must define at least one sprite group in 'groups'")

    seen = set()
    for i, group in enumerate(groups):
        _validate_group(group, path=f"groups[{i}]")
        if group["name"] in seen:
            raise ConfigError(f"groups[{i}].name: duplicate group name '{group['name']}'")
        seen.add(group["name"])

    base_dir = os.path.dirname(os.path.abspath(config_path))
    config = SpriteConfig.from_dict(data, base_dir=base_dir)
    logger.info(f"Loaded config from {config_path}: {len(config.groups)} sprite group(s), "
                f"root {config.root_dir}")
    return config


def _validate_positive(value, path: str) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError(f"{path}: must be a positive number, got {value!r}")


def _validate_group(data: Dict, path: str) -> None:
    """Validate a sprite group mapping."""
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: sprite group must be a mapping")

    for key in ("name", "image_output", "css_output"):
        if not data.get(key) or not isinstance(data[key], str):
            raise ConfigError(f"{path}: sprite group must have '{key}'")

    border = data.get("border_width", 0)
    if isinstance(border, bool) or not isinstance(border, int) or border < 0:
        raise ConfigError(f"{path}.border_width: must be a non-negative integer, got {border!r}")

    files = data.get("files") or []
    directories = data.get("directories") or []
    if not isinstance(files, list) or not isinstance(directories, list):
        raise ConfigError(f"{path}: 'files' and 'directories' must be lists")
    if not files and not directories:
        raise ConfigError(f"{path}: sprite group must list at least one file or directory")

    for i, entry in enumerate(files):
        entry_path = f"{path}.files[{i}]"
        if not isinstance(entry, dict):
            raise ConfigError(f"{entry_path}: image file must be a mapping")
        if "name" not in entry:
            raise ConfigError(f"{entry_path}: image file must have 'name'")
        if "path" not in entry:
            raise ConfigError(f"{entry_path}: image file must have 'path'")

    for i, entry in enumerate(directories):
        entry_path = f"{path}.directories[{i}]"
        if not isinstance(entry, dict):
            raise ConfigError(f"{entry_path}: image directory must be a mapping")
        if "path" not in entry:
            raise ConfigError(f"{entry_path}: image directory must have 'path'")
        if not isinstance(entry.get("recursive", False), bool):
            raise ConfigError(f"{entry_path}.recursive: must be true or false, got {entry['recursive']!r}")
        if entry.get("poll_time") is not None:
            _validate_positive(entry["poll_time"], f"{entry_path}.poll_time")
