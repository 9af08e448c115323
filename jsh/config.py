"""Configuration loading: environment flags and the YAML config file."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

import yaml

from .errors import ConfigError

DEFAULT_BAR_WIDTH = 20
DEFAULT_ANIMATION_INTERVAL = 0.1

FALSE_VALUES = ("0", "false", "no", "off")


def get_config_dir() -> Path:
    """Return XDG-compliant config directory: ~/.config/jsh"""
    return Path.home() / ".config" / "jsh"


def get_config_path() -> Path:
    """Return path to the user config file.

    Priority:
    1. JSH_CONFIG environment variable (if set)
    2. ~/.config/jsh/config.yaml
    """
    if "JSH_CONFIG" in os.environ:
        return Path(os.environ["JSH_CONFIG"])
    return get_config_dir() / "config.yaml"


def get_default_taskfile() -> Path:
    """Return the default declaration file, honouring JSH_TASKFILE."""
    if "JSH_TASKFILE" in os.environ:
        return Path(os.environ["JSH_TASKFILE"])
    return get_config_dir() / "taskfile.yaml"


def _flag(environ: Mapping[str, str], name: str) -> bool:
    # JSH_-prefixed form wins over the bare name
    value = environ.get(f"JSH_{name}")
    if value is None:
        value = environ.get(name)
    if not value:
        return False
    return value.strip().lower() not in FALSE_VALUES


@dataclass(frozen=True)
class TuiSettings:
    """Environment switches that control the terminal UI."""
    no_tui: bool = False
    force_tui: bool = False
    debug_tui: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "TuiSettings":
        env = os.environ if environ is None else environ
        return cls(
            no_tui=_flag(env, "NO_TUI"),
            force_tui=_flag(env, "FORCE_TUI"),
            debug_tui=_flag(env, "DEBUG_TUI"),
        )


@dataclass
class JshConfig:
    """User configuration for jsh."""
    taskfile: Path = field(default_factory=get_default_taskfile)
    bar_width: int = DEFAULT_BAR_WIDTH
    animation_interval: float = DEFAULT_ANIMATION_INTERVAL

    def __post_init__(self):
        if isinstance(self.taskfile, str):
            self.taskfile = Path(self.taskfile).expanduser()
        if not isinstance(self.taskfile, Path):
            raise ValueError("taskfile must be a path")
        if isinstance(self.bar_width, bool) or not isinstance(self.bar_width, int):
            raise ValueError("bar_width must be an integer")
        if self.bar_width < 1:
            raise ValueError("bar_width must be at least 1")
        if isinstance(self.animation_interval, bool) or not isinstance(
            self.animation_interval, (int, float)
        ):
            raise ValueError("animation_interval must be a number")
        if self.animation_interval <= 0:
            raise ValueError("animation_interval must be positive")


def validate_config(data: object) -> JshConfig:
    """Validate and convert the raw YAML mapping to a JshConfig.

    Args:
        data: Result of yaml.safe_load() (None for an empty file)

    Returns:
        JshConfig with defaults for missing keys

    Raises:
        ConfigError: If validation fails, naming the offending field
    """
    if data is None:
        return JshConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"Config must be a mapping, got {type(data).__name__}")

    known = {"taskfile", "bar_width", "animation_interval"}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown config field: {unknown[0]}")

    kwargs = {}
    for name in known:
        if name in data and data[name] is not None:
            kwargs[name] = data[name]

    try:
        return JshConfig(**kwargs)
    except ValueError as e:
        raise ConfigError(f"config: {e}")


def load_config(path: Path | None = None) -> JshConfig:
    """Load the config file, returning defaults when it does not exist."""
    config_path = path or get_config_path()
    if not config_path.exists():
        return JshConfig()

    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse {config_path}: {e}")
    except OSError as e:
        raise ConfigError(f"Failed to read {config_path}: {e}")

    return validate_config(data)


__all__ = [
    "TuiSettings",
    "JshConfig",
    "get_config_dir",
    "get_config_path",
    "get_default_taskfile",
    "validate_config",
    "load_config",
]
