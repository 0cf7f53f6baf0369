"""Configuration management for histminer.

Loads settings from ~/.histminer/config.toml with sensible defaults.
"""

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Optional

import toml


class ConfigError(ValueError):
    """Raised when analysis or search options are out of range."""


def get_histminer_dir() -> Path:
    """Return the path to ~/.histminer/, creating it if needed."""
    path = Path.home() / ".histminer"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_path() -> Path:
    """Return the path to ~/.histminer/config.toml."""
    return get_histminer_dir() / "config.toml"


@dataclass
class Config:
    """Application configuration with sensible defaults."""

    # Pattern mining
    min_frequency: int = 5
    top: int = 20
    similarity_threshold: int = 3
    min_sequence_length: int = 2
    max_sequence_length: int = 5

    # Search
    max_results: int = 10
    tui_max_results: int = 5  # Number of results shown in TUI

    # History source
    max_lines: int = 5000
    shell: Optional[str] = None
    history_file: Optional[str] = None


# Integer settings and their allowed (min, max) range for `histminer config`.
INT_SETTINGS: dict[str, tuple[int, int]] = {
    "min_frequency": (1, 10000),
    "top": (1, 1000),
    "similarity_threshold": (0, 50),
    "min_sequence_length": (2, 20),
    "max_sequence_length": (2, 20),
    "max_results": (1, 100),
    "tui_max_results": (1, 20),
    "max_lines": (100, 1000000),
}

STR_SETTINGS = ("shell", "history_file")


def load_config() -> Config:
    """Load config from ~/.histminer/config.toml, returning defaults if missing."""
    config_path = get_config_path()

    if not config_path.exists():
        return Config()

    data = toml.load(config_path)
    known = {f.name for f in fields(Config)}
    return Config(**{key: value for key, value in data.items() if key in known})


def save_config(config: Config) -> None:
    """Save config to ~/.histminer/config.toml."""
    config_path = get_config_path()
    # TOML has no null, so unset optional settings are left out
    data = {key: value for key, value in asdict(config).items() if value is not None}

    with open(config_path, "w") as f:
        toml.dump(data, f)


def parse_setting(key: str, value: str):
    """Convert a raw `histminer config KEY VALUE` argument to its typed value.

    Raises:
        ConfigError: If the key is unknown or the value is out of range.
    """
    if key in STR_SETTINGS:
        return value

    if key not in INT_SETTINGS:
        valid = ", ".join(list(INT_SETTINGS) + list(STR_SETTINGS))
        raise ConfigError(f"Unknown setting '{key}'. Valid settings: {valid}")

    try:
        number = int(value)
    except ValueError:
        raise ConfigError(f"{key} must be a number") from None

    low, high = INT_SETTINGS[key]
    if number < low or number > high:
        raise ConfigError(f"{key} must be between {low} and {high}")
    return number
