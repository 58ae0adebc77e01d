"""
Configuration management for filesearch stores.

The configuration is stored as a TOML file in the store directory,
next to the SQLite database. It holds the numeric search settings.
"""

import os
import tomllib
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import tomli_w

from .errors import UsageError


CONFIG_FILENAME = "filesearch.toml"
DB_FILENAME = "filesearch.db"
CONFIG_VERSION = 1

STORE_DIRNAME = ".filesearch"
STORE_PATH_ENV = "FILESEARCH_STORE_PATH"

# Lower bound for each recognized setting
_MINIMUMS = {
    "result_cap": 1,
    "fuzzy_default_distance": 0,
    "similarity_threshold": 0,
}


@dataclass
class SearchSettings:
    """
    Numeric search settings.

    result_cap: bounds every strategy's result count
    fuzzy_default_distance: ceiling used when a fuzzy search omits a distance
    similarity_threshold: maximum edit distance for a "similar" tag
    """
    result_cap: int = 20
    fuzzy_default_distance: int = 3
    similarity_threshold: int = 3

    @classmethod
    def keys(cls) -> list[str]:
        return [f.name for f in fields(cls)]

    def get(self, key: str) -> int:
        """
        Raises:
            UsageError: If the key is not a recognized setting
        """
        if key not in _MINIMUMS:
            raise UsageError(
                f"Unknown setting: {key} (known: {', '.join(self.keys())})"
            )
        return getattr(self, key)

    def set(self, key: str, value: Any) -> int:
        """
        Validate and apply one setting. Strings are parsed as integers.

        Raises:
            UsageError: Unknown key, non-integer or out-of-range value
        """
        self.get(key)
        # bool is an int subclass; floats would truncate silently
        if isinstance(value, bool) or not isinstance(value, (int, str)):
            raise UsageError(f"Setting {key} must be an integer, got {value!r}")
        try:
            number = int(value)
        except (TypeError, ValueError):
            raise UsageError(f"Setting {key} must be an integer, got {value!r}")
        if number < _MINIMUMS[key]:
            raise UsageError(f"Setting {key} must be at least {_MINIMUMS[key]}, got {number}")
        setattr(self, key, number)
        return number

    def to_dict(self) -> dict[str, int]:
        return {key: getattr(self, key) for key in self.keys()}


@dataclass
class StoreConfig:
    """Complete store configuration."""
    path: Path
    version: int = CONFIG_VERSION
    created: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    search: SearchSettings = field(default_factory=SearchSettings)

    @property
    def config_path(self) -> Path:
        """Path to the TOML config file."""
        return self.path / CONFIG_FILENAME

    @property
    def db_path(self) -> Path:
        """Path to the SQLite database."""
        return self.path / DB_FILENAME


def get_default_store_path() -> Path:
    """
    Store directory: $FILESEARCH_STORE_PATH if set, else ~/.filesearch/
    """
    env_path = os.environ.get(STORE_PATH_ENV)
    if env_path:
        return Path(env_path).expanduser()
    return Path.home() / STORE_DIRNAME


def load_config(store_path: Path) -> StoreConfig:
    """
    Load configuration from a store directory.

    Unknown keys in [search] are ignored.

    Raises:
        FileNotFoundError: If config doesn't exist
        ValueError: If config is invalid
    """
    config_path = store_path / CONFIG_FILENAME

    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    # Validate version
    version = data.get("store", {}).get("version", 1)
    if version > CONFIG_VERSION:
        raise ValueError(f"Config version {version} is newer than supported ({CONFIG_VERSION})")

    search = SearchSettings()
    for key, value in data.get("search", {}).items():
        if key in _MINIMUMS:
            search.set(key, value)

    return StoreConfig(
        path=store_path,
        version=version,
        created=data.get("store", {}).get("created", ""),
        search=search,
    )


def save_config(config: StoreConfig) -> None:
    """
    Save configuration to the store directory.

    Creates the directory if it doesn't exist.
    """
    config.path.mkdir(parents=True, exist_ok=True)

    data = {
        "store": {
            "version": config.version,
            "created": config.created,
        },
        "search": config.search.to_dict(),
    }

    with open(config.config_path, "wb") as f:
        tomli_w.dump(data, f)


def load_or_create_config(store_path: Path) -> StoreConfig:
    """
    Load existing config or create a new one with defaults.

    This is the main entry point for config management.
    """
    config_path = store_path / CONFIG_FILENAME

    if config_path.exists():
        return load_config(store_path)
    else:
        config = StoreConfig(path=store_path)
        save_config(config)
        return config
