"""Layered TOML configuration for Herald.

Layers, lowest precedence first:

    config/default.toml          required
    config/{HERALD_ENV}.toml     optional, e.g. development.toml

The directory is HERALD_CONFIG_DIR when set, otherwise ``config/`` in the
working directory, otherwise the one shipped next to the package.

A layer that puts credentials into ``storage.mongo_url`` is rejected; the
URL belongs in HERALD_STORAGE__MONGO_URL.
"""

import os
import tomllib
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

from herald.errors import ConfigurationError

CONFIG_DIR_ENV = "HERALD_CONFIG_DIR"
ENVIRONMENT_ENV = "HERALD_ENV"
DEFAULT_ENVIRONMENT = "development"
DEFAULT_LAYER = "default.toml"

# Repository checkout: herald/config/loader.py -> <root>/config
_BUNDLED_CONFIG_DIR = Path(__file__).resolve().parents[2] / "config"


def get_config_dir() -> Path:
    """Resolve the directory holding the TOML layers.

    Raises:
        FileNotFoundError: If HERALD_CONFIG_DIR names a missing directory
    """
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        path = Path(override)
        if not path.is_dir():
            raise FileNotFoundError(f"{CONFIG_DIR_ENV} is not a directory: {override}")
        return path

    local = Path.cwd() / "config"
    if (local / DEFAULT_LAYER).exists():
        return local
    return _BUNDLED_CONFIG_DIR


def get_environment() -> str:
    """Name of the environment layer (HERALD_ENV, default ``development``)."""
    return os.environ.get(ENVIRONMENT_ENV) or DEFAULT_ENVIRONMENT


def load_toml(file_path: Path) -> dict[str, Any]:
    """Read one layer.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ConfigurationError: If the file is not valid TOML
    """
    try:
        with file_path.open("rb") as f:
            return tomllib.load(f)
    except FileNotFoundError:
        raise FileNotFoundError(f"Configuration file not found: {file_path}") from None
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"{file_path.name}: {e}") from e


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge ``override`` into a copy of ``base``; tables merge key by key."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def check_layer(layer: dict[str, Any], source: str) -> None:
    """Reject settings that must never live in a committed file.

    Raises:
        ConfigurationError: If ``storage.mongo_url`` carries a user or password
    """
    storage = layer.get("storage")
    if not isinstance(storage, dict):
        return
    url = storage.get("mongo_url")
    if isinstance(url, str) and url:
        parts = urlsplit(url)
        if parts.username or parts.password:
            raise ConfigurationError(
                f"{source} puts credentials in storage.mongo_url; "
                "set HERALD_STORAGE__MONGO_URL instead"
            )


def load_config(
    config_dir: Path | None = None,
    environment: str | None = None,
) -> dict[str, Any]:
    """Load and merge the default and environment layers.

    Args:
        config_dir: Directory to read (default: `get_config_dir()`)
        environment: Environment layer name (default: `get_environment()`)

    Raises:
        FileNotFoundError: If default.toml is missing
        ConfigurationError: If a layer is invalid TOML or embeds credentials
    """
    config_dir = config_dir or get_config_dir()
    environment = environment or get_environment()

    default_path = config_dir / DEFAULT_LAYER
    if not default_path.exists():
        raise FileNotFoundError(
            f"Default configuration file not found: {default_path}. "
            f"Create it or set {CONFIG_DIR_ENV}."
        )

    config: dict[str, Any] = {}
    for path in (default_path, config_dir / f"{environment}.toml"):
        if path != default_path and not path.exists():
            continue
        layer = load_toml(path)
        check_layer(layer, path.name)
        config = deep_merge(config, layer)
    return config
