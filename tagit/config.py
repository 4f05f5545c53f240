"""
Configuration management for tag stores.

The configuration is stored as a TOML file in the store directory.
It specifies which storage backend to use and its parameters.
"""

import os
import tomllib
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import tomli_w


CONFIG_FILENAME = "tagit.toml"
CONFIG_VERSION = 1
DEFAULT_BACKEND = "sqlite"


@dataclass
class BackendConfig:
    """Configuration for the storage backend."""
    name: str = DEFAULT_BACKEND
    params: dict[str, Any] = field(default_factory=dict)


@dataclass
class StoreConfig:
    """Complete store configuration."""
    path: Path
    version: int = CONFIG_VERSION
    created: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    backend: BackendConfig = field(default_factory=BackendConfig)

    # Drop tags of missing files before listing
    sweep_on_list: bool = False

    @property
    def config_path(self) -> Path:
        """Path to the TOML config file."""
        return self.path / CONFIG_FILENAME

    def exists(self) -> bool:
        """Check if config file exists."""
        return self.config_path.exists()


def get_default_store_path() -> Path:
    """
    Resolve the store directory.

    Uses TAGIT_STORE_PATH if set, otherwise ~/.tagit
    """
    env_path = os.environ.get("TAGIT_STORE_PATH")
    if env_path:
        return Path(env_path).expanduser()
    return Path.home() / ".tagit"


def load_config(store_path: Path) -> StoreConfig:
    """
    Load configuration from a store directory.

    Raises:
        FileNotFoundError: If config doesn't exist
        ValueError: If config is invalid
    """
    config_path = store_path / CONFIG_FILENAME

    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid config {config_path}: {e}") from e

    # Validate version
    version = data.get("store", {}).get("version", 1)
    if version > CONFIG_VERSION:
        raise ValueError(f"Config version {version} is newer than supported ({CONFIG_VERSION})")

    backend_section = data.get("backend", {"name": DEFAULT_BACKEND})
    backend = BackendConfig(
        name=backend_section.get("name", DEFAULT_BACKEND),
        params={k: v for k, v in backend_section.items() if k != "name"},
    )

    sweep_on_list = data.get("sweep", {}).get("on_list", False)
    if not isinstance(sweep_on_list, bool):
        raise ValueError(f"sweep.on_list must be true or false, got {sweep_on_list!r}")

    return StoreConfig(
        path=store_path,
        version=version,
        created=data.get("store", {}).get("created", ""),
        backend=backend,
        sweep_on_list=sweep_on_list,
    )


def save_config(config: StoreConfig) -> None:
    """
    Save configuration to the store directory.

    Creates the directory if it doesn't exist.
    """
    config.path.mkdir(parents=True, exist_ok=True)

    backend = {"name": config.backend.name}
    backend.update(config.backend.params)

    data = {
        "store": {
            "version": config.version,
            "created": config.created,
        },
        "backend": backend,
        "sweep": {
            "on_list": config.sweep_on_list,
        },
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
