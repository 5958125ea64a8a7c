"""Configuration manager with layered precedence merging."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import dotenv_values

from prompt_shelf.models import AppSettings


def _package_config_dir() -> Path:
    """Return the config/ directory shipped with the package."""
    return Path(__file__).resolve().parent.parent.parent / "config"


def _user_config_dir() -> Path:
    """Return ~/.prompt-shelf/."""
    return Path.home() / ".prompt-shelf"


def _project_config_dir() -> Path:
    """Return .prompt-shelf/ in the current working directory."""
    return Path.cwd() / ".prompt-shelf"


def user_settings_path() -> Path:
    """Return the user settings file written by `config set`."""
    return _user_config_dir() / "settings.yaml"


def _load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML file, returning empty dict if not found."""
    if path.is_file():
        with open(path) as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    return {}


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base."""
    result = dict(base)
    for key, value in override.items():
        if (
            key in result
            and isinstance(result[key], dict)
            and isinstance(value, dict)
        ):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


_ENV_MAP: dict[str, str] = {
    "PROMPT_SHELF_BACKEND": "storage_backend",
    "PROMPT_SHELF_STORAGE_PATH": "storage_path",
    "PROMPT_SHELF_STORAGE_DB": "storage_db",
    "PROMPT_SHELF_LOG_LEVEL": "log_level",
    "PROMPT_SHELF_VERBOSE": "verbose",
}


def _env_values() -> dict[str, str]:
    """Environment settings: ~/.prompt-shelf/.env, overridden by os.environ."""
    values: dict[str, str] = {}
    env_file = _user_config_dir() / ".env"
    if env_file.is_file():
        values.update(
            {k: v for k, v in dotenv_values(env_file).items() if v is not None}
        )
    for env_key in _ENV_MAP:
        val = os.environ.get(env_key)
        if val is not None:
            values[env_key] = val
    return values


class ConfigManager:
    """Loads and merges configuration from multiple sources.

    Precedence (highest first):
      1. CLI overrides (set via set_override)
      2. Environment variables (PROMPT_SHELF_*), also read from ~/.prompt-shelf/.env
      3. Custom config path (--config)
      4. Project config: .prompt-shelf/settings.yaml
      5. User config: ~/.prompt-shelf/settings.yaml
      6. Package defaults: config/settings.yaml
    """

    def __init__(
        self,
        *,
        config_path: str | None = None,
        cli_overrides: dict[str, Any] | None = None,
    ) -> None:
        self._cli_overrides = cli_overrides or {}
        self._config_path = Path(config_path) if config_path else None
        self._merged: dict[str, Any] = {}
        self._load()

    def _load(self) -> None:
        """Load and merge all config sources."""
        merged = _load_yaml(_package_config_dir() / "settings.yaml")
        merged = _deep_merge(merged, _load_yaml(user_settings_path()))
        merged = _deep_merge(
            merged, _load_yaml(_project_config_dir() / "settings.yaml")
        )
        if self._config_path:
            merged = _deep_merge(merged, _load_yaml(self._config_path))

        env = _env_values()
        for env_key, config_key in _ENV_MAP.items():
            val = env.get(env_key)
            if val is not None:
                if val.lower() in ("true", "false"):
                    merged[config_key] = val.lower() == "true"
                else:
                    merged[config_key] = val

        merged = _deep_merge(merged, self._cli_overrides)
        self._merged = merged

    def set_override(self, key: str, value: Any) -> None:
        """Set a CLI-level override."""
        self._cli_overrides[key] = value
        self._load()

    @property
    def settings(self) -> AppSettings:
        """Build AppSettings from merged config."""
        defaults = AppSettings()
        return AppSettings(
            storage_backend=str(
                self._merged.get("storage_backend", defaults.storage_backend)
            ).lower(),
            storage_path=str(self._merged.get("storage_path", defaults.storage_path)),
            storage_db=str(self._merged.get("storage_db", defaults.storage_db)),
            storage_key=str(self._merged.get("storage_key", defaults.storage_key)),
            log_level=str(self._merged.get("log_level", defaults.log_level)).upper(),
            verbose=bool(self._merged.get("verbose", defaults.verbose)),
            search_clip_length=int(
                self._merged.get("search_clip_length", defaults.search_clip_length)
            ),
            date_format=str(self._merged.get("date_format", defaults.date_format)),
        )

    def get(self, key: str, default: Any = None) -> Any:
        """Get a config value by key."""
        return self._merged.get(key, default)

    @property
    def raw(self) -> dict[str, Any]:
        """Return the raw merged config dict."""
        return dict(self._merged)
