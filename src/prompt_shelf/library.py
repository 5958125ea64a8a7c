"""Build the configured backend and open the prompt store."""

from __future__ import annotations

import logging
from pathlib import Path

from prompt_shelf.backends import (
    CallbackBackendAdapter,
    JsonFileBackend,
    KeyValueBackend,
    MemoryBackend,
    SqliteCallbackStore,
)
from prompt_shelf.config import ConfigManager
from prompt_shelf.errors import ConfigError
from prompt_shelf.models import LoadResult
from prompt_shelf.store import PromptStore

logger = logging.getLogger(__name__)

BACKENDS = ("json", "sqlite", "memory")


def build_backend(config: ConfigManager) -> KeyValueBackend:
    """Construct the key-value backend named in config."""
    settings = config.settings
    backend = settings.storage_backend

    if backend == "memory":
        return MemoryBackend()

    json_path = Path(settings.storage_path).expanduser()

    if backend == "json":
        return JsonFileBackend(json_path)

    if backend == "sqlite":
        db_path = Path(settings.storage_db).expanduser()
        try:
            return CallbackBackendAdapter(SqliteCallbackStore(db_path))
        except Exception:
            logger.warning("SQLite init failed, falling back to JSON")
            return JsonFileBackend(json_path)

    raise ConfigError(
        f"Unknown storage backend '{backend}' (expected one of: {', '.join(BACKENDS)})"
    )


async def open_store(config: ConfigManager) -> tuple[PromptStore, LoadResult]:
    """Create the store for this process and load it."""
    store = PromptStore(build_backend(config), storage_key=config.settings.storage_key)
    result = await store.load()
    return store, result
