"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import yaml

from prompt_shelf.backends import MemoryBackend
from prompt_shelf.config import ConfigManager
from prompt_shelf.errors import BackendError
from prompt_shelf.store import STORAGE_KEY, PromptStore


class FlakyBackend(MemoryBackend):
    """Memory backend whose reads or writes can be made to fail."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        super().__init__(initial)
        self.fail_get = False
        self.fail_set = False
        self.set_calls = 0

    async def get(self, key: str) -> Any | None:
        if self.fail_get:
            raise BackendError("read failed")
        return await super().get(key)

    async def set(self, key: str, value: Any) -> None:
        self.set_calls += 1
        if self.fail_set:
            raise BackendError("write failed")
        await super().set(key, value)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Keep user/project config and env vars from leaking into tests."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    monkeypatch.chdir(tmp_path)
    for key in (
        "PROMPT_SHELF_BACKEND",
        "PROMPT_SHELF_STORAGE_PATH",
        "PROMPT_SHELF_STORAGE_DB",
        "PROMPT_SHELF_LOG_LEVEL",
        "PROMPT_SHELF_VERBOSE",
    ):
        monkeypatch.delenv(key, raising=False)
    return home


@pytest.fixture
def backend() -> FlakyBackend:
    return FlakyBackend()


@pytest.fixture
def store(backend: FlakyBackend) -> PromptStore:
    return PromptStore(backend)


@pytest.fixture
def stored_entries() -> list[dict[str, Any]]:
    """Stored prompts in non-chronological order."""
    return [
        {"id": "100_aaaaaaaa", "text": "Summarize this article", "createdAt": 100},
        {"id": "300_cccccccc", "text": "Translate to French", "createdAt": 300},
        {"id": "200_bbbbbbbb", "text": "Explain like I'm five", "createdAt": 200},
    ]


@pytest.fixture
def seeded_backend(stored_entries: list[dict[str, Any]]) -> FlakyBackend:
    return FlakyBackend({STORAGE_KEY: stored_entries})


@pytest.fixture
def mock_config(tmp_path: Path) -> ConfigManager:
    """Create a ConfigManager pointing storage into tmp_path."""
    settings = {
        "storage_backend": "json",
        "storage_path": str(tmp_path / "data" / "prompts.json"),
        "storage_db": str(tmp_path / "data" / "prompts.db"),
    }
    settings_path = tmp_path / "settings.yaml"
    settings_path.write_text(yaml.dump(settings))
    return ConfigManager(config_path=str(settings_path))
