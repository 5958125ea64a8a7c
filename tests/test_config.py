"""Tests for config module."""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import yaml

from prompt_shelf.config import ConfigManager, _deep_merge, _load_yaml, user_settings_path


class TestLoadYaml:
    def test_load_existing_file(self, tmp_path: Path) -> None:
        f = tmp_path / "test.yaml"
        f.write_text("key: value\nnested:\n  a: 1\n")
        assert _load_yaml(f) == {"key": "value", "nested": {"a": 1}}

    def test_load_missing_file(self, tmp_path: Path) -> None:
        assert _load_yaml(tmp_path / "missing.yaml") == {}

    def test_load_empty_file(self, tmp_path: Path) -> None:
        f = tmp_path / "empty.yaml"
        f.write_text("")
        assert _load_yaml(f) == {}

    def test_load_non_mapping(self, tmp_path: Path) -> None:
        f = tmp_path / "list.yaml"
        f.write_text("- a\n- b\n")
        assert _load_yaml(f) == {}


class TestDeepMerge:
    def test_simple_merge(self) -> None:
        assert _deep_merge({"a": 1}, {"b": 2}) == {"a": 1, "b": 2}

    def test_override(self) -> None:
        assert _deep_merge({"a": 1}, {"a": 2}) == {"a": 2}

    def test_nested_merge(self) -> None:
        base = {"nested": {"a": 1, "b": 2}}
        override = {"nested": {"b": 3, "c": 4}}
        assert _deep_merge(base, override) == {"nested": {"a": 1, "b": 3, "c": 4}}


class TestConfigManager:
    def test_package_defaults(self) -> None:
        settings = ConfigManager().settings
        assert settings.storage_backend == "json"
        assert settings.storage_key == "savedPrompts"
        assert settings.log_level == "WARNING"
        assert settings.search_clip_length == 28

    def test_custom_config_path(self, mock_config: ConfigManager, tmp_path: Path) -> None:
        assert mock_config.settings.storage_path == str(tmp_path / "data" / "prompts.json")

    def test_user_config(self, isolated_home: Path) -> None:
        user_settings_path().parent.mkdir(parents=True)
        user_settings_path().write_text(yaml.dump({"storage_backend": "sqlite"}))
        assert ConfigManager().settings.storage_backend == "sqlite"

    def test_project_config_beats_user(self, isolated_home: Path, tmp_path: Path) -> None:
        user_settings_path().parent.mkdir(parents=True)
        user_settings_path().write_text(yaml.dump({"search_clip_length": 10}))
        project = tmp_path / ".prompt-shelf"
        project.mkdir()
        (project / "settings.yaml").write_text(yaml.dump({"search_clip_length": 40}))
        assert ConfigManager().settings.search_clip_length == 40

    def test_env_override(self, mock_config: ConfigManager, tmp_path: Path) -> None:
        settings_path = tmp_path / "s.yaml"
        settings_path.write_text(yaml.dump({"storage_backend": "json"}))
        with patch.dict(os.environ, {"PROMPT_SHELF_BACKEND": "memory"}):
            cfg = ConfigManager(config_path=str(settings_path))
            assert cfg.settings.storage_backend == "memory"

    def test_env_bool(self) -> None:
        with patch.dict(os.environ, {"PROMPT_SHELF_VERBOSE": "true"}):
            assert ConfigManager().settings.verbose is True

    def test_dotenv_file(self, isolated_home: Path) -> None:
        env_dir = isolated_home / ".prompt-shelf"
        env_dir.mkdir()
        (env_dir / ".env").write_text("PROMPT_SHELF_LOG_LEVEL=info\n")
        assert ConfigManager().settings.log_level == "INFO"

    def test_process_env_beats_dotenv(self, isolated_home: Path) -> None:
        env_dir = isolated_home / ".prompt-shelf"
        env_dir.mkdir()
        (env_dir / ".env").write_text("PROMPT_SHELF_BACKEND=sqlite\n")
        with patch.dict(os.environ, {"PROMPT_SHELF_BACKEND": "memory"}):
            assert ConfigManager().settings.storage_backend == "memory"

    def test_cli_override(self, tmp_path: Path) -> None:
        settings_path = tmp_path / "s.yaml"
        settings_path.write_text(yaml.dump({"storage_backend": "json"}))
        with patch.dict(os.environ, {"PROMPT_SHELF_BACKEND": "sqlite"}):
            cfg = ConfigManager(
                config_path=str(settings_path),
                cli_overrides={"storage_backend": "memory"},
            )
            assert cfg.settings.storage_backend == "memory"

    def test_set_override(self, mock_config: ConfigManager) -> None:
        mock_config.set_override("verbose", True)
        assert mock_config.settings.verbose is True

    def test_get(self, mock_config: ConfigManager) -> None:
        assert mock_config.get("storage_key") == "savedPrompts"
        assert mock_config.get("missing", "fallback") == "fallback"

    def test_raw_config(self, mock_config: ConfigManager) -> None:
        raw = mock_config.raw
        assert isinstance(raw, dict)
        assert "storage_path" in raw
