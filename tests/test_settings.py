"""Tests for mcp_chat.settings."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from mcp_chat.exceptions import SettingsError
from mcp_chat.orchestrator import ToolErrorPolicy
from mcp_chat.settings import API_KEY_ENV, SETTINGS_FILENAME, AppSettings, load_settings


@pytest.fixture(autouse=True)
def _no_env_key(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv(API_KEY_ENV, raising=False)
    monkeypatch.chdir(tmp_path)


def _write(path: Path, data: dict) -> Path:
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestLoadSettings:
    def test_reads_camel_case_file(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path / SETTINGS_FILENAME,
            {
                "modelProvider": {"apiKey": "sk-test"},
                "mcpServers": {
                    "memory": {
                        "command": "npx",
                        "args": ["-y", "@modelcontextprotocol/server-memory"],
                        "env": {"MEMORY_FILE_PATH": "./data/memory.json"},
                    }
                },
            },
        )
        settings = load_settings(path)
        assert settings.api_key == "sk-test"
        memory = settings.mcp_servers["memory"]
        assert memory.command == "npx"
        assert memory.args == ["-y", "@modelcontextprotocol/server-memory"]
        assert memory.env == {"MEMORY_FILE_PATH": "./data/memory.json"}

    def test_orchestrator_section(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path / "custom.json",
            {
                "orchestrator": {
                    "maxToolRounds": 3,
                    "toolErrorPolicy": "feed_back",
                    "temperature": 0.1,
                    "maxTokens": 100,
                }
            },
        )
        orchestrator = load_settings(path).orchestrator
        assert orchestrator.max_tool_rounds == 3
        assert orchestrator.tool_error_policy is ToolErrorPolicy.FEED_BACK
        options = orchestrator.query_options()
        assert options.temperature == 0.1
        assert options.max_tokens == 100

    def test_defaults(self) -> None:
        settings = AppSettings()
        assert settings.api_key == ""
        assert settings.mcp_servers == {}
        assert settings.orchestrator.max_tool_rounds == 10
        assert settings.orchestrator.tool_error_policy is ToolErrorPolicy.STOP

    def test_missing_file_creates_default(self, tmp_path: Path) -> None:
        path = tmp_path / SETTINGS_FILENAME
        settings = load_settings(path)
        assert settings.mcp_servers == {}
        written = json.loads(path.read_text(encoding="utf-8"))
        assert written["modelProvider"] == {"apiKey": ""}
        assert written["mcpServers"] == {}

    def test_default_path_is_working_directory(self, tmp_path: Path) -> None:
        load_settings()
        assert (tmp_path / SETTINGS_FILENAME).exists()

    def test_create_default_can_be_disabled(self, tmp_path: Path) -> None:
        path = tmp_path / SETTINGS_FILENAME
        load_settings(path, create_default=False)
        assert not path.exists()

    def test_invalid_json_raises(self, tmp_path: Path) -> None:
        path = tmp_path / SETTINGS_FILENAME
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(SettingsError, match="Invalid settings file"):
            load_settings(path)

    def test_invalid_server_raises(self, tmp_path: Path) -> None:
        path = _write(tmp_path / SETTINGS_FILENAME, {"mcpServers": {"bad": {"args": []}}})
        with pytest.raises(SettingsError):
            load_settings(path)

    def test_api_key_from_environment(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv(API_KEY_ENV, "sk-env")
        settings = load_settings(tmp_path / SETTINGS_FILENAME)
        assert settings.api_key == "sk-env"

    def test_file_key_wins_over_environment(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv(API_KEY_ENV, "sk-env")
        path = _write(tmp_path / SETTINGS_FILENAME, {"modelProvider": {"apiKey": "sk-file"}})
        assert load_settings(path).api_key == "sk-file"
