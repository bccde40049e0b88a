"""Settings file loading.

The settings file (``server-settings.json`` in the working directory by
default) uses the camelCase layout::

    {
      "modelProvider": {"apiKey": "sk-ant-..."},
      "mcpServers": {
        "memory": {
          "command": "npx",
          "args": ["-y", "@modelcontextprotocol/server-memory"],
          "env": {"MEMORY_FILE_PATH": "./data/memory.json"}
        }
      }
    }

An empty ``apiKey`` falls back to ``ANTHROPIC_API_KEY`` from the
environment or a ``.env`` file.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from mcp_chat.exceptions import SettingsError
from mcp_chat.models.query import QueryOptions
from mcp_chat.models.server import ServerConfig
from mcp_chat.orchestrator import ToolErrorPolicy

logger = logging.getLogger(__name__)

SETTINGS_FILENAME = "server-settings.json"
API_KEY_ENV = "ANTHROPIC_API_KEY"


class ModelProviderSettings(BaseModel):
    api_key: str = Field(default="", alias="apiKey")

    model_config = ConfigDict(populate_by_name=True)


class OrchestratorSettings(BaseModel):
    """Tuning for the query loop and generation options."""

    max_tool_rounds: int = Field(default=10, ge=1, alias="maxToolRounds")
    tool_error_policy: ToolErrorPolicy = Field(
        default=ToolErrorPolicy.STOP, alias="toolErrorPolicy"
    )
    temperature: float = Field(default=0.7, ge=0.0, le=1.0)
    max_tokens: int = Field(default=2000, gt=0, alias="maxTokens")

    model_config = ConfigDict(populate_by_name=True)

    def query_options(self) -> QueryOptions:
        return QueryOptions(temperature=self.temperature, max_tokens=self.max_tokens)


class AppSettings(BaseModel):
    """Everything the host reads at startup."""

    model_provider: ModelProviderSettings = Field(
        default_factory=ModelProviderSettings, alias="modelProvider"
    )
    mcp_servers: dict[str, ServerConfig] = Field(default_factory=dict, alias="mcpServers")
    orchestrator: OrchestratorSettings = Field(default_factory=OrchestratorSettings)

    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    @property
    def api_key(self) -> str:
        return self.model_provider.api_key


def default_settings_path() -> Path:
    return Path.cwd() / SETTINGS_FILENAME


def load_settings(path: str | Path | None = None, *, create_default: bool = True) -> AppSettings:
    """Read the settings file, creating a default one when it is missing.

    Raises:
        SettingsError: If the file exists but cannot be read or validated.
    """
    settings_path = Path(path) if path is not None else default_settings_path()

    if settings_path.exists():
        try:
            settings = AppSettings.model_validate_json(settings_path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as exc:
            msg = f"Invalid settings file {settings_path}: {exc}"
            raise SettingsError(msg) from exc
        logger.info(
            "Server settings loaded from %s (%d server(s))",
            settings_path,
            len(settings.mcp_servers),
        )
    else:
        settings = AppSettings()
        if create_default:
            _write_default(settings, settings_path)

    if not settings.model_provider.api_key:
        load_dotenv()
        env_key = os.environ.get(API_KEY_ENV, "")
        if env_key:
            settings.model_provider.api_key = env_key
    return settings


def _write_default(settings: AppSettings, settings_path: Path) -> None:
    logger.warning("Creating default server settings file")
    try:
        settings_path.write_text(
            settings.model_dump_json(by_alias=True, indent=2), encoding="utf-8"
        )
    except OSError:
        logger.exception("Failed to create default server settings file")
        return
    logger.info("Created default server settings at: %s", settings_path)
