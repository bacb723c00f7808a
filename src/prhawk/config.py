"""Configuration management for PRHawk."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from prhawk.exceptions import ConfigError

PRHAWK_DIR = ".prhawk"
CONFIG_FILE = "config.json"
CONFIG_ENV = "PRHAWK_CONFIG"

# Pull request actions that trigger an analysis run
DEFAULT_TRIGGER_ACTIONS = ("opened", "synchronize", "reopened")
DEBUG_TRIGGER_ACTION = "edited"


class GitHubConfig(BaseModel):
    """GitHub REST API configuration."""

    api_url: str = "https://api.github.com"
    token_env: str = "GITHUB_TOKEN"
    timeout: float = 30.0
    max_connections: int = 10

    @property
    def token(self) -> str | None:
        return os.environ.get(self.token_env) if self.token_env else None


class BotConfig(BaseModel):
    """Comment and trigger behavior."""

    comment_title: str = "Codehawk Complexity Report"
    debug_edited_trigger: bool = False

    @property
    def trigger_actions(self) -> list[str]:
        actions = list(DEFAULT_TRIGGER_ACTIONS)
        if self.debug_edited_trigger:
            actions.append(DEBUG_TRIGGER_ACTION)
        return actions


class AnalysisConfig(BaseModel):
    """Revision analysis configuration."""

    oracle: str = "tree-sitter"
    # Unsupported files are fetched even though they are never scored
    fetch_unsupported: bool = True


class ServerConfig(BaseModel):
    """Webhook server configuration."""

    host: str = "127.0.0.1"
    port: int = 8080


class ProjectConfig(BaseModel):
    """Full PRHawk configuration."""

    name: str = ""
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    bot: BotConfig = Field(default_factory=BotConfig)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)


def find_project_root(start: Path | None = None) -> Path | None:
    """Nearest directory at or above `start` that holds a .prhawk directory."""
    start = (start or Path.cwd()).resolve()
    for candidate in (start, *start.parents):
        if (candidate / PRHAWK_DIR).is_dir():
            return candidate
    return None


def config_path(root: Path) -> Path:
    """Config file for `root`. $PRHAWK_CONFIG overrides the project file."""
    override = os.environ.get(CONFIG_ENV)
    if override:
        return Path(override).expanduser()
    return root / PRHAWK_DIR / CONFIG_FILE


def load_config(root: Path) -> ProjectConfig:
    """Load configuration for a project.

    Resolution order:
    1. The file named by $PRHAWK_CONFIG
    2. <root>/.prhawk/config.json
    3. Built-in defaults, named after `root`

    Raises:
        ConfigError: If the file is not valid JSON or does not match the schema.
    """
    path = config_path(root)
    if not path.is_file():
        return ProjectConfig(name=root.name)
    try:
        return ProjectConfig.model_validate_json(path.read_text())
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e


def save_config(root: Path, config: ProjectConfig) -> Path:
    """Write configuration where `load_config` will find it and return the path."""
    path = config_path(root)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(config.model_dump_json(indent=2))
    return path


def set_config_value(config: ProjectConfig, key: str, value: Any) -> ProjectConfig:
    """Return a copy of `config` with a dotted key (e.g. 'github.timeout') replaced.

    Raises:
        KeyError: If the key does not name a single setting.
        ConfigError: If the value does not fit the setting's type.
    """
    *sections, leaf = key.split(".")
    data = config.model_dump()
    target: Any = data
    for section in sections:
        target = target.get(section) if isinstance(target, dict) else None
    if not isinstance(target, dict) or leaf not in target or isinstance(target[leaf], dict):
        raise KeyError(key)

    target[leaf] = value
    try:
        return ProjectConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid value for {key}: {e}") from e
