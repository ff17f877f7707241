"""Configuration loading and validation for aliaslinker."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from aliaslinker.core.errors import ConfigError
from aliaslinker.core.models import AliasPolicy

DEFAULT_CONFIG_PATH = "~/.aliaslinker/config.yaml"


class WatchConfig(BaseModel):
    """Settings for the vault watcher."""

    polling: bool = Field(
        default=False, description="Use the polling observer instead of native file events"
    )
    poll_interval: float = Field(
        default=2.0, gt=0, description="Seconds between scans when polling"
    )


class AliasLinkerConfig(BaseModel):
    """Top-level aliaslinker configuration."""

    vault_path: str = Field(description="Root directory of the note vault")
    extensions: list[str] = Field(
        default_factory=lambda: [".md"], description="Note file extensions"
    )
    alias_policy: AliasPolicy = Field(
        default=AliasPolicy.FIRST_MATCH,
        description="Resolution of aliases declared by several documents",
    )
    dry_run: bool = Field(default=False, description="Report rewrites without writing")
    watch: WatchConfig = Field(default_factory=WatchConfig)
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("extensions")
    @classmethod
    def validate_extensions(cls, v: list[str]) -> list[str]:
        """Normalize extensions to a leading dot."""
        if not v:
            raise ValueError("At least one note extension is required")
        return [e if e.startswith(".") else f".{e}" for e in v]

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize to an upper-case standard logging level name."""
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def vault_root(self) -> Path:
        return Path(self.vault_path).expanduser()


def load_config(path: str | None = None, vault_path: str | None = None) -> AliasLinkerConfig:
    """Load and validate configuration from a YAML file.

    Environment variable overrides:
        ALIASLINKER_VAULT_PATH: overrides vault_path

    When a vault path comes from the environment or the ``vault_path``
    argument, a missing default config file is not an error.

    Args:
        path: Path to config file. Defaults to ~/.aliaslinker/config.yaml.
        vault_path: Explicit vault directory. Takes precedence over the file
            and the environment.

    Returns:
        Validated AliasLinkerConfig.

    Raises:
        ConfigError: If config file is missing, unreadable, or invalid.
    """
    config_path = Path(path or DEFAULT_CONFIG_PATH).expanduser()

    env_vault = os.environ.get("ALIASLINKER_VAULT_PATH")

    data: dict[str, Any] = {}
    if config_path.exists():
        data = _read_yaml(config_path)
    elif path is not None or not (vault_path or env_vault):
        raise ConfigError(f"Config file not found: {config_path}")

    if env_vault:
        data["vault_path"] = env_vault

    if vault_path:
        data["vault_path"] = vault_path

    try:
        return AliasLinkerConfig(**data)
    except Exception as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def _read_yaml(config_path: Path) -> dict[str, Any]:
    try:
        raw = config_path.read_text()
    except OSError as e:
        raise ConfigError(f"Cannot read config file: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError("Config file must contain a YAML mapping")
    return data
