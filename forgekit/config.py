"""Configuration management for forgekit."""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from forgekit.permissions.types import PermissionConfig, PermissionMode

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Process-level settings, read from FORGEKIT_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="FORGEKIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging
    debug: bool = False
    json_logs: bool = False

    # Context assembly
    max_context_tokens: int = Field(default=12000, gt=0)
    default_section_priority: int = 50
    instruction_files: list[str] = Field(default_factory=lambda: ["FORGEKIT.md", "CLAUDE.md"])

    # Project config + hooks
    config_file_names: list[str] = Field(
        default_factory=lambda: [
            "forgekit.config.yaml",
            "forgekit.config.yml",
            "forgekit.config.json",
        ]
    )
    hooks_dir: str = ".forgekit/hooks"
    hook_timeout_seconds: float = Field(default=60.0, gt=0)

    # Permissions
    permission_mode: str = PermissionMode.DEFAULT.value

    @field_validator("instruction_files", "config_file_names")
    @classmethod
    def validate_file_names(cls, v: list[str]) -> list[str]:
        """Reject empty file name lists."""
        names = [name.strip() for name in v if name and name.strip()]
        if not names:
            raise ValueError("At least one file name is required")
        return names

    @field_validator("permission_mode")
    @classmethod
    def validate_permission_mode(cls, v: str) -> str:
        """Validate permission mode against the known modes."""
        valid = [m.value for m in PermissionMode]
        if v not in valid:
            raise ValueError(f"Permission mode must be one of: {', '.join(valid)}")
        return v


settings = Settings()


def find_project_config(cwd: Path, config: Settings | None = None) -> Path | None:
    """Return the first project config file present in cwd."""
    config = config or settings
    for name in config.config_file_names:
        candidate = Path(cwd) / name
        if candidate.is_file():
            return candidate
    return None


def load_project_config(cwd: Path, config: Settings | None = None) -> dict[str, Any]:
    """Load the project config file (YAML or JSON) from cwd.

    Missing or unreadable files yield an empty dict.
    """
    path = find_project_config(Path(cwd), config)
    if path is None:
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error(f"Invalid YAML in project config {path}: {e}")
        return {}
    except OSError as e:
        logger.error(f"Could not read project config {path}: {e}")
        return {}

    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.error(f"Project config {path} must be a mapping, got {type(data).__name__}")
        return {}

    logger.debug(f"Loaded project config from {path}")
    return data


def permission_config_from(
    project_config: dict[str, Any],
    config: Settings | None = None,
) -> PermissionConfig:
    """Build a PermissionConfig from the project config's permissions block.

    The settings permission mode is used unless the block names one.
    """
    config = config or settings
    block = project_config.get("permissions") or {}
    if not isinstance(block, dict):
        logger.warning("Ignoring non-mapping 'permissions' block in project config")
        block = {}

    data = {"mode": config.permission_mode, **block}
    return PermissionConfig.model_validate(data)
