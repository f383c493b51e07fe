"""Configuration management for skillsync."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, model_validator

from skillsync.core.tools import ToolId


# ============================================================================
# Configuration Models
# ============================================================================


class GitConfig(BaseModel):
    """How remote repositories are retrieved."""

    binary: str = "git"
    depth: int = Field(default=1, gt=0)
    timeout: int = Field(default=120, gt=0)


class ApiConfig(BaseModel):
    """HTTP API configuration."""

    host: str = "127.0.0.1"
    port: int = Field(default=8000, gt=0, lt=65536)


# ============================================================================
# Main Configuration Class
# ============================================================================


class Config(BaseModel):
    """
    Main configuration for skillsync.

    Configuration is loaded from ~/.skillsync/:
    1. config.user.yaml - User configuration (optional)
    2. config.runtime.yaml - Runtime state (optional, overrides user)

    Runtime config takes precedence over user config. Pydantic defaults are used
    for optional fields not specified in config files.
    """

    workspace: Path
    home: Path = Field(default_factory=Path.home)
    logging_path: Path = Field(default=Path(".logs"))
    cache_path: Path = Field(default=Path(".cache"))
    default_tools: list[ToolId] = Field(default_factory=lambda: [ToolId.CLAUDE_CODE])
    tool_paths: dict[ToolId, Path] = Field(default_factory=dict)
    recent_limit: int = Field(default=10, gt=0)
    git: GitConfig = Field(default_factory=GitConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)

    @model_validator(mode="after")
    def resolve_paths(self) -> "Config":
        """Resolve relative paths to absolute using workspace."""
        for field_name in ("logging_path", "cache_path"):
            path = getattr(self, field_name)
            if path.is_absolute():
                if path.is_relative_to(self.workspace):
                    continue
                raise ValueError(f"{field_name} must be relative, got: {path}")
            setattr(self, field_name, self.workspace / path)
        self.tool_paths = {
            tool: Path(path).expanduser() for tool, path in self.tool_paths.items()
        }
        return self

    @property
    def workspaces_path(self) -> Path:
        return self.workspace / "workspaces.json"

    @property
    def marketplace_path(self) -> Path:
        return self.workspace / "marketplace.json"

    @classmethod
    def load(cls, workspace_dir: Path) -> "Config":
        """
        Load configuration from ~/.skillsync/.

        Args:
            workspace_dir: Path to the application directory

        Returns:
            Config instance with all settings loaded and validated

        Raises:
            ValidationError: If configuration is invalid
        """
        return cls.model_validate(cls._read_layers(workspace_dir))

    @classmethod
    def _read_layers(cls, workspace_dir: Path) -> dict[str, Any]:
        config_data: dict[str, Any] = {"workspace": workspace_dir}

        user_config = workspace_dir / "config.user.yaml"
        runtime_config = workspace_dir / "config.runtime.yaml"

        if user_config.exists():
            with open(user_config) as f:
                user_data = yaml.safe_load(f) or {}
            config_data = cls._deep_merge(config_data, user_data)

        # Deep merge runtime config (overrides user)
        if runtime_config.exists():
            with open(runtime_config) as f:
                runtime_data = yaml.safe_load(f) or {}
            config_data = cls._deep_merge(config_data, runtime_data)

        return config_data

    @staticmethod
    def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """
        Deep merge override dict into base dict.

        Args:
            base: Base dictionary
            override: Override dictionary (takes precedence)

        Returns:
            Merged dictionary
        """
        result = base.copy()

        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = Config._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def _set_nested(self, obj: dict, key: str, value: Any) -> None:
        """Set a nested value in a dict using dot notation."""
        keys = key.split(".")
        for k in keys[:-1]:
            if k not in obj or not isinstance(obj[k], dict):
                obj[k] = {}
            obj = obj[k]
        obj[keys[-1]] = value

    def _set_config_value(self, config_path: Path, key: str, value: Any) -> None:
        """
        Update a config value in a YAML file.

        Args:
            config_path: Path to the YAML file
            key: Config key (supports dot notation for nested values)
            value: New value
        """
        if config_path.exists():
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
        else:
            data = {}

        self._set_nested(data, key, value)

        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w") as f:
            yaml.safe_dump(data, f)

    def _update_file(self, config_path: Path, key: str, value: Any) -> None:
        """Write a value and reload, restoring the file if the result is invalid."""
        previous = config_path.read_text() if config_path.exists() else None
        self._set_config_value(config_path, key, value)
        if self.reload():
            return

        if previous is None:
            config_path.unlink()
        else:
            config_path.write_text(previous)
        raise ValueError(f"Invalid value for {key}: {value!r}")

    def set_user(self, key: str, value: Any) -> None:
        """
        Update a config value in config.user.yaml.

        Args:
            key: Config key (supports dot notation, e.g., "api.port")
            value: New value
        """
        self._update_file(self.workspace / "config.user.yaml", key, value)

    def set_runtime(self, key: str, value: Any) -> None:
        """
        Update a runtime value in config.runtime.yaml.

        Args:
            key: Config key (supports dot notation, e.g., "git.timeout")
            value: New value
        """
        self._update_file(self.workspace / "config.runtime.yaml", key, value)

    def reload(self) -> bool:
        """
        Re-read config.user.yaml and merge with runtime.

        Returns:
            True if reload succeeded, False if a file is invalid
        """
        try:
            new_config = Config.model_validate(self._read_layers(self.workspace))
        except (OSError, ValueError, yaml.YAMLError):
            return False

        for field_name in Config.model_fields:
            setattr(self, field_name, getattr(new_config, field_name))
        return True
