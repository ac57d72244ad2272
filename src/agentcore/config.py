"""Configuration management for AgentCore using Pydantic settings.

This module handles all configuration for the agent execution core, loading
from environment variables and .env files with sensible defaults.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Main configuration settings for AgentCore.

    Settings are loaded from environment variables and .env files.
    Environment variables take precedence over .env file values.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Agent Settings
    agent_enabled: bool = Field(
        default=True,
        description="Global feature flag for escalating chat turns into agent runs",
    )
    agent_default_mode: Literal["react", "function_calling"] = Field(
        default="react",
        description="Reasoning mode used when a run does not specify one",
    )
    agent_max_iterations: int = Field(
        default=10,
        description="Default maximum number of agent loop iterations",
        ge=1,
        le=50,
    )

    # Model Invocation
    model_name: str = Field(
        default="gpt-5-mini",
        description="Model identifier passed to the model invocation backend",
    )
    model_provider: Literal["openai", "openai-responses", "claude", "gemini"] = Field(
        default="openai",
        description="Tool schema format expected by the model invocation backend",
    )

    # Memory Settings
    memory_short_term_limit: int = Field(
        default=50,
        description="Maximum number of short-term memory items",
        ge=1,
    )
    memory_long_term_limit: int = Field(
        default=200,
        description="Maximum number of long-term memory items",
        ge=1,
    )
    memory_task_history_limit: int = Field(
        default=100,
        description="Maximum number of task history records",
        ge=1,
    )
    memory_use_record_store: bool = Field(
        default=True,
        description="Prefer the per-record SQLite store (falls back to a JSON blob)",
    )
    memory_persistence_key: str = Field(
        default="agent_memory",
        description="Key of the serialized blob in the flat key-value fallback store",
    )

    # Application Settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level for the application",
    )
    log_file: Path | None = Field(
        default=None,
        description="Optional file path to write logs (defaults to console only)",
    )
    data_dir: Path = Field(
        default=Path("./data"),
        description="Base directory for all local data storage",
    )
    memory_db_path: Path | None = Field(
        default=None,
        description="Path to the SQLite memory database (auto-generated in data_dir if not set)",
    )
    memory_kv_path: Path | None = Field(
        default=None,
        description="Path to the key-value fallback file (auto-generated in data_dir if not set)",
    )

    @field_validator("data_dir", "log_file", "memory_db_path", "memory_kv_path", mode="before")
    @classmethod
    def expand_paths(cls, v: str | Path | None) -> Path | None:
        """Expand relative paths to absolute paths."""
        if v is None:
            return None
        path = Path(v)
        return path.expanduser().resolve()

    @field_validator("memory_db_path", mode="after")
    @classmethod
    def set_default_memory_db_path(cls, v: Path | None, info) -> Path:
        """Set default memory database path if not specified."""
        if v is None:
            data_dir = info.data.get("data_dir", Path("./data"))
            return data_dir / "memory" / "agent_memory.db"
        return v

    @field_validator("memory_kv_path", mode="after")
    @classmethod
    def set_default_memory_kv_path(cls, v: Path | None, info) -> Path:
        """Set default key-value fallback path if not specified."""
        if v is None:
            data_dir = info.data.get("data_dir", Path("./data"))
            return data_dir / "memory" / "storage.json"
        return v

    def ensure_directories(self) -> None:
        """Create all required directories if they don't exist."""
        directories = [
            self.data_dir,
            self.data_dir / "logs",
            self.memory_db_path.parent,
            self.memory_kv_path.parent,
        ]

        for directory in directories:
            directory.mkdir(parents=True, exist_ok=True)

    def model_dump_safe(self) -> dict[str, str]:
        """Dump settings as a dictionary with safe string representations.

        Useful for logging configuration without exposing sensitive data.
        """
        return {
            "agent_enabled": str(self.agent_enabled),
            "default_mode": self.agent_default_mode,
            "max_iterations": str(self.agent_max_iterations),
            "model_name": self.model_name,
            "model_provider": self.model_provider,
            "log_level": self.log_level,
            "data_dir": str(self.data_dir),
            "memory_db_path": str(self.memory_db_path),
            "memory_kv_path": str(self.memory_kv_path),
            "use_record_store": str(self.memory_use_record_store),
            "short_term_limit": str(self.memory_short_term_limit),
            "long_term_limit": str(self.memory_long_term_limit),
            "task_history_limit": str(self.memory_task_history_limit),
        }


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance.

    Creates and caches the settings on first call.
    Ensures all required directories exist.

    Returns:
        Settings: The global settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()
        _settings.ensure_directories()
    return _settings


def reload_settings() -> Settings:
    """Reload settings from environment/files.

    Useful for testing or when configuration changes at runtime.

    Returns:
        Settings: The newly loaded settings instance
    """
    global _settings
    _settings = Settings()
    _settings.ensure_directories()
    return _settings
