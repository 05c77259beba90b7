"""Configuration module for jmxdoc.

Load and validate library settings from an optional TOML file plus environment
overrides. As a Layer 1 module, may import: domain, utils.

Environment variables use the ``JMXDOC_`` prefix and ``__`` for nesting and take
precedence over values read from TOML:

    JMXDOC_LOGGING__LEVEL=DEBUG
    JMXDOC_IO__INDENT=4

Example TOML:

    [logging]
    level = "INFO"
    structured = false

    [io]
    indent = 2
    create_parent_dirs = false
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

try:
    import tomllib  # Python >= 3.11
except ImportError:
    import tomli as tomllib  # Python < 3.11

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = [
    "Settings",
    "LoggingConfig",
    "IOConfig",
    "load_settings",
    "ENV_PREFIX",
]

ENV_PREFIX = "JMXDOC_"

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


# ============================================================================
# Configuration Models
# ============================================================================


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = {"extra": "forbid"}

    level: str = Field(default="INFO")
    structured: bool = Field(default=False)

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        v_upper = v.upper()
        if v_upper not in VALID_LOG_LEVELS:
            raise ValueError(f"level must be one of {VALID_LOG_LEVELS}, got '{v}'")
        return v_upper


class IOConfig(BaseModel):
    """Document file I/O configuration."""

    model_config = {"extra": "forbid"}

    indent: int = Field(default=2, ge=0)
    create_parent_dirs: bool = Field(default=False)


class Settings(BaseSettings):
    """Complete library settings."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="forbid",
    )

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    io: IOConfig = Field(default_factory=IOConfig)

    @classmethod
    def settings_customise_sources(cls, settings_cls, init_settings, env_settings, dotenv_settings, file_secret_settings):
        # Environment wins over values passed in (i.e. read from TOML)
        return env_settings, init_settings


# ============================================================================
# Loading Functions
# ============================================================================


def load_settings(toml_path: Path | str | None = None) -> Settings:
    """Load and validate settings from TOML and environment.

    Args:
        toml_path: Path to TOML configuration file (optional)

    Returns:
        Validated Settings object

    Raises:
        FileNotFoundError: If toml_path specified but doesn't exist
        ValueError: If configuration is invalid (pydantic ValidationError)
    """
    config_dict: dict[str, Any] = {}

    if toml_path is not None:
        toml_path = Path(toml_path)
        if not toml_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {toml_path}")

        with open(toml_path, "rb") as f:
            config_dict = tomllib.load(f)

    return Settings(**config_dict)
