"""
Configuration loading and validation for Logrelay.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from logrelay.core import DEFAULT_INTERFACE, DEFAULT_MEMBER, DEFAULT_OBJECT_PATH, ChannelIdentity

# D-Bus naming rules
_OBJECT_PATH_PATTERN = r"^(/|(/[A-Za-z0-9_]+)+)$"
_INTERFACE_PATTERN = r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)+$"
_MEMBER_PATTERN = r"^[A-Za-z_][A-Za-z0-9_]*$"


class ChannelConfig(BaseModel):
    """Addressing shared by the publisher and every subscriber."""
    object_path: str = Field(default=DEFAULT_OBJECT_PATH, pattern=_OBJECT_PATH_PATTERN)
    interface: str = Field(default=DEFAULT_INTERFACE, pattern=_INTERFACE_PATTERN, max_length=255)
    member: str = Field(default=DEFAULT_MEMBER, pattern=_MEMBER_PATTERN, max_length=255)

    def to_identity(self) -> ChannelIdentity:
        """Return the channel as an immutable identity."""
        return ChannelIdentity(
            object_path=self.object_path,
            interface=self.interface,
            member=self.member,
        )


class LoggingConfig(BaseModel):
    """Diagnostic logging configuration."""
    level: str = "INFO"
    file: str | None = None  # Optional rotating log file in addition to stderr


class Config(BaseModel):
    """Main configuration for Logrelay."""
    log_file: str = "logs/log.txt"
    buffer_size: int = Field(default=1024, ge=2)  # Includes the NUL terminator
    bus: str = Field(default="SESSION", min_length=1)  # "SESSION", "SYSTEM" or an address
    poll_interval: float = Field(default=0.1, gt=0)
    channel: ChannelConfig = Field(default_factory=ChannelConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(config_path: str | Path | None = None) -> Config:
    """
    Load and validate configuration from a YAML file.

    Args:
        config_path: Path to the YAML configuration file, or None for defaults

    Returns:
        Validated Config object

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config is invalid
        yaml.YAMLError: If YAML parsing fails
    """
    if config_path is None:
        return Config()

    path = Path(config_path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with path.open('r', encoding='utf-8') as f:
        raw_config: dict[str, Any] | None = yaml.safe_load(f)

    try:
        return Config.model_validate(raw_config or {})
    except ValidationError as e:
        raise ValueError(f"Configuration validation error: {e}") from e
