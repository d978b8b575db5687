"""
Tests for configuration loading and validation.
"""

from pathlib import Path

import pytest

from logrelay.config import Config, load_config
from logrelay.core import ChannelIdentity


class TestLoadConfig:
    """Tests for load_config function."""

    def test_defaults_without_file(self) -> None:
        """No config file means built-in defaults."""
        config = load_config(None)

        assert config.log_file == "logs/log.txt"
        assert config.buffer_size == 1024
        assert config.bus == "SESSION"
        assert config.poll_interval == 0.1
        assert config.channel.to_identity() == ChannelIdentity(
            "/com/example/LogWatcher", "com.example.LogWatcher", "NewLog"
        )
        assert config.logging.level == "INFO"
        assert config.logging.file is None

    def test_load_valid_config(self, tmp_path: Path) -> None:
        """Test loading a valid configuration file."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("""
log_file: "/var/log/app/log.txt"
buffer_size: 4096
bus: "unix:path=/run/user/1000/bus"
poll_interval: 0.5
channel:
  object_path: "/org/example/App"
  interface: "org.example.App"
  member: "Appended"
logging:
  level: "DEBUG"
  file: "/var/log/logrelay.log"
""")

        config = load_config(config_file)

        assert config.log_file == "/var/log/app/log.txt"
        assert config.buffer_size == 4096
        assert config.bus == "unix:path=/run/user/1000/bus"
        assert config.poll_interval == 0.5
        assert config.channel.member == "Appended"
        assert config.logging.level == "DEBUG"
        assert config.logging.file == "/var/log/logrelay.log"

    def test_partial_config_keeps_defaults(self, tmp_path: Path) -> None:
        """Unspecified sections fall back to defaults."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("log_file: other.txt\n")

        config = load_config(config_file)

        assert config.log_file == "other.txt"
        assert config.channel.interface == "com.example.LogWatcher"

    def test_empty_file_is_defaults(self, tmp_path: Path) -> None:
        """An empty YAML document is accepted."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("")

        assert load_config(config_file) == Config()

    def test_load_missing_file(self) -> None:
        """Test that loading a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config("/nonexistent/config.yaml")

    def test_load_invalid_yaml(self, tmp_path: Path) -> None:
        """Test that invalid YAML raises an error."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("invalid: yaml: content: [")

        with pytest.raises(Exception):  # yaml.YAMLError
            load_config(config_file)

    @pytest.mark.parametrize("buffer_size", [0, 1, -5])
    def test_buffer_too_small(self, tmp_path: Path, buffer_size: int) -> None:
        """The buffer must hold at least one byte plus the terminator."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text(f"buffer_size: {buffer_size}\n")

        with pytest.raises(ValueError, match="validation error"):
            load_config(config_file)

    def test_poll_interval_must_be_positive(self, tmp_path: Path) -> None:
        """A zero poll interval would busy-spin."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("poll_interval: 0\n")

        with pytest.raises(ValueError, match="validation error"):
            load_config(config_file)

    @pytest.mark.parametrize("channel", [
        "object_path: 'relative/path'",
        "object_path: '/trailing/'",
        "interface: 'nodots'",
        "interface: 'com.1example.Bad'",
        "member: 'has.dot'",
        "member: ''",
    ])
    def test_invalid_channel_names(self, tmp_path: Path, channel: str) -> None:
        """Channel names must follow D-Bus naming rules."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text(f"channel:\n  {channel}\n")

        with pytest.raises(ValueError, match="validation error"):
            load_config(config_file)

    def test_root_object_path_is_valid(self, tmp_path: Path) -> None:
        """"/" is a valid object path."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("channel:\n  object_path: '/'\n")

        assert load_config(config_file).channel.object_path == "/"


class TestChannelIdentity:
    """Tests for ChannelIdentity."""

    def test_match_rule(self) -> None:
        """The match rule selects by interface and member only."""
        identity = ChannelIdentity("/com/example/LogWatcher", "com.example.LogWatcher", "NewLog")

        assert identity.match_rule() == (
            "type='signal',interface='com.example.LogWatcher',member='NewLog'"
        )
