"""
Configuration management for Overture.

This module loads the server configuration from a TOML file into a
ServerConfig dataclass. The bundled server.toml next to this module holds
the defaults; a different file can be passed on the command line.
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from overture.protocol.vocabulary import VOCABULARY_MODES

logger = logging.getLogger(__name__)

# Path to the config directory
CONFIG_DIR = Path(__file__).parent

DEFAULT_PORT = 6600
DEFAULT_PROTOCOL_VERSION = "0.23.5"


class ConfigError(ValueError):
    """Invalid configuration value."""

    pass


@dataclass
class VocabularyConfig:
    """Command vocabulary settings."""

    mode: str = "strict"
    preserve_case: bool = False


@dataclass
class ServerConfig:
    """Loaded server configuration."""

    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    protocol_version: str = DEFAULT_PROTOCOL_VERSION
    connection_timeout: float = 60.0
    max_connections: int = 100
    max_line_length: int = 4096
    # KiB, like MPD's max_command_list_size
    max_command_list_size: int = 2048
    vocabulary: VocabularyConfig = field(default_factory=VocabularyConfig)
    web_port: int = 0

    def __post_init__(self) -> None:
        """Validate values that would otherwise fail late at runtime."""
        if self.vocabulary.mode not in VOCABULARY_MODES:
            raise ConfigError(
                f"vocabulary.mode must be one of {VOCABULARY_MODES}, got {self.vocabulary.mode!r}"
            )
        if not 0 <= self.port <= 65535:
            raise ConfigError(f"port out of range: {self.port}")
        if not 0 <= self.web_port <= 65535:
            raise ConfigError(f"web.port out of range: {self.web_port}")
        if self.connection_timeout <= 0:
            raise ConfigError("connection_timeout must be positive")
        if self.max_connections < 1:
            raise ConfigError("max_connections must be at least 1")
        if self.max_line_length < 64:
            raise ConfigError("max_line_length must be at least 64 bytes")
        if self.max_command_list_size < 1:
            raise ConfigError("max_command_list_size must be at least 1 KiB")
        if not self.protocol_version or any(c.isspace() for c in self.protocol_version):
            raise ConfigError(f"invalid protocol_version: {self.protocol_version!r}")

    @property
    def max_command_list_bytes(self) -> int:
        return self.max_command_list_size * 1024

    @property
    def web_enabled(self) -> bool:
        return self.web_port > 0

    def with_overrides(self, **overrides: Any) -> ServerConfig:
        """
        Return a copy with the given top-level values replaced.

        None values are ignored so unset command line flags keep the file
        value. The key "vocabulary_mode" replaces vocabulary.mode.
        """
        values = {k: v for k, v in overrides.items() if v is not None}
        mode = values.pop("vocabulary_mode", None)
        vocabulary = self.vocabulary
        if mode is not None:
            vocabulary = replace(vocabulary, mode=mode)
        return replace(self, vocabulary=vocabulary, **values)


def _parse_config(data: dict[str, Any]) -> ServerConfig:
    """Build a ServerConfig from parsed TOML data."""
    defaults = ServerConfig()
    vocab_data = data.get("vocabulary", {})
    web_data = data.get("web", {})

    for table, value in (("vocabulary", vocab_data), ("web", web_data)):
        if not isinstance(value, dict):
            raise ConfigError(f"[{table}] must be a table, got {type(value).__name__}")

    preserve_case = vocab_data.get("preserve_case", False)
    if not isinstance(preserve_case, bool):
        raise ConfigError(
            f"vocabulary.preserve_case must be true or false, got {preserve_case!r}"
        )

    try:
        return ServerConfig(
            host=str(data.get("host", defaults.host)),
            port=int(data.get("port", defaults.port)),
            protocol_version=str(data.get("protocol_version", defaults.protocol_version)),
            connection_timeout=float(data.get("connection_timeout", defaults.connection_timeout)),
            max_connections=int(data.get("max_connections", defaults.max_connections)),
            max_line_length=int(data.get("max_line_length", defaults.max_line_length)),
            max_command_list_size=int(
                data.get("max_command_list_size", defaults.max_command_list_size)
            ),
            vocabulary=VocabularyConfig(
                mode=str(vocab_data.get("mode", "strict")),
                preserve_case=preserve_case,
            ),
            web_port=int(web_data.get("port", defaults.web_port)),
        )
    except ConfigError:
        raise
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid configuration value: {e}") from e


def load_server_config(config_path: Path | None = None) -> ServerConfig:
    """
    Load server configuration from a TOML file.

    Args:
        config_path: Path to the TOML file. If None, uses the bundled
            server.toml.

    Returns:
        Loaded ServerConfig instance.

    Raises:
        ConfigError: If the file is not valid TOML or holds invalid values.
    """
    if config_path is None:
        config_path = CONFIG_DIR / "server.toml"

    logger.debug("Loading server config from %s", config_path)

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"{config_path}: {e}") from e

    return _parse_config(data)

