"""Server configuration loader.

Loads server settings from a YAML file. Every key is optional; a missing
file section falls back to the defaults of ``ServerConfig``.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from workspace_mcp.protocol.framing import MAX_LINE_BYTES
from workspace_mcp.protocol.methods import DEFAULT_PROTOCOL_VERSION


class ConfigLoadError(Exception):
    """Raised when configuration loading or validation fails."""

    pass


def expand_env_vars(value: str) -> str:
    """Expand environment variables in a string.

    Supports ${VAR_NAME} syntax. Unknown variables are left unchanged.

    Args:
        value: String potentially containing environment variable references.

    Returns:
        String with known environment variables expanded.
    """
    pattern = re.compile(r"\$\{([^}]+)\}")

    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1)
        env_value = os.environ.get(var_name)
        if env_value is not None:
            return env_value
        # Special handling for HOME
        if var_name == "HOME":
            return os.path.expanduser("~")
        return match.group(0)

    return pattern.sub(replacer, value)


def _section(config: dict[str, Any], name: str) -> dict[str, Any]:
    value = config.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigLoadError(f"'{name}' must be a mapping")
    return value


@dataclass
class ServerConfig:
    """Settings shared by every server instance."""

    host: str = "127.0.0.1"
    server_name: str = "workspace-mcp"
    server_version: str = "0.1.0"
    protocol_version: str = DEFAULT_PROTOCOL_VERSION
    backlog: int = 128
    max_line_bytes: int = MAX_LINE_BYTES
    log_file: str = ""
    preview_chars: int = 100
    debug: bool = False

    @property
    def server_info(self) -> dict[str, str]:
        """Server identity reported by initialize."""
        return {"name": self.server_name, "version": self.server_version}

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> ServerConfig:
        """Create a ServerConfig from a configuration dictionary.

        Args:
            config: Dictionary parsed from YAML configuration.

        Returns:
            ServerConfig instance with defaults for missing keys.

        Raises:
            ConfigLoadError: If a section has the wrong shape or a numeric
                setting is not a positive integer.
        """
        server = _section(config, "server")
        framing = _section(config, "framing")
        log = _section(config, "log")

        result = cls(
            host=server.get("host", cls.host),
            server_name=server.get("name", cls.server_name),
            server_version=str(server.get("version", cls.server_version)),
            protocol_version=str(server.get("protocol_version", cls.protocol_version)),
            backlog=server.get("backlog", cls.backlog),
            max_line_bytes=framing.get("max_line_bytes", cls.max_line_bytes),
            log_file=expand_env_vars(log.get("file") or ""),
            preview_chars=log.get("preview_chars", cls.preview_chars),
            debug=bool(config.get("debug", False)),
        )

        for name in ("backlog", "max_line_bytes", "preview_chars"):
            value = getattr(result, name)
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise ConfigLoadError(f"'{name}' must be a positive integer")

        return result


def load_config(path: Path) -> ServerConfig:
    """Load server configuration from a YAML file.

    Args:
        path: Path to the configuration YAML file.

    Returns:
        ServerConfig instance.

    Raises:
        ConfigLoadError: If the file cannot be found, parsed, or validated.
    """
    if not path.exists():
        raise ConfigLoadError(f"Config file not found: {path}")

    try:
        with open(path) as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"Failed to parse config YAML: {e}") from e

    # An empty file means all defaults
    if config is None:
        return ServerConfig()

    if not isinstance(config, dict):
        raise ConfigLoadError("Config must be a YAML mapping")

    return ServerConfig.from_dict(config)
