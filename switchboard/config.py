"""Configuration management for Switchboard."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from .errors import ConfigError
from .providers.base import ProviderConfig

_log = logging.getLogger(__name__)

SUPPORTED_SERVER_TYPES = ("http",)

DEFAULT_SETTINGS: Dict[str, Any] = {
    "provider": "openai",
    "max_rounds": 10,
    "tool_timeout": 60.0,
    "model_timeout": 120.0,
    "connect_timeout": 15.0,
    "system_prompt": "",
}


@dataclass(frozen=True)
class ServerConfig:
    """Connection settings for one remote tool provider."""

    type: str
    url: str

    @property
    def is_supported(self) -> bool:
        return self.type in SUPPORTED_SERVER_TYPES


def parse_server_configs(data: Union[str, Mapping[str, Any], None]) -> Dict[str, ServerConfig]:
    """Parse a ``{servers: {id: {type, url}}}`` document.

    Accepts either the already-loaded mapping or YAML/JSON text. The
    transport type is kept as written; ProviderPool.attach rejects
    unsupported types per server before dialing.

    Raises:
        ConfigError: The document is malformed.
    """
    if isinstance(data, str):
        try:
            data = yaml.safe_load(data)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid server configuration: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ConfigError("Server configuration must be a mapping with a 'servers' key")

    servers = data.get("servers")
    if servers is None:
        return {}
    if not isinstance(servers, Mapping):
        raise ConfigError("'servers' must map server ids to {type, url}")

    configs = {}
    for provider_id, entry in servers.items():
        if not isinstance(entry, Mapping):
            raise ConfigError(f"Server '{provider_id}' must be a mapping")
        server_type = str(entry.get("type") or "")
        url = entry.get("url")
        if not isinstance(url, str) or not url:
            raise ConfigError(f"Server '{provider_id}' is missing a url")
        configs[str(provider_id)] = ServerConfig(type=server_type, url=url)
    return configs


def load_server_file(path: Union[str, Path]) -> Dict[str, ServerConfig]:
    """Read server configs from a YAML or JSON file."""
    path = Path(path).expanduser()
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    return parse_server_configs(text)


class ConfigManager:
    """Manage Switchboard configuration from YAML."""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = Path(config_path or "~/.config/switchboard/config.yaml").expanduser()
        self.data = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            self._create_default_config()
        return self._read_yaml()

    def _read_yaml(self) -> Dict[str, Any]:
        """Read and parse YAML file."""
        try:
            with open(self.config_path, "r") as f:
                content = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            _log.error("Error reading config %s: %s", self.config_path, e)
            return {}
        if not isinstance(content, dict):
            return {}
        return content

    def _create_default_config(self) -> None:
        """Create default configuration file."""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        default_config = {
            "providers": {
                "openai": {
                    "enabled": True,
                    "api_key": "${OPENAI_API_KEY}",
                    "model": "gpt-4o-mini",
                    "temperature": 0.7,
                },
                "openrouter": {
                    "enabled": False,
                    "api_key": "${OPENROUTER_API_KEY}",
                    "model": "openai/gpt-4o-mini",
                    "temperature": 0.7,
                },
            },
            "defaults": dict(DEFAULT_SETTINGS),
            "tools": {
                "clock": True,
            },
            "servers": {},
        }

        with open(self.config_path, "w") as f:
            yaml.dump(default_config, f, default_flow_style=False)

    def get_provider_config(self, provider_name: str) -> Optional[ProviderConfig]:
        """Get configuration for a specific chat provider."""
        provider_data = self.data.get("providers", {}).get(provider_name, {})

        if not provider_data.get("enabled", False):
            return None

        api_key = self._resolve_env_var(provider_data.get("api_key", ""))
        if not api_key:
            return None

        return ProviderConfig(
            api_key=api_key,
            model=provider_data.get("model", ""),
            base_url=provider_data.get("base_url"),
            temperature=provider_data.get("temperature", 0.7),
            max_tokens=provider_data.get("max_tokens"),
            timeout=provider_data.get("timeout", 60.0),
        )

    def _resolve_env_var(self, value: str) -> str:
        """Resolve environment variable references like ${VAR_NAME}."""
        if not isinstance(value, str):
            return ""
        if not value.startswith("${") or not value.endswith("}"):
            return value

        var_name = value[2:-1]
        return os.getenv(var_name, "")

    def get_default_provider(self) -> str:
        """Get the default chat provider name."""
        return self.get_settings()["provider"]

    def get_enabled_providers(self) -> list[str]:
        """Get list of enabled chat provider names."""
        providers = self.data.get("providers", {})
        return [name for name, config in providers.items() if config.get("enabled", False)]

    def get_settings(self) -> Dict[str, Any]:
        """Loop, timeout and prompt settings merged over the defaults."""
        config = self.data.get("defaults") or {}
        return {**DEFAULT_SETTINGS, **config}

    def get_tools_config(self) -> Dict[str, bool]:
        """Get local tool plugin enable/disable switches."""
        defaults = {"clock": True}
        config = self.data.get("tools") or {}
        return {**defaults, **config}

    def get_server_configs(self) -> Dict[str, ServerConfig]:
        """Parse the ``servers`` section (raises ConfigError if malformed)."""
        return parse_server_configs({"servers": self.data.get("servers") or {}})
