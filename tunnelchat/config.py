"""
Config Loader - Load tunnelchat configuration from YAML

Example config.yaml::

    tunnel:
      url: https://tunneling-service.onrender.com
      server_key: ${TUNNEL_SERVER_KEY}
      token: ${TUNNEL_TOKEN}

    model:
      endpoint: https://chat.example.com/api/gemini
      name: gemini-2.0-flash
      timeout: 60

    loop:
      max_iterations: 5
      tool_call_timeout: 30

    services:
      - filesystem
      - name: gmail
        exclude: [delete_message]
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .constants import DEFAULT_TUNNEL_URL
from .errors import ConfigError
from .llm.base import ModelConfig
from .orchestrator.loop_config import LoopConfig

logger = logging.getLogger(__name__)

_ENV_VAR = re.compile(r"\$\{(\w+)\}")


@dataclass
class TunnelConfig:
    """Configuration for the tunneling proxy"""
    server_key: str
    url: str = DEFAULT_TUNNEL_URL
    token: Optional[str] = None
    timeout: float = 30.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TunnelConfig":
        if not data.get("server_key"):
            raise ConfigError("Missing required config field: 'tunnel.server_key'")
        return cls(
            server_key=str(data["server_key"]),
            url=data.get("url") or DEFAULT_TUNNEL_URL,
            token=data.get("token"),
            timeout=float(data.get("timeout", 30.0)),
        )


@dataclass
class ServiceConfig:
    """One service whose tools are offered to the model"""
    name: str
    include: Optional[List[str]] = None
    exclude: List[str] = field(default_factory=list)

    @classmethod
    def from_value(cls, value: Union[str, Dict[str, Any]]) -> "ServiceConfig":
        """Accepts a bare service name or ``{name, include, exclude}``"""
        if isinstance(value, str):
            return cls(name=value)
        if not isinstance(value, dict) or not value.get("name"):
            raise ConfigError(f"Invalid service entry: {value!r}")
        return cls(
            name=value["name"],
            include=value.get("include"),
            exclude=list(value.get("exclude") or []),
        )


@dataclass
class AppConfig:
    """Complete application configuration"""
    model: ModelConfig
    tunnel: Optional[TunnelConfig] = None
    loop: LoopConfig = field(default_factory=LoopConfig)
    services: List[ServiceConfig] = field(default_factory=list)
    instruction: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppConfig":
        if not isinstance(data, dict):
            raise ConfigError("Config must be a mapping")

        model_cfg = _section(data, "model") or {}
        if not model_cfg.get("endpoint"):
            raise ConfigError("Missing required config field: 'model.endpoint'")

        tunnel_cfg = _section(data, "tunnel")
        raw_services = data.get("services") or []
        if not isinstance(raw_services, list):
            raise ConfigError("'services' must be a list")
        services = [ServiceConfig.from_value(s) for s in raw_services]
        if services and not tunnel_cfg:
            raise ConfigError("'services' requires a 'tunnel' section")

        loop = LoopConfig.from_dict(_section(data, "loop"))
        try:
            model = ModelConfig.from_dict(model_cfg)
            tunnel = TunnelConfig.from_dict(tunnel_cfg) if tunnel_cfg else None
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid config value: {e}") from e
        if loop.model is None:
            loop.model = model.model

        return cls(
            model=model,
            tunnel=tunnel,
            loop=loop,
            services=services,
            instruction=data.get("instruction"),
        )


def _section(data: Dict[str, Any], key: str) -> Optional[Dict[str, Any]]:
    value = data.get(key)
    if value is not None and not isinstance(value, dict):
        raise ConfigError(f"'{key}' section must be a mapping, got {type(value).__name__}")
    return value


def substitute_env(raw: str, source: str = "<string>") -> str:
    """Replace ``${VAR}`` with environment variable values."""

    def _replace_env(match):
        var_name = match.group(1)
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' not set "
                f"(referenced in config file '{source}')"
            )
        return value

    return _ENV_VAR.sub(_replace_env, raw)


def load_config(source: Union[str, Path, Dict[str, Any]]) -> AppConfig:
    """
    Load configuration from a YAML file path or an already-parsed dict

    Raises:
        ConfigError: File unreadable, invalid YAML, unset ${VAR} or a
            missing required field
    """
    if isinstance(source, dict):
        return AppConfig.from_dict(source)

    path = Path(source)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read config file '{path}': {e}") from e

    try:
        data = yaml.safe_load(substitute_env(raw, str(path)))
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in '{path}': {e}") from e

    logger.debug(f"Loaded config from {path}")
    return AppConfig.from_dict(data or {})
