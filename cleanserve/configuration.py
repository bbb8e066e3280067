# configuration.py - Configuration Helper
# ============================================================================
# FILE: cleanserve/configuration.py
# Helper for loading serve configuration from files and the environment
# ============================================================================

import os
import json
import signal
import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

ENV_PREFIX = "CLEANSERVE_"


@dataclass
class ServeConfig:
    host: str = "127.0.0.1"
    port: int = 8000
    directory: str = "."
    timeout: Optional[float] = 5.0
    signals: List[str] = field(default_factory=lambda: ["SIGINT", "SIGTERM"])
    log_level: str = "INFO"
    log_json: bool = False

    def signal_numbers(self) -> Tuple[signal.Signals, ...]:
        """Resolve configured signal names such as 'SIGTERM' or 'TERM'."""
        resolved = []
        for name in self.signals:
            key = name.upper()
            if not key.startswith("SIG"):
                key = f"SIG{key}"
            try:
                resolved.append(signal.Signals[key])
            except KeyError:
                raise ConfigError(f"Unknown signal: {name}") from None
        return tuple(resolved)

    def validate(self) -> "ServeConfig":
        if not isinstance(self.port, int) or not 0 <= self.port <= 65535:
            raise ConfigError(f"Invalid port: {self.port}")
        if self.timeout is not None and self.timeout < 0:
            raise ConfigError(f"Invalid shutdown timeout: {self.timeout}")
        if getattr(logging, str(self.log_level).upper(), None) is None:
            raise ConfigError(f"Invalid log level: {self.log_level}")
        self.signal_numbers()
        return self

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _read_file(path: str) -> Dict[str, Any]:
    if not os.path.exists(path):
        raise ConfigError(f"Config file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        try:
            if path.endswith(".json"):
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigError(f"Could not parse {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config root must be a mapping: {path}")
    return data


def _number(value: Any, name: str, cast=float):
    try:
        return cast(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid {name}: {value!r}") from None


def _bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def config_from_dict(data: Mapping[str, Any]) -> ServeConfig:
    """Build a ServeConfig from the server/shutdown/logging sections."""
    config = ServeConfig()

    srv = data.get("server") or {}
    config.host = srv.get("host", config.host)
    config.port = _number(srv.get("port", config.port), "port", int)
    config.directory = srv.get("directory", config.directory)

    shut = data.get("shutdown") or {}
    if "timeout" in shut:
        timeout = shut["timeout"]
        config.timeout = None if timeout is None else _number(timeout, "shutdown timeout")
    signals = shut.get("signals")
    if signals:
        if isinstance(signals, str):
            signals = [s.strip() for s in signals.split(",") if s.strip()]
        config.signals = list(signals)

    log = data.get("logging") or {}
    config.log_level = str(log.get("level", config.log_level)).upper()
    config.log_json = _bool(log.get("json", config.log_json))

    return config


def apply_env_overrides(config: ServeConfig, env: Optional[Mapping[str, str]] = None) -> ServeConfig:
    """Override fields from CLEANSERVE_* environment variables."""
    env = os.environ if env is None else env

    if f"{ENV_PREFIX}HOST" in env:
        config.host = env[f"{ENV_PREFIX}HOST"]
    if f"{ENV_PREFIX}PORT" in env:
        config.port = _number(env[f"{ENV_PREFIX}PORT"], "port", int)
    if f"{ENV_PREFIX}TIMEOUT" in env:
        config.timeout = _number(env[f"{ENV_PREFIX}TIMEOUT"], "shutdown timeout")
    if f"{ENV_PREFIX}LOG_LEVEL" in env:
        config.log_level = env[f"{ENV_PREFIX}LOG_LEVEL"].upper()

    return config


def load_serve_config(path: Optional[str] = None, env: Optional[Mapping[str, str]] = None) -> ServeConfig:
    """
    Load serve configuration from a YAML or JSON file.

    Missing sections fall back to defaults, then CLEANSERVE_* environment
    variables are applied on top.

    Example file:
        server:
          host: 0.0.0.0
          port: 8080
        shutdown:
          timeout: 5
          signals: [SIGINT, SIGTERM]
        logging:
          level: INFO
    """
    data = _read_file(path) if path else {}
    config = config_from_dict(data)
    apply_env_overrides(config, env)
    logger.debug(f"Loaded serve config: {config}")
    return config.validate()
