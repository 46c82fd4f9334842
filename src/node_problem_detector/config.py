"""Configuration management for the node problem detector."""

import json
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from node_problem_detector.models import CheckConfig

TOKEN_ENV = "DETECTOR_HTTP_TOKEN"
NOMAD_TOKEN_ENV = "NOMAD_TOKEN"

DEFAULT_ROOT_DIR = "/var/lib/npd"
CONFIG_FILENAME = "config.json"
HEALTH_CHECK_FILENAME = "health_check"
YAML_SUFFIXES = (".yaml", ".yml")

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


class ConfigError(Exception):
    """Raised when configuration cannot be loaded or is invalid."""


def parse_duration(value: str | float | int) -> float:
    """Parse a duration such as ``"15s"``, ``"1m30s"`` or ``"500ms"`` into seconds.

    Plain numbers are taken as seconds.
    """
    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        text = value.strip()
        try:
            seconds = float(text)
        except ValueError:
            pos = 0
            seconds = 0.0
            for match in _DURATION_PART.finditer(text):
                if match.start() != pos:
                    break
                seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
                pos = match.end()
            if pos == 0 or pos != len(text):
                raise ConfigError(f"Invalid duration: {value!r}")
    if seconds <= 0:
        raise ConfigError(f"Duration must be positive: {value!r}")
    return seconds


def get_auth_token() -> str:
    """Shared secret used to call and protect detector endpoints."""
    return os.environ.get(TOKEN_ENV, "")


def get_nomad_token() -> str | None:
    return os.environ.get(NOMAD_TOKEN_ENV) or None


def load_check_configs(path: str | Path) -> list[CheckConfig]:
    """Load script check bindings from a JSON list file.

    Files ending in ``.yaml`` or ``.yml`` are read as a YAML list of the same
    shape. An empty file means no script checks.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    with open(path) as f:
        text = f.read()
    if not text.strip():
        return []

    try:
        if path.suffix in YAML_SUFFIXES:
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"Could not parse config file {path}: {e}") from e

    if data is None:
        return []
    if not isinstance(data, list):
        raise ConfigError(f"Config file {path} must contain a list of checks")

    configs = []
    for index, entry in enumerate(data):
        try:
            configs.append(CheckConfig.from_dict(entry))
        except (KeyError, TypeError) as e:
            raise ConfigError(f"Invalid check entry #{index} in {path}: {entry!r}") from e
    return configs


def save_check_configs(configs: list[CheckConfig], path: str | Path) -> None:
    """Write script check bindings as a JSON list."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump([c.to_dict() for c in configs], f, indent="\t")
        f.write("\n")


def discover_check_configs(root_dir: str | Path) -> list[CheckConfig]:
    """Find ``<root_dir>/<type>/health_check`` scripts.

    Each subdirectory holding a ``health_check`` file becomes one check whose
    type is the directory name. Paths are stored relative to ``root_dir``.
    """
    root = Path(root_dir)
    if not root.is_dir():
        raise ConfigError(f"Root directory not found: {root}")

    configs = []
    for entry in sorted(root.iterdir()):
        script = entry / HEALTH_CHECK_FILENAME
        if entry.is_dir() and script.is_file():
            configs.append(CheckConfig(
                type=entry.name,
                health_check=str(script.relative_to(root)),
            ))
    return configs


def load_settings(path: str | Path) -> dict[str, Any]:
    """Load a YAML settings file for the detector or aggregator.

    Keys are the config field names, e.g. ``cpu_limit`` or ``cycle_time``.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Settings file not found: {path}")

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Could not parse settings file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Settings file {path} must contain a mapping")
    return data


@dataclass
class DetectorConfig:
    """Settings for the per-node detector."""

    host: str = "0.0.0.0"
    port: int = 8083
    root_dir: str = DEFAULT_ROOT_DIR
    config_path: str | None = None
    cpu_limit: float = 85.0
    memory_limit: float = 10.0  # Minimum available memory percentage
    disk_limit: float = 90.0
    disk_path: str = "/"
    cpu_interval: float = 10.0  # seconds
    memory_interval: float = 10.0
    disk_interval: float = 60.0
    detector_cycle_time: float = 3.0
    script_timeout: float = 30.0
    auth_token: str = field(default_factory=get_auth_token)

    @property
    def check_config_path(self) -> Path:
        if self.config_path:
            return Path(self.config_path)
        return Path(self.root_dir) / CONFIG_FILENAME

    @classmethod
    def from_yaml(cls, path: str | Path) -> "DetectorConfig":
        """Load settings from a YAML file."""
        return cls.from_dict(load_settings(path))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DetectorConfig":
        """Create from dictionary. Interval values may be duration strings."""
        return cls(
            host=data.get("host", "0.0.0.0"),
            port=data.get("port", 8083),
            root_dir=data.get("root_dir", DEFAULT_ROOT_DIR),
            config_path=data.get("config_path"),
            cpu_limit=data.get("cpu_limit", 85.0),
            memory_limit=data.get("memory_limit", 10.0),
            disk_limit=data.get("disk_limit", 90.0),
            disk_path=data.get("disk_path", "/"),
            cpu_interval=parse_duration(data.get("cpu_interval", 10.0)),
            memory_interval=parse_duration(data.get("memory_interval", 10.0)),
            disk_interval=parse_duration(data.get("disk_interval", 60.0)),
            detector_cycle_time=parse_duration(data.get("detector_cycle_time", 3.0)),
            script_timeout=parse_duration(data.get("script_timeout", 30.0)),
            auth_token=data.get("auth_token", get_auth_token()),
        )


@dataclass
class AggregatorConfig:
    """Settings for the central aggregator."""

    cycle_time: float = 15.0  # seconds
    detector_port: str = ":8083"
    nomad_server: str = "http://localhost:4646"
    timeout: float = 5.0
    auth_token: str = field(default_factory=get_auth_token)
    nomad_token: str | None = field(default_factory=get_nomad_token)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "AggregatorConfig":
        return cls.from_dict(load_settings(path))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AggregatorConfig":
        return cls(
            cycle_time=parse_duration(data.get("cycle_time", 15.0)),
            detector_port=normalize_port(data.get("detector_port", ":8083")),
            nomad_server=data.get("nomad_server", "http://localhost:4646"),
            timeout=parse_duration(data.get("timeout", 5.0)),
            auth_token=data.get("auth_token", get_auth_token()),
            nomad_token=data.get("nomad_token", get_nomad_token()),
        )


def normalize_port(port: str | int) -> str:
    """Return the port in ``:NNNN`` form as appended to node addresses."""
    text = str(port).strip()
    if not text.startswith(":"):
        text = f":{text}"
    if not text[1:].isdigit():
        raise ConfigError(f"Invalid detector port: {port!r}")
    return text
