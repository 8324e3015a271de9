from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
import os
import logging

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:  # pragma: no cover - older interpreters
    import tomli as tomllib  # type: ignore[no-redef]

import yaml

from .channels import ShellCommandChannel
from .exceptions import ConfigurationError

log = logging.getLogger(__name__)


CONFIG_FILENAMES_TOML = ("devprops.toml", "config.toml")
CONFIG_FILENAMES_YAML = ("devprops.yaml", "devprops.yml")
DEFAULT_CONFIG_DIR_UNIX = Path.home() / ".config" / "devprops"


@dataclass(frozen=True)
class DeviceConfig:
    command: Tuple[str, ...] = ("adb", "shell")
    serial: Optional[str] = None
    su: bool = False
    timeout: float = 30.0

    def command_prefix(self) -> Tuple[str, ...]:
        if self.serial and self.command and Path(self.command[0]).name == "adb":
            return (self.command[0], "-s", self.serial, *self.command[1:])
        return self.command

    def channel(self) -> ShellCommandChannel:
        return ShellCommandChannel(self.command_prefix(), use_su=self.su, timeout=self.timeout)


@dataclass(frozen=True)
class PathsConfig:
    base_dir: Path
    prop_file: Path
    logs_dir: Path


@dataclass(frozen=True)
class AppConfig:
    paths: PathsConfig
    device: DeviceConfig
    debug: bool = False


def _find_config_file(explicit: Optional[Path]) -> Optional[Path]:
    if explicit is not None:
        return explicit

    env_path = os.environ.get("DEVPROPS_CONFIG")
    if env_path:
        p = Path(env_path)
        if p.exists():
            return p

    for directory in (Path.cwd(), DEFAULT_CONFIG_DIR_UNIX):
        for name in (*CONFIG_FILENAMES_TOML, *CONFIG_FILENAMES_YAML):
            candidate = directory / name
            if candidate.exists():
                return candidate

    return None


def _read_toml(p: Path) -> Dict[str, Any]:
    with p.open("rb") as f:
        return tomllib.load(f)


def _read_yaml(p: Path) -> Dict[str, Any]:
    with p.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"YAML config must be a mapping at top-level: {p}")
    return data


def _read_config(p: Path) -> Dict[str, Any]:
    if not p.exists():
        raise ConfigurationError(f"Configuration file '{p}' does not exist.")
    try:
        if p.suffix.lower() == ".toml":
            return _read_toml(p)
        return _read_yaml(p)
    except ConfigurationError:
        raise
    except (OSError, tomllib.TOMLDecodeError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Failed to parse configuration {p}: {exc}") from exc


def _to_path(value: Optional[str | os.PathLike[str]], *, base_dir: Path) -> Path:
    if value is None:
        return base_dir
    p = Path(value)
    if not p.is_absolute():
        p = (base_dir / p).resolve()
    return p


def _section(raw: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = raw.get(name)
    return value if isinstance(value, dict) else {}


def load_config(*, config_path: Optional[Path] = None, base_dir: Optional[Path] = None) -> AppConfig:
    base_dir = (base_dir or Path.cwd()).resolve()

    file_path = _find_config_file(config_path)
    raw: Dict[str, Any] = {}
    if file_path is not None:
        raw = _read_config(file_path)
        log.debug("Loaded config from %s", file_path)

    raw_paths = _section(raw, "paths")
    raw_device = _section(raw, "device")

    paths = PathsConfig(
        base_dir=base_dir,
        prop_file=_to_path(raw_paths.get("prop_file", "build.prop"), base_dir=base_dir),
        logs_dir=_to_path(raw_paths.get("logs", "logs"), base_dir=base_dir),
    )

    defaults = DeviceConfig()
    command = raw_device.get("command", defaults.command)
    if isinstance(command, str):
        command = command.split()
    serial = raw_device.get("serial")
    device = DeviceConfig(
        command=tuple(str(part) for part in command),
        serial=str(serial) if serial else None,
        su=bool(raw_device.get("su", defaults.su)),
        timeout=float(raw_device.get("timeout", defaults.timeout)),
    )

    return AppConfig(paths=paths, device=device, debug=bool(raw.get("debug", False)))
