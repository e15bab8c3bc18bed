"""Load and persist the bb configuration file."""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import toml
import typer

from .exceptions import ConfigError
from .hosts import normalize_host
from .models import AliasEntry, HostConfig, HostType

logger = logging.getLogger(__name__)

APP_NAME = "bb"
CONFIG_FILENAME = "config.toml"
CONFIG_DIR_ENV = "BB_CONFIG_DIR"

_CHOICES = {
    "git_protocol": ("https", "ssh"),
    "prompt": ("enabled", "disabled"),
}


@dataclass
class CoreConfig:
    editor: str | None = None
    pager: str | None = None
    browser: str | None = None
    git_protocol: str = "https"
    prompt: str = "enabled"


@dataclass
class Config:
    core: CoreConfig = field(default_factory=CoreConfig)
    hosts: dict[str, HostConfig] = field(default_factory=dict)
    aliases: dict[str, AliasEntry] = field(default_factory=dict)

    KEYS = ("editor", "pager", "browser", "git_protocol", "prompt")

    def get(self, key: str) -> str | None:
        if key not in self.KEYS:
            return None
        return getattr(self.core, key)

    def set(self, key: str, value: str) -> bool:
        """Assign a core setting. Returns False when ``key`` is unknown."""

        if key not in self.KEYS:
            return False
        allowed = _CHOICES.get(key)
        if allowed and value not in allowed:
            raise ConfigError(f"Invalid value '{value}' for {key}. Expected one of: {', '.join(allowed)}")
        setattr(self.core, key, value)
        return True

    def host_config(self, host: str) -> HostConfig | None:
        return self.hosts.get(normalize_host(host))

    def host_type_override(self, host: str) -> HostType | None:
        entry = self.host_config(host)
        return entry.host_type if entry else None

    def set_host(self, entry: HostConfig) -> None:
        entry.host = normalize_host(entry.host)
        self.hosts[entry.host] = entry

    def to_dict(self) -> dict[str, Any]:
        hosts = {}
        for name, entry in self.hosts.items():
            data = _drop_none(asdict(entry))
            data.pop("host", None)
            if entry.host_type is not None:
                data["host_type"] = entry.host_type.value
            hosts[name] = data
        return {
            "core": _drop_none(asdict(self.core)),
            "hosts": hosts,
            "aliases": {name: asdict(entry) for name, entry in self.aliases.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        try:
            core = CoreConfig(**data.get("core", {}))
            hosts = {}
            for name, raw in data.get("hosts", {}).items():
                host = normalize_host(name)
                raw = dict(raw)
                raw.pop("host", None)
                host_type = raw.pop("host_type", None)
                hosts[host] = HostConfig(
                    host=host,
                    host_type=HostType.parse(host_type) if host_type else None,
                    **raw,
                )
            aliases = {name: AliasEntry(**raw) for name, raw in data.get("aliases", {}).items()}
        except (TypeError, ValueError, AttributeError) as exc:
            raise ConfigError(f"Invalid configuration: {exc}") from exc
        config = cls(core=core, hosts=hosts, aliases=aliases)
        for key, allowed in _CHOICES.items():
            if config.get(key) not in allowed:
                raise ConfigError(f"Invalid value '{config.get(key)}' for {key} in configuration file.")
        return config


def config_path() -> Path:
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        return Path(override).expanduser() / CONFIG_FILENAME
    return Path(typer.get_app_dir(APP_NAME)) / CONFIG_FILENAME


def load_config(path: Path | None = None) -> Config:
    target = path or config_path()
    if not target.exists():
        logger.debug("No configuration file at %s, using defaults", target)
        return Config()
    try:
        data = toml.load(target)
    except (toml.TomlDecodeError, OSError) as exc:
        raise ConfigError(f"Unable to read configuration file {target}: {exc}") from exc
    logger.debug("Loaded configuration from %s", target)
    return Config.from_dict(data)


def save_config(config: Config, path: Path | None = None) -> Path:
    target = path or config_path()
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(toml.dumps(config.to_dict()), encoding="utf-8")
    logger.debug("Wrote configuration to %s", target)
    return target


def _drop_none(data: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


__all__ = ["Config", "CoreConfig", "config_path", "load_config", "save_config"]
