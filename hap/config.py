"""Hapfile and .gitmodules loading."""
from __future__ import annotations

import configparser
import os
import re
from pathlib import Path
from typing import Any, ClassVar

import yaml
from pydantic import BaseModel, Field, ValidationError

from .errors import ConfigError
from .models import Build, Host, Submodule

DEFAULT_HAPFILE = Path("Hapfile.yaml")
DEFAULT_PORT = 22

_SUBMODULE_SECTION = re.compile(r'^submodule\s+"(?P<name>[^"]+)"$')


def hapfile_path(explicit: Path | None = None) -> Path:
    """Resolve the Hapfile location: explicit path, then $HAP_FILE, then default."""
    if explicit is not None:
        return explicit
    env = os.environ.get("HAP_FILE")
    if env:
        return Path(env)
    return DEFAULT_HAPFILE


def normalize_addr(addr: str) -> str:
    """Append the default SSH port when ``addr`` has none."""
    if addr.startswith("[") or addr.count(":") == 1:
        return addr
    if ":" in addr:
        # Bare IPv6 literal.
        return f"[{addr}]:{DEFAULT_PORT}"
    return f"{addr}:{DEFAULT_PORT}"


class HostEntry(BaseModel):
    """Raw host section before defaults are applied."""

    addr: str | None = None
    username: str | None = None
    identity: str | None = None
    password: str | None = None
    build: list[str] = Field(default_factory=list)
    cmd: list[str] = Field(default_factory=list)


class Hapfile(BaseModel):
    """Top-level Hapfile: defaults, named builds and hosts."""

    default: HostEntry = Field(default_factory=HostEntry)
    builds: dict[str, Build] = Field(default_factory=dict)
    hosts: dict[str, HostEntry] = Field(default_factory=dict)

    _expected_root_keys: ClassVar[tuple[str, ...]] = ("hosts",)

    @classmethod
    def from_yaml(cls, path: Path) -> "Hapfile":
        if not path.exists():
            msg = f"Hapfile {path} is missing."
            raise ConfigError(msg)
        with path.open("r", encoding="utf-8") as handle:
            try:
                payload: Any = yaml.safe_load(handle) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Hapfile {path} is not valid YAML: {e}") from e
        if not isinstance(payload, dict):
            msg = "Hapfile root must be a mapping."
            raise ConfigError(msg)
        missing = [k for k in cls._expected_root_keys if k not in payload]
        if missing:
            msg = f"Hapfile is missing keys: {missing}"
            raise ConfigError(msg)
        try:
            return cls.model_validate(payload)
        except ValidationError as e:
            raise ConfigError(str(e)) from e

    def host(self, name: str) -> Host:
        """Build the ``Host`` named ``name`` with defaults merged in."""
        if name not in self.hosts:
            msg = f"Host {name} is not defined in the Hapfile."
            raise ConfigError(msg)
        entry = self.hosts[name]
        default = self.default
        addr = entry.addr or default.addr
        username = entry.username or default.username
        if not addr or not username:
            msg = f"Host {name} needs both addr and username."
            raise ConfigError(msg)
        identity = entry.identity or default.identity
        password = entry.password or default.password
        if not identity and not password:
            msg = f"Host {name} needs an identity or a password."
            raise ConfigError(msg)
        try:
            return Host(
                name=name,
                addr=normalize_addr(addr),
                username=username,
                identity=identity,
                password=password,
                build=entry.build or default.build,
                cmd=entry.cmd or default.cmd,
                builds=self.builds,
            )
        except ValidationError as e:
            raise ConfigError(str(e)) from e

    def all_hosts(self) -> list[Host]:
        return [self.host(name) for name in self.hosts]


def load_hapfile(path: Path | None = None) -> Hapfile:
    return Hapfile.from_yaml(hapfile_path(path))


def read_gitmodules(path: Path | str = ".gitmodules") -> dict[str, Submodule]:
    """Parse a .gitmodules file into name -> Submodule.

    A missing file yields an empty mapping.
    """
    path = Path(path)
    if not path.exists():
        return {}
    # git indents keys with tabs; configparser would read those as continuations.
    text = "\n".join(line.strip() for line in path.read_text(encoding="utf-8").splitlines())
    parser = configparser.ConfigParser(interpolation=None, comment_prefixes=("#", ";"))
    try:
        parser.read_string(text, source=str(path))
    except configparser.Error as e:
        raise ConfigError(f"{path}: {e}") from e

    modules: dict[str, Submodule] = {}
    for section in parser.sections():
        match = _SUBMODULE_SECTION.match(section)
        if not match:
            continue
        name = match.group("name")
        values = parser[section]
        if not values.get("path"):
            msg = f"{path}: submodule {name} has no path"
            raise ConfigError(msg)
        modules[name] = Submodule(name=name, path=values["path"], url=values.get("url", ""))
    return modules
