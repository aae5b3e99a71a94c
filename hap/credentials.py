"""Resolve SSH credentials into a connect-ready client configuration."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from .errors import AuthError
from .models import SSHCredentials


@dataclass(frozen=True)
class ClientConfig:
    """Keyword arguments for ``paramiko.SSHClient.connect``."""

    hostname: str
    port: int
    username: str
    key_filename: str | None = None
    password: str | None = field(default=None, repr=False)

    def connect_kwargs(self) -> dict[str, object]:
        kwargs: dict[str, object] = {
            "hostname": self.hostname,
            "port": self.port,
            "username": self.username,
        }
        if self.key_filename:
            kwargs["key_filename"] = self.key_filename
        else:
            kwargs["password"] = self.password
        return kwargs


def split_addr(addr: str) -> tuple[str, int]:
    """Split ``host:port`` (or ``[v6]:port``) into its parts."""
    host, sep, port = addr.rpartition(":")
    if not sep or not port.isdigit():
        return addr.strip("[]"), 22
    return host.strip("[]"), int(port)


def new_key_file(identity: str) -> str:
    """Return the absolute path of an existing private key file."""
    if not identity:
        raise AuthError("no identity file configured")
    path = Path(os.path.expanduser(identity)).resolve()
    if not path.is_file():
        raise AuthError(f"identity file {path} does not exist")
    return str(path)


def new_client_config(credentials: SSHCredentials) -> ClientConfig:
    """Build a ``ClientConfig`` preferring the identity file over a password."""
    hostname, port = split_addr(credentials.addr)
    if credentials.identity:
        return ClientConfig(
            hostname=hostname,
            port=port,
            username=credentials.username,
            key_filename=new_key_file(credentials.identity),
        )
    if credentials.password:
        return ClientConfig(
            hostname=hostname,
            port=port,
            username=credentials.username,
            password=credentials.password,
        )
    raise AuthError(f"no identity or password for {credentials.username}@{credentials.addr}")
