"""Pydantic models describing provisioning targets."""
from __future__ import annotations

import os

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Build(BaseModel):
    """A named, reusable list of build commands."""

    model_config = ConfigDict(frozen=True)

    cmds: list[str] = Field(default_factory=list)


class Host(BaseModel):
    """A machine to provision and the commands to run on it."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Label prefixed to every output line")
    addr: str = Field(..., description="host:port of the SSH server")
    username: str
    identity: str | None = Field(default=None, description="Path to private key")
    password: str | None = None
    build: list[str] = Field(
        default_factory=list, description="Names of builds to run, in order"
    )
    cmd: list[str] = Field(
        default_factory=list, description="Host commands run after the builds"
    )
    builds: dict[str, Build] = Field(default_factory=dict, repr=False)

    @model_validator(mode="after")
    def _validate_builds(self) -> "Host":
        missing = [b for b in self.build if b not in self.builds]
        if missing:
            msg = f"host {self.name} references unknown builds: {missing}"
            raise ValueError(msg)
        return self

    def cmds(self) -> list[str]:
        """Return build commands followed by host commands."""
        cmds: list[str] = []
        for name in self.build:
            cmds.extend(self.builds[name].cmds)
        cmds.extend(self.cmd)
        return cmds


class SSHCredentials(BaseModel):
    """Address and authentication material for one SSH endpoint."""

    model_config = ConfigDict(frozen=True)

    addr: str
    username: str
    identity: str | None = None
    password: str | None = Field(default=None, repr=False)

    @classmethod
    def from_host(cls, host: Host) -> "SSHCredentials":
        return cls(
            addr=host.addr,
            username=host.username,
            identity=host.identity,
            password=host.password,
        )


class RepositoryBinding(BaseModel):
    """Local work tree paired with the remote repository URL."""

    repo: str
    work: str = ""

    @classmethod
    def for_dir(cls, credentials: SSHCredentials, directory: str) -> "RepositoryBinding":
        return cls(repo=f"ssh://{credentials.username}@{credentials.addr}/~/{directory}")

    def child(self, path: str) -> "RepositoryBinding":
        """Binding for a submodule checked out at ``path``."""
        return RepositoryBinding(repo=f"{self.repo}/{path}", work=os.path.join(self.work, path))


class Submodule(BaseModel):
    """One ``[submodule "name"]`` entry of a .gitmodules file."""

    name: str
    path: str
    url: str = ""
