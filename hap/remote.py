"""Remote machine provisioning: repo setup, push and build over SSH."""
from __future__ import annotations

import logging
import os
import posixpath
import sys
from pathlib import Path
from typing import BinaryIO, Sequence

import paramiko

from . import git
from .config import read_gitmodules
from .credentials import ClientConfig, new_client_config, new_key_file
from .errors import AlreadyHappenedError, ExecutionError, HapError, SubmoduleError
from .models import Host, RepositoryBinding, SSHCredentials, Submodule
from .scripts import HAPPENED, HAPPENED_EXIT_STATUS, POST_RECEIVE_HOOK, SENTINEL, STAMP
from .ssh_client import Dialer, ParamikoDialer, Session
from .writer import LineTooLongError, RemoteWriter

logger = logging.getLogger(__name__)


def command_line(env: str, commands: Sequence[str]) -> str:
    """Compose the string sent to the remote shell for a command batch."""
    if not commands:
        msg = "command batch is empty"
        raise ValueError(msg)
    if len(commands) == 1:
        return f"{env}{commands[0]}"
    return f"sh -c '{env}{'&&'.join(commands)}'"


class Remote:
    """One machine to provision plus the repository pushed to it.

    At most one SSH session is open at a time; ``execute`` closes the
    session it used before returning.
    """

    def __init__(
        self,
        host: Host,
        credentials: SSHCredentials,
        client_config: ClientConfig,
        directory: str,
        binding: RepositoryBinding,
        dialer: Dialer | None = None,
        stdout: BinaryIO | None = None,
        stderr: BinaryIO | None = None,
    ):
        self.host = host
        self.credentials = credentials
        self.client_config = client_config
        self.dir = directory
        self.binding = binding
        self.dialer = dialer or ParamikoDialer()
        self._stdout = stdout
        self._stderr = stderr
        self._session: Session | None = None

    @classmethod
    def from_host(
        cls,
        host: Host,
        dialer: Dialer | None = None,
        cwd: str | Path | None = None,
    ) -> "Remote":
        """Build a Remote for ``host`` whose directory is named after ``cwd``."""
        credentials = SSHCredentials.from_host(host)
        client_config = new_client_config(credentials)
        directory = Path(cwd or os.getcwd()).resolve().name
        return cls(
            host=host,
            credentials=credentials,
            client_config=client_config,
            directory=directory,
            binding=RepositoryBinding.for_dir(credentials, directory),
            dialer=dialer,
        )

    def __enter__(self) -> "Remote":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Remote(host={self.host.name!r}, dir={self.dir!r}, repo={self.binding.repo!r})"

    @property
    def connected(self) -> bool:
        return self._session is not None

    # -------------------------
    # session lifecycle
    # -------------------------
    def connect(self) -> None:
        """Open an SSH session unless one is already open."""
        if self._session is not None:
            return
        self._session = self.dialer.dial(self.client_config)

    def close(self) -> None:
        """Close the open session, if any."""
        if self._session is None:
            return
        session, self._session = self._session, None
        session.close()

    def env(self) -> str:
        """Export statements prepended to every remote command."""
        return (
            f'export HAP_HOSTNAME="{self.host.name}";'
            f'export HAP_ADDR="{self.host.addr}";'
            f'export HAP_USER="{self.host.username}";'
        )

    def execute(self, commands: Sequence[str]) -> None:
        """Run a command batch in one session and close it afterwards."""
        cmd = command_line(self.env(), commands)
        self.connect()
        try:
            assert self._session is not None
            stdout = RemoteWriter(self.host.name, self._stdout or sys.stdout.buffer)
            stderr = RemoteWriter(self.host.name, self._stderr or sys.stderr.buffer)
            logger.debug(f"[{self.host.name}] $ {cmd}")
            try:
                status = self._session.run(cmd, stdout, stderr)
            except (paramiko.SSHException, OSError, LineTooLongError) as e:
                raise ExecutionError(self.host.name, e) from e
            if status != 0:
                raise ExecutionError(
                    self.host.name,
                    f"Process exited with status {status}",
                    exit_status=status,
                )
        finally:
            self.close()

    # -------------------------
    # provisioning
    # -------------------------
    def initialize(self) -> None:
        """Create the remote repository and install the post-receive hook."""
        self.connect()
        logger.info(f"[{self.host.name}] Initializing {self.dir}")
        self.execute(
            [
                f'GIT_DIR="{self.dir}"',
                "mkdir -p $GIT_DIR",
                "cd $GIT_DIR",
                "git init -q",
                "git config receive.denyCurrentBranch ignore",
                "touch .git/hooks/post-receive",
                "chmod a+x .git/hooks/post-receive",
                POST_RECEIVE_HOOK,
            ]
        )

    def push(self) -> str:
        """Push the local branch (or detached HEAD) to the remote repository."""
        if self.credentials.identity:
            git.ssh_add(new_key_file(self.credentials.identity))
        else:
            logger.info(f"[{self.host.name}] No identity configured, skipping ssh-add")
        refspec = git.push_refspec(git.current_branch(self.binding.work))
        logger.info(f"[{self.host.name}] Pushing {refspec} to {self.binding.repo}")
        return git.push(self.binding, refspec)

    def submodule(self, module: Submodule) -> "Remote":
        """Derive the Remote for a submodule sharing this one's credentials."""
        return Remote(
            host=self.host,
            credentials=self.credentials,
            client_config=self.client_config,
            directory=posixpath.join(self.dir, module.path),
            binding=self.binding.child(module.path),
            dialer=self.dialer,
            stdout=self._stdout,
            stderr=self._stderr,
        )

    def push_submodules(self, gitmodules: str | Path | None = None) -> None:
        """Initialize and push every submodule, then report all failures."""
        if gitmodules is None:
            gitmodules = Path(self.binding.work or ".") / ".gitmodules"
        failures: list[tuple[str, Exception]] = []
        for module in read_gitmodules(gitmodules).values():
            sub = self.submodule(module)
            try:
                sub.initialize()
            except HapError as e:
                failures.append((module.path, e))
            try:
                sub.push()
            except HapError as e:
                failures.append((module.path, e))
        if failures:
            raise SubmoduleError(failures)

    def build(self) -> None:
        """Run the host's commands unless the current commit was already built.

        Raises ``AlreadyHappenedError`` when the build gate finds the
        sentinel matching HEAD.
        """
        logger.info(f"[{self.host.name}] Building {self.dir}")
        commands = [
            f"cd {self.dir}",
            f"touch {SENTINEL}",
            HAPPENED,
            *self.host.cmds(),
            STAMP,
        ]
        try:
            self.execute(commands)
        except ExecutionError as e:
            if e.exit_status == HAPPENED_EXIT_STATUS:
                raise AlreadyHappenedError(
                    self.host.name, "Already completed. Commit again?", exit_status=e.exit_status
                ) from e
            raise
