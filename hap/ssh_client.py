"""SSH transport primitives for running one command per session."""
from __future__ import annotations

import logging
import socket
import time
from typing import BinaryIO, Protocol

import paramiko

from .credentials import ClientConfig
from .errors import AuthError, RemoteConnectionError

logger = logging.getLogger(__name__)

RECV_SIZE = 32 * 1024
POLL_INTERVAL = 0.05


class Session(Protocol):
    """One exec-style session: a single command, then close."""

    def run(self, command: str, stdout: BinaryIO, stderr: BinaryIO) -> int: ...

    def close(self) -> None: ...


class Dialer(Protocol):
    """Opens a session to the endpoint described by a ``ClientConfig``."""

    def dial(self, config: ClientConfig) -> Session: ...


class SSHSession:
    """paramiko client plus the exec channel of one command."""

    def __init__(self, client: paramiko.SSHClient, channel: paramiko.Channel):
        self._client = client
        self._channel = channel

    def run(self, command: str, stdout: BinaryIO, stderr: BinaryIO) -> int:
        """Run ``command`` streaming both outputs; return the exit status."""
        channel = self._channel
        channel.exec_command(command)
        while True:
            idle = True
            if channel.recv_ready():
                stdout.write(channel.recv(RECV_SIZE))
                idle = False
            if channel.recv_stderr_ready():
                stderr.write(channel.recv_stderr(RECV_SIZE))
                idle = False
            if idle and channel.exit_status_ready():
                if not channel.recv_ready() and not channel.recv_stderr_ready():
                    break
            if idle:
                time.sleep(POLL_INTERVAL)
        return channel.recv_exit_status()

    def close(self) -> None:
        """Close the channel and its connection."""
        try:
            self._channel.close()
        finally:
            self._client.close()


class ParamikoDialer:
    """Default dialer backed by ``paramiko.SSHClient``."""

    def __init__(self, timeout: float | None = None):
        self.timeout = timeout

    def dial(self, config: ClientConfig) -> SSHSession:
        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        logger.debug(f"Dialing {config.username}@{config.hostname}:{config.port}")
        try:
            client.connect(timeout=self.timeout, **config.connect_kwargs())
            transport = client.get_transport()
            if transport is None:
                raise RemoteConnectionError(f"no transport to {config.hostname}")
            channel = transport.open_session()
        except paramiko.AuthenticationException as e:
            client.close()
            raise AuthError(f"authentication failed for {config.username}@{config.hostname}: {e}") from e
        except (paramiko.SSHException, socket.error) as e:
            client.close()
            raise RemoteConnectionError(f"{config.hostname}:{config.port}: {e}") from e
        except RemoteConnectionError:
            client.close()
            raise
        return SSHSession(client, channel)
