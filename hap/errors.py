"""Error types raised by the provisioning engine."""
from __future__ import annotations


class HapError(Exception):
    """Base class for every provisioning failure."""


class RemoteConnectionError(HapError):
    """Dialing the remote address or opening a session failed."""


class AuthError(HapError):
    """Credentials could not be resolved or loaded into the SSH agent."""


class GitLocalError(HapError):
    """A local git (or ssh-add) invocation exited non-zero."""

    def __init__(self, message: str, output: str = "", returncode: int | None = None):
        super().__init__(message)
        self.output = output
        self.returncode = returncode


class ExecutionError(HapError):
    """A remote command failed or the transport broke mid-command."""

    def __init__(self, host: str, cause: object, exit_status: int | None = None):
        super().__init__(f"[{host}] {cause}")
        self.host = host
        self.cause = cause
        self.exit_status = exit_status


class AlreadyHappenedError(ExecutionError):
    """The build gate found the current commit already built."""


class ConfigError(HapError):
    """Hapfile or .gitmodules content is missing or malformed."""


class SubmoduleError(HapError):
    """One or more submodules failed to initialize or push."""

    def __init__(self, failures: list[tuple[str, Exception]]):
        self.failures = failures
        super().__init__("\n".join(f"[{path}] {err}" for path, err in failures))
