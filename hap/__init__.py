"""
Hap: provision machines by pushing a git repository over SSH and building it.

The package exposes high-level helpers through `cli.py` and `remote.py`.
"""

from .config import Hapfile, load_hapfile, read_gitmodules
from .errors import (
    AlreadyHappenedError,
    AuthError,
    ConfigError,
    ExecutionError,
    GitLocalError,
    HapError,
    RemoteConnectionError,
    SubmoduleError,
)
from .models import Build, Host, RepositoryBinding, SSHCredentials, Submodule
from .remote import Remote
from .writer import RemoteWriter

__all__ = [
    # Config
    "Hapfile",
    "load_hapfile",
    "read_gitmodules",
    # Models
    "Build",
    "Host",
    "RepositoryBinding",
    "SSHCredentials",
    "Submodule",
    # Provisioning
    "Remote",
    "RemoteWriter",
    # Errors
    "AlreadyHappenedError",
    "AuthError",
    "ConfigError",
    "ExecutionError",
    "GitLocalError",
    "HapError",
    "RemoteConnectionError",
    "SubmoduleError",
]
