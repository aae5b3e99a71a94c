"""Local git CLI boundary: agent key loading, branch lookup and push."""
from __future__ import annotations

import logging
import subprocess

from .errors import AuthError, GitLocalError
from .models import RepositoryBinding
from .scripts import DETACHED_BRANCH

logger = logging.getLogger(__name__)


def _run(args: list[str], cwd: str | None = None) -> subprocess.CompletedProcess[str]:
    """Run ``args`` capturing stdout and stderr together."""
    try:
        return subprocess.run(
            args,
            cwd=cwd or None,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
        )
    except FileNotFoundError as e:
        raise GitLocalError(f"{args[0]} not found: {e}") from e


def ssh_add(key_file: str) -> None:
    """Register ``key_file`` with the local SSH agent."""
    proc = _run(["ssh-add", key_file])
    if proc.returncode != 0:
        output = (proc.stdout or "").strip()
        raise AuthError(f"ssh-add {key_file} failed (rc={proc.returncode})\n{output}")


def current_branch(work: str = "") -> str:
    """Return the checked out branch, or ``HEAD`` when detached."""
    proc = _run(["git", "rev-parse", "--abbrev-ref", "HEAD"], cwd=work)
    if proc.returncode != 0:
        output = proc.stdout or ""
        raise GitLocalError(
            f"{output}\ngit rev-parse exited with status {proc.returncode}",
            output=output,
            returncode=proc.returncode,
        )
    return proc.stdout.strip()


def push_refspec(branch: str) -> str:
    """Refspec for ``branch``; a detached HEAD is pushed to a named branch."""
    if branch == "HEAD":
        return f"HEAD:refs/heads/{DETACHED_BRANCH}"
    return branch


def push(binding: RepositoryBinding, refspec: str) -> str:
    """Push ``refspec`` from the binding's work tree and return the output."""
    logger.debug(f"git push {binding.repo} {refspec} (work={binding.work or '.'})")
    proc = _run(["git", "push", binding.repo, refspec], cwd=binding.work)
    output = proc.stdout or ""
    if proc.returncode != 0:
        raise GitLocalError(
            f"{output}\ngit push exited with status {proc.returncode}",
            output=output,
            returncode=proc.returncode,
        )
    return output
