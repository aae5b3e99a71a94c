from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

import typer

from .config import Hapfile, load_hapfile
from .errors import AlreadyHappenedError, HapError
from .models import Host
from .remote import Remote

app = typer.Typer(help="Provision machines by pushing a git repository and building it over SSH.")

_state: dict[str, object] = {"hapfile": None}


@app.callback()
def main(
    hapfile: Optional[Path] = typer.Option(
        None, "--hapfile", "-f", help="Path to the Hapfile (default: $HAP_FILE or Hapfile.yaml)."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output."),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    _state["hapfile"] = hapfile


def _load() -> Hapfile:
    try:
        return load_hapfile(_state["hapfile"])  # type: ignore[arg-type]
    except HapError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)


def _select(hapfile: Hapfile, host: Optional[str], all_hosts: bool) -> list[Host]:
    if all_hosts:
        return hapfile.all_hosts()
    if not host:
        typer.echo("Error: give a HOST or --all.", err=True)
        raise typer.Exit(code=2)
    return [hapfile.host(host)]


def _run(host: Optional[str], all_hosts: bool, action: Callable[[Remote], None]) -> None:
    """Apply ``action`` to each selected host in turn."""
    hapfile = _load()
    failed = False
    try:
        hosts = _select(hapfile, host, all_hosts)
    except HapError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    for h in hosts:
        try:
            with Remote.from_host(h) as remote:
                action(remote)
        except AlreadyHappenedError as e:
            typer.echo(str(e))
        except HapError as e:
            typer.echo(f"Error: {e}", err=True)
            failed = True
    if failed:
        raise typer.Exit(code=1)


def _push(remote: Remote) -> None:
    remote.initialize()
    remote.push()
    if (Path(remote.binding.work or ".") / ".gitmodules").exists():
        remote.push_submodules()


def _deploy(remote: Remote) -> None:
    _push(remote)
    remote.build()


@app.command()
def hosts() -> None:
    """List the hosts defined in the Hapfile."""
    hapfile = _load()
    for name, entry in hapfile.hosts.items():
        typer.echo(f"{name}\t{entry.addr or hapfile.default.addr or ''}")


@app.command()
def init(
    host: Optional[str] = typer.Argument(None),
    all_hosts: bool = typer.Option(False, "--all", help="Act on every host."),
) -> None:
    """Create the remote repository and its post-receive hook."""
    _run(host, all_hosts, Remote.initialize)


@app.command()
def push(
    host: Optional[str] = typer.Argument(None),
    all_hosts: bool = typer.Option(False, "--all", help="Act on every host."),
) -> None:
    """Initialize the remote and push the repository and its submodules."""
    _run(host, all_hosts, _push)


@app.command()
def build(
    host: Optional[str] = typer.Argument(None),
    all_hosts: bool = typer.Option(False, "--all", help="Act on every host."),
) -> None:
    """Run the configured build commands unless HEAD was already built."""
    _run(host, all_hosts, Remote.build)


@app.command()
def deploy(
    host: Optional[str] = typer.Argument(None),
    all_hosts: bool = typer.Option(False, "--all", help="Act on every host."),
) -> None:
    """Push then build.

    Example:
        hap deploy web1
        hap deploy --all
    """
    _run(host, all_hosts, _deploy)


@app.command("exec")
def exec_(
    host: str = typer.Argument(..., help="Host name, or 'all' for every host."),
    commands: list[str] = typer.Argument(..., help="Commands, run in order in one shell."),
) -> None:
    """Run arbitrary commands on a host."""
    if host == "all":
        _run(None, True, lambda remote: remote.execute(commands))
    else:
        _run(host, False, lambda remote: remote.execute(commands))


if __name__ == "__main__":
    app()
