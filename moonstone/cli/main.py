"""moonstone CLI: inspect and drive the evolution progress record.

`moonstone evolve app.migrations:moonstone` runs an application's
registered evolutions; the other commands inspect or edit the stored
version directly.
"""

from __future__ import annotations

import importlib
import logging
import os
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel

from moonstone.config import settings
from moonstone.engine import MoonStone
from moonstone.exceptions import InvalidVersionFormat
from moonstone.store import JsonFileProgressStore
from moonstone.version import VersionValue, compare
from moonstone.version_source import PackageVersionSource, StaticVersionSource, VersionSource

app = typer.Typer(
    name="moonstone",
    help="moonstone -- run evolutions when your application upgrades.",
    no_args_is_help=True,
)
console = Console()

_StateOption = typer.Option(None, "--state", "-s", help="Progress file (default: MOONSTONE_STATE_PATH)")
_PrefixOption = typer.Option(None, "--prefix", help="Key prefix (default: MOONSTONE_PREFIX)")


@app.callback()
def _configure(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output"),
):
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level.upper(),
        format="%(levelname)s %(name)s: %(message)s",
    )


def _engine(
    state: Optional[Path],
    prefix: Optional[str],
    source: VersionSource | str = "0",
) -> MoonStone:
    return MoonStone(
        source,
        store=JsonFileProgressStore(state or settings.state_path),
        prefix=prefix or settings.prefix,
        run_predicates_before_version=settings.run_predicates_before_version,
    )


def _version_source(app_version: Optional[str], package: Optional[str]) -> VersionSource | None:
    if app_version:
        return StaticVersionSource(app_version)
    if package:
        return PackageVersionSource(package)
    return None


def load_target(target: str) -> MoonStone:
    """Resolve "module:attribute" to a MoonStone instance.

    The attribute may be the instance itself or a zero-argument factory.
    """
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise typer.BadParameter(f"Expected 'module:attribute', got {target!r}")

    if os.getcwd() not in sys.path:
        sys.path.insert(0, os.getcwd())
    module = importlib.import_module(module_name)
    try:
        obj = getattr(module, attr)
    except AttributeError:
        raise typer.BadParameter(f"{module_name!r} has no attribute {attr!r}") from None

    if not isinstance(obj, MoonStone) and callable(obj):
        obj = obj()
    if not isinstance(obj, MoonStone):
        raise typer.BadParameter(f"{target!r} is not a MoonStone instance or factory")
    return obj


@app.command("status")
def status(
    app_version: Optional[str] = typer.Option(None, "--app-version", help="Current application version"),
    package: Optional[str] = typer.Option(None, "--package", "-p", help="Read the current version from an installed distribution"),
    state: Optional[Path] = _StateOption,
    prefix: Optional[str] = _PrefixOption,
):
    """Show the stored version and whether an upgrade is pending."""
    source = _version_source(app_version, package)
    engine = _engine(state, prefix, source or "0")

    try:
        stored = engine.stored_version()
    except InvalidVersionFormat as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    lines = [
        f"Store:    {engine.store.path}",
        f"Key:      {engine.version_key}",
        f"Stored:   {stored if stored is not None else '[yellow]none (first run pending)[/yellow]'}",
    ]

    if source is not None:
        try:
            current = engine.current_version()
        except InvalidVersionFormat as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(1)
        lines.append(f"Current:  {current}")
        if stored is None:
            pending = "[dim]no (first run records the baseline)[/dim]"
        elif stored < current:
            pending = "[yellow]yes[/yellow]"
        else:
            pending = "[green]no[/green]"
        lines.append(f"Upgrade:  {pending}")

    console.print(Panel("\n".join(lines), title="moonstone", border_style="cyan"))


@app.command("evolve")
def evolve(
    target: str = typer.Argument(help="module:attribute of a MoonStone instance or factory"),
):
    """Run the evolutions registered on an application's MoonStone."""
    engine = load_target(target)
    result = engine.evolve()
    if result.failed:
        console.print(f"[red]Evolution failed:[/red] {result.error}")
        raise typer.Exit(1)

    console.print(f"[green]Evolutions complete.[/green] Stored version: {engine.stored_version()}")


@app.command("set-version")
def set_version(
    version: str = typer.Argument(help="Version to record as last applied"),
    state: Optional[Path] = _StateOption,
    prefix: Optional[str] = _PrefixOption,
):
    """Record a version as the last one applied."""
    engine = _engine(state, prefix)
    try:
        engine.set_stored_version(version)
    except InvalidVersionFormat as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Stored version set to {VersionValue.parse(version)}[/green]")


@app.command("reset")
def reset(
    state: Optional[Path] = _StateOption,
    prefix: Optional[str] = _PrefixOption,
):
    """Forget the stored version; the next run is a first run."""
    engine = _engine(state, prefix)
    engine.reset()
    console.print(f"[green]Cleared {engine.version_key}[/green]")


@app.command("compare")
def compare_cmd(
    a: str = typer.Argument(help="First version"),
    b: str = typer.Argument(help="Second version"),
):
    """Compare two versions (build metadata is ignored)."""
    try:
        result = compare(a, b)
    except InvalidVersionFormat as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    console.print(f"{a} {'<=>'[result + 1]} {b}")


@app.command("version")
def version_cmd():
    """Show moonstone version."""
    from moonstone import __version__
    console.print(f"moonstone v{__version__}")
