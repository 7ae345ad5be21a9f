"""
devsetup — CLI entrypoint.

Usage:
    devsetup --help
    devsetup install [STEP]
    devsetup packages --profile basic
    devsetup all
"""

from __future__ import annotations

import json
import signal
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import click

from devsetup import __version__
from devsetup.core.config.loader import ConfigError, load_settings
from devsetup.core.errors import UserInterrupted
from devsetup.core.observability.logging_config import setup_from_environment
from devsetup.core.steps.defaults import default_registry
from devsetup.core.use_cases.runtime import Runtime, build_runtime
from devsetup.ui.console import Console

T = TypeVar("T")


def _steps_epilog() -> str:
    names = "\n".join(f"  - {name}" for name in default_registry().list_steps())
    return f"\b\nAvailable packages:\n{names}"


def _guarded(runtime: Runtime, fn: Callable[[], T]) -> T:
    """Run ``fn`` with the signal handlers installed."""
    with runtime.coordinator:
        return fn()


def _ask_install_global() -> bool:
    """Ask about global packages; no answer at all (EOF) means no."""
    try:
        return click.confirm("Install global packages (requires sudo)?", default=False)
    except click.Abort as e:
        if isinstance(e.__context__, KeyboardInterrupt):
            raise KeyboardInterrupt from None
        click.echo(err=True)
        return False


class InterruptibleGroup(click.Group):
    """Exit with 128 + signal number on Ctrl-C, wherever it lands."""

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except UserInterrupted as e:
            sys.exit(e.exit_code)
        except KeyboardInterrupt:
            click.echo(err=True)
            sys.exit(128 + signal.SIGINT)


@click.group(cls=InterruptibleGroup)
@click.version_option(version=__version__, prog_name="devsetup")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    envvar="DEVSETUP_CONFIG",
    default=None,
    help="Path to devsetup.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """devsetup — install development tools on a fresh machine."""
    ctx.ensure_object(dict)

    # Logging setup (once, at process start)
    setup_from_environment(debug=debug, verbose=verbose, quiet=quiet)

    try:
        ctx.obj["settings"] = load_settings(Path(config_path) if config_path else None)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(e.exit_code)


@cli.command(epilog=_steps_epilog())
@click.argument("step", required=False)
@click.pass_context
def install(ctx: click.Context, step: str | None) -> None:
    """Install one package into your home directory, or all of them."""
    from devsetup.core.use_cases.tools import install_tools

    runtime = build_runtime(ctx.obj["settings"])
    result = _guarded(runtime, lambda: install_tools(step, runtime=runtime))
    sys.exit(result.exit_code)


@cli.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_steps(ctx: click.Context, as_json: bool) -> None:
    """List installable packages and whether they are installed."""
    runtime = build_runtime(ctx.obj["settings"])
    registry = default_registry()

    rows = [
        {
            "name": step.name,
            "description": step.description,
            "installed": step.is_installed(runtime.step_ctx),
        }
        for step in registry
    ]

    if as_json:
        click.echo(json.dumps(rows, indent=2))
        return

    for row in rows:
        marker = click.style("✓", fg="green") if row["installed"] else click.style("·", dim=True)
        click.echo(f"  {marker} {row['name']:<12} {row['description']}")


@cli.command()
@click.option(
    "--profile",
    default="global",
    show_default=True,
    help="Package profile to install (basic, global, or one from devsetup.yml).",
)
@click.option("--dry-run", is_flag=True, help="Show the commands without running them.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output result as JSON.")
@click.pass_context
def packages(ctx: click.Context, profile: str, dry_run: bool, as_json: bool) -> None:
    """Install system packages with the platform's package manager."""
    from devsetup.core.use_cases.packages import install_packages

    # Keep stdout clean for the JSON document
    console = Console(stream=click.get_text_stream("stderr")) if as_json else None
    runtime = build_runtime(ctx.obj["settings"], console=console)
    result = _guarded(runtime, lambda: install_packages(profile, runtime=runtime, dry_run=dry_run))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    sys.exit(result.exit_code)


@cli.command("all")
@click.option(
    "--yes/--no-global",
    "install_global",
    default=None,
    help="Install global packages without asking (or skip them).",
)
@click.pass_context
def install_everything(ctx: click.Context, install_global: bool | None) -> None:
    """Optionally install global packages, then every local package."""
    from devsetup.core.use_cases.packages import install_packages
    from devsetup.core.use_cases.tools import install_tools

    if install_global is None:
        install_global = _ask_install_global()

    runtime = build_runtime(ctx.obj["settings"])

    def run() -> int:
        if install_global:
            # A failed global install never blocks the local one
            install_packages("global", runtime=runtime)
        return install_tools(runtime=runtime).exit_code

    sys.exit(_guarded(runtime, run))


if __name__ == "__main__":
    cli()
