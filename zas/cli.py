"""Command-line interface for Zas.

This module defines the CLI commands using the Click framework.

Commands:
- init: Scaffold a new Zas project.
- generate: Build the site into the deployment directory.
- serve: Run development server with live reload.

Any other subcommand ``NAME`` runs an external ``zas-NAME`` executable found
on PATH (or in the project's .zas/bin) with the remaining arguments.
"""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import click

from . import __version__
from .config import CONFIG_DIR, PLUGIN_PREFIX
from .executable_utils import find_executable

# Path to the default template directory
_TEMPLATES_DIR = Path(__file__).parent / "templates" / "default"

# Template file -> location in a new project.
_SCAFFOLD = {
    "config.yml": f"{CONFIG_DIR}/config.yml",
    "layout.html": f"{CONFIG_DIR}/layout.html",
    "index.md": "index.md",
}


class ZasGroup(click.Group):
    """Command group that falls back to external ``zas-*`` executables."""

    def get_command(self, ctx, cmd_name):
        command = super().get_command(ctx, cmd_name)
        if command is not None:
            return command
        executable = find_executable(f"{PLUGIN_PREFIX}{cmd_name}", Path.cwd())
        if executable is None:
            return None
        return _external_command(cmd_name, executable)


def _external_command(name: str, executable: str) -> click.Command:
    @click.command(
        name=name,
        context_settings={
            "ignore_unknown_options": True,
            "allow_extra_args": True,
        },
        add_help_option=False,
    )
    @click.argument("args", nargs=-1, type=click.UNPROCESSED)
    @click.pass_context
    def run(ctx, args):
        result = subprocess.run([executable, *args])
        ctx.exit(result.returncode)

    return run


@click.group(cls=ZasGroup)
@click.version_option(version=__version__, prog_name="zas")
def cli():
    """Zas static site generator."""


@cli.command()
@click.argument("directory", default=".")
def init(directory: str):
    """Scaffold a new Zas project."""
    target = Path(directory).resolve()
    if (target / CONFIG_DIR).exists():
        raise click.ClickException(f"Refusing to initialize existing project: {target}")
    _scaffold(target)
    click.echo(f"New Zas site created at {target}")


@cli.command()
@click.option(
    "--fail-fast", is_flag=True, help="Stop at the first file that fails to render"
)
def generate(fail_fast: bool):
    """Build the site into the deployment directory."""
    project_root = Path.cwd()
    from .build import build_site
    from .errors import ConfigError, BuildError

    try:
        result = build_site(project_root, fail_fast=fail_fast)
    except (BuildError, ConfigError) as exc:
        click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
        click.echo(click.style(f"  File: {_display(exc.source_path, project_root)}", fg="yellow"), err=True)
        click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)
        raise SystemExit(1) from None
    click.echo(
        f"Rendered {len(result.rendered)} pages and copied {len(result.copied)} files into {result.deploy_dir}"
    )
    if result.failures:
        click.echo(
            click.style(f"{len(result.failures)} file(s) failed to render", fg="red", bold=True),
            err=True,
        )
        raise SystemExit(1)


@cli.command()
@click.option(
    "--port",
    type=int,
    required=False,
    help="Port to run the dev server (overrides zas.port)",
)
@click.option(
    "--ws-port",
    type=int,
    required=False,
    help="Port for the live reload websocket server (defaults to port + 1)",
)
def serve(port: int | None, ws_port: int | None):
    """Run dev server with live reload."""
    project_root = Path.cwd()
    from .server import DevServer

    server = DevServer(project_root, http_port=port, ws_port=ws_port)
    server.start()


def _display(path: Path, project_root: Path) -> Path:
    try:
        return path.resolve().relative_to(project_root.resolve())
    except ValueError:
        return path


def main():
    """Entry point for the CLI application."""
    cli()


def _scaffold(root: Path) -> None:
    """Create the files of a new Zas project.

    Args:
        root: Root directory for the new project.
    """
    for name, rel in _SCAFFOLD.items():
        dest_path = root / rel
        if dest_path.exists():
            continue
        dest_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(_TEMPLATES_DIR / name, dest_path)
