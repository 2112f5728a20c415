"""Command-line interface for Badware.

This module defines the CLI commands using Click framework.

Commands:
- build: Build the site into the output directory.
- serve: Run the development server.
- dev-solo: Run a single dev server pinned to DEV_PORT, reclaiming the port first.
"""

from __future__ import annotations

from pathlib import Path

import click

from . import __version__
from .config import ConfigError, load_config


@click.group()
@click.version_option(version=__version__, prog_name="badware")
def cli():
    """Badware blog tooling."""


def _load_config_or_exit(project_root: Path):
    try:
        return load_config(project_root)
    except ConfigError as exc:
        click.echo(click.style("Invalid configuration:", fg="red", bold=True), err=True)
        click.echo(click.style(f"  {exc.message}", fg="yellow"), err=True)
        raise SystemExit(1) from None


@cli.command()
@click.option("--drafts", is_flag=True, help="Include draft content")
def build(drafts: bool):
    """Build the site into the output directory."""
    project_root = Path.cwd()
    _load_config_or_exit(project_root)
    from .build import build_site
    from .content import ContentError

    try:
        result = build_site(project_root, include_drafts=drafts)
    except ContentError as exc:
        # Display user-friendly error message
        try:
            rel_path = exc.source_path.relative_to(project_root)
        except ValueError:
            rel_path = exc.source_path
        click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
        click.echo(click.style(f"  File: {rel_path}", fg="yellow"), err=True)
        click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)
        raise SystemExit(1) from None
    click.echo(
        f"Built {len(result.entries)} posts ({len(result.files)} files) into {result.output_dir}"
    )


@cli.command()
@click.option("--drafts", is_flag=True, help="Include draft content")
@click.option(
    "--port",
    type=int,
    required=False,
    help="Port to run the dev server (overrides badware.yaml)",
)
@click.option(
    "--host",
    default="127.0.0.1",
    show_default=True,
    help="Address to bind the dev server to",
)
@click.option(
    "--strictPort",
    "strict_port",
    is_flag=True,
    help="Exit if the port is already in use instead of trying the next one",
)
def serve(drafts: bool, port: int | None, host: str, strict_port: bool):
    """Run the dev server."""
    project_root = Path.cwd()
    config = _load_config_or_exit(project_root)
    from .server import DevServer, PortInUseError

    server = DevServer(
        config,
        host=host,
        port=port,
        strict_port=strict_port,
        include_drafts=drafts,
    )
    try:
        server.bind()
    except PortInUseError as exc:
        click.echo(click.style(f"{exc}.", fg="red", bold=True), err=True)
        raise SystemExit(1) from None
    server.start()


@cli.command("dev-solo")
def dev_solo():
    """Run one dev server on DEV_PORT (default 4977), killing whatever holds it."""
    from .solo import run_dev_solo

    raise SystemExit(run_dev_solo())


def main():
    """Entry point for the CLI application."""
    cli()
