#!/usr/bin/env python3
"""
snekdrop CLI

Command-line interface for one-shot LAN file transfer.

Usage:
    snekdrop server              # Wait for a client and receive one file
    snekdrop client FILE         # Find a server and send FILE to it
"""

import asyncio
import logging
from pathlib import Path

import aiofiles
import aiofiles.os
import click
from rich.console import Console
from rich.progress import (
    Progress, SpinnerColumn, TextColumn, BarColumn, DownloadColumn,
)
from rich.panel import Panel
from rich.logging import RichHandler

from .config import Config, load_config
from .errors import SnekdropError
from .node import run_server, run_client

console = Console()


def setup_logging(verbose: bool = False, level_name: str = 'INFO'):
    """Configure logging with rich output."""
    level = logging.DEBUG if verbose else getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_time=False, show_path=False)],
        force=True,
    )


def transfer_progress() -> Progress:
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        DownloadColumn(),
        console=console,
    )


def fail(message: str):
    console.print(f"[red]✗ {message}[/red]")
    raise SystemExit(1)


@click.group()
@click.option('-v', '--verbose', is_flag=True, help='Enable verbose output')
@click.option('--config', 'config_path', type=click.Path(dir_okay=False),
              default=None, help='JSON config file')
@click.pass_context
def cli(ctx, verbose, config_path):
    """snekdrop - find a peer on the LAN and send it one file."""
    config = load_config(Path(config_path) if config_path else None)
    setup_logging(verbose, config.log_level)
    ctx.ensure_object(dict)
    ctx.obj['config'] = config


@cli.command()
@click.option('--output', '-o', type=click.Path(dir_okay=False), default=None,
              help='Where to write the received file')
@click.pass_context
def server(ctx, output):
    """Wait for a client and receive one file."""
    config: Config = ctx.obj['config']
    if output:
        config.output_path = Path(output)

    async def run() -> int:
        with transfer_progress() as progress:
            task = progress.add_task("Waiting for client...", total=None)

            def update_progress(done: int, total: int):
                progress.update(task, completed=done, total=total,
                                description="Receiving...")

            return await run_server(config, update_progress)

    try:
        received = asyncio.run(run())
    except (SnekdropError, OSError) as e:
        fail(str(e))

    console.print(Panel.fit(
        f"[bold green]File Received[/bold green]\n\n"
        f"Path: [cyan]{config.output_path}[/cyan]\n"
        f"Size: [yellow]{format_size(received)}[/yellow]",
        title="snekdrop"
    ))


@cli.command()
@click.argument('file_path', type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def client(ctx, file_path):
    """Find a server and send FILE_PATH to it."""
    config: Config = ctx.obj['config']
    file_path = Path(file_path)

    async def run() -> str:
        stat = await aiofiles.os.stat(file_path)

        async with aiofiles.open(file_path, 'rb') as source:
            with transfer_progress() as progress:
                task = progress.add_task("Looking for server...", total=stat.st_size)

                def update_progress(done: int, total: int):
                    progress.update(task, completed=done, description="Sending...")

                return await run_client(source, stat.st_size, config, update_progress)

    try:
        server_ip = asyncio.run(run())
    except (SnekdropError, OSError) as e:
        fail(str(e))

    console.print(Panel.fit(
        f"[bold green]File Sent[/bold green]\n\n"
        f"Name: [cyan]{file_path.name}[/cyan]\n"
        f"Server: [yellow]{server_ip}[/yellow]",
        title="snekdrop"
    ))


def format_size(bytes_count: int) -> str:
    """Format bytes as human-readable size."""
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if bytes_count < 1024:
            return f"{bytes_count:.1f} {unit}"
        bytes_count /= 1024
    return f"{bytes_count:.1f} PB"


if __name__ == '__main__':
    cli()
