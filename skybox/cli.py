"""
Command-line interface for controlling Sky+ boxes.

Subcommands:
- scan: Discover boxes on the network and remember the chosen one
- ls: List the recordings on the chosen box
- rm: Remove recordings by id
- play: Play a recording by resource locator

Example usage:
    skybox scan
    skybox ls --long
    skybox rm BOOK:688476834 BOOK:688555858
    skybox play file://pvr/290B3177
"""

import asyncio
import logging
import sys
import time
from enum import Enum
from typing import Coroutine, List, Optional

from pydantic import ValidationError
import typer
from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn
from rich.table import Table

from .config import SkyboxSettings
from .controller import SkyBox
from .errors import NoDeviceSelected, RemoveFailed, SkyboxError
from .http_client import build_async_client
from .listing import build_table, write_csv, write_json
from .models import PairedDevice, Recording
from .preferences import require_device, save_device
from .scanner import discover_pairs

app = typer.Typer(no_args_is_help=True, help="Interacts with Sky+ PVRs.")

_console = Console()
_err = Console(stderr=True)


class OutputFormat(str, Enum):
    TABLE = "table"
    CSV = "csv"
    JSON = "json"


def _run(coro: Coroutine):
    """Run `coro`, turning any SkyboxError into a message and exit status 1."""
    try:
        return asyncio.run(coro)
    except SkyboxError as exc:
        _err.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1)


def _load_settings() -> SkyboxSettings:
    try:
        return SkyboxSettings()
    except ValidationError as exc:
        _err.print(f"[red]Invalid configuration:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1)


def _selected_device(settings: SkyboxSettings) -> PairedDevice:
    try:
        return require_device(settings.device_file)
    except NoDeviceSelected as exc:
        _err.print(str(exc))
        raise typer.Exit(code=1)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr."),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )


async def _scan(settings: SkyboxSettings, timeout: Optional[float]) -> List[PairedDevice]:
    async with build_async_client(settings) as client:
        return await discover_pairs(client, settings, timeout=timeout)


@app.command()
def scan(
    timeout: Optional[float] = typer.Option(None, "--timeout", "-t", min=0.1, help="Discovery window in seconds."),
    select: Optional[int] = typer.Option(None, "--select", min=0, help="Pick this device without prompting."),
) -> None:
    """Scan for Sky+ boxes and choose the one to control."""
    settings = _load_settings()
    with _err.status("Scanning..."):
        devices = _run(_scan(settings, timeout))

    if not devices:
        _err.print("[yellow]No skybox found.[/yellow] Check the box is on and try a longer --timeout.")
        raise typer.Exit(code=1)

    table = Table(title=f"Found {len(devices)} skybox(es)")
    table.add_column("#", justify="right")
    table.add_column("Host", style="cyan")
    table.add_column("Play")
    table.add_column("Browse")
    for i, device in enumerate(devices):
        table.add_row(str(i), device.host, device.play_url, device.browse_url)
    _err.print(table)

    if select is None:
        select = 0 if len(devices) == 1 else typer.prompt("Choose a skybox", type=int, err=True)
    if not 0 <= select < len(devices):
        _err.print(f"[red]No skybox numbered {select}[/red]")
        raise typer.Exit(code=1)

    device = devices[select]
    save_device(device, settings.device_file)
    _err.print(f"Using {device.host}")


async def _list(settings: SkyboxSettings, device: PairedDevice) -> List[Recording]:
    recordings: List[Recording] = []
    async with build_async_client(settings) as client:
        listing = await SkyBox(device, client, settings).list_recordings()
        with Progress(
            TextColumn("Fetching records"),
            BarColumn(),
            MofNCompleteColumn(),
            console=_err,
            transient=True,
        ) as progress:
            task = progress.add_task("fetch", total=listing.total)
            async for page in listing.pages():
                recordings.extend(page.recordings)
                progress.advance(task, page.raw_count)
    return recordings


@app.command("ls")
def list_recordings(
    long: bool = typer.Option(False, "--long", "-l", help="Long items listing."),
    output: OutputFormat = typer.Option(OutputFormat.TABLE, "--format", "-f", help="Output format."),
) -> None:
    """List recordings."""
    settings = _load_settings()
    device = _selected_device(settings)

    started = time.monotonic()
    recordings = _run(_list(settings, device))
    if output is OutputFormat.CSV:
        write_csv(recordings, sys.stdout)
    elif output is OutputFormat.JSON:
        write_json(recordings, sys.stdout)
    else:
        _console.print(build_table(recordings, long=long))
    _err.print(f"Fetched {len(recordings)} items from {device.browse_url} in {time.monotonic() - started:.0f}s")


async def _remove(settings: SkyboxSettings, device: PairedDevice, ids: List[str]) -> List[str]:
    async with build_async_client(settings) as client:
        return await SkyBox(device, client, settings).remove(ids)


@app.command("rm")
def remove(
    ids: List[str] = typer.Argument(..., help="Recordings to remove, e.g. BOOK:688476834 BOOK:688555858"),
) -> None:
    """Remove recordings."""
    settings = _load_settings()
    device = _selected_device(settings)
    try:
        removed = asyncio.run(_remove(settings, device, ids))
    except RemoveFailed as exc:
        for object_id in ids:
            if object_id not in exc.failures:
                _console.print(f"removed: {object_id}")
        for object_id, error in exc.failures.items():
            _err.print(f"[red]{escape(object_id)}: {escape(str(error))}[/red]")
        raise typer.Exit(code=1)
    except SkyboxError as exc:
        _err.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1)
    for object_id in removed:
        _console.print(f"removed: {object_id}")


async def _play(settings: SkyboxSettings, device: PairedDevice, resource: str) -> None:
    async with build_async_client(settings) as client:
        await SkyBox(device, client, settings).play(resource)


@app.command()
def play(
    resource: str = typer.Argument(..., help="Recording to play back, e.g. file://pvr/290B3177"),
) -> None:
    """Play a recording."""
    settings = _load_settings()
    device = _selected_device(settings)
    _run(_play(settings, device, resource))
    _console.print(f"Playing: {resource}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
