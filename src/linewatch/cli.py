from __future__ import annotations

import asyncio
import contextlib
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from .config import DEFAULT_INTERVAL_SECONDS, WatchConfig
from .scanner_local import normalize_text
from .terminal import cbreak_stdin, install_signal_handlers, stop_on_keypress
from .watcher import DirectoryWatcher

app = typer.Typer(
    help="Watch a directory and report line count changes of matching files",
    add_completion=False,
)
console = Console(highlight=False)
err_console = Console(stderr=True)


def parse_chunk_size(value: str) -> int:
    text = value.strip().upper()
    if not text:
        raise ValueError("Chunk size is empty.")

    multiplier = 1
    if text[-1] in {"K", "M"}:
        multiplier = 1024 if text[-1] == "K" else 1024 * 1024
        text = text[:-1]
    try:
        size = int(text) * multiplier
    except ValueError:
        raise ValueError(
            "Chunk size is not a number. Only K and M are allowed suffixes."
        ) from None
    if size <= 0:
        raise ValueError("Chunk size must be positive.")
    return size


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _emit(line: str) -> None:
    console.print(normalize_text(line), markup=False)


async def _watch(config: WatchConfig) -> None:
    stop = asyncio.Event()
    install_signal_handlers(stop)
    keypress = asyncio.create_task(stop_on_keypress(stop))
    watcher = DirectoryWatcher(config, _emit)
    try:
        await watcher.initialize(stop)
        await watcher.run(stop)
    finally:
        keypress.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await keypress


@app.command()
def watch(
    path: Path = typer.Argument(..., help="Directory to watch (not recursive)"),
    pattern: str = typer.Argument(..., help="File name glob, e.g. '*.txt'"),
    interval: float = typer.Option(
        DEFAULT_INTERVAL_SECONDS,
        help="Seconds between directory rescans",
    ),
    chunk_size: str = typer.Option(
        "1M",
        help="Read size for line counting, in bytes or with suffix K/M (e.g. 64K)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug details"),
) -> None:
    """Print file additions, deletions and line count changes until a key is pressed."""
    _configure_logging(verbose)
    try:
        config = WatchConfig(
            root=path,
            pattern=pattern,
            interval=interval,
            chunk_size=parse_chunk_size(chunk_size),
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    err_console.print(
        f"Watching [bold]{escape(str(path))}[/bold] for "
        f"[bold]{escape(pattern)}[/bold]. Press any key to stop.",
        highlight=False,
    )
    try:
        with cbreak_stdin():
            asyncio.run(_watch(config))
    except FileNotFoundError as exc:
        err_console.print(f"[red]Cannot watch:[/red] {escape(str(exc))}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
