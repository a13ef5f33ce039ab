from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager

from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TextColumn,
    TransferSpeedColumn,
)
from rich.text import Text

console = Console(highlight=False, soft_wrap=True)


def info(message: str) -> None:
    console.print(Text(message))


def warn(message: str) -> None:
    console.print(Text(message, style="yellow"))


def error(message: str) -> None:
    console.print(Text(message, style="bold red"))


def success(message: str) -> None:
    console.print(Text(message, style="green"))


@contextmanager
def transfer_progress(label: str, total: int | None) -> Iterator[Callable[[int], None]]:
    """Yield an ``advance(n_bytes)`` callback backed by a progress bar.

    Non-interactive output gets a no-op callback so logs stay line based.
    """
    if not console.is_terminal:
        yield lambda _n: None
        return

    progress = Progress(
        TextColumn("{task.description}"),
        BarColumn(),
        DownloadColumn(),
        TransferSpeedColumn(),
        console=console,
        transient=True,
    )
    with progress:
        task_id = progress.add_task(label, total=total)
        yield lambda n: progress.update(task_id, advance=n)
