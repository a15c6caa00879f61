"""
Renders install progress callbacks as a Rich progress bar.
"""

import logging

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

log = logging.getLogger("ollama_runtime")


class ProgressManager:
    """
    Adapts the installer's (percent, message) callback to a single progress bar.

    Usage:
        with ProgressManager(console) as progress:
            await runtime.download(version, progress=progress.update)
    """

    def __init__(self, console: Console):
        self.console = console
        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}", justify="left"),
            BarColumn(bar_width=30),
            "[progress.percentage]{task.percentage:>3.0f}%",
            "•",
            TimeElapsedColumn(),
            console=console,
            transient=False,
        )
        self._task_id: TaskID | None = None
        self._last_message = ""

    def update(self, percent: float, message: str) -> None:
        if self._task_id is None:
            self._task_id = self.progress.add_task(message, total=100)
        if message != self._last_message:
            log.debug(f"Install progress: {percent}% {message}")
            self._last_message = message
        self.progress.update(self._task_id, completed=percent, description=message)

    def __enter__(self) -> "ProgressManager":
        self.progress.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.progress.stop()
        return False
