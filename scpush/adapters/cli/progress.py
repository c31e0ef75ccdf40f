"""
Rich progress renderer for uploads
"""
from typing import Optional

from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from ...core.logging import get_stdout_console
from ...core.utils import format_size
from ...domain.transfer import ProgressSample


def _format_eta(seconds: Optional[float]) -> str:
    if seconds is None:
        return "-:--:--"
    seconds = int(round(seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours}:{minutes:02d}:{secs:02d}"


class RichProgressObserver:
    """
    Renders ProgressSample values as a rich progress bar.

    ``report`` only updates task state; rich redraws from its own refresh
    thread, so the transfer loop never waits on the terminal.
    """

    def __init__(
        self,
        description: str = "Uploading",
        console: Optional[Console] = None,
        disable: bool = False,
    ):
        self.description = description
        self.console = console or get_stdout_console()
        self.progress = Progress(
            SpinnerColumn(style="green"),
            TextColumn("[progress.description]{task.description}"),
            TimeElapsedColumn(),
            BarColumn(complete_style="cyan", finished_style="green"),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            DownloadColumn(),
            TextColumn("[progress.data.speed]{task.fields[rate]}"),
            TextColumn("eta {task.fields[eta]}"),
            console=self.console,
            disable=disable,
            transient=False,
        )
        self._task: Optional[TaskID] = None

    def __enter__(self) -> "RichProgressObserver":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        if self._task is not None:
            self.progress.stop()

    def report(self, sample: ProgressSample) -> None:
        """Progress callback for TransferEngine"""
        # rich shows 0% for a zero total
        total = sample.total_bytes or 1
        completed = sample.bytes_sent if sample.total_bytes else 1
        rate = f"{format_size(sample.rate)}/s"
        eta = "0:00:00" if sample.is_complete else _format_eta(sample.eta)

        if self._task is None:
            # Auth prompts must be finished before the live display starts
            self.progress.start()
            self._task = self.progress.add_task(
                self.description,
                total=total,
                completed=completed,
                rate=rate,
                eta=eta,
            )
        else:
            self.progress.update(self._task, completed=completed, rate=rate, eta=eta)

    __call__ = report
