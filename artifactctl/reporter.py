import logging
import threading
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    TextColumn,
    TimeElapsedColumn,
)

from .models import Outcome

AUDIT_LOGGER = "artifactctl.audit"

_STYLES = {
    Outcome.SUCCESS: "green",
    Outcome.FAILURE: "red",
    Outcome.SKIPPED: "yellow",
}


def get_audit_logger() -> logging.Logger:
    logger = logging.getLogger(AUDIT_LOGGER)
    logger.setLevel(logging.INFO)
    return logger


def open_audit_log(path: str) -> logging.FileHandler:
    """Start appending audit lines to `path`. Raises OSError if it cannot be opened."""
    handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s %(message)s", "%Y/%m/%d %H:%M:%S"))
    get_audit_logger().addHandler(handler)
    return handler


def close_audit_log(handler: logging.FileHandler) -> None:
    get_audit_logger().removeHandler(handler)
    handler.close()


class Reporter:
    """
    Per-job feedback: a console line (verbose) or a progress tick, plus one
    audit line. Called concurrently from worker threads.
    """

    def __init__(
        self,
        verbose: bool = False,
        console: Optional[Console] = None,
        audit: Optional[logging.Logger] = None,
    ):
        self.verbose = verbose
        self.console = console or Console()
        self.audit = audit or get_audit_logger()
        self._lock = threading.RLock()  # event() may run inside a signal handler
        self._progress: Optional[Progress] = None
        self._task = None

    def start(self, total: int, dry_run: bool = False) -> None:
        if dry_run:
            self.console.print(f"[yellow]\\[DRY-RUN MODE][/yellow] Would process {total} jobs\n")
        else:
            self.console.print(f"Processing {total} jobs...\n")
        if self.verbose:
            return
        self._progress = Progress(
            TextColumn("[cyan]Deleting artifacts"),
            BarColumn(bar_width=40),
            MofNCompleteColumn(),
            TextColumn("jobs"),
            TimeElapsedColumn(),
            console=self.console,
        )
        self._task = self._progress.add_task("delete", total=total)
        self._progress.start()

    def job_done(self, job_id: int, outcome: Outcome, message: str) -> None:
        with self._lock:
            if self._progress is not None:
                self._progress.advance(self._task)
            elif self.verbose:
                style = _STYLES[outcome]
                self.console.print(f"[{style}]{escape(message)}[/{style}]", highlight=False, soft_wrap=True)
            self.audit.info(message)

    def finish(self) -> None:
        with self._lock:
            if self._progress is not None:
                self._progress.stop()
                self._progress = None

    def event(self, message: str, style: Optional[str] = None) -> None:
        """Run-level event (start, interrupt, summary): console and audit log."""
        with self._lock:
            text = escape(message) if style is None else f"[{style}]{escape(message)}[/{style}]"
            self.console.print(text, highlight=False, soft_wrap=True)
            # console spacing stays on the console; audit lines are one per event
            self.audit.info(message.strip())
