import threading


class CancellationToken:
    """Process-wide cooperative stop signal.

    Set once (SIGINT/SIGTERM) and never reset. Workers and the dispatch loop
    poll it at every point where they could block.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        """Sleep up to `timeout` seconds; returns True if cancelled meanwhile."""
        return self._event.wait(timeout)
