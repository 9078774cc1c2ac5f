from pydantic import BaseModel

from .worker import Counters


class RunSummary(BaseModel):
    successes: int = 0
    failures: int = 0
    skipped: int = 0
    processed: int = 0
    total: int = 0
    elapsed: float = 0.0  # seconds since dispatch began
    cancelled: bool = False

    @property
    def exit_code(self) -> int:
        # cancellation alone is not a failure
        return 1 if self.failures > 0 else 0

    def format(self) -> str:
        text = (
            f"Completed in {self.elapsed:.3f}s. Successes: {self.successes}, "
            f"Failures: {self.failures}, Skipped/NotFound: {self.skipped}, Total: {self.total}"
        )
        if self.cancelled:
            text += f" (cancelled after {self.processed} processed)"
        return text


def summarize(counters: Counters, total: int, elapsed: float, cancelled: bool = False) -> RunSummary:
    snap = counters.snapshot()
    return RunSummary(
        successes=snap.successes,
        failures=snap.failures,
        skipped=snap.skipped,
        processed=snap.processed,
        total=total,
        elapsed=round(elapsed, 3),
        cancelled=cancelled,
    )
