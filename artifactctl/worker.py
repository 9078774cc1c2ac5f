# artifactctl/worker.py
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, List, NamedTuple, Optional

import httpx

from .cancellation import CancellationToken
from .client import delete_artifacts
from .models import MAX_ATTEMPTS, Outcome

log = logging.getLogger(__name__)

# how often a blocked dispatch loop re-checks the cancellation token
ADMISSION_POLL_SECONDS = 0.1


def backoff_delay(attempt: int) -> float:
    """Linear backoff: 2s after the 1st failed attempt, 4s after the 2nd."""
    return 2.0 * (attempt + 1)


class CounterSnapshot(NamedTuple):
    successes: int
    failures: int
    skipped: int
    processed: int


class Counters:
    """Outcome tallies shared by all workers. One record() call per finished job."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.successes = 0
        self.failures = 0
        self.skipped = 0
        self.processed = 0

    def record(self, outcome: Outcome) -> None:
        with self._lock:
            if outcome is Outcome.SUCCESS:
                self.successes += 1
            elif outcome is Outcome.FAILURE:
                self.failures += 1
            else:
                self.skipped += 1
            self.processed += 1

    def snapshot(self) -> CounterSnapshot:
        with self._lock:
            return CounterSnapshot(self.successes, self.failures, self.skipped, self.processed)


class WorkerPool:
    """
    Deletes artifacts for many jobs with at most `concurrency` requests in
    flight:
      - the dispatch loop takes one token per job before handing it to a thread
      - each worker retries request errors and 5xx up to MAX_ATTEMPTS times
      - every admitted job records exactly one outcome unless it is abandoned
        through cancellation, in which case it records nothing
      - the token is released on every exit path
    """

    def __init__(
        self,
        client: httpx.Client,
        project_id: int,
        concurrency: int,
        cancel: CancellationToken,
        reporter,
        dry_run: bool = False,
        max_attempts: int = MAX_ATTEMPTS,
        sleep: Optional[Callable[[float], object]] = None,
    ):
        self.client = client
        self.project_id = project_id
        self.concurrency = concurrency
        self.cancel = cancel
        self.reporter = reporter
        self.dry_run = dry_run
        self.max_attempts = max_attempts
        # default sleep wakes up early when cancelled
        self._sleep = sleep or cancel.wait
        self._tokens = threading.BoundedSemaphore(concurrency)
        self.counters = Counters()
        self.dispatched = 0

    # ------------------------------------------------------------------
    # admission
    # ------------------------------------------------------------------
    def _acquire(self) -> bool:
        while not self._tokens.acquire(timeout=ADMISSION_POLL_SECONDS):
            if self.cancel.is_cancelled():
                return False
        if self.cancel.is_cancelled():
            self._tokens.release()
            return False
        return True

    def run(self, job_ids: Iterable[int]) -> Counters:
        """Dispatch every job id, stop launching on cancellation, then drain."""
        errors: List[BaseException] = []

        def _collect(future) -> None:
            exc = future.exception()
            if exc is not None:
                errors.append(exc)

        with ThreadPoolExecutor(max_workers=self.concurrency, thread_name_prefix="artifactctl") as pool:
            for job_id in job_ids:
                if self.cancel.is_cancelled() or not self._acquire():
                    log.debug("cancellation requested, stopped dispatching after %d jobs", self.dispatched)
                    break
                self.dispatched += 1
                pool.submit(self._run_admitted, job_id).add_done_callback(_collect)
        # leaving the with-block waits for every launched worker
        if errors:
            # something a worker did not turn into an outcome
            raise errors[0]
        return self.counters

    def _run_admitted(self, job_id: int) -> Optional[Outcome]:
        try:
            return self.process_one(job_id)
        finally:
            self._tokens.release()

    # ------------------------------------------------------------------
    # per-job procedure
    # ------------------------------------------------------------------
    def _finish(self, job_id: int, outcome: Outcome, message: str) -> Outcome:
        self.counters.record(outcome)
        self.reporter.job_done(job_id, outcome, message)
        return outcome

    def process_one(self, job_id: int) -> Optional[Outcome]:
        """Run one admitted job. Returns None when abandoned through cancellation."""
        if self.cancel.is_cancelled():
            return None

        if self.dry_run:
            return self._finish(job_id, Outcome.SKIPPED, f"Job {job_id}: [DRY-RUN] Would delete artifact")

        resp: Optional[httpx.Response] = None
        last_error: Optional[Exception] = None
        for attempt in range(self.max_attempts):
            if attempt > 0:
                delay = backoff_delay(attempt - 1)
                log.debug("job %d: retrying in %.0fs (attempt %d/%d)", job_id, delay, attempt + 1, self.max_attempts)
                self._sleep(delay)
            if self.cancel.is_cancelled():
                return None

            try:
                resp = delete_artifacts(self.client, self.project_id, job_id)
                last_error = None
            except httpx.RequestError as e:
                resp, last_error = None, e
                continue
            # 5xx is treated as transient and retried like a transport error
            if resp.status_code < 500:
                break

        if last_error is not None:
            return self._finish(
                job_id, Outcome.FAILURE, f"Job {job_id}: request failed after retries: {last_error}"
            )
        return self._classify(job_id, resp)

    def _classify(self, job_id: int, resp: httpx.Response) -> Outcome:
        if resp.status_code == 204:
            return self._finish(job_id, Outcome.SUCCESS, f"Job {job_id}: artifact deleted successfully")
        if resp.status_code == 404:
            return self._finish(job_id, Outcome.SKIPPED, f"Job {job_id}: no artifacts found")
        return self._finish(
            job_id,
            Outcome.FAILURE,
            f"Job {job_id}: failed to delete artifact (status: {resp.status_code} {resp.reason_phrase})",
        )
