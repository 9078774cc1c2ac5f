import time
from typing import Callable, Optional, Sequence

import httpx

from .cancellation import CancellationToken
from .client import check_project
from .discovery import discover_jobs, job_range
from .errors import ProjectCheckError, ProjectNotFoundError
from .models import ProjectStatus, RunConfig
from .reporter import Reporter
from .summary import RunSummary, summarize
from .worker import WorkerPool


def ensure_project(client: httpx.Client, config: RunConfig, cancel: CancellationToken) -> None:
    """Fail-fast precondition: raise unless the target project exists."""
    status, detail = check_project(client, config.project_id, cancel)
    if status is ProjectStatus.CHECK_FAILED:
        raise ProjectCheckError(f"Error checking project: {detail}")
    if status is ProjectStatus.NOT_EXISTS:
        raise ProjectNotFoundError(config.project_id, config.server)


def run_cleanup(
    config: RunConfig,
    client: httpx.Client,
    reporter: Reporter,
    cancel: CancellationToken,
    sleep: Optional[Callable[[float], object]] = None,
    on_page: Optional[Callable[[int, int], None]] = None,
) -> RunSummary:
    """
    check project -> enumerate jobs -> delete concurrently -> summarize.
    Fatal problems raise ArtifactCleanerError subclasses; per-job problems
    only show up in the returned summary.
    """
    reporter.audit.info(
        "Starting artifact cleanup: server=%s, project=%d, concurrency=%d, dryRun=%s, mode=%s",
        config.server, config.project_id, config.concurrency, config.dry_run, config.mode,
    )

    ensure_project(client, config, cancel)
    reporter.event("✓ Project validated\n", style="green")

    job_ids: Sequence[int]
    if config.range_mode:
        job_ids = job_range(config.start_job, config.end_job)
    else:
        discovered = discover_jobs(client, config.project_id, config.page_limit, cancel, on_page=on_page)
        if discovered.cancelled:
            reporter.event(
                f"Job discovery cancelled after {len(discovered.jobs)} jobs; nothing was deleted",
                style="yellow",
            )
            summary = RunSummary(cancelled=True)
            reporter.event(summary.format())
            return summary
        job_ids = discovered.job_ids

    if not job_ids:
        reporter.event("No jobs found in project")
        return RunSummary(cancelled=cancel.is_cancelled())

    if config.range_mode:
        reporter.event(f"✓ Job range {config.start_job}-{config.end_job}: {len(job_ids)} jobs\n", style="green")
    else:
        reporter.event(f"✓ Discovered {len(job_ids)} jobs\n", style="green")

    pool = WorkerPool(
        client,
        config.project_id,
        config.concurrency,
        cancel,
        reporter,
        dry_run=config.dry_run,
        sleep=sleep,
    )
    reporter.start(len(job_ids), dry_run=config.dry_run)
    started = time.monotonic()
    try:
        counters = pool.run(job_ids)
    finally:
        reporter.finish()
    elapsed = time.monotonic() - started

    summary = summarize(counters, len(job_ids), elapsed, cancelled=cancel.is_cancelled())
    reporter.event(summary.format(), style="red" if summary.exit_code else "bold")
    return summary
