from typing import Optional

import httpx

from .errors import ConfigError
from .models import MAX_CONCURRENCY, RunConfig


def validate_inputs(
    server: str,
    token: str,
    project_id: int,
    concurrency: int,
    start_job: Optional[int] = None,
    end_job: Optional[int] = None,
    page_limit: int = 0,
) -> None:
    """Reject bad configuration before any network call or log file is opened."""
    if not server:
        raise ConfigError("server", "gitlab-server cannot be empty")
    try:
        httpx.URL(f"https://{server}")
    except httpx.InvalidURL as e:
        raise ConfigError("server", f"invalid gitlab-server {server!r}: {e}") from e
    if not token:
        raise ConfigError("token", "gitlab-token is required")
    if project_id <= 0:
        raise ConfigError("project_id", f"project ID must be positive, got {project_id}")
    if concurrency < 1 or concurrency > MAX_CONCURRENCY:
        raise ConfigError(
            "concurrency",
            f"concurrency must be between 1 and {MAX_CONCURRENCY}, got {concurrency}",
        )
    if page_limit < 0:
        raise ConfigError("page_limit", f"page limit cannot be negative, got {page_limit}")

    if (start_job is None) != (end_job is None):
        raise ConfigError("job_range", "both --start-job and --end-job are required for range mode")
    if start_job is not None and end_job is not None:
        if start_job <= 0:
            raise ConfigError("job_range", f"start job ID must be positive, got {start_job}")
        if end_job < start_job:
            raise ConfigError(
                "job_range",
                f"end job ID ({end_job}) must be greater than or equal to start job ID ({start_job})",
            )


def load_config(
    server: str,
    token: str,
    project_id: int,
    concurrency: int,
    page_limit: int = 0,
    start_job: Optional[int] = None,
    end_job: Optional[int] = None,
    dry_run: bool = False,
    verbose: bool = False,
    log_file: Optional[str] = None,
    timeout: Optional[float] = None,
) -> RunConfig:
    validate_inputs(server, token, project_id, concurrency, start_job, end_job, page_limit)
    extra = {}
    if log_file:
        extra["log_file"] = log_file
    if timeout:
        extra["timeout"] = timeout
    return RunConfig(
        server=server,
        token=token,
        project_id=project_id,
        concurrency=concurrency,
        page_limit=page_limit,
        start_job=start_job,
        end_job=end_job,
        dry_run=dry_run,
        verbose=verbose,
        **extra,
    )
