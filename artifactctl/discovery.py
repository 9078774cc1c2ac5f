import logging
from typing import Callable, List, Optional

import httpx
from pydantic import BaseModel, Field

from .cancellation import CancellationToken
from .client import fetch_jobs_page
from .errors import ConfigError
from .models import PER_PAGE, Job

log = logging.getLogger(__name__)


class DiscoveryResult(BaseModel):
    jobs: List[Job] = Field(default_factory=list)
    pages: int = 0
    cancelled: bool = False  # True means `jobs` is partial

    @property
    def job_ids(self) -> List[int]:
        return [j.id for j in self.jobs]


def job_range(start: int, end: int) -> range:
    """Every job id in [start, end], inclusive."""
    if end < start:
        raise ConfigError("job_range", f"end job ID ({end}) is smaller than start job ID ({start})")
    return range(start, end + 1)


def discover_jobs(
    client: httpx.Client,
    project_id: int,
    page_limit: int,
    cancel: CancellationToken,
    on_page: Optional[Callable[[int, int], None]] = None,
) -> DiscoveryResult:
    """
    Walk /projects/{id}/jobs page by page until a short or empty page, or
    until `page_limit` pages were read (0 = no limit). A failing page raises
    DiscoveryError: an incomplete list must never reach the deletion stage.
    """
    result = DiscoveryResult()
    page = 1
    log.debug("fetching jobs from project %d (page limit: %d)", project_id, page_limit)

    while True:
        if cancel.is_cancelled():
            result.cancelled = True
            return result

        jobs = fetch_jobs_page(client, project_id, page, PER_PAGE)
        result.pages = page
        if not jobs:
            break

        result.jobs.extend(jobs)
        log.debug("fetched page %d: %d jobs (total so far: %d)", page, len(jobs), len(result.jobs))
        if on_page:
            on_page(page, len(result.jobs))

        if len(jobs) < PER_PAGE:
            break
        if page_limit > 0 and page >= page_limit:
            log.debug("reached page limit (%d), stopping job discovery", page_limit)
            break
        page += 1

    return result
