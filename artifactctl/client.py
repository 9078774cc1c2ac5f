from typing import List, Optional, Tuple

import httpx

from .cancellation import CancellationToken
from .errors import DiscoveryError
from .models import DEFAULTS, PER_PAGE, Job, ProjectStatus


def build_client(
    server: str,
    token: str,
    timeout: float = DEFAULTS["timeout"],
    transport: Optional[httpx.BaseTransport] = None,
) -> httpx.Client:
    """
    One pooled client shared by every worker (httpx.Client is thread safe).
    `server` is a bare hostname, e.g. gitlab.example.com.
    """
    return httpx.Client(
        base_url=f"https://{server}/api/v4",
        headers={"PRIVATE-TOKEN": token},
        timeout=timeout,
        limits=httpx.Limits(max_connections=100, max_keepalive_connections=100, keepalive_expiry=90),
        transport=transport,
    )


def check_project(
    client: httpx.Client, project_id: int, cancel: CancellationToken
) -> Tuple[ProjectStatus, Optional[str]]:
    """
    Single GET /projects/{id}, no retries. Returns (status, detail) where
    detail explains a CHECK_FAILED result.
    """
    if cancel.is_cancelled():
        return ProjectStatus.CHECK_FAILED, "cancelled before project check"
    try:
        resp = client.get(f"/projects/{project_id}")
    except httpx.HTTPError as e:
        return ProjectStatus.CHECK_FAILED, f"failed to execute request: {e}"

    if resp.status_code == 200:
        return ProjectStatus.EXISTS, None
    if resp.status_code == 404:
        return ProjectStatus.NOT_EXISTS, None
    return ProjectStatus.CHECK_FAILED, f"unexpected status code: {resp.status_code}"


def fetch_jobs_page(client: httpx.Client, project_id: int, page: int, per_page: int = PER_PAGE) -> List[Job]:
    try:
        resp = client.get(
            f"/projects/{project_id}/jobs",
            params={"per_page": per_page, "page": page},
        )
    except httpx.HTTPError as e:
        raise DiscoveryError(f"failed to execute request: {e}", page=page) from e

    if resp.status_code != 200:
        raise DiscoveryError(f"unexpected status code: {resp.status_code}", page=page)
    try:
        payload = resp.json()
        if not isinstance(payload, list):
            raise ValueError("expected a JSON array of jobs")
        return [Job.model_validate(item) for item in payload]
    except ValueError as e:
        # pydantic.ValidationError and json.JSONDecodeError are both ValueErrors
        raise DiscoveryError(f"failed to decode response: {e}", page=page) from e


def delete_artifacts(client: httpx.Client, project_id: int, job_id: int) -> httpx.Response:
    """DELETE one job's artifacts. Transport errors propagate to the caller's retry loop."""
    return client.delete(f"/projects/{project_id}/jobs/{job_id}/artifacts")
