import io
import threading

import httpx
import pytest
from rich.console import Console

from artifactctl.cancellation import CancellationToken
from artifactctl.client import build_client
from artifactctl.reporter import Reporter

SERVER = "gitlab.example.com"
TOKEN = "glpat-test"


def make_client(handler) -> httpx.Client:
    return build_client(SERVER, TOKEN, transport=httpx.MockTransport(handler))


class FakeGitLab:
    """
    Minimal stand-in for the three endpoints the cleaner uses.
    `delete_status` maps job id -> status code (or a list consumed per call,
    where an exception instance is raised instead of answering).
    """

    def __init__(self, project_id=1, project_status=200, jobs=None, delete_status=None, default_delete=204):
        self.project_id = project_id
        self.project_status = project_status
        self.jobs = jobs or []
        self.delete_status = delete_status or {}
        self.default_delete = default_delete
        self.deletes = []
        self.pages = []
        self.headers = []
        self._lock = threading.Lock()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.headers.append(request.headers.get("PRIVATE-TOKEN"))
        path = request.url.path
        base = f"/api/v4/projects/{self.project_id}"
        if request.method == "GET" and path == base:
            return httpx.Response(self.project_status, json={"id": self.project_id})
        if request.method == "GET" and path == f"{base}/jobs":
            page = int(request.url.params["page"])
            per_page = int(request.url.params["per_page"])
            with self._lock:
                self.pages.append(page)
            chunk = self.jobs[(page - 1) * per_page: page * per_page]
            return httpx.Response(200, json=chunk)
        if request.method == "DELETE" and path.startswith(f"{base}/jobs/") and path.endswith("/artifacts"):
            job_id = int(path.split("/")[-2])
            with self._lock:
                self.deletes.append(job_id)
                status = self.delete_status.get(job_id, self.default_delete)
                if isinstance(status, list):
                    status = status.pop(0) if len(status) > 1 else status[0]
            if isinstance(status, Exception):
                raise status
            return httpx.Response(status)
        return httpx.Response(418)


def job_records(n, start=1):
    return [{"id": i, "name": f"build-{i}", "status": "success", "artifacts": []} for i in range(start, start + n)]


@pytest.fixture
def cancel():
    return CancellationToken()


@pytest.fixture
def console_output():
    return io.StringIO()


@pytest.fixture
def reporter(console_output):
    return Reporter(verbose=True, console=Console(file=console_output, width=200))


@pytest.fixture
def sleeps():
    return []
