import httpx
import pytest

from artifactctl.config import load_config
from artifactctl.errors import DiscoveryError, ProjectCheckError, ProjectNotFoundError
from artifactctl.runner import run_cleanup

from conftest import SERVER, TOKEN, FakeGitLab, job_records, make_client


def _cfg(project_id=1, **kw):
    return load_config(SERVER, TOKEN, project_id, kw.pop("concurrency", 2), **kw)


def test_scenario_five_jobs(cancel, reporter, sleeps):
    fake = FakeGitLab(jobs=job_records(5), delete_status={4: 404, 5: 500})
    with make_client(fake) as client:
        summary = run_cleanup(_cfg(), client, reporter, cancel, sleep=sleeps.append)
    assert (summary.successes, summary.skipped, summary.failures) == (3, 1, 1)
    assert summary.total == summary.processed == 5
    assert summary.exit_code == 1


def test_missing_project_aborts_before_deleting(cancel, reporter):
    fake = FakeGitLab(project_id=99, project_status=404)
    with make_client(fake) as client:
        with pytest.raises(ProjectNotFoundError, match="Project 99 does not exist"):
            run_cleanup(_cfg(99), client, reporter, cancel)
    assert fake.deletes == [] and fake.pages == []


def test_project_check_failure(cancel, reporter):
    fake = FakeGitLab(project_status=503)
    with make_client(fake) as client:
        with pytest.raises(ProjectCheckError):
            run_cleanup(_cfg(), client, reporter, cancel)


def test_discovery_failure_prevents_deletion(cancel, reporter):
    fake = FakeGitLab(jobs=job_records(150))
    def handler(request):
        if request.url.params.get("page") == "2":
            raise httpx.ReadError("connection dropped")
        return fake(request)

    with make_client(handler) as client:
        with pytest.raises(DiscoveryError):
            run_cleanup(_cfg(), client, reporter, cancel)
    assert fake.deletes == []


def test_range_mode_skips_listing(cancel, reporter, sleeps):
    fake = FakeGitLab()
    with make_client(fake) as client:
        summary = run_cleanup(_cfg(start_job=10, end_job=14), client, reporter, cancel, sleep=sleeps.append)
    assert fake.pages == []
    assert sorted(fake.deletes) == [10, 11, 12, 13, 14]
    assert summary.successes == 5


def test_no_jobs(cancel, reporter, console_output):
    fake = FakeGitLab(jobs=[])
    with make_client(fake) as client:
        summary = run_cleanup(_cfg(), client, reporter, cancel)
    assert summary.total == 0 and summary.exit_code == 0
    assert "No jobs found in project" in console_output.getvalue()


def test_dry_run_run(cancel, reporter):
    fake = FakeGitLab(jobs=job_records(3))
    with make_client(fake) as client:
        summary = run_cleanup(_cfg(dry_run=True), client, reporter, cancel)
    assert fake.deletes == []
    assert summary.skipped == 3 and summary.exit_code == 0


def test_cancelled_discovery_still_summarizes(cancel, reporter, console_output, caplog):
    def handler(request):
        if request.url.path.endswith("/jobs"):
            cancel.cancel()
            return httpx.Response(200, json=job_records(100))
        return httpx.Response(200, json={"id": 1})

    with caplog.at_level("INFO", logger="artifactctl.audit"):
        with make_client(handler) as client:
            summary = run_cleanup(_cfg(), client, reporter, cancel)
    assert summary.cancelled and summary.processed == 0
    assert summary.exit_code == 0
    assert "Completed in" in console_output.getvalue()
    assert any(r.message.startswith("Completed in") for r in caplog.records)
    # audit lines carry no console spacing
    assert all(not r.message.endswith("\n") for r in caplog.records)
