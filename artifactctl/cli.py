import signal
from contextlib import contextmanager
from typing import Optional

import typer
from rich import print
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .cancellation import CancellationToken
from .client import build_client
from .config import load_config
from .discovery import discover_jobs
from .errors import ArtifactCleanerError, ConfigError
from .models import DEFAULTS, RunConfig
from .reporter import Reporter, close_audit_log, open_audit_log
from .runner import ensure_project, run_cleanup

app = typer.Typer(help="artifactctl - discover and delete GitLab CI/CD job artifacts concurrently.")

INTERRUPT_MESSAGE = "Received interrupt signal. Shutting down gracefully..."

# -----------------------------
# Shared options
# -----------------------------
ServerOpt = typer.Option(
    DEFAULTS["server"], "--gitlab-server", envvar="GITLAB_SERVER",
    help="GitLab server hostname (without https://)",
)
TokenOpt = typer.Option(
    "", "--gitlab-token", envvar="GITLAB_TOKEN", show_default=False,
    help="GitLab private access token (required)",
)
ProjectOpt = typer.Option(
    DEFAULTS["project_id"], "--project", envvar="GITLAB_PROJECT_ID", help="GitLab project ID",
)
PageLimitOpt = typer.Option(
    DEFAULTS["page_limit"], "--page-limit", envvar="GITLAB_JOB_PAGE_LIMIT",
    help="Maximum pages to fetch from Jobs API (0 = unlimited)",
)


def _fail(message: str) -> None:
    Console().print(f"[red]{escape(message)}[/red]", soft_wrap=True)
    raise typer.Exit(1)


@contextmanager
def _interrupts(cancel: CancellationToken, reporter: Reporter):
    """SIGINT/SIGTERM cancel the run; in-flight jobs are allowed to finish."""

    def handler(signum, frame):
        if not cancel.is_cancelled():
            reporter.event(f"\n\n{INTERRUPT_MESSAGE}", style="yellow")
        cancel.cancel()

    previous = {sig: signal.signal(sig, handler) for sig in (signal.SIGINT, signal.SIGTERM)}
    try:
        yield cancel
    finally:
        for sig, prev in previous.items():
            signal.signal(sig, prev)


def _banner(console: Console, cfg: RunConfig) -> None:
    t = Table(title="GitLab Artifacts Cleaner", show_header=False)
    t.add_column("setting")
    t.add_column("value")
    t.add_row("Server", cfg.server)
    t.add_row("Project ID", str(cfg.project_id))
    t.add_row("Concurrency", str(cfg.concurrency))
    if cfg.range_mode:
        t.add_row("Job range", f"{cfg.start_job}-{cfg.end_job}")
    else:
        t.add_row("Page limit", str(cfg.page_limit) if cfg.page_limit else "unlimited")
    t.add_row("Dry Run", str(cfg.dry_run))
    t.add_row("Verbose", str(cfg.verbose))
    t.add_row("Log File", cfg.log_file)
    console.print(t)


# -----------------------------
# clean
# -----------------------------
@app.command()
def clean(
    server: str = ServerOpt,
    token: str = TokenOpt,
    project: int = ProjectOpt,
    concurrency: int = typer.Option(
        DEFAULTS["concurrency"], "--concurrency", envvar="GITLAB_CONCURRENCY",
        help="Maximum concurrent deletions (1-1000)",
    ),
    page_limit: int = PageLimitOpt,
    start_job: Optional[int] = typer.Option(
        None, "--start-job", envvar="GITLAB_START_JOB", help="First job ID (range mode, inclusive)",
    ),
    end_job: Optional[int] = typer.Option(
        None, "--end-job", envvar="GITLAB_END_JOB", help="Last job ID (range mode, inclusive)",
    ),
    log_file: str = typer.Option(DEFAULTS["log_file"], "--log-file", help="Path to log file"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview what would be deleted without deleting"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="One line per job instead of a progress bar"),
):
    """Delete the artifacts of every job in a project (or of a job ID range)."""
    try:
        cfg = load_config(
            server, token, project, concurrency,
            page_limit=page_limit, start_job=start_job, end_job=end_job,
            dry_run=dry_run, verbose=verbose, log_file=log_file,
        )
    except ConfigError as e:
        _fail(f"Validation error: {e}")

    try:
        handler = open_audit_log(cfg.log_file)
    except OSError as e:
        _fail(f"Failed to open log file {cfg.log_file}: {e}")

    console = Console()
    reporter = Reporter(verbose=cfg.verbose, console=console)
    cancel = CancellationToken()
    try:
        _banner(console, cfg)
        with _interrupts(cancel, reporter), build_client(cfg.server, cfg.token, cfg.timeout) as client:
            console.print("Validating project...")
            summary = run_cleanup(
                cfg, client, reporter, cancel,
                on_page=lambda page, total: console.print(f"Fetching jobs... {total} found so far", highlight=False),
            )
    except ArtifactCleanerError as e:
        reporter.audit.info(str(e))
        _fail(str(e))
    finally:
        close_audit_log(handler)

    raise typer.Exit(summary.exit_code)


# -----------------------------
# check / jobs
# -----------------------------
@app.command()
def check(server: str = ServerOpt, token: str = TokenOpt, project: int = ProjectOpt):
    """Check that the project exists and the token can read it."""
    try:
        cfg = load_config(server, token, project, DEFAULTS["concurrency"])
        with build_client(cfg.server, cfg.token, cfg.timeout) as client:
            ensure_project(client, cfg, CancellationToken())
    except ArtifactCleanerError as e:
        _fail(str(e))
    print(f"[green]✓ Project {project} exists on {server}[/green]")


@app.command()
def jobs(
    server: str = ServerOpt,
    token: str = TokenOpt,
    project: int = ProjectOpt,
    page_limit: int = PageLimitOpt,
):
    """List the jobs the cleaner would process."""
    cancel = CancellationToken()
    try:
        cfg = load_config(server, token, project, DEFAULTS["concurrency"], page_limit=page_limit)
        with build_client(cfg.server, cfg.token, cfg.timeout) as client:
            ensure_project(client, cfg, cancel)
            result = discover_jobs(client, cfg.project_id, cfg.page_limit, cancel)
    except ArtifactCleanerError as e:
        _fail(str(e))

    t = Table(title=f"Jobs (project {project})")
    for c in ["id", "name", "status", "artifacts", "size"]:
        t.add_column(c)
    for j in result.jobs:
        t.add_row(
            str(j.id),
            j.name or "",
            j.status or "",
            str(len(j.artifacts)),
            str(sum(a.size for a in j.artifacts)),
        )
    Console().print(t)
    print(f"{len(result.jobs)} jobs across {result.pages} page(s)")
