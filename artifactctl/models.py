from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

DEFAULTS = {
    "server": "gitlab.example.com",
    "project_id": 1,
    "concurrency": 70,
    "page_limit": 0,
    "log_file": "artifact-cleaner.log",
    "timeout": 30.0,
}

PER_PAGE = 100
MAX_ATTEMPTS = 3
MAX_CONCURRENCY = 1000


class Artifact(BaseModel):
    file_type: Optional[str] = None
    size: int = 0


class Job(BaseModel):
    model_config = {"frozen": True, "extra": "ignore"}

    id: int
    name: Optional[str] = None
    status: Optional[str] = None
    artifacts: List[Artifact] = Field(default_factory=list)


class Outcome(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    SKIPPED = "skipped"  # 404 (no artifacts) or dry-run


class ProjectStatus(str, Enum):
    EXISTS = "exists"
    NOT_EXISTS = "not_exists"
    CHECK_FAILED = "check_failed"


class RunConfig(BaseModel):
    server: str
    token: str
    project_id: int
    concurrency: int = DEFAULTS["concurrency"]
    page_limit: int = DEFAULTS["page_limit"]  # 0 = unlimited
    start_job: Optional[int] = None
    end_job: Optional[int] = None
    dry_run: bool = False
    verbose: bool = False
    log_file: str = DEFAULTS["log_file"]
    timeout: float = DEFAULTS["timeout"]

    @property
    def range_mode(self) -> bool:
        return self.start_job is not None and self.end_job is not None

    @property
    def mode(self) -> str:
        return "range" if self.range_mode else "discovery"
