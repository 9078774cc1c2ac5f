import pytest

from artifactctl.config import load_config, validate_inputs
from artifactctl.discovery import job_range
from artifactctl.errors import ConfigError


@pytest.mark.parametrize("concurrency", [1, 5, 70, 1000])
def test_valid_inputs(concurrency):
    validate_inputs("gitlab.example.com", "valid-token", 1, concurrency)


@pytest.mark.parametrize(
    "server,token,project_id,concurrency,field",
    [
        ("", "valid-token", 1, 5, "server"),
        ("gitlab.example.com", "", 1, 5, "token"),
        ("gitlab.example.com", "valid-token", 0, 5, "project_id"),
        ("gitlab.example.com", "valid-token", -3, 5, "project_id"),
        ("gitlab.example.com", "valid-token", 1, 0, "concurrency"),
        ("gitlab.example.com", "valid-token", 1, 1001, "concurrency"),
        ("gitlab.example.com:abc", "valid-token", 1, 5, "server"),
    ],
)
def test_invalid_inputs(server, token, project_id, concurrency, field):
    with pytest.raises(ConfigError) as exc:
        validate_inputs(server, token, project_id, concurrency)
    assert exc.value.field == field


def test_range_end_before_start_rejected():
    with pytest.raises(ConfigError) as exc:
        validate_inputs("gitlab.example.com", "t", 1, 5, start_job=10, end_job=9)
    assert exc.value.field == "job_range"


def test_range_needs_both_bounds():
    with pytest.raises(ConfigError) as exc:
        validate_inputs("gitlab.example.com", "t", 1, 5, start_job=10)
    assert exc.value.field == "job_range"


def test_negative_page_limit_rejected():
    with pytest.raises(ConfigError) as exc:
        validate_inputs("gitlab.example.com", "t", 1, 5, page_limit=-1)
    assert exc.value.field == "page_limit"


def test_load_config_modes():
    cfg = load_config("gitlab.example.com", "t", 7, 10)
    assert cfg.mode == "discovery"
    assert cfg.log_file == "artifact-cleaner.log"
    assert cfg.timeout == 30.0

    cfg = load_config("gitlab.example.com", "t", 7, 10, start_job=3, end_job=5, log_file="x.log")
    assert cfg.range_mode
    assert cfg.log_file == "x.log"


def test_job_range_inclusive():
    assert list(job_range(3, 6)) == [3, 4, 5, 6]
    assert len(job_range(1, 1_000_000)) == 1_000_000
    assert list(job_range(4, 4)) == [4]
    with pytest.raises(ConfigError):
        job_range(5, 4)
