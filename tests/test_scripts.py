from datetime import UTC, datetime, timedelta

import pytest

pytest.importorskip("sqlalchemy")

import run_recover_stuck_jobs
from pycronqueue.common.job import Job
from pycronqueue.storage.sql_storage import SqlStorage


@pytest.fixture
def sqlite_url(tmp_path):
    return f"sqlite:///{tmp_path / 'pycronqueue.db'}"


def _locked_job(storage, worker_name, locked_for):
    now = datetime.now(UTC)
    job = Job(
        payload='{"class": "tests.test_tasks:CronTask", "attributes": {}}',
        schedule="5 1 * * *",
        run_at=now,
        attempts=3,
        locked_by=worker_name,
        locked_at=now - locked_for,
    )
    storage.create(job)
    return job


def test_recover_releases_only_stale_locks(sqlite_url):
    storage = SqlStorage(connection_url=sqlite_url)
    stale = _locked_job(storage, "dead-worker", timedelta(hours=5))
    fresh = _locked_job(storage, "busy-worker", timedelta(minutes=1))

    assert run_recover_stuck_jobs.main(["--connection-url", sqlite_url]) == 0

    released = storage.get_job_data(stale.id)
    assert released.locked_by is None and released.locked_at is None
    assert released.attempts == 3
    assert released.schedule == "5 1 * * *"
    assert storage.get_job_data(fresh.id).locked_by == "busy-worker"


def test_recover_releases_all_locks_of_a_worker(sqlite_url):
    storage = SqlStorage(connection_url=sqlite_url)
    mine = _locked_job(storage, "dead-worker", timedelta(minutes=1))
    other = _locked_job(storage, "busy-worker", timedelta(minutes=1))

    run_recover_stuck_jobs.main(
        ["--connection-url", sqlite_url, "--worker-name", "dead-worker"]
    )

    assert storage.get_job_data(mine.id).locked_by is None
    assert storage.get_job_data(other.id).locked_by == "busy-worker"


def test_recover_requires_a_connection_url(monkeypatch):
    monkeypatch.delenv("PYCRONQUEUE_DATABASE_URL", raising=False)
    with pytest.raises(SystemExit):
        run_recover_stuck_jobs.main([])


def test_worker_name_and_max_age_are_exclusive():
    with pytest.raises(SystemExit):
        run_recover_stuck_jobs.build_arg_parser().parse_args(
            ["--worker-name", "w", "--max-age-seconds", "5"]
        )
