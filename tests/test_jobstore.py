import pytest
from sqlalchemy import update

from ucindex.core.adapters.jobstore import SqlJobTracker, indexing_jobs
from ucindex.core.errors import JobStateError
from ucindex.core.jobs import JOB_TYPE, JobStatus
from ucindex.core.walker import BranchFailure


@pytest.fixture
def tracker(tmp_path) -> SqlJobTracker:
    t = SqlJobTracker(f"sqlite:///{tmp_path / 'jobs.db'}")
    t.ensure_schema()
    return t


def test_create_inserts_running_job(tracker: SqlJobTracker):
    job_id = tracker.create()
    job = tracker.get(job_id)

    assert job is not None
    assert job.job_type == JOB_TYPE
    assert job.status == JobStatus.RUNNING
    assert job.started_at is not None
    assert job.completed_at is None
    assert job.records_processed == 0
    assert job.error_message is None


def test_complete_sets_final_count_and_failures(tracker: SqlJobTracker):
    job_id = tracker.create()
    tracker.record_progress(job_id, 100)
    tracker.complete(
        job_id,
        250,
        [BranchFailure(path="sales.raw", operation="list_volumes", error="reset")],
    )
    job = tracker.get(job_id)

    assert job.status == JobStatus.COMPLETED
    assert job.completed_at is not None
    assert job.records_processed == 250
    assert job.branch_failures == (
        BranchFailure(path="sales.raw", operation="list_volumes", error="reset"),
    )


def test_fail_keeps_last_progress(tracker: SqlJobTracker):
    job_id = tracker.create()
    tracker.record_progress(job_id, 100)
    tracker.fail(job_id, "solr says no")
    job = tracker.get(job_id)

    assert job.status == JobStatus.FAILED
    assert job.records_processed == 100
    assert job.error_message == "solr says no"
    assert job.completed_at is not None


def test_fail_before_any_batch_reports_zero(tracker: SqlJobTracker):
    job_id = tracker.create()
    tracker.fail(job_id, "catalogs unavailable")

    assert tracker.get(job_id).records_processed == 0


def test_terminal_jobs_are_never_reopened(tracker: SqlJobTracker):
    job_id = tracker.create()
    tracker.complete(job_id, 3)

    with pytest.raises(JobStateError):
        tracker.fail(job_id, "late failure")
    with pytest.raises(JobStateError):
        tracker.record_progress(job_id, 5)

    job = tracker.get(job_id)
    assert job.status == JobStatus.COMPLETED
    assert job.records_processed == 3


def test_recent_returns_newest_first(tracker: SqlJobTracker):
    ids = [tracker.create() for _ in range(3)]

    assert [j.id for j in tracker.recent(2)] == [ids[2], ids[1]]


def test_get_unknown_job_returns_none(tracker: SqlJobTracker):
    assert tracker.get(12345) is None


def test_ping(tracker: SqlJobTracker):
    assert tracker.ping() is True


@pytest.mark.parametrize(
    "raw", ["not json", "42", '{"path": "sales"}', '[{"path": "x"}, 7]']
)
def test_malformed_branch_failures_load_as_empty(tracker: SqlJobTracker, raw):
    job_id = tracker.create()
    tracker.complete(job_id, 1)
    with tracker.engine.begin() as conn:
        conn.execute(
            update(indexing_jobs)
            .where(indexing_jobs.c.id == job_id)
            .values(branch_failures=raw)
        )

    (job,) = tracker.recent(1)
    assert job.branch_failures == ()
