"""Core indexing-job domain models.

This module defines the persisted job record (IndexingJob, JobStatus) and
the JobTracker interface used by the orchestrator. It is intentionally free
of database concerns; the SQL implementation lives in
`ucindex.core.adapters.jobstore`.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Iterable, Protocol

from ucindex.core.walker import BranchFailure

JOB_TYPE = "unity_catalog_sync"


class JobStatus(str, Enum):
    """
    Lifecycle states of an indexing job.

    Values:
        PENDING: Row exists but the run has not started.
        RUNNING: The run is in progress.
        COMPLETED: All documents were indexed.
        FAILED: The run aborted; see `error_message`.
    """

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """True for states a job never leaves."""
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


@dataclass(frozen=True)
class IndexingJob:
    """
    One row of the `indexing_jobs` table.

    Attributes:
        id: Identifier assigned by the job store.
        job_type: Always `unity_catalog_sync` for this pipeline.
        status: Current lifecycle state.
        started_at: When the run started.
        completed_at: When the run reached a terminal state, else None.
        records_processed: Documents indexed so far (final count once completed).
        error_message: Message of the fatal error for failed runs.
        branch_failures: Non-fatal failures recorded by a completed run.
        created_at: When the row was inserted.
    """

    id: int
    job_type: str
    status: JobStatus
    started_at: datetime | None = None
    completed_at: datetime | None = None
    records_processed: int = 0
    error_message: str | None = None
    branch_failures: tuple[BranchFailure, ...] = ()
    created_at: datetime | None = None


class JobTracker(Protocol):
    """Interface for recording the lifecycle of indexing runs."""

    def create(self) -> int:
        """Insert a running job and return its id."""
        ...

    def record_progress(self, job_id: int, records_processed: int) -> None:
        """Update the processed-record count of a running job."""
        ...

    def complete(
        self,
        job_id: int,
        records_processed: int,
        failures: Iterable[BranchFailure] = (),
    ) -> None:
        """Mark a running job completed."""
        ...

    def fail(self, job_id: int, error_message: str) -> None:
        """Mark a running job failed."""
        ...
