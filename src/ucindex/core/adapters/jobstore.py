from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Iterable

from sqlalchemy import (
    Column,
    DateTime,
    Enum,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    func,
    insert,
    select,
    text,
    update,
)
from sqlalchemy.engine import URL, Engine
from sqlalchemy.pool import NullPool

from ucindex.core.errors import JobStateError
from ucindex.core.jobs import JOB_TYPE, IndexingJob, JobStatus
from ucindex.core.walker import BranchFailure

metadata = MetaData()

indexing_jobs = Table(
    "indexing_jobs",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("job_type", String(50), nullable=False),
    Column(
        "status",
        Enum(*(s.value for s in JobStatus), name="indexing_job_status"),
        nullable=False,
        server_default=JobStatus.PENDING.value,
    ),
    Column("started_at", DateTime, nullable=True),
    Column("completed_at", DateTime, nullable=True),
    Column("records_processed", Integer, nullable=False, server_default="0"),
    Column("error_message", Text, nullable=True),
    Column("branch_failures", Text, nullable=True),
    Column("created_at", DateTime, nullable=False, server_default=func.now()),
)


def _utcnow() -> datetime:
    """Naive UTC timestamp, matching MySQL TIMESTAMP columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _load_failures(raw: str | None) -> tuple[BranchFailure, ...]:
    """Decode the `branch_failures` column."""
    if not raw:
        return ()
    try:
        items = json.loads(raw)
    except json.JSONDecodeError:
        return ()
    if not isinstance(items, list):
        return ()
    out = []
    for item in items:
        try:
            out.append(
                BranchFailure(
                    path=str(item["path"]),
                    operation=str(item["operation"]),
                    error=str(item["error"]),
                    status=item.get("status"),
                )
            )
        except (KeyError, TypeError):
            continue
    return tuple(out)


class SqlJobTracker:
    """
    Job tracker backed by the `indexing_jobs` table.

    The engine uses `NullPool`: every operation opens its own connection and
    closes it when the transaction ends, so no handle outlives a call.
    """

    def __init__(self, url: str | URL, *, engine: Engine | None = None) -> None:
        self.engine = engine or create_engine(url, poolclass=NullPool)

    def ensure_schema(self) -> None:
        """Create the `indexing_jobs` table if it does not exist."""
        metadata.create_all(self.engine)

    def ping(self) -> bool:
        """Return True if the job store answers a trivial query."""
        with self.engine.connect() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1

    def create(self) -> int:
        """Insert a running job and return its id."""
        with self.engine.begin() as conn:
            result = conn.execute(
                insert(indexing_jobs).values(
                    job_type=JOB_TYPE,
                    status=JobStatus.RUNNING.value,
                    started_at=_utcnow(),
                    records_processed=0,
                )
            )
            return int(result.inserted_primary_key[0])

    def _update_running(self, job_id: int, **values: Any) -> None:
        """Update a job that is still running, refusing terminal jobs."""
        with self.engine.begin() as conn:
            result = conn.execute(
                update(indexing_jobs)
                .where(
                    indexing_jobs.c.id == job_id,
                    indexing_jobs.c.status == JobStatus.RUNNING.value,
                )
                .values(**values)
            )
            if result.rowcount == 0:
                raise JobStateError(f"Indexing job {job_id} is not running.")

    def record_progress(self, job_id: int, records_processed: int) -> None:
        """Update the processed-record count of a running job."""
        self._update_running(job_id, records_processed=records_processed)

    def complete(
        self,
        job_id: int,
        records_processed: int,
        failures: Iterable[BranchFailure] = (),
    ) -> None:
        """Mark a running job completed with its final document count."""
        items = [f.to_dict() for f in failures]
        self._update_running(
            job_id,
            status=JobStatus.COMPLETED.value,
            completed_at=_utcnow(),
            records_processed=records_processed,
            branch_failures=json.dumps(items) if items else None,
        )

    def fail(self, job_id: int, error_message: str) -> None:
        """Mark a running job failed; `records_processed` keeps its last value."""
        self._update_running(
            job_id,
            status=JobStatus.FAILED.value,
            completed_at=_utcnow(),
            error_message=error_message,
        )

    def get(self, job_id: int) -> IndexingJob | None:
        """Return one job, or None if it does not exist."""
        with self.engine.connect() as conn:
            row = conn.execute(
                select(indexing_jobs).where(indexing_jobs.c.id == job_id)
            ).first()
        return self._to_job(row) if row is not None else None

    def recent(self, limit: int = 20) -> list[IndexingJob]:
        """Return the newest jobs first."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                select(indexing_jobs).order_by(indexing_jobs.c.id.desc()).limit(limit)
            ).all()
        return [self._to_job(r) for r in rows]

    @staticmethod
    def _to_job(row: Any) -> IndexingJob:
        """Convert a result row into an IndexingJob."""
        m = row._mapping
        return IndexingJob(
            id=int(m["id"]),
            job_type=m["job_type"],
            status=JobStatus(m["status"]),
            started_at=m["started_at"],
            completed_at=m["completed_at"],
            records_processed=int(m["records_processed"] or 0),
            error_message=m["error_message"],
            branch_failures=_load_failures(m["branch_failures"]),
            created_at=m["created_at"],
        )
