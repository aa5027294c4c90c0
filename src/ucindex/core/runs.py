"""Core indexing-run orchestration.

One run opens a job, clears the index, walks the catalog, loads the
documents and closes the job. Every failure raised by those steps is
caught once, here, and turned into a failed job; the caller only sees a
`RunOutcome` and decides the process exit status from it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from ucindex.core.documents import SearchDocument
from ucindex.core.jobs import JobStatus, JobTracker
from ucindex.core.walker import BranchFailure, WalkResult

logger = logging.getLogger(__name__)


class Walker(Protocol):
    """Interface of the catalog walker used by a run."""

    def walk(self) -> WalkResult:
        """Crawl the catalog and return the produced documents."""
        ...


class Indexer(Protocol):
    """Interface of the batch indexer used by a run."""

    def clear(self) -> None:
        """Delete the whole index."""
        ...

    def index_all(self, documents: list[SearchDocument], on_batch=None) -> int:
        """Write all documents in batches."""
        ...


@dataclass(frozen=True)
class RunOutcome:
    """
    Result of one indexing run.

    Attributes:
        job_id: Job row of the run, or None if it could not be created.
        status: COMPLETED or FAILED.
        records: Documents produced (completed) or indexed before the failure.
        failures: Branch-local failures seen by the walk.
        truncated: Directory paths not listed because of the depth limit.
        error: Message of the fatal error for failed runs.
    """

    job_id: int | None
    status: JobStatus
    records: int = 0
    failures: tuple[BranchFailure, ...] = ()
    truncated: tuple[str, ...] = ()
    error: str | None = None

    @property
    def ok(self) -> bool:
        """True if the run completed."""
        return self.status == JobStatus.COMPLETED

    @property
    def exit_code(self) -> int:
        """Process exit status for this outcome."""
        return 0 if self.ok else 1


def _error_message(exc: BaseException) -> str:
    """Return a non-empty message for an exception."""
    return str(exc) or type(exc).__name__


def run_indexing(walker: Walker, indexer: Indexer, tracker: JobTracker) -> RunOutcome:
    """
    Execute one full rebuild of the search index.

    Steps: create job -> clear index -> walk catalog -> index documents ->
    complete job. The first exception from any step marks the job failed.

    Args:
        walker: Produces the documents (normally `CatalogWalker`).
        indexer: Writes them (normally `BatchIndexer`).
        tracker: Records the job lifecycle (normally `SqlJobTracker`).

    Returns:
        The outcome of the run. This function does not raise for run
        failures.
    """
    logger.info("Starting Unity Catalog indexing job")
    try:
        job_id = tracker.create()
    except Exception as exc:  # noqa: BLE001
        logger.exception("Could not create indexing job")
        return RunOutcome(job_id=None, status=JobStatus.FAILED, error=_error_message(exc))

    indexed = 0
    result = WalkResult()

    def _progress(done: int, total: int) -> None:
        nonlocal indexed
        indexed = done
        try:
            tracker.record_progress(job_id, done)
        except Exception:  # noqa: BLE001
            logger.warning(
                "Could not record progress of indexing job %s (%d/%d)",
                job_id,
                done,
                total,
                exc_info=True,
            )

    try:
        indexer.clear()
        result = walker.walk()
        indexer.index_all(result.documents, on_batch=_progress)
        tracker.complete(job_id, len(result.documents), result.failures)
    except Exception as exc:  # noqa: BLE001
        message = _error_message(exc)
        logger.exception("Indexing job %s failed", job_id)
        try:
            tracker.fail(job_id, message)
        except Exception:  # noqa: BLE001
            logger.exception("Could not mark indexing job %s as failed", job_id)
        return RunOutcome(
            job_id=job_id,
            status=JobStatus.FAILED,
            records=indexed,
            failures=tuple(result.failures),
            truncated=tuple(result.truncated),
            error=message,
        )

    logger.info(
        "Indexing job %s completed successfully. Processed %d documents.",
        job_id,
        len(result.documents),
    )
    return RunOutcome(
        job_id=job_id,
        status=JobStatus.COMPLETED,
        records=len(result.documents),
        failures=tuple(result.failures),
        truncated=tuple(result.truncated),
    )
