"""Batched writes of search documents into the index.

The index is rebuilt from scratch on every run: `clear()` deletes all
documents and commits, then `index_all()` writes the new documents batch
by batch with a commit per batch. A failed batch stops the load; the
batches written before it stay committed.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Iterator, Mapping, Protocol, Sequence, TypeVar

from ucindex.core.config import DEFAULT_BATCH_SIZE
from ucindex.core.documents import SearchDocument
from ucindex.core.errors import IndexWriteError, RemoteError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SearchIndex(Protocol):
    """Interface for the index operations used by the batch indexer."""

    def delete_all(self) -> None:
        """Delete every document and commit."""
        ...

    def add_documents(self, documents: list[Mapping[str, Any]]) -> None:
        """Write documents and commit."""
        ...


def iter_batches(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Yield consecutive slices of at most `size` items."""
    if size < 1:
        raise ValueError("batch size must be >= 1")
    for start in range(0, len(items), size):
        yield items[start : start + size]


class BatchIndexer:
    """Load search documents into the index in fixed-size batches."""

    def __init__(self, index: SearchIndex, batch_size: int = DEFAULT_BATCH_SIZE) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self.index = index
        self.batch_size = batch_size

    def clear(self) -> None:
        """Delete the whole index before a rebuild."""
        logger.info("Clearing search index")
        self.index.delete_all()

    def index_all(
        self,
        documents: Sequence[SearchDocument],
        on_batch: Callable[[int, int], None] | None = None,
    ) -> int:
        """
        Write all documents, one committed batch at a time.

        Args:
            documents: Documents to write, in order.
            on_batch: Called with (documents written so far, total) after
                      each successful batch.

        Returns:
            The number of documents written.

        Raises:
            IndexWriteError: On the first batch that cannot be written. The
                             remaining batches are not attempted.
        """
        total = len(documents)
        batch_count = -(-total // self.batch_size)
        written = 0

        for number, batch in enumerate(iter_batches(documents, self.batch_size), start=1):
            payload = [doc.to_dict() for doc in batch]
            try:
                self.index.add_documents(payload)
            except RemoteError as exc:
                logger.error(
                    "Indexing batch %d/%d failed: %s\nSample document: %s",
                    number,
                    batch_count,
                    exc,
                    json.dumps(payload[0], indent=2),
                )
                raise IndexWriteError(
                    f"Batch {number}/{batch_count} could not be indexed: {exc}",
                    batch_number=number,
                    status=exc.status,
                ) from exc

            written += len(batch)
            logger.info("Indexed batch %d/%d", number, batch_count)
            if on_batch is not None:
                on_batch(written, total)

        return written
