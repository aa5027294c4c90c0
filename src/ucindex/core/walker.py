"""Depth-first crawl of Unity Catalog into search documents.

The walker visits catalogs, schemas, volumes (with their directory trees)
and tables (with their columns) and turns every entity into a
`SearchDocument`. Only the top-level catalog listing may abort the crawl;
every deeper failure is caught at its own level, logged, recorded as a
`BranchFailure` and contributes no documents.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from typing import Iterable, Protocol

from ucindex.core.config import DEFAULT_EXCLUDED_CATALOGS, DEFAULT_MAX_DEPTH
from ucindex.core.documents import (
    SearchDocument,
    build_catalog_document,
    build_column_document,
    build_file_document,
    build_schema_document,
    build_table_document,
    build_volume_document,
)
from ucindex.core.errors import RemoteError
from ucindex.core.uc import (
    UCCatalog,
    UCColumn,
    UCDirectoryEntry,
    UCSchema,
    UCTable,
    UCVolume,
)

logger = logging.getLogger(__name__)

SKIPPED_SCHEMAS = frozenset({"information_schema"})


class MetadataSource(Protocol):
    """Interface for the catalog listings used by the walker."""

    def list_catalogs(self) -> list[UCCatalog]:
        """Return all visible catalogs."""
        ...

    def list_schemas(self, catalog: str) -> list[UCSchema]:
        """Return the schemas of a catalog."""
        ...

    def list_tables(self, catalog: str, schema: str) -> list[UCTable]:
        """Return the tables of a schema."""
        ...

    def list_columns(self, table_full_name: str) -> list[UCColumn]:
        """Return the columns of a table."""
        ...

    def list_volumes(self, catalog: str, schema: str) -> list[UCVolume]:
        """Return the volumes of a schema."""
        ...

    def list_directory(self, path: str) -> list[UCDirectoryEntry]:
        """Return the entries directly under a volume path."""
        ...


@dataclass(frozen=True)
class BranchFailure:
    """A non-fatal failure confined to one subtree of the crawl."""

    path: str
    operation: str
    error: str
    status: int | None = None

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-serializable form for the job record."""
        return {
            "path": self.path,
            "operation": self.operation,
            "error": self.error,
            "status": self.status,
        }


@dataclass
class WalkResult:
    """Documents produced by a (partial) walk plus what went wrong on the way."""

    documents: list[SearchDocument] = field(default_factory=list)
    failures: list[BranchFailure] = field(default_factory=list)
    truncated: list[str] = field(default_factory=list)

    def merge(self, other: WalkResult) -> None:
        """Append another result, keeping its order."""
        self.documents.extend(other.documents)
        self.failures.extend(other.failures)
        self.truncated.extend(other.truncated)

    def fail(self, path: str, operation: str, exc: RemoteError) -> None:
        """Record a branch-local failure."""
        self.failures.append(
            BranchFailure(path=path, operation=operation, error=str(exc), status=exc.status)
        )


def relative_volume_path(volume: UCVolume, entry: UCDirectoryEntry, parent: str) -> str:
    """
    Return the path of `entry` below the volume root, without edge slashes.

    Falls back to `<parent>/<name>` when the API returns a path that is not
    under the volume root.
    """
    root = volume.root_path
    if entry.path.startswith(root):
        rel = entry.path[len(root):]
    else:
        rel = f"{parent}/{entry.name}" if parent else entry.name
    return rel.strip("/")


def ensure_unique_ids(documents: Iterable[SearchDocument]) -> list[SearchDocument]:
    """
    Return the documents with duplicate ids disambiguated.

    Sanitizing ids can collapse distinct names (`a.csv` and `acsv`) onto the
    same id. Later duplicates get a `-2`, `-3`, ... suffix in emission order,
    which is stable between runs over the same catalog.
    """
    seen: set[str] = set()
    out: list[SearchDocument] = []
    for doc in documents:
        doc_id = doc.id
        n = 1
        while doc_id in seen:
            n += 1
            doc_id = f"{doc.id}-{n}"
        if doc_id != doc.id:
            logger.warning(
                "Duplicate document id %s for %s, using %s", doc.id, doc.full_name, doc_id
            )
            doc = replace(doc, id=doc_id)
        seen.add(doc_id)
        out.append(doc)
    return out


class CatalogWalker:
    """
    Crawl Unity Catalog depth-first and build search documents.

    Args:
        source: Metadata adapter (normally `UnityCatalogAdapter`).
        excluded_catalogs: Catalog names that are never visited.
        max_depth: Maximum directory depth listed below a volume root.
        max_parallel: Number of schema branches walked concurrently per
                      catalog. 1 keeps the crawl strictly sequential.
    """

    def __init__(
        self,
        source: MetadataSource,
        *,
        excluded_catalogs: Iterable[str] = DEFAULT_EXCLUDED_CATALOGS,
        max_depth: int = DEFAULT_MAX_DEPTH,
        max_parallel: int = 1,
    ) -> None:
        if max_depth < 1:
            raise ValueError("max_depth must be >= 1")
        if max_parallel < 1:
            raise ValueError("max_parallel must be >= 1")
        self.source = source
        self.excluded_catalogs = frozenset(excluded_catalogs)
        self.max_depth = max_depth
        self.max_parallel = max_parallel

    def walk(self) -> WalkResult:
        """
        Crawl every visible catalog.

        Raises:
            RemoteError: If the catalogs themselves cannot be listed.
        """
        result = WalkResult()
        for catalog in self.source.list_catalogs():
            if catalog.name in self.excluded_catalogs:
                logger.info("Skipping excluded catalog: %s", catalog.name)
                continue
            result.merge(self.walk_catalog(catalog))

        result.documents = ensure_unique_ids(result.documents)
        logger.info(
            "Catalog walk finished: %d documents, %d branch failures, %d truncated paths",
            len(result.documents),
            len(result.failures),
            len(result.truncated),
        )
        return result

    def walk_catalog(self, catalog: UCCatalog) -> WalkResult:
        """Emit the catalog document and walk its schemas."""
        logger.info("Processing catalog: %s", catalog.name)
        result = WalkResult(documents=[build_catalog_document(catalog)])

        try:
            schemas = self.source.list_schemas(catalog.name)
        except RemoteError as exc:
            logger.warning("Error fetching schemas for %s: %s", catalog.name, exc)
            result.fail(catalog.name, "list_schemas", exc)
            return result

        kept = []
        for schema in schemas:
            if schema.name in SKIPPED_SCHEMAS:
                logger.debug("Skipping %s.%s", catalog.name, schema.name)
                continue
            kept.append(schema)

        if self.max_parallel == 1 or len(kept) < 2:
            for schema in kept:
                result.merge(self.walk_schema(schema))
            return result

        with ThreadPoolExecutor(max_workers=self.max_parallel) as pool:
            futures = [pool.submit(self.walk_schema, schema) for schema in kept]
            # Merge in submission order so output matches the sequential walk.
            for f in futures:
                result.merge(f.result())
        return result

    def walk_schema(self, schema: UCSchema) -> WalkResult:
        """Emit the schema document, then its volumes and tables independently."""
        logger.info("Processing schema: %s", schema.full_name)
        result = WalkResult(documents=[build_schema_document(schema)])

        try:
            volumes = self.source.list_volumes(schema.catalog_name, schema.name)
        except RemoteError as exc:
            logger.warning("Error fetching volumes for %s: %s", schema.full_name, exc)
            result.fail(schema.full_name, "list_volumes", exc)
            volumes = []
        for volume in volumes:
            result.merge(self.walk_volume(volume))

        try:
            tables = self.source.list_tables(schema.catalog_name, schema.name)
        except RemoteError as exc:
            logger.warning("Error fetching tables for %s: %s", schema.full_name, exc)
            result.fail(schema.full_name, "list_tables", exc)
            tables = []
        for table in tables:
            result.merge(self.walk_table(table))

        return result

    def walk_volume(self, volume: UCVolume) -> WalkResult:
        """
        Emit the volume document and its directory tree.

        The tree is walked with an explicit stack instead of recursion.
        Paths at `max_depth` are recorded as truncated and not listed.
        """
        logger.info("Processing volume: %s", volume.full_name)
        result = WalkResult(documents=[build_volume_document(volume)])
        before = len(result.documents)

        # (path to list, its path relative to the volume root, depth)
        stack: list[tuple[str, str, int]] = [(volume.root_path, "", 0)]
        while stack:
            path, rel_dir, depth = stack.pop()
            if depth >= self.max_depth:
                logger.warning("Max depth reached for %s, skipping deeper traversal", path)
                result.truncated.append(path)
                continue

            try:
                entries = self.source.list_directory(path)
            except RemoteError as exc:
                if exc.not_found:
                    logger.debug("Path not accessible: %s (404)", path)
                else:
                    logger.warning("Error fetching files from %s: %s", path, exc)
                    result.fail(path, "list_directory", exc)
                continue

            subdirs: list[tuple[str, str, int]] = []
            for entry in entries:
                rel = relative_volume_path(volume, entry, rel_dir)
                if not rel:
                    continue
                result.documents.append(build_file_document(volume, entry, rel))
                if entry.is_directory:
                    sub_path = entry.path if entry.path.endswith("/") else f"{entry.path}/"
                    subdirs.append((sub_path, rel, depth + 1))
            # Reversed so the first subdirectory is listed next.
            stack.extend(reversed(subdirs))

        logger.info(
            "Indexed %d files/directories for volume %s",
            len(result.documents) - before,
            volume.full_name,
        )
        return result

    def walk_table(self, table: UCTable) -> WalkResult:
        """Emit the table document and, when available, its column documents."""
        logger.debug("Processing table: %s", table.full_name)
        result = WalkResult(documents=[build_table_document(table)])

        try:
            columns = self.source.list_columns(table.full_name)
        except RemoteError as exc:
            if exc.not_found:
                logger.debug("Columns not available for %s (404)", table.full_name)
            else:
                logger.warning("Error fetching columns for %s: %s", table.full_name, exc)
                result.fail(table.full_name, "list_columns", exc)
            return result

        result.documents.extend(build_column_document(table, c) for c in columns)
        logger.debug("Indexed %d columns for %s", len(columns), table.full_name)
        return result
