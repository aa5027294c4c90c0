"""Search documents built from Unity Catalog entities.

Every entity kind is flattened into the same `SearchDocument` shape so the
Solr schema stays uniform: optional text fields are always present (empty
string when missing) and only the type-specific extras are omitted for
kinds they do not apply to.
"""

from __future__ import annotations

import logging
import re
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from ucindex.core.uc import (
    UCCatalog,
    UCColumn,
    UCDirectoryEntry,
    UCSchema,
    UCTable,
    UCVolume,
)

logger = logging.getLogger(__name__)

_UNSAFE_ID_CHARS =re.compile(r"[^A-Za-z0-9_-]")


class DocumentType(str, Enum):
    """Kinds of entities written to the index."""

    CATALOG = "catalog"
    SCHEMA = "schema"
    TABLE = "table"
    COLUMN = "column"
    VOLUME = "volume"
    FILE = "file"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class SearchDocument:
    """One flattened record of the search index."""

    id: str
    name: str
    full_name: str
    type: DocumentType
    catalog_name: str = ""
    schema_name: str = ""
    table_name: str = ""
    volume_name: str = ""
    file_name: str = ""
    column_name: str = ""
    description: str = ""
    owner: str = ""
    created_at: str = ""
    updated_at: str = ""
    tags: tuple[str, ...] = ()
    file_path: str | None = None
    file_size: int | None = None
    is_directory: bool | None = None
    data_type: str | None = None
    is_nullable: bool | None = None
    storage_location: str | None = None
    storage_format: str | None = None
    table_type: str | None = None
    volume_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON payload sent to Solr."""
        payload = {k: v for k, v in asdict(self).items() if v is not None}
        payload["type"] = self.type.value
        payload["tags"] = list(self.tags)
        return payload


def _iso(dt: datetime) -> str:
    """Render an aware datetime as UTC ISO-8601 with a `Z` suffix."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


def format_timestamp(value: Any, *, now: datetime | None = None) -> str:
    """
    Normalize a source timestamp to an ISO-8601 string.

    Numbers are epoch milliseconds, strings are passed through unchanged and
    datetimes are rendered in UTC. A missing or out-of-range value falls
    back to `now` (the current time by default) so that documents never
    carry a null date.
    """
    if isinstance(value, bool):
        value = None
    if isinstance(value, (int, float)):
        try:
            return _iso(datetime.fromtimestamp(value / 1000, tz=timezone.utc))
        except (ValueError, OverflowError, OSError):
            logger.debug("Timestamp %r is out of range, using current time", value)
            value = None
    if isinstance(value, str) and value:
        return value
    if isinstance(value, datetime):
        return _iso(value)
    return _iso(now or datetime.now(timezone.utc))


def make_document_id(doc_type: DocumentType | str, *parts: str) -> str:
    """Join the type tag and ancestor identifiers, keeping only `[A-Za-z0-9_-]`."""
    tag = doc_type.value if isinstance(doc_type, DocumentType) else doc_type
    raw = "_".join([tag, *parts])
    return _UNSAFE_ID_CHARS.sub("", raw)


def build_catalog_document(catalog: UCCatalog) -> SearchDocument:
    """Build the document for one catalog."""
    return SearchDocument(
        id=make_document_id(DocumentType.CATALOG, catalog.name),
        name=catalog.name,
        full_name=catalog.name,
        type=DocumentType.CATALOG,
        catalog_name=catalog.name,
        description=catalog.comment or "",
        owner=catalog.owner or "",
        created_at=format_timestamp(catalog.created_at),
        updated_at=format_timestamp(catalog.updated_at),
        tags=catalog.tags,
    )


def build_schema_document(schema: UCSchema) -> SearchDocument:
    """Build the document for one schema."""
    return SearchDocument(
        id=make_document_id(DocumentType.SCHEMA, schema.catalog_name, schema.name),
        name=schema.name,
        full_name=f"{schema.catalog_name}.{schema.name}",
        type=DocumentType.SCHEMA,
        catalog_name=schema.catalog_name,
        schema_name=schema.name,
        description=schema.comment or "",
        owner=schema.owner or "",
        created_at=format_timestamp(schema.created_at),
        updated_at=format_timestamp(schema.updated_at),
        tags=schema.tags,
    )


def build_table_document(table: UCTable) -> SearchDocument:
    """Build the document for one table."""
    return SearchDocument(
        id=make_document_id(
            DocumentType.TABLE, table.catalog_name, table.schema_name, table.name
        ),
        name=table.name,
        full_name=f"{table.catalog_name}.{table.schema_name}.{table.name}",
        type=DocumentType.TABLE,
        catalog_name=table.catalog_name,
        schema_name=table.schema_name,
        table_name=table.name,
        description=table.comment or "",
        owner=table.owner or "",
        created_at=format_timestamp(table.created_at),
        updated_at=format_timestamp(table.updated_at),
        tags=table.tags,
        storage_location=table.storage_location or "",
        storage_format=table.storage_format or "",
        table_type=table.table_type or "",
    )


def build_column_document(table: UCTable, column: UCColumn) -> SearchDocument:
    """
    Build the document for one column of `table`.

    Columns have no timestamps of their own; they inherit the table's so
    that a rebuild over an unchanged catalog yields identical documents.
    """
    return SearchDocument(
        id=make_document_id(
            DocumentType.COLUMN,
            table.catalog_name,
            table.schema_name,
            table.name,
            column.name,
        ),
        name=column.name,
        full_name=(
            f"{table.catalog_name}.{table.schema_name}.{table.name}.{column.name}"
        ),
        type=DocumentType.COLUMN,
        catalog_name=table.catalog_name,
        schema_name=table.schema_name,
        table_name=table.name,
        column_name=column.name,
        description=column.comment or "",
        owner=table.owner or "",
        created_at=format_timestamp(table.created_at),
        updated_at=format_timestamp(table.updated_at),
        tags=column.tags,
        data_type=column.type_name or "",
        is_nullable=bool(column.nullable),
    )


def build_volume_document(volume: UCVolume) -> SearchDocument:
    """Build the document for one volume."""
    return SearchDocument(
        id=make_document_id(
            DocumentType.VOLUME, volume.catalog_name, volume.schema_name, volume.name
        ),
        name=volume.name,
        full_name=f"{volume.catalog_name}.{volume.schema_name}.{volume.name}",
        type=DocumentType.VOLUME,
        catalog_name=volume.catalog_name,
        schema_name=volume.schema_name,
        volume_name=volume.name,
        description=volume.comment or "",
        owner=volume.owner or "",
        created_at=format_timestamp(volume.created_at),
        updated_at=format_timestamp(volume.updated_at),
        tags=volume.tags,
        storage_location=volume.storage_location or "",
        volume_type=volume.volume_type or "",
    )


def build_file_document(
    volume: UCVolume, entry: UCDirectoryEntry, relative_path: str
) -> SearchDocument:
    """
    Build the document for a file or directory inside `volume`.

    `relative_path` is the entry path below the volume root, without a
    leading or trailing slash (e.g. `sub/a.csv`).
    """
    doc_type = DocumentType.DIRECTORY if entry.is_directory else DocumentType.FILE
    kind = "Directory" if entry.is_directory else "File"
    modified = format_timestamp(entry.modification_time)
    return SearchDocument(
        id=make_document_id(
            doc_type,
            volume.catalog_name,
            volume.schema_name,
            volume.name,
            relative_path,
        ),
        name=entry.name,
        full_name=(
            f"{volume.catalog_name}.{volume.schema_name}.{volume.name}/{relative_path}"
        ),
        type=doc_type,
        catalog_name=volume.catalog_name,
        schema_name=volume.schema_name,
        volume_name=volume.name,
        file_name=entry.name,
        description=f"{kind} in volume {volume.name}",
        created_at=modified,
        updated_at=modified,
        file_path=relative_path,
        file_size=entry.size or 0,
        is_directory=entry.is_directory,
    )
