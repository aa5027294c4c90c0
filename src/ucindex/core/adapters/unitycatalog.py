from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

import requests
from databricks.sdk import WorkspaceClient
from databricks.sdk.errors import (
    BadRequest,
    DatabricksError,
    DeadlineExceeded,
    InternalError,
    NotFound,
    PermissionDenied,
    ResourceConflict,
    TemporarilyUnavailable,
    TooManyRequests,
    Unauthenticated,
)

from ucindex.core.errors import AuthError, RemoteError
from ucindex.core.uc import (
    UCCatalog,
    UCColumn,
    UCDirectoryEntry,
    UCSchema,
    UCTable,
    UCVolume,
)

# Most specific classes first: several SDK errors subclass NotFound/BadRequest.
_STATUS_BY_ERROR: tuple[tuple[type[DatabricksError], int], ...] = (
    (Unauthenticated, 401),
    (PermissionDenied, 403),
    (NotFound, 404),
    (ResourceConflict, 409),
    (TooManyRequests, 429),
    (BadRequest, 400),
    (InternalError, 500),
    (TemporarilyUnavailable, 503),
    (DeadlineExceeded, 504),
)


def _status_for(exc: DatabricksError) -> int | None:
    """Map an SDK error class back to the HTTP status it was raised for."""
    for error_cls, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_cls):
            return status
    return None


@contextmanager
def _remote_call(what: str) -> Iterator[None]:
    """Translate SDK and transport failures into RemoteError/AuthError."""
    try:
        yield
    except DatabricksError as exc:
        status = _status_for(exc)
        if status in (401, 403):
            raise AuthError(f"{what}: {exc}", status=status) from exc
        raise RemoteError(f"{what}: {exc}", status=status) from exc
    except requests.RequestException as exc:
        raise RemoteError(f"{what}: {exc}") from exc


def _enum_str(value: Any) -> str | None:
    """Return the plain string of an SDK enum (or the value itself)."""
    if value is None:
        return None
    return str(getattr(value, "value", value))


def _tags(obj: Any) -> tuple[str, ...]:
    """Normalize optional tags (list or key/value mapping) to a tuple of strings."""
    raw = getattr(obj, "tags", None)
    if not raw:
        return ()
    if isinstance(raw, dict):
        return tuple(f"{k}={v}" if v else str(k) for k, v in raw.items())
    return tuple(str(t) for t in raw)


class UnityCatalogAdapter:
    """Adapter around Databricks SDK Unity Catalog and Files APIs.

    Every method returns a fully materialized list; SDK pagination is
    consumed inside the call so that failures surface here, not while the
    caller iterates.
    """

    def __init__(self, client: WorkspaceClient) -> None:
        self.client = client

    def list_catalogs(self) -> list[UCCatalog]:
        """List all Unity Catalog catalogs visible to the current principal."""
        out: list[UCCatalog] = []
        with _remote_call("list catalogs"):
            for c in self.client.catalogs.list():
                name = getattr(c, "name", None)
                if not name:
                    continue
                out.append(
                    UCCatalog(
                        name=name,
                        owner=getattr(c, "owner", None),
                        comment=getattr(c, "comment", None),
                        created_at=getattr(c, "created_at", None),
                        updated_at=getattr(c, "updated_at", None),
                        tags=_tags(c),
                    )
                )
        return out

    def list_schemas(self, catalog: str) -> list[UCSchema]:
        """List schemas in a given catalog."""
        out: list[UCSchema] = []
        with _remote_call(f"list schemas of {catalog}"):
            for s in self.client.schemas.list(catalog_name=catalog):
                name = getattr(s, "name", None)
                full_name = getattr(s, "full_name", None)
                catalog_name = getattr(s, "catalog_name", None) or catalog

                if not name and full_name:
                    name = full_name.split(".")[-1]

                if not full_name and name:
                    full_name = f"{catalog_name}.{name}"

                if not name or not full_name:
                    continue

                out.append(
                    UCSchema(
                        full_name=full_name,
                        name=name,
                        catalog_name=catalog_name,
                        owner=getattr(s, "owner", None),
                        comment=getattr(s, "comment", None),
                        created_at=getattr(s, "created_at", None),
                        updated_at=getattr(s, "updated_at", None),
                        tags=_tags(s),
                    )
                )
        return out

    def list_tables(self, catalog: str, schema: str) -> list[UCTable]:
        """List tables in a given catalog.schema."""
        out: list[UCTable] = []
        with _remote_call(f"list tables of {catalog}.{schema}"):
            for t in self.client.tables.list(catalog_name=catalog, schema_name=schema):
                name = getattr(t, "name", None)
                if not name:
                    continue
                out.append(
                    UCTable(
                        full_name=getattr(t, "full_name", None)
                        or f"{catalog}.{schema}.{name}",
                        name=name,
                        catalog_name=catalog,
                        schema_name=schema,
                        owner=getattr(t, "owner", None),
                        table_type=_enum_str(getattr(t, "table_type", None)),
                        storage_format=_enum_str(
                            getattr(t, "data_source_format", None)
                        ),
                        storage_location=getattr(t, "storage_location", None),
                        comment=getattr(t, "comment", None),
                        created_at=getattr(t, "created_at", None),
                        updated_at=getattr(t, "updated_at", None),
                        tags=_tags(t),
                    )
                )
        return out

    def list_columns(self, table_full_name: str) -> list[UCColumn]:
        """List the columns of one table (`catalog.schema.table`)."""
        with _remote_call(f"list columns of {table_full_name}"):
            info = self.client.tables.get(full_name=table_full_name)
        out: list[UCColumn] = []
        for col in getattr(info, "columns", None) or []:
            name = getattr(col, "name", None)
            if not name:
                continue
            out.append(
                UCColumn(
                    name=name,
                    type_name=_enum_str(getattr(col, "type_name", None))
                    or getattr(col, "type_text", None),
                    nullable=getattr(col, "nullable", None),
                    comment=getattr(col, "comment", None),
                    position=getattr(col, "position", None),
                    tags=_tags(col),
                )
            )
        return out

    def list_volumes(self, catalog: str, schema: str) -> list[UCVolume]:
        """List volumes in a given catalog.schema."""
        out: list[UCVolume] = []
        with _remote_call(f"list volumes of {catalog}.{schema}"):
            for v in self.client.volumes.list(catalog_name=catalog, schema_name=schema):
                name = getattr(v, "name", None)
                if not name:
                    continue
                out.append(
                    UCVolume(
                        full_name=getattr(v, "full_name", None)
                        or f"{catalog}.{schema}.{name}",
                        name=name,
                        catalog_name=catalog,
                        schema_name=schema,
                        volume_type=_enum_str(getattr(v, "volume_type", None)),
                        storage_location=getattr(v, "storage_location", None),
                        owner=getattr(v, "owner", None),
                        comment=getattr(v, "comment", None),
                        created_at=getattr(v, "created_at", None),
                        updated_at=getattr(v, "updated_at", None),
                        tags=_tags(v),
                    )
                )
        return out

    def list_directory(self, path: str) -> list[UCDirectoryEntry]:
        """List the files and subdirectories directly under a volume path."""
        out: list[UCDirectoryEntry] = []
        with _remote_call(f"list directory {path}"):
            for e in self.client.files.list_directory_contents(path):
                entry_path = getattr(e, "path", None)
                if not entry_path:
                    continue
                name = getattr(e, "name", None) or entry_path.rstrip("/").rsplit("/", 1)[-1]
                out.append(
                    UCDirectoryEntry(
                        name=name,
                        path=entry_path,
                        is_directory=bool(getattr(e, "is_directory", False)),
                        size=getattr(e, "file_size", None),
                        modification_time=getattr(e, "last_modified", None),
                    )
                )
        return out
