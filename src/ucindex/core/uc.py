"""Core domain models for Unity Catalog.

These models represent Unity Catalog entities in a simple, immutable form.
They are intentionally free of Databricks SDK types and UI/CLI concerns.
Each entity carries the names of its ancestors so that documents can be
built from a single object.
"""

from __future__ import annotations

from dataclasses import dataclass

# Epoch milliseconds from the REST API, or an already formatted string.
Timestamp = int | str | None


@dataclass(frozen=True)
class UCCatalog:
    """Lightweight representation of a Unity Catalog catalog."""

    name: str
    owner: str | None = None
    comment: str | None = None
    created_at: Timestamp = None
    updated_at: Timestamp = None
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class UCSchema:
    """Lightweight representation of a Unity Catalog schema."""

    full_name: str
    name: str
    catalog_name: str
    owner: str | None = None
    comment: str | None = None
    created_at: Timestamp = None
    updated_at: Timestamp = None
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class UCTable:
    """Lightweight representation of a Unity Catalog table."""

    full_name: str
    name: str
    catalog_name: str
    schema_name: str
    owner: str | None = None
    table_type: str | None = None
    storage_format: str | None = None
    storage_location: str | None = None
    comment: str | None = None
    created_at: Timestamp = None
    updated_at: Timestamp = None
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class UCColumn:
    """A column of a Unity Catalog table."""

    name: str
    type_name: str | None = None
    nullable: bool | None = None
    comment: str | None = None
    position: int | None = None
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class UCVolume:
    """Lightweight representation of a Unity Catalog volume."""

    full_name: str
    name: str
    catalog_name: str
    schema_name: str
    volume_type: str | None = None
    storage_location: str | None = None
    owner: str | None = None
    comment: str | None = None
    created_at: Timestamp = None
    updated_at: Timestamp = None
    tags: tuple[str, ...] = ()

    @property
    def root_path(self) -> str:
        """Files API path of the volume root, always with a trailing slash."""
        return f"/Volumes/{self.catalog_name}/{self.schema_name}/{self.name}/"


@dataclass(frozen=True)
class UCDirectoryEntry:
    """A file or directory returned by a volume directory listing."""

    name: str
    path: str
    is_directory: bool = False
    size: int | None = None
    modification_time: Timestamp = None
