"""Runtime configuration for the indexer.

All settings are read once from the environment into immutable values and
passed explicitly to the components that need them. Nothing below reads
`os.environ` after `IndexerSettings.from_env` returns.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping

from sqlalchemy.engine import URL

from ucindex.core.errors import ConfigError

DEFAULT_MAX_DEPTH = 10
DEFAULT_BATCH_SIZE = 100
DEFAULT_EXCLUDED_CATALOGS = ("system", "hive_metastore")


def _get(environ: Mapping[str, str], name: str, default: str | None = None) -> str | None:
    """Return a stripped env value, treating empty strings as unset."""
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def _get_int(
    environ: Mapping[str, str], name: str, default: int, *, minimum: int = 1
) -> int:
    """Return an integer env value, validating its lower bound."""
    raw = _get(environ, name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}.") from exc
    if value < minimum:
        raise ConfigError(f"{name} must be >= {minimum}, got {value}.")
    return value


def _get_list(
    environ: Mapping[str, str], name: str, default: tuple[str, ...]
) -> tuple[str, ...]:
    """Return a comma-separated env value as a tuple of non-empty items."""
    raw = _get(environ, name)
    if raw is None:
        return default
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class SolrSettings:
    """Location of the Solr core that receives search documents."""

    host: str = "localhost"
    port: int = 8983
    core: str = "unity_catalog"
    timeout: int = 30

    @property
    def base_url(self) -> str:
        """Return the core URL, e.g. `http://localhost:8983/solr/unity_catalog`."""
        return f"http://{self.host}:{self.port}/solr/{self.core}"


@dataclass(frozen=True)
class JobStoreSettings:
    """Connection parameters for the `indexing_jobs` table."""

    host: str = "localhost"
    port: int = 3306
    user: str = "root"
    password: str = ""
    database: str = "unity_catalog"
    url: str | None = None

    def sqlalchemy_url(self) -> str | URL:
        """Return the SQLAlchemy URL (explicit `url` wins over MySQL fields)."""
        if self.url:
            return self.url
        return URL.create(
            "mysql+pymysql",
            username=self.user,
            password=self.password or None,
            host=self.host,
            port=self.port,
            database=self.database,
            query={"charset": "utf8mb4"},
        )


@dataclass(frozen=True)
class IndexerSettings:
    """Complete configuration of one indexing run."""

    databricks_host: str | None = None
    databricks_token: str | None = None
    databricks_profile: str | None = None
    solr: SolrSettings = field(default_factory=SolrSettings)
    jobstore: JobStoreSettings = field(default_factory=JobStoreSettings)
    max_depth: int = DEFAULT_MAX_DEPTH
    batch_size: int = DEFAULT_BATCH_SIZE
    max_parallel: int = 1
    excluded_catalogs: tuple[str, ...] = DEFAULT_EXCLUDED_CATALOGS

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> IndexerSettings:
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read from. Defaults to `os.environ`.

        Raises:
            ConfigError: If a numeric variable is malformed or out of range.
        """
        env = os.environ if environ is None else environ

        solr = SolrSettings(
            host=_get(env, "SOLR_HOST", "localhost"),
            port=_get_int(env, "SOLR_PORT", 8983),
            core=_get(env, "SOLR_CORE", "unity_catalog"),
            timeout=_get_int(env, "SOLR_TIMEOUT", 30),
        )
        jobstore = JobStoreSettings(
            host=_get(env, "MYSQL_HOST", "localhost"),
            port=_get_int(env, "MYSQL_PORT", 3306),
            user=_get(env, "MYSQL_USER", "root"),
            password=_get(env, "MYSQL_PASSWORD", ""),
            database=_get(env, "MYSQL_DB", "unity_catalog"),
            url=_get(env, "JOBSTORE_URL"),
        )
        return cls(
            databricks_host=_get(env, "DATABRICKS_HOST")
            or _get(env, "DATABRICKS_WORKSPACE_URL"),
            databricks_token=_get(env, "DATABRICKS_TOKEN"),
            databricks_profile=_get(env, "DATABRICKS_CONFIG_PROFILE"),
            solr=solr,
            jobstore=jobstore,
            max_depth=_get_int(env, "UCINDEX_MAX_DEPTH", DEFAULT_MAX_DEPTH),
            batch_size=_get_int(env, "UCINDEX_BATCH_SIZE", DEFAULT_BATCH_SIZE),
            max_parallel=_get_int(env, "UCINDEX_PARALLEL", 1),
            excluded_catalogs=_get_list(
                env, "UCINDEX_EXCLUDED_CATALOGS", DEFAULT_EXCLUDED_CATALOGS
            ),
        )
