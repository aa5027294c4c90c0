"""Application context management for the CLI."""

from dataclasses import dataclass

from ucindex.cli.common.exits import die, exit_from_exc
from ucindex.core.adapters.jobstore import SqlJobTracker
from ucindex.core.adapters.solr import SolrAdapter
from ucindex.core.adapters.unitycatalog import UnityCatalogAdapter
from ucindex.core.auth import get_client
from ucindex.core.config import IndexerSettings
from ucindex.core.errors import AuthError, ConfigError
from ucindex.core.indexing import BatchIndexer
from ucindex.core.walker import CatalogWalker


@dataclass
class RunContext:
    """Everything one indexing run needs, wired from the settings."""

    settings: IndexerSettings
    walker: CatalogWalker
    indexer: BatchIndexer
    tracker: SqlJobTracker


def load_settings() -> IndexerSettings:
    """Read settings from the environment, exiting with code 2 if invalid."""
    try:
        return IndexerSettings.from_env()
    except ConfigError as exc:
        exit_from_exc(exc, message=f"Invalid configuration: {exc}", code=2)


def build_tracker(settings: IndexerSettings) -> SqlJobTracker:
    """Return the job tracker for the configured job store."""
    return SqlJobTracker(settings.jobstore.sqlalchemy_url())


def build_solr(settings: IndexerSettings) -> SolrAdapter:
    """Return the Solr adapter for the configured core."""
    return SolrAdapter(settings.solr)


def build_run_context(settings: IndexerSettings) -> RunContext:
    """Build and return the context of one run (Databricks client, Solr, job store).

    Args:
        settings: Configuration loaded from the environment.

    Returns:
        RunContext: Walker, indexer and tracker ready to use.
    """
    try:
        client = get_client(settings)
    except AuthError as exc:
        die(str(exc), code=1)
    walker = CatalogWalker(
        UnityCatalogAdapter(client),
        excluded_catalogs=settings.excluded_catalogs,
        max_depth=settings.max_depth,
        max_parallel=settings.max_parallel,
    )
    indexer = BatchIndexer(build_solr(settings), batch_size=settings.batch_size)
    return RunContext(
        settings=settings,
        walker=walker,
        indexer=indexer,
        tracker=build_tracker(settings),
    )
