"""Commands that run the indexer or check its dependencies."""

import typer
from sqlalchemy.exc import SQLAlchemyError

from ucindex.cli.common.context import (
    build_run_context,
    build_solr,
    build_tracker,
    load_settings,
)
from ucindex.cli.common.output import out
from ucindex.core.errors import RemoteError
from ucindex.core.runs import run_indexing


def run() -> None:
    """
    Rebuild the search index from Unity Catalog (one full run).
    """
    settings = load_settings()
    ctx = build_run_context(settings)

    out.info(f"Rebuilding {settings.solr.base_url} from Unity Catalog")
    outcome = run_indexing(ctx.walker, ctx.indexer, ctx.tracker)

    out.header("Indexing run")
    out.kv(
        {
            "Job": outcome.job_id if outcome.job_id is not None else "-",
            "Status": outcome.status.value,
            "Documents": outcome.records,
            "Branch failures": len(outcome.failures),
            "Truncated paths": len(outcome.truncated),
        }
    )
    if outcome.failures:
        out.failures_table(outcome.failures)

    if not outcome.ok:
        out.error(f"Indexing job failed: {outcome.error}")
        raise typer.Exit(outcome.exit_code)

    out.success(f"Indexed {outcome.records} document(s).")


def health() -> None:
    """
    Check that Solr and the job store are reachable.
    """
    settings = load_settings()
    healthy = True

    try:
        with out.status("Pinging Solr..."):
            solr_ok = build_solr(settings).ping()
    except RemoteError as exc:
        out.error(f"Solr: {exc}")
        healthy = False
    else:
        if solr_ok:
            out.success(f"Solr: {settings.solr.base_url}")
        else:
            out.error(f"Solr: {settings.solr.base_url} did not answer OK")
            healthy = False

    try:
        with out.status("Connecting to job store..."):
            build_tracker(settings).ping()
    except SQLAlchemyError as exc:
        out.error(f"Job store: {exc}")
        healthy = False
    else:
        out.success("Job store: connected")

    if not healthy:
        raise typer.Exit(1)
