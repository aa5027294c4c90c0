"""Commands for inspecting the indexing job table."""

import typer
from sqlalchemy.exc import SQLAlchemyError

from ucindex.cli.common.context import build_tracker, load_settings
from ucindex.cli.common.exits import exit_from_exc
from ucindex.cli.common.options import LimitOpt
from ucindex.cli.common.output import out

app = typer.Typer(
    help="Inspect indexing jobs",
    no_args_is_help=True,
)


@app.command("list")
def list_jobs(limit: int = LimitOpt):
    """
    Show the most recent indexing jobs.
    """
    tracker = build_tracker(load_settings())

    try:
        with out.status("Loading jobs..."):
            jobs = tracker.recent(limit)
    except SQLAlchemyError as exc:
        exit_from_exc(exc, message=f"Could not read indexing jobs: {exc}", code=1)

    if not jobs:
        out.warn("No indexing jobs found.")
        raise typer.Exit(0)

    out.jobs_table(jobs)


@app.command("init-db")
def init_db():
    """
    Create the indexing_jobs table if it does not exist.
    """
    tracker = build_tracker(load_settings())

    try:
        with out.status("Creating indexing_jobs table..."):
            tracker.ensure_schema()
    except SQLAlchemyError as exc:
        exit_from_exc(exc, message=f"Could not create indexing_jobs: {exc}", code=1)

    out.success("indexing_jobs table is ready.")
