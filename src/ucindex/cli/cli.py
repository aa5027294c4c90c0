"""CLI application for the Unity Catalog search indexer."""

import typer

from ucindex.cli.commands import run as run_commands
from ucindex.cli.commands.jobs import app as jobs_app
from ucindex.cli.common.logs import setup_logging
from ucindex.cli.common.options import VerboseOpt

app = typer.Typer(
    help="ucindex - index Unity Catalog metadata into Solr",
    no_args_is_help=True,
)


@app.callback()
def _init(verbose: bool = VerboseOpt):
    """Configure logging for every command."""
    setup_logging(verbose)


app.command("run")(run_commands.run)
app.command("health")(run_commands.health)
app.add_typer(jobs_app, name="jobs")


if __name__ == "__main__":
    app()
