"""Common CLI options for the CLI."""

import typer

VerboseOpt = typer.Option(
    False,
    "--verbose",
    "-v",
    help="Log debug output (every table, column and directory visited)",
)

LimitOpt = typer.Option(
    20,
    "--limit",
    "-n",
    min=1,
    help="Number of most recent jobs to show",
)
