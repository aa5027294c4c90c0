"""Logging configuration for the CLI.

Core modules only create module loggers; this is the one place that
attaches a handler. Log records go through Rich on the same console as
the `out` helper so spinners and log lines do not interleave badly.
"""

import logging

from rich.logging import RichHandler

from ucindex.cli.common.output import console

_NOISY_LOGGERS = ("urllib3", "databricks.sdk")


def setup_logging(verbose: bool = False) -> None:
    """Configure the root logger (DEBUG with `verbose`, INFO otherwise)."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=verbose, markup=False)],
        force=True,
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.INFO if verbose else logging.WARNING)
