"""Output formatting utilities for the CLI."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from rich.console import Console
from rich.table import Table
from rich.theme import Theme

_THEME = Theme(
    {
        "ok": "bold green",
        "warn": "yellow",
        "err": "bold red",
        "title": "bold cyan",
        "meta": "dim",
    }
)

console = Console(theme=_THEME)

_STATUS_STYLES = {
    "completed": "ok",
    "failed": "err",
    "running": "warn",
    "pending": "meta",
}


def _fmt_dt(value: Any) -> str:
    """Format an optional datetime for table cells."""
    if value is None:
        return ""
    return value.strftime("%Y-%m-%d %H:%M:%S") if hasattr(value, "strftime") else str(value)


@dataclass(frozen=True)
class Out:
    """Output formatter for CLI messages and tables."""

    def info(self, msg: str) -> None:
        """Print an info message."""
        console.print(f"[title]›[/] {msg}")

    @contextmanager
    def status(self, msg: str):
        """Show a transient status spinner while work is in progress."""
        with console.status(msg, spinner="dots"):
            yield

    def success(self, msg: str) -> None:
        """Print a success message."""
        console.print(f"[ok]✓[/] {msg}")

    def warn(self, msg: str) -> None:
        """Print a warning message."""
        console.print(f"[warn]⚠[/] {msg}")

    def error(self, msg: str) -> None:
        """Print an error message."""
        console.print(f"[err]✗[/] {msg}")

    def header(self, title: str) -> None:
        """Print a header message."""
        console.print(f"[title]{title}[/]")

    def kv(self, items: Mapping[str, Any]) -> None:
        """Print key-value pairs."""
        for k, v in items.items():
            console.print(f"[meta]{k}[/]: {v}")

    def jobs_table(self, jobs: Iterable[Any], title: str = "Indexing jobs") -> None:
        """
        Expects objects with .id .status .started_at .completed_at
        .records_processed .error_message (like ucindex.core.jobs.IndexingJob)
        """
        t = Table(title=title, show_lines=False)
        t.add_column("Job ID", style="ok", no_wrap=True)
        t.add_column("Status")
        t.add_column("Started", style="meta")
        t.add_column("Completed", style="meta")
        t.add_column("Records", justify="right")
        t.add_column("Branch failures", justify="right")
        t.add_column("Error", style="err")

        for j in jobs:
            status = getattr(j.status, "value", str(j.status))
            style = _STATUS_STYLES.get(status, "meta")
            t.add_row(
                str(j.id),
                f"[{style}]{status}[/{style}]",
                _fmt_dt(j.started_at),
                _fmt_dt(j.completed_at),
                str(j.records_processed),
                str(len(getattr(j, "branch_failures", ()) or ())),
                str(j.error_message or ""),
            )

        console.print(t)

    def failures_table(
        self, failures: Iterable[Any], title: str = "Branch failures"
    ) -> None:
        """
        Render non-fatal crawl failures.

        Expects objects with `.path`, `.operation`, `.status`, `.error`
        (like ucindex.core.walker.BranchFailure).
        """
        t = Table(title=title, show_lines=False)
        t.add_column("Path", style="ok")
        t.add_column("Operation", style="meta")
        t.add_column("Status", no_wrap=True)
        t.add_column("Error", style="err")

        for f in failures:
            status = "" if f.status is None else str(f.status)
            t.add_row(str(f.path), str(f.operation), status, str(f.error))

        console.print(t)


out = Out()
