from types import SimpleNamespace

import pytest
from sqlalchemy.exc import OperationalError
from typer.testing import CliRunner

from ucindex.cli.cli import app
from ucindex.cli.commands import run as run_commands
from ucindex.core.config import IndexerSettings
from ucindex.core.errors import RemoteError
from ucindex.core.indexing import BatchIndexer
from ucindex.core.walker import WalkResult

runner = CliRunner()


class _Walker:
    def __init__(self, exc=None):
        self.exc = exc

    def walk(self):
        if self.exc is not None:
            raise self.exc
        return WalkResult()


class _Index:
    def delete_all(self):
        pass

    def add_documents(self, documents):
        pass


class _Tracker:
    def __init__(self):
        self.calls = []

    def create(self):
        return 1

    def record_progress(self, job_id, records_processed):
        pass

    def complete(self, job_id, records_processed, failures=()):
        self.calls.append("complete")

    def fail(self, job_id, error_message):
        self.calls.append("fail")

    def ping(self):
        return True


@pytest.fixture
def tracker(monkeypatch) -> _Tracker:
    t = _Tracker()
    monkeypatch.setattr(run_commands, "load_settings", IndexerSettings)
    return t


def _use_context(monkeypatch, walker, tracker):
    monkeypatch.setattr(
        run_commands,
        "build_run_context",
        lambda settings: SimpleNamespace(
            settings=settings,
            walker=walker,
            indexer=BatchIndexer(_Index()),
            tracker=tracker,
        ),
    )


def test_run_succeeds(monkeypatch, tracker):
    _use_context(monkeypatch, _Walker(), tracker)

    result = runner.invoke(app, ["run"])

    assert result.exit_code == 0, result.output
    assert "Indexed 0 document(s)." in result.output
    assert tracker.calls == ["complete"]


def test_run_exits_1_when_job_fails(monkeypatch, tracker):
    _use_context(monkeypatch, _Walker(RemoteError("catalogs unavailable", status=503)), tracker)

    result = runner.invoke(app, ["run"])

    assert result.exit_code == 1
    assert "catalogs unavailable" in result.output
    assert tracker.calls == ["fail"]


def test_invalid_configuration_exits_2(monkeypatch):
    monkeypatch.setenv("UCINDEX_MAX_DEPTH", "zero")

    result = runner.invoke(app, ["run"])

    assert result.exit_code == 2


def test_health_reports_unreachable_solr(monkeypatch, tracker):
    def _ping():
        raise RemoteError("connection refused")

    monkeypatch.setattr(run_commands, "build_solr", lambda s: SimpleNamespace(ping=_ping))
    monkeypatch.setattr(run_commands, "build_tracker", lambda s: tracker)

    result = runner.invoke(app, ["health"])

    assert result.exit_code == 1
    assert "connection refused" in result.output


def test_health_reports_unreachable_job_store(monkeypatch, tracker):
    def _ping():
        raise OperationalError("SELECT 1", {}, Exception("no route"))

    monkeypatch.setattr(
        run_commands, "build_solr", lambda s: SimpleNamespace(ping=lambda: True)
    )
    monkeypatch.setattr(run_commands, "build_tracker", lambda s: SimpleNamespace(ping=_ping))

    result = runner.invoke(app, ["health"])

    assert result.exit_code == 1


def test_jobs_list_against_sqlite(monkeypatch, tmp_path):
    monkeypatch.setenv("JOBSTORE_URL", f"sqlite:///{tmp_path / 'jobs.db'}")

    init = runner.invoke(app, ["jobs", "init-db"])
    listed = runner.invoke(app, ["jobs", "list", "--limit", "5"])

    assert init.exit_code == 0, init.output
    assert listed.exit_code == 0, listed.output
    assert "No indexing jobs found." in listed.output
