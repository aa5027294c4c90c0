import math

import pytest
import requests

from ucindex.core.adapters.solr import DELETE_ALL, SolrAdapter
from ucindex.core.config import SolrSettings
from ucindex.core.documents import build_catalog_document
from ucindex.core.errors import IndexWriteError, RemoteError
from ucindex.core.indexing import BatchIndexer, iter_batches
from ucindex.core.uc import UCCatalog


def _docs(n: int):
    return [build_catalog_document(UCCatalog(name=f"c{i}", created_at=0)) for i in range(n)]


class _Index:
    def __init__(self, fail_on_batch: int | None = None):
        self.fail_on_batch = fail_on_batch
        self.batches: list[list[dict]] = []
        self.cleared = 0

    def delete_all(self) -> None:
        self.cleared += 1

    def add_documents(self, documents) -> None:
        if self.fail_on_batch == len(self.batches) + 1:
            raise RemoteError("solr says no", status=400)
        self.batches.append(list(documents))


@pytest.mark.parametrize("n", [0, 1, 99, 100, 101, 250])
def test_iter_batches_covers_every_item_once(n: int):
    items = list(range(n))
    batches = list(iter_batches(items, 100))

    assert len(batches) == math.ceil(n / 100)
    assert [x for b in batches for x in b] == items
    assert all(len(b) <= 100 for b in batches)


def test_iter_batches_rejects_non_positive_size():
    with pytest.raises(ValueError, match="batch size"):
        list(iter_batches([1], 0))


def test_index_all_writes_batches_and_reports_progress():
    index = _Index()
    progress: list[tuple[int, int]] = []

    written = BatchIndexer(index).index_all(_docs(250), on_batch=lambda d, t: progress.append((d, t)))

    assert written == 250
    assert [len(b) for b in index.batches] == [100, 100, 50]
    assert progress == [(100, 250), (200, 250), (250, 250)]
    assert index.batches[0][0]["id"] == "catalog_c0"


def test_index_all_stops_at_first_failed_batch():
    index = _Index(fail_on_batch=2)
    progress: list[tuple[int, int]] = []

    with pytest.raises(IndexWriteError) as excinfo:
        BatchIndexer(index).index_all(_docs(250), on_batch=lambda d, t: progress.append((d, t)))

    assert excinfo.value.batch_number == 2
    assert excinfo.value.status == 400
    assert len(index.batches) == 1
    assert progress == [(100, 250)]


def test_clear_deletes_everything():
    index = _Index()
    BatchIndexer(index).clear()

    assert index.cleared == 1


class _Response:
    def __init__(self, status_code: int = 200, body=None, text: str = ""):
        self.status_code = status_code
        self._body = body if body is not None else {"responseHeader": {"status": 0}}
        self.text = text

    def json(self):
        return self._body


class _Session:
    def __init__(self, response=None, exc: Exception | None = None):
        self.response = response or _Response()
        self.exc = exc
        self.requests: list[dict] = []

    def request(self, method, url, **kwargs):
        self.requests.append({"method": method, "url": url, **kwargs})
        if self.exc is not None:
            raise self.exc
        return self.response


SETTINGS = SolrSettings(host="solr", port=8983, core="uc", timeout=5)


def test_solr_delete_all_posts_delete_query_with_commit():
    session = _Session()
    SolrAdapter(SETTINGS, session=session).delete_all()

    (req,) = session.requests
    assert req["method"] == "POST"
    assert req["url"] == "http://solr:8983/solr/uc/update"
    assert req["json"] == DELETE_ALL
    assert req["params"] == {"commit": "true"}
    assert req["timeout"] == 5


def test_solr_add_documents_posts_json_docs():
    session = _Session()
    SolrAdapter(SETTINGS, session=session).add_documents([{"id": "catalog_sales"}])

    (req,) = session.requests
    assert req["url"] == "http://solr:8983/solr/uc/update/json/docs"
    assert req["json"] == [{"id": "catalog_sales"}]
    assert req["params"] == {"commit": "true"}


def test_solr_http_error_carries_status():
    session = _Session(response=_Response(status_code=400, text="bad field"))

    with pytest.raises(RemoteError) as excinfo:
        SolrAdapter(SETTINGS, session=session).add_documents([{"id": "x"}])

    assert excinfo.value.status == 400
    assert "bad field" in str(excinfo.value)


def test_solr_connection_error_has_no_status():
    session = _Session(exc=requests.ConnectionError("refused"))

    with pytest.raises(RemoteError) as excinfo:
        SolrAdapter(SETTINGS, session=session).delete_all()

    assert excinfo.value.status is None


def test_solr_ping():
    assert SolrAdapter(SETTINGS, session=_Session(_Response(body={"status": "OK"}))).ping()
    assert not SolrAdapter(SETTINGS, session=_Session(_Response(body={"status": "ERR"}))).ping()
