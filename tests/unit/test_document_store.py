"""Tests for the document store adapters."""

import pytest
from datetime import datetime, timezone

import httpx

from reviewflow.core.review.errors import DocumentStoreError
from reviewflow.services.document_store import (
    HttpDocumentStore, InMemoryDocumentStore, parse_timestamp, pick_title,
)

ARTICLE = "api::article.article"


def _http_store(handler) -> HttpDocumentStore:
    client = httpx.Client(base_url="http://cms.test", transport=httpx.MockTransport(handler))
    return HttpDocumentStore("http://cms.test", client=client)


class TestHelpers:

    def test_pick_title_order(self):
        assert pick_title({"name": "N", "title": "T"}) == "T"
        assert pick_title({"label": "L", "subject": "S"}) == "L"
        assert pick_title({"title": "", "heading": "H"}) == "H"
        assert pick_title({"body": "text"}) is None

    def test_parse_timestamp(self):
        parsed = parse_timestamp("2026-01-02T03:04:05.000Z")
        assert parsed == datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        assert parse_timestamp(None) is None

    def test_parse_timestamp_rejects_garbage(self):
        with pytest.raises(DocumentStoreError, match="invalid timestamp"):
            parse_timestamp("not-a-date")


class TestInMemoryDocumentStore:

    def test_locales_and_ids(self):
        store = InMemoryDocumentStore()
        store.put(ARTICLE, "a", "en")
        store.put(ARTICLE, "a", "fr")
        store.put(ARTICLE, "b", "en")

        assert store.list_locales(ARTICLE, "a") == ["en", "fr"]
        assert store.list_document_ids(ARTICLE, "en") == ["a", "b"]

    def test_title_and_timestamp(self):
        store = InMemoryDocumentStore()
        when = datetime(2026, 5, 1, 12, 0)
        store.put(ARTICLE, "a", "en", updated_at=when, title="Hello")

        assert store.get_title(ARTICLE, "a", "en") == "Hello"
        assert store.get_updated_at(ARTICLE, "a", "en") == when
        assert store.get_updated_at(ARTICLE, "missing", "en") is None
        assert store.get_title(ARTICLE, "missing", "en") is None


class TestHttpDocumentStore:

    def test_get_updated_at(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == f"/documents/{ARTICLE}/a"
            assert request.url.params["locale"] == "en"
            return httpx.Response(200, json={"documentId": "a", "updatedAt": "2026-01-01T00:00:00Z"})

        store = _http_store(handler)

        assert store.get_updated_at(ARTICLE, "a", "en") == datetime(2026, 1, 1, tzinfo=timezone.utc)

    def test_missing_document(self):
        store = _http_store(lambda request: httpx.Response(404))
        assert store.get_updated_at(ARTICLE, "a", "en") is None
        assert store.list_locales(ARTICLE, "a") == []

    def test_server_error_raises(self):
        store = _http_store(lambda request: httpx.Response(500))
        with pytest.raises(DocumentStoreError):
            store.get_updated_at(ARTICLE, "a", "en")

    def test_transport_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(DocumentStoreError):
            _http_store(handler).list_locales(ARTICLE, "a")

    def test_title_lookup_failure_yields_none(self):
        store = _http_store(lambda request: httpx.Response(503))
        assert store.get_title(ARTICLE, "a", "en") is None

    def test_list_document_ids(self):
        def handler(request):
            assert request.url.params["fields"] == "documentId"
            return httpx.Response(200, json=[{"documentId": "a"}, {"documentId": "b"}, {}])

        assert _http_store(handler).list_document_ids(ARTICLE, "en") == ["a", "b"]

    def test_list_locales(self):
        store = _http_store(lambda request: httpx.Response(200, json=["en", "de"]))
        assert store.list_locales(ARTICLE, "a") == ["en", "de"]

    def test_malformed_json_raises(self):
        store = _http_store(lambda request: httpx.Response(200, content=b"<html>oops</html>"))
        with pytest.raises(DocumentStoreError, match="invalid JSON"):
            store.get_updated_at(ARTICLE, "a", "en")

    def test_malformed_timestamp_raises(self):
        store = _http_store(
            lambda request: httpx.Response(200, json={"documentId": "a", "updatedAt": "yesterday"})
        )
        with pytest.raises(DocumentStoreError):
            store.get_updated_at(ARTICLE, "a", "en")
