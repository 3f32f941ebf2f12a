"""Tests for couch/client.py — HTTP calls and status-code mapping."""

from __future__ import annotations

import httpx
import pytest

from couchrules.config import CouchConfig
from couchrules.couch.client import CouchClient
from couchrules.errors import (
    DatabaseNotFound,
    DocumentNotFound,
    RemoteConflict,
    TransportFailure,
)


class TestCouchClient:
    def test_server_info(self, client):
        assert client.server_info()["version"] == "3.3.3"

    def test_database_info(self, client):
        assert client.database_info()["db_name"] == "rules_db"

    def test_missing_database(self, fake_couch, couch_config):
        couch_config.database = "nope"
        with CouchClient(couch_config, transport=fake_couch.transport()) as c:
            with pytest.raises(DatabaseNotFound):
                c.database_info()
            with pytest.raises(DatabaseNotFound):
                c.get_document("_design/x")

    def test_create_database(self, fake_couch, couch_config):
        couch_config.database = "fresh_db"
        with CouchClient(couch_config, transport=fake_couch.transport()) as c:
            assert c.create_database() is True
            assert c.create_database() is False
        assert "fresh_db" in fake_couch.databases

    def test_put_get_delete_round(self, client, fake_couch):
        created = client.put_document({"_id": "_design/rule_a", "validate_doc_update": "x"})
        assert created["rev"].startswith("1-")
        fetched = client.get_document("_design/rule_a")
        assert fetched["_rev"] == created["rev"]
        client.delete_document("_design/rule_a", created["rev"])
        assert "_design/rule_a" not in fake_couch.docs()

    def test_missing_document(self, client):
        with pytest.raises(DocumentNotFound) as exc_info:
            client.get_document("_design/absent")
        assert exc_info.value.status_code == 404

    def test_stale_revision_conflicts(self, client):
        client.put_document({"_id": "_design/rule_a"})
        with pytest.raises(RemoteConflict):
            client.put_document({"_id": "_design/rule_a", "_rev": "1-stale"})

    def test_design_documents_listing(self, client, fake_couch):
        fake_couch.seed("rules_db", {"_id": "_design/b"})
        fake_couch.seed("rules_db", {"_id": "_design/a"})
        fake_couch.seed("rules_db", {"_id": "application-1"})
        rows = client.design_documents()
        assert [r["id"] for r in rows] == ["_design/a", "_design/b"]
        assert all(r["rev"].startswith("1-") for r in rows)

    def test_server_error_is_transport_failure(self, client, fake_couch):
        fake_couch.status_overrides[("GET", "_design/rule_a")] = 500
        with pytest.raises(TransportFailure) as exc_info:
            client.get_document("_design/rule_a")
        assert exc_info.value.status_code == 500

    def test_network_error_is_transport_failure(self, client, fake_couch):
        fake_couch.network_errors.add(("GET", "_design/rule_a"))
        with pytest.raises(TransportFailure, match="connection refused"):
            client.get_document("_design/rule_a")

    def test_timeout_is_transport_failure(self, couch_config):
        def _timeout(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with CouchClient(couch_config, transport=httpx.MockTransport(_timeout)) as c:
            with pytest.raises(TransportFailure, match="timed out"):
                c.server_info()

    def test_sends_basic_auth(self):
        seen: list[str] = []

        def _capture(request: httpx.Request) -> httpx.Response:
            seen.append(request.headers.get("authorization", ""))
            return httpx.Response(200, json={"version": "3"})

        config = CouchConfig(username="admin", password="secret")
        with CouchClient(config, transport=httpx.MockTransport(_capture)) as c:
            c.server_info()
        # base64("admin:secret")
        assert seen == ["Basic YWRtaW46c2VjcmV0"]

    def test_document_ids_are_quoted(self):
        paths: list[str] = []

        def _capture(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.raw_path.decode())
            return httpx.Response(200, json={})

        with CouchClient(CouchConfig(), transport=httpx.MockTransport(_capture)) as c:
            c.get_document("_design/my rule")
            c.get_document("app/1")
        assert paths == ["/rules_db/_design/my%20rule", "/rules_db/app%2F1"]
