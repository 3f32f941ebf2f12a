"""Shared fixtures for couchrules tests: an in-memory CouchDB behind httpx.MockTransport."""

from __future__ import annotations

import json
import uuid
from collections.abc import Iterator
from unittest.mock import patch

import httpx
import pytest

from couchrules.config import CouchConfig
from couchrules.couch.client import CouchClient

_NOT_FOUND_DB = {"error": "not_found", "reason": "Database does not exist."}
_NOT_FOUND_DOC = {"error": "not_found", "reason": "missing"}
_CONFLICT = {"error": "conflict", "reason": "Document update conflict."}


class FakeCouch:
    """Just enough of the CouchDB document API for the sync engine.

    Failure injection:
      - ``status_overrides[(method, doc_id)] = status`` answers with that status
      - ``network_errors`` holds (method, doc_id) pairs that raise ConnectError
      - ``bump_after_get`` holds doc ids whose revision changes right after a
        GET, as if another writer got in between
      - ``vanish_on_delete`` holds doc ids removed just before their DELETE
    """

    def __init__(self) -> None:
        self.databases: dict[str, dict[str, dict]] = {}
        self.requests: list[tuple[str, str]] = []
        self.status_overrides: dict[tuple[str, str], int] = {}
        self.network_errors: set[tuple[str, str]] = set()
        self.bump_after_get: set[str] = set()
        self.vanish_on_delete: set[str] = set()

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def create_db(self, name: str) -> None:
        self.databases.setdefault(name, {})

    def seed(self, db: str, doc: dict) -> dict:
        """Store a document directly, assigning a revision."""
        stored = dict(doc)
        stored["_rev"] = _next_rev(doc.get("_rev"))
        self.databases[db][doc["_id"]] = stored
        return stored

    def docs(self, db: str = "rules_db") -> dict[str, dict]:
        return self.databases[db]

    def handle(self, request: httpx.Request) -> httpx.Response:
        method = request.method
        path = request.url.path.strip("/")
        db, _, doc_id = path.partition("/")
        self.requests.append((method, doc_id or db))

        key = (method, doc_id)
        if key in self.network_errors:
            raise httpx.ConnectError("connection refused", request=request)
        if key in self.status_overrides:
            return httpx.Response(self.status_overrides[key], json={"error": "injected"})

        if not db:
            return httpx.Response(200, json={"couchdb": "Welcome", "version": "3.3.3"})
        if not doc_id:
            return self._database(method, db)
        if db not in self.databases:
            return httpx.Response(404, json=_NOT_FOUND_DB)
        if doc_id == "_design_docs":
            return self._design_docs(db)
        if method == "GET":
            return self._get(db, doc_id)
        if method == "PUT":
            return self._put(db, doc_id, json.loads(request.content))
        if method == "DELETE":
            return self._delete(db, doc_id, request.url.params.get("rev"))
        return httpx.Response(405, json={"error": "method_not_allowed"})

    def _database(self, method: str, db: str) -> httpx.Response:
        if method == "PUT":
            if db in self.databases:
                return httpx.Response(412, json={"error": "file_exists"})
            self.create_db(db)
            return httpx.Response(201, json={"ok": True})
        if db not in self.databases:
            return httpx.Response(404, json=_NOT_FOUND_DB)
        return httpx.Response(200, json={"db_name": db, "doc_count": len(self.databases[db])})

    def _design_docs(self, db: str) -> httpx.Response:
        rows = [
            {"id": doc_id, "key": doc_id, "value": {"rev": doc["_rev"]}}
            for doc_id, doc in sorted(self.databases[db].items())
            if doc_id.startswith("_design/")
        ]
        return httpx.Response(200, json={"total_rows": len(rows), "offset": 0, "rows": rows})

    def _get(self, db: str, doc_id: str) -> httpx.Response:
        doc = self.databases[db].get(doc_id)
        if doc is None:
            return httpx.Response(404, json=_NOT_FOUND_DOC)
        body = dict(doc)
        if doc_id in self.bump_after_get:
            doc["_rev"] = _next_rev(doc["_rev"])
        return httpx.Response(200, json=body)

    def _put(self, db: str, doc_id: str, body: dict) -> httpx.Response:
        current = self.databases[db].get(doc_id)
        supplied = body.get("_rev")
        if current is None and supplied is not None:
            return httpx.Response(409, json=_CONFLICT)
        if current is not None and supplied != current["_rev"]:
            return httpx.Response(409, json=_CONFLICT)
        stored = dict(body)
        stored["_id"] = doc_id
        stored["_rev"] = _next_rev(supplied)
        self.databases[db][doc_id] = stored
        return httpx.Response(201, json={"ok": True, "id": doc_id, "rev": stored["_rev"]})

    def _delete(self, db: str, doc_id: str, rev: str | None) -> httpx.Response:
        if doc_id in self.vanish_on_delete:
            self.databases[db].pop(doc_id, None)
        current = self.databases[db].get(doc_id)
        if current is None:
            return httpx.Response(404, json={"error": "not_found", "reason": "deleted"})
        if rev != current["_rev"]:
            return httpx.Response(409, json=_CONFLICT)
        del self.databases[db][doc_id]
        return httpx.Response(200, json={"ok": True, "id": doc_id, "rev": _next_rev(rev)})


def _next_rev(rev: str | None) -> str:
    generation = int(rev.split("-", 1)[0]) if rev else 0
    return f"{generation + 1}-{uuid.uuid4().hex}"


@pytest.fixture
def fake_couch() -> FakeCouch:
    """Fake store with an empty rules_db."""
    couch = FakeCouch()
    couch.create_db("rules_db")
    return couch


@pytest.fixture
def couch_config() -> CouchConfig:
    return CouchConfig(url="http://couch.test:5984", database="rules_db")


@pytest.fixture
def client(fake_couch: FakeCouch, couch_config: CouchConfig) -> Iterator[CouchClient]:
    with CouchClient(couch_config, transport=fake_couch.transport()) as c:
        yield c


@pytest.fixture
def cli_store(fake_couch: FakeCouch) -> Iterator[FakeCouch]:
    """Route every CouchClient the CLI builds to the fake store."""

    def _factory(config: CouchConfig) -> CouchClient:
        return CouchClient(config, transport=fake_couch.transport())

    with patch("couchrules.cli.CouchClient", side_effect=_factory):
        yield fake_couch


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in (
        "COUCHDB_URL",
        "COUCHDB_DB",
        "DB_NAME",
        "COUCHDB_USER",
        "COUCHDB_PASSWORD",
        "COUCHDB_TIMEOUT",
        "COUCHRULES_AUTHOR",
        "COUCHRULES_LOG_LEVEL",
    ):
        monkeypatch.delenv(var, raising=False)
