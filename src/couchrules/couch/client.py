"""httpx client wrapper for the CouchDB HTTP API."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from couchrules.config import CouchConfig
from couchrules.errors import (
    DatabaseNotFound,
    DocumentNotFound,
    RemoteConflict,
    StoreError,
    TransportFailure,
)
from couchrules.rules.models import DESIGN_PREFIX

logger = logging.getLogger(__name__)


class CouchClient:
    """Thin synchronous client for one CouchDB database.

    Every non-2xx response is raised as a StoreError subclass; network errors
    and timeouts become TransportFailure.
    """

    def __init__(
        self,
        config: CouchConfig,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._config = config
        self._db = quote(config.database, safe="")
        self._client = httpx.Client(
            base_url=config.url.rstrip("/"),
            auth=(config.username, config.password),
            timeout=config.timeout,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    @property
    def database(self) -> str:
        return self._config.database

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> CouchClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def server_info(self) -> dict:
        return self._request("GET", "/").json()

    def database_info(self) -> dict:
        return self._request("GET", f"/{self._db}", missing=DatabaseNotFound).json()

    def create_database(self) -> bool:
        """Create the database. Returns False if it already existed."""
        resp = self._send("PUT", f"/{self._db}")
        if resp.status_code == 412:
            return False
        _raise_for_status(resp, f"create database {self.database}")
        logger.info(f"Created database {self.database}")
        return True

    def get_document(self, doc_id: str) -> dict:
        return self._request("GET", self._doc_path(doc_id)).json()

    def put_document(self, document: dict[str, Any]) -> dict:
        """Create or update a document. Include ``_rev`` to update.

        Returns the store's response ({"ok", "id", "rev"}).
        """
        doc_id = document["_id"]
        return self._request("PUT", self._doc_path(doc_id), json=document).json()

    def delete_document(self, doc_id: str, rev: str) -> dict:
        return self._request("DELETE", self._doc_path(doc_id), params={"rev": rev}).json()

    def design_documents(self) -> list[dict[str, str]]:
        """List design documents as [{"id": ..., "rev": ...}]."""
        data = self._request(
            "GET", f"/{self._db}/_design_docs", missing=DatabaseNotFound
        ).json()
        return [
            {"id": row["id"], "rev": row.get("value", {}).get("rev", "")}
            for row in data.get("rows", [])
        ]

    def _doc_path(self, doc_id: str) -> str:
        if doc_id.startswith(DESIGN_PREFIX):
            return f"/{self._db}/{DESIGN_PREFIX}{quote(doc_id[len(DESIGN_PREFIX):], safe='')}"
        return f"/{self._db}/{quote(doc_id, safe='')}"

    def _request(
        self,
        method: str,
        path: str,
        *,
        missing: type[StoreError] = DocumentNotFound,
        **kwargs: Any,
    ) -> httpx.Response:
        resp = self._send(method, path, **kwargs)
        _raise_for_status(resp, f"{method} {path}", missing=missing)
        return resp

    def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            resp = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise TransportFailure(f"{method} {path} failed: {e}") from e
        logger.debug(f"{method} {path} -> {resp.status_code}")
        return resp


def _raise_for_status(
    resp: httpx.Response,
    action: str,
    *,
    missing: type[StoreError] = DocumentNotFound,
) -> None:
    if resp.is_success:
        return
    status = resp.status_code
    message = f"{action}: HTTP {status}"
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("reason"):
        message = f"{message} ({body.get('error', 'error')}: {body['reason']})"

    if status == 404:
        reason = body.get("reason", "") if isinstance(body, dict) else ""
        if "Database does not exist" in str(reason):
            raise DatabaseNotFound(message, status_code=status)
        raise missing(message, status_code=status)
    if status == 409:
        raise RemoteConflict(message, status_code=status)
    raise TransportFailure(message, status_code=status)
