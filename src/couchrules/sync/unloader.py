"""RegistryUnloader: remove every rule design document from the store."""

from __future__ import annotations

import logging

from couchrules.couch.client import CouchClient
from couchrules.errors import DocumentNotFound, StoreError
from couchrules.sync.models import UnloadResult

logger = logging.getLogger(__name__)


class RegistryUnloader:
    def __init__(self, client: CouchClient) -> None:
        self._client = client

    def unload_all(self) -> UnloadResult:
        """Delete each listed design document, best effort.

        A document that is already gone counts as done. Other failures are
        collected by id and do not stop the remaining deletions. Raises
        DatabaseNotFound if the database itself is missing.
        """
        self._client.database_info()
        rows = self._client.design_documents()
        result = UnloadResult()
        if not rows:
            logger.info(f"No design documents found in '{self._client.database}'")
            return result

        logger.info(f"Found {len(rows)} design document(s) to remove")
        for row in rows:
            doc_id = row["id"]
            try:
                self._client.delete_document(doc_id, row["rev"])
            except DocumentNotFound:
                logger.info(f"{doc_id} already absent")
                result.already_absent.append(doc_id)
            except StoreError as e:
                logger.error(f"Failed to delete {doc_id}: {e}")
                result.failures.append(doc_id)
            else:
                logger.info(f"Deleted {doc_id}")
                result.deleted_count += 1

        logger.info(
            f"Unload finished: {result.deleted_count} deleted, {len(result.failures)} failed"
        )
        return result
