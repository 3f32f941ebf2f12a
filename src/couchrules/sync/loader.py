"""RegistryLoader: reconcile local rule definitions with remote design documents."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime
from types import ModuleType

from couchrules.couch.client import CouchClient
from couchrules.errors import CouchRulesError, DocumentNotFound, StoreError
from couchrules.rules.adapter import build_record
from couchrules.rules.discovery import DEFAULT_PACKAGE, discover_definitions
from couchrules.rules.metadata import restamp_metadata, synthesize_metadata
from couchrules.rules.models import RuleDefinition
from couchrules.sync.models import RuleOutcome, SyncAction, SyncState, SyncSummary

logger = logging.getLogger(__name__)


class RegistryLoader:
    """Create-or-update every rule definition against the store.

    Definitions are processed one at a time and independently: a failure on
    one identifier is recorded in its outcome and never aborts the pass. No
    write is retried; a stale revision needs a new pass.
    """

    def __init__(self, client: CouchClient) -> None:
        self._client = client

    def sync(self, definitions: Iterable[RuleDefinition]) -> SyncSummary:
        summary = SyncSummary()
        for definition in tuple(definitions):
            summary.outcomes.append(self.sync_definition(definition))
        _log_summary(summary)
        return summary

    def sync_from_package(self, package: str | ModuleType = DEFAULT_PACKAGE) -> SyncSummary:
        """Discover rule modules in ``package`` and sync them.

        Modules that fail discovery appear as FAILED outcomes.
        """
        discovered = discover_definitions(package)
        summary = SyncSummary()
        for identifier, reason in discovered.errors.items():
            summary.outcomes.append(
                RuleOutcome(
                    identifier=identifier,
                    state=SyncState.FAILED,
                    error=reason,
                    error_type="RuleNotFound",
                )
            )
        for definition in discovered.definitions:
            summary.outcomes.append(self.sync_definition(definition))
        _log_summary(summary)
        return summary

    def sync_definition(self, definition: RuleDefinition) -> RuleOutcome:
        outcome = RuleOutcome(identifier=definition.identifier)
        try:
            self._reconcile(definition, outcome)
        except (CouchRulesError, TypeError, ValueError) as e:
            outcome.state = SyncState.FAILED
            outcome.error = str(e)
            outcome.error_type = type(e).__name__
            logger.error(f"Failed to sync {definition.identifier}: {e}")
        return outcome

    def _reconcile(self, definition: RuleDefinition, outcome: RuleOutcome) -> None:
        metadata = definition.metadata
        if metadata is None:
            logger.info(f"No metadata for {definition.identifier}; generating defaults")
            metadata = synthesize_metadata(definition.identifier)

        try:
            remote: dict | None = self._client.get_document(definition.document_id)
        except DocumentNotFound:
            remote = None
        outcome.state = SyncState.CHECKED_REMOTE

        if remote is None:
            outcome.state = SyncState.CREATING
            outcome.action = SyncAction.CREATE
            metadata = restamp_metadata(metadata)
            revision = None
        else:
            revision = remote.get("_rev")
            if not revision:
                raise StoreError(f"Remote {definition.document_id} has no revision token")
            outcome.state = SyncState.UPDATING
            outcome.action = SyncAction.UPDATE
            metadata = restamp_metadata(metadata, created_date=_remote_created_date(remote))

        record = build_record(definition.identifier, definition.predicate, metadata)
        if revision:
            record["_rev"] = revision

        result = self._client.put_document(record)
        outcome.revision = result.get("rev")
        outcome.state = SyncState.SUCCEEDED
        logger.info(
            f"{outcome.action}d {definition.document_id} (rev {outcome.revision})"
        )


def _remote_created_date(remote: dict) -> datetime | None:
    meta = remote.get("rule_metadata")
    if not isinstance(meta, dict):
        return None
    value = meta.get("created_date")
    if not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        logger.warning(f"Ignoring unparseable remote created_date {value!r}")
        return None


def _log_summary(summary: SyncSummary) -> None:
    logger.info(
        f"Sync finished: {summary.created} created, {summary.updated} updated, "
        f"{summary.failed} failed"
    )
