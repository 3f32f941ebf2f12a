"""Sync engine: push rule definitions to CouchDB and remove them again."""

from couchrules.sync.loader import RegistryLoader
from couchrules.sync.models import (
    RuleOutcome,
    SyncAction,
    SyncState,
    SyncSummary,
    UnloadResult,
)
from couchrules.sync.unloader import RegistryUnloader

__all__ = [
    "RegistryLoader",
    "RegistryUnloader",
    "RuleOutcome",
    "SyncAction",
    "SyncState",
    "SyncSummary",
    "UnloadResult",
]
