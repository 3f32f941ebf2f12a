"""Exception taxonomy shared by the rule model, the store client and the sync engine."""

from __future__ import annotations


class CouchRulesError(Exception):
    """Base class for every error raised by couchrules."""


class InvalidMetadata(CouchRulesError):
    """Raised when rule metadata fails validation. Carries every violation."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__(f"Invalid metadata: {', '.join(self.errors)}")


class InvalidVersion(CouchRulesError):
    """Raised when a metadata update supplies a non-semantic version."""

    def __init__(self, version: object) -> None:
        self.version = version
        super().__init__(f"Invalid semantic version: {version}")


class RuleNotFound(CouchRulesError):
    """Raised when a rule module does not expose its predicate."""


class RuleRejection(CouchRulesError):
    """Raised by a predicate that rejects a candidate document."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class StoreError(CouchRulesError):
    """Base class for errors reported while talking to CouchDB."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class DocumentNotFound(StoreError):
    """The requested document does not exist (HTTP 404)."""


class DatabaseNotFound(StoreError):
    """The configured database does not exist (HTTP 404 on the database)."""


class RemoteConflict(StoreError):
    """A write was rejected because the revision token is stale (HTTP 409)."""


class TransportFailure(StoreError):
    """Network or service-level failure, including timeouts and 5xx responses."""
