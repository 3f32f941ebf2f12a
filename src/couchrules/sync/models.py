"""Pydantic models for sync and unload passes."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field


class SyncState(StrEnum):
    DISCOVERED = "discovered"
    CHECKED_REMOTE = "checked_remote"
    CREATING = "creating"
    UPDATING = "updating"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class SyncAction(StrEnum):
    CREATE = "create"
    UPDATE = "update"


class RuleOutcome(BaseModel):
    """Result of reconciling one rule definition."""

    identifier: str
    state: SyncState = SyncState.DISCOVERED
    action: SyncAction | None = None  # None when the pass failed before choosing
    revision: str | None = None
    error: str | None = None
    error_type: str | None = None


class SyncSummary(BaseModel):
    outcomes: list[RuleOutcome] = Field(default_factory=list)

    @property
    def created(self) -> int:
        return self._count(SyncAction.CREATE)

    @property
    def updated(self) -> int:
        return self._count(SyncAction.UPDATE)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if o.state == SyncState.FAILED)

    @property
    def ok(self) -> bool:
        return self.failed == 0

    def failures(self) -> list[RuleOutcome]:
        return [o for o in self.outcomes if o.state == SyncState.FAILED]

    def _count(self, action: SyncAction) -> int:
        return sum(
            1 for o in self.outcomes if o.state == SyncState.SUCCEEDED and o.action == action
        )


class UnloadResult(BaseModel):
    deleted_count: int = 0
    already_absent: list[str] = Field(default_factory=list)
    failures: list[str] = Field(default_factory=list)
