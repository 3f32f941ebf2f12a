"""Pydantic models and value objects for rule definitions."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from couchrules.rules.predicates import Predicate

DESIGN_PREFIX = "_design/"


class RuleStatus(StrEnum):
    ACTIVE = "active"
    DRAFT = "draft"
    INACTIVE = "inactive"


class RuleMetadata(BaseModel):
    """Descriptor stored alongside every validation function."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    version: str = "1.0.0"
    author: str
    tags: list[str] = Field(default_factory=list)
    status: RuleStatus = RuleStatus.ACTIVE
    created_date: datetime
    modified_date: datetime
    change_notes: str = "Initial implementation"

    def to_document(self) -> dict:
        """JSON-ready form written to the store (ISO-8601 timestamps)."""
        return self.model_dump(mode="json")


class ValidationResult(BaseModel):
    is_valid: bool
    errors: list[str] = Field(default_factory=list)


@dataclass(frozen=True)
class RuleDefinition:
    """A predicate paired with its metadata, keyed by identifier.

    ``predicate`` is either a :class:`Predicate` (callable in-process and
    renderable to JavaScript) or raw JavaScript source text. ``metadata`` may be
    None, in which case the sync engine synthesizes a minimal descriptor.
    """

    identifier: str
    predicate: Predicate | str
    metadata: RuleMetadata | None = None

    @property
    def document_id(self) -> str:
        return DESIGN_PREFIX + self.identifier
