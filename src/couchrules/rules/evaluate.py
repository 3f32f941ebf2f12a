"""Run rule predicates in-process against a candidate document.

Unlike CouchDB, which stops at the first validation function that throws and
runs them in no guaranteed order, this reports every rejection.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, Field

from couchrules.errors import RuleRejection
from couchrules.rules.models import RuleDefinition, RuleStatus
from couchrules.rules.predicates import Predicate


class Rejection(BaseModel):
    identifier: str
    reason: str


class EvaluationReport(BaseModel):
    rejections: list[Rejection] = Field(default_factory=list)
    # Rules whose predicate is JavaScript-only and cannot run locally
    skipped: list[str] = Field(default_factory=list)
    checked: list[str] = Field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.rejections


def evaluate_document(
    document: Mapping[str, Any], definitions: Iterable[RuleDefinition]
) -> EvaluationReport:
    report = EvaluationReport()
    for definition in definitions:
        if definition.metadata is not None and definition.metadata.status == RuleStatus.INACTIVE:
            continue
        if not isinstance(definition.predicate, Predicate):
            report.skipped.append(definition.identifier)
            continue
        report.checked.append(definition.identifier)
        try:
            definition.predicate(document)
        except RuleRejection as e:
            report.rejections.append(Rejection(identifier=definition.identifier, reason=e.reason))
    return report
