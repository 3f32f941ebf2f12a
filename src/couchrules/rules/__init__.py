"""Rule model: metadata, predicates, definitions and the design-document adapter."""

from couchrules.rules.adapter import build_record, to_validation_source
from couchrules.rules.discovery import DiscoveryResult, discover_definitions, load_definition
from couchrules.rules.evaluate import EvaluationReport, Rejection, evaluate_document
from couchrules.rules.metadata import (
    create_rule_metadata,
    derive_rule_name,
    is_valid_semantic_version,
    restamp_metadata,
    synthesize_metadata,
    update_rule_metadata,
    validate_metadata,
)
from couchrules.rules.models import RuleDefinition, RuleMetadata, RuleStatus, ValidationResult
from couchrules.rules.predicates import Predicate, Required, Threshold

__all__ = [
    "DiscoveryResult",
    "EvaluationReport",
    "Predicate",
    "Rejection",
    "Required",
    "RuleDefinition",
    "RuleMetadata",
    "RuleStatus",
    "Threshold",
    "ValidationResult",
    "build_record",
    "create_rule_metadata",
    "derive_rule_name",
    "discover_definitions",
    "evaluate_document",
    "is_valid_semantic_version",
    "load_definition",
    "restamp_metadata",
    "synthesize_metadata",
    "to_validation_source",
    "update_rule_metadata",
    "validate_metadata",
]
