"""Prepare rule definitions for transport as CouchDB design documents."""

from __future__ import annotations

from couchrules.errors import InvalidMetadata
from couchrules.rules.metadata import validate_metadata
from couchrules.rules.models import DESIGN_PREFIX, RuleMetadata
from couchrules.rules.predicates import Predicate


def to_validation_source(predicate: Predicate | str) -> str:
    """Return the validate_doc_update source text for a predicate.

    JavaScript text is passed through untouched; Predicate objects are rendered.
    """
    if isinstance(predicate, str):
        if not predicate.strip():
            raise ValueError("validation source is empty")
        return predicate
    if isinstance(predicate, Predicate):
        return predicate.to_javascript()
    raise TypeError(
        f"Cannot serialize {type(predicate).__name__} for remote execution; "
        "use a Predicate or JavaScript source text"
    )


def build_record(identifier: str, predicate: Predicate | str, metadata: RuleMetadata) -> dict:
    """Build the design document for one rule.

    Raises InvalidMetadata carrying every validation error; nothing is built
    from partially valid metadata.
    """
    result = validate_metadata(metadata)
    if not result.is_valid:
        raise InvalidMetadata(result.errors)
    return {
        "_id": DESIGN_PREFIX + identifier,
        "validate_doc_update": to_validation_source(predicate),
        "rule_metadata": metadata.to_document(),
    }
