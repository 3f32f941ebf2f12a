"""Create, update and validate rule metadata."""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

from couchrules.config import CONFIG_FILENAME, DEFAULT_AUTHOR, load_config
from couchrules.errors import InvalidMetadata, InvalidVersion
from couchrules.rules.models import RuleMetadata, RuleStatus, ValidationResult

REQUIRED_FIELDS = ("name", "description", "version", "author", "status")
_DATE_FIELDS = ("created_date", "modified_date")
_STATUSES = {s.value for s in RuleStatus}
_SEMVER = re.compile(r"^(\d+)\.(\d+)\.(\d+)(-[A-Za-z0-9.-]+)?(\+[A-Za-z0-9.-]+)?$")
_WORD_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|[_\-\s]+")


def is_valid_semantic_version(version: object) -> bool:
    """True for MAJOR.MINOR.PATCH with optional -prerelease and +build parts."""
    return isinstance(version, str) and _SEMVER.fullmatch(version) is not None


def create_rule_metadata(
    name: str,
    description: str,
    *,
    version: str = "1.0.0",
    author: str | None = None,
    tags: list[str] | None = None,
    status: str = RuleStatus.ACTIVE,
    change_notes: str = "Initial implementation",
) -> RuleMetadata:
    """Build a new descriptor. created_date and modified_date share one instant.

    Raises InvalidMetadata listing every problem when the result would not
    pass validate_metadata (missing name/description, bad version or status).
    Without an explicit author, the default comes from .couchrules.json in the
    working directory or COUCHRULES_AUTHOR.
    """
    now = _now()
    data: dict[str, Any] = {
        "name": name,
        "description": description,
        "version": version,
        "author": author or load_config(Path(CONFIG_FILENAME)).default_author,
        "tags": list(tags) if tags is not None else [],
        "status": status,
        "created_date": now,
        "modified_date": now,
        "change_notes": change_notes,
    }
    result = validate_metadata(data)
    if not result.is_valid:
        raise InvalidMetadata(result.errors)
    return RuleMetadata.model_validate(data)


def update_rule_metadata(existing: RuleMetadata, patch: Mapping[str, Any]) -> RuleMetadata:
    """Shallow-merge ``patch`` into a copy of ``existing``.

    created_date is always preserved; modified_date always moves forward.
    ``existing`` is never mutated.
    """
    if "version" in patch and not is_valid_semantic_version(patch["version"]):
        raise InvalidVersion(patch["version"])

    unknown = sorted(set(patch) - set(RuleMetadata.model_fields))
    if unknown:
        raise InvalidMetadata([f"Unknown field: {key}" for key in unknown])

    data = existing.model_dump()
    data.update(patch)
    data["created_date"] = existing.created_date
    data["modified_date"] = _advance(existing.modified_date)

    result = validate_metadata(data)
    if not result.is_valid:
        raise InvalidMetadata(result.errors)
    return RuleMetadata.model_validate(data)


def restamp_metadata(
    metadata: RuleMetadata, *, created_date: datetime | None = None
) -> RuleMetadata:
    """Copy for a write: keep (or adopt) created_date and refresh modified_date."""
    created = created_date or metadata.created_date
    modified = _advance(max(_aware(metadata.modified_date), _aware(created)))
    return metadata.model_copy(update={"created_date": created, "modified_date": modified})


def validate_metadata(metadata: RuleMetadata | Mapping[str, Any]) -> ValidationResult:
    """Check a descriptor and collect every violation found."""
    data: Mapping[str, Any] = (
        metadata.model_dump() if isinstance(metadata, RuleMetadata) else metadata
    )
    errors: list[str] = []

    for field in REQUIRED_FIELDS:
        if not data.get(field):
            errors.append(f"Missing required field: {field}")

    version = data.get("version")
    if version and not is_valid_semantic_version(version):
        errors.append(f"Invalid semantic version: {version}")

    status = data.get("status")
    if status and (not isinstance(status, str) or status not in _STATUSES):
        errors.append(f"Invalid status: {status}. Must be active, draft, or inactive")

    tags = data.get("tags")
    if tags is not None:
        if not isinstance(tags, list):
            errors.append("Tags must be a list")
        elif not all(isinstance(tag, str) for tag in tags):
            errors.append("Tags must contain only strings")

    for field in _DATE_FIELDS:
        value = data.get(field)
        if value and not _is_timestamp(value):
            errors.append(f"Invalid date format for {field}: {value}")

    return ValidationResult(is_valid=not errors, errors=errors)


def synthesize_metadata(identifier: str) -> RuleMetadata:
    """Minimal valid descriptor for a rule that ships without one."""
    name = derive_rule_name(identifier)
    return create_rule_metadata(
        name=name or identifier,
        description=f"Validation rule {identifier}",
        author=DEFAULT_AUTHOR,
        tags=["auto-generated"],
        status=RuleStatus.ACTIVE,
        change_notes="Metadata generated during sync",
    )


def derive_rule_name(identifier: str) -> str:
    """household_income / householdIncome -> Household Income."""
    words = [w for w in _WORD_BOUNDARY.split(identifier) if w]
    return " ".join(w[:1].upper() + w[1:] for w in words)


def _is_timestamp(value: object) -> bool:
    if isinstance(value, datetime):
        return True
    if not isinstance(value, str):
        return False
    try:
        datetime.fromisoformat(value)
    except ValueError:
        return False
    return True


def _now() -> datetime:
    return datetime.now(UTC)


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def _advance(previous: datetime) -> datetime:
    # Clock resolution can repeat an instant; modified_date must strictly increase.
    now = _now()
    previous = _aware(previous)
    return now if now > previous else previous + timedelta(microseconds=1)
