"""Scaffold a new rule module and its test file."""

from __future__ import annotations

import keyword
import os
import re
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from couchrules.rules.metadata import is_valid_semantic_version
from couchrules.rules.predicates import OPERATORS

PRESENT = "present"

_NON_WORD = re.compile(r"[^0-9A-Za-z]+")
_CAMEL = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


@dataclass
class RuleScaffold:
    name: str
    description: str
    field_name: str
    reason: str
    operator: str = PRESENT  # one of OPERATORS, or "present" for a Required rule
    limit: int | float | None = None
    required: bool = False
    author: str | None = None
    tags: list[str] = field(default_factory=list)
    version: str = "1.0.0"
    # dotted name the generated test imports the rule module from
    package: str = "couchrules.validators"

    @property
    def identifier(self) -> str:
        return to_identifier(self.name)

    def check(self) -> None:
        """Raise ValueError describing the first unusable setting."""
        if not self.name.strip() or not self.description.strip():
            raise ValueError("name and description are required")
        if not self.field_name or not self.reason:
            raise ValueError("field_name and reason are required")
        if self.operator != PRESENT:
            if self.operator not in OPERATORS:
                raise ValueError(f"operator must be one of {(*OPERATORS, PRESENT)}")
            if self.limit is None:
                raise ValueError(f"operator {self.operator!r} needs a numeric limit")
        if not is_valid_semantic_version(self.version):
            raise ValueError(f"Invalid semantic version: {self.version}")
        if not all(part.isidentifier() for part in self.package.split(".")):
            raise ValueError(f"package must be a dotted module name, got {self.package!r}")


def to_identifier(name: str) -> str:
    """Display name -> snake_case module/predicate name."""
    words = _NON_WORD.split(_CAMEL.sub(" ", name.strip()))
    ident = "_".join(w.lower() for w in words if w)
    if not ident or not ident.isidentifier() or keyword.iskeyword(ident):
        raise ValueError(f"Cannot derive a Python identifier from {name!r}")
    return ident


def scaffold_rule(scaffold: RuleScaffold, validators_dir: Path, tests_dir: Path) -> list[Path]:
    """Write validators/<identifier>.py and tests/test_rule_<identifier>.py.

    Refuses to overwrite either file. Returns the written paths.
    """
    scaffold.check()
    ident = scaffold.identifier
    module_path = validators_dir / f"{ident}.py"
    test_path = tests_dir / f"test_rule_{ident}.py"
    for path in (module_path, test_path):
        if path.exists():
            raise FileExistsError(f"{path} already exists")

    validators_dir.mkdir(parents=True, exist_ok=True)
    tests_dir.mkdir(parents=True, exist_ok=True)
    _atomic_write(module_path, render_module(scaffold))
    try:
        _atomic_write(test_path, render_test(scaffold))
    except BaseException:
        module_path.unlink(missing_ok=True)
        raise
    return [module_path, test_path]


def render_module(s: RuleScaffold) -> str:
    ident = s.identifier
    if s.operator == PRESENT:
        imports = "Required, create_rule_metadata"
        predicate = f"Required({s.field_name!r}, {s.reason!r})"
    else:
        imports = "Threshold, create_rule_metadata"
        predicate = (
            f"Threshold(\n    {s.field_name!r},\n    {s.operator!r},\n    {s.limit!r},\n"
            f"    {s.reason!r},\n    required={s.required!r},\n)"
        )
    author = f"\n    author={s.author!r}," if s.author else ""
    return (
        f"{s.description!r}\n\n"
        f"from couchrules.rules import {imports}\n\n"
        f"{ident} = {predicate}\n\n"
        "metadata = create_rule_metadata(\n"
        f"    name={s.name!r},\n"
        f"    description={s.description!r},\n"
        f"    version={s.version!r},{author}\n"
        f"    tags={list(s.tags)!r},\n"
        ")\n"
    )


def render_test(s: RuleScaffold) -> str:
    ident = s.identifier
    valid, invalid = _sample_values(s)
    class_name = "".join(w.capitalize() for w in ident.split("_"))
    return (
        f'"""Tests for the {ident} rule."""\n\n'
        "import pytest\n\n"
        "from couchrules.errors import RuleRejection\n"
        "from couchrules.rules import validate_metadata\n"
        f"from {s.package}.{ident} import {ident}, metadata\n\n\n"
        f"class Test{class_name}:\n"
        "    def test_accepts_valid_document(self):\n"
        f"        assert {ident}({{{s.field_name!r}: {valid!r}}}) is True\n\n"
        "    def test_rejects_invalid_document(self):\n"
        "        with pytest.raises(RuleRejection) as exc_info:\n"
        f"            {ident}({{{s.field_name!r}: {invalid!r}}})\n"
        f"        assert exc_info.value.reason == {s.reason!r}\n\n"
        "    def test_metadata_is_valid(self):\n"
        "        assert validate_metadata(metadata).is_valid\n"
    )


def _sample_values(s: RuleScaffold) -> tuple[object, object]:
    if s.operator == PRESENT:
        return "yes", ""
    limit = s.limit or 0
    step = 1
    return {
        "<": (limit - step, limit + step),
        "<=": (limit, limit + step),
        ">": (limit + step, limit - step),
        ">=": (limit, limit - step),
        "==": (limit, limit + step),
        "!=": (limit + step, limit),
    }[s.operator]


def _atomic_write(path: Path, content: str) -> None:
    """Write content to path atomically using tempfile + os.replace."""
    fd, tmp = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise
