"""Tests for rules/discovery.py — loading rule modules."""

from __future__ import annotations

import types
import uuid
from pathlib import Path

import pytest

from couchrules.errors import RuleNotFound
from couchrules.rules.discovery import discover_definitions, load_definition
from couchrules.rules.metadata import create_rule_metadata
from couchrules.rules.predicates import Threshold

_GOOD = '''
from couchrules.rules import Threshold, create_rule_metadata

income_cap = Threshold("income", "<=", 1000, "too high")
metadata = create_rule_metadata(name="Income Cap", description="Caps income")
'''

_NO_METADATA = '''
no_meta = """function (newDoc) { return true; }"""
'''

_WRONG_NAME = '''
from couchrules.rules import Required

something_else = Required("x", "needed")
'''


def _make_package(root: Path, modules: dict[str, str]) -> str:
    name = f"rulepack_{uuid.uuid4().hex[:8]}"
    pkg = root / name
    pkg.mkdir()
    (pkg / "__init__.py").write_text("")
    for mod, source in modules.items():
        (pkg / f"{mod}.py").write_text(source)
    return name


class TestLoadDefinition:
    def test_uses_module_name_as_identifier(self):
        module = types.ModuleType("rules.age_limit")
        module.age_limit = Threshold("age", "<", 65, "too old")  # type: ignore[attr-defined]
        definition = load_definition(module)
        assert definition.identifier == "age_limit"
        assert definition.document_id == "_design/age_limit"
        assert definition.metadata is None

    def test_missing_predicate_raises(self):
        module = types.ModuleType("rules.age_limit")
        with pytest.raises(RuleNotFound, match="no predicate named 'age_limit'"):
            load_definition(module)

    def test_wrong_predicate_type_raises(self):
        module = types.ModuleType("age_limit")
        module.age_limit = lambda doc: True  # type: ignore[attr-defined]
        with pytest.raises(RuleNotFound, match="expected a Predicate"):
            load_definition(module)

    def test_picks_up_metadata(self):
        module = types.ModuleType("age_limit")
        module.age_limit = Threshold("age", "<", 65, "too old")  # type: ignore[attr-defined]
        module.metadata = create_rule_metadata(name="Age", description="Age cap")  # type: ignore[attr-defined]
        assert load_definition(module).metadata is module.metadata

    def test_ignores_foreign_metadata(self):
        module = types.ModuleType("age_limit")
        module.age_limit = Threshold("age", "<", 65, "too old")  # type: ignore[attr-defined]
        module.metadata = {"name": "dict metadata"}  # type: ignore[attr-defined]
        assert load_definition(module).metadata is None


class TestDiscoverDefinitions:
    def test_builtin_package(self):
        result = discover_definitions()
        ids = [d.identifier for d in result.definitions]
        assert ids == [
            "household_income",
            "household_size",
            "interview_complete",
            "number_of_dependents",
        ]
        assert result.errors == {}
        assert isinstance(result.definitions, tuple)

    def test_failures_are_isolated(self, tmp_path, monkeypatch):
        monkeypatch.syspath_prepend(str(tmp_path))
        pkg = _make_package(
            tmp_path,
            {"income_cap": _GOOD, "no_meta": _NO_METADATA, "wrong_name": _WRONG_NAME},
        )
        result = discover_definitions(pkg)
        assert [d.identifier for d in result.definitions] == ["income_cap", "no_meta"]
        assert list(result.errors) == ["wrong_name"]
        assert "no predicate named 'wrong_name'" in result.errors["wrong_name"]

    def test_import_errors_are_collected(self, tmp_path, monkeypatch):
        monkeypatch.syspath_prepend(str(tmp_path))
        pkg = _make_package(tmp_path, {"broken": "import does_not_exist_anywhere\n"})
        result = discover_definitions(pkg)
        assert result.definitions == ()
        assert result.errors["broken"].startswith("Import failed")

    def test_private_modules_skipped(self, tmp_path, monkeypatch):
        monkeypatch.syspath_prepend(str(tmp_path))
        pkg = _make_package(tmp_path, {"_helpers": "X = 1\n", "income_cap": _GOOD})
        result = discover_definitions(pkg)
        assert [d.identifier for d in result.definitions] == ["income_cap"]
        assert result.errors == {}
