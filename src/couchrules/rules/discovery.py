"""Load rule definitions from Python modules.

A rule module exposes its predicate under an attribute named after the module
(``household_income.household_income``) and, optionally, a ``metadata``
attribute holding a RuleMetadata.
"""

from __future__ import annotations

import importlib
import logging
import pkgutil
from dataclasses import dataclass, field
from types import ModuleType

from couchrules.errors import RuleNotFound
from couchrules.rules.models import RuleDefinition, RuleMetadata
from couchrules.rules.predicates import Predicate

logger = logging.getLogger(__name__)

DEFAULT_PACKAGE = "couchrules.validators"


@dataclass(frozen=True)
class DiscoveryResult:
    definitions: tuple[RuleDefinition, ...] = ()
    # identifier -> reason the module could not be loaded
    errors: dict[str, str] = field(default_factory=dict)


def load_definition(module: ModuleType, identifier: str | None = None) -> RuleDefinition:
    """Build a RuleDefinition from a rule module. Raises RuleNotFound."""
    identifier = identifier or module.__name__.rsplit(".", 1)[-1]
    predicate = getattr(module, identifier, None)
    if predicate is None:
        raise RuleNotFound(f"Module {module.__name__} has no predicate named '{identifier}'")
    if not isinstance(predicate, (Predicate, str)):
        raise RuleNotFound(
            f"{module.__name__}.{identifier} is a {type(predicate).__name__}, "
            "expected a Predicate or JavaScript source"
        )

    metadata = getattr(module, "metadata", None)
    if metadata is not None and not isinstance(metadata, RuleMetadata):
        logger.warning(f"Ignoring non-RuleMetadata 'metadata' in {module.__name__}")
        metadata = None

    return RuleDefinition(identifier=identifier, predicate=predicate, metadata=metadata)


def discover_definitions(package: str | ModuleType = DEFAULT_PACKAGE) -> DiscoveryResult:
    """Import every public submodule of ``package`` and load its rule."""
    pkg = importlib.import_module(package) if isinstance(package, str) else package
    definitions: list[RuleDefinition] = []
    errors: dict[str, str] = {}

    names = sorted(
        info.name
        for info in pkgutil.iter_modules(pkg.__path__)
        if not info.name.startswith("_") and not info.ispkg
    )
    for name in names:
        try:
            module = importlib.import_module(f"{pkg.__name__}.{name}")
            definitions.append(load_definition(module, name))
        except RuleNotFound as e:
            logger.warning(str(e))
            errors[name] = str(e)
        except ImportError as e:
            logger.warning(f"Failed to import rule module {name}: {e}")
            errors[name] = f"Import failed: {e}"

    return DiscoveryResult(definitions=tuple(definitions), errors=errors)
