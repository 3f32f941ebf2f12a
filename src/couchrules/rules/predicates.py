"""Predicates usable both in-process and as CouchDB validate_doc_update functions.

Each predicate is called with a candidate document and either returns True or
raises RuleRejection. ``to_javascript()`` renders the same check with CouchDB's
``function (newDoc, oldDoc, userCtx, secObj)`` signature, throwing
``{forbidden: reason}`` on rejection.

Deleted documents and design documents are never rejected, so rules cannot
block deletions or the deployment of other rules.
"""

from __future__ import annotations

import json
import operator
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from typing import Any

from couchrules.errors import RuleRejection

_PY_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "==": operator.eq,
    "!=": operator.ne,
}
_JS_OPERATORS = {"<": "<", "<=": "<=", ">": ">", ">=": ">=", "==": "===", "!=": "!=="}
OPERATORS = tuple(_PY_OPERATORS)

_JS_TEMPLATE = """function (newDoc, oldDoc, userCtx, secObj) {{
    if (newDoc._deleted === true) {{
        return true;
    }}
    if (typeof newDoc._id === "string" && newDoc._id.indexOf("_design/") === 0) {{
        return true;
    }}
    var value = newDoc[{field}];
{body}
    return true;
}}"""


class Predicate(ABC):
    """A field check over a candidate document."""

    def __init__(self, field: str, reason: str) -> None:
        if not field:
            raise ValueError("field must be a non-empty string")
        if not reason:
            raise ValueError("reason must be a non-empty string")
        self.field = field
        self.reason = reason

    def __call__(self, document: Mapping[str, Any]) -> bool:
        if document.get("_deleted") is True:
            return True
        doc_id = document.get("_id")
        if isinstance(doc_id, str) and doc_id.startswith("_design/"):
            return True
        self.check(document.get(self.field))
        return True

    @abstractmethod
    def check(self, value: Any) -> None:
        """Raise RuleRejection if ``value`` is unacceptable."""

    @abstractmethod
    def javascript_body(self) -> str:
        """Statements operating on ``value``; indented four spaces."""

    def to_javascript(self) -> str:
        return _JS_TEMPLATE.format(field=json.dumps(self.field), body=self.javascript_body())

    def reject(self) -> None:
        raise RuleRejection(self.reason)

    def _js_throw(self) -> str:
        return f"throw ({{forbidden: {json.dumps(self.reason)}}});"


class Threshold(Predicate):
    """Numeric comparison: the document passes when ``value <op> limit`` holds.

    A missing or null field passes unless ``required`` is set. Non-numeric
    values (booleans included) are rejected.
    """

    def __init__(
        self,
        field: str,
        op: str,
        limit: int | float,
        reason: str,
        *,
        required: bool = False,
    ) -> None:
        super().__init__(field, reason)
        if op not in _PY_OPERATORS:
            raise ValueError(f"Unsupported operator {op!r}; expected one of {OPERATORS}")
        if not _is_number(limit):
            raise ValueError(f"limit must be a number, got {limit!r}")
        self.op = op
        self.limit = limit
        self.required = required

    def check(self, value: Any) -> None:
        if value is None:
            if self.required:
                self.reject()
            return
        if not _is_number(value) or not _PY_OPERATORS[self.op](value, self.limit):
            self.reject()

    def javascript_body(self) -> str:
        missing = self._js_throw() if self.required else "return true;"
        cond = f"value {_JS_OPERATORS[self.op]} {json.dumps(self.limit)}"
        return (
            "    if (value === undefined || value === null) {\n"
            f"        {missing}\n"
            "    }\n"
            f'    if (typeof value !== "number" || !({cond})) {{\n'
            f"        {self._js_throw()}\n"
            "    }"
        )

    def __repr__(self) -> str:
        return f"Threshold({self.field!r}, {self.op!r}, {self.limit!r})"


class Required(Predicate):
    """The field must be present and filled in.

    Missing, null, false and blank strings are rejected; any other value is
    accepted.
    """

    def check(self, value: Any) -> None:
        if value is None or value is False:
            self.reject()
        if isinstance(value, str) and not value.strip():
            self.reject()

    def javascript_body(self) -> str:
        return (
            "    if (value === undefined || value === null || value === false ||\n"
            '            (typeof value === "string" && value.trim().length === 0)) {\n'
            f"        {self._js_throw()}\n"
            "    }"
        )

    def __repr__(self) -> str:
        return f"Required({self.field!r})"


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
