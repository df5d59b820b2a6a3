"""Ready-made predicates over mapping inputs.

Used by the command line, where inputs arrive as JSON objects:

    {"equals": {"kind": "button"}}      every listed field equals the value
    {"contains": {"text": "click"}}     every listed field contains the substring
    {"exists": "kind"}                  the field is present and not null
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from markdb.query.engine import QueryEngine

_MISSING = object()


def _field(input: Any, name: str) -> Any:
    if isinstance(input, Mapping):
        return input.get(name, _MISSING)
    return getattr(input, name, _MISSING)


def _equals(expected: dict[str, Any]):
    return lambda input: all(_field(input, k) == v for k, v in expected.items())


def _contains(expected: dict[str, str]):
    def check(input: Any) -> bool:
        for name, needle in expected.items():
            value = _field(input, name)
            if not isinstance(value, str) or needle not in value:
                return False
        return True
    return check


def _exists(name: str):
    return lambda input: _field(input, name) not in (_MISSING, None)


def field_query_engine(engine: QueryEngine[Any] | None = None) -> QueryEngine[Any]:
    """Return engine (or a default one) extended with the field predicates."""
    base = engine if engine is not None else QueryEngine.default()
    return (
        base.add_predicate("equals", dict[str, Any], _equals)
        .add_predicate("contains", dict[str, str], _contains)
        .add_predicate("exists", str, _exists)
    )
