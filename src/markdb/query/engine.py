"""Declarative query engine.

A query is a single-key mapping. The base operators are::

    {"always": true}
    {"never": true}
    {"and": [query, query, ...]}
    {"or": [query, query, ...]}
    {"not": query}

Any other key must name a predicate registered with add_predicate(), whose
value is the predicate's parameter. Engines are immutable: add_predicate()
returns a new engine and leaves the original untouched.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Annotated, Any, Generic, TypeVar

from pydantic import AfterValidator, TypeAdapter, ValidationError, WithJsonSchema

from markdb.errors import QueryValidationError
from markdb.query.hashing import stable_hash

logger = logging.getLogger(__name__)

InputT = TypeVar("InputT")

RESERVED_OPERATORS = frozenset({"always", "never", "and", "or", "not"})

NEVER_QUERY: dict[str, Any] = {"never": True}


@dataclass(frozen=True)
class QueryPredicate:
    """A named predicate: validated parameter in, input test out."""
    name: str
    adapter: TypeAdapter
    handler: Callable[[Any], Callable[[Any], bool]]


def _operator_schema(name: str, value_schema: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": "object",
        "properties": {name: value_schema},
        "required": [name],
        "additionalProperties": False,
    }


class QueryEngine(Generic[InputT]):
    """Evaluates query expressions against input values, with memoization."""

    def __init__(self, predicates: tuple[QueryPredicate, ...] = ()) -> None:
        self._predicates: dict[str, QueryPredicate] = {p.name: p for p in predicates}
        self._cache: dict[tuple[str, str], bool] = {}

    @classmethod
    def default(cls) -> QueryEngine[Any]:
        """Engine that only knows the base operators."""
        return cls()

    def add_predicate(
        self,
        name: str,
        param_type: Any,
        handler: Callable[[Any], Callable[[InputT], bool]],
    ) -> QueryEngine[InputT]:
        """Return a new engine with an extra predicate.

        Args:
            name: Key used for the predicate inside a query mapping.
            param_type: Type the predicate parameter is validated against
                (anything pydantic's TypeAdapter accepts).
            handler: Receives the validated parameter and returns a
                function testing one input.

        Raises:
            ValueError: if the name is a base operator or already registered.
        """
        if name in RESERVED_OPERATORS:
            raise ValueError(f"Predicate name {name!r} is reserved")
        if name in self._predicates:
            raise ValueError(f"Predicate {name!r} is already registered")
        predicate = QueryPredicate(name=name, adapter=TypeAdapter(param_type), handler=handler)
        return QueryEngine((*self._predicates.values(), predicate))

    @property
    def predicate_names(self) -> list[str]:
        return list(self._predicates)

    # ── Validation ──

    def validate(self, query: Any) -> dict[str, Any]:
        """Validate a query and return it with predicate parameters normalized.

        Raises:
            QueryValidationError: if the query does not fit the grammar.
        """
        return self._validate(query, "query")

    def _validate(self, query: Any, location: str) -> dict[str, Any]:
        if not isinstance(query, Mapping):
            raise QueryValidationError(
                f"{location}: expected a mapping, got {type(query).__name__}"
            )
        if len(query) != 1:
            raise QueryValidationError(
                f"{location}: expected exactly one operator, got {sorted(query)}"
            )
        ((key, value),) = query.items()

        if key in ("always", "never"):
            if value is not True:
                raise QueryValidationError(f"{location}.{key}: expected true, got {value!r}")
            return {key: True}

        if key in ("and", "or"):
            if not isinstance(value, (list, tuple)) or len(value) < 2:
                raise QueryValidationError(
                    f"{location}.{key}: expected a list of at least 2 queries"
                )
            return {
                key: [self._validate(q, f"{location}.{key}[{i}]") for i, q in enumerate(value)]
            }

        if key == "not":
            return {"not": self._validate(value, f"{location}.not")}

        predicate = self._predicates.get(key)
        if predicate is None:
            raise QueryValidationError(f"{location}: unknown predicate {key!r}")
        try:
            param = predicate.adapter.validate_python(value)
        except ValidationError as err:
            raise QueryValidationError(f"{location}.{key}: {err}") from err
        return {key: param}

    @property
    def json_schema(self) -> dict[str, Any]:
        """JSON schema describing one query expression.

        Nested queries are described as plain objects.
        """
        nested = {"type": "object"}
        variants = [
            _operator_schema("and", {"type": "array", "items": nested, "minItems": 2}),
            _operator_schema("or", {"type": "array", "items": nested, "minItems": 2}),
            _operator_schema("not", nested),
            _operator_schema("always", {"const": True}),
            _operator_schema("never", {"const": True}),
        ]
        for predicate in self._predicates.values():
            variants.append(_operator_schema(predicate.name, predicate.adapter.json_schema()))
        return {"anyOf": variants}

    @property
    def field_type(self) -> Any:
        """Annotated type validating a query field inside a pydantic model."""
        return Annotated[
            dict[str, Any],
            AfterValidator(self.validate),
            WithJsonSchema(self.json_schema),
        ]

    # ── Evaluation ──

    def match(
        self,
        query: Any,
        input: InputT,
        *,
        skip_validation: bool = False,
        use_cache: bool = False,
    ) -> bool:
        """Evaluate query against input.

        A None query never matches. With use_cache, results are memoized by
        the structural hash of the query and the input until clear_cache().
        Inputs without a structural form (plain objects) are never memoized.

        Raises:
            QueryValidationError: if the query is malformed.
        """
        if query is None:
            return False

        parsed = query if skip_validation else self.validate(query)
        if not use_cache:
            return self._apply(parsed, input)

        try:
            key = (stable_hash(parsed), stable_hash(input))
        except (TypeError, ValueError):
            logger.debug("Evaluating uncached, no structural hash for %s", type(input).__name__)
            return self._apply(parsed, input)

        cached = self._cache.get(key)
        if cached is None:
            cached = self._apply(parsed, input)
            self._cache[key] = cached
        return cached

    def _apply(self, query: Any, input: InputT) -> bool:
        if not isinstance(query, Mapping):
            raise QueryValidationError(f"Expected a query mapping, got {type(query).__name__}")

        if "always" in query:
            return True
        if "never" in query:
            return False
        if "and" in query:
            subqueries = query["and"]
            return bool(subqueries) and all(self._apply(q, input) for q in subqueries)
        if "or" in query:
            subqueries = query["or"]
            return bool(subqueries) and any(self._apply(q, input) for q in subqueries)
        if "not" in query:
            return not self._apply(query["not"], input)

        for name, predicate in self._predicates.items():
            if name in query:
                return bool(predicate.handler(query[name])(input))
        raise QueryValidationError(f"Unknown predicate in query: {sorted(query)}")

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    def clear_cache(self) -> None:
        """Drop all memoized match results."""
        if self._cache:
            logger.debug("Clearing %d cached query results", len(self._cache))
        self._cache.clear()
