"""Immutable query builder base.

A query is a store reference plus a tuple of predicates and a parallel tuple
of human-readable filter descriptions. Filter methods never mutate: they
return a new query whose tuples extend the current ones, so two chains forked
from the same query are independent.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from typing import Any, Generic, Self, TypeVar

from callcheck.core.errors import CheckFailure

T = TypeVar("T")
Predicate = Callable[[Any], bool]


def compile_wildcard(pattern: str) -> re.Pattern[str]:
    """Compile a wildcard pattern to an anchored regex.

    ``*`` matches zero or more characters and ``?`` exactly one. Every other
    character is literal.
    """
    parts: list[str] = []
    for ch in pattern:
        if ch == "*":
            parts.append(".*")
        elif ch == "?":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return re.compile("^" + "".join(parts) + r"\Z", re.DOTALL)


def has_wildcard(pattern: str) -> bool:
    return "*" in pattern or "?" in pattern


def normalize_class_name(class_name: str) -> str:
    """Convert a source class name to indexer symbol notation.

    ``\\App\\Service\\OrderService`` -> ``App/Service/OrderService``
    """
    return class_name.lstrip("\\").replace("\\", "/")


def method_prefix(class_name: str, method: str) -> str:
    """Symbol prefix shared by everything declared inside one method."""
    return f"{normalize_class_name(class_name)}#{method}()"


def line_of(node: Any) -> int | None:
    location = getattr(node, "location", None)
    return location.line if location is not None else None


def file_of(node: Any) -> str | None:
    location = getattr(node, "location", None)
    return location.file if location is not None else None


class BaseQuery(Generic[T]):
    """Shared filter plumbing and terminal operations."""

    noun = "item"

    def __init__(
        self,
        store: Any,
        predicates: tuple[Predicate, ...] = (),
        descriptions: tuple[str, ...] = (),
    ) -> None:
        self._store = store
        self._predicates = predicates
        self._descriptions = descriptions

    def _source(self) -> Iterable[T]:
        raise NotImplementedError

    def _with(self, predicate: Predicate, description: str) -> Self:
        return type(self)(
            self._store,
            self._predicates + (predicate,),
            self._descriptions + (description,),
        )

    def where(self, predicate: Callable[[T], bool], description: str = "custom predicate") -> Self:
        """Add an arbitrary predicate."""
        return self._with(predicate, description)

    def _matches(self, item: T) -> bool:
        return all(p(item) for p in self._predicates)

    @property
    def store(self) -> Any:
        return self._store

    @property
    def descriptions(self) -> list[str]:
        return list(self._descriptions)

    def describe(self) -> str:
        return "; ".join(self._descriptions) if self._descriptions else "no filters"

    # Terminals

    def all(self) -> list[T]:
        """All matching items in store order."""
        return [item for item in self._source() if self._matches(item)]

    def first(self) -> T | None:
        for item in self._source():
            if self._matches(item):
                return item
        return None

    def one(self) -> T:
        """The single matching item.

        Raises:
            CheckFailure: Zero or more than one match.
        """
        results = self.all()
        if len(results) != 1:
            raise CheckFailure.count_mismatch(self.noun, 1, len(results), self.descriptions)
        return results[0]

    def count(self) -> int:
        return sum(1 for item in self._source() if self._matches(item))

    def exists(self) -> bool:
        return self.first() is not None

    def assert_count(self, expected: int) -> Self:
        actual = self.count()
        if actual != expected:
            raise CheckFailure.count_mismatch(self.noun, expected, actual, self.descriptions)
        return self

    def assert_exists(self) -> Self:
        if not self.exists():
            raise CheckFailure.none_found(self.noun, self.descriptions)
        return self

    def __iter__(self):
        return iter(self.all())

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.describe()})"
