"""Fluent queries over the values collection."""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

from callcheck.graph.models import Value
from callcheck.query.base import BaseQuery, compile_wildcard, file_of, line_of


class ValueQuery(BaseQuery[Value]):
    """Query builder for values."""

    noun = "value"

    def _source(self) -> Iterable[Value]:
        return self._store.values

    def kind(self, kind: str | Enum) -> ValueQuery:
        k = kind.value if isinstance(kind, Enum) else kind
        return self._with(lambda v: v.kind == k, f"kind = '{k}'")

    def symbol(self, symbol: str) -> ValueQuery:
        return self._with(lambda v: v.symbol == symbol, f"symbol = '{symbol}'")

    def symbol_contains(self, fragment: str) -> ValueQuery:
        return self._with(
            lambda v: v.symbol is not None and fragment in v.symbol,
            f"symbol contains '{fragment}'",
        )

    def symbol_matches(self, pattern: str) -> ValueQuery:
        regex = compile_wildcard(pattern)
        return self._with(
            lambda v: v.symbol is not None and regex.match(v.symbol) is not None,
            f"symbol matches '{pattern}'",
        )

    def in_caller(self, pattern: str) -> ValueQuery:
        """Values whose symbol matches a wildcard scope pattern.

        Example: ``*OrderService#create().*``
        """
        regex = compile_wildcard(pattern)
        return self._with(
            lambda v: v.symbol is not None and regex.match(v.symbol) is not None,
            f"in caller '{pattern}'",
        )

    def in_file(self, path: str) -> ValueQuery:
        return self._with(
            lambda v: (f := file_of(v)) is not None and path in f,
            f"in file '{path}'",
        )

    def at_line(self, line: int) -> ValueQuery:
        return self._with(lambda v: line_of(v) == line, f"at line {line}")

    def between_lines(self, start: int, end: int) -> ValueQuery:
        return self._with(
            lambda v: (n := line_of(v)) is not None and start <= n <= end,
            f"between lines {start}-{end}",
        )

    def has_source_call_id(self) -> ValueQuery:
        return self._with(lambda v: v.source_call_id is not None, "has source_call_id")

    def has_source_value_id(self) -> ValueQuery:
        return self._with(lambda v: v.source_value_id is not None, "has source_value_id")

    def with_type(self, type_name: str) -> ValueQuery:
        return self._with(lambda v: v.type == type_name, f"type = '{type_name}'")
