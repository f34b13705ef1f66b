"""Fluent queries over SCIP occurrences.

Occurrence ranges are 0-based; line filters take 1-based editor lines and
convert.
"""

from __future__ import annotations

from collections.abc import Iterable

from callcheck.core.errors import CheckFailure
from callcheck.query.base import BaseQuery, compile_wildcard
from callcheck.scip.store import SCIPOccurrence, SymbolRole


class OccurrenceQuery(BaseQuery[SCIPOccurrence]):
    """Query builder for symbol occurrences."""

    noun = "occurrence"

    def _source(self) -> Iterable[SCIPOccurrence]:
        return self._store.all_occurrences()

    def for_symbols(self, symbols: Iterable[str]) -> OccurrenceQuery:
        wanted = frozenset(symbols)
        return self._with(lambda o: o.symbol in wanted, f"symbol in {sorted(wanted)}")

    def for_symbol(self, symbol: str) -> OccurrenceQuery:
        return self._with(lambda o: o.symbol == symbol, f"symbol = '{symbol}'")

    def symbol_contains(self, fragment: str) -> OccurrenceQuery:
        return self._with(lambda o: fragment in o.symbol, f"symbol contains '{fragment}'")

    def symbol_matches(self, pattern: str) -> OccurrenceQuery:
        regex = compile_wildcard(pattern)
        return self._with(
            lambda o: regex.match(o.symbol) is not None, f"symbol matches '{pattern}'"
        )

    def in_file(self, path: str) -> OccurrenceQuery:
        return self._with(lambda o: path in o.file, f"in file '{path}'")

    def at_line(self, line: int) -> OccurrenceQuery:
        scip_line = line - 1
        return self._with(lambda o: o.line == scip_line, f"at line {line}")

    def between_lines(self, start: int, end: int) -> OccurrenceQuery:
        lo, hi = start - 1, end - 1
        return self._with(
            lambda o: o.line is not None and lo <= o.line <= hi,
            f"between lines {start}-{end}",
        )

    def is_definition(self) -> OccurrenceQuery:
        return self._with(lambda o: o.has_role(SymbolRole.DEFINITION), "is definition")

    def is_reference(self) -> OccurrenceQuery:
        return self._with(lambda o: not o.has_role(SymbolRole.DEFINITION), "is reference")

    def is_import(self) -> OccurrenceQuery:
        return self._with(lambda o: o.has_role(SymbolRole.IMPORT), "is import")

    def is_write_access(self) -> OccurrenceQuery:
        return self._with(lambda o: o.has_role(SymbolRole.WRITE_ACCESS), "is write access")

    def is_read_access(self) -> OccurrenceQuery:
        return self._with(lambda o: o.has_role(SymbolRole.READ_ACCESS), "is read access")

    @staticmethod
    def role_names(occurrence: SCIPOccurrence) -> list[str]:
        return occurrence.role_names()

    def assert_empty(self) -> OccurrenceQuery:
        actual = self.count()
        if actual:
            raise CheckFailure.count_mismatch(self.noun, 0, actual, self.descriptions)
        return self
