"""Entry point for symbol and occurrence queries."""

from __future__ import annotations

from callcheck.query.base import has_wildcard
from callcheck.query.occurrences import OccurrenceQuery
from callcheck.query.symbols import SymbolQuery
from callcheck.scip.store import ScipStore


class ScipQuery:
    def __init__(self, store: ScipStore) -> None:
        self._store = store

    @property
    def store(self) -> ScipStore:
        return self._store

    def symbols(self) -> SymbolQuery:
        return SymbolQuery(self._store)

    def occurrences(self) -> OccurrenceQuery:
        return OccurrenceQuery(self._store)

    def symbol(self, name_or_pattern: str) -> SymbolQuery:
        """Symbols by source name or wildcard pattern.

        ``App\\Service\\OrderService`` is looked up as
        ``App/Service/OrderService``. Names already in symbol notation
        (containing ``/`` or ``#``) are used as given.
        """
        name = name_or_pattern
        if "/" not in name and "#" not in name:
            name = name.replace("\\", "/")
        if has_wildcard(name):
            return self.symbols().symbol_matches(name)
        return self.symbols().symbol_contains(name)

    def occurrence_at(self, file: str, line: int) -> OccurrenceQuery:
        return self.occurrences().in_file(file).at_line(line)
