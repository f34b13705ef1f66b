"""Fluent queries over SCIP symbols."""

from __future__ import annotations

import re
from collections.abc import Iterable

from callcheck.core.errors import UsageError
from callcheck.query.base import BaseQuery, compile_wildcard
from callcheck.query.occurrences import OccurrenceQuery
from callcheck.scip.store import SCIPRelationship, SCIPSymbol

_METHOD_RE = re.compile(r"#[^#]+\(\)\.$")
_PROPERTY_RE = re.compile(r"#\$[^.]+\.$")

_RELATIONSHIP_FLAGS = {
    "implementation": "is_implementation",
    "type_definition": "is_type_definition",
    "reference": "is_reference",
}


class SymbolQuery(BaseQuery[SCIPSymbol]):
    """Query builder for symbols.

    Symbol notation (scip-php)::

        scip-php composer app 1.0 App/Service/OrderService#            class
        scip-php composer app 1.0 App/Service/OrderService#create().   method
        scip-php composer app 1.0 App/Entity/Order#$id.                property
    """

    noun = "symbol"

    def _source(self) -> Iterable[SCIPSymbol]:
        return self._store.symbols().values()

    def symbol(self, name: str) -> SymbolQuery:
        return self._with(lambda s: s.symbol == name, f"symbol = '{name}'")

    def symbol_contains(self, fragment: str) -> SymbolQuery:
        return self._with(lambda s: fragment in s.symbol, f"symbol contains '{fragment}'")

    def symbol_matches(self, pattern: str) -> SymbolQuery:
        regex = compile_wildcard(pattern)
        return self._with(
            lambda s: regex.match(s.symbol) is not None, f"symbol matches '{pattern}'"
        )

    def has_documentation(self) -> SymbolQuery:
        return self._with(lambda s: bool(s.documentation), "has documentation")

    def has_relationships(self) -> SymbolQuery:
        return self._with(lambda s: bool(s.relationships), "has relationships")

    def has_relationship_kind(self, kind: str) -> SymbolQuery:
        """Symbols with at least one relationship of ``kind``.

        Args:
            kind: One of implementation, type_definition, reference.
        """
        attr = _RELATIONSHIP_FLAGS.get(kind)
        if attr is None:
            raise UsageError.invalid_argument(
                "kind", kind, f"expected one of {', '.join(_RELATIONSHIP_FLAGS)}"
            )
        return self._with(
            lambda s: any(getattr(r, attr) for r in s.relationships),
            f"has {kind} relationship",
        )

    def is_class(self) -> SymbolQuery:
        return self._with(lambda s: s.symbol.endswith("#"), "is class")

    def is_method(self) -> SymbolQuery:
        return self._with(lambda s: _METHOD_RE.search(s.symbol) is not None, "is method")

    def is_property(self) -> SymbolQuery:
        return self._with(lambda s: _PROPERTY_RE.search(s.symbol) is not None, "is property")

    def occurrences(self) -> OccurrenceQuery:
        """Occurrences of every matching symbol."""
        return OccurrenceQuery(self._store).for_symbols(s.symbol for s in self.all())

    def relationships(self) -> list[SCIPRelationship]:
        return [r for s in self.all() for r in s.relationships]
