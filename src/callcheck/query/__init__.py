"""Composable, immutable queries over the graph and symbol stores."""

from callcheck.query.base import BaseQuery, compile_wildcard, method_prefix
from callcheck.query.calls import CallQuery
from callcheck.query.occurrences import OccurrenceQuery
from callcheck.query.scip import ScipQuery
from callcheck.query.scope import MethodScope
from callcheck.query.symbols import SymbolQuery
from callcheck.query.values import ValueQuery

__all__ = [
    "BaseQuery",
    "CallQuery",
    "MethodScope",
    "OccurrenceQuery",
    "ScipQuery",
    "SymbolQuery",
    "ValueQuery",
    "compile_wildcard",
    "method_prefix",
]
