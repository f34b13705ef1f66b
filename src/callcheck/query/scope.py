"""Queries narrowed to a single method."""

from __future__ import annotations

from callcheck.graph.store import GraphStore
from callcheck.query.base import method_prefix, normalize_class_name
from callcheck.query.calls import CallQuery
from callcheck.query.values import ValueQuery


class MethodScope:
    """Everything declared or executed inside ``Class::method``.

    Values are matched by symbol, calls by caller, both by substring on the
    ``Class#method()`` prefix.
    """

    def __init__(self, store: GraphStore, class_name: str, method: str) -> None:
        self._store = store
        self._class_name = normalize_class_name(class_name)
        self._method = method
        self._prefix = method_prefix(class_name, method)

    @property
    def class_name(self) -> str:
        return self._class_name

    @property
    def method(self) -> str:
        return self._method

    @property
    def prefix(self) -> str:
        return self._prefix

    def values(self) -> ValueQuery:
        return ValueQuery(self._store).symbol_contains(self._prefix)

    def calls(self) -> CallQuery:
        return CallQuery(self._store).caller_contains(self._prefix)

    def parameter_symbol(self, name: str) -> str:
        """Symbol suffix of a parameter, e.g. ``App/Foo#bar().($order)``."""
        return f"{self._prefix}.({_dollar(name)})"

    def local_symbol_prefix(self, name: str) -> str:
        """Symbol prefix of a local; the indexer appends ``@line``."""
        return f"{self._prefix}.local{_dollar(name)}"

    def __repr__(self) -> str:
        return f"MethodScope({self._prefix!r})"


def _dollar(name: str) -> str:
    return name if name.startswith("$") else f"${name}"
