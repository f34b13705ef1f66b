"""One value per declaration.

A declared parameter has exactly one value node in its method; a local has
one per assignment line, the first being canonical. Receivers that use the
variable reuse that node's id instead of creating a value per usage site.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from callcheck.core.errors import CheckFailure, UsageError
from callcheck.core.logging import get_logger
from callcheck.graph.models import ValueKind
from callcheck.graph.store import GraphStore
from callcheck.query.scope import MethodScope

log = get_logger("checks.reference")

VariableKind = Literal["parameter", "local"]


@dataclass(frozen=True)
class ReferenceResult:
    """Outcome of a reference consistency check."""

    success: bool
    value_id: str
    value_count: int
    call_count: int
    message: str
    value_ids: tuple[str, ...] = ()
    receiver_call_ids: tuple[str, ...] = field(default=(), repr=False)

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "value_id": self.value_id,
            "value_count": self.value_count,
            "call_count": self.call_count,
            "message": self.message,
            "value_ids": list(self.value_ids),
            "receiver_call_ids": list(self.receiver_call_ids),
        }


class ReferenceConsistencyChecker:
    """Resolves a named variable to its canonical value node.

    Usage::

        result = (
            ReferenceConsistencyChecker(store)
            .in_method("App\\Repository\\OrderRepository", "save")
            .for_parameter("$order")
            .verify()
        )
        assert result.call_count >= 1
    """

    def __init__(
        self,
        store: GraphStore,
        *,
        _scope: MethodScope | None = None,
        _name: str | None = None,
        _kind: VariableKind | None = None,
    ) -> None:
        self._store = store
        self._scope = _scope
        self._name = _name
        self._kind = _kind

    def in_method(self, class_name: str, method: str) -> ReferenceConsistencyChecker:
        return ReferenceConsistencyChecker(
            self._store,
            _scope=MethodScope(self._store, class_name, method),
            _name=self._name,
            _kind=self._kind,
        )

    def for_parameter(self, name: str) -> ReferenceConsistencyChecker:
        return ReferenceConsistencyChecker(
            self._store, _scope=self._scope, _name=name, _kind="parameter"
        )

    def for_local(self, name: str) -> ReferenceConsistencyChecker:
        return ReferenceConsistencyChecker(
            self._store, _scope=self._scope, _name=name, _kind="local"
        )

    def verify(self) -> ReferenceResult:
        """Resolve the canonical value and count receivers that reuse it.

        Raises:
            UsageError: in_method() or for_parameter()/for_local() not called.
            CheckFailure: A parameter does not have exactly one value, or a
                local has none.
        """
        if self._scope is None:
            raise UsageError.missing_precondition("Must call in_method() before verify()")
        if self._name is None or self._kind is None:
            raise UsageError.missing_precondition(
                "Must call for_parameter() or for_local() before verify()"
            )
        scope, name, kind = self._scope, self._name, self._kind

        if kind == "parameter":
            pattern = scope.parameter_symbol(name)
            values = scope.values().kind(ValueKind.PARAMETER).symbol_contains(pattern).all()
            if len(values) != 1:
                ids = [v.id for v in values]
                raise CheckFailure.reference(
                    f"Expected exactly 1 value for parameter {name} in {scope.prefix}, "
                    f"found {len(values)}" + (f": {', '.join(ids)}" if ids else "")
                    + f". Symbol pattern: {pattern}",
                    variable=name,
                    kind=kind,
                    value_ids=ids,
                    symbol_pattern=pattern,
                )
        else:
            pattern = scope.local_symbol_prefix(name)
            values = scope.values().kind(ValueKind.LOCAL).symbol_contains(pattern).all()
            if not values:
                raise CheckFailure.reference(
                    f"No value found for local {name} in {scope.prefix}. "
                    f"Symbol pattern: {pattern}",
                    variable=name,
                    kind=kind,
                    value_ids=[],
                    symbol_pattern=pattern,
                )

        value_id = values[0].id
        receivers = scope.calls().with_receiver_value_id(value_id).all()
        log.debug(
            "reference_checked",
            scope=scope.prefix,
            variable=name,
            value_id=value_id,
            values=len(values),
            receivers=len(receivers),
        )
        return ReferenceResult(
            success=True,
            value_id=value_id,
            value_count=len(values),
            call_count=len(receivers),
            message=(
                f"Reference consistency verified for {kind} {name} in {scope.prefix}: "
                f"value id={value_id}, {len(receivers)} call(s) reference it"
            ),
            value_ids=tuple(v.id for v in values),
            receiver_call_ids=tuple(c.id for c in receivers),
        )
