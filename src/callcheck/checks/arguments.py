"""Argument binding verification.

Checks that the argument at a given position of a call is bound to the
expected value: a parameter or local by name, a literal, or the result of
another call.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from callcheck.core.errors import CheckFailure, UsageError
from callcheck.core.logging import get_logger
from callcheck.graph.models import Argument, Call, Value, ValueKind
from callcheck.graph.store import GraphStore
from callcheck.query.base import method_prefix, normalize_class_name
from callcheck.query.calls import CallQuery

log = get_logger("checks.arguments")


@dataclass(frozen=True)
class ArgumentBinding:
    """The resolved call, argument and bound value."""

    call: Call
    argument: Argument
    value: Value
    source_call: Call | None = None

    def describe(self) -> str:
        return (
            f"{self.call.describe()} argument {self.argument.position} -> {self.value.describe()}"
        )


@dataclass(frozen=True)
class _Expectation:
    class_name: str | None = None
    method: str | None = None
    callee: str | None = None
    line: int | None = None
    position: int | None = None
    kind: str | None = None
    name: str | None = None
    result_kind: str | None = None
    result_callee: str | None = None


class ArgumentBindingChecker:
    """Verifies what one call argument is bound to.

    Usage::

        (
            ArgumentBindingChecker(store)
            .in_method("App\\Service\\OrderService", "createOrder")
            .at_call("checkAvailability")
            .position(0)
            .points_to_parameter("$input")
            .verify()
        )
    """

    def __init__(self, store: GraphStore, _expect: _Expectation | None = None) -> None:
        self._store = store
        self._expect = _expect or _Expectation()

    def _with(self, **changes: object) -> ArgumentBindingChecker:
        return ArgumentBindingChecker(self._store, replace(self._expect, **changes))

    def in_method(self, class_name: str, method: str) -> ArgumentBindingChecker:
        return self._with(class_name=normalize_class_name(class_name), method=method)

    def at_call(self, callee: str) -> ArgumentBindingChecker:
        """Select the call whose callee contains ``callee``."""
        return self._with(callee=callee)

    def at_line(self, line: int) -> ArgumentBindingChecker:
        return self._with(line=line)

    def position(self, position: int) -> ArgumentBindingChecker:
        if position < 0:
            raise UsageError.invalid_argument("position", position, "must be >= 0")
        return self._with(position=position)

    def points_to_parameter(self, name: str) -> ArgumentBindingChecker:
        return self._with(kind=ValueKind.PARAMETER.value, name=name)

    def points_to_local(self, name: str) -> ArgumentBindingChecker:
        return self._with(kind=ValueKind.LOCAL.value, name=name)

    def points_to_literal(self) -> ArgumentBindingChecker:
        return self._with(kind=ValueKind.LITERAL.value, name=None)

    def points_to_result_of(self, kind: str, callee_substring: str) -> ArgumentBindingChecker:
        return self._with(
            kind=ValueKind.RESULT.value,
            name=None,
            result_kind=kind,
            result_callee=callee_substring,
        )

    def verify(self) -> ArgumentBinding:
        """Resolve the binding and check it against the expectation.

        Raises:
            UsageError: Scope, call selector, position or expectation missing.
            CheckFailure: The call, argument or value is missing, or the value
                does not match.
        """
        e = self._validate()
        where = f"{e.class_name}::{e.method}"
        call = self._find_call(e)
        pos = e.position

        if not call.arguments:
            raise CheckFailure.argument(
                f"Call {call.id} ({call.callee}) has no arguments, expected one at position {pos}",
                call_id=call.id,
                position=pos,
            )
        argument = call.argument_at(pos)  # type: ignore[arg-type]
        if argument is None:
            available = ", ".join(str(a.position) for a in call.arguments)
            raise CheckFailure.argument(
                f"No argument at position {pos} for call {call.id} ({call.callee}). "
                f"Available positions: {available}",
                call_id=call.id,
                position=pos,
            )
        if argument.value_id is None:
            raise CheckFailure.argument(
                f"Argument at position {pos} of call {call.id} has no value_id"
                + (f" (expression: {argument.value_expr})" if argument.value_expr else ""),
                call_id=call.id,
                position=pos,
            )
        value = self._store.value_by_id(argument.value_id)
        if value is None:
            raise CheckFailure.argument(
                f"Argument value_id {argument.value_id} does not exist in values",
                call_id=call.id,
                position=pos,
                value_id=argument.value_id,
            )
        if value.kind != e.kind:
            raise CheckFailure.argument(
                f"Argument at position {pos} in {where} points to {value.kind or 'unknown'} "
                f"value (id={value.id}), expected {e.kind}",
                call_id=call.id,
                position=pos,
                value_id=value.id,
                expected=e.kind,
                actual=value.kind,
            )

        if e.name is not None:
            bare = e.name.lstrip("$")
            needle = f"(${bare})" if e.kind == ValueKind.PARAMETER.value else f"local${bare}"
            if needle not in (value.symbol or ""):
                raise CheckFailure.argument(
                    f"Argument at position {pos} points to value with symbol "
                    f"'{value.symbol or ''}', expected {e.kind} {e.name}",
                    call_id=call.id,
                    position=pos,
                    value_id=value.id,
                    symbol=value.symbol,
                )

        source_call = None
        if e.kind == ValueKind.RESULT.value and e.result_callee is not None:
            source_call = self._check_source_call(value, e)

        binding = ArgumentBinding(
            call=call, argument=argument, value=value, source_call=source_call
        )
        log.debug("argument_binding_verified", binding=binding.describe())
        return binding

    def _validate(self) -> _Expectation:
        e = self._expect
        if e.class_name is None or e.method is None:
            raise UsageError.missing_precondition("Must call in_method() before verify()")
        if e.callee is None and e.line is None:
            raise UsageError.missing_precondition(
                "Must call at_call() or at_line() before verify()"
            )
        if e.position is None:
            raise UsageError.missing_precondition("Must call position() before verify()")
        if e.kind is None:
            raise UsageError.missing_precondition(
                "Must call points_to_parameter(), points_to_local(), points_to_literal() "
                "or points_to_result_of() before verify()"
            )
        return e

    def _find_call(self, e: _Expectation) -> Call:
        prefix = method_prefix(e.class_name or "", e.method or "")
        query = CallQuery(self._store).caller_contains(prefix)
        if e.callee is not None:
            query = query.callee_contains(e.callee)
        if e.line is not None:
            query = query.at_line(e.line)
        call = query.first()
        if call is None:
            raise CheckFailure.argument(
                f"Could not find call in {e.class_name}::{e.method}. "
                f"Filters applied: {query.describe()}",
                filters=query.descriptions,
            )
        return call

    def _check_source_call(self, value: Value, e: _Expectation) -> Call:
        if value.source_call_id is None:
            raise CheckFailure.argument(
                f"Result value {value.id} has no source_call_id", value_id=value.id
            )
        source = self._store.call_by_id(value.source_call_id)
        if source is None:
            raise CheckFailure.argument(
                f"Result value source_call_id {value.source_call_id} does not exist",
                value_id=value.id,
                source_call_id=value.source_call_id,
            )
        if e.result_kind is not None and source.kind != e.result_kind:
            raise CheckFailure.argument(
                f"Source call kind mismatch: expected {e.result_kind}, got {source.kind}",
                source_call_id=source.id,
                expected=e.result_kind,
                actual=source.kind,
            )
        if e.result_callee not in (source.callee or ""):
            raise CheckFailure.argument(
                f"Source call callee '{source.callee or ''}' does not contain "
                f"'{e.result_callee}'",
                source_call_id=source.id,
            )
        return source
