"""Node types for the call/value graph.

A snapshot holds two collections:
- values: data observed at one lexical position (parameter, local, literal,
  constant, or the result of a call)
- calls: call-like, access-like and operator expressions, linked to values
  through receiver_value_id, arguments[].value_id and the shared id of their
  result value

Nodes are immutable. Each keeps the record it was parsed from, so schema
validation can inspect fields the typed view normalizes away.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ValueKind(str, Enum):
    """Kind of a value node."""

    PARAMETER = "parameter"
    LOCAL = "local"
    LITERAL = "literal"
    CONSTANT = "constant"
    RESULT = "result"

    @classmethod
    def terminal_kinds(cls) -> frozenset[ValueKind]:
        """Kinds at which a receiver chain legitimately ends."""
        return frozenset({cls.PARAMETER, cls.LOCAL, cls.LITERAL, cls.CONSTANT})


class KindType(str, Enum):
    """Coarse category of a call kind."""

    INVOCATION = "invocation"
    ACCESS = "access"
    OPERATOR = "operator"


class CallKind(str, Enum):
    """Fine-grained call kind."""

    METHOD = "method"
    METHOD_STATIC = "method_static"
    METHOD_NULLSAFE = "method_nullsafe"
    FUNCTION = "function"
    CONSTRUCTOR = "constructor"
    ACCESS = "access"
    ACCESS_STATIC = "access_static"
    ACCESS_NULLSAFE = "access_nullsafe"
    ACCESS_ARRAY = "access_array"
    COALESCE = "coalesce"
    TERNARY = "ternary"
    TERNARY_FULL = "ternary_full"
    MATCH = "match"

    @property
    def kind_type(self) -> KindType:
        return CALL_KIND_TYPES[self]


CALL_KIND_TYPES: dict[CallKind, KindType] = {
    CallKind.METHOD: KindType.INVOCATION,
    CallKind.METHOD_STATIC: KindType.INVOCATION,
    CallKind.METHOD_NULLSAFE: KindType.INVOCATION,
    CallKind.FUNCTION: KindType.INVOCATION,
    CallKind.CONSTRUCTOR: KindType.INVOCATION,
    CallKind.ACCESS: KindType.ACCESS,
    CallKind.ACCESS_STATIC: KindType.ACCESS,
    CallKind.ACCESS_NULLSAFE: KindType.ACCESS,
    CallKind.ACCESS_ARRAY: KindType.ACCESS,
    CallKind.COALESCE: KindType.OPERATOR,
    CallKind.TERNARY: KindType.OPERATOR,
    CallKind.TERNARY_FULL: KindType.OPERATOR,
    CallKind.MATCH: KindType.OPERATOR,
}

VALUE_KINDS = frozenset(k.value for k in ValueKind)
CALL_KINDS = frozenset(k.value for k in CallKind)
KIND_TYPES = frozenset(k.value for k in KindType)
TERMINAL_VALUE_KINDS = frozenset(k.value for k in ValueKind.terminal_kinds())


def _opt_str(record: Mapping[str, Any], key: str) -> str | None:
    val = record.get(key)
    return None if val is None else str(val)


@dataclass(frozen=True, slots=True)
class Location:
    """Source position of a node. Lines are 1-based."""

    file: str
    line: int
    col: int

    @classmethod
    def from_record(cls, record: Any) -> Location | None:
        if not isinstance(record, Mapping):
            return None
        try:
            return cls(
                file=str(record.get("file", "")),
                line=int(record.get("line", 0)),
                col=int(record.get("col", 0)),
            )
        except (TypeError, ValueError):
            return None

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.col}"


@dataclass(frozen=True, slots=True)
class Argument:
    """One argument passed to a call."""

    position: int | None
    parameter: str | None = None
    value_id: str | None = None
    value_expr: str | None = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Argument:
        position = record.get("position")
        return cls(
            position=position if isinstance(position, int) else None,
            parameter=_opt_str(record, "parameter"),
            value_id=_opt_str(record, "value_id"),
            value_expr=_opt_str(record, "value_expr"),
        )


@dataclass(frozen=True, slots=True)
class Value:
    """A value node."""

    id: str
    kind: str
    symbol: str | None = None
    type: str | None = None
    source_call_id: str | None = None
    source_value_id: str | None = None
    location: Location | None = None
    record: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Value:
        return cls(
            id=str(record.get("id", "")),
            kind=str(record.get("kind", "")),
            symbol=_opt_str(record, "symbol"),
            type=_opt_str(record, "type"),
            source_call_id=_opt_str(record, "source_call_id"),
            source_value_id=_opt_str(record, "source_value_id"),
            location=Location.from_record(record.get("location")),
            record=record,
        )

    @property
    def is_terminal(self) -> bool:
        return self.kind in TERMINAL_VALUE_KINDS

    def describe(self) -> str:
        return f"value({self.kind or '?'}, id={self.id or '?'})"


@dataclass(frozen=True, slots=True)
class Call:
    """A call node."""

    id: str
    kind: str
    kind_type: str | None = None
    caller: str | None = None
    callee: str | None = None
    receiver_value_id: str | None = None
    arguments: tuple[Argument, ...] = ()
    return_type: str | None = None
    location: Location | None = None
    record: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Call:
        raw_args = record.get("arguments") or []
        arguments = tuple(
            Argument.from_record(arg) for arg in raw_args if isinstance(arg, Mapping)
        )
        return cls(
            id=str(record.get("id", "")),
            kind=str(record.get("kind", "")),
            kind_type=_opt_str(record, "kind_type"),
            caller=_opt_str(record, "caller"),
            callee=_opt_str(record, "callee"),
            receiver_value_id=_opt_str(record, "receiver_value_id"),
            arguments=arguments,
            return_type=_opt_str(record, "return_type"),
            location=Location.from_record(record.get("location")),
            record=record,
        )

    def argument_at(self, position: int) -> Argument | None:
        for arg in self.arguments:
            if arg.position == position:
                return arg
        return None

    def describe(self) -> str:
        return f"call({self.kind or '?'}, callee={self.callee or '?'})"


__all__ = [
    "Argument",
    "CALL_KINDS",
    "CALL_KIND_TYPES",
    "Call",
    "CallKind",
    "KIND_TYPES",
    "KindType",
    "Location",
    "TERMINAL_VALUE_KINDS",
    "VALUE_KINDS",
    "Value",
    "ValueKind",
]
