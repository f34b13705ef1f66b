"""Call/value graph model and store."""

from callcheck.graph.models import (
    Argument,
    Call,
    CallKind,
    KindType,
    Location,
    Value,
    ValueKind,
)
from callcheck.graph.store import GraphStore

__all__ = [
    "Argument",
    "Call",
    "CallKind",
    "GraphStore",
    "KindType",
    "Location",
    "Value",
    "ValueKind",
]
