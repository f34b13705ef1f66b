"""SCIP symbol/occurrence index."""

from callcheck.scip.store import (
    SCIPDocument,
    SCIPOccurrence,
    SCIPRelationship,
    SCIPSymbol,
    ScipStore,
    SymbolRole,
)

__all__ = [
    "SCIPDocument",
    "SCIPOccurrence",
    "SCIPRelationship",
    "SCIPSymbol",
    "ScipStore",
    "SymbolRole",
]
