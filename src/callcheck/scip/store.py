"""SCIP (Source Code Index Protocol) JSON index loading.

The indexer can emit its symbol index as JSON (index.scip.json) next to
calls.json. This module loads it into a read-only store of symbols and
occurrences used by the symbol/occurrence query builders.

Accepted document shape (snake_case or camelCase keys)::

    {
      "documents": [
        {
          "relative_path": "src/Entity/Order.php",
          "occurrences": [{"range": [9, 12, 17], "symbol": "...", "symbol_roles": 1}],
          "symbols": [{"symbol": "...", "documentation": ["..."], "relationships": [...]}]
        }
      ],
      "external_symbols": [{"symbol": "...", "documentation": [...]}]
    }
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import IntFlag
from pathlib import Path
from typing import Any

from callcheck.core.errors import SnapshotError
from callcheck.core.logging import get_logger
from callcheck.graph.store import read_json_snapshot

log = get_logger("scip.store")


class SymbolRole(IntFlag):
    """SCIP occurrence role bit flags."""

    DEFINITION = 1
    IMPORT = 2
    WRITE_ACCESS = 4
    READ_ACCESS = 8
    GENERATED = 16
    TEST = 32
    FORWARD_DEFINITION = 64


ROLE_NAMES: tuple[tuple[SymbolRole, str], ...] = (
    (SymbolRole.DEFINITION, "Definition"),
    (SymbolRole.IMPORT, "Import"),
    (SymbolRole.WRITE_ACCESS, "WriteAccess"),
    (SymbolRole.READ_ACCESS, "ReadAccess"),
    (SymbolRole.GENERATED, "Generated"),
    (SymbolRole.TEST, "Test"),
    (SymbolRole.FORWARD_DEFINITION, "ForwardDefinition"),
)


def _pick(record: Mapping[str, Any], snake: str, camel: str, default: Any = None) -> Any:
    if snake in record:
        return record[snake]
    return record.get(camel, default)


@dataclass(frozen=True)
class SCIPRelationship:
    """Relationship from one symbol to another."""

    symbol: str
    is_implementation: bool = False
    is_reference: bool = False
    is_type_definition: bool = False

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> SCIPRelationship:
        return cls(
            symbol=str(record.get("symbol", "")),
            is_implementation=bool(_pick(record, "is_implementation", "isImplementation")),
            is_reference=bool(_pick(record, "is_reference", "isReference")),
            is_type_definition=bool(_pick(record, "is_type_definition", "isTypeDefinition")),
        )


@dataclass(frozen=True)
class SCIPSymbol:
    """Symbol information from a document or the external symbol table."""

    symbol: str
    documentation: tuple[str, ...] = ()
    relationships: tuple[SCIPRelationship, ...] = ()
    external: bool = False

    @classmethod
    def from_record(cls, record: Mapping[str, Any], *, external: bool = False) -> SCIPSymbol:
        docs = record.get("documentation") or []
        if isinstance(docs, str):
            docs = [docs]
        rels = record.get("relationships") or []
        return cls(
            symbol=str(record.get("symbol", "")),
            documentation=tuple(str(d) for d in docs),
            relationships=tuple(
                SCIPRelationship.from_record(r) for r in rels if isinstance(r, Mapping)
            ),
            external=external,
        )


@dataclass(frozen=True)
class SCIPOccurrence:
    """A symbol occurrence. Range lines and columns are 0-based."""

    symbol: str
    file: str
    range: tuple[int, ...]
    roles: int = 0

    @classmethod
    def from_record(cls, record: Mapping[str, Any], file: str) -> SCIPOccurrence:
        symbol = str(record.get("symbol", ""))
        try:
            range_ = tuple(int(x) for x in record.get("range") or [])
            roles = int(_pick(record, "symbol_roles", "symbolRoles", 0) or 0)
        except (TypeError, ValueError) as e:
            raise SnapshotError.invalid(
                f"occurrence of '{symbol}' in '{file}' has a non-integer range or roles",
                file=file,
                symbol=symbol,
            ) from e
        return cls(symbol=symbol, file=file, range=range_, roles=roles)

    @property
    def line(self) -> int | None:
        """0-based start line, or None for an empty range."""
        return self.range[0] if self.range else None

    def has_role(self, role: SymbolRole) -> bool:
        return bool(self.roles & role)

    @property
    def is_definition(self) -> bool:
        return self.has_role(SymbolRole.DEFINITION)

    def role_names(self) -> list[str]:
        """Human-readable role names. No Definition bit means Reference."""
        names = [name for role, name in ROLE_NAMES if self.roles & role]
        if not self.is_definition:
            names.append("Reference")
        return names


@dataclass
class SCIPDocument:
    """One indexed source file."""

    relative_path: str
    occurrences: list[SCIPOccurrence] = field(default_factory=list)
    symbols: list[SCIPSymbol] = field(default_factory=list)


class ScipStore:
    """Symbols and occurrences of one SCIP JSON index."""

    def __init__(
        self,
        documents: list[SCIPDocument],
        external_symbols: list[SCIPSymbol] | None = None,
    ) -> None:
        self._documents = list(documents)
        self._symbols: dict[str, SCIPSymbol] = {}
        self._by_symbol: dict[str, list[SCIPOccurrence]] = defaultdict(list)
        self._by_file: dict[str, list[SCIPOccurrence]] = {}

        for doc in self._documents:
            self._by_file[doc.relative_path] = list(doc.occurrences)
            for occ in doc.occurrences:
                self._by_symbol[occ.symbol].append(occ)
            for sym in doc.symbols:
                self._symbols.setdefault(sym.symbol, sym)
        for sym in external_symbols or []:
            self._symbols.setdefault(sym.symbol, sym)

    @classmethod
    def load(cls, path: Path) -> ScipStore:
        """Load a SCIP JSON index from disk. Fails fast on any load error."""
        store = cls.from_dict(read_json_snapshot(path))
        log.info(
            "scip_index_loaded",
            path=str(path),
            documents=len(store.documents()),
            symbols=len(store.symbols()),
        )
        return store

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ScipStore:
        raw_docs = data.get("documents") or []
        if not isinstance(raw_docs, list):
            raise SnapshotError.invalid("'documents' must be an array", key="documents")

        documents: list[SCIPDocument] = []
        for index, raw in enumerate(raw_docs):
            if not isinstance(raw, Mapping):
                raise SnapshotError.invalid(
                    f"'documents[{index}]' must be an object", key="documents", index=index
                )
            path = str(_pick(raw, "relative_path", "relativePath", ""))
            documents.append(
                SCIPDocument(
                    relative_path=path,
                    occurrences=[
                        SCIPOccurrence.from_record(o, path)
                        for o in raw.get("occurrences") or []
                        if isinstance(o, Mapping)
                    ],
                    symbols=[
                        SCIPSymbol.from_record(s)
                        for s in raw.get("symbols") or []
                        if isinstance(s, Mapping)
                    ],
                )
            )

        externals = [
            SCIPSymbol.from_record(s, external=True)
            for s in _pick(data, "external_symbols", "externalSymbols", []) or []
            if isinstance(s, Mapping)
        ]
        return cls(documents, externals)

    def documents(self) -> list[SCIPDocument]:
        return list(self._documents)

    def symbols(self) -> dict[str, SCIPSymbol]:
        """All symbols by name: document symbols first, then externals."""
        return dict(self._symbols)

    def symbol_info(self, symbol: str) -> SCIPSymbol | None:
        return self._symbols.get(symbol)

    def occurrences(self, symbol: str) -> list[SCIPOccurrence]:
        return list(self._by_symbol.get(symbol, ()))

    def occurrences_in_file(self, path: str) -> list[SCIPOccurrence]:
        return list(self._by_file.get(path, ()))

    def file_paths(self) -> list[str]:
        return list(self._by_file)

    def all_occurrences(self) -> list[SCIPOccurrence]:
        return [occ for doc in self._documents for occ in doc.occurrences]
