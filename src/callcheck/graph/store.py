"""Immutable, indexed view over a calls.json snapshot.

The snapshot is loaded once. Values and calls are kept in their original
order and indexed by id for O(1) lookup. Nothing writes back to the file.
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any

from callcheck.core.errors import SnapshotError
from callcheck.core.logging import get_logger
from callcheck.graph.models import Call, Value

log = get_logger("graph.store")

DEFAULT_VERSION = "0.0"


def read_json_snapshot(path: Path) -> dict[str, Any]:
    """Read and parse a JSON snapshot file.

    Raises:
        SnapshotError: File missing, unreadable, not JSON, or not an object.
    """
    if not path.exists():
        raise SnapshotError.not_found(str(path))
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SnapshotError.read_error(str(path), str(e)) from e
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise SnapshotError.parse_error(str(path), str(e)) from e
    if not isinstance(data, dict):
        raise SnapshotError.parse_error(str(path), "top level must be a JSON object")
    return data


def _record_list(data: Mapping[str, Any], key: str) -> list[Mapping[str, Any]]:
    raw = data.get(key)
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise SnapshotError.invalid(f"'{key}' must be an array", key=key)
    for index, record in enumerate(raw):
        if not isinstance(record, Mapping):
            raise SnapshotError.invalid(
                f"'{key}[{index}]' must be an object", key=key, index=index
            )
    return raw


class GraphStore:
    """Calls and values of one snapshot, indexed by id.

    Usage::

        store = GraphStore.load(Path("output/calls.json"))
        value = store.value_by_id("src/Repository/OrderRepository.php:26:28")
        if store.has_call(value.source_call_id):
            ...
    """

    def __init__(
        self,
        version: str,
        values: list[Value],
        calls: list[Call],
        *,
        declared_version: str | None = None,
    ) -> None:
        self._version = version
        self._declared_version = declared_version
        self._values = tuple(values)
        self._calls = tuple(calls)
        # Records without an id are kept in order but cannot be looked up.
        # On duplicate ids the first record wins; the schema checker reports the rest.
        values_by_id: dict[str, Value] = {}
        for value in self._values:
            if value.id:
                values_by_id.setdefault(value.id, value)
        calls_by_id: dict[str, Call] = {}
        for call in self._calls:
            if call.id:
                calls_by_id.setdefault(call.id, call)
        self._values_by_id = MappingProxyType(values_by_id)
        self._calls_by_id = MappingProxyType(calls_by_id)

    @classmethod
    def load(cls, path: Path) -> GraphStore:
        """Load a snapshot from disk. Fails fast on any load error."""
        data = read_json_snapshot(path)
        store = cls.from_dict(data)
        log.info(
            "snapshot_loaded",
            path=str(path),
            version=store.version,
            values=store.value_count,
            calls=store.call_count,
        )
        return store

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> GraphStore:
        """Build a store from an already-parsed snapshot mapping."""
        version = data.get("version")
        return cls(
            version=DEFAULT_VERSION if version is None else str(version),
            values=[Value.from_record(r) for r in _record_list(data, "values")],
            calls=[Call.from_record(r) for r in _record_list(data, "calls")],
            declared_version=None if version is None else str(version),
        )

    @property
    def version(self) -> str:
        return self._version

    @property
    def declared_version(self) -> str | None:
        """The version as written in the snapshot, None when absent."""
        return self._declared_version

    @property
    def values(self) -> tuple[Value, ...]:
        return self._values

    @property
    def calls(self) -> tuple[Call, ...]:
        return self._calls

    @property
    def value_count(self) -> int:
        return len(self._values)

    @property
    def call_count(self) -> int:
        return len(self._calls)

    @property
    def values_by_id(self) -> Mapping[str, Value]:
        return self._values_by_id

    @property
    def calls_by_id(self) -> Mapping[str, Call]:
        return self._calls_by_id

    def value_by_id(self, value_id: str) -> Value | None:
        return self._values_by_id.get(value_id)

    def call_by_id(self, call_id: str) -> Call | None:
        return self._calls_by_id.get(call_id)

    def has_value(self, value_id: str) -> bool:
        return value_id in self._values_by_id

    def has_call(self, call_id: str) -> bool:
        return call_id in self._calls_by_id

    def iter_values(self) -> Iterator[Value]:
        return iter(self._values)

    def iter_calls(self) -> Iterator[Call]:
        return iter(self._calls)

    def __repr__(self) -> str:
        return (
            f"GraphStore(version={self._version!r}, values={self.value_count}, "
            f"calls={self.call_count})"
        )
