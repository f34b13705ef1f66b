"""Record-level structural validation of a snapshot.

Works on the raw records kept by each node, so fields the typed view
normalizes (wrong types, missing keys) are still visible here.
"""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from callcheck.checks.catalog import SCHEMA_RULES
from callcheck.config.constants import LOCATION_ID_PATTERN, MESSAGE_ID_LIMIT, VERSION_PATTERN
from callcheck.core.errors import CheckFailure, UsageError
from callcheck.core.logging import get_logger
from callcheck.graph.models import CALL_KIND_TYPES, CALL_KINDS, KIND_TYPES, VALUE_KINDS, CallKind
from callcheck.graph.store import GraphStore

log = get_logger("checks.schema")

_VERSION_RE = re.compile(VERSION_PATTERN)
_ID_RE = re.compile(LOCATION_ID_PATTERN)

VALUE_REQUIRED_FIELDS = ("id", "kind", "location")
CALL_REQUIRED_FIELDS = ("id", "kind", "kind_type", "caller", "location")


@dataclass(frozen=True, slots=True)
class SchemaViolation:
    """One broken schema rule."""

    rule: str
    node_id: str | None
    message: str

    def to_dict(self) -> dict[str, str | None]:
        return {"rule": self.rule, "node_id": self.node_id, "message": self.message}

    def __str__(self) -> str:
        where = f" [{self.node_id}]" if self.node_id else ""
        return f"{self.rule}{where}: {self.message}"


def _node_id(record: Mapping[str, Any]) -> str | None:
    raw = record.get("id")
    return str(raw) if raw is not None else None


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class SchemaChecker:
    """Validates snapshot structure.

    Usage::

        violations = SchemaChecker(store).check()
        SchemaChecker(store).only("id_format", "unique_call_ids").verify()
    """

    def __init__(self, store: GraphStore, rules: Iterable[str] | None = None) -> None:
        self._store = store
        self._rules = tuple(SCHEMA_RULES if rules is None else rules)

    def only(self, *rules: str) -> SchemaChecker:
        unknown = [r for r in rules if r not in SCHEMA_RULES]
        if unknown:
            raise UsageError.invalid_argument(
                "rules", ", ".join(unknown), f"unknown schema rule; expected one of {SCHEMA_RULES}"
            )
        return SchemaChecker(self._store, rules)

    def without(self, *rules: str) -> SchemaChecker:
        return SchemaChecker(self._store, [r for r in self._rules if r not in rules])

    @property
    def rules(self) -> list[str]:
        return list(self._rules)

    def check(self) -> list[SchemaViolation]:
        """All violations of the enabled rules, in rule order."""
        handlers = {
            "version_format": self._version_format,
            "values_non_empty": self._values_non_empty,
            "calls_non_empty": self._calls_non_empty,
            "value_required_fields": self._value_required_fields,
            "call_required_fields": self._call_required_fields,
            "location_fields": self._location_fields,
            "id_format": self._id_format,
            "value_kind": self._value_kind,
            "call_kind": self._call_kind,
            "call_kind_type": self._call_kind_type,
            "kind_type_consistency": self._kind_type_consistency,
            "id_matches_location": self._id_matches_location,
            "unique_value_ids": self._unique_value_ids,
            "unique_call_ids": self._unique_call_ids,
            "argument_position": self._argument_position,
        }
        violations: list[SchemaViolation] = []
        for rule in SCHEMA_RULES:
            if rule in self._rules:
                found = list(handlers[rule]())
                if found:
                    log.debug("schema_rule_failed", rule=rule, violations=len(found))
                violations.extend(found)
        log.info("schema_checked", rules=len(self._rules), violations=len(violations))
        return violations

    def verify(self) -> None:
        """Raise CheckFailure listing every violation."""
        violations = self.check()
        if not violations:
            return
        shown = "; ".join(str(v) for v in violations[:MESSAGE_ID_LIMIT])
        if len(violations) > MESSAGE_ID_LIMIT:
            shown += f"; ... ({len(violations) - MESSAGE_ID_LIMIT} more)"
        raise CheckFailure.schema(
            f"Found {len(violations)} schema violation(s): {shown}",
            [v.to_dict() for v in violations],
        )

    # Records

    def _value_records(self) -> Iterator[Mapping[str, Any]]:
        return (v.record for v in self._store.values)

    def _call_records(self) -> Iterator[Mapping[str, Any]]:
        return (c.record for c in self._store.calls)

    def _all_records(self) -> Iterator[tuple[str, Mapping[str, Any]]]:
        for record in self._value_records():
            yield "value", record
        for record in self._call_records():
            yield "call", record

    # Rules

    def _version_format(self) -> Iterator[SchemaViolation]:
        version = self._store.declared_version
        if version is None:
            yield SchemaViolation("version_format", None, "version is missing")
        elif not _VERSION_RE.fullmatch(version):
            yield SchemaViolation(
                "version_format", None, f"version '{version}' does not match {VERSION_PATTERN}"
            )

    def _values_non_empty(self) -> Iterator[SchemaViolation]:
        if not self._store.values:
            yield SchemaViolation("values_non_empty", None, "values array is empty")

    def _calls_non_empty(self) -> Iterator[SchemaViolation]:
        if not self._store.calls:
            yield SchemaViolation("calls_non_empty", None, "calls array is empty")

    def _required(
        self, rule: str, noun: str, records: Iterable[Mapping[str, Any]], fields: tuple[str, ...]
    ) -> Iterator[SchemaViolation]:
        for index, record in enumerate(records):
            missing = [f for f in fields if record.get(f) is None]
            if missing:
                yield SchemaViolation(
                    rule,
                    _node_id(record),
                    f"{noun}[{index}] is missing required field(s): {', '.join(missing)}",
                )

    def _value_required_fields(self) -> Iterator[SchemaViolation]:
        return self._required(
            "value_required_fields", "values", self._value_records(), VALUE_REQUIRED_FIELDS
        )

    def _call_required_fields(self) -> Iterator[SchemaViolation]:
        return self._required(
            "call_required_fields", "calls", self._call_records(), CALL_REQUIRED_FIELDS
        )

    def _location_fields(self) -> Iterator[SchemaViolation]:
        for noun, record in self._all_records():
            location = record.get("location")
            if location is None:
                continue  # reported by *_required_fields
            if not isinstance(location, Mapping):
                yield SchemaViolation(
                    "location_fields", _node_id(record), f"{noun} location is not an object"
                )
                continue
            problems = []
            if not isinstance(location.get("file"), str) or not location.get("file"):
                problems.append("file")
            if not _is_int(location.get("line")):
                problems.append("line")
            if not _is_int(location.get("col")):
                problems.append("col")
            if problems:
                yield SchemaViolation(
                    "location_fields",
                    _node_id(record),
                    f"{noun} location has missing or invalid: {', '.join(problems)}",
                )

    def _id_format(self) -> Iterator[SchemaViolation]:
        for noun, record in self._all_records():
            node_id = _node_id(record)
            if node_id is not None and not _ID_RE.fullmatch(node_id):
                yield SchemaViolation(
                    "id_format", node_id, f"{noun} id does not match file:line:col"
                )

    def _value_kind(self) -> Iterator[SchemaViolation]:
        for record in self._value_records():
            kind = record.get("kind")
            if kind is not None and (not isinstance(kind, str) or kind not in VALUE_KINDS):
                yield SchemaViolation(
                    "value_kind", _node_id(record), f"unknown value kind '{kind}'"
                )

    def _call_kind(self) -> Iterator[SchemaViolation]:
        for record in self._call_records():
            kind = record.get("kind")
            if kind is not None and (not isinstance(kind, str) or kind not in CALL_KINDS):
                yield SchemaViolation("call_kind", _node_id(record), f"unknown call kind '{kind}'")

    def _call_kind_type(self) -> Iterator[SchemaViolation]:
        for record in self._call_records():
            kind_type = record.get("kind_type")
            if kind_type is None:
                continue
            if not isinstance(kind_type, str) or kind_type not in KIND_TYPES:
                yield SchemaViolation(
                    "call_kind_type", _node_id(record), f"unknown kind_type '{kind_type}'"
                )

    def _kind_type_consistency(self) -> Iterator[SchemaViolation]:
        for record in self._call_records():
            kind, kind_type = record.get("kind"), record.get("kind_type")
            if not isinstance(kind, str) or kind not in CALL_KINDS or kind_type is None:
                continue
            expected = CALL_KIND_TYPES[CallKind(kind)].value
            if kind_type != expected:
                yield SchemaViolation(
                    "kind_type_consistency",
                    _node_id(record),
                    f"kind '{kind}' requires kind_type '{expected}', got '{kind_type}'",
                )

    def _id_matches_location(self) -> Iterator[SchemaViolation]:
        for noun, record in self._all_records():
            node_id, location = _node_id(record), record.get("location")
            if node_id is None or not isinstance(location, Mapping):
                continue
            expected = f"{location.get('file')}:{location.get('line')}:{location.get('col')}"
            if node_id != expected:
                yield SchemaViolation(
                    "id_matches_location",
                    node_id,
                    f"{noun} id does not match its location {expected}",
                )

    def _duplicates(self, rule: str, noun: str, ids: Iterable[str]) -> Iterator[SchemaViolation]:
        counts = Counter(i for i in ids if i)
        for node_id, n in counts.items():
            if n > 1:
                yield SchemaViolation(rule, node_id, f"{n} {noun} share this id")

    def _unique_value_ids(self) -> Iterator[SchemaViolation]:
        return self._duplicates("unique_value_ids", "values", (v.id for v in self._store.values))

    def _unique_call_ids(self) -> Iterator[SchemaViolation]:
        return self._duplicates("unique_call_ids", "calls", (c.id for c in self._store.calls))

    def _argument_position(self) -> Iterator[SchemaViolation]:
        for record in self._call_records():
            arguments = record.get("arguments") or []
            if not isinstance(arguments, list):
                yield SchemaViolation(
                    "argument_position", _node_id(record), "arguments is not an array"
                )
                continue
            positions = []
            for index, arg in enumerate(arguments):
                position = arg.get("position") if isinstance(arg, Mapping) else None
                if not _is_int(position):
                    yield SchemaViolation(
                        "argument_position",
                        _node_id(record),
                        f"argument[{index}] has no integer position",
                    )
                    break
                positions.append(position)
            else:
                if sorted(positions) != list(range(len(positions))):
                    yield SchemaViolation(
                        "argument_position",
                        _node_id(record),
                        f"argument positions {positions} are not 0..{len(positions) - 1}",
                    )
