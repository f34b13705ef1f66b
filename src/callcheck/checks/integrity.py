"""Whole-graph integrity verification.

Checks (run in catalog order):
1. Duplicate declarations (parameter symbols, local symbols)
2. Orphan references (receiver, argument, source call, source value ids)
3. Result materialization (every call has a result value; types agree;
   results point back at their own call)
4. Receivers never name a call directly
5. Receiver chains terminate

Two modes:
- ``verify()`` raises on the first check with violations and lists all of them.
- ``report()`` runs every enabled check and returns counts. It never raises
  on violations.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field

from callcheck.checks.catalog import CHECK_CATALOG, INTEGRITY_CHECKS
from callcheck.checks.chain import find_unterminated_chains
from callcheck.config.constants import DEFAULT_MAX_CHAIN_HOPS, MESSAGE_ID_LIMIT
from callcheck.core.errors import CheckFailure, UsageError
from callcheck.core.logging import get_logger
from callcheck.graph.models import ValueKind
from callcheck.graph.store import GraphStore

log = get_logger("checks.integrity")

ADVISORY_CHECKS = frozenset({"result_value_types_match"})


@dataclass(frozen=True)
class IntegrityIssue:
    """A single integrity violation."""

    check: str
    category: str  # IntegrityReport counter name, e.g. 'orphaned_receiver_ids'
    message: str
    ids: tuple[str, ...] = ()
    advisory: bool = False

    def to_dict(self) -> dict:
        return {
            "check": self.check,
            "category": self.category,
            "message": self.message,
            "ids": list(self.ids),
            "advisory": self.advisory,
        }


_SUMMARY_LABELS: dict[str, str] = {
    "duplicate_parameter_symbols": "Duplicate parameter symbols",
    "duplicate_local_symbols": "Duplicate local symbols",
    "orphaned_receiver_ids": "Orphaned receiver ids",
    "orphaned_argument_ids": "Orphaned argument ids",
    "orphaned_source_call_ids": "Orphaned source_call_ids",
    "orphaned_source_value_ids": "Orphaned source_value_ids",
    "missing_result_values": "Missing result values",
    "type_mismatches": "Type mismatches",
    "receivers_pointing_to_calls": "Receivers pointing to calls",
    "non_self_referencing_results": "Non-self-referencing results",
    "unterminated_chains": "Unterminated chains",
}


@dataclass
class IntegrityReport:
    """Counts per violation category."""

    duplicate_parameter_symbols: int = 0
    duplicate_local_symbols: int = 0
    orphaned_receiver_ids: int = 0
    orphaned_argument_ids: int = 0
    orphaned_source_call_ids: int = 0
    orphaned_source_value_ids: int = 0
    missing_result_values: int = 0
    type_mismatches: int = 0
    receivers_pointing_to_calls: int = 0
    non_self_referencing_results: int = 0
    unterminated_chains: int = 0
    empty_snapshot: bool = False  # no calls or no values to check
    issues: list[IntegrityIssue] = field(default_factory=list)
    checks_run: list[str] = field(default_factory=list)

    def add_issue(self, issue: IntegrityIssue) -> None:
        self.issues.append(issue)
        setattr(self, issue.category, getattr(self, issue.category) + 1)

    def counts(self) -> dict[str, int]:
        return {name: getattr(self, name) for name in _SUMMARY_LABELS}

    @property
    def total_issues(self) -> int:
        return sum(self.counts().values())

    @property
    def blocking_issues(self) -> int:
        """Issues excluding advisory ones."""
        return sum(1 for issue in self.issues if not issue.advisory)

    @property
    def has_issues(self) -> bool:
        return self.empty_snapshot or self.total_issues > 0

    @property
    def passed(self) -> bool:
        """No blocking issues, and there was something to check."""
        return not self.empty_snapshot and self.blocking_issues == 0

    def summary(self) -> str:
        if not self.has_issues:
            return "No issues found"
        lines = ["Empty snapshot: nothing to check"] if self.empty_snapshot else []
        lines += [
            f"{label}: {getattr(self, name)}"
            for name, label in _SUMMARY_LABELS.items()
            if getattr(self, name)
        ]
        return "\n".join(lines)

    def to_dict(self) -> dict:
        return {
            **self.counts(),
            "total_issues": self.total_issues,
            "blocking_issues": self.blocking_issues,
            "empty_snapshot": self.empty_snapshot,
            "checks_run": list(self.checks_run),
            "issues": [issue.to_dict() for issue in self.issues],
        }


def _format_ids(ids: list[str]) -> str:
    shown = ", ".join(ids[:MESSAGE_ID_LIMIT])
    if len(ids) > MESSAGE_ID_LIMIT:
        shown += f", ... ({len(ids) - MESSAGE_ID_LIMIT} more)"
    return shown


class IntegrityChecker:
    """Runs integrity checks over a GraphStore.

    Usage::

        checker = IntegrityChecker(store).all_checks()
        checker.verify()                 # raises CheckFailure on violations
        report = checker.report()        # never raises on violations
        print(report.summary())

    Toggle methods return a new checker; the original is unchanged.
    """

    def __init__(
        self,
        store: GraphStore,
        *,
        max_hops: int = DEFAULT_MAX_CHAIN_HOPS,
        type_mismatch_is_error: bool = False,
        _enabled: frozenset[str] = frozenset(),
    ) -> None:
        self._store = store
        self._max_hops = max_hops
        self._type_mismatch_is_error = type_mismatch_is_error
        self._enabled = _enabled
        self._runners: dict[str, Callable[[], list[IntegrityIssue]]] = {
            "no_parameter_duplicates": self._parameter_duplicates,
            "no_local_duplicates_per_line": self._local_duplicates,
            "all_receiver_value_ids_exist": self._orphaned_receivers,
            "all_argument_value_ids_exist": self._orphaned_arguments,
            "all_source_call_ids_exist": self._orphaned_source_calls,
            "all_source_value_ids_exist": self._orphaned_source_values,
            "every_call_has_result_value": self._missing_results,
            "result_value_types_match": self._type_mismatches,
            "receivers_point_to_values": self._receivers_pointing_to_calls,
            "result_values_self_reference": self._non_self_referencing,
            "chains_terminate": self._unterminated_chains,
        }

    def _enable(self, name: str, **changes: object) -> IntegrityChecker:
        state: dict[str, object] = {
            "max_hops": self._max_hops,
            "type_mismatch_is_error": self._type_mismatch_is_error,
        }
        state.update(changes)
        return IntegrityChecker(
            self._store, _enabled=self._enabled | {name}, **state  # type: ignore[arg-type]
        )

    # Toggles

    def no_parameter_duplicates(self) -> IntegrityChecker:
        return self._enable("no_parameter_duplicates")

    def no_local_duplicates_per_line(self) -> IntegrityChecker:
        return self._enable("no_local_duplicates_per_line")

    def all_receiver_value_ids_exist(self) -> IntegrityChecker:
        return self._enable("all_receiver_value_ids_exist")

    def all_argument_value_ids_exist(self) -> IntegrityChecker:
        return self._enable("all_argument_value_ids_exist")

    def all_source_call_ids_exist(self) -> IntegrityChecker:
        return self._enable("all_source_call_ids_exist")

    def all_source_value_ids_exist(self) -> IntegrityChecker:
        return self._enable("all_source_value_ids_exist")

    def every_call_has_result_value(self) -> IntegrityChecker:
        return self._enable("every_call_has_result_value")

    def result_value_types_match(self) -> IntegrityChecker:
        return self._enable("result_value_types_match")

    def receivers_point_to_values(self) -> IntegrityChecker:
        return self._enable("receivers_point_to_values")

    def result_values_self_reference(self) -> IntegrityChecker:
        return self._enable("result_values_self_reference")

    def chains_terminate(self, max_hops: int | None = None) -> IntegrityChecker:
        if max_hops is not None and max_hops < 1:
            raise UsageError.invalid_argument("max_hops", max_hops, "must be at least 1")
        return self._enable("chains_terminate", max_hops=max_hops or self._max_hops)

    def all_checks(self) -> IntegrityChecker:
        return IntegrityChecker(
            self._store,
            max_hops=self._max_hops,
            type_mismatch_is_error=self._type_mismatch_is_error,
            _enabled=frozenset(INTEGRITY_CHECKS),
        )

    @property
    def enabled_checks(self) -> list[str]:
        """Enabled checks in run order."""
        return [name for name in INTEGRITY_CHECKS if name in self._enabled]

    # Modes

    def verify(self) -> None:
        """Run enabled checks; raise on the first one with violations.

        Type mismatches are advisory unless ``type_mismatch_is_error`` is set:
        they are logged but do not fail verification.

        Raises:
            UsageError: No check enabled.
            CheckFailure: Empty snapshot, or a check found violations.
        """
        checks = self._require_checks()
        if self._is_empty():
            raise CheckFailure.empty_candidates(
                f"snapshot has {self._store.call_count} calls and "
                f"{self._store.value_count} values"
            )

        for name in checks:
            issues = self._runners[name]()
            log.debug("integrity_check_run", check=name, violations=len(issues))
            if not issues:
                continue
            if all(issue.advisory for issue in issues):
                log.warning("integrity_advisory", check=name, violations=len(issues))
                continue
            ids = [i for issue in issues for i in issue.ids]
            listed = "; ".join(issue.message for issue in issues[:MESSAGE_ID_LIMIT])
            message = (
                f"{CHECK_CATALOG[name].description} "
                f"Found {len(issues)} violation(s): {listed}"
            )
            if len(issues) > MESSAGE_ID_LIMIT:
                message += f"; ... ({len(issues) - MESSAGE_ID_LIMIT} more)"
            raise CheckFailure.integrity(name, message, ids)

        log.info("integrity_verified", checks=len(checks))

    def report(self) -> IntegrityReport:
        """Run every enabled check and collect counts.

        An empty snapshot is flagged on the report rather than raised.
        """
        checks = self._require_checks()
        report = IntegrityReport(empty_snapshot=self._is_empty())
        if report.empty_snapshot:
            log.warning(
                "integrity_empty_snapshot",
                calls=self._store.call_count,
                values=self._store.value_count,
            )
        for name in checks:
            for issue in self._runners[name]():
                report.add_issue(issue)
            report.checks_run.append(name)
        log.info(
            "integrity_report",
            checks=len(checks),
            total_issues=report.total_issues,
            blocking_issues=report.blocking_issues,
        )
        return report

    def _is_empty(self) -> bool:
        return not self._store.calls or not self._store.values

    def _require_checks(self) -> list[str]:
        checks = self.enabled_checks
        if not checks:
            raise UsageError.missing_precondition(
                "No integrity checks enabled. Call all_checks() or a check toggle first."
            )
        return checks

    # Checks

    def _duplicates(self, kind: ValueKind, check: str, category: str) -> list[IntegrityIssue]:
        by_symbol: dict[str, list[str]] = defaultdict(list)
        for value in self._store.values:
            if value.kind == kind.value and value.symbol:
                by_symbol[value.symbol].append(value.id)
        return [
            IntegrityIssue(
                check=check,
                category=category,
                message=f"{kind.value} symbol {symbol} has {len(ids)} values: {_format_ids(ids)}",
                ids=tuple(ids),
            )
            for symbol, ids in by_symbol.items()
            if len(ids) > 1
        ]

    def _parameter_duplicates(self) -> list[IntegrityIssue]:
        return self._duplicates(
            ValueKind.PARAMETER, "no_parameter_duplicates", "duplicate_parameter_symbols"
        )

    def _local_duplicates(self) -> list[IntegrityIssue]:
        # Local symbols end in @line, so equal symbols mean one declaration.
        return self._duplicates(
            ValueKind.LOCAL, "no_local_duplicates_per_line", "duplicate_local_symbols"
        )

    def _orphaned_receivers(self) -> list[IntegrityIssue]:
        return [
            IntegrityIssue(
                check="all_receiver_value_ids_exist",
                category="orphaned_receiver_ids",
                message=f"call {call.id} has receiver_value_id {call.receiver_value_id} "
                "with no value",
                ids=(call.id, call.receiver_value_id),
            )
            for call in self._store.calls
            if call.receiver_value_id is not None
            and not self._store.has_value(call.receiver_value_id)
        ]

    def _orphaned_arguments(self) -> list[IntegrityIssue]:
        issues = []
        for call in self._store.calls:
            for arg in call.arguments:
                if arg.value_id is not None and not self._store.has_value(arg.value_id):
                    issues.append(
                        IntegrityIssue(
                            check="all_argument_value_ids_exist",
                            category="orphaned_argument_ids",
                            message=f"call {call.id} argument {arg.position} has value_id "
                            f"{arg.value_id} with no value",
                            ids=(call.id, arg.value_id),
                        )
                    )
        return issues

    def _orphaned_source_calls(self) -> list[IntegrityIssue]:
        return [
            IntegrityIssue(
                check="all_source_call_ids_exist",
                category="orphaned_source_call_ids",
                message=f"value {value.id} has source_call_id {value.source_call_id} "
                "with no call",
                ids=(value.id, value.source_call_id),
            )
            for value in self._store.values
            if value.source_call_id is not None and not self._store.has_call(value.source_call_id)
        ]

    def _orphaned_source_values(self) -> list[IntegrityIssue]:
        return [
            IntegrityIssue(
                check="all_source_value_ids_exist",
                category="orphaned_source_value_ids",
                message=f"value {value.id} has source_value_id {value.source_value_id} "
                "with no value",
                ids=(value.id, value.source_value_id),
            )
            for value in self._store.values
            if value.source_value_id is not None
            and not self._store.has_value(value.source_value_id)
        ]

    def _missing_results(self) -> list[IntegrityIssue]:
        issues = []
        for call in self._store.calls:
            value = self._store.value_by_id(call.id)
            if value is None:
                reason = "has no result value"
            elif value.kind != ValueKind.RESULT.value:
                reason = f"shares its id with a {value.kind or 'kindless'} value, not a result"
            else:
                continue
            issues.append(
                IntegrityIssue(
                    check="every_call_has_result_value",
                    category="missing_result_values",
                    message=f"call {call.id} {reason}",
                    ids=(call.id,),
                )
            )
        return issues

    def _type_mismatches(self) -> list[IntegrityIssue]:
        issues = []
        for call in self._store.calls:
            if call.return_type is None:
                continue
            value = self._store.value_by_id(call.id)
            if value is None or value.type is None or value.type == call.return_type:
                continue
            issues.append(
                IntegrityIssue(
                    check="result_value_types_match",
                    category="type_mismatches",
                    message=f"call {call.id} returns {call.return_type} but its result "
                    f"value has type {value.type}",
                    ids=(call.id,),
                    advisory=not self._type_mismatch_is_error,
                )
            )
        return issues

    def _receivers_pointing_to_calls(self) -> list[IntegrityIssue]:
        return [
            IntegrityIssue(
                check="receivers_point_to_values",
                category="receivers_pointing_to_calls",
                message=f"call {call.id} receiver {call.receiver_value_id} is a call id "
                "without a value",
                ids=(call.id, call.receiver_value_id),
            )
            for call in self._store.calls
            if call.receiver_value_id is not None
            and self._store.has_call(call.receiver_value_id)
            and not self._store.has_value(call.receiver_value_id)
        ]

    def _non_self_referencing(self) -> list[IntegrityIssue]:
        return [
            IntegrityIssue(
                check="result_values_self_reference",
                category="non_self_referencing_results",
                message=f"result value {value.id} has source_call_id "
                f"{value.source_call_id or 'null'}",
                ids=(value.id,),
            )
            for value in self._store.values
            if value.kind == ValueKind.RESULT.value and value.source_call_id != value.id
        ]

    def _unterminated_chains(self) -> list[IntegrityIssue]:
        return [
            IntegrityIssue(
                check="chains_terminate",
                category="unterminated_chains",
                message=f"call {walk.start.id} receiver chain {walk.status}: {walk.describe()}",
                ids=(walk.start.id,) + ((walk.missing_id,) if walk.missing_id else ()),
            )
            for walk in find_unterminated_chains(self._store, self._max_hops)
        ]
