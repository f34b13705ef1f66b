"""Tests for whole-graph integrity checks."""

from typing import Any

import pytest

from callcheck.checks.catalog import INTEGRITY_CHECKS
from callcheck.checks.integrity import IntegrityChecker, IntegrityReport
from callcheck.core.errors import CheckFailure, ErrorCode, UsageError
from callcheck.graph.store import GraphStore

ORDER_PARAM_ID = "src/Repository/OrderRepository.php:26:28"
LOCAL_ORDER_ID = "src/Service/OrderService.php:40:9"
NEW_ORDER_CALL_ID = "src/Service/OrderService.php:40:18"
INVENTORY_ACCESS_ID = "src/Service/OrderService.php:42:16"
CHECK_CALL_ID = "src/Service/OrderService.php:42:34"
REPO_ACCESS_ID = "src/Service/OrderService.php:45:30"
SAVE_CALL_ID = "src/Service/OrderService.php:45:47"


def _find(records: list[dict[str, Any]], node_id: str) -> dict[str, Any]:
    return next(r for r in records if r["id"] == node_id)


class TestCleanSnapshot:
    """A well-formed snapshot passes every check."""

    def test_verify_passes(self, store: GraphStore) -> None:
        IntegrityChecker(store).all_checks().verify()

    def test_report_is_clean(self, store: GraphStore) -> None:
        report = IntegrityChecker(store).all_checks().report()
        assert not report.has_issues
        assert report.total_issues == 0
        assert report.summary() == "No issues found"
        assert report.passed
        assert not report.empty_snapshot
        assert report.checks_run == list(INTEGRITY_CHECKS)


class TestToggles:
    """Builder toggles."""

    def test_no_checks_enabled_is_usage_error(self, store: GraphStore) -> None:
        with pytest.raises(UsageError, match="No integrity checks enabled"):
            IntegrityChecker(store).verify()
        with pytest.raises(UsageError):
            IntegrityChecker(store).report()

    def test_toggles_return_new_checker(self, store: GraphStore) -> None:
        base = IntegrityChecker(store)
        one = base.no_parameter_duplicates()
        two = one.all_receiver_value_ids_exist()
        assert base.enabled_checks == []
        assert one.enabled_checks == ["no_parameter_duplicates"]
        assert two.enabled_checks == ["no_parameter_duplicates", "all_receiver_value_ids_exist"]

    def test_enabled_checks_in_catalog_order(self, store: GraphStore) -> None:
        checker = IntegrityChecker(store).chains_terminate().no_local_duplicates_per_line()
        assert checker.enabled_checks == ["no_local_duplicates_per_line", "chains_terminate"]

    def test_chains_terminate_validates_bound(self, store: GraphStore) -> None:
        with pytest.raises(UsageError):
            IntegrityChecker(store).chains_terminate(max_hops=0)

    def test_empty_snapshot_is_empty_candidate_set(self) -> None:
        store = GraphStore.from_dict({"version": "3.2", "values": [], "calls": []})
        with pytest.raises(CheckFailure) as exc_info:
            IntegrityChecker(store).all_checks().verify()
        assert exc_info.value.code == ErrorCode.EMPTY_CANDIDATE_SET

    def test_given_empty_snapshot_when_reporting_then_flagged(self) -> None:
        """Report mode never calls an empty snapshot clean."""
        # Given
        store = GraphStore.from_dict({"version": "3.2", "values": [], "calls": []})

        # When
        report = IntegrityChecker(store).all_checks().report()

        # Then
        assert report.empty_snapshot
        assert report.has_issues
        assert not report.passed
        assert report.total_issues == 0
        assert report.summary() == "Empty snapshot: nothing to check"
        assert report.to_dict()["empty_snapshot"] is True

    def test_calls_without_values_is_empty(self, snapshot_data: dict[str, Any]) -> None:
        snapshot_data["values"] = []
        report = IntegrityChecker(GraphStore.from_dict(snapshot_data)).all_checks().report()
        assert report.empty_snapshot
        assert not report.passed


class TestScenarioD:
    """Receiver pointing at a call id."""

    def test_given_receiver_is_call_id_when_verifying_then_fails(
        self, snapshot_data: dict[str, Any]
    ) -> None:
        """A receiver naming a call that has no result value fails."""
        # Given
        snapshot_data["values"] = [
            v for v in snapshot_data["values"] if v["id"] != INVENTORY_ACCESS_ID
        ]
        store = GraphStore.from_dict(snapshot_data)

        # When
        with pytest.raises(CheckFailure) as exc_info:
            IntegrityChecker(store).receivers_point_to_values().verify()

        # Then
        error = exc_info.value
        assert error.code == ErrorCode.INTEGRITY_VIOLATION
        assert error.details["check"] == "receivers_point_to_values"
        assert error.details["ids"] == [CHECK_CALL_ID, INVENTORY_ACCESS_ID]

    def test_report_counts_orphan_and_pointer(self, snapshot_data: dict[str, Any]) -> None:
        snapshot_data["values"] = [
            v for v in snapshot_data["values"] if v["id"] != INVENTORY_ACCESS_ID
        ]
        report = IntegrityChecker(GraphStore.from_dict(snapshot_data)).all_checks().report()
        assert report.receivers_pointing_to_calls == 1
        assert report.orphaned_receiver_ids == 1
        assert report.missing_result_values == 1
        assert report.unterminated_chains == 1


class TestScenarioE:
    """Duplicate parameter symbols."""

    def test_given_two_values_with_same_parameter_symbol_when_verifying_then_both_reported(
        self, snapshot_data: dict[str, Any]
    ) -> None:
        """Both ids of the duplicated parameter appear in the failure."""
        # Given
        duplicate = dict(_find(snapshot_data["values"], ORDER_PARAM_ID))
        duplicate["id"] = "src/Repository/OrderRepository.php:31:13"
        snapshot_data["values"] = [
            v for v in snapshot_data["values"] if v["id"] != duplicate["id"]
        ] + [duplicate]
        store = GraphStore.from_dict(snapshot_data)

        # When
        with pytest.raises(CheckFailure) as exc_info:
            IntegrityChecker(store).all_checks().verify()

        # Then
        error = exc_info.value
        assert error.details["check"] == "no_parameter_duplicates"
        assert set(error.details["ids"]) == {ORDER_PARAM_ID, duplicate["id"]}
        assert "($order)" in error.message


class TestIndividualChecks:
    """Each check detects its own violation."""

    def test_local_duplicates(self, snapshot_data: dict[str, Any]) -> None:
        duplicate = dict(_find(snapshot_data["values"], LOCAL_ORDER_ID))
        duplicate["id"] = "src/Service/OrderService.php:40:50"
        snapshot_data["values"].append(duplicate)
        report = IntegrityChecker(GraphStore.from_dict(snapshot_data)).all_checks().report()
        assert report.duplicate_local_symbols == 1

    def test_orphaned_argument(self, snapshot_data: dict[str, Any]) -> None:
        _find(snapshot_data["calls"], SAVE_CALL_ID)["arguments"][0]["value_id"] = "gone.php:1:1"
        store = GraphStore.from_dict(snapshot_data)
        checker = IntegrityChecker(store).all_argument_value_ids_exist()
        with pytest.raises(CheckFailure, match="gone.php:1:1"):
            checker.verify()

    def test_orphaned_source_call(self, snapshot_data: dict[str, Any]) -> None:
        _find(snapshot_data["values"], LOCAL_ORDER_ID)["source_call_id"] = "gone.php:1:1"
        report = IntegrityChecker(GraphStore.from_dict(snapshot_data)).all_checks().report()
        assert report.orphaned_source_call_ids == 1

    def test_orphaned_source_value(self, snapshot_data: dict[str, Any]) -> None:
        _find(snapshot_data["values"], LOCAL_ORDER_ID)["source_value_id"] = "gone.php:1:1"
        report = IntegrityChecker(GraphStore.from_dict(snapshot_data)).all_checks().report()
        assert report.orphaned_source_value_ids == 1
        assert report.total_issues == 1

    def test_missing_result_value(self, snapshot_data: dict[str, Any]) -> None:
        snapshot_data["values"] = [
            v for v in snapshot_data["values"] if v["id"] != NEW_ORDER_CALL_ID
        ]
        store = GraphStore.from_dict(snapshot_data)
        checker = IntegrityChecker(store).every_call_has_result_value()
        with pytest.raises(CheckFailure, match="has no result value"):
            checker.verify()

    def test_call_id_shared_with_non_result(self, snapshot_data: dict[str, Any]) -> None:
        _find(snapshot_data["values"], NEW_ORDER_CALL_ID)["kind"] = "local"
        store = GraphStore.from_dict(snapshot_data)
        checker = IntegrityChecker(store).every_call_has_result_value()
        with pytest.raises(CheckFailure, match="not a result"):
            checker.verify()

    def test_non_self_referencing_result(self, snapshot_data: dict[str, Any]) -> None:
        _find(snapshot_data["values"], SAVE_CALL_ID)["source_call_id"] = REPO_ACCESS_ID
        report = IntegrityChecker(GraphStore.from_dict(snapshot_data)).all_checks().report()
        assert report.non_self_referencing_results == 1

    def test_unterminated_chain(self, snapshot_data: dict[str, Any]) -> None:
        _find(snapshot_data["calls"], INVENTORY_ACCESS_ID)["receiver_value_id"] = (
            INVENTORY_ACCESS_ID
        )
        checker = IntegrityChecker(GraphStore.from_dict(snapshot_data)).chains_terminate()
        with pytest.raises(CheckFailure) as exc_info:
            checker.verify()
        assert "cycle" in exc_info.value.message

    def test_chain_bound(self, store: GraphStore) -> None:
        """Chains longer than the bound are reported."""
        report = IntegrityChecker(store).chains_terminate(max_hops=1).report()
        assert report.unterminated_chains == 2
        assert {i.ids[0] for i in report.issues} == {SAVE_CALL_ID, CHECK_CALL_ID}


class TestTypeMismatches:
    """Result type checks are advisory by default."""

    @pytest.fixture
    def mismatched(self, snapshot_data: dict[str, Any]) -> GraphStore:
        _find(snapshot_data["values"], SAVE_CALL_ID)["type"] = "App\\Entity\\Invoice"
        return GraphStore.from_dict(snapshot_data)

    def test_given_advisory_mismatch_when_verifying_then_passes(
        self, mismatched: GraphStore
    ) -> None:
        """Advisory mismatches are logged, not raised."""
        IntegrityChecker(mismatched).all_checks().verify()

    def test_advisory_mismatch_counted_but_not_blocking(self, mismatched: GraphStore) -> None:
        report = IntegrityChecker(mismatched).all_checks().report()
        assert report.type_mismatches == 1
        assert report.total_issues == 1
        assert report.blocking_issues == 0
        assert report.issues[0].advisory

    def test_mismatch_as_error(self, mismatched: GraphStore) -> None:
        checker = IntegrityChecker(mismatched, type_mismatch_is_error=True).all_checks()
        with pytest.raises(CheckFailure, match="App\\\\Entity\\\\Invoice"):
            checker.verify()
        assert checker.report().blocking_issues == 1


class TestReport:
    """IntegrityReport helpers."""

    def test_summary_lists_non_zero_categories(self) -> None:
        report = IntegrityReport(orphaned_receiver_ids=2, unterminated_chains=1)
        assert report.summary() == "Orphaned receiver ids: 2\nUnterminated chains: 1"

    def test_to_dict(self, snapshot_data: dict[str, Any]) -> None:
        _find(snapshot_data["calls"], REPO_ACCESS_ID)["receiver_value_id"] = "gone.php:1:1"
        report = IntegrityChecker(GraphStore.from_dict(snapshot_data)).all_checks().report()
        data = report.to_dict()
        assert data["orphaned_receiver_ids"] == 1
        assert data["unterminated_chains"] == 2
        assert data["blocking_issues"] == 3
        assert data["issues"][0]["check"] == "all_receiver_value_ids_exist"
        assert data["issues"][0]["ids"] == [REPO_ACCESS_ID, "gone.php:1:1"]

    def test_repeated_reports_are_identical(self, snapshot_data: dict[str, Any]) -> None:
        _find(snapshot_data["values"], SAVE_CALL_ID)["type"] = "App\\Entity\\Invoice"
        checker = IntegrityChecker(GraphStore.from_dict(snapshot_data)).all_checks()
        assert checker.report().to_dict() == checker.report().to_dict()

    def test_verify_lists_every_violation(self, snapshot_data: dict[str, Any]) -> None:
        for call in snapshot_data["calls"]:
            if call.get("receiver_value_id") == ORDER_PARAM_ID:
                call["receiver_value_id"] = "gone.php:1:1"
        with pytest.raises(CheckFailure) as exc_info:
            IntegrityChecker(GraphStore.from_dict(snapshot_data)).all_checks().verify()
        assert "Found 5 violation(s)" in exc_info.value.message
        assert len(exc_info.value.details["ids"]) == 10
