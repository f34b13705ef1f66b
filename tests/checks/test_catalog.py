"""Tests for the check catalog."""

import dataclasses

from callcheck.checks.catalog import (
    CHECK_CATALOG,
    INTEGRITY_CHECKS,
    SCHEMA_RULES,
    checks_in_category,
)
from callcheck.checks.integrity import IntegrityReport


class TestCatalog:
    """Catalog contents stay in sync with the checkers."""

    def test_integrity_checks(self) -> None:
        assert len(INTEGRITY_CHECKS) == 11
        assert INTEGRITY_CHECKS[0] == "no_parameter_duplicates"
        assert INTEGRITY_CHECKS[-1] == "chains_terminate"

    def test_schema_rules(self) -> None:
        assert len(SCHEMA_RULES) == 15
        assert SCHEMA_RULES[0] == "version_format"

    def test_report_fields_match_integrity_report(self) -> None:
        """Every integrity check counts into its own IntegrityReport field."""
        counters = {
            f.name for f in dataclasses.fields(IntegrityReport) if f.type in ("int", int)
        }
        fields = {CHECK_CATALOG[name].report_field for name in INTEGRITY_CHECKS}
        assert fields == counters

    def test_only_integrity_checks_have_report_fields(self) -> None:
        for spec in CHECK_CATALOG.values():
            assert (spec.report_field is not None) == (spec.category == "integrity")

    def test_single_check_categories(self) -> None:
        assert [s.name for s in checks_in_category("chain")] == ["receiver_chain_walk"]
        assert [s.name for s in checks_in_category("reference")] == ["one_value_per_declaration"]
        assert [s.name for s in checks_in_category("argument")] == ["argument_binding"]

    def test_to_dict(self) -> None:
        assert CHECK_CATALOG["id_format"].to_dict() == {
            "name": "id_format",
            "description": "Ids have the form file:line:col.",
            "category": "schema",
            "report_field": None,
        }
