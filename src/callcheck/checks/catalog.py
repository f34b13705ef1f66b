"""Declarative catalog of every check callcheck can run.

Order matters: integrity checks run in the order they appear here, in both
strict and report mode.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Literal

CheckCategory = Literal["integrity", "reference", "chain", "argument", "schema"]


@dataclass(frozen=True, slots=True)
class CheckSpec:
    """Metadata for one check."""

    name: str
    description: str
    category: CheckCategory
    report_field: str | None = None  # IntegrityReport counter, integrity checks only

    def to_dict(self) -> dict[str, str | None]:
        return {
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "report_field": self.report_field,
        }


_SPECS: tuple[CheckSpec, ...] = (
    # Integrity
    CheckSpec(
        "no_parameter_duplicates",
        "Each parameter symbol has exactly one value node.",
        "integrity",
        "duplicate_parameter_symbols",
    ),
    CheckSpec(
        "no_local_duplicates_per_line",
        "Each local symbol (name@line) has exactly one value node.",
        "integrity",
        "duplicate_local_symbols",
    ),
    CheckSpec(
        "all_receiver_value_ids_exist",
        "Every receiver_value_id resolves to a value.",
        "integrity",
        "orphaned_receiver_ids",
    ),
    CheckSpec(
        "all_argument_value_ids_exist",
        "Every argument value_id resolves to a value.",
        "integrity",
        "orphaned_argument_ids",
    ),
    CheckSpec(
        "all_source_call_ids_exist",
        "Every source_call_id resolves to a call.",
        "integrity",
        "orphaned_source_call_ids",
    ),
    CheckSpec(
        "all_source_value_ids_exist",
        "Every source_value_id resolves to a value.",
        "integrity",
        "orphaned_source_value_ids",
    ),
    CheckSpec(
        "every_call_has_result_value",
        "Every call has a value with the same id and kind result.",
        "integrity",
        "missing_result_values",
    ),
    CheckSpec(
        "result_value_types_match",
        "A call's return_type equals its result value's type when both are set.",
        "integrity",
        "type_mismatches",
    ),
    CheckSpec(
        "receivers_point_to_values",
        "No receiver_value_id names a call instead of a value.",
        "integrity",
        "receivers_pointing_to_calls",
    ),
    CheckSpec(
        "result_values_self_reference",
        "A result value's source_call_id equals its own id.",
        "integrity",
        "non_self_referencing_results",
    ),
    CheckSpec(
        "chains_terminate",
        "Every receiver chain reaches a terminal source within the hop bound.",
        "integrity",
        "unterminated_chains",
    ),
    # Reference
    CheckSpec(
        "one_value_per_declaration",
        "A named parameter or local resolves to one canonical value reused by all receivers.",
        "reference",
    ),
    # Chain
    CheckSpec(
        "receiver_chain_walk",
        "An expected access/method chain can be followed from a variable hop by hop.",
        "chain",
    ),
    # Argument
    CheckSpec(
        "argument_binding",
        "An argument at a position binds to the expected parameter, local, literal or result.",
        "argument",
    ),
    # Schema
    CheckSpec("version_format", "version looks like N.N or N.N.N.", "schema"),
    CheckSpec("values_non_empty", "The snapshot contains at least one value.", "schema"),
    CheckSpec("calls_non_empty", "The snapshot contains at least one call.", "schema"),
    CheckSpec("value_required_fields", "Values carry id, kind and location.", "schema"),
    CheckSpec(
        "call_required_fields", "Calls carry id, kind, kind_type, caller and location.", "schema"
    ),
    CheckSpec("location_fields", "Locations carry file, line and col.", "schema"),
    CheckSpec("id_format", "Ids have the form file:line:col.", "schema"),
    CheckSpec("value_kind", "Value kind is a known value kind.", "schema"),
    CheckSpec("call_kind", "Call kind is a known call kind.", "schema"),
    CheckSpec("call_kind_type", "Call kind_type is invocation, access or operator.", "schema"),
    CheckSpec("kind_type_consistency", "Call kind_type agrees with kind.", "schema"),
    CheckSpec("id_matches_location", "Node id equals file:line:col of its location.", "schema"),
    CheckSpec("unique_value_ids", "No two values share an id.", "schema"),
    CheckSpec("unique_call_ids", "No two calls share an id.", "schema"),
    CheckSpec(
        "argument_position",
        "Arguments carry positions starting at 0 with no gaps.",
        "schema",
    ),
)

CHECK_CATALOG: MappingProxyType[str, CheckSpec] = MappingProxyType(
    {spec.name: spec for spec in _SPECS}
)


def checks_in_category(category: CheckCategory) -> list[CheckSpec]:
    return [spec for spec in CHECK_CATALOG.values() if spec.category == category]


INTEGRITY_CHECKS: tuple[str, ...] = tuple(s.name for s in checks_in_category("integrity"))
SCHEMA_RULES: tuple[str, ...] = tuple(s.name for s in checks_in_category("schema"))
