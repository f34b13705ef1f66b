"""Graph checks: integrity, reference, chain, argument binding, schema."""

from callcheck.checks.arguments import ArgumentBinding, ArgumentBindingChecker
from callcheck.checks.catalog import CHECK_CATALOG, CheckSpec
from callcheck.checks.chain import (
    ChainStep,
    ChainTrace,
    ChainWalker,
    SourceWalk,
    find_unterminated_chains,
    walk_to_source,
)
from callcheck.checks.integrity import IntegrityChecker, IntegrityIssue, IntegrityReport
from callcheck.checks.reference import ReferenceConsistencyChecker, ReferenceResult
from callcheck.checks.schema import SchemaChecker, SchemaViolation

__all__ = [
    "ArgumentBinding",
    "ArgumentBindingChecker",
    "CHECK_CATALOG",
    "ChainStep",
    "ChainTrace",
    "ChainWalker",
    "CheckSpec",
    "IntegrityChecker",
    "IntegrityIssue",
    "IntegrityReport",
    "ReferenceConsistencyChecker",
    "ReferenceResult",
    "SchemaChecker",
    "SchemaViolation",
    "SourceWalk",
    "find_unterminated_chains",
    "walk_to_source",
]
