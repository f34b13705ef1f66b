"""callcheck error types with typed error codes.

Error code ranges:
- 1xxx: Snapshot (load-time, fatal)
- 2xxx: Config
- 3xxx: Check failures (violated invariants, failed assertions)
- 4xxx: Usage (caller misconfiguration)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Snapshot (1xxx)
    SNAPSHOT_NOT_FOUND = 1001
    SNAPSHOT_READ_ERROR = 1002
    SNAPSHOT_PARSE_ERROR = 1003
    SNAPSHOT_INVALID = 1004

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Check failures (3xxx)
    QUERY_COUNT_MISMATCH = 3001
    CHAIN_BROKEN = 3002
    CHAIN_AMBIGUOUS = 3003
    INTEGRITY_VIOLATION = 3004
    REFERENCE_INCONSISTENT = 3005
    ARGUMENT_MISMATCH = 3006
    SCHEMA_VIOLATION = 3007
    EMPTY_CANDIDATE_SET = 3008

    # Usage (4xxx)
    USAGE_MISSING_PRECONDITION = 4001
    USAGE_INVALID_ARGUMENT = 4002


@dataclass(frozen=True, slots=True)
class CallCheckError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'SNAPSHOT_NOT_FOUND')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class SnapshotError(CallCheckError):
    """Snapshot could not be loaded. Not recoverable."""

    @classmethod
    def not_found(cls, path: str) -> SnapshotError:
        return cls(
            code=ErrorCode.SNAPSHOT_NOT_FOUND,
            message=f"Snapshot not found at: {path}",
            details={"path": path},
        )

    @classmethod
    def read_error(cls, path: str, reason: str) -> SnapshotError:
        return cls(
            code=ErrorCode.SNAPSHOT_READ_ERROR,
            message=f"Failed to read snapshot at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def parse_error(cls, path: str, reason: str) -> SnapshotError:
        return cls(
            code=ErrorCode.SNAPSHOT_PARSE_ERROR,
            message=f"Failed to parse snapshot at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid(cls, reason: str, **details: Any) -> SnapshotError:
        return cls(
            code=ErrorCode.SNAPSHOT_INVALID,
            message=f"Invalid snapshot structure: {reason}",
            details=details,
        )


class ConfigError(CallCheckError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> ConfigError:
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> ConfigError:
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class CheckFailure(CallCheckError, AssertionError):
    """A check found a violated invariant.

    Subclasses AssertionError so test runners report it as a failed
    assertion rather than an error.
    """

    @classmethod
    def count_mismatch(
        cls, noun: str, expected: int, actual: int, filters: list[str]
    ) -> CheckFailure:
        described = "; ".join(filters) if filters else "no filters"
        return cls(
            code=ErrorCode.QUERY_COUNT_MISMATCH,
            message=f"Expected {expected} {noun}, found {actual}. Filters applied: {described}",
            details={"noun": noun, "expected": expected, "actual": actual, "filters": filters},
        )

    @classmethod
    def none_found(cls, noun: str, filters: list[str]) -> CheckFailure:
        described = "; ".join(filters) if filters else "no filters"
        return cls(
            code=ErrorCode.QUERY_COUNT_MISMATCH,
            message=f"Expected at least one {noun}, found none. Filters applied: {described}",
            details={"noun": noun, "expected": ">=1", "actual": 0, "filters": filters},
        )

    @classmethod
    def chain_broken(cls, reason: str, trace: str, **details: Any) -> CheckFailure:
        return cls(
            code=ErrorCode.CHAIN_BROKEN,
            message=f"{reason}. Chain trace so far: {trace or '(empty)'}",
            details={"trace": trace, **details},
        )

    @classmethod
    def chain_ambiguous(cls, reason: str, trace: str, candidates: list[str]) -> CheckFailure:
        return cls(
            code=ErrorCode.CHAIN_AMBIGUOUS,
            message=f"{reason}: {len(candidates)} candidates ({', '.join(candidates)}). "
            f"Chain trace so far: {trace or '(empty)'}",
            details={"trace": trace, "candidates": candidates},
        )

    @classmethod
    def integrity(cls, check: str, message: str, ids: list[str]) -> CheckFailure:
        return cls(
            code=ErrorCode.INTEGRITY_VIOLATION,
            message=message,
            details={"check": check, "ids": ids},
        )

    @classmethod
    def reference(cls, message: str, **details: Any) -> CheckFailure:
        return cls(code=ErrorCode.REFERENCE_INCONSISTENT, message=message, details=details)

    @classmethod
    def argument(cls, message: str, **details: Any) -> CheckFailure:
        return cls(code=ErrorCode.ARGUMENT_MISMATCH, message=message, details=details)

    @classmethod
    def schema(cls, message: str, violations: list[dict[str, Any]]) -> CheckFailure:
        return cls(
            code=ErrorCode.SCHEMA_VIOLATION,
            message=message,
            details={"violations": violations},
        )

    @classmethod
    def empty_candidates(cls, what: str) -> CheckFailure:
        return cls(
            code=ErrorCode.EMPTY_CANDIDATE_SET,
            message=f"No candidates to check: {what}",
            details={"what": what},
        )


class UsageError(CallCheckError):
    """Caller invoked a query or check without its preconditions."""

    @classmethod
    def missing_precondition(cls, requirement: str) -> UsageError:
        return cls(
            code=ErrorCode.USAGE_MISSING_PRECONDITION,
            message=requirement,
            details={"requirement": requirement},
        )

    @classmethod
    def invalid_argument(cls, name: str, value: Any, reason: str) -> UsageError:
        return cls(
            code=ErrorCode.USAGE_INVALID_ARGUMENT,
            message=f"Invalid argument '{name}': {reason}",
            details={"argument": name, "value": str(value), "reason": reason},
        )
