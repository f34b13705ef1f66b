"""Fluent queries over the calls collection."""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

from callcheck.core.errors import CheckFailure
from callcheck.graph.models import Call
from callcheck.query.base import (
    BaseQuery,
    compile_wildcard,
    file_of,
    line_of,
    method_prefix,
)


def _text(value: str | Enum) -> str:
    return value.value if isinstance(value, Enum) else value


class CallQuery(BaseQuery[Call]):
    """Query builder for calls.

    Usage::

        call = (
            CallQuery(store)
            .in_method("App\\Service\\OrderService", "createOrder")
            .kind("method")
            .callee_contains("save")
            .one()
        )
    """

    noun = "call"

    def _source(self) -> Iterable[Call]:
        return self._store.calls

    def kind(self, kind: str | Enum) -> CallQuery:
        k = _text(kind)
        return self._with(lambda c: c.kind == k, f"kind = '{k}'")

    def kind_type(self, kind_type: str | Enum) -> CallQuery:
        kt = _text(kind_type)
        return self._with(lambda c: c.kind_type == kt, f"kind_type = '{kt}'")

    def callee(self, callee: str) -> CallQuery:
        return self._with(lambda c: c.callee == callee, f"callee = '{callee}'")

    def callee_contains(self, fragment: str) -> CallQuery:
        return self._with(
            lambda c: c.callee is not None and fragment in c.callee,
            f"callee contains '{fragment}'",
        )

    def callee_matches(self, pattern: str) -> CallQuery:
        regex = compile_wildcard(pattern)
        return self._with(
            lambda c: c.callee is not None and regex.match(c.callee) is not None,
            f"callee matches '{pattern}'",
        )

    def caller_contains(self, fragment: str) -> CallQuery:
        return self._with(
            lambda c: c.caller is not None and fragment in c.caller,
            f"caller contains '{fragment}'",
        )

    def caller_matches(self, pattern: str) -> CallQuery:
        regex = compile_wildcard(pattern)
        return self._with(
            lambda c: c.caller is not None and regex.match(c.caller) is not None,
            f"caller matches '{pattern}'",
        )

    def in_method(self, class_name: str, method: str) -> CallQuery:
        prefix = method_prefix(class_name, method)
        return self._with(
            lambda c: c.caller is not None and prefix in c.caller,
            f"in method '{prefix}'",
        )

    def with_receiver_value_id(self, value_id: str) -> CallQuery:
        return self._with(
            lambda c: c.receiver_value_id == value_id,
            f"receiver_value_id = '{value_id}'",
        )

    def has_receiver(self) -> CallQuery:
        return self._with(lambda c: c.receiver_value_id is not None, "has receiver")

    def in_file(self, path: str) -> CallQuery:
        return self._with(
            lambda c: (f := file_of(c)) is not None and path in f,
            f"in file '{path}'",
        )

    def at_line(self, line: int) -> CallQuery:
        return self._with(lambda c: line_of(c) == line, f"at line {line}")

    def between_lines(self, start: int, end: int) -> CallQuery:
        return self._with(
            lambda c: (n := line_of(c)) is not None and start <= n <= end,
            f"between lines {start}-{end}",
        )

    def assert_all_share_receiver(self) -> str:
        """Assert every matching call uses the same receiver value.

        Returns:
            The shared receiver_value_id.

        Raises:
            CheckFailure: No calls matched, a call has no receiver, or the
                receivers differ.
        """
        calls = self.all()
        if not calls:
            raise CheckFailure.empty_candidates(f"calls where {self.describe()}")
        receivers = {c.receiver_value_id for c in calls}
        if None in receivers:
            missing = [c.id for c in calls if c.receiver_value_id is None]
            raise CheckFailure.reference(
                f"{len(missing)} matching call(s) have no receiver: {', '.join(missing)}",
                call_ids=missing,
                filters=self.descriptions,
            )
        if len(receivers) != 1:
            shared = sorted(r for r in receivers if r is not None)
            raise CheckFailure.reference(
                f"Expected all {len(calls)} calls to share one receiver, "
                f"found {len(shared)}: {', '.join(shared)}",
                receiver_ids=shared,
                filters=self.descriptions,
            )
        return next(iter(receivers))  # type: ignore[return-value]
