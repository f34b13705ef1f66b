"""Receiver chain walking.

Two directions:

- Forward (``ChainWalker``): start at a named variable inside a method and
  follow an expected sequence of property accesses and method calls, e.g.
  ``$this->orderRepository->save()``. Each hop must match exactly one call
  whose receiver is the current value; the call's result value becomes the
  next receiver.

- Backward (``walk_to_source``): start at any call and follow
  receiver -> value -> source call -> receiver ... until a terminal value
  (parameter, local, literal, constant) or a call without a receiver.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

from callcheck.config.constants import DEFAULT_MAX_CHAIN_HOPS, SYNTHETIC_THIS_ID
from callcheck.core.errors import CheckFailure, UsageError
from callcheck.core.logging import get_logger
from callcheck.graph.models import Call, Value, ValueKind
from callcheck.graph.store import GraphStore
from callcheck.query.scope import MethodScope

log = get_logger("checks.chain")

THIS_VARIABLE = "$this"


# =============================================================================
# Forward walk
# =============================================================================


@dataclass(frozen=True, slots=True)
class Hop:
    """One expected hop: a call of ``kind`` whose callee contains ``name``."""

    kind: str
    name: str

    def __str__(self) -> str:
        return f"{self.kind} '{self.name}'"


@dataclass(frozen=True, slots=True)
class ChainStep:
    """A node visited during a forward walk."""

    type: Literal["value", "call"]
    node: Value | Call

    def describe(self) -> str:
        return self.node.describe()


@dataclass(frozen=True)
class ChainTrace:
    """Result of a successful forward walk.

    Steps alternate value, call, value, ... starting with the root value and
    ending with the result value of the last hop.
    """

    steps: tuple[ChainStep, ...]
    root_value: Value
    final_value: Value
    step_count: int
    synthetic_root: bool = False

    @property
    def final_type(self) -> str | None:
        return self.final_value.type

    def call_steps(self) -> list[Call]:
        return [s.node for s in self.steps if s.type == "call"]  # type: ignore[misc]

    def value_steps(self) -> list[Value]:
        return [s.node for s in self.steps if s.type == "value"]  # type: ignore[misc]

    def step(self, index: int) -> ChainStep:
        return self.steps[index]

    def describe(self) -> str:
        return describe_steps(self.steps)

    def to_dict(self) -> dict:
        return {
            "root_value_id": self.root_value.id,
            "final_value_id": self.final_value.id,
            "final_type": self.final_type,
            "step_count": self.step_count,
            "synthetic_root": self.synthetic_root,
            "steps": [
                {"type": s.type, "id": s.node.id, "kind": s.node.kind} for s in self.steps
            ],
        }


def describe_steps(steps: tuple[ChainStep, ...] | list[ChainStep]) -> str:
    return " -> ".join(s.describe() for s in steps)


class ChainWalker:
    """Verify an expected receiver chain inside one method.

    Usage::

        trace = (
            ChainWalker(store)
            .starting_from("App\\Service\\OrderService", "createOrder", "$this")
            .through_access("orderRepository")
            .through_method("save")
            .verify()
        )
        assert trace.final_type == "App\\Entity\\Order"

    Every builder method returns a new walker.
    """

    def __init__(
        self,
        store: GraphStore,
        *,
        allow_synthetic_receiver: bool = True,
        max_hops: int = DEFAULT_MAX_CHAIN_HOPS,
        _scope: MethodScope | None = None,
        _variable: str | None = None,
        _hops: tuple[Hop, ...] = (),
    ) -> None:
        self._store = store
        self._allow_synthetic = allow_synthetic_receiver
        self._max_hops = max_hops
        self._scope = _scope
        self._variable = _variable
        self._hops = _hops

    def _copy(self, **changes: object) -> ChainWalker:
        state: dict[str, object] = {
            "allow_synthetic_receiver": self._allow_synthetic,
            "max_hops": self._max_hops,
            "_scope": self._scope,
            "_variable": self._variable,
            "_hops": self._hops,
        }
        state.update(changes)
        return ChainWalker(self._store, **state)  # type: ignore[arg-type]

    def starting_from(self, class_name: str, method: str, variable: str) -> ChainWalker:
        return self._copy(_scope=MethodScope(self._store, class_name, method), _variable=variable)

    def through_access(self, name: str) -> ChainWalker:
        return self.through("access", name)

    def through_method(self, name: str) -> ChainWalker:
        return self.through("method", name)

    def through(self, kind: str | Enum, name: str) -> ChainWalker:
        """Add a hop of any call kind, e.g. ``through("method_nullsafe", "getEmail")``."""
        k = kind.value if isinstance(kind, Enum) else kind
        return self._copy(_hops=self._hops + (Hop(k, name),))

    def strict(self) -> ChainWalker:
        """Accept only an explicit ``$this`` parameter value as the receiver.

        Disables both the first-access guess and the synthetic placeholder.
        """
        return self._copy(allow_synthetic_receiver=False)

    def with_max_hops(self, max_hops: int) -> ChainWalker:
        if max_hops < 1:
            raise UsageError.invalid_argument("max_hops", max_hops, "must be at least 1")
        return self._copy(max_hops=max_hops)

    @property
    def hops(self) -> list[Hop]:
        return list(self._hops)

    def verify(self) -> ChainTrace:
        """Walk the chain.

        Raises:
            UsageError: No starting point, no hops, or more hops than max_hops.
            CheckFailure: A hop is missing or ambiguous, or a call has no
                result value.
        """
        scope, variable = self._validate()
        root, synthetic = self._find_start(scope, variable)

        steps: list[ChainStep] = [ChainStep("value", root)]
        current = root
        log.debug("chain_walk_started", scope=scope.prefix, variable=variable, hops=len(self._hops))

        for hop in self._hops:
            candidates = (
                scope.calls()
                .kind(hop.kind)
                .with_receiver_value_id(current.id)
                .callee_contains(hop.name)
                .all()
            )
            trace = describe_steps(steps)
            if not candidates:
                raise CheckFailure.chain_broken(
                    f"Could not find {hop.kind} call to '{hop.name}' with "
                    f"receiver_value_id={current.id} in {scope.prefix}",
                    trace,
                    hop=str(hop),
                    receiver_value_id=current.id,
                )
            if len(candidates) > 1:
                raise CheckFailure.chain_ambiguous(
                    f"Multiple {hop.kind} calls to '{hop.name}' with "
                    f"receiver_value_id={current.id} in {scope.prefix}",
                    trace,
                    [c.id for c in candidates],
                )
            call = candidates[0]
            steps.append(ChainStep("call", call))

            result = self._store.value_by_id(call.id)
            if result is None:
                raise CheckFailure.chain_broken(
                    f"Could not find result value for call id={call.id} ({hop})",
                    describe_steps(steps),
                    call_id=call.id,
                )
            if result.kind != ValueKind.RESULT.value:
                raise CheckFailure.chain_broken(
                    f"Expected result value for call id={call.id}, "
                    f"got kind={result.kind or 'null'}",
                    describe_steps(steps),
                    call_id=call.id,
                    kind=result.kind,
                )
            steps.append(ChainStep("value", result))
            current = result

        trace_obj = ChainTrace(
            steps=tuple(steps),
            root_value=root,
            final_value=current,
            step_count=len(self._hops),
            synthetic_root=synthetic,
        )
        log.debug("chain_walk_finished", scope=scope.prefix, final=current.id)
        return trace_obj

    def _validate(self) -> tuple[MethodScope, str]:
        if self._scope is None or self._variable is None:
            raise UsageError.missing_precondition("Must call starting_from() before verify()")
        if not self._hops:
            raise UsageError.missing_precondition(
                "Must add at least one hop with through_access() or through_method()"
            )
        if len(self._hops) > self._max_hops:
            raise UsageError.invalid_argument(
                "hops", len(self._hops), f"chain exceeds max_hops={self._max_hops}"
            )
        return self._scope, self._variable

    def _find_start(self, scope: MethodScope, variable: str) -> tuple[Value, bool]:
        if variable in (THIS_VARIABLE, "this"):
            return self._find_this(scope)

        value = scope.values().kind(ValueKind.PARAMETER).symbol_contains(
            scope.parameter_symbol(variable)
        ).first()
        if value is None:
            value = scope.values().kind(ValueKind.LOCAL).symbol_contains(
                scope.local_symbol_prefix(variable)
            ).first()
        if value is None:
            raise CheckFailure.chain_broken(
                f"Could not find starting value for {variable} in {scope.prefix}",
                "",
                variable=variable,
                scope=scope.prefix,
            )
        return value, False

    def _find_this(self, scope: MethodScope) -> tuple[Value, bool]:
        explicit = (
            scope.values()
            .kind(ValueKind.PARAMETER)
            .symbol_contains(scope.parameter_symbol(THIS_VARIABLE))
            .first()
        )
        if explicit is not None:
            return explicit, False

        if not self._allow_synthetic:
            raise CheckFailure.chain_broken(
                f"No {THIS_VARIABLE} parameter value in {scope.prefix} "
                "and implicit receiver fallbacks are disabled",
                "",
                variable=THIS_VARIABLE,
                scope=scope.prefix,
            )

        # The indexer usually emits no node for the implicit receiver. The
        # receiver of the first property access in scope stands in for it.
        access = scope.calls().kind("access").has_receiver().first()
        if access is not None and access.receiver_value_id is not None:
            value = self._store.value_by_id(access.receiver_value_id)
            if value is not None:
                log.debug("implicit_receiver_guessed", scope=scope.prefix, value=value.id)
                return value, False

        log.debug("synthetic_receiver_used", scope=scope.prefix)
        synthetic = Value(
            id=SYNTHETIC_THIS_ID,
            kind=ValueKind.PARAMETER.value,
            symbol=scope.parameter_symbol(THIS_VARIABLE),
        )
        return synthetic, True


# =============================================================================
# Backward walk
# =============================================================================


WalkStatus = Literal["terminated", "missing", "cycle", "exceeded", "invalid"]


@dataclass
class SourceWalk:
    """Result of walking one call's receiver chain back to its source."""

    start: Call
    status: WalkStatus
    path: list[Value | Call] = field(default_factory=list)
    terminal: Value | Call | None = None
    missing_id: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "terminated"

    def describe(self) -> str:
        chain = " -> ".join(n.describe() for n in self.path)
        if self.ok:
            return chain
        detail = f" (missing id {self.missing_id})" if self.missing_id else ""
        return f"{chain} [{self.status}{detail}]"


def walk_to_source(
    store: GraphStore, call: Call, max_hops: int = DEFAULT_MAX_CHAIN_HOPS
) -> SourceWalk:
    """Follow ``call``'s receiver chain backward to its terminal source.

    A hop is one receiver value lookup. The walk ends at:

    - a call without a receiver (terminated)
    - a parameter, local, literal or constant value (terminated)
    - an id that resolves to nothing (missing)
    - a node already visited (cycle)
    - more than ``max_hops`` hops (exceeded)
    - a value of unknown kind (invalid)
    """
    walk = SourceWalk(start=call, status="terminated", path=[call])
    seen_calls = {call.id}
    seen_values: set[str] = set()
    current = call
    hops = 0

    while True:
        receiver_id = current.receiver_value_id
        if receiver_id is None:
            walk.terminal = current
            return walk
        if hops >= max_hops:
            walk.status = "exceeded"
            return walk
        hops += 1

        if receiver_id in seen_values:
            walk.status = "cycle"
            return walk
        value = store.value_by_id(receiver_id)
        if value is None:
            walk.status = "missing"
            walk.missing_id = receiver_id
            return walk
        seen_values.add(receiver_id)
        walk.path.append(value)

        if value.is_terminal:
            walk.terminal = value
            return walk
        if value.kind != ValueKind.RESULT.value:
            walk.status = "invalid"
            return walk

        source_id = value.source_call_id or value.id
        if source_id in seen_calls:
            walk.status = "cycle"
            return walk
        source = store.call_by_id(source_id)
        if source is None:
            walk.status = "missing"
            walk.missing_id = source_id
            return walk
        seen_calls.add(source_id)
        walk.path.append(source)
        current = source


def find_unterminated_chains(
    store: GraphStore, max_hops: int = DEFAULT_MAX_CHAIN_HOPS
) -> list[SourceWalk]:
    """Every call whose receiver chain breaks, cycles or exceeds the bound."""
    broken = [
        walk
        for walk in (walk_to_source(store, call, max_hops) for call in store.calls)
        if not walk.ok
    ]
    log.debug("chains_walked", calls=store.call_count, unterminated=len(broken))
    return broken
