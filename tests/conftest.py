"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages, and
provides a small but complete snapshot shared by most tests.

The snapshot models two methods:

- ``OrderRepository::save(Order $order)`` reads five properties of
  ``$order`` on lines 31-35.
- ``OrderService::createOrder(CreateOrderInput $input)`` builds a local
  ``$order``, checks availability, then calls
  ``$this->orderRepository->save($order)`` and keeps the result in
  ``$savedOrder``.
"""

import copy
import json
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

# Insert local src directory at the beginning of sys.path
# This ensures that the local callcheck package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of callcheck modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("callcheck"):
        del sys.modules[module_name]

from callcheck.graph.store import GraphStore  # noqa: E402
from callcheck.scip.store import ScipStore  # noqa: E402

SERVICE_FILE = "src/Service/OrderService.php"
REPOSITORY_FILE = "src/Repository/OrderRepository.php"

SERVICE_CLASS = "App\\Service\\OrderService"
REPOSITORY_CLASS = "App\\Repository\\OrderRepository"
CREATE_ORDER = "App/Service/OrderService#createOrder()"
SAVE = "App/Repository/OrderRepository#save()"

ORDER_PARAM_ID = f"{REPOSITORY_FILE}:26:28"
INPUT_PARAM_ID = f"{SERVICE_FILE}:30:38"
THIS_ID = f"{SERVICE_FILE}:30:5"
LOCAL_ORDER_ID = f"{SERVICE_FILE}:40:9"
NEW_ORDER_CALL_ID = f"{SERVICE_FILE}:40:18"
STATUS_LITERAL_ID = f"{SERVICE_FILE}:40:37"
INVENTORY_ACCESS_ID = f"{SERVICE_FILE}:42:16"
CHECK_CALL_ID = f"{SERVICE_FILE}:42:34"
PRODUCT_ID_ACCESS_ID = f"{SERVICE_FILE}:42:59"
REPO_ACCESS_ID = f"{SERVICE_FILE}:45:30"
SAVE_CALL_ID = f"{SERVICE_FILE}:45:47"
SAVED_ORDER_ID = f"{SERVICE_FILE}:45:9"

ORDER_PROPERTIES = (
    ("id", "int"),
    ("customerEmail", "string"),
    ("status", "string"),
    ("total", "float"),
    ("createdAt", "DateTimeImmutable"),
)

_KIND_TYPES = {
    "method": "invocation",
    "method_static": "invocation",
    "method_nullsafe": "invocation",
    "function": "invocation",
    "constructor": "invocation",
    "access": "access",
    "access_static": "access",
    "access_nullsafe": "access",
    "access_array": "access",
    "coalesce": "operator",
    "ternary": "operator",
    "ternary_full": "operator",
    "match": "operator",
}


def _location(node_id: str) -> dict[str, Any]:
    file, line, col = node_id.rsplit(":", 2)
    return {"file": file, "line": int(line), "col": int(col)}


def value_record(
    node_id: str,
    kind: str,
    *,
    symbol: str | None = None,
    type: str | None = None,  # noqa: A002
    source_call_id: str | None = None,
    source_value_id: str | None = None,
) -> dict[str, Any]:
    """A value record whose location agrees with its id."""
    record: dict[str, Any] = {"id": node_id, "kind": kind, "location": _location(node_id)}
    if symbol is not None:
        record["symbol"] = symbol
    if type is not None:
        record["type"] = type
    if source_call_id is not None:
        record["source_call_id"] = source_call_id
    if source_value_id is not None:
        record["source_value_id"] = source_value_id
    return record


def call_record(
    node_id: str,
    kind: str,
    *,
    caller: str,
    callee: str | None = None,
    receiver_value_id: str | None = None,
    arguments: list[dict[str, Any]] | None = None,
    return_type: str | None = None,
) -> dict[str, Any]:
    """A call record whose location agrees with its id."""
    record: dict[str, Any] = {
        "id": node_id,
        "kind": kind,
        "kind_type": _KIND_TYPES[kind],
        "caller": caller,
        "location": _location(node_id),
    }
    if callee is not None:
        record["callee"] = callee
    if receiver_value_id is not None:
        record["receiver_value_id"] = receiver_value_id
    if arguments is not None:
        record["arguments"] = arguments
    if return_type is not None:
        record["return_type"] = return_type
    return record


def result_record(call: dict[str, Any]) -> dict[str, Any]:
    """The result value materialized for ``call``."""
    return value_record(
        call["id"], "result", type=call.get("return_type"), source_call_id=call["id"]
    )


def _build_snapshot() -> dict[str, Any]:
    values: list[dict[str, Any]] = []
    calls: list[dict[str, Any]] = []

    # OrderRepository::save(Order $order)
    values.append(
        value_record(
            ORDER_PARAM_ID, "parameter", symbol=f"{SAVE}.($order)", type="App\\Entity\\Order"
        )
    )
    for offset, (prop, prop_type) in enumerate(ORDER_PROPERTIES):
        call = call_record(
            f"{REPOSITORY_FILE}:{31 + offset}:13",
            "access",
            caller=SAVE,
            callee=f"App/Entity/Order#${prop}.",
            receiver_value_id=ORDER_PARAM_ID,
            return_type=prop_type,
        )
        calls.append(call)
        values.append(result_record(call))

    # OrderService::createOrder(CreateOrderInput $input)
    values.append(
        value_record(
            THIS_ID, "parameter", symbol=f"{CREATE_ORDER}.($this)", type=SERVICE_CLASS
        )
    )
    values.append(
        value_record(
            INPUT_PARAM_ID,
            "parameter",
            symbol=f"{CREATE_ORDER}.($input)",
            type="App\\Dto\\CreateOrderInput",
        )
    )

    # $order = new Order($input, 'pending');
    new_order = call_record(
        NEW_ORDER_CALL_ID,
        "constructor",
        caller=CREATE_ORDER,
        callee="App/Entity/Order#__construct().",
        arguments=[
            {
                "position": 0,
                "parameter": "App/Entity/Order#__construct().($input)",
                "value_id": INPUT_PARAM_ID,
                "value_expr": "$input",
            },
            {
                "position": 1,
                "parameter": "App/Entity/Order#__construct().($status)",
                "value_id": STATUS_LITERAL_ID,
                "value_expr": "'pending'",
            },
        ],
        return_type="App\\Entity\\Order",
    )
    calls.append(new_order)
    values.append(result_record(new_order))
    values.append(value_record(STATUS_LITERAL_ID, "literal", type="string"))
    values.append(
        value_record(
            LOCAL_ORDER_ID,
            "local",
            symbol=f"{CREATE_ORDER}.local$order@40",
            type="App\\Entity\\Order",
            source_call_id=NEW_ORDER_CALL_ID,
        )
    )

    # $this->inventoryService->checkAvailability($input->productId);
    inventory = call_record(
        INVENTORY_ACCESS_ID,
        "access",
        caller=CREATE_ORDER,
        callee="App/Service/OrderService#$inventoryService.",
        receiver_value_id=THIS_ID,
        return_type="App\\Service\\InventoryService",
    )
    product_id = call_record(
        PRODUCT_ID_ACCESS_ID,
        "access",
        caller=CREATE_ORDER,
        callee="App/Dto/CreateOrderInput#$productId.",
        receiver_value_id=INPUT_PARAM_ID,
        return_type="int",
    )
    check = call_record(
        CHECK_CALL_ID,
        "method",
        caller=CREATE_ORDER,
        callee="App/Service/InventoryService#checkAvailability().",
        receiver_value_id=INVENTORY_ACCESS_ID,
        arguments=[
            {
                "position": 0,
                "parameter": "App/Service/InventoryService#checkAvailability().($productId)",
                "value_id": PRODUCT_ID_ACCESS_ID,
                "value_expr": "$input->productId",
            }
        ],
        return_type="bool",
    )
    for call in (inventory, product_id, check):
        calls.append(call)
        values.append(result_record(call))

    # $savedOrder = $this->orderRepository->save($order);
    repo_access = call_record(
        REPO_ACCESS_ID,
        "access",
        caller=CREATE_ORDER,
        callee="App/Service/OrderService#$orderRepository.",
        receiver_value_id=THIS_ID,
        return_type="App\\Repository\\OrderRepository",
    )
    save = call_record(
        SAVE_CALL_ID,
        "method",
        caller=CREATE_ORDER,
        callee="App/Repository/OrderRepository#save().",
        receiver_value_id=REPO_ACCESS_ID,
        arguments=[
            {
                "position": 0,
                "parameter": f"{SAVE}.($order)",
                "value_id": LOCAL_ORDER_ID,
                "value_expr": "$order",
            }
        ],
        return_type="App\\Entity\\Order",
    )
    for call in (repo_access, save):
        calls.append(call)
        values.append(result_record(call))
    values.append(
        value_record(
            SAVED_ORDER_ID,
            "local",
            symbol=f"{CREATE_ORDER}.local$savedOrder@45",
            type="App\\Entity\\Order",
            source_call_id=SAVE_CALL_ID,
        )
    )

    return {"version": "3.2", "values": values, "calls": calls}


_SNAPSHOT = _build_snapshot()


@pytest.fixture
def snapshot_data() -> dict[str, Any]:
    """A fresh, mutable copy of the clean snapshot."""
    return copy.deepcopy(_SNAPSHOT)


@pytest.fixture
def store(snapshot_data: dict[str, Any]) -> GraphStore:
    """GraphStore over the clean snapshot."""
    return GraphStore.from_dict(snapshot_data)


@pytest.fixture
def write_snapshot(tmp_path: Path) -> Callable[[dict[str, Any]], Path]:
    """Write a snapshot mapping to tmp_path/output/calls.json."""

    def _write(data: dict[str, Any]) -> Path:
        path = tmp_path / "output" / "calls.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data))
        return path

    return _write


@pytest.fixture
def snapshot_file(
    snapshot_data: dict[str, Any], write_snapshot: Callable[[dict[str, Any]], Path]
) -> Path:
    """The clean snapshot on disk."""
    return write_snapshot(snapshot_data)


@pytest.fixture
def scip_data() -> dict[str, Any]:
    """A SCIP JSON index covering the Order entity and its repository."""
    order = "scip-php composer app 1.0 App/Entity/Order#"
    repo = "scip-php composer app 1.0 App/Repository/OrderRepository#"
    iface = "scip-php composer app 1.0 App/Repository/OrderRepositoryInterface#"
    return {
        "documents": [
            {
                "relative_path": "src/Entity/Order.php",
                "occurrences": [
                    {"range": [9, 6, 11], "symbol": order, "symbol_roles": 1},
                    {"range": [11, 20, 23], "symbol": f"{order}$id.", "symbol_roles": 1},
                    {"range": [17, 20, 26], "symbol": f"{order}getId().", "symbol_roles": 1},
                    {"range": [19, 22, 25], "symbol": f"{order}$id.", "symbol_roles": 8},
                ],
                "symbols": [
                    {"symbol": order, "documentation": ["class Order"]},
                    {"symbol": f"{order}$id.", "documentation": ["private int $id"]},
                    {"symbol": f"{order}getId().", "documentation": []},
                ],
            },
            {
                "relativePath": "src/Repository/OrderRepository.php",
                "occurrences": [
                    {"range": [5, 4, 27], "symbol": order, "symbolRoles": 2},
                    {"range": [9, 6, 21], "symbol": repo, "symbolRoles": 1},
                    {"range": [25, 20, 24], "symbol": f"{repo}save().", "symbolRoles": 1},
                    {"range": [30, 12, 14], "symbol": f"{order}$id.", "symbolRoles": 0},
                ],
                "symbols": [
                    {
                        "symbol": repo,
                        "documentation": ["class OrderRepository"],
                        "relationships": [{"symbol": iface, "isImplementation": True}],
                    },
                    {"symbol": f"{repo}save().", "documentation": ["public function save()"]},
                ],
            },
        ],
        "external_symbols": [
            {"symbol": iface, "documentation": ["interface OrderRepositoryInterface"]},
            {"symbol": order, "documentation": ["shadowed by the document symbol"]},
        ],
    }


@pytest.fixture
def scip_store(scip_data: dict[str, Any]) -> ScipStore:
    return ScipStore.from_dict(scip_data)
