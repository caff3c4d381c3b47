"""
Tracechain - Order Lifecycle Engine Tests
==========================================
Order placement, lot derivation and the per-line stage cascade.
"""

from datetime import datetime, timezone

import pytest

from core.invocation.errors import (
    InvalidPayload,
    InvalidStageTransition,
    NotFound,
    PermissionDenied,
    RoleMismatch,
)
from core.invocation.runner import run_invocation
from core.ledger.memory import InMemoryLedger
from core.primitives.actor import Actor, Role
from core.store.codec import decode_entity
from core.time.clock import TickingClock
from engines.goods.commands import (
    GOODS_CULTIVATE,
    GOODS_HARVEST,
    GOODS_IMPORT,
    GoodCreateRequest,
    StageRequest,
)
from engines.goods.services import GoodsLifecycleService
from engines.orders.commands import (
    ORDERS_APPROVE,
    ORDERS_FINISH,
    ORDERS_REJECT,
    ORDERS_SHIP,
    OrderCreateRequest,
    OrderDecisionRequest,
    OrderDeliveryRequest,
)
from engines.orders.lot_deriver import derive_lot
from engines.orders.services import OrderLifecycleService

START = datetime(2026, 3, 1, 8, 0, 0, tzinfo=timezone.utc)

S1 = Actor(id="S1", role=Role.SUPPLIER)
M1 = Actor(id="M1", role=Role.MANUFACTURER, address="Coast Mill, Mombasa")
D1 = Actor(id="D1", role=Role.DISTRIBUTOR)
D2 = Actor(id="D2", role=Role.DISTRIBUTOR)
R1 = Actor(id="R1", role=Role.RETAILER, address="Shop 4, Moi Avenue")


def _ledger():
    return InMemoryLedger(clock=TickingClock(START))


def _run(ledger, name, operation):
    return run_invocation(ledger, operation, name=name)


def _harvested_good(ledger, name="Arabica beans"):
    create = GoodCreateRequest.from_payload(GOODS_CULTIVATE, {"name": name, "price": "4.20"})
    good = _run(ledger, GOODS_CULTIVATE, lambda stub: GoodsLifecycleService(stub).cultivate(S1, create))
    harvest = StageRequest.from_payload(GOODS_HARVEST, {"id": good["id"], "amount": "500"})
    return _run(ledger, GOODS_HARVEST, lambda stub: GoodsLifecycleService(stub).advance(S1, harvest))


def _create_order(ledger, items, actor=R1, **extra):
    request = OrderCreateRequest.from_payload({"items": items, **extra})
    return _run(ledger, "orders.create", lambda stub: OrderLifecycleService(stub).create(actor, request))


def _decide(ledger, operation, actor, order_id):
    request = OrderDecisionRequest.from_payload(operation, order_id)
    method = "approve" if operation == ORDERS_APPROVE else "reject"
    return _run(
        ledger, operation,
        lambda stub: getattr(OrderLifecycleService(stub), method)(actor, request),
    )


def _deliver(ledger, operation, actor, order_id, address="", signature=""):
    request = OrderDeliveryRequest.from_payload(
        operation, {"id": order_id, "address": address, "signature": signature},
    )
    method = "ship" if operation == ORDERS_SHIP else "finish"
    return _run(
        ledger, operation,
        lambda stub: getattr(OrderLifecycleService(stub), method)(actor, request),
    )


def _stored(ledger, key):
    return decode_entity(key, ledger.peek(key))


def _shipped_order(ledger):
    _harvested_good(ledger)
    _create_order(ledger, [{"good_id": "Good1", "quantity": "10"}])
    _decide(ledger, ORDERS_APPROVE, M1, "Order1")
    _deliver(ledger, ORDERS_SHIP, D1, "Order1", "Depot 2, Nairobi", "sig-d1-ship")
    return _deliver(ledger, ORDERS_FINISH, D1, "Order1", "Shop 4, Moi Avenue", "sig-d1-done")


# ══════════════════════════════════════════════════════════════
# CREATE
# ══════════════════════════════════════════════════════════════

class TestCreateOrder:
    def test_lot_snapshots_the_good(self):
        ledger = _ledger()
        good = _harvested_good(ledger)
        order = _create_order(
            ledger,
            [{"good_id": "Good1", "quantity": "10", "qr_code": "QR-LOT-1"}],
            signatures=["sig-r1"],
            qr_code="QR-ORDER-1",
        )

        assert order["id"] == "Order1"
        assert order["stage"] == "PENDING"
        assert order["retailer"]["id"] == "R1"
        assert order["manufacturer"] is None
        assert order["distributor"] is None
        assert order["signatures"] == ["sig-r1"]
        assert order["qr_code"] == "QR-ORDER-1"
        assert order["created_at"] == order["delivery_history"][0]["date"]

        line = order["lines"][0]
        assert line["quantity"] == "10"
        lot = _stored(ledger, "Lot1")
        assert line["lot"] == lot
        assert lot["good_id"] == "Good1"
        assert lot["stage"] == "HARVESTED"
        assert lot["provenance"] == good["provenance"]
        assert lot["qr_code"] == "QR-LOT-1"
        assert "amount" not in lot

    def test_source_good_is_untouched(self):
        ledger = _ledger()
        good = _harvested_good(ledger)
        _create_order(ledger, [{"good_id": "Good1", "quantity": "10"}])
        assert _stored(ledger, "Good1") == good

    def test_one_lot_per_line(self):
        ledger = _ledger()
        _harvested_good(ledger)
        _harvested_good(ledger, name="Robusta beans")
        order = _create_order(ledger, [
            {"good_id": "Good2", "quantity": "3"},
            {"good_id": "Good1", "quantity": "7"},
            {"good_id": "Good2", "quantity": "1"},
        ])
        assert [line["lot"]["id"] for line in order["lines"]] == ["Lot1", "Lot2", "Lot3"]
        assert [line["lot"]["good_id"] for line in order["lines"]] == ["Good2", "Good1", "Good2"]

    def test_pending_event_uses_retailer_address(self):
        ledger = _ledger()
        _harvested_good(ledger)
        order = _create_order(ledger, [{"good_id": "Good1", "quantity": "1"}])
        pending = order["delivery_history"][0]
        assert pending["stage"] == "PENDING"
        assert pending["address"] == "Shop 4, Moi Avenue"
        assert pending["actor"]["id"] == "R1"

    def test_explicit_address_wins(self):
        ledger = _ledger()
        _harvested_good(ledger)
        order = _create_order(
            ledger, [{"good_id": "Good1", "quantity": "1"}], address="Warehouse 9",
        )
        assert order["delivery_history"][0]["address"] == "Warehouse 9"

    def test_missing_good_commits_nothing(self):
        ledger = _ledger()
        _harvested_good(ledger)
        with pytest.raises(NotFound) as exc_info:
            _create_order(ledger, [
                {"good_id": "Good1", "quantity": "1"},
                {"good_id": "Good7", "quantity": "1"},
            ])
        assert exc_info.value.key == "Good7"
        assert ledger.peek("Lot1") is None
        assert ledger.peek("Order1") is None
        assert ledger.peek("LotSequence") is None
        assert ledger.peek("OrderSequence") is None

    def test_lot_cannot_be_ordered(self):
        ledger = _ledger()
        _harvested_good(ledger)
        _create_order(ledger, [{"good_id": "Good1", "quantity": "1"}])
        with pytest.raises(NotFound):
            _create_order(ledger, [{"good_id": "Lot1", "quantity": "1"}])

    def test_only_retailers_order(self):
        ledger = _ledger()
        _harvested_good(ledger)
        with pytest.raises(RoleMismatch):
            _create_order(ledger, [{"good_id": "Good1", "quantity": "1"}], actor=M1)

    @pytest.mark.parametrize("payload", [
        {"items": []},
        {"items": "Good1"},
        {"items": [{"good_id": "Good1"}]},
        {"items": [{"quantity": "1"}]},
        {"items": [{"good_id": "Good1", "quantity": 1}]},
        {"items": [{"good_id": "Good1", "quantity": "1"}], "signatures": "sig"},
        [],
    ])
    def test_malformed_payload(self, payload):
        with pytest.raises(InvalidPayload):
            OrderCreateRequest.from_payload(payload)


class TestDeriveLot:
    def test_copies_descriptive_fields(self):
        good = {
            "id": "Good3",
            "name": "Tea",
            "images": ["t.png"],
            "stage": "HARVESTED",
            "amount": "100",
            "provenance": [{"stage": "CULTIVATED"}],
            "qr_code": "QR-GOOD",
        }
        lot = derive_lot(good, "Lot9", "QR-LOT")
        assert lot["id"] == "Lot9"
        assert lot["good_id"] == "Good3"
        assert lot["qr_code"] == "QR-LOT"
        assert lot["images"] == ["t.png"]
        assert "amount" not in lot

        lot["images"].append("u.png")
        lot["provenance"].append({"stage": "EXPORTED"})
        assert good["images"] == ["t.png"]
        assert len(good["provenance"]) == 1


# ══════════════════════════════════════════════════════════════
# APPROVE / REJECT
# ══════════════════════════════════════════════════════════════

class TestDecision:
    def test_approval_exports_every_lot(self):
        ledger = _ledger()
        good = _harvested_good(ledger)
        _create_order(ledger, [{"good_id": "Good1", "quantity": "10"}])

        order = _decide(ledger, ORDERS_APPROVE, M1, "Order1")

        assert order["stage"] == "APPROVED"
        assert order["manufacturer"]["id"] == "M1"
        assert [event["stage"] for event in order["delivery_history"]] == ["PENDING", "APPROVED"]
        assert order["delivery_history"][1]["address"] == "Coast Mill, Mombasa"
        assert order["updated_at"] == order["delivery_history"][1]["date"]

        lot = _stored(ledger, "Lot1")
        assert lot["stage"] == "EXPORTED"
        assert lot["provenance"][:-1] == good["provenance"]
        assert lot["provenance"][-1]["actor"]["id"] == "M1"
        assert order["lines"][0]["lot"] == lot
        assert _stored(ledger, "Good1") == good

    def test_accepts_id_object(self):
        ledger = _ledger()
        _harvested_good(ledger)
        _create_order(ledger, [{"good_id": "Good1", "quantity": "1"}])
        request = OrderDecisionRequest.from_payload(ORDERS_APPROVE, {"id": "Order1"})
        assert request.order_id == "Order1"

    def test_rejection_is_terminal(self):
        ledger = _ledger()
        _harvested_good(ledger)
        _create_order(ledger, [{"good_id": "Good1", "quantity": "1"}])
        order = _decide(ledger, ORDERS_REJECT, M1, "Order1")

        assert order["stage"] == "REJECTED"
        assert order["manufacturer"]["id"] == "M1"
        assert _stored(ledger, "Lot1")["stage"] == "HARVESTED"

        with pytest.raises(InvalidStageTransition):
            _decide(ledger, ORDERS_APPROVE, M1, "Order1")
        with pytest.raises(InvalidStageTransition):
            _deliver(ledger, ORDERS_SHIP, D1, "Order1")

    def test_lot_must_be_able_to_export(self):
        ledger = _ledger()
        create = GoodCreateRequest.from_payload(GOODS_CULTIVATE, {"name": "Green tea"})
        _run(ledger, GOODS_CULTIVATE, lambda stub: GoodsLifecycleService(stub).cultivate(S1, create))
        _create_order(ledger, [{"good_id": "Good1", "quantity": "1"}])
        before = ledger.peek("Order1")

        with pytest.raises(InvalidStageTransition) as exc_info:
            _decide(ledger, ORDERS_APPROVE, M1, "Order1")
        assert exc_info.value.entity_id == "Lot1"
        assert ledger.peek("Order1") == before

    def test_imported_good_lot_is_exported_on_approval(self):
        ledger = _ledger()
        _harvested_good(ledger)
        imported = StageRequest.from_payload(GOODS_IMPORT, {"id": "Good1"})
        _run(ledger, GOODS_IMPORT, lambda stub: GoodsLifecycleService(stub).advance(M1, imported))
        _create_order(ledger, [{"good_id": "Good1", "quantity": "10"}])
        assert _stored(ledger, "Lot1")["stage"] == "IMPORTED"

        order = _decide(ledger, ORDERS_APPROVE, M1, "Order1")

        lot = _stored(ledger, "Lot1")
        assert order["stage"] == "APPROVED"
        assert [entry["stage"] for entry in lot["provenance"]] == [
            "CULTIVATED", "HARVESTED", "IMPORTED", "EXPORTED",
        ]
        assert _stored(ledger, "Good1")["stage"] == "IMPORTED"

    def test_missing_order(self):
        with pytest.raises(NotFound):
            _decide(_ledger(), ORDERS_APPROVE, M1, "Order1")
        with pytest.raises(NotFound):
            _decide(_ledger(), ORDERS_APPROVE, M1, "Good1")

    def test_retailer_cannot_approve(self):
        ledger = _ledger()
        _harvested_good(ledger)
        _create_order(ledger, [{"good_id": "Good1", "quantity": "1"}])
        with pytest.raises(RoleMismatch):
            _decide(ledger, ORDERS_APPROVE, R1, "Order1")


# ══════════════════════════════════════════════════════════════
# SHIP / FINISH
# ══════════════════════════════════════════════════════════════

class TestDelivery:
    def test_ship_then_finish(self):
        ledger = _ledger()
        order = _shipped_order(ledger)

        assert order["stage"] == "SHIPPED"
        assert order["distributor"]["id"] == "D1"
        assert order["signatures"] == ["sig-d1-ship", "sig-d1-done"]
        assert [event["stage"] for event in order["delivery_history"]] == [
            "PENDING", "APPROVED", "SHIPPING", "SHIPPED",
        ]
        assert order["delivery_history"][2]["address"] == "Depot 2, Nairobi"
        assert order["finished_at"] == order["delivery_history"][3]["date"]
        assert order["updated_at"] == order["finished_at"]

        lot = _stored(ledger, "Lot1")
        assert [entry["stage"] for entry in lot["provenance"]] == [
            "CULTIVATED", "HARVESTED", "EXPORTED", "DISTRIBUTING", "RETAILING",
        ]

    def test_retailer_sells_the_lot(self):
        ledger = _ledger()
        _shipped_order(ledger)
        sell = StageRequest.from_payload("goods.sell", {"id": "Lot1"})
        lot = _run(ledger, "goods.sell", lambda stub: GoodsLifecycleService(stub).advance(R1, sell))
        assert lot["stage"] == "SOLD"
        assert _stored(ledger, "Good1")["stage"] == "HARVESTED"

    def test_only_shipping_distributor_may_finish(self):
        ledger = _ledger()
        _harvested_good(ledger)
        _create_order(ledger, [{"good_id": "Good1", "quantity": "1"}])
        _decide(ledger, ORDERS_APPROVE, M1, "Order1")
        _deliver(ledger, ORDERS_SHIP, D1, "Order1")

        with pytest.raises(PermissionDenied, match="distributor"):
            _deliver(ledger, ORDERS_FINISH, D2, "Order1")
        assert _stored(ledger, "Order1")["stage"] == "SHIPPING"

    def test_finish_before_ship(self):
        ledger = _ledger()
        _harvested_good(ledger)
        _create_order(ledger, [{"good_id": "Good1", "quantity": "1"}])
        _decide(ledger, ORDERS_APPROVE, M1, "Order1")
        with pytest.raises(InvalidStageTransition):
            _deliver(ledger, ORDERS_FINISH, D1, "Order1")

    def test_ship_records_empty_signature(self):
        ledger = _ledger()
        _harvested_good(ledger)
        _create_order(ledger, [{"good_id": "Good1", "quantity": "1"}], signatures=["sig-r1"])
        _decide(ledger, ORDERS_APPROVE, M1, "Order1")
        order = _deliver(ledger, ORDERS_SHIP, D1, "Order1")
        assert order["signatures"] == ["sig-r1", ""]

    def test_shipped_is_terminal(self):
        ledger = _ledger()
        _shipped_order(ledger)
        with pytest.raises(InvalidStageTransition):
            _deliver(ledger, ORDERS_FINISH, D1, "Order1")
