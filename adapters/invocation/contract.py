"""
Tracechain Invocation Adapter - Supply Chain Contract
======================================================
The invocation boundary: one method per operation.

Every call:
    1. Resolves the User claim to an Actor (optionally verified)
    2. Builds the typed request from the payload (InvalidPayload)
    3. Runs the engine operation inside one ledger transaction
    4. Commits on success; on any error nothing is committed

Queries take no claim and never write.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Optional, TypeVar, Union

from core.config.rules import SupplyChainConfig
from core.invocation.errors import InvalidPayload, NotFound
from core.invocation.identity import IdentityVerifier, resolve_actor
from core.invocation.runner import run_invocation
from core.ledger.contracts import Ledger, LedgerStub
from core.primitives.actor import Actor
from core.sequence.allocator import SequenceAllocator
from core.store.entity_store import EntityStore
from core.store.history import HistoryEntry, ProvenanceHistoryReader
from core.store.keyspace import GOOD, LOT, ORDER, EntityKind, kind_by_name, parse_entity_number
from core.store.range_enumerator import OwnerFilter, RangeEnumerator
from core.time.clock import format_timestamp
from engines.goods.commands import (
    GOODS_CULTIVATE,
    GOODS_DISTRIBUTE,
    GOODS_EXPORT,
    GOODS_HARVEST,
    GOODS_IMPORT,
    GOODS_MANUFACTURE,
    GOODS_REGISTER,
    GOODS_RETAIL_IMPORT,
    GOODS_SELL,
    GOODS_UPDATE,
    GoodCreateRequest,
    GoodUpdateRequest,
    StageRequest,
)
from engines.goods.services import GoodsLifecycleService
from engines.orders.commands import (
    ORDERS_APPROVE,
    ORDERS_CREATE,
    ORDERS_FINISH,
    ORDERS_REJECT,
    ORDERS_SHIP,
    OrderCreateRequest,
    OrderDecisionRequest,
    OrderDeliveryRequest,
)
from engines.orders.services import OrderLifecycleService

T = TypeVar("T")

StageFilter = Union[None, str, Iterable[str]]


def _stages(stages: StageFilter) -> tuple[str, ...]:
    if stages is None:
        return ()
    if isinstance(stages, str):
        return (stages,) if stages else ()
    return tuple(stage for stage in stages if stage)


def _owner(slot: str, user_id: str) -> OwnerFilter:
    try:
        return OwnerFilter(slot, user_id)
    except ValueError as exc:
        raise InvalidPayload("orders.list", str(exc)) from exc


def _read_entity(stub: LedgerStub, kind: EntityKind, entity_id: str) -> dict[str, Any]:
    if parse_entity_number(kind, entity_id) is None:
        raise NotFound(entity_id)
    return EntityStore(stub).get(entity_id)


def _read_history(stub: LedgerStub, kind: EntityKind, entity_id: str) -> list[HistoryEntry]:
    if parse_entity_number(kind, entity_id) is None:
        raise NotFound(entity_id)
    return ProvenanceHistoryReader(stub).history(entity_id)


class SupplyChainContract:
    def __init__(
        self,
        ledger: Ledger,
        *,
        identity_verifier: Optional[IdentityVerifier] = None,
        config: Optional[SupplyChainConfig] = None,
    ):
        self._ledger = ledger
        self._verifier = identity_verifier
        self._config = config or SupplyChainConfig()

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    @property
    def config(self) -> SupplyChainConfig:
        return self._config

    def _actor(self, claim: Any) -> Actor:
        return resolve_actor(
            claim,
            verifier=self._verifier,
            require_verified=self._config.require_verified_identity,
        )

    def _run(self, name: str, operation: Callable[[LedgerStub], T]) -> T:
        return run_invocation(self._ledger, operation, name=name)

    # ══════════════════════════════════════════════════════════
    # LEDGER
    # ══════════════════════════════════════════════════════════

    def init_ledger(self) -> dict[str, bool]:
        """Create every sequence counter that does not exist yet."""
        return self._run("ledger.init", lambda stub: SequenceAllocator(stub).init_all())

    def get_counter(self, kind: str) -> int:
        try:
            entity_kind = kind_by_name(kind)
        except ValueError as exc:
            raise InvalidPayload("ledger.counter", str(exc)) from exc
        return self._run(
            "ledger.counter",
            lambda stub: SequenceAllocator(stub).current(entity_kind),
        )

    def get_invocation_timestamp(self) -> str:
        return self._run(
            "ledger.timestamp",
            lambda stub: format_timestamp(stub.invocation_timestamp()),
        )

    # ══════════════════════════════════════════════════════════
    # GOODS
    # ══════════════════════════════════════════════════════════

    def cultivate(self, user: Any, payload: Any) -> dict[str, Any]:
        actor = self._actor(user)
        request = GoodCreateRequest.from_payload(GOODS_CULTIVATE, payload)
        return self._run(
            GOODS_CULTIVATE,
            lambda stub: GoodsLifecycleService(stub).cultivate(actor, request),
        )

    def register_good(self, user: Any, payload: Any) -> dict[str, Any]:
        actor = self._actor(user)
        request = GoodCreateRequest.from_payload(GOODS_REGISTER, payload)
        return self._run(
            GOODS_REGISTER,
            lambda stub: GoodsLifecycleService(stub).register_good(actor, request),
        )

    def update_good(self, user: Any, payload: Any) -> dict[str, Any]:
        actor = self._actor(user)
        request = GoodUpdateRequest.from_payload(payload)
        return self._run(
            GOODS_UPDATE,
            lambda stub: GoodsLifecycleService(stub).update_good(actor, request),
        )

    def _advance(self, operation: str, user: Any, payload: Any) -> dict[str, Any]:
        actor = self._actor(user)
        request = StageRequest.from_payload(operation, payload)
        return self._run(
            operation,
            lambda stub: GoodsLifecycleService(stub).advance(actor, request),
        )

    def harvest(self, user: Any, payload: Any) -> dict[str, Any]:
        return self._advance(GOODS_HARVEST, user, payload)

    def import_good(self, user: Any, payload: Any) -> dict[str, Any]:
        return self._advance(GOODS_IMPORT, user, payload)

    def manufacture(self, user: Any, payload: Any) -> dict[str, Any]:
        return self._advance(GOODS_MANUFACTURE, user, payload)

    def export(self, user: Any, payload: Any) -> dict[str, Any]:
        return self._advance(GOODS_EXPORT, user, payload)

    def distribute(self, user: Any, payload: Any) -> dict[str, Any]:
        return self._advance(GOODS_DISTRIBUTE, user, payload)

    def retail_import(self, user: Any, payload: Any) -> dict[str, Any]:
        return self._advance(GOODS_RETAIL_IMPORT, user, payload)

    def sell(self, user: Any, payload: Any) -> dict[str, Any]:
        return self._advance(GOODS_SELL, user, payload)

    # ══════════════════════════════════════════════════════════
    # ORDERS
    # ══════════════════════════════════════════════════════════

    def create_order(self, user: Any, payload: Any) -> dict[str, Any]:
        actor = self._actor(user)
        request = OrderCreateRequest.from_payload(payload)
        return self._run(
            ORDERS_CREATE,
            lambda stub: OrderLifecycleService(stub).create(actor, request),
        )

    def approve_order(self, user: Any, payload: Any) -> dict[str, Any]:
        actor = self._actor(user)
        request = OrderDecisionRequest.from_payload(ORDERS_APPROVE, payload)
        return self._run(
            ORDERS_APPROVE,
            lambda stub: OrderLifecycleService(stub).approve(actor, request),
        )

    def reject_order(self, user: Any, payload: Any) -> dict[str, Any]:
        actor = self._actor(user)
        request = OrderDecisionRequest.from_payload(ORDERS_REJECT, payload)
        return self._run(
            ORDERS_REJECT,
            lambda stub: OrderLifecycleService(stub).reject(actor, request),
        )

    def ship_order(self, user: Any, payload: Any) -> dict[str, Any]:
        actor = self._actor(user)
        request = OrderDeliveryRequest.from_payload(ORDERS_SHIP, payload)
        return self._run(
            ORDERS_SHIP,
            lambda stub: OrderLifecycleService(stub).ship(actor, request),
        )

    def finish_order(self, user: Any, payload: Any) -> dict[str, Any]:
        actor = self._actor(user)
        request = OrderDeliveryRequest.from_payload(ORDERS_FINISH, payload)
        return self._run(
            ORDERS_FINISH,
            lambda stub: OrderLifecycleService(stub).finish(actor, request),
        )

    # ══════════════════════════════════════════════════════════
    # QUERIES
    # ══════════════════════════════════════════════════════════

    def get_good(self, good_id: str) -> dict[str, Any]:
        return self._run("goods.get", lambda stub: _read_entity(stub, GOOD, good_id))

    def get_lot(self, lot_id: str) -> dict[str, Any]:
        return self._run("lots.get", lambda stub: _read_entity(stub, LOT, lot_id))

    def get_order(self, order_id: str) -> dict[str, Any]:
        return self._run("orders.get", lambda stub: _read_entity(stub, ORDER, order_id))

    def _list(
        self,
        name: str,
        kind: EntityKind,
        stages: StageFilter,
        owner: Optional[OwnerFilter] = None,
    ) -> list[dict[str, Any]]:
        wanted = _stages(stages)
        return self._run(
            name,
            lambda stub: RangeEnumerator(stub).list(kind, stages=wanted, owner=owner),
        )

    def list_goods(self, stages: StageFilter = None) -> list[dict[str, Any]]:
        return self._list("goods.list", GOOD, stages)

    def list_lots(self, stages: StageFilter = None) -> list[dict[str, Any]]:
        return self._list("lots.list", LOT, stages)

    def list_orders(self, stages: StageFilter = None) -> list[dict[str, Any]]:
        return self._list("orders.list", ORDER, stages)

    def list_orders_of_retailer(self, user_id: str, stages: StageFilter = None) -> list[dict[str, Any]]:
        return self._list("orders.list", ORDER, stages, _owner("retailer", user_id))

    def list_orders_of_manufacturer(self, user_id: str, stages: StageFilter = None) -> list[dict[str, Any]]:
        return self._list("orders.list", ORDER, stages, _owner("manufacturer", user_id))

    def list_orders_of_distributor(self, user_id: str, stages: StageFilter = None) -> list[dict[str, Any]]:
        return self._list("orders.list", ORDER, stages, _owner("distributor", user_id))

    def good_history(self, good_id: str) -> list[HistoryEntry]:
        return self._run("goods.history", lambda stub: _read_history(stub, GOOD, good_id))

    def lot_history(self, lot_id: str) -> list[HistoryEntry]:
        return self._run("lots.history", lambda stub: _read_history(stub, LOT, lot_id))

    def order_history(self, order_id: str) -> list[HistoryEntry]:
        return self._run("orders.history", lambda stub: _read_history(stub, ORDER, order_id))
