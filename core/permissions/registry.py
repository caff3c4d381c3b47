"""
Tracechain Permissions - Operation to Role Registry
====================================================
Capability table: every state-changing operation names the role it
requires, or the set of roles it admits. Queries are open to every
caller and are not listed.
"""

from __future__ import annotations

from typing import Union

from core.primitives.actor import Role

RoleRule = Union[Role, frozenset]

OPERATION_ROLES: dict[str, RoleRule] = {
    "goods.cultivate": Role.SUPPLIER,
    "goods.harvest": Role.SUPPLIER,
    # whoever created the good: cultivating suppliers and registering manufacturers
    "goods.update": frozenset({Role.SUPPLIER, Role.MANUFACTURER}),
    "goods.import": Role.MANUFACTURER,
    "goods.manufacture": Role.MANUFACTURER,
    "goods.export": Role.MANUFACTURER,
    "goods.register": Role.MANUFACTURER,
    "goods.distribute": Role.DISTRIBUTOR,
    "goods.retail_import": Role.RETAILER,
    "goods.sell": Role.RETAILER,
    "orders.create": Role.RETAILER,
    "orders.approve": Role.MANUFACTURER,
    "orders.reject": Role.MANUFACTURER,
    "orders.ship": Role.DISTRIBUTOR,
    "orders.finish": Role.DISTRIBUTOR,
}


def resolve_required_role(operation: str) -> RoleRule | None:
    """Resolve the role (or admitted roles) an operation requires."""
    return OPERATION_ROLES.get(operation)


def admitted_roles(rule: RoleRule) -> frozenset:
    if isinstance(rule, Role):
        return frozenset({rule})
    return frozenset(rule)
