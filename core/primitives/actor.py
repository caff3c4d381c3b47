"""
Tracechain Actor Primitive - Who Performed a Step
==================================================
The caller submits a User claim with every invocation. Only its public
fields are projected into an Actor, which is what entities embed in
their provenance and delivery history.

Roles (closed set):
    SUPPLIER      - cultivates and harvests goods
    MANUFACTURER  - imports, manufactures and exports goods; approves orders
    DISTRIBUTOR   - ships orders
    RETAILER      - places orders, retails and sells

RULES:
- A role outside the closed set is UnknownRole, never a RoleMismatch
- Claim keys outside the User schema (e.g. a password) are dropped
- Actor.to_dict() is the only shape ever written to the store

This file contains NO persistence logic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from core.invocation.errors import UnknownRole


# ══════════════════════════════════════════════════════════════
# ENUMS
# ══════════════════════════════════════════════════════════════

class Role(Enum):
    SUPPLIER = "supplier"
    MANUFACTURER = "manufacturer"
    DISTRIBUTOR = "distributor"
    RETAILER = "retailer"

    @classmethod
    def parse(cls, raw: Any) -> Role:
        if isinstance(raw, Role):
            return raw
        if isinstance(raw, str):
            normalized = raw.strip().lower()
            for role in cls:
                if role.value == normalized:
                    return role
        raise UnknownRole(raw)


def _text(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string.")
    return value


# ══════════════════════════════════════════════════════════════
# USER (caller claim)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class User:
    """
    Identity claim submitted with an invocation.

    The role stays a raw string here; it is parsed when the claim is
    projected into an Actor so an unknown role surfaces as UnknownRole.
    """
    user_id: str
    role: str
    user_code: str = ""
    phone_number: str = ""
    email: str = ""
    full_name: str = ""
    user_name: str = ""
    address: str = ""
    avatar: str = ""
    status: str = ""
    signature: str = field(default="", repr=False)

    def __post_init__(self):
        if not self.user_id or not isinstance(self.user_id, str):
            raise ValueError("user_id must be a non-empty string.")
        if not isinstance(self.role, str):
            raise ValueError("role must be a string.")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> User:
        if not isinstance(data, Mapping):
            raise ValueError("User claim must be a mapping.")
        return cls(
            user_id=_text(data, "user_id"),
            role=_text(data, "role"),
            user_code=_text(data, "user_code"),
            phone_number=_text(data, "phone_number"),
            email=_text(data, "email"),
            full_name=_text(data, "full_name"),
            user_name=_text(data, "user_name"),
            address=_text(data, "address"),
            avatar=_text(data, "avatar"),
            status=_text(data, "status"),
            signature=_text(data, "signature"),
        )


# ══════════════════════════════════════════════════════════════
# ACTOR (public projection)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Actor:
    """
    Public identity embedded in entity history.

    Fields:
        id:       Stable user identifier (ownership checks compare this)
        code:     User code
        phone:    Contact number
        name:     Display name
        address:  Postal address (default delivery address for retailers)
        avatar:   Avatar reference
        role:     One of Role
    """
    id: str
    role: Role
    code: str = ""
    phone: str = ""
    name: str = ""
    address: str = ""
    avatar: str = ""

    def __post_init__(self):
        if not self.id or not isinstance(self.id, str):
            raise ValueError("Actor id must be a non-empty string.")
        if not isinstance(self.role, Role):
            raise ValueError("role must be Role enum.")

    @classmethod
    def from_user(cls, user: User) -> Actor:
        return cls(
            id=user.user_id,
            role=Role.parse(user.role),
            code=user.user_code,
            phone=user.phone_number,
            name=user.full_name,
            address=user.address,
            avatar=user.avatar,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "phone": self.phone,
            "name": self.name,
            "address": self.address,
            "avatar": self.avatar,
            "role": self.role.value,
        }
