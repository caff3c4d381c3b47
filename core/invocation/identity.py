"""
Tracechain Invocation - Caller Identity
========================================
Turns the User claim submitted with an invocation into an Actor.

By default the claim is trusted as asserted (closed deployments where
the transport already authenticated the caller). An IdentityVerifier
binds the claim to a platform credential; with require_verified_identity
every claim must pass one before any state is read.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Protocol

from core.invocation.errors import IdentityNotVerified, InvalidPayload
from core.primitives.actor import Actor, User

logger = logging.getLogger("tracechain.invocation")


class IdentityVerifier(Protocol):
    def verify(self, user: User) -> bool:
        """True when the claim matches a credential the platform issued."""
        ...  # pragma: no cover


class InMemoryIdentityVerifier:
    """
    Verifier backed by a {user_id: (role, signature)} registry.

    Used for local runs and tests.
    """

    def __init__(self, credentials: Optional[Mapping[str, tuple[str, str]]] = None):
        self._credentials: dict[str, tuple[str, str]] = dict(credentials or {})

    def register(self, user_id: str, role: str, signature: str) -> None:
        if not user_id or not signature:
            raise ValueError("user_id and signature must be non-empty.")
        self._credentials[user_id] = (role, signature)

    def verify(self, user: User) -> bool:
        expected = self._credentials.get(user.user_id)
        if expected is None:
            return False
        role, signature = expected
        return user.role == role and user.signature == signature


def resolve_actor(
    claim: Any,
    *,
    verifier: Optional[IdentityVerifier] = None,
    require_verified: bool = False,
) -> Actor:
    """
    Project a User claim (User or mapping) to an Actor.

    Raises InvalidPayload for a malformed claim, UnknownRole for a role
    outside the closed set and IdentityNotVerified when verification is
    required or configured and fails.
    """
    if isinstance(claim, User):
        user = claim
    else:
        try:
            user = User.from_dict(claim)
        except ValueError as exc:
            raise InvalidPayload("actor", str(exc)) from exc

    actor = Actor.from_user(user)

    if verifier is None:
        if require_verified:
            raise IdentityNotVerified(user.user_id, "no identity verifier configured")
        return actor

    if not verifier.verify(user):
        logger.warning(f"Identity claim of '{user.user_id}' rejected by verifier.")
        raise IdentityNotVerified(user.user_id)
    return actor
