"""
Tests for core.invocation - transaction runner, error translation and
caller identity.
"""

from datetime import datetime, timezone

import pytest

from core.invocation.errors import (
    ConflictingWrite,
    IdentityNotVerified,
    InvalidPayload,
    NotFound,
    StoreError,
    TimestampUnavailable,
    UnknownRole,
)
from core.invocation.identity import InMemoryIdentityVerifier, resolve_actor
from core.invocation.runner import run_invocation, translate_ledger_error
from core.ledger.errors import (
    LedgerConflictError,
    LedgerError,
    LedgerTimestampError,
)
from core.ledger.memory import InMemoryLedger
from core.primitives.actor import Role, User
from core.sequence.allocator import SequenceAllocator
from core.store.keyspace import GOOD
from core.time.clock import TickingClock

START = datetime(2026, 3, 1, 8, 0, 0, tzinfo=timezone.utc)

RETAILER_CLAIM = {
    "user_id": "R1",
    "role": "retailer",
    "full_name": "Corner Shop",
    "address": "Shop 4, Moi Avenue",
    "signature": "sig-r1",
}


def _ledger():
    return InMemoryLedger(clock=TickingClock(START))


class _BrokenClock:
    def now_utc(self):
        raise RuntimeError("consensus clock offline")


# ══════════════════════════════════════════════════════════════
# RUNNER
# ══════════════════════════════════════════════════════════════

class TestRunInvocation:
    def test_commits_on_success(self):
        ledger = _ledger()
        allocated = run_invocation(
            ledger, lambda stub: SequenceAllocator(stub).next(GOOD), name="test.next",
        )
        assert allocated == 1
        assert ledger.version_of(GOOD.sequence_key) == 1

    def test_error_commits_nothing(self):
        ledger = _ledger()

        def operation(stub):
            SequenceAllocator(stub).next(GOOD)
            raise NotFound("Good9")

        with pytest.raises(NotFound):
            run_invocation(ledger, operation, name="test.fail")
        assert ledger.peek(GOOD.sequence_key) is None

    def test_unexpected_error_propagates_and_aborts(self):
        ledger = _ledger()

        def operation(stub):
            stub.put("Good1", b"{}")
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            run_invocation(ledger, operation, name="test.crash")
        assert ledger.peek("Good1") is None

    def test_lost_race_is_retryable_conflict(self):
        ledger = _ledger()

        def competing(stub):
            return SequenceAllocator(stub).next(GOOD)

        def operation(stub):
            allocated = SequenceAllocator(stub).next(GOOD)
            # another invocation allocates and commits first
            run_invocation(ledger, competing, name="test.competing")
            return allocated

        with pytest.raises(ConflictingWrite) as exc_info:
            run_invocation(ledger, operation, name="test.loser")

        assert exc_info.value.retryable
        assert exc_info.value.key == GOOD.sequence_key
        assert run_invocation(
            ledger, lambda stub: SequenceAllocator(stub).current(GOOD), name="test.read",
        ) == 1

    def test_broken_clock_is_timestamp_unavailable(self):
        ledger = InMemoryLedger(clock=_BrokenClock())
        with pytest.raises(TimestampUnavailable, match="offline"):
            run_invocation(
                ledger, lambda stub: stub.invocation_timestamp(), name="test.stamp",
            )

    def test_explicit_tx_id(self):
        ledger = _ledger()
        tx_id = run_invocation(
            ledger, lambda stub: stub.tx_id, name="test.tx", tx_id="tx-7",
        )
        assert tx_id == "tx-7"


class TestTranslateLedgerError:
    def test_conflict(self):
        error = translate_ledger_error(LedgerConflictError("tx1", "Good1", 1, 2))
        assert isinstance(error, ConflictingWrite)
        assert error.tx_id == "tx1"

    def test_timestamp(self):
        error = translate_ledger_error(LedgerTimestampError("no stamp"))
        assert isinstance(error, TimestampUnavailable)
        assert not error.retryable

    def test_generic(self):
        error = translate_ledger_error(LedgerError("disk full"))
        assert isinstance(error, StoreError)
        assert error.to_dict() == {
            "code": "STORE_ERROR",
            "message": "Store failure: disk full",
            "retryable": False,
        }


# ══════════════════════════════════════════════════════════════
# IDENTITY
# ══════════════════════════════════════════════════════════════

class TestResolveActor:
    def test_asserted_claim_is_trusted_by_default(self):
        actor = resolve_actor(RETAILER_CLAIM)
        assert actor.id == "R1"
        assert actor.role is Role.RETAILER
        assert actor.address == "Shop 4, Moi Avenue"

    def test_accepts_user_instance(self):
        actor = resolve_actor(User.from_dict(RETAILER_CLAIM))
        assert actor.id == "R1"

    def test_malformed_claim(self):
        with pytest.raises(InvalidPayload):
            resolve_actor({"role": "retailer"})
        with pytest.raises(InvalidPayload):
            resolve_actor("R1")

    def test_unknown_role(self):
        with pytest.raises(UnknownRole):
            resolve_actor({"user_id": "A1", "role": "auditor"})

    def test_required_without_verifier(self):
        with pytest.raises(IdentityNotVerified, match="no identity verifier"):
            resolve_actor(RETAILER_CLAIM, require_verified=True)

    def test_verified_claim(self):
        verifier = InMemoryIdentityVerifier({"R1": ("retailer", "sig-r1")})
        actor = resolve_actor(RETAILER_CLAIM, verifier=verifier, require_verified=True)
        assert actor.id == "R1"

    def test_forged_signature_rejected(self):
        verifier = InMemoryIdentityVerifier()
        verifier.register("R1", "retailer", "sig-real")
        with pytest.raises(IdentityNotVerified):
            resolve_actor(RETAILER_CLAIM, verifier=verifier)

    def test_claimed_role_must_match_credential(self):
        verifier = InMemoryIdentityVerifier({"R1": ("retailer", "sig-r1")})
        claim = {**RETAILER_CLAIM, "role": "manufacturer"}
        with pytest.raises(IdentityNotVerified):
            resolve_actor(claim, verifier=verifier)

    def test_register_requires_signature(self):
        with pytest.raises(ValueError):
            InMemoryIdentityVerifier().register("R1", "retailer", "")
