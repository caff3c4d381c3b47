"""
Tests - Invocation adapter wiring from Django settings.
"""

import pytest

from adapters.invocation.wiring import build_contract, load_config, reset_contract
from core.invocation.errors import IdentityNotVerified
from core.invocation.identity import InMemoryIdentityVerifier
from core.ledger.django_store import DjangoLedger
from core.ledger.memory import InMemoryLedger


@pytest.fixture(autouse=True)
def _fresh_contract():
    reset_contract()
    yield
    reset_contract()


class TestWiring:
    def test_load_config(self, settings):
        settings.SUPPLY_CHAIN = {"LEDGER_BACKEND": "memory", "REQUIRE_VERIFIED_IDENTITY": True}
        config = load_config()
        assert config.ledger_backend == "memory"
        assert config.require_verified_identity is True

    def test_unknown_setting_rejected(self, settings):
        settings.SUPPLY_CHAIN = {"BACKEND": "memory"}
        with pytest.raises(ValueError):
            load_config()

    def test_memory_backend_singleton(self, settings):
        settings.SUPPLY_CHAIN = {"LEDGER_BACKEND": "memory"}
        contract = build_contract()
        assert isinstance(contract.ledger, InMemoryLedger)
        assert build_contract() is contract

        reset_contract()
        assert build_contract() is not contract

    def test_django_backend(self, settings):
        settings.SUPPLY_CHAIN = {"LEDGER_BACKEND": "django"}
        assert isinstance(build_contract().ledger, DjangoLedger)

    def test_verifier_wired_on_first_build(self, settings):
        settings.SUPPLY_CHAIN = {"LEDGER_BACKEND": "memory", "REQUIRE_VERIFIED_IDENTITY": True}
        verifier = InMemoryIdentityVerifier({"S1": ("supplier", "sig-S1")})
        contract = build_contract(identity_verifier=verifier)

        good = contract.cultivate(
            {"user_id": "S1", "role": "supplier", "signature": "sig-S1"}, {"name": "Tea"},
        )
        assert good["id"] == "Good1"
        with pytest.raises(IdentityNotVerified):
            contract.cultivate({"user_id": "S1", "role": "supplier"}, {"name": "Tea"})
