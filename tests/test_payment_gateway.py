"""Tests for mock settlement and the settlement timeout."""

import asyncio
import re
from decimal import Decimal

import pytest

from swish.core.config import settings
from swish.services.payment_gateway import (
    MockPaymentGateway,
    PaymentGateway,
    PaymentInstrument,
    SettlementResult,
    settle_with_timeout,
)

CARD = PaymentInstrument(reference="card_123", card_number="4242424242424242")


class HangingGateway(PaymentGateway):
    async def settle(self, instrument, amount) -> SettlementResult:
        await asyncio.sleep(60)
        return SettlementResult(success=True, transaction_id="txn_never")


class TestMockPaymentGateway:
    async def test_success_returns_transaction_id(self) -> None:
        result = await MockPaymentGateway(delay_seconds=0).settle(CARD, Decimal("50.00"))

        assert result.success
        assert re.fullmatch(r"txn_\d+_[a-z0-9]{9}", result.transaction_id)
        assert result.error is None

    async def test_invalid_card(self) -> None:
        result = await MockPaymentGateway(delay_seconds=0).settle(
            PaymentInstrument(reference="invalid_card"), Decimal("10")
        )

        assert not result.success
        assert result.error == "Invalid payment method"

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5")])
    async def test_non_positive_amount(self, amount: Decimal) -> None:
        result = await MockPaymentGateway(delay_seconds=0).settle(CARD, amount)

        assert result.error == "Invalid amount"

    async def test_amount_over_limit(self) -> None:
        gateway = MockPaymentGateway(delay_seconds=0, max_amount=Decimal("10000"))

        assert (await gateway.settle(CARD, Decimal("10000"))).success
        assert (await gateway.settle(CARD, Decimal("10000.01"))).error == "Amount exceeds limit"

    async def test_random_failures_when_enabled(self) -> None:
        gateway = MockPaymentGateway(delay_seconds=0, random_failures=True, failure_rate=1.0)

        result = await gateway.settle(CARD, Decimal("10"))

        assert result.error == "Payment processing failed (simulated)"

    async def test_random_failures_off_by_default(self) -> None:
        gateway = MockPaymentGateway(delay_seconds=0, failure_rate=1.0)

        assert (await gateway.settle(CARD, Decimal("10"))).success

    def test_from_settings_never_fails_randomly_in_production(self, monkeypatch) -> None:
        monkeypatch.setattr(settings, "ENABLE_RANDOM_PAYMENT_FAILURES", True)
        monkeypatch.setattr(settings, "ENVIRONMENT", "production")

        assert MockPaymentGateway.from_settings().random_failures is False

        monkeypatch.setattr(settings, "ENVIRONMENT", "development")
        assert MockPaymentGateway.from_settings().random_failures is True


class TestSettleWithTimeout:
    async def test_timeout_is_a_failed_settlement(self) -> None:
        result = await settle_with_timeout(HangingGateway(), CARD, Decimal("10"), timeout=0.01)

        assert not result.success
        assert result.error == "Payment processing timed out"

    async def test_passes_result_through(self) -> None:
        result = await settle_with_timeout(MockPaymentGateway(delay_seconds=0), CARD, Decimal("10"), timeout=1)

        assert result.success


def test_instrument_descriptor_and_repr() -> None:
    assert CARD.descriptor("txn_1") == "card_123:txn_1"
    assert CARD.descriptor(None) == "card_123"
    assert "4242424242424242" not in repr(CARD)
