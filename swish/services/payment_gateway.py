"""
Payment settlement.

The marketplace never talks to a real processor: `MockPaymentGateway`
stands in for one. Callers depend on the `PaymentGateway` interface so tests
can plug in deterministic gateways.
"""

import asyncio
import logging
import random
import string
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from swish.core.config import settings

logger = logging.getLogger(__name__)


@dataclass
class PaymentInstrument:
    """What the gateway charges: an opaque reference plus, for saved or one-time cards, the card data."""
    reference: str
    card_number: Optional[str] = field(default=None, repr=False)
    cardholder_name: Optional[str] = field(default=None, repr=False)
    expiry_month: Optional[str] = None
    expiry_year: Optional[str] = None

    def descriptor(self, transaction_id: Optional[str]) -> str:
        return f"{self.reference}:{transaction_id}" if transaction_id else self.reference


@dataclass
class SettlementResult:
    success: bool
    transaction_id: Optional[str] = None
    error: Optional[str] = None


class PaymentGateway(ABC):

    @abstractmethod
    async def settle(self, instrument: PaymentInstrument, amount: Decimal) -> SettlementResult:
        ...


class MockPaymentGateway(PaymentGateway):

    def __init__(
        self,
        delay_seconds: float = 0.1,
        max_amount: Decimal = Decimal("10000"),
        random_failures: bool = False,
        failure_rate: float = 0.05,
    ):
        self.delay_seconds = delay_seconds
        self.max_amount = Decimal(max_amount)
        self.random_failures = random_failures
        self.failure_rate = failure_rate

    @classmethod
    def from_settings(cls) -> "MockPaymentGateway":
        return cls(
            delay_seconds=settings.PAYMENT_DELAY_SECONDS,
            max_amount=settings.PAYMENT_MAX_AMOUNT,
            # never simulate failures in production
            random_failures=settings.ENABLE_RANDOM_PAYMENT_FAILURES and not settings.is_production,
        )

    async def settle(self, instrument: PaymentInstrument, amount: Decimal) -> SettlementResult:
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)

        if instrument.reference == "invalid_card":
            return SettlementResult(success=False, error="Invalid payment method")
        if amount <= 0:
            return SettlementResult(success=False, error="Invalid amount")
        if amount > self.max_amount:
            return SettlementResult(success=False, error="Amount exceeds limit")
        if self.random_failures and random.random() < self.failure_rate:
            return SettlementResult(success=False, error="Payment processing failed (simulated)")

        return SettlementResult(success=True, transaction_id=new_transaction_id())


def new_transaction_id() -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"txn_{int(time.time() * 1000)}_{suffix}"


async def settle_with_timeout(
    gateway: PaymentGateway,
    instrument: PaymentInstrument,
    amount: Decimal,
    timeout: Optional[float] = None,
) -> SettlementResult:
    """Run one settlement; a call that outlives `timeout` counts as declined."""
    timeout = settings.SETTLEMENT_TIMEOUT_SECONDS if timeout is None else timeout
    try:
        return await asyncio.wait_for(gateway.settle(instrument, amount), timeout=timeout)
    except asyncio.TimeoutError:
        logger.error("Settlement of %s for %s timed out after %ss", amount, instrument.reference, timeout)
        return SettlementResult(success=False, error="Payment processing timed out")
