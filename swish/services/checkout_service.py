"""
Cart checkout with first-come-first-served resolution of contested cards.

Every card in the cart is checked twice. The first pass runs without locks
and only serves to drop obviously dead items and to work out how much to
settle. The second pass runs per card inside the transaction that records
the sales: the card row is locked, the active-purchase check is repeated
and the card is claimed with a conditional update. Whichever buyer's
transaction claims the card first wins it; "first" means commit order, not
the order requests arrived in.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from swish.core.exceptions import BusinessRuleViolation, CheckoutRejected, PaymentFailed
from swish.db.models.purchase_model import Purchase
from swish.repositories.card_repo import CardRepository
from swish.repositories.cart_repo import CartRepository
from swish.repositories.purchase_repo import PurchaseRepository
from swish.repositories.user_repo import UserRepository
from swish.schemas.cart_schema import CheckoutIn
from swish.services.payment_gateway import PaymentGateway, settle_with_timeout
from swish.services.payment_instrument import resolve_instrument

logger = logging.getLogger(__name__)

NOT_FOR_SALE = "Card is no longer for sale"
OWN_CARD = "Cannot purchase your own card"
ALREADY_SOLD = "Card already sold"
SOLD_DURING_CHECKOUT = "Card sold during checkout (FCFS)"


@dataclass
class InvalidItem:
    card_id: int
    card_name: str
    reason: str


@dataclass
class _ValidItem:
    card_id: int
    card_name: str
    price: Decimal
    seller_id: int


@dataclass
class CheckoutResult:
    purchases: list[Purchase]
    total_amount: Decimal
    settled_amount: Decimal
    invalid_items: list[InvalidItem] = field(default_factory=list)
    transaction_id: Optional[str] = None

    @property
    def total_purchases(self) -> int:
        return len(self.purchases)

    @property
    def failed_items(self) -> int:
        return len(self.invalid_items)

    @property
    def message(self) -> str:
        if not self.purchases:
            return "Checkout failed - no items could be purchased"
        message = f"Successfully purchased {self.total_purchases} card(s)"
        if self.invalid_items:
            message += f" ({self.failed_items} items unavailable)"
        return message


class CheckoutService:

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], gateway: PaymentGateway):
        self.session_factory = session_factory
        self.gateway = gateway

    async def checkout(self, user_id: int, data: CheckoutIn) -> CheckoutResult:
        valid, invalid, cart_id = await self._partition_cart(user_id)

        if not valid:
            async with self.session_factory.begin() as session:
                await CartRepository(session).clear(cart_id)
            raise CheckoutRejected(
                "No valid items in cart to purchase",
                {"invalidItems": [f"{item.card_name}: {item.reason}" for item in invalid]},
            )

        async with self.session_factory() as session:
            instrument = await resolve_instrument(
                UserRepository(session), user_id,
                payment_method_id=data.payment_method_id,
                cvv=data.cvv,
                one_time_payment=data.one_time_payment,
            )

        settled_amount = sum((item.price for item in valid), Decimal("0"))
        settlement = await settle_with_timeout(self.gateway, instrument, settled_amount)
        if not settlement.success:
            logger.info("Checkout settlement declined for user %s: %s", user_id, settlement.error)
            raise PaymentFailed(settlement.error or "Payment processing failed")

        purchase_ids = []
        total_amount = Decimal("0")
        shipping_address = data.shipping_address.model_dump(mode="json", by_alias=True)
        payment_method = instrument.descriptor(settlement.transaction_id)

        async with self.session_factory.begin() as session:
            card_repo = CardRepository(session)
            purchase_repo = PurchaseRepository(session)

            for item in valid:
                locked = await card_repo.lock_by_id(item.card_id)
                if (
                    locked is None
                    or not locked.is_for_sale
                    or locked.price != item.price
                    or locked.owner_id != item.seller_id
                    or await purchase_repo.has_active_purchase(item.card_id)
                ):
                    invalid.append(InvalidItem(item.card_id, item.card_name, SOLD_DURING_CHECKOUT))
                    continue

                try:
                    async with session.begin_nested():
                        if not await card_repo.claim_for_buyer(item.card_id, item.price, user_id):
                            invalid.append(InvalidItem(item.card_id, item.card_name, SOLD_DURING_CHECKOUT))
                            continue
                        purchase = await purchase_repo.create_purchase(
                            buyer_id=user_id,
                            seller_id=item.seller_id,
                            card_id=item.card_id,
                            price=item.price,
                            payment_method=payment_method,
                            shipping_address=shipping_address,
                            notes=data.notes,
                        )
                except IntegrityError:
                    logger.warning("Active purchase index rejected card %s for user %s", item.card_id, user_id)
                    invalid.append(InvalidItem(item.card_id, item.card_name, SOLD_DURING_CHECKOUT))
                    continue

                purchase_ids.append(purchase.id)
                total_amount += item.price

            await CartRepository(session).clear(cart_id)

        if total_amount != settled_amount:
            logger.error(
                "Checkout %s for user %s settled %s but purchased %s",
                settlement.transaction_id, user_id, settled_amount, total_amount,
            )

        async with self.session_factory() as session:
            purchases = await PurchaseRepository(session).get_many(purchase_ids)

        logger.info("Checkout %s for user %s: %d purchased, %d unavailable",
                    settlement.transaction_id, user_id, len(purchases), len(invalid))
        return CheckoutResult(
            purchases=purchases,
            total_amount=total_amount,
            settled_amount=settled_amount,
            invalid_items=invalid,
            transaction_id=settlement.transaction_id,
        )

    async def _partition_cart(self, user_id: int) -> tuple[list[_ValidItem], list[InvalidItem], int]:
        """Advisory first pass; nothing here is locked."""
        async with self.session_factory() as session:
            cart = await CartRepository(session).get_by_user(user_id)
            if cart is None or not cart.items:
                raise BusinessRuleViolation("Cart is empty")

            sold = await PurchaseRepository(session).active_card_ids(item.card_id for item in cart.items)

            valid, invalid = [], []
            for item in cart.items:
                card = item.card
                if not card.is_for_sale or card.price is None or card.price <= 0:
                    invalid.append(InvalidItem(card.id, card.name, NOT_FOR_SALE))
                elif card.owner_id == user_id:
                    invalid.append(InvalidItem(card.id, card.name, OWN_CARD))
                elif card.id in sold:
                    invalid.append(InvalidItem(card.id, card.name, ALREADY_SOLD))
                else:
                    valid.append(_ValidItem(card.id, card.name, card.price, card.owner_id))
            return valid, invalid, cart.id
