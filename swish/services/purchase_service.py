import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from swish.core.exceptions import (
    BusinessRuleViolation,
    ConflictError,
    ForbiddenOperation,
    NotFoundError,
    PaymentFailed,
)
from swish.db.models.purchase_model import Purchase, PurchaseStatus
from swish.db.models.user_model import User
from swish.repositories.card_repo import CardRepository
from swish.repositories.purchase_repo import PurchaseRepository
from swish.repositories.user_repo import UserRepository
from swish.schemas.purchase_schema import PurchaseCreate, PurchaseUpdate
from swish.services.payment_gateway import PaymentGateway, settle_with_timeout
from swish.services.payment_instrument import resolve_instrument
from swish.services.purchase_state import COMPLETION_STATUSES, REVERSAL_STATUSES, ensure_transition

logger = logging.getLogger(__name__)


class PurchaseService:
    """
    Direct purchase of a single card, plus reading and advancing purchases.

    `create_purchase` checks the card twice: once up front to fail fast and
    to learn the price to settle, then again under a row lock inside the
    transaction that records the sale. Only the second check decides who
    gets the card.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], gateway: PaymentGateway):
        self.session_factory = session_factory
        self.gateway = gateway

    async def create_purchase(self, buyer_id: int, data: PurchaseCreate) -> Purchase:
        async with self.session_factory() as session:
            card = await CardRepository(session).get_by_id(data.card_id)
            if card is None:
                raise NotFoundError("Card not found")
            if not card.is_for_sale:
                raise BusinessRuleViolation("Card is not for sale")
            if card.price is None or card.price <= 0:
                raise BusinessRuleViolation("Card price not set")
            if card.owner_id == buyer_id:
                raise BusinessRuleViolation("Cannot purchase your own card")
            if await PurchaseRepository(session).has_active_purchase(card.id):
                raise ConflictError("Card already sold or pending purchase")

            price = card.price
            seller_id = card.owner_id
            instrument = await resolve_instrument(
                UserRepository(session), buyer_id,
                payment_method_id=data.payment_method_id,
                cvv=data.cvv,
            )

        settlement = await settle_with_timeout(self.gateway, instrument, price)
        if not settlement.success:
            logger.info("Settlement declined for card %s, buyer %s: %s", data.card_id, buyer_id, settlement.error)
            raise PaymentFailed(settlement.error or "Payment processing failed")

        try:
            async with self.session_factory.begin() as session:
                card_repo = CardRepository(session)
                purchase_repo = PurchaseRepository(session)

                locked = await card_repo.lock_by_id(data.card_id)
                if (
                    locked is None
                    or not locked.is_for_sale
                    or locked.price != price
                    or locked.owner_id != seller_id
                    or await purchase_repo.has_active_purchase(data.card_id)
                ):
                    raise ConflictError("Card was sold during checkout")

                if not await card_repo.claim_for_buyer(data.card_id, price, buyer_id):
                    raise ConflictError("Card was sold during checkout")

                purchase = await purchase_repo.create_purchase(
                    buyer_id=buyer_id,
                    seller_id=seller_id,
                    card_id=data.card_id,
                    price=price,
                    payment_method=instrument.descriptor(settlement.transaction_id),
                    shipping_address=data.shipping_address.model_dump(mode="json", by_alias=True),
                    notes=data.notes,
                )
                purchase_id = purchase.id
        except IntegrityError:
            logger.error("Active purchase index rejected card %s after settlement %s; charge needs voiding",
                         data.card_id, settlement.transaction_id)
            raise ConflictError("Card was sold during checkout")
        except ConflictError:
            # TODO: void the settlement once the gateway supports refunds
            logger.error("Card %s lost after settlement %s; charge needs voiding", data.card_id, settlement.transaction_id)
            raise

        logger.info("Purchase %s created: card %s sold to user %s", purchase_id, data.card_id, buyer_id)
        return await self.get_purchase(purchase_id)

    # ------------------ Retrieval ------------------ #

    async def get_purchase(self, purchase_id: int, actor: Optional[User] = None) -> Purchase:
        async with self.session_factory() as session:
            purchase = await PurchaseRepository(session).get_by_id(purchase_id)
        if purchase is None:
            raise NotFoundError("Purchase not found")
        if actor is not None and not actor.is_admin and actor.id not in (purchase.buyer_id, purchase.seller_id):
            raise ForbiddenOperation("You are not allowed to view this purchase")
        return purchase

    async def list_purchases(self, user_id: int, role: Optional[str] = None, limit: int = 50) -> list[Purchase]:
        async with self.session_factory() as session:
            return await PurchaseRepository(session).list_for_user(user_id, role=role, limit=limit)

    # ------------------ Status updates ------------------ #

    async def update_status(self, purchase_id: int, actor: User, data: PurchaseUpdate) -> Purchase:
        async with self.session_factory.begin() as session:
            purchase = await PurchaseRepository(session).get_by_id(purchase_id, with_relations=False)
            if purchase is None:
                raise NotFoundError("Purchase not found")
            if purchase.seller_id != actor.id and not actor.is_admin:
                raise ForbiddenOperation("Only the seller can update this purchase")

            ensure_transition(purchase.status, data.status)

            purchase.status = data.status
            if data.tracking_number is not None:
                purchase.tracking_number = data.tracking_number
            if data.notes is not None:
                purchase.notes = data.notes
            if data.status in COMPLETION_STATUSES:
                purchase.completed_at = datetime.now(timezone.utc)
            if data.status in REVERSAL_STATUSES:
                # ownership moved to the buyer at PAID; undo it unless the buyer has since resold
                returned = await CardRepository(session).return_to_seller(
                    purchase.card_id, purchase.buyer_id, purchase.seller_id
                )
                if not returned:
                    logger.warning("Purchase %s reversed but card %s no longer belongs to buyer %s; owner kept",
                                   purchase_id, purchase.card_id, purchase.buyer_id)
            await session.flush()

        logger.info("Purchase %s moved to %s by user %s", purchase_id, PurchaseStatus(data.status).value, actor.id)
        return await self.get_purchase(purchase_id)
