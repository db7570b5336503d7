from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from swish.core.exceptions import BusinessRuleViolation, ForbiddenOperation, NotFoundError
from swish.db.models.card_model import Card
from swish.repositories.card_repo import CardRepository
from swish.repositories.purchase_repo import PurchaseRepository
from swish.schemas.card_schema import CardCreate


class CardService:
    """Card creation and the owner's listing operations. All of them keep price set iff for sale."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.card_repo = CardRepository(session)
        self.purchase_repo = PurchaseRepository(session)

    async def create_card(self, owner_id: int, card_in: CardCreate) -> Card:
        card = await self.card_repo.create_card(owner_id, card_in.model_dump())
        await self.session.commit()
        await self.session.refresh(card)
        return card

    async def get_card(self, card_id: int) -> Card:
        card = await self.card_repo.get_by_id(card_id, with_owner=True)
        if card is None:
            raise NotFoundError("Card not found")
        return card

    async def list_cards(self, owner_id: int) -> list[Card]:
        return await self.card_repo.list_by_owner(owner_id)

    async def apply_operation(self, card_id: int, user_id: int, action: str, price: Optional[Decimal] = None) -> Card:
        card = await self.card_repo.get_by_id(card_id)
        if card is None:
            raise NotFoundError("Card not found")
        if card.owner_id != user_id:
            raise ForbiddenOperation("Forbidden: You can only operate on your own cards")

        if action == "list-for-sale":
            if price is None or price <= 0:
                raise BusinessRuleViolation("Valid price is required when listing for sale")
            if await self.purchase_repo.has_active_purchase(card_id):
                raise BusinessRuleViolation("Card has an active purchase and cannot be listed")
            await self.card_repo.set_listing(card, True, price)
        elif action == "remove-from-sale":
            await self.card_repo.set_listing(card, False, None)
        elif action == "update-price":
            if not card.is_for_sale:
                raise BusinessRuleViolation("Card must be listed for sale to update price")
            if price is None or price <= 0:
                raise BusinessRuleViolation("Valid price is required")
            await self.card_repo.set_listing(card, True, price)
        elif action == "list-for-trade":
            await self.card_repo.set_for_trade(card, True)
        elif action == "remove-from-trade":
            await self.card_repo.set_for_trade(card, False)
        else:
            raise BusinessRuleViolation("Invalid action")

        await self.session.commit()
        await self.session.refresh(card)
        return card
