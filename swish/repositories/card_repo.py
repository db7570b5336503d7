from decimal import Decimal
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from swish.db.models.card_model import Card


class CardRepository:
    """Card rows and the sale-state transitions applied to them."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # ------------------ Retrieval Methods ------------------ #

    async def get_by_id(self, card_id: int, with_owner: bool = False) -> Card | None:
        stmt = select(Card).where(Card.id == card_id)
        if with_owner:
            stmt = stmt.options(selectinload(Card.owner))
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_owner(self, owner_id: int) -> list[Card]:
        result = await self.session.execute(
            select(Card).where(Card.owner_id == owner_id).order_by(Card.id)
        )
        return list(result.scalars().all())

    # ------------------ Creation ------------------ #

    async def create_card(self, owner_id: int, card_in: dict) -> Card:
        card = Card(owner_id=owner_id, **card_in)
        self.session.add(card)
        await self.session.flush()
        return card

    # ------------------ Update / Lock Methods ------------------ #

    async def lock_by_id(self, card_id: int) -> Card | None:
        stmt = (
            select(Card)
            .where(Card.id == card_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def claim_for_buyer(self, card_id: int, expected_price: Decimal, buyer_id: int) -> bool:
        """
        Take a listed card off the market and hand it to the buyer.

        Compare-and-set: only matches while the card is still listed at the
        price the buyer was charged, so of two concurrent claims exactly one
        sees rowcount == 1.
        """
        stmt = (
            update(Card)
            .where(
                Card.id == card_id,
                Card.is_for_sale.is_(True),
                Card.price == expected_price,
            )
            .values(is_for_sale=False, price=None, owner_id=buyer_id)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def set_listing(self, card: Card, is_for_sale: bool, price: Optional[Decimal]) -> Card:
        card.is_for_sale = is_for_sale
        card.price = price if is_for_sale else None
        await self.session.flush()
        return card

    async def set_for_trade(self, card: Card, is_for_trade: bool) -> Card:
        card.is_for_trade = is_for_trade
        await self.session.flush()
        return card

    async def return_to_seller(self, card_id: int, buyer_id: int, seller_id: int) -> bool:
        """Hand a reversed sale back to the seller, only while the buyer still owns the card."""
        stmt = (
            update(Card)
            .where(Card.id == card_id, Card.owner_id == buyer_id)
            .values(owner_id=seller_id, is_for_sale=False, price=None)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1
