import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from swish.core.exceptions import BusinessRuleViolation, ConflictError, NotFoundError
from swish.db.models.cart_model import CartItem
from swish.repositories.card_repo import CardRepository
from swish.repositories.cart_repo import CartRepository
from swish.repositories.purchase_repo import PurchaseRepository

logger = logging.getLogger(__name__)


@dataclass
class CartView:
    id: Optional[int]
    items: list[CartItem]
    total_price: Decimal
    updated_at: Optional[datetime]

    @property
    def item_count(self) -> int:
        return len(self.items)


class CartService:

    def __init__(self, session: AsyncSession):
        self.session = session
        self.cart_repo = CartRepository(session)
        self.card_repo = CardRepository(session)
        self.purchase_repo = PurchaseRepository(session)

    async def get_cart(self, user_id: int) -> CartView:
        """Current cart; items whose card can no longer be bought are dropped on the way."""
        cart = await self.cart_repo.get_by_user(user_id)
        if cart is None:
            return CartView(id=None, items=[], total_price=Decimal("0"), updated_at=None)

        sold = await self.purchase_repo.active_card_ids(item.card_id for item in cart.items)
        valid, stale = [], []
        for item in cart.items:
            card = item.card
            if card.is_for_sale and card.price is not None and card.price > 0 and card.id not in sold:
                valid.append(item)
            else:
                stale.append(item.id)

        if stale:
            await self.cart_repo.delete_items(stale)
            await self.session.commit()
            logger.debug("Pruned %d unavailable items from cart %s", len(stale), cart.id)

        return CartView(
            id=cart.id,
            items=valid,
            total_price=sum((item.card.price for item in valid), Decimal("0")),
            updated_at=cart.updated_at,
        )

    async def add_item(self, user_id: int, card_id: int) -> CartItem:
        card = await self.card_repo.get_by_id(card_id)
        if card is None:
            raise NotFoundError("Card not found")
        if not card.is_for_sale:
            raise BusinessRuleViolation("Card is not for sale")
        if card.owner_id == user_id:
            raise BusinessRuleViolation("Cannot add your own card to cart")
        if await self.purchase_repo.has_active_purchase(card_id):
            raise BusinessRuleViolation("Card is already sold or has a pending purchase")

        cart = await self.cart_repo.get_or_create(user_id)
        if await self.cart_repo.get_item(cart.id, card_id):
            raise ConflictError("Card is already in your cart")

        item = await self.cart_repo.add_item(cart.id, card_id)
        await self.session.commit()
        return item

    async def remove_item(self, user_id: int, card_id: int) -> None:
        cart = await self.cart_repo.get_by_user(user_id)
        if cart is None:
            raise NotFoundError("Cart not found")
        if not await self.cart_repo.remove_item(cart.id, card_id):
            raise NotFoundError("Card not found in cart")
        await self.session.commit()
