from typing import Optional, Iterable

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from swish.db.models.card_model import Card
from swish.db.models.cart_model import Cart, CartItem


class CartRepository:

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_user(self, user_id: int) -> Optional[Cart]:
        stmt = (
            select(Cart)
            .where(Cart.user_id == user_id)
            .options(
                selectinload(Cart.items).selectinload(CartItem.card).selectinload(Card.owner)
            )
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_or_create(self, user_id: int) -> Cart:
        cart = await self.get_by_user(user_id)
        if cart:
            return cart
        cart = Cart(user_id=user_id)
        self.session.add(cart)
        await self.session.flush()
        return await self.get_by_user(user_id)

    async def get_item(self, cart_id: int, card_id: int) -> Optional[CartItem]:
        result = await self.session.execute(
            select(CartItem).where(CartItem.cart_id == cart_id, CartItem.card_id == card_id)
        )
        return result.scalar_one_or_none()

    async def add_item(self, cart_id: int, card_id: int) -> CartItem:
        item = CartItem(cart_id=cart_id, card_id=card_id)
        self.session.add(item)
        await self.session.flush()
        return item

    async def remove_item(self, cart_id: int, card_id: int) -> bool:
        result = await self.session.execute(
            delete(CartItem).where(CartItem.cart_id == cart_id, CartItem.card_id == card_id)
        )
        return result.rowcount > 0

    async def delete_items(self, item_ids: Iterable[int]) -> int:
        item_ids = list(item_ids)
        if not item_ids:
            return 0
        result = await self.session.execute(delete(CartItem).where(CartItem.id.in_(item_ids)))
        return result.rowcount

    async def clear(self, cart_id: int) -> int:
        result = await self.session.execute(delete(CartItem).where(CartItem.cart_id == cart_id))
        return result.rowcount
