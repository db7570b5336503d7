from typing import Optional

from sqlalchemy import select, update, delete, or_
from sqlalchemy.ext.asyncio import AsyncSession

from swish.db.models.card_model import Card
from swish.db.models.cart_model import Cart, CartItem
from swish.db.models.collection_model import Collection
from swish.db.models.purchase_model import Purchase
from swish.db.models.user_model import User


class UserRepository:

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: int) -> Optional[User]:
        return await self.session.get(User, user_id)

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def create(self, user_in: dict) -> User:
        user = User(
            email=user_in["email"],
            full_name=user_in["full_name"],
            hashed_password=user_in["hashed_password"],
            is_active=True,
            payment_methods=[],
        )
        self.session.add(user)
        await self.session.flush()
        return user

    async def has_purchase_history(self, user_id: int) -> bool:
        stmt = (
            select(Purchase.id)
            .where(or_(Purchase.buyer_id == user_id, Purchase.seller_id == user_id))
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def delete(self, user: User) -> None:
        """Remove the user together with their cards, cart and collections."""
        card_ids = select(Card.id).where(Card.owner_id == user.id)
        cart_ids = select(Cart.id).where(Cart.user_id == user.id)
        await self.session.execute(
            delete(CartItem).where(or_(CartItem.card_id.in_(card_ids), CartItem.cart_id.in_(cart_ids)))
        )
        await self.session.execute(delete(Cart).where(Cart.user_id == user.id))
        await self.session.execute(delete(Collection).where(Collection.user_id == user.id))
        await self.session.execute(delete(Card).where(Card.owner_id == user.id))
        await self.session.delete(user)
        await self.session.flush()

    # ------------------ Security PIN ------------------ #

    async def get_security_pin(self, user_id: int) -> Optional[str]:
        result = await self.session.execute(select(User.security_pin).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def set_security_pin(self, user_id: int, hashed_pin: Optional[str]) -> None:
        await self.session.execute(
            update(User).where(User.id == user_id).values(security_pin=hashed_pin)
        )

    # ------------------ Profile / Vault ------------------ #

    async def get_payment_methods(self, user_id: int) -> Optional[list[dict]]:
        result = await self.session.execute(select(User.payment_methods).where(User.id == user_id))
        row = result.first()
        if row is None:
            return None
        return list(row[0] or [])

    async def set_payment_methods(self, user_id: int, payment_methods: list[dict]) -> None:
        await self.session.execute(
            update(User).where(User.id == user_id).values(payment_methods=payment_methods)
        )

    async def set_shipping_address(self, user_id: int, address: Optional[dict]) -> None:
        await self.session.execute(
            update(User).where(User.id == user_id).values(shipping_address=address)
        )
