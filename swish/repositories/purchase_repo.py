from decimal import Decimal
from typing import Optional, Iterable

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from swish.db.models.purchase_model import Purchase, PurchaseStatus, ACTIVE_PURCHASE_STATUSES


class PurchaseRepository:

    def __init__(self, session: AsyncSession):
        self.session = session

    # ------------------ Active purchase checks ------------------ #

    async def has_active_purchase(self, card_id: int) -> bool:
        stmt = (
            select(Purchase.id)
            .where(Purchase.card_id == card_id, Purchase.status.in_(ACTIVE_PURCHASE_STATUSES))
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def active_card_ids(self, card_ids: Iterable[int]) -> set[int]:
        card_ids = list(card_ids)
        if not card_ids:
            return set()
        stmt = select(Purchase.card_id).where(
            Purchase.card_id.in_(card_ids),
            Purchase.status.in_(ACTIVE_PURCHASE_STATUSES),
        )
        result = await self.session.execute(stmt)
        return set(result.scalars().all())

    # ------------------ Retrieval ------------------ #

    async def get_by_id(self, purchase_id: int, with_relations: bool = True) -> Optional[Purchase]:
        stmt = select(Purchase).where(Purchase.id == purchase_id)
        if with_relations:
            stmt = stmt.options(
                selectinload(Purchase.buyer),
                selectinload(Purchase.seller),
                selectinload(Purchase.card),
            ).execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_many(self, purchase_ids: list[int]) -> list[Purchase]:
        if not purchase_ids:
            return []
        stmt = (
            select(Purchase)
            .where(Purchase.id.in_(purchase_ids))
            .options(
                selectinload(Purchase.buyer),
                selectinload(Purchase.seller),
                selectinload(Purchase.card),
            )
            .order_by(Purchase.id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_for_user(self, user_id: int, role: Optional[str] = None, limit: int = 50) -> list[Purchase]:
        if role == "buyer":
            clause = Purchase.buyer_id == user_id
        elif role == "seller":
            clause = Purchase.seller_id == user_id
        else:
            clause = or_(Purchase.buyer_id == user_id, Purchase.seller_id == user_id)
        stmt = (
            select(Purchase)
            .where(clause)
            .options(
                selectinload(Purchase.buyer),
                selectinload(Purchase.seller),
                selectinload(Purchase.card),
            )
            .order_by(Purchase.created_at.desc(), Purchase.id.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    # ------------------ Creation / Update ------------------ #

    async def create_purchase(
        self,
        buyer_id: int,
        seller_id: int,
        card_id: int,
        price: Decimal,
        payment_method: str,
        shipping_address: dict,
        notes: Optional[str] = None,
        status: PurchaseStatus = PurchaseStatus.PAID,
    ) -> Purchase:
        purchase = Purchase(
            buyer_id=buyer_id,
            seller_id=seller_id,
            card_id=card_id,
            price=price,
            status=status,
            payment_method=payment_method,
            shipping_address=shipping_address,
            notes=notes,
        )
        self.session.add(purchase)
        await self.session.flush()
        return purchase
