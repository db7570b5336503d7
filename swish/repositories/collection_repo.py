from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from swish.db.models.collection_model import Collection


class CollectionRepository:

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, collection_id: int) -> Optional[Collection]:
        return await self.session.get(Collection, collection_id)

    async def list_by_user(self, user_id: int) -> list[Collection]:
        result = await self.session.execute(
            select(Collection).where(Collection.user_id == user_id).order_by(Collection.id)
        )
        return list(result.scalars().all())

    async def create(self, user_id: int, name: str, description: Optional[str], is_public: bool) -> Collection:
        collection = Collection(user_id=user_id, name=name, description=description, is_public=is_public)
        self.session.add(collection)
        await self.session.flush()
        return collection

    async def delete(self, collection: Collection) -> None:
        await self.session.delete(collection)
        await self.session.flush()
