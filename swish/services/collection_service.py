from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from swish.core.exceptions import ForbiddenOperation, NotFoundError
from swish.db.models.collection_model import Collection
from swish.db.models.user_model import User
from swish.repositories.collection_repo import CollectionRepository
from swish.repositories.user_repo import UserRepository
from swish.schemas.collection_schema import CollectionCreate
from swish.services.pin_service import PinService, SensitiveOperation


class CollectionService:

    def __init__(self, session: AsyncSession):
        self.session = session
        self.collection_repo = CollectionRepository(session)
        self.pin_service = PinService(UserRepository(session))

    async def create(self, user_id: int, data: CollectionCreate) -> Collection:
        collection = await self.collection_repo.create(user_id, data.name, data.description, data.is_public)
        await self.session.commit()
        await self.session.refresh(collection)
        return collection

    async def list_for_user(self, user_id: int) -> list[Collection]:
        return await self.collection_repo.list_by_user(user_id)

    async def delete(self, collection_id: int, actor: User, pin: Optional[str]) -> None:
        collection = await self.collection_repo.get_by_id(collection_id)
        if collection is None:
            raise NotFoundError("Collection not found")
        if collection.user_id != actor.id and not actor.is_admin:
            raise ForbiddenOperation("Forbidden: You can only delete your own collections")
        if collection.user_id == actor.id:
            await self.pin_service.require_pin_if_set(actor.id, pin, SensitiveOperation.DELETE_COLLECTION)

        await self.collection_repo.delete(collection)
        await self.session.commit()
