import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from swish.core.exceptions import ConflictError, ForbiddenOperation, NotFoundError
from swish.core.security import hash_password
from swish.db.models.user_model import User
from swish.repositories.user_repo import UserRepository
from swish.schemas.common import ShippingAddress
from swish.schemas.user_schema import SetSecurityPinIn
from swish.services.pin_service import PinService, SensitiveOperation

logger = logging.getLogger(__name__)


def ensure_self_or_admin(actor: User, target_id: int, message: str) -> None:
    if actor.id != target_id and not actor.is_admin:
        raise ForbiddenOperation(message)


def ensure_self(actor: User, target_id: int, message: str) -> None:
    if actor.id != target_id:
        raise ForbiddenOperation(message)


class AccountService:
    """Profile, shipping address, security PIN and account removal."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_repo = UserRepository(session)
        self.pin_service = PinService(self.user_repo)

    async def _get_user(self, user_id: int) -> User:
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def get_profile(self, user_id: int, actor: User) -> User:
        ensure_self_or_admin(actor, user_id, "Forbidden: You can only view your own profile")
        return await self._get_user(user_id)

    async def update_shipping_address(
        self, user_id: int, actor: User, address: Optional[ShippingAddress], pin: Optional[str],
    ) -> User:
        ensure_self_or_admin(actor, user_id, "Forbidden: You can only update your own profile")
        user = await self._get_user(user_id)
        if actor.id == user_id:
            await self.pin_service.require_pin_if_set(user_id, pin, SensitiveOperation.UPDATE_SHIPPING_ADDRESS)

        payload = address.model_dump(mode="json", by_alias=True) if address else None
        await self.user_repo.set_shipping_address(user_id, payload)
        await self.session.commit()
        await self.session.refresh(user)
        return user

    async def delete_account(self, user_id: int, actor: User, pin: Optional[str]) -> None:
        ensure_self_or_admin(actor, user_id, "Forbidden: You can only delete your own account")
        user = await self._get_user(user_id)
        # an admin removing someone else's account is not asked for that user's PIN
        if actor.id == user_id:
            await self.pin_service.require_pin_if_set(user_id, pin, SensitiveOperation.DELETE_ACCOUNT)
        if await self.user_repo.has_purchase_history(user_id):
            raise ConflictError("Accounts with purchase history cannot be deleted")

        await self.user_repo.delete(user)
        await self.session.commit()
        logger.info("User %s deleted by user %s", user_id, actor.id)

    # ------------------ Security PIN ------------------ #

    async def set_security_pin(self, user_id: int, actor: User, data: SetSecurityPinIn) -> None:
        ensure_self(actor, user_id, "Forbidden: You can only set your own security PIN")
        await self._get_user(user_id)
        # changing an existing PIN needs the current one
        await self.pin_service.require_pin_if_set(user_id, data.current_pin, SensitiveOperation.SET_SECURITY_PIN)

        await self.user_repo.set_security_pin(user_id, hash_password(data.pin))
        await self.session.commit()
        logger.info("Security PIN set for user %s", user_id)

    async def remove_security_pin(self, user_id: int, actor: User, pin: Optional[str]) -> None:
        ensure_self_or_admin(actor, user_id, "Forbidden: You can only remove your own security PIN")
        await self._get_user(user_id)
        if not (actor.is_admin and actor.id != user_id):
            await self.pin_service.require_pin_if_set(user_id, pin, SensitiveOperation.REMOVE_SECURITY_PIN)

        await self.user_repo.set_security_pin(user_id, None)
        await self.session.commit()
        logger.info("Security PIN removed for user %s by user %s", user_id, actor.id)
