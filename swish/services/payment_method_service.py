import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from swish.core.exceptions import ConflictError, NotFoundError
from swish.db.models.user_model import User
from swish.repositories.user_repo import UserRepository
from swish.schemas.payment_schema import PaymentMethodIn, PaymentMethodMetadata
from swish.services.account_service import ensure_self, ensure_self_or_admin
from swish.services.payment_vault import (
    dump_payment_methods,
    encrypt_payment_method,
    get_payment_method_metadata,
    is_duplicate_card,
    load_payment_methods,
)
from swish.services.pin_service import PinService, SensitiveOperation

logger = logging.getLogger(__name__)


class PaymentMethodService:
    """Saved cards of a user. Callers only ever get metadata back."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_repo = UserRepository(session)
        self.pin_service = PinService(self.user_repo)

    async def _load(self, user_id: int):
        raw = await self.user_repo.get_payment_methods(user_id)
        if raw is None:
            raise NotFoundError("User not found")
        return load_payment_methods(raw)

    async def list_methods(self, user_id: int, actor: User) -> list[PaymentMethodMetadata]:
        ensure_self_or_admin(actor, user_id, "Forbidden: You can only view your own payment methods")
        return [get_payment_method_metadata(pm) for pm in await self._load(user_id)]

    async def add_method(
        self, user_id: int, actor: User, raw: PaymentMethodIn, pin: Optional[str],
    ) -> PaymentMethodMetadata:
        ensure_self(actor, user_id, "Forbidden: You can only update your own payment methods")
        methods = await self._load(user_id)
        await self.pin_service.require_pin_if_set(user_id, pin, SensitiveOperation.ADD_PAYMENT_METHOD)

        if is_duplicate_card(methods, raw.card_number):
            raise ConflictError("This card is already saved to your account")

        stored = encrypt_payment_method(raw)
        methods.append(stored)
        await self.user_repo.set_payment_methods(user_id, dump_payment_methods(methods))
        await self.session.commit()
        logger.info("Payment method %s added for user %s", stored.id, user_id)
        return get_payment_method_metadata(stored)

    async def remove_method(self, user_id: int, actor: User, method_id: str, pin: Optional[str]) -> None:
        ensure_self_or_admin(actor, user_id, "Forbidden: You can only update your own payment methods")
        methods = await self._load(user_id)
        if actor.id == user_id:
            await self.pin_service.require_pin_if_set(user_id, pin, SensitiveOperation.REMOVE_PAYMENT_METHOD)

        remaining = [pm for pm in methods if pm.id != method_id]
        if len(remaining) == len(methods):
            raise NotFoundError("Payment method not found")

        await self.user_repo.set_payment_methods(user_id, dump_payment_methods(remaining))
        await self.session.commit()
        logger.info("Payment method %s removed for user %s", method_id, user_id)
