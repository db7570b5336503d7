import enum
import logging
from typing import Optional

from swish.core.exceptions import InvalidPinException, PinRequiredException
from swish.core.security import verify_password
from swish.repositories.user_repo import UserRepository

logger = logging.getLogger(__name__)


class SensitiveOperation(str, enum.Enum):
    DELETE_ACCOUNT = "account deletion"
    DELETE_COLLECTION = "collection deletion"
    SET_SECURITY_PIN = "PIN change"
    REMOVE_SECURITY_PIN = "PIN removal"
    ADD_PAYMENT_METHOD = "add payment method"
    REMOVE_PAYMENT_METHOD = "remove payment method"
    UPDATE_SHIPPING_ADDRESS = "shipping address change"


class PinService:
    """
    Secondary-PIN gate for sensitive account mutations.

    Users who never set a PIN pass straight through; once a PIN exists every
    guarded operation needs it.
    """

    def __init__(self, user_repo: UserRepository):
        self.user_repo = user_repo

    async def require_pin_if_set(self, user_id: int, pin: Optional[str], operation: SensitiveOperation) -> None:
        stored = await self.user_repo.get_security_pin(user_id)
        if not stored:
            return None
        if not pin:
            raise PinRequiredException(operation.value)
        if not verify_password(pin, stored):
            logger.warning("Invalid security PIN for user %s during %s", user_id, operation.value)
            raise InvalidPinException()
