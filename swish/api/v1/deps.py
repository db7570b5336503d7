from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from swish.core.exceptions import TokenInvalidException
from swish.core.security import decode_access_token
from swish.db.models.user_model import User
from swish.db.session import get_db_session, get_session_factory
from swish.repositories.user_repo import UserRepository
from swish.schemas.auth_schema import TokenPayload
from swish.services.checkout_service import CheckoutService
from swish.services.mailer import Mailer, SmtpMailer
from swish.services.notification_service import NotificationService
from swish.services.payment_gateway import MockPaymentGateway, PaymentGateway
from swish.services.purchase_service import PurchaseService

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token")


async def get_current_user(
        token: str = Depends(oauth2_scheme),
        session: AsyncSession = Depends(get_db_session),
) -> User:
    try:
        payload = decode_access_token(token)
        if payload is None:
            raise TokenInvalidException()
        token_data = TokenPayload(**payload)
        user_id = int(token_data.sub)
    except (JWTError, TypeError, ValueError):
        raise TokenInvalidException()

    user = await UserRepository(session).get_by_id(user_id)
    if user is None or not user.is_active:
        raise TokenInvalidException()
    return user


# ------------------ Injectable collaborators ------------------ #

def get_payment_gateway() -> PaymentGateway:
    return MockPaymentGateway.from_settings()


def get_mailer() -> Mailer:
    return SmtpMailer.from_settings()


def get_notification_service(mailer: Mailer = Depends(get_mailer)) -> NotificationService:
    return NotificationService(mailer)


def get_purchase_service(
        session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
        gateway: PaymentGateway = Depends(get_payment_gateway),
) -> PurchaseService:
    return PurchaseService(session_factory, gateway)


def get_checkout_service(
        session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
        gateway: PaymentGateway = Depends(get_payment_gateway),
) -> CheckoutService:
    return CheckoutService(session_factory, gateway)
