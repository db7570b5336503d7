from datetime import timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from swish.core.config import settings
from swish.core.exceptions import UserAlreadyExistsException
from swish.core.security import create_access_token, dummy_verify, hash_password, verify_password
from swish.db.models.user_model import User
from swish.repositories.user_repo import UserRepository
from swish.schemas.auth_schema import UserCreate


class AuthService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_repo = UserRepository(session)

    async def register_user(self, user_in: UserCreate) -> User:
        email = user_in.email.lower()
        existing = await self.user_repo.get_by_email(email)
        if existing:
            raise UserAlreadyExistsException("email")

        user_data = {
            "email": email,
            "full_name": user_in.full_name,
            "hashed_password": hash_password(user_in.password),
        }
        user = await self.user_repo.create(user_in=user_data)
        await self.session.commit()
        await self.session.refresh(user)
        return user

    async def authenticate(self, email: str, password: str) -> Optional[User]:
        user = await self.user_repo.get_by_email(email.lower())
        if not user:
            dummy_verify(password)
            return None
        if not user.is_active:
            return None
        if not verify_password(password, user.hashed_password):
            return None
        return user

    def create_token_for_user(self, user: User) -> str:
        access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        return create_access_token(subject=str(user.id), expires_delta=access_token_expires)
