from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from swish.api.v1.deps import get_current_user
from swish.core.exceptions import InvalidCredentialsException
from swish.db.models.user_model import User
from swish.db.session import get_db_session
from swish.schemas.auth_schema import Token, UserCreate
from swish.schemas.user_schema import UserOut
from swish.services.auth_services import AuthService

router = APIRouter(tags=["auth"], prefix="/api/v1/auth")


@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def register(user_in: UserCreate, session: AsyncSession = Depends(get_db_session)):
    auth_svc = AuthService(session)
    created = await auth_svc.register_user(user_in)
    return UserOut.from_user(created)


@router.post("/token", response_model=Token)
async def login(form_data: OAuth2PasswordRequestForm = Depends(),
                session: AsyncSession = Depends(get_db_session)):
    auth_svc = AuthService(session)
    user = await auth_svc.authenticate(form_data.username, form_data.password)
    if not user:
        raise InvalidCredentialsException()
    token = auth_svc.create_token_for_user(user)
    return Token(access_token=token, token_type="bearer")


@router.get("/me", response_model=UserOut)
async def read_current_user(current_user: User = Depends(get_current_user)):
    return UserOut.from_user(current_user)
