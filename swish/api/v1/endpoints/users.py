from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from swish.api.v1.deps import get_current_user
from swish.core.exceptions import DOMAIN_ERRORS, domain_error_to_http
from swish.db.models.user_model import User
from swish.db.session import get_db_session
from swish.schemas.common import MessageOut, PinIn
from swish.schemas.user_schema import SetSecurityPinIn, ShippingAddressUpdate, UserOut
from swish.services.account_service import AccountService

router = APIRouter(prefix="/api/v1/users", tags=["users"])


def get_account_service(session: AsyncSession = Depends(get_db_session)) -> AccountService:
    return AccountService(session)


@router.get("/{user_id}", response_model=UserOut)
async def get_user_profile(
        user_id: int,
        current_user: User = Depends(get_current_user),
        account_svc: AccountService = Depends(get_account_service),
):
    try:
        user = await account_svc.get_profile(user_id, current_user)
    except DOMAIN_ERRORS as e:
        raise domain_error_to_http(e)
    return UserOut.from_user(user)


@router.put("/{user_id}/shipping-address", response_model=UserOut)
async def update_shipping_address(
        user_id: int,
        body: ShippingAddressUpdate,
        current_user: User = Depends(get_current_user),
        account_svc: AccountService = Depends(get_account_service),
):
    try:
        user = await account_svc.update_shipping_address(user_id, current_user, body.shipping_address, body.pin)
    except DOMAIN_ERRORS as e:
        raise domain_error_to_http(e)
    return UserOut.from_user(user)


@router.delete("/{user_id}", response_model=MessageOut)
async def delete_user(
        user_id: int,
        body: Optional[PinIn] = None,
        current_user: User = Depends(get_current_user),
        account_svc: AccountService = Depends(get_account_service),
):
    try:
        await account_svc.delete_account(user_id, current_user, body.pin if body else None)
    except DOMAIN_ERRORS as e:
        raise domain_error_to_http(e)
    return MessageOut(message="Account deleted successfully")


@router.post("/{user_id}/security-pin", response_model=MessageOut)
async def set_security_pin(
        user_id: int,
        body: SetSecurityPinIn,
        current_user: User = Depends(get_current_user),
        account_svc: AccountService = Depends(get_account_service),
):
    try:
        await account_svc.set_security_pin(user_id, current_user, body)
    except DOMAIN_ERRORS as e:
        raise domain_error_to_http(e)
    return MessageOut(message="Security PIN set successfully")


@router.delete("/{user_id}/security-pin", response_model=MessageOut)
async def remove_security_pin(
        user_id: int,
        body: Optional[PinIn] = None,
        current_user: User = Depends(get_current_user),
        account_svc: AccountService = Depends(get_account_service),
):
    try:
        await account_svc.remove_security_pin(user_id, current_user, body.pin if body else None)
    except DOMAIN_ERRORS as e:
        raise domain_error_to_http(e)
    return MessageOut(message="Security PIN removed successfully")
