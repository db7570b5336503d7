import logging
import traceback
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from swish.api.v1.deps import get_current_user
from swish.core.exceptions import DOMAIN_ERRORS, domain_error_to_http
from swish.db.models.user_model import User
from swish.db.session import get_db_session
from swish.schemas.common import MessageOut, PinIn
from swish.schemas.payment_schema import AddPaymentMethodIn, PaymentMethodMetadata
from swish.services.payment_method_service import PaymentMethodService

router = APIRouter(prefix="/api/v1/users/{user_id}/payment-methods", tags=["payment-methods"])


def get_payment_method_service(session: AsyncSession = Depends(get_db_session)) -> PaymentMethodService:
    return PaymentMethodService(session)


@router.get("/", response_model=List[PaymentMethodMetadata])
async def list_payment_methods(
        user_id: int,
        current_user: User = Depends(get_current_user),
        pm_svc: PaymentMethodService = Depends(get_payment_method_service),
):
    try:
        return await pm_svc.list_methods(user_id, current_user)
    except DOMAIN_ERRORS as e:
        raise domain_error_to_http(e)


@router.post("/", response_model=PaymentMethodMetadata, status_code=status.HTTP_201_CREATED)
async def add_payment_method(
        user_id: int,
        body: AddPaymentMethodIn,
        current_user: User = Depends(get_current_user),
        pm_svc: PaymentMethodService = Depends(get_payment_method_service),
):
    try:
        return await pm_svc.add_method(user_id, current_user, body.payment_method, body.pin)

    except DOMAIN_ERRORS as e:
        raise domain_error_to_http(e)

    except HTTPException:
        raise

    except Exception as e:
        # never echo the request body here, it holds the card number
        logging.error(f"Internal Server Error in add_payment_method: {type(e).__name__}\n{traceback.format_exc()}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                            detail="An unknown error occurred.")


@router.delete("/{payment_method_id}", response_model=MessageOut)
async def remove_payment_method(
        user_id: int,
        payment_method_id: str,
        body: Optional[PinIn] = None,
        current_user: User = Depends(get_current_user),
        pm_svc: PaymentMethodService = Depends(get_payment_method_service),
):
    try:
        await pm_svc.remove_method(user_id, current_user, payment_method_id, body.pin if body else None)
    except DOMAIN_ERRORS as e:
        raise domain_error_to_http(e)
    return MessageOut(message="Payment method removed successfully")
