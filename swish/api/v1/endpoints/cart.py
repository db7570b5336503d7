import logging
import traceback

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from swish.api.v1.deps import get_checkout_service, get_current_user, get_notification_service
from swish.core.exceptions import DOMAIN_ERRORS, domain_error_to_http
from swish.db.models.user_model import User
from swish.db.session import get_db_session
from swish.schemas.cart_schema import (
    CartItemIn,
    CartOut,
    CheckoutIn,
    CheckoutOut,
    CheckoutSummary,
    InvalidItemOut,
)
from swish.schemas.purchase_schema import PurchaseOut
from swish.services.cart_service import CartService, CartView
from swish.services.checkout_service import CheckoutService
from swish.services.notification_service import NotificationService

router = APIRouter(prefix="/api/v1/cart", tags=["cart"])


def get_cart_service(session: AsyncSession = Depends(get_db_session)) -> CartService:
    return CartService(session)


def _cart_out(view: CartView) -> CartOut:
    return CartOut.model_validate(view)


@router.get("/", response_model=CartOut)
async def get_cart(
    current_user: User = Depends(get_current_user),
    cart_svc: CartService = Depends(get_cart_service),
):
    return _cart_out(await cart_svc.get_cart(current_user.id))


@router.post("/", response_model=CartOut, status_code=status.HTTP_201_CREATED)
async def add_to_cart(
    body: CartItemIn,
    current_user: User = Depends(get_current_user),
    cart_svc: CartService = Depends(get_cart_service),
):
    try:
        await cart_svc.add_item(current_user.id, body.card_id)
    except DOMAIN_ERRORS as e:
        raise domain_error_to_http(e)
    return _cart_out(await cart_svc.get_cart(current_user.id))


@router.delete("/items/{card_id}", response_model=CartOut)
async def remove_from_cart(
    card_id: int,
    current_user: User = Depends(get_current_user),
    cart_svc: CartService = Depends(get_cart_service),
):
    try:
        await cart_svc.remove_item(current_user.id, card_id)
    except DOMAIN_ERRORS as e:
        raise domain_error_to_http(e)
    return _cart_out(await cart_svc.get_cart(current_user.id))


@router.post("/checkout", response_model=CheckoutOut)
async def checkout(
    body: CheckoutIn,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    checkout_svc: CheckoutService = Depends(get_checkout_service),
    notifier: NotificationService = Depends(get_notification_service),
):
    try:
        result = await checkout_svc.checkout(current_user.id, body)

    except DOMAIN_ERRORS as e:
        raise domain_error_to_http(e)

    except HTTPException:
        raise

    except Exception as e:
        logging.error(f"Internal Server Error in checkout: {e}\n{traceback.format_exc()}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                            detail="An unknown error occurred.")

    if result.purchases:
        background_tasks.add_task(
            notifier.send_order_confirmation,
            current_user.full_name,
            current_user.email,
            result.purchases,
            body.shipping_address,
            result.transaction_id,
        )

    return CheckoutOut(
        purchases=[PurchaseOut.model_validate(p) for p in result.purchases],
        summary=CheckoutSummary(
            total_purchases=result.total_purchases,
            total_amount=result.total_amount,
            settled_amount=result.settled_amount,
            failed_items=result.failed_items,
            invalid_items=[
                InvalidItemOut(card_id=i.card_id, card_name=i.card_name, reason=i.reason)
                for i in result.invalid_items
            ],
        ),
        transaction_id=result.transaction_id,
        message=result.message,
    )
