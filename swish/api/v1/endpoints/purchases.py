import logging
import traceback
from typing import List, Literal, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status

from swish.api.v1.deps import get_current_user, get_notification_service, get_purchase_service
from swish.core.exceptions import DOMAIN_ERRORS, domain_error_to_http
from swish.db.models.user_model import User
from swish.schemas.purchase_schema import PurchaseCreate, PurchaseOut, PurchaseUpdate
from swish.services.notification_service import NotificationService
from swish.services.purchase_service import PurchaseService

router = APIRouter(prefix="/api/v1/purchases", tags=["purchases"])


@router.post("/", response_model=PurchaseOut, status_code=status.HTTP_201_CREATED)
async def create_purchase(
        body: PurchaseCreate,
        background_tasks: BackgroundTasks,
        current_user: User = Depends(get_current_user),
        purchase_svc: PurchaseService = Depends(get_purchase_service),
        notifier: NotificationService = Depends(get_notification_service),
):
    try:
        purchase = await purchase_svc.create_purchase(current_user.id, body)

    except DOMAIN_ERRORS as e:
        raise domain_error_to_http(e)

    except HTTPException:
        raise

    except Exception as e:
        logging.error(f"Internal Server Error in create_purchase: {e}\n{traceback.format_exc()}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                            detail="An unknown error occurred.")

    background_tasks.add_task(
        notifier.send_order_confirmation,
        current_user.full_name,
        current_user.email,
        [purchase],
        body.shipping_address,
    )
    return PurchaseOut.model_validate(purchase)


@router.get("/", response_model=List[PurchaseOut])
async def list_purchases(
        role: Optional[Literal["buyer", "seller"]] = Query(None),
        limit: int = Query(50, ge=1, le=200),
        current_user: User = Depends(get_current_user),
        purchase_svc: PurchaseService = Depends(get_purchase_service),
):
    purchases = await purchase_svc.list_purchases(current_user.id, role=role, limit=limit)
    return [PurchaseOut.model_validate(p) for p in purchases]


@router.get("/{purchase_id}", response_model=PurchaseOut)
async def get_purchase(
        purchase_id: int,
        current_user: User = Depends(get_current_user),
        purchase_svc: PurchaseService = Depends(get_purchase_service),
):
    try:
        purchase = await purchase_svc.get_purchase(purchase_id, actor=current_user)
    except DOMAIN_ERRORS as e:
        raise domain_error_to_http(e)
    return PurchaseOut.model_validate(purchase)


@router.patch("/{purchase_id}", response_model=PurchaseOut)
async def update_purchase(
        purchase_id: int,
        body: PurchaseUpdate,
        current_user: User = Depends(get_current_user),
        purchase_svc: PurchaseService = Depends(get_purchase_service),
):
    try:
        purchase = await purchase_svc.update_status(purchase_id, current_user, body)
        return PurchaseOut.model_validate(purchase)

    except DOMAIN_ERRORS as e:
        raise domain_error_to_http(e)

    except Exception as e:
        logging.error(f"Internal Server Error in update_purchase: {e}\n{traceback.format_exc()}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                            detail="An unknown error occurred.")
