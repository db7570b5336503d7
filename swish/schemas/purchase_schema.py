from datetime import datetime
from typing import Optional

from pydantic import Field

from swish.db.models.purchase_model import PurchaseStatus
from swish.schemas.common import ApiModel, CardBrief, Money, ShippingAddress, UserBrief


class PurchaseCreate(ApiModel):
    card_id: int
    payment_method_id: str = Field(..., min_length=1, max_length=50)
    cvv: Optional[str] = Field(None, pattern=r"^\d{3,4}$")
    shipping_address: ShippingAddress
    notes: Optional[str] = Field(None, max_length=500)


class PurchaseUpdate(ApiModel):
    # any status is accepted here; the transition table decides
    status: PurchaseStatus
    tracking_number: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=500)


class PurchaseOut(ApiModel):
    id: int
    buyer_id: int
    seller_id: int
    card_id: int
    price: Money
    status: PurchaseStatus
    payment_method: str
    shipping_address: ShippingAddress
    tracking_number: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    buyer: UserBrief
    seller: UserBrief
    card: CardBrief
