from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator, model_validator

from swish.schemas.card_schema import CardWithOwnerOut
from swish.schemas.common import ApiModel, Money, ShippingAddress
from swish.schemas.payment_schema import normalize_card_number
from swish.schemas.purchase_schema import PurchaseOut


class CartItemIn(ApiModel):
    card_id: int


class CartItemOut(ApiModel):
    id: int
    card_id: int
    added_at: Optional[datetime] = None
    card: CardWithOwnerOut


class CartOut(ApiModel):
    id: Optional[int] = None
    item_count: int
    items: list[CartItemOut]
    total_price: Money
    updated_at: Optional[datetime] = None


class OneTimePayment(ApiModel):
    card_number: str = Field(..., repr=False)
    expiry_month: str = Field(..., min_length=1, max_length=2)
    expiry_year: str = Field(..., min_length=2, max_length=4)
    cvv: str = Field(..., pattern=r"^\d{3,4}$", repr=False)
    cardholder_name: str = Field(..., min_length=1, max_length=100, repr=False)
    card_brand: str = Field(..., min_length=1, max_length=50)

    @field_validator("card_number")
    @classmethod
    def valid_card_number(cls, v: str) -> str:
        v = normalize_card_number(v)
        if not v.isdigit() or not 13 <= len(v) <= 19:
            raise ValueError("Card number must be 13 to 19 digits")
        return v


class CheckoutIn(ApiModel):
    payment_method_id: Optional[str] = Field(None, min_length=1, max_length=50)
    cvv: Optional[str] = Field(None, pattern=r"^\d{3,4}$")
    one_time_payment: Optional[OneTimePayment] = None
    shipping_address: ShippingAddress
    notes: Optional[str] = Field(None, max_length=500)

    @model_validator(mode="after")
    def payment_source_given(self):
        if not self.payment_method_id and not self.one_time_payment:
            raise ValueError("Either paymentMethodId or oneTimePayment must be provided")
        return self


class InvalidItemOut(ApiModel):
    card_id: int
    card_name: str
    reason: str


class CheckoutSummary(ApiModel):
    total_purchases: int
    total_amount: Money
    settled_amount: Money
    failed_items: int
    invalid_items: list[InvalidItemOut]


class CheckoutOut(ApiModel):
    purchases: list[PurchaseOut]
    summary: CheckoutSummary
    transaction_id: Optional[str] = None
    message: str
