import re
from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from swish.schemas.common import ApiModel

_NON_DIGIT_SEPARATORS = re.compile(r"[\s-]+")


def normalize_card_number(card_number: str) -> str:
    """Strip the spaces and hyphens people type between digit groups."""
    return _NON_DIGIT_SEPARATORS.sub("", card_number or "")


class PaymentMethodIn(ApiModel):
    """Raw card entry as submitted by the client."""
    card_number: str = Field(..., repr=False)
    cardholder_name: str = Field(..., min_length=1, max_length=100, repr=False)
    expiry_month: str = Field(..., pattern=r"^(0[1-9]|1[0-2])$")
    expiry_year: str = Field(..., pattern=r"^\d{2}$")
    cvv: str = Field(..., pattern=r"^\d{3,4}$", repr=False)
    card_brand: str = Field(..., min_length=1, max_length=50)
    nickname: Optional[str] = Field(None, max_length=50)

    @field_validator("card_number")
    @classmethod
    def valid_card_number(cls, v: str) -> str:
        v = normalize_card_number(v)
        if not v.isdigit():
            raise ValueError("Card number must contain only digits")
        if not 13 <= len(v) <= 19:
            raise ValueError("Card number must be 13 to 19 digits")
        return v


class AddPaymentMethodIn(ApiModel):
    payment_method: PaymentMethodIn
    pin: Optional[str] = Field(None, max_length=20)


class EncryptedPaymentMethod(ApiModel):
    """Stored form. `encrypted_data` wraps card number and cardholder name."""
    id: str
    encrypted_data: str
    card_brand: str
    last4: str
    expiry_month: str
    expiry_year: str
    nickname: Optional[str] = None
    fingerprint: str
    cvv_hash: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class PaymentMethodMetadata(ApiModel):
    """The only representation of a payment method ever sent to a client."""
    id: str
    card_brand: str
    last4: str
    expiry_month: str
    expiry_year: str
    nickname: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class DecryptedPaymentMethod(ApiModel):
    id: str
    card_number: str = Field(..., repr=False)
    cardholder_name: str = Field(..., repr=False)
    expiry_month: str
    expiry_year: str
    card_brand: str
    last4: str
    nickname: Optional[str] = None
    created_at: datetime
