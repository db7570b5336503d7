from datetime import datetime
from typing import Optional

from pydantic import Field, model_validator

from swish.db.models.user_model import UserRole
from swish.schemas.common import ApiModel, ShippingAddress


class UserOut(ApiModel):
    id: int
    email: str
    full_name: str
    role: UserRole
    is_active: bool
    has_security_pin: bool = False
    shipping_address: Optional[ShippingAddress] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_user(cls, user) -> "UserOut":
        return cls(
            id=user.id,
            email=user.email,
            full_name=user.full_name,
            role=user.role,
            is_active=user.is_active,
            has_security_pin=bool(user.security_pin),
            shipping_address=user.shipping_address,
            created_at=user.created_at,
        )


class SetSecurityPinIn(ApiModel):
    pin: str = Field(..., pattern=r"^\d{6}$")
    confirm_pin: str = Field(..., min_length=6, max_length=6)
    # required when a PIN is already configured
    current_pin: Optional[str] = Field(None, max_length=20)

    @model_validator(mode="after")
    def pins_match(self):
        if self.pin != self.confirm_pin:
            raise ValueError("PINs don't match")
        return self


class ShippingAddressUpdate(ApiModel):
    shipping_address: Optional[ShippingAddress] = None
    pin: Optional[str] = Field(None, max_length=20)
