from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import Field, condecimal, model_validator

from swish.schemas.common import ApiModel, Money, UserBrief

PositiveDecimal = condecimal(gt=0, max_digits=10, decimal_places=2)


class CardCreate(ApiModel):
    name: str = Field(..., min_length=1, max_length=200)
    player: str = Field(..., min_length=1, max_length=100)
    team: str = Field(..., min_length=1, max_length=100)
    year: int = Field(..., ge=1800, le=2100)
    brand: str = Field(..., min_length=1, max_length=100)
    card_number: Optional[str] = Field(None, max_length=50)
    condition: str = Field(..., min_length=1, max_length=50)
    rarity: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = Field(None, max_length=2000)
    image_url: Optional[str] = Field(None, max_length=500)
    is_for_trade: bool = False
    is_for_sale: bool = False
    price: Optional[PositiveDecimal] = None

    @model_validator(mode="after")
    def price_matches_sale_state(self):
        if self.is_for_sale and self.price is None:
            raise ValueError("A card listed for sale needs a positive price")
        if not self.is_for_sale and self.price is not None:
            raise ValueError("A card that is not for sale cannot have a price")
        return self


class CardOut(ApiModel):
    """Card as shown to clients."""
    id: int
    name: str
    player: str
    team: str
    year: int
    brand: str
    card_number: Optional[str] = None
    condition: str
    rarity: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    is_for_trade: bool
    is_for_sale: bool
    price: Optional[Money] = None
    owner_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CardWithOwnerOut(CardOut):
    owner: UserBrief


CardAction = Literal["list-for-sale", "remove-from-sale", "update-price", "list-for-trade", "remove-from-trade"]


class CardOperationIn(ApiModel):
    action: CardAction
    price: Optional[Decimal] = Field(None, max_digits=10, decimal_places=2)
