from datetime import datetime
from typing import Optional

from pydantic import Field

from swish.schemas.common import ApiModel


class CollectionCreate(ApiModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    is_public: bool = True


class CollectionOut(ApiModel):
    id: int
    user_id: int
    name: str
    description: Optional[str] = None
    is_public: bool
    created_at: Optional[datetime] = None
