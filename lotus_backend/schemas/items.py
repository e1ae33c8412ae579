# lotus_backend/schemas/items.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    icon_url: Optional[str] = None
    is_usable: bool = False

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name cannot be blank")
        return value


class ItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    name: str
    description: Optional[str] = None
    icon_url: Optional[str] = None
    is_usable: bool
    created_at: datetime


class UserItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    user_id: str
    item_id: str
    quantity: int
    updated_at: datetime
    item: ItemOut


class UsageEntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    user_id: str
    item_id: str
    quantity_used: int
    used_at: datetime
    item: ItemOut


class UsageHistoryPage(BaseModel):
    entries: List[UsageEntryOut]
    total: int
    limit: int
    offset: int


class UseItemRequest(BaseModel):
    item_id: str = Field(..., min_length=1)
    quantity: int = Field(1, ge=1)


class UseItemOutcome(BaseModel):
    item_id: str
    item_name: str
    quantity_used: int
    remaining: int
