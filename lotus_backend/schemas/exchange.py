# lotus_backend/schemas/exchange.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from lotus_backend.schemas.items import ItemOut


class ExchangeRuleCreate(BaseModel):
    from_item_id: str = Field(..., min_length=1)
    to_item_id: str = Field(..., min_length=1)
    from_quantity: int = Field(..., gt=0)
    to_quantity: int = Field(..., gt=0)
    is_active: bool = True

    @model_validator(mode="after")
    def _distinct_items(self):
        if self.from_item_id == self.to_item_id:
            raise ValueError("from_item_id and to_item_id must differ")
        return self


class ExchangeRuleUpdate(BaseModel):
    from_quantity: Optional[int] = Field(None, gt=0)
    to_quantity: Optional[int] = Field(None, gt=0)
    is_active: Optional[bool] = None

    def changes(self) -> dict:
        return self.model_dump(exclude_none=True)


class ExchangeRuleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    from_item_id: str
    to_item_id: str
    from_quantity: int
    to_quantity: int
    is_active: bool
    created_at: datetime
    from_item: ItemOut
    to_item: ItemOut


class ExchangeRequest(BaseModel):
    rule_id: str = Field(..., min_length=1)
    quantity: int = Field(1, ge=1, description="How many times the rule is applied")


class ExchangeOutcome(BaseModel):
    rule_id: str
    repetitions: int
    from_item_id: str
    to_item_id: str
    spent: int
    received: int
    # Balances after the exchange
    from_item: int
    to_item: int
