# =========================================================
# FILE: /lotus_backend/schemas/activities.py
# =========================================================

from datetime import date, datetime
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator

from lotus_backend.core.config import CHECKIN_REWARD_ITEM_NAME, CHECKIN_REWARD_QUANTITY


class CheckinConfig(BaseModel):
    type: Literal["checkin"] = "checkin"
    reward_item_id: Optional[str] = None
    reward_item_name: str = Field(CHECKIN_REWARD_ITEM_NAME, min_length=1)
    reward_quantity: int = Field(CHECKIN_REWARD_QUANTITY, gt=0)

    @model_validator(mode="before")
    @classmethod
    def _accept_legacy_reward(cls, data: Any) -> Any:
        # {"reward": {"itemName": "莲子", "quantity": 5}}
        if not isinstance(data, dict) or not isinstance(data.get("reward"), dict):
            return data
        reward = data["reward"]
        normalized = {k: v for k, v in data.items() if k != "reward"}
        if reward.get("itemId"):
            normalized.setdefault("reward_item_id", reward["itemId"])
        if reward.get("itemName"):
            normalized.setdefault("reward_item_name", reward["itemName"])
        if reward.get("quantity") is not None:
            normalized.setdefault("reward_quantity", reward["quantity"])
        return normalized


class ExchangeActivityConfig(BaseModel):
    type: Literal["exchange"] = "exchange"
    from_item_id: str = Field(..., min_length=1)
    to_item_id: str = Field(..., min_length=1)
    from_quantity: int = Field(..., gt=0)
    to_quantity: int = Field(..., gt=0)


ActivityConfig = Annotated[
    Union[CheckinConfig, ExchangeActivityConfig],
    Field(discriminator="type"),
]

_config_adapter = TypeAdapter(ActivityConfig)


def parse_activity_config(activity_type: str, raw: Optional[Dict[str, Any]]) -> Union[CheckinConfig, ExchangeActivityConfig]:
    """Validate a stored/incoming config blob against its activity type."""
    data = dict(raw or {})
    data.setdefault("type", activity_type)
    if data["type"] != activity_type:
        raise ValueError(f"config type {data['type']!r} does not match activity type {activity_type!r}")
    return _config_adapter.validate_python(data)


class ActivityCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: Literal["checkin", "exchange"]
    config: Dict[str, Any] = Field(default_factory=dict)
    is_active: bool = True

    @model_validator(mode="after")
    def _validate_config(self):
        self.config = parse_activity_config(self.type, self.config).model_dump()
        return self


class ActivityUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    config: Optional[Dict[str, Any]] = None
    is_active: Optional[bool] = None

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ActivityOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    name: str
    type: str
    config: Optional[Dict[str, Any]] = None
    is_active: bool
    created_at: datetime


class CheckinStatus(BaseModel):
    can_check_in: bool
    has_checked_in_today: bool
    last_check_in: Optional[datetime] = None


class CheckinReward(BaseModel):
    activity_id: str
    item_id: str
    item_name: str
    quantity: int
    # User's balance of the reward item after the check-in
    total_quantity: int
    record_date: date
    checked_in_at: datetime
