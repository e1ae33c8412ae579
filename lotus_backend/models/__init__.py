from lotus_backend.models.item import Item
from lotus_backend.models.user_item import UserItem
from lotus_backend.models.usage_history import UsageHistory
from lotus_backend.models.activity import Activity, UserActivityRecord
from lotus_backend.models.exchange_rule import ExchangeRule

__all__ = [
    "Item", "UserItem", "UsageHistory",
    "Activity", "UserActivityRecord", "ExchangeRule",
]
