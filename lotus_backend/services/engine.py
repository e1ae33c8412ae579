# FILE: lotus_backend/services/engine.py
from datetime import date
from typing import Callable, Optional

from lotus_backend.core.config import DatabaseSettings
from lotus_backend.core.database import Database
from lotus_backend.services.activity_service import ActivityService
from lotus_backend.services.balance_service import BalanceLedger
from lotus_backend.services.catalog_service import ItemCatalog
from lotus_backend.services.checkin_service import CheckinEngine
from lotus_backend.services.exchange_service import ExchangeEngine
from lotus_backend.services.seed_service import SeedService
from lotus_backend.services.usage_service import UsageLedger


class RewardsEngine:
    """Wires every store around one injected Database."""

    def __init__(self, db: Database, today: Optional[Callable[[], date]] = None):
        self.db = db
        self.catalog = ItemCatalog(db)
        self.balance = BalanceLedger(db, self.catalog)
        self.usage = UsageLedger(db, self.catalog, self.balance)
        self.checkin = CheckinEngine(db, self.catalog, self.balance, today=today)
        self.exchange = ExchangeEngine(db, self.catalog, self.balance)
        self.activities = ActivityService(db)
        self.seed = SeedService(db, self.catalog)

    @classmethod
    def from_settings(cls, settings: Optional[DatabaseSettings] = None, **kwargs) -> "RewardsEngine":
        return cls(Database(settings or DatabaseSettings.from_env()), **kwargs)

    async def close(self) -> None:
        await self.db.dispose()
