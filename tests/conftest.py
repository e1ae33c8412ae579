from datetime import date

import jwt
import pytest

from lotus_backend.core.config import DatabaseSettings, JWT_ALGORITHM
from lotus_backend.core.database import Database
from lotus_backend.services.engine import RewardsEngine

TEST_SECRET = "test-secret"


class Clock:
    """Mutable 'today' so tests can roll the calendar forward."""

    def __init__(self, today: date):
        self.today = today

    def __call__(self) -> date:
        return self.today


@pytest.fixture
def clock():
    return Clock(date(2024, 3, 1))


@pytest.fixture
async def db(tmp_path):
    settings = DatabaseSettings(
        url=f"sqlite+aiosqlite:///{tmp_path / 'lotus-test.db'}",
        retry_backoff=0.01,
    )
    database = Database(settings)
    await database.create_all()
    yield database
    await database.dispose()


@pytest.fixture
async def engine(db, clock):
    return RewardsEngine(db, today=clock)


@pytest.fixture
async def seeded(engine):
    """Default catalog: 莲子 (currency), 20分钟电视券 (usable) and the 10 -> 1 rule."""
    await engine.seed.bootstrap(create_tables=False)
    lotus = await engine.catalog.find_by_name("莲子")
    ticket = await engine.catalog.find_by_name("20分钟电视券")
    rules = await engine.exchange.list_all()
    return {"lotus": lotus, "ticket": ticket, "rule": rules[0]}


def make_token(user_id: str, role: str = "user", secret: str = TEST_SECRET) -> str:
    return jwt.encode({"user_id": user_id, "role": role}, secret, algorithm=JWT_ALGORITHM)
