# lotus_backend/core/config.py
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# ================== ENV ==================

ROOT_DIR = Path(__file__).resolve().parents[2]
load_dotenv(ROOT_DIR / ".env")


def env(*names: str, default: Optional[str] = None) -> str:
    for n in names:
        v = os.environ.get(n)
        if v is not None and str(v).strip() != "":
            return v
    if default is not None:
        return default
    raise KeyError(f"Missing required env var. Tried: {', '.join(names)}")


def env_flag(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes"}


# ================== JWT ==================

JWT_SECRET = os.environ.get("JWT_SECRET", "default_secret_key")
JWT_ALGORITHM = os.environ.get("JWT_ALGORITHM", "HS256")

# ================== CHECK-IN ==================

CHECKIN_ACTIVITY_TYPE = "checkin"
CHECKIN_ACTIVITY_NAME = env("CHECKIN_ACTIVITY_NAME", default="每日签到")
CHECKIN_REWARD_ITEM_NAME = env("CHECKIN_REWARD_ITEM_NAME", default="莲子")
CHECKIN_REWARD_QUANTITY = int(env("CHECKIN_REWARD_QUANTITY", default="5"))
# Empty means "use the database server's CURRENT_DATE"
CHECKIN_TIMEZONE = os.environ.get("CHECKIN_TIMEZONE", "").strip() or None

# ================== DATABASE ==================

def get_database_url() -> str:
    """Get database URL - DATABASE_URL, then MySQL vars, then a local SQLite file."""
    url = os.environ.get("DATABASE_URL", "").strip()
    if url:
        return url

    mysql_host = os.environ.get("MYSQL_HOST")
    if mysql_host:
        mysql_port = int(os.environ.get("MYSQL_PORT", "3306"))
        mysql_user = os.environ.get("MYSQL_USER", "root")
        mysql_password = os.environ.get("MYSQL_PASSWORD", "")
        mysql_db = os.environ.get("MYSQL_DB", "lotus")
        return f"mysql+aiomysql://{mysql_user}:{mysql_password}@{mysql_host}:{mysql_port}/{mysql_db}?charset=utf8mb4"

    db_path = ROOT_DIR / "lotus.db"
    return f"sqlite+aiosqlite:///{db_path}"


@dataclass(frozen=True)
class DatabaseSettings:
    url: str
    pool_size: int = 10
    max_overflow: int = 0
    acquire_timeout: float = 10.0
    statement_timeout: float = 30.0
    connect_retries: int = 3
    retry_backoff: float = 1.0
    echo: bool = False

    @classmethod
    def from_env(cls) -> "DatabaseSettings":
        return cls(
            url=get_database_url(),
            pool_size=int(env("DATABASE_POOL_SIZE", default="10")),
            max_overflow=int(env("DATABASE_MAX_OVERFLOW", default="0")),
            acquire_timeout=float(env("DATABASE_ACQUIRE_TIMEOUT", default="10")),
            statement_timeout=float(env("DATABASE_STATEMENT_TIMEOUT", default="30")),
            connect_retries=int(env("DATABASE_CONNECT_RETRIES", default="3")),
            retry_backoff=float(env("DATABASE_RETRY_BACKOFF", default="1.0")),
            echo=env_flag("DATABASE_ECHO"),
        )
