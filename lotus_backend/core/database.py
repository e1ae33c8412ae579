# lotus_backend/core/database.py
"""Connection/transaction manager.

A ``Database`` owns one pooled async engine and is passed explicitly to every
service. All balance and ledger mutations go through ``transaction()``, which
commits once on success or rolls back once on any error.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, List, Mapping, Optional, TypeVar, Union

from sqlalchemy import event, exc as sa_exc, text
from sqlalchemy.engine import RowMapping, make_url
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.sql import Executable

from lotus_backend.core.config import DatabaseSettings
from lotus_backend.core.errors import (
    DatabaseConnectionError,
    EngineError,
    InfrastructureError,
    QueryError,
)

logger = logging.getLogger("lotus-rewards.db")

T = TypeVar("T")

_ACQUIRE_ERRORS = (
    sa_exc.OperationalError,
    sa_exc.InterfaceError,
    sa_exc.TimeoutError,
    asyncio.TimeoutError,
    OSError,
)

_CONNECTION_MARKERS = (
    "connect",
    "closed",
    "timed out",
    "timeout",
    "terminat",
    "unable to open",
    "database is locked",
    "gone away",
    "lost connection",
)


class Base(DeclarativeBase):
    pass


def translate_error(error: BaseException) -> InfrastructureError:
    """Map a SQLAlchemy/driver/timeout failure onto the engine taxonomy."""
    if isinstance(error, sa_exc.TimeoutError):
        return DatabaseConnectionError("Timed out waiting for a pooled connection")
    if isinstance(error, sa_exc.DBAPIError):
        detail = str(error.orig) if error.orig is not None else str(error)
        if error.connection_invalidated or isinstance(error, sa_exc.InterfaceError):
            return DatabaseConnectionError(detail)
        # sqlite reports syntax errors as OperationalError too
        if isinstance(error, sa_exc.OperationalError) and any(
            marker in detail.lower() for marker in _CONNECTION_MARKERS
        ):
            return DatabaseConnectionError(detail)
        return QueryError(detail, statement=error.statement)
    if isinstance(error, asyncio.TimeoutError):
        return QueryError("Statement timed out")
    return QueryError(str(error))


def _use_immediate_transactions(engine: AsyncEngine) -> None:
    # pysqlite/aiosqlite defer BEGIN; take the write lock up front instead
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_engine_from_settings(settings: DatabaseSettings) -> AsyncEngine:
    url = make_url(settings.url)
    if url.get_backend_name() == "sqlite":
        engine = create_async_engine(
            settings.url,
            echo=settings.echo,
            connect_args={"check_same_thread": False, "timeout": settings.acquire_timeout},
        )
        _use_immediate_transactions(engine)
        return engine

    return create_async_engine(
        settings.url,
        echo=settings.echo,
        pool_pre_ping=True,
        pool_recycle=3600,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
        pool_timeout=settings.acquire_timeout,
    )


class Database:
    def __init__(self, settings: DatabaseSettings, engine: Optional[AsyncEngine] = None):
        self.settings = settings
        self.engine = engine or create_engine_from_settings(settings)
        self.dialect_name = self.engine.dialect.name

    # ----------------------------
    # Connections
    # ----------------------------
    async def _acquire(self) -> AsyncConnection:
        attempts = max(1, self.settings.connect_retries)
        for attempt in range(1, attempts + 1):
            conn = self.engine.connect()
            try:
                await asyncio.wait_for(conn.start(), timeout=self.settings.acquire_timeout)
                return conn
            except _ACQUIRE_ERRORS as exc:
                left = attempts - attempt
                logger.warning(f"Database connection attempt failed, retries left: {left} ({exc})")
                if left == 0:
                    raise DatabaseConnectionError(
                        f"Could not acquire a database connection after {attempts} attempts"
                    ) from exc
                await asyncio.sleep(self.settings.retry_backoff)
        raise DatabaseConnectionError("Failed to connect after all retries")

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        conn = await self._acquire()
        try:
            async with AsyncSession(bind=conn, expire_on_commit=False) as session:
                yield session
        finally:
            await conn.close()

    # ----------------------------
    # Transactions
    # ----------------------------
    async def transaction(self, fn: Callable[[AsyncSession], Awaitable[T]]) -> T:
        """Run ``fn(session)`` in one transaction: commit on return, roll back on error."""
        async with self.session() as session:
            try:
                result = await asyncio.wait_for(fn(session), timeout=self.settings.statement_timeout)
                await session.commit()
            except Exception as exc:
                await self._rollback(session)
                if isinstance(exc, EngineError):
                    raise
                if isinstance(exc, (sa_exc.SQLAlchemyError, asyncio.TimeoutError)):
                    error = translate_error(exc)
                    logger.error(f"Transaction rolled back: {error.code}: {error.message}")
                    raise error from exc
                raise
            return result

    async def _rollback(self, session: AsyncSession) -> None:
        try:
            await session.rollback()
        except sa_exc.SQLAlchemyError:
            # the connection is discarded by the pool either way
            logger.exception("Rollback failed")

    # ----------------------------
    # Single statements
    # ----------------------------
    async def execute(
        self,
        sql: Union[str, Executable],
        params: Optional[Mapping[str, Any]] = None,
    ) -> List[RowMapping]:
        statement = text(sql) if isinstance(sql, str) else sql

        async def _run(session: AsyncSession) -> List[RowMapping]:
            result = await session.execute(statement, dict(params or {}))
            if not result.returns_rows:
                return []
            return list(result.mappings().all())

        return await self.transaction(_run)

    async def query_one(
        self,
        sql: Union[str, Executable],
        params: Optional[Mapping[str, Any]] = None,
    ) -> Optional[RowMapping]:
        rows = await self.execute(sql, params)
        return rows[0] if rows else None

    # ----------------------------
    # Lifecycle
    # ----------------------------
    async def ping(self) -> bool:
        try:
            row = await self.query_one("SELECT 1 AS ok")
        except InfrastructureError as exc:
            logger.error(f"Database health check failed: {exc.message}")
            return False
        return row is not None and row["ok"] == 1

    async def create_all(self) -> None:
        import lotus_backend.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        import lotus_backend.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        await self.engine.dispose()
