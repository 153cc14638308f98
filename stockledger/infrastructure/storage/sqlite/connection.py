"""
Async SQLite connection pool with aiosqlite.

Provides connection management with proper async context handling.
Ledger writes go through ``write_transaction``, which takes SQLite's
write lock up front with ``BEGIN IMMEDIATE`` so that the read-check-write
sequence inside it cannot interleave with another writer.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from stockledger.config import get_logger, get_settings
from stockledger.core.exceptions import (
    ConcurrencyConflictError,
    DatabaseError,
    StockLedgerError,
)

logger = get_logger(__name__)


def is_lock_error(error: Exception) -> bool:
    """True for SQLite busy/locked errors raised after busy_timeout expires."""
    message = str(error).lower()
    return "database is locked" in message or "database is busy" in message


def storage_error(operation: str, error: aiosqlite.OperationalError) -> StockLedgerError:
    """Translate an SQLite operational error into a domain error."""
    if is_lock_error(error):
        return ConcurrencyConflictError(operation, str(error))
    return DatabaseError(operation, str(error))


class ConnectionPool:
    """
    Fixed-size pool of aiosqlite connections shared by the ledger and sync
    stores. Every connection runs in WAL mode with the configured
    busy_timeout, so a blocked writer waits before reporting a lock error.
    """

    def __init__(
        self,
        db_path: Path,
        pool_size: int = 5,
        busy_timeout: int = 30000,
    ):
        self.db_path = db_path
        self.pool_size = pool_size
        self.busy_timeout = busy_timeout

        self._pool: asyncio.Queue[aiosqlite.Connection] = asyncio.Queue(maxsize=pool_size)
        self._connections: list[aiosqlite.Connection] = []
        self._initialized = False
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Initialize the connection pool."""
        async with self._lock:
            if self._initialized:
                return

            self.db_path.parent.mkdir(parents=True, exist_ok=True)

            for _ in range(self.pool_size):
                conn = await self._create_connection()
                self._connections.append(conn)
                await self._pool.put(conn)

            self._initialized = True
            logger.info(
                "connection_pool_initialized",
                db_path=str(self.db_path),
                pool_size=self.pool_size,
            )

    async def _create_connection(self) -> aiosqlite.Connection:
        """Create a new database connection with optimized settings."""
        conn = await aiosqlite.connect(self.db_path)

        # WAL lets readers proceed while a writer holds the lock
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute("PRAGMA synchronous=NORMAL")
        await conn.execute(f"PRAGMA busy_timeout={self.busy_timeout}")
        await conn.execute("PRAGMA foreign_keys=ON")

        conn.row_factory = aiosqlite.Row
        return conn

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Acquire a connection from the pool.

        Usage:
            async with pool.acquire() as conn:
                await conn.execute(...)
        """
        if not self._initialized:
            await self.initialize()

        conn = await self._pool.get()
        try:
            yield conn
        finally:
            await self._pool.put(conn)

    @asynccontextmanager
    async def transaction(
        self, operation: str = "transaction"
    ) -> AsyncIterator[aiosqlite.Connection]:
        """
        Acquire a connection for a deferred transaction.

        Used for single-statement writes that need no read-check-write.
        Commits on success, rolls back on exception. SQLite operational
        errors surface as ConcurrencyConflictError (lock contention) or
        DatabaseError.
        """
        async with self.acquire() as conn:
            try:
                yield conn
                await conn.commit()
            except aiosqlite.OperationalError as e:
                await conn.rollback()
                raise storage_error(operation, e) from e
            except Exception:
                await conn.rollback()
                raise

    @asynccontextmanager
    async def write_transaction(
        self, operation: str = "write"
    ) -> AsyncIterator[aiosqlite.Connection]:
        """
        Acquire a connection holding the database write lock.

        Lock contention that outlasts busy_timeout is raised as
        ConcurrencyConflictError so callers can retry; other operational
        errors as DatabaseError.
        """
        async with self.acquire() as conn:
            try:
                await conn.execute("BEGIN IMMEDIATE")
            except aiosqlite.OperationalError as e:
                raise storage_error(operation, e) from e

            try:
                yield conn
                await conn.commit()
            except aiosqlite.OperationalError as e:
                await conn.rollback()
                raise storage_error(operation, e) from e
            except BaseException:
                await conn.rollback()
                raise

    async def close(self) -> None:
        """Close all connections in the pool."""
        async with self._lock:
            for conn in self._connections:
                await conn.close()
            self._connections.clear()
            self._pool = asyncio.Queue(maxsize=self.pool_size)
            self._initialized = False
            logger.info("connection_pool_closed")


# Global connection pool
_pool: ConnectionPool | None = None


async def get_pool() -> ConnectionPool:
    """Get or create the global connection pool."""
    global _pool
    if _pool is None:
        settings = get_settings()
        _pool = ConnectionPool(
            db_path=settings.storage.db_path,
            pool_size=settings.storage.pool_size,
            busy_timeout=settings.storage.busy_timeout,
        )
        await _pool.initialize()
    return _pool


async def close_pool() -> None:
    """Close the global connection pool."""
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None
