"""Database connection management"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional
import psycopg
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool, PoolTimeout
from gymtrainer.config import DATABASE_URL, DB_POOL_MIN_SIZE, DB_POOL_MAX_SIZE
from gymtrainer.exceptions import ConnectionError

logger = logging.getLogger(__name__)

APPLICATION_NAME = "gym-trainer-gamification"


class Database:
    """
    Async connection pool for the points engine

    Connections hand out rows as dicts so they map straight onto the
    pydantic models. Every gamification write holds one pooled connection
    for the length of its transaction.
    """

    def __init__(
        self,
        connection_string: str = DATABASE_URL,
        min_size: int = DB_POOL_MIN_SIZE,
        max_size: int = DB_POOL_MAX_SIZE
    ):
        self.connection_string = connection_string
        self.min_size = min_size
        self.max_size = max_size
        self._pool: Optional[AsyncConnectionPool] = None

    @property
    def is_ready(self) -> bool:
        return self._pool is not None

    async def init_pool(self) -> None:
        """Open the pool (no-op when already open)"""
        if self._pool is not None:
            return

        logger.info(f"Initializing database connection pool ({self.min_size}-{self.max_size} connections)")
        pool = AsyncConnectionPool(
            self.connection_string,
            min_size=self.min_size,
            max_size=self.max_size,
            kwargs={"row_factory": dict_row, "application_name": APPLICATION_NAME},
            open=False
        )
        await pool.open()
        self._pool = pool

    async def close_pool(self) -> None:
        """Close connection pool"""
        if self._pool:
            logger.info("Closing database connection pool")
            await self._pool.close()
            self._pool = None

    @asynccontextmanager
    async def connection(self) -> AsyncGenerator[psycopg.AsyncConnection, None]:
        """
        Borrow a connection from the pool

        Raises:
            ConnectionError: pool not opened, or no connection freed up in time
        """
        if self._pool is None:
            raise ConnectionError("Database pool not initialized", operation="connection")

        try:
            async with self._pool.connection() as conn:
                yield conn
        except PoolTimeout as e:
            raise ConnectionError(
                f"No database connection available from a pool of {self.max_size}",
                operation="connection",
                cause=e
            ) from e


# Global database instance
db = Database()
