"""
Async PostgreSQL access for the report store and the ATS mirrors.

Each store is an explicitly constructed Database object wrapping an asyncpg
pool. The pools are owned by whoever opens them (the FastAPI lifespan or a job
invocation) and handed to repositories through their constructors; nothing
here is a module-level singleton.

Key Components:
- Database: one asyncpg pool with connect/close and query helpers
- Databases: the report store plus the Symplr and Bullhorn mirrors
- open_databases(): async context manager that connects and closes all three

Usage:
    async with open_databases(get_settings()) as databases:
        rows = await databases.reports.fetch("SELECT * FROM division")

    # Or acquire a connection explicitly
    async with databases.reports.acquire() as conn:
        async with conn.transaction():
            await conn.execute(...)
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, List, Optional

import asyncpg
from asyncpg import Pool

from staffing_metrics.core.config import Settings


class Database:
    """
    A lazily connected asyncpg pool.

    Attributes:
        dsn: PostgreSQL connection string.
        min_size: Minimum idle connections kept in the pool.
        max_size: Maximum connections in the pool.
        command_timeout: Query timeout in seconds.
    """

    def __init__(
        self,
        dsn: str,
        min_size: int = 2,
        max_size: int = 10,
        command_timeout: int = 60,
    ) -> None:
        self.dsn = dsn
        self.min_size = min_size
        self.max_size = max_size
        self.command_timeout = command_timeout
        self._pool: Optional[Pool] = None

    async def connect(self) -> Pool:
        """
        Create the pool if it does not exist yet and return it.

        Raises:
            asyncpg.PostgresError: If connection to the database fails.
            OSError: If the database host is unreachable.
        """
        if self._pool is None:
            self._pool = await asyncpg.create_pool(
                dsn=self.dsn,
                min_size=self.min_size,
                max_size=self.max_size,
                command_timeout=self.command_timeout,
            )
        return self._pool

    async def close(self) -> None:
        """Close the pool gracefully. Calling it twice is a no-op."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    @property
    def pool(self) -> Pool:
        if self._pool is None:
            raise RuntimeError(f"Database pool for {self.dsn!r} is not connected")
        return self._pool

    def acquire(self):
        """Acquire a connection; use as ``async with db.acquire() as conn``."""
        return self.pool.acquire()

    async def fetch(self, query: str, *args: Any) -> List[asyncpg.Record]:
        async with self.acquire() as conn:
            return await conn.fetch(query, *args)

    async def fetchrow(self, query: str, *args: Any) -> Optional[asyncpg.Record]:
        async with self.acquire() as conn:
            return await conn.fetchrow(query, *args)

    async def execute(self, query: str, *args: Any) -> str:
        """
        Execute a command and return the status string, e.g. 'DELETE 3'.
        """
        async with self.acquire() as conn:
            return await conn.execute(query, *args)


def rows_affected(status: str) -> int:
    """
    Parse the row count out of an asyncpg command status string.

    Example:
        >>> rows_affected('DELETE 3')
        3
        >>> rows_affected('INSERT 0 1')
        1
    """
    try:
        return int(status.split()[-1])
    except (AttributeError, IndexError, ValueError):
        return 0


@dataclass
class Databases:
    """The three stores a report computation talks to."""
    reports: Database
    symplr: Database
    bullhorn: Database

    @classmethod
    def from_settings(cls, settings: Settings) -> 'Databases':
        def _make(dsn: str) -> Database:
            return Database(
                dsn,
                min_size=settings.pool_min_size,
                max_size=settings.pool_max_size,
                command_timeout=settings.command_timeout,
            )

        return cls(
            reports=_make(settings.database_url),
            symplr=_make(settings.symplr_dsn),
            bullhorn=_make(settings.bullhorn_dsn),
        )

    async def connect(self) -> None:
        for db in (self.reports, self.symplr, self.bullhorn):
            await db.connect()

    async def close(self) -> None:
        for db in (self.reports, self.symplr, self.bullhorn):
            await db.close()


@asynccontextmanager
async def open_databases(settings: Settings) -> AsyncIterator[Databases]:
    """
    Connect all stores for the duration of one invocation.

    Example:
        async with open_databases(get_settings()) as databases:
            service = build_stack_ranking_service(databases, settings)
            report = await service.calculate_ranking(week_start, week_end)
    """
    databases = Databases.from_settings(settings)
    try:
        await databases.connect()
        yield databases
    finally:
        await databases.close()
