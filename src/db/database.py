# manages connection to db and transactions, helper methods internal to db package
import asyncio
import os.path
from contextlib import asynccontextmanager
from datetime import datetime
from sqlite3 import Row
from typing import AsyncIterator, Awaitable, Callable, TypeVar

import aiosqlite

from utils.config import settings
from utils.logger import get_logger

_logger = get_logger(__name__)

T = TypeVar("T")

DB_PATH = settings.DB_PATH
DB_INIT_SCRIPTS = [
    os.path.join(os.path.dirname(__file__), "schema.sql"),
]

_initialized = False
_init_lock = asyncio.Lock()


def timestamp(when: datetime | None = None) -> str:
    """Format a datetime the way every *_at / *_date column stores it."""
    return (when or datetime.now()).isoformat(sep=" ")


async def _init_db(conn: aiosqlite.Connection) -> None:
    for script in DB_INIT_SCRIPTS:
        if not os.path.exists(script) or os.path.getsize(script) == 0:
            continue
        _logger.info(f"Initializing database with script {script}...")
        with open(script, "r") as f:
            await conn.executescript(f.read())
    await conn.commit()


async def _table_exists(conn: aiosqlite.Connection, table_name: str) -> bool:
    cur = await conn.execute(
        """
        SELECT name
        FROM sqlite_master
        WHERE type = 'table'
          AND name = ?;
        """,
        (table_name,),
    )
    row = await cur.fetchone()
    await cur.close()
    return row is not None


@asynccontextmanager
async def connect() -> AsyncIterator[aiosqlite.Connection]:
    """Async context manager yielding an aiosqlite connection with FK enabled.

    Ensures the schema exists on first use.
    """
    global _initialized
    db_dir = os.path.dirname(DB_PATH)
    if db_dir:
        os.makedirs(db_dir, exist_ok=True)
    conn = await aiosqlite.connect(DB_PATH)
    conn.row_factory = Row
    await conn.execute("PRAGMA foreign_keys = ON;")

    if not _initialized:
        async with _init_lock:
            if not _initialized:
                exists = await _table_exists(conn, "order_items")
                if not exists:
                    _logger.info("Initializing database...")
                    await _init_db(conn)
                _initialized = True
    try:
        yield conn
    finally:
        await conn.close()


async def _rollback(conn: aiosqlite.Connection) -> None:
    try:
        await conn.rollback()
    except Exception as rollback_err:
        # the triggering error is re-raised by the caller
        _logger.error(f"Rollback failed: {rollback_err!r}")


@asynccontextmanager
async def transaction() -> AsyncIterator[aiosqlite.Connection]:
    """Open a connection and run the block inside one transaction.

    Commits when the block exits cleanly. Any exception, cancellation
    included, rolls the transaction back and propagates unchanged.
    """
    async with connect() as conn:
        await conn.execute("BEGIN;")
        try:
            yield conn
        except BaseException:
            await _rollback(conn)
            raise
        await conn.commit()


async def run_in_transaction(fn: Callable[[aiosqlite.Connection], Awaitable[T]]) -> T:
    """Run a unit of work inside a single transaction and return its result."""
    async with transaction() as conn:
        return await fn(conn)
