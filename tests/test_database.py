import asyncio
import sqlite3
import unittest
from unittest import mock

from db import database as db_database
from tests.base import DbTestCase


class TransactionTestCase(DbTestCase):
    async def test_commit_on_success(self):
        async def work(conn):
            cur = await conn.execute(
                "INSERT INTO users(name, email, password) VALUES (?, ?, ?);",
                ("Bob", "bob@example.com", "x"),
            )
            uid = cur.lastrowid
            await cur.close()
            return uid

        uid = await db_database.run_in_transaction(work)
        self.assertIsInstance(uid, int)
        self.assertEqual(await self.count_rows("users"), 1)

    async def test_rollback_on_error_and_error_propagates(self):
        async def work(conn):
            await conn.execute(
                "INSERT INTO users(name, email, password) VALUES (?, ?, ?);",
                ("Bob", "bob@example.com", "x"),
            )
            raise RuntimeError("boom")

        with self.assertRaisesRegex(RuntimeError, "boom"):
            await db_database.run_in_transaction(work)
        self.assertEqual(await self.count_rows("users"), 0)

    async def test_cancelled_work_is_rolled_back(self):
        inserted = asyncio.Event()

        async def work(conn):
            await conn.execute(
                "INSERT INTO users(name, email, password) VALUES (?, ?, ?);",
                ("Bob", "bob@example.com", "x"),
            )
            inserted.set()
            await asyncio.sleep(10)

        task = asyncio.create_task(db_database.run_in_transaction(work))
        await inserted.wait()
        task.cancel()
        with self.assertRaises(asyncio.CancelledError):
            await task
        self.assertEqual(await self.count_rows("users"), 0)

    async def test_foreign_keys_are_enforced(self):
        async def work(conn):
            await conn.execute(
                "INSERT INTO products(title, price, quantity, user_id) VALUES (?, ?, ?, ?);",
                ("Ghost", 1.0, 1, 424242),
            )

        with self.assertRaises(sqlite3.IntegrityError):
            await db_database.run_in_transaction(work)
        self.assertEqual(await self.count_rows("products"), 0)

    async def test_rollback_failure_is_logged_and_original_error_kept(self):
        async def failing_rollback(conn):
            raise RuntimeError("rollback broke")

        async def work(conn):
            raise ValueError("original")

        with mock.patch.object(
            db_database.aiosqlite.Connection, "rollback", failing_rollback
        ):
            with self.assertLogs("db.database", level="ERROR") as logs:
                with self.assertRaisesRegex(ValueError, "original"):
                    await db_database.run_in_transaction(work)
        self.assertTrue(any("Rollback failed" in line for line in logs.output))

    async def test_schema_initialized_once(self):
        async with db_database.connect() as conn:
            cur = await conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name;"
            )
            names = [r[0] for r in await cur.fetchall()]
            await cur.close()
        for table in ("order_items", "orders", "products", "users"):
            self.assertIn(table, names)

    def test_timestamp_format(self):
        ts = db_database.timestamp()
        self.assertEqual(ts[10], " ")


if __name__ == "__main__":
    unittest.main()
