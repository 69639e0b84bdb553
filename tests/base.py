import asyncio
import os
import tempfile
import unittest

from db import database as db_database
from db.repo import Repo
from utils.config import settings


class DbTestCase(unittest.IsolatedAsyncioTestCase):
    """Points the database at a fresh temporary file for every test."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self.temp_dir.name, "test.sqlite")
        db_database.DB_PATH = self.db_path
        db_database._initialized = False
        self.repo = Repo()
        self._secret_key = settings.SECRET_KEY
        settings.SECRET_KEY = "test-secret"

    async def asyncSetUp(self):
        # the init lock must belong to this test's event loop
        db_database._init_lock = asyncio.Lock()
        async with db_database.connect() as conn:
            cur = await conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table';"
            )
            await cur.fetchall()
            await cur.close()

    def tearDown(self):
        settings.SECRET_KEY = self._secret_key
        self.temp_dir.cleanup()

    async def count_rows(self, table: str) -> int:
        async with db_database.connect() as conn:
            cur = await conn.execute(f"SELECT COUNT(*) FROM {table};")
            row = await cur.fetchone()
            await cur.close()
        return row[0]

    async def make_user(
        self, name="Alice", email="alice@example.com", role="GUEST", is_active=True
    ):
        return await self.repo.users.create_user(
            name=name,
            email=email,
            password="not-a-real-hash",
            phone="",
            role=role,
            is_active=is_active,
        )

    async def make_product(
        self, owner_id, title="Keyboard", price=10.0, quantity=5, is_active=True
    ):
        return await self.repo.products.create_product(
            title=title,
            description="",
            price=price,
            quantity=quantity,
            is_active=is_active,
            user_id=owner_id,
        )
