import sqlite3
import unittest
from datetime import datetime, timedelta

from db import models
from db.orders import OrderFilter
from db.products import ProductFilter
from db.query import InvalidSortError, Pagination, SortField
from db.users import UserFilter
from tests.base import DbTestCase


class UserRepoTestCase(DbTestCase):
    async def test_create_get_and_exists(self):
        user = await self.make_user()
        self.assertTrue(await self.repo.users.exists_user_by_id(user.id))
        self.assertTrue(await self.repo.users.exists_user_by_email("alice@example.com"))
        self.assertFalse(await self.repo.users.exists_user_by_id(424242))

        got = await self.repo.users.get_user(user.id)
        self.assertEqual(got.email, "alice@example.com")
        self.assertEqual(got.role, "GUEST")
        self.assertIsNone(await self.repo.users.get_user(424242))
        self.assertIsNone(await self.repo.users.get_user_by_email("nobody@example.com"))

    async def test_duplicate_email_rejected(self):
        await self.make_user()
        with self.assertRaises(sqlite3.IntegrityError):
            await self.make_user(name="Other")

    async def test_filters_and_inactive_flag(self):
        await self.make_user("Alice", "alice@example.com")
        await self.make_user("Alan", "alan@example.com", role="ADMIN")
        await self.make_user("Bob", "bob@example.com", is_active=False)

        users, total = await self.repo.users.get_users(UserFilter(name="al"))
        self.assertEqual(total, 2)
        self.assertEqual({u.name for u in users}, {"Alice", "Alan"})

        users, total = await self.repo.users.get_users(UserFilter(is_active=False))
        self.assertEqual(total, 1)
        self.assertEqual(users[0].name, "Bob")

        _, total = await self.repo.users.get_users(UserFilter(role="ADMIN"))
        self.assertEqual(total, 1)

        users, _ = await self.repo.users.get_users(
            UserFilter(), sort=[SortField("name", "asc")]
        )
        self.assertEqual([u.name for u in users], ["Alan", "Alice", "Bob"])

    async def test_update_delete_and_statistics(self):
        user = await self.make_user()
        await self.make_user("Bob", "bob@example.com", is_active=False)

        changed = models.User(
            id=user.id,
            name="Alice B",
            email=user.email,
            password=user.password,
            phone="123",
            role="ADMIN",
            is_active=True,
        )
        self.assertEqual(await self.repo.users.update_user(changed), 1)
        self.assertEqual((await self.repo.users.get_user(user.id)).role, "ADMIN")

        stats = await self.repo.users.get_statistics()
        self.assertEqual((stats.total, stats.total_inactive), (2, 1))

        self.assertEqual(await self.repo.users.delete_user(user.id), 1)
        self.assertEqual(await self.repo.users.delete_user(user.id), 0)

    async def test_delete_referenced_user_fails(self):
        user = await self.make_user()
        await self.make_product(user.id)
        with self.assertRaises(sqlite3.IntegrityError):
            await self.repo.users.delete_user(user.id)


class ProductRepoTestCase(DbTestCase):
    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.owner = await self.make_user()
        for title, price, qty, active in [
            ("Keyboard", 30.0, 5, True),
            ("Mouse", 10.0, 50, True),
            ("Monitor", 200.0, 2, False),
        ]:
            await self.make_product(self.owner.id, title, price, qty, active)

    async def test_products_joined_with_creator(self):
        products, total = await self.repo.products.get_products(ProductFilter())
        self.assertEqual(total, 3)
        self.assertTrue(all(p.user.name == "Alice" for p in products))
        self.assertTrue(all(p.user.email == "alice@example.com" for p in products))

    async def test_price_range_and_title(self):
        products, total = await self.repo.products.get_products(
            ProductFilter(min_price=20)
        )
        self.assertEqual(total, 2)
        self.assertEqual({p.title for p in products}, {"Keyboard", "Monitor"})

        _, total = await self.repo.products.get_products(
            ProductFilter(min_price=5, max_price=50)
        )
        self.assertEqual(total, 2)

        products, _ = await self.repo.products.get_products(ProductFilter(title="mo"))
        self.assertEqual({p.title for p in products}, {"Mouse", "Monitor"})

        _, total = await self.repo.products.get_products(ProductFilter(is_active=True))
        self.assertEqual(total, 2)

    async def test_zero_valued_filter_is_the_same_as_none(self):
        unfiltered = await self.repo.products.get_products(ProductFilter())
        zeroed = await self.repo.products.get_products(
            ProductFilter(id=0, title="", min_price=0, max_price=0, user_id=0)
        )
        self.assertEqual(
            [p.id for p in unfiltered[0]], [p.id for p in zeroed[0]]
        )
        self.assertEqual(unfiltered[1], zeroed[1])

    async def test_sorting(self):
        products, _ = await self.repo.products.get_products(
            ProductFilter(), sort=[SortField("price", "desc")]
        )
        self.assertEqual([p.title for p in products], ["Monitor", "Keyboard", "Mouse"])

        with self.assertRaises(InvalidSortError):
            await self.repo.products.get_products(
                ProductFilter(), sort=[SortField("unknown")]
            )

    async def test_empty_page_still_reports_total(self):
        products, total = await self.repo.products.get_products(
            ProductFilter(), pagination=Pagination(page=100, limit=10)
        )
        self.assertEqual(products, [])
        self.assertEqual(total, 3)

    async def test_default_pagination_matches_first_page_of_twenty(self):
        for i in range(22):
            await self.make_product(self.owner.id, f"Cable {i}", 1.0 + i, 1)
        implicit = await self.repo.products.get_products(ProductFilter())
        explicit = await self.repo.products.get_products(
            ProductFilter(), pagination=Pagination(page=1, limit=20)
        )
        self.assertEqual(len(implicit[0]), 20)
        self.assertEqual(implicit[1], 25)
        self.assertEqual([p.id for p in implicit[0]], [p.id for p in explicit[0]])

    async def test_update_delete_and_statistics(self):
        product = await self.make_product(self.owner.id, "Speaker", 40.0, 3)
        updated = models.Product(
            id=product.id,
            title="Speaker XL",
            description="louder",
            price=45.0,
            quantity=4,
            is_active=False,
            user_id=self.owner.id,
        )
        self.assertEqual(await self.repo.products.update_product(updated), 1)
        got = await self.repo.products.get_product(product.id)
        self.assertEqual((got.title, got.price, got.is_active), ("Speaker XL", 45.0, False))

        stats = await self.repo.products.get_statistics()
        self.assertEqual((stats.total, stats.total_inactive), (4, 2))

        self.assertEqual(await self.repo.products.delete_product(product.id), 1)
        self.assertFalse(await self.repo.products.exists_product_by_id(product.id))
        self.assertIsNone(await self.repo.products.get_product(product.id))

    async def test_insert_all_in_transaction(self):
        rows = [
            models.Product(0, "A", "", 1.0, 1, True, self.owner.id),
            models.Product(0, "B", "", 2.0, 2, True, self.owner.id),
        ]

        async def work(conn):
            await self.repo.products.insert_all(conn, rows)

        await self.repo.tx(work)
        self.assertEqual(await self.count_rows("products"), 5)


class OrderRepoTestCase(DbTestCase):
    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.alice = await self.make_user()
        self.bob = await self.make_user("Bob", "bob@example.com")
        self.keyboard = await self.make_product(self.alice.id, "Keyboard", 30.0, 5)
        self.mouse = await self.make_product(self.alice.id, "Mouse", 10.0, 50)

    async def add_order(self, user_id, status="NEW", lines=(), when=None, number=None):
        order = models.Order(
            id=0,
            order_number=number or f"ORD-{user_id}-{status}-{when or datetime.now()}",
            order_date=when or datetime.now(),
            status=status,
            note="",
            user_id=user_id,
        )

        async def work(conn):
            created = await self.repo.orders.create_order(conn, order)
            for product, qty, discount in lines:
                await self.repo.orders.create_item(
                    conn,
                    models.OrderItem(
                        id=0,
                        order_id=created.id,
                        product_id=product.id,
                        product_price=product.price,
                        product_name=product.title,
                        quantity=qty,
                        discount=discount,
                        note="",
                    ),
                )
            return created

        return await self.repo.tx(work)

    async def test_orders_carry_their_items(self):
        created = await self.add_order(
            self.alice.id, lines=[(self.keyboard, 1, 0.0), (self.mouse, 2, 0.5)]
        )
        self.assertGreater(created.id, 0)

        orders, total = await self.repo.orders.get_orders(OrderFilter(id=created.id))
        self.assertEqual(total, 1)
        self.assertEqual(len(orders[0].items), 2)
        self.assertEqual(orders[0].items[0].product_name, "Keyboard")
        self.assertAlmostEqual(orders[0].total, 30.0 + 10.0)

    async def test_filter_by_status_and_user(self):
        base = datetime(2024, 1, 1, 12, 0, 0)
        await self.add_order(self.bob.id, "NEW", when=base)
        await self.add_order(self.bob.id, "NEW", when=base + timedelta(hours=1))
        await self.add_order(self.bob.id, "SUCCESS", when=base + timedelta(hours=2))
        await self.add_order(self.alice.id, "NEW", when=base + timedelta(hours=3))
        await self.add_order(self.alice.id, "FAILED", when=base + timedelta(hours=4))

        orders, total = await self.repo.orders.get_orders(
            OrderFilter(status="NEW", user_id=self.bob.id),
            pagination=Pagination(page=1, limit=10),
        )
        self.assertEqual(total, 2)
        self.assertTrue(all(o.user_id == self.bob.id for o in orders))
        self.assertTrue(all(o.status == "NEW" for o in orders))

        orders, _ = await self.repo.orders.get_orders(
            OrderFilter(user_id=self.bob.id), sort=[SortField("order_date", "asc")]
        )
        self.assertEqual([o.status for o in orders], ["NEW", "NEW", "SUCCESS"])

    async def test_statistics_and_latest_orders(self):
        base = datetime(2024, 1, 1)
        await self.add_order(self.alice.id, "NEW", [(self.keyboard, 2, 0.0)], base)
        await self.add_order(
            self.bob.id, "SUCCESS", [(self.mouse, 4, 0.25)], base + timedelta(days=1)
        )
        await self.add_order(self.bob.id, "NEW", when=base + timedelta(days=2))

        per_status = await self.repo.orders.get_statistics()
        self.assertEqual({s.status: s.count for s in per_status}, {"NEW": 2, "SUCCESS": 1})

        latest = await self.repo.orders.get_latest_orders(2)
        self.assertEqual(len(latest), 2)
        self.assertEqual(latest[0].total, 0.0)
        self.assertAlmostEqual(latest[1].total, 30.0)

    async def test_item_for_missing_product_rolls_back_order(self):
        ghost = models.Product(424242, "Ghost", "", 1.0, 1, True, self.alice.id)
        with self.assertRaises(sqlite3.IntegrityError):
            await self.add_order(self.alice.id, lines=[(ghost, 1, 0.0)])
        self.assertEqual(await self.count_rows("orders"), 0)
        self.assertEqual(await self.count_rows("order_items"), 0)


if __name__ == "__main__":
    unittest.main()
