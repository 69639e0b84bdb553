from services.orders import OrderInput, OrderItemInput, OrderService
from services.statistics import StatisticsService
from tests.base import DbTestCase


class StatisticsServiceTestCase(DbTestCase):
    async def test_empty_database(self):
        stats = await StatisticsService(self.repo).get_statistics()
        self.assertEqual(stats.users.total, 0)
        self.assertEqual(stats.products.total, 0)
        self.assertEqual(stats.orders.total_new, 0)
        self.assertEqual(stats.latest_orders, [])

    async def test_dashboard_figures(self):
        admin = await self.make_user("Admin", "admin@example.com", role="ADMIN")
        await self.make_user("Idle", "idle@example.com", is_active=False)
        lamp = await self.make_product(admin.id, "Lamp", 20.0, 5)
        await self.make_product(admin.id, "Retired", 1.0, 0, is_active=False)

        orders = OrderService(self.repo)
        for discount in (0.0, 0.5):
            await orders.place_order(
                OrderInput(
                    user_id=admin.id,
                    items=[OrderItemInput(lamp.id, 2, discount=discount)],
                )
            )

        stats = await StatisticsService(self.repo).get_statistics(order_limit=1)
        self.assertEqual((stats.users.total, stats.users.total_inactive), (2, 1))
        self.assertEqual((stats.products.total, stats.products.total_inactive), (2, 1))
        self.assertEqual(stats.orders.total_new, 2)
        self.assertEqual(stats.orders.total_success, 0)
        self.assertEqual(len(stats.latest_orders), 1)
        self.assertAlmostEqual(stats.latest_orders[0].total, 20.0)
