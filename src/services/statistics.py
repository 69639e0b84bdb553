# dashboard figures across users, products and orders
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import List

from db import models
from db.repo import Repo


@dataclass(frozen=True)
class OrderSummary:
    total_new: int = 0
    total_pending: int = 0
    total_success: int = 0
    total_failed: int = 0


@dataclass(frozen=True)
class DashboardStatistics:
    users: models.SummaryStatistics
    products: models.SummaryStatistics
    orders: OrderSummary
    latest_orders: List[models.OrderInfo] = field(default_factory=list)


class StatisticsService:
    def __init__(self, repo: Repo) -> None:
        self.repo = repo

    async def get_statistics(self, order_limit: int = 5) -> DashboardStatistics:
        users, products, per_status, latest = await asyncio.gather(
            self.repo.users.get_statistics(),
            self.repo.products.get_statistics(),
            self.repo.orders.get_statistics(),
            self.repo.orders.get_latest_orders(order_limit),
        )

        counts = {s.status: s.count for s in per_status}
        orders = OrderSummary(
            total_new=counts.get(models.OrderStatus.NEW.value, 0),
            total_pending=counts.get(models.OrderStatus.PENDING.value, 0),
            total_success=counts.get(models.OrderStatus.SUCCESS.value, 0),
            total_failed=counts.get(models.OrderStatus.FAILED.value, 0),
        )
        return DashboardStatistics(
            users=users, products=products, orders=orders, latest_orders=latest
        )
