# order repository
from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

import aiosqlite

from db import models
from db.database import connect, timestamp
from db.query import FilteredQuery, Pagination, SortField, fetch_page

ORDER_SORT_FIELDS = {
    "order_date": "order_date",
    "created_at": "created_at",
}


@dataclass(frozen=True)
class OrderFilter:
    id: int = 0
    order_number: str = ""
    status: str = ""
    user_id: int = 0


def _row_to_item(row) -> models.OrderItem:
    return models.OrderItem(
        id=int(row[0]),
        order_id=int(row[1]),
        product_id=int(row[2]),
        product_price=float(row[3]),
        product_name=row[4],
        quantity=int(row[5]),
        discount=float(row[6]),
        note=row[7],
        created_at=models.parse_ts(row[8]),
        updated_at=models.parse_ts(row[9]),
    )


class OrderRepo:
    async def create_order(
        self, conn: aiosqlite.Connection, order: models.Order
    ) -> models.Order:
        """
        Insert the order header inside the caller's transaction.
        order.id is ignored; the returned copy carries the generated id.
        """
        now = timestamp()
        cur = await conn.execute(
            """
            INSERT INTO orders(order_number, order_date, status, note, user_id, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?);
            """,
            (
                order.order_number,
                timestamp(order.order_date),
                order.status,
                order.note,
                order.user_id,
                now,
                now,
            ),
        )
        oid = cur.lastrowid
        await cur.close()
        return dataclasses.replace(
            order,
            id=oid,
            created_at=models.parse_ts(now),
            updated_at=models.parse_ts(now),
        )

    async def create_item(
        self, conn: aiosqlite.Connection, item: models.OrderItem
    ) -> None:
        """Insert one line item inside the caller's transaction."""
        now = timestamp()
        cur = await conn.execute(
            """
            INSERT INTO order_items(order_id, product_id, product_price, product_name,
                                    quantity, discount, note, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?);
            """,
            (
                item.order_id,
                item.product_id,
                item.product_price,
                item.product_name,
                item.quantity,
                item.discount,
                item.note,
                now,
                now,
            ),
        )
        await cur.close()

    async def get_orders(
        self,
        order_filter: OrderFilter,
        sort: Sequence[SortField] = (),
        pagination: Pagination = Pagination(),
    ) -> Tuple[List[models.Order], int]:
        """
        Filtered, sorted, paginated order list with nested items.
        Return (orders_for_page, total_count).
        """
        query = (
            FilteredQuery(
                select="id, order_number, order_date, status, note, user_id, created_at, updated_at",
                from_="orders",
                sortable=ORDER_SORT_FIELDS,
                default_sort="updated_at",
                id_column="id",
            )
            .eq("id", order_filter.id)
            .eq("order_number", order_filter.order_number)
            .eq("status", order_filter.status)
            .eq("user_id", order_filter.user_id)
        )
        async with connect() as conn:
            rows, total = await fetch_page(conn, query, sort, pagination)

            items_by_order: Dict[int, List[models.OrderItem]] = {}
            if rows:
                ids = [int(r[0]) for r in rows]
                marks = ", ".join("?" * len(ids))
                cur = await conn.execute(
                    f"""
                    SELECT id, order_id, product_id, product_price, product_name,
                           quantity, discount, note, created_at, updated_at
                    FROM order_items
                    WHERE order_id IN ({marks})
                    ORDER BY id;
                    """,
                    tuple(ids),
                )
                item_rows = await cur.fetchall()
                await cur.close()
                for item_row in item_rows:
                    item = _row_to_item(item_row)
                    items_by_order.setdefault(item.order_id, []).append(item)

        orders = [
            models.Order(
                id=int(row[0]),
                order_number=row[1],
                order_date=models.parse_ts(row[2]),
                status=row[3],
                note=row[4],
                user_id=int(row[5]),
                items=tuple(items_by_order.get(int(row[0]), [])),
                created_at=models.parse_ts(row[6]),
                updated_at=models.parse_ts(row[7]),
            )
            for row in rows
        ]
        return orders, total

    async def get_statistics(self) -> List[models.StatusCount]:
        """Number of orders per status; statuses without orders are absent."""
        async with connect() as conn:
            cur = await conn.execute(
                "SELECT status, COUNT(*) FROM orders GROUP BY status ORDER BY status;"
            )
            rows = await cur.fetchall()
            await cur.close()
        return [models.StatusCount(status=r[0], count=int(r[1])) for r in rows]

    async def get_latest_orders(self, limit: int) -> List[models.OrderInfo]:
        """Most recent orders with their discounted grand total."""
        async with connect() as conn:
            cur = await conn.execute(
                """
                SELECT o.id, o.order_number, o.order_date, o.status, o.user_id,
                       COALESCE(SUM(oi.product_price * oi.quantity * (1 - oi.discount)), 0.0)
                FROM orders o
                LEFT JOIN order_items oi ON oi.order_id = o.id
                GROUP BY o.id
                ORDER BY o.order_date DESC, o.id DESC
                LIMIT ?;
                """,
                (limit,),
            )
            rows = await cur.fetchall()
            await cur.close()
        return [
            models.OrderInfo(
                order_id=int(r[0]),
                order_number=r[1],
                order_date=models.parse_ts(r[2]),
                status=r[3],
                user_id=int(r[4]),
                total=float(r[5]),
            )
            for r in rows
        ]
