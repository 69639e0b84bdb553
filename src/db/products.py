# product repository
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import aiosqlite

from db import models
from db.database import connect, timestamp
from db.query import FilteredQuery, Pagination, SortField, fetch_page

_PRODUCT_COLUMNS = (
    "id, title, description, price, quantity, is_active, user_id, created_at, updated_at"
)

PRODUCT_SORT_FIELDS = {
    "title": "p.title",
    "price": "p.price",
    "quantity": "p.quantity",
    "created_at": "p.created_at",
}


@dataclass(frozen=True)
class ProductFilter:
    id: int = 0
    title: str = ""  # substring match
    min_price: float = 0
    max_price: float = 0
    is_active: Optional[bool] = None
    user_id: int = 0


def _row_to_product(row) -> models.Product:
    return models.Product(
        id=int(row[0]),
        title=row[1],
        description=row[2],
        price=float(row[3]),
        quantity=int(row[4]),
        is_active=bool(row[5]),
        user_id=int(row[6]),
        created_at=models.parse_ts(row[7]),
        updated_at=models.parse_ts(row[8]),
    )


class ProductRepo:
    async def get_product(self, pid: int) -> Optional[models.Product]:
        """Fetch a product by id, or None if no row matches."""
        async with connect() as conn:
            cur = await conn.execute(
                f"SELECT {_PRODUCT_COLUMNS} FROM products WHERE id = ?;", (pid,)
            )
            row = await cur.fetchone()
            await cur.close()
        return _row_to_product(row) if row else None

    async def exists_product_by_id(self, pid: int) -> bool:
        async with connect() as conn:
            cur = await conn.execute(
                "SELECT 1 FROM products WHERE id = ? LIMIT 1;", (pid,)
            )
            row = await cur.fetchone()
            await cur.close()
        return row is not None

    async def create_product(
        self,
        title: str,
        description: str,
        price: float,
        quantity: int,
        is_active: bool,
        user_id: int,
    ) -> models.Product:
        now = timestamp()
        async with connect() as conn:
            cur = await conn.execute(
                """
                INSERT INTO products(title, description, price, quantity, is_active, user_id, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?);
                """,
                (title, description, price, quantity, int(is_active), user_id, now, now),
            )
            pid = cur.lastrowid
            await cur.close()
            await conn.commit()
        return models.Product(
            id=pid,
            title=title,
            description=description,
            price=price,
            quantity=quantity,
            is_active=is_active,
            user_id=user_id,
            created_at=models.parse_ts(now),
            updated_at=models.parse_ts(now),
        )

    async def insert_all(
        self, conn: aiosqlite.Connection, products: Sequence[models.Product]
    ) -> None:
        """Bulk insert inside the caller's transaction; ids are assigned by the db."""
        now = timestamp()
        await conn.executemany(
            """
            INSERT INTO products(title, description, price, quantity, is_active, user_id, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?);
            """,
            [
                (
                    p.title,
                    p.description,
                    p.price,
                    p.quantity,
                    int(p.is_active),
                    p.user_id,
                    now,
                    now,
                )
                for p in products
            ],
        )

    async def update_product(self, product: models.Product) -> int:
        """Overwrite every mutable column; return the number of rows updated."""
        async with connect() as conn:
            cur = await conn.execute(
                """
                UPDATE products
                SET title = ?, description = ?, price = ?, quantity = ?, is_active = ?, user_id = ?, updated_at = ?
                WHERE id = ?;
                """,
                (
                    product.title,
                    product.description,
                    product.price,
                    product.quantity,
                    int(product.is_active),
                    product.user_id,
                    timestamp(),
                    product.id,
                ),
            )
            affected = cur.rowcount
            await cur.close()
            await conn.commit()
        return affected

    async def delete_product(self, pid: int) -> int:
        async with connect() as conn:
            cur = await conn.execute("DELETE FROM products WHERE id = ?;", (pid,))
            affected = cur.rowcount
            await cur.close()
            await conn.commit()
        return affected

    async def get_products(
        self,
        product_filter: ProductFilter,
        sort: Sequence[SortField] = (),
        pagination: Pagination = Pagination(),
    ) -> Tuple[List[models.ProductItem], int]:
        """
        Filtered, sorted, paginated product list, each joined with its creator.
        Return (products_for_page, total_count).
        """
        query = (
            FilteredQuery(
                select="""
                    p.id, p.title, p.description, p.price, p.quantity, p.is_active,
                    p.created_at, p.updated_at,
                    u.id, u.name, u.email, u.phone
                """,
                from_="products p JOIN users u ON u.id = p.user_id",
                sortable=PRODUCT_SORT_FIELDS,
                default_sort="p.updated_at",
                id_column="p.id",
            )
            .eq("p.id", product_filter.id)
            .like("p.title", product_filter.title)
            .eq("p.user_id", product_filter.user_id)
            .gte("p.price", product_filter.min_price)
            .lte("p.price", product_filter.max_price)
            .flag("p.is_active", product_filter.is_active)
        )
        async with connect() as conn:
            rows, total = await fetch_page(conn, query, sort, pagination)

        products = [
            models.ProductItem(
                id=int(row[0]),
                title=row[1],
                description=row[2],
                price=float(row[3]),
                quantity=int(row[4]),
                is_active=bool(row[5]),
                created_at=models.parse_ts(row[6]),
                updated_at=models.parse_ts(row[7]),
                user=models.CreatedBy(
                    id=int(row[8]), name=row[9], email=row[10], phone=row[11]
                ),
            )
            for row in rows
        ]
        return products, total

    async def get_statistics(self) -> models.SummaryStatistics:
        async with connect() as conn:
            cur = await conn.execute(
                """
                SELECT COUNT(*),
                       COALESCE(SUM(CASE WHEN is_active = 0 THEN 1 ELSE 0 END), 0)
                FROM products;
                """
            )
            row = await cur.fetchone()
            await cur.close()
        return models.SummaryStatistics(total=int(row[0]), total_inactive=int(row[1]))
