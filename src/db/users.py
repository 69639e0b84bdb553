# user repository
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from db import models
from db.database import connect, timestamp
from db.query import FilteredQuery, Pagination, SortField, fetch_page

_USER_COLUMNS = (
    "id, name, email, password, phone, role, is_active, created_at, updated_at"
)

USER_SORT_FIELDS = {
    "name": "name",
    "email": "email",
    "created_at": "created_at",
}


@dataclass(frozen=True)
class UserFilter:
    id: int = 0
    email: str = ""
    name: str = ""  # substring match
    is_active: Optional[bool] = None
    role: str = ""


def _row_to_user(row) -> models.User:
    return models.User(
        id=int(row[0]),
        name=row[1],
        email=row[2],
        password=row[3],
        phone=row[4],
        role=row[5],
        is_active=bool(row[6]),
        created_at=models.parse_ts(row[7]),
        updated_at=models.parse_ts(row[8]),
    )


class UserRepo:
    async def create_user(
        self,
        name: str,
        email: str,
        password: str,
        phone: str,
        role: str,
        is_active: bool,
    ) -> models.User:
        """Insert a user (password must already be hashed) and return it."""
        now = timestamp()
        async with connect() as conn:
            cur = await conn.execute(
                """
                INSERT INTO users(name, email, password, phone, role, is_active, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?);
                """,
                (name, email, password, phone, role, int(is_active), now, now),
            )
            uid = cur.lastrowid
            await cur.close()
            await conn.commit()
        return models.User(
            id=uid,
            name=name,
            email=email,
            password=password,
            phone=phone,
            role=role,
            is_active=is_active,
            created_at=models.parse_ts(now),
            updated_at=models.parse_ts(now),
        )

    async def exists_user_by_id(self, uid: int) -> bool:
        async with connect() as conn:
            cur = await conn.execute("SELECT 1 FROM users WHERE id = ? LIMIT 1;", (uid,))
            row = await cur.fetchone()
            await cur.close()
        return row is not None

    async def exists_user_by_email(self, email: str) -> bool:
        async with connect() as conn:
            cur = await conn.execute(
                "SELECT 1 FROM users WHERE email = ? LIMIT 1;", (email,)
            )
            row = await cur.fetchone()
            await cur.close()
        return row is not None

    async def get_user(self, uid: int) -> Optional[models.User]:
        """Return the user with the given id, or None."""
        async with connect() as conn:
            cur = await conn.execute(
                f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?;", (uid,)
            )
            row = await cur.fetchone()
            await cur.close()
        return _row_to_user(row) if row else None

    async def get_user_by_email(self, email: str) -> Optional[models.User]:
        async with connect() as conn:
            cur = await conn.execute(
                f"SELECT {_USER_COLUMNS} FROM users WHERE email = ?;", (email,)
            )
            row = await cur.fetchone()
            await cur.close()
        return _row_to_user(row) if row else None

    async def get_users(
        self,
        user_filter: UserFilter,
        sort: Sequence[SortField] = (),
        pagination: Pagination = Pagination(),
    ) -> Tuple[List[models.User], int]:
        """
        Filtered, sorted, paginated user list.
        Return (users_for_page, total_count).
        """
        query = (
            FilteredQuery(
                select=_USER_COLUMNS,
                from_="users",
                sortable=USER_SORT_FIELDS,
                default_sort="updated_at",
                id_column="id",
            )
            .eq("id", user_filter.id)
            .eq("email", user_filter.email)
            .like("name", user_filter.name)
            .flag("is_active", user_filter.is_active)
            .eq("role", user_filter.role)
        )
        async with connect() as conn:
            rows, total = await fetch_page(conn, query, sort, pagination)
        return [_row_to_user(r) for r in rows], total

    async def update_user(self, user: models.User) -> int:
        """Overwrite every mutable column; return the number of rows updated."""
        async with connect() as conn:
            cur = await conn.execute(
                """
                UPDATE users
                SET name = ?, email = ?, password = ?, phone = ?, role = ?, is_active = ?, updated_at = ?
                WHERE id = ?;
                """,
                (
                    user.name,
                    user.email,
                    user.password,
                    user.phone,
                    user.role,
                    int(user.is_active),
                    timestamp(),
                    user.id,
                ),
            )
            affected = cur.rowcount
            await cur.close()
            await conn.commit()
        return affected

    async def delete_user(self, uid: int) -> int:
        """
        Delete a user; return the number of rows deleted.
        Raises sqlite3.IntegrityError when products or orders still reference it.
        """
        async with connect() as conn:
            cur = await conn.execute("DELETE FROM users WHERE id = ?;", (uid,))
            affected = cur.rowcount
            await cur.close()
            await conn.commit()
        return affected

    async def get_statistics(self) -> models.SummaryStatistics:
        async with connect() as conn:
            cur = await conn.execute(
                """
                SELECT COUNT(*),
                       COALESCE(SUM(CASE WHEN is_active = 0 THEN 1 ELSE 0 END), 0)
                FROM users;
                """
            )
            row = await cur.fetchone()
            await cur.close()
        return models.SummaryStatistics(total=int(row[0]), total_inactive=int(row[1]))
