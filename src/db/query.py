# composes filtered / sorted / paginated SELECT statements for the repositories
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
MAX_LIMIT = 1000
SORT_DIRECTIONS = ("asc", "desc")


class InvalidSortError(ValueError):
    pass


class InvalidPaginationError(ValueError):
    pass


@dataclass(frozen=True)
class SortField:
    """One ORDER BY key, e.g. SortField("price", "desc")."""

    field: str
    direction: str = "asc"


@dataclass(frozen=True)
class Pagination:
    """
    1-based page number and page size.
    Zero means "not provided": page falls back to 1, limit to 20.
    """

    page: int = 0
    limit: int = 0

    def resolve(self) -> Tuple[int, int]:
        """Return (limit, offset) after applying defaults and bounds."""
        if self.page < 0:
            raise InvalidPaginationError(f"page is invalid: {self.page}")
        if self.limit < 0 or self.limit > MAX_LIMIT:
            raise InvalidPaginationError(f"limit is invalid: {self.limit}")
        page = self.page or DEFAULT_PAGE
        limit = self.limit or DEFAULT_LIMIT
        return limit, limit * (page - 1)


class FilteredQuery:
    """
    Builder for the filter -> count -> sort -> paginate pattern.

    Filter helpers skip absent values, so a field left at its zero value
    ("", 0, None) never narrows the result set. Conditions are AND-combined.

    Args:
        select: column list of the page query.
        from_: FROM clause, joins included.
        sortable: public sort field name -> SQL column.
        default_sort: column used (descending) when no sort field is given.
        id_column: unique column appended as the final tie-breaker.
    """

    def __init__(
        self,
        select: str,
        from_: str,
        sortable: Dict[str, str],
        default_sort: str,
        id_column: str,
    ) -> None:
        self._select = select
        self._from = from_
        self._sortable = sortable
        self._default_sort = default_sort
        self._id_column = id_column
        self._conditions: List[str] = []
        self._params: List[Any] = []

    def _add(self, condition: str, *params: Any) -> FilteredQuery:
        self._conditions.append(condition)
        self._params.extend(params)
        return self

    def eq(self, column: str, value: Any) -> FilteredQuery:
        if value is None or value == "" or value == 0:
            return self
        return self._add(f"{column} = ?", value)

    def like(self, column: str, value: Optional[str]) -> FilteredQuery:
        if not value:
            return self
        return self._add(f"{column} LIKE ?", f"%{value}%")

    def flag(self, column: str, value: Optional[bool]) -> FilteredQuery:
        # False is a real filter here, only None is skipped
        if value is None:
            return self
        return self._add(f"{column} = ?", int(value))

    def gte(self, column: str, value: Optional[float]) -> FilteredQuery:
        if value is None or value <= 0:
            return self
        return self._add(f"{column} >= ?", value)

    def lte(self, column: str, value: Optional[float]) -> FilteredQuery:
        if value is None or value <= 0:
            return self
        return self._add(f"{column} <= ?", value)

    @property
    def params(self) -> Tuple[Any, ...]:
        return tuple(self._params)

    def _where(self) -> str:
        if not self._conditions:
            return ""
        return "WHERE " + " AND ".join(self._conditions)

    def order_by(self, sort: Sequence[SortField]) -> str:
        keys: List[str] = []
        for s in sort:
            if s.field not in self._sortable:
                raise InvalidSortError(f"sort field is invalid: {s.field!r}")
            if s.direction not in SORT_DIRECTIONS:
                raise InvalidSortError(f"sort type is invalid: {s.direction!r}")
            keys.append(f"{self._sortable[s.field]} {s.direction.upper()}")
        if keys:
            keys.append(f"{self._id_column} ASC")
        else:
            keys = [f"{self._default_sort} DESC", f"{self._id_column} DESC"]
        return "ORDER BY " + ", ".join(keys)

    def count(self) -> Tuple[str, Tuple[Any, ...]]:
        """COUNT(*) over the filtered set, before any pagination."""
        sql = f"SELECT COUNT(*) FROM {self._from} {self._where()};"
        return sql, self.params

    def select(
        self, sort: Sequence[SortField], pagination: Pagination
    ) -> Tuple[str, Tuple[Any, ...]]:
        order_by = self.order_by(sort)
        limit, offset = pagination.resolve()
        sql = (
            f"SELECT {self._select} FROM {self._from} {self._where()} "
            f"{order_by} LIMIT ? OFFSET ?;"
        )
        return sql, self.params + (limit, offset)


async def fetch_page(
    conn, query: FilteredQuery, sort: Sequence[SortField], pagination: Pagination
) -> Tuple[List[Any], int]:
    """Run the count and page queries; return (rows, total_count).

    Sort and pagination are validated before any statement is sent.
    """
    page_sql, page_params = query.select(sort, pagination)
    count_sql, count_params = query.count()

    cur = await conn.execute(count_sql, count_params)
    total = (await cur.fetchone())[0]
    await cur.close()

    cur = await conn.execute(page_sql, page_params)
    rows = await cur.fetchall()
    await cur.close()
    return list(rows), int(total)
