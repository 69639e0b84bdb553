# bundles the per-entity repositories and the transaction runner for the services
from typing import Awaitable, Callable, Optional, TypeVar

import aiosqlite

from db.database import run_in_transaction
from db.orders import OrderRepo
from db.products import ProductRepo
from db.users import UserRepo

T = TypeVar("T")


class Repo:
    """
    Entry point of the data access layer.

    Services receive one Repo; tests hand in mocks for any of its parts.
    """

    def __init__(
        self,
        users: Optional[UserRepo] = None,
        products: Optional[ProductRepo] = None,
        orders: Optional[OrderRepo] = None,
    ) -> None:
        self.users = users or UserRepo()
        self.products = products or ProductRepo()
        self.orders = orders or OrderRepo()

    async def tx(self, fn: Callable[[aiosqlite.Connection], Awaitable[T]]) -> T:
        """Run fn(conn) in a transaction: commit on success, roll back on error."""
        return await run_in_transaction(fn)
