# order placement and order listing
from __future__ import annotations

import dataclasses
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Sequence, Tuple

import aiosqlite

from db import models
from db.orders import OrderFilter
from db.query import Pagination, SortField
from db.repo import Repo
from services.errors import (
    InvalidOrderInput,
    PersistenceError,
    ProductNotExist,
    UserNotExist,
)
from utils.logger import get_logger

_logger = get_logger(__name__)

ORDER_STATUSES = tuple(s.value for s in models.OrderStatus)


@dataclass(frozen=True)
class OrderItemInput:
    product_id: int
    quantity: int
    discount: float = 0.0
    note: str = ""


@dataclass(frozen=True)
class OrderInput:
    user_id: int
    items: Sequence[OrderItemInput]
    note: str = ""


@dataclass(frozen=True)
class ListOrdersInput:
    filter: OrderFilter = field(default_factory=OrderFilter)
    sort: Sequence[SortField] = ()
    pagination: Pagination = field(default_factory=Pagination)


def validate_order_input(order_input: OrderInput) -> None:
    """Reject malformed orders before anything touches the database."""
    if order_input.user_id <= 0:
        raise InvalidOrderInput("user id is invalid")
    if not order_input.items:
        raise InvalidOrderInput("items cannot be blank")
    for item in order_input.items:
        if item.product_id <= 0:
            raise InvalidOrderInput(f"product id is invalid: {item.product_id}")
        if item.quantity <= 0:
            raise InvalidOrderInput(f"quantity is invalid: {item.quantity}")
        if not 0 <= item.discount <= 1:
            raise InvalidOrderInput(f"discount is invalid: {item.discount}")


def validate_list_orders_input(list_input: ListOrdersInput) -> None:
    f = list_input.filter
    if f.id < 0:
        raise InvalidOrderInput("order id is invalid")
    if f.user_id < 0:
        raise InvalidOrderInput("user id is invalid")
    if f.status and f.status not in ORDER_STATUSES:
        raise InvalidOrderInput(f"order status is invalid: {f.status}")


class OrderService:
    def __init__(self, repo: Repo) -> None:
        self.repo = repo

    async def place_order(self, order_input: OrderInput) -> None:
        """
        Create an order and its items atomically.

        The user and every product are checked before the transaction opens.
        Each item stores the product's price and title as they are now, so
        later catalog edits do not change the order.

        Raises:
            InvalidOrderInput: malformed input, nothing was read.
            UserNotExist: the user id matches no user, nothing was written.
            ProductNotExist: an item's product id matches no product,
                nothing was written.
            PersistenceError: an insert failed; the transaction was rolled back.
        """
        validate_order_input(order_input)

        if not await self.repo.users.exists_user_by_id(order_input.user_id):
            raise UserNotExist()

        snapshots: List[models.OrderItem] = []
        for item in order_input.items:
            product = await self.repo.products.get_product(item.product_id)
            if product is None:
                raise ProductNotExist(f"product does not exist: {item.product_id}")
            snapshots.append(
                models.OrderItem(
                    id=0,
                    order_id=0,
                    product_id=item.product_id,
                    product_price=product.price,
                    product_name=product.title,
                    quantity=item.quantity,
                    discount=item.discount,
                    note=item.note,
                )
            )

        header = models.Order(
            id=0,
            order_number=str(uuid.uuid4()),
            order_date=datetime.now(),
            status=models.OrderStatus.NEW.value,
            note=order_input.note,
            user_id=order_input.user_id,
        )

        async def write_order(conn: aiosqlite.Connection) -> models.Order:
            try:
                order = await self.repo.orders.create_order(conn, header)
            except Exception as err:
                raise PersistenceError(f"error when create order: {err}") from err

            for snapshot in snapshots:
                try:
                    await self.repo.orders.create_item(
                        conn, dataclasses.replace(snapshot, order_id=order.id)
                    )
                except Exception as err:
                    raise PersistenceError(
                        f"error when create order item: {err}"
                    ) from err
            return order

        await self.repo.tx(write_order)
        _logger.info(
            f"Order {header.order_number} placed for user {order_input.user_id} "
            f"with {len(snapshots)} item(s)."
        )

    async def list_orders(
        self, list_input: ListOrdersInput
    ) -> Tuple[List[models.Order], int]:
        """Return (orders_for_page, total_count); each order carries its items."""
        validate_list_orders_input(list_input)
        return await self.repo.orders.get_orders(
            list_input.filter, list_input.sort, list_input.pagination
        )
