# provide dataclass models

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple


class Role(str, Enum):
    ADMIN = "ADMIN"
    GUEST = "GUEST"


class OrderStatus(str, Enum):
    NEW = "NEW"
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


def parse_ts(value) -> Optional[datetime]:
    """Columns hold ISO-8601 text; None stays None."""
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


@dataclass(frozen=True)
class User:
    id: int
    name: str
    email: str
    password: str  # bcrypt hash
    phone: str
    role: str  # "ADMIN" or "GUEST"
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class Product:
    id: int
    title: str
    description: str
    price: float
    quantity: int
    is_active: bool
    user_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class CreatedBy:
    id: int
    name: str
    email: str
    phone: str


@dataclass(frozen=True)
class ProductItem:
    """A product row joined with the user who created it."""

    id: int
    title: str
    description: str
    price: float
    quantity: int
    is_active: bool
    user: CreatedBy
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class OrderItem:
    id: int
    order_id: int
    product_id: int
    product_price: float  # unit price at time of order
    product_name: str  # product title at time of order
    quantity: int
    discount: float  # fraction in [0, 1]
    note: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class Order:
    id: int
    order_number: str
    order_date: datetime
    status: str
    note: str
    user_id: int
    items: Tuple[OrderItem, ...] = field(default_factory=tuple)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def total(self) -> float:
        return sum(
            i.product_price * i.quantity * (1 - i.discount) for i in self.items
        )


@dataclass(frozen=True)
class SummaryStatistics:
    total: int
    total_inactive: int


@dataclass(frozen=True)
class StatusCount:
    status: str
    count: int


@dataclass(frozen=True)
class OrderInfo:
    order_id: int
    order_number: str
    order_date: datetime
    status: str
    user_id: int
    total: float
