# product catalog: CRUD, listing and CSV import/export
from __future__ import annotations

import csv
import os
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Sequence, TextIO, Tuple

from db import models
from db.products import ProductFilter
from db.query import MAX_LIMIT, Pagination, SortField
from db.repo import Repo
from services.errors import (
    InvalidCSV,
    InvalidProductInput,
    PersistenceError,
    ProductInUse,
    ProductNotFound,
    UserNotExist,
)
from utils.config import settings
from utils.logger import get_logger

_logger = get_logger(__name__)

PRODUCT_COLUMNS = (
    "id",
    "title",
    "description",
    "price",
    "quantity",
    "is_active",
    "user_id",
    "created_at",
    "updated_at",
)
REQUIRED_CSV_COLUMNS = ("title", "price", "quantity", "is_active", "user_id")
EXPORT_COLUMNS = (
    "ID",
    "Title",
    "Description",
    "Price",
    "Quantity",
    "Activated",
    "Created By",
    "Created Date",
    "Updated Date",
)

_TRUE = {"1", "t", "true", "yes"}
_FALSE = {"0", "f", "false", "no"}


@dataclass(frozen=True)
class ProductInput:
    title: str
    price: float
    quantity: int
    user_id: int
    description: str = ""
    is_active: bool = True


@dataclass(frozen=True)
class ListProductsInput:
    filter: ProductFilter = field(default_factory=ProductFilter)
    sort: Sequence[SortField] = ()
    pagination: Pagination = field(default_factory=Pagination)


def validate_product_input(product_input: ProductInput) -> None:
    if not product_input.title.strip():
        raise InvalidProductInput("title cannot be blank")
    if product_input.price < 0:
        raise InvalidProductInput(f"price is invalid: {product_input.price}")
    if product_input.quantity < 0:
        raise InvalidProductInput(f"quantity is invalid: {product_input.quantity}")
    if product_input.user_id <= 0:
        raise InvalidProductInput("user id is invalid")


def _parse_bool(raw: str) -> Optional[bool]:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    return None


def _csv_headers(fields: List[str]) -> Dict[str, int]:
    """Map lower-cased header name -> column position, rejecting unknown names."""
    headers: Dict[str, int] = {}
    for pos, name in enumerate(fields):
        key = name.strip().lower()
        if key not in PRODUCT_COLUMNS:
            raise InvalidCSV(f"invalid field name: {name}")
        headers[key] = pos
    missing = [c for c in REQUIRED_CSV_COLUMNS if c not in headers]
    if missing:
        raise InvalidCSV(f"missing field(s): {', '.join(missing)}")
    return headers


class ProductService:
    def __init__(self, repo: Repo) -> None:
        self.repo = repo

    async def get_product(self, pid: int) -> models.Product:
        product = await self.repo.products.get_product(pid)
        if product is None:
            raise ProductNotFound()
        return product

    async def create_product(self, product_input: ProductInput) -> models.Product:
        validate_product_input(product_input)
        if not await self.repo.users.exists_user_by_id(product_input.user_id):
            raise UserNotExist()
        return await self.repo.products.create_product(
            title=product_input.title.strip(),
            description=product_input.description,
            price=product_input.price,
            quantity=product_input.quantity,
            is_active=product_input.is_active,
            user_id=product_input.user_id,
        )

    async def update_product(self, pid: int, product_input: ProductInput) -> None:
        validate_product_input(product_input)
        if not await self.repo.products.exists_product_by_id(pid):
            raise ProductNotFound()
        if not await self.repo.users.exists_user_by_id(product_input.user_id):
            raise UserNotExist()

        affected = await self.repo.products.update_product(
            models.Product(
                id=pid,
                title=product_input.title.strip(),
                description=product_input.description,
                price=product_input.price,
                quantity=product_input.quantity,
                is_active=product_input.is_active,
                user_id=product_input.user_id,
            )
        )
        if affected == 0:
            raise ProductNotFound()

    async def delete_product(self, pid: int) -> None:
        try:
            affected = await self.repo.products.delete_product(pid)
        except sqlite3.IntegrityError as err:
            raise ProductInUse() from err
        if affected == 0:
            raise ProductNotFound()

    async def get_products(
        self, list_input: ListProductsInput
    ) -> Tuple[List[models.ProductItem], int]:
        f = list_input.filter
        if f.id < 0 or f.user_id < 0:
            raise InvalidProductInput("id is invalid")
        if f.min_price < 0 or f.max_price < 0:
            raise InvalidProductInput("price range is invalid")
        if f.min_price > 0 and f.max_price > 0 and f.min_price > f.max_price:
            raise InvalidProductInput("price range is invalid")
        return await self.repo.products.get_products(
            list_input.filter, list_input.sort, list_input.pagination
        )

    async def import_csv(self, file_name: str, stream: TextIO) -> int:
        """
        Insert every valid row of a product CSV in one transaction.

        The header row must only name product columns. Rows with a blank
        title, non-positive price or quantity, or unparsable values are
        skipped and logged. An undecodable or malformed file raises
        InvalidCSV before anything is written. Returns the number of
        products inserted.
        """
        try:
            rows = list(csv.reader(stream))
        except (UnicodeDecodeError, csv.Error) as err:
            raise InvalidCSV(f"{file_name}: {err}") from err
        if not rows:
            raise InvalidCSV(f"{file_name} is empty")
        headers = _csv_headers(rows[0])

        def cell(record: List[str], name: str) -> str:
            pos = headers.get(name)
            if pos is None or pos >= len(record):
                return ""
            return record[pos].strip()

        products: List[models.Product] = []
        for line_no, record in enumerate(rows[1:], start=2):
            title = cell(record, "title")
            if not title:
                _logger.warning(f"Skipping row ({line_no}): title is empty")
                continue
            try:
                price = float(cell(record, "price"))
                quantity = int(cell(record, "quantity"))
                user_id = int(cell(record, "user_id"))
            except ValueError as err:
                _logger.warning(f"Skipping row ({line_no}): {err}")
                continue
            if price <= 0:
                _logger.warning(f"Skipping row ({line_no}): invalid price {price}")
                continue
            if quantity <= 0:
                _logger.warning(
                    f"Skipping row ({line_no}): invalid quantity {quantity}"
                )
                continue
            is_active = _parse_bool(cell(record, "is_active"))
            if is_active is None:
                _logger.warning(f"Skipping row ({line_no}): invalid is_active")
                continue

            products.append(
                models.Product(
                    id=0,
                    title=title,
                    description=cell(record, "description"),
                    price=price,
                    quantity=quantity,
                    is_active=is_active,
                    user_id=user_id,
                )
            )

        if not products:
            _logger.info(f"No valid product rows in {file_name}.")
            return 0

        async def insert(conn) -> None:
            await self.repo.products.insert_all(conn, products)

        try:
            await self.repo.tx(insert)
        except sqlite3.Error as err:
            _logger.error(f"Failed processing product data from {file_name}: {err}")
            raise PersistenceError(f"error when import products: {err}") from err

        _logger.info(f"Imported {len(products)} product(s) from {file_name}.")
        return len(products)

    async def export_csv(
        self, list_input: ListProductsInput, directory: Optional[str] = None
    ) -> str:
        """
        Write the filtered products to products_YYYYMMDD.csv.

        Only the first MAX_LIMIT (1000) matching rows are exported.
        Returns the path of the written file.
        """
        first_page = ListProductsInput(
            filter=list_input.filter,
            sort=list_input.sort,
            pagination=Pagination(page=1, limit=MAX_LIMIT),
        )
        products, _ = await self.get_products(first_page)

        directory = directory or settings.EXPORT_DIR
        os.makedirs(directory, exist_ok=True)
        path = os.path.join(
            directory, f"products_{datetime.now().strftime('%Y%m%d')}.csv"
        )
        with open(path, "w", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(EXPORT_COLUMNS)
            for p in products:
                writer.writerow(
                    [
                        p.id,
                        p.title,
                        p.description,
                        f"{p.price:.2f}",
                        p.quantity,
                        str(p.is_active).lower(),
                        p.user.name,
                        p.created_at.strftime("%Y-%m-%d %H:%M:%S") if p.created_at else "",
                        p.updated_at.strftime("%Y-%m-%d %H:%M:%S") if p.updated_at else "",
                    ]
                )
        _logger.info(f"Exported {len(products)} product(s) to {path}.")
        return path
