import csv
import io
import os
import unittest
from unittest import mock

from db.products import ProductFilter
from db.query import SortField
from services.errors import (
    InvalidCSV,
    InvalidProductInput,
    PersistenceError,
    ProductInUse,
    ProductNotFound,
    UserNotExist,
)
from services.orders import OrderInput, OrderItemInput, OrderService
from services.products import ListProductsInput, ProductInput, ProductService
from tests.base import DbTestCase


class ProductServiceTestCase(DbTestCase):
    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.service = ProductService(self.repo)
        self.owner = await self.make_user("Admin", "admin@example.com", role="ADMIN")

    async def test_create_get_update_delete(self):
        product = await self.service.create_product(
            ProductInput(title=" Lamp ", price=15.0, quantity=3, user_id=self.owner.id)
        )
        self.assertEqual(product.title, "Lamp")

        await self.service.update_product(
            product.id,
            ProductInput(title="Desk Lamp", price=18.0, quantity=2, user_id=self.owner.id),
        )
        got = await self.service.get_product(product.id)
        self.assertEqual((got.title, got.price, got.quantity), ("Desk Lamp", 18.0, 2))

        await self.service.delete_product(product.id)
        with self.assertRaises(ProductNotFound):
            await self.service.get_product(product.id)
        with self.assertRaises(ProductNotFound):
            await self.service.delete_product(product.id)

    async def test_owner_must_exist(self):
        with self.assertRaises(UserNotExist):
            await self.service.create_product(
                ProductInput(title="Lamp", price=1.0, quantity=1, user_id=424242)
            )
        product = await self.make_product(self.owner.id)
        with self.assertRaises(UserNotExist):
            await self.service.update_product(
                product.id,
                ProductInput(title="Lamp", price=1.0, quantity=1, user_id=424242),
            )
        with self.assertRaises(ProductNotFound):
            await self.service.update_product(
                424242,
                ProductInput(title="Lamp", price=1.0, quantity=1, user_id=self.owner.id),
            )

    async def test_invalid_input(self):
        for product_input in [
            ProductInput(title="", price=1.0, quantity=1, user_id=self.owner.id),
            ProductInput(title="A", price=-1.0, quantity=1, user_id=self.owner.id),
            ProductInput(title="A", price=1.0, quantity=-1, user_id=self.owner.id),
            ProductInput(title="A", price=1.0, quantity=1, user_id=0),
        ]:
            with self.subTest(product_input=product_input):
                with self.assertRaises(InvalidProductInput):
                    await self.service.create_product(product_input)

        with self.assertRaises(InvalidProductInput):
            await self.service.get_products(
                ListProductsInput(filter=ProductFilter(min_price=50, max_price=10))
            )

    async def test_ordered_product_cannot_be_deleted(self):
        product = await self.make_product(self.owner.id)
        await OrderService(self.repo).place_order(
            OrderInput(user_id=self.owner.id, items=[OrderItemInput(product.id, 1)])
        )
        with self.assertRaises(ProductInUse):
            await self.service.delete_product(product.id)

    async def test_import_csv_skips_bad_rows(self):
        data = (
            "Title,Description,Price,Quantity,Is_Active,User_ID\n"
            f"Lamp,Warm light,12.5,4,true,{self.owner.id}\n"
            f",No title,1,1,true,{self.owner.id}\n"
            f"Free,Zero price,0,1,true,{self.owner.id}\n"
            f"Empty,No stock,3,0,true,{self.owner.id}\n"
            f"Broken,Bad price,abc,1,true,{self.owner.id}\n"
            f"Maybe,Bad flag,2,1,perhaps,{self.owner.id}\n"
            f"Fan,Quiet,30,2,0,{self.owner.id}\n"
        )
        with self.assertLogs("services.products", level="WARNING") as logs:
            count = await self.service.import_csv("products.csv", io.StringIO(data))
        self.assertEqual(count, 2)
        self.assertEqual(len([line for line in logs.output if "Skipping row" in line]), 5)
        self.assertTrue(any("row (3)" in line for line in logs.output))

        products, total = await self.service.get_products(
            ListProductsInput(sort=[SortField("title")])
        )
        self.assertEqual(total, 2)
        self.assertEqual([p.title for p in products], ["Fan", "Lamp"])
        self.assertFalse(products[0].is_active)

    async def test_import_csv_rejects_bad_headers(self):
        with self.assertRaises(InvalidCSV):
            await self.service.import_csv("x.csv", io.StringIO("title,colour\nA,red\n"))
        with self.assertRaises(InvalidCSV):
            await self.service.import_csv("x.csv", io.StringIO("title,price\nA,1\n"))
        with self.assertRaises(InvalidCSV):
            await self.service.import_csv("x.csv", io.StringIO(""))

    async def test_import_csv_rejects_undecodable_file(self):
        raw = (
            b"title,price,quantity,is_active,user_id\n"
            + f"Lamp,12.5,4,true,{self.owner.id}\n".encode()
            + b"\xff\xfeBad,1,1,true,1\n"
        )
        stream = io.TextIOWrapper(io.BytesIO(raw), encoding="utf-8")
        with self.assertRaises(InvalidCSV):
            await self.service.import_csv("broken.csv", stream)
        self.assertEqual(await self.count_rows("products"), 0)

    async def test_import_csv_is_all_or_nothing(self):
        data = (
            "title,price,quantity,is_active,user_id\n"
            f"Lamp,12.5,4,true,{self.owner.id}\n"
            "Orphan,3,1,true,424242\n"
        )
        with self.assertRaises(PersistenceError):
            await self.service.import_csv("products.csv", io.StringIO(data))
        self.assertEqual(await self.count_rows("products"), 0)

    async def test_import_without_valid_rows_skips_transaction(self):
        data = f"title,price,quantity,is_active,user_id\n,1,1,true,{self.owner.id}\n"
        with mock.patch.object(self.repo, "tx") as tx:
            count = await self.service.import_csv("products.csv", io.StringIO(data))
        self.assertEqual(count, 0)
        tx.assert_not_called()

    async def test_export_csv(self):
        await self.make_product(self.owner.id, "Keyboard", 30.0, 5)
        await self.make_product(self.owner.id, "Mouse", 10.0, 50)
        await self.make_product(self.owner.id, "Old Mouse", 5.0, 1, is_active=False)

        path = await self.service.export_csv(
            ListProductsInput(filter=ProductFilter(title="mouse")),
            directory=self.temp_dir.name,
        )
        self.assertTrue(os.path.basename(path).startswith("products_"))
        with open(path, newline="") as f:
            rows = list(csv.reader(f))
        self.assertEqual(rows[0][0], "ID")
        self.assertEqual(len(rows), 3)
        self.assertEqual({r[1] for r in rows[1:]}, {"Mouse", "Old Mouse"})
        self.assertTrue(all(r[6] == "Admin" for r in rows[1:]))


if __name__ == "__main__":
    unittest.main()
