from __future__ import annotations

import os

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.validation import Number
from textual.widgets import Button, Checkbox, DataTable, Input, Select

from db.products import ProductFilter
from db.query import Pagination, SortField
from services.errors import ServiceError
from services.products import ListProductsInput
from utils.messages import CatalogChangedMessage, ModeSwitchedMessage
from utils.pure import to_float
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal, ErrorDialogModal
from views.pager import Pager

PAGE_SIZE = 10

SORT_OPTIONS = [
    ("Title A-Z", "title:asc"),
    ("Price low-high", "price:asc"),
    ("Price high-low", "price:desc"),
    ("Stock high-low", "quantity:desc"),
    ("Newest", "created_at:desc"),
]


class ProductsScreen(BaseScreen):
    """
    Browse the catalog with title / price range / active filters.
    Admins can export the filtered list to CSV.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            with Horizontal(id="hort-filters"):
                yield Input(placeholder="Title contains", id="input-title")
                yield Input(
                    placeholder="Min price",
                    id="input-min-price",
                    type="number",
                    validators=[Number(minimum=0.0)],
                )
                yield Input(
                    placeholder="Max price",
                    id="input-max-price",
                    type="number",
                    validators=[Number(minimum=0.0)],
                )
                yield Checkbox("Active only", id="chk-active")
                yield Select(SORT_OPTIONS, prompt="Default order", id="select-sort")
                yield Button("Search", id="btn-search", variant="primary")
                yield Button("Export CSV", id="btn-export", variant="success")
            with Horizontal(id="hort-import"):
                yield Input(placeholder="path/to/products.csv", id="input-import-path")
                yield Button("Import CSV", id="btn-import", variant="warning")
            yield DataTable(id="table-products")
        yield Pager(limit=PAGE_SIZE, id="pager-products")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("ID", "Title", "Price ($)", "Stock", "Active", "Created By")

        self.query_one("#input-title").focus()

    @on(Button.Pressed, "#btn-search")
    @on(Input.Submitted, "#input-title")
    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    @on(CatalogChangedMessage)
    def handle_refresh(self):
        guest = not self.app.state.is_admin
        self.query_one("#btn-export").set_class(guest, "hidden")
        self.query_one("#hort-import").set_class(guest, "hidden")
        self.query_one(Pager).reset()

    @on(Pager.Changed)
    def handle_page_changed(self, event: Pager.Changed) -> None:
        self._load_products(event.page)

    def _build_input(self, page: int) -> ListProductsInput:
        sort = self.query_one("#select-sort", Select).value
        sort_fields = []
        if isinstance(sort, str):
            field, direction = sort.split(":")
            sort_fields.append(SortField(field, direction))

        active_only = self.query_one("#chk-active", Checkbox).value
        return ListProductsInput(
            filter=ProductFilter(
                title=self.query_one("#input-title", Input).value.strip(),
                min_price=to_float(self.query_one("#input-min-price", Input).value),
                max_price=to_float(self.query_one("#input-max-price", Input).value),
                is_active=True if active_only else None,
            ),
            sort=sort_fields,
            pagination=Pagination(page=page, limit=PAGE_SIZE),
        )

    @work(exclusive=True, group="products")
    async def _load_products(self, page: int) -> None:
        try:
            products, total = await self.app.product_service.get_products(
                self._build_input(page)
            )
        except (ServiceError, ValueError) as err:
            await self.app.push_screen_wait(ErrorDialogModal("Loading products", err))
            return

        table = self.query_one(DataTable)
        table.clear()
        for p in products:
            table.add_row(
                p.id,
                p.title,
                f"{p.price:.2f}",
                p.quantity,
                "yes" if p.is_active else "no",
                p.user.name,
            )
        self.query_one(Pager).set_total(total)

    @on(Button.Pressed, "#btn-export")
    @work(exclusive=True)
    async def handle_export(self) -> None:
        try:
            path = await self.app.product_service.export_csv(self._build_input(1))
        except (ServiceError, OSError) as err:
            await self.app.push_screen_wait(ErrorDialogModal("Export", err))
            return
        await self.app.push_screen_wait(DialogModal(f"Products exported to {path}"))

    @on(Button.Pressed, "#btn-import")
    @work(exclusive=True)
    async def handle_import(self) -> None:
        input_path = self.query_one("#input-import-path", Input)
        path = input_path.value.strip()
        if not path:
            input_path.add_class("-invalid")
            self.notify("Enter the path of a CSV file.", severity="error")
            return

        try:
            with open(path, newline="") as f:
                count = await self.app.product_service.import_csv(
                    os.path.basename(path), f
                )
        except (ServiceError, OSError) as err:
            await self.app.push_screen_wait(ErrorDialogModal("Import", err))
            return

        input_path.value = ""
        input_path.remove_class("-invalid")
        self.notify(f"Imported {count} product(s).")
        self.post_message(CatalogChangedMessage())
