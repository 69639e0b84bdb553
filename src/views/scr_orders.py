from typing import List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Input, MarkdownViewer, Select

from db.models import Order, OrderStatus
from db.orders import OrderFilter
from db.query import Pagination, SortField
from services.errors import ServiceError
from services.orders import ListOrdersInput
from utils.messages import ModeSwitchedMessage, NewOrderMessage
from utils.pure import generate_markdown_table, to_int
from views.base_screen import BaseScreen
from views.modal_dialog import ErrorDialogModal
from views.modal_place_order import PlaceOrderModal
from views.pager import Pager

PAGE_SIZE = 10

SORT_OPTIONS = [
    ("Newest first", "order_date:desc"),
    ("Oldest first", "order_date:asc"),
    ("Recently created", "created_at:desc"),
]


class OrdersScreen(BaseScreen):
    """
    Paginated order list with filters. Guests only ever see their own
    orders; admins may filter by user id.

    Layout:
    - Filter bar on top.
    - Markdown detail of the highlighted order, with the item snapshots.
    - Orders table and pager below.
    """

    BINDINGS = [
        Binding("n", "new_order", "New Order", show=True),
    ]

    def __init__(self) -> None:
        super().__init__()
        self._orders: List[Order] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            with Horizontal(id="hort-filters"):
                yield Input(placeholder="Order number", id="input-order-number")
                yield Select(
                    [(s.value, s.value) for s in OrderStatus],
                    prompt="Any status",
                    id="select-status",
                )
                yield Input(placeholder="User ID", id="input-user-id", type="integer")
                yield Select(SORT_OPTIONS, prompt="Default order", id="select-sort")
                yield Button("Search", id="btn-search", variant="primary")
                yield Button("New Order", id="btn-new-order", variant="success")
            yield MarkdownViewer(id="md-order-detail", show_table_of_contents=False)
            yield DataTable(id="table-orders")
        yield Pager(limit=PAGE_SIZE, id="pager-orders")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("ID", "Order Number", "Date", "Status", "User", "Total ($)")

    @on(Button.Pressed, "#btn-search")
    @on(Input.Submitted, "#input-order-number")
    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    @on(NewOrderMessage)
    def handle_refresh(self):
        self.query_one("#input-user-id").set_class(not self.app.state.is_admin, "hidden")
        self.query_one(Pager).reset()

    @on(Pager.Changed)
    def handle_page_changed(self, event: Pager.Changed) -> None:
        self._load_orders(event.page)

    @on(DataTable.RowHighlighted)
    def handle_row_highlight(self, event: DataTable.RowHighlighted) -> None:
        if 0 <= event.cursor_row < len(self._orders):
            self._render_detail(self._orders[event.cursor_row])

    def action_new_order(self) -> None:
        self.handle_new_order()

    @on(Button.Pressed, "#btn-new-order")
    @work
    async def handle_new_order(self) -> None:
        user_id = self.app.state.uid
        if self.app.state.is_admin:
            user_id = to_int(self.query_one("#input-user-id", Input).value, user_id)
        if await self.app.push_screen_wait(PlaceOrderModal(user_id)):
            self.post_message(NewOrderMessage(user_id))

    def _build_input(self, page: int) -> ListOrdersInput:
        status = self.query_one("#select-status", Select).value
        sort = self.query_one("#select-sort", Select).value

        if self.app.state.is_admin:
            user_id = to_int(self.query_one("#input-user-id", Input).value)
        else:
            user_id = self.app.state.uid

        sort_fields = []
        if isinstance(sort, str):
            field, direction = sort.split(":")
            sort_fields.append(SortField(field, direction))

        return ListOrdersInput(
            filter=OrderFilter(
                order_number=self.query_one("#input-order-number", Input).value.strip(),
                status=status if isinstance(status, str) else "",
                user_id=user_id,
            ),
            sort=sort_fields,
            pagination=Pagination(page=page, limit=PAGE_SIZE),
        )

    @work(exclusive=True, group="orders")
    async def _load_orders(self, page: int) -> None:
        try:
            orders, total = await self.app.order_service.list_orders(
                self._build_input(page)
            )
        except (ServiceError, ValueError) as err:
            await self.app.push_screen_wait(ErrorDialogModal("Loading orders", err))
            return

        table = self.query_one(DataTable)
        table.clear()
        for o in orders:
            table.add_row(
                o.id,
                o.order_number,
                o.order_date.strftime("%Y-%m-%d %H:%M"),
                o.status,
                o.user_id,
                f"{o.total:.2f}",
            )
        self._orders = orders
        self.query_one(Pager).set_total(total)

        if orders:
            table.cursor_coordinate = (0, 0)
            self._render_detail(orders[0])
        else:
            self._render_detail(None)

    def _render_detail(self, order: Optional[Order]) -> None:
        viewer = self.query_one("#md-order-detail", MarkdownViewer)
        if not order:
            viewer.document.update("### Select an order to view its details.")
            return

        header = (
            f"### Order {order.order_number}\n"
            f"Date: {order.order_date:%Y-%m-%d %H:%M}  \n"
            f"Status: {order.status}  \n"
            f"User: {order.user_id}\n\n"
        )
        if order.note:
            header += f"> {order.note}\n\n"
        rows = [
            [
                item.product_name,
                item.quantity,
                f"{item.product_price:.2f}",
                f"{item.discount:.0%}",
                f"{item.product_price * item.quantity * (1 - item.discount):.2f}",
            ]
            for item in order.items
        ]
        table_md = generate_markdown_table(
            ["Product", "Qty", "Unit Price", "Discount", "Line Total"],
            rows,
            ["l", "r", "r", "r", "r"],
        )
        footer = f"\n\n**Grand Total:** ${order.total:.2f}"
        viewer.document.update(header + table_md + footer)
