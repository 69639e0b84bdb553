from typing import List

from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.validation import Number
from textual.widgets import Button, Input, Label, MarkdownViewer

from services.errors import ServiceError
from services.orders import OrderInput, OrderItemInput
from utils.pure import generate_markdown_table, to_float, to_int
from views.modal_dialog import DialogModal, ErrorDialogModal


class PlaceOrderModal(ModalScreen[bool]):
    """
    Collects order lines (product id, quantity, discount) for one user and
    places the order. Returns True when an order was created.
    """

    def __init__(self, user_id: int):
        super().__init__()
        self.user_id = user_id
        self.items: List[OrderItemInput] = []

    def compose(self) -> ComposeResult:
        with Vertical():
            yield MarkdownViewer("", show_table_of_contents=False)
            with Horizontal(id="div-line-inputs"):
                with Vertical():
                    yield Label("Product ID")
                    yield Input(
                        placeholder="1",
                        id="input-pid",
                        type="integer",
                        validators=[Number(minimum=1)],
                    )
                with Vertical():
                    yield Label("Quantity")
                    yield Input(
                        "1",
                        id="input-qty",
                        type="integer",
                        validators=[Number(minimum=1)],
                    )
                with Vertical():
                    yield Label("Discount (0-1)")
                    yield Input(
                        "0",
                        id="input-discount",
                        type="number",
                        validators=[Number(minimum=0.0, maximum=1.0)],
                    )
                yield Button("Add", id="btn-add-line", variant="success")
            yield Label("Note")
            yield Input(placeholder="optional", id="input-note")
            with Horizontal():
                yield Button("Go Back", id="btn-quit")
                yield Button("Place Order", id="btn-submit", variant="primary")

    async def on_mount(self):
        await self.render_lines()
        self.query_one("#input-pid").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    async def render_lines(self) -> None:
        header_md = f"### New order for user {self.user_id}\n\n"
        if not self.items:
            md = "_No lines yet. Add a product below._"
        else:
            rows = [
                [i + 1, item.product_id, item.quantity, f"{item.discount:.2f}"]
                for i, item in enumerate(self.items)
            ]
            md = generate_markdown_table(
                ["#", "Product ID", "Quantity", "Discount"], rows, ["r", "r", "r", "r"]
            )
        await self.query_one(MarkdownViewer).document.update(header_md + md)

    @on(Button.Pressed, "#btn-add-line")
    async def handle_add_line(self):
        input_pid = self.query_one("#input-pid", Input)
        pid = to_int(input_pid.value)
        qty = to_int(self.query_one("#input-qty", Input).value)
        discount = to_float(self.query_one("#input-discount", Input).value)

        if pid <= 0 or qty <= 0 or not 0 <= discount <= 1:
            input_pid.add_class("-invalid")
            self.notify("Check product id, quantity and discount.", severity="error")
            return

        self.items.append(OrderItemInput(product_id=pid, quantity=qty, discount=discount))
        input_pid.value = ""
        input_pid.remove_class("-invalid")
        input_pid.focus()
        await self.render_lines()

    @on(Button.Pressed, "#btn-submit")
    @work(exclusive=True)
    async def handle_submit(self):
        if not self.items:
            self.notify("Add at least one line.", severity="error")
            return

        if not await self.app.push_screen_wait(
            DialogModal(
                "Place order? This cannot be undone.",
                primary_text="Yes",
                secondary_text="No",
                tone="positive",
            )
        ):
            return

        order_input = OrderInput(
            user_id=self.user_id,
            items=tuple(self.items),
            note=self.query_one("#input-note", Input).value.strip(),
        )
        try:
            await self.app.order_service.place_order(order_input)
        except ServiceError as err:
            await self.app.push_screen_wait(ErrorDialogModal("Placing order", err))
            return

        self.notify("Order placed.")
        self.dismiss(True)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(False)
