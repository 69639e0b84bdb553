from textual import on, work
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.events import ScreenResume
from textual.widgets import MarkdownViewer

from utils.messages import ModeSwitchedMessage
from utils.pure import generate_markdown_table
from views.base_screen import BaseScreen


class DashboardScreen(BaseScreen):
    """
    Totals for users, products and orders by status, plus the latest orders.
    """

    LATEST_ORDERS = 5

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-dashboard", show_table_of_contents=False)

    def on_mount(self) -> None:
        self.handle_reload()

    @on(ScreenResume)
    @on(ModeSwitchedMessage)
    @work(exclusive=True)
    async def handle_reload(self) -> None:
        stats = await self.app.statistics_service.get_statistics(self.LATEST_ORDERS)

        summary_md = generate_markdown_table(
            ["", "Total", "Inactive"],
            [
                ["Users", stats.users.total, stats.users.total_inactive],
                ["Products", stats.products.total, stats.products.total_inactive],
            ],
            ["l", "r", "r"],
        )
        orders_md = generate_markdown_table(
            ["New", "Pending", "Success", "Failed"],
            [
                [
                    stats.orders.total_new,
                    stats.orders.total_pending,
                    stats.orders.total_success,
                    stats.orders.total_failed,
                ]
            ],
            ["r", "r", "r", "r"],
        )
        latest_md = generate_markdown_table(
            ["Order Number", "Date", "Status", "User", "Total ($)"],
            [
                [
                    o.order_number,
                    o.order_date.strftime("%Y-%m-%d %H:%M"),
                    o.status,
                    o.user_id,
                    f"{o.total:.2f}",
                ]
                for o in stats.latest_orders
            ],
            ["l", "l", "c", "r", "r"],
        )

        md = (
            "### Summary\n\n"
            + summary_md
            + "\n\n### Orders by Status\n\n"
            + orders_md
            + f"\n\n### Latest {self.LATEST_ORDERS} Orders\n\n"
            + (latest_md or "_No orders yet._")
        )
        self.query_one("#md-dashboard", MarkdownViewer).document.update(md)
