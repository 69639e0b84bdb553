from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import LoadingIndicator

from db.repo import Repo
from db.seed import seed_demo_data
from services.orders import OrderService
from services.products import ProductService
from services.statistics import StatisticsService
from services.users import UserService
from utils.config import settings
from utils.messages import ModeSwitchedMessage, QuitRequestedMessage, UserLogoutMessage
from utils.state import GlobalState
from views.scr_dashboard import DashboardScreen
from views.scr_login import LoginScreen
from views.scr_orders import OrdersScreen
from views.scr_products import ProductsScreen
from views.scr_users import UsersScreen


class BackOfficeApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    MODES = {
        "orders": OrdersScreen,
        "products": ProductsScreen,
        "users": UsersScreen,
        "dashboard": DashboardScreen,
    }

    ADMIN_MODES = {
        "dashboard": "Statistics",
        "orders": "Orders",
        "products": "Products",
        "users": "Users",
    }
    GUEST_MODES = {
        "orders": "My Orders",
        "products": "Products",
    }

    CSS_PATH = "views/app.tcss"

    state: GlobalState

    def __init__(self, repo: Repo | None = None):
        super().__init__()
        self.state = GlobalState()
        self.repo = repo or Repo()
        self.user_service = UserService(self.repo)
        self.product_service = ProductService(self.repo)
        self.order_service = OrderService(self.repo)
        self.statistics_service = StatisticsService(self.repo)

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        if not settings.SECRET_KEY:
            self.notify("ACCESS_TOKEN_KEY is not set; login is disabled.", severity="warning")
        if settings.SEED_DEMO_DATA and await seed_demo_data(self.repo):
            self.notify("Demo data loaded. Try admin@example.com / admin123.")
        self.main_flow()

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    @on(UserLogoutMessage)
    @work
    async def handle_user_logout(self):
        self.state.logout()
        self.notify("Logout successful.")
        self.main_flow()

    @on(QuitRequestedMessage)
    def handle_quit(self):
        self.state.logout()
        self.exit()

    @work
    async def main_flow(self):
        await self.push_screen_wait(LoginScreen())
        new_mode = "dashboard" if self.state.is_admin else "orders"
        self.post_message(ModeSwitchedMessage(self.current_mode, new_mode))
        await self.switch_mode(new_mode)


def run():
    BackOfficeApp().run()


if __name__ == "__main__":
    run()
