from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Input, Select

from db.models import Role
from db.query import Pagination, SortField
from db.users import UserFilter
from services.errors import ServiceError
from services.users import ListUsersInput
from utils.messages import ModeSwitchedMessage
from views.base_screen import BaseScreen
from views.modal_dialog import ErrorDialogModal
from views.pager import Pager

PAGE_SIZE = 10


class UsersScreen(BaseScreen):
    """
    Admin-only user directory.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            with Horizontal(id="hort-filters"):
                yield Input(placeholder="Name contains", id="input-name")
                yield Input(placeholder="Email", id="input-email")
                yield Select(
                    [(r.value.title(), r.value) for r in Role],
                    prompt="Any role",
                    id="select-role",
                )
                yield Button("Search", id="btn-search", variant="primary")
            yield DataTable(id="table-users")
        yield Pager(limit=PAGE_SIZE, id="pager-users")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("ID", "Name", "Email", "Phone", "Role", "Active", "Joined")

    @on(Button.Pressed, "#btn-search")
    @on(Input.Submitted)
    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    def handle_refresh(self):
        self.query_one(Pager).reset()

    @on(Pager.Changed)
    def handle_page_changed(self, event: Pager.Changed) -> None:
        self._load_users(event.page)

    @work(exclusive=True, group="users")
    async def _load_users(self, page: int) -> None:
        if not self.app.state.is_admin:
            return

        role = self.query_one("#select-role", Select).value
        list_input = ListUsersInput(
            filter=UserFilter(
                name=self.query_one("#input-name", Input).value.strip(),
                email=self.query_one("#input-email", Input).value.strip(),
                role=role if isinstance(role, str) else "",
            ),
            sort=[SortField("name")],
            pagination=Pagination(page=page, limit=PAGE_SIZE),
        )
        try:
            users, total = await self.app.user_service.get_users(list_input)
        except (ServiceError, ValueError) as err:
            await self.app.push_screen_wait(ErrorDialogModal("Loading users", err))
            return

        table = self.query_one(DataTable)
        table.clear()
        for u in users:
            table.add_row(
                u.id,
                u.name,
                u.email,
                u.phone,
                u.role,
                "yes" if u.is_active else "no",
                u.created_at.strftime("%Y-%m-%d") if u.created_at else "",
            )
        self.query_one(Pager).set_total(total)
