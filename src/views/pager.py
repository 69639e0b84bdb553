from textual import on
from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.message import Message
from textual.reactive import reactive
from textual.validation import Number
from textual.widgets import Button, Input, Label

from utils.pure import page_count, to_int


class Pager(Horizontal):
    """
    Prev / page input / next controls for a paginated table.

    Posts Pager.Changed whenever the current page changes; the owning screen
    reloads and calls set_total() with the new total count.
    """

    class Changed(Message):
        def __init__(self, page: int) -> None:
            super().__init__()
            self.page = page

    page_idx = reactive(1, init=False)
    page_cnt = reactive(1, init=False)

    def __init__(self, limit: int = 10, **kwargs) -> None:
        super().__init__(**kwargs)
        self.limit = limit

    def compose(self) -> ComposeResult:
        yield Button("<", id="btn-prev")
        yield Input("1", id="input-page", type="integer")
        yield Label(" / 1", id="label-total-page-cnt")
        yield Label("", id="label-total-rows")
        yield Button(">", id="btn-next")

    def on_mount(self) -> None:
        self._refresh_buttons()

    def set_total(self, total: int) -> None:
        self.page_cnt = page_count(total, self.limit)
        self.query_one("#label-total-page-cnt", Label).update(f" / {self.page_cnt}")
        self.query_one("#label-total-rows", Label).update(f" ({total} rows)")
        self._refresh_buttons()

    def reset(self) -> None:
        """Jump back to page 1, always announcing the change."""
        if self.page_idx == 1:
            self.post_message(Pager.Changed(1))
        else:
            self.page_idx = 1

    def watch_page_idx(self, old: int, new: int) -> None:
        self.query_one("#input-page", Input).value = str(new)
        self._refresh_buttons()
        self.post_message(Pager.Changed(new))

    def _refresh_buttons(self) -> None:
        self.query_one("#btn-prev", Button).disabled = self.page_idx <= 1
        self.query_one("#btn-next", Button).disabled = self.page_idx >= self.page_cnt
        self.query_one("#input-page", Input).validators = [
            Number(minimum=1, maximum=self.page_cnt)
        ]

    @on(Button.Pressed, "#btn-prev")
    def handle_prev(self) -> None:
        if self.page_idx > 1:
            self.page_idx -= 1

    @on(Button.Pressed, "#btn-next")
    def handle_next(self) -> None:
        if self.page_idx < self.page_cnt:
            self.page_idx += 1

    @on(Input.Submitted, "#input-page")
    def handle_page_input(self, ev: Input.Submitted) -> None:
        new_idx = max(1, min(to_int(ev.value, 1), self.page_cnt))
        if new_idx != self.page_idx:
            self.page_idx = new_idx
