from textual.message import Message


class QuitRequestedMessage(Message):
    """
    broadcasted when the app is about to quit
    """

    bubble = True


class UserLogoutMessage(Message):
    """
    broadcasted when the user logs out
    """

    bubble = True


class NewOrderMessage(Message):
    """
    Fired by the orders screen after the place-order modal succeeds.
    """

    bubble = True

    def __init__(self, user_id: int) -> None:
        super().__init__()
        self.user_id = user_id


class CatalogChangedMessage(Message):
    """
    Fired after products are imported, created or edited.
    """

    bubble = True


class ModeSwitchedMessage(Message):
    """
    fired whenever switch_mode is called
    must be fired from app level
    """

    bubble = True

    def __init__(self, old_mode: str, new_mode: str) -> None:
        super().__init__()
        self.old_mode = old_mode
        self.new_mode = new_mode
