import logging

from rich.logging import RichHandler

from utils.config import settings

_handler_name = "backoffice-rich"


class CenteredFormatter(logging.Formatter):
    """
    Prefixes each message with the logger name centred in a column that
    grows to the longest name seen so far, so messages line up.
    """

    def __init__(self, fmt=None, datefmt=None, style="%", initial_width=14):
        super().__init__(fmt, datefmt, style)
        self.width = initial_width

    def format(self, record):
        self.width = max(self.width, len(record.name))
        original_name = record.name
        record.name = original_name.center(self.width)
        try:
            return super().format(record)
        finally:
            # other handlers must see the real name
            record.name = original_name


_formatter = CenteredFormatter("[%(name)s]  %(message)s")


def get_logger(name=None) -> logging.Logger:
    """
    Return a logger writing through a RichHandler.

    Loggers share one formatter so the name column is common to all of
    them; the level follows the DEBUG setting.
    """
    logger = logging.getLogger(name or "backoffice")
    log_level = logging.DEBUG if settings.DEBUG else logging.INFO
    logger.setLevel(log_level)

    if not any(h.get_name() == _handler_name for h in logger.handlers):
        console_handler = RichHandler(
            show_time=True,
            show_level=True,
            show_path=False,
            rich_tracebacks=True,
            log_time_format="[%X]",
        )
        console_handler.set_name(_handler_name)
        console_handler.setFormatter(_formatter)
        console_handler.setLevel(log_level)
        logger.addHandler(console_handler)

        logger.propagate = False
        logger.debug(f"Logger '{logger.name}' ready.")

    return logger
