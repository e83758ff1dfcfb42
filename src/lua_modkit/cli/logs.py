import logging

from rich.console import Console
from rich.logging import RichHandler

_LOGGER_NAME = "lua_modkit"

COMPILER_TAG = "[COMPILER]"
WATCHER_TAG = "[WATCHER]"


def configure_logging(tag: str, *, verbose: bool = False, console: Console | None = None) -> logging.Logger:
    """Send package logs through rich, every line prefixed with the run-mode tag."""
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = RichHandler(console=console, show_time=False, show_path=False, markup=False)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(f"{tag} - %(message)s"))
    logger.addHandler(handler)
    return logger
