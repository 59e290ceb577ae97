"""Logging setup for the CLI."""
import logging

from rich.console import Console
from rich.logging import RichHandler

NOISY_LOGGERS = ("telethon", "asyncio")


def setup_logging(level: int = logging.INFO, console: Console | None = None) -> logging.Logger:
    """Configure the root logger once, with rich output on stderr."""
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    logging.basicConfig(level=level, format="%(message)s", datefmt="[%X]", handlers=[handler], force=True)

    # Library chatter only when debugging.
    noisy_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)
    return logging.getLogger("tgsalvage")


def teardown_logging() -> None:
    """Flush and close handlers before exit."""
    logging.shutdown()
