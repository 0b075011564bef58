"""
Logging configuration for the scratchpad CLI.

Library modules only call ``logging.getLogger(__name__)``; handlers are
attached here, once, by the command-line entrypoint.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "scratchpad"


def configure_logging(verbose: bool = False) -> logging.Logger:
    """Send ``scratchpad.*`` records to stderr through rich.

    WARNING and above by default; DEBUG with ``verbose``.
    """
    logger = logging.getLogger(LOGGER_NAME)
    level = logging.DEBUG if verbose else logging.WARNING
    logger.setLevel(level)

    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(
            console=Console(stderr=True),
            show_path=verbose,
            show_time=verbose,
            rich_tracebacks=verbose,
        )
        handler.setFormatter(logging.Formatter("%(message)s", datefmt="%H:%M:%S"))
        logger.addHandler(handler)
    for handler in logger.handlers:
        handler.setLevel(level)

    # keep records from also reaching a root handler configured elsewhere
    logger.propagate = False
    return logger
