"""Command implementations behind the CLI; each ``run_*`` returns an exit code."""

import logging

from rich.console import Console
from rich.markup import escape

from ..errors import ScratchpadError

logger = logging.getLogger(__name__)


def print_error(console: Console, error: ScratchpadError) -> None:
    """Report ``error`` as ``error [code]: message``; its cause goes to the debug log."""
    console.print(f"[bold red]error[/bold red] {escape(f'[{error.code}]')}: {escape(error.message)}", highlight=False)
    if error.__cause__ is not None:
        logger.debug("caused by: %r", error.__cause__)
