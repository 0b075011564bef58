"""scratchpad - index and query notes scattered across library folders."""

__version__ = "0.1.0"
