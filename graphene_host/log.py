"""
Console and loggers shared by the host, session and CLI.
"""

from rich.console import Console
from rich.logging import RichHandler
import logging

console = Console()


def _setup_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """Create a properly configured logger with Rich handler."""
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if not logger.handlers:
        handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            markup=True,
            show_time=False
        )
        logger.addHandler(handler)
    logger.propagate = False

    return logger


host_logger = _setup_logger("graphene_host.host", logging.INFO)
session_logger = _setup_logger("graphene_host.session", logging.INFO)
error_logger = _setup_logger("graphene_host.errors", logging.ERROR)


def set_verbosity(verbose: bool):
    """Switch every package logger to DEBUG (or back to its default level)."""
    host_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    session_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    error_logger.setLevel(logging.DEBUG if verbose else logging.ERROR)
