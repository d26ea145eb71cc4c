"""Console logging for the command-line tools."""

import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logger(name: str, level: str = "INFO") -> logging.Logger:
    """Configures and returns a logger with Rich formatting on stderr."""
    logger = logging.getLogger(name)

    if logger.handlers:
        return logger

    logger.setLevel(level.upper())

    console = Console(stderr=True)
    handler = RichHandler(console=console, show_time=False, show_path=False)
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger.addHandler(handler)
    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get an existing CLI logger or create a new one."""
    return setup_logger(name)
