"""Console factories and logging setup for vertex-setup."""

import logging
from io import StringIO

from rich.console import Console
from rich.logging import RichHandler


def create_console() -> Console:
    """Create a new console instance (factory function).

    This is the preferred way to get a console instance for dependency injection.

    Returns:
        Console: A new Rich Console instance configured for the current environment.
    """
    return Console(highlight=False)


def captured_console(width: int = 120) -> Console:
    """Return a console that captures output to a string."""
    return Console(file=StringIO(), width=width, force_terminal=False, color_system=None)


def configure_logging(level: str = "WARNING") -> None:
    """Route the root logger through Rich on stderr."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
        force=True,
    )
