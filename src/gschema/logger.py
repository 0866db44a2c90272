"""Logging for gschema: standard log levels plus a few rich-formatted CLI helpers."""

import json
import logging
from typing import Any

from rich.console import Console
from rich.logging import RichHandler


class GSchemaLogger(logging.Logger):
    """
    Logger that writes through a RichHandler and exposes console helpers for CLI output.

    Compilers and the runtime only use the standard levels; the helpers
    (success, hint, rule, key_value, print_dict) are meant for command output.
    """

    def __init__(self, name: str, level: int = logging.INFO) -> None:
        super().__init__(name, level)
        self.console = Console(stderr=True)

        handler = RichHandler(
            console=self.console,
            rich_tracebacks=True,
            show_time=True,
            show_path=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        self.addHandler(handler)
        self.propagate = False

    def print(self, message: str) -> None:
        """Print a plain message (Rich markup is honoured)."""
        self.console.print(message)

    def success(self, message: str) -> None:
        """Print a success message in green with a checkmark."""
        self.print(f"[green]✓[/green] {message}")

    def hint(self, message: str) -> None:
        self.print(f"[dim]{message}[/dim]")

    def rule(self, title: str, style: str = "bold blue") -> None:
        """
        Print a horizontal rule with a title.

        Args:
            title: Title text for the rule
            style: Rich style string (default: "bold blue")
        """
        self.console.rule(f"[{style}]{title}")

    def key_value(self, key: str, value: Any, key_style: str = "dim") -> None:
        """
        Print a formatted key-value pair, e.g. "operation: GetUser".

        Args:
            key: The key/label to display
            value: The value to display
            key_style: Style for the key (default: "dim")
        """
        self.print(f"[{key_style}]{key}:[/{key_style}] {value}")

    def print_dict(self, data: dict[str, Any]) -> None:
        """Print dictionary data as highlighted JSON."""
        self.console.print_json(json.dumps(data, indent=2))


def get_logger(name: str = "gschema") -> GSchemaLogger:
    """
    Get or create a gschema logger instance.

    Args:
        name: Logger name (default: "gschema")

    Returns:
        GSchemaLogger instance
    """
    previous_class = logging.getLoggerClass()
    logging.setLoggerClass(GSchemaLogger)
    try:
        logger = logging.getLogger(name)
    finally:
        logging.setLoggerClass(previous_class)

    return logger  # type: ignore[return-value]
