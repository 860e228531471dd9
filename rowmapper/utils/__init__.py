"""Logging helpers shared by strategies, executors and the CLI."""

from rowmapper.utils.logging import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
]
